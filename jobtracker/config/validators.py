"""Soft validation: configuration that is legal but probably a mistake."""

import warnings
from typing import Any, Dict, List

KNOWN_SECTIONS = {"listing", "tracker", "logging"}


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    unknown = sorted(set(config_dict) - KNOWN_SECTIONS)
    if unknown:
        warning_messages.append(f"Unknown configuration sections will be ignored: {', '.join(unknown)}")

    listing = config_dict.get("listing", {})
    if isinstance(listing, dict):
        url = listing.get("url")
        if isinstance(url, str) and url.strip().startswith("http://"):
            warning_messages.append(f"Listing url uses plain http: {url}")

        # The listing is a single blocking call per request, so a tiny timeout fails often
        timeout = listing.get("http_request_timeout")
        if isinstance(timeout, int) and 5 <= timeout < 10:
            warning_messages.append(
                f"Short http_request_timeout ({timeout}s) may fail on large listing documents"
            )

        heading = listing.get("section_heading")
        if isinstance(heading, str) and heading.strip().startswith("#") and not heading.strip().startswith("##"):
            warning_messages.append(
                "section_heading is a top-level '#' heading; the section will run to the next '#' heading"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
