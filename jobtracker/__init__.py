"""Job Application Tracker: new-grad listings reconciled against your applications."""

__version__ = "0.1.0"
