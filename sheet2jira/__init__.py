"""Spreadsheet -> Jira issue synchronizer."""

__version__ = "0.1.0"
