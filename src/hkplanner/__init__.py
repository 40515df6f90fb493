"""Recurring housekeeping task scheduling and staff-assignment engine."""

__version__ = "0.1.0"
