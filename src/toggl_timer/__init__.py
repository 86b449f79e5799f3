"""Toggl time entry client with continue and unstop support."""

__version__ = "0.1.0"
