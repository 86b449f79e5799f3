"""Command-line interface for toggl-timer."""
