"""Command-line interface for tunelink."""
