"""Command-line interface for chatkb."""
