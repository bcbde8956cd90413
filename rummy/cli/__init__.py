"""Command-line interface for the Rummy engine."""
