"""Command-line interface for the provider advisor."""
