"""Command line interface for fieldguard."""
