"""Command line interface for MultiChat."""
