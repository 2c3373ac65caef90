"""Command-line interface for year-builder."""
