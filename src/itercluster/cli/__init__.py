"""Command-line interface for itercluster."""
