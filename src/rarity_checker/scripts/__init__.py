"""Command-line tooling."""
