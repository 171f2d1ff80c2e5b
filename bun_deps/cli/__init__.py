"""Command line interface for bun-deps."""
