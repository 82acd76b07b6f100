"""Packaged resources (default configuration)."""
