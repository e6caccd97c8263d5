"""Shared helpers: address handling and unit formatting."""
