"""Relay services: affiliate API access, catalog search and checkout."""
