"""Storefront relay: AliExpress affiliate search and checkout backend."""

__version__ = "1.0.0"
