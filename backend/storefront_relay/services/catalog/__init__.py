"""Catalog search pipeline."""

from .search import search_catalog, filter_categories, shape_product

__all__ = ["search_catalog", "filter_categories", "shape_product"]
