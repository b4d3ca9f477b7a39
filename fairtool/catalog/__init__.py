"""Catalog aggregation from hub forks and posted fairseals."""

from .builder import CatalogBuilder
from .categories import categories_for_topics, category_for_topic
from .versions import AppVersion

__all__ = ["AppVersion", "CatalogBuilder", "categories_for_topics", "category_for_topic"]
