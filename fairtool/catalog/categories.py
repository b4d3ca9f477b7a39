"""Mapping from repository topics to app category identifiers."""

from __future__ import annotations

from typing import Iterable, List, Optional

TOPIC_PREFIX = "appfair-"
CATEGORY_PREFIX = "public.app-category."

CATEGORY_SLUGS = frozenset(
    {
        "business",
        "developer-tools",
        "education",
        "entertainment",
        "finance",
        "games",
        "graphics-design",
        "healthcare-fitness",
        "lifestyle",
        "medical",
        "music",
        "news",
        "photography",
        "productivity",
        "reference",
        "social-networking",
        "sports",
        "travel",
        "utilities",
        "video",
        "weather",
    }
)


def category_for_topic(topic: str) -> Optional[str]:
    """Map ``appfair-utilities`` to ``public.app-category.utilities``."""
    if not topic.startswith(TOPIC_PREFIX):
        return None
    slug = topic[len(TOPIC_PREFIX) :]
    if slug not in CATEGORY_SLUGS:
        return None
    return CATEGORY_PREFIX + slug


def categories_for_topics(topics: Iterable[str]) -> List[str]:
    categories: List[str] = []
    for topic in topics:
        category = category_for_topic(topic)
        if category is not None and category not in categories:
            categories.append(category)
    return categories


__all__ = ["CATEGORY_PREFIX", "CATEGORY_SLUGS", "TOPIC_PREFIX", "categories_for_topics", "category_for_topic"]
