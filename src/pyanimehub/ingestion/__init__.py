"""Ingestion layer.

This package converts raw provider payloads (MAL, AniList, Jikan) into
canonical :class:`pyanimehub.models.anime.Anime` entities.
"""

from pyanimehub.ingestion.normalizers import (
    AniListNormalizer,
    JikanNormalizer,
    MalNormalizer,
    Normalizer,
    get_normalizer,
)

__all__ = [
    "AniListNormalizer",
    "JikanNormalizer",
    "MalNormalizer",
    "Normalizer",
    "get_normalizer",
]
