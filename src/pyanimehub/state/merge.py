"""Overlay merge engine.

Pure functions that lay the session's user overlay maps over a list of
entities. Policy:

- a key present in the overlay wins;
- a key absent from the overlay keeps whatever the entity already has,
  so a partial overlay never erases known values.

Inputs are never mutated. Entities whose value does not change keep
their reference; the result is always a tuple.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pyanimehub.models.anime import Anime, AnimeKey


def _overlay_field(
    entities: Iterable[Anime],
    overlay: Mapping[AnimeKey, Any],
    field_name: str,
) -> tuple[Anime, ...]:
    if not overlay:
        return tuple(entities)

    merged: list[Anime] = []
    for anime in entities:
        key = anime.key
        if key in overlay:
            value = overlay[key]
            if getattr(anime, field_name) != value:
                anime = anime.model_copy(update={field_name: value})
        merged.append(anime)
    return tuple(merged)


def merge_user_scores(entities: Iterable[Anime], scores: Mapping[AnimeKey, float]) -> tuple[Anime, ...]:
    """Overlay personal scores onto *entities*."""
    return _overlay_field(entities, scores, "user_score")


def merge_user_status(entities: Iterable[Anime], statuses: Mapping[AnimeKey, str]) -> tuple[Anime, ...]:
    """Overlay list statuses onto *entities*."""
    return _overlay_field(entities, statuses, "user_status")


def apply_user_data(
    entities: Iterable[Anime],
    scores: Mapping[AnimeKey, float],
    statuses: Mapping[AnimeKey, str],
) -> tuple[Anime, ...]:
    """Scores first, then statuses."""
    return merge_user_status(merge_user_scores(entities, scores), statuses)


def reuse_if_unchanged(previous: tuple[Anime, ...], merged: tuple[Anime, ...]) -> tuple[Anime, ...]:
    """Return *previous* when *merged* holds exactly the same entity objects.

    Lets the store re-apply overlays to every collection without handing
    consumers a new tuple for collections the overlay did not touch.
    """
    if len(previous) == len(merged) and all(a is b for a, b in zip(previous, merged, strict=True)):
        return previous
    return merged
