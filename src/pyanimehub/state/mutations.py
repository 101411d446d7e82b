"""Status mutation pipeline.

Planning functions that compute the minimal set of :class:`StoreState`
field changes for a user action. They never touch the store; the store
commits the returned changes in a single write, or skips the write when
the plan is ``None``.

Rules shared by every plan:

- entities are matched by :class:`AnimeKey`, never by bare id;
- a collection with no effective change keeps its reference;
- a changed collection gets a new tuple in which only the matched
  entities are shallow copies;
- overlay maps are written through in the same plan.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any, TypeVar

from pyanimehub.models.anime import Anime, AnimeKey
from pyanimehub.models.status import is_watching_status
from pyanimehub.state.snapshot import ALL_COLLECTIONS, Collection, StoreState

V = TypeVar("V")


# ------------------------------------------------------------------
# Overlay map helpers (copy-on-write)
# ------------------------------------------------------------------


def with_entries(overlay: Mapping[AnimeKey, V], entries: Mapping[AnimeKey, V]) -> Mapping[AnimeKey, V]:
    """*overlay* updated with *entries*; the same object when nothing changes."""
    if all(key in overlay and overlay[key] == value for key, value in entries.items()):
        return overlay
    merged = dict(overlay)
    merged.update(entries)
    return MappingProxyType(merged)


def without_keys(overlay: Mapping[AnimeKey, V], keys: Iterable[AnimeKey]) -> Mapping[AnimeKey, V]:
    """*overlay* minus *keys*; the same object when none are present."""
    doomed = {key for key in keys if key in overlay}
    if not doomed:
        return overlay
    return MappingProxyType({key: value for key, value in overlay.items() if key not in doomed})


# ------------------------------------------------------------------
# Collection helpers
# ------------------------------------------------------------------


def _set_field(
    items: tuple[Anime, ...],
    key: AnimeKey,
    field_name: str,
    value: Any,
) -> tuple[tuple[Anime, ...], Anime | None]:
    """Set *field_name* on every entity matching *key*.

    Returns the (possibly unchanged) tuple and the first matching entity
    after the update, or ``None`` when *key* is absent.
    """
    changed = False
    match: Anime | None = None
    updated: list[Anime] = []
    for anime in items:
        if anime.key == key:
            if getattr(anime, field_name) != value:
                anime = anime.model_copy(update={field_name: value})
                changed = True
            if match is None:
                match = anime
        updated.append(anime)
    return (tuple(updated) if changed else items), match


def _contains(items: tuple[Anime, ...], key: AnimeKey) -> bool:
    return any(anime.key == key for anime in items)


def _apply_to_collections(
    state: StoreState,
    key: AnimeKey,
    field_name: str,
    value: Any,
) -> tuple[dict[str, Any], Anime | None]:
    changes: dict[str, Any] = {}
    record: Anime | None = None
    for name in ALL_COLLECTIONS:
        items = state.collection(name)
        updated, match = _set_field(items, key, field_name, value)
        if updated is not items:
            changes[name.value] = updated
        if record is None and match is not None:
            record = match
    return changes, record


# ------------------------------------------------------------------
# Plans
# ------------------------------------------------------------------


def plan_status_update(state: StoreState, key: AnimeKey, new_status: str) -> dict[str, Any] | None:
    """Plan a list status change for *key*.

    ``new_status == ""`` means "remove from list". The currently watching
    collection is reconciled even when *key* only lives there: a watching
    status adds the entity (taken from the first collection that holds it),
    anything else removes it.
    """
    target = new_status or None
    changes, record = _apply_to_collections(state, key, "user_status", target)

    watching: tuple[Anime, ...] = changes.get(Collection.CURRENTLY_WATCHING.value, state.currently_watching)
    if is_watching_status(target):
        if record is not None and not _contains(watching, key):
            changes[Collection.CURRENTLY_WATCHING.value] = (*watching, record)
    elif _contains(watching, key):
        changes[Collection.CURRENTLY_WATCHING.value] = tuple(anime for anime in watching if anime.key != key)

    statuses = state.user_anime_status
    if target is None:
        updated_statuses = without_keys(statuses, (key,))
    else:
        updated_statuses = with_entries(statuses, {key: target})
    if updated_statuses is not statuses:
        changes["user_anime_status"] = updated_statuses

    return changes or None


def plan_score_update(state: StoreState, key: AnimeKey, new_score: float | None) -> dict[str, Any] | None:
    """Plan a personal score change for *key* (``None`` or ``0`` unsets it)."""
    target = new_score or None
    changes, _record = _apply_to_collections(state, key, "user_score", target)

    scores = state.user_anime_scores
    if target is None:
        updated_scores = without_keys(scores, (key,))
    else:
        updated_scores = with_entries(scores, {key: target})
    if updated_scores is not scores:
        changes["user_anime_scores"] = updated_scores

    return changes or None


def plan_removal(state: StoreState, key: AnimeKey) -> dict[str, Any] | None:
    """Plan a hard delete of *key* from every collection and both overlays."""
    changes: dict[str, Any] = {}
    for name in ALL_COLLECTIONS:
        items = state.collection(name)
        kept = tuple(anime for anime in items if anime.key != key)
        if len(kept) != len(items):
            changes[name.value] = kept

    for field_name in ("user_anime_scores", "user_anime_status"):
        overlay = getattr(state, field_name)
        updated = without_keys(overlay, (key,))
        if updated is not overlay:
            changes[field_name] = updated

    return changes or None
