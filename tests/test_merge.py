from __future__ import annotations

from types import MappingProxyType

from pyanimehub.models.anime import Anime, AnimeKey, AnimeSource
from pyanimehub.state.merge import apply_user_data, merge_user_scores, merge_user_status, reuse_if_unchanged

MAL = AnimeSource.MAL
ANILIST = AnimeSource.ANILIST


def _anime(anime_id: int, source: AnimeSource = MAL, **fields: object) -> Anime:
    fields.setdefault("title", f"Anime {anime_id}")
    return Anime(id=anime_id, source=source, **fields)


def test_empty_overlay_keeps_every_reference() -> None:
    entities = [_anime(1), _anime(2)]

    merged = merge_user_scores(entities, MappingProxyType({}))

    assert isinstance(merged, tuple)
    assert all(a is b for a, b in zip(entities, merged, strict=True))


def test_overlay_wins_and_absent_keys_keep_existing_values() -> None:
    first = _anime(1, user_score=5.0)
    second = _anime(2, user_score=6.0)

    merged = merge_user_scores([first, second], {AnimeKey(MAL, 1): 9.0})

    assert merged[0].user_score == 9.0
    assert merged[0] is not first
    assert merged[1] is second
    assert first.user_score == 5.0


def test_equal_overlay_value_does_not_copy() -> None:
    anime = _anime(1, user_status="watching")

    merged = merge_user_status([anime], {AnimeKey(MAL, 1): "watching"})

    assert merged[0] is anime


def test_overlay_is_keyed_by_source() -> None:
    mal = _anime(1, MAL)
    anilist = _anime(1, ANILIST)

    merged = merge_user_status([mal, anilist], {AnimeKey(ANILIST, 1): "CURRENT"})

    assert merged[0] is mal
    assert merged[0].user_status is None
    assert merged[1].user_status == "CURRENT"


def test_apply_user_data_sets_both_fields() -> None:
    anime = _anime(3)

    (merged,) = apply_user_data([anime], {AnimeKey(MAL, 3): 7.5}, {AnimeKey(MAL, 3): "completed"})

    assert merged.user_score == 7.5
    assert merged.user_status == "completed"
    assert merged.title == anime.title


def test_reuse_if_unchanged() -> None:
    items = (_anime(1), _anime(2))

    assert reuse_if_unchanged(items, tuple(items)) is items

    changed = (items[0], _anime(2, user_score=1.0))
    assert reuse_if_unchanged(items, changed) is changed
    assert reuse_if_unchanged(items, items[:1]) == items[:1]
