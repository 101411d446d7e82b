"""Per-provider normalizers.

Each provider returns a structurally different payload for the same
show. A :class:`Normalizer` turns one raw record into the canonical
:class:`pyanimehub.models.anime.Anime`; all three share the helpers in
:mod:`pyanimehub.ingestion.normalize` so edge cases (HTML, dates, score
scales) are handled identically.

Normalizers are stateless. Missing or malformed optional fields never
raise; the corresponding canonical field is ``None``.
"""

from __future__ import annotations

import abc
from collections.abc import Iterable, Mapping
from typing import Any

from pyanimehub._constants import RELATED_ANIME_LIMIT
from pyanimehub.ingestion.normalize import (
    as_list,
    derive_year,
    dig,
    first_present,
    names_of,
    parse_duration_minutes,
    safe_float,
    safe_int,
    safe_str,
    scale_score,
    strip_html,
)
from pyanimehub.models.anime import Anime, AnimeSource


def _user_score(value: Any) -> float | None:
    # Providers report 0 for "on the list but not scored".
    score = safe_float(value)
    if score is None or score <= 0:
        return None
    return score


class Normalizer(abc.ABC):
    """Converts raw provider records into canonical entities."""

    source: AnimeSource

    @abc.abstractmethod
    def _id(self, raw: Mapping[str, Any]) -> int | None: ...

    @abc.abstractmethod
    def _fields(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        """Canonical fields other than ``id``, ``source`` and ``related_anime``."""

    @abc.abstractmethod
    def _related_candidates(self, raw: Mapping[str, Any]) -> Iterable[Mapping[str, Any]]:
        """Flattened raw related records, already restricted to anime entries."""

    def normalize(self, raw: Mapping[str, Any], include_related: bool = False) -> Anime:
        """Normalize one raw record.

        Raises :class:`ValueError` only when the record has no usable id,
        since an entity without identity cannot be stored.
        """
        anime_id = self._id(raw)
        if anime_id is None:
            raise ValueError(f"{self.source.value} record has no id")

        related: list[Anime] | None = None
        if include_related:
            related = self._normalize_related(raw, anime_id)

        return Anime(id=anime_id, source=self.source, related_anime=related, **self._fields(raw))

    def normalize_many(self, records: Iterable[Any]) -> list[Anime]:
        """Normalize a page of records, skipping entries without an id."""
        items: list[Anime] = []
        for record in records:
            if not isinstance(record, Mapping) or self._id(record) is None:
                continue
            items.append(self.normalize(record))
        return items

    def _normalize_related(self, raw: Mapping[str, Any], parent_id: int) -> list[Anime]:
        related: list[Anime] = []
        for candidate in self._related_candidates(raw):
            candidate_id = self._id(candidate)
            if candidate_id is None or candidate_id == parent_id:
                continue
            related.append(self.normalize(candidate, include_related=False))
            if len(related) >= RELATED_ANIME_LIMIT:
                break
        return related


class MalNormalizer(Normalizer):
    """MyAnimeList v2 API (``/anime``, ``/anime/ranking``, ``/users/@me/animelist``)."""

    source = AnimeSource.MAL

    def _id(self, raw: Mapping[str, Any]) -> int | None:
        return safe_int(raw.get("id"))

    def _fields(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        picture = first_present(dig(raw, "main_picture", "large"), dig(raw, "main_picture", "medium"))
        list_status = raw.get("my_list_status")
        duration_seconds = safe_int(raw.get("average_episode_duration"))
        return {
            "title": first_present(
                raw.get("title"),
                dig(raw, "alternative_titles", "en"),
                dig(raw, "alternative_titles", "ja"),
            )
            or "",
            "synopsis": strip_html(raw.get("synopsis")),
            "image": picture,
            "cover_image": picture,
            "score": scale_score(raw.get("mean")),
            "user_score": _user_score(dig(list_status, "score")),
            "user_status": safe_str(dig(list_status, "status")),
            "user_progress": safe_int(dig(list_status, "num_episodes_watched")),
            "episodes": safe_int(raw.get("num_episodes")) or None,
            "status": safe_str(raw.get("status")),
            "genres": names_of(raw.get("genres")),
            "year": derive_year(dig(raw, "start_season", "year"), raw.get("start_date")),
            "season": safe_str(dig(raw, "start_season", "season")),
            "format": safe_str(raw.get("media_type")),
            "duration": parse_duration_minutes(round(duration_seconds / 60)) if duration_seconds else None,
            "studios": names_of(raw.get("studios")),
            "popularity": safe_int(raw.get("num_list_users")),
        }

    def _related_candidates(self, raw: Mapping[str, Any]) -> Iterable[Mapping[str, Any]]:
        # MAL only returns anime under ``related_anime``; manga lives in ``related_manga``.
        for edge in as_list(raw.get("related_anime")):
            node = dig(edge, "node")
            if isinstance(node, Mapping):
                yield node

    def normalize_list_entry(self, entry: Mapping[str, Any]) -> Anime:
        """Normalize a ``/users/@me/animelist`` item (``{"node": ..., "list_status": ...}``).

        The entry-level ``list_status`` wins over any ``my_list_status`` embedded in the node.
        """
        node = entry.get("node")
        anime = self.normalize(node if isinstance(node, Mapping) else {})
        list_status = entry.get("list_status")
        if not isinstance(list_status, Mapping):
            return anime

        update: dict[str, Any] = {}
        score = _user_score(list_status.get("score"))
        if score is not None:
            update["user_score"] = score
        status = safe_str(list_status.get("status"))
        if status is not None:
            update["user_status"] = status
        progress = safe_int(list_status.get("num_episodes_watched"))
        if progress is not None:
            update["user_progress"] = progress
        return anime.model_copy(update=update) if update else anime


class AniListNormalizer(Normalizer):
    """AniList GraphQL ``Media`` objects."""

    source = AnimeSource.ANILIST

    def _id(self, raw: Mapping[str, Any]) -> int | None:
        return safe_int(raw.get("id"))

    def _fields(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        image = first_present(
            dig(raw, "coverImage", "extraLarge"),
            dig(raw, "coverImage", "large"),
            dig(raw, "coverImage", "medium"),
        )
        # Only the nested list entry is user data; top-level ``status`` is the airing status.
        entry = raw.get("mediaListEntry")
        studios = names_of([dig(edge, "node") for edge in as_list(dig(raw, "studios", "edges"))])
        if not studios:
            studios = names_of(dig(raw, "studios", "nodes"))
        average = safe_float(raw.get("averageScore"))
        return {
            "title": first_present(
                dig(raw, "title", "romaji"),
                dig(raw, "title", "english"),
                dig(raw, "title", "native"),
            )
            or "",
            "synopsis": strip_html(raw.get("description")),
            "image": image,
            "cover_image": image,
            "score": scale_score(average, divisor=10) if average else None,
            "user_score": _user_score(dig(entry, "score")),
            "user_status": safe_str(dig(entry, "status")),
            "user_progress": safe_int(dig(entry, "progress")),
            "episodes": safe_int(raw.get("episodes")),
            "status": safe_str(raw.get("status")),
            "genres": [genre for genre in (safe_str(g) for g in as_list(raw.get("genres"))) if genre],
            "year": derive_year(dig(raw, "startDate", "year") or raw.get("seasonYear")),
            "season": safe_str(raw.get("season")),
            "format": safe_str(raw.get("format")),
            "duration": parse_duration_minutes(raw.get("duration")),
            "studios": studios,
            "popularity": safe_int(raw.get("popularity")),
        }

    def _related_candidates(self, raw: Mapping[str, Any]) -> Iterable[Mapping[str, Any]]:
        for edge in as_list(dig(raw, "relations", "edges")):
            node = dig(edge, "node")
            if not isinstance(node, Mapping):
                continue
            node_type = safe_str(node.get("type"))
            if node_type is not None and node_type.upper() != "ANIME":
                continue
            yield node

    def normalize_list_entry(self, entry: Mapping[str, Any]) -> Anime:
        """Normalize a ``MediaListCollection`` entry (``{"score", "status", "progress", "media"}``)."""
        media = entry.get("media")
        anime = self.normalize(media if isinstance(media, Mapping) else {})
        update: dict[str, Any] = {
            "user_score": _user_score(entry.get("score")),
            "user_status": safe_str(entry.get("status")),
        }
        progress = safe_int(entry.get("progress"))
        if progress is not None:
            update["user_progress"] = progress
        return anime.model_copy(update=update)


class JikanNormalizer(Normalizer):
    """Jikan v4 REST payloads (MAL data, public, no user state)."""

    source = AnimeSource.JIKAN

    def _id(self, raw: Mapping[str, Any]) -> int | None:
        return safe_int(raw.get("mal_id"))

    def _fields(self, raw: Mapping[str, Any]) -> dict[str, Any]:
        image = first_present(
            dig(raw, "images", "jpg", "large_image_url"),
            dig(raw, "images", "jpg", "image_url"),
            dig(raw, "images", "webp", "large_image_url"),
        )
        return {
            # Relation entries only carry ``name``.
            "title": first_present(
                raw.get("title"),
                raw.get("title_english"),
                raw.get("title_japanese"),
                raw.get("name"),
            )
            or "",
            "synopsis": strip_html(raw.get("synopsis")),
            "image": image,
            "cover_image": image,
            "score": scale_score(raw.get("score")),
            "episodes": safe_int(raw.get("episodes")),
            "status": safe_str(raw.get("status")),
            "genres": names_of(raw.get("genres")),
            "year": derive_year(raw.get("year"), dig(raw, "aired", "from")),
            "season": safe_str(raw.get("season")),
            "format": safe_str(raw.get("type")),
            "duration": parse_duration_minutes(raw.get("duration")),
            "studios": names_of(raw.get("studios")),
            "popularity": safe_int(raw.get("members")),
        }

    def _related_candidates(self, raw: Mapping[str, Any]) -> Iterable[Mapping[str, Any]]:
        for relation in as_list(raw.get("relations")):
            for entry in as_list(dig(relation, "entry")):
                if not isinstance(entry, Mapping):
                    continue
                if safe_str(entry.get("type")) != "anime":
                    continue
                yield entry


_NORMALIZERS: dict[AnimeSource, Normalizer] = {
    AnimeSource.MAL: MalNormalizer(),
    AnimeSource.ANILIST: AniListNormalizer(),
    AnimeSource.JIKAN: JikanNormalizer(),
}


def get_normalizer(source: AnimeSource | str) -> Normalizer:
    """Return the shared normalizer for *source*."""
    return _NORMALIZERS[AnimeSource(source)]
