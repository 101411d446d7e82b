from __future__ import annotations

from typing import Any

import pytest

from pyanimehub.ingestion import AniListNormalizer, JikanNormalizer, MalNormalizer, get_normalizer
from pyanimehub.models.anime import AnimeSource


def _anilist_media(media_id: int, **extra: Any) -> dict[str, Any]:
    media: dict[str, Any] = {
        "id": media_id,
        "title": {"romaji": f"Romaji {media_id}", "english": f"English {media_id}", "native": None},
        "type": "ANIME",
    }
    media.update(extra)
    return media


# ------------------------------------------------------------------
# MAL
# ------------------------------------------------------------------


def test_mal_full_record() -> None:
    raw = {
        "id": 52991,
        "title": "Sousou no Frieren",
        "alternative_titles": {"en": "Frieren: Beyond Journey's End", "ja": "葬送のフリーレン"},
        "main_picture": {"medium": "https://cdn/m.jpg", "large": "https://cdn/l.jpg"},
        "synopsis": "During their decade-long quest...<br>[Written by MAL Rewrite]",
        "mean": 9.3,
        "num_episodes": 28,
        "status": "finished_airing",
        "genres": [{"id": 2, "name": "Adventure"}, {"id": 8, "name": "Drama"}],
        "start_date": "2023-09-29",
        "start_season": {"year": 2023, "season": "fall"},
        "media_type": "tv",
        "average_episode_duration": 1440,
        "studios": [{"id": 11, "name": "Madhouse"}],
        "num_list_users": 1000000,
        "my_list_status": {"status": "watching", "score": 9, "num_episodes_watched": 12},
    }

    anime = MalNormalizer().normalize(raw)

    assert anime.id == 52991
    assert anime.source == AnimeSource.MAL
    assert anime.title == "Sousou no Frieren"
    assert anime.image == "https://cdn/l.jpg"
    assert anime.synopsis == "During their decade-long quest...\n[Written by MAL Rewrite]"
    assert anime.score == 9.3
    assert anime.user_score == 9.0
    assert anime.user_status == "watching"
    assert anime.user_progress == 12
    assert anime.episodes == 28
    assert anime.genres == ["Adventure", "Drama"]
    assert anime.year == 2023
    assert anime.season == "fall"
    assert anime.format == "tv"
    assert anime.duration == 24
    assert anime.studios == ["Madhouse"]
    assert anime.popularity == 1000000
    assert anime.related_anime is None


def test_mal_title_falls_back_to_alternative_titles() -> None:
    anime = MalNormalizer().normalize({"id": 1, "title": "", "alternative_titles": {"en": "Cowboy Bebop"}})
    assert anime.title == "Cowboy Bebop"


def test_mal_minimal_record_leaves_optional_fields_empty() -> None:
    anime = MalNormalizer().normalize({"id": 1})

    assert anime.title == ""
    assert anime.synopsis is None
    assert anime.score is None
    assert anime.user_score is None
    assert anime.user_status is None
    assert anime.year is None
    assert anime.genres == []
    assert anime.studios == []


def test_mal_invalid_date_gives_no_year() -> None:
    anime = MalNormalizer().normalize({"id": 1, "start_date": "sometime"})
    assert anime.year is None


def test_mal_unscored_list_entry_has_no_user_score() -> None:
    anime = MalNormalizer().normalize({"id": 1, "my_list_status": {"status": "plan_to_watch", "score": 0}})
    assert anime.user_score is None
    assert anime.user_status == "plan_to_watch"


def test_mal_related_excludes_self_and_caps_at_ten() -> None:
    related = [{"node": {"id": 1, "title": "Self"}}]
    related += [{"node": {"id": 100 + i, "title": f"Sequel {i}"}, "relation_type": "sequel"} for i in range(15)]

    anime = MalNormalizer().normalize({"id": 1, "related_anime": related}, include_related=True)

    assert anime.related_anime is not None
    assert len(anime.related_anime) == 10
    assert all(entry.id != 1 for entry in anime.related_anime)
    assert all(entry.related_anime is None for entry in anime.related_anime)
    assert [entry.id for entry in anime.related_anime] == list(range(100, 110))


def test_mal_list_entry_status_wins_over_node() -> None:
    entry = {
        "node": {"id": 5, "title": "Show", "my_list_status": {"status": "completed"}},
        "list_status": {"status": "watching", "score": 7, "num_episodes_watched": 3},
    }

    anime = MalNormalizer().normalize_list_entry(entry)

    assert anime.user_status == "watching"
    assert anime.user_score == 7.0
    assert anime.user_progress == 3


def test_normalize_without_id_raises() -> None:
    with pytest.raises(ValueError):
        MalNormalizer().normalize({"title": "No id"})


def test_normalize_many_skips_records_without_id() -> None:
    items = MalNormalizer().normalize_many([{"id": 1}, {"title": "x"}, None, {"id": 2}])
    assert [anime.id for anime in items] == [1, 2]


# ------------------------------------------------------------------
# AniList
# ------------------------------------------------------------------


def test_anilist_scales_average_score() -> None:
    anime = AniListNormalizer().normalize(_anilist_media(1, averageScore=85))
    assert anime.score == 8.5


def test_anilist_zero_average_score_is_unknown() -> None:
    anime = AniListNormalizer().normalize(_anilist_media(1, averageScore=0))
    assert anime.score is None


def test_anilist_full_record() -> None:
    raw = _anilist_media(
        154587,
        description="Elf mage <i>Frieren</i> and her courageous fellow adventurers.<br><br>(Source: Crunchyroll)",
        coverImage={"extraLarge": "https://cdn/xl.jpg", "large": "https://cdn/l.jpg"},
        averageScore=91,
        episodes=28,
        status="FINISHED",
        genres=["Adventure", "Drama", "Fantasy"],
        startDate={"year": 2023, "month": 9, "day": 29},
        season="FALL",
        seasonYear=2023,
        format="TV",
        duration=24,
        popularity=400000,
        studios={"edges": [{"node": {"id": 11, "name": "MADHOUSE"}}]},
        mediaListEntry={"score": 9.5, "status": "CURRENT", "progress": 20},
    )

    anime = AniListNormalizer().normalize(raw)

    assert anime.source == AnimeSource.ANILIST
    assert anime.title == "Romaji 154587"
    assert anime.synopsis == "Elf mage Frieren and her courageous fellow adventurers.\n\n(Source: Crunchyroll)"
    assert anime.image == "https://cdn/xl.jpg"
    assert anime.score == 9.1
    assert anime.status == "FINISHED"
    assert anime.user_status == "CURRENT"
    assert anime.user_score == 9.5
    assert anime.user_progress == 20
    assert anime.year == 2023
    assert anime.season == "FALL"
    assert anime.format == "TV"
    assert anime.duration == 24
    assert anime.studios == ["MADHOUSE"]


def test_anilist_top_level_status_is_not_user_status() -> None:
    anime = AniListNormalizer().normalize(_anilist_media(1, status="RELEASING"))

    assert anime.status == "RELEASING"
    assert anime.user_status is None
    assert anime.user_score is None


def test_anilist_title_falls_back_to_english() -> None:
    raw = {"id": 7, "title": {"romaji": None, "english": "Mob Psycho 100", "native": "モブサイコ100"}}
    assert AniListNormalizer().normalize(raw).title == "Mob Psycho 100"


def test_anilist_related_keeps_only_anime() -> None:
    raw = _anilist_media(
        1,
        relations={
            "edges": [
                {"relationType": "SEQUEL", "node": _anilist_media(2)},
                {"relationType": "SOURCE", "node": _anilist_media(3, type="MANGA")},
                {"relationType": "SIDE_STORY", "node": _anilist_media(1)},
                {"relationType": "PREQUEL", "node": _anilist_media(4)},
            ]
        },
    )

    anime = AniListNormalizer().normalize(raw, include_related=True)

    assert anime.related_anime is not None
    assert [entry.id for entry in anime.related_anime] == [2, 4]


def test_anilist_list_entry_overrides_user_fields() -> None:
    entry = {"score": 8, "status": "CURRENT", "progress": 5, "media": _anilist_media(9)}

    anime = AniListNormalizer().normalize_list_entry(entry)

    assert anime.id == 9
    assert anime.user_status == "CURRENT"
    assert anime.user_score == 8.0
    assert anime.user_progress == 5


# ------------------------------------------------------------------
# Jikan
# ------------------------------------------------------------------


def test_jikan_full_record() -> None:
    raw = {
        "mal_id": 5114,
        "title": "Fullmetal Alchemist: Brotherhood",
        "images": {"jpg": {"image_url": "https://cdn/s.jpg", "large_image_url": "https://cdn/l.jpg"}},
        "synopsis": "After a horrific alchemy experiment...",
        "score": 9.1,
        "episodes": 64,
        "status": "Finished Airing",
        "genres": [{"mal_id": 1, "name": "Action"}],
        "year": None,
        "aired": {"from": "2009-04-05T00:00:00+00:00"},
        "season": "spring",
        "type": "TV",
        "duration": "24 min per ep",
        "studios": [{"mal_id": 4, "name": "Bones"}],
        "members": 3000000,
    }

    anime = JikanNormalizer().normalize(raw)

    assert anime.id == 5114
    assert anime.source == AnimeSource.JIKAN
    assert anime.image == "https://cdn/l.jpg"
    assert anime.score == 9.1
    assert anime.year == 2009
    assert anime.format == "TV"
    assert anime.duration == 24
    assert anime.studios == ["Bones"]
    assert anime.popularity == 3000000
    assert anime.user_status is None


def test_jikan_related_flattens_relations_and_filters_manga() -> None:
    raw = {
        "mal_id": 5114,
        "title": "FMA:B",
        "relations": [
            {
                "relation": "Adaptation",
                "entry": [{"mal_id": 25, "type": "manga", "name": "Fullmetal Alchemist"}],
            },
            {
                "relation": "Alternative version",
                "entry": [
                    {"mal_id": 121, "type": "anime", "name": "Fullmetal Alchemist"},
                    {"mal_id": 5114, "type": "anime", "name": "Self"},
                ],
            },
            {"relation": "Side story", "entry": [{"mal_id": 6421, "type": "anime", "name": "Brotherhood Specials"}]},
        ],
    }

    anime = JikanNormalizer().normalize(raw, include_related=True)

    assert anime.related_anime is not None
    assert [(entry.id, entry.title) for entry in anime.related_anime] == [
        (121, "Fullmetal Alchemist"),
        (6421, "Brotherhood Specials"),
    ]


# ------------------------------------------------------------------
# Shared contract
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    ("source", "raw"),
    [
        (AnimeSource.MAL, {"id": 1, "title": "A", "mean": 7.5, "synopsis": "<p>x</p>"}),
        (AnimeSource.ANILIST, _anilist_media(1, averageScore=75, description="<p>x</p>")),
        (AnimeSource.JIKAN, {"mal_id": 1, "title": "A", "score": 7.5, "synopsis": "x"}),
    ],
)
def test_normalization_is_deterministic(source: AnimeSource, raw: dict[str, Any]) -> None:
    normalizer = get_normalizer(source)
    first = normalizer.normalize(raw, include_related=True)
    second = normalizer.normalize(raw, include_related=True)

    assert first == second
    assert first.score == 7.5
    assert first.related_anime == []


def test_get_normalizer_accepts_string_source() -> None:
    assert isinstance(get_normalizer("anilist"), AniListNormalizer)
