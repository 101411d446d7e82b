"""Internal constants shared across the library."""

MAL_BASE_URL = "https://api.myanimelist.net/v2"
ANILIST_URL = "https://graphql.anilist.co"
JIKAN_BASE_URL = "https://api.jikan.moe/v4"
USER_AGENT = "pyanimehub/0 (+aiohttp)"

#: Related entries kept per entity after self/type filtering.
RELATED_ANIME_LIMIT = 10

#: Fields requested from the MAL v2 API for list and detail payloads.
MAL_LIST_FIELDS = (
    "id,title,alternative_titles,main_picture,synopsis,mean,num_episodes,status,genres,"
    "start_date,start_season,media_type,average_episode_duration,studios,num_list_users,my_list_status"
)
MAL_DETAIL_FIELDS = f"{MAL_LIST_FIELDS},related_anime"

# ------------------------------------------------------------------
# Seasons  (month → season name)
# ------------------------------------------------------------------

_MONTH_TO_SEASON: dict[int, str] = {
    1: "winter",
    2: "winter",
    3: "winter",
    4: "spring",
    5: "spring",
    6: "spring",
    7: "summer",
    8: "summer",
    9: "summer",
    10: "fall",
    11: "fall",
    12: "fall",
}


def month_to_season(month: int) -> str:
    """Convert a calendar month (1-12) to the lower-case anime season name.

    Raises :class:`ValueError` for months outside 1-12.
    """
    season = _MONTH_TO_SEASON.get(month)
    if season is None:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    return season
