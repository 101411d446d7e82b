from __future__ import annotations

from pyanimehub._redact import redact_for_log, redact_url


def test_redact_for_log_redacts_sensitive_keys() -> None:
    payload = {
        "Authorization": "Bearer abc",
        "X-MAL-CLIENT-ID": "client",
        "variables": {"search": "frieren", "access_token": "tok"},
        "refresh_token": "rt",
        "user-agent": "pyanimehub",
    }

    redacted = redact_for_log(payload)
    assert redacted["Authorization"] == "<redacted>"
    assert redacted["X-MAL-CLIENT-ID"] == "<redacted>"
    assert redacted["refresh_token"] == "<redacted>"
    assert redacted["variables"]["access_token"] == "<redacted>"
    assert redacted["variables"]["search"] == "frieren"
    assert redacted["user-agent"] == "pyanimehub"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"value": long_value}, max_string=10)
    assert redacted["value"].startswith("x" * 10)
    assert "<truncated>" in redacted["value"]


def test_redact_for_log_walks_sequences() -> None:
    redacted = redact_for_log({"data": [{"node": {"id": 1}}, {"token": "t"}]})
    assert redacted["data"] == [{"node": {"id": 1}}, {"token": "<redacted>"}]


def test_redact_for_log_matches_camel_case_tokens() -> None:
    redacted = redact_for_log({"accessToken": "a", "code_verifier": "v", "mediaId": 5})
    assert redacted == {"accessToken": "<redacted>", "code_verifier": "<redacted>", "mediaId": 5}


def test_redact_url_masks_oauth_query_values() -> None:
    url = "https://myanimelist.net/v1/oauth2/token?code=secret&state=xyz"

    assert redact_url(url) == "https://myanimelist.net/v1/oauth2/token?code=<redacted>&state=xyz"
    assert redact_url("https://api.jikan.moe/v4/anime/1") == "https://api.jikan.moe/v4/anime/1"
