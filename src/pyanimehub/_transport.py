"""JSON-over-HTTP transport shared by the provider clients."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol
from urllib.parse import urlencode

import aiohttp

from pyanimehub._constants import USER_AGENT
from pyanimehub._redact import redact_for_log, redact_url
from pyanimehub.exceptions import (
    AnimeHubAuthenticationError,
    AnimeHubRateLimitError,
    AnimeHubTransportError,
)

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the provider clients.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any: ...

    async def post_json(
        self,
        url: str,
        payload: Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any: ...

    async def put_form(
        self,
        url: str,
        form: Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any: ...

    async def delete_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any: ...


class HttpTransport:
    """aiohttp transport that maps HTTP failures onto the library's exceptions."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = 15.0,
        trace: bool = False,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._trace = trace

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self._request("GET", url, params=params, headers=headers)

    async def post_json(
        self,
        url: str,
        payload: Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self._request("POST", url, payload=payload, headers=headers)

    async def put_form(
        self,
        url: str,
        form: Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """PUT *form* url-encoded; ``None`` values are left out."""
        return await self._request("PUT", url, form=form, headers=headers)

    async def delete_json(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        return await self._request("DELETE", url, headers=headers)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        payload: Mapping[str, Any] | None = None,
        form: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        data: str | None = None
        if payload is not None:
            request_headers["content-type"] = "application/json"
            data = json.dumps(payload)
        elif form is not None:
            request_headers["content-type"] = "application/x-www-form-urlencoded"
            data = urlencode({key: str(value) for key, value in form.items() if value is not None})
        request_headers.update(headers or {})
        query = {key: str(value) for key, value in (params or {}).items() if value is not None}

        _logger.debug(
            "%s %s params=%s headers=%s",
            method,
            redact_url(url),
            redact_for_log(query),
            redact_for_log(request_headers),
        )
        if self._trace and (payload is not None or form is not None):
            _logger.debug("%s %s body=%s", method, redact_url(url), redact_for_log(dict(payload or form or {})))

        try:
            async with self._http.request(
                method,
                url,
                params=query or None,
                data=data,
                headers=request_headers,
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except TimeoutError as exc:
            raise AnimeHubTransportError(f"Request to {url} timed out", url=url) from exc
        except aiohttp.ClientError as exc:
            raise AnimeHubTransportError(f"Request to {url} failed: {exc}", url=url) from exc

        if status == 429 or (status >= 400 and "Too Many Requests" in text[:200]):
            raise AnimeHubRateLimitError(f"Rate limited by {url}", status_code=status, url=url)
        if status in (401, 403):
            raise AnimeHubAuthenticationError(f"HTTP {status} from {url}: {text[:200]}", operation=url)
        if not 200 <= status < 300:
            raise AnimeHubTransportError(f"HTTP {status} from {url}: {text[:200]}", status_code=status, url=url)

        if not text.strip():
            return {}
        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise AnimeHubTransportError(
                f"Invalid JSON from {url}: {text[:200]}",
                status_code=status,
                url=url,
            ) from exc

        if self._trace:
            _logger.debug("%s %s response=%s", method, url, redact_for_log(body))
        return body
