"""Custom exception hierarchy for pyanimehub."""

from __future__ import annotations


class AnimeHubError(Exception):
    """Base exception for all pyanimehub errors."""


class AnimeHubConfigError(AnimeHubError):
    """Invalid or missing configuration."""


class AnimeHubTransportError(AnimeHubError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class AnimeHubRateLimitError(AnimeHubTransportError):
    """Provider rejected the request as rate limited (HTTP 429 or "Too Many Requests")."""


class AnimeHubApiError(AnimeHubError):
    """Provider answered, but with an application-level error (e.g. GraphQL ``errors``)."""

    def __init__(
        self,
        message: str,
        *,
        source: str = "",
        operation: str = "",
    ) -> None:
        self.source = source
        self.operation = operation
        super().__init__(message)


class AnimeHubAuthenticationError(AnimeHubApiError):
    """Missing, rejected or expired access token for a user endpoint."""
