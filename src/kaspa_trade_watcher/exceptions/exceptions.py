"""Custom exceptions for the feed clients and the ingestion engine."""

from __future__ import annotations


class TradeWatcherError(Exception):
    """Base exception for trade-watcher errors."""

    pass


class MissingRequiredConfigError(TradeWatcherError):
    """Raised when a required configuration value is missing."""

    def __init__(self, setting: str) -> None:
        super().__init__(f"Missing required setting: {setting}")
        self.setting = setting


class UpstreamAPIError(TradeWatcherError):
    """Raised when an upstream HTTP request fails after retries."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class RateLimitError(UpstreamAPIError):
    """Raised when the API returns HTTP 429 (Too Many Requests)."""

    def __init__(
        self,
        message: str = "Rate limit exceeded (429)",
        *,
        url: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, url=url, status_code=429)
        self.retry_after = retry_after


class RpcError(TradeWatcherError):
    """Raised when a JSON-RPC call returns an error object or a malformed result."""

    def __init__(self, message: str, *, method: str | None = None, code: int | None = None) -> None:
        super().__init__(message)
        self.method = method
        self.code = code


class SwapDecodeError(TradeWatcherError):
    """Raised when a log does not decode as the expected Swap event variant."""

    pass


class PairNotFoundError(TradeWatcherError):
    """Raised when a DEX factory has no pair for (token, quote).

    Fatal for that DEX: it stays disabled until configuration or chain state changes.
    """

    def __init__(self, dex_name: str, token: str, quote: str) -> None:
        super().__init__(f"{dex_name}: pair not found (getPair returned zero)")
        self.dex_name = dex_name
        self.token = token
        self.quote = quote
