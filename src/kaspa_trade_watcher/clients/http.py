# -*- coding: utf-8 -*-
"""Async HTTP client with retries and rate-limit handling."""

from __future__ import annotations

import asyncio
import random
import uuid
import aiohttp
import structlog
from typing import Any, Callable, Dict, Literal, Optional
from structlog.contextvars import bound_contextvars

from kaspa_trade_watcher.config import Settings
from kaspa_trade_watcher.exceptions import RateLimitError, UpstreamAPIError

HttpMethod = Literal["GET", "POST"]


class AsyncHttpClient:
    """Async HTTP client shared by the marketplace, levels and JSON-RPC clients.

    Injects Settings and optionally an aiohttp.ClientSession. If no session
    is provided, one is created and must be closed via aclose() or used
    as an async context manager.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Configuration (timeout, max_retries).
            session: Optional shared aiohttp session. If None, the client
                creates and owns a session (call aclose() when done).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._settings = settings
        self._session = session
        self._owns_session = session is None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._settings.api.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def aclose(self) -> None:
        """Close the session if this client owns it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff with jitter, capped at 4 seconds."""
        base = min(4.0, 0.25 * (2**attempt))
        return base + random.uniform(0.0, 0.15)

    async def get(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> Any:
        """Perform a GET request and return JSON. Retries on failure and on 429.

        Args:
            url: Full URL to request.
            params: Optional query parameters.
            timeout_seconds: Optional per-request timeout overriding the session default.

        Returns:
            Parsed JSON response (dict or list).

        Raises:
            RateLimitError: If 429 is returned on every attempt.
            UpstreamAPIError: If the request fails after all retries.
        """
        return await self._request("GET", url, params=params or {}, timeout_seconds=timeout_seconds)

    async def post(
        self,
        url: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> Any:
        """Perform a POST request with JSON body and return JSON. Retries on failure.

        Args:
            url: Full URL to request.
            json: Optional JSON-serializable body.
            timeout_seconds: Optional per-request timeout overriding the session default.

        Returns:
            Parsed JSON response (dict or list).

        Raises:
            UpstreamAPIError: If the request fails after all retries.
        """
        return await self._request("POST", url, json=json or {}, timeout_seconds=timeout_seconds)

    async def _request(
        self,
        method: HttpMethod,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        timeout_seconds: Optional[float] = None,
    ) -> Any:
        request_id = uuid.uuid4().hex[:12]
        max_retries = self._settings.api.max_retries
        event_prefix = f"http_{method.lower()}"
        last_error: Optional[Exception] = None
        rate_limited = False
        retry_after: Optional[float] = None
        request_kwargs: Dict[str, Any] = {"params": params, "json": json}
        if timeout_seconds is not None:
            request_kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout_seconds)

        with bound_contextvars(
            http_url=url,
            http_method=method,
            http_request_id=request_id,
            http_max_retries=max_retries,
        ):
            for attempt in range(max_retries):
                with bound_contextvars(http_attempt=attempt + 1):
                    try:
                        session = await self._get_session()
                        async with session.request(method, url, **request_kwargs) as response:
                            if response.status == 429:
                                rate_limited = True
                                retry_after = None
                                header = response.headers.get("Retry-After")
                                if header:
                                    try:
                                        retry_after = float(header)
                                    except ValueError:
                                        pass
                                self._logger.warning(
                                    f"{event_prefix}_rate_limited",
                                    http_status_code=429,
                                    http_retry_after_seconds=retry_after,
                                )
                                if retry_after is not None and retry_after > 0:
                                    await asyncio.sleep(retry_after)
                                else:
                                    await asyncio.sleep(self._backoff_delay(attempt))
                                continue

                            rate_limited = False
                            response.raise_for_status()
                            return await response.json(content_type=None)
                    except aiohttp.ClientResponseError as e:
                        last_error = e
                        self._logger.debug(
                            f"{event_prefix}_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                            http_status_code=getattr(e, "status", None),
                        )
                        await asyncio.sleep(self._backoff_delay(attempt))
                    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                        # ValueError covers bodies that are not JSON.
                        last_error = e
                        self._logger.debug(
                            f"{event_prefix}_retry",
                            error_type=type(e).__name__,
                            error_message=str(e),
                        )
                        await asyncio.sleep(self._backoff_delay(attempt))

            if rate_limited:
                self._logger.error(f"{event_prefix}_rate_limit_exhausted", http_attempts=max_retries)
                raise RateLimitError(url=url, retry_after=retry_after)

            status_code = (
                getattr(last_error, "status", None)
                if isinstance(last_error, aiohttp.ClientResponseError)
                else None
            )
            self._logger.error(
                f"{event_prefix}_failed",
                http_status_code=status_code,
                http_attempts=max_retries,
                error_type=type(last_error).__name__ if last_error else None,
                error_message=str(last_error) if last_error else None,
            )
            raise UpstreamAPIError(
                f"{method} failed after {max_retries} attempts: {url}",
                url=url,
                status_code=status_code,
                cause=last_error,
            ) from last_error
