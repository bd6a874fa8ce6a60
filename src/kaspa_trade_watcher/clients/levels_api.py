# -*- coding: utf-8 -*-
"""NFT game levels API client."""

from __future__ import annotations

import re
import structlog
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, cast

from kaspa_trade_watcher.config import Settings
from kaspa_trade_watcher.exceptions import UpstreamAPIError
from kaspa_trade_watcher.models.market import to_decimal

if TYPE_CHECKING:
    from .http import AsyncHttpClient

_LEVEL_KEY_RE = re.compile(r"^bonkey-(\d+)$")


def parse_levels_payload(data: Any) -> Dict[str, int]:
    """Map `{levels: {"bonkey-<id>": {level: n}}}` to `{"<id>": n}`.

    Keys not matching the prefix and non-integral levels are skipped.

    Raises:
        ValueError: If the payload has no `levels` object.
    """
    levels = cast(Dict[str, Any], data).get("levels") if isinstance(data, dict) else None
    if not isinstance(levels, dict):
        raise ValueError("levels payload invalid (missing levels)")
    out: Dict[str, int] = {}
    for key, entry in cast(Dict[Any, Any], levels).items():
        m = _LEVEL_KEY_RE.match(str(key if key is not None else "").strip())
        if not m:
            continue
        raw = cast(Dict[str, Any], entry).get("level") if isinstance(entry, dict) else None
        level = to_decimal(raw)
        if level is None or level != level.to_integral_value():
            continue
        out[m.group(1)] = int(level)
    return out


class LevelsApiClient:
    """Client for the NFT levels endpoint (one document with every token level)."""

    def __init__(
        self,
        http_client: "AsyncHttpClient",
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            http_client: Async HTTP client (e.g. AsyncHttpClient).
            settings: Application settings (uses settings.metadata.levels_url, levels_timeout_seconds).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._http = http_client
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def url(self) -> str:
        return self._settings.metadata.levels_url.strip()

    async def get_levels(self) -> Dict[str, int]:
        """Fetch the level of every token, keyed by token id.

        Raises:
            UpstreamAPIError: If the request fails or the payload has no levels object.
        """
        url = self.url
        data = await self._http.get(
            url, timeout_seconds=self._settings.metadata.levels_timeout_seconds
        )
        try:
            levels = parse_levels_payload(data)
        except ValueError as e:
            raise UpstreamAPIError(str(e), url=url, cause=e) from e
        self._logger.debug("levels_api_fetched", levels_api_count=len(levels))
        return levels
