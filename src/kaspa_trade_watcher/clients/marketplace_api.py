# -*- coding: utf-8 -*-
"""Kaspa.com marketplace REST client (KRC721 listings/sales, KRC20 sold orders)."""

from __future__ import annotations

import structlog
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional
from structlog.contextvars import bound_contextvars

from kaspa_trade_watcher.config import Settings
from kaspa_trade_watcher.utils.fields import extract_rows

if TYPE_CHECKING:
    from .http import AsyncHttpClient


class MarketplaceApiClient:
    """Client for the marketplace REST API.

    Every method returns the raw row dicts of the response; the body may be a
    bare array or wrap the rows under `orders` / `data`.
    """

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
            settings: Application settings (uses settings.marketplace).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._http = http_client
        self._settings = settings
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def _url(self, path: str) -> str:
        base = self._settings.marketplace.api_base.rstrip("/")
        return f"{base}/{path.lstrip('/')}"

    async def get_listed_orders(self, ticker: str) -> List[Dict[str, Any]]:
        """Fetch active KRC721 listings for a collection ticker."""
        market = self._settings.marketplace
        params: Dict[str, Any] = {"ticker": ticker, "limit": market.listings_limit}
        return await self._get_rows("listed_orders", market.listings_path, params)

    async def get_sold_orders(self, ticker: str) -> List[Dict[str, Any]]:
        """Fetch KRC721 sales of the last `sold_minutes` minutes."""
        market = self._settings.marketplace
        params: Dict[str, Any] = {
            "ticker": ticker,
            "minutes": market.sold_minutes,
            "limit": market.listings_limit,
        }
        return await self._get_rows("sold_orders", market.sales_path, params)

    async def get_token_sold_orders(self, ticker: str) -> List[Dict[str, Any]]:
        """Fetch fulfilled KRC20 orders of the last `token_sold_minutes` minutes."""
        market = self._settings.marketplace
        params: Dict[str, Any] = {"ticker": ticker, "minutes": market.token_sold_minutes}
        return await self._get_rows("token_sold_orders", market.token_sales_path, params)

    async def _get_rows(self, endpoint: str, path: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        with bound_contextvars(
            marketplace_api_endpoint=endpoint,
            marketplace_api_ticker=params.get("ticker"),
        ):
            data = await self._http.get(self._url(path), params=params)
            rows = extract_rows(data)
            self._logger.debug("marketplace_api_rows_fetched", marketplace_api_rows=len(rows))
            return rows
