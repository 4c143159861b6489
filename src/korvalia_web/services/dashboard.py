"""
Admin dashboard counters.
"""

import asyncio
import logging
from typing import Any, Dict

from pydantic import BaseModel

from korvalia_web.clients.api_client import BackendApiClient, unwrap_list, unwrap_total
from korvalia_web.utils.errors import ApiError

logger = logging.getLogger(__name__)

# Catalogue mode ids used by the listings feed
SALE_MODE_ID = 1
RENT_MODE_ID = 2


class DashboardStats(BaseModel):
    total_properties: int = 0
    rent_properties: int = 0
    sale_properties: int = 0
    featured_properties: int = 0
    total_cities: int = 0


class DashboardService:
    def __init__(self, api: BackendApiClient):
        self.api = api

    async def _fetch(self, endpoint: str, params: Dict[str, Any] = None) -> Dict[str, Any]:
        # A failing counter shows 0 instead of breaking the dashboard
        try:
            response = await self.api.get(endpoint, params=params, requires_auth=False)
        except ApiError as e:
            logger.warning(f"Dashboard counter {endpoint} unavailable: {e}")
            return {}
        if response.get("success") is False:
            return {}
        return response

    async def stats(self) -> DashboardStats:
        total, cities, rent, sale, featured = await asyncio.gather(
            self._fetch("/emblematic/properties", {"page": 1}),
            self._fetch("/emblematic/cities"),
            self._fetch("/emblematic/properties", {"mode_id": RENT_MODE_ID, "page": 1}),
            self._fetch("/emblematic/properties", {"mode_id": SALE_MODE_ID, "page": 1}),
            self._fetch("/emblematic/featured"),
        )
        return DashboardStats(
            total_properties=unwrap_total(total, "properties"),
            rent_properties=unwrap_total(rent, "properties"),
            sale_properties=unwrap_total(sale, "properties"),
            featured_properties=len(unwrap_list(featured, "properties")),
            total_cities=len(unwrap_list(cities, "cities")),
        )
