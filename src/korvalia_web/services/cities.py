"""
Admin city management.
"""

import logging
from typing import List, Optional

from korvalia_web.clients.api_client import BackendApiClient, unwrap_data, unwrap_list
from korvalia_web.schemas.city import City, CityForm
from korvalia_web.services.forms import ensure_city_form
from korvalia_web.utils.errors import CityInUseError

logger = logging.getLogger(__name__)


def can_delete(city: City) -> bool:
    return city.can_delete


class CityService:
    def __init__(self, api: BackendApiClient, token: Optional[str] = None):
        self.api = api
        self.token = token

    async def list(self) -> List[City]:
        response = await self.api.get("/cities", requires_auth=False)
        return [City.model_validate(item) for item in unwrap_list(response, "cities")]

    async def save(self, form: CityForm, city_id: Optional[int] = None) -> dict:
        ensure_city_form(form)
        payload = form.to_payload()
        if city_id:
            response = await self.api.put(f"/cities/{city_id}", payload, token=self.token)
            logger.info(f"City {city_id} updated")
        else:
            response = await self.api.post("/cities", payload, token=self.token)
            logger.info(f"City '{payload['name']}' created")
        return unwrap_data(response) or {}

    async def delete(self, city: City) -> None:
        """
        Delete a city that no property references.

        Raises:
            CityInUseError: the city still has properties; no request is made
        """
        if not can_delete(city):
            raise CityInUseError(city.id, city.property_count)
        await self.api.delete(f"/cities/{city.id}", token=self.token)
        logger.info(f"City {city.id} deleted")

    async def delete_from(self, cities: List[City], city_id: int) -> List[City]:
        """Delete `city_id` from a loaded list and return the remaining cities."""
        city = next((c for c in cities if c.id == city_id), None)
        if city is None:
            raise LookupError(f"City {city_id} not found")
        await self.delete(city)
        return [c for c in cities if c.id != city_id]
