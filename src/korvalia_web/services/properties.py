"""
Admin property management.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from korvalia_web.clients.api_client import BackendApiClient, unwrap_data, unwrap_list, unwrap_total
from korvalia_web.clients.upload import ImageFile, UploadClient, UploadReport
from korvalia_web.schemas.property import Property, PropertyForm
from korvalia_web.services.forms import ensure_property_form
from korvalia_web.services.pagination import PageWindow

logger = logging.getLogger(__name__)


@dataclass
class PropertyPage:
    window: PageWindow
    items: List[Property]
    search: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "pagination": self.window.to_dict(),
            "search": self.search,
            "items": [item.to_wire() for item in self.items],
        }


def search_page(items: Sequence[Property], term: Optional[str]) -> List[Property]:
    """Filter the loaded page by title or city name, case-insensitively."""
    if not term:
        return list(items)
    term = term.lower()
    return [
        item
        for item in items
        if term in item.title.lower() or term in item.city_name.lower()
    ]


class PropertyService:
    def __init__(self, api: BackendApiClient, token: Optional[str] = None):
        self.api = api
        self.token = token

    async def list_page(
        self, page: int = 1, page_size: int = 10, search: Optional[str] = None
    ) -> PropertyPage:
        window = PageWindow(page=page, page_size=page_size)
        response = await self.api.get(
            "/properties",
            params={"limit": window.page_size, "offset": window.offset},
            requires_auth=False,
        )
        records = [Property.model_validate(item) for item in unwrap_list(response, "properties")]
        window = window.with_total(unwrap_total(response, "properties"))
        return PropertyPage(window=window, items=search_page(records, search), search=search)

    async def get(self, property_id: int) -> Property:
        response = await self.api.get(f"/properties/{property_id}", requires_auth=False)
        return Property.model_validate(unwrap_data(response))

    async def get_form(self, property_id: int) -> PropertyForm:
        return PropertyForm.from_property(await self.get(property_id))

    async def save(self, form: PropertyForm, property_id: Optional[int] = None) -> dict:
        """
        Validate then create (POST) or update (PUT) a property.

        Raises:
            FormValidationError: required fields are missing; nothing is sent
        """
        ensure_property_form(form)
        payload = form.to_payload()
        if property_id:
            response = await self.api.put(f"/properties/{property_id}", payload, token=self.token)
            logger.info(f"Property {property_id} updated")
        else:
            response = await self.api.post("/properties", payload, token=self.token)
            logger.info(f"Property '{form.title}' created")
        return unwrap_data(response) or {}

    async def delete(self, property_id: int, window: PageWindow) -> PageWindow:
        """Delete a property and return the page to show afterwards."""
        await self.api.delete(f"/properties/{property_id}", token=self.token)
        logger.info(f"Property {property_id} deleted")
        return window.after_delete()

    async def upload_gallery(self, files: Sequence[ImageFile]) -> UploadReport:
        return await UploadClient(self.api).upload_multiple_images(files, self.token)
