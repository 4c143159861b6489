"""
Page settings and hero image management.
"""

import logging
from typing import List, Optional, Sequence

from korvalia_web.clients.api_client import BackendApiClient, unwrap_data, unwrap_list
from korvalia_web.clients.upload import ImageFile, UploadClient, UploadReport
from korvalia_web.schemas.pages import HeroImage, PageKey, PageSettings, PageSettingsForm
from korvalia_web.services.forms import parse_page_blocks

logger = logging.getLogger(__name__)


def move_hero_image(images: List[HeroImage], from_index: int, to_index: int) -> List[HeroImage]:
    """Drag-and-drop reorder; indices out of range leave the list unchanged."""
    if not (0 <= from_index < len(images) and 0 <= to_index < len(images)):
        return list(images)
    reordered = list(images)
    moved = reordered.pop(from_index)
    reordered.insert(to_index, moved)
    return reordered


def order_updates(images: Sequence[HeroImage]) -> List[dict]:
    """Bulk reorder body: each image's new order is its position."""
    return [{"id": image.id, "order": index} for index, image in enumerate(images)]


class PageService:
    def __init__(self, api: BackendApiClient, token: Optional[str] = None):
        self.api = api
        self.token = token

    async def get(self, page_key: PageKey) -> PageSettings:
        response = await self.api.get(f"/pages/{page_key.value}", requires_auth=False)
        data = unwrap_data(response) or {}
        return PageSettings.model_validate({**data, "pageKey": page_key.value})

    async def save(self, page_key: PageKey, form: PageSettingsForm) -> PageSettings:
        """
        Save page settings; blocks given as JSON text must decode to an object.

        Raises:
            FormValidationError: the blocks JSON is invalid; nothing is sent
        """
        blocks = parse_page_blocks(form)
        payload = {
            "title": form.title,
            "subtitle": form.subtitle,
            "metaTitle": form.meta_title,
            "metaDescription": form.meta_description,
            "blocks": blocks,
        }
        response = await self.api.put(f"/pages/{page_key.value}", payload, token=self.token)
        logger.info(f"Page settings for '{page_key.value}' saved")
        data = unwrap_data(response)
        if not isinstance(data, dict) or not data:
            data = payload
        return PageSettings.model_validate({**data, "pageKey": page_key.value})

    async def list_hero_images(self, page_key: PageKey) -> List[HeroImage]:
        response = await self.api.get(
            "/hero-images", params={"pageKey": page_key.value}, token=self.token
        )
        images = [HeroImage.model_validate(item) for item in unwrap_list(response, "images")]
        return sorted(images, key=lambda image: image.order)

    async def upload_hero_images(
        self, page_key: PageKey, files: Sequence[ImageFile]
    ) -> UploadReport:
        return await UploadClient(self.api).upload_hero_images(files, page_key.value, self.token)

    async def toggle_hero_image(self, image_id: int, current_active: bool) -> bool:
        await self.api.put(
            f"/hero-images/{image_id}", {"active": not current_active}, token=self.token
        )
        return not current_active

    async def delete_hero_image(self, image_id: int) -> None:
        await self.api.delete(f"/hero-images/{image_id}", token=self.token)
        logger.info(f"Hero image {image_id} deleted")

    async def save_hero_order(self, images: Sequence[HeroImage]) -> List[dict]:
        updates = order_updates(images)
        await self.api.put("/hero-images/bulk", {"updates": updates}, token=self.token)
        return updates
