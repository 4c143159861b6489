"""
Company settings and logo.
"""

import logging
from typing import Optional

from korvalia_web.clients.api_client import BackendApiClient, unwrap_data
from korvalia_web.clients.upload import ImageFile, UploadClient, validate_image_file
from korvalia_web.schemas.company import CompanySettings
from korvalia_web.utils.errors import UploadValidationError

logger = logging.getLogger(__name__)


class CompanySettingsService:
    def __init__(self, api: BackendApiClient, token: Optional[str] = None):
        self.api = api
        self.token = token

    async def get(self) -> CompanySettings:
        response = await self.api.get("/settings", requires_auth=False)
        return CompanySettings.model_validate(unwrap_data(response) or {})

    async def save(self, form: CompanySettings, logo: Optional[ImageFile] = None) -> CompanySettings:
        """Save settings, uploading a new logo first when one is given."""
        if logo is not None:
            form = form.model_copy(update={"logo_url": await self.upload_logo(logo)})
        await self.api.put("/settings", form.to_wire(), token=self.token)
        logger.info("Company settings saved")
        return form

    async def upload_logo(self, logo: ImageFile) -> str:
        check = validate_image_file(logo)
        if not check.valid:
            raise UploadValidationError(check.error, filename=logo.filename)
        return await UploadClient(self.api).upload_image(logo, self.token)
