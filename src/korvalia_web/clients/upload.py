"""
Image upload helpers.

Files are validated locally first; only valid files are sent to the backend's
/upload, /upload/multiple and /hero-images/upload endpoints.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from fastapi import UploadFile

from korvalia_web.clients.api_client import BackendApiClient, unwrap_data
from korvalia_web.config import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"]
ALLOWED_HERO_EXTENSIONS = ["jpg", "jpeg", "png", "webp"]


@dataclass
class ImageFile:
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        if "." not in self.filename:
            return ""
        return self.filename.rsplit(".", 1)[-1].lower()

    def as_multipart(self, field_name: str):
        return (field_name, (self.filename, self.content, self.content_type))

    @classmethod
    async def from_upload(cls, upload: UploadFile) -> "ImageFile":
        content = await upload.read()
        return cls(
            filename=upload.filename or "",
            content_type=upload.content_type or "",
            content=content,
        )


@dataclass
class UploadCheck:
    valid: bool
    error: Optional[str] = None


@dataclass
class UploadReport:
    """Outcome of a batch upload: stored URLs plus the per-file rejections."""

    urls: List[str] = field(default_factory=list)
    uploaded: int = 0
    rejected: List[str] = field(default_factory=list)


def validate_image_file(file: ImageFile, max_size: int = None) -> UploadCheck:
    max_size = max_size or settings.MAX_IMAGE_UPLOAD_BYTES

    if file.content_type not in ALLOWED_IMAGE_TYPES:
        return UploadCheck(False, "El archivo debe ser una imagen (JPG, PNG, WEBP o GIF)")

    if file.size > max_size:
        return UploadCheck(
            False, f"La imagen no puede superar los {max_size // (1024 * 1024)}MB"
        )

    return UploadCheck(True)


def validate_hero_image_file(file: ImageFile, max_size: int = None) -> UploadCheck:
    max_size = max_size or settings.MAX_HERO_UPLOAD_BYTES

    if not file.content_type.startswith("image/"):
        return UploadCheck(False, f"El archivo {file.filename} no es una imagen válida")

    if file.size > max_size:
        return UploadCheck(
            False,
            f"El archivo {file.filename} excede el tamaño máximo de "
            f"{max_size // (1024 * 1024)}MB",
        )

    if file.extension not in ALLOWED_HERO_EXTENSIONS:
        return UploadCheck(
            False, f"El archivo {file.filename} no tiene una extensión permitida"
        )

    return UploadCheck(True)


def to_data_url(file: ImageFile) -> str:
    """Base64 data URL used for previews."""
    encoded = base64.b64encode(file.content).decode("ascii")
    return f"data:{file.content_type};base64,{encoded}"


class UploadClient:
    """Sends validated images to the backend."""

    def __init__(self, api: BackendApiClient):
        self.api = api

    async def upload_image(self, file: ImageFile, token: str) -> str:
        """
        Upload a single image.

        Returns:
            str: URL of the stored image, relative to the backend
        """
        response = await self.api.post(
            "/upload", files=[file.as_multipart("image")], token=token
        )
        return unwrap_data(response)["url"]

    async def upload_multiple_images(
        self, files: Sequence[ImageFile], token: str
    ) -> UploadReport:
        """
        Upload a gallery in one request, skipping files that fail validation.

        No request is made when none of the files are valid.
        """
        report = UploadReport()
        valid_files = []
        for file in files:
            check = validate_image_file(file)
            if not check.valid:
                logger.warning(f"Skipping {file.filename}: {check.error}")
                report.rejected.append(check.error)
                continue
            valid_files.append(file)

        if not valid_files:
            return report

        response = await self.api.post(
            "/upload/multiple",
            files=[file.as_multipart("images") for file in valid_files],
            token=token,
        )
        report.urls = list(unwrap_data(response).get("urls") or [])
        report.uploaded = len(report.urls)
        logger.info(f"Uploaded {report.uploaded} gallery image(s)")
        return report

    async def upload_hero_images(
        self, files: Sequence[ImageFile], page_key: str, token: str
    ) -> UploadReport:
        """
        Upload hero banner images, one request per valid file, all in flight together.
        """
        report = UploadReport()
        valid_files = []
        for file in files:
            check = validate_hero_image_file(file)
            if not check.valid:
                logger.warning(check.error)
                report.rejected.append(check.error)
                continue
            valid_files.append(file)

        if not valid_files:
            return report

        responses = await asyncio.gather(
            *(
                self.api.post(
                    "/hero-images/upload",
                    data={"pageKey": page_key},
                    files=[file.as_multipart("image")],
                    token=token,
                )
                for file in valid_files
            )
        )
        for response in responses:
            data = unwrap_data(response)
            if isinstance(data, dict) and data.get("url"):
                report.urls.append(data["url"])
        report.uploaded = len(valid_files)
        logger.info(f"Uploaded {report.uploaded} hero image(s) for page {page_key}")
        return report
