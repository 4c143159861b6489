"""
Page settings and hero image schemas.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import Field, field_validator

from korvalia_web.schemas.common import CamelModel


class PageKey(str, Enum):
    HOME = "home"
    PROPERTIES = "properties"
    ABOUT = "about"
    CONTACT = "contact"


class PageSettings(CamelModel):
    """Per-page content record."""

    page_key: Optional[PageKey] = None
    title: str = ""
    subtitle: str = ""
    meta_title: str = ""
    meta_description: str = ""
    blocks: Dict[str, Any] = Field(
        default_factory=dict, description="Free-form page specific content"
    )

    @field_validator("title", "subtitle", "meta_title", "meta_description", mode="before")
    @classmethod
    def null_text_is_empty(cls, v):
        return v or ""

    @field_validator("blocks", mode="before")
    @classmethod
    def null_blocks_are_empty(cls, v):
        return v or {}


class PageSettingsForm(CamelModel):
    """Admin edit form; blocks may arrive as the raw JSON text of the editor."""

    title: str = ""
    subtitle: str = ""
    meta_title: str = ""
    meta_description: str = ""
    blocks: Union[Dict[str, Any], str] = Field(default_factory=dict)


class HeroImage(CamelModel):
    id: int
    url: str
    order: int = 0
    active: bool = True
    page_key: Optional[str] = None
    created_at: Optional[datetime] = None
