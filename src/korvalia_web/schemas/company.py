"""
Company-wide settings (contact data, social links, logo and home hero).
"""

from typing import Optional

from pydantic import model_validator

from korvalia_web.schemas.common import CamelModel


class CompanySettings(CamelModel):
    company_name: str = ""
    slogan: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    schedule: str = ""
    about_us: str = ""
    instagram_url: str = ""
    facebook_url: str = ""
    linkedin_url: str = ""
    whatsapp_number: str = ""
    logo_url: str = ""
    hero_title: Optional[str] = None
    hero_subtitle: Optional[str] = None
    hero_image_url: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def nulls_to_empty(cls, data):
        # Text fields come back as null when never set
        if isinstance(data, dict):
            return {key: ("" if value is None else value) for key, value in data.items()}
        return data
