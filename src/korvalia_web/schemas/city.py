"""
City schemas.
"""

from typing import Any, Optional

from pydantic import Field, field_validator, model_validator

from korvalia_web.schemas.common import CamelModel


class City(CamelModel):
    id: int
    name: str
    slug: str = ""
    province: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    active: bool = True
    property_count: int = Field(0, description="Number of properties in the city")

    @model_validator(mode="before")
    @classmethod
    def read_nested_count(cls, data: Any) -> Any:
        # The backend reports the count as {"_count": {"properties": n}}
        if isinstance(data, dict) and "propertyCount" not in data:
            count = (data.get("_count") or {}).get("properties")
            if count is None:
                count = data.get("count", data.get("property_count", 0))
            data = {**data, "propertyCount": count or 0}
        return data

    @property
    def can_delete(self) -> bool:
        return self.property_count == 0


class CityForm(CamelModel):
    name: str = ""
    province: str = ""
    active: bool = True
    latitude: Optional[str] = Field(None, description="Latitude as typed in the form")
    longitude: Optional[str] = Field(None, description="Longitude as typed in the form")

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def coordinates_as_text(cls, v):
        return None if v is None else str(v).strip()

    def to_payload(self) -> dict:
        payload = {
            "name": self.name.strip(),
            "active": self.active,
        }
        if self.province.strip():
            payload["province"] = self.province.strip()
        if self.latitude:
            payload["latitude"] = float(self.latitude)
        if self.longitude:
            payload["longitude"] = float(self.longitude)
        return payload
