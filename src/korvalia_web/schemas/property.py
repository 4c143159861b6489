"""
Property listing schemas mirrored from the backend.
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import Field, field_validator

from korvalia_web.schemas.common import CamelModel


class Operation(str, Enum):
    RENT = "RENT"
    SALE = "SALE"

    @classmethod
    def parse(cls, value: Any) -> Optional["Operation"]:
        """Accept the enum, its value, or the Spanish CRM labels."""
        if value is None or value == "":
            return None
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        aliases = {"ALQUILER": cls.RENT, "VENTA": cls.SALE}
        if text in aliases:
            return aliases[text]
        try:
            return cls(text)
        except ValueError:
            return None


class PropertyType(str, Enum):
    FLAT = "FLAT"
    HOUSE = "HOUSE"
    PENTHOUSE = "PENTHOUSE"
    APARTMENT = "APARTMENT"
    DUPLEX = "DUPLEX"
    LAND = "LAND"
    COMMERCIAL = "COMMERCIAL"
    GARAGE = "GARAGE"
    ROOM = "ROOM"
    OTHER = "OTHER"


PROPERTY_TYPE_LABELS = {
    PropertyType.FLAT: "Piso",
    PropertyType.HOUSE: "Casa",
    PropertyType.PENTHOUSE: "Ático",
    PropertyType.APARTMENT: "Apartamento",
    PropertyType.DUPLEX: "Dúplex",
    PropertyType.LAND: "Terreno",
    PropertyType.COMMERCIAL: "Local comercial",
    PropertyType.GARAGE: "Garaje",
    PropertyType.ROOM: "Habitación",
    PropertyType.OTHER: "Otro",
}


def property_type_label(value: Optional[str]) -> str:
    """Spanish label for a known type; free-text CRM types pass through."""
    if not value:
        return "Inmueble"
    try:
        return PROPERTY_TYPE_LABELS[PropertyType(value)]
    except ValueError:
        return value


class PropertyStatus(str, Enum):
    ACTIVE = "ACTIVE"
    RESERVED = "RESERVED"
    SOLD = "SOLD"
    RENTED = "RENTED"
    INACTIVE = "INACTIVE"


class CityRef(CamelModel):
    id: Optional[int] = None
    name: str = ""
    slug: str = ""


class PropertyImage(CamelModel):
    url: str = Field(..., description="Image URL, relative to the backend or absolute")
    order: int = Field(0, description="Display position")
    is_primary: bool = Field(False, description="Whether this is the cover image")


class Property(CamelModel):
    """A property record as returned by the backend."""

    id: int
    title: str = ""
    slug: str = ""
    description: Optional[str] = None
    price: float = 0
    currency: str = "EUR"
    operation: Optional[Operation] = None
    property_type: Optional[str] = None
    subtype: Optional[str] = None
    city: Optional[Union[CityRef, str]] = None
    city_id: Optional[int] = None
    neighborhood: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area_m2: Optional[float] = None
    built_year: Optional[int] = None
    floor: Optional[str] = None
    has_elevator: bool = False
    has_parking: bool = False
    has_pool: bool = False
    has_terrace: bool = False
    has_garden: bool = False
    furnished: bool = False
    pets_allowed: bool = False
    energy_rating: Optional[str] = None
    status: Optional[str] = None
    is_featured: bool = False
    image_url: Optional[str] = None
    images: List[PropertyImage] = Field(default_factory=list)
    updated_at: Optional[datetime] = None

    @field_validator("operation", mode="before")
    @classmethod
    def parse_operation(cls, v):
        return Operation.parse(v)

    @field_validator("price", mode="before")
    @classmethod
    def missing_price_is_zero(cls, v):
        return v or 0

    @field_validator("images", mode="before")
    @classmethod
    def missing_images_are_empty(cls, v):
        return v or []

    @field_validator("floor", mode="before")
    @classmethod
    def floor_as_text(cls, v):
        return None if v is None else str(v)

    @field_validator("has_elevator", "has_parking", "has_pool", "has_terrace",
                     "has_garden", "furnished", "pets_allowed", "is_featured",
                     mode="before")
    @classmethod
    def null_flags_are_false(cls, v):
        return bool(v)

    @property
    def city_name(self) -> str:
        if isinstance(self.city, CityRef):
            return self.city.name
        return self.city or ""

    @property
    def city_slug(self) -> str:
        if isinstance(self.city, CityRef):
            return self.city.slug
        return ""

    def primary_image(self) -> Optional[str]:
        """URL of the cover image: flagged primary, else lowest order, else image_url."""
        if self.images:
            flagged = [img for img in self.images if img.is_primary]
            if flagged:
                return flagged[0].url
            return sorted(self.images, key=lambda img: img.order)[0].url
        return self.image_url

    def primary_image_index(self) -> int:
        for index, image in enumerate(self.images):
            if image.is_primary:
                return index
        return 0


class PropertyForm(CamelModel):
    """Admin create/edit payload for a property."""

    title: str = ""
    description: str = ""
    operation: Operation = Operation.RENT
    property_type: str = PropertyType.FLAT.value
    price: float = 0
    currency: str = "EUR"
    city_id: int = 0
    neighborhood: str = ""
    address: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area_m2: Optional[float] = None
    built_year: Optional[int] = None
    floor: Optional[str] = None
    has_elevator: bool = False
    has_parking: bool = False
    has_pool: bool = False
    has_terrace: bool = False
    has_garden: bool = False
    furnished: bool = False
    pets_allowed: bool = False
    energy_rating: str = ""
    status: PropertyStatus = PropertyStatus.ACTIVE
    is_featured: bool = False
    image_urls: List[str] = Field(default_factory=list)
    primary_image_index: int = 0

    @classmethod
    def from_property(cls, record: Property) -> "PropertyForm":
        """Prefill the form from an existing backend record."""
        try:
            status = PropertyStatus(record.status) if record.status else PropertyStatus.ACTIVE
        except ValueError:
            status = PropertyStatus.ACTIVE
        return cls(
            title=record.title or "",
            description=record.description or "",
            operation=record.operation or Operation.RENT,
            property_type=record.property_type or PropertyType.FLAT.value,
            price=record.price or 0,
            currency=record.currency or "EUR",
            city_id=record.city_id or 0,
            neighborhood=record.neighborhood or "",
            address=record.address or "",
            latitude=record.latitude,
            longitude=record.longitude,
            bedrooms=record.bedrooms,
            bathrooms=record.bathrooms,
            area_m2=record.area_m2,
            built_year=record.built_year,
            floor=record.floor,
            has_elevator=record.has_elevator,
            has_parking=record.has_parking,
            has_pool=record.has_pool,
            has_terrace=record.has_terrace,
            has_garden=record.has_garden,
            furnished=record.furnished,
            pets_allowed=record.pets_allowed,
            energy_rating=record.energy_rating or "",
            status=status,
            is_featured=record.is_featured,
            image_urls=[img.url for img in record.images],
            primary_image_index=record.primary_image_index(),
        )

    def to_payload(self) -> dict:
        """Body sent to POST/PUT /properties; blank optional text is omitted."""
        payload = self.model_dump(by_alias=True, mode="json")
        payload["price"] = float(self.price)
        payload["cityId"] = int(self.city_id)
        if not self.neighborhood:
            payload.pop("neighborhood")
        if not self.energy_rating:
            payload.pop("energyRating")
        return {key: value for key, value in payload.items() if value is not None}
