"""
Public catalogue view-models: property cards, hero slides and search URLs.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlencode, urlparse

from korvalia_web.config import settings
from korvalia_web.schemas.pages import HeroImage
from korvalia_web.schemas.property import Operation, Property, property_type_label
from korvalia_web.services.geo import PLACEHOLDER_IMAGE, format_price
from korvalia_web.services.notifications import NavigationLoader

SITE_HOST = urlparse(settings.SITE_URL).hostname or ""

SALE_PRICE_RANGES = [
    {"label": "Cualquier precio", "value": ""},
    {"label": "0€ - 100.000€", "value": "0-100000"},
    {"label": "100.000€ - 200.000€", "value": "100000-200000"},
    {"label": "200.000€ - 300.000€", "value": "200000-300000"},
    {"label": "Más de 300.000€", "value": "300000-999999"},
]

RENT_PRICE_RANGES = [
    {"label": "Cualquier precio", "value": ""},
    {"label": "0€ - 400€/mes", "value": "0-400"},
    {"label": "400€ - 600€/mes", "value": "400-600"},
    {"label": "600€ - 800€/mes", "value": "600-800"},
    {"label": "800€ - 1.000€/mes", "value": "800-1000"},
    {"label": "1.000€ - 1.500€/mes", "value": "1000-1500"},
    {"label": "Más de 1.500€/mes", "value": "1500-99999"},
]

SEARCH_PATH = "/propiedades"
GRID_ANCHOR = "properties-grid"


def price_ranges(operation: Optional[Operation]) -> List[Dict[str, str]]:
    return RENT_PRICE_RANGES if operation == Operation.RENT else SALE_PRICE_RANGES


def property_path(slug: str) -> str:
    """Slugs that are already paths are kept as they are."""
    return slug if slug.startswith("/") else f"/propiedades/{slug}"


@dataclass
class PropertyCard:
    id: int
    title: str
    price_label: str
    type_label: str
    location: str
    url: str
    image_url: str
    operation: Optional[str]
    bedrooms: Optional[int]
    bathrooms: Optional[int]
    area_m2: Optional[float]
    is_featured: bool

    @classmethod
    def from_property(cls, record: Property, media_url: Callable[[str], str]) -> "PropertyCard":
        image = record.primary_image()
        return cls(
            id=record.id,
            title=record.title,
            price_label=format_price(record.price, record.operation),
            type_label=property_type_label(record.property_type),
            location=record.neighborhood or record.city_name,
            url=property_path(record.slug),
            image_url=media_url(image) if image else PLACEHOLDER_IMAGE,
            operation=record.operation.value if record.operation else None,
            bedrooms=record.bedrooms,
            bathrooms=record.bathrooms,
            area_m2=record.area_m2,
            is_featured=record.is_featured,
        )

    def share_text(self) -> str:
        return share_text(self.title, self.price_label, self.url)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "priceLabel": self.price_label,
            "typeLabel": self.type_label,
            "location": self.location,
            "url": self.url,
            "imageUrl": self.image_url,
            "operation": self.operation,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "areaM2": self.area_m2,
            "isFeatured": self.is_featured,
            "shareText": self.share_text(),
            "showsLoader": NavigationLoader.shows_for_link(self.url, SITE_HOST),
        }


def property_grid(records: Iterable[Property], media_url: Callable[[str], str]) -> List[dict]:
    return [PropertyCard.from_property(record, media_url).to_dict() for record in records]


def share_text(title: str, price_label: str, url: str) -> str:
    return f"{title} - {price_label}\n\nMira esta propiedad en Korvalia:\n{settings.SITE_URL}{url}"


def hero_slides(images: Iterable[HeroImage], media_url: Callable[[str], str]) -> List[str]:
    """Active hero images in display order."""
    active = sorted((img for img in images if img.active), key=lambda img: img.order)
    return [media_url(img.url) for img in active]


def next_slide(index: int, count: int) -> int:
    if count <= 0:
        return 0
    return (index + 1) % count


def parse_range(value: Optional[str]) -> Tuple[Optional[float], Optional[float]]:
    """"100000-200000" -> (100000.0, 200000.0); malformed input gives (None, None)."""
    if not value or "-" not in value:
        return (None, None)
    low, _, high = value.partition("-")
    try:
        return (float(low) if low else None, float(high) if high else None)
    except ValueError:
        return (None, None)


@dataclass
class SearchQuery:
    q: Optional[str] = None
    operation: Optional[str] = None
    property_type: Optional[str] = None
    city: Optional[str] = None
    price: Optional[str] = None
    area: Optional[str] = None
    page: int = 1

    @classmethod
    def from_query_params(cls, params: Dict[str, str]) -> "SearchQuery":
        try:
            page = max(int(params.get("page") or 1), 1)
        except ValueError:
            page = 1
        return cls(
            q=params.get("q") or None,
            operation=params.get("operation") or None,
            property_type=params.get("propertyType") or None,
            city=params.get("city") or None,
            price=params.get("price") or None,
            area=params.get("area") or None,
            page=page,
        )

    def build_search_url(self) -> str:
        """Listing URL for these filters; a new search always starts on page 1."""
        params = [
            (key, value)
            for key, value in (
                ("q", self.q),
                ("operation", self.operation),
                ("propertyType", self.property_type),
                ("city", self.city),
                ("price", self.price),
                ("area", self.area),
            )
            if value
        ]
        params.append(("page", "1"))
        return f"{SEARCH_PATH}?{urlencode(params)}#{GRID_ANCHOR}"

    def has_filters(self) -> bool:
        return any([self.q, self.operation, self.property_type, self.city, self.price, self.area])

    def to_backend_params(self, page_size: int) -> Dict[str, object]:
        params: Dict[str, object] = {
            "limit": page_size,
            "offset": (self.page - 1) * page_size,
        }
        if self.q:
            params["search"] = self.q
        if self.operation:
            operation = Operation.parse(self.operation)
            params["operation"] = operation.value if operation else self.operation
        if self.property_type:
            params["propertyType"] = self.property_type
        if self.city:
            params["city"] = self.city
        min_price, max_price = parse_range(self.price)
        if min_price is not None:
            params["minPrice"] = min_price
        if max_price is not None:
            params["maxPrice"] = max_price
        min_area, max_area = parse_range(self.area)
        if min_area is not None:
            params["minArea"] = min_area
        if max_area is not None:
            params["maxArea"] = max_area
        return params

    def to_dict(self) -> dict:
        return {
            "q": self.q,
            "operation": self.operation,
            "propertyType": self.property_type,
            "city": self.city,
            "price": self.price,
            "area": self.area,
            "page": self.page,
        }
