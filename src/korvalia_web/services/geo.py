"""
Map helpers: marker building, client-side filtering, centring and the
approximate-location offset shown on property detail maps.
"""

import math
import random
import unicodedata
from dataclasses import asdict, dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from korvalia_web.config import settings
from korvalia_web.schemas.property import Operation, Property

PLACEHOLDER_IMAGE = "https://placehold.co/800x600/e5e7eb/9ca3af?text=Sin+imagen"

METERS_PER_DEGREE = 111000
MIN_OFFSET_METERS = 100
MAX_OFFSET_METERS = 300
EARTH_RADIUS_METERS = 6371000

ALL = "all"

NEIGHBORHOODS = [
    {"id": ALL, "name": "Todos los barrios"},
    {"id": "barrio-bajo", "name": "Barrio Bajo"},
    {"id": "barrio-alto", "name": "Barrio Alto"},
    {"id": "la-jara", "name": "La Jara"},
    {"id": "martin-miguel", "name": "Martín Miguel"},
    {"id": "el-pino", "name": "El Pino"},
]

LatLng = Tuple[float, float]
Bounds = Tuple[float, float, float, float]


def format_number(value: float) -> str:
    """Spanish thousands grouping: 1250000 -> 1.250.000"""
    if float(value).is_integer():
        return f"{int(value):,}".replace(",", ".")
    whole, decimals = f"{value:,.2f}".split(".")
    return f"{whole.replace(',', '.')},{decimals}"


def format_price(price: float, operation: Optional[Operation]) -> str:
    formatted = format_number(price or 0)
    if operation == Operation.RENT:
        return f"{formatted} €/mes"
    return f"{formatted} €"


@dataclass
class MapMarker:
    id: int
    title: str
    slug: str
    price: float
    operation: Optional[Operation]
    property_type: Optional[str]
    subtype: Optional[str]
    neighborhood: Optional[str]
    city: str
    city_slug: str
    bedrooms: Optional[int]
    bathrooms: Optional[int]
    area_m2: Optional[float]
    latitude: float
    longitude: float
    image_url: str

    @property
    def price_label(self) -> str:
        return format_price(self.price, self.operation)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["operation"] = self.operation.value if self.operation else None
        data["priceLabel"] = self.price_label
        return data


def markers_from_properties(
    records: Iterable[Property], media_url: Callable[[str], str]
) -> List[MapMarker]:
    """Build map markers, dropping properties without usable coordinates."""
    markers = []
    for record in records:
        if not record.latitude or not record.longitude:
            continue
        image = record.primary_image()
        markers.append(
            MapMarker(
                id=record.id,
                title=record.title,
                slug=record.slug,
                price=record.price,
                operation=record.operation,
                property_type=record.property_type,
                subtype=record.subtype,
                neighborhood=record.neighborhood,
                city=record.city_name,
                city_slug=record.city_slug,
                bedrooms=record.bedrooms,
                bathrooms=record.bathrooms,
                area_m2=record.area_m2,
                latitude=record.latitude,
                longitude=record.longitude,
                image_url=media_url(image) if image else PLACEHOLDER_IMAGE,
            )
        )
    return markers


def normalize_text(value: Optional[str]) -> str:
    """Lower-case, strip accents and turn whitespace runs into dashes."""
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFD", value.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return "-".join(stripped.split())


@dataclass
class MapFilter:
    """Filter selections; None or "all" leaves a dimension unconstrained."""

    operation: Optional[str] = None
    property_type: Optional[str] = None
    city: Optional[str] = None
    neighborhood: Optional[str] = None
    subtype: Optional[str] = None

    @staticmethod
    def _active(value: Optional[str]) -> bool:
        return bool(value) and value != ALL

    def matches(self, marker: MapMarker) -> bool:
        if self._active(self.city) and marker.city_slug != self.city:
            return False

        if self._active(self.neighborhood):
            wanted = normalize_text(self.neighborhood)
            if wanted.startswith("barrio-"):
                wanted = wanted[len("barrio-"):]
            if wanted not in normalize_text(marker.neighborhood):
                return False

        if self._active(self.operation):
            operation = Operation.parse(self.operation)
            if marker.operation != operation:
                return False

        if self._active(self.property_type) and marker.property_type != self.property_type:
            return False

        if self._active(self.subtype) and marker.subtype != self.subtype:
            return False

        return True


def filter_markers(markers: Iterable[MapMarker], flt: MapFilter) -> List[MapMarker]:
    return [marker for marker in markers if flt.matches(marker)]


def default_center() -> LatLng:
    return (settings.DEFAULT_MAP_LATITUDE, settings.DEFAULT_MAP_LONGITUDE)


def compute_center(markers: List[MapMarker], default: LatLng = None) -> LatLng:
    """Arithmetic mean of the marker coordinates."""
    if not markers:
        return default or default_center()
    lat = sum(marker.latitude for marker in markers) / len(markers)
    lng = sum(marker.longitude for marker in markers) / len(markers)
    return (lat, lng)


def compute_bounds(markers: List[MapMarker]) -> Optional[Bounds]:
    """(south, west, north, east) box enclosing every marker."""
    if not markers:
        return None
    lats = [marker.latitude for marker in markers]
    lngs = [marker.longitude for marker in markers]
    return (min(lats), min(lngs), max(lats), max(lngs))


def approximate_location(
    lat: float, lng: float, rng: random.Random = None
) -> LatLng:
    """Move a coordinate 100-300 m in a random direction."""
    rng = rng or random.Random()
    radius = MIN_OFFSET_METERS + rng.random() * (MAX_OFFSET_METERS - MIN_OFFSET_METERS)
    angle = rng.random() * 2 * math.pi

    lat_offset = radius * math.cos(angle) / METERS_PER_DEGREE
    lng_offset = radius * math.sin(angle) / (
        METERS_PER_DEGREE * math.cos(math.radians(lat))
    )
    return (lat + lat_offset, lng + lng_offset)


def haversine_m(a: LatLng, b: LatLng) -> float:
    """Great-circle distance in metres."""
    lat1, lng1 = map(math.radians, a)
    lat2, lng2 = map(math.radians, b)
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(h))
