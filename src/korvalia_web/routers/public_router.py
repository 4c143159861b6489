"""
Public site endpoints: home, listings, property detail, map, leads, chat and sitemap.
"""

import asyncio
from typing import Any, Awaitable, List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import BaseModel, Field

from korvalia_web.clients.api_client import BackendApiClient, unwrap_data, unwrap_list, unwrap_total
from korvalia_web.config import settings
from korvalia_web.dependencies import get_api_client, get_chat_store
from korvalia_web.schemas.city import City
from korvalia_web.schemas.common import MessageResponse
from korvalia_web.schemas.leads import LeadCaptureRequest
from korvalia_web.schemas.pages import HeroImage, PageKey
from korvalia_web.schemas.property import Operation, Property
from korvalia_web.services.catalog import (
    PropertyCard,
    SearchQuery,
    hero_slides,
    price_ranges,
    property_grid,
)
from korvalia_web.services.chat import ChatSession, ChatSessionStore
from korvalia_web.services.company import CompanySettingsService
from korvalia_web.services.geo import (
    NEIGHBORHOODS,
    MapFilter,
    approximate_location,
    compute_bounds,
    compute_center,
    filter_markers,
    markers_from_properties,
)
from korvalia_web.services.leads import LeadService
from korvalia_web.services.pages import PageService
from korvalia_web.services.pagination import PageWindow
from korvalia_web.services.sitemap import build_sitemap
from korvalia_web.utils.errors import ApiError
from korvalia_web.utils.logging_config import logger
from korvalia_web.utils.rate_limiting import CHAT_LIMIT, LEAD_LIMIT, limiter

router = APIRouter()

LISTING_PAGE_SIZE = 12
FEATURED_LIMIT = 6
MAP_PROPERTY_LIMIT = 1000


class ChatMessageRequest(BaseModel):
    message: str = Field(..., description="Visitor message")


async def _or_default(call: Awaitable[Any], default: Any, what: str) -> Any:
    """Await a backend call; a failure is logged and replaced with `default`."""
    try:
        return await call
    except ApiError as e:
        logger.warning(f"Could not load {what}: {e.message}")
        return default


async def _public_hero_images(api: BackendApiClient, page_key: PageKey) -> List[HeroImage]:
    response = await api.get(
        "/hero-images", params={"pageKey": page_key.value}, requires_auth=False
    )
    return [HeroImage.model_validate(item) for item in unwrap_list(response, "images")]


async def _featured(api: BackendApiClient) -> List[Property]:
    response = await api.get(
        "/properties",
        params={"isFeatured": "true", "limit": FEATURED_LIMIT},
        requires_auth=False,
    )
    return [Property.model_validate(item) for item in unwrap_list(response, "properties")]


async def _cities(api: BackendApiClient) -> List[City]:
    response = await api.get("/cities", requires_auth=False)
    return [City.model_validate(item) for item in unwrap_list(response, "cities")]


@router.get("/")
async def home(api: BackendApiClient = Depends(get_api_client)) -> dict:
    """Home page view: page texts, hero slider, featured properties and company data."""
    pages = PageService(api)
    page, hero, featured, company, cities = await asyncio.gather(
        _or_default(pages.get(PageKey.HOME), None, "home page settings"),
        _or_default(_public_hero_images(api, PageKey.HOME), [], "hero images"),
        _or_default(_featured(api), [], "featured properties"),
        _or_default(CompanySettingsService(api).get(), None, "company settings"),
        _or_default(_cities(api), [], "cities"),
    )
    return {
        "page": page.to_wire() if page else None,
        "heroSlides": hero_slides(hero, api.media_url),
        "featured": property_grid(featured, api.media_url),
        "company": company.to_wire() if company else None,
        "cities": [city.to_wire() for city in cities if city.active],
        "priceRanges": {
            Operation.RENT.value: price_ranges(Operation.RENT),
            Operation.SALE.value: price_ranges(Operation.SALE),
        },
    }


@router.get("/propiedades")
async def property_listing(
    request: Request, api: BackendApiClient = Depends(get_api_client)
) -> dict:
    """Paginated property grid for the current search filters."""
    query = SearchQuery.from_query_params(dict(request.query_params))
    response = await api.get(
        "/properties", params=query.to_backend_params(LISTING_PAGE_SIZE), requires_auth=False
    )
    records = [Property.model_validate(item) for item in unwrap_list(response, "properties")]
    window = PageWindow(
        page=query.page,
        page_size=LISTING_PAGE_SIZE,
        total=unwrap_total(response, "properties"),
    )
    return {
        "query": query.to_dict(),
        "searchUrl": query.build_search_url(),
        "hasFilters": query.has_filters(),
        "pagination": window.to_dict(),
        "properties": property_grid(records, api.media_url),
    }


@router.get("/propiedades/{slug}")
async def property_detail(
    slug: str, api: BackendApiClient = Depends(get_api_client)
) -> dict:
    """Property detail with an approximate map position."""
    response = await api.get(f"/properties/{slug}", requires_auth=False)
    record = Property.model_validate(unwrap_data(response))
    card = PropertyCard.from_property(record, api.media_url)

    location = None
    if record.latitude and record.longitude:
        lat, lng = approximate_location(record.latitude, record.longitude)
        location = {
            "latitude": lat,
            "longitude": lng,
            "radiusMeters": 400,
            "label": "Ubicación aproximada",
            "neighborhood": record.neighborhood,
            "city": record.city_name,
        }

    data = record.to_wire()
    # Exact coordinates never leave the service
    data.pop("latitude", None)
    data.pop("longitude", None)
    data.pop("address", None)
    return {
        "property": data,
        "card": card.to_dict(),
        "images": [api.media_url(image.url) for image in sorted(record.images, key=lambda i: i.order)],
        "location": location,
    }


@router.get("/map/properties")
async def map_properties(
    operation: Optional[str] = Query(None),
    property_type: Optional[str] = Query(None, alias="propertyType"),
    city: Optional[str] = Query(None),
    neighborhood: Optional[str] = Query(None),
    subtype: Optional[str] = Query(None),
    api: BackendApiClient = Depends(get_api_client),
) -> dict:
    """Map markers filtered by operation, type, city, neighbourhood and subtype."""
    response = await api.get(
        "/properties", params={"limit": MAP_PROPERTY_LIMIT, "status": "ACTIVE"}, requires_auth=False
    )
    records = [Property.model_validate(item) for item in unwrap_list(response, "properties")]
    markers = markers_from_properties(records, api.media_url)
    flt = MapFilter(
        operation=operation,
        property_type=property_type,
        city=city,
        neighborhood=neighborhood,
        subtype=subtype,
    )
    filtered = filter_markers(markers, flt)
    center = compute_center(filtered)
    bounds = compute_bounds(filtered)
    return {
        "markers": [marker.to_dict() for marker in filtered],
        "total": len(markers),
        "count": len(filtered),
        "center": {"latitude": center[0], "longitude": center[1]},
        "bounds": (
            {"south": bounds[0], "west": bounds[1], "north": bounds[2], "east": bounds[3]}
            if bounds
            else None
        ),
        "neighborhoods": NEIGHBORHOODS,
    }


@router.post("/leads", response_model=MessageResponse)
@limiter.limit(LEAD_LIMIT)
async def capture_lead(
    request: Request,
    payload: LeadCaptureRequest,
    api: BackendApiClient = Depends(get_api_client),
) -> MessageResponse:
    """Call-to-action lead capture."""
    message = await LeadService(api).capture(payload)
    return MessageResponse(message=message, success=True)


def _session(
    request: Request, response: Response, store: ChatSessionStore, api: BackendApiClient
) -> ChatSession:
    session = store.get_or_create(request.cookies.get(settings.CHAT_SESSION_COOKIE), api)
    response.set_cookie(
        settings.CHAT_SESSION_COOKIE,
        session.session_id,
        httponly=True,
        samesite="lax",
        secure=settings.is_production(),
        max_age=60 * 60 * 24 * 365,
    )
    return session


@router.get("/chat/history")
async def chat_history(
    request: Request,
    api: BackendApiClient = Depends(get_api_client),
    store: ChatSessionStore = Depends(get_chat_store),
) -> dict:
    """
    Open the chat widget: the transcript, seeded with the greeting.

    Visitors without a live session get the greeting alone; nothing is stored
    until their first message.
    """
    session = store.get(request.cookies.get(settings.CHAT_SESSION_COOKIE))
    if session is None:
        session = ChatSession(None, api)
    session.open()
    return session.to_dict()


@router.post("/chat/message")
@limiter.limit(CHAT_LIMIT)
async def chat_message(
    request: Request,
    response: Response,
    payload: ChatMessageRequest,
    api: BackendApiClient = Depends(get_api_client),
    store: ChatSessionStore = Depends(get_chat_store),
) -> dict:
    """Relay a visitor message; the reply is an apology when the backend fails."""
    session = _session(request, response, store, api)
    session.open()
    reply = await session.send(payload.message)
    return {
        "sessionId": session.session_id,
        "reply": reply.to_dict() if reply else None,
        "messages": [m.to_dict() for m in session.messages],
    }


@router.get("/sitemap.xml")
async def sitemap(api: BackendApiClient = Depends(get_api_client)) -> Response:
    xml = await build_sitemap(api)
    return Response(
        content=xml,
        media_type="application/xml",
        headers={"Cache-Control": f"public, max-age={settings.SITEMAP_CACHE_SECONDS}"},
    )
