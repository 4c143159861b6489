"""
sitemap.xml generation from the static routes plus every listed property.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional
from xml.sax.saxutils import escape

from korvalia_web.clients.api_client import BackendApiClient, unwrap_list
from korvalia_web.config import settings
from korvalia_web.utils.errors import ApiError

logger = logging.getLogger(__name__)

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"


@dataclass
class SitemapEntry:
    path: str
    priority: str
    changefreq: str
    lastmod: Optional[str] = None


STATIC_PAGES = [
    SitemapEntry("/", "1.0", "daily"),
    SitemapEntry("/propiedades", "0.9", "daily"),
    SitemapEntry("/sobre-nosotros", "0.7", "monthly"),
    SitemapEntry("/contacto", "0.7", "monthly"),
    SitemapEntry("/aviso-legal", "0.3", "yearly"),
    SitemapEntry("/politica-privacidad", "0.3", "yearly"),
    SitemapEntry("/politica-cookies", "0.3", "yearly"),
]


def _lastmod(value) -> Optional[str]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return None


async def property_entries(api: BackendApiClient) -> List[SitemapEntry]:
    """One entry per available property; an unreachable backend yields none."""
    try:
        response = await api.get(
            "/properties",
            params={"status": "available", "limit": settings.SITEMAP_PROPERTY_LIMIT},
            requires_auth=False,
        )
    except ApiError as e:
        logger.error(f"Error fetching properties for sitemap: {e}")
        return []

    return [
        SitemapEntry(
            f"/propiedades/{record['slug']}",
            "0.8",
            "weekly",
            _lastmod(record.get("updatedAt")),
        )
        for record in unwrap_list(response, "properties")
        if isinstance(record, dict) and record.get("slug")
    ]


def render_sitemap(entries: List[SitemapEntry], site_url: str = None, today: date = None) -> str:
    site_url = (site_url or settings.SITE_URL).rstrip("/")
    today_text = (today or date.today()).isoformat()
    urls = "\n".join(
        f"  <url>\n"
        f"    <loc>{escape(site_url + entry.path)}</loc>\n"
        f"    <lastmod>{entry.lastmod or today_text}</lastmod>\n"
        f"    <changefreq>{entry.changefreq}</changefreq>\n"
        f"    <priority>{entry.priority}</priority>\n"
        f"  </url>"
        for entry in entries
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<urlset xmlns="{SITEMAP_NAMESPACE}">\n'
        f"{urls}\n"
        "</urlset>"
    )


async def build_sitemap(api: BackendApiClient, today: date = None) -> str:
    entries = STATIC_PAGES + await property_entries(api)
    return render_sitemap(entries, today=today)
