"""
Visitor chat sessions.

The conversation logic lives in the backend; this module keeps the transcript
of each session and relays messages to POST /chat/message.
"""

import asyncio
import logging
import secrets
import string
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from korvalia_web.clients.api_client import BackendApiClient
from korvalia_web.config import settings
from korvalia_web.schemas.leads import ChatRole
from korvalia_web.schemas.property import Operation
from korvalia_web.services.geo import format_price

logger = logging.getLogger(__name__)

GREETING = "¡Hola! Soy el asistente virtual de Korvalia. ¿En qué puedo ayudarte hoy?"
GREETING_SUGGESTIONS = [
    "Busco piso en alquiler",
    "Quiero comprar una casa",
    "Ver propiedades destacadas",
    "Contactar con un agente",
]
ERROR_REPLY = "Lo siento, ha ocurrido un error. Por favor, intenta de nuevo."

_BASE36 = string.digits + string.ascii_lowercase


def generate_session_id(now_ms: int = None) -> str:
    """chat_<epoch ms>_<7 random base36 chars>"""
    now_ms = int(time.time() * 1000) if now_ms is None else now_ms
    suffix = "".join(secrets.choice(_BASE36) for _ in range(7))
    return f"chat_{now_ms}_{suffix}"


def is_valid_session_id(value: Optional[str]) -> bool:
    if not value or not value.startswith("chat_"):
        return False
    parts = value.split("_")
    return len(parts) == 3 and parts[1].isdigit() and len(parts[2]) == 7


@dataclass
class SuggestedProperty:
    id: int
    title: str
    slug: str
    price: float
    operation: Optional[Operation]
    property_type: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area_m2: Optional[float] = None
    city: str = ""
    image: Optional[str] = None

    @classmethod
    def from_backend(cls, data: dict, media_url: Callable[[str], str]) -> "SuggestedProperty":
        city = data.get("city") or ""
        if isinstance(city, dict):
            city = city.get("name", "")
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            slug=data.get("slug", ""),
            price=data.get("price") or 0,
            operation=Operation.parse(data.get("operation")),
            property_type=data.get("propertyType"),
            bedrooms=data.get("bedrooms"),
            bathrooms=data.get("bathrooms"),
            area_m2=data.get("areaM2"),
            city=city,
            image=media_url(data["image"]) if data.get("image") else None,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "url": f"/propiedades/{self.slug}",
            "price": self.price,
            "priceLabel": format_price(self.price, self.operation),
            "operation": self.operation.value if self.operation else None,
            "propertyType": self.property_type,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "areaM2": self.area_m2,
            "city": self.city,
            "image": self.image,
        }


@dataclass
class ChatMessage:
    role: ChatRole
    content: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    properties: List[SuggestedProperty] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.properties:
            data["properties"] = [p.to_dict() for p in self.properties]
        if self.suggestions:
            data["suggestions"] = list(self.suggestions)
        return data


class ChatSession:
    """Transcript of one visitor session."""

    def __init__(self, session_id: Optional[str], api: BackendApiClient):
        self.session_id = session_id
        self.api = api
        self.messages: List[ChatMessage] = []
        self.is_loading = False
        self._lock = asyncio.Lock()

    def open(self) -> List[ChatMessage]:
        """Seed the greeting the first time the widget is opened."""
        if not self.messages:
            self.messages.append(
                ChatMessage(
                    role=ChatRole.BOT,
                    content=GREETING,
                    suggestions=list(GREETING_SUGGESTIONS),
                )
            )
        return self.messages

    async def send(self, text: str) -> Optional[ChatMessage]:
        """
        Relay a visitor message and record the reply.

        Blank text and messages sent while a reply is pending are ignored.
        Any backend failure is recorded as an apology from the bot.

        Returns:
            The bot reply, or None when the message was ignored
        """
        text = (text or "").strip()
        if not text or self.is_loading:
            return None

        async with self._lock:
            self.is_loading = True
            self.messages.append(ChatMessage(role=ChatRole.USER, content=text))
            try:
                reply = await self._ask_backend(text)
            except Exception as e:
                logger.error(f"Chat message for session {self.session_id} failed: {e}")
                reply = ChatMessage(role=ChatRole.BOT, content=ERROR_REPLY)
            finally:
                self.is_loading = False
            self.messages.append(reply)
            return reply

    async def _ask_backend(self, text: str) -> ChatMessage:
        response = await self.api.post(
            "/chat/message",
            {"sessionId": self.session_id, "message": text},
            requires_auth=False,
        )
        data = response.get("data")
        if not response.get("success") or not data:
            raise ValueError("Error en la respuesta")
        return ChatMessage(
            role=ChatRole.BOT,
            content=data.get("message", ""),
            properties=[
                SuggestedProperty.from_backend(p, self.api.media_url)
                for p in data.get("properties") or []
            ],
            suggestions=list(data.get("suggestions") or []),
        )

    def to_dict(self) -> dict:
        return {
            "sessionId": self.session_id,
            "isLoading": self.is_loading,
            "messages": [m.to_dict() for m in self.messages],
        }


class ChatSessionStore:
    """
    In-process map of session id to transcript.

    At most `max_sessions` transcripts are kept; the least recently used one
    is dropped first. A transcript idle for `ttl_seconds` is dropped too.
    """

    def __init__(
        self,
        max_sessions: int = None,
        ttl_seconds: int = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_sessions = max_sessions or settings.CHAT_MAX_SESSIONS
        self.ttl_seconds = ttl_seconds or settings.CHAT_SESSION_TTL_SECONDS
        self.clock = clock
        self._sessions: "OrderedDict[str, ChatSession]" = OrderedDict()
        self._last_seen: Dict[str, float] = {}

    def _evict_expired(self) -> None:
        cutoff = self.clock() - self.ttl_seconds
        for session_id in [s for s, seen in self._last_seen.items() if seen <= cutoff]:
            self._drop(session_id)

    def _drop(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._last_seen.pop(session_id, None)

    def _touch(self, session_id: str) -> None:
        self._sessions.move_to_end(session_id)
        self._last_seen[session_id] = self.clock()

    def get(self, session_id: Optional[str]) -> Optional[ChatSession]:
        """The live session for this id, or None."""
        if not is_valid_session_id(session_id):
            return None
        self._evict_expired()
        session = self._sessions.get(session_id)
        if session is not None:
            self._touch(session_id)
        return session

    def get_or_create(self, session_id: Optional[str], api: BackendApiClient) -> ChatSession:
        session = self.get(session_id)
        if session is not None:
            session.api = api
            return session
        if not is_valid_session_id(session_id):
            session_id = generate_session_id()
        session = ChatSession(session_id, api)
        self._sessions[session_id] = session
        self._touch(session_id)
        while len(self._sessions) > self.max_sessions:
            oldest, _ = self._sessions.popitem(last=False)
            self._last_seen.pop(oldest, None)
            logger.debug(f"Dropped chat session {oldest} to stay under {self.max_sessions}")
        return session

    def __len__(self) -> int:
        self._evict_expired()
        return len(self._sessions)


chat_sessions = ChatSessionStore()
