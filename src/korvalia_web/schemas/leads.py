"""
Lead and chat conversation schemas.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field, computed_field

from korvalia_web.schemas.common import CamelModel


class LeadStatus(str, Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    QUALIFIED = "QUALIFIED"
    CONVERTED = "CONVERTED"
    LOST = "LOST"


class LeadSource(str, Enum):
    CTA_HOME = "cta_home"
    CTA_ABOUT = "cta_about"
    CTA_CONTACT = "cta_contact"
    CTA_PROPERTIES = "cta_properties"
    CTA_PROPERTY_DETAIL = "cta_property_detail"
    CHAT = "chat"


LEAD_SOURCE_LABELS = {
    LeadSource.CTA_HOME: "Página de inicio",
    LeadSource.CTA_ABOUT: "Sobre nosotros",
    LeadSource.CTA_CONTACT: "Contacto",
    LeadSource.CTA_PROPERTIES: "Listado de propiedades",
    LeadSource.CTA_PROPERTY_DETAIL: "Ficha de propiedad",
    LeadSource.CHAT: "Chat",
}


class Lead(CamelModel):
    id: int
    phone: Optional[str] = None
    email: Optional[str] = None
    source: Optional[str] = None
    status: LeadStatus = LeadStatus.NEW
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def source_label(self) -> str:
        try:
            return LEAD_SOURCE_LABELS[LeadSource(self.source)]
        except ValueError:
            return self.source or "Desconocido"


class LeadCaptureRequest(CamelModel):
    """Public call-to-action submission."""

    email: Optional[str] = None
    phone: Optional[str] = None
    source: LeadSource = LeadSource.CTA_HOME


class LeadStatusUpdate(CamelModel):
    status: LeadStatus


class ConversationStatus(str, Enum):
    ACTIVE = "ACTIVE"
    LEAD_CAPTURED = "LEAD_CAPTURED"
    CLOSED = "CLOSED"
    ESCALATED = "ESCALATED"


class ConversationFilter(str, Enum):
    ALL = "all"
    LEADS = "leads"
    ACTIVE = "ACTIVE"
    LEAD_CAPTURED = "LEAD_CAPTURED"
    CLOSED = "CLOSED"
    ESCALATED = "ESCALATED"


class ChatRole(str, Enum):
    USER = "user"
    BOT = "bot"


class ConversationMessage(CamelModel):
    role: ChatRole
    content: str
    created_at: Optional[datetime] = None


class Conversation(CamelModel):
    id: int
    session_id: str
    visitor_name: Optional[str] = None
    visitor_email: Optional[str] = None
    visitor_phone: Optional[str] = None
    status: ConversationStatus = ConversationStatus.ACTIVE
    source: Optional[str] = None
    property_id: Optional[int] = None
    last_message: Optional[str] = None
    message_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field(alias="hasContact")
    @property
    def has_contact(self) -> bool:
        return bool(self.visitor_email or self.visitor_phone)


class ConversationDetail(Conversation):
    messages: List[ConversationMessage] = Field(default_factory=list)


class ConversationPage(CamelModel):
    conversations: List[Conversation] = Field(default_factory=list)
    total: int = 0


class ConversationStatusUpdate(CamelModel):
    status: ConversationStatus
