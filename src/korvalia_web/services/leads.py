"""
Leads captured from call-to-action forms and chat conversations.
"""

import logging
from typing import List, Optional

from korvalia_web.clients.api_client import BackendApiClient, unwrap_data, unwrap_list
from korvalia_web.schemas.leads import (
    ConversationDetail,
    ConversationFilter,
    ConversationPage,
    ConversationStatus,
    Lead,
    LeadCaptureRequest,
    LeadStatus,
)
from korvalia_web.services.forms import ensure_lead_contact

logger = logging.getLogger(__name__)

CONVERSATION_PAGE_LIMIT = 50
LEAD_THANKS = "¡Gracias por tu interés! Pronto te contactaremos."


class LeadService:
    def __init__(self, api: BackendApiClient, token: Optional[str] = None):
        self.api = api
        self.token = token

    async def capture(self, request: LeadCaptureRequest) -> str:
        """Public lead capture; returns the thank-you message."""
        ensure_lead_contact(request)
        await self.api.post("/leads", request.to_wire(), requires_auth=False)
        logger.info(f"Lead captured from {request.source.value}")
        return LEAD_THANKS

    async def list_interested(self) -> List[Lead]:
        """Leads with a phone number, the ones sales staff call back."""
        response = await self.api.get("/leads", token=self.token)
        leads = [Lead.model_validate(item) for item in unwrap_list(response, "leads")]
        return [lead for lead in leads if lead.phone]

    async def update_status(self, lead_id: int, status: LeadStatus) -> None:
        await self.api.put(f"/leads/{lead_id}", {"status": status.value}, token=self.token)


class ConversationService:
    def __init__(self, api: BackendApiClient, token: Optional[str] = None):
        self.api = api
        self.token = token

    async def list(self, flt: ConversationFilter = ConversationFilter.ALL) -> ConversationPage:
        params = {"limit": CONVERSATION_PAGE_LIMIT}
        if flt == ConversationFilter.LEADS:
            params["hasContact"] = "true"
        elif flt != ConversationFilter.ALL:
            params["status"] = flt.value
        response = await self.api.get("/chat/conversations", params=params, token=self.token)
        data = unwrap_data(response) or {}
        return ConversationPage.model_validate(
            {
                "conversations": unwrap_list(response, "conversations"),
                "total": data.get("total", 0) if isinstance(data, dict) else 0,
            }
        )

    async def detail(self, conversation_id: int) -> ConversationDetail:
        response = await self.api.get(f"/chat/conversations/{conversation_id}", token=self.token)
        return ConversationDetail.model_validate(unwrap_data(response))

    async def update_status(self, conversation_id: int, status: ConversationStatus) -> None:
        await self.api.put(
            f"/chat/conversations/{conversation_id}/status",
            {"status": status.value},
            token=self.token,
        )
