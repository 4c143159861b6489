"""
FastAPI dependencies shared by the routers.
"""

from fastapi import Depends

from korvalia_web.clients.api_client import BackendApiClient, api_client
from korvalia_web.services.chat import ChatSessionStore, chat_sessions
from korvalia_web.services.notifications import NotificationRegistry, ToastCenter
from korvalia_web.utils.security import get_admin_token

notification_registry = NotificationRegistry()


def get_api_client() -> BackendApiClient:
    return api_client


def get_chat_store() -> ChatSessionStore:
    return chat_sessions


def get_notification_registry() -> NotificationRegistry:
    return notification_registry


def get_toast_center(
    token: str = Depends(get_admin_token),
    registry: NotificationRegistry = Depends(get_notification_registry),
) -> ToastCenter:
    return registry.for_session(token)
