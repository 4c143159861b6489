"""
Toast notifications and the navigation loader overlay.
"""

import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from korvalia_web.config import settings
from korvalia_web.schemas.common import ToastPayload, ToastType
from korvalia_web.utils.errors import (
    ApiError,
    BackendUnavailableError,
    FormValidationError,
    UnauthorizedError,
)
from korvalia_web.utils.security import token_expiry

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class Toast:
    id: str
    type: ToastType
    message: str
    duration_ms: Optional[int]
    shown_at_ms: float

    def effective_duration(self, default_ms: int) -> Optional[int]:
        """Milliseconds until auto-dismiss, or None if it stays until hidden."""
        if self.type == ToastType.LOADING or self.duration_ms == 0:
            return None
        return self.duration_ms or default_ms

    def expired(self, now_ms: float, default_ms: int) -> bool:
        duration = self.effective_duration(default_ms)
        return duration is not None and now_ms - self.shown_at_ms >= duration

    def to_payload(self) -> ToastPayload:
        return ToastPayload(
            id=self.id, type=self.type, message=self.message, duration_ms=self.duration_ms
        )


class ToastCenter:
    """
    Stack of visible toasts.

    Toasts auto-dismiss after their duration (the default when unset). Loading
    toasts and toasts shown with a duration of 0 stay until hidden or updated.
    """

    def __init__(
        self,
        clock: Clock = monotonic_ms,
        default_duration_ms: int = None,
        on_accepted: Optional[Callable[["ToastCenter"], None]] = None,
    ):
        self.clock = clock
        self.default_duration_ms = default_duration_ms or settings.TOAST_DEFAULT_DURATION_MS
        self._toasts: Dict[str, Toast] = {}
        self._on_accepted = on_accepted

    def accept(self) -> None:
        """Mark the session's token as accepted by the backend (runs the hook once)."""
        if self._on_accepted is not None:
            hook, self._on_accepted = self._on_accepted, None
            hook(self)

    def show(self, type: ToastType, message: str, duration_ms: Optional[int] = None) -> str:
        toast_id = uuid.uuid4().hex[:7]
        self._toasts[toast_id] = Toast(
            id=toast_id,
            type=ToastType(type),
            message=message,
            duration_ms=duration_ms,
            shown_at_ms=self.clock(),
        )
        return toast_id

    def hide(self, toast_id: str) -> None:
        self._toasts.pop(toast_id, None)

    def show_loading(self, message: str = "Cargando...") -> str:
        return self.show(ToastType.LOADING, message)

    def hide_loading(self, toast_id: str) -> None:
        self.hide(toast_id)

    def update(self, toast_id: str, type: ToastType, message: str) -> None:
        """Replace a toast in place; its timer restarts with the default duration."""
        toast = self._toasts.get(toast_id)
        if toast is None:
            return
        toast.type = ToastType(type)
        toast.message = message
        toast.duration_ms = self.default_duration_ms
        toast.shown_at_ms = self.clock()

    def payload(self, toast_id: str) -> Optional[ToastPayload]:
        toast = self._toasts.get(toast_id)
        return toast.to_payload() if toast else None

    @asynccontextmanager
    async def progress(self, loading_message: str, success_message: str):
        """
        Show a loading toast for the duration of the block, then turn it into
        a success toast, or into a warning/error toast if the block raises.

        Any answer from the backend other than 401 accepts the session.
        """
        toast_id = self.show_loading(loading_message)
        try:
            yield toast_id
        except FormValidationError as e:
            self.update(toast_id, ToastType.WARNING, e.message)
            raise
        except Exception as e:
            if isinstance(e, ApiError) and not isinstance(
                e, (UnauthorizedError, BackendUnavailableError)
            ):
                self.accept()
            self.update(toast_id, ToastType.ERROR, getattr(e, "message", None) or str(e))
            raise
        self.accept()
        self.update(toast_id, ToastType.SUCCESS, success_message)

    def active(self) -> List[Toast]:
        now = self.clock()
        for toast_id in [
            t.id for t in self._toasts.values() if t.expired(now, self.default_duration_ms)
        ]:
            del self._toasts[toast_id]
        return list(self._toasts.values())

    def drain(self) -> List[ToastPayload]:
        """Active toasts as payloads; the ones that will auto-dismiss are consumed."""
        toasts = self.active()
        for toast in toasts:
            if toast.effective_duration(self.default_duration_ms) is not None:
                del self._toasts[toast.id]
        return [toast.to_payload() for toast in toasts]


class NotificationRegistry:
    """
    One ToastCenter per admin session, keyed by the bearer token.

    A centre is only kept once the backend has accepted its token. Kept
    centres are dropped when the token's `exp` passes or after
    `ttl_seconds` without use.
    """

    def __init__(
        self,
        clock: Clock = monotonic_ms,
        ttl_seconds: int = None,
        now: Callable[[], float] = time.time,
    ):
        self.clock = clock
        self.ttl_seconds = ttl_seconds or settings.NOTIFICATION_CENTER_TTL_SECONDS
        self.now = now
        self._centers: Dict[str, ToastCenter] = {}
        self._expires_at: Dict[str, float] = {}

    def _expiry(self, session_key: str) -> float:
        idle_limit = self.now() + self.ttl_seconds
        exp = token_expiry(session_key)
        return idle_limit if exp is None else min(idle_limit, exp)

    def _evict_expired(self) -> None:
        now = self.now()
        for key in [k for k, expires_at in self._expires_at.items() if expires_at <= now]:
            self.discard(key)

    def _adopt(self, session_key: str, center: ToastCenter) -> None:
        self._evict_expired()
        self._centers[session_key] = center
        self._expires_at[session_key] = self._expiry(session_key)

    def lookup(self, session_key: str) -> Optional[ToastCenter]:
        """The kept centre for this session, or None; a hit counts as use."""
        self._evict_expired()
        center = self._centers.get(session_key)
        if center is not None:
            self._expires_at[session_key] = self._expiry(session_key)
        return center

    def for_session(self, session_key: str) -> ToastCenter:
        """
        The kept centre, or a new one that is only kept after `accept()`.
        """
        center = self.lookup(session_key)
        if center is None:
            center = ToastCenter(
                clock=self.clock,
                on_accepted=lambda accepted: self._adopt(session_key, accepted),
            )
        return center

    def discard(self, session_key: str) -> None:
        self._centers.pop(session_key, None)
        self._expires_at.pop(session_key, None)

    def __len__(self) -> int:
        self._evict_expired()
        return len(self._centers)


class LoaderEvent:
    SHOW = "showLoader"
    HIDE = "hideLoader"
    LOAD = "load"


NO_LOADER_FORM_CLASSES = {"no-loader", "cta-form"}


class NavigationLoader:
    """Full-screen spinner shown while the browser navigates to another page."""

    def __init__(self):
        self.visible = False

    def handle_event(self, event: str) -> bool:
        if event == LoaderEvent.SHOW:
            self.visible = True
        elif event in (LoaderEvent.HIDE, LoaderEvent.LOAD):
            self.visible = False
        return self.visible

    @staticmethod
    def shows_for_link(href: Optional[str], current_host: str, target: Optional[str] = None) -> bool:
        """Internal same-host links without a target trigger the loader."""
        if not href or href.startswith("#") or "javascript:" in href:
            return False
        if target:
            return False
        parsed = urlparse(href)
        host = parsed.hostname or current_host
        return host == current_host

    @staticmethod
    def shows_for_form(
        method: Optional[str], action: Optional[str], css_classes: Iterable[str] = ()
    ) -> bool:
        if NO_LOADER_FORM_CLASSES.intersection(css_classes or ()):
            return False
        return (not method or method.lower() == "get") and bool(action)

    def on_link_click(self, href: Optional[str], current_host: str, target: Optional[str] = None) -> bool:
        if self.shows_for_link(href, current_host, target):
            self.visible = True
        return self.visible

    def on_form_submit(
        self, method: Optional[str], action: Optional[str], css_classes: Iterable[str] = ()
    ) -> bool:
        if self.shows_for_form(method, action, css_classes):
            self.visible = True
        return self.visible
