"""
Unit tests for visitor chat sessions.
"""
import re

import pytest

from korvalia_web.schemas.leads import ChatRole
from korvalia_web.services.chat import (
    ERROR_REPLY,
    GREETING,
    GREETING_SUGGESTIONS,
    ChatSession,
    ChatSessionStore,
    generate_session_id,
    is_valid_session_id,
)
from tests.fixtures.mocks import request_json

SESSION_ID = "chat_1700000000000_abc1234"


class TestSessionIds:
    def test_format(self):
        session_id = generate_session_id(now_ms=1700000000000)

        assert re.fullmatch(r"chat_1700000000000_[0-9a-z]{7}", session_id)
        assert is_valid_session_id(session_id)

    def test_ids_differ(self):
        assert generate_session_id() != generate_session_id()

    @pytest.mark.parametrize(
        "value",
        [None, "", "abc", "chat_123", "chat_abc_1234567", "chat_123_12345678", "session_1_abcdefg"],
    )
    def test_invalid_ids(self, value):
        assert not is_valid_session_id(value)


class TestChatSession:
    def test_open_seeds_greeting_once(self, api):
        session = ChatSession(SESSION_ID, api)

        session.open()
        messages = session.open()

        assert len(messages) == 1
        assert messages[0].role == ChatRole.BOT
        assert messages[0].content == GREETING
        assert messages[0].suggestions == GREETING_SUGGESTIONS

    @pytest.mark.asyncio
    async def test_reply_with_suggested_properties(self, api, backend):
        backend.add(
            "POST",
            "/chat/message",
            json={
                "success": True,
                "data": {
                    "message": "Tengo este piso para ti",
                    "properties": [
                        {
                            "id": 1,
                            "title": "Piso en el centro",
                            "slug": "piso-centro",
                            "price": 700,
                            "operation": "RENT",
                            "image": "/uploads/p.jpg",
                            "city": {"name": "Arcos de la Frontera"},
                        }
                    ],
                    "suggestions": ["Ver más pisos"],
                },
            },
        )
        session = ChatSession(SESSION_ID, api)
        session.open()

        reply = await session.send("  Busco piso  ")

        sent = backend.last("POST", "/chat/message")
        assert request_json(sent) == {"sessionId": SESSION_ID, "message": "Busco piso"}
        assert "authorization" not in sent.headers
        assert reply.content == "Tengo este piso para ti"
        assert reply.suggestions == ["Ver más pisos"]
        suggested = reply.to_dict()["properties"][0]
        assert suggested["url"] == "/propiedades/piso-centro"
        assert suggested["priceLabel"] == "700 €/mes"
        assert suggested["image"] == "http://backend.test/uploads/p.jpg"
        assert suggested["city"] == "Arcos de la Frontera"
        assert [m.role for m in session.messages] == [ChatRole.BOT, ChatRole.USER, ChatRole.BOT]
        assert session.is_loading is False

    @pytest.mark.parametrize(
        "status_code,body",
        [(500, {"message": "boom"}), (200, {"success": False, "message": "sin datos"})],
    )
    @pytest.mark.asyncio
    async def test_failures_become_apology(self, api, backend, status_code, body):
        backend.add("POST", "/chat/message", status_code=status_code, json=body)
        session = ChatSession(SESSION_ID, api)

        reply = await session.send("Hola")

        assert reply.content == ERROR_REPLY
        assert [m.content for m in session.messages] == ["Hola", ERROR_REPLY]
        assert session.is_loading is False

    @pytest.mark.asyncio
    async def test_blank_messages_are_ignored(self, api, backend):
        session = ChatSession(SESSION_ID, api)

        assert await session.send("   ") is None
        assert session.messages == []
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_messages_while_loading_are_ignored(self, api, backend):
        session = ChatSession(SESSION_ID, api)
        session.is_loading = True

        assert await session.send("Hola") is None
        assert backend.requests == []


class SecondsClock:
    def __init__(self, now: float = 0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestChatSessionStore:
    def test_known_session_is_reused(self, api):
        store = ChatSessionStore()

        session = store.get_or_create(SESSION_ID, api)

        assert store.get_or_create(SESSION_ID, api) is session
        assert store.get(SESSION_ID) is session
        assert len(store) == 1

    def test_invalid_id_starts_a_new_session(self, api):
        store = ChatSessionStore()

        session = store.get_or_create("forged-id", api)

        assert session.session_id != "forged-id"
        assert is_valid_session_id(session.session_id)

    def test_unknown_or_invalid_ids_are_not_found(self, api):
        store = ChatSessionStore()
        store.get_or_create(SESSION_ID, api)

        assert store.get("chat_1700000000000_zzzzzzz") is None
        assert store.get("forged-id") is None
        assert store.get(None) is None

    def test_least_recently_used_session_is_dropped(self, api):
        store = ChatSessionStore(max_sessions=2)
        first = store.get_or_create("chat_1_aaaaaaa", api)
        store.get_or_create("chat_2_bbbbbbb", api)

        store.get("chat_1_aaaaaaa")
        store.get_or_create("chat_3_ccccccc", api)

        assert len(store) == 2
        assert store.get("chat_1_aaaaaaa") is first
        assert store.get("chat_2_bbbbbbb") is None

    def test_idle_sessions_expire(self, api):
        clock = SecondsClock()
        store = ChatSessionStore(ttl_seconds=600, clock=clock)
        store.get_or_create(SESSION_ID, api)

        clock.now += 599
        assert store.get(SESSION_ID) is not None
        clock.now += 600

        assert store.get(SESSION_ID) is None
        assert len(store) == 0
