"""
Tests for the admin back-office endpoints.
"""
import pytest
from fastapi import status

from korvalia_web.config import settings
from korvalia_web.dependencies import get_notification_registry
from korvalia_web.main import app as fastapi_app
from tests.fixtures.client import make_token
from tests.fixtures.mocks import property_record, request_json

VALID_PROPERTY = {
    "title": "Casa con patio",
    "description": "Casa andaluza",
    "address": "Calle Nueva 4",
    "price": 180000,
    "operation": "SALE",
    "cityId": 2,
    "imageUrls": ["/uploads/a.jpg"],
}


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token_returns_401_with_redirect(self, client):
        response = await client.get("/admin/dashboard")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["redirect"] == settings.ADMIN_LOGIN_PATH
        assert f"{settings.ADMIN_TOKEN_COOKIE}=" in response.headers["set-cookie"]

    @pytest.mark.asyncio
    async def test_browser_navigation_is_redirected(self, client):
        response = await client.get("/admin/dashboard", headers={"Accept": "text/html"})

        assert response.status_code == status.HTTP_303_SEE_OTHER
        assert response.headers["location"] == settings.ADMIN_LOGIN_PATH

    @pytest.mark.asyncio
    async def test_expired_token(self, client, backend):
        headers = {"Authorization": f"Bearer {make_token(expires_in=-60)}"}

        response = await client.get("/admin/leads", headers=headers)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_backend_401_logs_the_admin_out(self, client, backend, auth_headers):
        backend.add("GET", "/leads", status_code=401, json={"message": "Token inválido"})

        response = await client.get("/admin/leads", headers=auth_headers)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["redirect"] == settings.ADMIN_LOGIN_PATH
        assert f"{settings.ADMIN_TOKEN_COOKIE}=" in response.headers["set-cookie"]

    @pytest.mark.asyncio
    async def test_cookie_token_is_accepted(self, client, backend, admin_token):
        backend.add("GET", "/leads", json={"success": True, "data": []})

        response = await client.get(
            "/admin/leads", headers={"Cookie": f"{settings.ADMIN_TOKEN_COOKIE}={admin_token}"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert backend.last("GET", "/leads").headers["authorization"] == f"Bearer {admin_token}"

    @pytest.mark.asyncio
    async def test_login_sets_cookie(self, client, backend):
        backend.add(
            "POST",
            "/auth/login",
            json={"success": True, "data": {"token": "tok-123", "user": {"id": 1, "email": "admin@korvalia.es"}}},
        )

        response = await client.post(
            "/admin/login", json={"email": "admin@korvalia.es", "password": "secreto"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "user": {"id": 1, "email": "admin@korvalia.es"},
            "redirect": "/admin",
        }
        cookie = response.headers["set-cookie"]
        assert f"{settings.ADMIN_TOKEN_COOKIE}=tok-123" in cookie
        assert "HttpOnly" in cookie

    @pytest.mark.asyncio
    async def test_login_rejected(self, client, backend):
        backend.add("POST", "/auth/login", status_code=400, json={"message": "Credenciales inválidas"})

        response = await client.post("/admin/login", json={"email": "admin@korvalia.es", "password": "x"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Credenciales inválidas"
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, client, auth_headers):
        response = await client.post("/admin/logout", headers=auth_headers)

        assert response.json() == {"redirect": settings.ADMIN_LOGIN_PATH}
        assert f"{settings.ADMIN_TOKEN_COOKIE}=" in response.headers["set-cookie"]

    @pytest.mark.asyncio
    async def test_change_password_mismatch(self, client, backend, auth_headers):
        response = await client.post(
            "/admin/change-password",
            json={"currentPassword": "viejo1", "newPassword": "nuevo12", "confirmPassword": "nuevo13"},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["detail"] == "Las contraseñas nuevas no coinciden"
        assert backend.requests == []


@pytest.mark.asyncio
async def test_dashboard(client, backend, auth_headers):
    backend.add(
        "GET", "/emblematic/properties", json={"success": True, "data": {"properties": [], "total": 7}}
    )
    backend.add("GET", "/emblematic/cities", json={"success": True, "data": [{"id": 1}]})
    backend.add("GET", "/emblematic/featured", status_code=500, json={})

    response = await client.get("/admin/dashboard", headers=auth_headers)

    assert response.json() == {
        "total_properties": 7,
        "rent_properties": 7,
        "sale_properties": 7,
        "featured_properties": 0,
        "total_cities": 1,
    }


class TestProperties:
    @pytest.mark.asyncio
    async def test_list(self, client, backend, auth_headers):
        backend.add(
            "GET",
            "/properties",
            json={"success": True, "data": {"properties": [property_record()], "total": 1}},
        )

        response = await client.get("/admin/properties?page=1&pageSize=25", headers=auth_headers)

        data = response.json()
        assert data["pagination"]["label"] == "Mostrando 1 - 1 de 1"
        assert data["items"][0]["slug"] == "piso-centro"
        assert data["pageSizeOptions"] == [10, 25, 50, 100]

    @pytest.mark.asyncio
    async def test_list_rejects_unknown_page_size(self, client, auth_headers):
        response = await client.get("/admin/properties?pageSize=7", headers=auth_headers)
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    @pytest.mark.asyncio
    async def test_create_invalid_is_not_sent(self, client, backend, auth_headers):
        response = await client.post(
            "/admin/properties", json={**VALID_PROPERTY, "title": ""}, headers=auth_headers
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["errors"] == {"title": "El título es requerido"}
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_create_reports_toast_once(self, client, backend, auth_headers):
        backend.add("POST", "/properties", status_code=201, json={"success": True, "data": {"id": 9}})

        response = await client.post("/admin/properties", json=VALID_PROPERTY, headers=auth_headers)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["property"] == {"id": 9}
        assert data["toast"]["type"] == "success"
        assert data["toast"]["message"] == "Propiedad creada correctamente"
        assert request_json(backend.last("POST", "/properties"))["cityId"] == 2

        first = await client.get("/admin/notifications", headers=auth_headers)
        second = await client.get("/admin/notifications", headers=auth_headers)
        assert [t["message"] for t in first.json()["toasts"]] == ["Propiedad creada correctamente"]
        assert second.json()["toasts"] == []

    @pytest.mark.asyncio
    async def test_backend_error_becomes_error_toast(self, client, backend, auth_headers):
        backend.add("PUT", "/properties/9", status_code=400, json={"message": "Slug duplicado"})

        response = await client.put("/admin/properties/9", json=VALID_PROPERTY, headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        toasts = (await client.get("/admin/notifications", headers=auth_headers)).json()["toasts"]
        assert [(t["type"], t["message"]) for t in toasts] == [("error", "Slug duplicado")]


class TestNotifications:
    @pytest.mark.asyncio
    async def test_unknown_token_gets_no_toasts_and_is_not_registered(self, client, backend):
        registry = fastapi_app.dependency_overrides[get_notification_registry]()

        response = await client.get("/admin/notifications", headers={"Authorization": "Bearer junk"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"toasts": []}
        assert backend.requests == []
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_rejected_token_is_not_registered(self, client, backend, auth_headers):
        registry = fastapi_app.dependency_overrides[get_notification_registry]()
        backend.add("PUT", "/properties/9", status_code=401, json={"message": "Token inválido"})

        response = await client.put("/admin/properties/9", json=VALID_PROPERTY, headers=auth_headers)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_login_registers_the_session(self, client, backend):
        registry = fastapi_app.dependency_overrides[get_notification_registry]()
        backend.add(
            "POST",
            "/auth/login",
            json={"success": True, "data": {"token": "tok-123", "user": {"id": 1, "email": "admin@korvalia.es"}}},
        )

        await client.post("/admin/login", json={"email": "admin@korvalia.es", "password": "secreto"})

        assert registry.lookup("tok-123") is not None
        await client.post("/admin/logout", headers={"Authorization": "Bearer tok-123"})
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_delete_returns_next_page(self, client, backend, auth_headers):
        backend.add("DELETE", "/properties/4", json={"success": True})

        response = await client.delete(
            "/admin/properties/4?page=3&pageSize=10&total=21", headers=auth_headers
        )

        pagination = response.json()["pagination"]
        assert pagination["page"] == 2
        assert pagination["total"] == 20

    @pytest.mark.asyncio
    async def test_upload_rejects_non_images_without_request(self, client, backend, auth_headers):
        response = await client.post(
            "/admin/properties/images",
            files=[("files", ("plano.pdf", b"%PDF-1.4", "application/pdf"))],
            headers=auth_headers,
        )

        data = response.json()
        assert data["urls"] == []
        assert data["rejected"] == ["El archivo debe ser una imagen (JPG, PNG, WEBP o GIF)"]
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_upload_images(self, client, backend, auth_headers):
        backend.add(
            "POST", "/upload/multiple", json={"success": True, "data": {"urls": ["/uploads/x.jpg"]}}
        )

        response = await client.post(
            "/admin/properties/images",
            files=[("files", ("x.jpg", b"jpeg", "image/jpeg"))],
            headers=auth_headers,
        )

        data = response.json()
        assert data["urls"] == ["/uploads/x.jpg"]
        assert data["previews"] == ["data:image/jpeg;base64,anBlZw=="]
        assert data["toast"]["type"] == "success"


class TestCities:
    CITIES = {
        "success": True,
        "data": [
            {"id": 1, "name": "Arcos", "_count": {"properties": 0}},
            {"id": 2, "name": "Jerez", "_count": {"properties": 3}},
        ],
    }

    @pytest.mark.asyncio
    async def test_list_flags_deletable_cities(self, client, backend, auth_headers):
        backend.add("GET", "/cities", json=self.CITIES)

        response = await client.get("/admin/cities", headers=auth_headers)

        assert [(c["id"], c["canDelete"]) for c in response.json()["cities"]] == [(1, True), (2, False)]

    @pytest.mark.asyncio
    async def test_delete_unused_city(self, client, backend, auth_headers):
        backend.add("GET", "/cities", json=self.CITIES)
        backend.add("DELETE", "/cities/1", json={"success": True})

        response = await client.delete("/admin/cities/1", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        assert [c["id"] for c in response.json()["cities"]] == [2]
        assert len(backend.calls("DELETE", "/cities/1")) == 1

    @pytest.mark.asyncio
    async def test_delete_city_in_use(self, client, backend, auth_headers):
        backend.add("GET", "/cities", json=self.CITIES)

        response = await client.delete("/admin/cities/2", headers=auth_headers)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["property_count"] == 3
        assert backend.calls("DELETE") == []

    @pytest.mark.asyncio
    async def test_delete_unknown_city(self, client, backend, auth_headers):
        backend.add("GET", "/cities", json=self.CITIES)

        response = await client.delete("/admin/cities/99", headers=auth_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_create_city(self, client, backend, auth_headers):
        backend.add("POST", "/cities", status_code=201, json={"success": True, "data": {"id": 3, "name": "Bornos"}})

        response = await client.post(
            "/admin/cities", json={"name": "Bornos", "latitude": 36.8}, headers=auth_headers
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["toast"]["message"] == "Ciudad creada exitosamente"
        assert request_json(backend.last("POST", "/cities")) == {
            "name": "Bornos",
            "active": True,
            "latitude": 36.8,
        }


class TestPagesAndHero:
    @pytest.mark.asyncio
    async def test_invalid_blocks(self, client, backend, auth_headers):
        response = await client.put(
            "/admin/pages/home", json={"title": "Inicio", "blocks": "{roto"}, headers=auth_headers
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert "blocks" in response.json()["errors"]
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_reorder(self, client, backend, auth_headers):
        backend.add("PUT", "/hero-images/bulk", json={"success": True})
        body = {
            "images": [
                {"id": 1, "url": "/a.jpg", "order": 0},
                {"id": 2, "url": "/b.jpg", "order": 1},
                {"id": 3, "url": "/c.jpg", "order": 2},
            ],
            "fromIndex": 2,
            "toIndex": 0,
        }

        response = await client.put("/admin/hero-images/order", json=body, headers=auth_headers)

        expected = [{"id": 3, "order": 0}, {"id": 1, "order": 1}, {"id": 2, "order": 2}]
        assert response.json()["updates"] == expected
        assert request_json(backend.last("PUT", "/hero-images/bulk")) == {"updates": expected}

    @pytest.mark.asyncio
    async def test_toggle(self, client, backend, auth_headers):
        backend.add("PUT", "/hero-images/5", json={"success": True})

        response = await client.put(
            "/admin/hero-images/5/toggle", json={"active": True}, headers=auth_headers
        )

        assert response.json()["active"] is False
        assert response.json()["toast"]["message"] == "Imagen desactivada"

    @pytest.mark.asyncio
    async def test_hero_upload(self, client, backend, auth_headers):
        backend.add("POST", "/hero-images/upload", json={"success": True, "data": {"id": 1, "url": "/h.jpg"}})

        response = await client.post(
            "/admin/hero-images/upload",
            data={"pageKey": "about"},
            files=[
                ("files", ("h.jpg", b"jpeg", "image/jpeg")),
                ("files", ("h.txt", b"text", "text/plain")),
            ],
            headers=auth_headers,
        )

        data = response.json()
        assert data["uploaded"] == 1
        assert data["rejected"] == ["El archivo h.txt no es una imagen válida"]
        assert b"about" in backend.last("POST", "/hero-images/upload").content


class TestLeadsAndConversations:
    @pytest.mark.asyncio
    async def test_leads_with_phone(self, client, backend, auth_headers):
        backend.add(
            "GET",
            "/leads",
            json={"success": True, "data": [
                {"id": 1, "phone": "600111222", "source": "cta_home"},
                {"id": 2, "email": "x@y.es"},
            ]},
        )

        response = await client.get("/admin/leads", headers=auth_headers)

        leads = response.json()["leads"]
        assert [lead["id"] for lead in leads] == [1]
        assert leads[0]["sourceLabel"] == "Página de inicio"

    @pytest.mark.asyncio
    async def test_conversation_filter(self, client, backend, auth_headers):
        backend.add(
            "GET",
            "/chat/conversations",
            json={"success": True, "data": {"conversations": [], "total": 0}},
        )

        response = await client.get("/admin/conversations?filter=leads", headers=auth_headers)

        assert response.json() == {"conversations": [], "total": 0}
        assert backend.last("GET", "/chat/conversations").url.params["hasContact"] == "true"

    @pytest.mark.asyncio
    async def test_conversation_status(self, client, backend, auth_headers):
        backend.add("PUT", "/chat/conversations/4/status", json={"success": True})

        response = await client.put(
            "/admin/conversations/4/status", json={"status": "CLOSED"}, headers=auth_headers
        )

        assert response.json()["status"] == "CLOSED"
        assert request_json(backend.last("PUT", "/chat/conversations/4/status")) == {"status": "CLOSED"}
