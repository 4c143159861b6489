"""
Unit tests for the admin services that talk to the backend.
"""
import httpx
import pytest

from korvalia_web.clients.upload import ImageFile
from korvalia_web.schemas.city import City, CityForm
from korvalia_web.schemas.company import CompanySettings
from korvalia_web.schemas.leads import ConversationFilter, ConversationStatus, LeadCaptureRequest
from korvalia_web.schemas.pages import HeroImage, PageKey, PageSettingsForm
from korvalia_web.schemas.property import Property, PropertyForm
from korvalia_web.services.cities import CityService
from korvalia_web.services.company import CompanySettingsService
from korvalia_web.services.dashboard import DashboardService
from korvalia_web.services.leads import LEAD_THANKS, ConversationService, LeadService
from korvalia_web.services.pages import PageService, move_hero_image, order_updates
from korvalia_web.services.pagination import PageWindow
from korvalia_web.services.properties import PropertyService, search_page
from korvalia_web.utils.errors import CityInUseError, FormValidationError, UploadValidationError
from tests.fixtures.mocks import property_record, request_json

TOKEN = "admin-token"


class TestCityService:
    @pytest.fixture
    def cities(self):
        return [
            City.model_validate({"id": 1, "name": "Arcos", "_count": {"properties": 0}}),
            City.model_validate({"id": 2, "name": "Jerez", "_count": {"properties": 3}}),
        ]

    def test_property_count_is_read_from_nested_count(self, cities):
        assert cities[0].property_count == 0
        assert cities[0].can_delete
        assert cities[1].property_count == 3
        assert not cities[1].can_delete

    def test_other_count_shapes(self):
        assert City.model_validate({"id": 1, "name": "A", "count": 2}).property_count == 2
        assert City.model_validate({"id": 1, "name": "A", "propertyCount": 5}).property_count == 5
        assert City.model_validate({"id": 1, "name": "A"}).property_count == 0

    @pytest.mark.asyncio
    async def test_unused_city_is_deleted(self, api, backend, cities):
        backend.add("DELETE", "/cities/1", json={"success": True})

        remaining = await CityService(api, TOKEN).delete_from(cities, 1)

        assert [city.id for city in remaining] == [2]
        sent = backend.last("DELETE", "/cities/1")
        assert sent.headers["authorization"] == f"Bearer {TOKEN}"

    @pytest.mark.asyncio
    async def test_city_with_properties_is_refused_without_request(self, api, backend, cities):
        with pytest.raises(CityInUseError) as exc_info:
            await CityService(api, TOKEN).delete_from(cities, 2)

        assert exc_info.value.property_count == 3
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_unknown_city(self, api, cities):
        with pytest.raises(LookupError):
            await CityService(api, TOKEN).delete_from(cities, 99)

    @pytest.mark.asyncio
    async def test_save_creates_or_updates(self, api, backend):
        backend.add("POST", "/cities", json={"success": True, "data": {"id": 7, "name": "Ubrique"}})
        backend.add("PUT", "/cities/7", json={"success": True, "data": {"id": 7}})
        service = CityService(api, TOKEN)

        created = await service.save(CityForm(name=" Ubrique ", latitude="36.67"))
        await service.save(CityForm(name="Ubrique", active=False), city_id=7)

        assert created == {"id": 7, "name": "Ubrique"}
        assert request_json(backend.last("POST", "/cities")) == {
            "name": "Ubrique",
            "active": True,
            "latitude": 36.67,
        }
        assert request_json(backend.last("PUT", "/cities/7")) == {"name": "Ubrique", "active": False}

    @pytest.mark.asyncio
    async def test_invalid_city_is_not_sent(self, api, backend):
        with pytest.raises(FormValidationError):
            await CityService(api, TOKEN).save(CityForm(name=""))
        assert backend.requests == []


class TestDashboardService:
    @staticmethod
    def properties(request: httpx.Request) -> httpx.Response:
        totals = {None: 30, "2": 12, "1": 18}
        total = totals[request.url.params.get("mode_id")]
        return httpx.Response(200, json={"success": True, "data": {"properties": [], "total": total}})

    @pytest.mark.asyncio
    async def test_counters(self, api, backend):
        backend.add("GET", "/emblematic/properties", handler=self.properties)
        backend.add("GET", "/emblematic/cities", json={"success": True, "data": [{"id": 1}, {"id": 2}]})
        backend.add(
            "GET",
            "/emblematic/featured",
            json={"success": True, "data": {"properties": [{"id": 1}, {"id": 2}, {"id": 3}]}},
        )

        stats = await DashboardService(api).stats()

        assert stats.total_properties == 30
        assert stats.rent_properties == 12
        assert stats.sale_properties == 18
        assert stats.featured_properties == 3
        assert stats.total_cities == 2

    @pytest.mark.asyncio
    async def test_failing_counters_show_zero(self, api, backend):
        backend.add("GET", "/emblematic/properties", handler=self.properties)
        backend.add("GET", "/emblematic/cities", json={"success": False, "data": [{"id": 1}]})
        backend.add("GET", "/emblematic/featured", status_code=500, json={"message": "down"})

        stats = await DashboardService(api).stats()

        assert stats.total_properties == 30
        assert stats.total_cities == 0
        assert stats.featured_properties == 0


def valid_property_form(**overrides) -> PropertyForm:
    data = {
        "title": "Casa con patio",
        "description": "Casa andaluza",
        "address": "Calle Nueva 4",
        "price": 180000,
        "operation": "SALE",
        "cityId": 2,
        "imageUrls": ["/uploads/a.jpg"],
    }
    data.update(overrides)
    return PropertyForm.model_validate(data)


class TestPropertyService:
    @pytest.mark.asyncio
    async def test_list_page(self, api, backend):
        backend.add(
            "GET",
            "/properties",
            json={"success": True, "data": {"properties": [property_record()], "total": 25}},
        )

        result = await PropertyService(api, TOKEN).list_page(page=2, page_size=10)

        params = backend.last("GET", "/properties").url.params
        assert params["limit"] == "10"
        assert params["offset"] == "10"
        assert result.window.total == 25
        assert result.to_dict()["pagination"]["label"] == "Mostrando 11 - 20 de 25"
        assert result.items[0].slug == "piso-centro"

    def test_search_page(self):
        items = [
            Property.model_validate(property_record()),
            Property.model_validate(property_record(id=2, title="Casa", city={"name": "Jerez", "slug": "jerez"})),
        ]
        assert [p.id for p in search_page(items, "JEREZ")] == [2]
        assert [p.id for p in search_page(items, "piso")] == [1]
        assert len(search_page(items, None)) == 2

    @pytest.mark.asyncio
    async def test_invalid_form_is_not_sent(self, api, backend):
        with pytest.raises(FormValidationError):
            await PropertyService(api, TOKEN).save(valid_property_form(imageUrls=[]))
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_create_and_update(self, api, backend):
        backend.add("POST", "/properties", json={"success": True, "data": {"id": 9}})
        backend.add("PUT", "/properties/9", json={"success": True, "data": {"id": 9}})
        service = PropertyService(api, TOKEN)

        created = await service.save(valid_property_form())
        await service.save(valid_property_form(price=175000), property_id=9)

        assert created == {"id": 9}
        body = request_json(backend.last("POST", "/properties"))
        assert body["cityId"] == 2
        assert body["imageUrls"] == ["/uploads/a.jpg"]
        assert "neighborhood" not in body
        assert request_json(backend.last("PUT", "/properties/9"))["price"] == 175000.0

    @pytest.mark.asyncio
    async def test_delete_returns_next_window(self, api, backend):
        backend.add("DELETE", "/properties/4", json={"success": True})

        window = await PropertyService(api, TOKEN).delete(4, PageWindow(page=3, page_size=10, total=21))

        assert window == PageWindow(page=2, page_size=10, total=20)

    @pytest.mark.asyncio
    async def test_get_form(self, api, backend):
        backend.add("GET", "/properties/1", json={"success": True, "data": property_record()})

        form = await PropertyService(api, TOKEN).get_form(1)

        assert form.image_urls == ["/uploads/piso-2.jpg", "/uploads/piso-1.jpg"]
        assert form.primary_image_index == 1
        assert form.city_id == 1


class TestPageService:
    def hero(self, image_id, order):
        return HeroImage(id=image_id, url=f"/uploads/{image_id}.jpg", order=order)

    def test_move_and_order(self):
        images = [self.hero(1, 0), self.hero(2, 1), self.hero(3, 2)]

        moved = move_hero_image(images, 0, 2)

        assert [image.id for image in moved] == [2, 3, 1]
        assert order_updates(moved) == [
            {"id": 2, "order": 0},
            {"id": 3, "order": 1},
            {"id": 1, "order": 2},
        ]
        assert [image.id for image in move_hero_image(images, 0, 5)] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_save_page_with_json_blocks(self, api, backend):
        backend.add("PUT", "/pages/about", json={"success": True, "data": {}})

        page = await PageService(api, TOKEN).save(
            PageKey.ABOUT, PageSettingsForm(title="Sobre nosotros", blocks='{"team": []}')
        )

        body = request_json(backend.last("PUT", "/pages/about"))
        assert body["blocks"] == {"team": []}
        assert body["title"] == "Sobre nosotros"
        assert page.title == "Sobre nosotros"
        assert page.page_key == PageKey.ABOUT

    @pytest.mark.asyncio
    async def test_invalid_blocks_are_not_sent(self, api, backend):
        with pytest.raises(FormValidationError):
            await PageService(api, TOKEN).save(PageKey.HOME, PageSettingsForm(blocks="{roto"))
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_hero_image_operations(self, api, backend):
        backend.add(
            "GET",
            "/hero-images",
            json={"success": True, "data": [{"id": 2, "url": "/b.jpg", "order": 1}, {"id": 1, "url": "/a.jpg", "order": 0}]},
        )
        backend.add("PUT", "/hero-images/1", json={"success": True})
        backend.add("PUT", "/hero-images/bulk", json={"success": True})
        service = PageService(api, TOKEN)

        images = await service.list_hero_images(PageKey.HOME)
        active = await service.toggle_hero_image(1, current_active=True)
        updates = await service.save_hero_order(list(reversed(images)))

        assert [image.id for image in images] == [1, 2]
        assert backend.last("GET", "/hero-images").url.params["pageKey"] == "home"
        assert active is False
        assert request_json(backend.last("PUT", "/hero-images/1")) == {"active": False}
        assert updates == [{"id": 2, "order": 0}, {"id": 1, "order": 1}]
        assert request_json(backend.last("PUT", "/hero-images/bulk")) == {"updates": updates}


class TestLeadServices:
    @pytest.mark.asyncio
    async def test_capture(self, api, backend):
        backend.add("POST", "/leads", status_code=201, json={"success": True})

        message = await LeadService(api).capture(LeadCaptureRequest(email="ana@example.com"))

        assert message == LEAD_THANKS
        assert request_json(backend.last("POST", "/leads")) == {
            "email": "ana@example.com",
            "source": "cta_home",
        }

    @pytest.mark.asyncio
    async def test_capture_rejects_bad_email(self, api, backend):
        with pytest.raises(FormValidationError):
            await LeadService(api).capture(LeadCaptureRequest(email="ana"))
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_interested_leads_have_a_phone(self, api, backend):
        backend.add(
            "GET",
            "/leads",
            json={"success": True, "data": [
                {"id": 1, "phone": "600111222", "source": "chat"},
                {"id": 2, "email": "x@y.es", "source": "cta_home"},
            ]},
        )

        leads = await LeadService(api, TOKEN).list_interested()

        assert [lead.id for lead in leads] == [1]
        assert leads[0].source_label == "Chat"

    @pytest.mark.parametrize(
        "flt,expected",
        [
            (ConversationFilter.ALL, {"limit": "50"}),
            (ConversationFilter.LEADS, {"limit": "50", "hasContact": "true"}),
            (ConversationFilter.CLOSED, {"limit": "50", "status": "CLOSED"}),
        ],
    )
    @pytest.mark.asyncio
    async def test_conversation_filters(self, api, backend, flt, expected):
        backend.add(
            "GET",
            "/chat/conversations",
            json={"success": True, "data": {"conversations": [{"id": 1, "sessionId": "chat_1_abcdefg"}], "total": 1}},
        )

        page = await ConversationService(api, TOKEN).list(flt)

        assert dict(backend.last("GET", "/chat/conversations").url.params) == expected
        assert page.total == 1
        assert page.conversations[0].session_id == "chat_1_abcdefg"
        assert page.model_dump(by_alias=True)["conversations"][0]["hasContact"] is False

    @pytest.mark.asyncio
    async def test_conversation_status(self, api, backend):
        backend.add("PUT", "/chat/conversations/3/status", json={"success": True})

        await ConversationService(api, TOKEN).update_status(3, ConversationStatus.ESCALATED)

        assert request_json(backend.last("PUT", "/chat/conversations/3/status")) == {"status": "ESCALATED"}


class TestCompanySettingsService:
    @pytest.mark.asyncio
    async def test_invalid_logo_is_rejected_before_upload(self, api, backend):
        logo = ImageFile("logo.pdf", "application/pdf", b"%PDF")

        with pytest.raises(UploadValidationError):
            await CompanySettingsService(api, TOKEN).save(CompanySettings(), logo=logo)
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_logo_is_uploaded_before_saving(self, api, backend):
        backend.add("POST", "/upload", json={"success": True, "data": {"url": "/uploads/logo.png"}})
        backend.add("PUT", "/settings", json={"success": True})
        logo = ImageFile("logo.png", "image/png", b"png")

        saved = await CompanySettingsService(api, TOKEN).save(
            CompanySettings(company_name="Korvalia"), logo=logo
        )

        assert saved.logo_url == "/uploads/logo.png"
        assert [request.method for request in backend.requests] == ["POST", "PUT"]
        body = request_json(backend.last("PUT", "/settings"))
        assert body["logoUrl"] == "/uploads/logo.png"
        assert body["companyName"] == "Korvalia"
        assert "heroTitle" not in body

    @pytest.mark.asyncio
    async def test_null_fields_load_as_empty_text(self, api, backend):
        backend.add("GET", "/settings", json={"success": True, "data": {"companyName": "Korvalia", "phone": None}})

        company = await CompanySettingsService(api).get()

        assert company.company_name == "Korvalia"
        assert company.phone == ""
