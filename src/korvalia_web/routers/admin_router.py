"""
Admin back-office endpoints.

Every mutation reports its outcome through the session's toast centre and
returns the resulting toast so the front end can show it once.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, Response, UploadFile
from pydantic import BaseModel, Field

from korvalia_web.clients.api_client import BackendApiClient
from korvalia_web.clients.auth import AuthClient
from korvalia_web.clients.upload import ImageFile, to_data_url, validate_image_file
from korvalia_web.config import settings
from korvalia_web.dependencies import get_api_client, get_notification_registry, get_toast_center
from korvalia_web.schemas.auth import ChangePasswordForm, LoginRequest, ResetPasswordRequest
from korvalia_web.schemas.city import CityForm
from korvalia_web.schemas.common import MessageResponse
from korvalia_web.schemas.company import CompanySettings
from korvalia_web.schemas.leads import (
    ConversationFilter,
    ConversationStatusUpdate,
    LeadStatusUpdate,
)
from korvalia_web.schemas.pages import HeroImage, PageKey, PageSettingsForm
from korvalia_web.schemas.property import PropertyForm
from korvalia_web.services.cities import CityService
from korvalia_web.services.company import CompanySettingsService
from korvalia_web.services.dashboard import DashboardService
from korvalia_web.services.leads import ConversationService, LeadService
from korvalia_web.services.notifications import NotificationRegistry, ToastCenter
from korvalia_web.services.pages import PageService, move_hero_image
from korvalia_web.services.pagination import PAGE_SIZE_OPTIONS, PageWindow
from korvalia_web.services.properties import PropertyService
from korvalia_web.utils.rate_limiting import LOGIN_LIMIT, limiter
from korvalia_web.utils.security import (
    clear_admin_cookie,
    get_admin_token,
    get_optional_admin_token,
    set_admin_cookie,
)

router = APIRouter(prefix="/admin", tags=["Admin"])


class HeroToggleRequest(BaseModel):
    active: bool = Field(..., description="Current active flag of the image")


class HeroOrderRequest(BaseModel):
    images: List[HeroImage]
    from_index: Optional[int] = Field(None, alias="fromIndex")
    to_index: Optional[int] = Field(None, alias="toIndex")


async def _image_files(files: List[UploadFile]) -> List[ImageFile]:
    return [await ImageFile.from_upload(upload) for upload in files]


def _toast(toasts: ToastCenter, toast_id: str) -> Optional[dict]:
    payload = toasts.payload(toast_id)
    return payload.model_dump(mode="json") if payload else None


# Authentication


@router.post("/login")
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    api: BackendApiClient = Depends(get_api_client),
    registry: NotificationRegistry = Depends(get_notification_registry),
) -> dict:
    result = await AuthClient(api).login(credentials)
    registry.for_session(result.token).accept()
    set_admin_cookie(response, result.token)
    return {"user": result.user.to_wire(), "redirect": "/admin"}


@router.post("/logout")
async def logout(
    response: Response,
    token: Optional[str] = Depends(get_optional_admin_token),
    registry: NotificationRegistry = Depends(get_notification_registry),
) -> dict:
    if token:
        registry.discard(token)
    clear_admin_cookie(response)
    return {"redirect": settings.ADMIN_LOGIN_PATH}


@router.get("/me")
async def me(
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
) -> dict:
    user = await AuthClient(api).get_authenticated_user(token)
    return user.to_wire()


@router.post("/change-password")
async def change_password(
    form: ChangePasswordForm,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    async with toasts.progress(
        "Cambiando contraseña...", "Contraseña actualizada correctamente"
    ) as toast_id:
        await AuthClient(api).change_password(token, form)
    return {"toast": _toast(toasts, toast_id)}


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    api: BackendApiClient = Depends(get_api_client),
) -> MessageResponse:
    await AuthClient(api).reset_password(request)
    return MessageResponse(message="Contraseña restablecida correctamente", success=True)


# Dashboard and notifications


@router.get("/dashboard")
async def dashboard(
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
) -> dict:
    stats = await DashboardService(api).stats()
    return stats.model_dump()


@router.get("/notifications")
async def notifications(
    token: str = Depends(get_admin_token),
    registry: NotificationRegistry = Depends(get_notification_registry),
) -> dict:
    toasts = registry.lookup(token)
    if toasts is None:
        return {"toasts": []}
    return {"toasts": [toast.model_dump(mode="json") for toast in toasts.drain()]}


# Properties


@router.get("/properties")
async def list_properties(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, alias="pageSize"),
    search: Optional[str] = Query(None),
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
) -> dict:
    if page_size not in PAGE_SIZE_OPTIONS:
        raise HTTPException(
            status_code=422, detail=f"pageSize must be one of {PAGE_SIZE_OPTIONS}"
        )
    result = await PropertyService(api, token).list_page(page, page_size, search)
    return {**result.to_dict(), "pageSizeOptions": PAGE_SIZE_OPTIONS}


@router.get("/properties/{property_id}")
async def get_property_form(
    property_id: int,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
) -> dict:
    form = await PropertyService(api, token).get_form(property_id)
    return {
        "form": form.model_dump(by_alias=True, mode="json"),
        "previews": [api.media_url(url) for url in form.image_urls],
    }


@router.post("/properties", status_code=201)
async def create_property(
    form: PropertyForm,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    async with toasts.progress("Creando propiedad...", "Propiedad creada correctamente") as toast_id:
        data = await PropertyService(api, token).save(form)
    return {"property": data, "toast": _toast(toasts, toast_id), "redirect": "/admin/properties"}


@router.put("/properties/{property_id}")
async def update_property(
    property_id: int,
    form: PropertyForm,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    async with toasts.progress(
        "Actualizando propiedad...", "Propiedad actualizada correctamente"
    ) as toast_id:
        data = await PropertyService(api, token).save(form, property_id)
    return {"property": data, "toast": _toast(toasts, toast_id), "redirect": "/admin/properties"}


@router.delete("/properties/{property_id}")
async def delete_property(
    property_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, alias="pageSize", ge=1),
    total: int = Query(1, ge=1),
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    window = PageWindow(page=page, page_size=page_size, total=total)
    async with toasts.progress(
        "Eliminando propiedad...", "Propiedad eliminada correctamente"
    ) as toast_id:
        window = await PropertyService(api, token).delete(property_id, window)
    return {"pagination": window.to_dict(), "toast": _toast(toasts, toast_id)}


@router.post("/properties/images")
async def upload_property_images(
    files: List[UploadFile] = File(...),
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    images = await _image_files(files)
    toast_id = toasts.show_loading("Subiendo imágenes...")
    try:
        report = await PropertyService(api, token).upload_gallery(images)
    except Exception as e:
        toasts.update(toast_id, "error", getattr(e, "message", None) or "Error al subir las imágenes")
        raise
    if report.uploaded:
        toasts.accept()
    for error in report.rejected:
        toasts.show("warning", error)
    if report.uploaded:
        toasts.update(toast_id, "success", f"{report.uploaded} imagen(es) subida(s) correctamente")
    else:
        toasts.hide_loading(toast_id)
    return {
        "urls": report.urls,
        "previews": [to_data_url(image) for image in images if validate_image_file(image).valid],
        "rejected": report.rejected,
        "toast": _toast(toasts, toast_id),
    }


# Cities


@router.get("/cities")
async def list_cities(
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
) -> dict:
    cities = await CityService(api, token).list()
    return {
        "cities": [{**city.to_wire(), "canDelete": city.can_delete} for city in cities]
    }


@router.post("/cities", status_code=201)
async def create_city(
    form: CityForm,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    async with toasts.progress("Creando ciudad...", "Ciudad creada exitosamente") as toast_id:
        data = await CityService(api, token).save(form)
    return {"city": data, "toast": _toast(toasts, toast_id)}


@router.put("/cities/{city_id}")
async def update_city(
    city_id: int,
    form: CityForm,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    async with toasts.progress("Actualizando ciudad...", "Ciudad actualizada exitosamente") as toast_id:
        data = await CityService(api, token).save(form, city_id)
    return {"city": data, "toast": _toast(toasts, toast_id)}


@router.delete("/cities/{city_id}")
async def delete_city(
    city_id: int,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    service = CityService(api, token)
    cities = await service.list()
    if not any(city.id == city_id for city in cities):
        raise HTTPException(status_code=404, detail="Ciudad no encontrada")
    async with toasts.progress("Eliminando ciudad...", "Ciudad eliminada exitosamente") as toast_id:
        remaining = await service.delete_from(cities, city_id)
    return {
        "cities": [{**city.to_wire(), "canDelete": city.can_delete} for city in remaining],
        "toast": _toast(toasts, toast_id),
    }


# Pages and hero images


@router.get("/pages/{page_key}")
async def get_page(
    page_key: PageKey,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
) -> dict:
    page = await PageService(api, token).get(page_key)
    return page.model_dump(by_alias=True, mode="json")


@router.put("/pages/{page_key}")
async def save_page(
    page_key: PageKey,
    form: PageSettingsForm,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    async with toasts.progress(
        "Guardando configuración...", "Configuración guardada exitosamente"
    ) as toast_id:
        page = await PageService(api, token).save(page_key, form)
    return {"page": page.model_dump(by_alias=True, mode="json"), "toast": _toast(toasts, toast_id)}


@router.get("/hero-images")
async def list_hero_images(
    page_key: PageKey = Query(PageKey.HOME, alias="pageKey"),
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
) -> dict:
    images = await PageService(api, token).list_hero_images(page_key)
    return {
        "images": [
            {**image.model_dump(by_alias=True, mode="json"), "previewUrl": api.media_url(image.url)}
            for image in images
        ]
    }


@router.post("/hero-images/upload")
async def upload_hero_images(
    page_key: PageKey = Form(PageKey.HOME, alias="pageKey"),
    files: List[UploadFile] = File(...),
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    images = await _image_files(files)
    report = await PageService(api, token).upload_hero_images(page_key, images)
    if report.uploaded:
        toasts.accept()
    for error in report.rejected:
        toasts.show("error", error)
    toast_id = None
    if report.uploaded:
        toast_id = toasts.show("success", f"{report.uploaded} imagen(es) subida(s) correctamente")
    return {
        "uploaded": report.uploaded,
        "rejected": report.rejected,
        "toast": _toast(toasts, toast_id) if toast_id else None,
    }


@router.put("/hero-images/{image_id}/toggle")
async def toggle_hero_image(
    image_id: int,
    body: HeroToggleRequest,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    active = await PageService(api, token).toggle_hero_image(image_id, body.active)
    toasts.accept()
    toast_id = toasts.show("success", "Imagen activada" if active else "Imagen desactivada")
    return {"id": image_id, "active": active, "toast": _toast(toasts, toast_id)}


@router.delete("/hero-images/{image_id}")
async def delete_hero_image(
    image_id: int,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    async with toasts.progress("Eliminando imagen...", "Imagen eliminada correctamente") as toast_id:
        await PageService(api, token).delete_hero_image(image_id)
    return {"toast": _toast(toasts, toast_id)}


@router.put("/hero-images/order")
async def save_hero_order(
    body: HeroOrderRequest,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    images = body.images
    if body.from_index is not None and body.to_index is not None:
        images = move_hero_image(images, body.from_index, body.to_index)
    async with toasts.progress("Guardando orden...", "Orden guardado correctamente") as toast_id:
        updates = await PageService(api, token).save_hero_order(images)
    return {"updates": updates, "toast": _toast(toasts, toast_id)}


# Company settings


@router.get("/settings")
async def get_settings(
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
) -> dict:
    company = await CompanySettingsService(api, token).get()
    return {**company.model_dump(by_alias=True), "logoPreview": api.media_url(company.logo_url)}


@router.put("/settings")
async def save_settings(
    form: CompanySettings,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    async with toasts.progress(
        "Guardando datos de la empresa...", "Datos de la empresa guardados exitosamente"
    ) as toast_id:
        saved = await CompanySettingsService(api, token).save(form)
    return {"settings": saved.model_dump(by_alias=True), "toast": _toast(toasts, toast_id)}


@router.post("/settings/logo")
async def upload_logo(
    file: UploadFile = File(...),
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    logo = await ImageFile.from_upload(file)
    service = CompanySettingsService(api, token)
    async with toasts.progress("Subiendo logo...", "Logo actualizado correctamente") as toast_id:
        current = await service.get()
        saved = await service.save(current, logo=logo)
    return {
        "logoUrl": saved.logo_url,
        "logoPreview": api.media_url(saved.logo_url),
        "toast": _toast(toasts, toast_id),
    }


# Leads and chat conversations


@router.get("/leads")
async def list_leads(
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
) -> dict:
    leads = await LeadService(api, token).list_interested()
    return {
        "leads": [
            {**lead.model_dump(by_alias=True, mode="json"), "sourceLabel": lead.source_label}
            for lead in leads
        ]
    }


@router.put("/leads/{lead_id}")
async def update_lead(
    lead_id: int,
    body: LeadStatusUpdate,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    async with toasts.progress("Actualizando estado...", "Estado actualizado") as toast_id:
        await LeadService(api, token).update_status(lead_id, body.status)
    return {"id": lead_id, "status": body.status.value, "toast": _toast(toasts, toast_id)}


@router.get("/conversations")
async def list_conversations(
    flt: ConversationFilter = Query(ConversationFilter.ALL, alias="filter"),
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
) -> dict:
    page = await ConversationService(api, token).list(flt)
    return page.model_dump(by_alias=True, mode="json")


@router.get("/conversations/{conversation_id}")
async def conversation_detail(
    conversation_id: int,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
) -> dict:
    detail = await ConversationService(api, token).detail(conversation_id)
    return detail.model_dump(by_alias=True, mode="json")


@router.put("/conversations/{conversation_id}/status")
async def update_conversation_status(
    conversation_id: int,
    body: ConversationStatusUpdate,
    token: str = Depends(get_admin_token),
    api: BackendApiClient = Depends(get_api_client),
    toasts: ToastCenter = Depends(get_toast_center),
) -> dict:
    async with toasts.progress("Actualizando estado...", "Estado actualizado") as toast_id:
        await ConversationService(api, token).update_status(conversation_id, body.status)
    return {"id": conversation_id, "status": body.status.value, "toast": _toast(toasts, toast_id)}
