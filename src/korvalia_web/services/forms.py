"""
Client-side form checks run before anything is sent to the backend.

Only shallow checks live here (required fields, positive price, parseable
JSON); the backend stays the source of truth for everything else.
"""

import json
from typing import Any, Dict

from korvalia_web.schemas.city import CityForm
from korvalia_web.schemas.leads import LeadCaptureRequest
from korvalia_web.schemas.pages import PageSettingsForm
from korvalia_web.schemas.property import PropertyForm
from korvalia_web.utils.errors import FormValidationError


def validate_property_form(form: PropertyForm) -> Dict[str, str]:
    """Return a field -> message map; empty when the form can be submitted."""
    errors: Dict[str, str] = {}

    if not form.title.strip():
        errors["title"] = "El título es requerido"
    if not form.description.strip():
        errors["description"] = "La descripción es requerida"
    if not form.address.strip():
        errors["address"] = "La dirección es requerida"
    if not form.price or form.price <= 0:
        errors["price"] = "El precio debe ser mayor a 0"
    if not form.city_id:
        errors["cityId"] = "Debes seleccionar una ciudad"
    if not form.image_urls:
        errors["images"] = "Debes subir al menos una imagen"

    return errors


def ensure_property_form(form: PropertyForm) -> None:
    errors = validate_property_form(form)
    if errors:
        raise FormValidationError(errors)


def remove_image(form: PropertyForm, index: int) -> PropertyForm:
    """Drop a gallery image, keeping the primary image index pointing at the same picture."""
    if not 0 <= index < len(form.image_urls):
        return form
    image_urls = [url for i, url in enumerate(form.image_urls) if i != index]
    primary = form.primary_image_index
    if index == primary:
        primary = 0
    elif index < primary:
        primary -= 1
    return form.model_copy(update={"image_urls": image_urls, "primary_image_index": primary})


def set_primary_image(form: PropertyForm, index: int) -> PropertyForm:
    if not 0 <= index < len(form.image_urls):
        return form
    return form.model_copy(update={"primary_image_index": index})


def add_images(form: PropertyForm, urls) -> PropertyForm:
    return form.model_copy(update={"image_urls": [*form.image_urls, *urls]})


def validate_city_form(form: CityForm) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not form.name.strip():
        errors["name"] = "El nombre es obligatorio"
    for field in ("latitude", "longitude"):
        value = getattr(form, field)
        if value:
            try:
                float(value)
            except ValueError:
                errors[field] = "Debe ser un número"
    return errors


def ensure_city_form(form: CityForm) -> None:
    errors = validate_city_form(form)
    if errors:
        raise FormValidationError(errors, message=next(iter(errors.values())))


def parse_page_blocks(form: PageSettingsForm) -> Dict[str, Any]:
    """
    Decode the page blocks, which the editor may send as JSON text.

    Raises:
        FormValidationError: the text is not a JSON object
    """
    if isinstance(form.blocks, dict):
        return form.blocks
    message = 'El formato del JSON en "Configuración Avanzada" no es válido'
    try:
        blocks = json.loads(form.blocks) if form.blocks.strip() else {}
    except json.JSONDecodeError:
        raise FormValidationError({"blocks": message}, message=message)
    if not isinstance(blocks, dict):
        raise FormValidationError({"blocks": message}, message=message)
    return blocks


def ensure_lead_contact(request: LeadCaptureRequest) -> None:
    """A call-to-action needs an email containing "@" or a phone number."""
    if request.phone and not request.email:
        return
    if not request.email or "@" not in request.email:
        message = "Por favor, introduce un email válido"
        raise FormValidationError({"email": message}, message=message)
