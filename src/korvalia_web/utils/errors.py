"""
Exception types raised while talking to the property backend or validating input.
"""

from typing import Any, Dict, Optional

DEFAULT_API_ERROR_MESSAGE = "Error en la petición"
UNAUTHORIZED_MESSAGE = "No autorizado"


class ApiError(Exception):
    """A backend call failed with a non-2xx response."""

    def __init__(
        self,
        message: str = DEFAULT_API_ERROR_MESSAGE,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class UnauthorizedError(ApiError):
    """The backend rejected the bearer token (HTTP 401)."""

    def __init__(self, message: str = UNAUTHORIZED_MESSAGE):
        super().__init__(message, status_code=401)


class BackendUnavailableError(ApiError):
    """The backend could not be reached at all."""

    def __init__(self, message: str = "No se pudo conectar con el servidor"):
        super().__init__(message, status_code=502)


class FormValidationError(Exception):
    """Client-side validation rejected a form before any network call."""

    def __init__(self, errors: Dict[str, str], message: str = None):
        self.errors = errors
        self.message = message or "Por favor, completa todos los campos requeridos"
        super().__init__(self.message)


class CityInUseError(Exception):
    """A city that still has properties cannot be deleted."""

    def __init__(self, city_id: int, property_count: int):
        self.city_id = city_id
        self.property_count = property_count
        super().__init__(
            f"No se puede eliminar la ciudad: tiene {property_count} propiedad(es) asociada(s)"
        )


class UploadValidationError(Exception):
    """A file was rejected before upload."""

    def __init__(self, message: str, filename: Optional[str] = None):
        self.message = message
        self.filename = filename
        super().__init__(message)
