"""
Admin authentication against the backend.
"""

import logging
from typing import Optional

from korvalia_web.clients.api_client import BackendApiClient, unwrap_data
from korvalia_web.schemas.auth import (
    AdminUser,
    ChangePasswordForm,
    LoginRequest,
    LoginResult,
    ResetPasswordRequest,
)
from korvalia_web.utils.errors import ApiError, FormValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def is_authenticated(token: Optional[str]) -> bool:
    return bool(token)


def validate_password_change(form: ChangePasswordForm) -> None:
    """
    Check a password change before sending it.

    Raises:
        FormValidationError: confirmation mismatch or password too short
    """
    if form.new_password != form.confirm_password:
        raise FormValidationError(
            {"confirmPassword": "Las contraseñas nuevas no coinciden"},
            message="Las contraseñas nuevas no coinciden",
        )
    if len(form.new_password) < MIN_PASSWORD_LENGTH:
        message = f"La nueva contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres"
        raise FormValidationError({"newPassword": message}, message=message)


class AuthClient:
    """Login, profile and password management for admin users."""

    def __init__(self, api: BackendApiClient):
        self.api = api

    async def login(self, credentials: LoginRequest) -> LoginResult:
        """
        Exchange admin credentials for a bearer token.

        Raises:
            ApiError: The backend rejected the credentials or returned no token
        """
        response = await self.api.post(
            "/auth/login", credentials.model_dump(), requires_auth=False
        )
        data = unwrap_data(response) or {}
        token = data.get("token")
        if not token:
            raise ApiError("Credenciales inválidas", status_code=401)
        logger.info(f"Admin {credentials.email} logged in")
        return LoginResult(token=token, user=AdminUser.model_validate(data.get("user") or {}))

    async def get_authenticated_user(self, token: str) -> AdminUser:
        response = await self.api.get("/auth/me", token=token)
        return AdminUser.model_validate(unwrap_data(response))

    async def change_password(self, token: str, form: ChangePasswordForm) -> None:
        validate_password_change(form)
        await self.api.post(
            "/auth/change-password",
            {"currentPassword": form.current_password, "newPassword": form.new_password},
            token=token,
        )
        logger.info("Admin password changed")

    async def reset_password(self, request: ResetPasswordRequest) -> None:
        if len(request.new_password) < MIN_PASSWORD_LENGTH:
            message = f"La nueva contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres"
            raise FormValidationError({"newPassword": message}, message=message)
        await self.api.post(
            "/auth/reset-password", request.to_wire(), requires_auth=False
        )
        logger.info(f"Password reset requested for {request.email}")
