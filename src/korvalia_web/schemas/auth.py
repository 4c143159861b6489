"""
Admin authentication schemas.
"""

from typing import Optional

from pydantic import BaseModel, Field

from korvalia_web.schemas.common import CamelModel


class LoginRequest(BaseModel):
    email: str = Field(..., description="Admin email")
    password: str = Field(..., description="Admin password")


class AdminUser(CamelModel):
    id: Optional[int] = None
    email: str = ""
    name: Optional[str] = None


class LoginResult(BaseModel):
    token: str
    user: AdminUser


class ChangePasswordForm(CamelModel):
    current_password: str = ""
    new_password: str = ""
    confirm_password: str = ""


class ResetPasswordRequest(CamelModel):
    email: str
    new_password: str
