"""
Admin credential handling: the backend bearer token travels in a cookie or an
Authorization header and is forwarded as-is.
"""

import time
from typing import Optional

import jwt
from fastapi import Request, Security
from fastapi.responses import Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from korvalia_web.config import settings
from korvalia_web.utils.errors import UnauthorizedError
from korvalia_web.utils.logging_config import logger

security = HTTPBearer(auto_error=False)


def token_expiry(token: str) -> Optional[float]:
    """The `exp` claim read without verifying the signature, or None."""
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    exp = claims.get("exp")
    return None if exp is None else float(exp)


def token_expired(token: str, now: float = None) -> bool:
    """
    Whether the token's `exp` has passed.

    Tokens that are not JWTs are never reported as expired.
    """
    exp = token_expiry(token)
    if exp is None:
        return False
    return exp < (now or time.time())


def read_admin_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.ADMIN_TOKEN_COOKIE)


async def get_admin_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> str:
    """
    Dependency returning the admin bearer token.

    Raises:
        UnauthorizedError: no token, or an expired one
    """
    token = read_admin_token(request, credentials)
    if not token:
        logger.warning(f"Missing admin token for {request.method} {request.url.path}")
        raise UnauthorizedError()
    if token_expired(token):
        logger.warning("Admin token has expired")
        raise UnauthorizedError()
    return token


async def get_optional_admin_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> Optional[str]:
    return read_admin_token(request, credentials)


def set_admin_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.ADMIN_TOKEN_COOKIE,
        token,
        httponly=True,
        samesite="lax",
        secure=settings.is_production(),
        path="/",
    )


def clear_admin_cookie(response: Response) -> None:
    response.delete_cookie(settings.ADMIN_TOKEN_COOKIE, path="/")
