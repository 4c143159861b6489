"""
Rate limiting configuration for the Korvalia web front service.
"""

import sys
import uuid
from typing import Callable

from fastapi import FastAPI, Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from korvalia_web.config import settings
from korvalia_web.utils.logging_config import logger

# Rate limiting is a no-op while pytest drives the app
IS_TEST_MODE = "pytest" in sys.modules

LEAD_LIMIT = settings.LEAD_RATE_LIMIT
CHAT_LIMIT = settings.CHAT_RATE_LIMIT
LOGIN_LIMIT = settings.LOGIN_RATE_LIMIT


def get_key_function() -> Callable:
    """
    Return the appropriate key function for rate limiting.

    Under pytest every request gets its own key, in development a single shared
    key is used, otherwise the client address.

    Returns:
        A function that extracts the rate limiting key from the request
    """
    if IS_TEST_MODE:
        return lambda _: str(uuid.uuid4())
    if settings.is_development() or settings.is_testing():
        logger.debug("Using development rate limiting key function")
        return lambda _: "development"
    logger.debug("Using production rate limiting key function based on client IP")
    return get_remote_address


limiter = Limiter(
    key_func=get_key_function(),
    default_limits=[f"{settings.RATE_LIMIT_REQUESTS_PER_MINUTE}/minute"],
    strategy="fixed-window",
)


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Custom handler for rate limit exceeded exceptions"""
    logger.warning(
        f"Rate limit exceeded on {request.method} {request.url.path} "
        f"from {get_remote_address(request)}"
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Demasiadas peticiones. Inténtalo de nuevo en unos minutos.",
            "error_type": "RateLimitExceeded",
        },
    )


def setup_rate_limiting(app: FastAPI) -> None:
    """Attach the limiter and its 429 handler to the application"""
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    if IS_TEST_MODE:
        limiter.enabled = False
        logger.info("Rate limiting is disabled in test mode")
    else:
        logger.info(
            f"Rate limiting enabled: leads={LEAD_LIMIT}, chat={CHAT_LIMIT}, login={LOGIN_LIMIT}"
        )
