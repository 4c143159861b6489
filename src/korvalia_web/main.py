"""
Main application entry point for the Korvalia web front service.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from korvalia_web import __version__
from korvalia_web.config import settings
from korvalia_web.routers import admin_router, health_router, public_router
from korvalia_web.utils.errors import (
    ApiError,
    CityInUseError,
    FormValidationError,
    UnauthorizedError,
    UploadValidationError,
)
from korvalia_web.utils.logging_config import logger, setup_logging
from korvalia_web.utils.rate_limiting import setup_rate_limiting
from korvalia_web.utils.security import clear_admin_cookie


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifecycle manager.
    """
    logger.info("Application startup sequence initiated.")
    logger.info(f"Using property backend at {settings.API_BASE_URL}")

    # Initialize startup timestamp for health checks
    app.state.startup_time = time.time()
    logger.info("Application startup complete.")

    yield

    logger.info("Application shutdown sequence initiated.")
    logger.info("Application shutdown complete.")


app = FastAPI(
    title="Korvalia Web",
    description=(
        "Public real-estate site and admin back-office for Korvalia, "
        "served on top of the property backend REST API."
    ),
    version=__version__,
    root_path=settings.ROOT_PATH,
    lifespan=lifespan,
)

setup_logging(app)
setup_rate_limiting(app)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(public_router, tags=["Public"])
app.include_router(admin_router, tags=["Admin"])


def _wants_html(request: Request) -> bool:
    accept = request.headers.get("accept", "")
    return "text/html" in accept and "application/json" not in accept


# Add exception handlers
@app.exception_handler(UnauthorizedError)
async def unauthorized_exception_handler(request: Request, exc: UnauthorizedError):
    """Drop the stored admin token and send the user to the login page."""
    logger.info(f"Unauthorized admin request to {request.url.path}, redirecting to login")
    if _wants_html(request):
        response = RedirectResponse(settings.ADMIN_LOGIN_PATH, status_code=303)
    else:
        response = JSONResponse(
            status_code=401,
            content={
                "detail": exc.message,
                "error_type": "Unauthorized",
                "redirect": settings.ADMIN_LOGIN_PATH,
            },
        )
    clear_admin_cookie(response)
    return response


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    """Backend errors keep their status and server-supplied message."""
    status_code = exc.status_code if exc.status_code >= 400 else 502
    content = {"detail": exc.message, "error_type": type(exc).__name__}
    if exc.details:
        content["errors"] = {k: v for k, v in exc.details.items() if k != "stack"}
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(FormValidationError)
async def form_validation_exception_handler(request: Request, exc: FormValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "detail": exc.message,
            "error_type": "FormValidationError",
            "errors": exc.errors,
        },
    )


@app.exception_handler(CityInUseError)
async def city_in_use_exception_handler(request: Request, exc: CityInUseError):
    return JSONResponse(
        status_code=409,
        content={
            "detail": str(exc),
            "error_type": "CityInUseError",
            "property_count": exc.property_count,
        },
    )


@app.exception_handler(UploadValidationError)
async def upload_validation_exception_handler(request: Request, exc: UploadValidationError):
    return JSONResponse(
        status_code=400,
        content={"detail": exc.message, "error_type": "UploadValidationError"},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Custom HTTP exception handler for consistent error responses."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_type": "HTTPException"},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Validation exception handler for consistent error responses."""
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc), "error_type": "ValidationError"},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Global exception handler for consistent error responses."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_type": str(type(exc).__name__),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "korvalia_web.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development(),
        log_level=settings.LOGGING_LEVEL.lower(),
    )
