# vidhub/main.py
from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidhub.core.config import Settings
from vidhub.core.database import build_engine, build_session_factory
from vidhub.core.rate_limit import limiter
from vidhub.core.security import TokenService
from vidhub.middleware.request_logging import register_request_logging_middleware
from vidhub.routes.auth import router as auth_router
from vidhub.routes.comments import router as comments_router
from vidhub.routes.community_posts import router as community_posts_router
from vidhub.routes.dashboard import router as dashboard_router
from vidhub.routes.follows import router as follows_router
from vidhub.routes.likes import router as likes_router
from vidhub.routes.playlists import router as playlists_router
from vidhub.routes.users import router as users_router
from vidhub.routes.videos import router as videos_router

logger = logging.getLogger(__name__)

_ERROR_CODE_BY_STATUS: dict[int, str] = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "PAYLOAD_TOO_LARGE",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMITED",
    500: "INTERNAL_ERROR",
}


def _error_code(status_code: int) -> str:
    return _ERROR_CODE_BY_STATUS.get(int(status_code), "HTTP_ERROR")


def error_payload(
    status_code: int,
    message: str,
    *,
    code: str | None = None,
    errors: list | None = None,
    stack: str | None = None,
) -> dict:
    payload: dict = {"success": False, "error": code or _error_code(status_code), "message": message}
    if errors:
        payload["errors"] = errors
    if stack:
        payload["stack"] = stack
    return payload


def http_exception_handler(request: Request, exc: StarletteHTTPException):  # noqa: ARG001
    detail = exc.detail
    code: str | None = None
    errors: list | None = None

    if isinstance(detail, str):
        message = detail
    elif isinstance(detail, dict):
        # HTTPException(detail={"message": "...", "error": "CODE", "errors": [...]})
        msg = detail.get("message")
        message = msg if isinstance(msg, str) and msg else "Request failed"
        err = detail.get("error")
        code = err if isinstance(err, str) and err else None
        errs = detail.get("errors")
        errors = errs if isinstance(errs, list) else None
    else:
        message = str(detail) if detail is not None else "Request failed"

    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(exc.status_code, message, code=code, errors=errors),
        headers=getattr(exc, "headers", None),
    )


def validation_exception_handler(request: Request, exc: RequestValidationError):  # noqa: ARG001
    return JSONResponse(
        status_code=422,
        content=error_payload(
            422,
            "Invalid request payload",
            errors=jsonable_encoder(exc.errors()),
        ),
    )


def rate_limit_handler(request: Request, exc: RateLimitExceeded):  # noqa: ARG001
    return JSONResponse(status_code=429, content=error_payload(429, "Too many requests"))


def create_app(settings: Settings | None = None, *, engine: Engine | None = None) -> FastAPI:
    """
    Builds the API around an explicit Settings object.

    Run with: uvicorn vidhub.main:create_app --factory
    """
    settings = settings or Settings()
    settings.require_jwt_secrets()
    logging.getLogger("vidhub").setLevel(settings.LOG_LEVEL)

    engine = engine or build_engine(settings)

    app = FastAPI(title="VidHub API")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_service = TokenService(settings)

    logger.info(
        "Startup config: ENV=%s EMAIL_ENABLED=%s provider=%s RATE_LIMITING=%s",
        settings.ENV,
        settings.EMAIL_ENABLED,
        (settings.EMAIL_PROVIDER or "resend"),
        settings.ENABLE_RATE_LIMITING,
    )

    def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error: %s %s", request.method, request.url.path)
        stack = None
        if not settings.is_prod:
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(
            status_code=500,
            content=error_payload(500, "Something went wrong", stack=stack),
        )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    limiter.enabled = settings.ENABLE_RATE_LIMITING
    app.state.limiter = limiter
    # Our standard error shape for rate limits, instead of slowapi's default.
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_request_logging_middleware(app)

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(videos_router)
    app.include_router(comments_router)
    app.include_router(community_posts_router)
    app.include_router(likes_router)
    app.include_router(follows_router)
    app.include_router(playlists_router)
    app.include_router(dashboard_router)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app
