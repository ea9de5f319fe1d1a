# src/hdnotes_backend/app/main.py
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse

from .api.routes.auth import router as auth_router
from .api.routes.notes import router as notes_router
from .auth.google import GoogleIdentityVerifier
from .auth.tokens import SessionTokens
from .core.config import Settings
from .core.errors import AppError
from .core.logging import setup_logging
from .db.session import build_engine, init_models, make_session_factory
from .services.mailer import OtpMailer

logger = logging.getLogger(__name__)


def first_validation_message(exc: RequestValidationError) -> str:
    """Pydantic reports every issue; the client gets the first one."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    err = errors[0]
    ctx_error = (err.get("ctx") or {}).get("error")
    if err.get("type") == "value_error" and ctx_error is not None:
        return str(ctx_error)
    field = next((str(p) for p in reversed(err.get("loc", ())) if isinstance(p, str) and p != "body"), None)
    msg = err.get("msg") or "Invalid value"
    return f"{field}: {msg}" if field else msg


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(_request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse({"error": first_validation_message(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Internal server error"}, status_code=500)


# --- Swagger/OpenAPI: Add Bearer "Authorize" button ---
def _add_bearer_security_to_openapi(app: FastAPI) -> None:
    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        openapi_schema = get_openapi(
            title=app.title,
            version=app.version,
            description=getattr(app, "description", None),
            routes=app.routes,
        )
        components = openapi_schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes["BearerAuth"] = {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Session token returned by /auth/verify-otp, /auth/signin-verify-otp or /auth/google.",
        }

        for path, path_item in openapi_schema.get("paths", {}).items():
            if not (path.startswith("/notes") or path == "/auth/me"):
                continue
            for op in path_item.values():
                if isinstance(op, dict):
                    op.setdefault("security", [{"BearerAuth": []}])

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API. Settings default to the environment (.env loaded first);
    a missing JWT_SECRET fails here, before any request is served.
    """
    if settings is None:
        load_dotenv()
        settings = Settings.from_env()
    else:
        settings.validate()
    setup_logging()

    engine = build_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        init_models(engine)
        logger.info("HD Notes API ready (env=%s, db=%s)", settings.app_env, engine.url.render_as_string(hide_password=True))
        if not settings.smtp_configured:
            if settings.otp_debug_log:
                logger.warning("SMTP not configured: OTP codes will be written to the log (OTP_DEBUG_LOG)")
            else:
                logger.warning("SMTP not configured: OTP requests will fail until SMTP_* is set")
        if not settings.google_client_id:
            logger.warning("GOOGLE_CLIENT_ID not set: Google sign-in is disabled")
        yield
        engine.dispose()

    app = FastAPI(
        title="HD Notes API",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.session_tokens = SessionTokens(settings)
    app.state.mailer = OtpMailer(settings)
    app.state.google_verifier = GoogleIdentityVerifier(settings.google_client_id)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _install_error_handlers(app)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"ok": True}

    app.include_router(auth_router)
    app.include_router(notes_router)

    _add_bearer_security_to_openapi(app)
    return app


def run() -> None:
    import uvicorn

    port = int(os.getenv("PORT", "5001"))
    uvicorn.run(create_app(), host=os.getenv("HOST", "0.0.0.0"), port=port)


if __name__ == "__main__":
    run()
