"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppSettings, load_settings
from errors import register_error_handlers
from infrastructure.geetest.client import GeetestClient
from infrastructure.http_client import HttpClient
from middleware.request_logging import setup_logging_middleware
from routes.captcha_routes import router as captcha_router
from routes.health_routes import router as health_router
from services.verification_service import VerificationService
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(
    settings: Optional[AppSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Create and return a fully configured FastAPI application.

    Args:
        settings: Pre-built settings; loaded from the environment when None.
        transport: Optional httpx transport for upstream calls (tests pass
            an ``httpx.MockTransport``).

    Raises:
        ConfigurationError: if settings have to be loaded and are invalid.
    """
    if settings is None:
        settings = load_settings()

    setup_logging(settings.logging, env=settings.env)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        http_client = HttpClient(
            timeout=settings.geetest.geetest_http_timeout, transport=transport
        )
        geetest_client = GeetestClient(settings.geetest, http_client)

        app.state.settings = settings
        app.state.http_client = http_client
        app.state.geetest_client = geetest_client
        app.state.verification_service = VerificationService(
            settings.geetest, geetest_client
        )

        log.info(
            "relay_started",
            captcha_id=settings.geetest.captcha_id,
            digest_mod=settings.geetest.digest_mod.value,
            validate_encoding=settings.geetest.geetest_validate_encoding,
        )

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await http_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_logging_middleware(app)

    register_error_handlers(app)
    app.include_router(captcha_router)
    app.include_router(health_router)

    return app
