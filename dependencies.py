"""
FastAPI dependency providers.

Everything here reads objects built once in the app lifespan and stored on
app.state. They are immutable after startup, so concurrent requests share
them without locking.
"""

from __future__ import annotations

from fastapi import Request

from config import AppSettings
from infrastructure.geetest.client import GeetestClient
from services.verification_service import VerificationService


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_geetest_client(request: Request) -> GeetestClient:
    """Return the GeeTest upstream client from app.state."""
    return request.app.state.geetest_client


def get_verification_service(request: Request) -> VerificationService:
    """Return the VerificationService from app.state."""
    return request.app.state.verification_service
