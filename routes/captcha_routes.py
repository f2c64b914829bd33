"""
Client-facing CAPTCHA endpoints.

GET  /register: issue a challenge (signed, or a local one in bypass mode)
POST /validate: check a solved challenge

The validate body is URL-encoded or JSON depending on the deployment
(GEETEST_VALIDATE_ENCODING). A body that cannot be decoded is a 400; blank
fields are a normal ``fail`` verdict.
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from config import AppSettings
from dependencies import get_settings, get_verification_service
from errors import ValidationError
from schemas.dto.requests.captcha import RegisterQuery, ValidateRequest
from schemas.dto.responses.common import ErrorResponse
from services.verification_service import VerificationService

router = APIRouter(tags=["captcha"])

_ERROR_RESPONSES: dict[int, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


@router.get("/register", responses=_ERROR_RESPONSES)
async def register(
    query: Annotated[RegisterQuery, Query()],
    service: VerificationService = Depends(get_verification_service),
) -> JSONResponse:
    reply = await service.register(query.to_user_info())
    return JSONResponse(content=reply.to_wire())


@router.post("/validate", responses=_ERROR_RESPONSES)
async def validate(
    request: Request,
    settings: AppSettings = Depends(get_settings),
    service: VerificationService = Depends(get_verification_service),
) -> JSONResponse:
    payload = await _read_validate_body(
        request, settings.geetest.geetest_validate_encoding
    )
    try:
        body = ValidateRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(
            "Malformed request body",
            details=[".".join(str(p) for p in err["loc"]) for err in e.errors()],
        ) from e

    outcome = await service.validate(body)
    return JSONResponse(content=outcome.to_response().to_wire())


async def _read_validate_body(request: Request, encoding: str) -> dict[str, Any]:
    if encoding == "json":
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationError("Request body is not valid JSON") from e
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        return payload

    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}
