"""
Health check endpoint.

GET /health: asks GeeTest for its bypass status.
Rules:
- GeeTest unreachable or garbled → "unhealthy" (503).
- GeeTest in bypass mode → "degraded" (200), challenges are still issued
  locally and every validation is accepted.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from dependencies import get_geetest_client
from errors import UpstreamError
from infrastructure.geetest.client import GeetestClient
from schemas.dto.responses.common import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    client: GeetestClient = Depends(get_geetest_client),
) -> JSONResponse:
    checks: dict[str, str] = {}

    try:
        bypass_ok = await client.bypass_status()
    except UpstreamError as e:
        checks["geetest"] = e.error_code
        overall = "unhealthy"
    else:
        checks["geetest"] = "ok" if bypass_ok else "bypass"
        overall = "healthy" if bypass_ok else "degraded"

    status_code = 503 if overall == "unhealthy" else 200
    return JSONResponse(
        status_code=status_code,
        content=HealthResponse(status=overall, checks=checks).model_dump(),
    )
