"""
Common response DTOs.

ErrorResponse: standard error shape from AppError.to_dict()
HealthResponse: GET /health
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Error JSON body produced by the AppError exception handler."""

    model_config = ConfigDict(populate_by_name=True)

    result: Literal["fail"] = "fail"
    version: str
    msg: str
    code: str
    field: Optional[str] = None
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    """Response body for GET /health."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["healthy", "degraded", "unhealthy"]
    checks: dict[str, str]
