"""
Client-facing response DTOs.

RegisterResponse: GET /register
ValidateResponse: POST /validate, also the shape of every error body

``success`` goes over the wire as 0/1 and ``result`` as "success"/"fail",
which is what the GeeTest front-end library expects.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from errors import RELAY_VERSION


class RegisterResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    new_captcha: bool = True
    challenge: str
    captcha_id: str = Field(serialization_alias="gt")

    @field_serializer("success")
    def _success_as_int(self, value: bool) -> int:
        return int(value)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class ValidateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    result: bool
    version: str = RELAY_VERSION
    msg: Optional[str] = None

    @field_serializer("result")
    def _result_as_string(self, value: bool) -> str:
        return "success" if value else "fail"

    @classmethod
    def success(cls) -> "ValidateResponse":
        return cls(result=True)

    @classmethod
    def failure(cls, msg: str) -> "ValidateResponse":
        return cls(result=False, msg=msg)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)
