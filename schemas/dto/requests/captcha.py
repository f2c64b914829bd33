"""
Request DTOs for the register and validate endpoints.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, IPvAnyAddress

from schemas.models.geetest import ClientType, UserInfo


class UserInfoFields(BaseModel):
    """Optional user context accepted on both endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = None
    client_type: Optional[ClientType] = None
    ip_address: Optional[IPvAnyAddress] = None

    def to_user_info(self) -> UserInfo:
        return UserInfo(
            user_id=self.user_id,
            client_type=self.client_type,
            ip_address=self.ip_address,
        )


class RegisterQuery(UserInfoFields):
    """Query string of ``GET /register``; every parameter is optional."""


class ValidateRequest(UserInfoFields):
    """Body of ``POST /validate``.

    The GeeTest front-end library posts ``geetest_challenge``,
    ``geetest_validate`` and ``geetest_seccode``; the short names are
    accepted too. Blank values are legal here and turned into a ``fail``
    verdict by the service, only missing fields are a decode error.
    """

    challenge: str = Field(
        validation_alias=AliasChoices("geetest_challenge", "challenge")
    )
    validate_: str = Field(
        validation_alias=AliasChoices("geetest_validate", "validate")
    )
    seccode: str = Field(validation_alias=AliasChoices("geetest_seccode", "seccode"))

    @property
    def has_blank_fields(self) -> bool:
        return not all(
            value.strip() for value in (self.challenge, self.validate_, self.seccode)
        )
