"""
GeeTest upstream wire models.

GeeTest overloads strings for booleans (``"success"``/``"fail"``) and uses
the string ``"false"`` to mean "no value". Those conversions live in the
validators below and nowhere else; the rest of the code only sees ``bool``
and ``Optional[str]``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, IPvAnyAddress, field_validator

# Register tokens GeeTest hands back when it declines to issue a challenge
DECLINED_CHALLENGES = frozenset({"", "0"})

_STATUS_VALUES = {"success": True, "fail": False}


class ClientType(str, Enum):
    WEB = "web"
    MOBILE = "h5"
    NATIVE = "native"
    UNKNOWN = "unknown"


class UserInfo(BaseModel):
    """Optional end-user context forwarded to register and validate as-is."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: Optional[str] = None
    client_type: Optional[ClientType] = None
    ip_address: Optional[IPvAnyAddress] = None

    def to_params(self) -> dict[str, str]:
        """Flatten into upstream query/form parameters, omitting unset fields."""
        return self.model_dump(mode="json", exclude_none=True)


class BypassStatusResponse(BaseModel):
    """``GET bypass_status.php`` → ``{"status": "success"|"fail"}``."""

    model_config = ConfigDict(extra="ignore")

    status: bool

    @field_validator("status", mode="before")
    @classmethod
    def _decode_status(cls, value: Any) -> bool:
        if isinstance(value, str) and value in _STATUS_VALUES:
            return _STATUS_VALUES[value]
        raise ValueError(f"expected 'success' or 'fail', got {value!r}")


class RegisterResult(BaseModel):
    """``GET register.php`` → ``{"challenge": str}``."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    challenge: str


class ValidateResult(BaseModel):
    """``POST validate.php`` → ``{"seccode": str|"false"}``."""

    model_config = ConfigDict(extra="ignore")

    seccode: Optional[str]

    @field_validator("seccode", mode="before")
    @classmethod
    def _decode_seccode(cls, value: Any) -> Any:
        # Only the "false" sentinel means rejection; null is off-schema
        if value is None:
            raise ValueError("seccode must be a string")
        if value == "false":
            return None
        return value


def is_declined_challenge(challenge: Optional[str]) -> bool:
    """True when a register token means "operate in bypass mode"."""
    return challenge is None or challenge.strip() in DECLINED_CHALLENGES
