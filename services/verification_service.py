"""
VerificationService: register/validate flows against GeeTest.

Both flows ask GeeTest for its bypass status first and then take exactly one
of two paths:

- normal: the challenge comes from GeeTest and is signed with the captcha
  secret before it reaches the client; validation is confirmed upstream.
- bypass (degraded): GeeTest cannot be consulted, so a local random
  challenge is handed out and every well-formed validation is accepted.

Upstream errors propagate as UpstreamError and abort the flow; nothing is
kept between requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from config import GeetestSettings
from infrastructure.geetest.protocol import GeetestUpstream
from schemas.dto.requests.captcha import ValidateRequest
from schemas.dto.responses.captcha import RegisterResponse, ValidateResponse
from schemas.models.geetest import UserInfo, is_declined_challenge
from shared.crypto import sign_challenge
from shared.generators import generate_fallback_challenge
from shared.logging import get_logger

log = get_logger(__name__)

INVALID_REQUEST_FIELDS = "Invalid request fields"
INVALID_SECURITY_CODE = "Invalid security code"


@dataclass(frozen=True)
class VerificationOutcome:
    """Verdict of a validate attempt. Upstream errors are raised, not returned."""

    accepted: bool
    reason: Optional[str] = None

    @classmethod
    def accept(cls) -> "VerificationOutcome":
        return cls(accepted=True)

    @classmethod
    def reject(cls, reason: str) -> "VerificationOutcome":
        return cls(accepted=False, reason=reason)

    def to_response(self) -> ValidateResponse:
        if self.accepted:
            return ValidateResponse.success()
        return ValidateResponse.failure(self.reason or "")


class VerificationService:
    def __init__(self, settings: GeetestSettings, upstream: GeetestUpstream) -> None:
        self._settings = settings
        self._upstream = upstream

    async def register(self, user_info: Optional[UserInfo] = None) -> RegisterResponse:
        user_info = user_info or UserInfo()

        if await self._bypass_ok("register"):
            origin_challenge = await self._upstream.register(user_info)
            if not is_declined_challenge(origin_challenge):
                log.info("register_issued", degraded=False)
                return RegisterResponse(
                    success=True,
                    new_captcha=True,
                    challenge=sign_challenge(
                        self._settings.digest_mod,
                        origin_challenge,
                        self._settings.captcha_secret,
                    ),
                    captcha_id=self._settings.captcha_id,
                )
            log.warning("register_declined_by_upstream")

        log.info("register_issued", degraded=True)
        return RegisterResponse(
            success=False,
            new_captcha=True,
            challenge=generate_fallback_challenge(),
            captcha_id=self._settings.captcha_id,
        )

    async def validate(self, request: ValidateRequest) -> VerificationOutcome:
        if request.has_blank_fields:
            log.info("validate_rejected", reason="blank_fields")
            return VerificationOutcome.reject(INVALID_REQUEST_FIELDS)

        if not await self._bypass_ok("validate"):
            # GeeTest can't be asked in bypass mode; the client is trusted
            log.info("validate_accepted", degraded=True)
            return VerificationOutcome.accept()

        confirmation = await self._upstream.validate(
            request.seccode, request.challenge, request.to_user_info()
        )
        if confirmation is None:
            log.info("validate_rejected", reason="invalid_seccode")
            return VerificationOutcome.reject(INVALID_SECURITY_CODE)

        log.info("validate_accepted", degraded=False)
        return VerificationOutcome.accept()

    async def _bypass_ok(self, flow: str) -> bool:
        status = await self._upstream.bypass_status()
        log.debug("bypass_status_checked", flow=flow, healthy=status)
        return status
