"""Unit tests for the register/validate flows."""

import re

import pytest

from errors import UpstreamMalformedResponseError, UpstreamUnreachableError
from factories import CAPTCHA_ID, CAPTCHA_SECRET, fake_upstream, make_geetest_settings
from schemas.dto.requests.captcha import ValidateRequest
from schemas.models.geetest import ClientType, UserInfo
from services.verification_service import (
    INVALID_REQUEST_FIELDS,
    INVALID_SECURITY_CODE,
    VerificationOutcome,
    VerificationService,
)
from shared.crypto import DigestMod, sign_challenge


def _service(upstream, **settings_overrides) -> VerificationService:
    return VerificationService(make_geetest_settings(**settings_overrides), upstream)


def _request(challenge="chal", validate="val", seccode="sec|jordan", **extra):
    return ValidateRequest.model_validate(
        {
            "geetest_challenge": challenge,
            "geetest_validate": validate,
            "geetest_seccode": seccode,
            **extra,
        }
    )


# ── Register ──────────────────────────────────────────────────────────────────


class TestRegister:
    @pytest.mark.parametrize("digest_mod", list(DigestMod))
    async def test_healthy_returns_signed_challenge(self, digest_mod):
        upstream = fake_upstream(bypass=True, challenge="abc123")
        reply = await _service(upstream, geetest_digest_mod=digest_mod).register()

        assert reply.success is True
        assert reply.new_captcha is True
        assert reply.captcha_id == CAPTCHA_ID
        assert reply.challenge == sign_challenge(digest_mod, "abc123", CAPTCHA_SECRET)

    async def test_raw_challenge_never_returned(self):
        upstream = fake_upstream(bypass=True, challenge="abc123")
        reply = await _service(upstream).register()
        assert reply.challenge != "abc123"

    async def test_secret_never_in_response(self):
        upstream = fake_upstream(bypass=True, challenge="abc123")
        wire = (await _service(upstream).register()).to_wire()
        assert CAPTCHA_SECRET not in str(wire)

    @pytest.mark.parametrize("declined", ["0", ""])
    async def test_declined_token_falls_back(self, declined):
        upstream = fake_upstream(bypass=True, challenge=declined)
        reply = await _service(upstream).register()

        assert reply.success is False
        assert reply.new_captcha is True
        assert re.fullmatch(r"[a-z0-9]{32}", reply.challenge)
        assert reply.captcha_id == CAPTCHA_ID

    async def test_bypass_unhealthy_skips_upstream_register(self):
        upstream = fake_upstream(bypass=False)
        reply = await _service(upstream).register()

        assert reply.success is False
        assert re.fullmatch(r"[a-z0-9]{32}", reply.challenge)
        upstream.register.assert_not_called()

    async def test_forwards_user_info(self):
        upstream = fake_upstream()
        info = UserInfo(user_id="u-1", client_type=ClientType.WEB)
        await _service(upstream).register(info)
        upstream.register.assert_awaited_once_with(info)

    async def test_defaults_to_empty_user_info(self):
        upstream = fake_upstream()
        await _service(upstream).register()
        upstream.register.assert_awaited_once_with(UserInfo())

    async def test_bypass_error_propagates(self):
        upstream = fake_upstream()
        upstream.bypass_status.side_effect = UpstreamUnreachableError("down")
        with pytest.raises(UpstreamUnreachableError):
            await _service(upstream).register()
        upstream.register.assert_not_called()

    async def test_register_error_propagates(self):
        upstream = fake_upstream()
        upstream.register.side_effect = UpstreamMalformedResponseError("garbled")
        with pytest.raises(UpstreamMalformedResponseError):
            await _service(upstream).register()


# ── Validate ──────────────────────────────────────────────────────────────────


class TestValidate:
    @pytest.mark.parametrize(
        "fields",
        [
            {"challenge": ""},
            {"validate": ""},
            {"seccode": ""},
            {"seccode": "   "},
            {"challenge": "\t\n"},
        ],
    )
    async def test_blank_fields_rejected_without_upstream_calls(self, fields):
        upstream = fake_upstream()
        outcome = await _service(upstream).validate(_request(**fields))

        assert outcome == VerificationOutcome.reject(INVALID_REQUEST_FIELDS)
        upstream.bypass_status.assert_not_called()
        upstream.validate.assert_not_called()

    async def test_healthy_and_confirmed_is_accepted(self):
        upstream = fake_upstream(bypass=True, confirmation="confirmed")
        outcome = await _service(upstream).validate(_request())

        assert outcome.accepted is True
        upstream.validate.assert_awaited_once_with("sec|jordan", "chal", UserInfo())

    async def test_healthy_and_rejected(self):
        upstream = fake_upstream(bypass=True, confirmation=None)
        outcome = await _service(upstream).validate(_request())

        assert outcome.accepted is False
        assert outcome.reason == INVALID_SECURITY_CODE

    @pytest.mark.parametrize("seccode", ["anything", "forged|jordan", "x"])
    async def test_bypass_unhealthy_always_accepts(self, seccode):
        upstream = fake_upstream(bypass=False, confirmation=None)
        outcome = await _service(upstream).validate(_request(seccode=seccode))

        assert outcome.accepted is True
        upstream.validate.assert_not_called()

    async def test_forwards_user_info(self):
        upstream = fake_upstream()
        await _service(upstream).validate(
            _request(user_id="u-1", ip_address="192.168.1.1")
        )
        upstream.validate.assert_awaited_once_with(
            "sec|jordan", "chal", UserInfo(user_id="u-1", ip_address="192.168.1.1")
        )

    async def test_validate_error_propagates(self):
        upstream = fake_upstream()
        upstream.validate.side_effect = UpstreamUnreachableError("down")
        with pytest.raises(UpstreamUnreachableError):
            await _service(upstream).validate(_request())

    async def test_bypass_checked_once_per_attempt(self):
        upstream = fake_upstream()
        service = _service(upstream)
        await service.validate(_request())
        await service.validate(_request())
        assert upstream.bypass_status.await_count == 2


class TestVerificationOutcome:
    def test_accept_to_response(self):
        assert VerificationOutcome.accept().to_response().to_wire()["result"] == (
            "success"
        )

    def test_reject_to_response(self):
        wire = VerificationOutcome.reject("nope").to_response().to_wire()
        assert wire["result"] == "fail"
        assert wire["msg"] == "nope"
