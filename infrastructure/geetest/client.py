"""GeeTest implementation of GeetestUpstream.

Each method performs exactly one upstream exchange through HttpClient:
- transport failures and non-2xx replies → UpstreamUnreachableError
- undecodable or off-schema bodies → UpstreamMalformedResponseError
Nothing is retried or cached; the bypass status in particular is fetched
fresh on every call.
"""

from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from config import GeetestSettings
from errors import UpstreamMalformedResponseError, UpstreamUnreachableError
from infrastructure.http_client import HttpClient
from schemas.models.geetest import (
    BypassStatusResponse,
    RegisterResult,
    UserInfo,
    ValidateResult,
)
from shared.logging import get_logger

log = get_logger(__name__)

SDK = "geetest python sdk 1.0"
JSON_FORMAT = 1

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class GeetestClient:
    def __init__(self, settings: GeetestSettings, http_client: HttpClient) -> None:
        self._settings = settings
        self._http = http_client

    @property
    def captcha_id(self) -> str:
        return self._settings.captcha_id

    def _signed_params(self, user_info: UserInfo) -> dict[str, Any]:
        return {
            **user_info.to_params(),
            "digestmod": self._settings.digest_mod.value,
            "json_format": JSON_FORMAT,
            "sdk": SDK,
        }

    async def bypass_status(self) -> bool:
        """Return True when GeeTest is healthy, False when it signals bypass."""
        result = await self._exchange(
            "status",
            BypassStatusResponse,
            "GET",
            self._settings.geetest_status_url,
            params={"gt": self.captcha_id},
        )
        return result.status

    async def register(self, user_info: UserInfo) -> str:
        """Request a new raw challenge. ``""``/``"0"`` means GeeTest declined."""
        params = self._signed_params(user_info)
        params["gt"] = self.captcha_id
        result = await self._exchange(
            "register",
            RegisterResult,
            "GET",
            self._settings.geetest_register_url,
            params=params,
        )
        return result.challenge

    async def validate(
        self, seccode: str, challenge: str, user_info: UserInfo
    ) -> Optional[str]:
        """Confirm a solved challenge.

        Returns:
            GeeTest's confirmation code, or None when it rejects the seccode.
        """
        form = self._signed_params(user_info)
        form.update(
            captchaid=self.captcha_id,
            seccode=seccode,
            challenge=challenge,
        )
        result = await self._exchange(
            "validate",
            ValidateResult,
            "POST",
            self._settings.geetest_validate_url,
            data=form,
        )
        return result.seccode

    async def _exchange(
        self,
        operation: str,
        model: type[_ModelT],
        method: str,
        url: str,
        **kwargs: Any,
    ) -> _ModelT:
        log.debug("geetest_request", operation=operation, method=method, url=url)
        try:
            if method == "GET":
                response = await self._http.get(url, **kwargs)
            else:
                response = await self._http.post(url, **kwargs)
        except httpx.HTTPError as e:
            log.error(
                "geetest_request_failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise UpstreamUnreachableError(
                f"GeeTest {operation} request failed"
            ) from e

        if not response.is_success:
            log.error(
                "geetest_api_error",
                operation=operation,
                status_code=response.status_code,
                response_length=len(response.content),
            )
            raise UpstreamUnreachableError(
                f"GeeTest {operation} returned HTTP {response.status_code}",
                details={"status_code": response.status_code},
            )

        try:
            result = model.model_validate_json(response.content)
        except PydanticValidationError as e:
            log.error(
                "geetest_malformed_response",
                operation=operation,
                response_length=len(response.content),
                error_count=e.error_count(),
            )
            raise UpstreamMalformedResponseError(
                f"GeeTest {operation} returned a malformed response"
            ) from e

        log.debug("geetest_response", operation=operation, **result.model_dump())
        return result
