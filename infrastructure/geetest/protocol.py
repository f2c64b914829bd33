"""GeetestUpstream protocol: services depend on this, not the concrete client."""

from typing import Optional, Protocol

from schemas.models.geetest import UserInfo


class GeetestUpstream(Protocol):
    async def bypass_status(self) -> bool: ...

    async def register(self, user_info: UserInfo) -> str: ...

    async def validate(
        self, seccode: str, challenge: str, user_info: UserInfo
    ) -> Optional[str]: ...
