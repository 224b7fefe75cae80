"""
pCloud provider.

The account/password pair is exchanged once for a pCloud auth token; only
the token is cached, and it is reused without a network round-trip.
"""

import logging
from typing import Any, Callable, Dict, Tuple

import httpx

from ..auth.session import AuthSession
from ..utils.constants import FORM_ACCOUNT, FORM_PASSWORD
from ..utils.errors import (
    ProviderRejectedError,
    RefreshRejectedError,
    TransientProviderError,
    classify_http_status,
)
from .base import DirectCredentialProvider

logger = logging.getLogger(__name__)

PCLOUD_API_URI = "https://api.pcloud.com"
AUTH_TOKEN = "auth_token"

# pCloud answers HTTP 200 with a non-zero "result" on failures
_RESULT_OK = 0


def _default_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=PCLOUD_API_URI, timeout=30.0)


class PCloudProvider(DirectCredentialProvider):
    """pCloud gateway provider."""

    def __init__(
        self,
        http_client_factory: Callable[[], httpx.AsyncClient] = _default_http_client,
    ) -> None:
        self._http_client_factory = http_client_factory

    @property
    def name(self) -> str:
        return "pcloud"

    @property
    def label(self) -> str:
        return "pCloud"

    @property
    def credential_fields(self) -> Tuple[str, ...]:
        return (AUTH_TOKEN,)

    async def _call(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with self._http_client_factory() as client:
                response = await client.get(f"/{method}", params=params)
        except httpx.TransportError as e:
            raise TransientProviderError(f"pCloud API unreachable: {type(e).__name__}") from e

        if response.is_error:
            raise classify_http_status(response.status_code)
        try:
            payload = response.json()
        except ValueError as e:
            raise TransientProviderError("pCloud returned an unreadable response") from e
        return payload if isinstance(payload, dict) else {}

    async def refresh_async(self, credential: Dict[str, str]) -> AuthSession:
        token = credential.get(AUTH_TOKEN)
        if not token:
            raise RefreshRejectedError("No pCloud auth token cached")
        return AuthSession(access_token=token, refresh_credential={AUTH_TOKEN: token})

    async def authenticate_async(self, parameters: Dict[str, str]) -> AuthSession:
        if not self.has_usable_parameters(parameters):
            raise ProviderRejectedError("pCloud login requires an account and a password")

        payload = await self._call(
            "userinfo",
            {
                "getauth": 1,
                "logout": 1,
                "username": parameters[FORM_ACCOUNT],
                "password": parameters[FORM_PASSWORD],
            },
        )
        result = payload.get("result")
        token = payload.get("auth")
        if result != _RESULT_OK or not token:
            raise ProviderRejectedError(
                f"pCloud rejected the login: {payload.get('error', 'no auth token')}",
                error_code=str(result) if result is not None else None,
            )

        logger.info("Obtained pCloud auth token")
        return AuthSession(access_token=token, refresh_credential={AUTH_TOKEN: token})

    async def revoke_async(self, credential: Dict[str, str]) -> None:
        token = credential.get(AUTH_TOKEN)
        if not token:
            return
        await self._call("logout", {"auth": token})
        logger.info("Revoked pCloud auth token")

    def create_client(self, session: AuthSession) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=PCLOUD_API_URI, params={"auth": session.access_token})
