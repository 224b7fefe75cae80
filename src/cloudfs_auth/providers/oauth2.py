"""
Generic OAuth 2.0 provider.

Implements the authorization-code and refresh-token grants against a token
endpoint. Box, hubiC, OneDrive and Yandex are preconfigured instances of it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import urlencode

import httpx

from ..auth.session import AuthSession
from ..utils.constants import GrantTypes, Parameters, ResponseTypes, TokenTypes
from ..utils.errors import (
    InvalidArgumentError,
    ProviderRejectedError,
    RefreshRejectedError,
    TransientProviderError,
    classify_http_status,
)
from .base import CloudProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OAuth2Endpoints:
    """Static description of an OAuth 2.0 provider."""

    label: str
    authorize_uri: str
    token_uri: str
    api_base_uri: str
    scope: Optional[str] = None
    revoke_uri: Optional[str] = None
    redirect_path: str = "oauth2callback"
    # Authorization scheme of API requests, defaults to the token type
    auth_scheme: Optional[str] = None


OAUTH2_PRESETS: Dict[str, OAuth2Endpoints] = {
    "box": OAuth2Endpoints(
        label="Box",
        authorize_uri="https://account.box.com/api/oauth2/authorize",
        token_uri="https://api.box.com/oauth2/token",
        api_base_uri="https://api.box.com/2.0",
        revoke_uri="https://api.box.com/oauth2/revoke",
        redirect_path="box_login",
    ),
    "hubic": OAuth2Endpoints(
        label="hubiC",
        authorize_uri="https://api.hubic.com/oauth/auth",
        token_uri="https://api.hubic.com/oauth/token",
        api_base_uri="https://api.hubic.com/1.0",
        scope="usage.r,account.r,getAllLinks.r,credentials.r,sponsorCode.r,activate.w,sponsored.r,links.drw",
        redirect_path="hubic_redirect",
    ),
    "onedrive": OAuth2Endpoints(
        label="OneDrive",
        authorize_uri="https://login.microsoftonline.com/common/oauth2/v2.0/authorize",
        token_uri="https://login.microsoftonline.com/common/oauth2/v2.0/token",
        api_base_uri="https://graph.microsoft.com/v1.0",
        scope="Files.ReadWrite.All offline_access",
        redirect_path="onedrive_login",
    ),
    "yandex": OAuth2Endpoints(
        label="Yandex",
        authorize_uri="https://oauth.yandex.com/authorize",
        token_uri="https://oauth.yandex.com/token",
        api_base_uri="https://cloud-api.yandex.net/v1/disk",
        redirect_path="yandex_login",
        auth_scheme="OAuth",
    ),
}


def _default_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=30.0)


class OAuth2Provider(CloudProvider):
    """OAuth 2.0 provider talking to a token endpoint with httpx."""

    def __init__(
        self,
        name: str,
        endpoints: OAuth2Endpoints,
        client_id: Optional[str],
        client_secret: Optional[str],
        redirect_uri: str,
        http_client_factory: Callable[[], httpx.AsyncClient] = _default_http_client,
    ) -> None:
        if not client_id:
            raise InvalidArgumentError("client_id", f"No OAuth client id configured for {name}")

        self._name = name
        self.endpoints = endpoints
        self.client_id = client_id
        self.client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._http_client_factory = http_client_factory

    @property
    def name(self) -> str:
        return self._name

    @property
    def label(self) -> str:
        return self.endpoints.label

    @property
    def credential_fields(self) -> Tuple[str, ...]:
        return (Parameters.REFRESH_TOKEN,)

    @property
    def redirect_uri(self) -> str:
        return self._redirect_uri

    def authorization_uri(self, account: str, state: str) -> str:
        query = {
            Parameters.CLIENT_ID: self.client_id,
            Parameters.REDIRECT_URI: self._redirect_uri,
            Parameters.RESPONSE_TYPE: ResponseTypes.CODE,
            Parameters.STATE: state,
        }
        if self.endpoints.scope:
            query[Parameters.SCOPE] = self.endpoints.scope
        return f"{self.endpoints.authorize_uri}?{urlencode(query)}"

    def _client_parameters(self) -> Dict[str, str]:
        parameters = {Parameters.CLIENT_ID: self.client_id}
        if self.client_secret:
            parameters[Parameters.CLIENT_SECRET] = self.client_secret
        return parameters

    async def _post_token(self, data: Dict[str, str], refresh: bool) -> Dict[str, Any]:
        """POST a grant to the token endpoint and return the JSON payload."""
        try:
            async with self._http_client_factory() as client:
                response = await client.post(self.endpoints.token_uri, data=data)
        except httpx.TransportError as e:
            raise TransientProviderError(
                f"{self.label} token endpoint unreachable: {type(e).__name__}"
            ) from e

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.is_error:
            error_code = payload.get(Parameters.ERROR)
            logger.warning(
                "%s token endpoint returned HTTP %d (%s)",
                self.label,
                response.status_code,
                error_code or "no error code",
            )
            raise classify_http_status(response.status_code, error_code, refresh=refresh)

        if not payload.get(Parameters.ACCESS_TOKEN):
            rejected = RefreshRejectedError if refresh else ProviderRejectedError
            raise rejected(f"{self.label} token response contains no access token")

        return payload

    async def refresh_async(self, credential: Dict[str, str]) -> AuthSession:
        refresh_token = credential.get(Parameters.REFRESH_TOKEN)
        if not refresh_token:
            raise RefreshRejectedError(f"No {self.label} refresh token cached")

        data = {
            Parameters.GRANT_TYPE: GrantTypes.REFRESH_TOKEN,
            Parameters.REFRESH_TOKEN: refresh_token,
            **self._client_parameters(),
        }
        payload = await self._post_token(data, refresh=True)
        logger.info(f"Refreshed {self.label} access token")

        # Some providers do not rotate refresh tokens
        new_refresh_token = payload.get(Parameters.REFRESH_TOKEN) or refresh_token
        return AuthSession.from_token_response(
            payload, {Parameters.REFRESH_TOKEN: new_refresh_token}
        )

    async def authenticate_async(self, parameters: Dict[str, str]) -> AuthSession:
        code = parameters.get(Parameters.CODE)
        if not code:
            raise ProviderRejectedError(f"No {self.label} authorization code received")

        data = {
            Parameters.GRANT_TYPE: GrantTypes.AUTHORIZATION_CODE,
            Parameters.CODE: code,
            Parameters.REDIRECT_URI: self._redirect_uri,
            **self._client_parameters(),
        }
        payload = await self._post_token(data, refresh=False)

        refresh_token = payload.get(Parameters.REFRESH_TOKEN)
        if not refresh_token:
            raise ProviderRejectedError(f"{self.label} issued no refresh token")

        logger.info(f"Exchanged {self.label} authorization code for tokens")
        return AuthSession.from_token_response(
            payload, {Parameters.REFRESH_TOKEN: refresh_token}
        )

    async def revoke_async(self, credential: Dict[str, str]) -> None:
        refresh_token = credential.get(Parameters.REFRESH_TOKEN)
        if not self.endpoints.revoke_uri or not refresh_token:
            return

        data = {"token": refresh_token, **self._client_parameters()}
        try:
            async with self._http_client_factory() as client:
                response = await client.post(self.endpoints.revoke_uri, data=data)
        except httpx.TransportError as e:
            raise TransientProviderError(
                f"{self.label} revoke endpoint unreachable: {type(e).__name__}"
            ) from e
        if response.is_error:
            raise classify_http_status(response.status_code)
        logger.info(f"Revoked {self.label} refresh token")

    def create_client(self, session: AuthSession) -> httpx.AsyncClient:
        token_type = self.endpoints.auth_scheme
        if token_type is None:
            token_type = "Bearer" if session.token_type == TokenTypes.BEARER else session.token_type
        return httpx.AsyncClient(
            base_url=self.endpoints.api_base_uri,
            headers={"Authorization": f"{token_type} {session.access_token}"},
        )
