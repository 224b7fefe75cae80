"""WebDAV provider logging in with a user name and password."""

import logging
from typing import Dict, Optional, Tuple

import httpx

from ..auth.session import AuthSession
from ..utils.constants import FORM_ACCOUNT, FORM_PASSWORD
from ..utils.errors import InvalidArgumentError, ProviderRejectedError, RefreshRejectedError
from .base import DirectCredentialProvider

logger = logging.getLogger(__name__)

USER_NAME = "user_name"
PASSWORD = "password"


class WebDAVProvider(DirectCredentialProvider):
    """WebDAV gateway provider with HTTP basic authentication."""

    def __init__(self, base_address: Optional[str]) -> None:
        if not base_address:
            raise InvalidArgumentError("base_address")
        self.base_address = base_address

    @property
    def name(self) -> str:
        return "webdav"

    @property
    def label(self) -> str:
        return "WebDAV"

    @property
    def credential_fields(self) -> Tuple[str, ...]:
        return (USER_NAME, PASSWORD)

    async def refresh_async(self, credential: Dict[str, str]) -> AuthSession:
        # Stored credentials are reused as they are
        if not credential.get(USER_NAME) or credential.get(PASSWORD) is None:
            raise RefreshRejectedError("Cached WebDAV credential is incomplete")
        return AuthSession(
            access_token=None,
            refresh_credential={USER_NAME: credential[USER_NAME], PASSWORD: credential[PASSWORD]},
            token_type="basic",
        )

    async def authenticate_async(self, parameters: Dict[str, str]) -> AuthSession:
        if not self.has_usable_parameters(parameters):
            raise ProviderRejectedError("WebDAV login requires an account and a password")
        return AuthSession(
            access_token=None,
            refresh_credential={
                USER_NAME: parameters[FORM_ACCOUNT],
                PASSWORD: parameters[FORM_PASSWORD],
            },
            token_type="basic",
        )

    def create_client(self, session: AuthSession) -> httpx.AsyncClient:
        credential = session.refresh_credential
        logger.debug("Creating WebDAV client for %s", self.base_address)
        return httpx.AsyncClient(
            base_url=self.base_address,
            auth=(credential[USER_NAME], credential[PASSWORD]),
        )
