"""
Google Drive provider.

Uses google-auth for silent refresh and google-auth-oauthlib for the
authorization-code exchange (with PKCE), and returns a Drive v3 service as
the client handle.
"""

import asyncio
import logging
import os
import threading
from datetime import timezone
from typing import Any, Dict, List, Optional, Tuple

import requests
from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from ..auth.session import AuthSession
from ..utils.constants import Parameters
from ..utils.errors import (
    InvalidArgumentError,
    ProviderRejectedError,
    RefreshRejectedError,
    TransientProviderError,
)
from .base import CloudProvider

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

# Scopes required for a Drive gateway
USERINFO_EMAIL_SCOPE = "https://www.googleapis.com/auth/userinfo.email"
DRIVE_SCOPE = "https://www.googleapis.com/auth/drive"

SCOPES = [DRIVE_SCOPE, USERINFO_EMAIL_SCOPE]


class GoogleDriveProvider(CloudProvider):
    """Google Drive gateway provider."""

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        redirect_uri: str,
        scopes: Optional[List[str]] = None,
    ) -> None:
        if not client_id or not client_secret:
            raise InvalidArgumentError(
                "client_id", "No OAuth client id/secret configured for gdrive"
            )
        self.client_id = client_id
        self.client_secret = client_secret
        self._redirect_uri = redirect_uri
        self.scopes = list(scopes or SCOPES)
        # state -> PKCE code verifier of a pending browser login
        self._code_verifiers: Dict[str, str] = {}
        self._verifiers_lock = threading.Lock()

    @property
    def name(self) -> str:
        return "gdrive"

    @property
    def label(self) -> str:
        return "Google Drive"

    @property
    def credential_fields(self) -> Tuple[str, ...]:
        return (Parameters.REFRESH_TOKEN,)

    @property
    def redirect_uri(self) -> str:
        return self._redirect_uri

    def _client_config(self) -> Dict[str, Any]:
        return {
            "installed": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": GOOGLE_AUTH_URI,
                "token_uri": GOOGLE_TOKEN_URI,
            }
        }

    def _create_flow(self, state: Optional[str] = None, pkce: bool = True) -> Flow:
        """Create an OAuth flow for the configured client."""
        # Allow HTTP for the local redirect server
        if "OAUTHLIB_INSECURE_TRANSPORT" not in os.environ and (
            "localhost" in self._redirect_uri or "127.0.0.1" in self._redirect_uri
        ):
            os.environ["OAUTHLIB_INSECURE_TRANSPORT"] = "1"

        return Flow.from_client_config(
            self._client_config(),
            scopes=self.scopes,
            redirect_uri=self._redirect_uri,
            state=state,
            autogenerate_code_verifier=pkce,
        )

    def authorization_uri(self, account: str, state: str) -> str:
        flow = self._create_flow(state=state)
        auth_url, _ = flow.authorization_url(
            access_type="offline", prompt="consent", login_hint=account
        )

        code_verifier = getattr(flow, "code_verifier", None)
        if code_verifier:
            with self._verifiers_lock:
                self._code_verifiers[state] = code_verifier
        return auth_url

    def discard_authorization(self, state: str) -> None:
        with self._verifiers_lock:
            self._code_verifiers.pop(state, None)

    def _session_from(self, credentials: Credentials, fallback_refresh_token: Optional[str] = None) -> AuthSession:
        expiry = credentials.expiry
        if expiry is not None and expiry.tzinfo is None:
            # google-auth keeps naive UTC datetimes
            expiry = expiry.replace(tzinfo=timezone.utc)
        return AuthSession(
            access_token=credentials.token,
            refresh_credential={
                Parameters.REFRESH_TOKEN: credentials.refresh_token or fallback_refresh_token
            },
            expiry=expiry,
            extra={"credentials": credentials},
        )

    async def refresh_async(self, credential: Dict[str, str]) -> AuthSession:
        refresh_token = credential.get(Parameters.REFRESH_TOKEN)
        if not refresh_token:
            raise RefreshRejectedError("No Google Drive refresh token cached")

        credentials = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=GOOGLE_TOKEN_URI,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=self.scopes,
        )
        try:
            await asyncio.to_thread(credentials.refresh, Request())
        except RefreshError as e:
            logger.warning(f"Google Drive token refresh rejected: {e}")
            raise RefreshRejectedError(f"Google Drive refresh rejected: {e}") from e
        except TransportError as e:
            raise TransientProviderError(f"Google token endpoint unreachable: {e}") from e

        logger.info("Refreshed Google Drive access token")
        return self._session_from(credentials, refresh_token)

    async def authenticate_async(self, parameters: Dict[str, str]) -> AuthSession:
        code = parameters.get(Parameters.CODE)
        if not code:
            raise ProviderRejectedError("No Google authorization code received")

        state = parameters.get(Parameters.STATE)
        code_verifier = None
        if state:
            with self._verifiers_lock:
                code_verifier = self._code_verifiers.pop(state, None)

        flow = self._create_flow(state=state, pkce=False)
        if code_verifier:
            flow.code_verifier = code_verifier

        try:
            await asyncio.to_thread(flow.fetch_token, code=code)
        except OAuth2Error as e:
            raise ProviderRejectedError(
                f"Google rejected the authorization code: {e.error}", error_code=e.error
            ) from e
        except requests.exceptions.RequestException as e:
            raise TransientProviderError(f"Google token endpoint unreachable: {e}") from e

        credentials = flow.credentials
        if not credentials.refresh_token:
            raise ProviderRejectedError("Google issued no refresh token")

        logger.info("Exchanged Google authorization code for tokens")
        return self._session_from(credentials)

    def create_client(self, session: AuthSession) -> Any:
        credentials = session.extra.get("credentials")
        if credentials is None:
            credentials = Credentials(
                token=session.access_token,
                refresh_token=session.refresh_credential.get(Parameters.REFRESH_TOKEN),
                token_uri=GOOGLE_TOKEN_URI,
                client_id=self.client_id,
                client_secret=self.client_secret,
                scopes=self.scopes,
            )
        return build("drive", "v3", credentials=credentials, cache_discovery=False)
