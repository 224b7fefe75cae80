"""
CloudProvider - abstract interface for all gateway providers.

Every provider (Box, hubiC, OneDrive, Google Drive, WebDAV, ...) subclasses
this and implements the capabilities the login orchestrator needs: silent
refresh, interactive exchange, and creating a client handle.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from ..auth.session import AuthSession
from ..utils.constants import FORM_ACCOUNT, FORM_PASSWORD

logger = logging.getLogger(__name__)


class CloudProvider(ABC):
    """Abstract base for all gateway providers."""

    # ── Identity ────────────────────────────────────────────────────────
    @property
    @abstractmethod
    def name(self) -> str:
        """Unique slug: 'box', 'hubic', 'onedrive', 'gdrive', 'pcloud', 'webdav', 'yandex'."""
        ...

    @property
    @abstractmethod
    def label(self) -> str:
        """Human-readable: 'Box', 'hubiC', 'OneDrive', 'Google Drive'."""
        ...

    @property
    @abstractmethod
    def credential_fields(self) -> Tuple[str, ...]:
        """Names of the fields of the persisted refresh credential."""
        ...

    @property
    def ui_kind(self) -> str:
        """Kind of login UI: 'browser' or 'direct'."""
        return "browser"

    @property
    def redirect_uri(self) -> Optional[str]:
        return None

    def authorization_uri(self, account: str, state: str) -> Optional[str]:
        """Build the interactive authorization endpoint, if the provider has one."""
        return None

    def discard_authorization(self, state: str) -> None:
        """Forget per-login data kept for the authorization URI of ``state``."""
        return None

    def parameters_from_code(self, code: str) -> Dict[str, str]:
        """Turn a pre-supplied code into login UI parameters."""
        return {"code": code}

    def has_usable_parameters(self, parameters: Dict[str, str]) -> bool:
        """Check whether login UI parameters can be exchanged at all."""
        return bool(parameters.get("code"))

    # ── Core flow ───────────────────────────────────────────────────────
    @abstractmethod
    async def refresh_async(self, credential: Dict[str, str]) -> AuthSession:
        """
        Obtain a new session from a cached refresh credential.

        Raises:
            RefreshRejectedError: The credential is no longer accepted.
            TransientProviderError: Communication failed, retry is possible.
        """
        ...

    @abstractmethod
    async def authenticate_async(self, parameters: Dict[str, str]) -> AuthSession:
        """
        Exchange login UI parameters for a session.

        Raises:
            ProviderRejectedError: The code or credentials were rejected.
            TransientProviderError: Communication failed, retry is possible.
        """
        ...

    async def revoke_async(self, credential: Dict[str, str]) -> None:
        """Revoke a refresh credential remotely. Default: nothing to revoke."""
        return None

    @abstractmethod
    def create_client(self, session: AuthSession) -> Any:
        """Create an authenticated client handle for the gateway."""
        ...


class DirectCredentialProvider(CloudProvider):
    """Base for providers logging in with an account/password form."""

    @property
    def ui_kind(self) -> str:
        return "direct"

    def parameters_from_code(self, code: str) -> Dict[str, str]:
        """Split a ``user,password`` code."""
        parts = code.split(",", 1)
        if len(parts) != 2:
            return {}
        return {FORM_ACCOUNT: parts[0], FORM_PASSWORD: parts[1]}

    def has_usable_parameters(self, parameters: Dict[str, str]) -> bool:
        return bool(parameters.get(FORM_ACCOUNT)) and bool(parameters.get(FORM_PASSWORD))
