"""
Gateway authenticator - composition root of CloudFS Auth.

Owns the shared settings file, the login UI registry, and one login
orchestrator per provider.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

from .auth.credential_store import CredentialStore
from .auth.login_ui import DirectLogOn, LoginUIRegistry
from .auth.oauth_callback_server import BrowserLogOn, get_redirect_server
from .auth.orchestrator import LoginOrchestrator
from .auth.settings_file import SynchronizedSettingsFile, get_settings_file
from .core.config import AuthConfig, get_auth_config
from .providers import CloudProvider, create_provider

logger = logging.getLogger(__name__)


def default_ui_registry(config: AuthConfig) -> LoginUIRegistry:
    """Create a registry with the browser and console login UIs."""
    return LoginUIRegistry(
        {
            "browser": lambda: BrowserLogOn(
                get_redirect_server(config.callback_port, config.callback_base_uri),
                timeout=config.login_timeout,
            ),
            "direct": DirectLogOn,
        }
    )


class GatewayAuthenticator:
    """Logs gateways in, out, and lists their cached accounts."""

    def __init__(
        self,
        config: Optional[AuthConfig] = None,
        settings: Optional[SynchronizedSettingsFile] = None,
        ui_registry: Optional[LoginUIRegistry] = None,
    ) -> None:
        self.config = config or get_auth_config()
        self.settings = settings or get_settings_file(self.config.settings_path)
        self.ui_registry = ui_registry or default_ui_registry(self.config)
        self._providers: Dict[str, CloudProvider] = {}
        self._orchestrators: Dict[str, LoginOrchestrator] = {}
        self._lock = threading.Lock()

    def register_provider(self, provider: CloudProvider) -> None:
        """Use a preconstructed provider instead of one built from configuration."""
        with self._lock:
            self._providers[provider.name] = provider
            self._orchestrators.pop(provider.name, None)

    def get_orchestrator(self, provider: str) -> LoginOrchestrator:
        """Get the orchestrator of a provider, creating it on first use."""
        with self._lock:
            orchestrator = self._orchestrators.get(provider)
            if orchestrator is None:
                instance = self._providers.get(provider)
                if instance is None:
                    instance = create_provider(provider, self.config)
                    self._providers[provider] = instance
                store = CredentialStore(
                    self.settings,
                    instance.name,
                    instance.credential_fields,
                    self.config.settings_pass_phrase,
                )
                orchestrator = LoginOrchestrator(
                    instance, store, self.ui_registry, retries=self.config.retries
                )
                self._orchestrators[provider] = orchestrator
            return orchestrator

    async def login(
        self,
        provider: str,
        account: str,
        code: Optional[str] = None,
        retries: Optional[int] = None,
    ) -> Any:
        """
        Log a gateway in and return its authenticated client handle.

        Transient failures of each provider round-trip are retried with
        exponential backoff, up to ``retries`` times (default from
        configuration). The login UI is presented at most once per call.

        Raises:
            AuthenticationError: If the interactive login failed.
            AggregateRetryError: If every attempt failed transiently.
        """
        orchestrator = self.get_orchestrator(provider)
        logger.info(f"Logging in {provider} gateway for {account}")
        return await orchestrator.login(account, code, retries)

    async def logout(self, provider: str, account: Optional[str] = None) -> int:
        """Purge (and revoke where supported) cached credentials."""
        return await self.get_orchestrator(provider).logout(account)

    def accounts(self, provider: str) -> List[str]:
        """List cached accounts of a provider, most recent first."""
        return self.get_orchestrator(provider).store.list_accounts()


# Global authenticator instance
_gateway_authenticator: Optional[GatewayAuthenticator] = None


def get_gateway_authenticator() -> GatewayAuthenticator:
    """Get the global gateway authenticator instance."""
    global _gateway_authenticator
    if _gateway_authenticator is None:
        _gateway_authenticator = GatewayAuthenticator()
    return _gateway_authenticator
