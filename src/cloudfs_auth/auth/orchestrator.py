"""
Login Orchestrator for CloudFS gateways.

Drives one provider's login: a cached refresh credential is tried silently
first, and only when there is none, or the provider rejects it, is the
provider's login UI presented - exactly once per attempt. The new refresh
credential is persisted only after a fully successful authentication.

    START -> HAS_CACHED_CREDENTIAL -> SILENT_REFRESH -> AUTHENTICATED
                                                     -> REFRESH_REJECTED -> INTERACTIVE_LOGIN
          -> NO_CACHED_CREDENTIAL -> INTERACTIVE_LOGIN -> AUTHENTICATED | FAILED
"""

import logging
import secrets
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from ..core.retry import retry_async
from ..utils.constants import DEFAULT_BASE_DELAY
from ..utils.errors import (
    AuthenticationError,
    InvalidArgumentError,
    ProviderRejectedError,
    RefreshRejectedError,
)
from .credential_store import CredentialStore
from .login_ui import LoginUIRegistry
from .session import AuthSession, LoginRequest

if TYPE_CHECKING:
    from ..providers.base import CloudProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LoginState(str, Enum):
    START = "start"
    HAS_CACHED_CREDENTIAL = "has_cached_credential"
    NO_CACHED_CREDENTIAL = "no_cached_credential"
    SILENT_REFRESH = "silent_refresh"
    REFRESH_REJECTED = "refresh_rejected"
    INTERACTIVE_LOGIN = "interactive_login"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class LoginOrchestrator:
    """Login state machine for one provider."""

    def __init__(
        self,
        provider: "CloudProvider",
        store: CredentialStore,
        ui_registry: LoginUIRegistry,
        retries: int = 0,
        base_delay: float = DEFAULT_BASE_DELAY,
    ) -> None:
        """
        Args:
            provider: The provider strategy.
            store: Credential store of the provider.
            ui_registry: Registry supplying the provider's login UI.
            retries: Retries of each provider round-trip on transient
                failures. The login UI itself is never re-presented.
            base_delay: Delay before the first retry, in seconds.
        """
        if retries < 0:
            raise InvalidArgumentError("retries", "retries must be non-negative")
        self.provider = provider
        self.store = store
        self.ui_registry = ui_registry
        self.retries = retries
        self.base_delay = base_delay
        self.last_states: List[LoginState] = []

    def _enter(self, states: List[LoginState], state: LoginState, account: str) -> None:
        states.append(state)
        logger.debug("%s login for %s: %s", self.provider.label, account, state.value)

    async def _call_provider(self, operation: Callable[[], Awaitable[T]], retries: int) -> T:
        """Await a provider round-trip, retrying transient failures."""
        if not retries:
            return await operation()
        return await retry_async(operation, retries, base_delay=self.base_delay)

    async def _silent_refresh(
        self,
        account: str,
        states: List[LoginState],
        retries: int,
    ) -> Optional[AuthSession]:
        record = self.store.load(account)
        if record is None:
            self._enter(states, LoginState.NO_CACHED_CREDENTIAL, account)
            return None

        self._enter(states, LoginState.HAS_CACHED_CREDENTIAL, account)
        self._enter(states, LoginState.SILENT_REFRESH, account)
        try:
            return await self._call_provider(
                lambda: self.provider.refresh_async(record.fields), retries
            )
        except RefreshRejectedError as e:
            logger.info(f"{self.provider.label} refresh rejected for {account}: {e.message}")
            self._enter(states, LoginState.REFRESH_REJECTED, account)
            return None

    async def _interactive_login(
        self,
        account: str,
        code: Optional[str],
        states: List[LoginState],
        retries: int,
    ) -> AuthSession:
        self._enter(states, LoginState.INTERACTIVE_LOGIN, account)

        auth_uri: Optional[str] = None
        state: Optional[str] = None
        try:
            if code:
                parameters = self.provider.parameters_from_code(code)
            else:
                state = secrets.token_urlsafe(16)
                auth_uri = self.provider.authorization_uri(account, state)
                request = LoginRequest(
                    provider_label=self.provider.label,
                    account=account,
                    authorization_uri=auth_uri,
                    redirect_uri=self.provider.redirect_uri,
                    state=state if auth_uri else None,
                )
                ui = self.ui_registry.get(self.provider.name, self.provider.ui_kind)
                parameters = await ui.authenticate(request)

            if not self.provider.has_usable_parameters(parameters):
                self._enter(states, LoginState.FAILED, account)
                raise AuthenticationError(
                    f"{self.provider.label} login produced no usable credential",
                    account,
                    auth_uri,
                )

            try:
                # Only the exchange is retried, the parameters are reused
                return await self._call_provider(
                    lambda: self.provider.authenticate_async(parameters), retries
                )
            except ProviderRejectedError as e:
                self._enter(states, LoginState.FAILED, account)
                raise AuthenticationError(
                    f"{self.provider.label} rejected the login: {e.message}",
                    account,
                    auth_uri,
                ) from e
        finally:
            if state is not None:
                self.provider.discard_authorization(state)

    async def authenticate(
        self,
        account: str,
        code: Optional[str] = None,
        retries: Optional[int] = None,
    ) -> AuthSession:
        """
        Run the login state machine and persist the resulting credential.

        Args:
            account: The account to log in.
            code: Optional pre-supplied authorization code (or ``user,password``
                pair for direct providers) used instead of presenting the UI.
            retries: Overrides the configured retries of provider round-trips.

        Returns:
            The authenticated session.

        Raises:
            InvalidArgumentError: If no account is given.
            AuthenticationError: If the interactive login failed.
            TransientProviderError: If provider communication failed and no
                retries are configured.
            AggregateRetryError: If every retry of a provider round-trip
                failed transiently.
        """
        if not account:
            raise InvalidArgumentError("account")
        retries = self.retries if retries is None else retries
        if retries < 0:
            raise InvalidArgumentError("retries", "retries must be non-negative")

        states: List[LoginState] = []
        self.last_states = states
        self._enter(states, LoginState.START, account)

        session = await self._silent_refresh(account, states, retries)
        if session is None:
            session = await self._interactive_login(account, code, states, retries)

        # Overwrites any stale cached value
        self.store.save(account, session.refresh_credential)
        self._enter(states, LoginState.AUTHENTICATED, account)
        logger.info(f"{self.provider.label} login succeeded for {account}")
        return session

    async def login(
        self,
        account: str,
        code: Optional[str] = None,
        retries: Optional[int] = None,
    ) -> Any:
        """Log in and return an authenticated client handle for the gateway."""
        session = await self.authenticate(account, code, retries)
        return self.provider.create_client(session)

    async def logout(self, account: Optional[str] = None) -> int:
        """
        Purge stored credentials, revoking them remotely where supported.

        Returns:
            Number of purged records.
        """
        accounts = [account] if account is not None else self.store.list_accounts()
        for name in accounts:
            record = self.store.load(name)
            if record is None:
                continue
            try:
                await self.provider.revoke_async(record.fields)
            except Exception as e:
                logger.warning(f"Could not revoke {self.provider.label} credential for {name}: {e}")

        return self.store.purge(account)

    def describe(self) -> Dict[str, Any]:
        """Summarize the orchestrator state (no secrets)."""
        return {
            "provider": self.provider.name,
            "accounts": self.store.list_accounts(),
            "ui_created": self.ui_registry.has_instance(self.provider.name),
            "last_states": [s.value for s in self.last_states],
        }
