"""
Login UI collaborators for interactive gateway logins.

A login UI presents one request and resolves to a flat mapping of string
parameters (authorization code, account/password pair, ...). Every call
awaits its own result, so overlapping logins never see each other's
parameters.
"""

import asyncio
import getpass
import logging
import sys
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, Mapping, Optional
from urllib.parse import parse_qsl, urlparse

from ..utils.constants import FORM_ACCOUNT, FORM_PASSWORD
from ..utils.errors import InvalidArgumentError
from .session import LoginRequest

logger = logging.getLogger(__name__)


class LoginUI(ABC):
    """Abstract base class for login surfaces."""

    @abstractmethod
    async def authenticate(self, request: LoginRequest) -> Dict[str, str]:
        """
        Present the login surface and await its result.

        Returns:
            Parameters captured from the user, or an empty dict if the
            login was abandoned.
        """
        pass


def parse_redirect_parameters(url: str) -> Dict[str, str]:
    """
    Collect the parameters of a redirect URL.

    Both the query string and the fragment are read, since implicit grants
    return their tokens in the fragment.
    """
    parsed = urlparse(url)
    parameters: Dict[str, str] = {}
    for part in (parsed.query, parsed.fragment):
        for name, value in parse_qsl(part, keep_blank_values=True):
            parameters[name] = value
    return parameters


class DirectLogOn(LoginUI):
    """Account/password login form on the console."""

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        password_func: Callable[[str], str] = getpass.getpass,
    ) -> None:
        self._input = input_func
        self._password = password_func
        self._lock = asyncio.Lock()

    def _prompt(self, request: LoginRequest) -> Dict[str, str]:
        print(f"\n=== {request.title} ===", file=sys.stderr)
        try:
            account = self._input(f"Account [{request.account}]: ").strip() or request.account
            password = self._password("Password: ")
        except (EOFError, KeyboardInterrupt):
            logger.info("Login form for %s was abandoned", request.account)
            return {}

        if not password:
            return {}
        return {FORM_ACCOUNT: account, FORM_PASSWORD: password}

    async def authenticate(self, request: LoginRequest) -> Dict[str, str]:
        # One prompt at a time on a console
        async with self._lock:
            logger.info(f"Presenting login form: {request.title}")
            return await asyncio.to_thread(self._prompt, request)


class LoginUIRegistry:
    """
    Provider-keyed registry of login UIs.

    Each provider gets exactly one UI instance for the registry's lifetime,
    created lazily on first need.
    """

    def __init__(self, factories: Optional[Mapping[str, Callable[[], LoginUI]]] = None) -> None:
        """
        Args:
            factories: UI factories keyed by UI kind (e.g. "browser", "direct").
        """
        self._factories: Dict[str, Callable[[], LoginUI]] = dict(factories or {})
        self._instances: Dict[str, LoginUI] = {}
        self._lock = threading.Lock()

    def register_factory(self, kind: str, factory: Callable[[], LoginUI]) -> None:
        with self._lock:
            self._factories[kind] = factory

    def get(self, provider: str, kind: str) -> LoginUI:
        """Get the UI of a provider, creating it on first use."""
        with self._lock:
            ui = self._instances.get(provider)
            if ui is None:
                factory = self._factories.get(kind)
                if factory is None:
                    raise InvalidArgumentError(
                        "kind", f"No login UI registered for kind '{kind}'"
                    )
                ui = factory()
                self._instances[provider] = ui
                logger.debug("Created %s login UI for %s", kind, provider)
            return ui

    def has_instance(self, provider: str) -> bool:
        with self._lock:
            return provider in self._instances
