"""
Configuration management for CloudFS gateway authentication.

This module centralizes configuration values read from the environment
(optionally from a ``.env`` file) to avoid hardcoded values scattered
throughout the codebase.
"""

import os
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv

from ..utils.constants import DEFAULT_CALLBACK_PORT, DEFAULT_LOGIN_TIMEOUT, DEFAULT_RETRIES

load_dotenv()

ENV_PREFIX = "CLOUDFS"


class AuthConfig:
    """
    Centralized authentication configuration.

    Provides a single source of truth for settings file location, pass phrase,
    the local redirect server, retry policy and per-provider client secrets.
    """

    def __init__(self) -> None:
        # Settings file holding the encrypted credential records
        self.settings_path = os.path.expanduser(
            os.getenv(
                f"{ENV_PREFIX}_SETTINGS_PATH", "~/.config/cloudfs/credentials.json"
            )
        )
        self.settings_pass_phrase = os.getenv(f"{ENV_PREFIX}_SETTINGS_PASSPHRASE")

        # Local redirect server for browser logins
        self.callback_base_uri = os.getenv(
            f"{ENV_PREFIX}_CALLBACK_BASE_URI", "http://localhost"
        )
        self.callback_port = int(
            os.getenv(f"{ENV_PREFIX}_CALLBACK_PORT", str(DEFAULT_CALLBACK_PORT))
        )
        self.login_timeout = float(
            os.getenv(f"{ENV_PREFIX}_LOGIN_TIMEOUT", str(DEFAULT_LOGIN_TIMEOUT))
        )

        # Retries for transient provider failures
        self.retries = int(os.getenv(f"{ENV_PREFIX}_RETRIES", str(DEFAULT_RETRIES)))

        # WebDAV endpoint
        self.webdav_base_address = os.getenv(f"{ENV_PREFIX}_WEBDAV_BASE_ADDRESS")

    def get_redirect_uri(self, path: str) -> str:
        """Get the redirect URI served by the local redirect server."""
        return f"{self.callback_base_uri}:{self.callback_port}/{path.lstrip('/')}"

    def get_client_credentials(self, provider: str) -> Tuple[Optional[str], Optional[str]]:
        """Get the OAuth client id and secret configured for a provider."""
        name = provider.upper().replace("-", "_")
        return (
            os.getenv(f"{ENV_PREFIX}_{name}_CLIENT_ID"),
            os.getenv(f"{ENV_PREFIX}_{name}_CLIENT_SECRET"),
        )

    def is_encrypted(self) -> bool:
        """Check if credentials are encrypted at rest."""
        return bool(self.settings_pass_phrase)

    def get_environment_summary(self) -> Dict[str, Any]:
        """Get a summary of the current configuration (excluding secrets)."""
        return {
            "settings_path": self.settings_path,
            "encrypted": self.is_encrypted(),
            "callback_base_uri": self.callback_base_uri,
            "callback_port": self.callback_port,
            "login_timeout": self.login_timeout,
            "retries": self.retries,
            "webdav_base_address": self.webdav_base_address,
        }


# Global configuration instance
_auth_config: Optional[AuthConfig] = None


def get_auth_config() -> AuthConfig:
    """Get the global authentication configuration instance."""
    global _auth_config
    if _auth_config is None:
        _auth_config = AuthConfig()
    return _auth_config


def reload_auth_config() -> AuthConfig:
    """Reload the authentication configuration from environment variables."""
    global _auth_config
    _auth_config = AuthConfig()
    return _auth_config
