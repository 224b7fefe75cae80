"""
Gateway providers for CloudFS Auth.

Each provider implements the CloudProvider capability set consumed by the
login orchestrator. ``create_provider`` builds a provider from configuration.
"""

from typing import Optional

from ..core.config import AuthConfig, get_auth_config
from .base import CloudProvider, DirectCredentialProvider
from .google_drive import GoogleDriveProvider
from .oauth2 import OAUTH2_PRESETS, OAuth2Endpoints, OAuth2Provider
from .pcloud import PCloudProvider
from .webdav import WebDAVProvider

PROVIDER_NAMES = tuple(sorted([*OAUTH2_PRESETS, "gdrive", "pcloud", "webdav"]))


def create_provider(name: str, config: Optional[AuthConfig] = None) -> CloudProvider:
    """
    Create a provider from configuration.

    Raises:
        KeyError: If the provider name is unknown.
        InvalidArgumentError: If required settings (client id, base address) are missing.
    """
    config = config or get_auth_config()

    if name in OAUTH2_PRESETS:
        endpoints = OAUTH2_PRESETS[name]
        client_id, client_secret = config.get_client_credentials(name)
        return OAuth2Provider(
            name,
            endpoints,
            client_id,
            client_secret,
            config.get_redirect_uri(endpoints.redirect_path),
        )
    if name == "gdrive":
        client_id, client_secret = config.get_client_credentials(name)
        return GoogleDriveProvider(
            client_id, client_secret, config.get_redirect_uri("oauth2callback")
        )
    if name == "pcloud":
        return PCloudProvider()
    if name == "webdav":
        return WebDAVProvider(config.webdav_base_address)

    raise KeyError(f"Unknown provider '{name}'. Known providers: {', '.join(PROVIDER_NAMES)}")


__all__ = [
    "CloudProvider",
    "DirectCredentialProvider",
    "GoogleDriveProvider",
    "OAuth2Endpoints",
    "OAuth2Provider",
    "OAUTH2_PRESETS",
    "PCloudProvider",
    "PROVIDER_NAMES",
    "WebDAVProvider",
    "create_provider",
]
