"""
Authentication package for CloudFS gateways.

This package provides:
- Synchronized, encrypted credential storage shared by all providers
- Login UIs (browser redirect and console form) with a per-provider registry
- The login orchestrator driving silent refresh and interactive login
"""

from .settings_file import SynchronizedSettingsFile, get_settings_file
from .credential_store import CredentialRecord, CredentialStore
from .session import AuthSession, LoginRequest
from .login_ui import DirectLogOn, LoginUI, LoginUIRegistry, parse_redirect_parameters
from .oauth_callback_server import (
    BrowserLogOn,
    RedirectServer,
    cleanup_redirect_servers,
    get_redirect_server,
)
from .orchestrator import LoginOrchestrator, LoginState

__all__ = [
    # Storage
    "SynchronizedSettingsFile",
    "get_settings_file",
    "CredentialRecord",
    "CredentialStore",
    # Sessions
    "AuthSession",
    "LoginRequest",
    # Login UIs
    "LoginUI",
    "LoginUIRegistry",
    "DirectLogOn",
    "BrowserLogOn",
    "RedirectServer",
    "get_redirect_server",
    "cleanup_redirect_servers",
    "parse_redirect_parameters",
    # Orchestration
    "LoginOrchestrator",
    "LoginState",
]
