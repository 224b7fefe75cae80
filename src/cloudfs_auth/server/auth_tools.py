"""Gateway authentication MCP tools for CloudFS Auth."""

import logging
from typing import Optional

from ..providers import PROVIDER_NAMES
from ..utils.errors import CloudAuthError, format_error
from .main import get_authenticator, mcp

logger = logging.getLogger(__name__)


def _check_provider(provider: str) -> Optional[str]:
    if provider not in PROVIDER_NAMES:
        return f"**Error:** Unknown provider '{provider}'. Known providers: {', '.join(PROVIDER_NAMES)}"
    return None


@mcp.tool()
async def login_gateway(provider: str, account: str, code: Optional[str] = None) -> str:
    """
    Log a cloud storage gateway in.

    A cached refresh credential is used silently when it is still valid.
    Otherwise the provider's login is presented: a browser window for OAuth
    providers, a console prompt for WebDAV and pCloud.

    Args:
        provider: Gateway provider (box, gdrive, hubic, onedrive, pcloud, webdav, yandex).
        account: The account to log in.
        code: Optional authorization code, or "user,password" for WebDAV and pCloud,
            used instead of presenting the login.

    Returns:
        Success message or error message.
    """
    error_message = _check_provider(provider)
    if error_message:
        return error_message

    try:
        await get_authenticator().login(provider, account, code)
        return f"Logged in {provider} gateway for {account}."
    except CloudAuthError as e:
        logger.error(format_error("Login", e))
        return f"**Error:** {format_error('Login', e)}"
    except Exception as e:
        logger.error(f"Unexpected error logging in {provider}: {e}", exc_info=True)
        return f"**Error:** An unexpected error occurred: {e}"


@mcp.tool()
async def purge_gateway_credentials(provider: str, account: Optional[str] = None) -> str:
    """
    Remove cached credentials of a gateway provider.

    Args:
        provider: Gateway provider (box, gdrive, hubic, onedrive, pcloud, webdav, yandex).
        account: The account to purge. Purges all accounts if omitted.

    Returns:
        Number of purged credentials or error message.
    """
    error_message = _check_provider(provider)
    if error_message:
        return error_message

    try:
        removed = await get_authenticator().logout(provider, account)
    except CloudAuthError as e:
        return f"**Error:** {format_error('Purge', e)}"

    target = account if account is not None else "all accounts"
    return f"Purged {removed} {provider} credential(s) for {target}."


@mcp.tool()
def list_gateway_accounts(provider: str) -> str:
    """
    List accounts with cached credentials, most recently used first.

    Args:
        provider: Gateway provider (box, gdrive, hubic, onedrive, pcloud, webdav, yandex).
    """
    error_message = _check_provider(provider)
    if error_message:
        return error_message

    try:
        accounts = get_authenticator().accounts(provider)
    except CloudAuthError as e:
        return f"**Error:** {format_error('Listing accounts', e)}"

    if not accounts:
        return f"No cached {provider} accounts."
    return "\n".join(f"- {account}" for account in accounts)
