"""CloudFS Auth - credential lifecycle for cloud-storage gateways.

This package logs gateways (Box, hubiC, OneDrive, Google Drive, WebDAV) into
their storage services, caching refresh credentials encrypted at rest and
falling back to an interactive login only when silent refresh fails.
"""
from .gateway import GatewayAuthenticator, get_gateway_authenticator

__version__ = "0.1.0"
__all__ = ["GatewayAuthenticator", "get_gateway_authenticator"]
