"""MCP Server initialization and entry point."""

from fastmcp import FastMCP

from ..gateway import GatewayAuthenticator, get_gateway_authenticator

# Initialize MCP Server
mcp = FastMCP("CloudFS Auth")


def get_authenticator() -> GatewayAuthenticator:
    """Get the global GatewayAuthenticator instance."""
    return get_gateway_authenticator()
