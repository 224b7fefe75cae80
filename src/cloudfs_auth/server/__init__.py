"""CloudFS Auth MCP server."""

from .main import mcp, get_authenticator

from . import auth_tools

__all__ = ["mcp", "get_authenticator", "main"]


def main():
    """Entry point for the CloudFS Auth MCP server."""
    mcp.run(show_banner=False)
