"""
Core utilities package for CloudFS Auth.

This package provides shared configuration and the retry combinator.
"""

from .config import (
    AuthConfig,
    get_auth_config,
    reload_auth_config,
)
from .retry import (
    backoff_delays,
    retry_async,
    with_retry,
)

__all__ = [
    # Config
    "AuthConfig",
    "get_auth_config",
    "reload_auth_config",
    # Retry
    "backoff_delays",
    "retry_async",
    "with_retry",
]
