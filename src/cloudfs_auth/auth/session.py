"""Value types exchanged during a gateway login."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from ..utils.constants import TokenTypes


@dataclass
class AuthSession:
    """
    Result of one successful login.

    Only ``refresh_credential`` is ever persisted. Secret values are kept out
    of ``repr()`` so sessions can be logged safely.
    """

    access_token: Optional[str]
    refresh_credential: Dict[str, str]
    expiry: Optional[datetime] = None
    token_type: str = TokenTypes.BEARER
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_token_response(
        cls,
        payload: Dict[str, Any],
        refresh_credential: Dict[str, str],
    ) -> "AuthSession":
        """Build a session from an OAuth token endpoint response."""
        expiry = None
        expires_in = payload.get("expires_in")
        if expires_in is not None:
            try:
                expiry = datetime.now(timezone.utc) + timedelta(seconds=int(expires_in))
            except (TypeError, ValueError):
                expiry = None
        return cls(
            access_token=payload.get("access_token"),
            refresh_credential=refresh_credential,
            expiry=expiry,
            token_type=(payload.get("token_type") or TokenTypes.BEARER).lower(),
        )

    @property
    def expired(self) -> bool:
        if self.expiry is None:
            return False
        return self.expiry <= datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return (
            f"AuthSession(token_type={self.token_type!r}, expiry={self.expiry!r}, "
            f"refresh_fields={sorted(self.refresh_credential)})"
        )


@dataclass(frozen=True)
class LoginRequest:
    """What the login UI is asked to present."""

    provider_label: str
    account: str
    authorization_uri: Optional[str] = None
    redirect_uri: Optional[str] = None
    state: Optional[str] = None

    @property
    def title(self) -> str:
        return f"{self.provider_label} authentication - {self.account}"
