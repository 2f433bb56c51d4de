"""Error taxonomy raised by the SSO authentication flow."""

from __future__ import annotations
from enum import Enum
from typing import Any


class SsoErrorKind(str, Enum):
    """Classification of a terminal flow failure."""

    APPLICATION = "APPLICATION"
    """The application backend returned a non-200 response."""
    HOD = "HOD"
    """HOD returned an error that does not trigger an SSO redirect."""
    SSO = "SSO"
    """The SSO page reported an explicit error through the redirect URL."""
    NO_USER_TOKEN = "NO_USER_TOKEN"
    """The SSO round trip completed without yielding a user session."""
    CROSS_DOMAIN_COOKIES = "CROSS_DOMAIN_COOKIES"
    """The browser appears to block third-party cookies for HOD."""
    NO_USERS_AUTHORISED = "NO_USERS_AUTHORISED"
    """The user has no application/user store pair to authenticate against."""

    @property
    def status_code(self) -> int:
        """Return the HTTP status a web caller should expose for this kind."""
        if self in {SsoErrorKind.APPLICATION, SsoErrorKind.HOD}:
            return 502
        if self is SsoErrorKind.NO_USERS_AUTHORISED:
            return 403
        return 401


class SsoError(RuntimeError):
    """Raised when the flow terminates with a classified failure."""

    def __init__(
        self,
        kind: SsoErrorKind,
        *,
        status: int | None = None,
        response: Any = None,
        sso_error: str | None = None,
        message: str | None = None,
    ) -> None:
        """Capture the classification and any response context."""
        super().__init__(message or _default_message(kind, status, sso_error))
        self.kind = kind
        self.status = status
        self.response = response
        self.sso_error = sso_error

    @property
    def status_code(self) -> int:
        """Return the upstream status when known, else the kind's default."""
        if self.status and self.kind in {SsoErrorKind.APPLICATION, SsoErrorKind.HOD}:
            return self.status
        return self.kind.status_code


def _default_message(
    kind: SsoErrorKind, status: int | None, sso_error: str | None
) -> str:
    if sso_error:
        return f"{kind.value} error: {sso_error}"
    if status is not None:
        return f"{kind.value} error (HTTP {status})"
    return f"{kind.value} error"


__all__ = ["SsoError", "SsoErrorKind"]
