"""Client-side single sign-on for Haven OnDemand combined tokens."""

from __future__ import annotations
from hod_sso.config import AuthenticationOptions, LogoutOptions, get_settings
from hod_sso.errors import SsoError, SsoErrorKind
from hod_sso.flow import (
    NO_USER_TOKEN_CODE,
    AuthenticationFlow,
    AuthenticationResult,
    FlowState,
    authenticate,
)
from hod_sso.logout import logout
from hod_sso.models import (
    Application,
    AuthenticationOutput,
    SignedRequest,
    SsoRedirect,
    UserStore,
    UserToken,
)


__all__ = [
    "NO_USER_TOKEN_CODE",
    "Application",
    "AuthenticationFlow",
    "AuthenticationOptions",
    "AuthenticationOutput",
    "AuthenticationResult",
    "FlowState",
    "LogoutOptions",
    "SignedRequest",
    "SsoError",
    "SsoErrorKind",
    "SsoRedirect",
    "UserStore",
    "UserToken",
    "authenticate",
    "get_settings",
    "logout",
]
