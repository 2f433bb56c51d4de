"""Runtime configuration helpers for the HOD SSO client."""

from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
from typing import Any
from dynaconf import Dynaconf
from hod_sso.errors import SsoErrorKind
from hod_sso.models import SignedRequest


_DEFAULTS: dict[str, object] = {
    "HOD_DOMAIN": "havenondemand.com",
    "SSO_PAGE": None,
    "LIST_APPLICATION_REQUEST_API": "/api/list-application-request",
    "COMBINED_REQUEST_API": "/api/combined-request",
    "COMBINED_PATCH_REQUEST_API": "/api/combined-patch-request",
    "MISSING_SESSION_KIND": SsoErrorKind.NO_USER_TOKEN.value,
    "TIMEOUT": 30.0,
}

_MISSING_SESSION_KINDS = {
    SsoErrorKind.NO_USER_TOKEN.value,
    SsoErrorKind.CROSS_DOMAIN_COOKIES.value,
}


def _build_loader() -> Dynaconf:
    """Create a Dynaconf loader wired to environment variables only."""
    return Dynaconf(
        envvar_prefix="HOD_SSO",
        settings_files=[],
        load_dotenv=True,
        environments=False,
    )


def _normalize_api_path(name: str, value: object) -> str:
    path = str(value).strip()
    if not path.startswith("/"):
        msg = f"HOD_SSO_{name} must start with '/'."
        raise ValueError(msg)
    return path


def _normalize_settings(source: Dynaconf) -> Dynaconf:
    """Validate and fill defaults on the raw Dynaconf settings."""
    normalized = Dynaconf(
        envvar_prefix="HOD_SSO",
        settings_files=[],
        load_dotenv=False,
        environments=False,
    )

    hod_domain = str(source.get("HOD_DOMAIN") or _DEFAULTS["HOD_DOMAIN"]).strip()
    if not hod_domain or "/" in hod_domain:
        msg = "HOD_SSO_HOD_DOMAIN must be a bare domain name."
        raise ValueError(msg)
    normalized.set("HOD_DOMAIN", hod_domain)

    sso_page = source.get("SSO_PAGE")
    normalized.set("SSO_PAGE", str(sso_page) if sso_page else None)

    for name in (
        "LIST_APPLICATION_REQUEST_API",
        "COMBINED_REQUEST_API",
        "COMBINED_PATCH_REQUEST_API",
    ):
        raw = source.get(name) or _DEFAULTS[name]
        normalized.set(name, _normalize_api_path(name, raw))

    kind_raw = source.get("MISSING_SESSION_KIND") or _DEFAULTS["MISSING_SESSION_KIND"]
    kind = str(kind_raw).upper()
    if kind not in _MISSING_SESSION_KINDS:
        msg = (
            "HOD_SSO_MISSING_SESSION_KIND must be either 'NO_USER_TOKEN' or "
            "'CROSS_DOMAIN_COOKIES'."
        )
        raise ValueError(msg)
    normalized.set("MISSING_SESSION_KIND", kind)

    timeout_raw = source.get("TIMEOUT", _DEFAULTS["TIMEOUT"])
    try:
        timeout = float(timeout_raw)
    except (TypeError, ValueError) as exc:
        raise ValueError("HOD_SSO_TIMEOUT must be a number.") from exc
    if timeout <= 0:
        raise ValueError("HOD_SSO_TIMEOUT must be greater than zero.")
    normalized.set("TIMEOUT", timeout)

    return normalized


@lru_cache(maxsize=1)
def _load_settings() -> Dynaconf:
    """Load settings once and cache the normalized Dynaconf instance."""
    return _normalize_settings(_build_loader())


def get_settings(*, refresh: bool = False) -> Dynaconf:
    """Return the cached Dynaconf settings, reloading them if requested."""
    if refresh:
        _load_settings.cache_clear()
    return _load_settings()


def default_sso_page(hod_domain: str) -> str:
    """Return the SSO page hosted for ``hod_domain``."""
    return f"https://dev.{hod_domain}/sso.html"


def default_hod_endpoint(hod_domain: str) -> str:
    """Return the HOD API endpoint for ``hod_domain``."""
    return f"https://api.{hod_domain}"


@dataclass(slots=True)
class AuthenticationOptions:
    """Options accepted by :func:`hod_sso.flow.authenticate`."""

    application_root: str
    hod_domain: str = str(_DEFAULTS["HOD_DOMAIN"])
    sso_page: str | None = None
    list_application_request: SignedRequest | None = None
    list_application_request_api: str = str(_DEFAULTS["LIST_APPLICATION_REQUEST_API"])
    combined_request_api: str = str(_DEFAULTS["COMBINED_REQUEST_API"])
    combined_patch_request_api: str = str(_DEFAULTS["COMBINED_PATCH_REQUEST_API"])
    missing_session_kind: SsoErrorKind = SsoErrorKind.NO_USER_TOKEN

    def __post_init__(self) -> None:
        """Reject configurations the flow cannot act on."""
        if not self.application_root:
            raise ValueError("application_root is required")
        self.application_root = self.application_root.rstrip("/")
        if isinstance(self.list_application_request, dict):
            self.list_application_request = SignedRequest.model_validate(
                self.list_application_request
            )
        self.missing_session_kind = SsoErrorKind(self.missing_session_kind)
        if self.missing_session_kind.value not in _MISSING_SESSION_KINDS:
            msg = (
                "missing_session_kind must be NO_USER_TOKEN or CROSS_DOMAIN_COOKIES"
            )
            raise ValueError(msg)

    @property
    def resolved_sso_page(self) -> str:
        """Return the SSO page URL, preferring an explicit override."""
        return self.sso_page or default_sso_page(self.hod_domain)

    def endpoint(self, api_path: str) -> str:
        """Return the absolute backend URL for ``api_path``."""
        return f"{self.application_root}{api_path}"

    @classmethod
    def from_settings(
        cls,
        application_root: str,
        *,
        settings: Dynaconf | None = None,
        **overrides: Any,
    ) -> AuthenticationOptions:
        """Build options from environment settings plus explicit overrides."""
        settings = settings or get_settings()
        values: dict[str, Any] = {
            "hod_domain": settings.hod_domain,
            "sso_page": settings.sso_page,
            "list_application_request_api": settings.list_application_request_api,
            "combined_request_api": settings.combined_request_api,
            "combined_patch_request_api": settings.combined_patch_request_api,
            "missing_session_kind": SsoErrorKind(settings.missing_session_kind),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(application_root=application_root, **values)


@dataclass(slots=True)
class LogoutOptions:
    """Options accepted by :func:`hod_sso.logout.logout`."""

    combined_token: str
    hod_domain: str = str(_DEFAULTS["HOD_DOMAIN"])
    hod_endpoint: str | None = None
    logout_url: str | None = None

    def __post_init__(self) -> None:
        """Require the token being invalidated."""
        if not self.combined_token:
            raise ValueError("combined_token is required")

    @property
    def resolved_logout_url(self) -> str:
        """Return the most specific logout URL configured."""
        if self.logout_url:
            return self.logout_url
        endpoint = self.hod_endpoint or default_hod_endpoint(self.hod_domain)
        return f"{endpoint.rstrip('/')}/2/authenticate/combined"

    @classmethod
    def from_settings(
        cls,
        combined_token: str,
        *,
        settings: Dynaconf | None = None,
        **overrides: Any,
    ) -> LogoutOptions:
        """Build options from environment settings plus explicit overrides."""
        settings = settings or get_settings()
        values: dict[str, Any] = {"hod_domain": settings.hod_domain}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(combined_token=combined_token, **values)


__all__ = [
    "AuthenticationOptions",
    "LogoutOptions",
    "default_hod_endpoint",
    "default_sso_page",
    "get_settings",
]
