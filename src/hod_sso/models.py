"""Data models exchanged between the backend, HOD and the flow."""

from __future__ import annotations
from collections.abc import Mapping, Sequence
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, field_validator


class _HodModel(BaseModel):
    """Base model accepting HOD's camelCase field names."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class SignedRequest(_HodModel):
    """A request to HOD signed by the application backend.

    The backend signs the request with its application unbound token; the
    client executes it exactly once.
    """

    url: str
    verb: str
    token: str
    body: str | None = None

    @field_validator("verb")
    @classmethod
    def _normalize_verb(cls, value: str) -> str:
        return value.upper()


class UserToken(_HodModel):
    """User session credential returned by the SSO page in the redirect URL."""

    type: str
    id: str
    secret: str

    def header_value(self) -> str:
        """Return the value sent in the ``userToken`` header."""
        return f"{self.type}:{self.id}:{self.secret}"

    @classmethod
    def from_query(cls, parameters: Mapping[str, Sequence[str]]) -> UserToken | None:
        """Build a token from parsed query parameters, if all parts are present."""
        parts: dict[str, str] = {}
        for name in ("type", "id", "secret"):
            values = parameters.get(name)
            if not values or not values[0]:
                return None
            parts[name] = values[0]
        return cls(**parts)


class Application(_HodModel):
    """A HOD application the user may authenticate against."""

    name: str
    domain: str
    description: str | None = None
    domain_description: str | None = Field(default=None, alias="domainDescription")


class UserStore(_HodModel):
    """The user store holding the authenticating user."""

    name: str = Field(alias="userStore")
    domain: str
    domain_description: str | None = Field(default=None, alias="domainDescription")


class ApplicationUser(UserStore):
    """One user entry of a list-applications response."""

    accounts: list[Any] = Field(default_factory=list)


class ApplicationListing(Application):
    """One element of a list-applications response."""

    users: list[ApplicationUser] = Field(default_factory=list)


CombinedToken = dict[str, Any]
"""Opaque combined token returned by HOD."""


class AuthenticationOutput(BaseModel):
    """Successful outcome of the authentication flow."""

    model_config = ConfigDict(frozen=True)

    application: Application
    user_store: UserStore
    accounts: list[Any]
    combined_token: CombinedToken


class SsoRedirect(BaseModel):
    """Navigation to the SSO page that ends the in-page flow."""

    model_config = ConfigDict(frozen=True)

    url: str
    app_token: str
    redirect_url: str


__all__ = [
    "Application",
    "ApplicationListing",
    "ApplicationUser",
    "AuthenticationOutput",
    "CombinedToken",
    "SignedRequest",
    "SsoRedirect",
    "UserStore",
    "UserToken",
]
