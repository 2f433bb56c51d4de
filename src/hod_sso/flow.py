"""The SSO authentication state machine.

The flow obtains a combined token for the current user in five steps, each
awaiting the previous one:

1. ask the application backend for a signed list-applications request,
2. execute it against HOD using the user's SSO session cookie,
3. pick the first application and user store returned,
4. ask the backend for a signed combined-token request for that pair,
5. execute it against HOD.

Whenever HOD reports that the user has no SSO session, the flow either hands
back an :class:`~hod_sso.models.SsoRedirect` to the SSO page or, when the
current URL shows the SSO page has already been visited, fails with a
classified :class:`~hod_sso.errors.SsoError` so the browser cannot loop.
"""

from __future__ import annotations
import logging
from enum import Enum
from typing import Any
import httpx
from pydantic import ValidationError
from hod_sso.config import AuthenticationOptions, get_settings
from hod_sso.errors import SsoError, SsoErrorKind
from hod_sso.http import SsoHttpClient
from hod_sso.models import (
    Application,
    ApplicationListing,
    AuthenticationOutput,
    SignedRequest,
    SsoRedirect,
    UserStore,
    UserToken,
)
from hod_sso.querystring import append_query, first_values, query_of


logger = logging.getLogger(__name__)

NO_USER_TOKEN_CODE = 12102
"""Error code returned by HOD when the request carries no SSO session."""

AUTHENTICATED_PARAMETER = "authenticated"
SSO_ERROR_PARAMETER = "error"


class FlowState(str, Enum):
    """Lifecycle of a single authentication attempt."""

    START = "start"
    FETCHING_LIST_REQUEST = "fetching_list_request"
    EXECUTING_LIST_REQUEST = "executing_list_request"
    FETCHING_COMBINED_REQUEST = "fetching_combined_request"
    EXECUTING_COMBINED_REQUEST = "executing_combined_request"
    SUCCESS = "success"
    REDIRECTING = "redirecting"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Return whether the flow has finished."""
        return self in {FlowState.SUCCESS, FlowState.REDIRECTING, FlowState.FAILED}


AuthenticationResult = AuthenticationOutput | SsoRedirect


class _Redirect(Exception):
    """Unwinds the flow once a redirect to the SSO page has been decided."""

    def __init__(self, redirect: SsoRedirect) -> None:
        super().__init__(redirect.url)
        self.redirect = redirect


class AuthenticationFlow:
    """Drive one authentication attempt for the page at ``current_url``."""

    def __init__(
        self,
        options: AuthenticationOptions,
        client: SsoHttpClient,
        *,
        current_url: str,
    ) -> None:
        """Capture the options and the URL the flow was started from."""
        self._options = options
        self._client = client
        self._current_url = current_url
        self._query = query_of(current_url)
        self._user_token = UserToken.from_query(self._query)
        self.state = FlowState.START

    def _transition(self, state: FlowState) -> None:
        logger.debug("Authentication flow %s -> %s", self.state.value, state.value)
        self.state = state

    async def run(self) -> AuthenticationResult:
        """Run the flow to completion.

        Returns:
            The authentication output, or the redirect the caller must follow.

        Raises:
            SsoError: When the flow fails. Raised at most once per flow.
            RuntimeError: When the flow has already been run.
        """
        if self.state is not FlowState.START:
            raise RuntimeError("An authentication flow can only be run once")

        try:
            output = await self._authenticate()
        except _Redirect as redirect:
            self._transition(FlowState.REDIRECTING)
            logger.info("Redirecting to SSO page %s", redirect.redirect.url)
            return redirect.redirect
        except SsoError as exc:
            self._transition(FlowState.FAILED)
            logger.warning("Authentication failed: %s", exc)
            raise

        self._transition(FlowState.SUCCESS)
        return output

    async def _authenticate(self) -> AuthenticationOutput:
        list_request = self._options.list_application_request
        if list_request is None:
            self._transition(FlowState.FETCHING_LIST_REQUEST)
            list_request = await self._client.fetch_signed_request(
                self._options.endpoint(self._options.list_application_request_api)
            )

        self._transition(FlowState.EXECUTING_LIST_REQUEST)
        listings = await self._execute(list_request)
        listing = _first_listing(listings)
        # TODO: Let the user choose the application and user store.
        user = listing.users[0]
        user_store = UserStore(
            name=user.name,
            domain=user.domain,
            domain_description=user.domain_description,
        )

        self._transition(FlowState.FETCHING_COMBINED_REQUEST)
        combined_request = await self._client.fetch_signed_request(
            self._options.endpoint(self._options.combined_request_api),
            params={
                "domain": listing.domain,
                "application": listing.name,
                "user-store-domain": user.domain,
                "user-store-name": user.name,
            },
        )

        self._transition(FlowState.EXECUTING_COMBINED_REQUEST)
        response = await self._execute(combined_request)
        if not isinstance(response, dict) or "token" not in response:
            raise SsoError(
                SsoErrorKind.HOD,
                status=200,
                response=response,
                message="HOD response did not contain a combined token",
            )

        return AuthenticationOutput(
            application=Application(
                name=listing.name,
                domain=listing.domain,
                description=listing.description,
                domain_description=listing.domain_description,
            ),
            user_store=user_store,
            accounts=list(user.accounts),
            combined_token=response["token"],
        )

    async def _execute(self, request: SignedRequest) -> Any:
        try:
            return await self._client.execute_signed_request(
                request, user_token=self._user_token
            )
        except SsoError as exc:
            await self._handle_hod_error(exc)
            raise

    async def _handle_hod_error(self, error: SsoError) -> None:
        """Decide whether a failed HOD request should send the user to SSO.

        Returns normally when ``error`` should propagate unchanged.
        """
        response = error.response
        if not isinstance(response, dict):
            return
        if response.get("error") != NO_USER_TOKEN_CODE:
            return

        parameters = first_values(self._query)
        if SSO_ERROR_PARAMETER in parameters:
            raise SsoError(
                SsoErrorKind.SSO,
                status=error.status,
                response=response,
                sso_error=parameters[SSO_ERROR_PARAMETER],
            ) from error

        if "true" in self._query.get(AUTHENTICATED_PARAMETER, []):
            # The SSO page was visited already and HOD still sees no session.
            raise SsoError(
                self._options.missing_session_kind,
                status=error.status,
                response=response,
            ) from error

        raise _Redirect(await self._build_redirect())

    async def _build_redirect(self) -> SsoRedirect:
        redirect_url = append_query(
            self._current_url, {AUTHENTICATED_PARAMETER: "true"}
        )
        patch_request = await self._client.fetch_signed_request(
            self._options.endpoint(self._options.combined_patch_request_api),
            params={"redirect-url": redirect_url},
        )
        url = append_query(
            self._options.resolved_sso_page,
            {"app_token": patch_request.token, "redirect_url": redirect_url},
        )
        return SsoRedirect(
            url=url,
            app_token=patch_request.token,
            redirect_url=redirect_url,
        )


def _first_listing(response: Any) -> ApplicationListing:
    """Return the first application listing that has at least one user."""
    if not isinstance(response, list):
        raise SsoError(
            SsoErrorKind.HOD,
            status=200,
            response=response,
            message="HOD returned an unrecognised application list",
        )
    if not response:
        raise SsoError(SsoErrorKind.NO_USERS_AUTHORISED, response=response)
    try:
        listing = ApplicationListing.model_validate(response[0])
    except ValidationError as exc:
        raise SsoError(
            SsoErrorKind.HOD,
            status=200,
            response=response,
            message="HOD returned an unrecognised application list",
        ) from exc
    if not listing.users:
        raise SsoError(SsoErrorKind.NO_USERS_AUTHORISED, response=response)
    return listing


async def authenticate(
    options: AuthenticationOptions,
    *,
    current_url: str,
    client: httpx.AsyncClient | None = None,
) -> AuthenticationResult:
    """Obtain a combined token for the user browsing ``current_url``.

    When ``client`` is omitted a new :class:`httpx.AsyncClient` is created for
    the attempt and closed afterwards; pass one carrying the user's cookies to
    reuse an existing session.
    """
    flow_client = client or httpx.AsyncClient(timeout=get_settings().timeout)
    try:
        flow = AuthenticationFlow(
            options, SsoHttpClient(flow_client), current_url=current_url
        )
        return await flow.run()
    finally:
        if client is None:
            await flow_client.aclose()


__all__ = [
    "AUTHENTICATED_PARAMETER",
    "AuthenticationFlow",
    "AuthenticationResult",
    "FlowState",
    "NO_USER_TOKEN_CODE",
    "SSO_ERROR_PARAMETER",
    "authenticate",
]
