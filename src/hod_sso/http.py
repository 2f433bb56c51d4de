"""HTTP helpers executing signed HOD requests and backend lookups."""

from __future__ import annotations
import logging
from collections.abc import Mapping
from typing import Any
import httpx
from pydantic import ValidationError
from hod_sso.errors import SsoError, SsoErrorKind
from hod_sso.models import SignedRequest, UserToken
from hod_sso.querystring import QueryParameters, append_query


logger = logging.getLogger(__name__)

TOKEN_HEADER = "token"
USER_TOKEN_HEADER = "userToken"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class SsoHttpClient:
    """Small wrapper around :class:`httpx.AsyncClient` for the SSO flow.

    The wrapped client's cookie jar plays the part of the browser's
    credentials: the HOD session cookie travels with every signed request and
    the application session cookie with every backend lookup.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        """Bind the helper to an existing asynchronous client."""
        self._client = client

    async def _send(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None,
        content: str | None,
        error_kind: SsoErrorKind,
    ) -> Any:
        logger.debug("Sending %s %s", method, url)
        try:
            response = await self._client.request(
                method, url, headers=headers, content=content
            )
        except httpx.TransportError as exc:
            logger.warning("Request %s %s failed: %s", method, url, exc)
            raise SsoError(
                error_kind, message=f"Unable to reach {url}: {exc}"
            ) from exc

        payload = _safe_json(response)
        if response.status_code != 200:
            logger.debug(
                "Request %s %s returned HTTP %s", method, url, response.status_code
            )
            raise SsoError(error_kind, status=response.status_code, response=payload)
        return payload

    async def execute_signed_request(
        self,
        request: SignedRequest,
        *,
        user_token: UserToken | None = None,
        error_kind: SsoErrorKind = SsoErrorKind.HOD,
    ) -> Any:
        """Execute ``request`` against HOD and return the parsed JSON body.

        Raises:
            SsoError: With ``error_kind`` when HOD answers with anything but 200
                or cannot be reached.
        """
        headers = {TOKEN_HEADER: request.token}
        if user_token is not None:
            headers[USER_TOKEN_HEADER] = user_token.header_value()
        if request.body:
            headers["Content-Type"] = FORM_CONTENT_TYPE
        return await self._send(
            request.verb,
            request.url,
            headers=headers,
            content=request.body or None,
            error_kind=error_kind,
        )

    async def fetch_signed_request(
        self, url: str, *, params: QueryParameters | None = None
    ) -> SignedRequest:
        """Ask the application backend to sign a HOD request.

        Raises:
            SsoError: Of kind ``APPLICATION`` when the backend fails or returns
                something other than a signed request.
        """
        if params:
            url = append_query(url, params)
        payload = await self._send(
            "GET",
            url,
            headers=None,
            content=None,
            error_kind=SsoErrorKind.APPLICATION,
        )
        try:
            return SignedRequest.model_validate(payload)
        except ValidationError as exc:
            raise SsoError(
                SsoErrorKind.APPLICATION,
                status=200,
                response=payload,
                message=f"Backend returned an invalid signed request from {url}",
            ) from exc


__all__ = [
    "FORM_CONTENT_TYPE",
    "SsoHttpClient",
    "TOKEN_HEADER",
    "USER_TOKEN_HEADER",
]
