"""Invalidate a combined token obtained through SSO."""

from __future__ import annotations
import logging
from typing import Any
import httpx
from hod_sso.config import LogoutOptions, get_settings
from hod_sso.errors import SsoErrorKind
from hod_sso.http import SsoHttpClient
from hod_sso.models import SignedRequest


logger = logging.getLogger(__name__)


async def logout(
    options: LogoutOptions, *, client: httpx.AsyncClient | None = None
) -> Any:
    """Delete the combined token described by ``options``.

    Raises:
        SsoError: Of kind ``HOD`` when HOD does not answer with 200.
    """
    request = SignedRequest(
        url=options.resolved_logout_url,
        verb="DELETE",
        token=options.combined_token,
    )
    logger.info("Logging out combined token via %s", request.url)

    http_client = client or httpx.AsyncClient(timeout=get_settings().timeout)
    try:
        return await SsoHttpClient(http_client).execute_signed_request(
            request, error_kind=SsoErrorKind.HOD
        )
    finally:
        if client is None:
            await http_client.aclose()


__all__ = ["logout"]
