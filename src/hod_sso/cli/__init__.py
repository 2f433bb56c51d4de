"""Command line interface entrypoint for the HOD SSO client."""

from __future__ import annotations
from .main import app, run


__all__ = ["app", "run"]
