"""Output helpers for rendering flow results in the CLI."""

from __future__ import annotations
from typing import Any
from rich.console import Console
from rich.pretty import Pretty
from rich.table import Table
from rich.text import Text
from hod_sso.errors import SsoError
from hod_sso.models import AuthenticationOutput, SsoRedirect


def render_json(console: Console, payload: Any, *, title: str | None = None) -> None:
    """Render a JSON-like payload using Rich's pretty printer."""
    if title:
        console.print(Text(title, style="bold"))
    console.print(Pretty(payload, indent_guides=True))


def render_output(console: Console, output: AuthenticationOutput) -> None:
    """Render the application, user store and combined token obtained."""
    table = Table(title="Authenticated", show_lines=False)
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Application", output.application.name)
    table.add_row("Domain", output.application.domain)
    table.add_row("User store", output.user_store.name)
    table.add_row("User store domain", output.user_store.domain)
    table.add_row("Accounts", str(len(output.accounts)))
    console.print(table)
    render_json(console, output.combined_token, title="Combined token")


def render_redirect(console: Console, redirect: SsoRedirect) -> None:
    """Tell the user where to sign in before trying again."""
    console.print("[yellow]No SSO session. Sign in at:[/yellow]")
    console.print(redirect.url, soft_wrap=True)


def render_error(console: Console, error: SsoError) -> None:
    """Render a classified flow failure."""
    console.print(f"[red]Error ({error.kind.value}):[/red] {error}")
    if error.sso_error:
        console.print(f"SSO page reported: {error.sso_error}")
    if error.response is not None:
        render_json(console, error.response, title="Response")


__all__ = ["render_error", "render_json", "render_output", "render_redirect"]
