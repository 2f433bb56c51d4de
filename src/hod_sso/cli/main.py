"""HOD SSO CLI entrypoint."""

from __future__ import annotations
import asyncio
import json
import logging
import sys
import webbrowser
from typing import Annotated
import click
import httpx
import typer
from dynaconf import Dynaconf
from rich.console import Console
from hod_sso.cli.output import (
    render_error,
    render_json,
    render_output,
    render_redirect,
)
from hod_sso.config import AuthenticationOptions, LogoutOptions, get_settings
from hod_sso.errors import SsoError
from hod_sso.flow import AuthenticationResult, authenticate
from hod_sso.logout import logout
from hod_sso.models import SsoRedirect


app = typer.Typer(help="Obtain and revoke Haven OnDemand combined tokens via SSO.")


def _parse_cookies(values: list[str]) -> dict[str, str]:
    cookies: dict[str, str] = {}
    for value in values:
        name, separator, cookie = value.partition("=")
        if not separator or not name:
            msg = f"Cookie '{value}' must be given as NAME=VALUE"
            raise typer.BadParameter(msg, param_hint="--cookie")
        cookies[name] = cookie
    return cookies


def _load_settings(console: Console) -> Dynaconf:
    try:
        return get_settings(refresh=True)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log every HTTP exchange."),
    ] = False,
) -> None:
    """Configure logging shared by all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@app.command("authenticate")
def authenticate_command(
    application_root: Annotated[
        str,
        typer.Option("--application-root", help="Root URL of the application."),
    ],
    current_url: Annotated[
        str,
        typer.Option(
            "--current-url",
            help="URL the flow runs from, including any SSO redirect parameters.",
        ),
    ],
    hod_domain: Annotated[
        str | None,
        typer.Option("--hod-domain", help="Override the HOD domain."),
    ] = None,
    sso_page: Annotated[
        str | None,
        typer.Option("--sso-page", help="Override the SSO page URL."),
    ] = None,
    cookie: Annotated[
        list[str] | None,
        typer.Option("--cookie", help="Session cookie as NAME=VALUE. Repeatable."),
    ] = None,
    open_browser: Annotated[
        bool,
        typer.Option("--open-browser", help="Open the SSO page when required."),
    ] = False,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the result as JSON."),
    ] = False,
) -> None:
    """Run the SSO flow and print the combined token or the SSO page URL."""
    console = Console()
    settings = _load_settings(console)
    try:
        options = AuthenticationOptions.from_settings(
            application_root,
            settings=settings,
            hod_domain=hod_domain,
            sso_page=sso_page,
        )
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    cookies = _parse_cookies(cookie or [])

    async def _run() -> AuthenticationResult:
        async with httpx.AsyncClient(
            cookies=cookies, timeout=settings.timeout
        ) as client:
            return await authenticate(options, current_url=current_url, client=client)

    try:
        result = asyncio.run(_run())
    except SsoError as exc:
        if as_json:
            typer.echo(
                json.dumps(
                    {
                        "error": exc.kind.value,
                        "status": exc.status,
                        "ssoError": exc.sso_error,
                        "response": exc.response,
                    }
                )
            )
        else:
            render_error(console, exc)
        raise typer.Exit(code=1) from exc

    if isinstance(result, SsoRedirect):
        if as_json:
            typer.echo(json.dumps({"redirect": result.url}))
        else:
            render_redirect(console, result)
        if open_browser:
            webbrowser.open(result.url)
        return

    if as_json:
        typer.echo(result.model_dump_json())
    else:
        render_output(console, result)


@app.command("logout")
def logout_command(
    combined_token: Annotated[
        str,
        typer.Option("--combined-token", help="Combined token to invalidate."),
    ],
    hod_domain: Annotated[
        str | None,
        typer.Option("--hod-domain", help="Override the HOD domain."),
    ] = None,
    hod_endpoint: Annotated[
        str | None,
        typer.Option("--hod-endpoint", help="Override the HOD API endpoint."),
    ] = None,
    logout_url: Annotated[
        str | None,
        typer.Option("--logout-url", help="Override the full logout URL."),
    ] = None,
) -> None:
    """Invalidate a combined token."""
    console = Console()
    settings = _load_settings(console)
    try:
        options = LogoutOptions.from_settings(
            combined_token,
            settings=settings,
            hod_domain=hod_domain,
            hod_endpoint=hod_endpoint,
            logout_url=logout_url,
        )
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    try:
        response = asyncio.run(logout(options))
    except SsoError as exc:
        render_error(console, exc)
        raise typer.Exit(code=1) from exc

    console.print("[green]Combined token invalidated.[/green]")
    if response is not None:
        render_json(console, response)


def run() -> None:
    """Entry point used by console scripts."""
    console = Console()
    try:
        exit_code = app(standalone_mode=False)
    except click.UsageError as exc:
        console.print(f"[red]Error:[/red] {exc.message}")
        if exc.ctx and exc.ctx.command_path:
            help_cmd = f"{exc.ctx.command_path} --help"
            console.print(f"\nRun '[cyan]{help_cmd}[/cyan]' for usage information.")
        sys.exit(1)
    if isinstance(exit_code, int) and exit_code:
        sys.exit(exit_code)


__all__ = ["app", "run"]
