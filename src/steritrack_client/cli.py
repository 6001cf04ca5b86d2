"""Command-line interface for the SteriTrack instrument tracking API."""
from __future__ import annotations

import json
import os
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from . import SteriTrackClient
from .auth.store import FileCredentialStore
from .cli_schema import CLI_TABLE_VIEWS, TableView
from .config import DEFAULT_CREDENTIAL_FILE
from .exceptions import SessionError, SteriTrackError
from .resources.base import unwrap_rows

app = typer.Typer(help="SteriTrack instrument reprocessing CLI.", no_args_is_help=True)

materials_app = typer.Typer(help="Material operations.")
users_app = typer.Typer(help="User operations.")
alerts_app = typer.Typer(help="Alert operations.")
app.add_typer(materials_app, name="materials")
app.add_typer(users_app, name="users")
app.add_typer(alerts_app, name="alerts")

console = Console(force_terminal=False, color_system=None)
err_console = Console(stderr=True, force_terminal=False, color_system=None)


class _SessionWatch:
    """Remember whether the client announced the end of the session."""

    def __init__(self) -> None:
        self.ended = False

    def __call__(self) -> None:
        self.ended = True


def _busy_hooks() -> tuple[Callable[[], None] | None, Callable[[], None] | None]:
    if not err_console.is_terminal:
        return None, None
    status = err_console.status("Talking to SteriTrack...")
    return status.start, status.stop


def _build_client(
    base_url: str,
    credentials: Path,
    verify_ssl: bool,
    cert_path: Path | None,
    timeout: float,
) -> SteriTrackClient:
    verify_target: bool | str
    if cert_path:
        expanded_cert = cert_path.expanduser()
        if not expanded_cert.exists():
            raise typer.BadParameter("Certificate file not found for --cert option.")
        if not verify_ssl:
            raise typer.BadParameter("Cannot combine --cert with --no-verify.")
        verify_target = str(expanded_cert)
    else:
        verify_target = verify_ssl

    on_busy, on_idle = _busy_hooks()
    return SteriTrackClient(
        base_url=base_url,
        store=FileCredentialStore(credentials),
        verify_ssl=verify_target,
        timeout=timeout,
        on_busy=on_busy,
        on_idle=on_idle,
    )


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


def _render_rich_table(view: TableView, rows: Sequence[Mapping[str, Any]]) -> None:
    table = Table(
        title=view.title,
        box=box.SIMPLE,
        show_lines=False,
        header_style="bold cyan",
    )
    for column in view.columns:
        table.add_column(column.header, justify=column.justify)
    ordered_rows = list(rows)
    if view.sort_key:
        ordered_rows.sort(key=view.sort_key)
    for row in ordered_rows:
        table.add_row(*(column.render(row) for column in view.columns))
    console.print(table)


def _present_output(payload: Any, *, view_id: str | None, json_output: bool) -> None:
    if json_output or view_id is None:
        _echo_json(payload)
        return
    view = CLI_TABLE_VIEWS.get(view_id)
    if not view:
        _echo_json(payload)
        return
    rows = unwrap_rows(payload)
    if not rows:
        _echo_json(payload)
        return
    _render_rich_table(view, rows)


def _handle_error(exc: SteriTrackError, watch: _SessionWatch | None = None) -> NoReturn:
    if watch is not None and watch.ended:
        typer.secho(
            "Session ended; run 'steritrack login' to sign in again.",
            err=True,
            fg=typer.colors.RED,
        )
        raise typer.Exit(code=1)
    if exc.status_code is None:
        message = f"Request failed: {exc}"
    else:
        message = f"Request failed (status {exc.status_code}): {exc}"
    if exc.details:
        message += f"\nDetails: {exc.details}"
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _shared_options() -> dict[str, Any]:  # pragma: no cover - helper indirection
    # Respect STERITRACK_VERIFY_SSL environment variable when present.
    # Accept common truthy/falsey representations (1/0, true/false, yes/no).
    env_verify = os.getenv("STERITRACK_VERIFY_SSL")
    if env_verify is None:
        default_verify = True
    else:
        default_verify = env_verify.strip().lower() not in {"0", "false", "no", "off"}

    return {
        "base_url": typer.Option(
            ..., "--base-url", envvar="STERITRACK_BASE_URL", help="SteriTrack API base URL."
        ),
        "credentials": typer.Option(
            DEFAULT_CREDENTIAL_FILE,
            "--credentials",
            envvar="STERITRACK_CREDENTIALS",
            help="File holding the stored session tokens.",
            show_default=True,
        ),
        "verify_ssl": typer.Option(
            default_verify,
            "--verify/--no-verify",
            envvar="STERITRACK_VERIFY_SSL",
            help="Enable or disable TLS certificate verification.",
            show_default=True,
        ),
        "cert_path": typer.Option(
            None,
            "--cert",
            envvar="STERITRACK_CA_CERT",
            help="Path to a custom CA bundle for TLS verification.",
        ),
        "timeout": typer.Option(30.0, help="Request timeout (seconds).", show_default=True),
        "output_json": typer.Option(
            False,
            "--json",
            "-j",
            help="Return raw JSON instead of rendering a table.",
        ),
    }


_SHARED_OPTIONS = _shared_options()


def _run_listing(
    client: SteriTrackClient,
    fetch: Callable[[SteriTrackClient], Any],
) -> Any:
    watch = _SessionWatch()
    unsubscribe = client.on_session_ended(watch)
    try:
        return fetch(client)
    except SteriTrackError as exc:
        _handle_error(exc, watch)
    finally:
        unsubscribe()


@app.command("login")
def login(
    email: str = typer.Option(..., "--email", "-e", envvar="STERITRACK_EMAIL", help="Account email."),
    password: str = typer.Option(
        ...,
        "--password",
        "-p",
        envvar="STERITRACK_PASSWORD",
        prompt=True,
        hide_input=True,
        help="Account password.",
    ),
    base_url: str = _SHARED_OPTIONS["base_url"],
    credentials: Path = _SHARED_OPTIONS["credentials"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
) -> None:
    """Sign in and store the issued tokens."""

    with _build_client(base_url, credentials, verify_ssl, cert_path, timeout) as client:
        try:
            user = client.login(email, password)
        except SteriTrackError as exc:
            _handle_error(exc)

    label = user.get("name") or user.get("email") or email
    typer.echo(f"Signed in as {label}.")


@app.command("logout")
def logout(
    base_url: str = _SHARED_OPTIONS["base_url"],
    credentials: Path = _SHARED_OPTIONS["credentials"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
) -> None:
    """Revoke the stored session and forget its tokens."""

    with _build_client(base_url, credentials, verify_ssl, cert_path, timeout) as client:
        client.logout()
    typer.echo("Signed out.")


@app.command("whoami")
def whoami(
    base_url: str = _SHARED_OPTIONS["base_url"],
    credentials: Path = _SHARED_OPTIONS["credentials"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
) -> None:
    """Show the signed-in user stored alongside the session tokens."""

    with _build_client(base_url, credentials, verify_ssl, cert_path, timeout) as client:
        try:
            user = client.current_user
        except SessionError as exc:
            typer.secho(f"{exc}; run 'steritrack login'.", err=True, fg=typer.colors.RED)
            raise typer.Exit(code=1)
    _echo_json(user)


@materials_app.command("list")
def materials_list(
    query: str | None = typer.Option(None, "--query", "-q", help="Free-text filter."),
    base_url: str = _SHARED_OPTIONS["base_url"],
    credentials: Path = _SHARED_OPTIONS["credentials"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
) -> None:
    """List tracked materials."""

    with _build_client(base_url, credentials, verify_ssl, cert_path, timeout) as client:
        payload = _run_listing(client, lambda c: c.materials.list({"q": query}))
    _present_output(payload, view_id="materials.list", json_output=output_json)


@users_app.command("list")
def users_list(
    role: str | None = typer.Option(None, "--role", help="Filter by role (ADMIN, TECH, AUDITOR)."),
    base_url: str = _SHARED_OPTIONS["base_url"],
    credentials: Path = _SHARED_OPTIONS["credentials"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
) -> None:
    """List operators."""

    with _build_client(base_url, credentials, verify_ssl, cert_path, timeout) as client:
        payload = _run_listing(
            client, lambda c: c.users.list({"role": role.upper() if role else None})
        )
    _present_output(payload, view_id="users.list", json_output=output_json)


@alerts_app.command("list")
def alerts_list(
    status: str | None = typer.Option(None, "--status", help="OPEN, ACKED or RESOLVED."),
    severity: str | None = typer.Option(None, "--severity", help="INFO, WARNING or CRITICAL."),
    base_url: str = _SHARED_OPTIONS["base_url"],
    credentials: Path = _SHARED_OPTIONS["credentials"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
    output_json: bool = _SHARED_OPTIONS["output_json"],
) -> None:
    """List process alerts, most severe first."""

    params = {
        "status": status.upper() if status else None,
        "severity": severity.upper() if severity else None,
    }
    with _build_client(base_url, credentials, verify_ssl, cert_path, timeout) as client:
        payload = _run_listing(client, lambda c: c.alerts.list(params))
    _present_output(payload, view_id="alerts.list", json_output=output_json)


@alerts_app.command("counts")
def alerts_counts(
    base_url: str = _SHARED_OPTIONS["base_url"],
    credentials: Path = _SHARED_OPTIONS["credentials"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    timeout: float = _SHARED_OPTIONS["timeout"],
) -> None:
    """Show open and critical alert counters."""

    with _build_client(base_url, credentials, verify_ssl, cert_path, timeout) as client:
        payload = _run_listing(client, lambda c: c.alerts.counts())
    _echo_json(payload)


def main() -> None:  # pragma: no cover - entrypoint
    app()


if __name__ == "__main__":  # pragma: no cover - module execution
    main()
