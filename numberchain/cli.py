# Number Chain - Collaborative Arithmetic Discussion Service
# Copyright (c) 2026 George Scott Foley
# ORCID: 0009-0006-4957-0540
# Email: Georgescottfoley@proton.me
# Licensed under the MIT License - see LICENSE file for details

"""
Command Line Interface

Usage:
    numberchain serve              # Start API server
    numberchain db init            # Create tables from ORM metadata
    numberchain db migrate         # alembic upgrade head
    numberchain db downgrade -1    # alembic downgrade
    numberchain db current         # Show the applied revision
    numberchain generate-secrets   # Print a fresh pair of token secrets
    numberchain check              # Validate configuration and database
"""

import asyncio
import secrets
import subprocess
import sys

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="numberchain", help="Number Chain - collaborative arithmetic discussions")
db_app = typer.Typer(help="Database management commands")
app.add_typer(db_app, name="db")

console = Console()

_STATUS_STYLES = {
    "ok": "[green]✓[/]",
    "warn": "[yellow]⚠[/]",
    "fail": "[red]✗[/]",
    "info": "[dim]○[/]",
}


# ============================================================
# SERVER
# ============================================================


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind to (default: settings.host)"),
    port: int = typer.Option(None, help="Port to bind to (default: settings.port)"),
    workers: int = typer.Option(None, help="Number of worker processes"),
    reload: bool = typer.Option(False, help="Enable auto-reload (development)"),
):
    """Start the API server."""
    import uvicorn

    from .core.settings import get_settings

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port

    console.print(
        f"[bold green]{settings.app_name}[/] on http://{host}:{port}{settings.api_base_path} "
        f"[dim]({settings.environment})[/]"
    )

    # Logging is configured by create_app, not by uvicorn
    uvicorn.run(
        "numberchain.gateway.app:create_app",
        factory=True,
        host=host,
        port=port,
        workers=1 if reload else (workers or settings.workers),
        reload=reload,
        log_config=None,
    )


# ============================================================
# DATABASE
# ============================================================


def _alembic(action: str, *args: str) -> None:
    result = subprocess.run(
        [sys.executable, "-m", "alembic", *args],
        capture_output=True,
        text=True,
    )
    output = (result.stdout + result.stderr).strip()

    if result.returncode != 0:
        console.print(f"[red]{action} failed[/]")
        if output:
            console.print(output)
        raise typer.Exit(1)

    console.print(f"[green]{action} completed[/]")
    if output:
        console.print(output)


@db_app.command("init")
def db_init():
    """Create all tables from ORM metadata (SQLite / development)."""
    from .core.settings import get_settings
    from .data.database import Database

    async def _create():
        database = Database(get_settings().database)
        try:
            await database.create_all()
        finally:
            await database.close()

    asyncio.run(_create())
    console.print("[green]Tables created[/]")


@db_app.command("migrate")
def db_migrate(revision: str = typer.Argument("head", help="Target revision")):
    """Upgrade the schema with Alembic."""
    _alembic(f"Upgrade to {revision}", "upgrade", revision)


@db_app.command("downgrade")
def db_downgrade(revision: str = typer.Argument(..., help="Target revision, e.g. -1")):
    """Downgrade the schema with Alembic."""
    _alembic(f"Downgrade to {revision}", "downgrade", revision)


@db_app.command("current")
def db_current():
    """Show the applied revision."""
    _alembic("Revision lookup", "current")


# ============================================================
# UTILITIES
# ============================================================


@app.command()
def version():
    """Show version information."""
    from . import __version__

    console.print(f"Number Chain v{__version__}")


@app.command()
def generate_secrets():
    """Print two independent token signing secrets for .env."""
    console.print("\n[bold green]Add these to your .env file:[/]\n")
    console.print(f"  SECURITY_ACCESS_TOKEN_SECRET={secrets.token_urlsafe(64)}")
    console.print(f"  SECURITY_REFRESH_TOKEN_SECRET={secrets.token_urlsafe(64)}")


async def _database_status(settings) -> tuple[str, str]:
    from .data.database import Database

    database = Database(settings.database)
    try:
        health = await database.health_check()
        return "ok", f"{health['backend']} reachable"
    except Exception as e:
        return "fail", f"{type(e).__name__}: {e}"
    finally:
        await database.close()


@app.command()
def check():
    """Validate configuration and database connectivity."""
    from .core.settings import DEV_ACCESS_TOKEN_SECRET, DEV_REFRESH_TOKEN_SECRET, Settings

    try:
        settings = Settings()
    except ValueError as e:
        console.print(f"[red]Configuration rejected:[/] {e}")
        raise typer.Exit(1)

    security = settings.security
    rows = [("Environment", "info", settings.environment)]

    if settings.database.url.startswith("sqlite"):
        rows.append(("Database backend", "warn", "SQLite (development only)"))
    else:
        rows.append(("Database backend", "ok", "PostgreSQL"))
    rows.append(("Database connection", *asyncio.run(_database_status(settings))))

    for label, value, default in (
        ("Access token secret", security.access_token_secret, DEV_ACCESS_TOKEN_SECRET),
        ("Refresh token secret", security.refresh_token_secret, DEV_REFRESH_TOKEN_SECRET),
    ):
        if value == default:
            rows.append((label, "warn", "development default (run: numberchain generate-secrets)"))
        else:
            rows.append((label, "ok", "configured"))

    if security.access_token_secret == security.refresh_token_secret:
        rows.append(("Secret separation", "fail", "access and refresh secrets are identical"))

    rows.append(
        (
            "Token lifetimes",
            "info",
            f"access {security.access_token_expire_minutes}m, "
            f"refresh {security.refresh_token_expire_days}d",
        )
    )

    table = Table(title="Configuration Check")
    table.add_column("Component", style="cyan")
    table.add_column("Status")
    table.add_column("Details", style="dim")
    for name, status, details in rows:
        table.add_row(name, _STATUS_STYLES[status], details)
    console.print(table)

    if any(status == "fail" for _, status, _ in rows):
        raise typer.Exit(1)


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
