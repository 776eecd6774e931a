"""TrailSync CLI — run the server and talk to the API from a terminal.

Usage:
    trailsync serve                               # Run the API with uvicorn
    trailsync init-db                             # Create tables (dev only; use alembic in prod)
    trailsync health                              # Server, database, storage status
    trailsync register a@b.com secret alice       # New account → token pair
    trailsync login a@b.com secret                # Token pair
    trailsync refresh <refresh-token>             # Rotate → new token pair
    trailsync logout <refresh-token>              # End one session
    trailsync me                                  # Profile for $TRAILSYNC_TOKEN
    trailsync posts --country Japan               # List trip posts
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from trailsync import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:5000"


def _api_url() -> str:
    return os.environ.get("TRAILSYNC_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the TrailSync backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _check(r: httpx.Response) -> dict | list:
    """Return the JSON body, or print the API's error message and exit."""
    if r.is_success:
        return r.json()
    try:
        body = r.json()
    except ValueError:
        body = None
    message = body.get("error", r.text) if isinstance(body, dict) else r.text
    click.secho(f"Error {r.status_code}: {message}", fg="red", err=True)
    raise click.exceptions.Exit(1)


def _token_from_ctx(token: Optional[str]) -> str:
    """Resolve an access token from flag or TRAILSYNC_TOKEN env var."""
    tok = token or os.environ.get("TRAILSYNC_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set TRAILSYNC_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _print_tokens(tokens: dict) -> None:
    click.secho("Access token:", bold=True)
    click.echo(f"  {tokens['token']}")
    click.secho("Refresh token:", bold=True)
    click.echo(f"  {tokens['refreshToken']}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="trailsync")
def main():
    """TrailSync — travel sharing platform backend."""


# ---------------------------------------------------------------------------
# Server management
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", default=None, type=int, help="Port (default from settings)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server with uvicorn."""
    import uvicorn

    from trailsync.config import settings

    uvicorn.run(
        "trailsync.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create all tables directly from the ORM models."""
    _run(_init_db_impl())


async def _init_db_impl():
    from trailsync.config import settings
    from trailsync.db.engine import build_engine
    from trailsync.db.models import Base

    engine = build_engine(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    click.secho("Tables created.", fg="green")


@main.command()
def health():
    """Show server, database, and upload storage status."""
    _run(_health_impl())


async def _health_impl():
    async with _client() as c:
        data = _check(await c.get("/health"))
        color = "green" if data.get("status") == "healthy" else "yellow"
        click.secho(f"Status: {data.get('status')}", fg=color, bold=True)
        for key in ("server", "database", "storage", "version"):
            click.echo(f"  {key:10s} {data.get(key, '—')}")


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.argument("password")
@click.argument("username")
@click.option(
    "--picture",
    type=click.Path(exists=True, dir_okay=False),
    help="Profile picture to upload",
)
def register(email: str, password: str, username: str, picture: Optional[str]):
    """Create an account and print its first token pair."""
    _run(_register_impl(email, password, username, picture))


async def _register_impl(email: str, password: str, username: str,
                         picture: Optional[str]):
    fields = {"email": email, "password": password, "username": username}
    async with _client() as c:
        if picture:
            with open(picture, "rb") as fh:
                files = {"profilePicture": (os.path.basename(picture), fh.read())}
            r = await c.post("/auth/register", data=fields, files=files)
        else:
            r = await c.post("/auth/register", json=fields)
        _print_tokens(_check(r))


@main.command()
@click.argument("email")
@click.argument("password")
def login(email: str, password: str):
    """Log in and print a new token pair."""
    _run(_login_impl(email, password))


async def _login_impl(email: str, password: str):
    async with _client() as c:
        r = await c.post("/auth/login", json={"email": email, "password": password})
        _print_tokens(_check(r))


@main.command()
@click.argument("refresh_token")
def refresh(refresh_token: str):
    """Exchange a refresh token for a new pair. The old one stops working."""
    _run(_refresh_impl(refresh_token))


async def _refresh_impl(refresh_token: str):
    async with _client() as c:
        r = await c.post("/auth/refresh-token", json={"refreshToken": refresh_token})
        _print_tokens(_check(r))


@main.command()
@click.argument("refresh_token")
def logout(refresh_token: str):
    """End the session that owns REFRESH_TOKEN."""
    _run(_logout_impl(refresh_token))


async def _logout_impl(refresh_token: str):
    async with _client() as c:
        r = await c.post("/auth/logout", json={"refreshToken": refresh_token})
        click.secho(_check(r)["message"], fg="green")


@main.command()
@click.option("--token", help="Access token (or set TRAILSYNC_TOKEN)")
def me(token: Optional[str]):
    """Show the profile behind an access token."""
    _run(_me_impl(_token_from_ctx(token)))


async def _me_impl(tok: str):
    async with _client() as c:
        r = await c.get("/auth/me", headers={"Authorization": f"Bearer {tok}"})
        click.echo(_pretty_json(_check(r)))


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


@main.command()
@click.option("--country", help="Only posts in this country")
@click.option("--city", help="Only posts in this city")
@click.option("--user", "user_id", help="Only posts by this user id")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def posts(country: Optional[str], city: Optional[str], user_id: Optional[str],
          as_json: bool):
    """List trip posts."""
    _run(_posts_impl(country, city, user_id, as_json))


async def _posts_impl(country: Optional[str], city: Optional[str],
                      user_id: Optional[str], as_json: bool):
    params = {
        k: v
        for k, v in {
            "location.country": country,
            "location.city": city,
            "user": user_id,
        }.items()
        if v
    }
    async with _client() as c:
        data = _check(await c.get("/post", params=params))

    if as_json:
        click.echo(_pretty_json(data))
        return
    if not data:
        click.echo("No posts found.")
        return

    click.secho(f"Posts ({len(data)}):", bold=True)
    click.echo()
    for p in data:
        loc = p["location"]
        place = f"{loc['city']}, {loc['country']}" if loc.get("city") else loc["country"]
        click.echo(
            f"  {p['id'][:8]}  {p['title'][:40]:40s}  {place:25s}  "
            f"{p['numberOfDays']}d  {p['price']}"
        )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
