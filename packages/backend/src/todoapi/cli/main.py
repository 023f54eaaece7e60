"""todoapi CLI — run the server and manage your todos from the terminal.

Usage:
    todoapi serve                                # Run the API with uvicorn
    todoapi register me@example.com              # Create an account, print a token
    todoapi login me@example.com                 # Start a new session, print a token
    export TODOAPI_TOKEN=...                     # Use that token for the rest
    todoapi add "buy milk"                       # Create a todo
    todoapi list                                 # List your todos
    todoapi done <id> / todoapi undo <id>        # Toggle completion
    todoapi edit <id> "buy oat milk"             # Change the text
    todoapi rm <id>                              # Delete a todo
    todoapi logout                               # Revoke the current token
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import os
import sys
from datetime import datetime, timezone
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:3000"
AUTH_HEADER = "x-auth"


def _api_url() -> str:
    return os.environ.get("TODOAPI_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the todoapi backend."""
    headers = {AUTH_HEADER: token} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when an event loop is already running
    (e.g. CliRunner invoked from inside an async test).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _require_token(ctx: click.Context) -> str:
    token = ctx.obj.get("token")
    if not token:
        click.secho(
            "Error: --token required (or set TODOAPI_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return token


def _check(r: httpx.Response) -> None:
    """Exit with a readable message on any non-2xx response."""
    if r.status_code < 400:
        return
    if r.status_code == 401:
        message = "not authenticated (token missing, invalid or logged out)"
    elif r.status_code == 404:
        message = "todo not found"
    else:
        try:
            message = str(r.json().get("detail", r.text))
        except ValueError:
            message = r.text or r.reason_phrase
    click.secho(f"Error ({r.status_code}): {message}", fg="red", err=True)
    sys.exit(1)


def _format_ms(ms: Optional[int]) -> str:
    if ms is None:
        return "—"
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _print_todo(todo: dict) -> None:
    mark = click.style("x", fg="green") if todo["completed"] else " "
    click.echo(f"[{mark}] {todo['text']}")
    click.echo(f"    id:        {todo['id']}")
    click.echo(f"    completed: {_format_ms(todo.get('completedAt'))}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="todoapi")
@click.option("--token", envvar="TODOAPI_TOKEN", help="x-auth token (or set TODOAPI_TOKEN)")
@click.pass_context
def main(ctx: click.Context, token: Optional[str]):
    """todoapi — multi-user to-do list API."""
    ctx.ensure_object(dict)
    ctx.obj["token"] = token


@main.command()
@click.option("--host", default=None, help="Bind address (default: TODOAPI_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: TODOAPI_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from todoapi.config import settings

    uvicorn.run(
        "todoapi.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.password_option()
def register(email: str, password: str):
    """Create an account and print its first token."""
    _run(_session_impl("/users", email, password, "Registered"))


@main.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
def login(email: str, password: str):
    """Log in and print a new token (existing sessions stay valid)."""
    _run(_session_impl("/users/login", email, password, "Logged in as"))


async def _session_impl(path: str, email: str, password: str, verb: str):
    async with _client() as c:
        r = await c.post(path, json={"email": email, "password": password})
        _check(r)
        user = r.json()
        click.secho(f"{verb} {user['email']} ({user['id']})", fg="green")
        click.echo(f"export TODOAPI_TOKEN={r.headers[AUTH_HEADER]}")


@main.command()
@click.pass_context
def me(ctx: click.Context):
    """Show the account the current token belongs to."""
    _run(_me_impl(_require_token(ctx)))


async def _me_impl(token: str):
    async with _client(token) as c:
        r = await c.get("/users/me")
        _check(r)
        user = r.json()
        click.echo(f"{user['email']} ({user['id']})")


@main.command()
@click.pass_context
def logout(ctx: click.Context):
    """Revoke the current token."""
    _run(_logout_impl(_require_token(ctx)))


async def _logout_impl(token: str):
    async with _client(token) as c:
        r = await c.delete("/users/me/token")
        _check(r)
        click.secho("Logged out", fg="green")


# ---------------------------------------------------------------------------
# Todos
# ---------------------------------------------------------------------------


@main.command()
@click.argument("text")
@click.pass_context
def add(ctx: click.Context, text: str):
    """Create a todo."""
    _run(_add_impl(_require_token(ctx), text))


async def _add_impl(token: str, text: str):
    async with _client(token) as c:
        r = await c.post("/todos", json={"text": text})
        _check(r)
        todo = r.json()
        click.secho(f"Created {todo['id']}", fg="green")


@main.command(name="list")
@click.option("--json", "as_json", is_flag=True, help="Output raw JSON")
@click.pass_context
def list_todos(ctx: click.Context, as_json: bool):
    """List your todos."""
    _run(_list_impl(_require_token(ctx), as_json))


async def _list_impl(token: str, as_json: bool):
    async with _client(token) as c:
        r = await c.get("/todos")
        _check(r)
        todos = r.json()["todos"]

    if as_json:
        click.echo(r.text)
        return
    if not todos:
        click.echo("No todos.")
        return

    rows = [
        {
            "id": t["id"],
            "done": "x" if t["completed"] else "",
            "text": t["text"],
            "completed_at": _format_ms(t.get("completedAt")),
        }
        for t in todos
    ]
    _print_table(rows, [
        ("ID", "id", 36),
        ("DONE", "done", 4),
        ("TEXT", "text", 40),
        ("COMPLETED", "completed_at", 16),
    ])


@main.command()
@click.argument("todo_id")
@click.pass_context
def show(ctx: click.Context, todo_id: str):
    """Show one todo."""
    _run(_show_impl(_require_token(ctx), todo_id))


async def _show_impl(token: str, todo_id: str):
    async with _client(token) as c:
        r = await c.get(f"/todos/{todo_id}")
        _check(r)
        _print_todo(r.json()["todo"])


@main.command()
@click.argument("todo_id")
@click.pass_context
def done(ctx: click.Context, todo_id: str):
    """Mark a todo completed."""
    _run(_patch_impl(_require_token(ctx), todo_id, {"completed": True}))


@main.command()
@click.argument("todo_id")
@click.pass_context
def undo(ctx: click.Context, todo_id: str):
    """Mark a todo not completed."""
    _run(_patch_impl(_require_token(ctx), todo_id, {"completed": False}))


@main.command()
@click.argument("todo_id")
@click.argument("text")
@click.option("--done", "completed", is_flag=True, help="Also mark it completed")
@click.pass_context
def edit(ctx: click.Context, todo_id: str, text: str, completed: bool):
    """Change a todo's text.

    The API resets completion on every update unless completed is sent,
    so pass --done to keep a completed todo completed.
    """
    _run(_patch_impl(_require_token(ctx), todo_id, {"text": text, "completed": completed}))


async def _patch_impl(token: str, todo_id: str, body: dict):
    async with _client(token) as c:
        r = await c.patch(f"/todos/{todo_id}", json=body)
        _check(r)
        _print_todo(r.json()["todo"])


@main.command()
@click.argument("todo_id")
@click.pass_context
def rm(ctx: click.Context, todo_id: str):
    """Delete a todo."""
    _run(_rm_impl(_require_token(ctx), todo_id))


async def _rm_impl(token: str, todo_id: str):
    async with _client(token) as c:
        r = await c.delete(f"/todos/{todo_id}")
        _check(r)
        todo = r.json()["todo"]
        click.secho(f"Deleted {todo['id']}: {todo['text']}", fg="green")
