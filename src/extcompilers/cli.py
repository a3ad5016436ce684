"""Command-line interface for extensibility compilers.

Example:
    >>> # From terminal:
    >>> # extcompilers --version
    >>> # extcompilers points
    >>> # extcompilers invoke send-phone-message my_ext:extension --body body.json
    >>> # extcompilers serve send-phone-message my_ext:extension --port 8080
"""

from __future__ import annotations

import asyncio
import importlib
import json
import sys
from pathlib import Path
from typing import Annotated, Any, Optional

import typer

from extcompilers import __version__
from extcompilers.config import load_secrets_from_env, load_settings
from extcompilers.errors import UnknownExtensibilityPointError
from extcompilers.observability import configure_logging
from extcompilers.registry import get_default_registry
from extcompilers.transport.base import RequestContext
from extcompilers.transport.memory import MemoryTransport
from extcompilers.types import UserFunction

app = typer.Typer(help="Compile and run callback-style extensibility points.")

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"extcompilers {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version."),
    ] = None,
) -> None:
    """Compile and run callback-style extensibility points."""
    settings = load_settings()
    configure_logging(
        log_format=settings.log_format,
        log_level=settings.log_level,
        service_name=settings.service_name,
    )


def load_user_function(target: str) -> UserFunction:
    """Import ``module:attribute`` and return the callable it names."""
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise typer.BadParameter(f"Expected module:function, got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise typer.BadParameter(f"Cannot import {module_name}: {exc}") from exc
    obj: Any = module
    for part in attribute.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise typer.BadParameter(f"{module_name} has no attribute {attribute}") from None
    if not callable(obj):
        raise typer.BadParameter(f"{target} is not callable")
    return obj


def _parse_pairs(values: list[str], separator: str, option: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition(separator)
        if not sep or not key.strip():
            raise typer.BadParameter(f"{option} expects KEY{separator}VALUE, got {item!r}")
        pairs[key.strip()] = value.strip()
    return pairs


def _read_body(body: Optional[Path]) -> bytes:
    if body is None:
        return b""
    if str(body) == "-":
        return sys.stdin.buffer.read()
    if not body.is_file():
        raise typer.BadParameter(f"Body file not found: {body}")
    return body.read_bytes()


@app.command("points")
def points(
    as_json: Annotated[bool, typer.Option("--json", help="Print as JSON.")] = False,
) -> None:
    """List registered extensibility points and their user function signatures."""
    registry = get_default_registry()
    entries = []
    for name in registry.list_points():
        point = registry.get(name)
        entries.append(
            {
                "name": point.name,
                "arguments": [*point.argument_names, "callback"],
                "authenticated": point.authenticated,
            }
        )
    if as_json:
        typer.echo(json.dumps(entries, indent=2))
        return
    for entry in entries:
        typer.echo(f"{entry['name']}({', '.join(entry['arguments'])})")


@app.command("invoke")
def invoke(
    point: Annotated[str, typer.Argument(help="Extensibility point type.")],
    target: Annotated[str, typer.Argument(help="User function as module:function.")],
    body: Annotated[
        Optional[Path],
        typer.Option("--body", "-b", help="JSON body file, or - for stdin."),
    ] = None,
    method: Annotated[str, typer.Option("--method", "-X", help="HTTP method.")] = "POST",
    header: Annotated[
        Optional[list[str]],
        typer.Option("--header", "-H", help="Request header as Name: value."),
    ] = None,
    secret: Annotated[
        Optional[list[str]],
        typer.Option("--secret", "-s", help="Secret as name=value (adds to EXTCOMPILERS_SECRET_*)."),
    ] = None,
) -> None:
    """Run a user function through the full request pipeline and print the envelope.

    Exits with status 1 when the envelope reports an error.
    """
    user_function = load_user_function(target)
    headers = _parse_pairs(header or [], ":", "--header")
    secrets = {**load_secrets_from_env(), **_parse_pairs(secret or [], "=", "--secret")}
    settings = load_settings()

    try:
        handler = get_default_registry().compile(
            point, user_function, bodyless_methods=settings.bodyless_methods
        )
    except UnknownExtensibilityPointError as exc:
        raise typer.BadParameter(exc.message) from exc
    except TypeError as exc:
        raise typer.BadParameter(str(exc)) from exc

    transport = MemoryTransport(body=_read_body(body), method=method, headers=headers)
    asyncio.run(handler(RequestContext.from_transport(transport, secrets=secrets)))

    typer.echo(transport.response.body)
    if transport.envelope.get("status") != "success":
        raise typer.Exit(code=1)


@app.command("serve")
def serve(
    point: Annotated[str, typer.Argument(help="Extensibility point type.")],
    target: Annotated[str, typer.Argument(help="User function as module:function.")],
    host: Annotated[str, typer.Option("--host", help="Bind address.")] = DEFAULT_HOST,
    port: Annotated[int, typer.Option("--port", "-p", help="Bind port.")] = DEFAULT_PORT,
) -> None:
    """Serve a user function over HTTP at /<point> (secrets from EXTCOMPILERS_SECRET_*)."""
    import uvicorn

    from extcompilers.transport.asgi import create_app

    user_function = load_user_function(target)
    settings = load_settings()
    try:
        handler = get_default_registry().compile(
            point, user_function, bodyless_methods=settings.bodyless_methods
        )
    except UnknownExtensibilityPointError as exc:
        raise typer.BadParameter(exc.message) from exc
    except TypeError as exc:
        raise typer.BadParameter(str(exc)) from exc

    application = create_app({point: handler}, secrets=load_secrets_from_env())
    uvicorn.run(application, host=host, port=port, log_config=None)


if __name__ == "__main__":
    app()
