"""Command-line interface for restcli.

Provides the main entry point for starting the HTTP server, listing
the registered commands, or running a single command locally through
the same engine the server uses.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="restcli",
        description="Run operator-declared shell commands over HTTP",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/restcli.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP server")
    serve_parser.add_argument("--host", type=str, default=None, help="Override server.host")
    serve_parser.add_argument("--port", type=int, default=None, help="Override server.port")

    subparsers.add_parser("list", help="List the registered command IDs")

    run_parser = subparsers.add_parser("run", help="Run one registered command locally")
    run_parser.add_argument("command_id", help="Registered command ID")
    run_parser.add_argument(
        "-p", "--param",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Request parameter (repeatable)",
    )
    run_parser.add_argument("--body", type=str, default=None, help="Request body")
    run_parser.add_argument(
        "--content-type", type=str, default=None,
        help="Override the response content type",
    )

    return parser.parse_args(argv)


def parse_params(pairs: list[str]) -> dict[str, str]:
    """Turn ``NAME=VALUE`` strings into a parameter mapping."""
    params: dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise ValueError(f"Expected NAME=VALUE, got {pair!r}")
        params[name] = value
    return params


async def _run_command(settings, args) -> None:
    """Invoke one command through the engine and print the response body."""
    from restcli.config.settings import build_registry
    from restcli.domain.models import InvocationRequest
    from restcli.endpoint.server import build_usage
    from restcli.engine.invoker import CommandEngine
    from restcli.engine.runner import ProcessRunner

    registry = build_registry(settings)
    engine = CommandEngine(
        registry,
        ProcessRunner(max_output_bytes=settings.server.max_output_bytes),
        usage=build_usage(registry),
    )
    request = InvocationRequest(
        command_id=args.command_id,
        parameters=parse_params(args.param),
        body=args.body,
        content_type_override=args.content_type,
    )
    result = await engine.invoke(request)
    logger.debug("Response content type: %s", result.content_type)
    sys.stdout.write(result.body)
    if not result.body.endswith("\n"):
        sys.stdout.write("\n")


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the restcli CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from restcli.config.settings import ConfigError, build_registry, load_settings
    from restcli.utils.logging import setup_logging

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "serve":
        from restcli.endpoint.server import create_app
        import uvicorn

        host = args.host or settings.server.host
        port = args.port or settings.server.port
        logger.info("Starting server on %s:%d", host, port)
        app = create_app(settings)
        uvicorn.run(app, host=host, port=port, log_config=None)

    elif args.command == "list":
        registry = build_registry(settings)
        for command_id in registry.ids():
            description = registry.resolve(command_id).description
            print(f"{command_id}\t{description}" if description else command_id)

    elif args.command == "run":
        try:
            asyncio.run(_run_command(settings, args))
        except ValueError as e:
            print(f"error: {e}", file=sys.stderr)
            sys.exit(2)


if __name__ == "__main__":
    main()
