"""FastAPI HTTP server for the command endpoint.

Receives command invocations over HTTP and hands them to the command
engine, which runs the registered program and chooses the response
body and content type.

Endpoints:

    GET      /                          -> usage text
    GET      /health                    -> {"status": "ok", ...}
    GET      /api/1/cli/list            -> {"data": [<id>, ...], "error": ""}
    GET|POST /api/1/cli/run/<commandID>?<param>=<value>[&contentType=<type>]
"""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from restcli import __version__
from restcli.config.settings import Settings, build_registry
from restcli.domain.models import InvocationRequest, InvocationResult
from restcli.engine.invoker import CommandEngine, error_payload
from restcli.engine.registry import CommandRegistry
from restcli.engine.runner import ProcessRunner

logger = logging.getLogger(__name__)

API_PREFIX = "/api/1/cli"
CONTENT_TYPE_PARAM = "contentType"


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = __version__
    commands: int = 0


def build_usage(registry: CommandRegistry) -> list[str]:
    """Usage text listing the routes and the registered command IDs."""
    return [
        "REST CLI usage:",
        f"- Execute command:  GET {API_PREFIX}/run/<commandID>?<param>=<value>",
        "  - <commandID>: Registered command ID",
        "  - POST the same URI to send a request body to the command",
        "  - optionally add return content-type, such as:",
        f"    GET {API_PREFIX}/run/echo?text=hello+world&{CONTENT_TYPE_PARAM}=text/plain",
        f"- Query command IDs:  GET {API_PREFIX}/list",
        '  - return: { "data": ["<id1>", "<id2>"], "error": "" }',
        "  - Currently registered command IDs:",
        "    " + ", ".join(registry.ids()),
        f"- Version: {__version__}",
    ]


def summarize(body: str, head: int = 100, tail: int = 30) -> str:
    """One-line audit summary of a response body."""
    flat = re.sub(r"[\n\r]+", " ", body)
    if len(flat) >= head + tail:
        return f"{flat[:head]} ... {flat[-tail:]}"
    return flat


def create_app(
    settings: Settings | None = None,
    engine: CommandEngine | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Loaded settings; defaults are used when None.
        engine: Optional pre-built engine (for testing). Built from
                ``settings`` when None.
    """
    settings = settings or Settings()
    if engine is None:
        registry = build_registry(settings)
        engine = CommandEngine(
            registry,
            ProcessRunner(max_output_bytes=settings.server.max_output_bytes),
            usage=build_usage(registry),
        )
    usage = build_usage(engine.registry)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Endpoint started with %d commands: %s",
            len(engine.registry), ", ".join(engine.list_commands()),
        )
        yield
        logger.info("Endpoint stopped")

    app = FastAPI(
        title="restcli",
        description="Run operator-declared shell commands over HTTP",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.engine = engine

    def _send(request: Request, result: InvocationResult) -> Response:
        target = request.url.path
        if request.url.query:
            target += "?" + request.url.query
        logger.info("%s, %s", target, summarize(result.body))
        return Response(content=result.body, media_type=result.content_type)

    @app.get("/health")
    async def health_check() -> HealthResponse:
        return HealthResponse(commands=len(app.state.engine.registry))

    @app.get("/")
    async def usage_text(request: Request) -> Response:
        return _send(request, InvocationResult(body="\n".join(usage), content_type="text/plain"))

    @app.get(f"{API_PREFIX}/list")
    async def list_commands(request: Request) -> Response:
        return _send(request, error_payload(app.state.engine.list_commands(), ""))

    @app.api_route(f"{API_PREFIX}/run", methods=["GET", "POST"])
    @app.api_route(f"{API_PREFIX}/run/", methods=["GET", "POST"])
    async def run_without_id(request: Request) -> Response:
        return await _invoke(request, "")

    @app.api_route(f"{API_PREFIX}/run/{{command_id}}", methods=["GET", "POST"])
    async def run_command(command_id: str, request: Request) -> Response:
        return await _invoke(request, command_id)

    async def _invoke(request: Request, command_id: str) -> Response:
        parameters = dict(request.query_params)
        body = None
        if request.method == "POST":
            raw = await request.body()
            if raw:
                body = raw.decode("utf-8", errors="replace")
        invocation = InvocationRequest(
            command_id=command_id,
            parameters=parameters,
            body=body,
            content_type_override=parameters.get(CONTENT_TYPE_PARAM) or None,
        )
        result = await app.state.engine.invoke(invocation)
        return _send(request, result)

    if settings.server.static_dir:
        app.mount("/static", StaticFiles(directory=settings.server.static_dir), name="static")

    @app.api_route("/{path:path}", methods=["GET", "POST"])
    async def unrecognized(path: str, request: Request) -> Response:
        return _send(request, error_payload(usage, f"Unrecognized URI /{path}"))

    return app


def main(config_path: str | None = None) -> None:
    """Entry point for running the endpoint server standalone."""
    from restcli.config.settings import load_settings
    from restcli.utils.logging import setup_logging

    settings = load_settings(config_path)
    setup_logging(settings.logging)
    app = create_app(settings)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port, log_config=None)


if __name__ == "__main__":
    main()
