"""HTTP and MCP transport bindings for the repository tool registry."""

import json
import logging
from typing import Optional

import aiohttp
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from mcp.server import Server
from mcp.types import TextContent, Tool
from starlette.types import Receive, Scope, Send

from .config import ServerConfig
from .core.handlers import CallToolHandler
from .error_handling import ErrorKind, RepoToolError, ToolValidationError, get_error_stats
from .github.client import GitHubClient
from .session import StreamSessionRegistry
from .social.client import TwitterClient

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-repo-server"

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNSUPPORTED_ACTION: 404,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.AUTH: 502,
    ErrorKind.CLIENT: 502,
    ErrorKind.SERVER: 502,
    ErrorKind.CONFIGURATION: 500,
}


def status_for(error: RepoToolError) -> int:
    return STATUS_BY_KIND.get(error.kind, 500)


def create_mcp_server(handler: CallToolHandler) -> Server:
    """Low-level MCP server whose tools are the registry's actions."""
    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return handler.registry.list_tools()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[TextContent]:
        # RepoToolError propagates so the SDK reports an isError result
        return await handler.call_tool_content(name, arguments)

    return server


class SseEndpoint:
    """ASGI app for ``GET /sse``: one MCP session per open connection."""

    def __init__(self, mcp_server: Server, sessions: StreamSessionRegistry):
        self.mcp_server = mcp_server
        self.sessions = sessions

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        session = await self.sessions.open()
        try:
            async with session.transport.connect_sse(scope, receive, send) as streams:
                read_stream, write_stream = streams
                await self.mcp_server.run(
                    read_stream,
                    write_stream,
                    self.mcp_server.create_initialization_options(),
                )
        finally:
            await self.sessions.close(session.session_id)


class MessageEndpoint:
    """ASGI app for ``POST /messages/<sessionId>``: route to the held connection."""

    def __init__(self, sessions: StreamSessionRegistry):
        self.sessions = sessions

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        session_id = scope.get("path_params", {}).get("session_id", "")
        session = await self.sessions.get(session_id)
        if session is None:
            logger.warning(f"Message for unknown stream session {session_id!r}")
            response = PlainTextResponse("No transport found for sessionId", status_code=404)
            await response(scope, receive, send)
            return
        session.touch()
        await session.transport.handle_post_message(scope, receive, send)


def create_app(
    handler: CallToolHandler, sessions: Optional[StreamSessionRegistry] = None
) -> FastAPI:
    """Build the ASGI application exposing both transport bindings."""
    sessions = sessions if sessions is not None else StreamSessionRegistry("/messages/")
    mcp_server = create_mcp_server(handler)

    app = FastAPI(title="MCP Repository Server")
    app.state.handler = handler
    app.state.sessions = sessions

    @app.exception_handler(RepoToolError)
    async def tool_error_handler(request: Request, exc: RepoToolError):
        return PlainTextResponse(exc.message, status_code=status_for(exc))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        return PlainTextResponse(f"Internal error: {exc}", status_code=500)

    @app.post("/tool/{action}")
    async def call_tool(action: str, request: Request):
        body = await request.body()
        arguments = {}
        if body.strip():
            try:
                arguments = json.loads(body)
            except ValueError as e:
                raise ToolValidationError(f"Request body is not valid JSON: {e}") from e
        envelope = await handler.call_tool(action, arguments)
        return JSONResponse(envelope)

    @app.get("/tools")
    async def list_tools():
        return {
            "tools": [
                tool.model_dump(exclude_none=True) for tool in handler.registry.list_tools()
            ]
        }

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "tools": len(handler.registry.tools),
            "streamSessions": len(sessions),
            "errors": get_error_stats(),
        }

    app.add_route("/sse", SseEndpoint(mcp_server, sessions), methods=["GET"])
    app.add_route("/messages/{session_id}", MessageEndpoint(sessions), methods=["POST"])
    return app


async def serve(config: ServerConfig) -> None:
    """Run the server until interrupted. Upstream HTTP clients share one session."""
    timeout = aiohttp.ClientTimeout(total=30)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        github = GitHubClient(
            token=config.github_token, session=session, base_url=config.github_api_url
        )
        twitter = None
        if config.twitter is not None:
            twitter = TwitterClient(
                credentials=config.twitter,
                session=session,
                base_url=config.twitter_api_url,
            )
        handler = CallToolHandler(github, config.repo_owner, twitter)
        app = create_app(handler)

        uvicorn_config = uvicorn.Config(
            app,
            host=config.host,
            port=config.port,
            log_config=None,
            log_level=config.log_level.lower(),
        )
        logger.info(
            f"🚀 Serving {len(handler.registry.tools)} tools for {config.repo_owner} "
            f"on http://{config.host}:{config.port}"
        )
        try:
            await uvicorn.Server(uvicorn_config).serve()
        finally:
            logger.info("MCP repository server shutting down.")
