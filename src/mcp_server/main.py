"""Smartsheet MCP Gateway - FastAPI Application.

Exposes the JSON-RPC endpoint plus unauthenticated metadata, health and
discovery endpoints.
"""

import json
import time
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging
from mcp_server.audit import AuditLogger
from mcp_server.auth import AuthConfig
from mcp_server.cache import close_clients, create_client_cache
from mcp_server.discovery import ToolDefinitionExtractor
from mcp_server.executor import ToolExecutionEngine
from mcp_server.jsonrpc import JsonRpcRouter

logger = get_logger(__name__)

SERVICE_NAME = "mcp-smartsheet"
AVAILABLE_ENDPOINTS = ["/", "/health", "/tools", "/mcp"]


def _reject_constant(name: str) -> Any:
    """Treat NaN and Infinity as malformed JSON; they cannot be echoed back."""
    raise ValueError(f"Invalid JSON constant: {name}")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the gateway application and its collaborators."""
    settings = settings or get_settings()

    cache = create_client_cache(
        timeout=settings.smartsheet_timeout,
        capacity=settings.client_cache_capacity,
    )
    extractor = ToolDefinitionExtractor()
    audit_logger = AuditLogger(
        log_path=settings.audit_log_path,
        enabled=settings.enable_audit,
    )
    router = JsonRpcRouter(
        extractor=extractor,
        engine=ToolExecutionEngine(cache),
        auth_config=AuthConfig(
            require_auth=settings.require_auth,
            secret_key=settings.secret_key,
        ),
        audit_logger=audit_logger,
        server_name=settings.server_name,
        server_version=settings.server_version,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        setup_logging(
            settings.effective_log_level,
            json_output=settings.environment == "production",
        )
        logger.info(
            "Starting MCP Smartsheet Server",
            host=settings.host,
            port=settings.port,
            auth_enabled=settings.require_auth,
            secret_key_configured=bool(settings.secret_key),
        )
        if router.auth_config.effectively_disabled:
            logger.warning("SECRET_KEY not configured but REQUIRE_AUTH is true")

        yield

        logger.info("Shutting down MCP Smartsheet Server")
        await audit_logger.flush()
        await close_clients(cache)

    app = FastAPI(
        title="MCP Smartsheet Server",
        description="Model Context Protocol server for the Smartsheet API",
        version=settings.server_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.cache = cache
    app.state.extractor = extractor
    app.state.router = router

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        logger.debug(
            "HTTP request",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={
                    "error": "Not Found",
                    "message": f"Endpoint {request.method} {request.url.path} not found",
                    "availableEndpoints": AVAILABLE_ENDPOINTS,
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled error", error=str(exc), exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error", "message": str(exc)},
        )

    @app.get("/", tags=["System"])
    async def service_info() -> dict[str, Any]:
        """Server information."""
        return {
            "service": "MCP Smartsheet Server",
            "version": settings.server_version,
            "description": "Model Context Protocol server for Smartsheet API",
            "endpoints": {
                "/health": "Health check endpoint",
                "/mcp": "MCP JSON-RPC endpoint",
                "/tools": "List available tools",
            },
        }

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": settings.server_version,
        }

    @app.get("/tools", tags=["Tools"])
    async def list_tools():
        """
        List available tools.

        Discovery without credentials; delete tools are never included.
        """
        try:
            definitions = extractor.extract(allow_delete_tools=False)
        except Exception as e:
            logger.error("Error listing tools", error=str(e), exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Failed to list tools", "message": str(e)},
            )
        return {"tools": [d.to_wire() for d in definitions]}

    @app.post("/mcp", tags=["MCP"])
    async def mcp_endpoint(request: Request) -> JSONResponse:
        """
        JSON-RPC 2.0 endpoint.

        Supports initialize, tools/list and tools/call.
        """
        raw = await request.body()
        try:
            body = json.loads(raw, parse_constant=_reject_constant)
        except ValueError:
            body = None

        client = request.client.host if request.client else "unknown"
        reply = await router.handle(body, request.headers, client=client)
        return JSONResponse(status_code=reply.status_code, content=reply.body)

    return app


def main():
    """Run the gateway."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "mcp_server.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development" and settings.debug,
    )


if __name__ == "__main__":
    main()
