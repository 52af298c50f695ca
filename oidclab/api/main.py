"""FastAPI application factory with lifespan management."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from oidclab.config import config, configure_logging
from oidclab.functions.registry import FunctionRegistry
from oidclab.version import __version__


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        return response

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    configure_logging()
    logger.info(
        f"oidclab v{__version__} ready: {len(app.state.registry)} functions registered "
        f"({', '.join(app.state.registry.ids())})"
    )
    yield
    logger.info("oidclab shutting down...")


def build_state(app: FastAPI, registry: FunctionRegistry) -> None:
    """Wire registry and executors onto app.state for the routes."""
    from oidclab.callbacks import LoggingCallback
    from oidclab.engine.chain import ChainExecutor
    from oidclab.engine.executor import StepExecutor

    step_executor = StepExecutor(registry)
    callbacks = [LoggingCallback()] if config.audit_log else []
    app.state.registry = registry
    app.state.step_executor = step_executor
    app.state.chain_executor = ChainExecutor(
        registry,
        step_executor=step_executor,
        callbacks=callbacks,
        strict_step_ids=config.strict_step_ids,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Malformed request bodies get the same 400 envelope as other failures."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
            for err in exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": f"Invalid request body: {details}"},
        )


def create_app(registry: Optional[FunctionRegistry] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        registry: Functions to serve; the built-in set when omitted.
    """
    if registry is None:
        from oidclab.functions.registry import build_default_registry
        registry = build_default_registry()

    app = FastAPI(
        title="oidclab",
        description="OAuth 2.0 / OpenID Connect learning tool: chainable protocol sub functions.",
        version=__version__,
        lifespan=lifespan,
    )
    build_state(app, registry)
    register_exception_handlers(app)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Security headers: outermost middleware, applied to all responses
    app.add_middleware(SecurityHeadersMiddleware)

    # Routes
    from oidclab.api.routes import functions, health
    app.include_router(functions.router, prefix=config.api_prefix)
    app.include_router(health.router, prefix=config.api_prefix)

    return app


app = create_app()
