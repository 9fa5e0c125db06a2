import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .api import health, troves, webhooks
from .config import Settings, settings
from .dependencies import build_services
from .exceptions import ContractNotFoundError, InvalidAmountError
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .types.envelope import error_envelope

logger = logging.getLogger(__name__)


def create_app(config: Optional[Settings] = None) -> FastAPI:
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(config.log_level)
        services = build_services(config)
        app.state.services = services
        logger.info(f"Troves assistant starting on port {config.port} ({config.environment})")
        await services.messaging.start_all()
        try:
            yield
        finally:
            logger.info("Shutting down gracefully")
            await services.messaging.stop_all()

    app = FastAPI(
        title="Troves.fi AI Assistant API",
        description="Conversational assistant and data API for Troves.fi vaults on Starknet",
        version=__version__,
        docs_url="/api-docs",
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router, tags=["Health"])
    app.include_router(troves.router, tags=["Troves"])
    app.include_router(webhooks.router, tags=["Webhooks"])

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(status_code=404, content={"success": False, "message": "Route not found"})
        return JSONResponse(status_code=exc.status_code, content=error_envelope(str(exc.detail)))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {field} {first.get('msg', '')}".strip() if field else "Invalid request"
        return JSONResponse(status_code=400, content=error_envelope(message))

    @app.exception_handler(ContractNotFoundError)
    async def contract_not_found_handler(request: Request, exc: ContractNotFoundError):
        return JSONResponse(status_code=404, content=error_envelope(str(exc)))

    @app.exception_handler(InvalidAmountError)
    async def invalid_amount_handler(request: Request, exc: InvalidAmountError):
        return JSONResponse(status_code=400, content=error_envelope(str(exc)))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
        message = "Internal server error" if config.is_production else str(exc)
        return JSONResponse(status_code=500, content={"success": False, "message": message})

    @app.get("/")
    async def root():
        """Root endpoint with basic info"""
        return {
            "name": "Troves.fi AI Assistant API",
            "version": __version__,
            "docs": "/api-docs",
            "health": "/health",
            "api": "/api/troves",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "troves_assistant.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
