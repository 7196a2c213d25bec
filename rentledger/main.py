"""Rent ledger FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from rentledger.api import ledger
from rentledger.config import Settings, get_settings
from rentledger.errors import LedgerError, ValidationError, error_response
from rentledger.services import create_engine_for_url, create_session_factory, init_models
from rentledger.services.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application. The engine lives as long as the app's lifespan."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifecycle (startup and shutdown)."""
        engine = create_engine_for_url(settings.database_url, echo=settings.database_echo)
        await init_models(engine)
        app.state.session_factory = create_session_factory(engine)
        logger.info("Database tables initialized")
        yield
        await engine.dispose()
        logger.info("Application shutting down")

    app = FastAPI(
        title=settings.api_title,
        description="Monthly rent billing with FIFO payment allocation",
        version=settings.api_version,
        lifespan=lifespan,
    )

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.http_status, content=error_response(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return await ledger_error_handler(request, ValidationError(details or "Invalid request"))

    app.include_router(ledger.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


if __name__ == "__main__":
    import uvicorn
    from dotenv import load_dotenv

    load_dotenv()

    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=8000, log_config=None)
