"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from otp_auth.api.commerce import router as commerce_router
from otp_auth.api.otp import router as otp_router
from otp_auth.config import Settings, settings
from otp_auth.database.engine import build_engine, build_session_factory, init_db
from otp_auth.database.store import RecordStore, SqlRecordStore
from otp_auth.otp.clock import Clock
from otp_auth.otp.generator import CodeGenerator
from otp_auth.services.commerce_client import CommerceClient
from otp_auth.services.delivery import DeliveryChannel
from otp_auth.services.otp_service import OtpService

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


def create_app(
    config: Settings | None = None,
    *,
    store: RecordStore | None = None,
    clock: Clock | None = None,
    generator: CodeGenerator | None = None,
    delivery: DeliveryChannel | None = None,
    commerce_client: CommerceClient | None = None,
) -> FastAPI:
    """Build the application.

    Without an explicit *store* the app uses the SQL store on
    ``config.database_url`` and creates its tables at startup.
    """
    config = config or settings
    engine = None
    if store is None:
        engine = build_engine(config.database_url, echo=config.debug)
        store = SqlRecordStore(build_session_factory(engine))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup / shutdown lifecycle hook."""
        logger.info("Starting %s …", config.app_name)
        if engine is not None:
            await init_db(engine)
            logger.info("Database initialised")
        yield
        logger.info("Shutting down %s …", config.app_name)
        if engine is not None:
            await engine.dispose()

    app = FastAPI(
        title=config.app_name,
        description="Phone number OTP issuance and verification",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.otp_service = OtpService(
        store,
        ttl=timedelta(minutes=config.otp_expiry_minutes),
        retention=timedelta(hours=config.otp_retention_hours),
        clock=clock,
        generator=generator,
        delivery=delivery,
    )
    app.state.commerce_client = commerce_client or CommerceClient(
        base_url=config.commerce_api_base_url,
        token=config.commerce_api_token,
        timeout=config.commerce_timeout_seconds,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.debug("Rejected request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=400,
            content={"error": "invalid request body", "details": jsonable_encoder(exc.errors())},
        )

    @app.get("/health")
    async def health_check():
        """Liveness check."""
        return {
            "status": "ok",
            "message": "OTP service is running",
            "timestamp": datetime.now(UTC).isoformat(),
        }

    app.include_router(otp_router)
    app.include_router(commerce_router)
    return app


app = create_app()
