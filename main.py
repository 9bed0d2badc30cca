"""
FastAPI application entry point for the escrow API.

Run with ``uvicorn main:app``; the Celery side lives in ``infrastructure.tasks``.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import LocaleMiddleware, LoggingMiddleware, RequestIDMiddleware
from api.routes import admin as admin_routes
from api.routes import notifications as notification_routes
from api.routes import orders as order_routes
from api.routes import payments as payment_routes
from api.routes import qris as qris_routes
from core.config import settings
from core.exceptions import register_exception_handlers
from core.i18n import t
from core.logging_config import get_logger
from core.response import success_response
from infrastructure.database import create_tables, engine

logger = get_logger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DEBUG:
        # production schemas are managed by `alembic upgrade head`
        await create_tables()
        logger.info("database_tables_created")
    logger.info(
        "application_started",
        environment=settings.ENVIRONMENT,
        push_enabled=settings.push.enabled,
        payment_deadline_hours=settings.escrow.payment_deadline_hours,
    )
    yield
    await engine.dispose()
    logger.info("application_shutdown")


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        description="Escrow (rekber) payments: orders, QRIS payments, proof verification and seller payouts",
    )

    # the last middleware added runs first: CORS, then request id, locale, logging
    application.add_middleware(LoggingMiddleware)
    application.add_middleware(LocaleMiddleware)
    application.add_middleware(RequestIDMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[RequestIDMiddleware.HEADER_NAME, "Retry-After"],
    )

    register_exception_handlers(application)

    for router in (
        order_routes.router,
        order_routes.dashboard_router,
        payment_routes.router,
        admin_routes.router,
        qris_routes.router,
        notification_routes.router,
    ):
        application.include_router(router, prefix=API_PREFIX)

    @application.get("/", tags=["Root"])
    async def root():
        return success_response(
            data={"name": settings.PROJECT_NAME, "version": settings.VERSION, "docs": "/docs"},
            message=t("welcome", default=f"Welcome to {settings.PROJECT_NAME}"),
        )

    @application.get("/health", tags=["Health"])
    async def health_check():
        return success_response(data={"status": "healthy"}, message=t("health.ok", default="OK"))

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
