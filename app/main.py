import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# ✅ Import All API Routes
from app.api.routes import (
    auth,
    health,
    marketplace,
    notifications,
    payments,
    safety,
    system,
    vendor_admin,
    vendor_auth,
    vendor_onboarding,
)
from app.context import AppContext, build_context
from app.core.config import CORS_ORIGINS, LOG_LEVEL, RUN_MIGRATIONS
from app.core.errors import register_exception_handlers
from app.core.logging_config import setup_logging
from app.db.init_db import init_db
from app.db.migrate import run_migrations
from app.db.session import SessionLocal, engine

logger = logging.getLogger(__name__)


def _log_loop_exception(loop, context):
    """Log exceptions from background tasks nobody awaited."""
    exc = context.get("exception")
    logger.error(f"Unhandled background error: {context.get('message')}", exc_info=exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    asyncio.get_running_loop().set_exception_handler(_log_loop_exception)

    if app.state.run_init_db:
        if RUN_MIGRATIONS:
            run_migrations()
        init_db(create_tables=not RUN_MIGRATIONS)

    context: AppContext = app.state.context
    context.start()
    context.start_background()
    logger.info("Milan API started")
    try:
        yield
    finally:
        await context.shutdown()
        if app.state.run_init_db:
            engine.dispose()
        logger.info("Milan API stopped")


def create_app(context: Optional[AppContext] = None, run_init_db: bool = True) -> FastAPI:
    # ============================================
    # ✅ FASTAPI APP INIT
    # ============================================
    app = FastAPI(title="Milan API", lifespan=lifespan)
    app.state.context = context or build_context(SessionLocal)
    app.state.run_init_db = run_init_db

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "Stripe-Signature"],
    )

    register_exception_handlers(app)

    # ============================================
    # ✅ REGISTER ALL ROUTERS
    # ============================================
    app.include_router(auth.router)
    app.include_router(vendor_auth.router)
    app.include_router(vendor_onboarding.router)
    app.include_router(payments.router)
    app.include_router(vendor_admin.router)
    app.include_router(marketplace.router)
    app.include_router(safety.router)
    app.include_router(notifications.router)
    app.include_router(health.router)
    app.include_router(system.router)

    @app.get("/")
    def root():
        return {"status": "Milan API running"}

    return app


setup_logging(LOG_LEVEL)
app = create_app()
