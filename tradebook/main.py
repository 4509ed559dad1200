"""Tradebook FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError

from tradebook.core.auth.router import router as auth_router
from tradebook.modules.parties.router import router as parties_router
from tradebook.modules.orders.router import router as orders_router
from tradebook.modules.invoices.router import (
    router as sales_invoices_router,
    purchase_router as purchase_invoices_router,
)
from tradebook.modules.dashboard.router import router as dashboard_router
from tradebook.core.config import settings
from tradebook.core.exceptions import AppException
from tradebook.core.exceptions.handlers import (
    app_exception_handler,
    http_exception_handler,
    sqlalchemy_db_error_handler,
    validation_exception_handler,
)
from tradebook.core.logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    yield
    # Shutdown


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    setup_logging()

    app = FastAPI(
        title="Tradebook",
        description="Purchase orders, tax invoices and delivery tracking for a trading company",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(IntegrityError, sqlalchemy_db_error_handler)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    # Routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(parties_router, prefix="/api/v1")
    app.include_router(orders_router, prefix="/api/v1")
    app.include_router(sales_invoices_router, prefix="/api/v1")
    app.include_router(purchase_invoices_router, prefix="/api/v1")
    app.include_router(dashboard_router, prefix="/api/v1")

    return app


app = create_app()
