"""
POS Back Office - FastAPI Application Entry Point

This is the main entry point for the FastAPI application.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backoffice.config import settings
from backoffice.database import init_db, close_db
from backoffice.routers import (
    auth,
    companies,
    auto_codes,
    currencies,
    exchange_rates,
    financial_years,
    accounts,
    general_ledger,
    journal_entries,
    opening_balances,
    trial_balance,
    sales_orders,
    sales_invoices,
    product_colors,
    product_models,
    bank_details,
)
from backoffice.utils.error_handling import setup_exception_handlers

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.debug else logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Environment: {settings.app_env}")
    logger.info(f"Database: {settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}")

    # Initialize database (dev only - use migrations in production)
    if settings.is_development:
        await init_db()
        logger.info("Database tables initialized")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.app_name}...")
    await close_db()
    logger.info("Database connections closed")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Multi-company point of sale back office: sales, ledger and master data",
    version="0.1.0",
    docs_url="/api/docs" if settings.is_development else None,
    redoc_url="/api/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)


# ===========================================
# API ROUTES
# ===========================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "environment": settings.app_env,
    }


@app.get("/api/v1")
async def api_root():
    """API v1 root endpoint."""
    return {
        "message": f"Welcome to {settings.app_name} API v1",
        "endpoints": {
            "auth": "/api/v1/auth",
            "accounts": "/api/v1/accounts",
            "journal_entries": "/api/v1/journal-entries",
            "general_ledger": "/api/v1/general-ledger",
            "trial_balance": "/api/v1/trial-balance",
            "sales_orders": "/api/v1/sales-orders",
            "sales_invoices": "/api/v1/sales-invoices",
        }
    }


# ===========================================
# INCLUDE ROUTERS
# ===========================================

app.include_router(auth.router)
app.include_router(companies.router)
app.include_router(auto_codes.router)
app.include_router(currencies.router)
app.include_router(exchange_rates.router)
app.include_router(financial_years.router)
app.include_router(accounts.types_router)
app.include_router(accounts.router)
app.include_router(general_ledger.router)
app.include_router(journal_entries.router)
app.include_router(opening_balances.router)
app.include_router(trial_balance.router)
app.include_router(sales_orders.router)
app.include_router(sales_invoices.router)
app.include_router(product_colors.router)
app.include_router(product_models.router)
app.include_router(bank_details.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
    )
