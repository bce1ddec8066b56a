from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import logging

# Import database components
from app.database.database import engine, Base, SessionLocal

# Import middleware
from app.common.middleware import TenantMiddleware, SecurityHeadersMiddleware

# Import routers
from app.modules.auth.router import auth_router
from app.modules.organizations.router import organization_router
from app.modules.customers.router import router as customers_router
from app.modules.suppliers.router import router as suppliers_router
from app.modules.inventory.router import inventory_router
from app.modules.invoices.router import invoices_router
from app.modules.expenses.router import router as expenses_router
from app.modules.returns.router import router as returns_router
from app.modules.notifications.router import router as notifications_router
from app.modules.chat.router import router as chat_router
from app.modules.live.router import router as live_router
from app.modules.ai.router import router as ai_router
from app.modules.reports.routers import (
    sales_router as sales_reports_router,
    financial_router as financial_reports_router,
    exports_router as exports_reports_router,
    inventory_router as inventory_reports_router
)
from app.modules.live.hub import install_session_events

# Import models for table creation
import app.modules.auth.models
import app.modules.organizations.models
import app.modules.customers.models
import app.modules.suppliers.models
import app.modules.inventory.models
import app.modules.invoices.models
import app.modules.expenses.models
import app.modules.returns.models
import app.modules.notifications.models
import app.modules.chat.models

from app.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="Pocket Kade API",
    description="Multi-tenant small business management API: invoicing, inventory, returns, chat and AI insights",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
)

# Add middleware (order matters!)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(TenantMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Add your frontend URLs
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(organization_router, prefix="/organizations", tags=["Organizations"])
app.include_router(customers_router)
app.include_router(suppliers_router)
app.include_router(inventory_router)
app.include_router(invoices_router)
app.include_router(expenses_router)
app.include_router(returns_router)
app.include_router(notifications_router)
app.include_router(chat_router)
app.include_router(ai_router)
app.include_router(sales_reports_router)
app.include_router(financial_reports_router)
app.include_router(exports_reports_router)
app.include_router(inventory_reports_router)
app.include_router(live_router)

# Committed changes wake up the websocket subscribers
install_session_events(SessionLocal)

# Create database tables (no migrations; tests build their own schema)
if settings.ENVIRONMENT not in ("production", "test"):
    Base.metadata.create_all(bind=engine)


@app.get("/")
async def read_root():
    return {
        "message": "Pocket Kade API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}


@app.on_event("startup")
async def startup_event():
    logger.info("Pocket Kade API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Pocket Kade API shutting down...")
