"""
MedStock API — FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from core.errors import MedStockError, medstock_exception_handler, request_validation_handler
from core.logging import configure_logging

settings = get_settings()
configure_logging()
logger = structlog.get_logger()

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("MedStock API starting up", version=settings.app_version, env=settings.app_env)
    yield
    logger.info("MedStock API shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Hospital inventory demand estimation, cost optimization and stock alerts",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=CORS_ALLOW_HEADERS,
)

app.add_exception_handler(MedStockError, medstock_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# Import and register routers
from alerts.websocket import router as ws_router
from api.v1.routers import alerts, demo, functions, inventory, optimizations, predictions

app.include_router(functions.router)
app.include_router(inventory.router)
app.include_router(alerts.router)
app.include_router(predictions.router)
app.include_router(optimizations.router)
app.include_router(demo.router)
app.include_router(ws_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers."""
    return {"status": "healthy", "version": settings.app_version}
