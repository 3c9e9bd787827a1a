"""FastAPI application for the Rube backend."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.core.config import settings
from backend.core.errors import register_error_handlers
from backend.core.http import open_client, close_client
from rube_logging import RubeLogger, CorrelationMiddleware, get_logger

RubeLogger.configure("rube-api", level=settings.log_level)

logger = get_logger(__name__)

from backend.api.routes import router
from backend.api.routers.health import API_VERSION


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("rube_api_starting", version=API_VERSION)
    open_client()
    yield
    logger.info("rube_api_shutting_down")
    await close_client()


app = FastAPI(
    title="Rube Backend API",
    description="Conversation history and connected-account links for the Rube assistant",
    version=API_VERSION,
    lifespan=lifespan,
)

# Correlation ID propagation + HTTP request logging
app.add_middleware(CorrelationMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Rube Backend API",
        "version": API_VERSION,
        "status": "running",
    }
