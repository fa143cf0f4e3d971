from datetime import datetime
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from jobfit.routers import evaluations, job_descriptions

from jobfit.utils.logging_config import configure_for_environment, get_logger
from jobfit.middleware.error_handlers import (
    ExceptionHandlerMiddleware,
    RequestLoggingMiddleware,
    PerformanceMiddleware,
)

# Configure logging first
configure_for_environment()
logger = get_logger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager"""
    logger.info("Fit evaluation API starting up...")

    try:
        from jobfit.services.db import init_indexes
        await init_indexes()
    except Exception as e:
        logger.warning(f"Database index initialization had issues: {e}")
        logger.info("Application will continue - some operations may be slower without indexes")

    logger.info("Fit evaluation API startup completed")

    yield

    logger.info("Fit evaluation API shutting down...")


app = FastAPI(title="Fit Evaluation API", version=VERSION, lifespan=lifespan)

# Last added wraps outermost; the exception handler sits closest to the routes
app.add_middleware(ExceptionHandlerMiddleware)
app.add_middleware(PerformanceMiddleware, slow_request_threshold=2.0)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
@app.head("/")
async def root():
    """Root endpoint - handles both GET and HEAD requests for health checks"""
    return {"message": "Fit Evaluation API", "version": VERSION, "status": "ok"}


@app.get("/health")
@app.head("/health")
async def health_check():
    """Health check endpoint - handles both GET and HEAD requests"""
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}


app.include_router(evaluations.router, prefix="/api/evaluations", tags=["evaluations"])
app.include_router(job_descriptions.router, prefix="/api/job-descriptions", tags=["job-descriptions"])

logger.info("Fit evaluation API initialized successfully")
