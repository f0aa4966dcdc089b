"""
Tasktrack - task lifecycle and multi-assignee engine.
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager

from tasktrack.database import init_db
from tasktrack.routes import tasks, persons
from tasktrack.exceptions import register_exception_handlers
from tasktrack.logging_config import setup_logging, get_logger

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting Tasktrack API...")
    await init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down Tasktrack API...")


app = FastAPI(
    title="Tasktrack",
    description="Task lifecycle and multi-assignee engine",
    version="0.1.0",
    lifespan=lifespan,
)

# Register custom exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
app.include_router(persons.router, prefix="/persons", tags=["Persons"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
