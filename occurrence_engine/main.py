"""FastAPI application exposing the recurring-task occurrence engine."""
import logging

from fastapi import FastAPI

from occurrence_engine import __version__
from occurrence_engine.db.init import init_db
from occurrence_engine.routers import repeat
from occurrence_engine.utils.metrics import metrics_collector

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Recurring Task Occurrence API",
    description="Repeat rules, occurrence generation and completion tracking for recurring tasks",
    version=__version__,
)


@app.on_event("startup")
async def startup_event():
    """Create tables on startup."""
    init_db()
    logger.info("[SUCCESS] Application startup complete.")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/metrics")
async def metrics():
    """In-process engine counters."""
    return metrics_collector.get_metrics()


app.include_router(repeat.router, prefix="/api")  # /api/tasks/{task_id}/...


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "occurrence_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
