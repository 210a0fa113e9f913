"""CloudInv FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cloudinv.config import get_settings
from cloudinv.repositories.duckdb_repo import DuckDBRepo

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown.

    On startup:
    - Create DuckDB connection and initialize schema.
    - Store the repo on app.state for dependency injection.

    On shutdown:
    - Checkpoint and close the DuckDB connection.
    """
    settings = get_settings()

    db = DuckDBRepo(settings.db_path)
    db.initialize_schema()
    app.state.db = db
    logger.info("Inventory database ready at %s", settings.db_path)

    yield

    db.connection.execute("CHECKPOINT")  # Flush WAL to disk before container stops
    db.close()


app = FastAPI(
    title="CloudInv",
    description="Cloud resource inventory with saved views",
    version="0.1.0",
    lifespan=lifespan,
)

# Behind a reverse proxy (same origin): no CORS needed.
# In local dev: allow the dashboard dev server origin.
settings = get_settings()
if not settings.behind_proxy:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Router includes
from cloudinv.routers import resources, views  # noqa: E402

app.include_router(resources.router)
app.include_router(views.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Simple health check endpoint."""
    return {"status": "ok"}


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host=settings.host, port=settings.port)
