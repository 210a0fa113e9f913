"""Shared pytest fixtures for CloudInv tests."""

from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cloudinv.models.resource import Resource
from cloudinv.repositories.duckdb_repo import DuckDBRepo
from cloudinv.routers import resources, views

SEED_RESOURCES = [
    Resource(
        id="r1",
        resource_id="i-0abc",
        provider="aws",
        account="prod",
        service="ec2",
        name="web-1",
        region="us-east-1",
        cost=10.5,
        tags={"env": "prod", "team": "core"},
    ),
    Resource(
        id="r2",
        resource_id="logs-bucket",
        provider="aws",
        account="prod",
        service="s3",
        name="logs-bucket",
        region="eu-west-1",
        cost=3.0,
        tags={"env": "staging"},
    ),
    Resource(
        id="r3",
        provider="gcp",
        account="dev",
        service="compute",
        name="batch-worker",
        region="us-central1",
        cost=7.25,
    ),
    Resource(
        id="r4",
        provider="azure",
        account="dev",
        service="redis",
        name="cache",
        region="westeurope",
        cost=0.0,
        tags={"team": ""},
    ),
]


@pytest.fixture()
def tmp_db_path(tmp_path: Path) -> Path:
    """Return a temporary DuckDB file path."""
    return tmp_path / "test.duckdb"


@pytest.fixture()
def db(tmp_db_path: Path) -> DuckDBRepo:
    """Create a DuckDBRepo with a temporary database, initialize schema, then close."""
    repo = DuckDBRepo(tmp_db_path)
    repo.initialize_schema()
    yield repo
    repo.close()


@pytest.fixture()
def seeded_db(db: DuckDBRepo) -> DuckDBRepo:
    """The temporary database with the four seed resources inserted."""
    db.insert_resources(SEED_RESOURCES)
    return db


def build_test_app(db: DuckDBRepo) -> FastAPI:
    """FastAPI app wired to *db* with the inventory routers."""
    test_app = FastAPI()

    test_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    test_app.state.db = db
    test_app.include_router(resources.router)
    test_app.include_router(views.router)

    @test_app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return test_app


@pytest.fixture()
def api_app(seeded_db: DuckDBRepo) -> FastAPI:
    """Test app over the seeded DB."""
    return build_test_app(seeded_db)


@pytest.fixture()
async def app_client(api_app: FastAPI) -> httpx.AsyncClient:
    """Yield an async HTTP client bound to the test app."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=api_app),
        base_url="http://testserver",
    ) as client:
        yield client


@pytest.fixture()
def seed_resources() -> list[Resource]:
    """The resources inserted by ``seeded_db``."""
    return list(SEED_RESOURCES)
