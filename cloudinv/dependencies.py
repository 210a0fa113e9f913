"""FastAPI dependency injection for DuckDB."""

from collections.abc import Generator

import duckdb
from fastapi import Depends, Request

from cloudinv.repositories.duckdb_repo import DuckDBRepo


def get_db(request: Request) -> DuckDBRepo:
    """Return the application-wide DuckDBRepo stored on app.state."""
    return request.app.state.db


def get_cursor(
    db: DuckDBRepo = Depends(get_db),
) -> Generator[duckdb.DuckDBPyConnection, None, None]:
    """Yield a DuckDB cursor, closing it after the request."""
    cursor = db.connection.cursor()
    try:
        yield cursor
    finally:
        cursor.close()
