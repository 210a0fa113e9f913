"""Resources API router.

Endpoints:
- GET /resources                 -- full inventory, sortable
- POST /resources                -- ingest collected resources (insert or replace)
- POST /resources/search         -- inventory matching a list of filter clauses
- GET /resources/filter-values   -- distinct values for one filter field
- GET /resources/tag-keys        -- distinct tag keys for tag filters
"""

from __future__ import annotations

import logging
from typing import Literal

import duckdb
from fastapi import APIRouter, Depends, HTTPException, Query

from cloudinv.dependencies import get_cursor, get_db
from cloudinv.models.filter import TAG_FIELD, FilterClause, is_known_field
from cloudinv.models.resource import Resource
from cloudinv.repositories.duckdb_repo import DuckDBRepo
from cloudinv.services import inventory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resources", tags=["resources"])


@router.get("", response_model=list[Resource])
def list_resources(
    sort_by: str = Query("id", description="Sort column"),
    sort_dir: Literal["asc", "desc"] = Query("asc", description="Sort direction"),
    cursor: duckdb.DuckDBPyConnection = Depends(get_cursor),
) -> list[Resource]:
    """Return every resource in the inventory."""
    return inventory.fetch_resources(cursor, sort_by=sort_by, sort_dir=sort_dir)


@router.post("", status_code=201)
def ingest_resources(
    resources: list[Resource],
    db: DuckDBRepo = Depends(get_db),
) -> dict:
    """Insert or replace collected resources by ``id``.

    A resource already in the inventory is replaced as a whole, so its
    tags and cost reflect the latest collection run.
    """
    written = db.insert_resources(resources)
    logger.info("Ingested %d resources", written)
    return {"ingested": written}


@router.post("/search", response_model=list[Resource])
def search_resources(
    clauses: list[FilterClause],
    sort_by: str = Query("id", description="Sort column"),
    sort_dir: Literal["asc", "desc"] = Query("asc", description="Sort direction"),
    cursor: duckdb.DuckDBPyConnection = Depends(get_cursor),
) -> list[Resource]:
    """Return resources matching every clause in the request body."""
    return inventory.fetch_resources(
        cursor, clauses=clauses, sort_by=sort_by, sort_dir=sort_dir
    )


@router.get("/filter-values", response_model=list[str])
def get_filter_values(
    field: str = Query(..., description="Fixed field name or tag:<key>"),
    cursor: duckdb.DuckDBPyConnection = Depends(get_cursor),
) -> list[str]:
    """Return the distinct values of *field* for the wizard's value step."""
    if not is_known_field(field) or field == TAG_FIELD:
        raise HTTPException(status_code=400, detail=f"Unsupported field: {field}")
    return inventory.distinct_values(cursor, field)


@router.get("/tag-keys", response_model=list[str])
def get_tag_keys(
    cursor: duckdb.DuckDBPyConnection = Depends(get_cursor),
) -> list[str]:
    """Return the distinct tag keys present in the inventory."""
    return inventory.tag_keys(cursor)
