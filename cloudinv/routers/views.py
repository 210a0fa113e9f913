"""Saved views API router.

Endpoints:
- POST /views                     -- create a named saved view
- GET /views                      -- list saved views
- GET /views/{view_id}            -- fetch one saved view
- PUT /views/{view_id}            -- rename / replace the filters of a view
- DELETE /views/{view_id}         -- delete a saved view
- GET /views/{view_id}/resources  -- resources in the view, hidden ones excluded
- GET /views/{view_id}/hidden     -- resources hidden from the view
- POST /views/{view_id}/hide      -- hide resources from the view
- POST /views/{view_id}/unhide    -- unhide resources from the view
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Callable

import duckdb
from fastapi import APIRouter, Depends, HTTPException, Response

from cloudinv.dependencies import get_db
from cloudinv.models.resource import HiddenResource, Resource, ResourceIdsRequest
from cloudinv.models.view import (
    SavedViewCreate,
    SavedViewListResponse,
    SavedViewResponse,
    SavedViewUpdate,
)
from cloudinv.repositories.duckdb_repo import DuckDBRepo
from cloudinv.services import inventory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/views", tags=["views"])

MAX_BULK_IDS = 500

_VIEW_COLUMNS = "id, name, filters, hidden_ids, created_at, updated_at"


def _load_json(value, default):
    if value is None:
        return default
    return json.loads(value) if isinstance(value, str) else value


def _row_to_view(row: tuple) -> SavedViewResponse:
    return SavedViewResponse(
        id=row[0],
        name=row[1],
        filters=_load_json(row[2], []),
        exclude=_load_json(row[3], []),
        created_at=row[4],
        updated_at=row[5],
    )


def _fetch_view(cursor: duckdb.DuckDBPyConnection, view_id: str) -> SavedViewResponse:
    """Return the view or raise 404."""
    row = cursor.execute(
        f"SELECT {_VIEW_COLUMNS} FROM saved_views WHERE id = ?",
        [view_id],
    ).fetchone()
    if row is None:
        raise HTTPException(status_code=404, detail="View not found")
    return _row_to_view(row)


def _check_bulk_size(ids: list[str]) -> None:
    if len(ids) > MAX_BULK_IDS:
        raise HTTPException(
            status_code=400,
            detail=f"Maximum {MAX_BULK_IDS} ids per request",
        )


@router.post("", response_model=SavedViewResponse, status_code=201)
def create_view(
    request: SavedViewCreate,
    db: DuckDBRepo = Depends(get_db),
) -> SavedViewResponse:
    """Save a named filter configuration."""
    view_id = str(uuid.uuid4())
    filters = [c.model_dump(mode="json") for c in request.filters]
    cursor = db.connection.cursor()
    try:
        cursor.execute(
            "INSERT INTO saved_views (id, name, filters, hidden_ids) "
            "VALUES (?, ?, ?::JSON, ?::JSON)",
            [view_id, request.name, json.dumps(filters), json.dumps(request.exclude)],
        )
        view = _fetch_view(cursor, view_id)
    finally:
        cursor.close()

    logger.info("Created view %s (%s)", view.name, view.id)
    return view


@router.get("", response_model=SavedViewListResponse)
def list_views(db: DuckDBRepo = Depends(get_db)) -> SavedViewListResponse:
    """List all saved views, oldest first."""
    cursor = db.connection.cursor()
    try:
        rows = cursor.execute(
            f"SELECT {_VIEW_COLUMNS} FROM saved_views ORDER BY created_at, name"
        ).fetchall()
    finally:
        cursor.close()

    return SavedViewListResponse(views=[_row_to_view(row) for row in rows])


@router.get("/{view_id}", response_model=SavedViewResponse)
def get_view(
    view_id: str,
    db: DuckDBRepo = Depends(get_db),
) -> SavedViewResponse:
    """Return a single saved view."""
    cursor = db.connection.cursor()
    try:
        return _fetch_view(cursor, view_id)
    finally:
        cursor.close()


@router.put("/{view_id}", response_model=SavedViewResponse)
def update_view(
    view_id: str,
    request: SavedViewUpdate,
    db: DuckDBRepo = Depends(get_db),
) -> SavedViewResponse:
    """Replace the name and filters of a view.

    The hidden set is only replaced when ``exclude`` is sent.
    """
    filters = [c.model_dump(mode="json") for c in request.filters]
    cursor = db.connection.cursor()
    try:
        with db.write_lock:
            current = _fetch_view(cursor, view_id)
            exclude = request.exclude if request.exclude is not None else current.exclude
            cursor.execute(
                "UPDATE saved_views SET name = ?, filters = ?::JSON, hidden_ids = ?::JSON, "
                "updated_at = current_timestamp WHERE id = ?",
                [request.name, json.dumps(filters), json.dumps(exclude), view_id],
            )
        return _fetch_view(cursor, view_id)
    finally:
        cursor.close()


@router.delete("/{view_id}", status_code=204)
def delete_view(
    view_id: str,
    db: DuckDBRepo = Depends(get_db),
) -> Response:
    """Delete a saved view."""
    cursor = db.connection.cursor()
    try:
        with db.write_lock:
            _fetch_view(cursor, view_id)
            cursor.execute("DELETE FROM saved_views WHERE id = ?", [view_id])
    finally:
        cursor.close()

    logger.info("Deleted view %s", view_id)
    return Response(status_code=204)


@router.get("/{view_id}/resources", response_model=list[Resource])
def get_view_resources(
    view_id: str,
    db: DuckDBRepo = Depends(get_db),
) -> list[Resource]:
    """Resources matching the view's filters, without its hidden ones."""
    cursor = db.connection.cursor()
    try:
        view = _fetch_view(cursor, view_id)
        return inventory.fetch_resources(
            cursor, clauses=view.filters, exclude=view.exclude
        )
    finally:
        cursor.close()


@router.get("/{view_id}/hidden", response_model=list[HiddenResource])
def get_hidden_resources(
    view_id: str,
    db: DuckDBRepo = Depends(get_db),
) -> list[HiddenResource]:
    """Resources hidden from the view."""
    cursor = db.connection.cursor()
    try:
        view = _fetch_view(cursor, view_id)
        return inventory.fetch_hidden_resources(cursor, view.exclude)
    finally:
        cursor.close()


def _write_hidden(
    db: DuckDBRepo, view_id: str, change: Callable[[list[str]], list[str]]
) -> tuple[list[str], list[str]]:
    """Apply *change* to the view's hidden ids under the write lock.

    Returns the hidden ids before and after the change.
    """
    cursor = db.connection.cursor()
    try:
        with db.write_lock:
            before = _fetch_view(cursor, view_id).exclude
            after = change(list(before))
            cursor.execute(
                "UPDATE saved_views SET hidden_ids = ?::JSON WHERE id = ?",
                [json.dumps(after), view_id],
            )
    except duckdb.TransactionException as e:
        logger.warning("Hidden ids of view %s changed concurrently: %s", view_id, e)
        raise HTTPException(
            status_code=409,
            detail="The view was modified by another request, retry",
        )
    finally:
        cursor.close()
    return before, after


@router.post("/{view_id}/hide")
def hide_resources(
    view_id: str,
    request: ResourceIdsRequest,
    db: DuckDBRepo = Depends(get_db),
) -> dict:
    """Add resource ids to the view's hidden set (duplicates ignored)."""
    _check_bulk_size(request.ids)

    def add(exclude: list[str]) -> list[str]:
        return exclude + [i for i in dict.fromkeys(request.ids) if i not in exclude]

    before, after = _write_hidden(db, view_id, add)
    return {"hidden": len(after) - len(before)}


@router.post("/{view_id}/unhide")
def unhide_resources(
    view_id: str,
    request: ResourceIdsRequest,
    db: DuckDBRepo = Depends(get_db),
) -> dict:
    """Remove resource ids from the view's hidden set."""
    _check_bulk_size(request.ids)
    removing = set(request.ids)

    before, after = _write_hidden(
        db, view_id, lambda exclude: [i for i in exclude if i not in removing]
    )
    return {"unhidden": len(before) - len(after)}
