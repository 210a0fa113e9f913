"""Inventory queries shared by the resources and views routers."""

from __future__ import annotations

import json

from duckdb import DuckDBPyConnection

from cloudinv.models.filter import FIXED_FIELDS, FilterClause, is_tag_reference, tag_key_of
from cloudinv.models.resource import HiddenResource, Resource
from cloudinv.services.filter_builder import ResourceFilterBuilder, tag_pointer

_RESOURCE_COLUMNS = (
    "r.id, r.resource_id, r.provider, r.account, r.service, "
    "r.name, r.region, r.cost, r.tags, r.fetched_at"
)


def _row_to_resource(row: tuple) -> Resource:
    tags = row[8]
    if isinstance(tags, str):
        tags = json.loads(tags)
    return Resource(
        id=row[0],
        resource_id=row[1] or "",
        provider=row[2],
        account=row[3],
        service=row[4],
        name=row[5],
        region=row[6],
        cost=row[7] or 0.0,
        tags={str(k): str(v) for k, v in (tags or {}).items()},
        fetched_at=row[9],
    )


def fetch_resources(
    cursor: DuckDBPyConnection,
    clauses: list[FilterClause] | None = None,
    exclude: list[str] | None = None,
    sort_by: str | None = None,
    sort_dir: str | None = None,
) -> list[Resource]:
    """Return resources matching every clause, minus the excluded ids."""
    result = (
        ResourceFilterBuilder()
        .add_clauses(clauses)
        .exclude_ids(exclude)
        .build(sort_by=sort_by, sort_dir=sort_dir)
    )
    rows = cursor.execute(
        f"SELECT {_RESOURCE_COLUMNS} FROM resources r "
        f"WHERE {result.where_clause} {result.order_clause}",
        result.params,
    ).fetchall()
    return [_row_to_resource(row) for row in rows]


def fetch_hidden_resources(
    cursor: DuckDBPyConnection, ids: list[str]
) -> list[HiddenResource]:
    """Return the resources behind a view's hidden id list.

    Ids of resources that no longer exist in the inventory are skipped.
    """
    if not ids:
        return []

    placeholders = ", ".join(["?"] * len(ids))
    rows = cursor.execute(
        "SELECT id, provider, service, name, region, account, cost "
        f"FROM resources WHERE id IN ({placeholders}) ORDER BY id",
        ids,
    ).fetchall()
    return [
        HiddenResource(
            id=row[0],
            provider=row[1],
            service=row[2],
            name=row[3],
            region=row[4],
            account=row[5],
            cost=row[6] or 0.0,
        )
        for row in rows
    ]


def distinct_values(cursor: DuckDBPyConnection, field: str) -> list[str]:
    """Distinct non-empty values of a fixed field or ``tag:<key>``.

    Used to populate the value checkboxes of the filter wizard.
    """
    if field in FIXED_FIELDS:
        expr, params = field, []
    elif is_tag_reference(field):
        expr, params = "json_extract_string(tags, ?)", [tag_pointer(tag_key_of(field))]
    else:
        raise ValueError(f"unsupported filter field {field!r}")

    rows = cursor.execute(
        f"SELECT DISTINCT v FROM (SELECT {expr} AS v FROM resources) "
        "WHERE v IS NOT NULL AND v <> '' ORDER BY v",
        params,
    ).fetchall()
    return [row[0] for row in rows]


def tag_keys(cursor: DuckDBPyConnection) -> list[str]:
    """Distinct tag keys across the inventory."""
    rows = cursor.execute(
        "SELECT DISTINCT k FROM ("
        "  SELECT UNNEST(json_keys(tags)) AS k FROM resources "
        "  WHERE tags IS NOT NULL"
        ") ORDER BY k"
    ).fetchall()
    return [row[0] for row in rows]
