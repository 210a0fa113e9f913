"""DuckDB connection wrapper with schema initialization."""

import json
import threading
from collections.abc import Iterable
from pathlib import Path

import duckdb

from cloudinv.models.resource import Resource


class DuckDBRepo:
    """Manages a DuckDB connection and schema lifecycle.

    Opens a single persistent connection at startup.  Callers obtain
    cursors via ``connection.cursor()`` for concurrent read access.
    Read-modify-write sequences hold ``write_lock`` so overlapping
    requests never update the same row from two transactions.
    """

    def __init__(self, db_path: str | Path) -> None:
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self.connection: duckdb.DuckDBPyConnection = duckdb.connect(str(db_path))
        self.write_lock = threading.Lock()

    def initialize_schema(self) -> None:
        """Create the inventory tables if they do not already exist.

        Tags are a flat JSON object (key -> value). A view's hidden
        resources are kept as a JSON array of resource ids in
        ``saved_views.hidden_ids``.
        """
        self.connection.execute("""
            CREATE TABLE IF NOT EXISTS resources (
                id              VARCHAR NOT NULL,
                resource_id     VARCHAR DEFAULT '',
                provider        VARCHAR NOT NULL,
                account         VARCHAR NOT NULL,
                service         VARCHAR NOT NULL,
                name            VARCHAR NOT NULL,
                region          VARCHAR NOT NULL,
                cost            DOUBLE DEFAULT 0.0,
                tags            JSON,
                fetched_at      TIMESTAMP DEFAULT current_timestamp
            )
        """)

        self.connection.execute("""
            CREATE TABLE IF NOT EXISTS saved_views (
                id              VARCHAR NOT NULL,
                name            VARCHAR NOT NULL,
                filters         JSON NOT NULL,
                hidden_ids      JSON,
                created_at      TIMESTAMP DEFAULT current_timestamp,
                updated_at      TIMESTAMP DEFAULT current_timestamp
            )
        """)

    def insert_resources(self, resources: Iterable[Resource]) -> int:
        """Insert or replace resources by ``id``. Returns the number written."""
        rows = [
            [
                r.id,
                r.resource_id,
                r.provider,
                r.account,
                r.service,
                r.name,
                r.region,
                r.cost,
                json.dumps(r.tags),
            ]
            # Last occurrence of an id wins
            for r in {r.id: r for r in resources}.values()
        ]
        if not rows:
            return 0

        cursor = self.connection.cursor()
        try:
            with self.write_lock:
                cursor.execute(
                    f"DELETE FROM resources WHERE id IN ({', '.join(['?'] * len(rows))})",
                    [row[0] for row in rows],
                )
                cursor.executemany(
                    "INSERT INTO resources "
                    "(id, resource_id, provider, account, service, name, region, cost, tags) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?::JSON)",
                    rows,
                )
        finally:
            cursor.close()
        return len(rows)

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        self.connection.close()
