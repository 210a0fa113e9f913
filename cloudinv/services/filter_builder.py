"""Dynamic SQL query builder for inventory filtering.

Constructs parameterized DuckDB SQL from filter clauses.
All user input goes through parameterized queries (?) to prevent
SQL injection. Column names are validated against an allowlist and tag
keys are passed as JSON pointer parameters.
"""

from dataclasses import dataclass

from cloudinv.models.filter import (
    FIXED_FIELDS,
    FilterClause,
    FilterOperator,
    is_tag_reference,
    tag_key_of,
)


@dataclass
class FilterResult:
    """Result of building a dynamic SQL query."""

    where_clause: str
    params: list
    order_clause: str = "ORDER BY r.id ASC"


def tag_pointer(key: str) -> str:
    """JSON pointer for a top-level tag key (RFC 6901 escaping)."""
    return "/" + key.replace("~", "~0").replace("/", "~1")


def like_pattern(value: str) -> str:
    """Substring ILIKE pattern with ``\\``, ``%`` and ``_`` matched literally."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ResourceFilterBuilder:
    """Build parameterized DuckDB SQL from inventory filter clauses.

    Clauses are AND-ed together.

    Usage::

        builder = ResourceFilterBuilder()
        result = (
            builder
            .add_clauses(view.filters)
            .exclude_ids(view.exclude)
            .build(sort_by="cost", sort_dir="desc")
        )
    """

    # Columns that can be sorted -- prevents SQL injection via column names
    SORTABLE_COLUMNS = {"id", "provider", "account", "service", "name", "region", "cost"}

    def __init__(self) -> None:
        self.conditions: list[str] = []
        self.params: list = []

    def add_clause(self, clause: FilterClause) -> "ResourceFilterBuilder":
        """Translate one clause into a WHERE condition."""
        expr, expr_params = self._field_expression(clause.field)
        values = list(clause.values)
        op = clause.operator

        if op in (FilterOperator.IS_EMPTY, FilterOperator.IS_NOT_EMPTY):
            if op == FilterOperator.IS_EMPTY:
                self.conditions.append(f"({expr} IS NULL OR {expr} = '')")
            else:
                self.conditions.append(f"({expr} IS NOT NULL AND {expr} <> '')")
            self.params.extend(expr_params * 2)
            return self

        if not values:
            # Nothing to compare against: positive operators match nothing,
            # negated ones match everything
            positive = op in (FilterOperator.IS, FilterOperator.CONTAINS)
            self.conditions.append("FALSE" if positive else "TRUE")
            return self

        if op in (FilterOperator.IS, FilterOperator.IS_NOT):
            placeholders = ", ".join(["?"] * len(values))
            if op == FilterOperator.IS:
                self.conditions.append(f"{expr} IN ({placeholders})")
                self.params.extend(expr_params + values)
            else:
                self.conditions.append(
                    f"({expr} IS NULL OR {expr} NOT IN ({placeholders}))"
                )
                self.params.extend(expr_params * 2 + values)
            return self

        # CONTAINS / NOT_CONTAINS: case-insensitive substring on any value
        likes = " OR ".join([f"{expr} ILIKE ? ESCAPE '\\'"] * len(values))
        like_params: list = []
        for value in values:
            like_params.extend(expr_params)
            like_params.append(like_pattern(value))

        if op == FilterOperator.CONTAINS:
            self.conditions.append(f"({likes})")
            self.params.extend(like_params)
        else:
            self.conditions.append(f"({expr} IS NULL OR NOT ({likes}))")
            self.params.extend(expr_params + like_params)
        return self

    def add_clauses(self, clauses: list[FilterClause] | None) -> "ResourceFilterBuilder":
        for clause in clauses or []:
            self.add_clause(clause)
        return self

    def exclude_ids(self, ids: list[str] | None) -> "ResourceFilterBuilder":
        """Drop resources hidden from a view. Skipped if empty."""
        if ids:
            placeholders = ", ".join(["?"] * len(ids))
            self.conditions.append(f"r.id NOT IN ({placeholders})")
            self.params.extend(ids)
        return self

    def build_order(
        self, sort_by: str | None, sort_dir: str | None
    ) -> str:
        """Build ORDER BY clause with allowlisted column validation."""
        if sort_by and sort_by in self.SORTABLE_COLUMNS:
            direction = "DESC" if sort_dir == "desc" else "ASC"
            return f"ORDER BY r.{sort_by} {direction}, r.id ASC"
        return "ORDER BY r.id ASC"

    def build(
        self, sort_by: str | None = None, sort_dir: str | None = None
    ) -> FilterResult:
        """Build the final FilterResult with WHERE and ORDER clauses."""
        where = " AND ".join(self.conditions) if self.conditions else "TRUE"
        return FilterResult(
            where_clause=where,
            params=list(self.params),
            order_clause=self.build_order(sort_by, sort_dir),
        )

    @staticmethod
    def _field_expression(field: str) -> tuple[str, list]:
        """SQL expression and its params for a fixed field or tag reference."""
        if field in FIXED_FIELDS:
            return f"r.{field}", []
        if is_tag_reference(field):
            return "json_extract_string(r.tags, ?)", [tag_pointer(tag_key_of(field))]
        raise ValueError(f"unsupported filter field {field!r}")
