"""Pydantic models for inventory filter clauses and the in-progress draft."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator

TAG_FIELD = "tag"
TAG_PREFIX = "tag:"


class FilterField(str, Enum):
    """Resource columns a filter clause can target directly."""

    PROVIDER = "provider"
    REGION = "region"
    ACCOUNT = "account"
    NAME = "name"
    SERVICE = "service"


class FilterOperator(str, Enum):
    """Comparison applied between a field and the clause values."""

    IS = "IS"
    IS_NOT = "IS_NOT"
    CONTAINS = "CONTAINS"
    NOT_CONTAINS = "NOT_CONTAINS"
    IS_EMPTY = "IS_EMPTY"
    IS_NOT_EMPTY = "IS_NOT_EMPTY"


FIXED_FIELDS = frozenset(f.value for f in FilterField)

# Operators that never read the clause values
VALUELESS_OPERATORS = frozenset(
    {FilterOperator.IS_EMPTY, FilterOperator.IS_NOT_EMPTY}
)


def is_tag_reference(field: str) -> bool:
    """Return ``True`` for ``tag:<key>`` with a non-empty key."""
    return field.startswith(TAG_PREFIX) and len(field) > len(TAG_PREFIX)


def tag_key_of(field: str) -> str:
    """Extract the tag key from a ``tag:<key>`` field reference."""
    return field[len(TAG_PREFIX):]


def is_known_field(field: str) -> bool:
    """Fields accepted by the wizard: fixed fields, bare ``tag``, or tag refs."""
    return field in FIXED_FIELDS or field == TAG_FIELD or is_tag_reference(field)


class FilterClause(BaseModel):
    """One finalized filter predicate, as sent to the filtering service."""

    model_config = ConfigDict(frozen=True)

    field: str
    operator: FilterOperator
    values: list[str] = []

    @field_validator("field")
    @classmethod
    def _field_is_filterable(cls, value: str) -> str:
        if value in FIXED_FIELDS or is_tag_reference(value):
            return value
        raise ValueError(
            f"unsupported filter field {value!r}; expected one of "
            f"{sorted(FIXED_FIELDS)} or 'tag:<key>'"
        )


class FilterDraft(BaseModel):
    """In-progress filter clause accumulated by the filter wizard.

    Frozen: every change produces a new draft via the ``with_*`` helpers
    so a draft handed to a caller is never changed underneath it.
    """

    model_config = ConfigDict(frozen=True)

    field: str | None = None
    operator: FilterOperator | None = None
    tag_key: str | None = None
    values: tuple[str, ...] = ()

    @property
    def is_submittable(self) -> bool:
        """Both ``field`` and ``operator`` are set."""
        return self.field is not None and self.operator is not None

    @property
    def resolved_field(self) -> str | None:
        """Field name after folding ``tag_key`` in, or ``None`` if unusable."""
        if self.tag_key:
            return f"{TAG_PREFIX}{self.tag_key}"
        if self.field is None or self.field == TAG_FIELD:
            return None
        return self.field

    def with_field(self, field: str) -> FilterDraft:
        return self.model_copy(update={"field": field})

    def with_operator(self, operator: FilterOperator) -> FilterDraft:
        return self.model_copy(update={"operator": operator})

    def with_tag_key(self, tag_key: str) -> FilterDraft:
        return self.model_copy(update={"tag_key": tag_key})

    def with_value_checked(self, value: str, checked: bool) -> FilterDraft:
        """Add or remove *value*; re-applying the same toggle is a no-op."""
        present = value in self.values
        if checked and not present:
            values = self.values + (value,)
        elif not checked and present:
            values = tuple(v for v in self.values if v != value)
        else:
            return self
        return self.model_copy(update={"values": values})

    def with_single_value(self, value: str) -> FilterDraft:
        return self.model_copy(update={"values": (value,)})

    def without_values(self) -> FilterDraft:
        return self.model_copy(update={"values": ()})

    def finalize(self) -> FilterClause:
        """Fold the tag key into the field and drop it from the clause.

        Raises ``ValueError`` when the draft has no usable field or no
        operator.
        """
        field = self.resolved_field
        if field is None or self.operator is None:
            raise ValueError("draft needs a field and an operator")
        return FilterClause(
            field=field, operator=self.operator, values=list(self.values)
        )
