"""Access pattern types.

An access pattern is the declared filter and sort shape of a paginated
query. It is used to build store queries, to bind cursors to the query that
produced them, and to derive index requirements.
"""

import hashlib
from enum import IntEnum, StrEnum
from functools import cached_property
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator

from nvisy_docstore.errors import invalid_argument
from nvisy_docstore.serialize import canonical_json, to_tagged
from nvisy_docstore.types.datatypes import Document, get_path


class SortDirection(IntEnum):
    """Sort direction, using the conventional 1 / -1 encoding."""

    ASC = 1
    DESC = -1

    @property
    def reversed(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


class SortField(BaseModel, frozen=True):
    """A single field in a sort or index specification."""

    field: str = Field(min_length=1)
    """Field name; dotted paths address nested values."""

    direction: SortDirection = SortDirection.ASC
    """Sort direction."""

    @classmethod
    def parse(cls, value: "SortField | str | tuple[str, int] | dict[str, object]") -> "SortField":
        """Accept `"price"`, `"-price"`, `("price", -1)`, a mapping or a SortField."""
        if isinstance(value, SortField):
            return value
        if isinstance(value, dict):
            return cls.model_validate(value)
        if isinstance(value, str):
            if value.startswith("-"):
                return cls(field=value[1:], direction=SortDirection.DESC)
            return cls(field=value.removeprefix("+"))
        name, direction = value
        return cls(field=name, direction=SortDirection(direction))


class RangeOperator(StrEnum):
    """Comparison operators allowed in a range filter."""

    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"


class RangeFilter(BaseModel, frozen=True):
    """A single-field range condition, e.g. `price >= 10`."""

    field: str = Field(min_length=1)
    """Field the bound applies to."""

    operator: RangeOperator
    """Comparison operator."""

    bound: object
    """Bound value."""


class AccessPattern(BaseModel, frozen=True):
    """Declared equality filters, range filter and sort order of a query.

    The effective sort key is `sort` plus the `tiebreaker` field (the
    store's unique key), so every record has a distinct position and cursor
    resumption never skips or repeats records that share sort values.
    """

    equality: dict[str, object] = Field(default_factory=dict)
    """Equality filters as field -> value."""

    range_filter: RangeFilter | None = None
    """Optional range condition; its field must be the first sort field."""

    sort: tuple[SortField, ...]
    """Declared sort fields, in priority order."""

    tiebreaker: str = "_id"
    """Unique field appended to the sort key."""

    @field_validator("sort", mode="before")
    @classmethod
    def _parse_sort(cls, value: object) -> object:
        if isinstance(value, str | SortField):
            value = [value]
        if isinstance(value, list | tuple):
            return tuple(SortField.parse(item) for item in value)  # pyright: ignore[reportUnknownArgumentType, reportUnknownVariableType]
        return value

    @model_validator(mode="after")
    def _check_shape(self) -> Self:
        if not self.sort:
            msg = "Access pattern requires at least one sort field"
            raise invalid_argument(msg)
        names = [s.field for s in self.sort]
        if len(set(names)) != len(names):
            msg = f"Duplicate sort fields in {names}"
            raise invalid_argument(msg)
        if self.range_filter is not None and self.range_filter.field != names[0]:
            msg = (
                f"Range field '{self.range_filter.field}' must be the first sort field "
                f"(got '{names[0]}')"
            )
            raise invalid_argument(msg)
        try:
            _ = to_tagged(self.equality)
            if self.range_filter is not None:
                _ = to_tagged(self.range_filter.bound)
        except TypeError as e:
            msg = f"Unsupported filter value: {e}"
            raise invalid_argument(msg) from e
        return self

    @property
    def effective_sort(self) -> tuple[SortField, ...]:
        """Declared sort fields plus the tiebreaker, when not already present."""
        if any(s.field == self.tiebreaker for s in self.sort):
            return self.sort
        last = self.sort[-1].direction
        return (*self.sort, SortField(field=self.tiebreaker, direction=last))

    def sort_values(self, document: Document) -> tuple[object, ...]:
        """Extract the effective sort key of a record."""
        return tuple(get_path(document, s.field) for s in self.effective_sort)

    @cached_property
    def fingerprint(self) -> str:
        """Stable digest identifying this pattern."""
        shape = {
            "eq": to_tagged(self.equality),
            "range": (
                None
                if self.range_filter is None
                else [
                    self.range_filter.field,
                    self.range_filter.operator.value,
                    to_tagged(self.range_filter.bound),
                ]
            ),
            "sort": [[s.field, int(s.direction)] for s in self.effective_sort],
        }
        digest = hashlib.sha256(canonical_json(shape).encode("utf-8")).hexdigest()
        return digest[:32]
