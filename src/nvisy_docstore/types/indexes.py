"""Index specifications and advisor reports."""

from pydantic import BaseModel, field_validator

from nvisy_docstore.types.patterns import SortDirection, SortField


class IndexSpec(BaseModel, frozen=True):
    """A compound index: ordered keys with a direction each."""

    keys: tuple[SortField, ...]
    """Index keys in order."""

    name: str | None = None
    """Store-side index name, if known."""

    unique: bool = False
    """Whether the index enforces uniqueness."""

    @field_validator("keys", mode="before")
    @classmethod
    def _parse_keys(cls, value: object) -> object:
        if isinstance(value, dict):
            return tuple(
                SortField(field=str(k), direction=SortDirection(v))  # pyright: ignore[reportUnknownArgumentType]
                for k, v in value.items()  # pyright: ignore[reportUnknownVariableType]
            )
        if isinstance(value, list | tuple):
            return tuple(SortField.parse(item) for item in value)  # pyright: ignore[reportUnknownArgumentType, reportUnknownVariableType]
        return value

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(k.field for k in self.keys)

    def as_dict(self) -> dict[str, int]:
        """Return the keys as an ordered `{field: direction}` mapping."""
        return {k.field: int(k.direction) for k in self.keys}


class IndexReport(BaseModel, frozen=True):
    """Result of checking an access pattern against existing indexes."""

    ok: bool
    """True when an existing index serves the pattern."""

    suggested: IndexSpec
    """Minimal index the pattern needs."""

    matched: IndexSpec | None = None
    """The existing index that serves the pattern, when `ok`."""

    @property
    def missing(self) -> bool:
        return not self.ok

    def __str__(self) -> str:
        if self.ok:
            return "Ok"
        return f"MissingIndex({self.suggested.as_dict()})"
