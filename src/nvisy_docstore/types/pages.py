"""Cursor and page types returned by paginated reads."""

from pydantic import BaseModel, Field

from nvisy_docstore.types.datatypes import Document


class Cursor(BaseModel, frozen=True):
    """Opaque resume token.

    Safe to persist in a session, a URL parameter or a batch checkpoint.
    Only valid for the access pattern that produced it.
    """

    token: str = Field(min_length=1)
    """Encoded token; treat as an opaque capability."""

    def __str__(self) -> str:
        return self.token


class Page(BaseModel, frozen=True):
    """One bounded slice of a paginated query."""

    records: list[Document] = Field(default_factory=list)
    """Records in sort order."""

    next_cursor: Cursor | None = None
    """Cursor for the following page; None at end of stream."""

    examined: int = 0
    """Records the store examined to produce this page (diagnostic)."""

    @property
    def is_last(self) -> bool:
        return self.next_cursor is None
