"""Result types of the backing-store primitives."""

from pydantic import BaseModel, Field

from nvisy_docstore.types.datatypes import Document


class QueryResult(BaseModel, frozen=True):
    """Records returned by a single bounded query."""

    records: list[Document] = Field(default_factory=list)
    """Matching records in the requested order."""

    examined: int = 0
    """Records the store looked at; stores that cannot tell report len(records)."""


class TransactionOutcome(BaseModel, frozen=True):
    """Whether a store transaction committed, and what it wrote."""

    committed: bool
    """False when a read key changed before commit."""

    documents: dict[str, Document] = Field(default_factory=dict)
    """Written documents by key, when committed."""
