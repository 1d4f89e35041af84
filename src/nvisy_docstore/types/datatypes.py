"""Document types exchanged with the backing store.

Documents are schema-agnostic mappings at the engine boundary. Callers that
want a typed view express mutations and patches against their own pydantic
models (see `MutationOp.typed` and `Update`).
"""

from pydantic import BaseModel, Field

# JSON-compatible value type.
type JsonValue = str | int | float | bool | None | list["JsonValue"] | dict[str, "JsonValue"]

# A stored document. Values are usually JSON-compatible but stores may hold
# richer scalars (timestamps, decimals).
type Document = dict[str, object]


def get_path(document: dict[str, object], field: str) -> object:
    """Look up a possibly dotted field path, returning None when absent."""
    current: object = document
    for part in field.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)  # pyright: ignore[reportUnknownMemberType]
    return current


class VersionedDocument(BaseModel, frozen=True):
    """A document snapshot together with its store-assigned version."""

    key: str
    """Primary key of the document."""

    document: Document = Field(default_factory=dict)
    """Document content at the time of the read."""

    version: int
    """Monotonic version; changes on every committed write."""
