"""Parameter types for store providers.

Params define which collection a provider is bound to and how documents are
keyed; cursors and snapshots carry runtime state.
"""

from pydantic import BaseModel, Field


class CollectionParams(BaseModel, frozen=True):
    """Common parameters for document collections."""

    collection: str = Field(min_length=1)
    """Target collection (table) name."""

    key_field: str = Field(default="_id", min_length=1)
    """Unique primary key field inside each document."""
