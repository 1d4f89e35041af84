"""Data model for the paginated query and safe-mutation engine."""

from nvisy_docstore.types.datatypes import Document, JsonValue, VersionedDocument, get_path
from nvisy_docstore.types.indexes import IndexReport, IndexSpec
from nvisy_docstore.types.pages import Cursor, Page
from nvisy_docstore.types.params import CollectionParams
from nvisy_docstore.types.patterns import (
    AccessPattern,
    RangeFilter,
    RangeOperator,
    SortDirection,
    SortField,
)
from nvisy_docstore.types.store import QueryResult, TransactionOutcome
from nvisy_docstore.types.writes import (
    BulkReport,
    BulkResult,
    BulkStatus,
    Delete,
    Insert,
    PendingWrite,
    Update,
    WriteOutcome,
)

__all__ = [
    # Documents
    "Document",
    "JsonValue",
    "VersionedDocument",
    "get_path",
    # Access patterns
    "AccessPattern",
    "RangeFilter",
    "RangeOperator",
    "SortDirection",
    "SortField",
    # Pagination
    "Cursor",
    "Page",
    # Writes
    "BulkReport",
    "BulkResult",
    "BulkStatus",
    "Delete",
    "Insert",
    "PendingWrite",
    "Update",
    "WriteOutcome",
    # Store primitives
    "QueryResult",
    "TransactionOutcome",
    # Indexes
    "IndexReport",
    "IndexSpec",
    # Providers
    "CollectionParams",
]
