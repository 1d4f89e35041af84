"""Core protocols for backing document stores."""

from collections.abc import Callable, Mapping, Sequence
from typing import Protocol, Self, TypeVar, runtime_checkable

from nvisy_docstore.filters import Filter
from nvisy_docstore.types.datatypes import Document, VersionedDocument
from nvisy_docstore.types.indexes import IndexSpec
from nvisy_docstore.types.patterns import SortField
from nvisy_docstore.types.store import QueryResult, TransactionOutcome
from nvisy_docstore.types.writes import PendingWrite, WriteOutcome

Cred_contra = TypeVar("Cred_contra", contravariant=True)
Params_contra = TypeVar("Params_contra", contravariant=True)

type Snapshot = Mapping[str, VersionedDocument | None]
"""Documents read at the start of a transaction, keyed by key; None if missing."""

type TransactionBody = Callable[[Snapshot], Mapping[str, Document]]
"""Computes the documents to write from a snapshot. Must be free of side effects."""


@runtime_checkable
class DocumentStore(Protocol):
    """The four primitives the engine needs from a document collection."""

    @property
    def key_field(self) -> str:
        """Name of the unique primary-key field inside documents."""
        ...

    async def query(
        self,
        filter: Filter,  # noqa: A002
        sort: Sequence[SortField],
        limit: int,
    ) -> QueryResult:
        """Return at most `limit` records matching `filter`, ordered by `sort`."""
        ...

    async def bulk_write(self, operations: Sequence[PendingWrite]) -> list[WriteOutcome]:
        """Apply a batch of writes and return one outcome per operation.

        Individual rejections (duplicate key, missing document) are reported
        in the outcomes. An exception means the whole batch failed and none
        of it was applied; stores should raise `DocStoreError`, anything
        else is reported as a `PROVIDER` failure of the batch.
        """
        ...

    async def transaction(
        self,
        keys: Sequence[str],
        body: TransactionBody,
    ) -> TransactionOutcome:
        """Read `keys`, compute writes with `body`, commit if none changed meanwhile.

        Returns an outcome with `committed=False` on a conflicting concurrent
        write. Exceptions raised by `body` abort the transaction and propagate.
        """
        ...

    async def list_indexes(self) -> list[IndexSpec]:
        """Return the index specifications defined on the collection."""
        ...


@runtime_checkable
class Provider(Protocol[Cred_contra, Params_contra]):
    """Protocol for provider lifecycle management."""

    @classmethod
    async def connect(cls, credentials: Cred_contra, params: Params_contra) -> Self:
        """Establish connection to the external service."""
        ...

    async def disconnect(self) -> None:
        """Release resources and close connections."""
        ...
