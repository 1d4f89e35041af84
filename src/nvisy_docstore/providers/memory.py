"""In-process document store.

Implements the full `DocumentStore` protocol over a dict: unique-index
enforcement, store-wide monotonic versions and optimistic commits. It
yields to the event loop between the read and the commit of a
transaction, so concurrent callers interleave the way they would against a
networked store.
"""

import asyncio
import copy
import itertools
import uuid
from collections.abc import Iterable, Sequence
from typing import ClassVar, Self

from pydantic import BaseModel

from nvisy_docstore.errors import DocStoreError, ErrorKind, invalid_argument
from nvisy_docstore.filters import Filter, evaluate, sort_key
from nvisy_docstore.protocols import TransactionBody
from nvisy_docstore.types.datatypes import Document, VersionedDocument, get_path
from nvisy_docstore.types.indexes import IndexSpec
from nvisy_docstore.types.params import CollectionParams
from nvisy_docstore.types.patterns import SortField
from nvisy_docstore.types.store import QueryResult, TransactionOutcome
from nvisy_docstore.types.writes import Delete, Insert, PendingWrite, Update, WriteOutcome

DUPLICATE_KEY = "duplicate key"
NOT_FOUND = "not found"


class MemoryCredentials(BaseModel, frozen=True):
    """The in-memory store needs no credentials."""


class MemoryParams(CollectionParams, frozen=True):
    """Parameters for the in-memory store.

    Inherits `collection` and `key_field` from CollectionParams.
    """

    collection: str = "documents"


class MemoryDocumentStore:
    """Dict-backed document collection."""

    __slots__: ClassVar[tuple[str, ...]] = ("_documents", "_indexes", "_params", "_versions")

    _documents: dict[str, tuple[Document, int]]
    _indexes: list[IndexSpec]
    _params: MemoryParams

    def __init__(
        self,
        params: MemoryParams | None = None,
        indexes: Iterable[IndexSpec] = (),
    ) -> None:
        self._params = params or MemoryParams()
        self._documents = {}
        self._indexes = []
        self._versions = itertools.count(1)
        for spec in indexes:
            self.create_index(spec)

    @classmethod
    async def connect(cls, credentials: MemoryCredentials, params: MemoryParams) -> Self:  # noqa: ARG003
        """Create an empty store."""
        return cls(params)

    async def disconnect(self) -> None:
        """Nothing to release."""

    @property
    def key_field(self) -> str:
        return self._params.key_field

    def __len__(self) -> int:
        return len(self._documents)

    def create_index(self, spec: IndexSpec) -> IndexSpec:
        """Register an index; unique indexes are enforced on later writes."""
        if spec.name is None:
            name = "_".join(f"{k.field}_{int(k.direction)}" for k in spec.keys)
            spec = spec.model_copy(update={"name": name})
        self._indexes.append(spec)
        return spec

    def load(self, documents: Iterable[Document]) -> None:
        """Insert documents directly, bypassing bulk-write reporting."""
        for document in documents:
            outcome = self._insert(document)
            if not outcome.ok:
                msg = f"Cannot load document: {outcome.reason}"
                raise invalid_argument(msg, key=outcome.key)

    def get(self, key: str) -> Document | None:
        """Return a copy of the stored document, if any."""
        entry = self._documents.get(key)
        return copy.deepcopy(entry[0]) if entry else None

    async def query(
        self,
        filter: Filter,  # noqa: A002
        sort: Sequence[SortField],
        limit: int,
    ) -> QueryResult:
        await asyncio.sleep(0)
        matched = [doc for doc, _ in self._documents.values() if evaluate(filter, doc)]
        matched.sort(key=sort_key(sort))
        return QueryResult(
            records=[copy.deepcopy(doc) for doc in matched[:limit]],
            examined=len(self._documents),
        )

    async def bulk_write(self, operations: Sequence[PendingWrite]) -> list[WriteOutcome]:
        await asyncio.sleep(0)
        return [self._apply(op) for op in operations]

    async def transaction(self, keys: Sequence[str], body: TransactionBody) -> TransactionOutcome:
        snapshot: dict[str, VersionedDocument | None] = {}
        for key in keys:
            entry = self._documents.get(key)
            snapshot[key] = (
                None
                if entry is None
                else VersionedDocument(key=key, document=copy.deepcopy(entry[0]), version=entry[1])
            )

        writes = body(snapshot)
        unknown = set(writes) - set(keys)
        if unknown:
            msg = f"Transaction wrote keys it did not read: {sorted(unknown)}"
            raise invalid_argument(msg)

        await asyncio.sleep(0)

        # No await between the version check and the writes below.
        for key, seen in snapshot.items():
            entry = self._documents.get(key)
            current = None if entry is None else entry[1]
            if current != (None if seen is None else seen.version):
                return TransactionOutcome(committed=False)

        for key, document in writes.items():
            stored = {**document, self.key_field: key}
            reason = self._unique_violation(stored, exclude=key)
            if reason is not None:
                msg = f"Transaction write to '{key}' rejected: {reason}"
                raise DocStoreError(msg, kind=ErrorKind.PROVIDER, context={"key": key})
        committed: dict[str, Document] = {}
        for key, document in writes.items():
            stored = copy.deepcopy({**document, self.key_field: key})
            self._documents[key] = (stored, next(self._versions))
            committed[key] = copy.deepcopy(stored)
        return TransactionOutcome(committed=True, documents=committed)

    async def list_indexes(self) -> list[IndexSpec]:
        primary = IndexSpec(keys={self.key_field: 1}, name="primary", unique=True)
        return [primary, *self._indexes]

    def _apply(self, op: PendingWrite) -> WriteOutcome:
        match op:
            case Insert(document=document):
                return self._insert(document)
            case Update(key=key, patch=patch):
                return self._update(key, patch)
            case Delete(key=key):
                if self._documents.pop(key, None) is None:
                    return WriteOutcome.rejected(NOT_FOUND, key=key)
                return WriteOutcome.applied(key)

    def _insert(self, document: Document) -> WriteOutcome:
        raw_key = document.get(self.key_field)
        key = str(raw_key) if raw_key is not None else uuid.uuid4().hex
        if not key:
            return WriteOutcome.rejected("empty key")
        if key in self._documents:
            return WriteOutcome.rejected(DUPLICATE_KEY, key=key)
        stored = copy.deepcopy({**document, self.key_field: key})
        reason = self._unique_violation(stored, exclude=None)
        if reason is not None:
            return WriteOutcome.rejected(reason, key=key)
        self._documents[key] = (stored, next(self._versions))
        return WriteOutcome.applied(key)

    def _update(self, key: str, patch: Document) -> WriteOutcome:
        entry = self._documents.get(key)
        if entry is None:
            return WriteOutcome.rejected(NOT_FOUND, key=key)
        if self.key_field in patch and patch[self.key_field] != key:
            return WriteOutcome.rejected("key is immutable", key=key)
        stored = copy.deepcopy({**entry[0], **patch})
        reason = self._unique_violation(stored, exclude=key)
        if reason is not None:
            return WriteOutcome.rejected(reason, key=key)
        self._documents[key] = (stored, next(self._versions))
        return WriteOutcome.applied(key)

    def _unique_violation(self, document: Document, exclude: str | None) -> str | None:
        for index in self._indexes:
            if not index.unique:
                continue
            values = [get_path(document, f) for f in index.fields]
            for key, (other, _) in self._documents.items():
                if key != exclude and [get_path(other, f) for f in index.fields] == values:
                    return DUPLICATE_KEY
        return None


Provider = MemoryDocumentStore
