"""Shared fixtures: zero-backoff settings, seeded stores and a flaky store wrapper."""

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

import pytest

from nvisy_docstore.config import EngineSettings, RetryPolicy
from nvisy_docstore.errors import DocStoreError, ErrorKind
from nvisy_docstore.filters import Filter
from nvisy_docstore.protocols import TransactionBody
from nvisy_docstore.providers.memory import MemoryDocumentStore
from nvisy_docstore.types import (
    AccessPattern,
    Document,
    IndexSpec,
    PendingWrite,
    QueryResult,
    SortField,
    TransactionOutcome,
    WriteOutcome,
)

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def make_records(count: int) -> list[Document]:
    """Records `r01..rNN`; consecutive pairs share a `createdAt` value."""
    return [
        {
            "_id": f"r{i:02d}",
            "createdAt": BASE_TIME + timedelta(minutes=i // 2),
            "category": "books" if i % 2 else "music",
            "price": (i * 7) % 20,
        }
        for i in range(1, count + 1)
    ]


class FlakyStore:
    """Wraps a store and fails the first `failures` calls of each kind."""

    def __init__(
        self,
        inner: MemoryDocumentStore,
        failures: int = 1,
        kind: ErrorKind = ErrorKind.CONNECTION,
    ) -> None:
        self.inner = inner
        self.failures = failures
        self.kind = kind
        self.calls: dict[str, int] = {"query": 0, "bulk_write": 0, "transaction": 0}

    @property
    def key_field(self) -> str:
        return self.inner.key_field

    def _maybe_fail(self, name: str) -> None:
        self.calls[name] += 1
        if self.calls[name] <= self.failures:
            msg = f"injected {name} failure #{self.calls[name]}"
            raise DocStoreError(msg, kind=self.kind)

    async def query(self, filter: Filter, sort: Sequence[SortField], limit: int) -> QueryResult:  # noqa: A002
        self._maybe_fail("query")
        return await self.inner.query(filter, sort, limit)

    async def bulk_write(self, operations: Sequence[PendingWrite]) -> list[WriteOutcome]:
        self._maybe_fail("bulk_write")
        return await self.inner.bulk_write(operations)

    async def transaction(self, keys: Sequence[str], body: TransactionBody) -> TransactionOutcome:
        self._maybe_fail("transaction")
        return await self.inner.transaction(keys, body)

    async def list_indexes(self) -> list[IndexSpec]:
        return await self.inner.list_indexes()


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings(
        default_page_size=10,
        retry_initial_backoff=0.0,
        retry_max_backoff=0.0,
        retry_jitter=0.0,
        store_timeout=5.0,
    )


@pytest.fixture
def fast_retry() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, initial_backoff=0.0, max_backoff=0.0, jitter=0.0)


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def seeded_store() -> MemoryDocumentStore:
    store = MemoryDocumentStore()
    store.load(make_records(25))
    return store


@pytest.fixture
def by_created() -> AccessPattern:
    return AccessPattern(sort=["createdAt"])
