"""Chunked bulk writer.

Large write sets are split into ordered chunks that each fit in a single
store request. Chunks go out one after another and a failing chunk never
stops the ones after it, so every pending write ends with exactly one
result.
"""

import asyncio
import logging
from collections.abc import Sequence

from nvisy_docstore.config import EngineSettings, RetryPolicy, get_settings
from nvisy_docstore.errors import DocStoreError, ErrorKind, invalid_argument, require_key
from nvisy_docstore.protocols import DocumentStore
from nvisy_docstore.retry import retrying, with_timeout
from nvisy_docstore.types.writes import (
    BulkReport,
    BulkResult,
    BulkStatus,
    Delete,
    PendingWrite,
    Update,
    WriteOutcome,
)

logger = logging.getLogger(__name__)


def chunked[T](items: Sequence[T], size: int) -> list[Sequence[T]]:
    """Split `items` into consecutive slices of at most `size`."""
    if size <= 0:
        msg = f"chunk size must be positive, got {size}"
        raise invalid_argument(msg, chunk_size=size)
    return [items[i : i + size] for i in range(0, len(items), size)]


class BulkWriter:
    """Submits pending writes in size-bounded chunks with per-write reporting."""

    __slots__ = ("_settings", "_store")

    def __init__(self, store: DocumentStore, settings: EngineSettings | None = None) -> None:
        self._store = store
        self._settings = settings or get_settings()

    def check_chunk_size(self, chunk_size: int | None) -> int:
        """Resolve the default chunk size and reject out-of-range values."""
        if chunk_size is None:
            return self._settings.default_chunk_size
        if not 1 <= chunk_size <= self._settings.max_chunk_size:
            msg = (
                f"chunk_size must be between 1 and {self._settings.max_chunk_size}, "
                f"got {chunk_size}"
            )
            raise invalid_argument(msg, chunk_size=chunk_size)
        return chunk_size

    async def submit(
        self,
        writes: Sequence[PendingWrite],
        chunk_size: int | None = None,
        *,
        retry: RetryPolicy | None = None,
        cancel: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> BulkReport:
        """Submit `writes` and report one result per write, in input order.

        Chunks that fail as a whole with a transient error are retried
        within `retry`. Per-document rejections are reported as-is and never
        retried. Once `cancel` is set no new chunk is started and the
        remaining writes are reported as skipped.
        """
        size = self.check_chunk_size(chunk_size)
        self._validate(writes)
        policy = retry or self._settings.retry_policy()
        timeout = timeout if timeout is not None else self._settings.store_timeout

        results: list[BulkResult] = []
        chunks_sent = 0
        cancelled = False

        for chunk_index, chunk in enumerate(chunked(writes, size)):
            offset = chunk_index * size
            if cancel is not None and cancel.is_set():
                cancelled = True
                logger.info("Bulk submit cancelled before chunk %d", chunk_index)
                results.extend(
                    BulkResult(
                        index=i,
                        write=write,
                        status=BulkStatus.SKIPPED,
                        reason="cancelled",
                    )
                    for i, write in enumerate(writes[offset:], start=offset)
                )
                break

            chunks_sent += 1
            try:
                outcomes = await self._submit_chunk(chunk, chunk_index, policy, timeout)
            except DocStoreError as e:
                logger.warning(
                    "Chunk %d (%d writes) failed: %s [%s]",
                    chunk_index,
                    len(chunk),
                    e.message,
                    e.kind,
                )
                outcomes = [WriteOutcome.rejected(e.message)] * len(chunk)

            results.extend(
                BulkResult(
                    index=i,
                    write=write,
                    status=BulkStatus.APPLIED if outcome.ok else BulkStatus.FAILED,
                    reason=outcome.reason,
                    key=outcome.key or _write_key(write),
                )
                for i, (write, outcome) in enumerate(zip(chunk, outcomes, strict=True), start=offset)
            )

        report = BulkReport(results=results, chunks=chunks_sent, cancelled=cancelled)
        logger.debug(
            "Bulk submit finished: %d applied, %d failed, %d skipped in %d chunks",
            report.applied,
            report.failed,
            report.skipped,
            report.chunks,
        )
        return report

    async def _submit_chunk(
        self,
        chunk: Sequence[PendingWrite],
        chunk_index: int,
        policy: RetryPolicy,
        timeout: float | None,
    ) -> list[WriteOutcome]:
        try:
            async for attempt in retrying(policy):
                with attempt:
                    outcomes = await with_timeout(
                        self._store.bulk_write(chunk),
                        timeout,
                        operation=f"Bulk write of chunk {chunk_index}",
                    )
        except DocStoreError:
            raise
        except Exception as e:
            msg = f"Bulk write of chunk {chunk_index} failed: {e}"
            raise DocStoreError(
                msg, kind=ErrorKind.PROVIDER, source=e, context={"chunk": chunk_index}
            ) from e
        if len(outcomes) != len(chunk):  # pyright: ignore[reportPossiblyUnboundVariable]
            msg = f"Store returned {len(outcomes)} outcomes for {len(chunk)} writes"  # pyright: ignore[reportPossiblyUnboundVariable]
            raise DocStoreError(msg, kind=ErrorKind.PROVIDER, context={"chunk": chunk_index})
        return outcomes  # pyright: ignore[reportPossiblyUnboundVariable]

    @staticmethod
    def _validate(writes: Sequence[PendingWrite]) -> None:
        seen: set[int] = set()
        for index, write in enumerate(writes):
            if id(write) in seen:
                msg = f"Pending write at index {index} was submitted more than once"
                raise invalid_argument(msg, index=index)
            seen.add(id(write))
            if isinstance(write, Update | Delete):
                _ = require_key(write.key)


def _write_key(write: PendingWrite) -> str | None:
    if isinstance(write, Update | Delete):
        return write.key
    return None
