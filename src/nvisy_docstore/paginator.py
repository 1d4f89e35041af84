"""Paginator: lazy, restartable iteration over an access pattern."""

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator
from typing import Self

from nvisy_docstore.config import RetryPolicy
from nvisy_docstore.errors import invalid_argument
from nvisy_docstore.fetcher import PageFetcher
from nvisy_docstore.retry import retrying
from nvisy_docstore.types.datatypes import Document
from nvisy_docstore.types.pages import Cursor, Page
from nvisy_docstore.types.patterns import AccessPattern

logger = logging.getLogger(__name__)


class Paginator:
    """Yields the records of an access pattern in sort order, one page at a time.

    At most one page is buffered. `cursor()` always reflects the position
    after the last record handed to the caller, so persisting it and
    passing it to a new Paginator resumes without gaps or repeats.

    Records inserted behind the current position during a scan are not
    seen by that scan. One instance serves one logical scan; sharing it
    between concurrent tasks is not supported.
    """

    __slots__ = (
        "_buffer",
        "_busy",
        "_exhausted",
        "_fetcher",
        "_last_values",
        "_next_cursor",
        "_page_size",
        "_pages_fetched",
        "_pattern",
        "_retry",
        "_start",
        "_timeout",
    )

    def __init__(
        self,
        fetcher: PageFetcher,
        pattern: AccessPattern,
        *,
        page_size: int | None = None,
        cursor: Cursor | None = None,
        retry: RetryPolicy | None = None,
        timeout: float | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._pattern = pattern
        self._page_size = fetcher.check_page_size(page_size)
        fetcher.check_pattern(pattern)
        self._retry = retry or fetcher.settings.retry_policy()
        self._timeout = timeout

        if cursor is not None:
            # Reject foreign or corrupt cursors before any I/O.
            _ = fetcher.codec.decode(cursor, pattern)
        self._start = cursor
        self._next_cursor = cursor
        self._last_values: tuple[object, ...] | None = None
        self._buffer: deque[Document] = deque()
        self._exhausted = False
        self._busy = False
        self._pages_fetched = 0

    @property
    def pattern(self) -> AccessPattern:
        return self._pattern

    @property
    def pages_fetched(self) -> int:
        return self._pages_fetched

    @property
    def exhausted(self) -> bool:
        """True once the last page was fetched and every record was emitted."""
        return self._exhausted and not self._buffer

    def cursor(self) -> Cursor | None:
        """Position after the last emitted record; None if nothing was emitted from the start."""
        if self._last_values is None:
            return self._start
        return self._fetcher.codec.encode(self._pattern, self._last_values)

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> Document:
        while not self._buffer:
            if self._exhausted:
                raise StopAsyncIteration
            _ = await self._fetch()
        return self._emit(self._buffer.popleft())

    async def next(self) -> Document:
        """Return the next record; raises `StopAsyncIteration` at end of stream."""
        return await self.__anext__()

    async def pages(self) -> AsyncIterator[Page]:
        """Iterate page by page instead of record by record.

        Records already buffered by record-level iteration are returned
        first as a page of their own. Empty trailing pages are skipped, but
        an empty result set still yields one empty page.
        """
        yielded = False
        if self._buffer:
            records = list(self._buffer)
            self._buffer.clear()
            self._last_values = self._pattern.sort_values(records[-1])
            yielded = True
            yield Page(records=records, next_cursor=self._next_cursor)

        while not self._exhausted:
            page = await self._fetch(buffer=False)
            if page.records:
                self._last_values = self._pattern.sort_values(page.records[-1])
            elif yielded:
                continue
            yielded = True
            yield page

    async def drain(self, cancel: asyncio.Event | None = None) -> list[Document]:
        """Collect all remaining records.

        When `cancel` is set, no further page is requested and the records
        gathered so far are returned. `cursor()` then points at the first
        record not returned.
        """
        out: list[Document] = []
        while True:
            while self._buffer:
                out.append(self._emit(self._buffer.popleft()))
            if self._exhausted:
                break
            if cancel is not None and cancel.is_set():
                logger.info("Scan cancelled after %d records", len(out))
                break
            _ = await self._fetch()
        return out

    def _emit(self, record: Document) -> Document:
        self._last_values = self._pattern.sort_values(record)
        return record

    async def _fetch(self, *, buffer: bool = True) -> Page:
        if self._busy:
            msg = "Paginator does not support concurrent use; create one per scan"
            raise invalid_argument(msg, pattern=self._pattern.fingerprint)
        self._busy = True
        try:
            async for attempt in retrying(self._retry):
                with attempt:
                    page = await self._fetcher.fetch(
                        self._pattern,
                        self._next_cursor,
                        self._page_size,
                        timeout=self._timeout,
                    )
        finally:
            self._busy = False

        self._pages_fetched += 1
        self._next_cursor = page.next_cursor  # pyright: ignore[reportPossiblyUnboundVariable]
        self._exhausted = page.next_cursor is None  # pyright: ignore[reportPossiblyUnboundVariable]
        if buffer:
            self._buffer.extend(page.records)  # pyright: ignore[reportPossiblyUnboundVariable]
        return page  # pyright: ignore[reportPossiblyUnboundVariable]
