"""Page fetcher: one bounded keyset query per call."""

import logging

from nvisy_docstore.config import EngineSettings, get_settings
from nvisy_docstore.cursor import CursorCodec
from nvisy_docstore.errors import invalid_argument
from nvisy_docstore.filters import Filter, pattern_filter
from nvisy_docstore.protocols import DocumentStore
from nvisy_docstore.retry import with_timeout
from nvisy_docstore.types.pages import Cursor, Page
from nvisy_docstore.types.patterns import AccessPattern

logger = logging.getLogger(__name__)


class PageFetcher:
    """Issues a single bounded query and returns a page plus its next cursor.

    Transient store errors are raised unchanged; retrying is left to the
    caller (normally a `Paginator`).
    """

    __slots__ = ("_codec", "_settings", "_store")

    def __init__(
        self,
        store: DocumentStore,
        codec: CursorCodec | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or get_settings()
        self._codec = codec or CursorCodec(
            self._settings.cursor_secret.get_secret_value()
            if self._settings.cursor_secret
            else None
        )

    @property
    def codec(self) -> CursorCodec:
        return self._codec

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    def check_page_size(self, page_size: int | None) -> int:
        """Resolve the default page size and reject out-of-range values."""
        if page_size is None:
            return self._settings.default_page_size
        if not 1 <= page_size <= self._settings.max_page_size:
            msg = f"page_size must be between 1 and {self._settings.max_page_size}, got {page_size}"
            raise invalid_argument(msg, page_size=page_size)
        return page_size

    def check_pattern(self, pattern: AccessPattern) -> None:
        """Reject patterns whose tiebreaker is not the store's unique key."""
        if pattern.tiebreaker != self._store.key_field:
            msg = (
                f"Pattern tiebreaker '{pattern.tiebreaker}' must be the store key field "
                f"'{self._store.key_field}'"
            )
            raise invalid_argument(msg, pattern=pattern.fingerprint)

    def build_filter(self, pattern: AccessPattern, cursor: Cursor | None) -> Filter:
        """Combine the pattern's filters with the resume predicate of `cursor`."""
        resume = None if cursor is None else self._codec.decode(cursor, pattern)
        return pattern_filter(pattern, resume)

    async def fetch(
        self,
        pattern: AccessPattern,
        cursor: Cursor | None = None,
        page_size: int | None = None,
        *,
        timeout: float | None = None,
    ) -> Page:
        """Fetch the page that follows `cursor` (or the first page).

        A next cursor is returned only when the page is full; a short page
        marks the end of the stream.
        """
        size = self.check_page_size(page_size)
        self.check_pattern(pattern)
        query_filter = self.build_filter(pattern, cursor)

        result = await with_timeout(
            self._store.query(query_filter, pattern.effective_sort, size),
            timeout if timeout is not None else self._settings.store_timeout,
            operation="Page query",
        )
        records = result.records
        if len(records) > size:
            logger.warning("Store returned %d records for limit %d; truncating", len(records), size)
            records = records[:size]

        next_cursor = None
        if len(records) == size:
            next_cursor = self._codec.encode(pattern, pattern.sort_values(records[-1]))

        logger.debug(
            "Fetched page of %d records (examined=%d, last=%s)",
            len(records),
            result.examined,
            next_cursor is None,
        )
        return Page(records=records, next_cursor=next_cursor, examined=result.examined)
