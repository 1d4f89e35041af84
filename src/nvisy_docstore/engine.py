"""Engine facade wiring the components around one document store."""

from nvisy_docstore.advisor import IndexAdvisor
from nvisy_docstore.bulk import BulkWriter
from nvisy_docstore.config import EngineSettings, RetryPolicy, get_settings
from nvisy_docstore.cursor import CursorCodec
from nvisy_docstore.fetcher import PageFetcher
from nvisy_docstore.mutator import Mutator
from nvisy_docstore.paginator import Paginator
from nvisy_docstore.protocols import DocumentStore
from nvisy_docstore.types.pages import Cursor
from nvisy_docstore.types.patterns import AccessPattern


class DocumentEngine:
    """Paginated reads, chunked bulk writes and safe mutations over `store`.

    Example:
        engine = DocumentEngine(store)
        async for record in engine.paginate(pattern, page_size=50):
            ...
        report = await engine.writer.submit(writes)
        doc = await engine.mutator.apply("user-1", increment("visits"))
    """

    __slots__ = ("codec", "fetcher", "mutator", "settings", "store", "writer")

    def __init__(self, store: DocumentStore, settings: EngineSettings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()
        self.codec = CursorCodec(
            self.settings.cursor_secret.get_secret_value() if self.settings.cursor_secret else None
        )
        self.fetcher = PageFetcher(store, self.codec, self.settings)
        self.writer = BulkWriter(store, self.settings)
        self.mutator = Mutator(store, self.settings)

    def paginate(
        self,
        pattern: AccessPattern,
        *,
        page_size: int | None = None,
        cursor: Cursor | None = None,
        retry: RetryPolicy | None = None,
        timeout: float | None = None,
    ) -> Paginator:
        """Start (or resume from `cursor`) a scan over `pattern`."""
        return Paginator(
            self.fetcher,
            pattern,
            page_size=page_size,
            cursor=cursor,
            retry=retry,
            timeout=timeout,
        )

    async def advisor(self) -> IndexAdvisor:
        """Index advisor loaded with the store's current indexes."""
        return await IndexAdvisor.from_store(self.store)
