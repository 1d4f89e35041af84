from conftest import make_records
from pydantic import SecretStr

from nvisy_docstore import DocumentEngine, EngineSettings
from nvisy_docstore.ops import increment
from nvisy_docstore.providers.memory import MemoryDocumentStore
from nvisy_docstore.types import AccessPattern, IndexSpec, Insert, PendingWrite


async def test_end_to_end(settings: EngineSettings) -> None:
    store = MemoryDocumentStore(indexes=[IndexSpec(keys={"category": 1, "price": 1})])
    engine = DocumentEngine(store, settings)

    writes: list[PendingWrite] = [Insert(document=d) for d in make_records(25)]
    report = await engine.writer.submit(writes, chunk_size=10)
    report.raise_for_failures()

    pattern = AccessPattern(equality={"category": "books"}, sort=["price"])
    books = [r async for r in engine.paginate(pattern, page_size=4)]
    assert len(books) == 13

    advisor = await engine.advisor()
    assert advisor.check(pattern).ok

    updated = await engine.mutator.apply("r01", increment("price", 100))
    assert updated["price"] == 107


async def test_signed_cursors_from_settings() -> None:
    settings = EngineSettings(cursor_secret=SecretStr("k"))
    store = MemoryDocumentStore()
    store.load(make_records(5))
    engine = DocumentEngine(store, settings)

    page = await engine.fetcher.fetch(AccessPattern(sort=["createdAt"]), page_size=2)
    assert page.next_cursor is not None
    assert "." in page.next_cursor.token
