import pytest

from nvisy_docstore.errors import DocStoreError, ErrorKind
from nvisy_docstore.filters import MATCH_ALL, Comparison, Operator
from nvisy_docstore.protocols import DocumentStore, Provider, Snapshot
from nvisy_docstore.providers.memory import MemoryCredentials, MemoryDocumentStore, MemoryParams
from nvisy_docstore.types import Document, IndexSpec, Insert, SortField


async def test_connect_and_protocols() -> None:
    store = await MemoryDocumentStore.connect(MemoryCredentials(), MemoryParams(key_field="id"))
    assert isinstance(store, DocumentStore)
    assert isinstance(store, Provider)
    assert store.key_field == "id"
    await store.disconnect()


async def test_insert_assigns_missing_key(store: MemoryDocumentStore) -> None:
    [outcome] = await store.bulk_write([Insert(document={"n": 1})])
    assert outcome.ok
    assert outcome.key
    assert store.get(outcome.key) == {"_id": outcome.key, "n": 1}


async def test_query_filters_sorts_and_limits(store: MemoryDocumentStore) -> None:
    store.load([{"_id": str(i), "n": i % 3} for i in range(6)])
    result = await store.query(
        Comparison("n", Operator.GTE, 1), (SortField.parse("-n"), SortField.parse("_id")), 3
    )
    assert [r["_id"] for r in result.records] == ["2", "5", "1"]
    assert result.examined == 6


async def test_query_returns_copies(store: MemoryDocumentStore) -> None:
    store.load([{"_id": "a", "tags": ["x"]}])
    result = await store.query(MATCH_ALL, (SortField.parse("_id"),), 10)
    result.records[0]["tags"].append("y")  # pyright: ignore[reportAttributeAccessIssue, reportUnknownMemberType]
    assert store.get("a") == {"_id": "a", "tags": ["x"]}


def test_load_rejects_duplicates(store: MemoryDocumentStore) -> None:
    store.load([{"_id": "a"}])
    with pytest.raises(DocStoreError):
        store.load([{"_id": "a"}])


async def test_transaction_detects_concurrent_write(store: MemoryDocumentStore) -> None:
    store.load([{"_id": "a", "n": 0}])

    def body(snapshot: Snapshot) -> dict[str, Document]:
        current = snapshot["a"]
        assert current is not None
        # Simulate another writer landing between read and commit.
        store._documents["a"] = ({"_id": "a", "n": 99}, 10_000)  # pyright: ignore[reportPrivateUsage]
        return {"a": {**current.document, "n": 1}}

    outcome = await store.transaction(["a"], body)
    assert not outcome.committed
    assert store.get("a") == {"_id": "a", "n": 99}


async def test_transaction_versions_increase(store: MemoryDocumentStore) -> None:
    store.load([{"_id": "a", "n": 0}])
    versions: list[int] = []

    def body(snapshot: Snapshot) -> dict[str, Document]:
        current = snapshot["a"]
        assert current is not None
        versions.append(current.version)
        return {"a": {**current.document, "n": current.document["n"] + 1}}  # pyright: ignore[reportOperatorIssue]

    for _ in range(3):
        assert (await store.transaction(["a"], body)).committed
    assert versions == sorted(set(versions))


async def test_transaction_rejects_unread_keys(store: MemoryDocumentStore) -> None:
    with pytest.raises(DocStoreError) as exc:
        _ = await store.transaction(["a"], lambda _: {"b": {}})
    assert exc.value.kind is ErrorKind.INVALID_ARGUMENT


async def test_list_indexes_includes_primary() -> None:
    store = MemoryDocumentStore(indexes=[IndexSpec(keys={"a": 1, "b": -1})])
    indexes = await store.list_indexes()
    assert indexes[0].as_dict() == {"_id": 1}
    assert indexes[0].unique
    assert indexes[1].name == "a_1_b_-1"
