from nvisy_docstore.advisor import IndexAdvisor
from nvisy_docstore.providers.memory import MemoryDocumentStore
from nvisy_docstore.types import AccessPattern, IndexSpec, RangeFilter, RangeOperator

BY_CATEGORY_PRICE = AccessPattern(equality={"category": "books"}, sort=["price"])


def test_suggestion_puts_equality_first() -> None:
    pattern = AccessPattern(
        equality={"tenant": "t1", "category": "books"},
        range_filter=RangeFilter(field="price", operator=RangeOperator.LT, bound=50),
        sort=["price", "-createdAt"],
    )
    assert IndexAdvisor.suggest(pattern).as_dict() == {
        "tenant": 1,
        "category": 1,
        "price": 1,
        "createdAt": -1,
    }


def test_missing_index_report() -> None:
    report = IndexAdvisor().check(BY_CATEGORY_PRICE)
    assert report.missing
    assert str(report) == "MissingIndex({'category': 1, 'price': 1})"


def test_exact_index_serves() -> None:
    existing = IndexSpec(keys={"category": 1, "price": 1})
    report = IndexAdvisor([existing]).check(BY_CATEGORY_PRICE)
    assert report.ok
    assert report.matched == existing
    assert str(report) == "Ok"


def test_prefix_match_with_extra_trailing_keys() -> None:
    existing = IndexSpec(keys={"category": 1, "price": 1, "_id": 1})
    assert IndexAdvisor([existing]).check(BY_CATEGORY_PRICE).ok


def test_equality_fields_in_any_order() -> None:
    pattern = AccessPattern(equality={"a": 1, "b": 2}, sort=["c"])
    assert IndexAdvisor([IndexSpec(keys={"b": 1, "a": -1, "c": 1})]).check(pattern).ok


def test_fully_reversed_index_serves() -> None:
    pattern = AccessPattern(sort=["a", "-b"])
    assert IndexAdvisor([IndexSpec(keys={"a": -1, "b": 1})]).check(pattern).ok
    assert not IndexAdvisor([IndexSpec(keys={"a": 1, "b": 1})]).check(pattern).ok


def test_wrong_field_order_does_not_serve() -> None:
    existing = IndexSpec(keys={"price": 1, "category": 1})
    assert IndexAdvisor([existing]).check(BY_CATEGORY_PRICE).missing


async def test_from_store_sees_registered_indexes() -> None:
    store = MemoryDocumentStore(indexes=[IndexSpec(keys={"category": 1, "price": 1})])
    advisor = await IndexAdvisor.from_store(store)
    reports = advisor.check_all([BY_CATEGORY_PRICE, AccessPattern(sort=["_id"])])
    assert [r.ok for r in reports] == [True, True]
