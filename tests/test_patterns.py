from datetime import UTC, datetime
from decimal import Decimal

import pytest

from nvisy_docstore.errors import DocStoreError, ErrorKind
from nvisy_docstore.types import AccessPattern, RangeFilter, RangeOperator, SortDirection, SortField


def test_sort_field_parsing() -> None:
    assert SortField.parse("price") == SortField(field="price")
    assert SortField.parse("-price") == SortField(field="price", direction=SortDirection.DESC)
    assert SortField.parse(("price", -1)).direction is SortDirection.DESC
    assert SortField.parse({"field": "a", "direction": 1}).field == "a"


def test_effective_sort_appends_tiebreaker_in_last_direction() -> None:
    pattern = AccessPattern(sort=["category", "-price"])
    assert [s.field for s in pattern.effective_sort] == ["category", "price", "_id"]
    assert pattern.effective_sort[-1].direction is SortDirection.DESC


def test_tiebreaker_not_duplicated() -> None:
    pattern = AccessPattern(sort=["createdAt", "_id"])
    assert [s.field for s in pattern.effective_sort] == ["createdAt", "_id"]


def test_sort_values_reads_dotted_paths() -> None:
    pattern = AccessPattern(sort=["meta.rank"])
    assert pattern.sort_values({"_id": "x", "meta": {"rank": 3}}) == (3, "x")
    assert pattern.sort_values({"_id": "y"}) == (None, "y")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"sort": []},
        {"sort": ["a", "-a"]},
        {
            "sort": ["price"],
            "range_filter": RangeFilter(field="createdAt", operator=RangeOperator.GT, bound=1),
        },
        {"sort": ["price"], "equality": {"tags": {1, 2}}},
    ],
)
def test_invalid_patterns(kwargs: dict[str, object]) -> None:
    with pytest.raises(DocStoreError) as exc:
        _ = AccessPattern(**kwargs)  # pyright: ignore[reportArgumentType]
    assert exc.value.kind is ErrorKind.INVALID_ARGUMENT


def test_fingerprint_is_stable_and_distinct() -> None:
    a = AccessPattern(equality={"category": "books"}, sort=["price"])
    b = AccessPattern(equality={"category": "books"}, sort=["price"])
    c = AccessPattern(equality={"category": "music"}, sort=["price"])
    d = AccessPattern(equality={"category": "books"}, sort=["-price"])
    assert a.fingerprint == b.fingerprint
    assert len({a.fingerprint, c.fingerprint, d.fingerprint}) == 3


def test_fingerprint_accepts_rich_values() -> None:
    pattern = AccessPattern(
        equality={"amount": Decimal("1.50")},
        range_filter=RangeFilter(
            field="at", operator=RangeOperator.GTE, bound=datetime(2024, 1, 1, tzinfo=UTC)
        ),
        sort=["at"],
    )
    assert len(pattern.fingerprint) == 32
