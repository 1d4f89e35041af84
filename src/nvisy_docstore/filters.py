"""Store-neutral filter expressions.

Page queries are described as a small expression tree (comparisons joined
by AND / OR) that each provider translates into its own query language.
The in-memory provider evaluates the tree directly with `evaluate`.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from functools import cmp_to_key

from nvisy_docstore.types.datatypes import Document, get_path
from nvisy_docstore.types.patterns import AccessPattern, RangeOperator, SortDirection, SortField


class Operator(StrEnum):
    """Comparison operators."""

    EQ = "eq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"


@dataclass(frozen=True, slots=True)
class Comparison:
    """`field <op> value`. Missing fields compare as None."""

    field: str
    op: Operator
    value: object


@dataclass(frozen=True, slots=True)
class AllOf:
    """Conjunction; an empty conjunction matches everything."""

    clauses: tuple["Filter", ...] = ()


@dataclass(frozen=True, slots=True)
class AnyOf:
    """Disjunction; an empty disjunction matches nothing."""

    clauses: tuple["Filter", ...] = ()


type Filter = Comparison | AllOf | AnyOf

MATCH_ALL = AllOf()


def all_of(*clauses: Filter) -> Filter:
    """Combine clauses with AND, flattening nested conjunctions."""
    flat: list[Filter] = []
    for clause in clauses:
        if isinstance(clause, AllOf):
            flat.extend(clause.clauses)
        else:
            flat.append(clause)
    if len(flat) == 1:
        return flat[0]
    return AllOf(tuple(flat))


def any_of(*clauses: Filter) -> Filter:
    """Combine clauses with OR."""
    if len(clauses) == 1:
        return clauses[0]
    return AnyOf(tuple(clauses))


def keyset_after(sort: Sequence[SortField], values: Sequence[object]) -> Filter:
    """Build the predicate selecting records strictly after `values` in `sort` order.

    For sort `(a, b, c)` this is the lexicographic expansion

        a > va OR (a = va AND b > vb) OR (a = va AND b = vb AND c > vc)

    with `>` flipped to `<` for descending fields.
    """
    if len(sort) != len(values):
        msg = f"Expected {len(sort)} sort values, got {len(values)}"
        raise ValueError(msg)

    branches: list[Filter] = []
    for i, (key, value) in enumerate(zip(sort, values, strict=True)):
        prefix = [Comparison(s.field, Operator.EQ, v) for s, v in zip(sort[:i], values[:i], strict=True)]
        op = Operator.GT if key.direction is SortDirection.ASC else Operator.LT
        branches.append(all_of(*prefix, Comparison(key.field, op, value)))
    return any_of(*branches)


def pattern_filter(pattern: AccessPattern, resume: Sequence[object] | None = None) -> Filter:
    """Build the full filter of an access pattern, optionally resuming after a position."""
    clauses: list[Filter] = [
        Comparison(field, Operator.EQ, value) for field, value in pattern.equality.items()
    ]
    if pattern.range_filter is not None:
        rf = pattern.range_filter
        clauses.append(Comparison(rf.field, _RANGE_OPERATORS[rf.operator], rf.bound))
    if resume is not None:
        clauses.append(keyset_after(pattern.effective_sort, resume))
    if not clauses:
        return MATCH_ALL
    return all_of(*clauses)


_RANGE_OPERATORS = {
    RangeOperator.GT: Operator.GT,
    RangeOperator.GTE: Operator.GTE,
    RangeOperator.LT: Operator.LT,
    RangeOperator.LTE: Operator.LTE,
}


# Cross-type ordering used by in-process evaluation:
# None < bool < numbers < str < bytes < datetime < date.
def _type_rank(value: object) -> int:
    match value:
        case None:
            return 0
        case bool():
            return 1
        case int() | float() | Decimal():
            return 2
        case str():
            return 3
        case bytes():
            return 4
        case datetime():
            return 5
        case date():
            return 6
        case _:
            return 7


def compare_values(left: object, right: object) -> int:
    """Three-way comparison with a total order across supported types."""
    left_rank, right_rank = _type_rank(left), _type_rank(right)
    if left_rank != right_rank:
        return -1 if left_rank < right_rank else 1
    if left_rank == 0 or left == right:
        return 0
    try:
        return -1 if left < right else 1  # pyright: ignore[reportOperatorIssue]
    except TypeError as e:
        msg = f"Cannot order {type(left).__name__} values"
        raise TypeError(msg) from e


def evaluate(expr: Filter, document: Document) -> bool:
    """Evaluate a filter expression against a document."""
    match expr:
        case Comparison(field=field, op=op, value=value):
            cmp = compare_values(get_path(document, field), value)
            match op:
                case Operator.EQ:
                    return cmp == 0
                case Operator.GT:
                    return cmp > 0
                case Operator.GTE:
                    return cmp >= 0
                case Operator.LT:
                    return cmp < 0
                case Operator.LTE:
                    return cmp <= 0
        case AllOf(clauses=clauses):
            return all(evaluate(c, document) for c in clauses)
        case AnyOf(clauses=clauses):
            return any(evaluate(c, document) for c in clauses)


def sort_key(sort: Sequence[SortField]) -> Callable[[Document], object]:
    """Return a `sorted()` key function ordering documents by `sort`."""

    def cmp(left: Document, right: Document) -> int:
        for s in sort:
            result = compare_values(get_path(left, s.field), get_path(right, s.field))
            if result:
                return result * int(s.direction)
        return 0

    return cmp_to_key(cmp)
