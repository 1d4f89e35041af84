"""Index advisor: offline check that an access pattern is served by an index.

Meant for tests and CI, not the request path.
"""

from collections.abc import Sequence
from typing import Self

from nvisy_docstore.protocols import DocumentStore
from nvisy_docstore.types.indexes import IndexReport, IndexSpec
from nvisy_docstore.types.patterns import AccessPattern, SortField


class IndexAdvisor:
    """Compares the index an access pattern needs with the indexes that exist."""

    __slots__ = ("_existing",)

    def __init__(self, existing: Sequence[IndexSpec] = ()) -> None:
        self._existing = tuple(existing)

    @classmethod
    async def from_store(cls, store: DocumentStore) -> Self:
        """Load the existing indexes from the store."""
        return cls(await store.list_indexes())

    @property
    def existing(self) -> tuple[IndexSpec, ...]:
        return self._existing

    @staticmethod
    def suggest(pattern: AccessPattern) -> IndexSpec:
        """Derive the minimal compound index for `pattern`.

        Equality fields come first, then the sort fields with their
        direction. The range field is the leading sort field, so it is
        covered by the sort part.
        """
        keys = [SortField(field=name) for name in pattern.equality]
        seen = set(pattern.equality)
        for s in pattern.sort:
            if s.field not in seen:
                keys.append(s)
                seen.add(s.field)
        return IndexSpec(keys=tuple(keys))

    def check(self, pattern: AccessPattern) -> IndexReport:
        """Return `ok` if an existing index serves `pattern`, else the suggestion."""
        suggested = self.suggest(pattern)
        equality = {k.field for k in suggested.keys[: len(pattern.equality)]}
        ordered = suggested.keys[len(equality) :]

        for index in self._existing:
            if _serves(index, equality, ordered):
                return IndexReport(ok=True, suggested=suggested, matched=index)
        return IndexReport(ok=False, suggested=suggested)

    def check_all(self, patterns: Sequence[AccessPattern]) -> list[IndexReport]:
        return [self.check(p) for p in patterns]


def _serves(index: IndexSpec, equality: set[str], ordered: Sequence[SortField]) -> bool:
    """Whether `index` starts with the equality fields (any order) then `ordered`.

    The ordered part must match either in the declared directions or with
    every direction reversed, since an index can be walked backwards.
    """
    keys = index.keys
    if len(keys) < len(equality) + len(ordered):
        return False
    if {k.field for k in keys[: len(equality)]} != equality:
        return False

    tail = keys[len(equality) : len(equality) + len(ordered)]
    if [k.field for k in tail] != [s.field for s in ordered]:
        return False
    same = all(k.direction == s.direction for k, s in zip(tail, ordered, strict=True))
    flipped = all(
        k.direction == s.direction.reversed
        for k, s in zip(tail, ordered, strict=True)
    )
    return same or flipped
