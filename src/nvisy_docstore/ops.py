"""Ready-made mutation ops for counters, fields and set-like arrays.

Array fields are treated as sets: members are compared by equality and
kept in insertion order.
"""

from nvisy_docstore.errors import invalid_argument
from nvisy_docstore.mutator import MutationOp
from nvisy_docstore.types.datatypes import Document


def _members(document: Document, field: str) -> list[object]:
    value = document.get(field)
    if value is None:
        return []
    if not isinstance(value, list):
        msg = f"Field '{field}' is not an array"
        raise invalid_argument(msg, field=field)
    return value  # pyright: ignore[reportUnknownVariableType]


def increment(field: str, by: int | float = 1, *, upsert: bool = False) -> MutationOp:
    """Add `by` to a numeric field; a missing field counts as zero."""

    def apply(document: Document) -> Document:
        current = document.get(field, 0)
        if not isinstance(current, int | float) or isinstance(current, bool):
            msg = f"Field '{field}' is not numeric"
            raise invalid_argument(msg, field=field)
        document[field] = current + by
        return document

    return MutationOp(apply, upsert=upsert, name=f"increment({field}, {by})")


def set_fields(**values: object) -> MutationOp:
    """Overwrite top-level fields."""

    def apply(document: Document) -> Document:
        document.update(values)
        return document

    return MutationOp(apply, name=f"set({', '.join(values)})")


def add_to_set(field: str, member: object, *, upsert: bool = False) -> MutationOp:
    """Append `member` unless already present."""

    def apply(document: Document) -> Document:
        members = _members(document, field)
        if member not in members:
            members.append(member)
        document[field] = members
        return document

    return MutationOp(apply, upsert=upsert, name=f"add_to_set({field})")


def remove_from_set(field: str, member: object) -> MutationOp:
    """Remove every occurrence of `member`."""

    def apply(document: Document) -> Document:
        document[field] = [m for m in _members(document, field) if m != member]
        return document

    return MutationOp(apply, name=f"remove_from_set({field})")


def toggle_membership(field: str, member: object, *, upsert: bool = False) -> MutationOp:
    """Add `member` if absent, remove it if present."""

    def apply(document: Document) -> Document:
        members = _members(document, field)
        if member in members:
            document[field] = [m for m in members if m != member]
        else:
            document[field] = [*members, member]
        return document

    return MutationOp(apply, upsert=upsert, name=f"toggle({field})")
