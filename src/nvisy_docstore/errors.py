"""Error types for engine and store operations."""

from collections.abc import Mapping
from enum import StrEnum
from typing import final


class ErrorKind(StrEnum):
    """Classification of engine and store errors."""

    INVALID_ARGUMENT = "invalid_argument"
    INVALID_CURSOR = "invalid_cursor"
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    CONFLICT = "conflict"
    PARTIAL_BULK_FAILURE = "partial_bulk_failure"
    TRANSACTION_ABORTED = "transaction_aborted"
    NOT_FOUND = "not_found"
    PROVIDER = "provider"

    @property
    def transient(self) -> bool:
        """Whether an error of this kind may succeed when retried unchanged."""
        return self in _TRANSIENT_KINDS


_TRANSIENT_KINDS = frozenset({ErrorKind.CONNECTION, ErrorKind.TIMEOUT})


@final
class DocStoreError(Exception):
    """Base error for all engine and store operations."""

    __slots__ = ("context", "kind", "message", "source")

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.PROVIDER,
        source: BaseException | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.source = source
        self.context: dict[str, object] = dict(context or {})

    @property
    def transient(self) -> bool:
        """Whether the operation may be retried."""
        return self.kind.transient

    def __repr__(self) -> str:
        return f"DocStoreError({self.message!r}, kind={self.kind!r})"


def is_transient(error: BaseException) -> bool:
    """Return True for errors the retry helpers should retry."""
    return isinstance(error, DocStoreError) and error.transient


def invalid_argument(message: str, **context: object) -> DocStoreError:
    """Build an `INVALID_ARGUMENT` error."""
    return DocStoreError(message, kind=ErrorKind.INVALID_ARGUMENT, context=context)


def require_key(key: str) -> str:
    """Reject zero-length document keys."""
    if not key:
        msg = "Document key must not be empty"
        raise invalid_argument(msg)
    return key
