"""Pending writes and bulk submission results.

- `Insert`, `Update` and `Delete` are the pending write variants, tagged by `op`
- `WriteOutcome` is the store's per-operation answer
- `BulkResult` / `BulkReport` are what `BulkWriter.submit` returns
"""

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator

from nvisy_docstore.errors import DocStoreError, ErrorKind
from nvisy_docstore.types.datatypes import Document


class Insert(BaseModel, frozen=True):
    """Insert a new document. The store assigns a key when none is present."""

    op: Literal["insert"] = "insert"
    document: Document


class Update(BaseModel, frozen=True):
    """Merge `patch` into the top level of an existing document."""

    op: Literal["update"] = "update"
    key: str
    patch: Document

    @field_validator("patch", mode="before")
    @classmethod
    def _dump_typed_patch(cls, value: object) -> object:
        # Typed views only contribute the fields the caller actually set.
        if isinstance(value, BaseModel):
            return value.model_dump(exclude_unset=True)
        return value


class Delete(BaseModel, frozen=True):
    """Delete an existing document."""

    op: Literal["delete"] = "delete"
    key: str


type PendingWrite = Annotated[Insert | Update | Delete, Field(discriminator="op")]


class WriteOutcome(BaseModel, frozen=True):
    """Store-level outcome of a single operation inside a bulk request."""

    ok: bool
    reason: str | None = None
    key: str | None = None

    @classmethod
    def applied(cls, key: str | None = None) -> "WriteOutcome":
        return cls(ok=True, key=key)

    @classmethod
    def rejected(cls, reason: str, key: str | None = None) -> "WriteOutcome":
        return cls(ok=False, reason=reason, key=key)


class BulkStatus(StrEnum):
    """Final status of a pending write."""

    APPLIED = "applied"
    FAILED = "failed"
    SKIPPED = "skipped"


class BulkResult(BaseModel, frozen=True):
    """Outcome of one pending write."""

    index: int
    """Position of the write in the submitted sequence."""

    write: PendingWrite
    """The write this result belongs to."""

    status: BulkStatus
    reason: str | None = None
    """Failure reason for `FAILED` and `SKIPPED` results."""

    key: str | None = None
    """Key of the affected document, when known."""


class BulkReport(BaseModel, frozen=True):
    """Per-write results of a bulk submission, in submission order."""

    results: list[BulkResult] = Field(default_factory=list)
    chunks: int = 0
    """Number of chunks sent to the store."""

    cancelled: bool = False
    """Whether submission stopped early on a cancellation signal."""

    @property
    def applied(self) -> int:
        return self._count(BulkStatus.APPLIED)

    @property
    def failed(self) -> int:
        return self._count(BulkStatus.FAILED)

    @property
    def skipped(self) -> int:
        return self._count(BulkStatus.SKIPPED)

    @property
    def failures(self) -> list[BulkResult]:
        return [r for r in self.results if r.status is BulkStatus.FAILED]

    def raise_for_failures(self) -> None:
        """Raise a `PARTIAL_BULK_FAILURE` error if any write failed."""
        failures = self.failures
        if not failures:
            return
        msg = f"{len(failures)} of {len(self.results)} writes failed"
        raise DocStoreError(
            msg,
            kind=ErrorKind.PARTIAL_BULK_FAILURE,
            context={"failed": [(r.index, r.reason) for r in failures]},
        )

    def _count(self, status: BulkStatus) -> int:
        return sum(1 for r in self.results if r.status is status)
