"""Transactional mutator: optimistic read-modify-write with bounded retries."""

import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from pydantic import BaseModel

from nvisy_docstore.config import EngineSettings, RetryPolicy, get_settings
from nvisy_docstore.errors import DocStoreError, ErrorKind, invalid_argument, require_key
from nvisy_docstore.protocols import DocumentStore, Snapshot
from nvisy_docstore.retry import retrying, with_timeout
from nvisy_docstore.types.datatypes import Document

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MutationOp:
    """A pure read-modify-write step: current document -> new document.

    `fn` may run several times with different snapshots when a commit
    conflicts, so it must not keep state between calls. It always receives
    a private deep copy and may modify it in place.
    """

    fn: Callable[[Document], Document]
    upsert: bool = False
    """Create the document from `initial` when it does not exist."""

    initial: Mapping[str, object] = field(default_factory=dict)
    """Starting content for upserts (the key is filled in automatically)."""

    name: str | None = None
    """Label used in logs."""

    def __call__(self, current: Document) -> Document:
        return self.fn(copy.deepcopy(current))

    @classmethod
    def typed[M: BaseModel](
        cls,
        model: type[M],
        fn: Callable[[M], M],
        *,
        upsert: bool = False,
        initial: Mapping[str, object] | None = None,
        name: str | None = None,
    ) -> "MutationOp":
        """Express the op against a caller-supplied pydantic view of the document.

        Fields unknown to `model` are carried over untouched.
        """

        def apply(document: Document) -> Document:
            view = fn(model.model_validate(document))
            return {**document, **view.model_dump(by_alias=True)}

        return cls(apply, upsert=upsert, initial=initial or {}, name=name or model.__name__)


class Mutator:
    """Applies `MutationOp`s under optimistic store transactions.

    Concurrent callers are safe: a commit only lands if the document is
    unchanged since it was read, and a conflicting attempt is recomputed
    from a fresh snapshot. No update is lost and no client-side lock is held.
    """

    __slots__ = ("_settings", "_store")

    def __init__(self, store: DocumentStore, settings: EngineSettings | None = None) -> None:
        self._store = store
        self._settings = settings or get_settings()

    async def apply(
        self,
        key: str,
        op: MutationOp,
        *,
        retry: RetryPolicy | None = None,
        timeout: float | None = None,
    ) -> Document:
        """Apply `op` to the document at `key` and return the committed state.

        Raises:
            DocStoreError: `NOT_FOUND` when the document is missing and `op`
                is not an upsert, `TRANSACTION_ABORTED` when every attempt
                conflicted, `INVALID_ARGUMENT` for an empty key or an op that
                changes the key. Transient store errors propagate unchanged,
                since the commit may already have landed.
        """
        _ = require_key(key)
        policy = retry or self._settings.mutation_retry_policy()
        timeout = timeout if timeout is not None else self._settings.store_timeout
        attempts = 0

        try:
            async for attempt in retrying(policy, retry_on=_is_conflict):
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    document = await self._attempt(key, op, timeout)
        except DocStoreError as e:
            if e.kind is not ErrorKind.CONFLICT:
                raise
            msg = f"Mutation of '{key}' aborted after {attempts} conflicting attempts"
            raise DocStoreError(
                msg,
                kind=ErrorKind.TRANSACTION_ABORTED,
                source=e,
                context={"key": key, "attempts": attempts, "op": op.name},
            ) from e

        if attempts > 1:
            logger.debug("Mutation of '%s' committed after %d attempts", key, attempts)
        return document  # pyright: ignore[reportPossiblyUnboundVariable]

    async def _attempt(self, key: str, op: MutationOp, timeout: float | None) -> Document:
        key_field = self._store.key_field

        def body(snapshot: Snapshot) -> dict[str, Document]:
            current = snapshot.get(key)
            if current is None:
                if not op.upsert:
                    msg = f"Document '{key}' not found"
                    raise DocStoreError(msg, kind=ErrorKind.NOT_FOUND, context={"key": key})
                base: Document = {**op.initial, key_field: key}
            else:
                base = current.document

            updated = op(base)
            if updated.get(key_field, key) != key:
                msg = f"Mutation must not change '{key_field}' of '{key}'"
                raise invalid_argument(msg, key=key)
            return {key: {**updated, key_field: key}}

        outcome = await with_timeout(
            self._store.transaction([key], body),
            timeout,
            operation=f"Transaction on '{key}'",
        )
        if not outcome.committed:
            msg = f"Concurrent write to '{key}'"
            raise DocStoreError(msg, kind=ErrorKind.CONFLICT, context={"key": key})
        return outcome.documents[key]


def _is_conflict(error: BaseException) -> bool:
    return isinstance(error, DocStoreError) and error.kind is ErrorKind.CONFLICT
