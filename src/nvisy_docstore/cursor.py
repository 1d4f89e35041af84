"""Cursor codec: opaque, pattern-bound resume tokens.

A token is the URL-safe base64 of canonical JSON

    {"k": [<sort values>], "p": "<pattern fingerprint>", "v": 1}

optionally followed by `.<signature>` when the codec has a signing secret.
Only the sort-key values of the last record are embedded; the access
pattern is represented by its fingerprint.
"""

import base64
import binascii
import hashlib
import hmac
import json
from collections.abc import Sequence

from nvisy_docstore.errors import DocStoreError, ErrorKind, invalid_argument
from nvisy_docstore.serialize import canonical_json, from_tagged, to_tagged
from nvisy_docstore.types.pages import Cursor
from nvisy_docstore.types.patterns import AccessPattern

CURSOR_VERSION = 1
_SIGNATURE_BYTES = 16


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode((text + padding).encode("ascii"))


def _sign(secret: bytes, body: str) -> str:
    digest = hmac.new(secret, body.encode("utf-8"), hashlib.sha256).digest()
    return _b64encode(digest[:_SIGNATURE_BYTES])


class CursorCodec:
    """Encodes and validates cursors for access patterns."""

    __slots__ = ("_secret",)

    def __init__(self, secret: str | bytes | None = None) -> None:
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        self._secret = secret or None

    def encode(self, pattern: AccessPattern, sort_values: Sequence[object]) -> Cursor:
        """Build the cursor positioned after a record with `sort_values`."""
        expected = len(pattern.effective_sort)
        if len(sort_values) != expected:
            msg = f"Expected {expected} sort values, got {len(sort_values)}"
            raise invalid_argument(msg, pattern=pattern.fingerprint)
        try:
            values = [to_tagged(v) for v in sort_values]
        except TypeError as e:
            msg = f"Sort value cannot be encoded in a cursor: {e}"
            raise invalid_argument(msg, pattern=pattern.fingerprint) from e

        payload = canonical_json({"k": values, "p": pattern.fingerprint, "v": CURSOR_VERSION})
        token = _b64encode(payload.encode("utf-8"))
        if self._secret is not None:
            token = f"{token}.{_sign(self._secret, token)}"
        return Cursor(token=token)

    def decode(self, cursor: Cursor | str, pattern: AccessPattern) -> tuple[object, ...]:
        """Return the sort values carried by `cursor`.

        Raises:
            DocStoreError: `INVALID_CURSOR` if the token is corrupt, unsigned
                when a signature is required, from another codec version, or
                produced for a different access pattern.
        """
        token = cursor.token if isinstance(cursor, Cursor) else cursor
        body = self._verify(token, pattern)

        try:
            payload = json.loads(_b64decode(body))
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            raise self._invalid("Cursor token is not decodable", pattern, e) from e

        if not isinstance(payload, dict):
            raise self._invalid("Cursor payload is not an object", pattern)
        if payload.get("v") != CURSOR_VERSION:
            raise self._invalid(f"Unsupported cursor version {payload.get('v')!r}", pattern)
        if payload.get("p") != pattern.fingerprint:
            raise self._invalid("Cursor was produced for a different access pattern", pattern)

        raw = payload.get("k")
        if not isinstance(raw, list) or len(raw) != len(pattern.effective_sort):  # pyright: ignore[reportUnknownArgumentType]
            raise self._invalid("Cursor sort key does not match the access pattern", pattern)
        try:
            return tuple(from_tagged(v) for v in raw)  # pyright: ignore[reportUnknownVariableType]
        except (ValueError, ArithmeticError) as e:
            raise self._invalid("Cursor sort key is malformed", pattern, e) from e

    def _verify(self, token: str, pattern: AccessPattern) -> str:
        body, sep, signature = token.partition(".")
        if self._secret is None:
            if sep:
                raise self._invalid("Unexpected cursor signature", pattern)
            return body
        expected = _sign(self._secret, body).encode("ascii")
        if not sep or not hmac.compare_digest(signature.encode("utf-8"), expected):
            raise self._invalid("Cursor signature is invalid", pattern)
        return body

    @staticmethod
    def _invalid(
        message: str,
        pattern: AccessPattern,
        source: BaseException | None = None,
    ) -> DocStoreError:
        return DocStoreError(
            message,
            kind=ErrorKind.INVALID_CURSOR,
            source=source,
            context={"pattern": pattern.fingerprint},
        )
