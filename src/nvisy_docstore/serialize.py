"""Canonical JSON encoding for sort-key and filter values.

Cursor tokens and pattern fingerprints must be byte-for-byte stable, and
sort values that are not native JSON (timestamps, decimals, UUIDs) must
survive a round trip. Such values are wrapped in a small tagged object:

    {"$t": "dt", "v": "2024-01-01T00:00:00+00:00"}
"""

import base64
import json
import math
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from nvisy_docstore.types.datatypes import JsonValue

_TAG = "$t"
_VALUE = "v"


def to_tagged(value: object) -> JsonValue:
    """Convert a Python value into its tagged JSON representation.

    Raises:
        TypeError: If the value has no stable encoding.
    """
    match value:
        case None | bool() | str():
            return value
        case int():
            return value
        case float():
            if not math.isfinite(value):
                msg = f"Non-finite float {value!r} cannot be encoded"
                raise TypeError(msg)
            return value
        case datetime():
            return {_TAG: "dt", _VALUE: value.isoformat()}
        case date():
            return {_TAG: "d", _VALUE: value.isoformat()}
        case Decimal():
            return {_TAG: "dec", _VALUE: str(value)}
        case UUID():
            return {_TAG: "uuid", _VALUE: str(value)}
        case bytes():
            return {_TAG: "b", _VALUE: base64.urlsafe_b64encode(value).decode("ascii")}
        case list() | tuple():
            return [to_tagged(item) for item in value]  # pyright: ignore[reportUnknownVariableType]
        case Mapping():
            items: dict[str, JsonValue] = {
                str(k): to_tagged(v)  # pyright: ignore[reportUnknownArgumentType]
                for k, v in value.items()  # pyright: ignore[reportUnknownVariableType]
            }
            return {_TAG: "obj", _VALUE: items}
        case _:
            msg = f"Unsupported value type {type(value).__name__}"
            raise TypeError(msg)


def from_tagged(value: JsonValue) -> object:
    """Inverse of `to_tagged`.

    Raises:
        ValueError: If the tagged structure is malformed.
    """
    if isinstance(value, list):
        return [from_tagged(item) for item in value]
    if not isinstance(value, dict):
        return value

    tag = value.get(_TAG)
    raw = value.get(_VALUE)
    match tag:
        case "dt" if isinstance(raw, str):
            return datetime.fromisoformat(raw)
        case "d" if isinstance(raw, str):
            return date.fromisoformat(raw)
        case "dec" if isinstance(raw, str):
            return Decimal(raw)
        case "uuid" if isinstance(raw, str):
            return UUID(raw)
        case "b" if isinstance(raw, str):
            return base64.urlsafe_b64decode(raw.encode("ascii"))
        case "obj" if isinstance(raw, dict):
            return {k: from_tagged(v) for k, v in raw.items()}
        case _:
            msg = f"Malformed tagged value: {value!r}"
            raise ValueError(msg)


def canonical_json(value: JsonValue) -> str:
    """Serialize to compact JSON with sorted keys."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), allow_nan=False)
