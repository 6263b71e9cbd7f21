"""Conversion between session attribute maps and DynamoDB items.

Values are restricted to what DynamoDB can store: str, int, float, bool,
bytes, None, lists, string-keyed dicts, and non-empty sets of str, numbers or
bytes. Floats travel as ``Decimal`` (boto3 refuses binary floats) and come
back as ``float``; numbers written as plain digits (no fraction, no
exponent) come back as ``int``.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer

from .errors import DecodingError, EncodingError

Item = dict[str, dict[str, Any]]

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()

_SCALAR_PAYLOADS: dict[str, type | tuple[type, ...]] = {
    "S": str,
    "N": str,
    "B": (bytes, bytearray),
    "BOOL": bool,
    "NULL": bool,
}

_SET_MEMBERS: dict[str, type | tuple[type, ...]] = {
    "SS": str,
    "NS": str,
    "BS": (bytes, bytearray),
}


def encode(values: Mapping[Any, Any]) -> Item:
    """Encode a session's values into a DynamoDB item.

    Entries whose key is not a string are skipped.
    """
    item: Item = {}
    for key, value in values.items():
        if not isinstance(key, str):
            continue
        try:
            item[key] = _serializer.serialize(_to_storable(value))
        except (TypeError, ValueError, ArithmeticError) as e:
            raise EncodingError(f"cannot encode attribute {key!r}: {e}") from e
    return item


def decode(item: Mapping[str, Any]) -> dict[str, Any]:
    """Decode a DynamoDB item into a plain attribute map."""
    values: dict[str, Any] = {}
    for key, attribute in item.items():
        if not isinstance(key, str):
            raise DecodingError(f"attribute name {key!r} is not a string")
        try:
            _check_shape(attribute)
            values[key] = _from_stored(_deserializer.deserialize(attribute))
        except (TypeError, ValueError, KeyError, ArithmeticError) as e:
            raise DecodingError(f"cannot decode attribute {key!r}: {e}") from e
    return values


def _to_storable(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    if isinstance(value, Mapping):
        out = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise EncodingError(f"nested map key {k!r} is not a string")
            out[k] = _to_storable(v)
        return out
    if isinstance(value, (list, tuple)):
        return [_to_storable(v) for v in value]
    if isinstance(value, (set, frozenset)):
        if not value:
            raise EncodingError("empty sets cannot be stored")
        return {_to_storable(v) for v in value}
    return value


def _check_shape(attribute: Any) -> None:
    if not isinstance(attribute, Mapping) or len(attribute) != 1:
        raise DecodingError(f"malformed attribute value {attribute!r}")
    [(tag, payload)] = attribute.items()
    expected = _SCALAR_PAYLOADS.get(tag)
    if expected is not None:
        if not isinstance(payload, expected):
            raise DecodingError(f"{tag} attribute holds {type(payload).__name__}")
    elif tag == "M":
        if not isinstance(payload, Mapping):
            raise DecodingError(f"M attribute holds {type(payload).__name__}")
        for v in payload.values():
            _check_shape(v)
    elif tag == "L":
        if not isinstance(payload, list):
            raise DecodingError(f"L attribute holds {type(payload).__name__}")
        for v in payload:
            _check_shape(v)
    elif tag in _SET_MEMBERS:
        if not isinstance(payload, list):
            raise DecodingError(f"{tag} attribute holds {type(payload).__name__}")
        for member in payload:
            if not isinstance(member, _SET_MEMBERS[tag]):
                raise DecodingError(f"{tag} member holds {type(member).__name__}")
    else:
        raise DecodingError(f"unknown attribute type {tag!r}")


def _from_stored(value: Any) -> Any:
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise DecodingError(f"number {value} is not finite")
        if value.as_tuple().exponent == 0:
            return int(value)
        return float(value)
    if isinstance(value, Binary):
        return bytes(value.value)
    if isinstance(value, dict):
        return {k: _from_stored(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_stored(v) for v in value]
    if isinstance(value, set):
        return {_from_stored(v) for v in value}
    return value
