#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import json
import re
from collections.abc import Mapping, Sequence, Set
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from math import isinf, isnan
from typing import Any
from urllib.parse import quote as urlquote

from .types import Blob

RFC3339 = "%Y-%m-%dT%H:%M:%SZ"
# Same as RFC3339, but with microsecond precision.
RFC3339_MICRO = "%Y-%m-%dT%H:%M:%S.%fZ"

# RFC 3986 section 2.2 reserved characters.
RESERVED_CHARACTERS = ":/?#[]@!$&'()*+,;="

# Path values keep the characters that would end the path segment escaped.
RESERVED_PATH_CHARACTERS = ":[]@!$&'()*+,;="


def _escaped_triples(characters: str) -> re.Pattern[str]:
    return re.compile(
        "|".join(f"%{ord(char):02X}" for char in characters), re.IGNORECASE
    )


_RESERVED_RE = _escaped_triples(RESERVED_CHARACTERS)
_RESERVED_PATH_RE = _escaped_triples(RESERVED_PATH_CHARACTERS)


def _unescape(match: re.Match[str]) -> str:
    return chr(int(match.group(0)[1:], 16))


def encode_reserved(value: str, allow_reserved: bool = False) -> str:
    """Percent-encode a value per :rfc:`3986`.

    Every character outside the unreserved set is encoded. If ``allow_reserved`` is
    set, the percent-encoded triples of the reserved characters are then turned back
    into the literal characters. Nothing else is unescaped, so a literal ``%3A`` in
    the value still arrives as ``%253A``.

    :param value: The value to encode.
    :param allow_reserved: Whether reserved characters may appear unescaped.
    :returns: The encoded value.
    """
    encoded = urlquote(value, safe="")
    if not allow_reserved:
        return encoded
    return _RESERVED_RE.sub(_unescape, encoded)


def encode_reserved_path(value: str) -> str:
    """Percent-encode a path value, allowing the reserved characters that can't end
    a path segment.

    ``/``, ``?`` and ``#`` stay encoded so a value can't escape its segment.
    """
    return _RESERVED_PATH_RE.sub(_unescape, urlquote(value, safe=""))


def ensure_utc(value: datetime) -> datetime:
    """Ensures that the given datetime is a UTC timezone-aware datetime.

    If the datetime isn't timezone-aware, its timezone is set to UTC. If it is aware,
    it's replaced with the equivalent datetime under UTC.

    :param value: A datetime object that may or may not be timezone-aware.
    :returns: A UTC timezone-aware equivalent datetime.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    else:
        return value.astimezone(timezone.utc)


def serialize_rfc3339(given: datetime) -> str:
    """Serializes a datetime into an RFC3339 string representation.

    If ``microseconds`` is 0, no fractional part is serialized.

    :param given: The datetime to serialize.
    :returns: An RFC3339 formatted timestamp.
    """
    if given.microsecond != 0:
        return given.strftime(RFC3339_MICRO)
    else:
        return given.strftime(RFC3339)


def serialize_float(given: float | Decimal) -> str:
    """Serializes a float to a string.

    Non-numeric floats are written as ``NaN``, ``Infinity`` and ``-Infinity``.
    Integral values are written without a fractional part, so ``2.0`` becomes ``2``.

    :param given: A float or Decimal to be serialized.
    :returns: The string representation of the given float.
    """
    if isnan(given):
        return "NaN"
    if isinf(given):
        return "-Infinity" if given < 0 else "Infinity"

    if isinstance(given, Decimal):
        return format(given.normalize(), "f")
    if given.is_integer():
        return str(int(given))
    return str(given)


def format_primitive(value: Any) -> str:
    """Canonicalize a value to the text sent on the wire.

    Timestamps are written in UTC RFC3339 format, dates in ISO 8601 format, and
    booleans in lower case. Sequences are comma-joined and mappings are written as
    compact JSON.

    :param value: The value to format.
    :returns: The formatted value.
    """
    match value:
        case None:
            return "null"
        case bool():
            return "true" if value else "false"
        case Enum():
            return format_primitive(value.value)
        case str():
            return value
        case datetime():
            return serialize_rfc3339(ensure_utc(value))
        case date():
            return value.isoformat()
        case int():
            return str(value)
        case float() | Decimal():
            return serialize_float(value)
        case Blob():
            return value.data.decode("utf-8", errors="replace")
        case bytes() | bytearray() | memoryview():
            return bytes(value).decode("utf-8", errors="replace")
        case Mapping():
            try:
                return json.dumps(
                    value,
                    separators=(",", ":"),
                    ensure_ascii=False,
                    default=format_primitive,
                )
            except (TypeError, ValueError, RecursionError):
                return str(value)
        case Sequence() | Set():
            return ",".join(format_primitive(item) for item in value)
        case _:
            return str(value)


def join_query_params(params: list[tuple[str, str]], prefix: str = "") -> str:
    """Join a list of encoded query parameter key-value tuples.

    The keys and values must already be percent-encoded, as produced by the
    parameter serializers.

    :param params: The list of key-value query parameter tuples.
    :param prefix: An optional query prefix.
    """
    query: str = prefix
    for key, value in params:
        if query:
            query += "&"
        query += f"{key}={value}"
    return query


def is_sequence(value: Any) -> bool:
    """Whether a value is a sequence or set of items, excluding text and binary."""
    return isinstance(value, Sequence | Set) and not isinstance(
        value, str | bytes | bytearray | memoryview
    )
