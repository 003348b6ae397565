#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import json
import re
from base64 import b64encode
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from io import BytesIO
from typing import Any
from xml.parsers.expat import ExpatError

import ijson  # type: ignore
import xmltodict

from .exceptions import SerializationError
from .settings import DEFAULT_SETTINGS, WireSettings
from .types import Blob
from .utils import format_primitive

JSON = "application/json"
XML = "application/xml"
TEXT = "text/plain"
OCTET_STREAM = "application/octet-stream"
FORM_URLENCODED = "application/x-www-form-urlencoded"
FORM_DATA = "multipart/form-data"
MIXED = "multipart/mixed"

_BOUNDARY_RE = re.compile(r"boundary=\"?([^\";]+)\"?", re.IGNORECASE)


def normalize_media_type(value: str | None) -> str | None:
    """Strip parameters from a media type and lowercase it.

    :param value: A media type such as ``Application/JSON; charset=utf-8``.
    :returns: The bare media type, e.g. ``application/json``, or None.
    """
    if value is None:
        return None
    normalized = value.split(";", 1)[0].strip().lower()
    return normalized or None


def base_media_type(value: str) -> str:
    """Strip parameters from a media type without changing its case."""
    return value.split(";", 1)[0].strip()


def is_json_media_type(value: str | None) -> bool:
    """Whether a media type carries JSON, including ``+json`` suffixed types."""
    normalized = normalize_media_type(value)
    if normalized is None:
        return False
    return normalized == JSON or normalized.endswith("+json")


def is_xml_media_type(value: str | None) -> bool:
    normalized = normalize_media_type(value)
    if normalized is None:
        return False
    return normalized in (XML, "text/xml") or normalized.endswith("+xml")


def is_multipart_media_type(value: str | None) -> bool:
    return value is not None and "multipart" in value.lower()


def with_boundary(media_type: str, boundary: str) -> str:
    """Attach a boundary parameter to a multipart media type.

    Any parameters already on the media type are dropped.
    """
    return f"{base_media_type(media_type)}; boundary={boundary}"


def boundary_of(content_type: str) -> str | None:
    """Extract the boundary parameter from a Content-Type header value."""
    if (match := _BOUNDARY_RE.search(content_type)) is not None:
        return match.group(1)
    return None


def _json_default(value: Any) -> Any:
    match value:
        case datetime() | date():
            return format_primitive(value)
        case Decimal():
            return float(value)
        case Enum():
            return value.value
        case Blob():
            return b64encode(value.data).decode("ascii")
        case bytes() | bytearray():
            return b64encode(value).decode("ascii")
        case set() | frozenset() | tuple():
            return list(value)
        case _:
            raise TypeError(
                f"Object of type {type(value).__name__} is not JSON serializable"
            )


def dump_json(value: Any, settings: WireSettings = DEFAULT_SETTINGS) -> str:
    """Stringify a value as compact JSON.

    Timestamps are written in RFC3339 format and binary values as base64 text.

    :param value: The value to stringify.
    :param settings: Settings controlling the separators used.
    :returns: The JSON text.
    :raises SerializationError: If the value contains a reference cycle or a type
        that has no JSON representation.
    """
    try:
        return json.dumps(
            value,
            separators=settings.json_separators,
            ensure_ascii=False,
            default=_json_default,
        )
    except (TypeError, ValueError, RecursionError) as e:
        raise SerializationError(f"Unable to stringify value as JSON: {e}") from e


def load_json(value: str | bytes) -> Any:
    """Parse a complete JSON document.

    Non-integral numbers are returned as floats.

    :param value: The JSON text.
    :returns: The parsed value.
    :raises SerializationError: If the text isn't valid JSON.
    """
    if isinstance(value, str):
        value = value.encode("utf-8")
    try:
        documents = list(ijson.items(BytesIO(value), "", use_float=True))
    except (ijson.JSONError, UnicodeDecodeError) as e:
        raise SerializationError(f"Unable to parse JSON: {e}") from e
    if len(documents) != 1:
        raise SerializationError(
            f"Expected a single JSON document, found {len(documents)}"
        )
    return documents[0]


def load_xml(value: str | bytes, **config: Any) -> Any:
    """Parse an XML document into nested dictionaries.

    :param value: The XML text.
    :param config: Keyword arguments passed through to :py:func:`xmltodict.parse`.
    :returns: The parsed document.
    :raises SerializationError: If the text isn't well-formed XML.
    """
    try:
        return xmltodict.parse(value, **config)
    except (ExpatError, ValueError, TypeError) as e:
        raise SerializationError(f"Unable to parse XML: {e}") from e
