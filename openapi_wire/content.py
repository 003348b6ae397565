#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Schema-driven content transforms.

Values whose schema declares a ``contentMediaType`` or ``contentEncoding`` travel as
strings on the wire. The codec walks a value alongside a
:py:class:`ContentCodecDescriptor` tree and converts those strings to and from their
structured form.

Transforms never raise for a value. A transform that fails logs a warning and leaves
that value as it was.
"""

import binascii
import logging
from base64 import b64decode, b64encode
from collections.abc import Callable, Mapping
from typing import Any

from .exceptions import SerializationError
from .mediatypes import dump_json, load_json, load_xml
from .settings import DEFAULT_SETTINGS, WireSettings
from .types import Blob, ContentCodecDescriptor
from .utils import is_sequence

logger = logging.getLogger(__name__)

_URL_SAFE_ALTCHARS = b"-_"

type _Transform = Callable[[Any, ContentCodecDescriptor | None, WireSettings, int], Any]


def _as_descriptor(
    descriptor: ContentCodecDescriptor | Mapping[str, Any] | None,
) -> ContentCodecDescriptor | None:
    if descriptor is None or isinstance(descriptor, ContentCodecDescriptor):
        return descriptor
    return ContentCodecDescriptor.from_dict(descriptor)


def _base64_variant(content_encoding: str | None) -> str | None:
    if content_encoding is None:
        return None
    variant = content_encoding.lower()
    if variant in ("base64", "base64url"):
        return variant
    logger.debug("Unsupported content encoding %r, leaving value as-is", variant)
    return None


def encode_base64(value: str | bytes | Blob, url_safe: bool = False) -> str:
    """Encode a value as base64 text.

    :param value: The value to encode. Strings are encoded as UTF-8 first.
    :param url_safe: Whether to use the URL-safe alphabet. URL-safe output has its
        ``=`` padding stripped.
    :returns: The base64 text.
    :raises SerializationError: If the value isn't text or binary.
    """
    match value:
        case str():
            data = value.encode("utf-8")
        case Blob():
            data = value.data
        case bytes() | bytearray() | memoryview():
            data = bytes(value)
        case _:
            raise SerializationError(
                f"Expected text or binary data to base64 encode, found {type(value)}"
            )
    if url_safe:
        encoded = b64encode(data, altchars=_URL_SAFE_ALTCHARS)
        return encoded.decode("ascii").rstrip("=")
    return b64encode(data).decode("ascii")


def decode_base64(value: str, url_safe: bool = False) -> bytes:
    """Decode base64 text.

    :param value: The base64 text. URL-safe text may omit its padding.
    :param url_safe: Whether the text uses the URL-safe alphabet.
    :returns: The decoded bytes.
    :raises SerializationError: If the text isn't valid base64.
    """
    try:
        if url_safe:
            padded = value + "=" * (-len(value) % 4)
            return b64decode(padded, altchars=_URL_SAFE_ALTCHARS, validate=True)
        return b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise SerializationError(f"Unable to decode base64 text: {e}") from e


def encode_content(
    data: Any,
    descriptor: ContentCodecDescriptor | Mapping[str, Any] | None,
    *,
    settings: WireSettings = DEFAULT_SETTINGS,
) -> Any:
    """Apply the outgoing content transforms of a descriptor tree to a value.

    Values flagged with ``encode`` are stringified as JSON, and values with a base64
    ``content_encoding`` are base64 encoded. Mappings and sequences are walked through
    the descriptor's ``properties`` and ``items`` and returned as transformed copies.

    :param data: The value to transform.
    :param descriptor: The descriptor tree matching the value's schema.
    :param settings: Settings controlling the JSON output and recursion depth.
    :returns: The transformed value.
    """
    return _encode(data, _as_descriptor(descriptor), settings, 0)


def _encode(
    data: Any,
    descriptor: ContentCodecDescriptor | None,
    settings: WireSettings,
    depth: int,
) -> Any:
    if data is None or descriptor is None:
        return data
    if depth > settings.max_depth:
        logger.warning(
            "Content exceeds the maximum depth of %s, leaving it unencoded",
            settings.max_depth,
        )
        return data

    variant = _base64_variant(descriptor.content_encoding)
    is_text_or_binary = isinstance(data, str) or Blob.from_value(data) is not None
    if descriptor.encode and not is_text_or_binary:
        try:
            data = dump_json(data, settings)
        except SerializationError as e:
            logger.warning("Failed to encode content: %s", e)
            return data
        if variant is None:
            return data

    if variant is not None:
        try:
            return encode_base64(data, url_safe=variant == "base64url")
        except SerializationError as e:
            logger.warning("Failed to encode content as %s: %s", variant, e)
            return data

    if descriptor.encode:
        return data

    return _walk(data, descriptor, settings, depth, _encode)


def decode_content(
    data: Any,
    descriptor: ContentCodecDescriptor | Mapping[str, Any] | None,
    *,
    settings: WireSettings = DEFAULT_SETTINGS,
) -> Any:
    """Apply the incoming content transforms of a descriptor tree to a value.

    Strings with a base64 ``content_encoding`` are decoded to bytes. Strings flagged
    with ``decode`` are parsed as JSON, or as XML when ``decode`` is ``"xml"``, and
    the parsed value is then walked with the descriptor's deeper ``properties`` and
    ``items``.

    :param data: The value to transform.
    :param descriptor: The descriptor tree matching the value's schema.
    :param settings: Settings controlling the recursion depth.
    :returns: The transformed value.
    """
    return _decode(data, _as_descriptor(descriptor), settings, 0)


def _decode(
    data: Any,
    descriptor: ContentCodecDescriptor | None,
    settings: WireSettings,
    depth: int,
) -> Any:
    if data is None or descriptor is None:
        return data
    if depth > settings.max_depth:
        logger.warning(
            "Content exceeds the maximum depth of %s, leaving it undecoded",
            settings.max_depth,
        )
        return data

    current = data
    variant = _base64_variant(descriptor.content_encoding)
    if variant is not None and isinstance(current, str):
        try:
            decoded = decode_base64(current, url_safe=variant == "base64url")
        except SerializationError as e:
            logger.warning("Failed to decode %s content: %s", variant, e)
            return data
        if not descriptor.decode:
            return decoded
        try:
            current = decoded.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning("Decoded %s content isn't UTF-8 text: %s", variant, e)
            return data

    if descriptor.decode and isinstance(current, str):
        try:
            if descriptor.decode == "xml":
                parsed = load_xml(current, **descriptor.xml_config)
            else:
                parsed = load_json(current)
        except SerializationError as e:
            logger.warning("Failed to decode content string: %s", e)
            return data
        return _walk(parsed, descriptor, settings, depth, _decode)

    return _walk(current, descriptor, settings, depth, _decode)


def _walk(
    data: Any,
    descriptor: ContentCodecDescriptor,
    settings: WireSettings,
    depth: int,
    transform: _Transform,
) -> Any:
    if is_sequence(data) and descriptor.items is not None:
        return [
            transform(item, descriptor.items, settings, depth + 1) for item in data
        ]
    if isinstance(data, Mapping) and descriptor.properties:
        result = dict(data)
        for key, child in descriptor.properties.items():
            if key in data:
                result[key] = transform(data[key], child, settings, depth + 1)
        return result
    return data
