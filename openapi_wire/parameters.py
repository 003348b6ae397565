#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Serializers for operation parameters.

Each request location has its own entry point. Query serialization appends
percent-encoded key-value pairs to a list; path, header, cookie and querystring
serialization return the finished string.

None of these functions raise for any value. Unknown styles fall back to the
location's default style, and values that can't be stringified as JSON fall back to
their plain string form.
"""

import logging
from collections.abc import Callable, Mapping
from functools import partial
from typing import Any
from urllib.parse import quote as urlquote

from .exceptions import SerializationError
from .mediatypes import (
    FORM_URLENCODED,
    dump_json,
    is_json_media_type,
    normalize_media_type,
)
from .types import (
    EncodingDescriptor,
    ParameterLocation,
    ParameterStyle,
    SerializationDescriptor,
    Serialization,
)
from .utils import (
    encode_reserved,
    encode_reserved_path,
    format_primitive,
    is_sequence,
    join_query_params,
)

logger = logging.getLogger(__name__)

__all__ = [
    "encode_urlencoded_body",
    "flatten_form_value",
    "serialize_cookie_param",
    "serialize_header_param",
    "serialize_path_param",
    "serialize_query_param",
    "serialize_raw_querystring",
    "serialize_urlencoded_body",
]

type QueryParams = list[tuple[str, str]]
type Encoder = Callable[[str], str]

_DELIMITED_STYLES = (
    ParameterStyle.SPACE_DELIMITED,
    ParameterStyle.PIPE_DELIMITED,
    ParameterStyle.TAB_DELIMITED,
)


def _elements(value: Any) -> list[str]:
    return [format_primitive(item) for item in value if item is not None]


def _entries(value: Mapping[Any, Any]) -> list[tuple[str, str]]:
    return [
        (format_primitive(key), format_primitive(item))
        for key, item in value.items()
        if item is not None
    ]


def _no_encoding(value: str) -> str:
    return value


def _form_encode(value: str) -> str:
    return value.replace("%20", "+")


def _stringify_json(name: str, value: Any) -> str:
    # Strings are assumed to already hold JSON text.
    if isinstance(value, str):
        return value
    try:
        return dump_json(value)
    except SerializationError as e:
        logger.warning(
            "Unable to serialize parameter %r as JSON, sending its string form: %s",
            name,
            e,
        )
        return format_primitive(value)


def _as_descriptor(
    descriptor: SerializationDescriptor | Mapping[str, Any],
) -> SerializationDescriptor:
    if isinstance(descriptor, SerializationDescriptor):
        return descriptor
    return SerializationDescriptor.from_dict(descriptor)


def _as_encoding(
    value: EncodingDescriptor | Mapping[str, Any] | None,
) -> EncodingDescriptor:
    if value is None:
        return EncodingDescriptor()
    if isinstance(value, EncodingDescriptor):
        return value
    return EncodingDescriptor.from_dict(value)


def flatten_form_value(
    name: str,
    value: Any,
    style: ParameterStyle = ParameterStyle.FORM,
    explode: bool = True,
    encode: Encoder = _no_encoding,
) -> QueryParams:
    """Flatten a value into form-style key-value pairs.

    Exploded sequences produce one pair per element under ``name``, and exploded
    mappings produce one pair per entry keyed by the entry's key. Non-exploded values
    produce a single pair whose items are joined by the style's delimiter.

    :param name: The name of the value.
    :param value: The value to flatten.
    :param style: The style that selects the delimiter of non-exploded values.
    :param explode: Whether composite values expand into multiple pairs.
    :param encode: A function applied to every key and item.
    :returns: The flattened pairs.
    """
    delimiter = style.delimiter
    # Commas stay literal between encoded items, other delimiters get encoded.
    joiner = delimiter if delimiter == "," else encode(delimiter)

    if is_sequence(value):
        elements = _elements(value)
        if explode:
            return [(encode(name), encode(element)) for element in elements]
        return [(encode(name), joiner.join(encode(element) for element in elements))]

    if isinstance(value, Mapping):
        entries = _entries(value)
        if explode:
            return [(encode(key), encode(item)) for key, item in entries]
        flattened = joiner.join(
            f"{encode(key)}{joiner}{encode(item)}" for key, item in entries
        )
        return [(encode(name), flattened)]

    return [(encode(name), encode(format_primitive(value)))]


def _append_deep_object(
    params: QueryParams, prefix: str, value: Any, encode: Encoder
) -> None:
    if isinstance(value, Mapping):
        for key, item in value.items():
            _append_deep_object(
                params, f"{prefix}[{format_primitive(key)}]", item, encode
            )
    elif is_sequence(value):
        for index, item in enumerate(value):
            _append_deep_object(params, f"{prefix}[{index}]", item, encode)
    elif value is not None:
        params.append((encode(prefix), encode(format_primitive(value))))


def serialize_query_param(
    descriptor: SerializationDescriptor | Mapping[str, Any],
    value: Any,
    params: QueryParams | None = None,
) -> QueryParams:
    """Serialize a query parameter into percent-encoded key-value pairs.

    Content-based serialization takes precedence over the parameter's style. A JSON
    content type (or the ``json`` serialization hint) sends the value as a single
    JSON pair.

    :param descriptor: The parameter's serialization rules, or a resolved Parameter
        Object mapping.
    :param value: The value to serialize. None values are skipped, as are empty
        strings unless the parameter allows empty values.
    :param params: An optional list of pairs to append to. If not set, one will be
        created.
    :returns: The list of pairs, including any appended by this call.
    """
    descriptor = _as_descriptor(descriptor)
    if params is None:
        params = []
    if value is None:
        return params

    name = descriptor.name
    encode = partial(encode_reserved, allow_reserved=descriptor.allow_reserved)
    if isinstance(value, str) and not value:
        if descriptor.allow_empty_value:
            params.append((encode(name), ""))
        return params

    content_type = normalize_media_type(descriptor.content_type)
    if content_type == FORM_URLENCODED:
        if isinstance(value, Mapping):
            rendered = encode_urlencoded_body(value, descriptor.encoding)
        else:
            rendered = format_primitive(value)
        params.append((encode(name), urlquote(rendered, safe="")))
        return params

    if descriptor.serialization == "json" or is_json_media_type(content_type):
        params.append((encode(name), encode(_stringify_json(name, value))))
        return params

    if content_type is not None:
        params.append((encode(name), encode(format_primitive(value))))
        return params

    style = descriptor.resolved_style
    explode = descriptor.resolved_explode
    if (
        style is ParameterStyle.DEEP_OBJECT
        and isinstance(value, Mapping)
        and descriptor.explode is not False
    ):
        _append_deep_object(params, name, value, encode)
        return params

    if style is not ParameterStyle.FORM and (style not in _DELIMITED_STYLES or explode):
        logger.debug(
            "Style %s with explode=%s isn't supported for query parameter %r, "
            "using form style",
            style.value,
            explode,
            name,
        )
        style = ParameterStyle.FORM

    params.extend(flatten_form_value(name, value, style, explode, encode))
    return params


def serialize_path_param(
    name: str,
    value: Any,
    style: ParameterStyle | str | None = ParameterStyle.SIMPLE,
    explode: bool = False,
    allow_reserved: bool = False,
    serialization: Serialization = None,
) -> str:
    """Serialize a path parameter into the text substituted into the URL template.

    The result is already percent-encoded.

    :param name: The parameter name, used by the matrix style.
    :param value: The value to serialize.
    :param style: One of ``simple``, ``label`` or ``matrix``. Anything else is
        treated as ``simple``.
    :param explode: Whether composite values are exploded.
    :param allow_reserved: Whether reserved characters other than ``/``, ``?`` and
        ``#`` may appear unescaped.
    :param serialization: Set to ``json`` to send the value as JSON text.
    :returns: The serialized value, or an empty string if the value is None.
    """
    if value is None:
        return ""
    if serialization == "json":
        value = _stringify_json(name, value)

    encode: Encoder = encode_reserved_path if allow_reserved else encode_reserved
    resolved_style = ParameterStyle.parse(style) or ParameterStyle.SIMPLE

    match resolved_style:
        case ParameterStyle.LABEL:
            if is_sequence(value):
                joiner = "." if explode else ","
                return "." + joiner.join(encode(e) for e in _elements(value))
            if isinstance(value, Mapping):
                if explode:
                    return "." + ".".join(
                        f"{encode(k)}={encode(v)}" for k, v in _entries(value)
                    )
                return "." + ",".join(
                    f"{encode(k)},{encode(v)}" for k, v in _entries(value)
                )
            return "." + encode(format_primitive(value))

        case ParameterStyle.MATRIX:
            key = encode(name)
            if is_sequence(value):
                if explode:
                    return ";" + ";".join(
                        f"{key}={encode(e)}" for e in _elements(value)
                    )
                return f";{key}=" + ",".join(encode(e) for e in _elements(value))
            if isinstance(value, Mapping):
                if explode:
                    return ";" + ";".join(
                        f"{encode(k)}={encode(v)}" for k, v in _entries(value)
                    )
                return f";{key}=" + ",".join(
                    f"{encode(k)},{encode(v)}" for k, v in _entries(value)
                )
            return f";{key}={encode(format_primitive(value))}"

        case _:
            if resolved_style is not ParameterStyle.SIMPLE:
                logger.debug(
                    "Style %s isn't supported for path parameter %r, using simple "
                    "style",
                    resolved_style.value,
                    name,
                )
            if is_sequence(value):
                return ",".join(encode(e) for e in _elements(value))
            if isinstance(value, Mapping):
                separator = "=" if explode else ","
                return ",".join(
                    f"{encode(k)}{separator}{encode(v)}" for k, v in _entries(value)
                )
            return encode(format_primitive(value))


def serialize_header_param(
    name: str,
    value: Any,
    explode: bool = False,
    serialization: Serialization = None,
    content_type: str | None = None,
    encoding: Mapping[str, EncodingDescriptor] | None = None,
) -> str:
    """Serialize a header parameter value.

    Headers always use the simple style. Values are not percent-encoded.

    :param name: The header name.
    :param value: The value to serialize.
    :param explode: Whether mapping entries are written as ``key=value``.
    :param serialization: Set to ``json`` to send the value as JSON text.
    :param content_type: The media type of the parameter's ``content`` map.
    :param encoding: Field encodings used when the content type is form-urlencoded.
    :returns: The header value, or an empty string if the value is None.
    """
    if value is None:
        return ""

    media_type = normalize_media_type(content_type)
    if media_type == FORM_URLENCODED:
        if isinstance(value, Mapping):
            return encode_urlencoded_body(value, encoding)
        return format_primitive(value)
    if serialization == "json" or is_json_media_type(media_type):
        return _stringify_json(name, value)
    if media_type is not None:
        return format_primitive(value)

    if is_sequence(value):
        return ",".join(_elements(value))
    if isinstance(value, Mapping):
        separator = "=" if explode else ","
        return ",".join(f"{k}{separator}{v}" for k, v in _entries(value))
    return format_primitive(value)


def serialize_cookie_param(
    name: str,
    value: Any,
    style: ParameterStyle | str | None = ParameterStyle.FORM,
    explode: bool = True,
    allow_reserved: bool = False,
    serialization: Serialization = None,
) -> str:
    """Serialize a cookie parameter into ``name=value`` cookie pairs.

    Exploded sequences and mappings produce multiple pairs joined by ``; ``.

    :param name: The cookie name.
    :param value: The value to serialize.
    :param style: ``form``, or ``cookie`` to send values without percent-encoding.
    :param explode: Whether composite values produce one cookie pair per item.
    :param allow_reserved: Whether reserved characters may appear unescaped.
    :param serialization: Set to ``json`` to send the value as JSON text.
    :returns: The cookie pairs, or an empty string if the value is None.
    """
    if value is None:
        return ""
    if serialization == "json":
        return f"{name}={urlquote(_stringify_json(name, value), safe='')}"

    encode: Encoder
    if ParameterStyle.parse(style) is ParameterStyle.COOKIE:
        encode = _no_encoding
        key = name
    else:
        encode = partial(encode_reserved, allow_reserved=allow_reserved)
        key = encode(name)

    if is_sequence(value):
        if explode:
            return "; ".join(f"{key}={encode(e)}" for e in _elements(value))
        return f"{key}=" + ",".join(encode(e) for e in _elements(value))
    if isinstance(value, Mapping):
        if explode:
            return "; ".join(f"{encode(k)}={encode(v)}" for k, v in _entries(value))
        return f"{key}=" + ",".join(
            f"{encode(k)},{encode(v)}" for k, v in _entries(value)
        )
    return f"{key}={encode(format_primitive(value))}"


def serialize_raw_querystring(
    value: Any,
    serialization: Serialization = None,
    content_type: str | None = None,
    encoding: Mapping[str, EncodingDescriptor] | None = None,
) -> str:
    """Serialize a parameter that makes up the entire query string.

    :param value: The value to serialize.
    :param serialization: Set to ``json`` to send the value as JSON text.
    :param content_type: The media type of the parameter's ``content`` map.
    :param encoding: Field encodings used when the content type is form-urlencoded.
    :returns: The query string without a leading ``?``, or an empty string if the
        value is None.
    """
    if value is None:
        return ""

    media_type = normalize_media_type(content_type)
    if serialization == "json" or is_json_media_type(media_type):
        return urlquote(_stringify_json("querystring", value), safe="")
    if media_type == FORM_URLENCODED:
        if isinstance(value, Mapping):
            return encode_urlencoded_body(value, encoding)
        return _form_encode(urlquote(format_primitive(value), safe=""))
    if media_type is not None:
        return urlquote(format_primitive(value), safe="")

    if isinstance(value, Mapping):
        return join_query_params(
            [(encode_reserved(k), encode_reserved(v)) for k, v in _entries(value)]
        )
    return format_primitive(value)


def serialize_urlencoded_body(
    body: Any,
    encoding: Mapping[str, EncodingDescriptor | Mapping[str, Any]] | None = None,
) -> QueryParams:
    """Serialize an ``application/x-www-form-urlencoded`` body into encoded pairs.

    A field whose encoding has a content type but no style, explode or
    allowReserved hint is sent as that content type. Every other field is serialized
    like a query parameter. Spaces are encoded as ``+``.

    :param body: The body mapping. Anything else produces no pairs.
    :param encoding: Per-field encodings.
    :returns: The encoded key-value pairs.
    """
    result: QueryParams = []
    if not isinstance(body, Mapping):
        return result
    encoding = encoding or {}

    for key, value in body.items():
        if value is None:
            continue
        key = format_primitive(key)
        config = _as_encoding(encoding.get(key))
        content_type = normalize_media_type(config.content_type)

        if content_type is not None and not config.has_serialization_hints:
            if is_json_media_type(content_type):
                raw = _stringify_json(key, value)
            else:
                raw = format_primitive(value)
            result.append(
                (
                    _form_encode(urlquote(key, safe="")),
                    _form_encode(urlquote(raw, safe="")),
                )
            )
            continue

        descriptor = SerializationDescriptor(
            name=key,
            location=ParameterLocation.QUERY,
            style=config.style,
            explode=config.explode,
            allow_reserved=bool(config.allow_reserved),
            allow_empty_value=True,
        )
        for param_key, param_value in serialize_query_param(descriptor, value):
            result.append((_form_encode(param_key), _form_encode(param_value)))
    return result


def encode_urlencoded_body(
    body: Any,
    encoding: Mapping[str, EncodingDescriptor | Mapping[str, Any]] | None = None,
) -> str:
    """Serialize an ``application/x-www-form-urlencoded`` body into its text form.

    See :py:func:`serialize_urlencoded_body`.
    """
    return join_query_params(serialize_urlencoded_body(body, encoding))
