#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from typing import Any

import pytest

from openapi_wire.exceptions import DescriptorError
from openapi_wire.types import (
    Blob,
    ContentCodecDescriptor,
    EncodingDescriptor,
    MultipartConfig,
    ParameterLocation,
    ParameterStyle,
    SerializationDescriptor,
)


@pytest.mark.parametrize(
    "given, expected",
    [
        ("form", ParameterStyle.FORM),
        ("deepObject", ParameterStyle.DEEP_OBJECT),
        (ParameterStyle.MATRIX, ParameterStyle.MATRIX),
        (None, None),
        ("weird", None),
    ],
)
def test_parse_style(given: Any, expected: ParameterStyle | None) -> None:
    assert ParameterStyle.parse(given) is expected


@pytest.mark.parametrize(
    "style, expected",
    [
        (ParameterStyle.SPACE_DELIMITED, " "),
        (ParameterStyle.PIPE_DELIMITED, "|"),
        (ParameterStyle.TAB_DELIMITED, "\t"),
        (ParameterStyle.FORM, ","),
        (ParameterStyle.SIMPLE, ","),
    ],
)
def test_style_delimiter(style: ParameterStyle, expected: str) -> None:
    assert style.delimiter == expected


@pytest.mark.parametrize(
    "data, style, explode",
    [
        ({"name": "p", "in": "query"}, ParameterStyle.FORM, True),
        ({"name": "p", "in": "path"}, ParameterStyle.SIMPLE, False),
        ({"name": "p", "in": "header"}, ParameterStyle.SIMPLE, False),
        ({"name": "p", "in": "cookie"}, ParameterStyle.FORM, True),
        ({"name": "p"}, ParameterStyle.FORM, True),
        ({"name": "p", "style": "pipeDelimited"}, ParameterStyle.PIPE_DELIMITED, False),
        ({"name": "p", "style": "form", "explode": False}, ParameterStyle.FORM, False),
        ({"name": "p", "in": "path", "style": "weird"}, ParameterStyle.SIMPLE, False),
        ({"name": "p", "style": "deepObject"}, ParameterStyle.DEEP_OBJECT, False),
    ],
)
def test_descriptor_defaults(
    data: dict[str, Any], style: ParameterStyle, explode: bool
) -> None:
    descriptor = SerializationDescriptor.from_dict(data)
    assert descriptor.resolved_style is style
    assert descriptor.resolved_explode is explode


def test_descriptor_from_dict() -> None:
    descriptor = SerializationDescriptor.from_dict(
        {
            "name": "filter",
            "in": "query",
            "allowReserved": True,
            "allowEmptyValue": True,
            "serialization": "json",
            "unknown": "ignored",
        }
    )
    assert descriptor == SerializationDescriptor(
        name="filter",
        location=ParameterLocation.QUERY,
        allow_reserved=True,
        allow_empty_value=True,
        serialization="json",
    )


def test_descriptor_uses_first_content_media_type() -> None:
    descriptor = SerializationDescriptor.from_dict(
        {
            "name": "form",
            "in": "query",
            "content": {
                "application/x-www-form-urlencoded": {
                    "encoding": {"tags": {"explode": False}}
                },
                "application/json": {},
            },
        }
    )
    assert descriptor.content_type == "application/x-www-form-urlencoded"
    assert descriptor.encoding == {"tags": EncodingDescriptor(explode=False)}


def test_descriptor_accepts_location_names() -> None:
    descriptor = SerializationDescriptor(name="p", location="header")  # type: ignore
    assert descriptor.location is ParameterLocation.HEADER


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"in": "query"},
        {"name": ""},
        {"name": "p", "in": "body"},
        {"name": "p", "explode": "yes"},
        {"name": "p", "serialization": "xml"},
        {"name": "p", "content": ["application/json"]},
    ],
)
def test_descriptor_rejects_invalid_input(data: Any) -> None:
    with pytest.raises(DescriptorError):
        SerializationDescriptor.from_dict(data)


@pytest.mark.parametrize(
    "data, hints, manual",
    [
        ({}, False, False),
        ({"contentType": "image/png"}, False, False),
        ({"contentType": "multipart/mixed"}, False, True),
        ({"headers": {"X-Id": "1"}}, False, True),
        ({"style": "form"}, True, True),
        ({"explode": False}, True, True),
        ({"allowReserved": True}, True, True),
        ({"prefixEncoding": [{}]}, False, True),
        ({"itemEncoding": {}}, False, True),
    ],
)
def test_encoding_flags(data: dict[str, Any], hints: bool, manual: bool) -> None:
    encoding = EncodingDescriptor.from_dict(data)
    assert encoding.has_serialization_hints is hints
    assert encoding.requires_manual is manual


def test_encoding_from_dict_nests() -> None:
    encoding = EncodingDescriptor.from_dict(
        {
            "contentType": "multipart/mixed",
            "headers": {"X-Count": 1},
            "encoding": {"inner": {"contentType": "text/csv"}},
            "prefixEncoding": [{"contentType": "text/plain"}],
            "itemEncoding": {"contentType": "application/json"},
        }
    )
    assert encoding.headers == {"X-Count": "1"}
    assert encoding.encoding["inner"].content_type == "text/csv"
    assert encoding.prefix_encoding == (EncodingDescriptor(content_type="text/plain"),)
    assert encoding.item_encoding == EncodingDescriptor(content_type="application/json")


@pytest.mark.parametrize(
    "data",
    [
        "text/plain",
        {"headers": ["X-Id"]},
        {"prefixEncoding": "text/plain"},
        {"contentType": 1},
    ],
)
def test_encoding_rejects_invalid_input(data: Any) -> None:
    with pytest.raises(DescriptorError):
        EncodingDescriptor.from_dict(data)


def test_multipart_config_from_dict() -> None:
    config = MultipartConfig.from_dict(
        {
            "mediaType": "multipart/mixed",
            "prefixEncoding": [{"contentType": "text/plain"}],
            "itemEncoding": {"contentType": "image/png"},
        }
    )
    assert config.media_type == "multipart/mixed"
    assert config.encoding == {}
    assert config.prefix_encoding == (EncodingDescriptor(content_type="text/plain"),)
    assert config.item_encoding == EncodingDescriptor(content_type="image/png")


def test_multipart_config_accepts_bare_encoding_map() -> None:
    config = MultipartConfig.from_dict({"avatar": {"contentType": "image/png"}})
    assert config.media_type is None
    assert config.encoding == {"avatar": EncodingDescriptor(content_type="image/png")}


def test_content_descriptor_from_dict() -> None:
    descriptor = ContentCodecDescriptor.from_dict(
        {
            "properties": {
                "payload": {"decode": "xml", "xmlConfig": {"attr_prefix": ""}},
                "raw": {"contentEncoding": "base64"},
            },
            "items": {"encode": True},
        }
    )
    assert descriptor.properties["payload"].decode == "xml"
    assert descriptor.properties["payload"].xml_config == {"attr_prefix": ""}
    assert descriptor.properties["raw"].content_encoding == "base64"
    assert descriptor.items == ContentCodecDescriptor(encode=True)


@pytest.mark.parametrize(
    "data",
    [
        {"decode": "yaml"},
        {"properties": ["payload"]},
        {"items": "json"},
        {"contentEncoding": 64},
    ],
)
def test_content_descriptor_rejects_invalid_input(data: Any) -> None:
    with pytest.raises(DescriptorError):
        ContentCodecDescriptor.from_dict(data)


@pytest.mark.parametrize(
    "given, expected",
    [
        (b"abc", Blob(b"abc")),
        (bytearray(b"abc"), Blob(b"abc")),
        (memoryview(b"abc"), Blob(b"abc")),
        (Blob(b"abc", "text/plain", "a.txt"), Blob(b"abc", "text/plain", "a.txt")),
        ("abc", None),
        (None, None),
    ],
)
def test_blob_from_value(given: Any, expected: Blob | None) -> None:
    assert Blob.from_value(given) == expected


def test_blob_is_named() -> None:
    assert Blob(b"", filename="a.txt").is_named
    assert not Blob(b"").is_named
