#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from typing import Any

import pytest

from openapi_wire.content import (
    decode_base64,
    decode_content,
    encode_base64,
    encode_content,
)
from openapi_wire.exceptions import SerializationError
from openapi_wire.settings import WireSettings
from openapi_wire.types import Blob, ContentCodecDescriptor


@pytest.mark.parametrize(
    "descriptor",
    [
        None,
        {"encode": True},
        {"contentEncoding": "base64"},
        ContentCodecDescriptor(decode=True),
    ],
)
def test_none_passes_through(descriptor: Any) -> None:
    assert encode_content(None, descriptor) is None
    assert decode_content(None, descriptor) is None


def test_missing_descriptor_is_identity() -> None:
    value = {"a": "1"}
    assert encode_content(value, None) is value
    assert decode_content(value, None) is value


@pytest.mark.parametrize(
    "value, descriptor, expected",
    [
        ({"a": [1, 2]}, {"encode": True}, '{"a":[1,2]}'),
        ([True], {"encode": True}, "[true]"),
        ("already text", {"encode": True}, "already text"),
        ("test-content", {"contentEncoding": "base64"}, "dGVzdC1jb250ZW50"),
        ("test-content", {"contentEncoding": "BASE64"}, "dGVzdC1jb250ZW50"),
        (b"\xfb\xff", {"contentEncoding": "base64"}, "+/8="),
        (b"\xfb\xff", {"contentEncoding": "base64url"}, "-_8"),
        (Blob(b"hi"), {"contentEncoding": "base64"}, "aGk="),
        ({"a": 1}, {"encode": True, "contentEncoding": "base64"}, "eyJhIjoxfQ=="),
        ("text", {"contentEncoding": "quoted-printable"}, "text"),
        (
            {"payload": {"x": 1}, "other": {"y": 2}},
            {"properties": {"payload": {"encode": True}, "missing": {"encode": True}}},
            {"payload": '{"x":1}', "other": {"y": 2}},
        ),
        (
            [{"x": 1}, {"y": 2}],
            {"items": {"encode": True}},
            ['{"x":1}', '{"y":2}'],
        ),
        (
            {"files": [b"a", b"b"]},
            {"properties": {"files": {"items": {"contentEncoding": "base64"}}}},
            {"files": ["YQ==", "Yg=="]},
        ),
        ({"a": 1}, {}, {"a": 1}),
        (5, {"items": {"encode": True}}, 5),
    ],
)
def test_encode_content(value: Any, descriptor: dict[str, Any], expected: Any) -> None:
    assert encode_content(value, descriptor) == expected


def test_encode_content_copies_containers() -> None:
    value = {"payload": {"x": 1}}
    result = encode_content(value, {"properties": {"payload": {"encode": True}}})
    assert result == {"payload": '{"x":1}'}
    assert value == {"payload": {"x": 1}}


def test_encode_content_uses_settings() -> None:
    settings = WireSettings(json_separators=(", ", ": "))
    result = encode_content({"a": [1, 2]}, {"encode": True}, settings=settings)
    assert result == '{"a": [1, 2]}'


@pytest.mark.parametrize(
    "value, descriptor, message",
    [
        ({"a": object()}, {"encode": True}, "Failed to encode content"),
        (5, {"contentEncoding": "base64"}, "Failed to encode content as base64"),
        ({"a": 1}, {"contentEncoding": "base64url"}, "as base64url"),
    ],
)
def test_encode_content_failures_return_value(
    value: Any,
    descriptor: dict[str, Any],
    message: str,
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING):
        assert encode_content(value, descriptor) is value
    assert message in caplog.text


@pytest.mark.parametrize(
    "value, descriptor, expected",
    [
        ('{"a":1}', {"decode": True}, {"a": 1}),
        ('{"a":1}', {"decode": "json"}, {"a": 1}),
        ("[1, 2.5]", {"decode": True}, [1, 2.5]),
        ("<root><a>1</a></root>", {"decode": "xml"}, {"root": {"a": "1"}}),
        (
            '<root id="7"/>',
            {"decode": "xml", "xmlConfig": {"attr_prefix": ""}},
            {"root": {"id": "7"}},
        ),
        ("dGVzdC1jb250ZW50", {"contentEncoding": "base64"}, b"test-content"),
        ("-_8", {"contentEncoding": "base64url"}, b"\xfb\xff"),
        ("-_8=", {"contentEncoding": "base64url"}, b"\xfb\xff"),
        ("eyJhIjoxfQ==", {"contentEncoding": "base64", "decode": True}, {"a": 1}),
        ("eyJhIjoxfQ", {"contentEncoding": "base64url", "decode": True}, {"a": 1}),
        ("text", {"contentEncoding": "7bit"}, "text"),
        ({"a": 1}, {"decode": True}, {"a": 1}),
        (
            {"payload": '{"x":[1]}', "other": "keep"},
            {"properties": {"payload": {"decode": True}, "missing": {"decode": True}}},
            {"payload": {"x": [1]}, "other": "keep"},
        ),
        (['{"a":1}', "2"], {"items": {"decode": True}}, [{"a": 1}, 2]),
        (
            '{"inner":"{\\"b\\":2}"}',
            {"decode": True, "properties": {"inner": {"decode": True}}},
            {"inner": {"b": 2}},
        ),
        (
            '[{"raw":"aGk="}]',
            {
                "decode": True,
                "items": {"properties": {"raw": {"contentEncoding": "base64"}}},
            },
            [{"raw": b"hi"}],
        ),
    ],
)
def test_decode_content(value: Any, descriptor: dict[str, Any], expected: Any) -> None:
    assert decode_content(value, descriptor) == expected


@pytest.mark.parametrize(
    "value, descriptor, message",
    [
        ("{not json", {"decode": True}, "Failed to decode content string"),
        ('{"a":1} trailing', {"decode": True}, "Failed to decode content string"),
        ("[1] [2]", {"decode": True}, "Failed to decode content string"),
        ("<root>", {"decode": "xml"}, "Failed to decode content string"),
        ("!!!", {"contentEncoding": "base64"}, "Failed to decode base64 content"),
        (
            "//79",
            {"contentEncoding": "base64", "decode": True},
            "isn't UTF-8 text",
        ),
    ],
)
def test_decode_content_failures_return_value(
    value: str,
    descriptor: dict[str, Any],
    message: str,
    caplog: pytest.LogCaptureFixture,
) -> None:
    with caplog.at_level(logging.WARNING):
        assert decode_content(value, descriptor) == value
    assert message in caplog.text


def test_decode_content_invalid_json() -> None:
    assert decode_content("{not json", {"decode": True}) == "{not json"


def test_depth_limit(caplog: pytest.LogCaptureFixture) -> None:
    settings = WireSettings(max_depth=0)
    value = {"a": {"b": 1}}
    descriptor = {"properties": {"a": {"encode": True}}}
    with caplog.at_level(logging.WARNING):
        assert encode_content(value, descriptor, settings=settings) == value
        assert decode_content(value, descriptor, settings=settings) == value
    assert "maximum depth" in caplog.text


@pytest.mark.parametrize(
    "data", [b"", b"\x00", b"\xfb\xff\xfe", bytes(range(256)), "test-content"]
)
@pytest.mark.parametrize("url_safe", [False, True])
def test_base64_round_trip(data: bytes | str, url_safe: bool) -> None:
    expected = data.encode("utf-8") if isinstance(data, str) else data
    assert decode_base64(encode_base64(data, url_safe), url_safe) == expected


def test_encode_base64_rejects_non_binary() -> None:
    with pytest.raises(SerializationError):
        encode_base64(5)  # type: ignore


def test_decode_base64_rejects_invalid_text() -> None:
    with pytest.raises(SerializationError):
        decode_base64("a")
