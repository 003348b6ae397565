#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Self

from .exceptions import DescriptorError

logger = logging.getLogger(__name__)

type Serialization = Literal["json"] | None
"""A hint that a parameter is carried as JSON text instead of through its style."""

type DecodeMode = bool | Literal["json", "xml"]


class ParameterLocation(Enum):
    """Where a parameter is placed in an HTTP request."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"

    QUERYSTRING = "querystring"
    """The whole query string is a single parameter."""


class ParameterStyle(Enum):
    """OpenAPI parameter serialization styles.

    See the `OpenAPI style values <https://spec.openapis.org/oas/v3.1.0#style-values>`_
    for more details.
    """

    SIMPLE = "simple"
    LABEL = "label"
    MATRIX = "matrix"
    FORM = "form"
    SPACE_DELIMITED = "spaceDelimited"
    PIPE_DELIMITED = "pipeDelimited"
    TAB_DELIMITED = "tabDelimited"
    DEEP_OBJECT = "deepObject"

    COOKIE = "cookie"
    """Cookie values sent as-is, without percent-encoding."""

    @classmethod
    def parse(cls, value: "ParameterStyle | str | None") -> "ParameterStyle | None":
        """Resolve a style from its OpenAPI name.

        Unknown names resolve to None so that callers fall back to the location's
        default behavior rather than failing.

        :param value: A style or the OpenAPI name of one.
        :returns: The matching style, or None if the name is unknown.
        """
        if value is None or isinstance(value, ParameterStyle):
            return value
        try:
            return cls(value)
        except ValueError:
            logger.debug("Unknown parameter style %r, using the default style", value)
            return None

    @property
    def delimiter(self) -> str:
        """The character that joins the items of a non-exploded value."""
        match self:
            case ParameterStyle.SPACE_DELIMITED:
                return " "
            case ParameterStyle.PIPE_DELIMITED:
                return "|"
            case ParameterStyle.TAB_DELIMITED:
                return "\t"
            case _:
                return ","


_DEFAULT_STYLES: dict[ParameterLocation, ParameterStyle] = {
    ParameterLocation.PATH: ParameterStyle.SIMPLE,
    ParameterLocation.QUERY: ParameterStyle.FORM,
    ParameterLocation.HEADER: ParameterStyle.SIMPLE,
    ParameterLocation.COOKIE: ParameterStyle.FORM,
    ParameterLocation.QUERYSTRING: ParameterStyle.FORM,
}


def default_explode(style: ParameterStyle | None) -> bool:
    """Get the OpenAPI default for ``explode``, which is only true for form styles."""
    return style in (ParameterStyle.FORM, ParameterStyle.COOKIE)


@dataclass(frozen=True)
class Blob:
    """A binary value, optionally named.

    Named blobs correspond to files: their filename is carried into multipart
    Content-Disposition headers. Raw ``bytes`` values are treated as unnamed blobs.
    """

    data: bytes
    media_type: str | None = None
    filename: str | None = None

    @property
    def is_named(self) -> bool:
        return self.filename is not None

    @classmethod
    def from_value(cls, value: Any) -> "Blob | None":
        """Get a blob for a binary-like value.

        :param value: Any runtime value.
        :returns: The value as a blob, or None if it isn't binary.
        """
        if isinstance(value, Blob):
            return value
        if isinstance(value, bytes | bytearray | memoryview):
            return cls(bytes(value))
        return None


def _lookup(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _expect_mapping(value: Any, context: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise DescriptorError(
            f"Expected a mapping for {context}, found {type(value)}: {value!r}"
        )
    return value


def _expect_optional_bool(value: Any, context: str) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    raise DescriptorError(f"Expected a boolean for {context}, found: {value!r}")


def _expect_optional_str(value: Any, context: str) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise DescriptorError(f"Expected a string for {context}, found: {value!r}")


@dataclass(frozen=True, kw_only=True)
class EncodingDescriptor:
    """How a single multipart or urlencoded body field is serialized.

    This mirrors the OpenAPI Encoding Object.
    """

    content_type: str | None = None
    """The Content-Type of the part."""

    headers: Mapping[str, str] = field(default_factory=dict)
    """Additional part headers. A Content-Disposition entry replaces the default."""

    style: ParameterStyle | None = None
    explode: bool | None = None
    allow_reserved: bool | None = None

    encoding: Mapping[str, "EncodingDescriptor"] = field(default_factory=dict)
    """Field encodings of a nested multipart value."""

    prefix_encoding: Sequence["EncodingDescriptor"] = ()
    """Positional encodings of a nested multipart array value."""

    item_encoding: "EncodingDescriptor | None" = None
    """The encoding of nested multipart array items not covered by the prefix."""

    def __post_init__(self) -> None:
        if self.style is not None and not isinstance(self.style, ParameterStyle):
            object.__setattr__(self, "style", ParameterStyle.parse(self.style))
        object.__setattr__(self, "prefix_encoding", tuple(self.prefix_encoding))

    @property
    def has_serialization_hints(self) -> bool:
        """Whether the field is flattened with parameter style rules."""
        return (
            self.style is not None
            or self.explode is not None
            or self.allow_reserved is not None
        )

    @property
    def requires_manual(self) -> bool:
        """Whether a native form container can't represent this field."""
        return (
            bool(self.headers)
            or (
                self.content_type is not None
                and self.content_type.lower().startswith("multipart/")
            )
            or self.has_serialization_hints
            or bool(self.prefix_encoding)
            or self.item_encoding is not None
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Create an encoding descriptor from an OpenAPI Encoding Object.

        :param data: A resolved Encoding Object, using either the OpenAPI camelCase
            keys or this class's attribute names.
        :raises DescriptorError: If the mapping is structurally invalid.
        """
        data = _expect_mapping(data, "encoding")
        headers = _lookup(data, "headers") or {}
        headers = _expect_mapping(headers, "encoding headers")
        item_encoding = _lookup(data, "item_encoding", "itemEncoding")
        return cls(
            content_type=_expect_optional_str(
                _lookup(data, "content_type", "contentType"), "contentType"
            ),
            headers={str(k): str(v) for k, v in headers.items()},
            style=_lookup(data, "style"),
            explode=_expect_optional_bool(_lookup(data, "explode"), "explode"),
            allow_reserved=_expect_optional_bool(
                _lookup(data, "allow_reserved", "allowReserved"), "allowReserved"
            ),
            encoding=_encoding_map(_lookup(data, "encoding")),
            prefix_encoding=_encoding_list(
                _lookup(data, "prefix_encoding", "prefixEncoding")
            ),
            item_encoding=(
                _as_encoding(item_encoding) if item_encoding is not None else None
            ),
        )


def _as_encoding(value: Any) -> EncodingDescriptor:
    if isinstance(value, EncodingDescriptor):
        return value
    return EncodingDescriptor.from_dict(value)


def _encoding_map(value: Any) -> dict[str, EncodingDescriptor]:
    if value is None:
        return {}
    value = _expect_mapping(value, "encoding map")
    return {str(k): _as_encoding(v) for k, v in value.items()}


def _encoding_list(value: Any) -> tuple[EncodingDescriptor, ...]:
    if value is None:
        return ()
    if isinstance(value, str | bytes) or not isinstance(value, Sequence):
        raise DescriptorError(f"Expected a list of encodings, found: {value!r}")
    return tuple(_as_encoding(v) for v in value)


@dataclass(frozen=True, kw_only=True)
class SerializationDescriptor:
    """The resolved serialization rules of a single operation parameter."""

    name: str
    location: ParameterLocation = ParameterLocation.QUERY
    style: ParameterStyle | None = None
    explode: bool | None = None
    allow_reserved: bool = False
    allow_empty_value: bool = False

    content_type: str | None = None
    """The media type of the parameter's ``content`` map, if it has one.

    Content-based serialization takes precedence over style-based serialization.
    """

    serialization: Serialization = None
    encoding: Mapping[str, EncodingDescriptor] = field(default_factory=dict)
    """Field encodings used when the content type is form-urlencoded."""

    def __post_init__(self) -> None:
        if not isinstance(self.location, ParameterLocation):
            try:
                object.__setattr__(self, "location", ParameterLocation(self.location))
            except ValueError as e:
                raise DescriptorError(
                    f"Unknown parameter location for {self.name!r}: {self.location!r}"
                ) from e
        if self.style is not None and not isinstance(self.style, ParameterStyle):
            object.__setattr__(self, "style", ParameterStyle.parse(self.style))

    @property
    def resolved_style(self) -> ParameterStyle:
        """The style, defaulted by location when absent."""
        return self.style or _DEFAULT_STYLES[self.location]

    @property
    def resolved_explode(self) -> bool:
        """The explode flag, defaulted by style when absent."""
        if self.explode is not None:
            return self.explode
        return default_explode(self.resolved_style)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Create a descriptor from a resolved OpenAPI Parameter Object.

        When the parameter has a ``content`` map, its first media type is used as
        the content type.

        :param data: A resolved Parameter Object, using either the OpenAPI camelCase
            keys or this class's attribute names.
        :raises DescriptorError: If the mapping is structurally invalid.
        """
        data = _expect_mapping(data, "parameter")
        name = _lookup(data, "name")
        if not isinstance(name, str) or not name:
            raise DescriptorError(f"Parameter is missing a name: {data!r}")

        content_type = _expect_optional_str(
            _lookup(data, "content_type", "contentType"), "contentType"
        )
        encoding = _lookup(data, "encoding")
        if content_type is None and (content := data.get("content")) is not None:
            content = _expect_mapping(content, f"content of {name!r}")
            for media_type, media_type_object in content.items():
                content_type = str(media_type)
                if isinstance(media_type_object, Mapping) and encoding is None:
                    encoding = media_type_object.get("encoding")
                break

        serialization = _lookup(data, "serialization")
        if serialization not in (None, "json"):
            raise DescriptorError(
                f"Unknown serialization hint for {name!r}: {serialization!r}"
            )
        return cls(
            name=name,
            location=_lookup(data, "location", "in") or ParameterLocation.QUERY,
            style=_lookup(data, "style"),
            explode=_expect_optional_bool(_lookup(data, "explode"), "explode"),
            allow_reserved=bool(_lookup(data, "allow_reserved", "allowReserved")),
            allow_empty_value=bool(
                _lookup(data, "allow_empty_value", "allowEmptyValue")
            ),
            content_type=content_type,
            serialization=serialization,
            encoding=_encoding_map(encoding),
        )


@dataclass(frozen=True, kw_only=True)
class MultipartConfig:
    """The encoding rules of a multipart request body."""

    media_type: str | None = None
    """The multipart media type. Defaults depend on the body shape."""

    encoding: Mapping[str, EncodingDescriptor] = field(default_factory=dict)
    """Per-field encodings of an object body."""

    prefix_encoding: Sequence[EncodingDescriptor] = ()
    """Positional encodings of an array body."""

    item_encoding: EncodingDescriptor | None = None
    """The encoding of array body items not covered by the prefix."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "prefix_encoding", tuple(self.prefix_encoding))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Create a multipart config from a mapping.

        The mapping is either a config using the keys ``mediaType``, ``encoding``,
        ``prefixEncoding`` and ``itemEncoding``, or a bare map of field names to
        Encoding Objects.

        :param data: The config mapping.
        :raises DescriptorError: If the mapping is structurally invalid.
        """
        data = _expect_mapping(data, "multipart config")
        config_keys = {
            "media_type",
            "mediaType",
            "encoding",
            "prefix_encoding",
            "prefixEncoding",
            "item_encoding",
            "itemEncoding",
        }
        if not config_keys.intersection(data):
            return cls(encoding=_encoding_map(data))

        item_encoding = _lookup(data, "item_encoding", "itemEncoding")
        return cls(
            media_type=_expect_optional_str(
                _lookup(data, "media_type", "mediaType"), "mediaType"
            ),
            encoding=_encoding_map(_lookup(data, "encoding")),
            prefix_encoding=_encoding_list(
                _lookup(data, "prefix_encoding", "prefixEncoding")
            ),
            item_encoding=(
                _as_encoding(item_encoding) if item_encoding is not None else None
            ),
        )


@dataclass(frozen=True, kw_only=True)
class ContentCodecDescriptor:
    """Content transforms for a value, mirroring the shape of its JSON schema."""

    encode: bool = False
    """Whether the value is stringified as JSON before sending."""

    decode: DecodeMode = False
    """Whether a received string is parsed. ``"xml"`` parses XML; any other truthy
    value parses JSON."""

    content_encoding: str | None = None
    """The schema's ``contentEncoding``, e.g. ``base64`` or ``base64url``."""

    xml_config: Mapping[str, Any] = field(default_factory=dict)
    """Keyword arguments for the XML parser."""

    properties: Mapping[str, "ContentCodecDescriptor"] = field(default_factory=dict)
    items: "ContentCodecDescriptor | None" = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Create a codec descriptor tree from a mapping.

        :param data: The descriptor mapping, using either camelCase keys or this
            class's attribute names.
        :raises DescriptorError: If the mapping is structurally invalid.
        """
        data = _expect_mapping(data, "content descriptor")
        decode = _lookup(data, "decode") or False
        if decode not in (True, False, "json", "xml"):
            raise DescriptorError(f"Unknown decode mode: {decode!r}")

        properties = _lookup(data, "properties") or {}
        properties = _expect_mapping(properties, "content descriptor properties")
        items = _lookup(data, "items")
        return cls(
            encode=bool(_lookup(data, "encode")),
            decode=decode,
            content_encoding=_expect_optional_str(
                _lookup(data, "content_encoding", "contentEncoding"),
                "contentEncoding",
            ),
            xml_config=_expect_mapping(
                _lookup(data, "xml_config", "xmlConfig") or {}, "xmlConfig"
            ),
            properties={
                str(k): _as_content_descriptor(v) for k, v in properties.items()
            },
            items=_as_content_descriptor(items) if items is not None else None,
        )


def _as_content_descriptor(value: Any) -> ContentCodecDescriptor:
    if isinstance(value, ContentCodecDescriptor):
        return value
    return ContentCodecDescriptor.from_dict(value)
