#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Builders for ``multipart/form-data`` and ``multipart/mixed`` request bodies.

Bodies that a plain multi-field form can represent are returned as :py:class:`FormData`
so the HTTP layer can frame them itself. Everything else, including array bodies,
custom part headers and nested multiparts, is framed here per :rfc:`2046` and
returned as a :py:class:`Blob` with the matching Content-Type header.
"""

import logging
import secrets
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, replace
from typing import Any

from .exceptions import SerializationError
from .mediatypes import (
    FORM_DATA,
    JSON,
    MIXED,
    OCTET_STREAM,
    TEXT,
    base_media_type,
    dump_json,
    is_json_media_type,
    is_multipart_media_type,
    with_boundary,
)
from .parameters import flatten_form_value
from .settings import DEFAULT_SETTINGS, WireSettings
from .types import (
    Blob,
    EncodingDescriptor,
    MultipartConfig,
    ParameterStyle,
    default_explode,
)
from .utils import format_primitive, is_sequence

logger = logging.getLogger(__name__)

CRLF = b"\r\n"

_NO_ENCODING = EncodingDescriptor()


class FormField:
    """A single named entry of a multipart form."""

    def __init__(self, *, name: str, value: str | Blob):
        self.name = name
        self.value = value

    @property
    def filename(self) -> str | None:
        """The filename of a named blob value."""
        if isinstance(self.value, Blob):
            return self.value.filename
        return None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FormField):
            return False
        return self.name == other.name and self.value == other.value

    def __repr__(self) -> str:
        return f"FormField(name={self.name!r}, value={self.value!r})"


class FormData:
    def __init__(self, initial: Iterable[FormField] | None = None):
        """An ordered collection of form entries.

        Unlike HTTP fields, names may repeat. Each repeat is sent as its own part in
        the order it was appended.

        :param initial: Initial list of ``FormField`` objects.
        """
        self.entries: list[FormField] = list(initial) if initial is not None else []

    def append(self, name: str, value: str | Blob) -> None:
        """Add an entry to the end of the form."""
        self.entries.append(FormField(name=name, value=value))

    def get_all(self, name: str) -> list[str | Blob]:
        """Get every value appended under a name, in order."""
        return [entry.value for entry in self.entries if entry.name == name]

    def as_tuples(self) -> list[tuple[str, str | Blob]]:
        """Get list of ``name``, ``value`` tuples where each tuple represents one
        entry."""
        return [(entry.name, entry.value) for entry in self.entries]

    def __eq__(self, other: object) -> bool:
        """Entries must match in names, values, and order."""
        if not isinstance(other, FormData):
            return False
        return self.entries == other.entries

    def __iter__(self) -> Iterator[FormField]:
        yield from self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"FormData({self.entries})"

    def __contains__(self, name: str) -> bool:
        return any(entry.name == name for entry in self.entries)


@dataclass(frozen=True)
class MultipartResult:
    """A serialized multipart body."""

    content: FormData | Blob
    """Either native form entries, or the fully framed body."""

    headers: dict[str, str] | None = None
    """Headers that must be sent with a framed body, exactly as given.

    This is None for native form entries, whose framing is left to the HTTP layer.
    """


@dataclass(frozen=True)
class _Part:
    head: bytes
    payload: bytes


def _as_config(config: MultipartConfig | Mapping[str, Any] | None) -> MultipartConfig:
    if config is None:
        return MultipartConfig()
    if isinstance(config, MultipartConfig):
        return config
    return MultipartConfig.from_dict(config)


def _is_structured(value: Any) -> bool:
    return isinstance(value, Mapping) or is_sequence(value)


def _render(value: Any, settings: WireSettings) -> str:
    if not _is_structured(value):
        return format_primitive(value)
    try:
        return dump_json(value, settings)
    except SerializationError as e:
        logger.warning("Unable to serialize multipart value as JSON: %s", e)
        return format_primitive(value)


def _quote(value: str) -> str:
    return value.replace('"', "%22")


def _form_disposition(name: str) -> str:
    return f'form-data; name="{_quote(name)}"'


def serialize_multipart(
    body: Any,
    config: MultipartConfig | Mapping[str, Any] | None = None,
    *,
    settings: WireSettings = DEFAULT_SETTINGS,
) -> MultipartResult:
    """Serialize a request body as a multipart payload.

    Sequence bodies always produce a framed ``multipart/mixed`` payload, with part
    encodings taken from ``prefix_encoding`` by position and from ``item_encoding``
    for the rest. Mapping bodies produce native form entries unless the config sets a
    media type or a field needs custom headers, serialization hints or a nested
    multipart, in which case a framed ``multipart/form-data`` payload is produced.

    :param body: The body to serialize.
    :param config: The multipart encoding rules, as a config or a mapping accepted by
        :py:meth:`MultipartConfig.from_dict`.
    :param settings: Settings for boundaries, filenames and nesting depth.
    :returns: The serialized body and any headers it requires.
    :raises SerializationError: If no boundary absent from the payload could be
        generated.
    """
    config = _as_config(config)
    if body is None:
        return MultipartResult(content=FormData())

    if not is_sequence(body) and not isinstance(body, Mapping):
        logger.warning(
            "Multipart bodies must be mappings or sequences, found %s", type(body)
        )
        return MultipartResult(content=FormData())

    if is_sequence(body) or _requires_manual(config):
        media_type, payload = _serialize_manual(body, config, settings, depth=0)
        return MultipartResult(
            content=Blob(payload, media_type=base_media_type(media_type)),
            headers={"Content-Type": media_type},
        )

    return MultipartResult(content=_serialize_native(body, config, settings))


def _requires_manual(config: MultipartConfig) -> bool:
    return (
        config.media_type is not None
        or any(encoding.requires_manual for encoding in config.encoding.values())
        or bool(config.prefix_encoding)
        or config.item_encoding is not None
    )


def _serialize_native(
    body: Mapping[Any, Any], config: MultipartConfig, settings: WireSettings
) -> FormData:
    form = FormData()
    for key, value in body.items():
        if value is None:
            continue
        name = format_primitive(key)
        content_type = config.encoding.get(name, _NO_ENCODING).content_type
        values = value if is_sequence(value) else [value]
        for item in values:
            if item is None:
                continue
            form.append(name, _native_value(item, content_type, settings))
    return form


def _native_value(
    value: Any, content_type: str | None, settings: WireSettings
) -> str | Blob:
    if (blob := Blob.from_value(value)) is not None:
        return blob
    if is_json_media_type(content_type) or _is_structured(value):
        return Blob(_render(value, settings).encode("utf-8"), media_type=JSON)
    return format_primitive(value)


def _serialize_manual(
    body: Any, config: MultipartConfig, settings: WireSettings, depth: int
) -> tuple[str, bytes]:
    if is_sequence(body):
        parts = _array_parts(body, config, settings, depth)
        media_type = config.media_type or MIXED
    else:
        parts = _object_parts(body, config, settings, depth)
        media_type = config.media_type or FORM_DATA

    boundary = _choose_boundary(parts, settings)
    return with_boundary(media_type, boundary), _frame(parts, boundary)


def _object_parts(
    body: Mapping[Any, Any], config: MultipartConfig, settings: WireSettings, depth: int
) -> list[_Part]:
    parts: list[_Part] = []
    for key, value in body.items():
        if value is None:
            continue
        name = format_primitive(key)
        encoding = config.encoding.get(name, _NO_ENCODING)

        if encoding.has_serialization_hints:
            style = encoding.style or ParameterStyle.FORM
            explode = (
                encoding.explode
                if encoding.explode is not None
                else default_explode(style)
            )
            text_encoding = replace(encoding, content_type=None)
            flattened = flatten_form_value(name, value, style, explode)
            for part_name, part_value in flattened:
                parts.append(
                    _build_part(
                        part_value,
                        text_encoding,
                        settings,
                        depth,
                        _form_disposition(part_name),
                    )
                )
            continue

        values = value if is_sequence(value) else [value]
        for item in values:
            if item is None:
                continue
            parts.append(
                _build_part(item, encoding, settings, depth, _form_disposition(name))
            )
    return parts


def _array_parts(
    body: Iterable[Any], config: MultipartConfig, settings: WireSettings, depth: int
) -> list[_Part]:
    parts: list[_Part] = []
    for index, item in enumerate(body):
        if item is None:
            continue
        if index < len(config.prefix_encoding):
            encoding = config.prefix_encoding[index]
        elif config.item_encoding is not None:
            encoding = config.item_encoding
        else:
            encoding = _NO_ENCODING
        parts.append(_build_part(item, encoding, settings, depth, None))
    return parts


def _build_part(
    value: Any,
    encoding: EncodingDescriptor,
    settings: WireSettings,
    depth: int,
    disposition: str | None,
) -> _Part:
    blob = Blob.from_value(value)
    if disposition is not None and blob is not None:
        filename = blob.filename if blob.is_named else settings.default_blob_filename
        disposition += f'; filename="{_quote(filename)}"'

    headers: list[tuple[str, str]] = []
    for header, header_value in encoding.headers.items():
        if header.lower() == "content-disposition":
            disposition = header_value
        else:
            headers.append((header, header_value))
    if disposition is not None:
        headers.insert(0, ("Content-Disposition", disposition))

    content_type = encoding.content_type
    if content_type is None:
        if blob is not None:
            content_type = blob.media_type or OCTET_STREAM
        elif _is_structured(value):
            content_type = JSON
        else:
            content_type = TEXT

    if blob is not None:
        payload = blob.data
    elif is_multipart_media_type(content_type) and _is_structured(value):
        if depth >= settings.max_depth:
            logger.warning(
                "Nested multipart exceeds the maximum depth of %s, sending it as %s "
                "text",
                settings.max_depth,
                JSON,
            )
            payload = _render(value, settings).encode("utf-8")
        else:
            nested_config = _nested_config(value, encoding, content_type)
            content_type, payload = _serialize_manual(
                value, nested_config, settings, depth + 1
            )
    else:
        payload = _render(value, settings).encode("utf-8")

    headers.append(("Content-Type", content_type))
    head = "".join(f"{name}: {header_value}\r\n" for name, header_value in headers)
    return _Part(head=head.encode("utf-8"), payload=payload)


def _nested_config(
    value: Any, encoding: EncodingDescriptor, content_type: str
) -> MultipartConfig:
    media_type = base_media_type(content_type)
    if is_sequence(value):
        return MultipartConfig(
            media_type=media_type,
            prefix_encoding=encoding.prefix_encoding,
            item_encoding=encoding.item_encoding,
        )
    return MultipartConfig(media_type=media_type, encoding=encoding.encoding)


def _choose_boundary(parts: list[_Part], settings: WireSettings) -> str:
    for _ in range(settings.boundary_attempts):
        boundary = settings.boundary_prefix + secrets.token_hex(
            settings.boundary_token_bytes
        )
        delimiter = boundary.encode("ascii")
        collides = any(
            delimiter in part.head or delimiter in part.payload for part in parts
        )
        if not collides:
            return boundary
        logger.debug(
            "Multipart boundary %s occurs in the payload, drawing another", boundary
        )
    raise SerializationError(
        f"Unable to generate a multipart boundary absent from the payload after "
        f"{settings.boundary_attempts} attempts."
    )


def _frame(parts: list[_Part], boundary: str) -> bytes:
    delimiter = b"--" + boundary.encode("ascii")
    body = bytearray()
    for part in parts:
        body += delimiter + CRLF + part.head + CRLF + part.payload + CRLF
    body += delimiter + b"--" + CRLF
    return bytes(body)
