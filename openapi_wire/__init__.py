#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from .content import decode_content, encode_content
from .exceptions import DescriptorError, SerializationError, WireError
from .multipart import FormData, FormField, MultipartResult, serialize_multipart
from .parameters import (
    encode_urlencoded_body,
    serialize_cookie_param,
    serialize_header_param,
    serialize_path_param,
    serialize_query_param,
    serialize_raw_querystring,
    serialize_urlencoded_body,
)
from .settings import DEFAULT_SETTINGS, WireSettings
from .types import (
    Blob,
    ContentCodecDescriptor,
    EncodingDescriptor,
    MultipartConfig,
    ParameterLocation,
    ParameterStyle,
    SerializationDescriptor,
)
from .utils import encode_reserved, format_primitive, join_query_params

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_SETTINGS",
    "Blob",
    "ContentCodecDescriptor",
    "DescriptorError",
    "EncodingDescriptor",
    "FormData",
    "FormField",
    "MultipartConfig",
    "MultipartResult",
    "ParameterLocation",
    "ParameterStyle",
    "SerializationDescriptor",
    "SerializationError",
    "WireError",
    "WireSettings",
    "decode_content",
    "encode_content",
    "encode_reserved",
    "encode_urlencoded_body",
    "format_primitive",
    "join_query_params",
    "serialize_cookie_param",
    "serialize_header_param",
    "serialize_multipart",
    "serialize_path_param",
    "serialize_query_param",
    "serialize_raw_querystring",
    "serialize_urlencoded_body",
]
