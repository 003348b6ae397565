#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class WireSettings:
    """Settings shared by the multipart builder and the content codec."""

    max_depth: int = 32
    """The maximum nesting depth followed when recursing into nested multiparts or
    content descriptor trees.

    Descriptor trees are acyclic, so this only guards against a misbehaving
    resolver.
    """

    boundary_prefix: str = "----"
    """A fixed prefix for generated multipart boundary tokens."""

    boundary_token_bytes: int = 16
    """The number of random bytes in a boundary token, rendered as hex."""

    boundary_attempts: int = 8
    """How many boundary tokens to draw before giving up on finding one absent from
    the payload."""

    default_blob_filename: str = "blob"
    """The filename sent in a part's Content-Disposition for an unnamed blob."""

    json_separators: tuple[str, str] = (",", ":")
    """Item and key separators used when stringifying JSON."""


DEFAULT_SETTINGS = WireSettings()
