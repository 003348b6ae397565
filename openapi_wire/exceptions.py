#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0


class WireError(Exception):
    """Base exception type for all exceptions raised by openapi-wire."""


class SerializationError(WireError):
    """Exception indicating a value could not be rendered to or parsed from its wire
    format.

    The public serializers catch this, log a warning, and fall back to the
    untransformed value. It only escapes from the low-level codec helpers.
    """


class DescriptorError(WireError):
    """Exception indicating a descriptor mapping is structurally invalid.

    This is raised while building descriptors, never while serializing values.
    """
