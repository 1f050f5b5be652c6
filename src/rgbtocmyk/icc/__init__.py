# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""ICC profile header validation and JPEG APP2 embedding."""

from ._defaults import get_default_rgb_profile
from ._header import is_valid_profile, validate
from ._markers import app2_segments, chunk, parse_marker, reassemble
from ._types import (
    ICC_HEADER_LEN,
    ICC_MARKER_TAG,
    MAX_CHUNK_DATA_LEN,
    MAX_CHUNKS,
    MAX_PROFILE_SIZE,
    ICCProfileHeader,
    MarkerChunk,
    color_space_name,
    device_class_name,
)

__all__ = [
    "ICC_HEADER_LEN",
    "ICC_MARKER_TAG",
    "MAX_CHUNK_DATA_LEN",
    "MAX_CHUNKS",
    "MAX_PROFILE_SIZE",
    "ICCProfileHeader",
    "MarkerChunk",
    "app2_segments",
    "chunk",
    "color_space_name",
    "device_class_name",
    "get_default_rgb_profile",
    "is_valid_profile",
    "parse_marker",
    "reassemble",
    "validate",
]
