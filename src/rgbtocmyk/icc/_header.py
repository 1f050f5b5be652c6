# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""ICC profile header parsing and validation."""

import logging
import struct

from ..exceptions import (
    InvalidSignatureError,
    TooLargeError,
    TooShortError,
    ValidationError,
)
from ._types import ICC_HEADER_LEN, ICC_SIGNATURE, MAX_PROFILE_SIZE, ICCProfileHeader

logger = logging.getLogger(__name__)


def _signature(data: bytes, offset: int) -> str:
    return data[offset : offset + 4].decode("ascii", errors="replace")


def validate(data: bytes) -> ICCProfileHeader:
    """
    Validate an ICC profile and parse its header.

    The declared profile size (bytes 0-3) is recorded but not compared
    with ``len(data)``.

    Args:
        data: Raw ICC profile bytes.

    Returns:
        Parsed ICCProfileHeader.

    Raises:
        TooShortError: If data is shorter than the 128-byte header.
        TooLargeError: If data is larger than 4 MiB.
        InvalidSignatureError: If bytes 36-39 are not 'acsp'.
    """
    if len(data) < ICC_HEADER_LEN:
        raise TooShortError(
            f"ICC profile too short ({len(data)} bytes, need {ICC_HEADER_LEN})"
        )
    if len(data) > MAX_PROFILE_SIZE:
        raise TooLargeError(
            f"ICC profile too large ({len(data)} bytes, max {MAX_PROFILE_SIZE})"
        )

    signature = data[36:40]
    if signature != ICC_SIGNATURE:
        raise InvalidSignatureError(
            f"Invalid ICC signature: 0x{signature.hex()} "
            f"(expected 0x{ICC_SIGNATURE.hex()})"
        )

    (declared_size,) = struct.unpack_from(">I", data, 0)
    major = data[8]
    minor = data[9] >> 4
    bugfix = data[9] & 0x0F

    return ICCProfileHeader(
        declared_size=declared_size,
        version=f"{major}.{minor}.{bugfix}",
        device_class=_signature(data, 12),
        data_color_space=_signature(data, 16),
        connection_space=_signature(data, 20),
    )


def is_valid_profile(data: bytes) -> bool:
    """Return True if *data* passes header validation."""
    try:
        validate(data)
    except ValidationError as e:
        logger.debug("ICC profile rejected: %s", e)
        return False
    return True
