# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""ICC profile embedding in JPEG APP2 marker segments.

An ICC profile larger than one marker segment is split across several
APP2 markers.  Each marker payload is laid out as::

    "ICC_PROFILE\\0"   12 bytes
    sequence number   1 byte, 1-based
    chunk count       1 byte
    profile data      up to 65519 bytes

so that payload plus the 2-byte segment length stays within 65535 bytes.
"""

import logging
import struct
from collections.abc import Iterable

from ..exceptions import (
    CapacityError,
    EmptyProfileError,
    InconsistentCountError,
    MissingChunksError,
    SequenceError,
)
from ._types import (
    ICC_MARKER_HEADER_LEN,
    ICC_MARKER_TAG,
    MAX_CHUNK_DATA_LEN,
    MAX_CHUNKS,
    MAX_MARKER_SEGMENT_LEN,
    MarkerChunk,
)

logger = logging.getLogger(__name__)

# JPEG APP2 marker bytes
_APP2 = b"\xff\xe2"


def chunk(profile: bytes) -> list[bytes]:
    """
    Split an ICC profile into APP2 marker payloads.

    Args:
        profile: Raw ICC profile bytes.

    Returns:
        Marker payloads in sequence order (tag + seq/count + data).

    Raises:
        EmptyProfileError: If the profile is empty.
        CapacityError: If more than 255 chunks would be needed.
    """
    if not profile:
        raise EmptyProfileError("Empty ICC profile")

    num_chunks = -(-len(profile) // MAX_CHUNK_DATA_LEN)
    if num_chunks > MAX_CHUNKS:
        raise CapacityError(
            f"ICC profile too large: needs {num_chunks} chunks (max {MAX_CHUNKS})"
        )

    payloads = []
    for index in range(num_chunks):
        start = index * MAX_CHUNK_DATA_LEN
        data = profile[start : start + MAX_CHUNK_DATA_LEN]
        header = ICC_MARKER_TAG + bytes((index + 1, num_chunks))
        payloads.append(header + data)

    logger.debug(
        "ICC profile of %d bytes split into %d marker(s)", len(profile), num_chunks
    )
    return payloads


def parse_marker(payload: bytes) -> MarkerChunk | None:
    """
    Parse one APP2 payload as an ICC_PROFILE chunk.

    Returns:
        MarkerChunk, or None if the payload is not an ICC_PROFILE marker.

    Raises:
        SequenceError: If the sequence number is 0 or exceeds the count.
    """
    if len(payload) < ICC_MARKER_HEADER_LEN:
        return None
    if payload[: len(ICC_MARKER_TAG)] != ICC_MARKER_TAG:
        return None

    sequence_number = payload[12]
    total_chunks = payload[13]
    if sequence_number == 0 or sequence_number > total_chunks:
        raise SequenceError(
            f"Invalid ICC chunk sequence {sequence_number}/{total_chunks}"
        )
    return MarkerChunk(
        sequence_number=sequence_number,
        total_chunks=total_chunks,
        payload=bytes(payload[ICC_MARKER_HEADER_LEN:]),
    )


def reassemble(markers: Iterable[bytes]) -> bytes | None:
    """
    Reassemble an ICC profile from raw APP2 marker payloads.

    Markers that are not ICC_PROFILE markers (other APP2 uses such as
    FlashPix) are skipped.  Markers may arrive in any order.

    Args:
        markers: Raw APP2 payloads, without the marker and length bytes.

    Returns:
        Profile bytes, or None if no ICC_PROFILE marker was found.

    Raises:
        SequenceError: If a sequence number is 0 or exceeds the count.
        InconsistentCountError: If markers disagree on the chunk count.
        MissingChunksError: If the number of chunks differs from the count.
    """
    chunks: list[MarkerChunk] = []
    expected_count = None

    for payload in markers:
        marker = parse_marker(payload)
        if marker is None:
            continue
        if expected_count is None:
            expected_count = marker.total_chunks
        elif marker.total_chunks != expected_count:
            raise InconsistentCountError(
                f"Inconsistent ICC chunk count: {marker.total_chunks} "
                f"vs {expected_count}"
            )
        chunks.append(marker)

    if not chunks:
        return None
    if len(chunks) != expected_count:
        raise MissingChunksError(
            f"Expected {expected_count} ICC chunks, found {len(chunks)}"
        )

    chunks.sort(key=lambda c: c.sequence_number)
    return b"".join(c.payload for c in chunks)


def app2_segments(payloads: Iterable[bytes]) -> bytes:
    """Frame marker payloads as complete JPEG APP2 segments.

    The 2-byte big-endian length counts itself plus the payload.
    """
    out = bytearray()
    for payload in payloads:
        if len(payload) + 2 > MAX_MARKER_SEGMENT_LEN:
            raise CapacityError(
                f"Marker payload of {len(payload)} bytes does not fit in a segment"
            )
        out += _APP2 + struct.pack(">H", len(payload) + 2) + payload
    return bytes(out)
