# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Tests for ICC_PROFILE APP2 marker chunking and reassembly."""

import random
import struct

import pytest

from rgbtocmyk.exceptions import (
    CapacityError,
    EmptyProfileError,
    InconsistentCountError,
    MissingChunksError,
    ProtocolError,
    SequenceError,
)
from rgbtocmyk.icc import (
    ICC_MARKER_TAG,
    MAX_CHUNK_DATA_LEN,
    MAX_CHUNKS,
    MarkerChunk,
    app2_segments,
    chunk,
    parse_marker,
    reassemble,
)


def _profile(length: int) -> bytes:
    return bytes(i % 251 for i in range(length))


def _marker(seq: int, count: int, data: bytes = b"data") -> bytes:
    return ICC_MARKER_TAG + bytes((seq, count)) + data


class TestChunk:
    """Tests for chunk()."""

    def test_chunk_data_limit(self):
        """Payload data fits a 65535-byte segment with its length field."""
        assert MAX_CHUNK_DATA_LEN == 65519
        assert MAX_CHUNK_DATA_LEN + 14 + 2 == 65535

    def test_single_chunk_layout(self):
        """Small profile produces one marker with a 14-byte header."""
        payloads = chunk(b"abc")
        assert payloads == [b"ICC_PROFILE\x00\x01\x01abc"]

    @pytest.mark.parametrize(
        ("length", "expected_chunks"),
        [
            (1, 1),
            (MAX_CHUNK_DATA_LEN, 1),
            (MAX_CHUNK_DATA_LEN + 1, 2),
            (3 * MAX_CHUNK_DATA_LEN, 3),
        ],
        ids=["one-byte", "exactly-one-chunk", "one-over", "three-full"],
    )
    def test_chunk_count(self, length, expected_chunks):
        """Number of markers is ceil(length / 65519)."""
        payloads = chunk(_profile(length))
        assert len(payloads) == expected_chunks
        for index, payload in enumerate(payloads, start=1):
            assert payload[:12] == ICC_MARKER_TAG
            assert payload[12] == index
            assert payload[13] == expected_chunks
            assert len(payload) <= 14 + MAX_CHUNK_DATA_LEN

    def test_empty_profile_rejected(self):
        """Zero-length profile raises EmptyProfileError."""
        with pytest.raises(EmptyProfileError):
            chunk(b"")

    def test_exactly_255_chunks(self):
        """A profile needing exactly 255 chunks is accepted."""
        payloads = chunk(bytes(MAX_CHUNKS * MAX_CHUNK_DATA_LEN))
        assert len(payloads) == 255
        assert payloads[-1][12:14] == b"\xff\xff"

    def test_256_chunks_rejected(self):
        """A profile needing 256 chunks raises CapacityError."""
        with pytest.raises(CapacityError, match="256 chunks"):
            chunk(bytes(MAX_CHUNKS * MAX_CHUNK_DATA_LEN + 1))


class TestReassemble:
    """Tests for reassemble()."""

    @pytest.mark.parametrize(
        "length",
        [1, 128, MAX_CHUNK_DATA_LEN, MAX_CHUNK_DATA_LEN + 1, 200_000],
        ids=["1", "128", "one-chunk", "two-chunks", "four-chunks"],
    )
    def test_round_trip(self, length):
        """reassemble(chunk(P)) == P."""
        profile = _profile(length)
        assert reassemble(chunk(profile)) == profile

    def test_shuffled_order(self):
        """Chunk order in the file does not matter."""
        profile = _profile(5 * MAX_CHUNK_DATA_LEN - 7)
        payloads = chunk(profile)
        shuffled = payloads[:]
        random.Random(1234).shuffle(shuffled)
        assert shuffled != payloads
        assert reassemble(shuffled) == profile

    def test_reversed_order(self):
        """Reversed chunks reassemble to the original profile."""
        profile = _profile(2 * MAX_CHUNK_DATA_LEN + 10)
        assert reassemble(list(reversed(chunk(profile)))) == profile

    def test_empty_list_is_absent(self):
        """No markers means no profile, not an error."""
        assert reassemble([]) is None

    def test_foreign_app2_markers_are_absent(self):
        """APP2 markers with another tag are ignored."""
        markers = [b"FPXR\x00\x00\x01\x02\x03\x04\x05\x06\x07\x08\x09", b"MPF\x00"]
        assert reassemble(markers) is None

    def test_short_markers_skipped(self):
        """Markers shorter than 14 bytes are skipped, even with the tag."""
        markers = [ICC_MARKER_TAG + b"\x01", _marker(1, 1, b"xyz")]
        assert reassemble(markers) == b"xyz"

    def test_foreign_markers_mixed_in(self):
        """Foreign markers between ICC markers do not disturb reassembly."""
        markers = [
            _marker(2, 2, b"B"),
            b"XMP something long enough",
            _marker(1, 2, b"A"),
        ]
        assert reassemble(markers) == b"AB"

    def test_inconsistent_count(self):
        """Markers disagreeing on the total raise InconsistentCountError."""
        with pytest.raises(InconsistentCountError):
            reassemble([_marker(1, 2), _marker(2, 3)])

    @pytest.mark.parametrize(
        ("seq", "count"), [(0, 1), (3, 2)], ids=["zero", "above-count"]
    )
    def test_invalid_sequence(self, seq, count):
        """Sequence 0 or above the total raises SequenceError."""
        with pytest.raises(SequenceError):
            reassemble([_marker(seq, count)])

    def test_missing_chunk(self):
        """Fewer chunks than declared raises MissingChunksError."""
        payloads = chunk(_profile(3 * MAX_CHUNK_DATA_LEN))
        with pytest.raises(MissingChunksError, match="Expected 3 ICC chunks, found 2"):
            reassemble(payloads[:2])

    def test_extra_chunk(self):
        """More chunks than declared raises MissingChunksError."""
        with pytest.raises(MissingChunksError):
            reassemble([_marker(1, 1), _marker(1, 1)])

    def test_errors_are_protocol_errors(self):
        """All reassembly errors share the ProtocolError base."""
        cases = (
            [_marker(0, 1)],
            [_marker(1, 2), _marker(1, 3)],
            [_marker(1, 2)],
        )
        for markers in cases:
            with pytest.raises(ProtocolError):
                reassemble(markers)


class TestParseMarker:
    """Tests for parse_marker()."""

    def test_parses_fields(self):
        """Sequence, count and data are extracted."""
        assert parse_marker(_marker(2, 5, b"payload")) == MarkerChunk(
            sequence_number=2, total_chunks=5, payload=b"payload"
        )

    def test_header_only_marker(self):
        """A 14-byte marker carries an empty chunk."""
        assert parse_marker(_marker(1, 1, b"")).payload == b""

    def test_not_icc(self):
        """Other APP2 payloads yield None."""
        assert parse_marker(b"ICC_PROFILX\x00\x01\x01data") is None
        assert parse_marker(b"short") is None


class TestApp2Segments:
    """Tests for app2_segments()."""

    def test_segment_framing(self):
        """Each segment is FF E2, a length counting itself, then the payload."""
        payloads = chunk(_profile(MAX_CHUNK_DATA_LEN + 100))
        data = app2_segments(payloads)

        pos = 0
        for payload in payloads:
            assert data[pos : pos + 2] == b"\xff\xe2"
            (length,) = struct.unpack(">H", data[pos + 2 : pos + 4])
            assert length == len(payload) + 2
            assert length <= 65535
            assert data[pos + 4 : pos + 2 + length] == payload
            pos += 2 + length
        assert pos == len(data)

    def test_empty(self):
        """No payloads produce no bytes."""
        assert app2_segments([]) == b""

    def test_oversized_payload_rejected(self):
        """A payload that cannot fit a segment raises CapacityError."""
        with pytest.raises(CapacityError):
            app2_segments([bytes(65534)])
