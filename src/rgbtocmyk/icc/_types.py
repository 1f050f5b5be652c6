# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Types and constants for ICC profile handling."""

from dataclasses import dataclass

# APP2 payload tag: "ICC_PROFILE" followed by a NUL byte
ICC_MARKER_TAG = b"ICC_PROFILE\x00"

# Tag + 1-byte sequence number + 1-byte chunk count
ICC_MARKER_HEADER_LEN = len(ICC_MARKER_TAG) + 2

# A marker segment is at most 65535 bytes including its 2-byte length field
MAX_MARKER_SEGMENT_LEN = 65535
MAX_CHUNK_DATA_LEN = MAX_MARKER_SEGMENT_LEN - 2 - ICC_MARKER_HEADER_LEN

# The chunk count is stored in a single byte
MAX_CHUNKS = 255

# ICC header layout
ICC_HEADER_LEN = 128
ICC_SIGNATURE = b"acsp"
MAX_PROFILE_SIZE = 4 * 1024 * 1024

_COLOR_SPACE_NAMES: dict[str, str] = {
    "RGB ": "RGB",
    "CMYK": "CMYK",
    "GRAY": "Grayscale",
    "Lab ": "CIELAB",
    "XYZ ": "CIEXYZ",
}

_DEVICE_CLASS_NAMES: dict[str, str] = {
    "mntr": "Display",
    "prtr": "Output",
    "scnr": "Input",
    "link": "DeviceLink",
    "spac": "ColorSpace",
    "abst": "Abstract",
    "nmcl": "NamedColor",
}


def color_space_name(signature: str) -> str:
    """Return a human-readable name for an ICC color space signature."""
    return _COLOR_SPACE_NAMES.get(signature, signature)


def device_class_name(signature: str) -> str:
    """Return a human-readable name for an ICC profile/device class."""
    return _DEVICE_CLASS_NAMES.get(signature, signature)


@dataclass(frozen=True)
class ICCProfileHeader:
    """Metadata parsed from the 128-byte ICC profile header."""

    declared_size: int
    version: str  # "major.minor.bugfix"
    device_class: str  # e.g. "mntr", "prtr"
    data_color_space: str  # e.g. "RGB ", "CMYK", "GRAY"
    connection_space: str  # "XYZ " or "Lab "

    @property
    def color_space_name(self) -> str:
        return color_space_name(self.data_color_space)

    @property
    def connection_space_name(self) -> str:
        return color_space_name(self.connection_space)

    @property
    def device_class_name(self) -> str:
        return device_class_name(self.device_class)


@dataclass(frozen=True)
class MarkerChunk:
    """One ICC_PROFILE APP2 marker: position in the sequence plus data."""

    sequence_number: int  # 1-based
    total_chunks: int
    payload: bytes
