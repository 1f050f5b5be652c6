# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Pytest fixtures for the rgbtocmyk test suite."""

import functools
import os
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from rgbtocmyk.codec import DecodedImage, ImageInfo
from rgbtocmyk.exceptions import ValidationError
from rgbtocmyk.icc import validate
from rgbtocmyk.quantization import QuantizationTables
from rgbtocmyk.transform import RenderIntent

# -- ICC helpers --


def make_icc_profile(
    *,
    color_space: bytes = b"RGB ",
    device_class: bytes = b"mntr",
    connection_space: bytes = b"XYZ ",
    major: int = 2,
    minor_bugfix: int = 0x40,
    declared_size: int | None = None,
    signature: bytes = b"acsp",
    length: int = 128,
) -> bytes:
    """Build a header-only ICC profile with the given fields.

    Defaults to a v2.4.0 mntr RGB profile whose declared size matches
    its length.
    """
    profile = bytearray(length)
    size = length if declared_size is None else declared_size
    profile[0:4] = size.to_bytes(4, "big")
    profile[8] = major
    profile[9] = minor_bugfix
    profile[12:16] = device_class
    profile[16:20] = color_space
    profile[20:24] = connection_space
    profile[36:40] = signature
    return bytes(profile)


CMYK_PROFILE_ENV = "RGBTOCMYK_CMYK_PROFILE"

# System locations of CMYK output profiles (Ghostscript, colord)
_CMYK_PROFILE_DIRS = (
    "/usr/share/color/icc",
    "/usr/share/ghostscript",
    "/usr/local/share/color/icc",
    "/Library/ColorSync/Profiles",
)


def _is_cmyk_output_profile(path: Path) -> bool:
    try:
        header = validate(path.read_bytes())
    except (OSError, ValidationError):
        return False
    return header.data_color_space == "CMYK" and header.device_class == "prtr"


@functools.cache
def find_cmyk_profile() -> Path | None:
    """Locate a real CMYK output profile for LittleCMS tests.

    ``$RGBTOCMYK_CMYK_PROFILE`` takes precedence over the system
    directories.
    """
    configured = os.environ.get(CMYK_PROFILE_ENV)
    if configured:
        path = Path(configured)
        return path if _is_cmyk_output_profile(path) else None

    for directory in map(Path, _CMYK_PROFILE_DIRS):
        if not directory.is_dir():
            continue
        candidates = sorted(directory.rglob("*.ic[cm]"))
        for path in candidates:
            if _is_cmyk_output_profile(path):
                return path
    return None


requires_cmyk_profile = pytest.mark.skipif(
    find_cmyk_profile() is None,
    reason=f"CMYK ICC profile not available (set {CMYK_PROFILE_ENV})",
)


# -- JPEG helpers --


def make_jpeg(
    mode: str = "RGB",
    size: tuple[int, int] = (16, 12),
    color=None,
    **save_kwargs,
) -> bytes:
    """Encode a solid-color JPEG with Pillow."""
    if color is None:
        color = {"L": 128, "RGB": (200, 40, 90), "CMYK": (10, 20, 30, 40)}[mode]
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format="JPEG", **save_kwargs)
    return buffer.getvalue()


# -- Collaborator doubles --


class FakeTransform:
    """Color transform double that returns zeroed CMYK pixels."""

    def __init__(self, fail_apply: Exception | None = None):
        self.fail_apply = fail_apply
        self.closed = False
        self.apply_calls: list[tuple[int, int]] = []

    def apply(self, pixels: bytes, width: int, height: int) -> bytes:
        self.apply_calls.append((width, height))
        if self.fail_apply is not None:
            raise self.fail_apply
        return bytes(width * height * 4)

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeTransform":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class FakeEngine:
    """Color transform engine double that records its calls."""

    def __init__(
        self,
        fail_create: Exception | None = None,
        fail_apply: Exception | None = None,
    ):
        self.fail_create = fail_create
        self.fail_apply = fail_apply
        self.created: list[tuple[bytes, bytes, RenderIntent]] = []
        self.transforms: list[FakeTransform] = []
        self.released: list[FakeTransform] = []

    def create(
        self, source_profile: bytes, destination_profile: bytes, intent: RenderIntent
    ) -> FakeTransform:
        self.created.append((source_profile, destination_profile, intent))
        if self.fail_create is not None:
            raise self.fail_create
        transform = FakeTransform(self.fail_apply)
        self.transforms.append(transform)
        return transform

    def release(self, handle: FakeTransform) -> None:
        self.released.append(handle)
        handle.close()

    @property
    def source_profile(self) -> bytes:
        return self.created[-1][0]


class FakeCodec:
    """Image codec double returning a fixed decoded image."""

    def __init__(
        self,
        width: int = 4,
        height: int = 3,
        embedded_icc: bytes | None = None,
        fail_decode: Exception | None = None,
        fail_encode: Exception | None = None,
    ):
        self.decoded = DecodedImage(
            width=width,
            height=height,
            pixels=bytes(width * height * 3),
            embedded_icc=embedded_icc,
        )
        self.fail_decode = fail_decode
        self.fail_encode = fail_encode
        self.encode_calls: list[dict] = []

    def decode(self, data: bytes) -> DecodedImage:
        if self.fail_decode is not None:
            raise self.fail_decode
        return self.decoded

    def encode(
        self,
        pixels: bytes,
        width: int,
        height: int,
        tables: QuantizationTables,
        icc_profile: bytes | None = None,
    ) -> bytes:
        self.encode_calls.append(
            dict(
                pixels=pixels,
                width=width,
                height=height,
                tables=tables,
                icc_profile=icc_profile,
            )
        )
        if self.fail_encode is not None:
            raise self.fail_encode
        return b"\xff\xd8encoded\xff\xd9"

    def inspect(self, data: bytes) -> ImageInfo:
        return ImageInfo(
            width=self.decoded.width,
            height=self.decoded.height,
            num_components=3,
            color_space="YCbCr",
            embedded_icc=self.decoded.embedded_icc,
        )


# -- Fixtures --


@pytest.fixture
def rgb_profile() -> bytes:
    """Header-only RGB display profile."""
    return make_icc_profile()


@pytest.fixture
def gray_profile() -> bytes:
    """Header-only grayscale display profile."""
    return make_icc_profile(color_space=b"GRAY")


@pytest.fixture
def cmyk_profile() -> bytes:
    """Header-only CMYK output profile."""
    return make_icc_profile(
        color_space=b"CMYK", device_class=b"prtr", connection_space=b"Lab "
    )


@pytest.fixture
def real_cmyk_profile() -> bytes:
    """CMYK output profile from the system; use with requires_cmyk_profile."""
    return find_cmyk_profile().read_bytes()


@pytest.fixture
def rgb_jpeg() -> bytes:
    """16x12 RGB JPEG without an ICC profile."""
    return make_jpeg()


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()
