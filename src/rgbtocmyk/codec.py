# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""JPEG image codec.

The conversion pipeline talks to the codec through the ``ImageCodec``
protocol.  ``PillowJPEGCodec`` implements it on top of Pillow's JPEG
plugin (libjpeg); ICC profiles are read from and written to APP2 markers
with :mod:`rgbtocmyk.icc`.
"""

import io
import logging
from dataclasses import dataclass
from typing import Protocol

from PIL import Image

from .exceptions import CollaboratorError, UsageError
from .icc import app2_segments, chunk, reassemble
from .quantization import QuantizationTables
from .utils import expect_buffer_size

logger = logging.getLogger(__name__)

# Component counts of the pixel buffers exchanged with the codec
RGB_COMPONENTS = 3
CMYK_COMPONENTS = 4

# Errors Pillow raises for unreadable or unwritable image data
_PIL_ERRORS = (OSError, SyntaxError, ValueError)


@dataclass(frozen=True)
class DecodedImage:
    """Decoded RGB raster.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        pixels: RGB8 samples, interleaved, row-major.
        embedded_icc: ICC profile embedded in the source, if any.
    """

    width: int
    height: int
    pixels: bytes
    embedded_icc: bytes | None = None


@dataclass(frozen=True)
class ImageInfo:
    """JPEG header information, obtained without decoding pixels."""

    width: int
    height: int
    num_components: int
    color_space: str  # Grayscale, RGB, YCbCr, CMYK, YCCK or Unknown
    embedded_icc: bytes | None = None


class ImageCodec(Protocol):
    """Decoder/encoder used by the conversion pipeline."""

    def decode(self, data: bytes) -> DecodedImage: ...

    def encode(
        self,
        pixels: bytes,
        width: int,
        height: int,
        tables: QuantizationTables,
        icc_profile: bytes | None = None,
    ) -> bytes: ...

    def inspect(self, data: bytes) -> ImageInfo: ...


def _app2_payloads(image: Image.Image) -> list[bytes]:
    """Return raw APP2 payloads in file order."""
    applist = getattr(image, "applist", [])
    return [payload for marker, payload in applist if marker == "APP2"]


def _jpeg_color_space(num_components: int, adobe_transform: int | None) -> str:
    """Name the JPEG color space the way libjpeg infers it."""
    if num_components == 1:
        return "Grayscale"
    if num_components == 3:
        return "RGB" if adobe_transform == 0 else "YCbCr"
    if num_components == 4:
        return "YCCK" if adobe_transform == 2 else "CMYK"
    return "Unknown"


def _open_jpeg(data: bytes) -> Image.Image:
    """Open JPEG data with Pillow's decompression bomb check lifted.

    ``Image.MAX_IMAGE_PIXELS`` is restored once the header is read; the
    pixel cap is ``PillowJPEGCodec.max_pixels``.
    """
    previous_limit = Image.MAX_IMAGE_PIXELS
    Image.MAX_IMAGE_PIXELS = None
    try:
        return Image.open(io.BytesIO(data), formats=["JPEG"])
    finally:
        Image.MAX_IMAGE_PIXELS = previous_limit


class PillowJPEGCodec:
    """ImageCodec backed by Pillow.

    Args:
        optimize: Compute optimal Huffman tables when encoding.
        max_pixels: Largest width * height ``decode`` accepts, or None
            for no limit.

    Raises:
        UsageError: If max_pixels is not a positive integer or None.
    """

    def __init__(self, optimize: bool = True, max_pixels: int | None = None):
        if max_pixels is not None and (
            isinstance(max_pixels, bool)
            or not isinstance(max_pixels, int)
            or max_pixels < 1
        ):
            raise UsageError(f"max_pixels must be a positive integer: {max_pixels!r}")
        self.optimize = optimize
        self.max_pixels = max_pixels

    def decode(self, data: bytes) -> DecodedImage:
        """
        Decode a JPEG to an RGB8 raster.

        Grayscale sources are expanded to RGB.  The embedded ICC profile
        is reassembled from the APP2 markers.

        Raises:
            CollaboratorError: If the data is not a decodable RGB or
                grayscale JPEG, or exceeds ``max_pixels``.
            ProtocolError: If the ICC_PROFILE markers are inconsistent.
        """
        try:
            with _open_jpeg(data) as image:
                width, height = image.size
                if self.max_pixels is not None and width * height > self.max_pixels:
                    raise CollaboratorError(
                        f"Image size ({width}x{height}) exceeds pixel limit "
                        f"of {self.max_pixels}"
                    )
                embedded_icc = reassemble(_app2_payloads(image))
                if image.mode not in ("L", "RGB"):
                    raise CollaboratorError(
                        f"Unsupported JPEG color mode for RGB decoding: {image.mode}"
                    )
                rgb = image.convert("RGB")
                pixels = rgb.tobytes()
        except _PIL_ERRORS as e:
            raise CollaboratorError(f"JPEG decode failed: {e}") from e

        logger.debug(
            "Decoded %dx%d JPEG (embedded ICC: %s)",
            width,
            height,
            f"{len(embedded_icc)} bytes" if embedded_icc else "none",
        )
        return DecodedImage(
            width=width, height=height, pixels=pixels, embedded_icc=embedded_icc
        )

    def encode(
        self,
        pixels: bytes,
        width: int,
        height: int,
        tables: QuantizationTables,
        icc_profile: bytes | None = None,
    ) -> bytes:
        """
        Encode a CMYK8 raster as JPEG.

        Components C, M and Y use ``tables.cmy``, component K uses
        ``tables.k``.  The ICC profile is written as ICC_PROFILE APP2
        markers.

        Raises:
            UsageError: If the buffer does not match width * height * 4.
            CapacityError: If the ICC profile needs more than 255 markers.
            CollaboratorError: If encoding fails.
        """
        expect_buffer_size(pixels, width, height, CMYK_COMPONENTS)
        extra = app2_segments(chunk(icc_profile)) if icc_profile else b""

        # Pillow assigns table i to component i
        qtables = [list(tables.cmy)] * 3 + [list(tables.k)]

        output = io.BytesIO()
        try:
            image = Image.frombytes("CMYK", (width, height), pixels)
            image.save(
                output,
                format="JPEG",
                qtables=qtables,
                optimize=self.optimize,
                extra=extra,
            )
        except _PIL_ERRORS as e:
            raise CollaboratorError(f"JPEG encode failed: {e}") from e

        encoded = output.getvalue()
        logger.debug("Encoded %dx%d CMYK JPEG: %d bytes", width, height, len(encoded))
        return encoded

    def inspect(self, data: bytes) -> ImageInfo:
        """
        Read JPEG header information without decoding pixel data.

        Raises:
            CollaboratorError: If the data is not a JPEG.
            ProtocolError: If the ICC_PROFILE markers are inconsistent.
        """
        try:
            with _open_jpeg(data) as image:
                num_components = len(getattr(image, "layer", None) or image.getbands())
                color_space = _jpeg_color_space(
                    num_components, image.info.get("adobe_transform")
                )
                embedded_icc = reassemble(_app2_payloads(image))
                width, height = image.size
        except _PIL_ERRORS as e:
            raise CollaboratorError(f"JPEG header read failed: {e}") from e

        return ImageInfo(
            width=width,
            height=height,
            num_components=num_components,
            color_space=color_space,
            embedded_icc=embedded_icc,
        )
