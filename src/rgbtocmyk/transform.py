# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""ICC color transforms from RGB to CMYK.

``LittleCMSEngine`` builds transforms with Pillow's ImageCms bindings to
LittleCMS 2.  A transform is a scoped resource: use it as a context
manager so it is released on every exit path::

    with engine.create(src_icc, dst_icc, RenderIntent.PERCEPTUAL) as xform:
        cmyk = xform.apply(rgb, width, height)
"""

import io
import logging
from enum import IntEnum
from typing import Protocol

from PIL import Image, ImageCms

from .exceptions import CollaboratorError, UsageError
from .utils import expect_buffer_size

logger = logging.getLogger(__name__)


class RenderIntent(IntEnum):
    """ICC rendering intents (values match LittleCMS)."""

    PERCEPTUAL = 0
    RELATIVE = 1
    SATURATION = 2
    ABSOLUTE = 3

    @classmethod
    def parse(cls, value: "str | int | RenderIntent") -> "RenderIntent":
        """Convert a name ("perceptual", "relative", ...) or number to an intent.

        Raises:
            UsageError: If the value names no rendering intent.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise UsageError(f"Unknown rendering intent: {value!r}") from None
        try:
            return cls(value)
        except ValueError:
            raise UsageError(f"Unknown rendering intent: {value!r}") from None


class ColorTransformHandle(Protocol):
    """An acquired RGB to CMYK transform."""

    def apply(self, pixels: bytes, width: int, height: int) -> bytes: ...

    def close(self) -> None: ...

    def __enter__(self) -> "ColorTransformHandle": ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> None: ...


class ColorTransformEngine(Protocol):
    """Factory for color transforms."""

    def create(
        self,
        source_profile: bytes,
        destination_profile: bytes,
        intent: RenderIntent,
    ) -> ColorTransformHandle: ...

    def release(self, handle: ColorTransformHandle) -> None: ...


class ColorTransform:
    """RGB8 to CMYK8 transform backed by a LittleCMS transform."""

    def __init__(self, transform: ImageCms.ImageCmsTransform, intent: RenderIntent):
        self._transform: ImageCms.ImageCmsTransform | None = transform
        self.intent = intent

    @property
    def closed(self) -> bool:
        return self._transform is None

    def apply(self, pixels: bytes, width: int, height: int) -> bytes:
        """
        Transform an RGB8 raster into a CMYK8 raster of the same size.

        Args:
            pixels: RGB8 samples, interleaved, row-major.
            width: Raster width in pixels.
            height: Raster height in pixels.

        Returns:
            CMYK8 samples, interleaved, row-major.

        Raises:
            UsageError: If the transform was released or the buffer size
                does not match width * height * 3.
            CollaboratorError: If LittleCMS fails.
        """
        if self._transform is None:
            raise UsageError("Color transform has already been released")
        expect_buffer_size(pixels, width, height, 3)

        source = Image.frombytes("RGB", (width, height), pixels)
        try:
            result = ImageCms.applyTransform(source, self._transform)
        except ImageCms.PyCMSError as e:
            raise CollaboratorError(f"Color transform failed: {e}") from e
        return result.tobytes()

    def close(self) -> None:
        """Release the transform.  Safe to call more than once."""
        if self._transform is not None:
            self._transform = None
            logger.debug("Color transform released")

    def __enter__(self) -> "ColorTransform":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class LittleCMSEngine:
    """ColorTransformEngine backed by LittleCMS through PIL.ImageCms."""

    def create(
        self,
        source_profile: bytes,
        destination_profile: bytes,
        intent: RenderIntent,
    ) -> ColorTransform:
        """
        Build an RGB to CMYK transform.

        Raises:
            CollaboratorError: If either profile cannot be used.
        """
        intent = RenderIntent.parse(intent)
        try:
            source = ImageCms.ImageCmsProfile(io.BytesIO(source_profile))
            destination = ImageCms.ImageCmsProfile(io.BytesIO(destination_profile))
            transform = ImageCms.buildTransform(
                source,
                destination,
                "RGB",
                "CMYK",
                renderingIntent=ImageCms.Intent(int(intent)),
            )
        except (ImageCms.PyCMSError, OSError, ValueError, TypeError) as e:
            raise CollaboratorError(f"Could not create color transform: {e}") from e

        logger.debug("Color transform created (intent: %s)", intent.name.lower())
        return ColorTransform(transform, intent)

    def release(self, handle: ColorTransformHandle) -> None:
        handle.close()
