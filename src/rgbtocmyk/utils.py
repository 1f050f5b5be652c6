# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Utility functions for RGB to CMYK conversion."""

import logging
import sys
from typing import TextIO

from .exceptions import UsageError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

# Defaults of the conversion options
DEFAULT_QUALITY = 85
DEFAULT_CMY_REDUCTION = 15

MIN_QUALITY = 1
MAX_QUALITY = 100


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Route rgbtocmyk log records to a stream.

    Conversion progress is logged at DEBUG, the per-image summary at
    INFO and discarded embedded profiles at WARNING.

    Args:
        verbose: Include per-stage DEBUG records.
        quiet: Only report failed conversions (ERROR).  Wins over verbose.
        stream: Destination of the records, stderr by default.

    Returns:
        The ``rgbtocmyk`` package logger.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    package_logger = logging.getLogger("rgbtocmyk")
    package_logger.setLevel(level)

    # Reconfiguring replaces the previous handler
    package_logger.handlers.clear()
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)

    logger.debug("Logging configured with level: %s", logging.getLevelName(level))
    return package_logger


def validate_quality(quality: int) -> int:
    """Validates a JPEG quality setting.

    Args:
        quality: Quality value to validate.

    Returns:
        The quality value.

    Raises:
        UsageError: If the quality is not an integer in [1, 100].
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise UsageError(f"Quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise UsageError(
            f"Quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}"
        )
    return quality


def validate_cmy_reduction(reduction: int) -> int:
    """Validates the CMY quality reduction.

    Raises:
        UsageError: If the reduction is not a non-negative integer.
    """
    if isinstance(reduction, bool) or not isinstance(reduction, int):
        raise UsageError(f"CMY reduction must be an integer, got {reduction!r}")
    if reduction < 0:
        raise UsageError(f"CMY reduction must not be negative, got {reduction}")
    return reduction


def expect_buffer_size(buffer: bytes, width: int, height: int, components: int) -> None:
    """Checks that a pixel buffer matches its declared dimensions.

    Raises:
        UsageError: If the dimensions are not positive or the buffer length
            is not width * height * components.
    """
    if width <= 0 or height <= 0:
        raise UsageError(f"Invalid image dimensions: {width}x{height}")
    expected = width * height * components
    if len(buffer) != expected:
        raise UsageError(
            f"Expected {expected} bytes for {width}x{height}x{components}, "
            f"got {len(buffer)}"
        )
