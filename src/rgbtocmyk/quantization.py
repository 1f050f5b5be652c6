# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Channel-aware JPEG quantization tables for CMYK output.

Cyan, magenta and yellow tolerate coarser quantization than the key
(black) channel, which carries most edge and text detail.  The CMY table
is therefore scaled at a lower quality than the K table.
"""

import logging
from collections.abc import Sequence
from typing import NamedTuple

import numpy as np

from .exceptions import UsageError

logger = logging.getLogger(__name__)

QuantizationTable = tuple[int, ...]

# Standard JPEG luminance quantization table (ITU-T T.81, Annex K, Table K.1),
# natural (row-major) order.
STD_LUMINANCE_QUANT_TABLE: QuantizationTable = (
    16, 11, 10, 16, 24, 40, 51, 61,
    12, 12, 14, 19, 26, 58, 60, 55,
    14, 13, 16, 24, 40, 57, 69, 56,
    14, 17, 22, 29, 51, 87, 80, 62,
    18, 22, 37, 56, 68, 109, 103, 77,
    24, 35, 55, 64, 81, 104, 113, 92,
    49, 64, 78, 87, 103, 121, 120, 101,
    72, 92, 95, 98, 112, 100, 103, 99,
)  # fmt: skip

TABLE_SIZE = 64


class QuantizationTables(NamedTuple):
    """Quantization tables for the CMY components and the K component."""

    cmy: QuantizationTable
    k: QuantizationTable


def _scale_factor(quality: int) -> int:
    # IJG quality scaling: 5000/q below 50, 200 - 2q from 50 upwards
    if quality < 50:
        return 5000 // quality
    return 200 - 2 * quality


def scale_table(base: Sequence[int], quality: int) -> QuantizationTable:
    """
    Scale a base quantization table by a quality factor.

    Args:
        base: 64 base coefficients.
        quality: JPEG quality, clamped to [1, 100].

    Returns:
        64 coefficients, each clamped to [1, 255].

    Raises:
        UsageError: If base does not have 64 entries.
    """
    if len(base) != TABLE_SIZE:
        raise UsageError(
            f"Quantization table must have {TABLE_SIZE} entries, got {len(base)}"
        )

    quality = min(max(quality, 1), 100)
    scaled = (np.asarray(base, dtype=np.int64) * _scale_factor(quality) + 50) // 100
    return tuple(int(v) for v in np.clip(scaled, 1, 255))


def generate_tables(quality: int, cmy_reduction: int) -> QuantizationTables:
    """
    Derive the CMY and K quantization tables.

    The CMY table is scaled at ``quality - cmy_reduction`` (at least 1),
    the K table at ``quality``.
    """
    cmy_quality = max(1, quality - cmy_reduction)
    logger.debug(
        "Quantization tables: CMY at quality %d, K at quality %d",
        cmy_quality,
        quality,
    )
    return QuantizationTables(
        cmy=scale_table(STD_LUMINANCE_QUANT_TABLE, cmy_quality),
        k=scale_table(STD_LUMINANCE_QUANT_TABLE, quality),
    )
