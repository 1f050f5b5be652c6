# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""rgbtocmyk - Convert RGB JPEG photographs to ICC-managed CMYK JPEGs."""

from importlib.metadata import PackageNotFoundError, version

from .codec import DecodedImage, ImageCodec, ImageInfo, PillowJPEGCodec
from .converter import (
    ConversionOptions,
    ImageReport,
    PipelineResult,
    ProfileOrigin,
    ResolvedProfile,
    convert_rgb_to_cmyk,
    identify,
    resolve_source_profile,
)
from .exceptions import (
    CapacityError,
    CollaboratorError,
    ConversionStage,
    EmptyProfileError,
    InconsistentCountError,
    InvalidSignatureError,
    MissingChunksError,
    ProtocolError,
    RGBToCMYKError,
    SequenceError,
    TooLargeError,
    TooShortError,
    UsageError,
    ValidationError,
)
from .quantization import QuantizationTables, generate_tables, scale_table
from .transform import ColorTransformEngine, LittleCMSEngine, RenderIntent
from .utils import setup_logging

try:
    __version__ = version("rgbtocmyk")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = [
    "__version__",
    "setup_logging",
    "convert_rgb_to_cmyk",
    "identify",
    "resolve_source_profile",
    "ConversionOptions",
    "PipelineResult",
    "ProfileOrigin",
    "ResolvedProfile",
    "ImageReport",
    "ImageCodec",
    "DecodedImage",
    "ImageInfo",
    "PillowJPEGCodec",
    "ColorTransformEngine",
    "LittleCMSEngine",
    "RenderIntent",
    "QuantizationTables",
    "generate_tables",
    "scale_table",
    "ConversionStage",
    "RGBToCMYKError",
    "ValidationError",
    "TooShortError",
    "TooLargeError",
    "InvalidSignatureError",
    "EmptyProfileError",
    "ProtocolError",
    "SequenceError",
    "InconsistentCountError",
    "MissingChunksError",
    "CapacityError",
    "UsageError",
    "CollaboratorError",
]
