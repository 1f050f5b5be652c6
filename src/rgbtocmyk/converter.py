# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Core logic for RGB JPEG to CMYK JPEG conversion."""

# Standard Library
import contextlib
import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum

# Local
from .codec import ImageCodec, ImageInfo, PillowJPEGCodec
from .exceptions import (
    CollaboratorError,
    ConversionStage,
    RGBToCMYKError,
    UsageError,
    ValidationError,
)
from .icc import ICCProfileHeader, get_default_rgb_profile, validate
from .quantization import generate_tables
from .transform import (
    ColorTransformEngine,
    ColorTransformHandle,
    LittleCMSEngine,
    RenderIntent,
)
from .utils import (
    DEFAULT_CMY_REDUCTION,
    DEFAULT_QUALITY,
    validate_cmy_reduction,
    validate_quality,
)

logger = logging.getLogger(__name__)

# Data color space signature of grayscale ICC profiles
_GRAY_SIGNATURE = "GRAY"


class ProfileOrigin(Enum):
    """Where the source profile of a conversion came from."""

    OVERRIDE = "override"
    EMBEDDED = "embedded"
    DEFAULT = "default"


@dataclass(frozen=True)
class ConversionOptions:
    """Options for a single conversion.

    Attributes:
        destination_profile: CMYK ICC profile of the output device.
            Also embedded in the output JPEG.
        source_profile_override: RGB ICC profile to use instead of the
            profile embedded in the source image.
        quality: JPEG quality (1-100) of the K channel.
        cmy_quality_reduction: Quality reduction of the C, M and Y
            channels relative to K.
        render_intent: Rendering intent of the color transform.  Names
            such as ``"relative"`` are accepted and converted.
    """

    destination_profile: bytes
    source_profile_override: bytes | None = None
    quality: int = DEFAULT_QUALITY
    cmy_quality_reduction: int = DEFAULT_CMY_REDUCTION
    render_intent: RenderIntent = RenderIntent.PERCEPTUAL

    def __post_init__(self) -> None:
        if not self.destination_profile:
            raise UsageError("A destination CMYK ICC profile is required")
        override = self.source_profile_override
        if override is not None and not override:
            raise UsageError("Source profile override is empty")
        validate_quality(self.quality)
        validate_cmy_reduction(self.cmy_quality_reduction)
        object.__setattr__(
            self, "render_intent", RenderIntent.parse(self.render_intent)
        )


@dataclass(frozen=True)
class PipelineResult:
    """Result of a conversion.

    Attributes:
        encoded_bytes: The CMYK JPEG.
        source_width: Width of the source image in pixels.
        source_height: Height of the source image in pixels.
        source_profile_origin: Which rule selected the source profile.
        processing_time: Processing time in seconds.
    """

    encoded_bytes: bytes
    source_width: int
    source_height: int
    source_profile_origin: ProfileOrigin = ProfileOrigin.DEFAULT
    processing_time: float = field(default=0.0, compare=False)


@dataclass(frozen=True)
class ResolvedProfile:
    """Source ICC profile chosen for a conversion."""

    profile: bytes
    origin: ProfileOrigin


# -- Source profile resolution --
#
# Each rule returns a ResolvedProfile or None; the first match wins.

_Rule = Callable[[bytes | None, bytes | None, str | None], ResolvedProfile | None]


def _use_override(
    override: bytes | None, embedded: bytes | None, embedded_color_space: str | None
) -> ResolvedProfile | None:
    if override is not None:
        return ResolvedProfile(override, ProfileOrigin.OVERRIDE)
    return None


def _use_embedded(
    override: bytes | None, embedded: bytes | None, embedded_color_space: str | None
) -> ResolvedProfile | None:
    # The codec expands grayscale samples to RGB, which a GRAY profile
    # cannot describe.
    if embedded is not None and embedded_color_space != _GRAY_SIGNATURE:
        return ResolvedProfile(embedded, ProfileOrigin.EMBEDDED)
    return None


_RESOLUTION_RULES: tuple[_Rule, ...] = (_use_override, _use_embedded)


def resolve_source_profile(
    override: bytes | None,
    embedded_profile: bytes | None,
    embedded_color_space: str | None,
) -> ResolvedProfile:
    """
    Decide which ICC profile describes the decoded RGB raster.

    Rules, first match wins:

    1. The override, if given.
    2. The embedded profile, unless its data color space is GRAY.
    3. The bundled default sRGB profile.

    Args:
        override: Caller-supplied source profile.
        embedded_profile: Profile embedded in the source image.
        embedded_color_space: Data color space signature of the embedded
            profile (e.g. ``"GRAY"``), or None if unknown.

    Returns:
        The resolved profile and the rule that selected it.
    """
    for rule in _RESOLUTION_RULES:
        resolved = rule(override, embedded_profile, embedded_color_space)
        if resolved is not None:
            return resolved
    return ResolvedProfile(get_default_rgb_profile(), ProfileOrigin.DEFAULT)


def _embedded_color_space(profile: bytes | None) -> str | None:
    """Return the data color space of an embedded profile, if readable."""
    if profile is None:
        return None
    try:
        return validate(profile).data_color_space
    except ValidationError as e:
        logger.warning(
            "Embedded ICC profile has an invalid header (%s), "
            "passing it to the color engine unchanged",
            e,
        )
        return None


def _resolve_for_conversion(
    options: ConversionOptions, embedded_profile: bytes | None
) -> ResolvedProfile:
    if options.source_profile_override is not None:
        # The embedded profile is not inspected at all
        return resolve_source_profile(options.source_profile_override, None, None)

    color_space = _embedded_color_space(embedded_profile)
    resolved = resolve_source_profile(None, embedded_profile, color_space)
    if embedded_profile is not None and resolved.origin is ProfileOrigin.DEFAULT:
        logger.warning("Discarding embedded grayscale ICC profile, using default sRGB")
    return resolved


@contextlib.contextmanager
def _stage(stage: ConversionStage) -> Iterator[None]:
    """Tag errors raised inside the block with the conversion stage.

    Errors that do not come from rgbtocmyk are wrapped in
    CollaboratorError.
    """
    try:
        yield
    except RGBToCMYKError as e:
        if e.stage is None:
            e.stage = stage
        raise
    except Exception as e:
        raise CollaboratorError(f"{type(e).__name__}: {e}", stage=stage) from e


@contextlib.contextmanager
def _acquire_transform(
    engine: ColorTransformEngine,
    source_profile: bytes,
    destination_profile: bytes,
    intent: RenderIntent,
) -> Iterator[ColorTransformHandle]:
    """Create a transform and hand it back to the engine on exit."""
    transform = engine.create(source_profile, destination_profile, intent)
    try:
        yield transform
    finally:
        engine.release(transform)


def convert_rgb_to_cmyk(
    jpeg_data: bytes,
    options: ConversionOptions,
    *,
    codec: ImageCodec | None = None,
    engine: ColorTransformEngine | None = None,
) -> PipelineResult:
    """Converts an RGB JPEG to a CMYK JPEG.

    Steps: decode, resolve the source profile, transform RGB to CMYK,
    derive the quantization tables and encode with the destination
    profile embedded.

    Args:
        jpeg_data: Source JPEG bytes.
        options: Conversion options.
        codec: Image codec, defaults to PillowJPEGCodec.
        engine: Color transform engine, defaults to LittleCMSEngine.

    Returns:
        PipelineResult with the encoded CMYK JPEG.

    Raises:
        RGBToCMYKError: Any failure; ``stage`` names the pipeline stage.
    """
    codec = codec if codec is not None else PillowJPEGCodec()
    engine = engine if engine is not None else LittleCMSEngine()
    start_time = time.perf_counter()

    logger.info(
        "Starting conversion: %d bytes, quality %d (CMY -%d), intent %s",
        len(jpeg_data),
        options.quality,
        options.cmy_quality_reduction,
        options.render_intent.name.lower(),
    )

    try:
        with _stage(ConversionStage.DECODE):
            decoded = codec.decode(jpeg_data)
        logger.debug("Decoded source: %dx%d", decoded.width, decoded.height)

        with _stage(ConversionStage.PROFILE_RESOLUTION):
            resolved = _resolve_for_conversion(options, decoded.embedded_icc)
        logger.debug(
            "Source profile: %s (%d bytes)",
            resolved.origin.value,
            len(resolved.profile),
        )

        with _stage(ConversionStage.TRANSFORM):
            with _acquire_transform(
                engine,
                resolved.profile,
                options.destination_profile,
                options.render_intent,
            ) as transform:
                cmyk_pixels = transform.apply(
                    decoded.pixels, decoded.width, decoded.height
                )

        with _stage(ConversionStage.ENCODE):
            tables = generate_tables(options.quality, options.cmy_quality_reduction)
            encoded = codec.encode(
                cmyk_pixels,
                decoded.width,
                decoded.height,
                tables,
                options.destination_profile,
            )
    except RGBToCMYKError as e:
        logger.error("Conversion failed: %s", e)
        raise

    processing_time = time.perf_counter() - start_time
    logger.info(
        "Conversion successful: %dx%d, %d bytes (%.2f seconds)",
        decoded.width,
        decoded.height,
        len(encoded),
        processing_time,
    )
    return PipelineResult(
        encoded_bytes=encoded,
        source_width=decoded.width,
        source_height=decoded.height,
        source_profile_origin=resolved.origin,
        processing_time=processing_time,
    )


# -- Identify --


@dataclass(frozen=True)
class ImageReport:
    """Description of a JPEG and its embedded ICC profile.

    Attributes:
        info: Header information from the codec.
        file_size: Size of the JPEG in bytes.
        profile_header: Parsed header of the embedded profile, if valid.
        profile_error: Validation error of the embedded profile, if any.
    """

    info: ImageInfo
    file_size: int
    profile_header: ICCProfileHeader | None = None
    profile_error: str | None = None

    def describe(self) -> list[str]:
        """Render the report as human-readable lines."""
        info = self.info
        lines = [
            f"Dimensions: {info.width} x {info.height}",
            f"Components: {info.num_components}",
            f"Color space: {info.color_space}",
            f"File size:  {self.file_size} bytes "
            f"({self.file_size / (1024 * 1024):.1f} MB)",
        ]
        icc = info.embedded_icc
        if icc is None:
            lines.append("ICC profile: none")
        elif self.profile_header is None:
            lines.append(
                f"ICC profile: present ({len(icc)} bytes) "
                f"but invalid: {self.profile_error}"
            )
        else:
            header = self.profile_header
            lines += [
                f"ICC profile: {len(icc)} bytes",
                f"  Version:     {header.version}",
                f"  Color space: {header.color_space_name}",
                f"  PCS:         {header.connection_space_name}",
                f"  Class:       {header.device_class_name}",
            ]
        return lines


def identify(jpeg_data: bytes, *, codec: ImageCodec | None = None) -> ImageReport:
    """Inspects a JPEG and its embedded ICC profile without decoding pixels.

    Raises:
        CollaboratorError: If the data cannot be read as a JPEG.
        ProtocolError: If the ICC_PROFILE markers are inconsistent.
    """
    codec = codec if codec is not None else PillowJPEGCodec()
    info = codec.inspect(jpeg_data)

    header = None
    error = None
    if info.embedded_icc is not None:
        try:
            header = validate(info.embedded_icc)
        except ValidationError as e:
            error = str(e)

    return ImageReport(
        info=info,
        file_size=len(jpeg_data),
        profile_header=header,
        profile_error=error,
    )
