# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Custom exceptions for rgbtocmyk."""

from enum import Enum


class ConversionStage(Enum):
    """Pipeline stage at which an error occurred."""

    DECODE = "decode"
    PROFILE_RESOLUTION = "profile-resolution"
    TRANSFORM = "transform"
    ENCODE = "encode"


class RGBToCMYKError(Exception):
    """Base exception for all rgbtocmyk errors.

    Attributes:
        stage: Conversion stage the error was raised in, or None when the
            error did not come from a running conversion.
    """

    def __init__(self, message: str = "", *, stage: ConversionStage | None = None):
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        message = super().__str__()
        if self.stage is not None:
            return f"{self.stage.value}: {message}"
        return message


# -- ICC header validation --


class ValidationError(RGBToCMYKError):
    """Malformed ICC profile."""


class TooShortError(ValidationError):
    """ICC profile is shorter than the 128-byte header."""


class TooLargeError(ValidationError):
    """ICC profile exceeds the accepted size limit."""


class InvalidSignatureError(ValidationError):
    """ICC profile does not carry the 'acsp' signature."""


class EmptyProfileError(ValidationError):
    """ICC profile has no data."""


# -- ICC marker reassembly --


class ProtocolError(RGBToCMYKError):
    """ICC_PROFILE marker sequence is inconsistent."""


class SequenceError(ProtocolError):
    """Marker sequence number is zero or larger than the chunk count."""


class InconsistentCountError(ProtocolError):
    """Markers disagree on the total chunk count."""


class MissingChunksError(ProtocolError):
    """Fewer or more chunks found than the declared count."""


class CapacityError(RGBToCMYKError):
    """ICC profile needs more than 255 marker chunks."""


class UsageError(RGBToCMYKError):
    """Invalid arguments, e.g. a pixel buffer that does not match its size."""


class CollaboratorError(RGBToCMYKError):
    """Failure reported by the image codec or the color transform engine."""
