# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Bundled default RGB ICC profile."""

import functools
import logging
from importlib.resources import files

from ..exceptions import ValidationError
from ._header import validate

logger = logging.getLogger(__name__)

DEFAULT_RGB_PROFILE_NAME = "sRGB-v4.icc"


@functools.cache
def get_default_rgb_profile() -> bytes:
    """
    Load the default sRGB ICC profile from package resources.

    The result is cached so the file is read only once.

    Returns:
        Raw ICC profile bytes.

    Raises:
        ValidationError: If the profile cannot be loaded or is not an RGB
            profile.
    """
    try:
        resource_files = files("rgbtocmyk") / "resources" / "icc"
        profile_data = resource_files.joinpath(DEFAULT_RGB_PROFILE_NAME).read_bytes()
    except OSError as e:
        raise ValidationError(f"Could not load default RGB profile: {e}") from e

    header = validate(profile_data)
    if header.data_color_space != "RGB ":
        raise ValidationError(
            f"Default profile is not RGB: {header.color_space_name}"
        )

    logger.debug(
        "Default sRGB ICC profile loaded: %d bytes (v%s)",
        len(profile_data),
        header.version,
    )
    return profile_data
