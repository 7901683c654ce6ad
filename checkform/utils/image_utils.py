"""Image utility functions.

Validation of uploaded images.
"""

from __future__ import annotations

from pathlib import Path

from PIL import Image, UnidentifiedImageError

from checkform.utils.constants import MAX_IMAGE_FILE_SIZE
from checkform.utils.exceptions import (
    AssetNotFoundError,
    ImageCorruptedError,
    ImageTooLargeError,
    UnsupportedImageFormatError,
)
from checkform.utils.file_utils import get_file_extension, get_file_size, is_image_file


def validate_image_file(path: Path | str, max_size: int = MAX_IMAGE_FILE_SIZE) -> None:
    """Validate an image file.

    Args:
        path: Image path
        max_size: Largest accepted size in bytes

    Raises:
        AssetNotFoundError: File missing
        UnsupportedImageFormatError: Unsupported extension
        ImageTooLargeError: File too large
        ImageCorruptedError: Pillow cannot verify the file
    """
    path = Path(path)

    if not path.is_file():
        raise AssetNotFoundError(str(path))

    if not is_image_file(path):
        raise UnsupportedImageFormatError(get_file_extension(path) or "(none)")

    size = get_file_size(path)
    if size > max_size:
        raise ImageTooLargeError(size, max_size)

    try:
        with Image.open(path) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ImageCorruptedError(str(path)) from e
