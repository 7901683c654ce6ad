"""Asset store.

Accepts uploaded images for template backgrounds and image sections.
Files are validated with Pillow and stored under a content-hash name, so
uploading the same image twice yields the same path.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from checkform.utils.constants import ASSETS_DIR, MAX_IMAGE_FILE_SIZE
from checkform.utils.exceptions import AssetError
from checkform.utils.file_utils import copy_file, ensure_directory, file_sha256, get_file_extension
from checkform.utils.image_utils import validate_image_file
from checkform.utils.logger import setup_logger

logger = setup_logger(__name__)


class AssetStore:
    """Local image asset store.

    Example:
        >>> store = AssetStore(tmp_path)
        >>> stored = store.upload("logo.png")
        >>> stored.parent == tmp_path
        True
    """

    def __init__(
        self,
        assets_dir: Optional[Path | str] = None,
        max_size: int = MAX_IMAGE_FILE_SIZE,
    ) -> None:
        """Initialize the store.

        Args:
            assets_dir: Storage directory
            max_size: Largest accepted upload in bytes
        """
        self._assets_dir = ensure_directory(Path(assets_dir or ASSETS_DIR))
        self._max_size = max_size

    @property
    def assets_dir(self) -> Path:
        return self._assets_dir

    def upload(self, path: Path | str) -> Path:
        """Validate and store an image.

        Args:
            path: Source image

        Returns:
            Path of the stored copy

        Raises:
            AssetError: Missing, unsupported, too large or corrupted image,
                or the copy failed
        """
        source = Path(path)
        validate_image_file(source, self._max_size)

        target = self._assets_dir / f"{file_sha256(source)}{get_file_extension(source)}"
        if target.exists():
            logger.debug(f"Asset already stored: {target.name}")
            return target

        try:
            copy_file(source, target)
        except OSError as e:
            raise AssetError(f"Could not store {source.name}: {e}") from e

        logger.info(f"Asset uploaded: {source.name} -> {target.name}")
        return target

    def contains(self, stored_path: Path | str) -> bool:
        """Whether a path points at an asset held by this store."""
        stored = Path(stored_path)
        return stored.parent == self._assets_dir and stored.is_file()
