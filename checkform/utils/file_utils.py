"""File utility functions.

File and directory helpers shared by the template and asset stores.
"""

from __future__ import annotations

import hashlib
import os
import shutil
import tempfile
from pathlib import Path

from checkform.utils.constants import SUPPORTED_IMAGE_FORMATS
from checkform.utils.logger import setup_logger

logger = setup_logger(__name__)


def ensure_directory(path: Path) -> Path:
    """Ensure a directory exists.

    Args:
        path: Directory path

    Returns:
        The directory path
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_file_extension(path: Path | str) -> str:
    """Lower-case extension including the dot."""
    return Path(path).suffix.lower()


def is_image_file(path: Path | str) -> bool:
    """Whether the extension is a supported image format."""
    return get_file_extension(path) in SUPPORTED_IMAGE_FORMATS


def get_file_size(path: Path | str) -> int:
    """File size in bytes."""
    return Path(path).stat().st_size


def file_sha256(path: Path | str, chunk_size: int = 65536) -> str:
    """Hex SHA-256 digest of a file's content.

    Args:
        path: File path
        chunk_size: Read block size

    Returns:
        Hex digest
    """
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def copy_file(src: Path | str, dst: Path | str) -> Path:
    """Copy a file, creating the target directory.

    Args:
        src: Source path
        dst: Target path

    Returns:
        Target path
    """
    src = Path(src)
    dst = Path(dst)
    ensure_directory(dst.parent)
    shutil.copy2(src, dst)
    return dst


def atomic_write_text(path: Path | str, text: str) -> Path:
    """Write text through a temp file in the same directory, then replace.

    Readers never see a half-written file.

    Args:
        path: Target path
        text: Content, written as UTF-8

    Returns:
        Target path
    """
    path = Path(path)
    ensure_directory(path.parent)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path

