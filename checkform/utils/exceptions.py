"""Custom exception classes."""

from __future__ import annotations


class AppException(Exception):
    """Base application exception.

    All custom exceptions derive from this class.

    Attributes:
        message: Error message
        code: Error code
    """

    def __init__(self, message: str, code: str = "UNKNOWN") -> None:
        """Initialize the exception.

        Args:
            message: Error message
            code: Error code
        """
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return the string form of the exception."""
        return f"[{self.code}] {self.message}"


# ===================
# Configuration
# ===================
class ConfigError(AppException):
    """Configuration error."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CONFIG_ERROR")


# ===================
# Editing validation
# ===================
class EditValidationError(AppException):
    """An edit was rejected; the document is left unchanged."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR") -> None:
        super().__init__(message, code)


class InsufficientSelectionError(EditValidationError):
    """Alignment needs at least two selected sections."""

    def __init__(self, selected: int, required: int = 2) -> None:
        self.selected = selected
        self.required = required
        super().__init__(
            f"Select at least {required} sections to align (selected: {selected})",
            "INSUFFICIENT_SELECTION",
        )


class SectionLockedError(EditValidationError):
    """Geometry edit attempted on a locked section."""

    def __init__(self, section_id: str) -> None:
        self.section_id = section_id
        super().__init__(f"Section '{section_id}' is locked", "SECTION_LOCKED")


class StructuralSectionError(EditValidationError):
    """Delete attempted on a built-in section type."""

    def __init__(self, section_id: str, section_type: str) -> None:
        self.section_id = section_id
        self.section_type = section_type
        super().__init__(
            f"Section '{section_id}' ({section_type}) cannot be deleted, only hidden",
            "STRUCTURAL_SECTION",
        )


class SectionNotFoundError(EditValidationError):
    """Referenced section id does not exist in the document."""

    def __init__(self, section_id: str) -> None:
        self.section_id = section_id
        super().__init__(f"Section not found: {section_id}", "SECTION_NOT_FOUND")


class PageRangeError(EditValidationError):
    """Page number outside the document's page range."""

    def __init__(self, page: int, page_count: int) -> None:
        self.page = page
        self.page_count = page_count
        super().__init__(
            f"Page {page} is outside 1..{page_count}",
            "PAGE_RANGE",
        )


# ===================
# Persistence
# ===================
class PersistenceError(AppException):
    """Template store operation failed."""

    def __init__(self, message: str, code: str = "PERSISTENCE_ERROR") -> None:
        super().__init__(message, code)


class TemplateNotFoundError(PersistenceError):
    """Template does not exist in the store."""

    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"Template not found: {template_id}", "TEMPLATE_NOT_FOUND")


class TemplateSaveError(PersistenceError):
    """Template could not be written."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "TEMPLATE_SAVE_ERROR")


class VersionNotFoundError(PersistenceError):
    """Template version does not exist."""

    def __init__(self, template_id: str, version_id: int) -> None:
        self.template_id = template_id
        self.version_id = version_id
        super().__init__(
            f"Version {version_id} of template {template_id} not found",
            "VERSION_NOT_FOUND",
        )


class DatabaseError(PersistenceError):
    """Version database error."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "DATABASE_ERROR")


# ===================
# Import
# ===================
class TemplateImportError(AppException):
    """Imported template data is malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "TEMPLATE_IMPORT_ERROR")


# ===================
# Assets
# ===================
class AssetError(AppException):
    """Asset upload error."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "ASSET_ERROR")


class AssetNotFoundError(AssetError):
    """Asset file not found."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}")


class UnsupportedImageFormatError(AssetError):
    """Unsupported image format."""

    def __init__(self, format: str) -> None:
        super().__init__(f"Unsupported image format: {format}")


class ImageTooLargeError(AssetError):
    """Image file too large."""

    def __init__(self, size: int, max_size: int) -> None:
        size_mb = size / (1024 * 1024)
        max_mb = max_size / (1024 * 1024)
        super().__init__(f"Image too large ({size_mb:.1f}MB), maximum is {max_mb:.1f}MB")


class ImageCorruptedError(AssetError):
    """Image file corrupted or unreadable."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Image is corrupted or unreadable: {path}")
