"""Template document data model.

The aggregate root of the editor: page settings, metadata and every section
on every page.

Features:
    - Named and custom page sizes with orientation
    - Multi-page section management with page renumbering
    - Default section set for new templates
    - camelCase JSON export/import
    - Version snapshots
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from pydantic import Field, ValidationError, field_validator, model_validator

from checkform.models.section import CamelModel, Section, SectionType
from checkform.utils.constants import DEFAULT_PAGE_MARGINS, PAGE_SIZES
from checkform.utils.exceptions import (
    EditValidationError,
    PageRangeError,
    SectionNotFoundError,
    TemplateImportError,
)


# ===================
# Enums
# ===================


class PageSize(str, Enum):
    """Paper size."""

    A4 = "A4"
    LETTER = "Letter"
    A5 = "A5"
    CUSTOM = "custom"


class PageOrientation(str, Enum):
    """Paper orientation."""

    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


# ===================
# Default sections
# ===================


def create_default_sections() -> list[Section]:
    """Build the canonical section set of a new damage-check template.

    Returns:
        Header, contract info, vehicle data, checklist, diagram, remarks and
        signatures sections, all on page 1
    """
    layout = [
        ("header", SectionType.HEADER, 15, 15, 565, 40),
        ("contractInfo", SectionType.CONTRACT_INFO, 15, 65, 565, 60),
        ("vehicleData", SectionType.VEHICLE_DATA, 15, 135, 565, 80),
        ("checklist", SectionType.CHECKLIST, 15, 225, 565, 340),
        ("diagram", SectionType.DIAGRAM, 15, 575, 565, 120),
        ("remarks", SectionType.REMARKS, 15, 705, 565, 60),
        ("signatures", SectionType.SIGNATURES, 15, 775, 565, 52),
    ]
    return [
        Section.create(
            section_type,
            x=x,
            y=y,
            width=width,
            height=height,
            page=1,
            section_id=section_id,
        )
        for section_id, section_type, x, y, width, height in layout
    ]


# ===================
# Template document
# ===================


class TemplateDocument(CamelModel):
    """Damage-check PDF template.

    Sections are kept in document order, which is also the paint order:
    later sections draw over earlier ones on the same page.

    Attributes:
        id: Store id, None until first saved
        name: Template name
        is_default: Default template used for new damage checks
        sections: All sections across all pages
        page_margins: Page margin (points)
        page_orientation: Portrait or landscape
        page_size: Paper size
        custom_page_width: Page width when page_size is custom
        custom_page_height: Page height when page_size is custom
        page_count: Number of pages

    Example:
        >>> doc = TemplateDocument.create("Standard check")
        >>> doc.page_width, doc.page_height
        (595, 842)
    """

    id: Optional[str] = Field(default=None, description="Store id")
    name: str = Field(default="Untitled template", min_length=1, max_length=200)
    is_default: bool = Field(default=False, description="Default template")
    sections: list[Section] = Field(default_factory=list)

    # Page settings
    page_margins: float = Field(default=DEFAULT_PAGE_MARGINS, ge=0, le=200)
    page_orientation: PageOrientation = PageOrientation.PORTRAIT
    page_size: PageSize = PageSize.A4
    custom_page_width: Optional[float] = Field(default=None, gt=0, le=5000)
    custom_page_height: Optional[float] = Field(default=None, gt=0, le=5000)
    page_count: int = Field(default=1, ge=1)

    # Metadata
    tags: list[str] = Field(default_factory=list)
    category: Optional[str] = None
    theme_id: Optional[str] = None
    background_image: Optional[str] = None
    usage_count: int = Field(default=0, ge=0)
    last_used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, v: list[str]) -> list[str]:
        seen: list[str] = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

    @model_validator(mode="after")
    def _check_consistency(self) -> "TemplateDocument":
        if self.page_size == PageSize.CUSTOM and (
            self.custom_page_width is None or self.custom_page_height is None
        ):
            raise ValueError("Custom page size requires customPageWidth and customPageHeight")

        ids: set[str] = set()
        for section in self.sections:
            if section.id in ids:
                raise ValueError(f"Duplicate section id: {section.id}")
            ids.add(section.id)
            if section.page > self.page_count:
                raise ValueError(
                    f"Section '{section.id}' is on page {section.page} "
                    f"but the template has {self.page_count} page(s)"
                )
        return self

    # ------------------
    # Page geometry
    # ------------------

    @property
    def page_width(self) -> float:
        """Page width in points, orientation applied."""
        return self.page_dimensions()[0]

    @property
    def page_height(self) -> float:
        """Page height in points, orientation applied."""
        return self.page_dimensions()[1]

    def page_dimensions(self) -> tuple[float, float]:
        """Return (width, height) of a page.

        Custom sizes are used as entered; named sizes swap their sides in
        landscape orientation.
        """
        if self.page_size == PageSize.CUSTOM:
            return (self.custom_page_width, self.custom_page_height)

        width, height = PAGE_SIZES[self.page_size.value]
        if self.page_orientation == PageOrientation.LANDSCAPE:
            return (height, width)
        return (width, height)

    @property
    def section_count(self) -> int:
        return len(self.sections)

    # ------------------
    # Sections
    # ------------------

    def get_section(self, section_id: str) -> Optional[Section]:
        """Find a section by id.

        Args:
            section_id: Section id

        Returns:
            Section, or None when absent
        """
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def require_section(self, section_id: str) -> Section:
        """Find a section by id, raising SectionNotFoundError when absent."""
        section = self.get_section(section_id)
        if section is None:
            raise SectionNotFoundError(section_id)
        return section

    def sections_on_page(self, page: int) -> list[Section]:
        """Sections of one page in paint order."""
        return [s for s in self.sections if s.page == page]

    def add_section(self, section: Section) -> None:
        """Append a section.

        Args:
            section: New section

        Raises:
            EditValidationError: Id already in use
            PageRangeError: Section page outside the document
        """
        if self.get_section(section.id) is not None:
            raise EditValidationError(f"Section id already exists: {section.id}", "DUPLICATE_SECTION")
        self._check_page(section.page)
        self.sections.append(section)

    def replace_sections(self, sections: Iterable[Section]) -> None:
        """Replace the full section list (history replay, version restore)."""
        new_sections = list(sections)
        ids = [s.id for s in new_sections]
        if len(ids) != len(set(ids)):
            raise EditValidationError("Duplicate section ids in replacement", "DUPLICATE_SECTION")
        for section in new_sections:
            self._check_page(section.page)
        self.sections = new_sections

    def update_section(self, section: Section) -> None:
        """Replace the section with the same id, keeping its position in the list.

        Raises:
            SectionNotFoundError: No section with this id
            PageRangeError: Section page outside the document
        """
        self._check_page(section.page)
        for i, existing in enumerate(self.sections):
            if existing.id == section.id:
                self.sections[i] = section
                return
        raise SectionNotFoundError(section.id)

    def remove_section(self, section_id: str) -> Section:
        """Remove a section.

        Returns:
            The removed section

        Raises:
            SectionNotFoundError: No section with this id
        """
        for i, section in enumerate(self.sections):
            if section.id == section_id:
                return self.sections.pop(i)
        raise SectionNotFoundError(section_id)

    def renderable_sections(self, page: int, context: Mapping[str, Any]) -> list[Section]:
        """Sections a renderer should draw on a page for a generation context.

        Hidden sections and sections whose condition fails are skipped.
        """
        return [
            s
            for s in self.sections_on_page(page)
            if s.visible and (s.condition is None or s.condition.evaluate(context))
        ]

    # ------------------
    # Pages
    # ------------------

    def add_page(self) -> int:
        """Append an empty page.

        Returns:
            Number of the new page
        """
        self.page_count += 1
        return self.page_count

    def remove_page(self, page: int) -> list[Section]:
        """Remove a page and its sections.

        Sections on later pages move up by one page.

        Args:
            page: Page number to remove

        Returns:
            Sections that were dropped

        Raises:
            EditValidationError: Only one page left
            PageRangeError: Page outside the document
        """
        if self.page_count <= 1:
            raise EditValidationError("A template needs at least one page", "LAST_PAGE")
        self._check_page(page)

        dropped = [s for s in self.sections if s.page == page]
        kept: list[Section] = []
        for section in self.sections:
            if section.page == page:
                continue
            if section.page > page:
                section = section.model_copy(update={"page": section.page - 1}, deep=True)
            kept.append(section)

        self.sections = kept
        self.page_count -= 1
        return dropped

    def _check_page(self, page: int) -> None:
        if not 1 <= page <= self.page_count:
            raise PageRangeError(page, self.page_count)

    # ------------------
    # Tags
    # ------------------

    def add_tag(self, tag: str) -> bool:
        """Add a tag, returning False when empty or already present."""
        tag = tag.strip()
        if not tag or tag in self.tags:
            return False
        self.tags.append(tag)
        return True

    def remove_tag(self, tag: str) -> bool:
        if tag not in self.tags:
            return False
        self.tags.remove(tag)
        return True

    # ------------------
    # Settings snapshot
    # ------------------

    def page_settings(self) -> dict[str, Any]:
        """Page settings stored alongside a version snapshot."""
        settings: dict[str, Any] = {
            "pageMargins": self.page_margins,
            "pageOrientation": self.page_orientation.value,
            "pageSize": self.page_size.value,
            "pageCount": self.page_count,
        }
        if self.page_size == PageSize.CUSTOM:
            settings["customPageWidth"] = self.custom_page_width
            settings["customPageHeight"] = self.custom_page_height
        return settings

    def apply_page_settings(self, settings: Mapping[str, Any]) -> None:
        """Apply a page settings dict produced by ``page_settings``.

        The result is validated as a whole; on failure nothing changes.

        Raises:
            pydantic.ValidationError: Settings are inconsistent
        """
        data = self.model_dump(by_alias=True)
        data.update(settings)
        self._assign_page_settings(TemplateDocument.model_validate(data))

    def restore_snapshot(self, sections: Iterable[Section], settings: Mapping[str, Any]) -> None:
        """Replace sections and page settings together (history replay).

        Both are validated as one state, so a snapshot may lower the page
        count below the pages of the current sections. On failure nothing changes.

        Raises:
            pydantic.ValidationError: The combined state is inconsistent
        """
        data = self.model_dump(by_alias=True, exclude={"sections"})
        data.update(settings)
        data["sections"] = list(sections)
        validated = TemplateDocument.model_validate(data)
        self._assign_page_settings(validated)
        self.sections = list(validated.sections)

    def _assign_page_settings(self, validated: "TemplateDocument") -> None:
        self.page_margins = validated.page_margins
        self.page_orientation = validated.page_orientation
        self.page_size = validated.page_size
        self.custom_page_width = validated.custom_page_width
        self.custom_page_height = validated.custom_page_height
        self.page_count = validated.page_count

    # ------------------
    # Construction and serialization
    # ------------------

    @classmethod
    def create(cls, name: str, is_default: bool = False) -> "TemplateDocument":
        """Create a new A4 portrait template seeded with the default sections.

        Args:
            name: Template name
            is_default: Mark as the default template

        Returns:
            Unsaved TemplateDocument
        """
        return cls(
            name=name,
            is_default=is_default,
            sections=create_default_sections(),
            page_margins=DEFAULT_PAGE_MARGINS,
            page_orientation=PageOrientation.PORTRAIT,
            page_size=PageSize.A4,
            page_count=1,
        )

    def copy_document(self) -> "TemplateDocument":
        """Deep copy."""
        return self.model_copy(deep=True)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to a JSON string.

        Args:
            indent: Indentation width

        Returns:
            JSON string
        """
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TemplateDocument":
        return cls.model_validate(dict(data))

    @classmethod
    def from_json(cls, json_str: str | bytes) -> "TemplateDocument":
        """Deserialize from a JSON string.

        Raises:
            TemplateImportError: Malformed JSON or invalid template data
        """
        try:
            data = json.loads(json_str)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TemplateImportError(f"Invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise TemplateImportError("Template data must be a JSON object")

        try:
            return cls.from_dict(data)
        except ValidationError as e:
            raise TemplateImportError(f"Invalid template: {e.error_count()} error(s): {e}") from e


# ===================
# Versions
# ===================


class TemplateVersion(CamelModel):
    """Named snapshot of a template's sections and page settings."""

    id: int
    template_id: str
    version: int = Field(ge=1)
    name: Optional[str] = None
    sections: list[Section] = Field(default_factory=list)
    settings: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)
    created_by: Optional[str] = None
