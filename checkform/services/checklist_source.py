"""Checklist content source.

Read-only catalogue of inspection-point templates that checklist sections
bind to by id or clone into their own editable item list.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator, Optional

from pydantic import Field, ValidationError

from checkform.models.section import CamelModel, Section, SectionType
from checkform.utils.exceptions import ConfigError
from checkform.utils.logger import setup_logger

logger = setup_logger(__name__)

# Damage columns used when no inspection point declares its own
DEFAULT_DAMAGE_TYPES = ["Kapot", "Gat", "Kras", "Deuk", "Ster"]


class InspectionPoint(CamelModel):
    """One point on a vehicle to inspect."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    category: str = "General"
    damage_types: list[str] = Field(default_factory=list)
    required: bool = False

    def to_checklist_item(self) -> dict[str, Any]:
        """Editable item stored in a checklist section's settings."""
        return {
            "id": self.id,
            "name": self.name,
            "text": self.name,
            "category": self.category,
            "damageTypes": list(self.damage_types),
            "hasCheckbox": True,
            "required": self.required,
        }


class ChecklistTemplate(CamelModel):
    """Named list of inspection points."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    inspection_points: list[InspectionPoint] = Field(default_factory=list)

    @property
    def categories(self) -> list[str]:
        """Categories in first-seen order."""
        seen: list[str] = []
        for point in self.inspection_points:
            if point.category not in seen:
                seen.append(point.category)
        return seen

    @property
    def required_count(self) -> int:
        return sum(1 for p in self.inspection_points if p.required)


def _default_templates() -> list[ChecklistTemplate]:
    exterior = ["Front bumper", "Rear bumper", "Bonnet", "Roof", "Left side", "Right side", "Windscreen"]
    interior = ["Seats", "Dashboard", "Floor mats"]
    points = [
        InspectionPoint(id=f"ext-{i}", name=name, category="Exterior", required=i < 2)
        for i, name in enumerate(exterior, start=1)
    ]
    points += [
        InspectionPoint(id=f"int-{i}", name=name, category="Interior")
        for i, name in enumerate(interior, start=1)
    ]
    return [ChecklistTemplate(id="standard", name="Standard inspection", inspection_points=points)]


class ChecklistSource:
    """Read-only checklist template catalogue.

    Example:
        >>> source = ChecklistSource()
        >>> source.get_template("standard").name
        'Standard inspection'
    """

    def __init__(self, path: Optional[Path | str] = None) -> None:
        """Load the catalogue.

        Args:
            path: JSON file holding a list of checklist templates; the
                built-in list is used when omitted

        Raises:
            ConfigError: File unreadable or malformed
        """
        self._path = Path(path) if path else None
        self._templates = self._load() if self._path else _default_templates()

    def _load(self) -> list[ChecklistTemplate]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read checklist templates from {self._path}: {e}") from e

        if not isinstance(data, list):
            raise ConfigError(f"Checklist file must hold a JSON list: {self._path}")

        try:
            templates = [ChecklistTemplate.model_validate(item) for item in data]
        except ValidationError as e:
            raise ConfigError(f"Invalid checklist template in {self._path}: {e}") from e

        logger.info(f"Loaded {len(templates)} checklist templates from {self._path}")
        return templates

    def get_template(self, template_id: str) -> Optional[ChecklistTemplate]:
        """Find a checklist template by id."""
        for template in self._templates:
            if template.id == str(template_id):
                return template
        return None

    def __iter__(self) -> Iterator[ChecklistTemplate]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)


def resolve_checklist_items(section: Section, source: ChecklistSource) -> list[InspectionPoint]:
    """Inspection points a renderer should draw for a checklist section.

    Cloned items win when custom-items mode is on; otherwise the bound
    template is used. Unknown template ids resolve to an empty list.

    Args:
        section: Checklist section
        source: Checklist catalogue

    Returns:
        Inspection points in display order

    Raises:
        ValueError: Section is not a checklist
    """
    if section.type != SectionType.CHECKLIST:
        raise ValueError(f"Section '{section.id}' is not a checklist")

    settings = section.settings
    items = settings.get("checklistItems") or []
    if settings.get("useCustomItems") and items:
        return [
            InspectionPoint(
                id=str(item.get("id") or f"item-{i}"),
                name=item.get("name") or item.get("text") or "",
                category=item.get("category") or "General",
                damage_types=item.get("damageTypes") or [],
                required=bool(item.get("required", False)),
            )
            for i, item in enumerate(items, start=1)
            if item.get("name") or item.get("text")
        ]

    template_id = settings.get("checklistTemplateId")
    if template_id is None:
        return []
    template = source.get_template(str(template_id))
    if template is None:
        logger.warning(f"Checklist template not found: {template_id}")
        return []
    return list(template.inspection_points)


def damage_types_for(points: list[InspectionPoint]) -> list[str]:
    """Union of declared damage types in first-seen order, or the defaults."""
    seen: list[str] = []
    for point in points:
        for damage_type in point.damage_types:
            if damage_type not in seen:
                seen.append(damage_type)
    return seen or list(DEFAULT_DAMAGE_TYPES)
