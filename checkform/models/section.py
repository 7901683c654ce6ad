"""Template section data model.

A section is a positioned, sized, optionally styled and conditional content
block on one page of a damage-check template.

Features:
    - Section types and canonical default settings per type
    - Visual style overrides
    - Render conditions evaluated against a generation context
    - Placeholder variables for text settings
"""

from __future__ import annotations

import copy
import re
import uuid
from enum import Enum
from typing import Any, Literal, Mapping, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from checkform.utils.constants import NEW_SECTION_POSITION


# ===================
# Enums
# ===================


class SectionType(str, Enum):
    """Section content type."""

    HEADER = "header"
    CONTRACT_INFO = "contractInfo"
    VEHICLE_DATA = "vehicleData"
    CHECKLIST = "checklist"
    DIAGRAM = "diagram"
    REMARKS = "remarks"
    SIGNATURES = "signatures"
    CUSTOM_FIELD = "customField"
    TABLE = "table"
    IMAGE = "image"
    QR_CODE = "qrCode"
    BARCODE = "barcode"


class ConditionOperator(str, Enum):
    """Operator of a section render condition."""

    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"


# Types a user adds to a template; everything else is a built-in structural
# section that can be hidden but not deleted.
USER_SECTION_TYPES: frozenset[SectionType] = frozenset(
    {
        SectionType.CUSTOM_FIELD,
        SectionType.TABLE,
        SectionType.IMAGE,
        SectionType.QR_CODE,
        SectionType.BARCODE,
    }
)

SECTION_LABELS: dict[SectionType, str] = {
    SectionType.HEADER: "Header",
    SectionType.CONTRACT_INFO: "Contract Info",
    SectionType.VEHICLE_DATA: "Vehicle Data",
    SectionType.CHECKLIST: "Checklist",
    SectionType.DIAGRAM: "Vehicle Diagram",
    SectionType.REMARKS: "Remarks",
    SectionType.SIGNATURES: "Signatures",
    SectionType.CUSTOM_FIELD: "Custom Field",
    SectionType.TABLE: "Table",
    SectionType.IMAGE: "Image",
    SectionType.QR_CODE: "QR Code",
    SectionType.BARCODE: "Barcode",
}

SECTION_COLORS: dict[SectionType, str] = {
    SectionType.HEADER: "#334d99",
    SectionType.CONTRACT_INFO: "#10b981",
    SectionType.VEHICLE_DATA: "#f59e0b",
    SectionType.CHECKLIST: "#3b82f6",
    SectionType.DIAGRAM: "#8b5cf6",
    SectionType.REMARKS: "#ec4899",
    SectionType.SIGNATURES: "#06b6d4",
    SectionType.CUSTOM_FIELD: "#14b8a6",
    SectionType.TABLE: "#6366f1",
    SectionType.IMAGE: "#a855f7",
    SectionType.QR_CODE: "#0ea5e9",
    SectionType.BARCODE: "#84cc16",
}


# ===================
# Default settings
# ===================

_DEFAULT_SETTINGS: dict[SectionType, dict[str, Any]] = {
    SectionType.HEADER: {
        "companyName": "Company Name",
        "headerColor": "#334d99",
        "headerFontSize": 14,
        "showLogo": True,
    },
    SectionType.CONTRACT_INFO: {
        "fontSize": 9,
        "customItems": [
            {"id": "contract-nr", "text": "Contract Nr:", "hasCheckbox": False, "fieldKey": "contractNumber"},
            {"id": "datum", "text": "Datum:", "hasCheckbox": False, "fieldKey": "date"},
            {"id": "klant", "text": "Klant:", "hasCheckbox": False, "fieldKey": "customerName"},
            {"id": "periode", "text": "Periode:", "hasCheckbox": False, "fieldKey": "rentalPeriod"},
        ],
    },
    SectionType.VEHICLE_DATA: {
        "fontSize": 9,
        "customItems": [
            {"id": "kenteken", "text": "Kenteken:", "hasCheckbox": False, "fieldKey": "licensePlate"},
            {"id": "merk", "text": "Merk:", "hasCheckbox": False, "fieldKey": "brand"},
            {"id": "model", "text": "Model:", "hasCheckbox": False, "fieldKey": "model"},
            {"id": "bouwjaar", "text": "Bouwjaar:", "hasCheckbox": False, "fieldKey": "buildYear"},
            {"id": "km-stand", "text": "Km Stand:", "hasCheckbox": False, "fieldKey": "mileage"},
            {"id": "brandstof", "text": "Brandstof:", "hasCheckbox": False, "fieldKey": "fuel"},
        ],
    },
    SectionType.CHECKLIST: {
        "fontSize": 9,
        "checkboxSize": 10,
        "columnCount": 3,
    },
    SectionType.DIAGRAM: {},
    SectionType.REMARKS: {
        "fontSize": 9,
        "customItems": [],
    },
    SectionType.SIGNATURES: {
        "fontSize": 9,
        "customItems": [
            {"id": "klant-sig", "text": "Handtekening Klant", "hasCheckbox": False},
            {"id": "medewerker-sig", "text": "Handtekening Medewerker", "hasCheckbox": False},
        ],
    },
    SectionType.CUSTOM_FIELD: {
        "customLabel": "New Field",
        "fieldText": "Field Label",
        "hasCheckbox": True,
        "hasText": True,
        "fontSize": 9,
    },
    SectionType.TABLE: {
        "customLabel": "Table",
        "tableRows": 4,
        "tableCols": 3,
        "tableData": [
            ["Header 1", "Header 2", "Header 3"],
            ["", "", ""],
            ["", "", ""],
            ["", "", ""],
        ],
        "fontSize": 9,
    },
    SectionType.IMAGE: {
        "customLabel": "Image",
        "imageUrl": "",
    },
    SectionType.QR_CODE: {
        "customLabel": "QR Code",
        "qrCodeValue": "{{contractNumber}}",
    },
    SectionType.BARCODE: {
        "customLabel": "Barcode",
        "barcodeValue": "{{contractNumber}}",
    },
}

_DEFAULT_SIZES: dict[SectionType, tuple[float, float]] = {
    SectionType.CUSTOM_FIELD: (200, 30),
    SectionType.TABLE: (300, 150),
    SectionType.IMAGE: (150, 100),
    SectionType.QR_CODE: (80, 80),
    SectionType.BARCODE: (150, 50),
}
FALLBACK_SECTION_SIZE: tuple[float, float] = (200, 60)

# Placeholders usable in text settings, with sample values for previews
TEXT_VARIABLES: dict[str, str] = {
    "today": "Today's Date",
    "vehicleName": "Vehicle Name",
    "licensePlate": "License Plate",
    "customerName": "Customer Name",
    "customerPhone": "Customer Phone",
    "contractNumber": "Contract Number",
    "pickupDate": "Pickup Date",
    "returnDate": "Return Date",
    "mileage": "Mileage",
    "fuelLevel": "Fuel Level",
}

_PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z_][\w.]*)\s*\}\}")


def default_settings(section_type: SectionType | str) -> dict[str, Any]:
    """Return a fresh copy of the canonical settings of a section type.

    Args:
        section_type: Section type

    Returns:
        Settings dict the caller may mutate freely
    """
    return copy.deepcopy(_DEFAULT_SETTINGS[SectionType(section_type)])


def default_size(section_type: SectionType | str) -> tuple[float, float]:
    """Return the (width, height) a new section of this type starts with."""
    return _DEFAULT_SIZES.get(SectionType(section_type), FALLBACK_SECTION_SIZE)


def generate_section_id(section_type: SectionType | str) -> str:
    """Generate a unique section id.

    Args:
        section_type: Section type, used as id prefix

    Returns:
        Id such as ``table-3f9a1c2e``
    """
    return f"{SectionType(section_type).value}-{uuid.uuid4().hex[:8]}"


def lookup_field(context: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted field path against a nested mapping.

    Returns None when any segment is missing.
    """
    value: Any = context
    for part in path.split("."):
        if isinstance(value, Mapping) and part in value:
            value = value[part]
        else:
            return None
    return value


def render_placeholders(text: str, context: Mapping[str, Any]) -> str:
    """Replace ``{{name}}`` placeholders with values from the context.

    Unknown placeholders are left untouched.
    """

    def _replace(match: re.Match[str]) -> str:
        value = lookup_field(context, match.group(1))
        return match.group(0) if value is None else str(value)

    return _PLACEHOLDER_PATTERN.sub(_replace, text)


# ===================
# Geometry
# ===================


class Rect(NamedTuple):
    """Axis-aligned rectangle in page points."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


# ===================
# Style and condition
# ===================


class CamelModel(BaseModel):
    """Base for models serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SectionStyle(CamelModel):
    """Visual overrides of a section.

    Every field is optional; unset fields fall back to
    ``DEFAULT_SECTION_STYLE`` when rendering.
    """

    font_size: Optional[float] = Field(default=None, gt=0, le=200)
    font_family: Optional[str] = None
    font_weight: Optional[Literal["normal", "bold"]] = None
    font_style: Optional[Literal["normal", "italic"]] = None
    text_color: Optional[str] = None
    background_color: Optional[str] = None
    text_align: Optional[Literal["left", "center", "right"]] = None
    border_width: Optional[float] = Field(default=None, ge=0, le=20)
    border_color: Optional[str] = None
    border_style: Optional[Literal["solid", "dashed", "dotted", "none"]] = None
    padding: Optional[float] = Field(default=None, ge=0, le=100)
    rotation: Optional[float] = Field(default=None, ge=-360, le=360)
    opacity: Optional[float] = Field(default=None, ge=0, le=1)

    def resolved(self) -> "SectionStyle":
        """Return a style with every unset field filled from the defaults."""
        data = DEFAULT_SECTION_STYLE.model_dump()
        data.update(self.model_dump(exclude_none=True))
        return SectionStyle(**data)


DEFAULT_SECTION_STYLE = SectionStyle(
    font_size=9,
    font_family="Helvetica",
    font_weight="normal",
    font_style="normal",
    text_color="#000000",
    background_color="transparent",
    text_align="left",
    border_width=1,
    border_color="#cccccc",
    border_style="solid",
    padding=4,
    rotation=0,
    opacity=1,
)


class SectionCondition(CamelModel):
    """Predicate deciding whether a section renders for a given context.

    Example:
        >>> cond = SectionCondition(field="checkType", operator="equals", value="pickup")
        >>> cond.evaluate({"checkType": "pickup"})
        True
    """

    field: str = Field(min_length=1)
    operator: ConditionOperator
    value: Optional[str] = None

    @model_validator(mode="after")
    def _check_value(self) -> "SectionCondition":
        needs_value = self.operator in (
            ConditionOperator.EQUALS,
            ConditionOperator.NOT_EQUALS,
            ConditionOperator.CONTAINS,
        )
        if needs_value and self.value is None:
            raise ValueError(f"Operator '{self.operator.value}' requires a value")
        return self

    def evaluate(self, context: Mapping[str, Any]) -> bool:
        """Evaluate the condition.

        Args:
            context: Generation context (reservation, vehicle, check data)

        Returns:
            True when the section should be rendered
        """
        actual = lookup_field(context, self.field)

        if self.operator == ConditionOperator.IS_EMPTY:
            return _is_empty(actual)
        if self.operator == ConditionOperator.IS_NOT_EMPTY:
            return not _is_empty(actual)
        if self.operator == ConditionOperator.EQUALS:
            return actual is not None and str(actual) == self.value
        if self.operator == ConditionOperator.NOT_EQUALS:
            return actual is None or str(actual) != self.value
        # contains
        if actual is None:
            return False
        if isinstance(actual, (list, tuple, set, frozenset)):
            return any(str(item) == self.value for item in actual)
        return str(self.value) in str(actual)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) == 0
    return False


# ===================
# Section
# ===================


class Section(CamelModel):
    """Positioned content block on a template page.

    Attributes:
        id: Stable identifier, unique within a template
        type: Section type
        x: Left edge (points)
        y: Top edge (points)
        width: Width (points)
        height: Height (points)
        page: 1-based page number
        visible: Rendered and hit-testable when True
        locked: Geometry is frozen when True
        settings: Type-specific content configuration
        style: Optional visual overrides
        condition: Optional render condition

    Example:
        >>> table = Section.create(SectionType.TABLE)
        >>> table.settings["tableRows"]
        4
    """

    id: str = Field(min_length=1, max_length=100)
    type: SectionType
    x: float = Field(ge=0)
    y: float = Field(ge=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    page: int = Field(default=1, ge=1)
    visible: bool = True
    locked: bool = False
    settings: dict[str, Any] = Field(default_factory=dict)
    style: Optional[SectionStyle] = None
    condition: Optional[SectionCondition] = None

    @field_validator("settings", mode="before")
    @classmethod
    def _none_settings(cls, v: Any) -> Any:
        return {} if v is None else v

    # ------------------
    # Geometry helpers
    # ------------------

    @property
    def right(self) -> float:
        """Right edge."""
        return self.x + self.width

    @property
    def bottom(self) -> float:
        """Bottom edge."""
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def bounds(self) -> Rect:
        """Current bounds."""
        return Rect(self.x, self.y, self.width, self.height)

    @property
    def is_structural(self) -> bool:
        """Built-in section that cannot be deleted."""
        return self.type not in USER_SECTION_TYPES

    @property
    def is_deletable(self) -> bool:
        return not self.is_structural

    @property
    def label(self) -> str:
        """Display label (custom label when set)."""
        return self.settings.get("customLabel") or SECTION_LABELS[self.type]

    def contains_point(self, px: float, py: float) -> bool:
        """Whether a page point lies inside the section."""
        return self.x <= px <= self.right and self.y <= py <= self.bottom

    def with_geometry(self, rect: Rect) -> "Section":
        """Return a copy with new bounds."""
        return self.model_copy(
            update={"x": rect.x, "y": rect.y, "width": rect.width, "height": rect.height},
            deep=True,
        )

    def moved_to(self, x: float, y: float) -> "Section":
        """Return a copy at a new position."""
        return self.model_copy(update={"x": x, "y": y}, deep=True)

    def clone(self, new_id: Optional[str] = None) -> "Section":
        """Deep copy with a new id.

        Args:
            new_id: Id of the copy, generated when omitted

        Returns:
            New section instance
        """
        return self.model_copy(
            update={"id": new_id or generate_section_id(self.type)},
            deep=True,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def create(
        cls,
        section_type: SectionType | str,
        x: Optional[float] = None,
        y: Optional[float] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
        page: int = 1,
        section_id: Optional[str] = None,
        settings: Optional[dict[str, Any]] = None,
        **kwargs: Any,
    ) -> "Section":
        """Create a section with complete default settings for its type.

        Args:
            section_type: Section type
            x: Left edge, defaults to the standard insertion point
            y: Top edge, defaults to the standard insertion point
            width: Width, defaults to the type's default size
            height: Height, defaults to the type's default size
            page: Page number
            section_id: Explicit id, generated when omitted
            settings: Overrides merged on top of the default settings
            **kwargs: Other section fields (visible, locked, style, condition)

        Returns:
            Section instance
        """
        section_type = SectionType(section_type)
        default_w, default_h = default_size(section_type)
        merged = default_settings(section_type)
        if settings:
            merged.update(copy.deepcopy(settings))

        return cls(
            id=section_id or generate_section_id(section_type),
            type=section_type,
            x=NEW_SECTION_POSITION[0] if x is None else x,
            y=NEW_SECTION_POSITION[1] if y is None else y,
            width=default_w if width is None else width,
            height=default_h if height is None else height,
            page=page,
            settings=merged,
            **kwargs,
        )
