"""Data models."""

from checkform.models.section import (
    # Enums
    SectionType,
    ConditionOperator,
    # Constants
    USER_SECTION_TYPES,
    SECTION_LABELS,
    TEXT_VARIABLES,
    # Models
    Rect,
    SectionStyle,
    SectionCondition,
    Section,
    # Helpers
    default_settings,
    default_size,
    generate_section_id,
    render_placeholders,
)
from checkform.models.template_document import (
    PageSize,
    PageOrientation,
    TemplateDocument,
    TemplateVersion,
    create_default_sections,
)

__all__ = [
    # Enums
    "SectionType",
    "ConditionOperator",
    "PageSize",
    "PageOrientation",
    # Constants
    "USER_SECTION_TYPES",
    "SECTION_LABELS",
    "TEXT_VARIABLES",
    # Models
    "Rect",
    "SectionStyle",
    "SectionCondition",
    "Section",
    "TemplateDocument",
    "TemplateVersion",
    # Helpers
    "default_settings",
    "default_size",
    "generate_section_id",
    "render_placeholders",
    "create_default_sections",
]
