"""Service layer."""

from checkform.services.asset_store import AssetStore
from checkform.services.checklist_source import (
    ChecklistSource,
    ChecklistTemplate,
    InspectionPoint,
    resolve_checklist_items,
)
from checkform.services.database_service import DatabaseService
from checkform.services.preset_source import PresetSource, SectionPreset
from checkform.services.template_repository import (
    TemplateRepository,
    TemplateSaver,
    generate_template_id,
)

__all__ = [
    # Template store
    "TemplateRepository",
    "TemplateSaver",
    "generate_template_id",
    "DatabaseService",
    # Collaborators
    "AssetStore",
    "ChecklistSource",
    "ChecklistTemplate",
    "InspectionPoint",
    "resolve_checklist_items",
    "PresetSource",
    "SectionPreset",
]
