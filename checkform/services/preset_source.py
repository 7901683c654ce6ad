"""Section preset source.

Read-only catalogue of preconfigured sections that can be dropped onto a
template page in one step.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator, Optional

from pydantic import Field, ValidationError

from checkform.models.section import CamelModel, Section, SectionType, generate_section_id
from checkform.utils.constants import NEW_SECTION_POSITION
from checkform.utils.exceptions import ConfigError
from checkform.utils.logger import setup_logger

logger = setup_logger(__name__)


class SectionPreset(CamelModel):
    """Named, preconfigured section.

    Attributes:
        id: Preset id
        name: Display name, also used in the history label
        description: Short help text
        category: Grouping in menus
        is_built_in: Shipped with the application
        config: Section the preset inserts; its id, position and page are
            replaced on insertion
    """

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    category: str = "General"
    is_built_in: bool = False
    config: Section

    @property
    def type(self) -> SectionType:
        return self.config.type

    def build_section(self, page: int) -> Section:
        """Fresh section from the preset at the standard insertion point.

        Args:
            page: Page to place the section on

        Returns:
            Deep copy of the preset config with a new id
        """
        x, y = NEW_SECTION_POSITION
        return self.config.model_copy(
            update={
                "id": generate_section_id(self.type),
                "x": float(x),
                "y": float(y),
                "page": page,
            },
            deep=True,
        )


def _default_presets() -> list[SectionPreset]:
    return [
        SectionPreset(
            id="fuel-mileage",
            name="Fuel and mileage",
            description="Pickup and return fuel level and odometer",
            category="Vehicle",
            is_built_in=True,
            config=Section.create(
                SectionType.TABLE,
                section_id="fuel-mileage",
                width=300,
                height=90,
                settings={
                    "customLabel": "Fuel and mileage",
                    "tableRows": 3,
                    "tableCols": 3,
                    "tableData": [
                        ["", "Pickup", "Return"],
                        ["Fuel", "", ""],
                        ["Km", "", ""],
                    ],
                },
            ),
        ),
        SectionPreset(
            id="damage-photo",
            name="Damage photo",
            description="Frame for a photo of the damage",
            category="Damage",
            is_built_in=True,
            config=Section.create(
                SectionType.IMAGE,
                section_id="damage-photo",
                width=250,
                height=180,
                settings={"customLabel": "Damage photo"},
            ),
        ),
        SectionPreset(
            id="contract-qr",
            name="Contract QR code",
            description="QR code holding the contract number",
            category="Contract",
            is_built_in=True,
            config=Section.create(SectionType.QR_CODE, section_id="contract-qr"),
        ),
    ]


class PresetSource:
    """Read-only section preset catalogue.

    Example:
        >>> presets = PresetSource()
        >>> presets.get_preset("contract-qr").type
        <SectionType.QR_CODE: 'qrCode'>
    """

    def __init__(self, path: Optional[Path | str] = None) -> None:
        """Load the catalogue.

        Args:
            path: JSON file holding a list of presets; the built-in list is
                used when omitted

        Raises:
            ConfigError: File unreadable or malformed
        """
        self._path = Path(path) if path else None
        self._presets = self._load() if self._path else _default_presets()

    def _load(self) -> list[SectionPreset]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read section presets from {self._path}: {e}") from e

        if not isinstance(data, list):
            raise ConfigError(f"Preset file must hold a JSON list: {self._path}")

        try:
            presets = [SectionPreset.model_validate(item) for item in data]
        except ValidationError as e:
            raise ConfigError(f"Invalid section preset in {self._path}: {e}") from e

        logger.info(f"Loaded {len(presets)} section presets from {self._path}")
        return presets

    def get_preset(self, preset_id: str) -> Optional[SectionPreset]:
        for preset in self._presets:
            if preset.id == preset_id:
                return preset
        return None

    def categories(self) -> list[str]:
        """Categories in first-seen order."""
        seen: list[str] = []
        for preset in self._presets:
            if preset.category not in seen:
                seen.append(preset.category)
        return seen

    def __iter__(self) -> Iterator[SectionPreset]:
        return iter(self._presets)

    def __len__(self) -> int:
        return len(self._presets)
