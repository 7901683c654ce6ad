"""Section preset source unit tests.

Tests:
    - Built-in and file-based catalogues
    - Sections built from a preset
"""

import json

import pytest

from checkform.models.section import SectionType
from checkform.services.preset_source import PresetSource
from checkform.utils.exceptions import ConfigError


# ===================
# Fixtures
# ===================


@pytest.fixture
def preset_file(tmp_path):
    path = tmp_path / "presets.json"
    path.write_text(
        json.dumps(
            [
                {
                    "id": "signature-pair",
                    "name": "Signature pair",
                    "category": "Contract",
                    "isBuiltIn": False,
                    "config": {
                        "id": "signature-pair",
                        "type": "signatures",
                        "x": 0,
                        "y": 0,
                        "width": 400,
                        "height": 80,
                        "settings": {"customLabel": "Signatures"},
                    },
                }
            ]
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def presets() -> PresetSource:
    return PresetSource()


# ===================
# Catalogue
# ===================


class TestCatalogue:
    """Loading presets."""

    def test_builtin_catalogue(self, presets):
        assert [p.id for p in presets] == ["fuel-mileage", "damage-photo", "contract-qr"]
        assert presets.categories() == ["Vehicle", "Damage", "Contract"]
        assert all(p.is_built_in for p in presets)

    def test_builtin_table_should_carry_its_grid(self, presets):
        preset = presets.get_preset("fuel-mileage")
        assert preset.type == SectionType.TABLE
        assert preset.config.settings["tableData"][0] == ["", "Pickup", "Return"]

    def test_should_load_file_with_camel_case_keys(self, preset_file):
        presets = PresetSource(preset_file)
        preset = presets.get_preset("signature-pair")
        assert len(presets) == 1
        assert preset.type == SectionType.SIGNATURES
        assert not preset.is_built_in
        assert preset.config.settings["customLabel"] == "Signatures"

    def test_unknown_preset_should_be_none(self, presets):
        assert presets.get_preset("nope") is None

    @pytest.mark.parametrize(
        "content",
        ["{broken", '{"id": "x"}', '[{"id": "x", "name": "X"}]'],
    )
    def test_malformed_file_should_raise_config_error(self, tmp_path, content):
        path = tmp_path / "presets.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ConfigError):
            PresetSource(path)

    def test_missing_file_should_raise_config_error(self, tmp_path):
        with pytest.raises(ConfigError):
            PresetSource(tmp_path / "missing.json")


# ===================
# Building sections
# ===================


class TestBuildSection:
    """SectionPreset.build_section."""

    def test_should_place_at_insertion_point_with_fresh_id(self, presets):
        preset = presets.get_preset("damage-photo")
        section = preset.build_section(page=2)

        assert (section.x, section.y, section.page) == (30, 400, 2)
        assert section.id != preset.config.id
        assert section.id.startswith("image-")
        assert (section.width, section.height) == (250, 180)

    def test_each_build_should_get_new_id(self, presets):
        preset = presets.get_preset("contract-qr")
        assert preset.build_section(1).id != preset.build_section(1).id

    def test_built_section_should_not_share_settings(self, presets):
        preset = presets.get_preset("fuel-mileage")
        section = preset.build_section(1)
        section.settings["tableData"][1][1] = "1/2"
        assert preset.config.settings["tableData"][1][1] == ""
