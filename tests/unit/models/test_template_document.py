"""Template document unit tests.

Tests:
    - Default template contents and page geometry
    - Consistency validation
    - Section management
    - Page add/remove with renumbering
    - Tags and page settings
    - JSON export/import
"""

import json

import pytest
from pydantic import ValidationError

from checkform.models.section import Section, SectionCondition, SectionType
from checkform.models.template_document import (
    PageOrientation,
    PageSize,
    TemplateDocument,
    create_default_sections,
)
from checkform.utils.exceptions import (
    EditValidationError,
    PageRangeError,
    SectionNotFoundError,
    TemplateImportError,
)


# ===================
# Fixtures
# ===================


@pytest.fixture
def three_pages(add_table) -> TemplateDocument:
    """Three-page document with one table per page."""
    doc = TemplateDocument(name="Three pages", page_count=3)
    for page in (1, 2, 3):
        add_table(doc, f"table-p{page}", 20, 20, page=page)
    add_table(doc, "table-p2-extra", 20, 300, page=2)
    return doc


# ===================
# Defaults and geometry
# ===================


class TestDefaults:
    """New template contents."""

    def test_should_seed_default_sections(self, document):
        """A new template holds the seven structural sections on page 1."""
        ids = [s.id for s in document.sections]
        assert ids == [
            "header",
            "contractInfo",
            "vehicleData",
            "checklist",
            "diagram",
            "remarks",
            "signatures",
        ]
        assert all(s.page == 1 for s in document.sections)
        assert all(s.is_structural for s in document.sections)

    def test_default_sections_should_fit_a4(self):
        """Default sections lie inside an A4 portrait page."""
        for section in create_default_sections():
            assert section.right <= 595
            assert section.bottom <= 842

    def test_should_default_to_a4_portrait(self, document):
        assert document.page_size == PageSize.A4
        assert document.page_orientation == PageOrientation.PORTRAIT
        assert document.page_count == 1
        assert document.page_margins == 15
        assert document.section_count == 7


class TestPageGeometry:
    """Page dimensions."""

    def test_a4_portrait(self, document):
        assert document.page_dimensions() == (595, 842)

    def test_landscape_should_swap_named_sizes(self):
        doc = TemplateDocument(page_size=PageSize.A5, page_orientation=PageOrientation.LANDSCAPE)
        assert (doc.page_width, doc.page_height) == (595, 420)

    def test_custom_size_should_ignore_orientation(self):
        doc = TemplateDocument(
            page_size=PageSize.CUSTOM,
            page_orientation=PageOrientation.LANDSCAPE,
            custom_page_width=300,
            custom_page_height=500,
        )
        assert doc.page_dimensions() == (300, 500)

    def test_custom_size_should_require_dimensions(self):
        with pytest.raises(ValidationError):
            TemplateDocument(page_size=PageSize.CUSTOM, custom_page_width=300)


# ===================
# Consistency
# ===================


class TestConsistency:
    """Whole-document validation."""

    def test_should_reject_duplicate_section_ids(self):
        section = Section.create(SectionType.TABLE, section_id="dup")
        with pytest.raises(ValidationError):
            TemplateDocument(sections=[section, section.model_copy()])

    def test_should_reject_section_beyond_page_count(self):
        section = Section.create(SectionType.TABLE, page=2)
        with pytest.raises(ValidationError):
            TemplateDocument(sections=[section], page_count=1)

    def test_should_dedupe_tags(self):
        doc = TemplateDocument(tags=[" pickup", "pickup", "", "return"])
        assert doc.tags == ["pickup", "return"]


# ===================
# Sections
# ===================


class TestSections:
    """Section management."""

    def test_add_section_should_append(self, document, add_table):
        add_table(document, "extra", 10, 10)
        assert document.sections[-1].id == "extra"

    def test_add_section_should_reject_duplicate_id(self, document):
        with pytest.raises(EditValidationError) as exc_info:
            document.add_section(Section.create(SectionType.TABLE, section_id="header"))
        assert exc_info.value.code == "DUPLICATE_SECTION"

    def test_add_section_should_reject_missing_page(self, document):
        with pytest.raises(PageRangeError):
            document.add_section(Section.create(SectionType.TABLE, page=2))

    def test_update_section_should_keep_order(self, document):
        moved = document.get_section("checklist").moved_to(40, 240)
        document.update_section(moved)
        assert document.sections[3].id == "checklist"
        assert document.sections[3].x == 40

    def test_update_unknown_section_should_raise(self, document):
        with pytest.raises(SectionNotFoundError):
            document.update_section(Section.create(SectionType.TABLE, section_id="ghost"))

    def test_remove_section_should_return_removed(self, document):
        removed = document.remove_section("remarks")
        assert removed.id == "remarks"
        assert document.get_section("remarks") is None

    def test_require_section_should_raise_for_unknown_id(self, document):
        with pytest.raises(SectionNotFoundError):
            document.require_section("ghost")

    def test_renderable_sections_should_skip_hidden_and_failed_conditions(self, document):
        document.update_section(document.get_section("diagram").model_copy(update={"visible": False}))
        document.update_section(
            document.get_section("remarks").model_copy(
                update={"condition": SectionCondition(field="checkType", operator="equals", value="return")}
            )
        )
        ids = [s.id for s in document.renderable_sections(1, {"checkType": "pickup"})]
        assert "diagram" not in ids
        assert "remarks" not in ids
        assert "header" in ids


# ===================
# Pages
# ===================


class TestPages:
    """Adding and removing pages."""

    def test_add_page_should_return_new_number(self, document):
        assert document.add_page() == 2
        assert document.page_count == 2

    def test_remove_middle_page_should_renumber(self, three_pages):
        """Removing page 2 of 3 drops its sections and moves page 3 up."""
        dropped = three_pages.remove_page(2)

        assert sorted(s.id for s in dropped) == ["table-p2", "table-p2-extra"]
        assert three_pages.page_count == 2
        assert three_pages.get_section("table-p1").page == 1
        assert three_pages.get_section("table-p3").page == 2
        assert three_pages.get_section("table-p2") is None

    def test_remove_last_remaining_page_should_fail(self, document):
        with pytest.raises(EditValidationError) as exc_info:
            document.remove_page(1)
        assert exc_info.value.code == "LAST_PAGE"
        assert document.page_count == 1

    def test_remove_unknown_page_should_fail(self, three_pages):
        with pytest.raises(PageRangeError):
            three_pages.remove_page(4)
        assert three_pages.page_count == 3


# ===================
# Tags and page settings
# ===================


class TestTagsAndSettings:
    """Metadata helpers."""

    def test_add_and_remove_tag(self, document):
        assert document.add_tag(" pickup ")
        assert not document.add_tag("pickup")
        assert document.tags == ["pickup"]
        assert document.remove_tag("pickup")
        assert not document.remove_tag("pickup")

    def test_page_settings_snapshot(self, document):
        settings = document.page_settings()
        assert settings == {
            "pageMargins": 15,
            "pageOrientation": "portrait",
            "pageSize": "A4",
            "pageCount": 1,
        }

    def test_apply_page_settings(self, document):
        document.apply_page_settings({"pageSize": "Letter", "pageOrientation": "landscape"})
        assert document.page_dimensions() == (792, 612)

    def test_invalid_page_settings_should_change_nothing(self, document):
        with pytest.raises(ValidationError):
            document.apply_page_settings({"pageSize": "custom"})
        assert document.page_size == PageSize.A4

    def test_restore_snapshot_should_lower_page_count_with_sections(self, three_pages):
        kept = [s for s in three_pages.sections if s.page == 1]
        three_pages.restore_snapshot(kept, {"pageCount": 1, "pageOrientation": "landscape"})
        assert three_pages.page_count == 1
        assert three_pages.page_orientation == PageOrientation.LANDSCAPE
        assert [s.id for s in three_pages.sections] == ["table-p1"]

    def test_inconsistent_snapshot_should_change_nothing(self, three_pages):
        with pytest.raises(ValidationError):
            three_pages.restore_snapshot(three_pages.sections, {"pageCount": 1})
        assert three_pages.page_count == 3
        assert three_pages.section_count == 4


# ===================
# JSON
# ===================


class TestJson:
    """Export and import."""

    def test_to_dict_should_use_camel_case(self, document):
        data = document.to_dict()
        assert data["pageCount"] == 1
        assert data["isDefault"] is False
        assert "id" not in data

    def test_json_should_restore_equal_document(self, document):
        restored = TemplateDocument.from_json(document.to_json())
        assert restored == document

    def test_from_json_should_accept_bytes(self, document):
        restored = TemplateDocument.from_json(document.to_json().encode("utf-8"))
        assert restored.name == "Test template"

    @pytest.mark.parametrize(
        "payload",
        [
            "{not json",
            "[]",
            json.dumps({"name": "x", "pageCount": 0}),
            json.dumps({"sections": [{"id": "a", "type": "sticker", "x": 0, "y": 0, "width": 1, "height": 1}]}),
        ],
    )
    def test_from_json_should_reject_malformed_payloads(self, payload):
        with pytest.raises(TemplateImportError):
            TemplateDocument.from_json(payload)
