"""Pytest configuration and shared fixtures."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from pathlib import Path
from typing import Generator

import pytest
from PIL import Image
from PyQt6.QtWidgets import QApplication

from checkform.core.config_manager import ConfigManager
from checkform.core.editor_controller import EditorController
from checkform.models.app_settings import Settings
from checkform.models.section import Section, SectionType
from checkform.models.template_document import TemplateDocument
from checkform.services.asset_store import AssetStore
from checkform.services.database_service import DatabaseService
from checkform.services.template_repository import TemplateRepository


@pytest.fixture(scope="session")
def app():
    """Qt application instance."""
    application = QApplication.instance()
    if not application:
        application = QApplication([])
    yield application


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temporary data directory, inline saves."""
    return Settings(data_dir=tmp_path / "data", background_saves=False)


@pytest.fixture(autouse=True)
def reset_config_manager() -> Generator[None, None, None]:
    """Each test gets a fresh ConfigManager singleton."""
    ConfigManager.reset_instance()
    yield
    ConfigManager.reset_instance()


@pytest.fixture
def document() -> TemplateDocument:
    """New A4 portrait template with the default sections."""
    return TemplateDocument.create("Test template")


@pytest.fixture
def repository(tmp_path: Path) -> Generator[TemplateRepository, None, None]:
    """Template store in a temporary directory."""
    repo = TemplateRepository(tmp_path / "templates", DatabaseService(tmp_path / "versions.db"))
    yield repo
    repo.database.close()


@pytest.fixture
def controller(app, settings: Settings, document: TemplateDocument) -> EditorController:
    """Controller editing an in-memory document, no store."""
    editor = EditorController(settings=settings)
    editor.load_document(document)
    return editor


@pytest.fixture
def stored_controller(
    app,
    settings: Settings,
    repository: TemplateRepository,
    tmp_path: Path,
) -> EditorController:
    """Controller backed by a template store, with a saved template open."""
    editor = EditorController(
        repository=repository,
        settings=settings,
        asset_store=AssetStore(tmp_path / "assets"),
    )
    editor.new_template("Stored template")
    return editor


@pytest.fixture
def sample_image(tmp_path: Path) -> Path:
    """Small PNG image."""
    path = tmp_path / "background.png"
    Image.new("RGB", (60, 40), color=(200, 220, 240)).save(path)
    return path


@pytest.fixture
def add_table():
    """Factory adding a table section at a fixed position to a document."""

    def _add(doc: TemplateDocument, section_id: str, x: float, y: float, **kwargs) -> Section:
        section = Section.create(SectionType.TABLE, x=x, y=y, section_id=section_id, **kwargs)
        doc.add_section(section)
        return section

    return _add
