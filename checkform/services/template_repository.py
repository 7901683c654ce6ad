"""Template repository.

Local persistence of damage-check templates and their version history.

Features:
    - One ``<id>.template.json`` file per template
    - Exclusive default template, promoted on delete
    - Duplicate, export and import
    - Version snapshots in SQLite
    - Background saves on a worker thread
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from checkform.models.database import TemplateVersionRecord
from checkform.models.section import Section
from checkform.models.template_document import TemplateDocument, TemplateVersion
from checkform.services.database_service import DatabaseService
from checkform.utils.constants import TEMPLATES_DIR
from checkform.utils.exceptions import (
    AppException,
    DatabaseError,
    TemplateImportError,
    TemplateNotFoundError,
    TemplateSaveError,
    VersionNotFoundError,
)
from checkform.utils.file_utils import atomic_write_text, ensure_directory
from checkform.utils.logger import setup_logger

logger = setup_logger(__name__)


# Template file extension
TEMPLATE_EXTENSION = ".template.json"


def generate_template_id() -> str:
    """Generate a template id."""
    return uuid.uuid4().hex[:12]


class TemplateRepository:
    """File-backed template store with a SQLite version history.

    Example:
        >>> repo = TemplateRepository(tmp_path / "templates", DatabaseService(tmp_path / "v.db"))
        >>> saved = repo.save_template(TemplateDocument.create("Standard check"))
        >>> repo.load_template(saved.id).name
        'Standard check'
    """

    def __init__(
        self,
        templates_dir: Optional[Path | str] = None,
        database: Optional[DatabaseService] = None,
    ) -> None:
        """Initialize the repository.

        Args:
            templates_dir: Template directory
            database: Version database, created at the default path when omitted
        """
        self._templates_dir = ensure_directory(Path(templates_dir or TEMPLATES_DIR))
        self._db = database or DatabaseService()
        self._db.init_db()

    @property
    def templates_dir(self) -> Path:
        return self._templates_dir

    @property
    def database(self) -> DatabaseService:
        return self._db

    def _get_template_path(self, template_id: str) -> Path:
        return self._templates_dir / f"{template_id}{TEMPLATE_EXTENSION}"

    def _write(self, doc: TemplateDocument) -> None:
        try:
            atomic_write_text(self._get_template_path(doc.id), doc.to_json())
        except OSError as e:
            raise TemplateSaveError(f"Could not write template {doc.id}: {e}") from e

    def _read(self, path: Path) -> TemplateDocument:
        return TemplateDocument.from_json(path.read_text(encoding="utf-8"))

    # ========================
    # Templates
    # ========================

    def load_templates(self) -> list[TemplateDocument]:
        """Load every template.

        Unreadable files are logged and skipped.

        Returns:
            Templates, default first, then by name
        """
        result: list[TemplateDocument] = []
        for path in self._templates_dir.glob(f"*{TEMPLATE_EXTENSION}"):
            try:
                result.append(self._read(path))
            except (OSError, TemplateImportError) as e:
                logger.error(f"Failed to load template {path.name}: {e}")

        result.sort(key=lambda t: (not t.is_default, t.name.lower(), t.id or ""))
        return result

    def load_template(self, template_id: str) -> TemplateDocument:
        """Load one template.

        Raises:
            TemplateNotFoundError: No such template
            TemplateImportError: File exists but is malformed
        """
        path = self._get_template_path(template_id)
        if not path.exists():
            raise TemplateNotFoundError(template_id)
        return self._read(path)

    def exists(self, template_id: str) -> bool:
        return self._get_template_path(template_id).exists()

    def create_template(self, name: str) -> TemplateDocument:
        """Create and store a new template with the default sections.

        The first template in an empty store becomes the default.
        """
        is_default = not any(self._templates_dir.glob(f"*{TEMPLATE_EXTENSION}"))
        return self.save_template(TemplateDocument.create(name, is_default=is_default))

    def save_template(self, doc: TemplateDocument) -> TemplateDocument:
        """Insert or update a template.

        Assigns an id and timestamps. Saving a default template clears the
        flag on every other template.

        Args:
            doc: Template to save, left untouched

        Returns:
            The stored copy

        Raises:
            TemplateSaveError: Write failed
        """
        saved = doc.copy_document()
        now = datetime.now()
        if saved.id is None:
            saved.id = generate_template_id()
        if saved.created_at is None:
            saved.created_at = now
        saved.updated_at = now

        if saved.is_default:
            self._clear_default(except_id=saved.id)

        self._write(saved)
        logger.info(f"Template saved: {saved.name} ({saved.id})")
        return saved

    def _clear_default(self, except_id: str) -> None:
        for other in self.load_templates():
            if other.is_default and other.id != except_id:
                other.is_default = False
                self._write(other)
                logger.info(f"Default flag moved away from: {other.name}")

    def delete_template(self, template_id: str) -> None:
        """Delete a template and its versions.

        When the default template is deleted the first remaining template
        becomes the default.

        Raises:
            TemplateNotFoundError: No such template
        """
        doc = self.load_template(template_id)
        path = self._get_template_path(template_id)
        try:
            path.unlink()
        except OSError as e:
            raise TemplateSaveError(f"Could not delete template {template_id}: {e}") from e

        self._delete_versions(template_id)
        logger.info(f"Template deleted: {doc.name} ({template_id})")

        if doc.is_default:
            remaining = self.load_templates()
            if remaining:
                promoted = remaining[0]
                promoted.is_default = True
                self._write(promoted)
                logger.info(f"Default template promoted: {promoted.name}")

    def duplicate_template(self, template_id: str, name: str) -> TemplateDocument:
        """Copy a template under a new name.

        The copy is never the default and starts without usage statistics.
        """
        source = self.load_template(template_id)
        copy = source.copy_document()
        copy.id = None
        copy.name = name
        copy.is_default = False
        copy.usage_count = 0
        copy.last_used_at = None
        copy.created_at = None
        return self.save_template(copy)

    def get_default_template(self) -> Optional[TemplateDocument]:
        for doc in self.load_templates():
            if doc.is_default:
                return doc
        return None

    # ========================
    # Export / import
    # ========================

    def export_template(self, template_id: str) -> bytes:
        """Export a template as UTF-8 JSON."""
        return self.load_template(template_id).to_json().encode("utf-8")

    def import_template(self, data: bytes | str) -> TemplateDocument:
        """Import an exported template as a new, non-default template.

        The payload is validated completely before anything is written.

        Raises:
            TemplateImportError: Malformed payload
        """
        doc = TemplateDocument.from_json(data)
        doc.id = None
        doc.is_default = False
        doc.created_at = None
        doc.usage_count = 0
        doc.last_used_at = None
        saved = self.save_template(doc)
        logger.info(f"Template imported: {saved.name} ({saved.id})")
        return saved

    # ========================
    # Versions
    # ========================

    def list_versions(self, template_id: str) -> list[TemplateVersion]:
        """Versions of a template, newest first.

        Raises:
            DatabaseError: Query failed
        """
        try:
            with self._db.get_session() as session:
                records = session.scalars(
                    select(TemplateVersionRecord)
                    .where(TemplateVersionRecord.template_id == template_id)
                    .order_by(TemplateVersionRecord.version.desc())
                ).all()
                return [self._to_version(r) for r in records]
        except SQLAlchemyError as e:
            raise DatabaseError(f"Could not list versions of {template_id}: {e}") from e

    def create_version(
        self,
        template_id: str,
        sections: Iterable[Section],
        settings: dict,
        name: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> TemplateVersion:
        """Store a snapshot of sections and page settings.

        Args:
            template_id: Owning template, must exist
            sections: Sections to snapshot
            settings: Page settings (see ``TemplateDocument.page_settings``)
            name: Version label, "Version <n>" when omitted
            created_by: Author

        Raises:
            TemplateNotFoundError: No such template
            DatabaseError: Insert failed
        """
        if not self.exists(template_id):
            raise TemplateNotFoundError(template_id)

        sections_json = json.dumps([s.to_dict() for s in sections], ensure_ascii=False)
        try:
            with self._db.get_session() as session:
                latest = session.scalar(
                    select(func.max(TemplateVersionRecord.version)).where(
                        TemplateVersionRecord.template_id == template_id
                    )
                )
                number = (latest or 0) + 1
                record = TemplateVersionRecord(
                    template_id=template_id,
                    version=number,
                    name=name or f"Version {number}",
                    sections_json=sections_json,
                    settings_json=json.dumps(settings, ensure_ascii=False),
                    created_by=created_by,
                    created_at=datetime.now(),
                )
                session.add(record)
                session.commit()
                session.refresh(record)
                version = self._to_version(record)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Could not create version of {template_id}: {e}") from e

        logger.info(f"Version {version.version} created for template {template_id}")
        return version

    def get_version(self, template_id: str, version_id: int) -> TemplateVersion:
        """Load one version.

        Raises:
            VersionNotFoundError: No such version for this template
            DatabaseError: Query failed
        """
        try:
            with self._db.get_session() as session:
                record = session.get(TemplateVersionRecord, version_id)
                if record is None or record.template_id != template_id:
                    raise VersionNotFoundError(template_id, version_id)
                return self._to_version(record)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Could not load version {version_id}: {e}") from e

    def restore_version(self, template_id: str, version_id: int) -> TemplateDocument:
        """Replace a template's sections and page settings with a version.

        Returns:
            The saved template

        Raises:
            TemplateNotFoundError: No such template
            VersionNotFoundError: No such version
            TemplateImportError: Snapshot does not fit the template
        """
        doc = self.load_template(template_id)
        version = self.get_version(template_id, version_id)

        data = doc.to_dict()
        data.update(version.settings)
        data["sections"] = [s.to_dict() for s in version.sections]
        try:
            restored = TemplateDocument.model_validate(data)
        except ValueError as e:
            raise TemplateImportError(f"Version {version_id} cannot be restored: {e}") from e

        saved = self.save_template(restored)
        logger.info(f"Template {template_id} restored to version {version.version}")
        return saved

    def _delete_versions(self, template_id: str) -> None:
        try:
            with self._db.get_session() as session:
                records = session.scalars(
                    select(TemplateVersionRecord).where(
                        TemplateVersionRecord.template_id == template_id
                    )
                ).all()
                for record in records:
                    session.delete(record)
                session.commit()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Could not delete versions of {template_id}: {e}") from e

    @staticmethod
    def _to_version(record: TemplateVersionRecord) -> TemplateVersion:
        return TemplateVersion(
            id=record.id,
            template_id=record.template_id,
            version=record.version,
            name=record.name,
            sections=[Section.model_validate(s) for s in json.loads(record.sections_json)],
            settings=json.loads(record.settings_json or "{}"),
            created_at=record.created_at,
            created_by=record.created_by,
        )


# ===================
# Background saves
# ===================


class SaveThread(QThread):
    """Worker thread running one save.

    Signals:
        saved: Save succeeded, carries the stored TemplateDocument
        failed: Save failed, carries the error message
    """

    saved = pyqtSignal(object)  # TemplateDocument
    failed = pyqtSignal(str)

    def __init__(
        self,
        repository: TemplateRepository,
        doc: TemplateDocument,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._repository = repository
        self._doc = doc

    def run(self) -> None:
        try:
            self.saved.emit(self._repository.save_template(self._doc))
        except AppException as e:
            logger.error(f"Background save failed: {e}")
            self.failed.emit(e.message)
        except Exception as e:
            logger.exception(f"Background save failed: {e}")
            self.failed.emit(str(e))


class TemplateSaver(QObject):
    """Runs template saves inline or on worker threads.

    Overlapping background saves are not serialized; the last one to finish
    wins.

    Signals:
        save_finished: Save succeeded, carries the stored TemplateDocument
        save_failed: Save failed, carries the error message
    """

    save_finished = pyqtSignal(object)
    save_failed = pyqtSignal(str)

    def __init__(
        self,
        repository: TemplateRepository,
        background: bool = True,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._repository = repository
        self._background = background
        self._threads: set[SaveThread] = set()

    @property
    def repository(self) -> TemplateRepository:
        return self._repository

    def save(self, doc: TemplateDocument) -> None:
        """Save a snapshot of the document.

        Args:
            doc: Document to save; a copy is taken so editing can continue
        """
        snapshot = doc.copy_document()
        if not self._background:
            try:
                stored = self._repository.save_template(snapshot)
            except AppException as e:
                logger.error(f"Save failed: {e}")
                self.save_failed.emit(e.message)
                return
            self.save_finished.emit(stored)
            return

        thread = SaveThread(self._repository, snapshot, self)
        thread.saved.connect(self.save_finished)
        thread.failed.connect(self.save_failed)
        thread.finished.connect(lambda t=thread: self._on_thread_finished(t))
        self._threads.add(thread)
        thread.start()

    def _on_thread_finished(self, thread: SaveThread) -> None:
        self._threads.discard(thread)
        thread.deleteLater()

    def wait_for_all(self, timeout_ms: int = 5000) -> None:
        """Block until running saves finish (shutdown, tests)."""
        for thread in list(self._threads):
            thread.wait(timeout_ms)
