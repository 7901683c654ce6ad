"""Application setup and lifetime management."""

from __future__ import annotations

from typing import Optional

from checkform.core.config_manager import ConfigManager
from checkform.core.editor_controller import EditorController
from checkform.services.asset_store import AssetStore
from checkform.services.checklist_source import ChecklistSource
from checkform.services.database_service import DatabaseService
from checkform.services.preset_source import PresetSource
from checkform.services.template_repository import TemplateRepository
from checkform.utils.exceptions import AppException
from checkform.utils.logger import set_log_level, setup_logger

logger = setup_logger(__name__)

DEFAULT_TEMPLATE_NAME = "Standard damage check"


class Application:
    """Application manager.

    Wires settings, storage services and the editor window together.

    Attributes:
        config: Configuration manager
        controller: Editor controller
    """

    def __init__(self, config: Optional[ConfigManager] = None) -> None:
        self._config = config or ConfigManager()
        self._db_service: Optional[DatabaseService] = None
        self._repository: Optional[TemplateRepository] = None
        self._checklist_source: Optional[ChecklistSource] = None
        self._preset_source: Optional[PresetSource] = None
        self._controller: Optional[EditorController] = None
        self._main_window = None
        self._initialized = False

    @property
    def config(self) -> ConfigManager:
        return self._config

    @property
    def controller(self) -> Optional[EditorController]:
        return self._controller

    @property
    def repository(self) -> Optional[TemplateRepository]:
        return self._repository

    def initialize(self) -> None:
        """Initialize the application.

        Steps:
        1. Apply the configured log level
        2. Ensure the data directory exists
        3. Open the version database and template store
        4. Build the editor controller

        Raises:
            ConfigError: Settings, checklist or preset file invalid
        """
        if self._initialized:
            logger.warning("Application already initialized, skipping")
            return

        settings = self._config.settings
        set_log_level(settings.log_level)
        logger.info("Initializing application...")

        settings.data_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Data directory: {settings.data_dir}")

        self._db_service = DatabaseService(settings.db_path)
        self._repository = TemplateRepository(settings.resolved_templates_dir, self._db_service)
        self._checklist_source = ChecklistSource(settings.checklist_file)
        self._preset_source = PresetSource(settings.preset_file)

        self._controller = EditorController(
            repository=self._repository,
            settings=settings,
            asset_store=AssetStore(settings.resolved_assets_dir),
        )

        self._initialized = True
        logger.info("Application initialized")

    def open_initial_template(self) -> None:
        """Open the last edited template, else the default, else a new one."""
        repository = self._repository
        controller = self._controller

        last_id = self._config.get_preference("last_template_id")
        if last_id and repository.exists(last_id) and controller.open_template(last_id):
            return

        default = repository.get_default_template()
        if default is not None:
            controller.load_document(default)
            return

        controller.new_template(DEFAULT_TEMPLATE_NAME)

    def show_main_window(self) -> None:
        """Show the editor window."""
        from checkform.ui.editor_window import EditorWindow, center_on_screen

        if self._main_window is None:
            self._main_window = EditorWindow(
                self._controller,
                config=self._config,
                checklist_source=self._checklist_source,
                preset_source=self._preset_source,
            )
            center_on_screen(self._main_window)
            try:
                self.open_initial_template()
            except AppException as e:
                logger.error(f"Could not open a template at startup: {e}")

        self._main_window.show()
        logger.info("Editor window shown")

    def cleanup(self) -> None:
        """Release resources."""
        logger.info("Cleaning up...")

        if self._controller is not None and self._controller.saver is not None:
            self._controller.saver.wait_for_all()

        if self._db_service:
            self._db_service.close()
            logger.debug("Database connection closed")

        logger.info("Cleanup finished")
