"""Database service module."""

from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from checkform.models.database import Base
from checkform.utils.constants import DATABASE_PATH
from checkform.utils.logger import setup_logger

logger = setup_logger(__name__)


class DatabaseService:
    """Database service.

    Owns the SQLite engine and session factory of the version store.

    Attributes:
        db_path: Database file path
        engine: SQLAlchemy engine
    """

    def __init__(self, db_path: Optional[Path] = None) -> None:
        """Initialize the database service.

        Args:
            db_path: Database file path, configured path by default
        """
        self.db_path = Path(db_path or DATABASE_PATH)
        self._ensure_directory()

        # Saves may run on a worker thread
        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
            echo=False,
        )

        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

        logger.debug(f"Database service ready: {self.db_path}")

    def _ensure_directory(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def init_db(self) -> None:
        """Create all tables."""
        Base.metadata.create_all(self.engine)
        logger.info("Database tables initialized")

    def get_session(self) -> Session:
        """Get a database session.

        Returns:
            SQLAlchemy Session
        """
        return self.SessionLocal()

    def close(self) -> None:
        """Dispose of the engine."""
        self.engine.dispose()
        logger.debug("Database connection closed")

    def __enter__(self) -> "DatabaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
