"""Database ORM models."""

from datetime import datetime

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class TemplateVersionRecord(Base):
    """Template version snapshot table."""

    __tablename__ = "template_versions"
    __table_args__ = (UniqueConstraint("template_id", "version", name="uq_template_version"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    template_id = Column(String(64), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    name = Column(String(200))
    sections_json = Column(Text, nullable=False)
    settings_json = Column(Text, nullable=False, default="{}")
    created_by = Column(String(100))
    created_at = Column(DateTime, default=datetime.now)

    def __repr__(self) -> str:
        return f"<TemplateVersionRecord(template_id={self.template_id}, version={self.version})>"
