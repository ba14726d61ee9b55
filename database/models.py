"""
SQLAlchemy database models for Room Visualizer generation history.

One row per successful generation; rows are never updated.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Text, Uuid
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all database models."""

    pass


class HistoryRecord(Base):
    """
    Database model for a completed room generation.

    Stores the material that was requested, the optimized prompt the vision
    provider wrote for it, and the generated image as a PNG data URI.
    """

    __tablename__ = "history_records"

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    material: Mapped[str] = mapped_column(String(255), nullable=False)
    optimized_prompt: Mapped[str] = mapped_column(Text, nullable=False)

    # Generated image, inlined as data:image/png;base64,...
    image_data_uri: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    def __repr__(self) -> str:
        """String representation of a history record."""
        return f"<HistoryRecord(id={self.id}, material={self.material!r}, created_at={self.created_at})>"

    def to_dict(self) -> dict:
        """Convert model to the /history JSON representation."""
        return {
            "id": str(self.id),
            "material": self.material,
            "optimizedPrompt": self.optimized_prompt,
            "imageDataURI": self.image_data_uri,
            "createdAt": self.created_at.isoformat(),
        }
