"""SQLAlchemy models for face recognition service."""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class FaceRecord(Base):
    """Enrolled face with its serialized descriptor."""

    __tablename__ = "faces"
    __table_args__ = (
        Index("idx_faces_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    descriptor: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="JSON array of the face descriptor"
    )
    image_path: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow
    )

    logs: Mapped[list["RecognitionLog"]] = relationship(
        back_populates="face",
        passive_deletes=True
    )


class RecognitionLog(Base):
    """Successful recognition event.

    Logs reference faces without owning them: deleting a face keeps its logs
    and nulls ``face_id``.
    """

    __tablename__ = "recognition_logs"
    __table_args__ = (
        Index("idx_logs_face_id", "face_id"),
        Index("idx_logs_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    face_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("faces.id", ondelete="SET NULL"),
        nullable=True
    )
    confidence: Mapped[float] = mapped_column(Float)
    image_path: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow
    )

    face: Mapped[Optional[FaceRecord]] = relationship(back_populates="logs")
