"""SQLAlchemy models mirroring the MySQL schema."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from voicebridge.db.base import Base
from voicebridge.utils.datetime import utc_now

LANGUAGE_CODE = String(8)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("telegram_id", name="uq_users_telegram_id"),)

    telegram_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    username: Mapped[str | None] = mapped_column(String(32))
    first_name: Mapped[str | None] = mapped_column(String(64))
    last_name: Mapped[str | None] = mapped_column(String(64))
    language_code: Mapped[str | None] = mapped_column(String(8))

    primary_language: Mapped[str] = mapped_column(LANGUAGE_CODE, default="uk", nullable=False)
    secondary_language: Mapped[str] = mapped_column(LANGUAGE_CODE, default="en", nullable=False)

    tier: Mapped[str] = mapped_column(
        Enum("free", "premium", name="user_tier"), default="free", nullable=False
    )
    tier_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    daily_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    monthly_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_used: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    last_daily_reset: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_monthly_reset: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    total_translations: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Voice session; expiry is evaluated on read.
    voice_selected_language: Mapped[str | None] = mapped_column(LANGUAGE_CODE)
    voice_awaiting_audio: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    voice_pending_file_id: Mapped[str | None] = mapped_column(String(255))
    voice_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    last_seen_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    translations: Mapped[list["Translation"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


class Translation(Base):
    __tablename__ = "translations"
    __table_args__ = (Index("ix_translations_user_created", "user_id", "created_at"),)

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    audio_file_id: Mapped[str | None] = mapped_column(String(255))
    original_text: Mapped[str] = mapped_column(Text, nullable=False)
    source_language: Mapped[str] = mapped_column(LANGUAGE_CODE, nullable=False)
    translated_text: Mapped[str] = mapped_column(Text, nullable=False)
    target_language: Mapped[str] = mapped_column(LANGUAGE_CODE, nullable=False)
    back_translation: Mapped[str | None] = mapped_column(Text)
    audio_detection: Mapped[str | None] = mapped_column(String(32))
    text_detection: Mapped[str | None] = mapped_column(String(32))
    detection_method: Mapped[str] = mapped_column(
        Enum("audio", "audio_and_text", "manual", name="detection_method"), nullable=False
    )
    tokens_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    premium: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    low_confidence: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)

    user: Mapped[User] = relationship(back_populates="translations")


__all__ = ["Translation", "User"]
