"""
ContentTranslation model

The locale-specific half of a content item: slug, title, body and
description for one (content, locale) pair, plus at most one SeoMeta row.
Rows are owned by their Content and removed with it, in the ORM and by
the foreign key.

A translation moves draft -> in_review -> published on its own; the
parent Content.status is tracked separately.
"""

from __future__ import annotations

import enum

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.database import Base, UTCDateTime, utcnow


class TranslationStatus(str, enum.Enum):
    """Review state of a single translation."""

    draft = "draft"
    in_review = "in_review"
    published = "published"


class ContentTranslation(Base):
    """One locale of a Content item."""

    __tablename__ = "content_translations"

    id = Column(Integer, primary_key=True, index=True)
    content_id = Column(
        Integer,
        ForeignKey("content.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    locale = Column(String(10), nullable=False, index=True)  # BCP 47 e.g. "en", "fr-CA"

    # ── Translatable fields ───────────────────────────────────────────────────
    slug = Column(String, nullable=False)  # locale-specific slug (no global uniqueness)
    title = Column(String, nullable=True)
    body = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=True)

    # ── Translation lifecycle ─────────────────────────────────────────────────
    status = Column(
        String(20),
        nullable=False,
        default=TranslationStatus.draft.value,
    )
    is_rtl = Column(Boolean, nullable=False, default=False)

    created_at = Column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
    )
    updated_at = Column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    # String-referenced to avoid circular imports with content.py
    content = relationship("Content", back_populates="translations")
    seo = relationship(
        "SeoMeta",
        back_populates="translation",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        # One translation per (content, locale) pair
        UniqueConstraint("content_id", "locale", name="uq_content_translation_locale"),
        Index("idx_ct_locale_status", "locale", "status"),
        Index("idx_ct_slug", "locale", "slug"),
    )
