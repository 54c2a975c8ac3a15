from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.database import Base, UTCDateTime, utcnow


class SeoMeta(Base):
    """Search metadata attached to exactly one ContentTranslation."""

    __tablename__ = "seo_meta"

    id = Column(Integer, primary_key=True, index=True)
    content_translation_id = Column(
        Integer,
        ForeignKey("content_translations.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    meta_title = Column(String(255), nullable=True)
    meta_description = Column(Text, nullable=True)
    meta_keywords = Column(Text, nullable=True)
    canonical_url = Column(String(2048), nullable=True)
    robots = Column(String(100), nullable=True)  # e.g. "index, follow"
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    translation = relationship("ContentTranslation", back_populates="seo")
