import enum

from sqlalchemy import Column, Enum, ForeignKey, Index, Integer
from sqlalchemy.orm import relationship

from app.database import Base, UTCDateTime, utcnow


class ContentKind(str, enum.Enum):
    PAGE = "page"
    POST = "post"


class ContentStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Content(Base):
    """Locale-independent container (a page or a post) for its translations."""

    __tablename__ = "content"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    kind = Column(Enum(ContentKind, name="content_kind"), default=ContentKind.POST, nullable=False)
    status = Column(Enum(ContentStatus, name="content_status"), default=ContentStatus.DRAFT, nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(
        UTCDateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    # Relationships
    author = relationship("User", back_populates="contents")
    translations = relationship(
        "ContentTranslation",
        back_populates="content",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ContentTranslation.locale",
    )

    __table_args__ = (
        Index("idx_content_status", "status"),
        Index("idx_content_kind", "kind"),
    )
