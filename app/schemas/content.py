"""
Field records for content, translations and SEO metadata.

Create and patch records declare exactly the fields a caller may set;
anything else is rejected instead of being silently assigned.
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.content import ContentKind, ContentStatus
from app.models.content_translation import TranslationStatus
from app.utils.slugify import slugify

LOCALE_PATTERN = re.compile(r"^[A-Za-z]{2,3}(-[A-Za-z0-9]{2,8})*$")


def _check_locale(value: str) -> str:
    if not LOCALE_PATTERN.match(value):
        raise ValueError(f"'{value}' is not a valid BCP 47 locale")
    return value


# ── Write records ──────────────────────────────────────────────────────────────


class ContentCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    author_id: int = Field(..., description="The ID of the user who authors the content.")
    kind: ContentKind = Field(ContentKind.POST, description="Whether the content is a page or a post.")
    status: ContentStatus = Field(ContentStatus.DRAFT, title="Content Status")


class TranslationCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    locale: str = Field(..., max_length=10, description="BCP 47 locale, e.g. 'en' or 'fr-CA'.")
    slug: str | None = Field(None, max_length=255, description="Generated from the title when omitted.")
    title: str | None = Field(None, max_length=255)
    body: str = ""
    description: str | None = None
    status: TranslationStatus = TranslationStatus.draft

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, value: str) -> str:
        return _check_locale(value)

    @model_validator(mode="after")
    def fill_slug(self) -> "TranslationCreate":
        if not self.slug and self.title:
            self.slug = slugify(self.title)
        if not self.slug:
            raise ValueError("slug is required when no title is given to derive it from")
        return self


class TranslationUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    slug: str | None = Field(None, min_length=1, max_length=255)
    title: str | None = Field(None, max_length=255)
    body: str | None = None
    description: str | None = None
    status: TranslationStatus | None = None


class SeoMetaCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    meta_title: str | None = Field(None, max_length=255)
    meta_description: str | None = None
    meta_keywords: str | None = None
    canonical_url: str | None = Field(None, max_length=2048)
    robots: str | None = Field(None, max_length=100)


class SeoMetaUpdate(SeoMetaCreate):
    """Same fields as SeoMetaCreate; only the ones explicitly set are applied."""


class ContentFilters(BaseModel):
    model_config = ConfigDict(extra="forbid")

    locale: str | None = None
    status: ContentStatus | None = None
    kind: ContentKind | None = None
    author_id: int | None = None


# ── Read records ───────────────────────────────────────────────────────────────


class SeoMetaRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content_translation_id: int
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: str | None = None
    canonical_url: str | None = None
    robots: str | None = None


class TranslationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content_id: int
    locale: str
    slug: str
    title: str | None = None
    body: str
    description: str | None = None
    status: TranslationStatus
    is_rtl: bool
    created_at: datetime
    updated_at: datetime
    seo: SeoMetaRead | None = None


class TranslationListItem(TranslationRead):
    """A translation flattened out of its Content, carrying the parent's status."""

    content_status: ContentStatus


class ContentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: ContentKind
    status: ContentStatus
    author_id: int
    created_at: datetime
    updated_at: datetime
    translations: list[TranslationRead] = []


class ContentPage(BaseModel):
    items: list[TranslationListItem]
    total: int = Field(..., description="Number of content items matching the filters.")
    page: int
    page_size: int
    pages: int
    has_next: bool
    has_previous: bool


class DeletionResult(BaseModel):
    message: str
    content_id: int
    locale: str | None = None
