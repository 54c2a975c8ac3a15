"""
Content Service

Transactional persistence of content items (pages and posts) together
with their per-locale translations and optional SEO metadata.

Every operation runs inside ``transaction()``: a content item and its
dependent rows are created, changed or removed as one unit, and store
failures come back as CMS errors after the rollback.

Functions:
    create_content             — content + first translation (+ SEO)
    create_translation         — add a locale to existing content (+ SEO)
    update_translation         — partial update of a translation (+ SEO merge)
    publish_translation        — set a translation's status to published
    set_content_status         — change the parent content's status
    delete_content             — content with its translations and SEO
    delete_translation         — one locale of a content item
    get_content                — content with all translations
    get_content_by_slug        — content owning a translation slug
    get_translation            — one (content_id, locale) translation with SEO
    get_content_in_locale      — published translation with locale fallback
    list_translations          — all translations of a content item
    list_languages_for_content — locale codes with a translation
    list_content               — paginated, flattened translation listing
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from enum import Enum
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002
from sqlalchemy.orm import selectinload

from app.config import settings
from app.database import transaction, utcnow
from app.exceptions import (
    ConflictError,
    ContentNotFoundError,
    DuplicateResourceError,
    TranslationNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from app.i18n.locale import is_rtl_locale, locale_fallback_chain
from app.models.content import Content, ContentStatus
from app.models.content_translation import ContentTranslation, TranslationStatus
from app.models.seo_meta import SeoMeta
from app.models.user import User
from app.schemas.content import (
    ContentCreate,
    ContentFilters,
    ContentPage,
    ContentRead,
    DeletionResult,
    SeoMetaCreate,
    SeoMetaUpdate,
    TranslationCreate,
    TranslationListItem,
    TranslationRead,
    TranslationUpdate,
)
from app.utils.validation import coerce

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]

# Translation columns that may never be set to NULL through a patch
_REQUIRED_TRANSLATION_FIELDS = ("slug", "body", "status")


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


# ── Store helpers (run inside an open transaction) ────────────────────────────


def _translation_query(content_id: int, locale: str):
    return (
        select(ContentTranslation)
        .options(selectinload(ContentTranslation.seo))
        .where(
            ContentTranslation.content_id == content_id,
            ContentTranslation.locale == locale,
        )
        .execution_options(populate_existing=True)
    )


def _content_query(content_id: int):
    return (
        select(Content)
        .options(selectinload(Content.translations).selectinload(ContentTranslation.seo))
        .where(Content.id == content_id)
        .execution_options(populate_existing=True)
    )


async def _content_exists(db: AsyncSession, content_id: int) -> bool:
    return await db.scalar(select(Content.id).where(Content.id == content_id)) is not None


async def _find_translation(db: AsyncSession, content_id: int, locale: str) -> ContentTranslation | None:
    result = await db.execute(_translation_query(content_id, locale))
    return result.scalars().first()


async def _get_translation_or_raise(db: AsyncSession, content_id: int, locale: str) -> ContentTranslation:
    translation = await _find_translation(db, content_id, locale)
    if translation is None:
        raise TranslationNotFoundError(content_id, locale)
    return translation


async def _get_content_or_raise(db: AsyncSession, content_id: int) -> Content:
    result = await db.execute(_content_query(content_id))
    content = result.scalars().first()
    if content is None:
        raise ContentNotFoundError(content_id)
    return content


async def _insert_content(db: AsyncSession, data: ContentCreate) -> Content:
    content = Content(author_id=data.author_id, kind=data.kind, status=data.status)
    db.add(content)
    await db.flush()
    return content


async def _insert_translation(db: AsyncSession, content_id: int, data: TranslationCreate) -> ContentTranslation:
    translation = ContentTranslation(
        content_id=content_id,
        locale=data.locale,
        slug=data.slug,
        title=data.title,
        body=data.body,
        description=data.description,
        status=data.status.value,
        is_rtl=is_rtl_locale(data.locale),
    )
    translation.seo = None
    db.add(translation)
    await db.flush()
    return translation


async def _insert_seo(db: AsyncSession, translation: ContentTranslation, data: SeoMetaCreate) -> SeoMeta:
    seo = SeoMeta(content_translation_id=translation.id, **data.model_dump())
    translation.seo = seo
    db.add(seo)
    await db.flush()
    return seo


# ── Mutations ─────────────────────────────────────────────────────────────────


async def create_content(
    db: AsyncSession,
    content: ContentCreate | Record,
    translation: TranslationCreate | Record,
    seo: SeoMetaCreate | Record | None = None,
) -> TranslationRead:
    """
    Create a content item with its first translation and optional SEO metadata.

    The three inserts share one transaction; if any of them fails none of
    the rows survive.

    Args:
        db: The database session.
        content: Fields of the new content item (author, kind, status).
        translation: Fields of the first translation; ``locale`` is required.
        seo: Optional SEO metadata for that translation.

    Returns:
        TranslationRead: The persisted translation with ``seo`` attached.

    Raises:
        ValidationError: The input records are malformed.
        UserNotFoundError: The author does not exist.
        StoreUnavailableError: The transaction could not be committed.
    """
    content_data = coerce(ContentCreate, content)
    translation_data = coerce(TranslationCreate, translation)
    seo_data = coerce(SeoMetaCreate, seo) if seo is not None else None

    async with transaction(db, "create_content"):
        author_id = await db.scalar(select(User.id).where(User.id == content_data.author_id))
        if author_id is None:
            raise UserNotFoundError(content_data.author_id)

        new_content = await _insert_content(db, content_data)
        new_translation = await _insert_translation(db, new_content.id, translation_data)
        if seo_data is not None:
            await _insert_seo(db, new_translation, seo_data)

    logger.info(
        "Content created: content_id=%d locale=%s",
        new_content.id,
        new_translation.locale,
        extra={"content_id": new_content.id, "locale": new_translation.locale},
    )
    return TranslationRead.model_validate(new_translation)


async def create_translation(
    db: AsyncSession,
    content_id: int,
    translation: TranslationCreate | Record,
    seo: SeoMetaCreate | Record | None = None,
) -> TranslationRead:
    """Add a translation (and optional SEO metadata) to an existing content item.

    Raises:
        ContentNotFoundError: The content item does not exist.
        DuplicateResourceError: The content already has a translation in that locale.
    """
    translation_data = coerce(TranslationCreate, translation)
    seo_data = coerce(SeoMetaCreate, seo) if seo is not None else None

    async with transaction(db, "create_translation"):
        if not await _content_exists(db, content_id):
            raise ContentNotFoundError(content_id)
        if await _find_translation(db, content_id, translation_data.locale) is not None:
            raise DuplicateResourceError("ContentTranslation", "locale", translation_data.locale)

        new_translation = await _insert_translation(db, content_id, translation_data)
        if seo_data is not None:
            await _insert_seo(db, new_translation, seo_data)

    logger.info(
        "Translation created: content_id=%d locale=%s",
        content_id,
        new_translation.locale,
        extra={"content_id": content_id, "locale": new_translation.locale},
    )
    return TranslationRead.model_validate(new_translation)


async def update_translation(
    db: AsyncSession,
    content_id: int,
    locale: str,
    patch: TranslationUpdate | Record,
    seo_patch: SeoMetaUpdate | Record | None = None,
) -> TranslationRead:
    """
    Apply a partial update to a translation and, if it has one, its SEO metadata.

    Only the fields present in ``patch`` change. ``seo_patch`` is merged into
    an existing SeoMeta row; when the translation has none, it is ignored
    rather than used to create one.

    Raises:
        TranslationNotFoundError: No translation exists for (content_id, locale).
        ValidationError: The patch sets a required field to null.
    """
    patch_data = coerce(TranslationUpdate, patch)
    seo_patch_data = coerce(SeoMetaUpdate, seo_patch) if seo_patch is not None else None

    changes = patch_data.model_dump(exclude_unset=True)
    for field in _REQUIRED_TRANSLATION_FIELDS:
        if field in changes and changes[field] is None:
            raise ValidationError(f"'{field}' cannot be null", field=field)

    async with transaction(db, "update_translation"):
        existing = await _get_translation_or_raise(db, content_id, locale)

        if changes:
            for field, value in changes.items():
                setattr(existing, field, _column_value(value))
            existing.updated_at = utcnow()

        if seo_patch_data is not None and existing.seo is not None:
            seo_changes = seo_patch_data.model_dump(exclude_unset=True)
            if seo_changes:
                for field, value in seo_changes.items():
                    setattr(existing.seo, field, value)
                existing.seo.updated_at = utcnow()

    logger.info(
        "Translation updated: content_id=%d locale=%s",
        content_id,
        locale,
        extra={"content_id": content_id, "locale": locale},
    )
    return TranslationRead.model_validate(existing)


async def publish_translation(db: AsyncSession, content_id: int, locale: str) -> TranslationRead:
    """Set translation status to ``published``."""
    async with transaction(db, "publish_translation"):
        existing = await _get_translation_or_raise(db, content_id, locale)
        existing.status = TranslationStatus.published.value
        existing.updated_at = utcnow()

    logger.info("Translation published: content_id=%d locale=%s", content_id, locale)
    return TranslationRead.model_validate(existing)


async def set_content_status(db: AsyncSession, content_id: int, status: ContentStatus | str) -> ContentRead:
    """Change a content item's status.

    A content item without translations cannot be published.
    """
    try:
        new_status = ContentStatus(status)
    except ValueError as exc:
        raise ValidationError(f"Invalid content status: {status}", field="status") from exc

    async with transaction(db, "set_content_status"):
        content = await _get_content_or_raise(db, content_id)
        if new_status == ContentStatus.PUBLISHED and not content.translations:
            raise ValidationError(
                "Content needs at least one translation before it can be published",
                field="status",
                details={"content_id": content_id},
            )
        content.status = new_status
        content.updated_at = utcnow()

    logger.info("Content status changed: content_id=%d status=%s", content_id, new_status.value)
    return ContentRead.model_validate(content)


async def delete_content(db: AsyncSession, content_id: int) -> DeletionResult:
    """Delete a content item together with its translations and their SEO metadata."""
    async with transaction(db, "delete_content"):
        content = await _get_content_or_raise(db, content_id)
        await db.delete(content)

    logger.info("Content deleted: content_id=%d", content_id, extra={"content_id": content_id})
    return DeletionResult(message="Content deleted", content_id=content_id)


async def delete_translation(db: AsyncSession, content_id: int, locale: str) -> DeletionResult:
    """Delete one translation of a content item.

    Raises:
        TranslationNotFoundError: No translation exists for (content_id, locale).
        ConflictError: It is the last translation of a published content item.
    """
    async with transaction(db, "delete_translation"):
        existing = await _get_translation_or_raise(db, content_id, locale)

        parent_status = await db.scalar(select(Content.status).where(Content.id == content_id))
        if parent_status == ContentStatus.PUBLISHED:
            remaining = await db.scalar(
                select(func.count()).select_from(ContentTranslation).where(ContentTranslation.content_id == content_id)
            )
            if remaining <= 1:
                raise ConflictError(
                    "A published content item must keep at least one translation",
                    details={"content_id": content_id, "locale": locale},
                )

        await db.delete(existing)

    logger.info(
        "Translation deleted: content_id=%d locale=%s",
        content_id,
        locale,
        extra={"content_id": content_id, "locale": locale},
    )
    return DeletionResult(message="Content translation deleted", content_id=content_id, locale=locale)


# ── Reads ─────────────────────────────────────────────────────────────────────


async def get_content(db: AsyncSession, content_id: int) -> ContentRead:
    """Fetch a content item with all of its translations."""
    async with transaction(db, "get_content"):
        content = await _get_content_or_raise(db, content_id)
    return ContentRead.model_validate(content)


async def get_content_by_slug(db: AsyncSession, slug: str, locale: str | None = None) -> ContentRead:
    """Fetch the content item owning a translation with ``slug``.

    Slugs are unique per locale only; without ``locale`` the content with
    the lowest id wins.
    """
    criteria = ContentTranslation.slug == slug
    if locale:
        criteria = criteria & (ContentTranslation.locale == locale)

    query = (
        select(Content)
        .options(selectinload(Content.translations).selectinload(ContentTranslation.seo))
        .where(Content.translations.any(criteria))
        .order_by(Content.id)
        .limit(1)
        .execution_options(populate_existing=True)
    )
    async with transaction(db, "get_content_by_slug"):
        content = (await db.execute(query)).scalars().first()
        if content is None:
            raise ContentNotFoundError(slug)
    return ContentRead.model_validate(content)


async def get_translation(db: AsyncSession, content_id: int, locale: str) -> TranslationRead:
    """Fetch a translation by (content_id, locale) with its SEO metadata."""
    async with transaction(db, "get_translation"):
        existing = await _get_translation_or_raise(db, content_id, locale)
    return TranslationRead.model_validate(existing)


async def get_content_in_locale(
    db: AsyncSession,
    content_id: int,
    locale: str,
    fallback_locale: str | None = None,
) -> TranslationRead:
    """Fetch a published translation with locale-fallback logic.

    Tries in order:
    1. Exact locale match (e.g. "fr-CA")
    2. Base language match (e.g. "fr" when "fr-CA" not found)
    3. Fallback locale (``settings.default_locale`` unless given)
    """
    chain = locale_fallback_chain(locale, fallback_locale or settings.default_locale)

    async with transaction(db, "get_content_in_locale"):
        result = await db.execute(
            select(ContentTranslation)
            .options(selectinload(ContentTranslation.seo))
            .where(
                ContentTranslation.content_id == content_id,
                ContentTranslation.locale.in_(chain),
                ContentTranslation.status == TranslationStatus.published.value,
            )
        )
        translations = {t.locale: t for t in result.scalars().all()}

    for candidate in chain:
        if candidate in translations:
            return TranslationRead.model_validate(translations[candidate])
    raise TranslationNotFoundError(content_id, locale)


async def list_translations(db: AsyncSession, content_id: int) -> list[TranslationRead]:
    """Return all translations for a given content item, ordered by locale."""
    async with transaction(db, "list_translations"):
        content = await _get_content_or_raise(db, content_id)
    return [TranslationRead.model_validate(t) for t in content.translations]


async def list_languages_for_content(db: AsyncSession, content_id: int) -> list[str]:
    """Return locale codes that have a translation for this content item."""
    async with transaction(db, "list_languages_for_content"):
        result = await db.execute(
            select(ContentTranslation.locale)
            .where(ContentTranslation.content_id == content_id)
            .order_by(ContentTranslation.locale)
        )
        locales = list(result.scalars().all())
    return locales


async def list_content(
    db: AsyncSession,
    filters: ContentFilters | Record | None = None,
    page: int = 1,
    page_size: int | None = None,
) -> ContentPage:
    """
    List translations page by page.

    Pagination applies to content items (ordered by id). The translations of
    each item on the page, restricted to ``filters.locale`` when given, are
    flattened into ``items`` and annotated with the item's status.

    Args:
        db: The database session.
        filters: Optional locale, status, kind and author_id filters.
        page: 1-based page number.
        page_size: Content items per page; defaults to ``settings.default_page_size``.

    Returns:
        ContentPage: Items plus the metadata needed to compute total pages.

    Raises:
        ValidationError: The page bounds are out of range.
    """
    filter_data = coerce(ContentFilters, filters if filters is not None else {})
    if page_size is None:
        page_size = settings.default_page_size
    if page < 1:
        raise ValidationError("page must be greater than or equal to 1", field="page")
    if page_size < 1 or page_size > settings.max_page_size:
        raise ValidationError(
            f"page_size must be between 1 and {settings.max_page_size}",
            field="page_size",
        )

    query = select(Content)
    count_query = select(func.count()).select_from(Content)
    if filter_data.status:
        query = query.where(Content.status == filter_data.status)
        count_query = count_query.where(Content.status == filter_data.status)
    if filter_data.kind:
        query = query.where(Content.kind == filter_data.kind)
        count_query = count_query.where(Content.kind == filter_data.kind)
    if filter_data.author_id is not None:
        query = query.where(Content.author_id == filter_data.author_id)
        count_query = count_query.where(Content.author_id == filter_data.author_id)

    if filter_data.locale:
        translations_loader = selectinload(Content.translations.and_(ContentTranslation.locale == filter_data.locale))
    else:
        translations_loader = selectinload(Content.translations)

    query = (
        query.options(translations_loader.selectinload(ContentTranslation.seo))
        .order_by(Content.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
        .execution_options(populate_existing=True)
    )

    async with transaction(db, "list_content"):
        total = await db.scalar(count_query)
        contents = (await db.execute(query)).scalars().all()
        items = [
            TranslationListItem(
                **TranslationRead.model_validate(translation).model_dump(),
                content_status=content.status,
            )
            for content in contents
            for translation in content.translations
        ]

    pages = math.ceil(total / page_size) if total else 0
    return ContentPage(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        pages=pages,
        has_next=page < pages,
        has_previous=page > 1,
    )
