"""
Tests for content service

Tests transactional create/update/delete of content with translations and
SEO metadata, locale lookups and the paginated listing.
"""

from datetime import timedelta

import pytest
from fastapi import status
from sqlalchemy import delete, func
from sqlalchemy.exc import OperationalError
from sqlalchemy.future import select

from app.exceptions import (
    ConflictError,
    ContentNotFoundError,
    DuplicateResourceError,
    ErrorCode,
    ServiceError,
    StoreUnavailableError,
    TranslationNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from app.models.content import Content, ContentStatus
from app.models.content_translation import ContentTranslation
from app.models.seo_meta import SeoMeta
from app.models.user import Role
from app.schemas.content import ContentCreate, TranslationCreate, TranslationUpdate
from app.services import content_service


async def _count(db, model, *criteria) -> int:
    query = select(func.count()).select_from(model)
    for criterion in criteria:
        query = query.where(criterion)
    return await db.scalar(query)


async def _create_hello(db, author_id: int, **content_fields):
    return await content_service.create_content(
        db,
        {"author_id": author_id, **content_fields},
        {"locale": "en", "slug": "hello", "title": "Hello", "body": "Hello body"},
        {"meta_title": "Hello | Site"},
    )


class TestCreateContent:
    """Test create_content function"""

    async def test_create_content_returns_translation_with_seo(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)

        assert created.id is not None
        assert created.locale == "en"
        assert created.slug == "hello"
        assert created.title == "Hello"
        assert created.seo is not None
        assert created.seo.meta_title == "Hello | Site"
        assert created.seo.content_translation_id == created.id

        fetched = await content_service.get_translation(test_db, created.content_id, "en")
        assert fetched == created
        assert fetched.created_at.tzinfo is not None
        assert fetched.created_at.utcoffset() == timedelta(0)

    async def test_create_content_with_schema_instances(self, test_db, test_editor):
        created = await content_service.create_content(
            test_db,
            ContentCreate(author_id=test_editor.id),
            TranslationCreate(locale="fr", slug="bonjour", title="Bonjour"),
        )

        assert created.locale == "fr"
        assert created.seo is None
        assert await _count(test_db, SeoMeta) == 0

    async def test_create_content_derives_slug_from_title(self, test_db, test_editor):
        created = await content_service.create_content(
            test_db,
            {"author_id": test_editor.id},
            {"locale": "de", "title": "Grüße aus Köln"},
        )

        assert created.slug == "grusse-aus-koln"

    async def test_create_content_marks_rtl_locale(self, test_db, test_editor):
        created = await content_service.create_content(
            test_db,
            {"author_id": test_editor.id},
            {"locale": "ar", "slug": "marhaba", "title": "Marhaba"},
        )

        assert created.is_rtl is True

    async def test_create_content_without_locale_fails(self, test_db, test_editor):
        with pytest.raises(ValidationError) as exc_info:
            await content_service.create_content(
                test_db,
                {"author_id": test_editor.id},
                {"slug": "hello", "title": "Hello"},
            )

        assert exc_info.value.details["field"] == "locale"
        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST
        assert await _count(test_db, Content) == 0

    async def test_create_content_rejects_unknown_fields(self, test_db, test_editor):
        with pytest.raises(ValidationError):
            await content_service.create_content(
                test_db,
                {"author_id": test_editor.id, "id": 42},
                {"locale": "en", "slug": "hello"},
            )

    async def test_create_content_unknown_author_fails(self, test_db):
        with pytest.raises(UserNotFoundError):
            await content_service.create_content(test_db, {"author_id": 9999}, {"locale": "en", "slug": "hello"})

        assert await _count(test_db, Content) == 0

    async def test_store_fault_after_content_insert_leaves_no_rows(self, test_db, test_editor, monkeypatch):
        """A failure between the content and translation inserts rolls everything back"""

        async def failing_insert(db, content_id, data):
            raise OperationalError("INSERT INTO content_translations", {}, Exception("connection lost"))

        monkeypatch.setattr(content_service, "_insert_translation", failing_insert)

        with pytest.raises(StoreUnavailableError) as exc_info:
            await _create_hello(test_db, test_editor.id)

        assert exc_info.value.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert exc_info.value.details == {"operation": "create_content"}
        assert "connection lost" not in exc_info.value.message
        assert await _count(test_db, Content) == 0
        assert await _count(test_db, ContentTranslation) == 0

    async def test_unexpected_fault_becomes_service_error(self, test_db, test_editor, monkeypatch):
        async def failing_seo_insert(db, translation, data):
            raise RuntimeError("boom")

        monkeypatch.setattr(content_service, "_insert_seo", failing_seo_insert)

        with pytest.raises(ServiceError) as exc_info:
            await _create_hello(test_db, test_editor.id)

        assert exc_info.value.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert exc_info.value.error_code == ErrorCode.INTERNAL_ERROR
        assert exc_info.value.details == {"operation": "create_content"}
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert "boom" not in exc_info.value.message

        assert await _count(test_db, Content) == 0
        assert await _count(test_db, ContentTranslation) == 0
        assert await _count(test_db, SeoMeta) == 0

    async def test_unflushed_caller_changes_are_not_committed(self, test_db, session_factory, test_editor):
        test_db.add(Role(name="stray", permissions=[]))

        with pytest.raises(ServiceError) as exc_info:
            await _create_hello(test_db, test_editor.id)

        assert exc_info.value.details == {"operation": "create_content"}
        async with session_factory() as other:
            assert await other.scalar(select(Role).where(Role.name == "stray")) is None
            assert await _count(other, Content) == 0

        test_db.expunge_all()
        created = await _create_hello(test_db, test_editor.id)
        assert created.slug == "hello"


class TestCreateTranslation:
    """Test create_translation function"""

    async def test_create_translation_for_existing_content(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)

        french = await content_service.create_translation(
            test_db,
            created.content_id,
            {"locale": "fr", "slug": "bonjour", "title": "Bonjour"},
            {"meta_title": "Bonjour | Site"},
        )

        assert french.content_id == created.content_id
        assert french.locale == "fr"
        assert french.seo.meta_title == "Bonjour | Site"

    async def test_duplicate_locale_conflicts(self, test_db, test_editor):
        created = await content_service.create_content(
            test_db, {"author_id": test_editor.id}, {"locale": "de", "slug": "hallo"}
        )
        content_id = created.content_id

        first = await content_service.create_translation(test_db, content_id, {"locale": "en", "slug": "dup"})
        assert first.locale == "en"

        with pytest.raises(DuplicateResourceError) as exc_info:
            await content_service.create_translation(test_db, content_id, {"locale": "en", "slug": "dup"})

        assert exc_info.value.status_code == status.HTTP_409_CONFLICT
        assert (
            await _count(
                test_db,
                ContentTranslation,
                ContentTranslation.content_id == content_id,
                ContentTranslation.locale == "en",
            )
            == 1
        )

    async def test_racing_duplicate_locale_conflicts(self, test_db, test_editor, monkeypatch):
        """A duplicate that slips past the lookup is caught by the unique constraint"""
        created = await _create_hello(test_db, test_editor.id)

        async def missed_lookup(db, content_id, locale):
            return None

        monkeypatch.setattr(content_service, "_find_translation", missed_lookup)

        with pytest.raises(ConflictError) as exc_info:
            await content_service.create_translation(
                test_db, created.content_id, {"locale": "en", "slug": "hello-again"}, {"meta_title": "x"}
            )

        assert exc_info.value.status_code == status.HTTP_409_CONFLICT
        assert exc_info.value.details == {"operation": "create_translation"}
        assert await _count(test_db, ContentTranslation) == 1
        assert await _count(test_db, SeoMeta) == 1

    async def test_same_locale_allowed_on_different_content(self, test_db, test_editor):
        first = await _create_hello(test_db, test_editor.id)
        second = await content_service.create_content(
            test_db, {"author_id": test_editor.id}, {"locale": "en", "slug": "hello"}
        )

        assert first.content_id != second.content_id

    async def test_create_translation_for_missing_content_fails(self, test_db):
        with pytest.raises(ContentNotFoundError) as exc_info:
            await content_service.create_translation(test_db, 9999, {"locale": "fr", "slug": "bonjour"})

        assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND
        assert await _count(test_db, ContentTranslation) == 0

    async def test_seo_failure_rolls_back_translation(self, test_db, test_editor, monkeypatch):
        created = await _create_hello(test_db, test_editor.id)

        async def failing_seo_insert(db, translation, data):
            raise OperationalError("INSERT INTO seo_meta", {}, Exception("server closed the connection"))

        monkeypatch.setattr(content_service, "_insert_seo", failing_seo_insert)

        with pytest.raises(StoreUnavailableError):
            await content_service.create_translation(
                test_db, created.content_id, {"locale": "fr", "slug": "bonjour"}, {"meta_title": "x"}
            )

        assert await content_service.list_languages_for_content(test_db, created.content_id) == ["en"]


class TestUpdateTranslation:
    """Test update_translation function"""

    async def test_partial_update_changes_only_given_fields(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)

        updated = await content_service.update_translation(test_db, created.content_id, "en", {"title": "X"})

        assert updated.title == "X"
        assert updated.slug == "hello"
        assert updated.status == created.status
        assert updated.body == "Hello body"
        assert updated.seo.meta_title == "Hello | Site"

    async def test_update_with_schema_instance(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)

        updated = await content_service.update_translation(
            test_db, created.content_id, "en", TranslationUpdate(status="in_review")
        )

        assert updated.status == "in_review"
        assert updated.title == "Hello"

    async def test_seo_patch_merges_existing_seo(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)

        updated = await content_service.update_translation(
            test_db,
            created.content_id,
            "en",
            {},
            {"meta_description": "A greeting"},
        )

        assert updated.seo.meta_description == "A greeting"
        assert updated.seo.meta_title == "Hello | Site"
        assert updated.seo.id == created.seo.id

    async def test_seo_patch_does_not_create_missing_seo(self, test_db, test_editor):
        created = await content_service.create_content(
            test_db, {"author_id": test_editor.id}, {"locale": "en", "slug": "plain", "title": "Plain"}
        )

        updated = await content_service.update_translation(
            test_db,
            created.content_id,
            "en",
            {"title": "Still plain"},
            {"meta_title": "Should not exist"},
        )

        assert updated.title == "Still plain"
        assert updated.seo is None
        assert await _count(test_db, SeoMeta) == 0

    async def test_update_missing_translation_fails(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)

        with pytest.raises(TranslationNotFoundError) as exc_info:
            await content_service.update_translation(test_db, created.content_id, "fr", {"title": "Salut"})

        assert exc_info.value.details["locale"] == "fr"

    async def test_update_cannot_null_slug(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)

        with pytest.raises(ValidationError) as exc_info:
            await content_service.update_translation(test_db, created.content_id, "en", {"slug": None})

        assert exc_info.value.details["field"] == "slug"

    async def test_update_rejects_fields_outside_the_patch_record(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)

        with pytest.raises(ValidationError):
            await content_service.update_translation(test_db, created.content_id, "en", {"content_id": 77})

        fetched = await content_service.get_translation(test_db, created.content_id, "en")
        assert fetched.content_id == created.content_id

    async def test_publish_translation(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)

        published = await content_service.publish_translation(test_db, created.content_id, "en")

        assert published.status == "published"
        assert published.title == "Hello"


class TestDeleteContent:
    """Test delete_content and delete_translation functions"""

    async def test_delete_content_cascades_to_translations_and_seo(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)
        content_id = created.content_id
        await content_service.create_translation(
            test_db, content_id, {"locale": "fr", "slug": "bonjour"}, {"meta_title": "Bonjour"}
        )

        result = await content_service.delete_content(test_db, content_id)

        assert result.content_id == content_id
        assert await _count(test_db, Content, Content.id == content_id) == 0
        assert await _count(test_db, ContentTranslation, ContentTranslation.content_id == content_id) == 0
        assert await _count(test_db, SeoMeta) == 0

    async def test_database_cascade_without_orm(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)

        await test_db.execute(delete(Content).where(Content.id == created.content_id))
        await test_db.commit()

        assert await _count(test_db, ContentTranslation) == 0
        assert await _count(test_db, SeoMeta) == 0

    async def test_delete_missing_content_fails(self, test_db):
        with pytest.raises(ContentNotFoundError):
            await content_service.delete_content(test_db, 9999)

    async def test_delete_translation(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)
        await content_service.create_translation(test_db, created.content_id, {"locale": "fr", "slug": "bonjour"})

        result = await content_service.delete_translation(test_db, created.content_id, "en")

        assert result.locale == "en"
        assert await content_service.list_languages_for_content(test_db, created.content_id) == ["fr"]
        assert await _count(test_db, SeoMeta) == 0

    async def test_delete_missing_translation_fails(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)

        with pytest.raises(TranslationNotFoundError):
            await content_service.delete_translation(test_db, created.content_id, "fr")

    async def test_published_content_keeps_last_translation(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id, status="published")

        with pytest.raises(ConflictError):
            await content_service.delete_translation(test_db, created.content_id, "en")

        assert await content_service.list_languages_for_content(test_db, created.content_id) == ["en"]

    async def test_draft_content_can_lose_last_translation(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)

        await content_service.delete_translation(test_db, created.content_id, "en")

        content = await content_service.get_content(test_db, created.content_id)
        assert content.translations == []

        with pytest.raises(ValidationError):
            await content_service.set_content_status(test_db, created.content_id, "published")


class TestReadContent:
    """Test the read paths"""

    async def test_get_content_with_translations(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)
        await content_service.create_translation(test_db, created.content_id, {"locale": "fr", "slug": "bonjour"})

        content = await content_service.get_content(test_db, created.content_id)

        assert content.id == created.content_id
        assert content.author_id == test_editor.id
        assert [t.locale for t in content.translations] == ["en", "fr"]
        assert content.translations[0].seo.meta_title == "Hello | Site"

    async def test_get_missing_content_fails(self, test_db):
        with pytest.raises(ContentNotFoundError):
            await content_service.get_content(test_db, 9999)

    async def test_get_missing_translation_raises_instead_of_returning_none(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)

        with pytest.raises(TranslationNotFoundError):
            await content_service.get_translation(test_db, created.content_id, "ja")

    async def test_get_content_by_slug(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)
        await content_service.create_translation(test_db, created.content_id, {"locale": "fr", "slug": "bonjour"})

        content = await content_service.get_content_by_slug(test_db, "bonjour")

        assert content.id == created.content_id

    async def test_get_content_by_slug_respects_locale(self, test_db, test_editor):
        await _create_hello(test_db, test_editor.id)

        with pytest.raises(ContentNotFoundError):
            await content_service.get_content_by_slug(test_db, "hello", locale="fr")

    async def test_get_content_by_unknown_slug_fails(self, test_db):
        with pytest.raises(ContentNotFoundError):
            await content_service.get_content_by_slug(test_db, "nope")

    async def test_list_translations(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)
        await content_service.create_translation(test_db, created.content_id, {"locale": "de", "slug": "hallo"})

        translations = await content_service.list_translations(test_db, created.content_id)

        assert [t.locale for t in translations] == ["de", "en"]


class TestContentInLocale:
    """Test get_content_in_locale fallback logic"""

    async def _published(self, db, author_id):
        created = await _create_hello(db, author_id)
        await content_service.publish_translation(db, created.content_id, "en")
        await content_service.create_translation(
            db, created.content_id, {"locale": "fr", "slug": "bonjour", "status": "published"}
        )
        await content_service.create_translation(db, created.content_id, {"locale": "de", "slug": "hallo"})
        return created.content_id

    async def test_exact_match(self, test_db, test_editor):
        content_id = await self._published(test_db, test_editor.id)

        translation = await content_service.get_content_in_locale(test_db, content_id, "fr")

        assert translation.locale == "fr"

    async def test_base_language_match(self, test_db, test_editor):
        content_id = await self._published(test_db, test_editor.id)

        translation = await content_service.get_content_in_locale(test_db, content_id, "fr-CA")

        assert translation.locale == "fr"

    async def test_unpublished_locale_falls_back(self, test_db, test_editor):
        content_id = await self._published(test_db, test_editor.id)

        translation = await content_service.get_content_in_locale(test_db, content_id, "de")

        assert translation.locale == "en"

    async def test_no_published_candidate_fails(self, test_db, test_editor):
        created = await _create_hello(test_db, test_editor.id)

        with pytest.raises(TranslationNotFoundError):
            await content_service.get_content_in_locale(test_db, created.content_id, "en")


class TestListContent:
    """Test list_content pagination and locale filtering"""

    async def _seed(self, db, author_id):
        a = await content_service.create_content(
            db, {"author_id": author_id, "status": "published"}, {"locale": "en", "slug": "a-en"}
        )
        await content_service.create_translation(db, a.content_id, {"locale": "fr", "slug": "a-fr"})
        b = await content_service.create_content(db, {"author_id": author_id}, {"locale": "en", "slug": "b-en"})
        c = await content_service.create_content(
            db, {"author_id": author_id, "kind": "page"}, {"locale": "fr", "slug": "c-fr"}
        )
        return a.content_id, b.content_id, c.content_id

    async def test_locale_filter_returns_only_matching_translations(self, test_db, test_editor):
        a_id, _, c_id = await self._seed(test_db, test_editor.id)

        page = await content_service.list_content(test_db, {"locale": "fr"}, 1, 10)

        assert [item.locale for item in page.items] == ["fr", "fr"]
        assert [item.content_id for item in page.items] == [a_id, c_id]
        assert page.items[0].content_status == ContentStatus.PUBLISHED
        assert page.items[1].content_status == ContentStatus.DRAFT
        assert page.total == 3

    async def test_without_filter_flattens_every_translation(self, test_db, test_editor):
        await self._seed(test_db, test_editor.id)

        page = await content_service.list_content(test_db)

        assert [item.slug for item in page.items] == ["a-en", "a-fr", "b-en", "c-fr"]
        assert page.page == 1
        assert page.pages == 1
        assert page.has_next is False
        assert page.has_previous is False

    async def test_pagination_is_per_content_item(self, test_db, test_editor):
        _, b_id, _ = await self._seed(test_db, test_editor.id)

        page = await content_service.list_content(test_db, None, page=2, page_size=1)

        assert [item.content_id for item in page.items] == [b_id]
        assert page.total == 3
        assert page.pages == 3
        assert page.has_next is True
        assert page.has_previous is True

    async def test_content_level_filters(self, test_db, test_editor):
        a_id, _, c_id = await self._seed(test_db, test_editor.id)

        published = await content_service.list_content(test_db, {"status": "published"})
        pages = await content_service.list_content(test_db, {"kind": "page"})

        assert {item.content_id for item in published.items} == {a_id}
        assert published.total == 1
        assert [item.content_id for item in pages.items] == [c_id]

    async def test_page_past_the_end_is_empty(self, test_db, test_editor):
        await self._seed(test_db, test_editor.id)

        page = await content_service.list_content(test_db, None, page=5, page_size=10)

        assert page.items == []
        assert page.total == 3

    @pytest.mark.parametrize(
        "page, page_size, field",
        [(0, 10, "page"), (-1, 10, "page"), (1, 0, "page_size"), (1, 1000, "page_size")],
    )
    async def test_page_bounds_are_validated(self, test_db, page, page_size, field):
        with pytest.raises(ValidationError) as exc_info:
            await content_service.list_content(test_db, None, page, page_size)

        assert exc_info.value.details["field"] == field
