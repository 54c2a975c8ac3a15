import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy import DateTime, event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

from app.config import settings
from app.exceptions import CMSError, ConflictError, ServiceError, StoreUnavailableError, ValidationError

logger = logging.getLogger(__name__)

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC timestamp on every backend.

    Postgres stores it as TIMESTAMP WITH TIME ZONE. SQLite keeps no offset,
    so values are normalized to UTC on the way in and tagged UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    @property
    def python_type(self):
        return datetime

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores foreign keys (and ON DELETE CASCADE) unless asked per connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(database_url: str) -> AsyncEngine:
    if database_url.startswith("sqlite"):
        engine = create_async_engine(database_url, echo=settings.debug)
        enable_sqlite_foreign_keys(engine)
        return engine

    # Environment-based configurations
    if settings.environment == "production":
        return create_async_engine(
            database_url,
            pool_size=20,
            max_overflow=50,
            pool_timeout=60,
            pool_recycle=1800,
            pool_pre_ping=True,
        )
    return create_async_engine(
        database_url,
        echo=settings.debug,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
    )


engine = build_engine(settings.database_url)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    logger.debug("Opening database session...")
    async with AsyncSessionLocal() as db:
        try:
            yield db
        except Exception as e:
            logger.error(f"Database session error: {e}")
            raise
        finally:
            await db.close()
            logger.debug("Database session closed.")


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate == "23505":
        return True
    text = str(orig).lower()
    return "unique" in text or "duplicate" in text


@asynccontextmanager
async def transaction(db: AsyncSession, operation: str) -> AsyncIterator[AsyncSession]:
    """
    Run a block of writes as one atomic unit.

    The block commits when it exits normally and rolls back on any
    exception. Every failure is converted to a CMS error after the
    rollback; CMS errors raised inside the block pass through unchanged.

    Changes the caller added to the session but never flushed are not
    swept into this transaction: the call is refused instead.

    Args:
        db: The session the writes go through.
        operation: Name used in log records and error details.

    Raises:
        ConflictError: a unique constraint was violated.
        ValidationError: another integrity constraint was violated.
        StoreUnavailableError: the transaction could not be opened or committed.
        ServiceError: the session holds unflushed changes, or the block failed
            with a non-store exception.
    """
    if db.new or db.dirty or db.deleted:
        logger.warning("Refusing %s: session has unflushed changes", operation, extra={"operation": operation})
        raise ServiceError("The session has uncommitted changes", operation=operation)

    started = time.perf_counter()
    try:
        # A read earlier in the request autobegins a transaction; end it so
        # this operation's writes get their own.
        if db.in_transaction():
            await db.commit()
        async with db.begin():
            yield db
    except CMSError as exc:
        logger.info(
            "Transaction rolled back: %s (%s)",
            operation,
            exc.error_code.value,
            extra={"operation": operation},
        )
        raise
    except IntegrityError as exc:
        logger.warning("Integrity violation in %s: %s", operation, exc.orig, extra={"operation": operation})
        if _is_unique_violation(exc):
            raise ConflictError(
                "A record with the same unique key already exists",
                details={"operation": operation},
            ) from exc
        raise ValidationError(
            "The data violates a store constraint",
            details={"operation": operation},
        ) from exc
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Store failure in %s: %s", operation, exc, extra={"operation": operation})
        raise StoreUnavailableError(operation=operation) from exc
    except Exception as exc:
        logger.exception("Unexpected failure in %s", operation, extra={"operation": operation})
        raise ServiceError(operation=operation) from exc
    else:
        logger.debug(
            "Transaction committed: %s",
            operation,
            extra={"operation": operation, "duration_ms": round((time.perf_counter() - started) * 1000, 2)},
        )
