"""
Commit helpers translating database failures into domain errors.

A failed commit is always rolled back first so no partial write stays
visible to later reads in the same session.
"""

import logging
from typing import Any, Awaitable, Callable, TypeVar
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError
from carlet.app.core.exceptions import ConcurrencyConflict, StorageUnavailable, ValidationError

logger = logging.getLogger("carlet.db")

T = TypeVar("T")


async def commit_or_raise(
    db: AsyncSession,
    resource: str,
    resource_id: Any = None,
    conflict_on_integrity: bool = False,
) -> None:
    """
    Commit the session, mapping failures onto the error taxonomy.
    
    Raises:
        ConcurrencyConflict: a versioned row changed since it was read
        ValidationError: a constraint rejected the write (ConcurrencyConflict
            instead when ``conflict_on_integrity`` is set, for writes whose
            unique keys only collide when two requests race)
        StorageUnavailable: the database could not be reached or failed
    """
    try:
        await db.commit()
    except StaleDataError:
        await db.rollback()
        raise ConcurrencyConflict(resource, resource_id)
    except IntegrityError as e:
        await db.rollback()
        logger.warning("Integrity error on %s %s: %s", resource, resource_id, e.orig)
        if conflict_on_integrity:
            raise ConcurrencyConflict(resource, resource_id)
        raise ValidationError(f"{resource} violates a data constraint", details={"id": resource_id})
    except (DBAPIError, SQLAlchemyError) as e:
        await db.rollback()
        logger.error("Storage failure on %s %s: %s", resource, resource_id, e)
        raise StorageUnavailable()


async def run_with_retry(
    db: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    attempts: int,
    resource: str,
    resource_id: Any = None,
) -> T:
    """
    Run a read-modify-write ``operation`` until it commits without a
    version conflict, at most ``attempts`` times.
    
    ``operation`` must re-read its rows on every call; the session is
    rolled back between attempts so stale state is discarded.
    """
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except ConcurrencyConflict:
            if attempt == attempts:
                logger.warning("Giving up on %s %s after %d conflicting attempts", resource, resource_id, attempts)
                raise
            logger.info("Version conflict on %s %s, retrying (attempt %d)", resource, resource_id, attempt)
    raise ConcurrencyConflict(resource, resource_id)
