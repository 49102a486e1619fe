"""
Database seeding for a fresh installation.

Creates the default location with its stage pipeline and the first admin
user. Runs on application startup when ``SEED_ON_STARTUP`` is set, and can
also be run by hand:

    python -m carlet.seed_data
"""

import asyncio
import logging
import uuid
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from carlet.app.core.config import Settings, settings
from carlet.app.core.logging_config import configure_logging
from carlet.app.core.security import get_password_hash
from carlet.app.db.session import Database
from carlet.app.db.unit_of_work import commit_or_raise
from carlet.app.domain.workflow.stage_registry import StageRegistry, validate_new_location_stages
from carlet.app.models.enums import UserRole
from carlet.app.models.location import Location
from carlet.app.models.user import User
import carlet.app.models.car  # noqa: F401
import carlet.app.models.note  # noqa: F401
import carlet.app.models.part  # noqa: F401
import carlet.app.models.audit_log  # noqa: F401
import carlet.app.models.stored_file  # noqa: F401

logger = logging.getLogger("carlet.seed")


async def seed_defaults(db: AsyncSession, config: Settings) -> bool:
    """
    Seed the default location and admin user if the database has no locations.
    
    Args:
        db: Database session
        config: Settings supplying the default location, stages and admin
        
    Returns:
        True when data was created, False when the database was already seeded
    """
    existing = await db.execute(select(func.count(Location.id)))
    if existing.scalar():
        logger.info("Locations already present, skipping seeding")
        return False
    
    stages = validate_new_location_stages(config.default_stages)
    location = await StageRegistry(db).create_location(
        name=config.default_location_name,
        timezone=config.default_location_timezone,
        stages=stages,
        location_id=config.default_location_id,
    )
    logger.info("Created location %s with stages %s", location.id, [s.name for s in stages])
    
    admin_email = config.admin_email.lower()
    result = await db.execute(select(User).where(func.lower(User.email) == admin_email))
    if result.scalar_one_or_none() is None:
        db.add(User(
            id=str(uuid.uuid4()),
            email=admin_email,
            full_name=config.admin_full_name,
            hashed_password=get_password_hash(config.admin_password),
            role=UserRole.ADMIN,
            is_platform_admin=True,
            location_id=location.id,
            is_active=True,
        ))
        await commit_or_raise(db, "User")
        logger.info("Created admin user %s", admin_email)
    
    return True


async def main():
    configure_logging(settings.log_level)
    database = Database.from_settings(settings)
    try:
        await database.create_all()
        async with database.session() as db:
            await seed_defaults(db, settings)
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(main())
