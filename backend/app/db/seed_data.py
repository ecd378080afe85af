"""
Database Seed Data Module

Bootstrap admin account plus a sample tech message catalog.
Run with: python -m app.db.seed_data
          python -m app.db.seed_data clear
"""
import asyncio
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import AsyncSessionLocal, init_db
from app.core.logging_config import logger
from app.core.security import get_password_hash
from app.models.user import User, UserRole
from app.models.tech_message import TechMessage, ActionLevel, Severity


# ==================== Sample Data Constants ====================

SAMPLE_USERS = [
    {"username": "operator", "full_name": "Shift Operator", "role": UserRole.OPERATOR},
    {"username": "viewer", "full_name": "Read Only", "role": UserRole.VIEWER},
]

SAMPLE_PASSWORD = "Password123!"

SAMPLE_TECH_MESSAGES = [
    {
        "category": "Database",
        "severity": Severity.HIGH,
        "pattern": r"connection timeout after (?<seconds>\d+)s",
        "description": "Database connection pool exhausted or server unreachable",
        "action_levels": [
            (1, 5, "Check database server status and network path", 1),
            (6, None, "Escalate to the DBA on call", 2),
        ],
    },
    {
        "category": "Network",
        "severity": Severity.CRITICAL,
        "pattern": r"link (?P<interface>\S+) down",
        "description": "Physical or logical link failure on a device interface",
        "action_levels": [
            (1, 2, "Verify cabling and interface admin state", 1),
            (3, 10, "Fail over to the standby link", 2),
            (11, None, "Open a P1 incident with the carrier", 3),
        ],
    },
    {
        "category": "Disk",
        "severity": Severity.MEDIUM,
        "pattern": r"disk usage (?P<percent>\d+)% on (?P<mount>/\S*)",
        "description": "Filesystem usage above threshold",
        "action_levels": [
            (1, None, "Rotate logs and clear temporary files", 1),
        ],
    },
    {
        "category": "Authentication",
        "severity": Severity.LOW,
        "pattern": r"login failed for user (?<user>\w+)",
        "description": "Repeated failed login attempts",
        "action_levels": [
            (1, 3, "No action, monitor", 1),
            (4, None, "Lock the account and notify security", 2),
        ],
    },
]


async def seed_users(db: AsyncSession) -> List[User]:
    """Create sample non-admin users"""
    users = []
    password_hash = get_password_hash(SAMPLE_PASSWORD)

    for user_data in SAMPLE_USERS:
        existing = await db.execute(select(User).where(User.username == user_data["username"]))
        if existing.scalar_one_or_none():
            continue

        user = User(
            username=user_data["username"],
            full_name=user_data["full_name"],
            hashed_password=password_hash,
            role=user_data["role"],
            is_active=True,
        )
        db.add(user)
        users.append(user)

    await db.flush()
    logger.info(f"[Seed] Created {len(users)} users")
    return users


async def ensure_admin_user(db: AsyncSession) -> Optional[User]:
    """Create the ADMIN_USERNAME account when ADMIN_PASSWORD is configured"""
    if not settings.ADMIN_PASSWORD:
        return None

    result = await db.execute(select(User).where(User.username == settings.ADMIN_USERNAME))
    admin = result.scalar_one_or_none()
    if admin:
        return admin

    admin = User(
        username=settings.ADMIN_USERNAME,
        full_name="System Admin",
        hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
        role=UserRole.ADMIN,
        is_active=True,
    )
    db.add(admin)
    await db.flush()
    logger.info(f"[Seed] Created admin user '{settings.ADMIN_USERNAME}'")
    return admin


async def seed_tech_messages(db: AsyncSession) -> List[TechMessage]:
    """Create the sample catalog (skipped when the catalog is not empty)"""
    existing = await db.execute(select(TechMessage.id).limit(1))
    if existing.first():
        logger.info("[Seed] Tech message catalog already populated")
        return []

    tech_messages = []
    for data in SAMPLE_TECH_MESSAGES:
        tech_message = TechMessage(
            category=data["category"],
            severity=data["severity"],
            pattern=data["pattern"],
            description=data["description"],
            created_by="seed",
            updated_by="seed",
        )
        tech_message.action_levels = [
            ActionLevel(occurrence_min=lo, occurrence_max=hi, action_text=text, priority=priority)
            for lo, hi, text, priority in data["action_levels"]
        ]
        db.add(tech_message)
        tech_messages.append(tech_message)

    await db.flush()
    logger.info(f"[Seed] Created {len(tech_messages)} tech messages")
    return tech_messages


async def seed_all():
    """Seed all sample data"""
    logger.info("[Seed] Starting database seeding...")

    await init_db()

    async with AsyncSessionLocal() as db:
        try:
            await ensure_admin_user(db)
            await seed_users(db)
            await seed_tech_messages(db)

            await db.commit()
            logger.info("[Seed] Database seeding completed successfully")

        except Exception as e:
            await db.rollback()
            logger.error(f"[Seed] Error seeding database: {e}")
            raise


async def clear_all():
    """Clear the catalog and all users"""
    logger.info("[Seed] Clearing all data...")
    async with AsyncSessionLocal() as db:
        # Delete in reverse order of dependencies
        await db.execute(delete(ActionLevel))
        await db.execute(delete(TechMessage))
        await db.execute(delete(User))
        await db.commit()
        logger.info("[Seed] All data cleared")


if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1 and sys.argv[1] == "clear":
        asyncio.run(clear_all())
    else:
        asyncio.run(seed_all())
