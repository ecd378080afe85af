"""
Tech Message Service - catalog persistence and administration

Handles:
- Catalog snapshots for the search engine (TechMessageCatalog)
- Tech message and action level CRUD (admin)
- Pattern validation on write and compiled-pattern cache invalidation
- Listing with filters, sorting and pagination; simple statistics
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Optional, List, Tuple
import logging

from app.core.exceptions import (
    ActionLevelNotFoundError,
    InvalidPatternError,
    TechMessageNotFoundError,
    ValidationError,
)
from app.models.tech_message import TechMessage, ActionLevel, Severity
from app.schemas.tech_message import ActionLevelRequest, TechMessageRequest, TechMessageUpdate
from app.services.pattern_matcher import PatternCache, PatternMatcher, pattern_cache
from app.services.tech_message_records import TechMessageRecord, ActionTier
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "id": TechMessage.id,
    "category": TechMessage.category,
    "severity": TechMessage.severity,
    "createdAt": TechMessage.created_at,
    "created_at": TechMessage.created_at,
    "updatedAt": TechMessage.updated_at,
    "updated_at": TechMessage.updated_at,
}

DEFAULT_SORT = "id,desc"


def parse_severity(value: Optional[str]) -> Optional[Severity]:
    if value is None or value == "":
        return None
    try:
        return Severity(value.strip().upper())
    except ValueError:
        raise ValidationError(
            f"Invalid severity '{value}'. Expected one of LOW, MEDIUM, HIGH, CRITICAL",
            field="severity",
        )


def parse_sort(sort: Optional[str]):
    """'field,asc|desc' -> ORDER BY clause"""
    sort = sort or DEFAULT_SORT
    parts = [part.strip() for part in sort.split(",")]
    field_name = parts[0]
    direction = parts[1].lower() if len(parts) > 1 and parts[1] else "asc"

    column = SORTABLE_FIELDS.get(field_name)
    if column is None:
        raise ValidationError(f"Cannot sort by '{field_name}'", field="sort")
    if direction not in ("asc", "desc"):
        raise ValidationError(f"Invalid sort direction '{direction}'", field="sort")

    return column.desc() if direction == "desc" else column.asc()


class TechMessageCatalog:
    """Read-only catalog provider bound to one session"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load_all_records(self) -> Tuple[TechMessageRecord, ...]:
        """Every tech message with tiers, ordered by id"""
        result = await self.db.execute(
            select(TechMessage)
            .order_by(TechMessage.id)
            .execution_options(populate_existing=True)
        )
        return tuple(TechMessageRecord.from_model(tm) for tm in result.scalars().all())

    async def get_category_list(self) -> List[str]:
        result = await self.db.execute(
            select(TechMessage.category).distinct().order_by(TechMessage.category)
        )
        return [row for row in result.scalars().all()]


class TechMessageService:
    """Service for managing the tech message catalog"""

    def __init__(self, cache: Optional[PatternCache] = None):
        self.cache = cache if cache is not None else pattern_cache

    @staticmethod
    def _check_pattern(pattern: str) -> None:
        validation = PatternMatcher.validate_pattern(pattern)
        if not validation.valid:
            raise InvalidPatternError(pattern, validation.error_message)

    @staticmethod
    def _new_action_level(data: ActionLevelRequest) -> ActionLevel:
        return ActionLevel(
            occurrence_min=data.occurrence_min,
            occurrence_max=data.occurrence_max,
            action_text=data.action_text,
            priority=data.priority,
        )

    # ==================== READ ====================

    async def get_tech_message(self, db: AsyncSession, tech_message_id: int) -> TechMessage:
        result = await db.execute(
            select(TechMessage)
            .where(TechMessage.id == tech_message_id)
            .execution_options(populate_existing=True)
        )
        tech_message = result.scalar_one_or_none()
        if tech_message is None:
            raise TechMessageNotFoundError(tech_message_id)
        return tech_message

    async def get_record(self, db: AsyncSession, tech_message_id: int) -> TechMessageRecord:
        return TechMessageRecord.from_model(await self.get_tech_message(db, tech_message_id))

    async def list_tech_messages(
        self,
        db: AsyncSession,
        category: Optional[str] = None,
        severity: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
        sort: Optional[str] = None
    ) -> dict:
        """
        List tech messages with optional filters.

        Args:
            category: exact category match
            severity: LOW / MEDIUM / HIGH / CRITICAL (case-insensitive)
            sort: "field,asc|desc" on id, category, severity, createdAt, updatedAt

        Returns:
            Pagination dict (see app.utils.pagination.paginate)
        """
        query = select(TechMessage)
        if category:
            query = query.where(TechMessage.category == category)
        parsed_severity = parse_severity(severity)
        if parsed_severity is not None:
            query = query.where(TechMessage.severity == parsed_severity)

        query = query.order_by(parse_sort(sort))
        return await paginate(db, query, page=page, page_size=page_size)

    async def count_by_category(self, db: AsyncSession, category: str) -> int:
        result = await db.execute(
            select(func.count(TechMessage.id)).where(TechMessage.category == category)
        )
        return result.scalar() or 0

    async def count_by_severity(self, db: AsyncSession, severity: str) -> int:
        parsed = parse_severity(severity)
        result = await db.execute(
            select(func.count(TechMessage.id)).where(TechMessage.severity == parsed)
        )
        return result.scalar() or 0

    # ==================== WRITE (admin) ====================

    async def create_tech_message(
        self,
        db: AsyncSession,
        data: TechMessageRequest,
        username: Optional[str] = None
    ) -> TechMessage:
        self._check_pattern(data.pattern)

        tech_message = TechMessage(
            category=data.category,
            severity=data.severity,
            pattern=data.pattern,
            description=data.description,
            created_by=username,
            updated_by=username,
        )
        tech_message.action_levels = [self._new_action_level(level) for level in data.action_levels]

        db.add(tech_message)
        await db.commit()

        logger.info(f"Created tech message {tech_message.id} [{tech_message.category}] by {username}")
        return await self.get_tech_message(db, tech_message.id)

    async def update_tech_message(
        self,
        db: AsyncSession,
        tech_message_id: int,
        data: TechMessageUpdate,
        username: Optional[str] = None
    ) -> TechMessage:
        tech_message = await self.get_tech_message(db, tech_message_id)
        old_pattern = tech_message.pattern

        if data.pattern is not None:
            self._check_pattern(data.pattern)
            tech_message.pattern = data.pattern
        if data.category is not None:
            category = data.category.strip()
            if not category:
                raise ValidationError("category must not be blank", field="category")
            tech_message.category = category
        if data.severity is not None:
            tech_message.severity = data.severity
        if "description" in data.model_fields_set:
            tech_message.description = data.description
        tech_message.updated_by = username

        await db.commit()
        self.cache.invalidate(old_pattern)

        logger.info(f"Updated tech message {tech_message_id} by {username}")
        return await self.get_tech_message(db, tech_message_id)

    async def delete_tech_message(self, db: AsyncSession, tech_message_id: int) -> None:
        tech_message = await self.get_tech_message(db, tech_message_id)
        pattern = tech_message.pattern

        await db.delete(tech_message)
        await db.commit()
        self.cache.invalidate(pattern)

        logger.info(f"Deleted tech message {tech_message_id}")

    # ==================== ACTION LEVELS (admin) ====================

    async def get_action_level(self, db: AsyncSession, action_level_id: int) -> ActionLevel:
        result = await db.execute(select(ActionLevel).where(ActionLevel.id == action_level_id))
        level = result.scalar_one_or_none()
        if level is None:
            raise ActionLevelNotFoundError(action_level_id)
        return level

    async def add_action_level(
        self,
        db: AsyncSession,
        tech_message_id: int,
        data: ActionLevelRequest,
        username: Optional[str] = None
    ) -> ActionTier:
        tech_message = await self.get_tech_message(db, tech_message_id)

        level = self._new_action_level(data)
        tech_message.action_levels.append(level)
        tech_message.updated_by = username
        await db.commit()

        logger.info(f"Added action level {level.id} to tech message {tech_message_id}")
        return ActionTier.from_model(level)

    async def update_action_level(
        self,
        db: AsyncSession,
        action_level_id: int,
        data: ActionLevelRequest
    ) -> ActionTier:
        level = await self.get_action_level(db, action_level_id)

        level.occurrence_min = data.occurrence_min
        level.occurrence_max = data.occurrence_max
        level.action_text = data.action_text
        level.priority = data.priority
        await db.commit()

        logger.info(f"Updated action level {action_level_id}")
        return ActionTier.from_model(level)

    async def delete_action_level(self, db: AsyncSession, action_level_id: int) -> None:
        level = await self.get_action_level(db, action_level_id)
        await db.delete(level)
        await db.commit()
        logger.info(f"Deleted action level {action_level_id}")


tech_message_service = TechMessageService()
