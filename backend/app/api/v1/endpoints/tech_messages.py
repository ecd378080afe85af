"""
Tech Message API Endpoints

Search (any authenticated user):
- POST /tech-messages/search - Regex + keyword search with recommended actions
- POST /tech-messages/match - First regex match only

Catalog browsing (any authenticated user):
- GET /tech-messages - Paginated list with category / severity filters
- GET /tech-messages/{id} - One tech message with its action levels
- GET /tech-messages/filters/categories - Distinct categories
- GET /tech-messages/stats/category/{category} - Count per category
- GET /tech-messages/stats/severity/{severity} - Count per severity

Administration (ADMIN role):
- POST / PUT / DELETE /tech-messages[/{id}]
- POST /tech-messages/{id}/actions
- PUT / DELETE /tech-messages/actions/{action_id}
"""

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.core.rate_limiter import search_rate_limit
from app.modules.auth.dependencies import get_current_user, get_current_admin
from app.models.user import User
from app.services.frequency_analyzer import frequency_analyzer
from app.services.pattern_matcher import pattern_matcher
from app.services.tech_message_search import SearchMatch, SearchQuery, MatchMode, search_service
from app.services.tech_message_service import TechMessageCatalog, tech_message_service
from app.schemas.tech_message import (
    ActionLevelRequest,
    ActionLevelResponse,
    CountResponse,
    MatchRequest,
    MatchResponse,
    SearchMatchResponse,
    SearchRequest,
    SearchResponse,
    TechMessageListResponse,
    TechMessageRequest,
    TechMessageResponse,
    TechMessageUpdate,
)

router = APIRouter(prefix="/tech-messages", tags=["Tech Messages"])


def _to_match_response(match: SearchMatch) -> SearchMatchResponse:
    return SearchMatchResponse(
        tech_message=TechMessageResponse.model_validate(match.tech_message),
        match_type=match.match_type.value,
        match_score=match.match_score,
        matched_text=match.matched_text,
        extracted_variables=match.extracted_variables,
        recommended_action=(
            ActionLevelResponse.model_validate(match.recommended_action)
            if match.recommended_action else None
        ),
        all_action_levels=[ActionLevelResponse.model_validate(t) for t in match.all_action_levels],
    )


# ==================== SEARCH ====================

@router.post("/search", response_model=SearchResponse)
@search_rate_limit()
async def search_tech_messages(
    request: Request,
    search_request: SearchRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Search the catalog by regex pattern and keywords.

    - EXACT: catalog patterns tested against the raw text (score 1.0)
    - FUZZY: up to 3 keywords, all must hit category / description / pattern
    - BOTH (default): EXACT hits first, then FUZZY by score

    Each match carries the action level selected for `occurrenceCount`.
    """
    query = SearchQuery(
        text=search_request.search_text,
        occurrence_count=search_request.occurrence_count,
        mode=MatchMode.parse(search_request.match_mode),
    )
    matches = await search_service.search(query, TechMessageCatalog(db))
    return SearchResponse(
        matches=[_to_match_response(m) for m in matches],
        no_matches=not matches,
    )


@router.post("/match", response_model=MatchResponse)
@search_rate_limit()
async def match_tech_message(
    request: Request,
    match_request: MatchRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Return the first tech message (by id) whose pattern matches the text"""
    catalog = await TechMessageCatalog(db).load_all_records()
    result = pattern_matcher.match_first(match_request.text, catalog)

    if result is None:
        return MatchResponse(matched=False, occurrence_count=match_request.occurrence_count)

    tier = frequency_analyzer.select_tier(result.record.action_levels, match_request.occurrence_count)
    return MatchResponse(
        matched=True,
        tech_message=TechMessageResponse.model_validate(result.record),
        matched_text=result.matched_text,
        variables=result.variables,
        recommended_action=ActionLevelResponse.model_validate(tier) if tier else None,
        occurrence_count=match_request.occurrence_count,
    )


# ==================== BROWSE ====================

@router.get("", response_model=TechMessageListResponse)
async def list_tech_messages(
    category: Optional[str] = Query(None, description="Exact category"),
    severity: Optional[str] = Query(None, description="LOW, MEDIUM, HIGH or CRITICAL"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    sort: str = Query("id,desc", description="field,asc|desc"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List tech messages with optional filters and sorting"""
    result = await tech_message_service.list_tech_messages(
        db=db,
        category=category,
        severity=severity,
        page=page,
        page_size=page_size,
        sort=sort,
    )
    return TechMessageListResponse(
        items=[TechMessageResponse.model_validate(tm) for tm in result["items"]],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
        total_pages=result["total_pages"],
        has_next=result["has_next"],
        has_previous=result["has_previous"],
    )


@router.get("/filters/categories", response_model=List[str])
async def get_categories(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Distinct categories, sorted"""
    return await TechMessageCatalog(db).get_category_list()


@router.get("/stats/category/{category}", response_model=CountResponse)
async def count_by_category(
    category: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    count = await tech_message_service.count_by_category(db, category)
    return CountResponse(value=category, count=count)


@router.get("/stats/severity/{severity}", response_model=CountResponse)
async def count_by_severity(
    severity: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    count = await tech_message_service.count_by_severity(db, severity)
    return CountResponse(value=severity.upper(), count=count)


@router.get("/{tech_message_id}", response_model=TechMessageResponse)
async def get_tech_message(
    tech_message_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await tech_message_service.get_tech_message(db, tech_message_id)


# ==================== ADMIN ====================

@router.post("", response_model=TechMessageResponse, status_code=status.HTTP_201_CREATED)
async def create_tech_message(
    request: TechMessageRequest,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a tech message (pattern must compile)"""
    return await tech_message_service.create_tech_message(db, request, username=admin.username)


@router.put("/{tech_message_id}", response_model=TechMessageResponse)
async def update_tech_message(
    tech_message_id: int,
    request: TechMessageUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await tech_message_service.update_tech_message(
        db, tech_message_id, request, username=admin.username
    )


@router.delete("/{tech_message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tech_message(
    tech_message_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a tech message and all of its action levels"""
    await tech_message_service.delete_tech_message(db, tech_message_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{tech_message_id}/actions",
    response_model=ActionLevelResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_action_level(
    tech_message_id: int,
    request: ActionLevelRequest,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await tech_message_service.add_action_level(
        db, tech_message_id, request, username=admin.username
    )


@router.put("/actions/{action_id}", response_model=ActionLevelResponse)
async def update_action_level(
    action_id: int,
    request: ActionLevelRequest,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await tech_message_service.update_action_level(db, action_id, request)


@router.delete("/actions/{action_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_action_level(
    action_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    await tech_message_service.delete_action_level(db, action_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
