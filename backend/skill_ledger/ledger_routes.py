"""REST endpoints exposing the skill ledger operations."""

from __future__ import annotations

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status

from .api_models import (
    AccessGrantPayload,
    AddSkillRequest,
    AuditEventPayload,
    HeightPayload,
    LedgerFailure,
    LedgerResult,
    SetGoalRequest,
    SetVisibilityRequest,
    SkillHistoryPayload,
    SkillPayload,
    UpdateProgressRequest,
    UserInfoPayload,
    grant_payload,
    history_payload,
    skill_payload,
    user_info_payload,
)
from .config import Settings, get_settings
from .errors import InvalidInput
from .ledger import SkillLedger, ledger
from .records import MAX_PRINCIPAL_LENGTH
from .repositories.audit import DEFAULT_AUDIT_LIMIT

logger = logging.getLogger(__name__)

_FAILURES = {
    status.HTTP_404_NOT_FOUND: {"model": LedgerFailure},
    status.HTTP_409_CONFLICT: {"model": LedgerFailure},
    status.HTTP_422_UNPROCESSABLE_CONTENT: {"model": LedgerFailure},
}

PrincipalPath = Annotated[str, Path(min_length=1, max_length=MAX_PRINCIPAL_LENGTH)]


def _require_debug_endpoints(settings: Settings = Depends(get_settings)) -> None:
    if not settings.debug_endpoints:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")


router = APIRouter(prefix="/api/ledger", tags=["ledger"], responses=_FAILURES)
debug_router = APIRouter(
    prefix="/api/ledger/debug",
    tags=["ledger-debug"],
    dependencies=[Depends(_require_debug_endpoints)],
)


def get_ledger() -> SkillLedger:
    return ledger


def _principal_from(request: Request, settings: Settings) -> Optional[str]:
    raw = request.headers.get(settings.principal_header)
    if raw is None:
        return None
    principal = raw.strip()
    if len(principal) > MAX_PRINCIPAL_LENGTH:
        raise InvalidInput(
            f"Principal in '{settings.principal_header}' exceeds {MAX_PRINCIPAL_LENGTH} characters.",
            header=settings.principal_header,
        )
    return principal or None


def get_caller(request: Request, settings: Settings = Depends(get_settings)) -> str:
    """Authenticated principal forwarded by the fronting proxy."""
    principal = _principal_from(request, settings)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing authenticated principal header '{settings.principal_header}'.",
        )
    return principal


def get_requester(request: Request, settings: Settings = Depends(get_settings)) -> Optional[str]:
    """Reads accept anonymous requesters; they only ever see public skills."""
    return _principal_from(request, settings)


@router.post("/register", response_model=LedgerResult[bool], status_code=status.HTTP_201_CREATED)
def register(caller: str = Depends(get_caller), service: SkillLedger = Depends(get_ledger)) -> LedgerResult[bool]:
    service.register(caller)
    return LedgerResult[bool](value=True)


@router.post("/skills", response_model=LedgerResult[int], status_code=status.HTTP_201_CREATED)
def add_skill(
    payload: AddSkillRequest,
    caller: str = Depends(get_caller),
    service: SkillLedger = Depends(get_ledger),
) -> LedgerResult[int]:
    skill_id = service.add_skill(
        caller,
        payload.name,
        payload.category,
        payload.description,
        payload.visibility,
        payload.initial_proficiency,
    )
    return LedgerResult[int](value=skill_id)


@router.post("/skills/{skill_id}/progress", response_model=LedgerResult[int], status_code=status.HTTP_201_CREATED)
def update_progress(
    skill_id: int,
    payload: UpdateProgressRequest,
    caller: str = Depends(get_caller),
    service: SkillLedger = Depends(get_ledger),
) -> LedgerResult[int]:
    update_id = service.update_progress(
        caller,
        skill_id,
        payload.new_proficiency,
        payload.evidence,
        payload.milestone,
    )
    return LedgerResult[int](value=update_id)


@router.put("/skills/{skill_id}/visibility", response_model=LedgerResult[bool])
def set_visibility(
    skill_id: int,
    payload: SetVisibilityRequest,
    caller: str = Depends(get_caller),
    service: SkillLedger = Depends(get_ledger),
) -> LedgerResult[bool]:
    return LedgerResult[bool](value=service.set_visibility(caller, skill_id, payload.visibility))


@router.post("/skills/{skill_id}/goals", response_model=LedgerResult[int], status_code=status.HTTP_201_CREATED)
def set_goal(
    skill_id: int,
    payload: SetGoalRequest,
    caller: str = Depends(get_caller),
    service: SkillLedger = Depends(get_ledger),
) -> LedgerResult[int]:
    goal_id = service.set_goal(
        caller,
        skill_id,
        payload.target_proficiency,
        payload.target_date,
        payload.description,
    )
    return LedgerResult[int](value=goal_id)


@router.post("/skills/{skill_id}/goals/{goal_id}/complete", response_model=LedgerResult[bool])
def complete_goal(
    skill_id: int,
    goal_id: int,
    caller: str = Depends(get_caller),
    service: SkillLedger = Depends(get_ledger),
) -> LedgerResult[bool]:
    service.complete_goal(caller, skill_id, goal_id)
    return LedgerResult[bool](value=True)


@router.put("/access/{viewer}", response_model=LedgerResult[bool])
def grant_access(
    viewer: PrincipalPath,
    caller: str = Depends(get_caller),
    service: SkillLedger = Depends(get_ledger),
) -> LedgerResult[bool]:
    service.grant_access(caller, viewer)
    return LedgerResult[bool](value=True)


@router.delete("/access/{viewer}", response_model=LedgerResult[bool])
def revoke_access(
    viewer: PrincipalPath,
    caller: str = Depends(get_caller),
    service: SkillLedger = Depends(get_ledger),
) -> LedgerResult[bool]:
    service.revoke_access(caller, viewer)
    return LedgerResult[bool](value=True)


@router.get("/height", response_model=LedgerResult[HeightPayload])
def current_height(
    settings: Settings = Depends(get_settings),
    service: SkillLedger = Depends(get_ledger),
) -> LedgerResult[HeightPayload]:
    payload = HeightPayload(height=service.current_height(), clock_mode=settings.clock_mode)
    return LedgerResult[HeightPayload](value=payload)


@router.get("/users/{user}", response_model=LedgerResult[UserInfoPayload])
def get_user_info(user: PrincipalPath, service: SkillLedger = Depends(get_ledger)) -> LedgerResult[UserInfoPayload]:
    return LedgerResult[UserInfoPayload](value=user_info_payload(service.get_user_info(user)))


@router.get("/users/{owner}/skills/{skill_id}", response_model=LedgerResult[Optional[SkillPayload]])
def get_skill(
    owner: PrincipalPath,
    skill_id: int,
    requester: Optional[str] = Depends(get_requester),
    service: SkillLedger = Depends(get_ledger),
) -> LedgerResult[Optional[SkillPayload]]:
    skill = service.get_skill(requester, owner, skill_id)
    return LedgerResult[Optional[SkillPayload]](value=skill_payload(skill))


@router.get(
    "/users/{owner}/skills/{skill_id}/updates",
    response_model=LedgerResult[Optional[SkillHistoryPayload]],
)
def get_skill_updates(
    owner: PrincipalPath,
    skill_id: int,
    requester: Optional[str] = Depends(get_requester),
    service: SkillLedger = Depends(get_ledger),
) -> LedgerResult[Optional[SkillHistoryPayload]]:
    indicator = service.get_skill_updates(requester, owner, skill_id)
    return LedgerResult[Optional[SkillHistoryPayload]](value=history_payload(indicator))


@router.get(
    "/users/{owner}/skills/{skill_id}/goals",
    response_model=LedgerResult[Optional[SkillHistoryPayload]],
)
def get_skill_goals(
    owner: PrincipalPath,
    skill_id: int,
    requester: Optional[str] = Depends(get_requester),
    service: SkillLedger = Depends(get_ledger),
) -> LedgerResult[Optional[SkillHistoryPayload]]:
    indicator = service.get_skill_goals(requester, owner, skill_id)
    return LedgerResult[Optional[SkillHistoryPayload]](value=history_payload(indicator))


@router.get("/users/{owner}/access/{viewer}", response_model=LedgerResult[AccessGrantPayload])
def has_shared_access(
    owner: PrincipalPath,
    viewer: PrincipalPath,
    service: SkillLedger = Depends(get_ledger),
) -> LedgerResult[AccessGrantPayload]:
    return LedgerResult[AccessGrantPayload](value=grant_payload(service.has_shared_access(owner, viewer)))


@debug_router.get("/audit", response_model=List[AuditEventPayload])
def recent_audit(
    limit: int = Query(default=DEFAULT_AUDIT_LIMIT, ge=1, le=500),
    caller: str = Depends(get_caller),
    service: SkillLedger = Depends(get_ledger),
) -> List[AuditEventPayload]:
    events = service.recent_audit_events(caller, limit)
    logger.debug("Returning %d audit events for %s", len(events), caller)
    return [AuditEventPayload(**event) for event in events]


__all__ = ["debug_router", "get_caller", "get_ledger", "get_requester", "router"]
