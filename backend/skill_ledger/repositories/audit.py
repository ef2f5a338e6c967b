"""Ledger audit trail written alongside every committed mutation."""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..clock import OperationContext
from ..db.models import LedgerAuditEventModel

DEFAULT_AUDIT_LIMIT = 50


def record_audit(
    session: Session,
    context: OperationContext,
    event_type: str,
    payload: Dict[str, Any],
    *,
    skill_id: Optional[int] = None,
) -> None:
    session.add(
        LedgerAuditEventModel(
            actor=context.caller,
            event_type=event_type,
            height=context.height,
            payload=payload,
            skill_id=skill_id,
        )
    )


def recent_events(session: Session, actor: str, limit: int = DEFAULT_AUDIT_LIMIT) -> list[LedgerAuditEventModel]:
    stmt = (
        select(LedgerAuditEventModel)
        .where(LedgerAuditEventModel.actor == actor)
        .order_by(LedgerAuditEventModel.height.desc(), LedgerAuditEventModel.created_at.desc())
        .limit(limit)
    )
    return list(session.execute(stmt).scalars().all())


__all__ = ["DEFAULT_AUDIT_LIMIT", "recent_events", "record_audit"]
