"""Owner-to-viewer grant table; the latest grant or revoke wins."""

from __future__ import annotations

from sqlalchemy.orm import Session

from ..clock import OperationContext
from ..db.models import AccessGrantModel
from ..records import AccessGrant
from .audit import record_audit


class AccessGrantRepository:
    def get(self, session: Session, owner: str, viewer: str) -> AccessGrant | None:
        model = session.get(AccessGrantModel, (owner, viewer))
        return self._to_domain(model) if model else None

    def get_or_default(self, session: Session, owner: str, viewer: str) -> AccessGrant:
        return self.get(session, owner, viewer) or AccessGrant(owner=owner, viewer=viewer)

    def grant(self, session: Session, context: OperationContext, viewer: str) -> AccessGrant:
        return self._upsert(session, context, viewer, can_view=True)

    def revoke(self, session: Session, context: OperationContext, viewer: str) -> AccessGrant:
        return self._upsert(session, context, viewer, can_view=False)

    def _upsert(self, session: Session, context: OperationContext, viewer: str, *, can_view: bool) -> AccessGrant:
        model = session.get(AccessGrantModel, (context.caller, viewer))
        if model is None:
            model = AccessGrantModel(owner=context.caller, viewer=viewer)
            session.add(model)
        model.granted_height = context.height
        model.can_view = can_view
        session.flush()
        record_audit(
            session,
            context,
            "access_granted" if can_view else "access_revoked",
            {"viewer": viewer},
        )
        return self._to_domain(model)

    @staticmethod
    def _to_domain(model: AccessGrantModel) -> AccessGrant:
        return AccessGrant(
            owner=model.owner,
            viewer=model.viewer,
            granted_at=model.granted_height,
            can_view=model.can_view,
        )


access_grants = AccessGrantRepository()

__all__ = ["AccessGrantRepository", "access_grants"]
