from __future__ import annotations

from sqlalchemy.orm import Session

from campus_scheduler.core.security import AuthenticatedUser
from campus_scheduler.models.activity_log import ActivityLog


def log_activity(
    db: Session,
    *,
    actor: AuthenticatedUser | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict | None = None,
) -> None:
    record = ActivityLog(
        actor_id=actor.id if actor is not None else None,
        actor_role=actor.role.value if actor is not None else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
    )
    db.add(record)
