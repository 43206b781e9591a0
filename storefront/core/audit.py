import logging
import uuid
from typing import Any

from sqlalchemy.orm import Session

from storefront.models.audit_event import AuditEvent
from storefront.models.user import User

logger = logging.getLogger(__name__)


def log_event(
    *,
    db: Session,
    actor: User | None,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID | str,
    metadata: dict[str, Any] | None = None,
) -> AuditEvent:
    """Stage an audit row in the caller's transaction (committed with it)."""
    if isinstance(entity_id, str):
        entity_id = uuid.UUID(entity_id)

    event = AuditEvent(
        actor_user_id=actor.id if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        event_metadata=metadata,
    )
    db.add(event)
    logger.info(
        "%s %s=%s by %s",
        action,
        entity_type,
        entity_id,
        actor.email if actor else "system",
    )
    return event
