from sqlalchemy.ext.asyncio import AsyncSession

from teamy.core.security import Identity
from teamy.models.domain import AuditLog


async def record_audit(
    db: AsyncSession,
    actor: Identity,
    action: str,
    entity_type: str,
    entity_id: str,
    payload: dict,
) -> AuditLog:
    row = AuditLog(
        actor_id=actor.id,
        actor_email=actor.email,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        payload_json=payload,
    )
    db.add(row)
    await db.flush()
    return row
