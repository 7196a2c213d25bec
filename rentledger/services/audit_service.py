"""Audit service for logging ledger lifecycle events."""

from sqlalchemy.ext.asyncio import AsyncSession

from rentledger.models.audit_log import AuditLog


class AuditService:
    """Service for audit log operations.

    Adds the entry to the session only; it is committed (or rolled back) together
    with the change it describes.
    """

    @staticmethod
    def log(
        db: AsyncSession,
        entity_type: str,
        entity_id: int,
        action: str,
        actor_id: int | None = None,
        changes: dict | None = None,
    ) -> AuditLog:
        """Create audit log entry (one-liner).

        Args:
            db: Database session
            entity_type: Type of entity ("bill", "payment")
            entity_id: Primary key of the entity
            action: Action performed ("create", "approve", "reject", "allocate")
            actor_id: User who performed the action (optional)
            changes: Optional JSON snapshot of changed fields

        Returns:
            Created AuditLog object
        """
        audit = AuditLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=actor_id,
            changes=changes,
        )
        db.add(audit)
        return audit


__all__ = ["AuditService"]
