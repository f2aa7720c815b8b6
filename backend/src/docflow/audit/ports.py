"""Audit Emitter Port - contract for durable audit recording.

Implementations must write the record inside the caller's current
transaction, so that a failed status change also discards its audit record
and a failed audit write aborts the status change.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from .schemas import AuditMetadata


class AuditEmitter(ABC):
    """Port interface for audit trail emission."""

    @abstractmethod
    def record(
        self,
        tenant_id: UUID,
        actor_id: Optional[UUID],
        action: str,
        entity_type: Optional[str],
        entity_id: Optional[UUID],
        metadata: Optional[AuditMetadata] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """Record one audit entry.

        ``now`` is the instant of the change being audited, so the entry
        carries the same timestamp as the rows written with it.

        Raises:
            InfrastructureError: If the entry could not be written
        """
