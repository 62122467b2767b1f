"""Audit Log Service Interface

Receives a record of every committed credit/payment state transition.
Delivery failures must never block or undo the operation that produced
the event.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditEvent:
    """One committed state transition"""

    event_type: str  # e.g. "credit.reserved", "refund.completed"
    entity_type: str  # "company", "payment", "refund"
    entity_id: str
    actor: Optional[str]
    data: Dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=datetime.utcnow)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor": self.actor,
            "data": {key: str(value) if value is not None else None for key, value in self.data.items()},
            "occurred_at": self.occurred_at.isoformat(),
        }


class AuditLogService(ABC):
    """
    Abstract audit sink

    Implementations can deliver events via:
    - Application log
    - Webhook (HTTP POST)
    - Several of the above at once
    """

    @abstractmethod
    async def record(self, event: AuditEvent) -> bool:
        """
        Deliver an audit event

        Returns:
            True if delivered, False otherwise (never raises)
        """
        pass


async def record_safely(audit_log: Optional[AuditLogService], event: AuditEvent) -> None:
    """Deliver event if a sink is configured; failures are logged, never raised"""
    if audit_log is None:
        return
    try:
        delivered = await audit_log.record(event)
        if not delivered:
            logger.warning(f"Audit event {event.event_type} for {event.entity_type} {event.entity_id} not delivered")
    except Exception as e:
        logger.error(f"Audit sink failed for {event.event_type} {event.entity_type} {event.entity_id}: {e}")
