"""Audit Log Service Implementations

Provides concrete sinks for audit events.
"""

import logging
from typing import List, Optional
import httpx
from src.app.services.audit_log_service import AuditEvent, AuditLogService

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("audit")


class LoggingAuditLogService(AuditLogService):
    """
    Audit sink that writes to the "audit" logger

    Useful for development and testing, or as a fallback.
    """

    async def record(self, event: AuditEvent) -> bool:
        details = ", ".join(f"{key}={value}" for key, value in event.data.items())
        audit_logger.info(
            f"[AUDIT] {event.event_type} {event.entity_type}={event.entity_id} "
            f"actor={event.actor} {details}"
        )
        return True


class WebhookAuditLogService(AuditLogService):
    """
    Audit sink that POSTs each event as JSON to a webhook URL
    """

    def __init__(self, webhook_url: str, timeout: float = 10.0):
        self.webhook_url = webhook_url
        self.timeout = timeout

    async def record(self, event: AuditEvent) -> bool:
        """
        Returns:
            True if webhook call succeeded, False otherwise
        """
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.webhook_url,
                    json={"type": "audit_event", **event.to_payload()},
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.debug(f"Audit event {event.event_type} for {event.entity_id} sent to {self.webhook_url}")
                return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send audit event {event.event_type} for {event.entity_id}: {e}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error sending audit event {event.event_type} for {event.entity_id}: {e}")
            return False


class CompositeAuditLogService(AuditLogService):
    """
    Delivers every event to several sinks (e.g., log + webhook)
    """

    def __init__(self, services: List[AuditLogService]):
        self.services = services

    async def record(self, event: AuditEvent) -> bool:
        """True if at least one sink accepted the event"""
        success = False
        for service in self.services:
            try:
                if await service.record(event):
                    success = True
            except Exception as e:
                logger.error(f"Audit sink {type(service).__name__} failed: {e}")
        return success


def create_audit_log_service(webhook_url: Optional[str] = None) -> AuditLogService:
    """
    Factory function to create the audit sink

    Args:
        webhook_url: Optional webhook URL. If provided, creates composite
                     sink with logging + webhook. Otherwise, just logging.
    """
    services: List[AuditLogService] = [LoggingAuditLogService()]

    if webhook_url:
        services.append(WebhookAuditLogService(webhook_url))

    if len(services) == 1:
        return services[0]

    return CompositeAuditLogService(services)
