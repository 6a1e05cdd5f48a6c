"""
Event handlers for domain events.

These handlers process domain events for side effects like audit
logging and business metrics.
"""

import logging

from accounts.domain.events import AccountLoggedIn, AccountRegistered, LoginFailed
from core.domain.events import DomainEvent, EventHandler
from core.metrics import (
    accounts_registered_total,
    keys_activated_total,
    keys_expired_total,
    keys_issued_total,
    login_attempts_total,
)
from keys.domain.events import (
    KeyActivated,
    KeyExpired,
    KeyIssued,
    KeyValidated,
    KeyValidationRejected,
)

logger = logging.getLogger(__name__)

ALL_EVENTS = (
    KeyIssued,
    KeyActivated,
    KeyValidated,
    KeyValidationRejected,
    KeyExpired,
    AccountRegistered,
    AccountLoggedIn,
    LoginFailed,
)


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Writes every domain event to the audit logger as a structured record.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.aggregate_id,
            extra={"event": event.to_dict()},
        )


class MetricsEventHandler(EventHandler):
    """Turns domain events into Prometheus counters."""

    async def handle(self, event: DomainEvent) -> None:
        if isinstance(event, KeyIssued):
            keys_issued_total.labels(tier=event.tier).inc()
        elif isinstance(event, KeyActivated):
            keys_activated_total.inc()
        elif isinstance(event, KeyExpired):
            keys_expired_total.labels(source=event.source).inc()
        elif isinstance(event, AccountRegistered):
            accounts_registered_total.labels(role=event.role).inc()
        elif isinstance(event, AccountLoggedIn):
            login_attempts_total.labels(outcome="success").inc()
        elif isinstance(event, LoginFailed):
            login_attempts_total.labels(outcome="locked" if event.locked else "failure").inc()


def register_event_handlers():
    """Register all event handlers with the event bus."""
    from core.infrastructure.events import event_bus

    audit_handler = AuditLogEventHandler()
    metrics_handler = MetricsEventHandler()

    for event_type in ALL_EVENTS:
        event_bus.subscribe(event_type, audit_handler)
        event_bus.subscribe(event_type, metrics_handler)

    logger.info("Event handlers registered")
