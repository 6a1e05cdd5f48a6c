"""
Celery tasks for key maintenance.
"""
import logging

from asgiref.sync import async_to_sync

from KeyManagementService.celery import app
from keys.application.commands.key_maintenance import ExpireDueKeysCommand
from keys.application.handlers.maintenance_handlers import ExpireDueKeysHandler
from keys.infrastructure.repositories.django_key_repository import DjangoKeyRepository

logger = logging.getLogger(__name__)


@app.task
def sweep_expired_keys() -> int:
    """
    Mark overdue active keys as expired.

    Returns:
        Number of keys expired
    """
    handler = ExpireDueKeysHandler(key_repository=DjangoKeyRepository())
    result = async_to_sync(handler.handle)(ExpireDueKeysCommand())
    logger.info("Swept %d expired key(s)", result.changed)
    return result.changed
