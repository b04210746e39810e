from __future__ import annotations

import logging

from celery import Task
from django.conf import settings
from django.db import InterfaceError, OperationalError

from .exceptions import TransientIngestError

logger = logging.getLogger(__name__)

# Store unavailable, lock wait timeouts, dropped connections.
TRANSIENT_ERRORS = (OperationalError, InterfaceError, TransientIngestError)


class IngestTask(Task):
    """
    Base task for the ingestion queue.

    Transient errors are retried with exponential backoff up to
    INGEST_MAX_RETRIES; anything that still fails (or fails for a
    non-transient reason) is parked in the dead-letter table.
    """
    autoretry_for = TRANSIENT_ERRORS
    retry_backoff = True
    retry_backoff_max = getattr(settings, "INGEST_RETRY_BACKOFF_MAX", 300)
    retry_jitter = True
    max_retries = getattr(settings, "INGEST_MAX_RETRIES", 6)
    acks_late = True
    reject_on_worker_lost = True

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        from platformapp.services.dead_letters import record_dead_letter

        attempts = (self.request.retries or 0) + 1
        logger.error("Task %s[%s] failed after %s attempt(s): %s", self.name, task_id, attempts, exc)
        record_dead_letter(
            task_name=self.name,
            task_id=task_id,
            args=args,
            kwargs=kwargs,
            exc=exc,
            traceback_text=str(einfo) if einfo else "",
            attempts=attempts,
        )
