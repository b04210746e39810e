from __future__ import annotations
import logging

from celery import shared_task

from common.exceptions import TenantNotResolved
from common.tasks import IngestTask
from .envelopes import EventEnvelope
from .services import record_event

logger = logging.getLogger(__name__)


@shared_task(bind=True, base=IngestTask, name="analyticsapp.process_event", queue="ingest")
def process_event(self, envelope: dict):
    event_envelope = EventEnvelope.from_dict(envelope)
    try:
        event, created = record_event(event_envelope)
    except TenantNotResolved as e:
        logger.warning("Dropping event %s: %s", event_envelope.envelope_id, e)
        return {"status": "dropped", "reason": str(e)}
    return {"status": "ok", "eventId": event.pk, "created": created}
