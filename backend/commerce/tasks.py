import logging

from celery import shared_task

from common.exceptions import TenantNotResolved
from common.tasks import IngestTask

from .envelopes import CartSnapshot
from .reconciler import MissingCartToken, reconcile_cart

logger = logging.getLogger(__name__)


@shared_task(bind=True, base=IngestTask, name="commerce.reconcile_cart_snapshot", queue="ingest")
def reconcile_cart_snapshot(self, snapshot: dict):
    """
    Apply one queued cart snapshot. Snapshots for an unknown shop or without
    a cart token can never succeed, so they are dropped rather than retried.
    """
    envelope = CartSnapshot.from_dict(snapshot)
    try:
        result = reconcile_cart(envelope)
    except (TenantNotResolved, MissingCartToken) as e:
        logger.warning("Dropping cart snapshot %s: %s", envelope.envelope_id, e)
        return {"status": "dropped", "reason": str(e)}
    return {
        "status": "ok",
        "cartId": str(result.cart.pk),
        "created": result.created,
        "skippedLines": result.skipped_lines,
    }
