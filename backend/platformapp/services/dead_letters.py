from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Sequence

from django.core.serializers.json import DjangoJSONEncoder

from platformapp.models import DeadLetterJob

logger = logging.getLogger(__name__)


def _jsonable(value: Any) -> Any:
    # Celery already moved these through JSON; this guards eager/in-process calls.
    return json.loads(json.dumps(value, cls=DjangoJSONEncoder, default=str))


def _tenant_hint(args: Sequence[Any]) -> Optional[str]:
    for arg in args or ():
        if isinstance(arg, dict) and arg.get("shop_domain"):
            return str(arg["shop_domain"])[:255]
    return None


def record_dead_letter(*, task_name: str, task_id: Optional[str], args: Sequence[Any],
                       kwargs: Optional[Dict[str, Any]], exc: BaseException,
                       traceback_text: str = "", attempts: int = 1) -> Optional[DeadLetterJob]:
    """Park a job that exhausted its retries. If even that fails, the whole job goes to the log."""
    try:
        return DeadLetterJob.objects.create(
            task_name=task_name,
            task_id=task_id,
            args=_jsonable(list(args or ())),
            kwargs=_jsonable(dict(kwargs or {})),
            exception=f"{exc.__class__.__name__}: {exc}",
            traceback=traceback_text or "",
            attempts=attempts,
            tenant_hint=_tenant_hint(args),
        )
    except Exception:
        logger.exception(
            "Could not dead-letter %s[%s]; job body: args=%r kwargs=%r", task_name, task_id, args, kwargs,
        )
        return None


def requeue_dead_letter(job: DeadLetterJob) -> str:
    """Send a parked job back to its task. Returns the new task id."""
    from storefront_backend.celery import app

    task = app.tasks.get(job.task_name)
    if task is not None:
        result = task.apply_async(args=job.args, kwargs=job.kwargs)
    else:
        result = app.send_task(job.task_name, args=job.args, kwargs=job.kwargs)
    job.status = DeadLetterJob.Status.REQUEUED
    job.save(update_fields=["status", "updated_at"])
    logger.info("Requeued dead letter %s as %s[%s]", job.pk, job.task_name, result.id)
    return result.id
