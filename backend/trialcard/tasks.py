from celery import Celery
from celery.utils.log import get_task_logger

from . import notify
from .config import Settings, get_settings

_settings = get_settings()
celery_app = Celery("trialcard", broker=_settings.celery_broker_url)
celery_app.conf.task_always_eager = (
    _settings.celery_broker_url == "memory://" or _settings.testing
)

_logger = get_task_logger(__name__)


@celery_app.task
def deliver_email(to_email: str, subject: str, text: str):
    result = notify.send_email(get_settings(), to_email, subject, text)
    if not result.delivered:
        _logger.warning("Notification to %s not delivered: %s", to_email, result.error)
    return {"recipient": result.recipient, "delivered": result.delivered, "error": result.error}


@celery_app.task
def deliver_bulk_email(recipients: list[str], subject: str, text: str):
    batch = notify.send_bulk_email(get_settings(), recipients, subject, text)
    return {
        "delivered": batch.delivered,
        "failed": [{"recipient": f.recipient, "error": f.error} for f in batch.failures],
    }


def enqueue_email(settings: Settings, to_email: str, subject: str, text: str):
    """Send inline when running eagerly, otherwise hand off to the worker."""

    if celery_app.conf.task_always_eager:
        return notify.send_email(settings, to_email, subject, text)
    deliver_email.delay(to_email, subject, text)
    return None


def enqueue_bulk_email(settings: Settings, recipients: list[str], subject: str, text: str):
    if celery_app.conf.task_always_eager:
        return notify.send_bulk_email(settings, recipients, subject, text)
    deliver_bulk_email.delay(list(recipients), subject, text)
    return None
