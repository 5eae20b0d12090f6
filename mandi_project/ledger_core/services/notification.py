import logging
from datetime import timedelta
from functools import partial

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.module_loading import import_string

from ..models import NotificationOutbox
from ..models.notification import OUTBOX_FAILED, OUTBOX_PENDING, OUTBOX_SENT

logger = logging.getLogger("ledger_core.notifications")


def get_notifier():
    # dotted path so deployments can swap the delivery channel
    return import_string(settings.LEDGER_NOTIFIER)()


def enqueue_payment_notifications(tenant, payments, channel):
    """
    Create one pending outbox row per payment inside the current
    transaction, and queue delivery once that transaction commits.
    """
    rows = [
        NotificationOutbox.objects.create(
            tenant=tenant, payment_id=str(payment.pk), channel=channel
        )
        for payment in payments
    ]
    transaction.on_commit(partial(schedule_delivery, [row.pk for row in rows]))
    return rows


def schedule_delivery(outbox_ids):
    from ..tasks import deliver_payment_notification  # avoid cyc import

    queued = []
    for outbox_id in outbox_ids:
        try:
            deliver_payment_notification.delay(outbox_id)
        except Exception:
            # The payment is already committed; the sweep task retries later
            logger.exception(
                "Could not queue payment notification",
                extra={"outbox_id": outbox_id},
            )
        else:
            queued.append(outbox_id)
    return queued


def _claim(outbox_id):
    # a row another worker is delivering stays locked until it is saved
    return (
        NotificationOutbox.objects.select_for_update(skip_locked=True)
        .filter(pk=outbox_id)
        .first()
    )


def deliver_notification(outbox_id):
    """
    Send one outbox row through the configured notifier.

    The row is claimed with a row lock for the whole delivery, so a
    second worker handed the same id skips it instead of sending twice.
    Notifier errors are recorded on the row and logged, never raised.
    The row is marked failed once it has used up its attempts.
    """
    with transaction.atomic():
        row = _claim(outbox_id)
        if row is None:
            if NotificationOutbox.objects.filter(pk=outbox_id).exists():
                logger.info(
                    "Notification %s is being delivered elsewhere", outbox_id)
            else:
                logger.warning("Notification %s no longer exists", outbox_id)
            return None
        if row.status != OUTBOX_PENDING:
            return row
        return _send(row)


def _send(row):
    row.attempts += 1
    try:
        get_notifier().notify(row.tenant_id, row.payment_id, row.channel)
    except Exception as exc:
        row.last_error = str(exc)
        if row.attempts >= settings.LEDGER_NOTIFICATION_MAX_ATTEMPTS:
            row.status = OUTBOX_FAILED
        logger.error(
            "Payment notification failed: %s",
            exc,
            extra={
                "tenant_id": row.tenant_id,
                "payment_id": row.payment_id,
                "channel": row.channel,
                "attempts": row.attempts,
            },
        )
    else:
        row.status = OUTBOX_SENT
        row.sent_at = timezone.now()
        row.last_error = ""
        logger.info(
            "Payment notification sent",
            extra={
                "tenant_id": row.tenant_id,
                "payment_id": row.payment_id,
                "channel": row.channel,
            },
        )

    row.save(update_fields=["attempts", "status", "last_error", "sent_at"])
    return row


def pending_notification_ids(limit=100):
    """
    Pending rows old enough that their post-commit delivery should have
    run already. Younger rows may still be waiting in the broker.
    """
    cutoff = timezone.now() - timedelta(
        seconds=settings.LEDGER_NOTIFICATION_SWEEP_GRACE)
    return list(
        NotificationOutbox.objects.filter(
            status=OUTBOX_PENDING, created_at__lt=cutoff)
        .order_by("created_at", "pk")
        .values_list("pk", flat=True)[:limit]
    )
