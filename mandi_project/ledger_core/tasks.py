from celery import shared_task


@shared_task  # register this function as a Celery task
def deliver_payment_notification(outbox_id):
    # import services lazily to avoid circular imports at module import time
    from .services.notification import deliver_notification

    row = deliver_notification(outbox_id)
    return row.status if row else None


@shared_task
def dispatch_pending_notifications(limit=100):
    """Re-queue outbox rows whose post-commit enqueue never happened."""
    from .services.notification import pending_notification_ids, schedule_delivery

    return schedule_delivery(pending_notification_ids(limit=limit))


@shared_task
def recompute_party_balances(tenant_id, repair=False):
    from .services.consistency import (check_tenant_consistency,
                                       repair_tenant_balances)

    if repair:
        repair_tenant_balances(tenant_id)
    # report what is still wrong, as strings so the result stays JSON
    return [str(d) for d in check_tenant_consistency(tenant_id)]
