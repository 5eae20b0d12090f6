from typing import Optional

from ..exceptions import TenantRequired
from ..models import AuditLog, Tenant


def log_action(
    *,
    action: str,
    instance,
    user=None,
    tenant: Optional[Tenant] = None,
    changes: dict | None = None,
):
    """
    Record who did what to a ledger row.

    The row is written in the caller's transaction: a payment that rolls
    back takes its audit rows with it. Every entry belongs to a tenant,
    taken from ``instance`` when not given.
    """
    tenant = tenant or getattr(instance, "tenant", None)
    if tenant is None:
        raise TenantRequired(
            f"Cannot audit {action} on {instance.__class__.__name__} without a tenant")

    return AuditLog.objects.create(
        tenant=tenant,
        user=user,
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        changes=changes,
    )
