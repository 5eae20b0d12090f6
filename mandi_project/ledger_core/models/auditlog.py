from django.conf import settings  # To access global project settings
from django.db import models
from ..managers import TenantManager
from .tenant import Tenant


# ---------- Audit / Event log ----------
class AuditLog(
    models.Model
):  # Gives accountability and traceability across the payment path
    # Nullable because some actions might not belong to a specific tenant
    # (e.g., system-wide repairs).
    tenant = models.ForeignKey(
        Tenant,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
    )
    # Which user performed the action
    # (Nullable in case the action was automated, e.g. a Celery task)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL
    )
    action = models.CharField(
        max_length=50
    )  # Common choices: record_payment, apply_payment, repair_balance
    # What kind of object was affected
    object_type = models.CharField(
        max_length=100
    )  # (e.g., "Vendor", "PurchaseInvoice", "SalesPayment")
    object_id = models.CharField(max_length=100)
    # before/after details of what changed, in JSON format
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["tenant", "user"], name="audit_tenant_user_idx"),
            models.Index(fields=["tenant", "created_at"], name="audit_tenant_created_idx"),
        ]

    def __str__(self):
        time = self.created_at
        usr = self.user
        action = self.action
        objType = self.object_type
        objId = self.object_id
        return f"[{time:%Y-%m-%d %H:%M}] {usr} {action} {objType}({objId})"

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
