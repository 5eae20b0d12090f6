from django.db import models
from ..managers import TenantManager
from .tenant import Tenant

CHANNEL_PURCHASE = "purchase"
CHANNEL_SALES = "sales"

CHANNEL_CHOICES = [
    (CHANNEL_PURCHASE, "Purchase payment"),
    (CHANNEL_SALES, "Sales payment"),
]

OUTBOX_PENDING = "pending"
OUTBOX_SENT = "sent"
OUTBOX_FAILED = "failed"

OUTBOX_STATUS_CHOICES = [
    (OUTBOX_PENDING, "Pending"),
    (OUTBOX_SENT, "Sent"),
    (OUTBOX_FAILED, "Failed"),
]


class NotificationOutbox(models.Model):
    """
    A payment notification waiting to be delivered.

    Rows are written in the same transaction as the payment, so a
    notification exists if and only if the payment committed. Delivery
    happens afterwards and never touches financial rows.
    """

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE)
    # Payment.pk or SalesPayment.pk, depending on channel
    payment_id = models.CharField(max_length=64)
    channel = models.CharField(max_length=20, choices=CHANNEL_CHOICES)
    status = models.CharField(
        max_length=10, choices=OUTBOX_STATUS_CHOICES, default=OUTBOX_PENDING
    )
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    sent_at = models.DateTimeField(null=True, blank=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [
            models.Index(fields=["status", "created_at"], name="outbox_status_created_idx"),
            models.Index(
                fields=["tenant", "channel", "payment_id"],
                name="outbox_tenant_payment_idx",
            ),
        ]

    def __str__(self):
        return f"{self.channel} payment {self.payment_id} ({self.status})"
