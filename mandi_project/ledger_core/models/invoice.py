from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .party import Retailer, Vendor
from .tenant import Tenant

STATUS_UNPAID = "Unpaid"
STATUS_PARTIALLY_PAID = "Partially Paid"
STATUS_PAID = "Paid"

INV_STATUS_CHOICES = [
    (STATUS_UNPAID, "Unpaid"),
    (STATUS_PARTIALLY_PAID, "Partially paid"),
    (STATUS_PAID, "Paid"),
]


def derive_status(net_amount, paid_amount):
    """Status is a pure function of the amounts, never set by hand."""
    if net_amount - paid_amount == 0:
        return STATUS_PAID
    if paid_amount == 0:
        return STATUS_UNPAID
    return STATUS_PARTIALLY_PAID


class InvoiceBase(models.Model):
    """
    Amount bookkeeping shared by purchase and sales invoices.

    net_amount is fixed when the invoice is created; paid_amount only
    grows, and balance_amount is always net_amount - paid_amount.
    """

    # Invoice belongs to one tenant (multi-tenant)
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE)

    # human-readable (e.g. "PI-2025-001")
    invoice_number = models.CharField(max_length=64)
    invoice_date = models.DateField()

    net_amount = models.DecimalField(max_digits=14, decimal_places=2)
    paid_amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    balance_amount = models.DecimalField(max_digits=14, decimal_places=2)

    status = models.CharField(
        max_length=20, choices=INV_STATUS_CHOICES, default=STATUS_UNPAID
    )

    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    # name of the FK to the owning party on the concrete model
    party_field = None

    class Meta:
        abstract = True

    def __str__(self):
        return f"{self.invoice_number} ({self.status})"

    @property
    def party_id(self):
        return getattr(self, f"{self.party_field}_id")

    def clean(self):
        net = self.net_amount or Decimal("0.00")
        paid = self.paid_amount or Decimal("0.00")

        if net < 0 or paid < 0:
            raise ValidationError("Invoice amounts must be non-negative")

        # balance = net - paid, never negative
        if self.balance_amount != net - paid:
            raise ValidationError(
                "balance_amount must equal net_amount - paid_amount")
        if self.balance_amount < 0:
            raise ValidationError("Invoice cannot be paid beyond its net amount")

        if self.status != derive_status(net, paid):
            raise ValidationError(
                f"Status {self.status!r} disagrees with invoice amounts")

        # Prevent cross-tenant contamination
        party = getattr(self, self.party_field, None)
        if party is not None and party.tenant_id != self.tenant_id:
            raise ValidationError(
                f"Invoice {self.party_field} must belong to the same tenant.")

    def save(self, *args, **kwargs):
        # New invoices start fully outstanding unless told otherwise
        if self.balance_amount is None and self.net_amount is not None:
            self.balance_amount = self.net_amount - (
                self.paid_amount or Decimal("0.00"))
            self.status = derive_status(self.net_amount, self.paid_amount)
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)

    def apply_payment(self, amount):
        """Settle ``amount`` of this invoice and persist the new amounts."""
        if amount <= 0:
            raise ValidationError("Applied amount must be positive")
        # never allocate more than what is still open
        if amount > self.balance_amount:
            raise ValidationError(
                "Applied amount cannot exceed invoice balance")

        self.paid_amount = self.paid_amount + amount
        self.balance_amount = self.net_amount - self.paid_amount
        self.status = derive_status(self.net_amount, self.paid_amount)
        self.save(update_fields=["paid_amount", "balance_amount", "status"])
        return self


class PurchaseInvoice(InvoiceBase):  # What the tenant owes a vendor

    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT)

    party_field = "vendor"

    class Meta:
        indexes = [
            models.Index(
                fields=["tenant", "vendor", "invoice_date"],
                name="pinv_tenant_vendor_date_idx",
            ),
        ]
        constraints = [
            # Within one tenant, each invoice number must be unique
            models.UniqueConstraint(
                fields=["tenant", "invoice_number"],
                name="uq_purchase_invoice_tenant_number",
            ),
            models.CheckConstraint(
                condition=models.Q(net_amount__gte=0)
                & models.Q(paid_amount__gte=0)
                & models.Q(balance_amount__gte=0),
                name="purchase_invoice_non_negative_amounts",
            ),
        ]


class SalesInvoice(InvoiceBase):  # What a retailer owes the tenant

    retailer = models.ForeignKey(Retailer, on_delete=models.PROTECT)

    party_field = "retailer"

    class Meta:
        indexes = [
            models.Index(
                fields=["tenant", "retailer", "invoice_date"],
                name="sinv_tenant_retailer_date_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "invoice_number"],
                name="uq_sales_invoice_tenant_number",
            ),
            models.CheckConstraint(
                condition=models.Q(net_amount__gte=0)
                & models.Q(paid_amount__gte=0)
                & models.Q(balance_amount__gte=0),
                name="sales_invoice_non_negative_amounts",
            ),
        ]
