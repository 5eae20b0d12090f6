import uuid
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .banking import BankAccount
from .invoice import PurchaseInvoice, SalesInvoice
from .party import Retailer, Vendor
from .tenant import Tenant

MODE_CASH = "Cash"
MODE_BANK = "Bank"
MODE_UPI = "UPI"
MODE_CHEQUE = "Cheque"
MODE_PAYMENT_LINK = "PaymentLink"

PAYMENT_MODES = [
    # Keeps payment mode standardized across vendor and retailer payments
    (MODE_CASH, "Cash"),
    (MODE_BANK, "Bank"),
    (MODE_UPI, "UPI"),
    (MODE_CHEQUE, "Cheque"),
    (MODE_PAYMENT_LINK, "Payment link"),
]


class PaymentBase(models.Model):
    """
    One invoice's share of a submitted payment.

    A single instruction that spans several invoices produces one row per
    invoice touched, all sharing ``batch_reference``. Rows are never
    updated once written.
    """

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE)

    # the allocated portion, not the raw submitted amount
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payment_mode = models.CharField(max_length=20, choices=PAYMENT_MODES)
    payment_date = models.DateField()

    # mode-specific references
    bank_account = models.ForeignKey(
        BankAccount, null=True, blank=True, on_delete=models.PROTECT
    )
    cheque_number = models.CharField(max_length=64, blank=True, default="")
    upi_reference = models.CharField(max_length=128, blank=True, default="")
    payment_link_id = models.CharField(max_length=128, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    batch_reference = models.UUIDField(default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    party_field = None

    class Meta:
        abstract = True

    def __str__(self):
        return f"{self.payment_mode} {self.amount} → {self.invoice.invoice_number}"

    def clean(self):
        if self.amount is not None and self.amount <= 0:
            raise ValidationError("Payment amount must be positive")

        # cannot pay more than what the invoice still owes
        invoice = getattr(self, "invoice", None)
        if invoice is not None and self.amount is not None:
            if self.amount > invoice.balance_amount:
                raise ValidationError(
                    "Payment amount cannot exceed invoice balance")

        # Prevent cross-tenant contamination
        if invoice is not None and invoice.tenant_id != self.tenant_id:
            raise ValidationError("Invoice must belong to the same tenant.")
        party = getattr(self, self.party_field, None)
        if party is not None and party.tenant_id != self.tenant_id:
            raise ValidationError(
                f"{self.party_field.title()} must belong to the same tenant.")
        if invoice is not None and party is not None:
            if invoice.party_id != party.pk:
                raise ValidationError(
                    f"Invoice does not belong to this {self.party_field}.")
        if self.bank_account and self.bank_account.tenant_id != self.tenant_id:
            raise ValidationError(
                "Bank account must belong to the same tenant.")

    def save(self, *args, **kwargs):
        # Payments are immutable once recorded
        if not self._state.adding:
            raise ValidationError("Recorded payments cannot be modified.")
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


class Payment(PaymentBase):  # Tenant pays a vendor against purchase invoices

    invoice = models.ForeignKey(PurchaseInvoice, on_delete=models.PROTECT)
    vendor = models.ForeignKey(Vendor, on_delete=models.PROTECT)

    party_field = "vendor"

    class Meta:
        indexes = [
            models.Index(fields=["tenant", "vendor"], name="payment_tenant_vendor_idx"),
            models.Index(fields=["tenant", "batch_reference"], name="payment_tenant_batch_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_positive_amount",
            ),
        ]


class SalesPayment(PaymentBase):  # Retailer pays the tenant against sales invoices

    invoice = models.ForeignKey(SalesInvoice, on_delete=models.PROTECT)
    retailer = models.ForeignKey(Retailer, on_delete=models.PROTECT)

    party_field = "retailer"

    class Meta:
        indexes = [
            models.Index(fields=["tenant", "retailer"], name="spay_tenant_retailer_idx"),
            models.Index(fields=["tenant", "batch_reference"], name="spay_tenant_batch_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="sales_payment_positive_amount",
            ),
        ]
