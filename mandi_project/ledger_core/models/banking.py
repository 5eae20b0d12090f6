from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..managers import TenantManager
from .tenant import Tenant

REF_VENDOR_PAYMENT = "Payment"
REF_SALES_PAYMENT = "Sales Payment"

REFERENCE_TYPES = [
    (REF_VENDOR_PAYMENT, "Vendor payment"),
    (REF_SALES_PAYMENT, "Retailer payment"),
]


# ---------- Banking ----------


class BankAccount(models.Model):  # Represents bank account the tenant maintains
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE)
    name = models.CharField(max_length=200)  # e.g. "SBI Current"
    account_number = models.CharField(max_length=50, blank=True, default="")
    # kept equal to the last bankbook running balance for this account
    balance = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        # A tenant cannot have two accounts with the same name
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "name"], name="uq_tenant_bankaccount_name"
            ),
        ]
        indexes = [
            models.Index(fields=["tenant", "name"], name="bankacct_tenant_name_idx"),
        ]

    def __str__(self):
        if self.account_number:
            return f"{self.name} ({self.account_number[-4:]})"
        return self.name


class CashbookEntry(models.Model):
    """
    One movement of cash in hand with the running balance after it.
    A payment batch writes a single entry referencing its first payment.
    """

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE)
    date = models.DateField()
    description = models.CharField(max_length=255)
    inflow = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00"))
    outflow = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00"))
    balance = models.DecimalField(max_digits=14, decimal_places=2)
    reference_type = models.CharField(max_length=20, choices=REFERENCE_TYPES)
    reference_id = models.CharField(max_length=64)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        verbose_name_plural = "cashbook entries"
        indexes = [
            models.Index(fields=["tenant", "date"], name="cashbook_tenant_date_idx"),
            models.Index(
                fields=["tenant", "reference_type", "reference_id"],
                name="cashbook_tenant_ref_idx",
            ),
        ]

    def __str__(self):
        return f"{self.date} {self.description} (+{self.inflow}/-{self.outflow})"


class BankbookEntry(models.Model):  # Same as cashbook, one running balance per bank account
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE)
    bank_account = models.ForeignKey(BankAccount, on_delete=models.PROTECT)
    date = models.DateField()
    description = models.CharField(max_length=255)
    # debit = money into the account, credit = money out
    debit = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00"))
    credit = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00"))
    balance = models.DecimalField(max_digits=14, decimal_places=2)
    reference_type = models.CharField(max_length=20, choices=REFERENCE_TYPES)
    reference_id = models.CharField(max_length=64)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        verbose_name_plural = "bankbook entries"
        indexes = [
            models.Index(
                fields=["tenant", "bank_account", "date"],
                name="bankbook_tenant_acct_date_idx",
            ),
            models.Index(
                fields=["tenant", "reference_type", "reference_id"],
                name="bankbook_tenant_ref_idx",
            ),
        ]

    def __str__(self):
        return f"{self.bank_account.name} {self.date} (+{self.debit}/-{self.credit})"

    def clean(self):
        # Ensure bank account chosen belongs to the same tenant
        if self.bank_account and self.bank_account.tenant_id != self.tenant_id:
            raise ValidationError(
                "Bank account must belong to the same tenant.")

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
