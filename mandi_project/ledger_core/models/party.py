from decimal import Decimal
from django.db import models
from ..managers import TenantManager
from .tenant import Tenant


# ---------- Parties ----------
class Party(models.Model):
    """
    Shared shape of a Vendor or Retailer.

    ``balance`` is the running amount outstanding against the party:
    for a vendor, what the tenant owes the vendor; for a retailer,
    what the retailer owes the tenant (udhaar). Payments reduce it.
    It must equal the sum of the party's open invoice balances after
    every payment commits.
    """

    # Multi-tenant: every party belongs to a single tenant
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE)

    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=32, blank=True, default="")

    balance = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    # Crates held by / owed to the party (crate flows live elsewhere)
    crate_balance = models.IntegerField(default=0)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        abstract = True

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


class Vendor(Party):  # Supplies produce; settled through purchase invoices

    class Meta:
        indexes = [
            models.Index(fields=["tenant", "name"], name="vendor_tenant_name_idx"),
        ]
        # Vendor names must be unique per tenant
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "name"], name="uq_tenant_vendor_name"
            ),
        ]


class Retailer(Party):  # Buys produce; settles sales invoices (udhaar)

    class Meta:
        indexes = [
            models.Index(fields=["tenant", "name"], name="retailer_tenant_name_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["tenant", "name"], name="uq_tenant_retailer_name"
            ),
        ]
