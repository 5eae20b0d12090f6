from decimal import Decimal
from django.db import models


# ---------- Tenant ----------
class Tenant(models.Model):

    """One mandi business; the isolation boundary for every ledger row"""
    name = models.CharField(max_length=200)

    slug = models.SlugField(  # URL-friendly identifier
        max_length=80, unique=True  # no two tenants can have the same slug
    )

    # Suspended tenants keep their data but cannot record payments
    is_active = models.BooleanField(default=True)

    # Cash in hand, kept equal to the last cashbook running balance
    cash_balance = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name
