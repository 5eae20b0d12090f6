from django.db import models

from .exceptions import TenantRequired

# -----------------------------------------
# Enforce tenant scoping across all models
# that belong to a tenant
# -----------------------------------------
class TenantQuerySet(models.QuerySet):
    def for_tenant(self, tenant):
        # Fail closed: a missing tenant never means "all tenants"
        if tenant is None or tenant == "":
            raise TenantRequired("A tenant is required for this query")
        return self.filter(tenant=tenant)

    def active(self, tenant):
        return self.for_tenant(tenant).filter(is_active=True)
    # Enables query:
    # Vendor.objects.active(tenant)


# Attach TenantQuerySet to .objects
class TenantManager(models.Manager.from_queryset(TenantQuerySet)):
    # every model using TenantManager can call:
    # PurchaseInvoice.objects.for_tenant(tenant_id)
    pass
