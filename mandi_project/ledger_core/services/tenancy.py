import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from django.core.exceptions import ValidationError

from ..exceptions import ReferenceNotFound, TenantMismatch, TenantRequired
from ..models import Tenant

# Cross-tenant access is a security event, reported apart from bad input
security_logger = logging.getLogger("ledger_core.security")


@dataclass(frozen=True)
class TenantRef:
    """A row referenced by id from a client request."""
    model: Any
    pk: Optional[Any]
    allow_null: bool = True


def _tenant_pk(tenant):
    if isinstance(tenant, Tenant):
        return tenant.pk
    return tenant


def require_tenant(tenant) -> Tenant:
    """Resolve the tenant a unit of work runs under; never defaults."""
    tenant_id = _tenant_pk(tenant)
    if tenant_id is None or tenant_id == "":
        raise TenantRequired("A tenant is required for this operation")

    try:
        resolved = Tenant.objects.get(pk=tenant_id)
    except (Tenant.DoesNotExist, ValueError, TypeError):
        raise ReferenceNotFound("Tenant", tenant_id)

    if not resolved.is_active:
        raise ValidationError("Tenant account is inactive.")
    return resolved


def assert_same_tenant(tenant, refs: Iterable[TenantRef]):
    """
    Check that every referenced row belongs to ``tenant``.

    The lookup runs without a tenant filter: a row owned by another tenant
    is reported as a mismatch, not as missing.
    """
    tenant_id = _tenant_pk(tenant)
    if tenant_id is None or tenant_id == "":
        raise TenantRequired("A tenant is required for this operation")

    for ref in refs:
        name = ref.model.__name__
        if ref.pk is None or ref.pk == "":
            if ref.allow_null:
                continue
            raise ValidationError(f"{name} is required.")

        try:
            owner = (
                ref.model.objects.filter(pk=ref.pk)
                .values_list("tenant_id", flat=True)
                .first()
            )
        except (ValueError, TypeError):
            raise ReferenceNotFound(name, ref.pk)

        if owner is None:
            raise ReferenceNotFound(name, ref.pk)

        if str(owner) != str(tenant_id):
            security_logger.error(
                "Tenant mismatch on %s %s",
                name,
                ref.pk,
                extra={
                    "tenant_id": tenant_id,
                    "object_type": name,
                    "object_id": ref.pk,
                    "owner_tenant_id": owner,
                },
            )
            raise TenantMismatch(
                f"{name} {ref.pk} does not belong to tenant {tenant_id}")
