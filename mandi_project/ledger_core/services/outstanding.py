from typing import List

from .party_ledger import get_ledger


def outstanding_invoices_queryset(tenant_id, ledger, party_id):
    """
    Unsettled invoices of one party, oldest first.

    Same-day invoices keep the order they were created in; the primary key
    breaks any remaining tie because it follows insertion order.
    """
    ledger = get_ledger(ledger)
    return (
        ledger.invoice_model.objects.for_tenant(tenant_id)
        .filter(**{ledger.party_field: party_id}, balance_amount__gt=0)
        .order_by("invoice_date", "created_at", "pk")
    )


def list_outstanding_invoices(tenant_id, ledger, party_id, lock=False) -> List:
    # An empty list is a normal answer here; callers decide if it is an error
    qs = outstanding_invoices_queryset(tenant_id, ledger, party_id)
    if lock:
        # rows stay locked until the surrounding transaction ends
        qs = qs.select_for_update()
    return list(qs)
