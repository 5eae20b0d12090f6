import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from django.db import transaction
from django.db.models import DecimalField, Sum
from django.db.models.functions import Coalesce

from ..models import derive_status
from .audit_helper import log_action
from .party_ledger import LEDGERS, get_ledger
from .tenancy import require_tenant

logger = logging.getLogger("ledger_core.payments")

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class Discrepancy:
    object_type: str
    object_id: int
    kind: str
    expected: str
    actual: str

    def __str__(self):
        return (f"{self.object_type} {self.object_id}: {self.kind} "
                f"(expected {self.expected}, found {self.actual})")


def outstanding_total(tenant, ledger, party):
    ledger = get_ledger(ledger)
    total = (
        ledger.invoice_model.objects.for_tenant(tenant)
        .filter(**{ledger.party_field: party})
        .aggregate(total=Coalesce(
            Sum("balance_amount"),
            ZERO,
            output_field=DecimalField(max_digits=14, decimal_places=2),
        ))["total"]
    )
    # SQLite hands back sums without the column's scale
    return total.quantize(CENT)


def check_party_consistency(tenant, ledger, party) -> List[Discrepancy]:
    """
    Compare a party and its invoices against the ledger rules:
    balance = net - paid and never negative, status follows the amounts,
    and the party balance equals the sum of its invoice balances.
    """
    ledger = get_ledger(ledger)
    found = []

    invoices = ledger.invoice_model.objects.for_tenant(tenant).filter(
        **{ledger.party_field: party}
    )
    for inv in invoices.order_by("pk"):
        name = inv.__class__.__name__
        expected_balance = inv.net_amount - inv.paid_amount
        if inv.balance_amount != expected_balance:
            found.append(Discrepancy(name, inv.pk, "balance_mismatch",
                                     str(expected_balance), str(inv.balance_amount)))
        if inv.balance_amount < 0:
            found.append(Discrepancy(name, inv.pk, "negative_balance",
                                     "0.00 or more", str(inv.balance_amount)))
        expected_status = derive_status(inv.net_amount, inv.paid_amount)
        if inv.status != expected_status:
            found.append(Discrepancy(name, inv.pk, "status_mismatch",
                                     expected_status, inv.status))

    total = outstanding_total(tenant, ledger, party)
    if party.balance != total:
        found.append(Discrepancy(party.__class__.__name__, party.pk,
                                 "party_balance_mismatch",
                                 str(total), str(party.balance)))
    return found


def check_tenant_consistency(tenant_id) -> List[Discrepancy]:
    tenant = require_tenant(tenant_id)
    found = []
    for ledger in LEDGERS.values():
        for party in ledger.party_model.objects.for_tenant(tenant).order_by("pk"):
            found.extend(check_party_consistency(tenant, ledger, party))
    return found


def recompute_party_balance(tenant, ledger, party, user=None):
    """Reset a party's stored balance to the sum of its invoice balances."""
    ledger = get_ledger(ledger)
    with transaction.atomic():
        party = ledger.get_party(tenant, party.pk, lock=True)
        total = outstanding_total(tenant, ledger, party)
        if party.balance == total:
            return total

        before = party.balance
        ledger.party_model.objects.filter(pk=party.pk).update(balance=total)
        party.balance = total
        logger.warning(
            "Repaired %s balance from %s to %s",
            party,
            before,
            total,
            extra={"tenant_id": party.tenant_id, "party_id": party.pk},
        )
        log_action(
            action="repair_balance",
            instance=party,
            user=user,
            changes={"balance": {"before": str(before), "after": str(total)}},
        )
    return total


def repair_tenant_balances(tenant_id, user=None):
    """Recompute every party balance of a tenant; returns how many changed."""
    tenant = require_tenant(tenant_id)
    repaired = 0
    for ledger in LEDGERS.values():
        for party in ledger.party_model.objects.for_tenant(tenant).order_by("pk"):
            before = party.balance
            if recompute_party_balance(tenant, ledger, party, user=user) != before:
                repaired += 1
    return repaired
