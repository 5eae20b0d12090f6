import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from functools import partial
from typing import List, Optional

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from ..exceptions import NoOutstandingInvoices, StorageFailure
from ..models import BankAccount
from .allocation import Allocation, allocate
from .audit_helper import log_action
from .notification import enqueue_payment_notifications
from .party_ledger import get_ledger
from .tenancy import TenantRef, assert_same_tenant, require_tenant
from .validation import PaymentRequest, validate_payment_request

logger = logging.getLogger("ledger_core.payments")


@dataclass
class DistributionResult:
    """What one submitted payment turned into. Not persisted."""
    total_amount: Decimal
    payments_created: List = field(default_factory=list)
    invoices_updated: List = field(default_factory=list)
    remainder: Decimal = Decimal("0.00")
    party_balance_after: Decimal = Decimal("0.00")
    batch_reference: Optional[uuid.UUID] = None

    @property
    def distributed_amount(self):
        return self.total_amount - self.remainder

    def as_dict(self):
        return {
            "paymentsCreated": [
                {
                    "id": p.pk,
                    "invoiceId": p.invoice_id,
                    "amount": str(p.amount),
                    "paymentMode": p.payment_mode,
                    "paymentDate": p.payment_date.isoformat(),
                }
                for p in self.payments_created
            ],
            "invoicesUpdated": [
                {
                    "id": inv.pk,
                    "invoiceNumber": inv.invoice_number,
                    "paidAmount": str(inv.paid_amount),
                    "balanceAmount": str(inv.balance_amount),
                    "status": inv.status,
                }
                for inv in self.invoices_updated
            ],
            "remainder": str(self.remainder),
            "totalAmount": str(self.total_amount),
            "distributedAmount": str(self.distributed_amount),
            "partyBalanceAfter": str(self.party_balance_after),
            "batchReference": str(self.batch_reference),
        }


# ----------------------------
# Payment distribution workflow
# ----------------------------
def record_payment(tenant_id, ledger, party_id, request, user=None) -> DistributionResult:
    """
    Distribute one submitted payment over a party's outstanding invoices,
    oldest first, as a single all-or-nothing unit of work.

    Any amount beyond the total outstanding is returned as the remainder;
    it is never booked against the party or an invoice. Recording is not
    idempotent: submitting the same request twice records two batches.
    """
    ledger = get_ledger(ledger)
    if isinstance(request, dict):
        request = PaymentRequest.from_payload(request)

    log_extra = {
        "tenant_id": tenant_id,
        "ledger": ledger.name,
        "party_id": party_id,
        "amount": str(request.amount),
        "payment_mode": request.payment_mode,
    }
    logger.info("Recording %s payment", ledger.name, extra=log_extra)

    result = _run_atomic(
        partial(_distribute, tenant_id, ledger, party_id, request, user),
        log_extra,
    )

    logger.info(
        "Recorded %s payment in %d part(s), remainder %s",
        ledger.name,
        len(result.payments_created),
        result.remainder,
        extra={**log_extra, "batch_reference": str(result.batch_reference)},
    )
    return result


def _run_atomic(unit_of_work, log_extra):
    try:
        # Everything inside either succeeds
        # as one unit or rolls back if something fails
        with transaction.atomic():
            return unit_of_work()
    except ValidationError as exc:
        logger.info("Payment rejected: %s", exc.messages, extra=log_extra)
        raise
    except NoOutstandingInvoices:
        logger.warning("Payment rejected: nothing outstanding", extra=log_extra)
        raise
    except DatabaseError as exc:
        logger.exception("Payment aborted by the database", extra=log_extra)
        raise StorageFailure("The payment could not be recorded") from exc


def _lock_bank_account(tenant, bank_account_id):
    if not bank_account_id:
        return None
    bank_account = (
        BankAccount.objects.for_tenant(tenant)
        .select_for_update()
        .get(pk=bank_account_id)
    )
    if not bank_account.is_active:
        raise ValidationError(f"Bank account {bank_account} is inactive.")
    return bank_account


def _book_batch(*, tenant, ledger, party, request, allocations, remainder,
                bank_account, user):
    """
    Write the payment rows for ``allocations``, move the party balance by
    what was allocated, post the book entry, audit and queue notifications.
    """
    batch_reference = uuid.uuid4()

    payments = []
    invoices_updated = []
    for invoice, amount in allocations:
        payments.append(
            ledger.apply_allocation(
                tenant=tenant,
                party=party,
                invoice=invoice,
                amount=amount,
                request=request,
                batch_reference=batch_reference,
                bank_account=bank_account,
            )
        )
        invoices_updated.append(invoice)

    # Only what was actually allocated moves the party balance
    distributed = sum((amount for _, amount in allocations), Decimal("0.00"))
    balance_after = ledger.adjust_party_balance(party, -distributed)

    book_entry = ledger.record_book_entry(
        tenant=tenant,
        party=party,
        payments=payments,
        total=distributed,
        request=request,
        bank_account=bank_account,
    )

    # AUDIT LOGS
    log_action(
        action="record_payment",
        instance=party,
        user=user,
        tenant=tenant,
        changes={
            "batch_reference": str(batch_reference),
            "amount": str(request.amount),
            "distributed": str(distributed),
            "remainder": str(remainder),
            "payment_mode": request.payment_mode,
            "payment_ids": [p.pk for p in payments],
            "book_entry": (
                f"{book_entry.__class__.__name__}:{book_entry.pk}"
                if book_entry else None
            ),
        },
    )
    for invoice, amount in allocations:
        log_action(
            action="apply_payment",
            instance=invoice,
            user=user,
            tenant=tenant,
            changes={
                "amount": str(amount),
                "paid_amount": str(invoice.paid_amount),
                "balance_amount": str(invoice.balance_amount),
                "status": invoice.status,
            },
        )

    # delivered after commit, never as part of it
    enqueue_payment_notifications(tenant, payments, ledger.channel)

    return DistributionResult(
        total_amount=request.amount,
        payments_created=payments,
        invoices_updated=invoices_updated,
        remainder=remainder,
        party_balance_after=balance_after,
        batch_reference=batch_reference,
    )


def _distribute(tenant_id, ledger, party_id, request, user):
    validate_payment_request(request)

    tenant = require_tenant(tenant_id)

    # Client-supplied ids must not reach across tenants
    assert_same_tenant(
        tenant,
        [
            TenantRef(ledger.party_model, party_id, allow_null=False),
            TenantRef(BankAccount, request.bank_account_id),
        ],
    )

    # Lock the party row until the transaction finishes
    party = ledger.get_party(tenant, party_id, lock=True)
    if not party.is_active:
        raise ValidationError(f"{party} is inactive and cannot take payments.")

    bank_account = _lock_bank_account(tenant, request.bank_account_id)

    invoices = ledger.get_outstanding_invoices(tenant, party.pk, lock=True)
    if not invoices:
        raise NoOutstandingInvoices(party)

    allocation = allocate(request.amount, invoices)

    return _book_batch(
        tenant=tenant,
        ledger=ledger,
        party=party,
        request=request,
        allocations=allocation.allocations,
        remainder=allocation.remainder,
        bank_account=bank_account,
        user=user,
    )


def record_invoice_payment(tenant_id, ledger, invoice_id, request, user=None) -> DistributionResult:
    """
    Pay one chosen invoice directly instead of distributing FIFO.

    The applied amount is capped at the invoice balance; whatever is left
    over comes back as the remainder, exactly as with ``record_payment``.
    """
    ledger = get_ledger(ledger)
    if isinstance(request, dict):
        request = PaymentRequest.from_payload(request)

    log_extra = {
        "tenant_id": tenant_id,
        "ledger": ledger.name,
        "invoice_id": invoice_id,
        "amount": str(request.amount),
        "payment_mode": request.payment_mode,
    }
    logger.info("Recording %s invoice payment", ledger.name, extra=log_extra)

    result = _run_atomic(
        partial(_pay_invoice, tenant_id, ledger, invoice_id, request, user),
        log_extra,
    )

    logger.info(
        "Recorded %s invoice payment, remainder %s",
        ledger.name,
        result.remainder,
        extra={**log_extra, "batch_reference": str(result.batch_reference)},
    )
    return result


def _pay_invoice(tenant_id, ledger, invoice_id, request, user):
    validate_payment_request(request)

    tenant = require_tenant(tenant_id)
    assert_same_tenant(
        tenant,
        [
            TenantRef(ledger.invoice_model, invoice_id, allow_null=False),
            TenantRef(BankAccount, request.bank_account_id),
        ],
    )

    party_id = (
        ledger.invoice_model.objects.for_tenant(tenant)
        .filter(pk=invoice_id)
        .values_list(f"{ledger.party_field}_id", flat=True)
        .get()
    )

    # Same lock order as a distribution: party, bank account, then invoice
    party = ledger.get_party(tenant, party_id, lock=True)
    if not party.is_active:
        raise ValidationError(f"{party} is inactive and cannot take payments.")

    bank_account = _lock_bank_account(tenant, request.bank_account_id)

    invoice = (
        ledger.invoice_model.objects.for_tenant(tenant)
        .select_for_update()
        .get(pk=invoice_id)
    )
    if invoice.balance_amount <= 0:
        raise ValidationError(f"Invoice {invoice.invoice_number} is already paid.")

    applied = min(request.amount, invoice.balance_amount)

    return _book_batch(
        tenant=tenant,
        ledger=ledger,
        party=party,
        request=request,
        allocations=[Allocation(invoice, applied)],
        remainder=request.amount - applied,
        bank_account=bank_account,
        user=user,
    )


def record_vendor_payment(tenant_id, vendor_id, request, user=None):
    return record_payment(tenant_id, "vendor", vendor_id, request, user=user)


def record_retailer_payment(tenant_id, retailer_id, request, user=None):
    return record_payment(tenant_id, "retailer", retailer_id, request, user=user)
