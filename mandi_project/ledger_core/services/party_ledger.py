"""
Per-party capabilities used by the payment recorder.

Vendor and retailer payments run the same distribution; what differs is
which tables they touch and which way money moves. Each ledger class
bundles those differences so the recorder never branches on party kind.
"""
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db.models import F

from ..models import (BankAccount, BankbookEntry, CashbookEntry, Payment,
                      PurchaseInvoice, Retailer, SalesInvoice, SalesPayment,
                      Tenant, Vendor)
from ..models.banking import REF_SALES_PAYMENT, REF_VENDOR_PAYMENT
from ..models.notification import CHANNEL_PURCHASE, CHANNEL_SALES
from ..models.payment import MODE_CASH


class PartyLedger:
    name = None
    party_model = None
    invoice_model = None
    payment_model = None
    party_field = None
    channel = None
    reference_type = None
    # +1 when the tenant receives money, -1 when it pays out
    cash_direction = 0

    def __repr__(self):
        return f"<{self.__class__.__name__}>"

    def get_party(self, tenant, party_id, lock=False):
        qs = self.party_model.objects.for_tenant(tenant)
        if lock:
            qs = qs.select_for_update()
        try:
            return qs.get(pk=party_id)
        except self.party_model.DoesNotExist:
            # assert_same_tenant runs first, so this is a vanished row
            raise ValidationError(f"{self.party_model.__name__} not found.")

    def get_outstanding_invoices(self, tenant, party_id, lock=False):
        from .outstanding import list_outstanding_invoices  # avoid cyc import

        return list_outstanding_invoices(tenant, self, party_id, lock=lock)

    def apply_allocation(self, *, tenant, party, invoice, amount, request,
                         batch_reference, bank_account=None):
        """Write one payment row for ``amount`` and settle it on ``invoice``."""
        payment = self.payment_model(
            tenant=tenant,
            invoice=invoice,
            amount=amount,
            payment_mode=request.payment_mode,
            payment_date=request.payment_date,
            bank_account=bank_account,
            cheque_number=request.cheque_number,
            upi_reference=request.upi_reference,
            payment_link_id=request.payment_link_id,
            notes=request.notes,
            batch_reference=batch_reference,
            **{self.party_field: party},
        )
        # validated against the invoice balance before it moves
        payment.save()
        invoice.apply_payment(amount)
        return payment

    def adjust_party_balance(self, party, delta: Decimal):
        # evaluated by the database, so concurrent writers cannot lose updates
        self.party_model.objects.filter(pk=party.pk).update(
            balance=F("balance") + delta
        )
        party.refresh_from_db(fields=["balance"])
        return party.balance

    def describe(self, party, count):
        raise NotImplementedError

    def record_book_entry(self, *, tenant, party, payments, total,
                          request, bank_account=None):
        """
        Post the batch total to the cashbook (cash) or the bankbook
        (anything settled through a bank account). A payment link paid
        without a bank account has no book to post to.
        """
        if not payments or total <= 0:
            return None

        first = payments[0]
        common = {
            "tenant": tenant,
            "date": request.payment_date,
            "description": self.describe(party, len(payments)),
            "reference_type": self.reference_type,
            "reference_id": str(first.pk),
        }
        delta = total * self.cash_direction

        if request.payment_mode == MODE_CASH:
            # the tenant row holds the last running cash balance
            locked = Tenant.objects.select_for_update().get(pk=tenant.pk)
            new_balance = locked.cash_balance + delta
            entry = CashbookEntry.objects.create(
                inflow=total if delta > 0 else Decimal("0.00"),
                outflow=total if delta < 0 else Decimal("0.00"),
                balance=new_balance,
                **common,
            )
            Tenant.objects.filter(pk=tenant.pk).update(cash_balance=new_balance)
            tenant.cash_balance = new_balance
            return entry

        if bank_account is None:
            return None

        locked = BankAccount.objects.select_for_update().get(pk=bank_account.pk)
        new_balance = locked.balance + delta
        entry = BankbookEntry.objects.create(
            bank_account=bank_account,
            debit=total if delta > 0 else Decimal("0.00"),
            credit=total if delta < 0 else Decimal("0.00"),
            balance=new_balance,
            **common,
        )
        BankAccount.objects.filter(pk=bank_account.pk).update(balance=new_balance)
        bank_account.balance = new_balance
        return entry


class VendorLedger(PartyLedger):  # Tenant pays vendors for purchases
    name = "vendor"
    party_model = Vendor
    invoice_model = PurchaseInvoice
    payment_model = Payment
    party_field = "vendor"
    channel = CHANNEL_PURCHASE
    reference_type = REF_VENDOR_PAYMENT
    cash_direction = -1

    def describe(self, party, count):
        return f"Payment to {party.name} ({count} invoice(s))"


class RetailerLedger(PartyLedger):  # Retailers pay the tenant for sales
    name = "retailer"
    party_model = Retailer
    invoice_model = SalesInvoice
    payment_model = SalesPayment
    party_field = "retailer"
    channel = CHANNEL_SALES
    reference_type = REF_SALES_PAYMENT
    cash_direction = 1

    def describe(self, party, count):
        return f"Payment from {party.name} ({count} invoice(s))"


LEDGERS = {
    VendorLedger.name: VendorLedger(),
    RetailerLedger.name: RetailerLedger(),
}


def get_ledger(ledger):
    """Accept a ledger instance or its name ("vendor" / "retailer")."""
    if isinstance(ledger, PartyLedger):
        return ledger
    try:
        return LEDGERS[ledger]
    except (KeyError, TypeError):
        raise ValueError(f"Unknown ledger {ledger!r}")
