import datetime
from decimal import Decimal
from unittest import mock

from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.test import TransactionTestCase

from ..exceptions import (NoOutstandingInvoices, ReferenceNotFound,
                          StorageFailure, TenantMismatch, TenantRequired)
from ..models import (AuditLog, BankbookEntry, CashbookEntry,
                      NotificationOutbox, Payment, PurchaseInvoice,
                      SalesPayment, Vendor)
from ..services import (record_invoice_payment, record_payment,
                        record_retailer_payment, record_vendor_payment)
from ..services.party_ledger import PartyLedger
from .helpers import (add_invoice, make_bank_account, make_retailer,
                      make_tenant, make_vendor, payment_request)

D1 = datetime.date(2025, 9, 1)
D2 = datetime.date(2025, 9, 2)


class VendorPaymentTests(TransactionTestCase):
    reset_sequences = True

    def setUp(self):
        self.tenant = make_tenant("green-mandi", cash_balance=Decimal("10000.00"))
        self.vendor = make_vendor(self.tenant)
        self.bank = make_bank_account(self.tenant, balance=Decimal("5000.00"))

    def assertNothingRecorded(self):
        self.assertEqual(Payment.objects.count(), 0)
        self.assertEqual(NotificationOutbox.objects.count(), 0)
        self.assertEqual(CashbookEntry.objects.count(), 0)
        self.assertEqual(BankbookEntry.objects.count(), 0)
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_payment_spans_two_invoices(self):
        """500 against 300 + 700 settles the older invoice first."""
        inv1 = add_invoice(self.vendor, "PI-1", "300.00", D1)
        inv2 = add_invoice(self.vendor, "PI-2", "700.00", D2)

        result = record_vendor_payment(
            self.tenant.pk, self.vendor.pk, payment_request("500.00"))

        self.assertEqual(
            [(p.invoice_id, p.amount) for p in result.payments_created],
            [(inv1.pk, Decimal("300.00")), (inv2.pk, Decimal("200.00"))],
        )
        self.assertEqual(result.remainder, Decimal("0.00"))
        self.assertEqual(result.distributed_amount, Decimal("500.00"))

        inv1.refresh_from_db()
        inv2.refresh_from_db()
        self.assertEqual(inv1.status, "Paid")
        self.assertEqual(inv1.balance_amount, Decimal("0.00"))
        self.assertEqual(inv2.status, "Partially Paid")
        self.assertEqual(inv2.paid_amount, Decimal("200.00"))
        self.assertEqual(inv2.balance_amount, Decimal("500.00"))

        self.vendor.refresh_from_db()
        self.assertEqual(self.vendor.balance, Decimal("500.00"))
        self.assertEqual(result.party_balance_after, Decimal("500.00"))

        # all rows of one submission share a batch reference
        self.assertEqual(
            set(Payment.objects.values_list("batch_reference", flat=True)),
            {result.batch_reference},
        )

    def test_overpayment_leaves_remainder_unbooked(self):
        inv = add_invoice(self.vendor, "PI-1", "200.00", D1)

        result = record_vendor_payment(
            self.tenant.pk, self.vendor.pk, payment_request("500.00"))

        self.assertEqual(len(result.payments_created), 1)
        self.assertEqual(result.payments_created[0].amount, Decimal("200.00"))
        self.assertEqual(result.remainder, Decimal("300.00"))

        inv.refresh_from_db()
        self.vendor.refresh_from_db()
        self.assertEqual(inv.status, "Paid")
        # the remainder never reaches the party balance
        self.assertEqual(self.vendor.balance, Decimal("0.00"))

        entry = CashbookEntry.objects.get()
        self.assertEqual(entry.outflow, Decimal("200.00"))

    def test_no_outstanding_invoices(self):
        with self.assertRaises(NoOutstandingInvoices):
            record_vendor_payment(
                self.tenant.pk, self.vendor.pk, payment_request("500.00"))

        self.assertNothingRecorded()

    def test_paid_invoices_are_not_outstanding(self):
        add_invoice(self.vendor, "PI-1", "100.00", D1)
        record_vendor_payment(self.tenant.pk, self.vendor.pk, payment_request("100.00"))

        with self.assertRaises(NoOutstandingInvoices):
            record_vendor_payment(self.tenant.pk, self.vendor.pk, payment_request("1.00"))
        self.assertEqual(Payment.objects.count(), 1)

    def test_bank_mode_without_bank_account(self):
        inv = add_invoice(self.vendor, "PI-1", "300.00", D1)

        with self.assertRaises(ValidationError) as ctx:
            record_vendor_payment(
                self.tenant.pk, self.vendor.pk, payment_request("100.00", mode="Bank"))

        self.assertIn("bank_account_id", ctx.exception.message_dict)
        self.assertNothingRecorded()
        inv.refresh_from_db()
        self.assertEqual(inv.balance_amount, Decimal("300.00"))

    def test_bank_account_of_other_tenant(self):
        inv = add_invoice(self.vendor, "PI-1", "300.00", D1)
        other = make_tenant("other-mandi")
        foreign_bank = make_bank_account(other, name="Their Account")

        with self.assertLogs("ledger_core.security", level="ERROR"):
            with self.assertRaises(TenantMismatch):
                record_vendor_payment(
                    self.tenant.pk,
                    self.vendor.pk,
                    payment_request("100.00", mode="Bank", bank_account_id=foreign_bank.pk),
                )

        self.assertNothingRecorded()
        inv.refresh_from_db()
        self.vendor.refresh_from_db()
        self.assertEqual(inv.balance_amount, Decimal("300.00"))
        self.assertEqual(self.vendor.balance, Decimal("300.00"))

    def test_vendor_of_other_tenant(self):
        other = make_tenant("other-mandi")
        their_vendor = make_vendor(other, name="Their Vendor")
        add_invoice(their_vendor, "PI-X", "300.00", D1)

        with self.assertRaises(TenantMismatch):
            record_vendor_payment(
                self.tenant.pk, their_vendor.pk, payment_request("100.00"))

        self.assertEqual(Payment.objects.count(), 0)
        their_vendor.refresh_from_db()
        self.assertEqual(their_vendor.balance, Decimal("300.00"))

    def test_unknown_vendor(self):
        with self.assertRaises(ReferenceNotFound):
            record_vendor_payment(self.tenant.pk, 9999, payment_request("100.00"))

    def test_missing_tenant_fails_closed(self):
        add_invoice(self.vendor, "PI-1", "300.00", D1)

        with self.assertRaises(TenantRequired):
            record_vendor_payment(None, self.vendor.pk, payment_request("100.00"))
        self.assertNothingRecorded()

    def test_inactive_vendor_is_rejected(self):
        add_invoice(self.vendor, "PI-1", "300.00", D1)
        Vendor.objects.filter(pk=self.vendor.pk).update(is_active=False)

        with self.assertRaises(ValidationError):
            record_vendor_payment(self.tenant.pk, self.vendor.pk, payment_request("100.00"))
        self.assertNothingRecorded()

    def test_storage_failure_rolls_everything_back(self):
        inv1 = add_invoice(self.vendor, "PI-1", "300.00", D1)
        inv2 = add_invoice(self.vendor, "PI-2", "700.00", D2)

        with mock.patch.object(
            PartyLedger, "adjust_party_balance", side_effect=DatabaseError("deadlock detected")
        ):
            with self.assertLogs("ledger_core.payments", level="ERROR"):
                with self.assertRaises(StorageFailure) as ctx:
                    record_vendor_payment(
                        self.tenant.pk, self.vendor.pk, payment_request("500.00"))

        self.assertIsInstance(ctx.exception.__cause__, DatabaseError)
        self.assertNothingRecorded()
        inv1.refresh_from_db()
        inv2.refresh_from_db()
        self.assertEqual(inv1.paid_amount, Decimal("0.00"))
        self.assertEqual(inv1.status, "Unpaid")
        self.assertEqual(inv2.balance_amount, Decimal("700.00"))

    def test_cash_payment_writes_cashbook_outflow(self):
        add_invoice(self.vendor, "PI-1", "300.00", D1)
        add_invoice(self.vendor, "PI-2", "700.00", D2)

        result = record_vendor_payment(
            self.tenant.pk, self.vendor.pk, payment_request("500.00"))

        entry = CashbookEntry.objects.get()
        self.assertEqual(entry.outflow, Decimal("500.00"))
        self.assertEqual(entry.inflow, Decimal("0.00"))
        self.assertEqual(entry.balance, Decimal("9500.00"))
        self.assertEqual(entry.reference_type, "Payment")
        self.assertEqual(entry.reference_id, str(result.payments_created[0].pk))
        self.tenant.refresh_from_db()
        self.assertEqual(self.tenant.cash_balance, Decimal("9500.00"))

    def test_cheque_payment_writes_bankbook_credit(self):
        add_invoice(self.vendor, "PI-1", "300.00", D1)

        record_vendor_payment(
            self.tenant.pk,
            self.vendor.pk,
            payment_request(
                "300.00", mode="Cheque", bank_account_id=self.bank.pk,
                cheque_number="004512"),
        )

        payment = Payment.objects.get()
        self.assertEqual(payment.bank_account_id, self.bank.pk)
        self.assertEqual(payment.cheque_number, "004512")
        entry = BankbookEntry.objects.get()
        self.assertEqual(entry.credit, Decimal("300.00"))
        self.assertEqual(entry.balance, Decimal("4700.00"))
        self.bank.refresh_from_db()
        self.assertEqual(self.bank.balance, Decimal("4700.00"))
        self.assertEqual(CashbookEntry.objects.count(), 0)

    def test_payment_link_without_bank_account_has_no_book_entry(self):
        add_invoice(self.vendor, "PI-1", "300.00", D1)

        record_vendor_payment(
            self.tenant.pk,
            self.vendor.pk,
            payment_request("100.00", mode="PaymentLink", payment_link_id="plink_9"),
        )

        self.assertEqual(Payment.objects.get().payment_link_id, "plink_9")
        self.assertEqual(CashbookEntry.objects.count(), 0)
        self.assertEqual(BankbookEntry.objects.count(), 0)

    def test_inactive_bank_account_is_rejected(self):
        add_invoice(self.vendor, "PI-1", "300.00", D1)
        self.bank.is_active = False
        self.bank.save()

        with self.assertRaises(ValidationError):
            record_vendor_payment(
                self.tenant.pk,
                self.vendor.pk,
                payment_request("100.00", mode="Bank", bank_account_id=self.bank.pk),
            )
        self.assertNothingRecorded()

    def test_same_day_invoices_settle_in_creation_order(self):
        first = add_invoice(self.vendor, "PI-B", "100.00", D1)
        second = add_invoice(self.vendor, "PI-A", "100.00", D1)

        result = record_vendor_payment(
            self.tenant.pk, self.vendor.pk, payment_request("150.00"))

        self.assertEqual(
            [(p.invoice_id, p.amount) for p in result.payments_created],
            [(first.pk, Decimal("100.00")), (second.pk, Decimal("50.00"))],
        )

    def test_resubmission_records_a_second_batch(self):
        add_invoice(self.vendor, "PI-1", "1000.00", D1)

        first = record_vendor_payment(self.tenant.pk, self.vendor.pk, payment_request("100.00"))
        second = record_vendor_payment(self.tenant.pk, self.vendor.pk, payment_request("100.00"))

        self.assertNotEqual(first.batch_reference, second.batch_reference)
        self.assertEqual(Payment.objects.count(), 2)
        self.vendor.refresh_from_db()
        self.assertEqual(self.vendor.balance, Decimal("800.00"))

    def test_audit_trail_for_distribution(self):
        add_invoice(self.vendor, "PI-1", "300.00", D1)
        add_invoice(self.vendor, "PI-2", "700.00", D2)

        result = record_vendor_payment(
            self.tenant.pk, self.vendor.pk, payment_request("500.00"))

        summary = AuditLog.objects.get(action="record_payment")
        self.assertEqual(summary.tenant_id, self.tenant.pk)
        self.assertEqual(summary.object_type, "Vendor")
        self.assertEqual(summary.changes["distributed"], "500.00")
        self.assertEqual(summary.changes["batch_reference"], str(result.batch_reference))
        self.assertEqual(AuditLog.objects.filter(action="apply_payment").count(), 2)

    def test_payload_dict_is_accepted(self):
        add_invoice(self.vendor, "PI-1", "300.00", D1)

        result = record_payment(
            self.tenant.pk,
            "vendor",
            self.vendor.pk,
            {"amount": "120.00", "paymentMode": "Cash", "paymentDate": "2025-09-20"},
        )

        data = result.as_dict()
        self.assertEqual(data["remainder"], "0.00")
        self.assertEqual(data["totalAmount"], "120.00")
        self.assertEqual(len(data["paymentsCreated"]), 1)
        self.assertEqual(data["paymentsCreated"][0]["amount"], "120.00")
        self.assertEqual(data["invoicesUpdated"][0]["status"], "Partially Paid")
        self.assertEqual(data["invoicesUpdated"][0]["balanceAmount"], "180.00")

    def test_unknown_ledger_name(self):
        with self.assertRaises(ValueError):
            record_payment(self.tenant.pk, "customer", self.vendor.pk, payment_request("1.00"))


class RetailerPaymentTests(TransactionTestCase):
    reset_sequences = True

    def setUp(self):
        self.tenant = make_tenant("green-mandi", cash_balance=Decimal("1000.00"))
        self.retailer = make_retailer(self.tenant)
        self.bank = make_bank_account(self.tenant, balance=Decimal("2000.00"))

    def test_upi_payment_settles_sales_invoices(self):
        inv1 = add_invoice(self.retailer, "SI-1", "400.00", D1)
        inv2 = add_invoice(self.retailer, "SI-2", "600.00", D2)

        result = record_retailer_payment(
            self.tenant.pk,
            self.retailer.pk,
            payment_request(
                "700.00", mode="UPI", bank_account_id=self.bank.pk,
                upi_reference="UPI-889900"),
        )

        self.assertEqual(
            [(p.invoice_id, p.amount) for p in result.payments_created],
            [(inv1.pk, Decimal("400.00")), (inv2.pk, Decimal("300.00"))],
        )
        self.assertEqual(SalesPayment.objects.count(), 2)
        self.assertEqual(Payment.objects.count(), 0)
        self.retailer.refresh_from_db()
        self.assertEqual(self.retailer.balance, Decimal("300.00"))

        # money comes in: a debit on the bank account
        entry = BankbookEntry.objects.get()
        self.assertEqual(entry.debit, Decimal("700.00"))
        self.assertEqual(entry.reference_type, "Sales Payment")
        self.bank.refresh_from_db()
        self.assertEqual(self.bank.balance, Decimal("2700.00"))

    def test_cash_receipt_writes_cashbook_inflow(self):
        add_invoice(self.retailer, "SI-1", "250.00", D1)

        record_retailer_payment(
            self.tenant.pk, self.retailer.pk, payment_request("250.00"))

        entry = CashbookEntry.objects.get()
        self.assertEqual(entry.inflow, Decimal("250.00"))
        self.assertEqual(entry.balance, Decimal("1250.00"))
        self.tenant.refresh_from_db()
        self.assertEqual(self.tenant.cash_balance, Decimal("1250.00"))

    def test_unknown_retailer(self):
        with self.assertRaises(ReferenceNotFound):
            record_retailer_payment(self.tenant.pk, 4242, payment_request("10.00"))


class InvoicePaymentTests(TransactionTestCase):
    """Paying one chosen invoice rather than distributing oldest first."""

    reset_sequences = True

    def setUp(self):
        self.tenant = make_tenant("green-mandi", cash_balance=Decimal("10000.00"))
        self.vendor = make_vendor(self.tenant)
        self.bank = make_bank_account(self.tenant, balance=Decimal("5000.00"))
        self.older = add_invoice(self.vendor, "PI-1", "300.00", D1)
        self.newer = add_invoice(self.vendor, "PI-2", "700.00", D2)

    def test_pays_the_chosen_invoice_not_the_oldest(self):
        result = record_invoice_payment(
            self.tenant.pk, "vendor", self.newer.pk, payment_request("200.00"))

        self.assertEqual(
            [(p.invoice_id, p.amount) for p in result.payments_created],
            [(self.newer.pk, Decimal("200.00"))],
        )
        self.assertEqual(result.remainder, Decimal("0.00"))

        self.older.refresh_from_db()
        self.newer.refresh_from_db()
        self.assertEqual(self.older.balance_amount, Decimal("300.00"))
        self.assertEqual(self.newer.status, "Partially Paid")
        self.assertEqual(self.newer.balance_amount, Decimal("500.00"))

        self.vendor.refresh_from_db()
        self.assertEqual(self.vendor.balance, Decimal("800.00"))
        self.assertEqual(result.party_balance_after, Decimal("800.00"))

        entry = CashbookEntry.objects.get()
        self.assertEqual(entry.outflow, Decimal("200.00"))
        self.assertEqual(entry.reference_id, str(result.payments_created[0].pk))

    def test_amount_is_capped_at_invoice_balance(self):
        result = record_invoice_payment(
            self.tenant.pk,
            "vendor",
            self.older.pk,
            payment_request("450.00", mode="Bank", bank_account_id=self.bank.pk),
        )

        self.assertEqual(result.payments_created[0].amount, Decimal("300.00"))
        self.assertEqual(result.remainder, Decimal("150.00"))
        self.assertEqual(result.distributed_amount, Decimal("300.00"))

        self.older.refresh_from_db()
        self.newer.refresh_from_db()
        self.assertEqual(self.older.status, "Paid")
        # the remainder does not spill onto the next invoice
        self.assertEqual(self.newer.balance_amount, Decimal("700.00"))

        self.vendor.refresh_from_db()
        self.assertEqual(self.vendor.balance, Decimal("700.00"))
        entry = BankbookEntry.objects.get()
        self.assertEqual(entry.credit, Decimal("300.00"))
        self.bank.refresh_from_db()
        self.assertEqual(self.bank.balance, Decimal("4700.00"))

        log = AuditLog.objects.get(action="record_payment")
        self.assertEqual(log.changes["remainder"], "150.00")
        self.assertEqual(NotificationOutbox.objects.count(), 1)

    def test_paid_invoice_is_rejected(self):
        record_invoice_payment(
            self.tenant.pk, "vendor", self.older.pk, payment_request("300.00"))

        with self.assertRaises(ValidationError):
            record_invoice_payment(
                self.tenant.pk, "vendor", self.older.pk, payment_request("10.00"))
        self.assertEqual(Payment.objects.count(), 1)

    def test_invoice_of_other_tenant(self):
        other = make_tenant("other-mandi")
        their_vendor = make_vendor(other, name="Their Vendor")
        theirs = add_invoice(their_vendor, "PI-X", "300.00", D1)

        with self.assertLogs("ledger_core.security", level="ERROR"):
            with self.assertRaises(TenantMismatch):
                record_invoice_payment(
                    self.tenant.pk, "vendor", theirs.pk, payment_request("100.00"))

        self.assertEqual(Payment.objects.count(), 0)
        theirs.refresh_from_db()
        self.assertEqual(theirs.balance_amount, Decimal("300.00"))

    def test_unknown_invoice(self):
        with self.assertRaises(ReferenceNotFound):
            record_invoice_payment(
                self.tenant.pk, "vendor", 4242, payment_request("10.00"))

    def test_retailer_invoice_receipt(self):
        retailer = make_retailer(self.tenant)
        inv = add_invoice(retailer, "SI-1", "250.00", D1)

        result = record_invoice_payment(
            self.tenant.pk, "retailer", inv.pk, payment_request("100.00"))

        self.assertIsInstance(result.payments_created[0], SalesPayment)
        retailer.refresh_from_db()
        self.assertEqual(retailer.balance, Decimal("150.00"))
        entry = CashbookEntry.objects.get()
        self.assertEqual(entry.inflow, Decimal("100.00"))


class PaymentOrderTests(TransactionTestCase):
    """Two payments against one party end in the same state in either order."""

    def build_party(self, slug):
        tenant = make_tenant(slug)
        vendor = make_vendor(tenant)
        add_invoice(vendor, "PI-1", "300.00", D1)
        add_invoice(vendor, "PI-2", "500.00", D2)
        return tenant, vendor

    def final_state(self, tenant, vendor):
        vendor.refresh_from_db()
        invoices = PurchaseInvoice.objects.for_tenant(tenant).order_by("invoice_date")
        return (
            vendor.balance,
            [(i.paid_amount, i.balance_amount, i.status) for i in invoices],
        )

    def test_either_order_gives_same_balances(self):
        tenant_a, vendor_a = self.build_party("order-a")
        tenant_b, vendor_b = self.build_party("order-b")

        for amount in ("400.00", "350.00"):
            record_vendor_payment(tenant_a.pk, vendor_a.pk, payment_request(amount))
        for amount in ("350.00", "400.00"):
            record_vendor_payment(tenant_b.pk, vendor_b.pk, payment_request(amount))

        self.assertEqual(self.final_state(tenant_a, vendor_a), self.final_state(tenant_b, vendor_b))
        self.assertEqual(self.final_state(tenant_a, vendor_a)[0], Decimal("50.00"))
