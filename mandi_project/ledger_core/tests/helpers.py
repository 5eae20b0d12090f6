import datetime
from decimal import Decimal

from django.db.models import F

from ..models import (BankAccount, PurchaseInvoice, Retailer, SalesInvoice,
                      Tenant, Vendor)
from ..services import PaymentRequest

PAY_DATE = datetime.date(2025, 9, 20)


def make_tenant(slug, **kwargs):
    kwargs.setdefault("name", slug.replace("-", " ").title())
    return Tenant.objects.create(slug=slug, **kwargs)


def make_vendor(tenant, name="Ramesh Farms", **kwargs):
    return Vendor.objects.create(tenant=tenant, name=name, **kwargs)


def make_retailer(tenant, name="Sharma Fruits", **kwargs):
    return Retailer.objects.create(tenant=tenant, name=name, **kwargs)


def make_bank_account(tenant, name="Current Account", **kwargs):
    return BankAccount.objects.create(tenant=tenant, name=name, **kwargs)


def add_invoice(party, number, net, invoice_date):
    """
    Create an unpaid invoice for a vendor (purchase) or retailer (sales)
    and raise the party balance by the same amount, as the invoice flow does.
    """
    if isinstance(party, Vendor):
        model, field = PurchaseInvoice, "vendor"
    else:
        model, field = SalesInvoice, "retailer"
    invoice = model.objects.create(
        tenant=party.tenant,
        invoice_number=number,
        invoice_date=invoice_date,
        net_amount=Decimal(net),
        **{field: party},
    )
    type(party).objects.filter(pk=party.pk).update(balance=F("balance") + Decimal(net))
    party.refresh_from_db()
    return invoice


def payment_request(amount, mode="Cash", **kwargs):
    kwargs.setdefault("payment_date", PAY_DATE)
    return PaymentRequest(amount=Decimal(amount), payment_mode=mode, **kwargs)


class RecordingNotifier:
    calls = []

    def notify(self, tenant_id, payment_id, channel):
        RecordingNotifier.calls.append((tenant_id, payment_id, channel))


class FailingNotifier:
    def notify(self, tenant_id, payment_id, channel):
        raise ConnectionError("WhatsApp gateway unreachable")
