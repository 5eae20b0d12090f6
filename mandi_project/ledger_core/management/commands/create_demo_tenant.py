import datetime
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils.text import slugify

from ledger_core.models import (BankAccount, PurchaseInvoice, Retailer,
                                SalesInvoice, Tenant, Vendor)


class Command(BaseCommand):
    help = (
        "Create a demo tenant with a vendor, a retailer, a bank account "
        "and a few unpaid invoices to record payments against."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--tenant-name",  # Define flag
            default="Demo Mandi",
            help="Name of the demo tenant to create.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        tenant_name = options["tenant_name"]

        # Generate unique slug for tenant
        def unique_slug_for_tenant(name, max_tries=100):
            base = slugify(name) or "mandi"
            slug = base
            i = 1
            # If plain slug is taken, append -1, -2, etc.
            while Tenant.objects.filter(slug=slug).exists():
                slug = f"{base}-{i}"
                i += 1
                if i > max_tries:
                    raise RuntimeError("Couldn't generate unique slug")
            return slug

        # 1. Create tenant
        tenant = Tenant.objects.create(
            name=tenant_name,
            slug=unique_slug_for_tenant(tenant_name),
            cash_balance=Decimal("50000.00"),
        )
        self.stdout.write(self.style.SUCCESS(f"Created tenant: {tenant} ({tenant.slug})"))

        # 2. Bank account
        bank = BankAccount.objects.create(
            tenant=tenant, name="Current Account", account_number="000123456789",
            balance=Decimal("100000.00"),
        )
        self.stdout.write(self.style.SUCCESS(f"Created bank account: {bank}"))

        # 3. Parties with invoices, oldest first; party balance = sum of invoices
        today = datetime.date.today()
        vendor = Vendor.objects.create(tenant=tenant, name="Ramesh Farms", phone="9800000001")
        retailer = Retailer.objects.create(tenant=tenant, name="Sharma Fruits", phone="9800000002")

        purchases = [Decimal("3000.00"), Decimal("7000.00")]
        for n, net in enumerate(purchases, start=1):
            PurchaseInvoice.objects.create(
                tenant=tenant,
                vendor=vendor,
                invoice_number=f"{tenant.slug[:8].upper()}-PI-{n:03d}",
                invoice_date=today - datetime.timedelta(days=len(purchases) - n + 1),
                net_amount=net,
            )
        Vendor.objects.filter(pk=vendor.pk).update(balance=sum(purchases))

        sales = [Decimal("1500.00"), Decimal("2500.00"), Decimal("4000.00")]
        for n, net in enumerate(sales, start=1):
            SalesInvoice.objects.create(
                tenant=tenant,
                retailer=retailer,
                invoice_number=f"{tenant.slug[:8].upper()}-SI-{n:03d}",
                invoice_date=today - datetime.timedelta(days=len(sales) - n + 1),
                net_amount=net,
            )
        Retailer.objects.filter(pk=retailer.pk).update(balance=sum(sales))

        self.stdout.write(self.style.SUCCESS(
            f"Created vendor {vendor} and retailer {retailer} with open invoices"))
        self.stdout.write(self.style.SUCCESS("Demo tenant setup complete!"))
