import decimal
import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Tenant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("slug", models.SlugField(max_length=80, unique=True)),
                ("is_active", models.BooleanField(default=True)),
                ("cash_balance", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=14)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name="BankAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("account_number", models.CharField(blank=True, default="", max_length=50)),
                ("balance", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=14)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.tenant")),
            ],
            options={
                "indexes": [models.Index(fields=["tenant", "name"], name="bankacct_tenant_name_idx")],
                "constraints": [models.UniqueConstraint(fields=("tenant", "name"), name="uq_tenant_bankaccount_name")],
            },
        ),
        migrations.CreateModel(
            name="Vendor",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("phone", models.CharField(blank=True, default="", max_length=32)),
                ("balance", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=14)),
                ("crate_balance", models.IntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.tenant")),
            ],
            options={
                "indexes": [models.Index(fields=["tenant", "name"], name="vendor_tenant_name_idx")],
                "constraints": [models.UniqueConstraint(fields=("tenant", "name"), name="uq_tenant_vendor_name")],
            },
        ),
        migrations.CreateModel(
            name="Retailer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("phone", models.CharField(blank=True, default="", max_length=32)),
                ("balance", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=14)),
                ("crate_balance", models.IntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.tenant")),
            ],
            options={
                "indexes": [models.Index(fields=["tenant", "name"], name="retailer_tenant_name_idx")],
                "constraints": [models.UniqueConstraint(fields=("tenant", "name"), name="uq_tenant_retailer_name")],
            },
        ),
        migrations.CreateModel(
            name="PurchaseInvoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("invoice_number", models.CharField(max_length=64)),
                ("invoice_date", models.DateField()),
                ("net_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("paid_amount", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=14)),
                ("balance_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("status", models.CharField(choices=[("Unpaid", "Unpaid"), ("Partially Paid", "Partially paid"), ("Paid", "Paid")], default="Unpaid", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.tenant")),
                ("vendor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.vendor")),
            ],
            options={
                "indexes": [models.Index(fields=["tenant", "vendor", "invoice_date"], name="pinv_tenant_vendor_date_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("tenant", "invoice_number"), name="uq_purchase_invoice_tenant_number"),
                    models.CheckConstraint(
                        condition=models.Q(("net_amount__gte", 0), ("paid_amount__gte", 0), ("balance_amount__gte", 0)),
                        name="purchase_invoice_non_negative_amounts",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SalesInvoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("invoice_number", models.CharField(max_length=64)),
                ("invoice_date", models.DateField()),
                ("net_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("paid_amount", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=14)),
                ("balance_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("status", models.CharField(choices=[("Unpaid", "Unpaid"), ("Partially Paid", "Partially paid"), ("Paid", "Paid")], default="Unpaid", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.tenant")),
                ("retailer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.retailer")),
            ],
            options={
                "indexes": [models.Index(fields=["tenant", "retailer", "invoice_date"], name="sinv_tenant_retailer_date_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("tenant", "invoice_number"), name="uq_sales_invoice_tenant_number"),
                    models.CheckConstraint(
                        condition=models.Q(("net_amount__gte", 0), ("paid_amount__gte", 0), ("balance_amount__gte", 0)),
                        name="sales_invoice_non_negative_amounts",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("payment_mode", models.CharField(choices=[("Cash", "Cash"), ("Bank", "Bank"), ("UPI", "UPI"), ("Cheque", "Cheque"), ("PaymentLink", "Payment link")], max_length=20)),
                ("payment_date", models.DateField()),
                ("cheque_number", models.CharField(blank=True, default="", max_length=64)),
                ("upi_reference", models.CharField(blank=True, default="", max_length=128)),
                ("payment_link_id", models.CharField(blank=True, default="", max_length=128)),
                ("notes", models.TextField(blank=True, default="")),
                ("batch_reference", models.UUIDField(default=uuid.uuid4, editable=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("bank_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, to="ledger_core.bankaccount")),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.purchaseinvoice")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.tenant")),
                ("vendor", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.vendor")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["tenant", "vendor"], name="payment_tenant_vendor_idx"),
                    models.Index(fields=["tenant", "batch_reference"], name="payment_tenant_batch_idx"),
                ],
                "constraints": [models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="payment_positive_amount")],
            },
        ),
        migrations.CreateModel(
            name="SalesPayment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("payment_mode", models.CharField(choices=[("Cash", "Cash"), ("Bank", "Bank"), ("UPI", "UPI"), ("Cheque", "Cheque"), ("PaymentLink", "Payment link")], max_length=20)),
                ("payment_date", models.DateField()),
                ("cheque_number", models.CharField(blank=True, default="", max_length=64)),
                ("upi_reference", models.CharField(blank=True, default="", max_length=128)),
                ("payment_link_id", models.CharField(blank=True, default="", max_length=128)),
                ("notes", models.TextField(blank=True, default="")),
                ("batch_reference", models.UUIDField(default=uuid.uuid4, editable=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("bank_account", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, to="ledger_core.bankaccount")),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.salesinvoice")),
                ("retailer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.retailer")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.tenant")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["tenant", "retailer"], name="spay_tenant_retailer_idx"),
                    models.Index(fields=["tenant", "batch_reference"], name="spay_tenant_batch_idx"),
                ],
                "constraints": [models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="sales_payment_positive_amount")],
            },
        ),
        migrations.CreateModel(
            name="CashbookEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("description", models.CharField(max_length=255)),
                ("inflow", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=14)),
                ("outflow", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=14)),
                ("balance", models.DecimalField(decimal_places=2, max_digits=14)),
                ("reference_type", models.CharField(choices=[("Payment", "Vendor payment"), ("Sales Payment", "Retailer payment")], max_length=20)),
                ("reference_id", models.CharField(max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.tenant")),
            ],
            options={
                "verbose_name_plural": "cashbook entries",
                "indexes": [
                    models.Index(fields=["tenant", "date"], name="cashbook_tenant_date_idx"),
                    models.Index(fields=["tenant", "reference_type", "reference_id"], name="cashbook_tenant_ref_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BankbookEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("description", models.CharField(max_length=255)),
                ("debit", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=14)),
                ("credit", models.DecimalField(decimal_places=2, default=decimal.Decimal("0.00"), max_digits=14)),
                ("balance", models.DecimalField(decimal_places=2, max_digits=14)),
                ("reference_type", models.CharField(choices=[("Payment", "Vendor payment"), ("Sales Payment", "Retailer payment")], max_length=20)),
                ("reference_id", models.CharField(max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("bank_account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.bankaccount")),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.tenant")),
            ],
            options={
                "verbose_name_plural": "bankbook entries",
                "indexes": [
                    models.Index(fields=["tenant", "bank_account", "date"], name="bankbook_tenant_acct_date_idx"),
                    models.Index(fields=["tenant", "reference_type", "reference_id"], name="bankbook_tenant_ref_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="NotificationOutbox",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("payment_id", models.CharField(max_length=64)),
                ("channel", models.CharField(choices=[("purchase", "Purchase payment"), ("sales", "Sales payment")], max_length=20)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("sent", "Sent"), ("failed", "Failed")], default="pending", max_length=10)),
                ("attempts", models.PositiveIntegerField(default=0)),
                ("last_error", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("tenant", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="ledger_core.tenant")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="outbox_status_created_idx"),
                    models.Index(fields=["tenant", "channel", "payment_id"], name="outbox_tenant_payment_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("tenant", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="ledger_core.tenant")),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["tenant", "user"], name="audit_tenant_user_idx"),
                    models.Index(fields=["tenant", "created_at"], name="audit_tenant_created_idx"),
                ],
            },
        ),
    ]
