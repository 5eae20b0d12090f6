from django.core.management.base import BaseCommand, CommandError

from ledger_core.models import Tenant
from ledger_core.services.consistency import (check_tenant_consistency,
                                              repair_tenant_balances)


class Command(BaseCommand):
    help = (
        "Check that invoice amounts, statuses and party balances agree "
        "for one tenant or all of them."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--tenant",  # tenant slug
            help="Only check the tenant with this slug.",
        )
        parser.add_argument(
            "--repair",
            action="store_true",
            help="Reset party balances to the sum of their invoice balances.",
        )

    def handle(self, *args, **options):
        tenants = Tenant.objects.filter(is_active=True).order_by("slug")
        if options["tenant"]:
            tenants = tenants.filter(slug=options["tenant"])
            if not tenants.exists():
                raise CommandError(f"No active tenant with slug {options['tenant']!r}")

        problems = 0
        for tenant in tenants:
            if options["repair"]:
                repaired = repair_tenant_balances(tenant.pk)
                if repaired:
                    self.stdout.write(
                        self.style.WARNING(f"{tenant.slug}: repaired {repaired} party balance(s)")
                    )

            found = check_tenant_consistency(tenant.pk)
            for discrepancy in found:
                self.stdout.write(self.style.ERROR(f"{tenant.slug}: {discrepancy}"))
            if not found:
                self.stdout.write(self.style.SUCCESS(f"{tenant.slug}: consistent"))
            problems += len(found)

        if problems:
            raise CommandError(f"{problems} discrepancy(ies) found")
