from django.core.management.base import BaseCommand
from django.utils import timezone

from billing.models import AnnualCopayment
from billing.money import Money
from billing.policy import CopaymentPolicy


class Command(BaseCommand):
    help = "Print each patient's accumulated copayment for a year and whether the annual cap is reached."

    def add_arguments(self, parser):
        parser.add_argument('--year', type=int, default=None, help='Ledger year (defaults to the current year)')

    def handle(self, *args, **options):
        year = options.get('year') or timezone.localdate().year
        policy = CopaymentPolicy.from_settings()
        rows = AnnualCopayment.objects.filter(year=year).order_by('-amount', 'patient_id')

        capped = 0
        for row in rows:
            accumulated = Money(row.amount)
            reached = accumulated >= policy.annual_cap
            capped += int(reached)
            flag = 'CAP' if reached else ''
            self.stdout.write(f"{row.patient_id:<32} {accumulated} {flag}".rstrip())

        self.stdout.write(self.style.SUCCESS(
            f"{len(rows)} patients in {year}, {capped} at or over the cap of {policy.annual_cap}"
        ))
