from django.core.management.base import BaseCommand, CommandError
from ledger_core.models import BusinessUnit
from ledger_core.services import reconcile_balances


class Command(BaseCommand):
    help = "Recompute GL account balances from posted lines and report drift."

    def add_arguments(self, parser):
        parser.add_argument("slug", nargs="?", help="Business unit slug (default: all).")
        parser.add_argument(
            "--repair",
            action="store_true",
            help="Overwrite drifted cached balances with the recomputed value.",
        )

    def handle(self, *args, **options):
        business_units = BusinessUnit.objects.all()
        if options["slug"]:
            business_units = business_units.filter(slug=options["slug"])
            if not business_units.exists():
                raise CommandError(f"No business unit with slug '{options['slug']}'")

        total = 0
        for business_unit in business_units:
            drifts = reconcile_balances(business_unit, repair=options["repair"])
            total += len(drifts)
            for drift in drifts:
                self.stdout.write(self.style.WARNING(
                    f"{business_unit.slug} {drift.code}: cached {drift.cached} "
                    f"expected {drift.expected}"
                ))
        if total:
            verb = "Repaired" if options["repair"] else "Found"
            self.stdout.write(self.style.WARNING(f"{verb} {total} drifted account(s)"))
        else:
            self.stdout.write(self.style.SUCCESS("All balances agree with posted lines"))
