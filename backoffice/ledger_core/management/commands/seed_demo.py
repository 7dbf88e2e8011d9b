from django.core.management import call_command
from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = "Seeds the database with demo data (wraps create_demo_tenant)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--name",
            type=str,
            default="Demo Bistro",
            help="Name of the demo restaurant (default: Demo Bistro)",
        )

    def handle(self, *args, **options):
        name = options["name"]
        self.stdout.write(self.style.NOTICE(f"Seeding demo data for {name}..."))
        call_command("create_demo_tenant", name=name)
        self.stdout.write(self.style.SUCCESS("Demo data seeded successfully!"))
