from django.core.management.base import BaseCommand

from backoffice.components.aruco import ArUcoService
from backoffice.components.models import Component


class Command(BaseCommand):
    help = 'Generate ArUco codes and marker images for components that have none'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show how many components would get a marker',
        )

    def handle(self, *args, **options):
        pending = Component.objects.filter(aruco_code__isnull=True).count()
        self.stdout.write(f'Found {pending} components without ArUco code')

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))
            return

        count = ArUcoService().generate_missing_aruco_codes()
        self.stdout.write(self.style.SUCCESS(f'Generated {count} ArUco code(s)'))
