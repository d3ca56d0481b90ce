from django.core.management.base import BaseCommand

from backoffice.components.certification import CertificationManagementService


class Command(BaseCommand):
    help = 'List component certifications expiring soon and mark expired ones'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=90,
            help='Look-ahead window in days (default 90)',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Only report, do not flip expired certifications',
        )

    def handle(self, *args, **options):
        service = CertificationManagementService()

        if not options['dry_run']:
            expired = service.mark_expired()
            if expired:
                self.stdout.write(self.style.WARNING(f'{expired} certification(s) marked as expired'))

        expiring = service.check_expiring_certifications(days_ahead=options['days'])
        if not expiring:
            self.stdout.write(self.style.SUCCESS(f"No certifications expiring in the next {options['days']} days"))
            return

        for item in expiring:
            line = (
                f"[{item['urgency'].upper()}] {item['component_name']} {item['certification_type']} "
                f"expires {item['expiry_date']} ({item['days_until_expiry']} days)"
            )
            if item['urgency'] == 'critical':
                self.stdout.write(self.style.ERROR(line))
            else:
                self.stdout.write(line)

        self.stdout.write(self.style.SUCCESS(f'{len(expiring)} certification(s) expiring soon'))
