from django.core.management.base import BaseCommand

from backoffice.components.lifecycle import ComponentLifecycleService


class Command(BaseCommand):
    help = 'Check component lifecycle statuses and raise obsolescence alerts'

    def handle(self, *args, **options):
        self.stdout.write('Checking component lifecycle statuses...')
        results = ComponentLifecycleService().check_lifecycle_status()

        self.stdout.write(f"Components checked: {results['components_checked']}")
        self.stdout.write(f"Alerts created: {results['alerts_created']}")
        if results['critical_issues']:
            self.stdout.write(self.style.WARNING(f"Critical issues: {results['critical_issues']}"))
        self.stdout.write(self.style.SUCCESS('Lifecycle check completed'))
