from django.core.management.base import BaseCommand
from django.utils import timezone

from backoffice.projects.models import Project, ProjectTask


class Command(BaseCommand):
    help = 'List open projects nearing their deadline, overdue projects and overdue tasks'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=7,
            help='Deadline look-ahead window in days (default 7)',
        )

    def handle(self, *args, **options):
        days = options['days']
        today = timezone.localdate()
        open_projects = Project.objects.exclude(status__in=Project.CLOSED_STATUSES).filter(
            due_date__isnull=False
        ).select_related('customer')

        nearing = [p for p in open_projects if p.is_nearing_deadline(days)]
        overdue = [p for p in open_projects if p.is_overdue]
        overdue_tasks = ProjectTask.objects.exclude(status__in=['completed', 'cancelled']).filter(
            end_date__lt=today
        ).select_related('project')

        for project in nearing:
            self.stdout.write(
                f"[DEADLINE] {project.code} {project.name}: due {project.due_date} "
                f"({project.days_until_deadline} days left)"
            )
        for project in overdue:
            self.stdout.write(self.style.ERROR(
                f"[OVERDUE] {project.code} {project.name}: due {project.due_date} "
                f"({-project.days_until_deadline} days late)"
            ))
        for task in overdue_tasks:
            self.stdout.write(self.style.WARNING(
                f"[TASK] {task.project.code} / {task.name}: ended {task.end_date}, {task.progress_percentage}% done"
            ))

        self.stdout.write(self.style.SUCCESS(
            f'{len(nearing)} project(s) nearing deadline, {len(overdue)} overdue, '
            f'{overdue_tasks.count()} overdue task(s)'
        ))
