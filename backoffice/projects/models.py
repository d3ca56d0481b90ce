from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import Max, Sum
from django.utils import timezone
from django.utils.text import slugify
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
import logging

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')


class Milestone(models.Model):
    """Milestone template that projects pick from"""
    CATEGORY_CHOICES = [
        ('design', 'Design'),
        ('prototyping', 'Prototyping'),
        ('production', 'Production'),
        ('testing', 'Testing'),
        ('delivery', 'Delivery'),
        ('documentation', 'Documentation'),
        ('other', 'Other'),
    ]

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    icon = models.CharField(max_length=50, blank=True)
    color = models.CharField(max_length=20, blank=True, default='#3b82f6')
    category = models.CharField(max_length=50, choices=CATEGORY_CHOICES, default='design')
    sort_order = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    deadline = models.DateField(null=True, blank=True)
    email_notifications = models.BooleanField(default=False)
    notification_days_before = models.PositiveIntegerField(default=7)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'milestones'
        ordering = ['sort_order', 'name']


class Project(models.Model):
    STATUS_CHOICES = [
        ('planning', 'Planning'),
        ('in_progress', 'In Progress'),
        ('testing', 'Testing'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]
    CLOSED_STATUSES = ('completed', 'cancelled')

    code = models.CharField(max_length=100, unique=True, db_index=True, blank=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    customer = models.ForeignKey('parties.Customer', on_delete=models.PROTECT, null=True, blank=True,
                                 related_name='projects')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='planning', db_index=True)
    start_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)
    budget = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    manual_budget = models.BooleanField(default=False, help_text="Keep the budget when quotations change")
    actual_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    completion_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    total_boards_ordered = models.PositiveIntegerField(default=0)
    boards_produced = models.PositiveIntegerField(default=0)
    boards_assembled = models.PositiveIntegerField(default=0)
    notes = models.TextField(blank=True)
    milestones = models.ManyToManyField(Milestone, through='ProjectMilestone', related_name='projects', blank=True)
    nextcloud_folder_created = models.BooleanField(default=False)
    nextcloud_base_path = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.code} - {self.name}"

    @classmethod
    def generate_project_code(cls, name):
        """Uppercased slug of the name, suffixed -02, -03, ... on collision"""
        max_length = cls._meta.get_field('code').max_length
        base_code = slugify(name).upper()[:max_length].rstrip('-') or 'PROJECT'
        if not cls.objects.filter(code=base_code).exists():
            return base_code

        counter = 2
        while True:
            suffix = f"-{counter:02d}"
            candidate = base_code[:max_length - len(suffix)].rstrip('-') + suffix
            if not cls.objects.filter(code=candidate).exists():
                return candidate
            counter += 1

    def save(self, *args, **kwargs):
        if not self.code:
            self.code = self.generate_project_code(self.name)
        super().save(*args, **kwargs)

    # Milestones

    def milestone_completion_percentage(self):
        total = self.project_milestones.count()
        if total == 0:
            return 0
        completed = self.project_milestones.filter(is_completed=True).count()
        return round(completed / total * 100, 1)

    def update_completion_percentage(self):
        self.completion_percentage = Decimal(str(self.milestone_completion_percentage())).quantize(TWO_PLACES)
        self.save(update_fields=['completion_percentage', 'updated_at'])
        return self.completion_percentage

    def get_next_milestone(self):
        return (self.project_milestones.filter(is_completed=False)
                .select_related('milestone').order_by('sort_order', 'id').first())

    def apply_generated_milestones(self, items):
        """Attach generated milestone dicts (name, description, category, days_offset, sort_order)"""
        start = self.start_date or timezone.localdate()
        created = []
        for item in items:
            milestone, _ = Milestone.objects.get_or_create(
                name=item['name'],
                defaults={
                    'description': item.get('description', ''),
                    'category': item.get('category') or 'design',
                    'sort_order': item.get('sort_order', 0),
                },
            )
            link, was_created = ProjectMilestone.objects.get_or_create(
                project=self,
                milestone=milestone,
                defaults={
                    'target_date': start + timedelta(days=item.get('days_offset', 0)),
                    'sort_order': item.get('sort_order', 0),
                    'notes': item.get('description', ''),
                },
            )
            if was_created:
                created.append(link)
        logger.info(f"Applied {len(created)} generated milestones to project {self.code}")
        return created

    # Schedule and budget

    @property
    def is_overdue(self):
        return bool(self.due_date and self.due_date < timezone.localdate()
                    and self.status not in self.CLOSED_STATUSES)

    @property
    def is_over_budget(self):
        return bool(self.budget and self.actual_cost > self.budget)

    @property
    def days_until_deadline(self):
        if not self.due_date:
            return None
        return (self.due_date - timezone.localdate()).days

    def is_nearing_deadline(self, days=7):
        remaining = self.days_until_deadline
        return remaining is not None and 0 <= remaining <= days

    def _accepted_quotations(self):
        return self.quotations.filter(status='accepted')

    def calculate_budget_from_quotations(self):
        total = self._accepted_quotations().aggregate(total=Sum('total'))['total'] or Decimal('0.00')
        if not self.manual_budget and total > 0:
            self.budget = total
            self.save(update_fields=['budget', 'updated_at'])
        return total

    def calculate_total_boards_ordered(self):
        boards = self._accepted_quotations().aggregate(boards=Sum('boards_quantity'))['boards'] or 0
        self.total_boards_ordered = boards
        self.save(update_fields=['total_boards_ordered', 'updated_at'])
        return boards

    @property
    def production_progress(self):
        if not self.total_boards_ordered:
            return 0
        return round(self.boards_produced / self.total_boards_ordered * 100)

    @property
    def assembly_progress(self):
        if not self.boards_produced:
            return 0
        return round(self.boards_assembled / self.boards_produced * 100)

    class Meta:
        db_table = 'projects'
        ordering = ['-created_at']


class ProjectMilestone(models.Model):
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='project_milestones')
    milestone = models.ForeignKey(Milestone, on_delete=models.CASCADE, related_name='project_links')
    target_date = models.DateField(null=True, blank=True)
    completed_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    is_completed = models.BooleanField(default=False)
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.project.code} - {self.milestone.name}"

    def save(self, *args, **kwargs):
        if self.is_completed and not self.completed_date:
            self.completed_date = timezone.localdate()
        elif not self.is_completed:
            self.completed_date = None
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'project_milestones'
        ordering = ['sort_order', 'id']
        constraints = [
            models.UniqueConstraint(fields=['project', 'milestone'], name='unique_project_milestone'),
        ]


class ProjectBom(models.Model):
    """Bill of materials of a project board"""
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='boms')
    name = models.CharField(max_length=255)
    revision = models.CharField(max_length=20, blank=True, default='A')
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.project.code} - {self.name} rev {self.revision}"

    @property
    def estimated_cost(self):
        return sum((item.estimated_total for item in self.items.all()), Decimal('0.00'))

    class Meta:
        db_table = 'project_boms'
        ordering = ['project', 'name']


class ProjectBomItem(models.Model):
    bom = models.ForeignKey(ProjectBom, on_delete=models.CASCADE, related_name='items')
    component = models.ForeignKey('components.Component', on_delete=models.PROTECT, null=True, blank=True,
                                  related_name='bom_items')
    reference = models.CharField(max_length=255, blank=True, help_text="Designators, e.g. R1, R2")
    value = models.CharField(max_length=100, blank=True)
    footprint = models.CharField(max_length=150, blank=True)
    quantity = models.PositiveIntegerField(default=1)
    allocated = models.BooleanField(default=False)
    estimated_unit_cost = models.DecimalField(max_digits=10, decimal_places=4, null=True, blank=True)
    actual_unit_cost = models.DecimalField(max_digits=10, decimal_places=4, null=True, blank=True)
    notes = models.TextField(blank=True)

    def __str__(self):
        return f"{self.reference or self.value} x{self.quantity}"

    @property
    def estimated_total(self):
        unit_cost = self.estimated_unit_cost
        if unit_cost is None and self.component_id:
            unit_cost = self.component.unit_price
        return (unit_cost or Decimal('0')) * self.quantity

    class Meta:
        db_table = 'project_bom_items'
        ordering = ['bom', 'reference']


class ProjectTask(models.Model):
    STATUS_CHOICES = [
        ('not_started', 'Not Started'),
        ('in_progress', 'In Progress'),
        ('completed', 'Completed'),
        ('on_hold', 'On Hold'),
        ('cancelled', 'Cancelled'),
    ]
    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('critical', 'Critical'),
    ]
    STATUS_COLORS = {
        'not_started': '#94a3b8',
        'in_progress': '#3b82f6',
        'completed': '#22c55e',
        'on_hold': '#f59e0b',
        'cancelled': '#6b7280',
    }
    PRIORITY_COLORS = {
        'low': '#22c55e',
        'medium': '#f59e0b',
        'high': '#ef4444',
        'critical': '#991b1b',
    }
    OVERDUE_COLOR = '#ef4444'

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='tasks')
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    start_date = models.DateField()
    end_date = models.DateField()
    actual_start_date = models.DateField(null=True, blank=True)
    actual_end_date = models.DateField(null=True, blank=True)
    duration_days = models.PositiveIntegerField(default=1)
    progress_percentage = models.PositiveIntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='not_started', db_index=True)
    priority = models.CharField(max_length=20, choices=PRIORITY_CHOICES, default='medium')
    assigned_to = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='project_tasks')
    sort_order = models.PositiveIntegerField(default=0)
    color = models.CharField(max_length=20, blank=True)
    is_milestone = models.BooleanField(default=False)
    estimated_hours = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    actual_hours = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.project.code} - {self.name}"

    def clean(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({'end_date': 'End date cannot be before the start date'})

    def save(self, *args, **kwargs):
        if self.start_date and self.end_date:
            self.duration_days = (self.end_date - self.start_date).days + 1
        super().save(*args, **kwargs)

    def can_start(self):
        """Finish-to-start predecessors must be completed, start-to-start ones started"""
        for dependency in self.predecessor_links.select_related('predecessor'):
            predecessor = dependency.predecessor
            if dependency.dependency_type == 'FS' and predecessor.status != 'completed':
                return False
            if dependency.dependency_type == 'SS' and predecessor.status not in ('in_progress', 'completed'):
                return False
        return True

    def update_progress(self, percentage):
        percentage = max(0, min(100, int(percentage)))
        self.progress_percentage = percentage
        today = timezone.localdate()

        if percentage >= 100:
            self.status = 'completed'
            self.actual_end_date = today
        elif percentage > 0 and self.status == 'not_started':
            self.status = 'in_progress'
            if not self.actual_start_date:
                self.actual_start_date = today

        self.save()
        return self

    @property
    def is_overdue(self):
        return self.status != 'completed' and self.end_date < timezone.localdate()

    @property
    def progress_color(self):
        if self.status == 'in_progress' and self.is_overdue:
            return self.OVERDUE_COLOR
        return self.STATUS_COLORS.get(self.status, self.STATUS_COLORS['not_started'])

    @property
    def priority_color(self):
        return self.PRIORITY_COLORS.get(self.priority, self.PRIORITY_COLORS['medium'])

    def get_gantt_data(self):
        return {
            'id': self.id,
            'name': self.name,
            'start': self.start_date.isoformat(),
            'end': self.end_date.isoformat(),
            'progress': self.progress_percentage,
            'status': self.status,
            'priority': self.priority,
            'color': self.color or self.progress_color,
            'priority_color': self.priority_color,
            'is_milestone': self.is_milestone,
            'is_overdue': self.is_overdue,
            'assigned_to': self.assigned_to.get_full_name() if self.assigned_to_id else None,
            'dependencies': [str(pk) for pk in self.predecessor_links.values_list('predecessor_id', flat=True)],
        }

    class Meta:
        db_table = 'project_tasks'
        ordering = ['project', 'sort_order', 'start_date']
        indexes = [
            models.Index(fields=['project', 'status'], name='project_tas_project_4b7c1e_idx'),
        ]


class TaskDependency(models.Model):
    TYPE_CHOICES = [
        ('FS', 'Finish to Start'),
        ('SS', 'Start to Start'),
        ('FF', 'Finish to Finish'),
        ('SF', 'Start to Finish'),
    ]

    predecessor = models.ForeignKey(ProjectTask, on_delete=models.CASCADE, related_name='successor_links')
    successor = models.ForeignKey(ProjectTask, on_delete=models.CASCADE, related_name='predecessor_links')
    dependency_type = models.CharField(max_length=2, choices=TYPE_CHOICES, default='FS')
    lag_days = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.predecessor.name} -> {self.successor.name} ({self.dependency_type})"

    def clean(self):
        if self.predecessor_id and self.predecessor_id == self.successor_id:
            raise ValidationError('A task cannot depend on itself')
        if self.predecessor_id and self.successor_id and self.predecessor.project_id != self.successor.project_id:
            raise ValidationError('Dependent tasks must belong to the same project')

    class Meta:
        db_table = 'task_dependencies'
        verbose_name_plural = 'task dependencies'
        constraints = [
            models.UniqueConstraint(fields=['predecessor', 'successor'], name='unique_task_dependency'),
        ]


class TimeEntry(models.Model):
    TYPE_CHOICES = [
        ('development', 'Development'),
        ('testing', 'Testing'),
        ('design', 'Design'),
        ('meeting', 'Meeting'),
        ('documentation', 'Documentation'),
        ('research', 'Research'),
        ('other', 'Other'),
    ]
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('submitted', 'Submitted'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='time_entries')
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='time_entries')
    task = models.ForeignKey(ProjectTask, on_delete=models.SET_NULL, null=True, blank=True,
                             related_name='time_entries')
    date = models.DateField(default=timezone.localdate)
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)
    hours = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal('0.00'),
                                validators=[MinValueValidator(Decimal('0.00'))])
    description = models.TextField(blank=True)
    entry_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='development')
    is_billable = models.BooleanField(default=True)
    hourly_rate = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft', db_index=True)
    rejection_reason = models.TextField(blank=True)
    approved_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='approved_time_entries')
    approved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user} - {self.project.code} - {self.date} ({self.hours}h)"

    def clean(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValidationError({'end_time': 'End time must be after the start time'})
        if self.task_id and self.project_id and self.task.project_id != self.project_id:
            raise ValidationError({'task': 'Task does not belong to the selected project'})

    def calculate_hours(self):
        if not (self.start_time and self.end_time):
            return self.hours
        if self.end_time <= self.start_time:
            raise ValidationError({'end_time': 'End time must be after the start time'})
        start = datetime.combine(self.date, self.start_time)
        end = datetime.combine(self.date, self.end_time)
        minutes = (end - start).total_seconds() / 60
        return (Decimal(str(minutes)) / Decimal('60')).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

    def save(self, *args, **kwargs):
        self.hours = self.calculate_hours()
        if self.hourly_rate is None and self.user_id:
            self.hourly_rate = self.user.hourly_rate
        super().save(*args, **kwargs)
        if self.task_id:
            self.task_actual_hours_refresh(self.task_id)

    def delete(self, *args, **kwargs):
        task_id = self.task_id
        result = super().delete(*args, **kwargs)
        if task_id:
            self.task_actual_hours_refresh(task_id)
        return result

    @staticmethod
    def task_actual_hours_refresh(task_id):
        """Task actual hours are the sum of its approved entries"""
        total = TimeEntry.objects.filter(task_id=task_id, status='approved').aggregate(
            total=Sum('hours'))['total'] or Decimal('0.00')
        ProjectTask.objects.filter(pk=task_id).update(actual_hours=total, updated_at=timezone.now())

    @property
    def billable_amount(self):
        if not self.is_billable or not self.hourly_rate:
            return Decimal('0.00')
        return (self.hours * self.hourly_rate).quantize(TWO_PLACES)

    @property
    def can_be_edited(self):
        return self.status in ('draft', 'rejected')

    @property
    def can_be_approved(self):
        return self.status == 'submitted'

    def submit(self):
        self.status = 'submitted'
        self.rejection_reason = ''
        self.save()

    def approve(self, user):
        self.status = 'approved'
        self.approved_by = user
        self.approved_at = timezone.now()
        self.rejection_reason = ''
        self.save()

    def reject(self, user, reason):
        self.status = 'rejected'
        self.approved_by = user
        self.approved_at = timezone.now()
        self.rejection_reason = reason
        self.save()

    @property
    def variance(self):
        """Task actual hours minus its estimate"""
        if not self.task_id or not self.task.estimated_hours:
            return None
        return self.task.actual_hours - self.task.estimated_hours

    @property
    def variance_percentage(self):
        variance = self.variance
        if variance is None:
            return None
        return round(float(variance / self.task.estimated_hours * 100), 2)

    @classmethod
    def get_summary(cls, start_date, end_date, user=None, project=None):
        entries = cls.objects.filter(date__range=(start_date, end_date))
        if user is not None:
            entries = entries.filter(user=user)
        if project is not None:
            entries = entries.filter(project=project)

        def hours_of(queryset):
            return queryset.aggregate(total=Sum('hours'))['total'] or Decimal('0.00')

        billable = entries.filter(is_billable=True)
        total_amount = sum(
            (entry.hours * entry.hourly_rate for entry in billable.exclude(hourly_rate__isnull=True)),
            Decimal('0.00'),
        )
        return {
            'total_hours': hours_of(entries),
            'billable_hours': hours_of(billable),
            'non_billable_hours': hours_of(entries.filter(is_billable=False)),
            'total_amount': total_amount.quantize(TWO_PLACES),
            'approved_hours': hours_of(entries.filter(status='approved')),
            'pending_hours': hours_of(entries.filter(status='submitted')),
            'draft_hours': hours_of(entries.filter(status='draft')),
        }

    class Meta:
        db_table = 'time_entries'
        ordering = ['-date', '-start_time']
        verbose_name_plural = 'time entries'
        indexes = [
            models.Index(fields=['user', 'date'], name='time_entrie_user_id_9d3a2b_idx'),
            models.Index(fields=['project', 'date'], name='time_entrie_project_1f6e8c_idx'),
        ]


def pcb_upload_to(instance, filename):
    return f"pcb/{instance.project_id}/{filename}"


class ProjectPcbFile(models.Model):
    FILE_TYPE_CHOICES = [
        ('kicad_pcb', 'KiCad PCB'),
        ('kicad_sch', 'KiCad Schematic'),
        ('kicad_pro', 'KiCad Project'),
        ('gerber', 'Gerber'),
        ('drill', 'Drill'),
        ('altium', 'Altium'),
        ('eagle', 'Eagle'),
        ('pdf', 'PDF'),
        ('step', 'STEP 3D'),
        ('other', 'Other'),
    ]
    CHANGE_TYPE_CHOICES = [
        ('major', 'Major'),
        ('minor', 'Minor'),
        ('patch', 'Patch'),
        ('backup', 'Backup'),
    ]

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='pcb_files')
    file_name = models.CharField(max_length=255)
    file_type = models.CharField(max_length=20, choices=FILE_TYPE_CHOICES, default='other', db_index=True)
    file = models.FileField(upload_to=pcb_upload_to, max_length=500)
    file_size = models.BigIntegerField(default=0)
    file_hash = models.CharField(max_length=64, blank=True)
    folder_path = models.CharField(max_length=500, blank=True)
    version = models.PositiveIntegerField(default=1)
    description = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    is_primary = models.BooleanField(default=False)
    is_backup = models.BooleanField(default=False)
    change_type = models.CharField(max_length=10, choices=CHANGE_TYPE_CHOICES, default='minor')
    uploaded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='pcb_uploads')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.file_name} v{self.version}"

    @classmethod
    def next_version(cls, project, file_type):
        latest = cls.objects.filter(project=project, file_type=file_type, is_backup=False).aggregate(
            latest=Max('version'))['latest']
        return (latest or 0) + 1

    @property
    def full_path(self):
        if self.folder_path:
            return f"{self.folder_path.rstrip('/')}/{self.file_name}"
        return self.file.name if self.file else self.file_name

    @property
    def human_file_size(self):
        return format_bytes(self.file_size)

    class Meta:
        db_table = 'project_pcb_files'
        ordering = ['project', 'file_type', '-version']
        indexes = [
            models.Index(fields=['project', 'file_type', 'version'], name='project_pcb_project_7a2c5d_idx'),
        ]


def format_bytes(size):
    units = ['B', 'KB', 'MB', 'GB']
    value = float(size or 0)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{value:.2f} {units[index]}"
