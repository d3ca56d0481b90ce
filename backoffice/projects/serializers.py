from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers
from .models import (
    Milestone, Project, ProjectMilestone, ProjectBom, ProjectBomItem,
    ProjectTask, TaskDependency, TimeEntry, ProjectPcbFile
)


class MilestoneSerializer(serializers.ModelSerializer):
    class Meta:
        model = Milestone
        fields = ['id', 'name', 'description', 'icon', 'color', 'category', 'sort_order', 'is_active',
                  'deadline', 'email_notifications', 'notification_days_before']


class ProjectMilestoneSerializer(serializers.ModelSerializer):
    milestone_name = serializers.CharField(source='milestone.name', read_only=True)
    category = serializers.CharField(source='milestone.category', read_only=True)

    class Meta:
        model = ProjectMilestone
        fields = ['id', 'milestone', 'milestone_name', 'category', 'target_date', 'completed_date',
                  'notes', 'is_completed', 'sort_order']
        read_only_fields = ['completed_date']


class ProjectBomItemSerializer(serializers.ModelSerializer):
    component_sku = serializers.CharField(source='component.sku', read_only=True, allow_null=True)

    class Meta:
        model = ProjectBomItem
        fields = ['id', 'component', 'component_sku', 'reference', 'value', 'footprint', 'quantity',
                  'allocated', 'estimated_unit_cost', 'actual_unit_cost', 'notes']


class ProjectBomSerializer(serializers.ModelSerializer):
    items = ProjectBomItemSerializer(many=True, read_only=True)

    class Meta:
        model = ProjectBom
        fields = ['id', 'name', 'revision', 'notes', 'items']


class ProjectListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for project lists"""
    customer_name = serializers.CharField(source='customer.company_name', read_only=True, allow_null=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = Project
        fields = ['id', 'code', 'name', 'customer', 'customer_name', 'status', 'start_date', 'due_date',
                  'budget', 'completion_percentage', 'is_overdue']


class ProjectSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.company_name', read_only=True, allow_null=True)
    project_milestones = ProjectMilestoneSerializer(many=True, read_only=True)
    boms = ProjectBomSerializer(many=True, read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)
    is_over_budget = serializers.BooleanField(read_only=True)
    days_until_deadline = serializers.IntegerField(read_only=True, allow_null=True)
    production_progress = serializers.IntegerField(read_only=True)
    assembly_progress = serializers.IntegerField(read_only=True)

    class Meta:
        model = Project
        fields = ['id', 'code', 'name', 'description', 'customer', 'customer_name', 'status', 'start_date',
                  'due_date', 'budget', 'manual_budget', 'actual_cost', 'completion_percentage',
                  'total_boards_ordered', 'boards_produced', 'boards_assembled', 'notes',
                  'nextcloud_folder_created', 'nextcloud_base_path', 'project_milestones', 'boms',
                  'is_overdue', 'is_over_budget', 'days_until_deadline', 'production_progress',
                  'assembly_progress', 'created_at', 'updated_at']
        read_only_fields = ['code', 'completion_percentage', 'total_boards_ordered', 'nextcloud_folder_created',
                            'nextcloud_base_path', 'created_at', 'updated_at']

    def validate(self, data):
        start = data.get('start_date', getattr(self.instance, 'start_date', None))
        due = data.get('due_date', getattr(self.instance, 'due_date', None))
        if start and due and due < start:
            raise serializers.ValidationError({'due_date': 'Due date cannot be before the start date'})
        return data


class TaskDependencySerializer(serializers.ModelSerializer):
    class Meta:
        model = TaskDependency
        fields = ['id', 'predecessor', 'successor', 'dependency_type', 'lag_days']

    def validate(self, data):
        try:
            TaskDependency(**data).clean()
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.messages)
        return data


class ProjectTaskSerializer(serializers.ModelSerializer):
    is_overdue = serializers.BooleanField(read_only=True)
    predecessors = TaskDependencySerializer(source='predecessor_links', many=True, read_only=True)

    class Meta:
        model = ProjectTask
        fields = ['id', 'project', 'name', 'description', 'start_date', 'end_date', 'actual_start_date',
                  'actual_end_date', 'duration_days', 'progress_percentage', 'status', 'priority',
                  'assigned_to', 'sort_order', 'color', 'is_milestone', 'estimated_hours', 'actual_hours',
                  'is_overdue', 'predecessors']
        read_only_fields = ['project', 'duration_days', 'actual_hours']

    def validate(self, data):
        start = data.get('start_date', getattr(self.instance, 'start_date', None))
        end = data.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'End date cannot be before the start date'})
        return data


class TimeEntrySerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', read_only=True)
    project_code = serializers.CharField(source='project.code', read_only=True)
    task_name = serializers.CharField(source='task.name', read_only=True, allow_null=True)
    billable_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    can_be_edited = serializers.BooleanField(read_only=True)

    class Meta:
        model = TimeEntry
        fields = ['id', 'user', 'username', 'project', 'project_code', 'task', 'task_name', 'date',
                  'start_time', 'end_time', 'hours', 'description', 'entry_type', 'is_billable',
                  'hourly_rate', 'status', 'rejection_reason', 'approved_by', 'approved_at',
                  'billable_amount', 'can_be_edited', 'created_at']
        read_only_fields = ['user', 'status', 'rejection_reason', 'approved_by', 'approved_at', 'created_at']

    def validate(self, data):
        start = data.get('start_time', getattr(self.instance, 'start_time', None))
        end = data.get('end_time', getattr(self.instance, 'end_time', None))
        if start and end and end <= start:
            raise serializers.ValidationError({'end_time': 'End time must be after the start time'})
        task = data.get('task', getattr(self.instance, 'task', None))
        project = data.get('project', getattr(self.instance, 'project', None))
        if task and project and task.project_id != project.id:
            raise serializers.ValidationError({'task': 'Task does not belong to the selected project'})
        if self.instance is not None and not self.instance.can_be_edited:
            raise serializers.ValidationError(f"A {self.instance.status} time entry cannot be edited")
        return data


class ProjectPcbFileSerializer(serializers.ModelSerializer):
    human_file_size = serializers.CharField(read_only=True)
    full_path = serializers.CharField(read_only=True)
    uploaded_by_name = serializers.CharField(source='uploaded_by.username', read_only=True, allow_null=True)

    class Meta:
        model = ProjectPcbFile
        fields = ['id', 'project', 'file_name', 'file_type', 'file', 'file_size', 'human_file_size',
                  'file_hash', 'folder_path', 'full_path', 'version', 'description', 'metadata', 'is_primary',
                  'is_backup', 'change_type', 'uploaded_by', 'uploaded_by_name', 'created_at']
        read_only_fields = fields
