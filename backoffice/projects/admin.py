from django.contrib import admin
from django.core.serializers.json import DjangoJSONEncoder
from django.http import HttpResponse
import json

from backoffice.components.certification import CertificationManagementService
from backoffice.core.ai_services import AiServiceFactory
from backoffice.core.nextcloud import get_nextcloud_service
from backoffice.core.utils import create_audit_log, status_badge
from .models import (
    Milestone, Project, ProjectMilestone, ProjectBom, ProjectBomItem,
    ProjectTask, TaskDependency, TimeEntry, ProjectPcbFile
)
from .pcb_versions import PcbVersionControlService

ADMIN_REJECTION_REASON = "Rejected from the time entry list"


def _ai_service_or_error(model_admin, request):
    service = AiServiceFactory.make()
    if not service.is_configured():
        model_admin.message_user(request, "No AI provider is configured.", level='error')
        return None
    return service


@admin.register(Milestone)
class MilestoneAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'sort_order', 'deadline', 'email_notifications', 'is_active']
    list_filter = ['category', 'is_active', 'email_notifications']
    search_fields = ['name', 'description']
    ordering = ['sort_order', 'name']
    actions = ['improve_description_with_ai']

    def improve_description_with_ai(self, request, queryset):
        service = _ai_service_or_error(self, request)
        if service is None:
            return

        improved = 0
        failed = []
        for milestone in queryset:
            project = milestone.projects.first()
            try:
                text = service.improve_milestone_description(
                    milestone.name, project.name if project else '', milestone.description,
                    context={'category': milestone.get_category_display()},
                )
            except Exception as e:
                failed.append(f"{milestone.name}: {str(e)}")
                continue
            if not text:
                failed.append(milestone.name)
                continue
            milestone.description = text
            milestone.save(update_fields=['description', 'updated_at'])
            improved += 1

        if improved:
            self.message_user(request, f"Improved {improved} milestone description(s).", level='success')
        if failed:
            self.message_user(request, f"AI did not return a description for: {'; '.join(failed[:5])}",
                              level='warning')
    improve_description_with_ai.short_description = "Improve description with AI"


class ProjectMilestoneInline(admin.TabularInline):
    model = ProjectMilestone
    extra = 0
    fields = ['milestone', 'target_date', 'is_completed', 'completed_date', 'sort_order', 'notes']
    readonly_fields = ['completed_date']
    ordering = ['sort_order']


class ProjectBomInline(admin.TabularInline):
    model = ProjectBom
    extra = 0
    fields = ['name', 'revision', 'notes']
    show_change_link = True


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'customer', 'status', 'due_date_display', 'budget', 'progress_display',
                    'production_display', 'next_milestone_display', 'nextcloud_folder_created']
    list_filter = ['status', 'customer', 'manual_budget', 'nextcloud_folder_created']
    search_fields = ['code', 'name', 'description', 'customer__company_name']
    ordering = ['-created_at']
    readonly_fields = ['code', 'completion_percentage', 'total_boards_ordered', 'nextcloud_folder_created',
                       'nextcloud_base_path', 'created_at', 'updated_at']
    autocomplete_fields = ['customer']
    inlines = [ProjectMilestoneInline, ProjectBomInline]
    actions = ['recalculate_budget', 'update_progress', 'improve_description_with_ai',
               'generate_milestones_with_ai', 'draft_client_email', 'create_nextcloud_folders',
               'archive_nextcloud_folders', 'compliance_report']

    fieldsets = (
        ('Project', {
            'fields': ('code', 'name', 'customer', 'status', 'description')
        }),
        ('Schedule', {
            'fields': ('start_date', 'due_date', 'completion_percentage')
        }),
        ('Budget', {
            'fields': ('budget', 'manual_budget', 'actual_cost')
        }),
        ('Production', {
            'fields': ('total_boards_ordered', 'boards_produced', 'boards_assembled')
        }),
        ('Nextcloud', {
            'fields': ('nextcloud_folder_created', 'nextcloud_base_path'),
            'classes': ('collapse',),
        }),
        ('Notes', {
            'fields': ('notes', 'created_at', 'updated_at')
        }),
    )

    def due_date_display(self, obj):
        if not obj.due_date:
            return '-'
        if obj.is_overdue:
            return status_badge(f"{obj.due_date} (overdue)", '#dc3545')
        if obj.is_nearing_deadline():
            return status_badge(f"{obj.due_date} ({obj.days_until_deadline}d)", '#fd7e14')
        return obj.due_date
    due_date_display.short_description = 'Due date'
    due_date_display.admin_order_field = 'due_date'

    def progress_display(self, obj):
        return f"{obj.completion_percentage:.0f}%"
    progress_display.short_description = 'Progress'
    progress_display.admin_order_field = 'completion_percentage'

    def production_display(self, obj):
        if not obj.total_boards_ordered:
            return '-'
        return f"{obj.boards_produced}/{obj.total_boards_ordered} ({obj.production_progress}%)"
    production_display.short_description = 'Boards'

    def next_milestone_display(self, obj):
        item = obj.get_next_milestone()
        if item is None:
            return '-'
        if item.target_date:
            return f"{item.milestone.name} ({item.target_date})"
        return item.milestone.name
    next_milestone_display.short_description = 'Next milestone'

    def recalculate_budget(self, request, queryset):
        updated = 0
        try:
            for project in queryset:
                project.calculate_budget_from_quotations()
                project.calculate_total_boards_ordered()
                updated += 1
        except Exception as e:
            self.message_user(request, f"Error recalculating budgets: {str(e)}", level='error')
            return
        self.message_user(request, f"Recalculated budget and boards for {updated} project(s).", level='success')
    recalculate_budget.short_description = "Recalculate budget from accepted quotations"

    def update_progress(self, request, queryset):
        for project in queryset:
            project.update_completion_percentage()
        self.message_user(request, f"Updated progress of {queryset.count()} project(s).", level='success')
    update_progress.short_description = "Update progress from milestones"

    def improve_description_with_ai(self, request, queryset):
        service = _ai_service_or_error(self, request)
        if service is None:
            return

        improved = 0
        failed = []
        for project in queryset.select_related('customer'):
            context = {
                'customer': project.customer.company_name if project.customer_id else None,
                'status': project.get_status_display(),
            }
            try:
                text = service.improve_project_description(project.name, project.description, context=context)
            except Exception as e:
                failed.append(f"{project.code}: {str(e)}")
                continue
            if not text:
                failed.append(project.code)
                continue
            project.description = text
            project.save(update_fields=['description', 'updated_at'])
            improved += 1

        if improved:
            self.message_user(request, f"Improved {improved} project description(s).", level='success')
        if failed:
            self.message_user(request, f"AI did not return a description for: {'; '.join(failed[:5])}",
                              level='warning')
    improve_description_with_ai.short_description = "Improve description with AI"

    def generate_milestones_with_ai(self, request, queryset):
        service = _ai_service_or_error(self, request)
        if service is None:
            return

        for project in queryset.select_related('customer'):
            try:
                items = service.generate_project_milestones(
                    project.name, project.description,
                    context={'due_date': project.due_date, 'start_date': project.start_date},
                )
                if not items:
                    self.message_user(request, f"{project.code}: AI returned no milestones.", level='warning')
                    continue
                created = project.apply_generated_milestones(items)
            except Exception as e:
                self.message_user(request, f"{project.code}: milestone generation failed: {str(e)}", level='error')
                continue
            self.message_user(request, f"{project.code}: added {len(created)} milestone(s).", level='success')
    generate_milestones_with_ai.short_description = "Generate milestones with AI"

    def draft_client_email(self, request, queryset):
        if queryset.count() != 1:
            self.message_user(request, "Select exactly one project to draft a client e-mail.", level='warning')
            return None
        project = queryset.select_related('customer').first()
        if not project.customer_id or not project.due_date:
            self.message_user(request, f"{project.code} needs a customer and a due date.", level='warning')
            return None

        service = _ai_service_or_error(self, request)
        if service is None:
            return None
        next_item = project.get_next_milestone()
        context = {
            'status': project.get_status_display(),
            'progress': f"{project.completion_percentage:.0f}%",
            'next_milestone': next_item.milestone.name if next_item else None,
        }
        try:
            text = service.generate_project_notification_email(
                project.name, project.customer.company_name, project.due_date, context=context
            )
        except Exception as e:
            self.message_user(request, f"Error drafting e-mail: {str(e)}", level='error')
            return None
        if not text:
            self.message_user(request, "AI did not return an e-mail.", level='warning')
            return None
        return HttpResponse(text, content_type='text/plain; charset=utf-8')
    draft_client_email.short_description = "Draft client e-mail with AI"

    def create_nextcloud_folders(self, request, queryset):
        service = get_nextcloud_service()
        if service is None:
            self.message_user(request, "Nextcloud is not configured.", level='error')
            return

        created = 0
        failed = []
        for project in queryset.select_related('customer'):
            try:
                service.create_project_folder_structure(project)
                created += 1
            except Exception as e:
                failed.append(f"{project.code}: {str(e)}")

        if created:
            self.message_user(request, f"Created Nextcloud folders for {created} project(s).", level='success')
        if failed:
            self.message_user(request, f"Nextcloud folder creation failed for: {'; '.join(failed[:5])}",
                              level='error')
    create_nextcloud_folders.short_description = "Create Nextcloud folders"

    def archive_nextcloud_folders(self, request, queryset):
        service = get_nextcloud_service()
        if service is None:
            self.message_user(request, "Nextcloud is not configured.", level='error')
            return

        archived = 0
        failed = []
        projects = queryset.filter(status__in=Project.CLOSED_STATUSES, nextcloud_folder_created=True)
        for project in projects:
            archive_type = 'Completati' if project.status == 'completed' else 'Annullati'
            try:
                project.nextcloud_base_path = service.archive_folder(project.nextcloud_base_path, archive_type)
            except Exception as e:
                failed.append(f"{project.code}: {str(e)}")
                continue
            project.save(update_fields=['nextcloud_base_path', 'updated_at'])
            archived += 1

        skipped = queryset.count() - projects.count()
        if archived:
            self.message_user(request, f"Archived Nextcloud folders of {archived} project(s).", level='success')
        if skipped:
            self.message_user(request, f"Skipped {skipped} open project(s) or project(s) without folders.",
                              level='warning')
        if failed:
            self.message_user(request, f"Archiving failed for: {'; '.join(failed[:5])}", level='error')
    archive_nextcloud_folders.short_description = "Archive Nextcloud folders of closed projects"

    def compliance_report(self, request, queryset):
        if queryset.count() != 1:
            self.message_user(request, "Select exactly one project for the CE compliance report.", level='warning')
            return None
        project = queryset.select_related('customer').first()
        try:
            report = CertificationManagementService().generate_certification_report(project)
        except Exception as e:
            self.message_user(request, f"Error generating compliance report: {str(e)}", level='error')
            return None
        response = HttpResponse(json.dumps(report, cls=DjangoJSONEncoder, indent=2),
                                content_type='application/json')
        response['Content-Disposition'] = f'attachment; filename="ce_compliance_{project.code}.json"'
        return response
    compliance_report.short_description = "Download CE compliance report"


class ProjectBomItemInline(admin.TabularInline):
    model = ProjectBomItem
    extra = 0
    fields = ['reference', 'component', 'value', 'footprint', 'quantity', 'allocated',
              'estimated_unit_cost', 'actual_unit_cost']
    autocomplete_fields = ['component']


@admin.register(ProjectBom)
class ProjectBomAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'revision', 'cost_display', 'created_at']
    search_fields = ['name', 'project__code', 'project__name']
    autocomplete_fields = ['project']
    inlines = [ProjectBomItemInline]

    def cost_display(self, obj):
        return obj.estimated_cost
    cost_display.short_description = 'Estimated cost'


class TaskDependencyInline(admin.TabularInline):
    model = TaskDependency
    fk_name = 'successor'
    extra = 0
    fields = ['predecessor', 'dependency_type', 'lag_days']
    verbose_name = 'predecessor'
    verbose_name_plural = 'predecessors'


@admin.register(ProjectTask)
class ProjectTaskAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'start_date', 'end_date', 'duration_days', 'progress_display',
                    'status', 'priority_display', 'assigned_to', 'actual_hours']
    list_filter = ['status', 'priority', 'is_milestone', 'project']
    search_fields = ['name', 'description', 'project__code', 'project__name']
    ordering = ['project', 'sort_order', 'start_date']
    readonly_fields = ['duration_days', 'actual_hours', 'actual_start_date', 'actual_end_date',
                       'created_at', 'updated_at']
    autocomplete_fields = ['project']
    inlines = [TaskDependencyInline]
    actions = ['update_progress_from_hours', 'mark_in_progress', 'mark_on_hold', 'mark_completed']

    def progress_display(self, obj):
        return status_badge(f"{obj.progress_percentage}%", obj.progress_color)
    progress_display.short_description = 'Progress'
    progress_display.admin_order_field = 'progress_percentage'

    def priority_display(self, obj):
        return status_badge(obj.get_priority_display(), obj.priority_color)
    priority_display.short_description = 'Priority'
    priority_display.admin_order_field = 'priority'

    def update_progress_from_hours(self, request, queryset):
        updated = 0
        skipped = 0
        for task in queryset:
            if not task.estimated_hours:
                skipped += 1
                continue
            task.update_progress(task.actual_hours / task.estimated_hours * 100)
            updated += 1
        self.message_user(request, f"Updated progress of {updated} task(s).", level='success')
        if skipped:
            self.message_user(request, f"Skipped {skipped} task(s) without an hour estimate.", level='warning')
    update_progress_from_hours.short_description = "Update progress from logged hours"

    def _set_status(self, request, queryset, new_status):
        blocked = []
        updated = 0
        for task in queryset:
            if new_status == 'in_progress' and not task.can_start():
                blocked.append(task.name)
                continue
            task.status = new_status
            task.save(update_fields=['status', 'updated_at'])
            updated += 1
        self.message_user(request, f"Set {updated} task(s) to {new_status.replace('_', ' ')}.", level='success')
        if blocked:
            self.message_user(request, f"Waiting on predecessors: {', '.join(blocked[:5])}", level='warning')

    def mark_in_progress(self, request, queryset):
        self._set_status(request, queryset, 'in_progress')
    mark_in_progress.short_description = "Mark as in progress"

    def mark_on_hold(self, request, queryset):
        self._set_status(request, queryset, 'on_hold')
    mark_on_hold.short_description = "Mark as on hold"

    def mark_completed(self, request, queryset):
        for task in queryset:
            task.update_progress(100)
        self.message_user(request, f"Completed {queryset.count()} task(s).", level='success')
    mark_completed.short_description = "Mark as completed"


@admin.register(TimeEntry)
class TimeEntryAdmin(admin.ModelAdmin):
    list_display = ['date', 'user', 'project', 'task', 'hours', 'entry_type', 'is_billable',
                    'billable_amount_display', 'status_display']
    list_filter = ['status', 'entry_type', 'is_billable', 'date', 'project']
    search_fields = ['description', 'user__username', 'project__code', 'task__name']
    ordering = ['-date']
    date_hierarchy = 'date'
    readonly_fields = ['approved_by', 'approved_at', 'created_at', 'updated_at']
    autocomplete_fields = ['project']
    actions = ['submit_entries', 'approve_entries', 'reject_entries']

    STATUS_COLORS = {
        'draft': '#6c757d',
        'submitted': '#17a2b8',
        'approved': '#28a745',
        'rejected': '#dc3545',
    }

    def status_display(self, obj):
        return status_badge(obj.get_status_display(), self.STATUS_COLORS.get(obj.status, '#6c757d'))
    status_display.short_description = 'Status'
    status_display.admin_order_field = 'status'

    def billable_amount_display(self, obj):
        return f"€ {obj.billable_amount:.2f}"
    billable_amount_display.short_description = 'Amount'

    def _audit(self, request, entry, action):
        create_audit_log(
            request=request, action=action, model_name='TimeEntry', object_id=entry.pk,
            object_name=str(entry), object_reference=entry.project.code,
        )

    def submit_entries(self, request, queryset):
        count = 0
        for entry in queryset.select_related('project'):
            if not entry.can_be_edited:
                continue
            entry.submit()
            self._audit(request, entry, 'time_submit')
            count += 1
        skipped = queryset.count() - count
        self.message_user(request, f"Submitted {count} time entr(ies).", level='success')
        if skipped:
            self.message_user(request, f"Skipped {skipped} entr(ies) not in draft or rejected.", level='warning')
    submit_entries.short_description = "Submit selected entries"

    def approve_entries(self, request, queryset):
        count = 0
        for entry in queryset.select_related('project'):
            if not entry.can_be_approved:
                continue
            entry.approve(request.user)
            self._audit(request, entry, 'time_approve')
            count += 1
        skipped = queryset.count() - count
        self.message_user(request, f"Approved {count} time entr(ies).", level='success')
        if skipped:
            self.message_user(request, f"Skipped {skipped} entr(ies) not submitted.", level='warning')
    approve_entries.short_description = "Approve selected entries"

    def reject_entries(self, request, queryset):
        count = 0
        for entry in queryset.select_related('project'):
            if not entry.can_be_approved:
                continue
            entry.reject(request.user, ADMIN_REJECTION_REASON)
            self._audit(request, entry, 'time_reject')
            count += 1
        skipped = queryset.count() - count
        self.message_user(request, f"Rejected {count} time entr(ies).", level='success')
        if skipped:
            self.message_user(request, f"Skipped {skipped} entr(ies) not submitted.", level='warning')
    reject_entries.short_description = "Reject selected entries"


@admin.register(ProjectPcbFile)
class ProjectPcbFileAdmin(admin.ModelAdmin):
    list_display = ['file_name', 'project', 'file_type', 'version', 'human_file_size', 'change_type',
                    'is_primary', 'is_backup', 'uploaded_by', 'created_at']
    list_filter = ['file_type', 'change_type', 'is_primary', 'is_backup']
    search_fields = ['file_name', 'description', 'project__code', 'project__name']
    ordering = ['project', 'file_type', '-version']
    readonly_fields = ['file_name', 'file_size', 'file_hash', 'folder_path', 'version', 'uploaded_by', 'created_at',
                       'updated_at']
    autocomplete_fields = ['project']
    actions = ['create_backup', 'compare_two_versions']

    def human_file_size(self, obj):
        return obj.human_file_size
    human_file_size.short_description = 'Size'
    human_file_size.admin_order_field = 'file_size'

    def save_model(self, request, obj, form, change):
        if not change:
            obj.uploaded_by = request.user
            PcbVersionControlService().store_upload(obj, form.cleaned_data['file'])
            return
        super().save_model(request, obj, form, change)

    def create_backup(self, request, queryset):
        service = PcbVersionControlService()
        created = 0
        failed = []
        for pcb_file in queryset.filter(is_backup=False).select_related('project', 'uploaded_by'):
            if service.create_backup(pcb_file) is None:
                failed.append(str(pcb_file))
            else:
                created += 1
        if created:
            self.message_user(request, f"Created {created} backup(s).", level='success')
        if failed:
            self.message_user(request, f"Backup failed for: {', '.join(failed[:5])}", level='error')
    create_backup.short_description = "Create backup copy"

    def compare_two_versions(self, request, queryset):
        if queryset.count() != 2:
            self.message_user(request, "Select exactly two files to compare.", level='warning')
            return
        older, newer = queryset.select_related('uploaded_by').order_by('version', 'created_at')
        try:
            result = PcbVersionControlService().compare_versions(older, newer)
        except Exception as e:
            self.message_user(request, f"Comparison failed: {str(e)}", level='error')
            return

        details = []
        for difference in result['differences']:
            if isinstance(difference, str):
                details.append(difference)
            elif 'change' in difference:
                details.append(f"{difference['type']}: {difference['change']:+d}")
            elif 'message' in difference:
                details.append(difference['message'])
            elif difference['type'] == 'layer_changes':
                details.append('layer stack changed')
        self.message_user(
            request,
            f"v{older.version} vs v{newer.version}: similarity {result['similarity_score']:.0%}. "
            f"{'; '.join(details)}",
            level='success'
        )
    compare_two_versions.short_description = "Compare two selected versions"
