"""
Tests for projects, tasks, time entries and PCB file versioning
"""
import shutil
import tempfile
from datetime import time, timedelta
from decimal import Decimal
from io import StringIO

from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status

from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.projects.models import (
    Milestone, Project, ProjectMilestone, TaskDependency, TimeEntry, format_bytes
)
from backoffice.projects.pcb_versions import (
    PcbVersionControlService, count_footprints, count_nets, extract_layers
)


class ProjectModelTests(TestCase):

    def test_code_from_name(self):
        project = TestDataFactory.create_project(name='Smart Meter v2')
        self.assertEqual(project.code, 'SMART-METER-V2')

    def test_code_collision_gets_suffix(self):
        TestDataFactory.create_project(name='Gateway')
        second = TestDataFactory.create_project(name='Gateway')
        third = TestDataFactory.create_project(name='Gateway')
        self.assertEqual(second.code, 'GATEWAY-02')
        self.assertEqual(third.code, 'GATEWAY-03')

    def test_long_name_code_fits_column(self):
        name = 'Industrial motor controller ' * 9
        first = TestDataFactory.create_project(name=name)
        second = TestDataFactory.create_project(name=name)
        self.assertEqual(len(first.code), 100)
        self.assertTrue(first.code.startswith('INDUSTRIAL-MOTOR-CONTROLLER-'))
        self.assertLessEqual(len(second.code), 100)
        self.assertTrue(second.code.endswith('-02'))
        self.assertNotEqual(first.code, second.code)

    def test_budget_and_boards_from_accepted_quotations(self):
        project = TestDataFactory.create_project()
        accepted = TestDataFactory.create_quotation(status='accepted', boards_quantity=50)
        TestDataFactory.create_quotation_item(accepted, unit_price=Decimal('1000.00'))
        draft = TestDataFactory.create_quotation(boards_quantity=10)
        TestDataFactory.create_quotation_item(draft, unit_price=Decimal('500.00'))
        accepted.projects.add(project)
        draft.projects.add(project)

        accepted.refresh_from_db()
        self.assertEqual(project.calculate_budget_from_quotations(), accepted.total)
        self.assertEqual(project.calculate_total_boards_ordered(), 50)
        project.refresh_from_db()
        self.assertEqual(project.budget, Decimal('1220.00'))

    def test_manual_budget_is_kept(self):
        project = TestDataFactory.create_project(budget=Decimal('999.00'), manual_budget=True)
        quotation = TestDataFactory.create_quotation(status='accepted')
        TestDataFactory.create_quotation_item(quotation, unit_price=Decimal('100.00'))
        quotation.projects.add(project)
        project.calculate_budget_from_quotations()
        project.refresh_from_db()
        self.assertEqual(project.budget, Decimal('999.00'))

    def test_production_progress(self):
        project = TestDataFactory.create_project(total_boards_ordered=40, boards_produced=10, boards_assembled=5)
        self.assertEqual(project.production_progress, 25)
        self.assertEqual(project.assembly_progress, 50)

    def test_milestone_completion(self):
        project = TestDataFactory.create_project()
        for index, done in enumerate([True, False, False, True]):
            milestone = Milestone.objects.create(name=f'Step {index}')
            ProjectMilestone.objects.create(project=project, milestone=milestone, is_completed=done)
        self.assertEqual(project.milestone_completion_percentage(), 50.0)
        self.assertEqual(project.update_completion_percentage(), Decimal('50.00'))
        self.assertEqual(project.get_next_milestone().milestone.name, 'Step 1')

    def test_apply_generated_milestones(self):
        project = TestDataFactory.create_project(start_date=timezone.localdate())
        items = [
            {'name': 'Schematic review', 'category': 'design', 'days_offset': 10, 'sort_order': 1},
            {'name': 'Prototype', 'category': 'prototyping', 'days_offset': 30, 'sort_order': 2},
        ]
        created = project.apply_generated_milestones(items)
        self.assertEqual(len(created), 2)
        self.assertEqual(created[1].target_date, project.start_date + timedelta(days=30))
        self.assertEqual(project.apply_generated_milestones(items), [])

    def test_deadline_helpers(self):
        project = TestDataFactory.create_project(due_date=timezone.localdate() + timedelta(days=3))
        self.assertTrue(project.is_nearing_deadline(7))
        self.assertFalse(project.is_overdue)
        project.due_date = timezone.localdate() - timedelta(days=1)
        self.assertTrue(project.is_overdue)
        project.status = 'completed'
        self.assertFalse(project.is_overdue)


class ProjectTaskTests(TestCase):

    def setUp(self):
        self.project = TestDataFactory.create_project()

    def test_duration_is_inclusive(self):
        start = timezone.localdate()
        task = TestDataFactory.create_task(self.project, start_date=start, end_date=start + timedelta(days=4))
        self.assertEqual(task.duration_days, 5)

    def test_update_progress(self):
        task = TestDataFactory.create_task(self.project)
        task.update_progress(40)
        self.assertEqual(task.status, 'in_progress')
        self.assertIsNotNone(task.actual_start_date)
        task.update_progress(120)
        self.assertEqual(task.progress_percentage, 100)
        self.assertEqual(task.status, 'completed')

    def test_finish_to_start_dependency(self):
        first = TestDataFactory.create_task(self.project, name='Layout')
        second = TestDataFactory.create_task(self.project, name='Prototype')
        TaskDependency.objects.create(predecessor=first, successor=second, dependency_type='FS')
        self.assertFalse(second.can_start())
        first.update_progress(100)
        self.assertTrue(second.can_start())

    def test_overdue_in_progress_task_is_red(self):
        start = timezone.localdate() - timedelta(days=10)
        task = TestDataFactory.create_task(self.project, start_date=start, end_date=start + timedelta(days=2),
                                           status='in_progress')
        self.assertTrue(task.is_overdue)
        self.assertEqual(task.get_gantt_data()['color'], '#ef4444')


class TimeEntryTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user(hourly_rate=Decimal('40.00'))
        self.approver = TestDataFactory.create_user(is_staff=True)
        self.project = TestDataFactory.create_project()

    def test_hours_from_times(self):
        entry = TestDataFactory.create_time_entry(self.user, self.project, start_time=time(9, 0),
                                                  end_time=time(11, 45))
        self.assertEqual(entry.hours, Decimal('2.75'))

    def test_rate_defaults_to_user_rate(self):
        entry = TestDataFactory.create_time_entry(self.user, self.project, hours=Decimal('3.00'))
        self.assertEqual(entry.hourly_rate, Decimal('40.00'))
        self.assertEqual(entry.billable_amount, Decimal('120.00'))

    def test_approved_hours_update_task(self):
        task = TestDataFactory.create_task(self.project, estimated_hours=Decimal('10.00'))
        entry = TestDataFactory.create_time_entry(self.user, self.project, hours=Decimal('4.00'), task=task)
        task.refresh_from_db()
        self.assertEqual(task.actual_hours, Decimal('0.00'))

        entry.submit()
        entry.approve(self.approver)
        task.refresh_from_db()
        self.assertEqual(task.actual_hours, Decimal('4.00'))
        self.assertEqual(entry.variance, Decimal('-6.00'))
        self.assertEqual(entry.variance_percentage, -60.0)

    def test_variance_without_estimate(self):
        entry = TestDataFactory.create_time_entry(self.user, self.project)
        self.assertIsNone(entry.variance)

    def test_reject_keeps_reason(self):
        entry = TestDataFactory.create_time_entry(self.user, self.project)
        entry.submit()
        entry.reject(self.approver, 'Wrong project')
        self.assertEqual(entry.status, 'rejected')
        self.assertTrue(entry.can_be_edited)
        self.assertEqual(entry.rejection_reason, 'Wrong project')

    def test_summary(self):
        today = timezone.localdate()
        TestDataFactory.create_time_entry(self.user, self.project, hours=Decimal('2.00'))
        TestDataFactory.create_time_entry(self.user, self.project, hours=Decimal('1.50'), is_billable=False)
        summary = TimeEntry.get_summary(today, today, user=self.user)
        self.assertEqual(summary['total_hours'], Decimal('3.50'))
        self.assertEqual(summary['billable_hours'], Decimal('2.00'))
        self.assertEqual(summary['total_amount'], Decimal('80.00'))
        self.assertEqual(summary['draft_hours'], Decimal('3.50'))


class PcbVersionTests(TestCase):

    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.media_root, ignore_errors=True)
        self.project = TestDataFactory.create_project(name='Sensor Board')
        self.service = PcbVersionControlService()

    def test_kicad_content_helpers(self):
        content = '(layers (0 F.Cu signal) (31 B.Cu signal)) (net 0 "") (net 1 GND) (footprint "R_0603")'
        self.assertEqual(count_footprints(content), 1)
        self.assertEqual(count_nets(content), 2)
        self.assertEqual(extract_layers(content), ['B.Cu signal', 'F.Cu signal'])

    def test_format_bytes(self):
        self.assertEqual(format_bytes(512), '512.00 B')
        self.assertEqual(format_bytes(2048), '2.00 KB')

    def test_upload_increments_version(self):
        with override_settings(MEDIA_ROOT=self.media_root):
            first = self.service.upload_pcb_file(
                self.project, SimpleUploadedFile('board.kicad_pcb', b'(footprint "R")'), 'kicad_pcb')
            second = self.service.upload_pcb_file(
                self.project, SimpleUploadedFile('board.kicad_pcb', b'(footprint "R") (footprint "C")'),
                'kicad_pcb')
            comparison = self.service.compare_versions(first, second)

        self.assertEqual((first.version, second.version), (1, 2))
        self.assertIn('SENSOR-BOARD_kicad_pcb_v2_board', second.file.name)
        component_change = [d for d in comparison['differences']
                            if isinstance(d, dict) and d['type'] == 'component_count']
        self.assertEqual(component_change[0]['change'], 1)

    def test_identical_files(self):
        with override_settings(MEDIA_ROOT=self.media_root):
            first = self.service.upload_pcb_file(self.project, SimpleUploadedFile('a.gbr', b'G04*'), 'gerber')
            second = self.service.upload_pcb_file(self.project, SimpleUploadedFile('a.gbr', b'G04*'), 'gerber')
        comparison = self.service.compare_versions(first, second)
        self.assertEqual(comparison['similarity_score'], 1.0)

    def test_backup_does_not_bump_version(self):
        with override_settings(MEDIA_ROOT=self.media_root):
            original = self.service.upload_pcb_file(self.project, SimpleUploadedFile('a.gbr', b'G04*'), 'gerber')
            backup = self.service.create_backup(original)
            self.assertTrue(backup.is_backup)
            self.assertEqual(backup.metadata['source_file_id'], original.id)
            third = self.service.upload_pcb_file(self.project, SimpleUploadedFile('a.gbr', b'G05*'), 'gerber')
        self.assertEqual(third.version, 2)


class DeadlineCommandTests(TestCase):

    def test_reports_overdue_projects_and_tasks(self):
        today = timezone.localdate()
        late = TestDataFactory.create_project(name='Late', due_date=today - timedelta(days=2))
        TestDataFactory.create_project(name='Soon', due_date=today + timedelta(days=3))
        TestDataFactory.create_task(late, name='Layout', start_date=today - timedelta(days=9),
                                    end_date=today - timedelta(days=5))
        out = StringIO()
        call_command('check_project_deadlines', stdout=out)
        output = out.getvalue()
        self.assertIn('[OVERDUE] LATE', output)
        self.assertIn('[DEADLINE] SOON', output)
        self.assertIn('[TASK] LATE / Layout', output)


class ProjectAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.staff = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_project(self):
        response = self.client.post('/api/v1/projects/', {'name': 'Data Logger'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'DATA-LOGGER')

    def test_due_date_before_start_is_rejected(self):
        data = {'name': 'Bad dates', 'start_date': '2024-05-10', 'due_date': '2024-05-01'}
        response = self.client.post('/api/v1/projects/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('due_date', response.data)

    def test_delete_blocked_by_quotation(self):
        project = TestDataFactory.create_project()
        TestDataFactory.create_quotation().projects.add(project)
        response = self.client.delete(f'/api/v1/projects/{project.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Project.objects.filter(pk=project.pk).exists())

    def test_gantt(self):
        project = TestDataFactory.create_project()
        TestDataFactory.create_task(project, name='Layout')
        response = self.client.get(f'/api/v1/projects/{project.id}/gantt/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['tasks'][0]['name'], 'Layout')

    def test_time_entry_workflow(self):
        project = TestDataFactory.create_project()
        response = self.client.post('/api/v1/time-entries/', {
            'project': project.id, 'start_time': '09:00', 'end_time': '10:30', 'description': 'Routing',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['hours'], '1.50')
        entry_id = response.data['id']

        response = self.client.post(f'/api/v1/time-entries/{entry_id}/submit/')
        self.assertEqual(response.data['status'], 'submitted')

        response = self.client.post(f'/api/v1/time-entries/{entry_id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.staff)
        response = self.client.post(f'/api/v1/time-entries/{entry_id}/reject/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f'/api/v1/time-entries/{entry_id}/approve/')
        self.assertEqual(response.data['status'], 'approved')

    def test_unknown_time_entry_action(self):
        entry = TestDataFactory.create_time_entry(self.user, TestDataFactory.create_project())
        response = self.client.post(f'/api/v1/time-entries/{entry.id}/archive/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_time_entries_are_private_to_non_staff(self):
        project = TestDataFactory.create_project()
        TestDataFactory.create_time_entry(self.user, project)
        TestDataFactory.create_time_entry(self.staff, project)
        response = self.client.get('/api/v1/time-entries/')
        self.assertEqual(response.data['count'], 1)

    def test_reject_with_null_reason(self):
        entry = TestDataFactory.create_time_entry(self.user, TestDataFactory.create_project())
        entry.submit()
        self.client.authenticate_user(self.staff)
        response = self.client.post(f'/api/v1/time-entries/{entry.id}/reject/', {'reason': None}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        entry.refresh_from_db()
        self.assertEqual(entry.status, 'submitted')

    def test_summary_rejects_non_numeric_ids(self):
        self.client.authenticate_user(self.staff)
        response = self.client.get('/api/v1/time-entries/summary/', {'user': 'alice'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('user', response.data['error'])
        response = self.client.get('/api/v1/time-entries/summary/', {'project': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/time-entries/summary/', {'start': '2025-02-30'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_summary_for_other_user(self):
        project = TestDataFactory.create_project()
        TestDataFactory.create_time_entry(self.user, project, hours=Decimal('2.00'))
        self.client.authenticate_user(self.staff)
        response = self.client.get('/api/v1/time-entries/summary/', {'user': str(self.user.id)})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_hours'], Decimal('2.00'))

    def test_milestone_templates_hide_inactive(self):
        Milestone.objects.create(name='Prototype', sort_order=1)
        Milestone.objects.create(name='Legacy step', is_active=False)
        response = self.client.get('/api/v1/milestones/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([m['name'] for m in response.data], ['Prototype'])
        response = self.client.get('/api/v1/milestones/', {'all': 'true'})
        self.assertEqual(len(response.data), 2)

    def test_create_task_and_dependency(self):
        project = TestDataFactory.create_project()
        response = self.client.post(f'/api/v1/projects/{project.id}/tasks/', {
            'name': 'Schematic', 'start_date': '2025-03-03', 'end_date': '2025-03-07',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['project'], project.id)
        self.assertEqual(response.data['duration_days'], 5)
        schematic_id = response.data['id']
        layout = TestDataFactory.create_task(project, name='Layout')

        url = f'/api/v1/projects/{project.id}/task-dependencies/'
        response = self.client.post(url, {'predecessor': schematic_id, 'successor': layout.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['dependency_type'], 'FS')

        response = self.client.get(f'/api/v1/projects/{project.id}/tasks/')
        layout_data = next(task for task in response.data if task['id'] == layout.id)
        self.assertEqual(layout_data['predecessors'][0]['predecessor'], schematic_id)

    def test_invalid_tasks_and_dependencies(self):
        project = TestDataFactory.create_project()
        response = self.client.post(f'/api/v1/projects/{project.id}/tasks/', {
            'name': 'Backwards', 'start_date': '2025-03-07', 'end_date': '2025-03-03',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('end_date', response.data)

        task = TestDataFactory.create_task(project)
        url = f'/api/v1/projects/{project.id}/task-dependencies/'
        response = self.client.post(url, {'predecessor': task.id, 'successor': task.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        other = TestDataFactory.create_task(TestDataFactory.create_project())
        response = self.client.post(url, {'predecessor': task.id, 'successor': other.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(TaskDependency.objects.exists())
