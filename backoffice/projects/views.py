from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date
import logging

from backoffice.components.certification import CertificationManagementService
from backoffice.core.utils import create_audit_log
from backoffice.core.views import paginate
from .models import Milestone, Project, ProjectPcbFile, TimeEntry
from .serializers import (
    MilestoneSerializer, ProjectSerializer, ProjectListSerializer, ProjectPcbFileSerializer, ProjectTaskSerializer,
    TaskDependencySerializer, TimeEntrySerializer
)
from .pcb_versions import PcbVersionControlService

logger = logging.getLogger(__name__)


# Project views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def project_list_create(request):
    """List projects or create a new project (code derived from the name)"""
    if request.method == 'GET':
        queryset = Project.objects.select_related('customer').all()

        search = request.query_params.get('search')
        project_status = request.query_params.get('status')
        customer = request.query_params.get('customer')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(code__icontains=search))
        if project_status:
            queryset = queryset.filter(status=project_status)
        if customer:
            queryset = queryset.filter(customer_id=customer)

        return paginate(request, queryset, ProjectListSerializer)

    serializer = ProjectSerializer(data=request.data)
    if serializer.is_valid():
        project = serializer.save()
        create_audit_log(
            request=request, action='create', model_name='Project', object_id=project.pk,
            object_name=project.name, object_reference=project.code,
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def project_detail(request, pk):
    project = get_object_or_404(Project.objects.select_related('customer'), pk=pk)

    if request.method == 'GET':
        return Response(ProjectSerializer(project).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = ProjectSerializer(project, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if project.quotations.exists() or project.invoices_issued.exists():
        return Response({'error': 'Project has quotations or invoices and cannot be deleted'},
                        status=status.HTTP_409_CONFLICT)
    create_audit_log(
        request=request, action='delete', model_name='Project', object_id=project.pk,
        object_name=project.name, object_reference=project.code,
    )
    project.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_gantt(request, pk):
    """Gantt chart data: project span plus one bar per task"""
    project = get_object_or_404(Project, pk=pk)
    tasks = project.tasks.select_related('assigned_to').prefetch_related('predecessor_links')
    return Response({
        'project': {
            'id': project.id,
            'code': project.code,
            'name': project.name,
            'start': project.start_date,
            'end': project.due_date,
        },
        'tasks': [task.get_gantt_data() for task in tasks],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_compliance(request, pk):
    """CE compliance of the project BOM; ?report=full adds matrix, action plan and checklist"""
    project = get_object_or_404(Project.objects.select_related('customer'), pk=pk)
    service = CertificationManagementService()
    if request.query_params.get('report') == 'full':
        return Response(service.generate_certification_report(project))
    return Response(service.analyze_ce_compliance_cached(project))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def project_pcb_files(request, pk):
    """Version history of the project's PCB files, or upload a new version"""
    project = get_object_or_404(Project, pk=pk)
    service = PcbVersionControlService()

    if request.method == 'GET':
        return Response(service.get_version_history(project, file_type=request.query_params.get('file_type')))

    uploaded = request.FILES.get('file')
    file_type = request.data.get('file_type', 'other')
    if uploaded is None:
        return Response({'error': 'file is required'}, status=status.HTTP_400_BAD_REQUEST)
    if file_type not in dict(ProjectPcbFile.FILE_TYPE_CHOICES):
        return Response({'error': f'Unknown file type: {file_type}'}, status=status.HTTP_400_BAD_REQUEST)

    pcb_file = service.upload_pcb_file(
        project, uploaded, file_type,
        description=request.data.get('description'),
        user=request.user,
        change_type=request.data.get('change_type', 'minor'),
    )
    create_audit_log(
        request=request, action='pcb_upload', model_name='ProjectPcbFile', object_id=pcb_file.pk,
        object_name=pcb_file.file_name, object_reference=f"{project.code} v{pcb_file.version}",
    )
    return Response(ProjectPcbFileSerializer(pcb_file).data, status=status.HTTP_201_CREATED)


# Milestone and task views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def milestone_list(request):
    """Milestone templates offered when planning a project"""
    queryset = Milestone.objects.all()
    if request.query_params.get('all') != 'true':
        queryset = queryset.filter(is_active=True)
    return Response(MilestoneSerializer(queryset, many=True).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def project_tasks(request, pk):
    project = get_object_or_404(Project, pk=pk)

    if request.method == 'GET':
        tasks = project.tasks.prefetch_related('predecessor_links')
        return Response(ProjectTaskSerializer(tasks, many=True).data)

    serializer = ProjectTaskSerializer(data=request.data)
    if serializer.is_valid():
        task = serializer.save(project=project)
        create_audit_log(
            request=request, action='create', model_name='ProjectTask', object_id=task.pk,
            object_name=task.name, object_reference=project.code,
        )
        return Response(ProjectTaskSerializer(task).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def project_task_dependency_create(request, pk):
    """Link two tasks of the project (finish-to-start unless told otherwise)"""
    project = get_object_or_404(Project, pk=pk)
    serializer = TaskDependencySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    if serializer.validated_data['predecessor'].project_id != project.id:
        return Response({'error': 'Tasks must belong to this project'}, status=status.HTTP_400_BAD_REQUEST)
    dependency = serializer.save()
    return Response(TaskDependencySerializer(dependency).data, status=status.HTTP_201_CREATED)


# Time entry views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def time_entry_list_create(request):
    """List time entries (own entries unless staff) or log time for the current user"""
    if request.method == 'GET':
        queryset = TimeEntry.objects.select_related('user', 'project', 'task').all()
        if not request.user.is_staff:
            queryset = queryset.filter(user=request.user)

        params = request.query_params
        if params.get('project'):
            queryset = queryset.filter(project_id=params['project'])
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('user') and request.user.is_staff:
            queryset = queryset.filter(user_id=params['user'])
        date_from = parse_date(params.get('date_from', '') or '')
        date_to = parse_date(params.get('date_to', '') or '')
        if date_from:
            queryset = queryset.filter(date__gte=date_from)
        if date_to:
            queryset = queryset.filter(date__lte=date_to)

        return paginate(request, queryset, TimeEntrySerializer)

    serializer = TimeEntrySerializer(data=request.data)
    if serializer.is_valid():
        serializer.save(user=request.user)
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def time_entry_summary(request):
    """Hour totals for a period (defaults to the current month)"""
    for param in ('user', 'project'):
        value = request.query_params.get(param)
        if value and not value.isdigit():
            return Response({'error': f"'{param}' must be a numeric id"}, status=status.HTTP_400_BAD_REQUEST)

    today = timezone.localdate()
    try:
        start = parse_date(request.query_params.get('start', '') or '') or today.replace(day=1)
        end = parse_date(request.query_params.get('end', '') or '') or today
    except ValueError:
        return Response({'error': 'Invalid date'}, status=status.HTTP_400_BAD_REQUEST)

    user = request.user
    if request.user.is_staff:
        user_id = request.query_params.get('user')
        user = None if user_id is None else get_object_or_404(type(request.user), pk=user_id)

    project = None
    if request.query_params.get('project'):
        project = get_object_or_404(Project, pk=request.query_params['project'])

    summary = TimeEntry.get_summary(start, end, user=user, project=project)
    summary.update({'start': start, 'end': end})
    return Response(summary)


TIME_ENTRY_ACTIONS = ('submit', 'approve', 'reject')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def time_entry_action(request, pk, action):
    """Run a workflow transition (submit, approve, reject) on a time entry"""
    if action not in TIME_ENTRY_ACTIONS:
        return Response({'error': f'Unknown action: {action}'}, status=status.HTTP_404_NOT_FOUND)

    entry = get_object_or_404(TimeEntry.objects.select_related('project'), pk=pk)

    if action == 'submit':
        if entry.user_id != request.user.id and not request.user.is_staff:
            return Response({'error': 'You can only submit your own time entries'},
                            status=status.HTTP_403_FORBIDDEN)
        if not entry.can_be_edited:
            return Response({'error': f'A {entry.status} time entry cannot be submitted'},
                            status=status.HTTP_400_BAD_REQUEST)
        entry.submit()
    else:
        if not request.user.is_staff:
            return Response({'error': 'Only staff can approve or reject time entries'},
                            status=status.HTTP_403_FORBIDDEN)
        if not entry.can_be_approved:
            return Response({'error': f'A {entry.status} time entry cannot be {action}d'},
                            status=status.HTTP_400_BAD_REQUEST)
        if action == 'approve':
            entry.approve(request.user)
        else:
            reason = (request.data.get('reason') or '').strip()
            if not reason:
                return Response({'error': 'A rejection reason is required'}, status=status.HTTP_400_BAD_REQUEST)
            entry.reject(request.user, reason)

    create_audit_log(
        request=request, action=f'time_{action}', model_name='TimeEntry', object_id=entry.pk,
        object_name=str(entry), object_reference=entry.project.code,
    )
    return Response(TimeEntrySerializer(entry).data)
