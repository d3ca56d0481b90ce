from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from django.shortcuts import get_object_or_404
from django.core.paginator import Paginator
from .models import CompanyProfile, AuditLog
from .serializers import UserSerializer, CompanyProfileSerializer, AuditLogSerializer
from .ai_services import AiServiceFactory


def paginate(request, queryset, serializer_class, default_limit=25):
    """Page a queryset the way every list endpoint of the API does"""
    page = int(request.query_params.get('page', 1))
    limit = int(request.query_params.get('limit', default_limit))

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)

    serializer = serializer_class(page_obj, many=True)
    return Response({
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Return the authenticated user"""
    return Response(UserSerializer(request.user).data)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def company_profile(request):
    """Read the company profile; staff can update it"""
    profile = CompanyProfile.current()
    if request.method == 'GET':
        return Response(CompanyProfileSerializer(profile).data)

    if not request.user.is_staff:
        return Response({'error': 'Only staff can update the company profile'}, status=status.HTTP_403_FORBIDDEN)

    serializer = CompanyProfileSerializer(profile, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def ai_status(request):
    """Report which AI providers are usable and test the active one"""
    service = AiServiceFactory.make()
    return Response({
        'active_provider': service.name,
        'providers': AiServiceFactory.available_providers(),
        'connection': service.test_connection(),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """List audit logs with optional filters"""
    queryset = AuditLog.objects.select_related('user').all()

    action = request.query_params.get('action')
    model_name = request.query_params.get('model_name')
    reference = request.query_params.get('reference')

    if action:
        queryset = queryset.filter(action=action)
    if model_name:
        queryset = queryset.filter(model_name=model_name)
    if reference:
        queryset = queryset.filter(object_reference__icontains=reference)

    return paginate(request, queryset, AuditLogSerializer)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_detail(request, pk):
    log = get_object_or_404(AuditLog.objects.select_related('user'), pk=pk)
    return Response(AuditLogSerializer(log).data)
