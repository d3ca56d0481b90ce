from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.exceptions import ValidationError
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
import logging

from backoffice.core.utils import create_audit_log
from backoffice.core.views import paginate
from .models import Category, Component, ObsolescenceAlert
from .serializers import (
    CategorySerializer, ComponentSerializer, ComponentListSerializer,
    ComponentAlternativeSerializer, AlternativeQuerySerializer, AlternativeLinkSerializer,
    ComponentCertificationSerializer, ObsolescenceAlertSerializer
)
from .filters import ComponentFilter, ObsolescenceAlertFilter
from .lifecycle import ComponentLifecycleService
from .certification import CertificationManagementService
from .aruco import ArUcoService
from .deletion import delete_component, ComponentInUseError
from .label_generator import generate_sku_label

logger = logging.getLogger(__name__)


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request):
    """List all categories or create a new category"""
    if request.method == 'GET':
        serializer = CategorySerializer(Category.objects.all(), many=True)
        return Response(serializer.data)

    serializer = CategorySerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# Component views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def component_list_create(request):
    """List components (filtered, paginated) or create a new component"""
    if request.method == 'GET':
        queryset = Component.objects.select_related('category').all()
        queryset = ComponentFilter(request.query_params, queryset=queryset).qs
        return paginate(request, queryset, ComponentListSerializer)

    serializer = ComponentSerializer(data=request.data)
    if serializer.is_valid():
        component = serializer.save()
        create_audit_log(
            request=request, action='create', model_name='Component', object_id=component.pk,
            object_name=component.name, object_reference=component.sku,
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def component_detail(request, pk):
    """Retrieve, update or delete a component; referenced components cannot be deleted"""
    component = get_object_or_404(Component.objects.select_related('category'), pk=pk)

    if request.method == 'GET':
        return Response(ComponentSerializer(component).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = ComponentSerializer(component, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        delete_component(component, request=request)
    except ComponentInUseError as e:
        return Response({'error': str(e), 'references': e.counts}, status=status.HTTP_409_CONFLICT)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def component_alternatives(request, pk):
    """List alternatives of a component or link a new one (score computed when omitted)"""
    component = get_object_or_404(Component, pk=pk)
    service = ComponentLifecycleService()

    if request.method == 'GET':
        query = AlternativeQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response({'error': query.errors}, status=status.HTTP_400_BAD_REQUEST)
        params = query.validated_data
        alternatives = service.suggest_alternatives(
            component,
            min_compatibility=params.get('min_compatibility'),
            alternative_type=params.get('type'),
            recommended_only=params['recommended_only'],
        )
        return Response(ComponentAlternativeSerializer(alternatives, many=True).data)

    link = AlternativeLinkSerializer(data=request.data)
    if not link.is_valid():
        return Response({'error': link.errors}, status=status.HTTP_400_BAD_REQUEST)
    data = dict(link.validated_data)
    alternative = data.pop('alternative_component')
    try:
        created = service.add_alternative(component, alternative, data)
    except ValidationError as e:
        return Response({'error': e.message_dict if hasattr(e, 'message_dict') else e.messages},
                        status=status.HTTP_400_BAD_REQUEST)
    return Response(ComponentAlternativeSerializer(created).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def component_generate_aruco(request, pk):
    component = get_object_or_404(Component, pk=pk)
    try:
        code = ArUcoService().generate_for_component(component)
    except Exception as e:
        logger.error(f"ArUco generation failed for component {component.sku}: {str(e)}", exc_info=True)
        return Response({'error': f'ArUco generation failed: {str(e)}'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    create_audit_log(
        request=request, action='aruco_generate', model_name='Component', object_id=component.pk,
        object_name=component.name, object_reference=code,
    )
    return Response({'aruco_code': code, 'aruco_image_path': component.aruco_image_path})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def component_by_aruco(request, code):
    """Look a component up by its scanned marker code"""
    component = ArUcoService().find_by_aruco_code(code)
    if component is None:
        return Response({'error': 'No component with this ArUco code'}, status=status.HTTP_404_NOT_FOUND)
    return Response(ComponentSerializer(component).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def component_label(request, pk):
    """SKU bin label as PNG"""
    component = get_object_or_404(Component, pk=pk)
    response = HttpResponse(generate_sku_label(component), content_type='image/png')
    response['Content-Disposition'] = f'inline; filename="label_{component.sku}.png"'
    return response


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def lifecycle_summary(request):
    return Response(ComponentLifecycleService().get_lifecycle_summary())


# Obsolescence alert views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def obsolescence_alert_list(request):
    queryset = ObsolescenceAlert.objects.select_related('component', 'acknowledged_by').all()
    queryset = ObsolescenceAlertFilter(request.query_params, queryset=queryset).qs
    return paginate(request, queryset, ObsolescenceAlertSerializer)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def obsolescence_alert_acknowledge(request, pk):
    alert = get_object_or_404(ObsolescenceAlert, pk=pk)
    alert.acknowledge(request.user)
    create_audit_log(
        request=request, action='alert_acknowledge', model_name='ObsolescenceAlert', object_id=alert.pk,
        object_name=alert.title, object_reference=alert.component.sku,
    )
    return Response(ObsolescenceAlertSerializer(alert).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def obsolescence_alert_resolve(request, pk):
    alert = get_object_or_404(ObsolescenceAlert, pk=pk)
    alert.resolve(request.user)
    create_audit_log(
        request=request, action='alert_resolve', model_name='ObsolescenceAlert', object_id=alert.pk,
        object_name=alert.title, object_reference=alert.component.sku,
    )
    return Response(ObsolescenceAlertSerializer(alert).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def component_certifications(request, pk):
    """Certifications held by a component, or record a new one"""
    component = get_object_or_404(Component, pk=pk)

    if request.method == 'GET':
        return Response(ComponentCertificationSerializer(component.certifications.all(), many=True).data)

    serializer = ComponentCertificationSerializer(data=request.data)
    if serializer.is_valid():
        certification = serializer.save(component=component)
        create_audit_log(
            request=request, action='create', model_name='ComponentCertification', object_id=certification.pk,
            changes={'certification_type': certification.certification_type, 'status': certification.status},
            object_name=component.name, object_reference=component.sku,
        )
        return Response(ComponentCertificationSerializer(certification).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def expiring_certifications(request):
    try:
        days = int(request.query_params.get('days', 90))
    except ValueError:
        return Response({'error': 'days must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(CertificationManagementService().check_expiring_certifications(days_ahead=days))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def certification_statistics(request):
    return Response(CertificationManagementService().get_certification_statistics())
