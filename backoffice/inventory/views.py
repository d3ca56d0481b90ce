from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.exceptions import ValidationError
from django.db.models import Q
from django.shortcuts import get_object_or_404
import logging

from backoffice.core.utils import create_audit_log
from backoffice.core.views import paginate
from .exports import ExportFilterError, InventoryExportService, xlsx_response
from .models import InventoryMovement, Equipment, Material
from .serializers import InventoryMovementSerializer, EquipmentSerializer, MaterialSerializer

logger = logging.getLogger(__name__)

EXPORT_FILTERS = ('date_from', 'date_to', 'category', 'status', 'supplier', 'location')


# Movement views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def movement_list_create(request):
    """List stock movements or record a new one (stock updated atomically)"""
    if request.method == 'GET':
        queryset = InventoryMovement.objects.select_related('component', 'user').all()
        params = request.query_params
        if params.get('component'):
            queryset = queryset.filter(component_id=params['component'])
        if params.get('type'):
            queryset = queryset.filter(type=params['type'])
        if params.get('project'):
            queryset = queryset.filter(destination_project_id=params['project'])
        return paginate(request, queryset, InventoryMovementSerializer)

    serializer = InventoryMovementSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        movement = serializer.save(user=request.user)
    except ValidationError as e:
        return Response({'error': ' '.join(e.messages)}, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request, action='stock_movement', model_name='Component', object_id=movement.component_id,
        changes={'type': movement.type, 'quantity': movement.quantity,
                 'before': movement.quantity_before, 'after': movement.quantity_after},
        object_name=movement.component.name, object_reference=movement.component.sku,
    )
    return Response(InventoryMovementSerializer(movement).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_export(request, kind):
    """Download an Excel export: components, materials, equipment or complete"""
    filters = {key: request.query_params[key] for key in EXPORT_FILTERS if request.query_params.get(key)}
    try:
        filename, content = InventoryExportService().export(kind, filters)
    except ExportFilterError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
    return xlsx_response(filename, content)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def export_date_ranges(request):
    ranges = InventoryExportService.date_ranges()
    return Response({
        key: {'label': value['label'],
              'from': value['from'].isoformat() if value['from'] else None,
              'to': value['to'].isoformat() if value['to'] else None}
        for key, value in ranges.items()
    })


# Equipment views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def equipment_list_create(request):
    if request.method == 'GET':
        queryset = Equipment.objects.select_related('responsible_user').all()
        params = request.query_params
        if params.get('search'):
            queryset = queryset.filter(Q(code__icontains=params['search']) | Q(name__icontains=params['search']) |
                                       Q(serial_number__icontains=params['search']))
        if params.get('category'):
            queryset = queryset.filter(category=params['category'])
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('needs_maintenance') == 'true':
            queryset = queryset.needs_maintenance()
        if params.get('needs_calibration') == 'true':
            queryset = queryset.needs_calibration()
        return paginate(request, queryset, EquipmentSerializer)

    serializer = EquipmentSerializer(data=request.data)
    if serializer.is_valid():
        equipment = serializer.save()
        create_audit_log(
            request=request, action='create', model_name='Equipment', object_id=equipment.pk,
            object_name=equipment.name, object_reference=equipment.code,
        )
        return Response(EquipmentSerializer(equipment).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def equipment_detail(request, pk):
    equipment = get_object_or_404(Equipment, pk=pk)

    if request.method == 'GET':
        return Response(EquipmentSerializer(equipment).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = EquipmentSerializer(equipment, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request, action='delete', model_name='Equipment', object_id=equipment.pk,
        object_name=equipment.name, object_reference=equipment.code,
    )
    equipment.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def equipment_record_maintenance(request, pk):
    equipment = get_object_or_404(Equipment, pk=pk)
    equipment.record_maintenance()
    if equipment.calibration_required and request.data.get('calibrated'):
        equipment.record_calibration()
    create_audit_log(
        request=request, action='update', model_name='Equipment', object_id=equipment.pk,
        changes={'last_maintenance': str(equipment.last_maintenance),
                 'next_maintenance': str(equipment.next_maintenance) if equipment.next_maintenance else None},
        object_name=equipment.name, object_reference=equipment.code,
    )
    return Response(EquipmentSerializer(equipment).data)


# Material views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def material_list_create(request):
    if request.method == 'GET':
        queryset = Material.objects.all()
        params = request.query_params
        if params.get('search'):
            queryset = queryset.filter(Q(code__icontains=params['search']) | Q(name__icontains=params['search']))
        if params.get('category'):
            queryset = queryset.filter(category=params['category'])
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('low_stock') == 'true':
            queryset = queryset.low_stock()
        if params.get('expired') == 'true':
            queryset = queryset.expired()
        return paginate(request, queryset, MaterialSerializer)

    serializer = MaterialSerializer(data=request.data)
    if serializer.is_valid():
        material = serializer.save()
        create_audit_log(
            request=request, action='create', model_name='Material', object_id=material.pk,
            object_name=material.name, object_reference=material.code,
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def material_detail(request, pk):
    material = get_object_or_404(Material, pk=pk)

    if request.method == 'GET':
        return Response(MaterialSerializer(material).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = MaterialSerializer(material, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(
        request=request, action='delete', model_name='Material', object_id=material.pk,
        object_name=material.name, object_reference=material.code,
    )
    material.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)
