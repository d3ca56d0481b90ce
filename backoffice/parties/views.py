from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404

from backoffice.core.views import paginate
from .models import Customer, CustomerType, PaymentTerm
from .serializers import CustomerSerializer, CustomerTypeSerializer, PaymentTermSerializer


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def customer_list_create(request):
    """List customers or create a new customer (code assigned automatically)"""
    if request.method == 'GET':
        queryset = Customer.objects.select_related('customer_type', 'payment_term').all()

        search = request.query_params.get('search')
        is_active = request.query_params.get('is_active')
        if search:
            queryset = queryset.filter(
                Q(company_name__icontains=search) |
                Q(code__icontains=search) |
                Q(vat_number__icontains=search) |
                Q(email__icontains=search)
            )
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active.lower() == 'true')

        return paginate(request, queryset, CustomerSerializer)

    serializer = CustomerSerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    customer = get_object_or_404(Customer, pk=pk)

    if request.method == 'GET':
        return Response(CustomerSerializer(customer).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = CustomerSerializer(customer, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    references = {key: count for key, count in customer.reference_counts().items() if count}
    if references:
        used_by = ', '.join(f"{count} {key}" for key, count in references.items())
        return Response({
            'error': f"Customer is used by {used_by} and cannot be deleted",
            'references': references,
        }, status=status.HTTP_409_CONFLICT)
    customer.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_term_list(request):
    queryset = PaymentTerm.objects.prefetch_related('tranches')
    if request.query_params.get('active') == 'true':
        queryset = queryset.filter(active=True)
    return Response(PaymentTermSerializer(queryset, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_type_list(request):
    queryset = CustomerType.objects.order_by('name')
    if request.query_params.get('active') == 'true':
        queryset = queryset.filter(is_active=True)
    return Response(CustomerTypeSerializer(queryset, many=True).data)
