from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404
import logging

from backoffice.core.utils import create_audit_log
from backoffice.core.views import paginate
from .contract_analysis import ContractAnalysisError, ContractAnalysisService
from .models import Quotation, InvoiceIssued, CustomerContract, refresh_projects
from .serializers import (
    QuotationSerializer, QuotationListSerializer, InvoiceIssuedSerializer, InvoiceIssuedListSerializer,
    MarkPaidSerializer, CustomerContractSerializer
)

logger = logging.getLogger(__name__)


# Quotation views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def quotation_list_create(request):
    """List quotations or create one with its items (number assigned automatically)"""
    if request.method == 'GET':
        queryset = Quotation.objects.select_related('customer').all()

        search = request.query_params.get('search')
        quotation_status = request.query_params.get('status')
        customer = request.query_params.get('customer')
        if search:
            queryset = queryset.filter(Q(number__icontains=search) | Q(title__icontains=search) |
                                       Q(customer__company_name__icontains=search))
        if quotation_status:
            queryset = queryset.filter(status=quotation_status)
        if customer:
            queryset = queryset.filter(customer_id=customer)

        return paginate(request, queryset, QuotationListSerializer)

    serializer = QuotationSerializer(data=request.data)
    if serializer.is_valid():
        quotation = serializer.save(created_by=request.user)
        create_audit_log(
            request=request, action='create', model_name='Quotation', object_id=quotation.pk,
            object_name=quotation.title, object_reference=quotation.number,
        )
        return Response(QuotationSerializer(quotation).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def quotation_detail(request, pk):
    quotation = get_object_or_404(Quotation.objects.select_related('customer'), pk=pk)

    if request.method == 'GET':
        return Response(QuotationSerializer(quotation).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = QuotationSerializer(quotation, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            quotation = serializer.save()
            return Response(QuotationSerializer(quotation).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if quotation.invoices.exists():
        return Response({'error': 'Quotation has invoices and cannot be deleted'}, status=status.HTTP_409_CONFLICT)
    create_audit_log(
        request=request, action='delete', model_name='Quotation', object_id=quotation.pk,
        object_name=quotation.title, object_reference=quotation.number,
    )
    linked_projects = list(quotation.projects.all())
    quotation.delete()
    refresh_projects(linked_projects)
    return Response(status=status.HTTP_204_NO_CONTENT)


# Invoice views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def invoice_list_create(request):
    if request.method == 'GET':
        queryset = InvoiceIssued.objects.select_related('customer').all()

        params = request.query_params
        if params.get('search'):
            queryset = queryset.filter(Q(invoice_number__icontains=params['search']) |
                                       Q(customer__company_name__icontains=params['search']))
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('payment_status'):
            queryset = queryset.filter(payment_status=params['payment_status'])
        if params.get('customer'):
            queryset = queryset.filter(customer_id=params['customer'])
        if params.get('project'):
            queryset = queryset.filter(project_id=params['project'])
        if params.get('year'):
            queryset = queryset.filter(issue_date__year=params['year'])

        return paginate(request, queryset, InvoiceIssuedListSerializer)

    serializer = InvoiceIssuedSerializer(data=request.data)
    if serializer.is_valid():
        invoice = serializer.save()
        create_audit_log(
            request=request, action='create', model_name='InvoiceIssued', object_id=invoice.pk,
            object_name=invoice.customer.company_name, object_reference=invoice.invoice_number,
        )
        return Response(InvoiceIssuedSerializer(invoice).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def invoice_detail(request, pk):
    invoice = get_object_or_404(InvoiceIssued.objects.select_related('customer'), pk=pk)

    if request.method == 'GET':
        return Response(InvoiceIssuedSerializer(invoice).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = InvoiceIssuedSerializer(invoice, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            invoice = serializer.save()
            return Response(InvoiceIssuedSerializer(invoice).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    if not invoice.can_be_deleted:
        create_audit_log(
            request=request, action='delete_blocked', model_name='InvoiceIssued', object_id=invoice.pk,
            changes={'status': invoice.status}, object_reference=invoice.invoice_number,
        )
        return Response({'error': 'Only draft invoices can be deleted'}, status=status.HTTP_409_CONFLICT)
    create_audit_log(
        request=request, action='delete', model_name='InvoiceIssued', object_id=invoice.pk,
        object_reference=invoice.invoice_number,
    )
    invoice.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def invoice_mark_paid(request, pk):
    """Record a payment: full when no amount is given, partial when below the total"""
    invoice = get_object_or_404(InvoiceIssued, pk=pk)
    if invoice.status == 'cancelled':
        return Response({'error': 'A cancelled invoice cannot be paid'}, status=status.HTTP_400_BAD_REQUEST)

    serializer = MarkPaidSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    invoice.mark_as_paid(amount=serializer.validated_data.get('amount'),
                         method=serializer.validated_data.get('method'))
    create_audit_log(
        request=request, action='invoice_paid', model_name='InvoiceIssued', object_id=invoice.pk,
        changes={'amount_paid': str(invoice.amount_paid), 'payment_status': invoice.payment_status},
        object_reference=invoice.invoice_number,
    )
    return Response(InvoiceIssuedSerializer(invoice).data)


# Contract views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def contract_list_create(request):
    if request.method == 'GET':
        queryset = CustomerContract.objects.select_related('customer').all()
        if request.query_params.get('customer'):
            queryset = queryset.filter(customer_id=request.query_params['customer'])
        if request.query_params.get('status'):
            queryset = queryset.filter(status=request.query_params['status'])
        if request.query_params.get('type'):
            queryset = queryset.filter(type=request.query_params['type'])
        return paginate(request, queryset, CustomerContractSerializer)

    serializer = CustomerContractSerializer(data=request.data)
    if serializer.is_valid():
        contract = serializer.save()
        create_audit_log(
            request=request, action='create', model_name='CustomerContract', object_id=contract.pk,
            object_name=contract.title, object_reference=contract.contract_number,
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def contract_analyze(request, pk):
    """Run the AI analysis of a contract and return the stored result"""
    contract = get_object_or_404(CustomerContract.objects.select_related('customer'), pk=pk)
    service = ContractAnalysisService()
    if not service.can_analyze(contract):
        return Response({'error': 'Contract has neither a stored PDF nor terms to analyze'},
                        status=status.HTTP_400_BAD_REQUEST)
    try:
        analysis = service.analyze(contract)
    except ContractAnalysisError as e:
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

    create_audit_log(
        request=request, action='contract_analyze', model_name='CustomerContract', object_id=contract.pk,
        changes={'risk_flags': len(contract.ai_risk_flags or [])},
        object_name=contract.title, object_reference=contract.contract_number,
    )
    return Response({
        'analysis': analysis,
        'summary': service.generate_analysis_summary(contract),
        'risk_counts': contract.risk_count_by_severity(),
    })
