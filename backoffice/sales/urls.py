from django.urls import path
from .views import (
    quotation_list_create, quotation_detail, invoice_list_create, invoice_detail, invoice_mark_paid,
    contract_list_create, contract_analyze
)

urlpatterns = [
    path('quotations/', quotation_list_create, name='quotation-list'),
    path('quotations/<int:pk>/', quotation_detail, name='quotation-detail'),
    path('invoices/', invoice_list_create, name='invoice-list'),
    path('invoices/<int:pk>/', invoice_detail, name='invoice-detail'),
    path('invoices/<int:pk>/mark-paid/', invoice_mark_paid, name='invoice-mark-paid'),
    path('contracts/', contract_list_create, name='contract-list'),
    path('contracts/<int:pk>/analyze/', contract_analyze, name='contract-analyze'),
]
