from django.urls import path
from .views import customer_list_create, customer_detail, customer_type_list, payment_term_list

urlpatterns = [
    path('customers/', customer_list_create, name='customer-list'),
    path('customers/<int:pk>/', customer_detail, name='customer-detail'),
    path('customer-types/', customer_type_list, name='customer-type-list'),
    path('payment-terms/', payment_term_list, name='payment-term-list'),
]
