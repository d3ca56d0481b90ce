from django.urls import path
from .views import (
    movement_list_create, inventory_export, export_date_ranges, equipment_list_create, equipment_detail,
    equipment_record_maintenance, material_list_create, material_detail,
)

urlpatterns = [
    path('inventory/movements/', movement_list_create, name='inventory-movement-list'),
    path('inventory/export/date-ranges/', export_date_ranges, name='inventory-export-date-ranges'),
    path('inventory/export/<str:kind>/', inventory_export, name='inventory-export'),
    path('equipment/', equipment_list_create, name='equipment-list'),
    path('equipment/<int:pk>/', equipment_detail, name='equipment-detail'),
    path('equipment/<int:pk>/maintenance/', equipment_record_maintenance, name='equipment-maintenance'),
    path('materials/', material_list_create, name='material-list'),
    path('materials/<int:pk>/', material_detail, name='material-detail'),
]
