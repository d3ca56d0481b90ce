import django_filters
from django.db.models import F, Q

from .models import Component, ObsolescenceAlert


class ComponentFilter(django_filters.FilterSet):
    """Filter for Component lists using django-filter"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    manufacturer = django_filters.CharFilter(field_name='manufacturer', lookup_expr='icontains')
    package_type = django_filters.CharFilter(field_name='package_type', lookup_expr='iexact')
    mounting_type = django_filters.ChoiceFilter(choices=Component.MOUNTING_TYPE_CHOICES)
    status = django_filters.ChoiceFilter(choices=Component.STATUS_CHOICES)
    in_stock = django_filters.CharFilter(method='filter_in_stock', label='In Stock')
    low_stock = django_filters.CharFilter(method='filter_low_stock', label='Low Stock')
    lifecycle_stage = django_filters.CharFilter(field_name='lifecycle_status__lifecycle_stage')

    class Meta:
        model = Component
        fields = ['search', 'category', 'manufacturer', 'package_type', 'mounting_type',
                  'status', 'in_stock', 'low_stock', 'lifecycle_stage']

    def filter_search(self, queryset, name, value):
        """Match SKU, MPN, name, description or manufacturer; every word must match"""
        if not value or not value.strip():
            return queryset
        for word in value.split():
            queryset = queryset.filter(
                Q(sku__icontains=word) |
                Q(manufacturer_part_number__icontains=word) |
                Q(name__icontains=word) |
                Q(description__icontains=word) |
                Q(manufacturer__icontains=word)
            )
        return queryset

    def filter_in_stock(self, queryset, name, value):
        if value == 'true':
            return queryset.filter(stock_quantity__gt=0)
        if value == 'false':
            return queryset.filter(stock_quantity__lte=0)
        return queryset

    def filter_low_stock(self, queryset, name, value):
        if value == 'true':
            return queryset.filter(stock_quantity__lte=F('min_stock_level'))
        return queryset


class ObsolescenceAlertFilter(django_filters.FilterSet):
    severity = django_filters.ChoiceFilter(choices=ObsolescenceAlert.SEVERITY_CHOICES)
    alert_type = django_filters.ChoiceFilter(choices=ObsolescenceAlert.ALERT_TYPE_CHOICES)
    component = django_filters.NumberFilter(field_name='component_id')
    is_resolved = django_filters.BooleanFilter()
    acknowledged = django_filters.BooleanFilter(field_name='acknowledged_at', lookup_expr='isnull', exclude=True)

    class Meta:
        model = ObsolescenceAlert
        fields = ['severity', 'alert_type', 'component', 'is_resolved', 'acknowledged']
