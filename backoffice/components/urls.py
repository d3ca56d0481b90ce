from django.urls import path
from .views import (
    category_list_create, component_list_create, component_detail, component_alternatives,
    component_generate_aruco, component_by_aruco, component_label, lifecycle_summary,
    obsolescence_alert_list, obsolescence_alert_acknowledge, obsolescence_alert_resolve,
    component_certifications, expiring_certifications, certification_statistics,
)

urlpatterns = [
    path('component-categories/', category_list_create, name='component-category-list'),

    # Component endpoints
    path('components/', component_list_create, name='component-list'),
    path('components/lifecycle-summary/', lifecycle_summary, name='component-lifecycle-summary'),
    path('components/aruco/<str:code>/', component_by_aruco, name='component-by-aruco'),
    path('components/<int:pk>/', component_detail, name='component-detail'),
    path('components/<int:pk>/alternatives/', component_alternatives, name='component-alternatives'),
    path('components/<int:pk>/certifications/', component_certifications, name='component-certifications'),
    path('components/<int:pk>/aruco/', component_generate_aruco, name='component-generate-aruco'),
    path('components/<int:pk>/label/', component_label, name='component-label'),

    # Obsolescence alerts
    path('obsolescence-alerts/', obsolescence_alert_list, name='obsolescence-alert-list'),
    path('obsolescence-alerts/<int:pk>/acknowledge/', obsolescence_alert_acknowledge, name='obsolescence-alert-acknowledge'),
    path('obsolescence-alerts/<int:pk>/resolve/', obsolescence_alert_resolve, name='obsolescence-alert-resolve'),

    # Certifications
    path('certifications/expiring/', expiring_certifications, name='certification-expiring'),
    path('certifications/statistics/', certification_statistics, name='certification-statistics'),
]
