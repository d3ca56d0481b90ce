"""
URL configuration for the back office.

The admin is the main user interface; every app also exposes a small JSON API
under `api/v1/`.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Electronics Back Office Admin Panel"
admin.site.site_title = "Electronics Back Office Admin Portal"
admin.site.index_title = "Components, projects, quotations and invoicing"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backoffice.core.urls')),
    path('api/v1/', include('backoffice.components.urls')),
    path('api/v1/', include('backoffice.inventory.urls')),
    path('api/v1/', include('backoffice.parties.urls')),
    path('api/v1/', include('backoffice.sales.urls')),
    path('api/v1/', include('backoffice.projects.urls')),
    re_path(r'^media/(?P<path>.*)$', serve, {'document_root': settings.MEDIA_ROOT}),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
