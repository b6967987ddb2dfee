"""
URL configuration for the merchant onboarding backend.

Every app mounts its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Merchant Onboarding Admin Panel"
admin.site.site_title = "Merchant Onboarding Admin Portal"
admin.site.index_title = "Welcome to the Merchant Onboarding Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.stores.urls')),
    path('api/v1/', include('backend.onboarding.urls')),
    path('api/v1/', include('backend.agreements.urls')),
    path('api/v1/', include('backend.payments.urls')),
    path('api/v1/', include('backend.storage.urls')),
    path('api/v1/', include('backend.support.urls')),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
