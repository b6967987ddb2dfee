from django.urls import path
from .views import (
    onboarding_progress, validate_step_view, menu_uploads, menu_upload_delete,
    document_upload, geocode_search, geocode_reverse, submit_registration
)

urlpatterns = [
    path('onboarding/progress/', onboarding_progress, name='onboarding-progress'),
    path('onboarding/validate-step/', validate_step_view, name='onboarding-validate-step'),
    path('onboarding/menu-uploads/', menu_uploads, name='onboarding-menu-uploads'),
    path('onboarding/menu-uploads/<int:pk>/', menu_upload_delete, name='onboarding-menu-upload-delete'),
    path('onboarding/documents/upload/', document_upload, name='onboarding-document-upload'),
    path('onboarding/geocode/search/', geocode_search, name='onboarding-geocode-search'),
    path('onboarding/geocode/reverse/', geocode_reverse, name='onboarding-geocode-reverse'),
    path('onboarding/submit/', submit_registration, name='onboarding-submit'),
]
