from django.urls import path
from .views import signed_url, attachment_proxy

urlpatterns = [
    path('attachments/signed-url/', signed_url, name='attachment-signed-url'),
    path('attachments/proxy/', attachment_proxy, name='attachment-proxy'),
]
