from django.urls import path
from .views import (
    agreement_template, contract_text, contract_pdf, contract_pdf_upload, agreement_detail
)

urlpatterns = [
    path('agreements/template/', agreement_template, name='agreement-template'),
    path('agreements/contract-text/', contract_text, name='agreement-contract-text'),
    path('agreements/contract-pdf/', contract_pdf, name='agreement-contract-pdf'),
    path('agreements/contract-pdf/upload/', contract_pdf_upload, name='agreement-contract-pdf-upload'),
    path('agreements/<str:store_id>/', agreement_detail, name='agreement-detail'),
]
