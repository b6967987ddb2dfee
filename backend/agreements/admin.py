from django.contrib import admin
from .models import AgreementAcceptance, AgreementTemplate


@admin.register(AgreementTemplate)
class AgreementTemplateAdmin(admin.ModelAdmin):
    list_display = ['template_key', 'version', 'title', 'is_active', 'updated_at']
    list_filter = ['is_active']
    search_fields = ['template_key', 'title']


@admin.register(AgreementAcceptance)
class AgreementAcceptanceAdmin(admin.ModelAdmin):
    list_display = ['store', 'signer_name', 'template_key', 'template_version', 'accepted_at']
    list_filter = ['template_key', 'acceptance_source']
    search_fields = ['store__store_id', 'signer_name', 'signer_email']
    readonly_fields = ['signature_hash', 'accepted_ip', 'user_agent', 'accepted_at']
