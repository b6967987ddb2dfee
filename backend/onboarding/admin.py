from django.contrib import admin
from .models import RegistrationProgress, StoreMediaFile, StoreDocuments, StoreBankAccount


@admin.register(RegistrationProgress)
class RegistrationProgressAdmin(admin.ModelAdmin):
    list_display = ['id', 'parent', 'store', 'current_step', 'completed_steps', 'registration_status', 'updated_at']
    list_filter = ['registration_status', 'current_step']
    search_fields = ['parent__parent_merchant_id', 'store__store_id']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(StoreMediaFile)
class StoreMediaFileAdmin(admin.ModelAdmin):
    list_display = ['store', 'source_entity', 'original_file_name', 'file_size_bytes', 'is_active', 'created_at']
    list_filter = ['media_scope', 'source_entity', 'is_active']
    search_fields = ['store__store_id', 'original_file_name', 'r2_key']


@admin.register(StoreDocuments)
class StoreDocumentsAdmin(admin.ModelAdmin):
    list_display = ['store', 'pan_document_number', 'gst_document_number', 'fssai_document_number', 'updated_at']
    search_fields = ['store__store_id', 'pan_document_number', 'gst_document_number']


@admin.register(StoreBankAccount)
class StoreBankAccountAdmin(admin.ModelAdmin):
    list_display = ['store', 'payout_method', 'account_holder_name', 'bank_name', 'ifsc_code', 'is_primary', 'is_active']
    list_filter = ['payout_method', 'is_primary', 'is_active']
    search_fields = ['store__store_id', 'account_holder_name', 'upi_id']
