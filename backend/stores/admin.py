from django.contrib import admin
from .models import MerchantStore, StoreOperatingHours, StoreSettings


@admin.register(MerchantStore)
class MerchantStoreAdmin(admin.ModelAdmin):
    list_display = ['store_id', 'store_name', 'parent', 'store_type', 'city', 'approval_status', 'status', 'created_at']
    list_filter = ['approval_status', 'status', 'store_type', 'onboarding_completed']
    search_fields = ['store_id', 'store_name', 'city', 'parent__parent_merchant_id', 'parent__parent_name']
    ordering = ['-created_at']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(StoreOperatingHours)
class StoreOperatingHoursAdmin(admin.ModelAdmin):
    list_display = ['store', 'same_for_all_days', 'is_24_hours', 'updated_at']
    search_fields = ['store__store_id', 'store__store_name']


@admin.register(StoreSettings)
class StoreSettingsAdmin(admin.ModelAdmin):
    list_display = ['store', 'self_delivery', 'platform_delivery', 'updated_at']
    list_filter = ['self_delivery', 'platform_delivery']
    search_fields = ['store__store_id', 'store__store_name']
