from rest_framework import serializers
from .models import MerchantStore, StoreOperatingHours
from .utils import operating_hours_to_dict


class MerchantStoreSerializer(serializers.ModelSerializer):
    parent_merchant_id = serializers.CharField(source='parent.parent_merchant_id', read_only=True)

    class Meta:
        model = MerchantStore
        fields = ['id', 'store_id', 'parent_merchant_id', 'store_name', 'store_display_name', 'store_description',
                  'store_email', 'store_phones', 'store_type', 'custom_store_type',
                  'full_address', 'landmark', 'city', 'state', 'postal_code', 'country', 'latitude', 'longitude',
                  'approval_status', 'status', 'operational_status', 'current_onboarding_step',
                  'onboarding_completed', 'onboarding_completed_at',
                  'cuisine_types', 'food_categories', 'avg_preparation_time_minutes', 'min_order_amount',
                  'delivery_radius_km', 'is_pure_veg', 'accepts_online_payment', 'accepts_cash',
                  'logo_url', 'banner_url', 'gallery_images', 'created_at', 'updated_at']
        read_only_fields = fields


class StoreOperatingHoursSerializer(serializers.ModelSerializer):
    days = serializers.SerializerMethodField()

    class Meta:
        model = StoreOperatingHours
        fields = ['days', 'closed_days', 'same_for_all_days', 'is_24_hours', 'updated_at']

    def get_days(self, obj):
        return operating_hours_to_dict(obj)
