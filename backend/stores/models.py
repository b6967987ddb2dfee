from django.db import models
from backend.core.models import MerchantParent


class MerchantStore(models.Model):
    """A merchant outlet created through the onboarding wizard"""
    STORE_TYPE_CHOICES = [
        ('RESTAURANT', 'Restaurant'),
        ('CAFE', 'Cafe'),
        ('BAKERY', 'Bakery'),
        ('CLOUD_KITCHEN', 'Cloud Kitchen'),
        ('GROCERY', 'Grocery'),
        ('PHARMA', 'Pharma'),
        ('STATIONERY', 'Stationery'),
        ('ELECTRONICS_ECOMMERCE', 'Electronics / E-commerce'),
        ('OTHERS', 'Others'),
    ]
    APPROVAL_STATUS_CHOICES = [
        ('DRAFT', 'Draft'),
        ('SUBMITTED', 'Submitted'),
        ('UNDER_VERIFICATION', 'Under Verification'),
        ('APPROVED', 'Approved'),
        ('REJECTED', 'Rejected'),
    ]
    STATUS_CHOICES = [
        ('ACTIVE', 'Active'),
        ('INACTIVE', 'Inactive'),
    ]
    OPERATIONAL_STATUS_CHOICES = [
        ('OPEN', 'Open'),
        ('CLOSED', 'Closed'),
    ]

    store_id = models.CharField(max_length=20, unique=True)
    parent = models.ForeignKey(MerchantParent, on_delete=models.CASCADE, related_name='stores')
    store_name = models.CharField(max_length=200)
    store_display_name = models.CharField(max_length=200, blank=True)
    store_description = models.TextField(blank=True)
    store_email = models.EmailField(blank=True)
    store_phones = models.JSONField(default=list, blank=True)
    store_type = models.CharField(max_length=30, choices=STORE_TYPE_CHOICES, default='RESTAURANT')
    custom_store_type = models.CharField(max_length=100, blank=True)

    full_address = models.TextField(blank=True)
    landmark = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    postal_code = models.CharField(max_length=10, blank=True)
    country = models.CharField(max_length=2, default='IN')
    latitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    longitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)

    approval_status = models.CharField(max_length=20, choices=APPROVAL_STATUS_CHOICES, default='DRAFT')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='INACTIVE')
    operational_status = models.CharField(max_length=10, choices=OPERATIONAL_STATUS_CHOICES, default='CLOSED')
    current_onboarding_step = models.PositiveSmallIntegerField(default=1)
    onboarding_completed = models.BooleanField(default=False)
    onboarding_completed_at = models.DateTimeField(null=True, blank=True)

    cuisine_types = models.JSONField(default=list, blank=True)
    food_categories = models.JSONField(default=list, blank=True)
    avg_preparation_time_minutes = models.PositiveIntegerField(default=30)
    min_order_amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    delivery_radius_km = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    is_pure_veg = models.BooleanField(default=False)
    accepts_online_payment = models.BooleanField(default=True)
    accepts_cash = models.BooleanField(default=True)
    logo_url = models.TextField(blank=True)
    banner_url = models.TextField(blank=True)
    gallery_images = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.store_id} - {self.store_name}"

    class Meta:
        db_table = 'merchant_stores'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['parent', 'approval_status'], name='store_parent_approval_idx'),
        ]


class StoreOperatingHours(models.Model):
    """Weekly opening hours, one row per store. Times are HH:MM strings."""
    DAYS = ['monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday']

    store = models.OneToOneField(MerchantStore, on_delete=models.CASCADE, related_name='operating_hours')

    monday_open = models.BooleanField(default=False)
    monday_slot1_start = models.CharField(max_length=5, null=True, blank=True)
    monday_slot1_end = models.CharField(max_length=5, null=True, blank=True)
    monday_slot2_start = models.CharField(max_length=5, null=True, blank=True)
    monday_slot2_end = models.CharField(max_length=5, null=True, blank=True)
    monday_total_duration_minutes = models.PositiveIntegerField(default=0)

    tuesday_open = models.BooleanField(default=False)
    tuesday_slot1_start = models.CharField(max_length=5, null=True, blank=True)
    tuesday_slot1_end = models.CharField(max_length=5, null=True, blank=True)
    tuesday_slot2_start = models.CharField(max_length=5, null=True, blank=True)
    tuesday_slot2_end = models.CharField(max_length=5, null=True, blank=True)
    tuesday_total_duration_minutes = models.PositiveIntegerField(default=0)

    wednesday_open = models.BooleanField(default=False)
    wednesday_slot1_start = models.CharField(max_length=5, null=True, blank=True)
    wednesday_slot1_end = models.CharField(max_length=5, null=True, blank=True)
    wednesday_slot2_start = models.CharField(max_length=5, null=True, blank=True)
    wednesday_slot2_end = models.CharField(max_length=5, null=True, blank=True)
    wednesday_total_duration_minutes = models.PositiveIntegerField(default=0)

    thursday_open = models.BooleanField(default=False)
    thursday_slot1_start = models.CharField(max_length=5, null=True, blank=True)
    thursday_slot1_end = models.CharField(max_length=5, null=True, blank=True)
    thursday_slot2_start = models.CharField(max_length=5, null=True, blank=True)
    thursday_slot2_end = models.CharField(max_length=5, null=True, blank=True)
    thursday_total_duration_minutes = models.PositiveIntegerField(default=0)

    friday_open = models.BooleanField(default=False)
    friday_slot1_start = models.CharField(max_length=5, null=True, blank=True)
    friday_slot1_end = models.CharField(max_length=5, null=True, blank=True)
    friday_slot2_start = models.CharField(max_length=5, null=True, blank=True)
    friday_slot2_end = models.CharField(max_length=5, null=True, blank=True)
    friday_total_duration_minutes = models.PositiveIntegerField(default=0)

    saturday_open = models.BooleanField(default=False)
    saturday_slot1_start = models.CharField(max_length=5, null=True, blank=True)
    saturday_slot1_end = models.CharField(max_length=5, null=True, blank=True)
    saturday_slot2_start = models.CharField(max_length=5, null=True, blank=True)
    saturday_slot2_end = models.CharField(max_length=5, null=True, blank=True)
    saturday_total_duration_minutes = models.PositiveIntegerField(default=0)

    sunday_open = models.BooleanField(default=False)
    sunday_slot1_start = models.CharField(max_length=5, null=True, blank=True)
    sunday_slot1_end = models.CharField(max_length=5, null=True, blank=True)
    sunday_slot2_start = models.CharField(max_length=5, null=True, blank=True)
    sunday_slot2_end = models.CharField(max_length=5, null=True, blank=True)
    sunday_total_duration_minutes = models.PositiveIntegerField(default=0)

    closed_days = models.JSONField(default=list, blank=True)
    same_for_all_days = models.BooleanField(default=False)
    is_24_hours = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Hours for {self.store.store_id}"

    class Meta:
        db_table = 'merchant_store_operating_hours'


class StoreSettings(models.Model):
    """Dashboard delivery toggles for a store"""
    store = models.OneToOneField(MerchantStore, on_delete=models.CASCADE, related_name='settings')
    self_delivery = models.BooleanField(default=False)
    platform_delivery = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Settings for {self.store.store_id}"

    class Meta:
        db_table = 'merchant_store_settings'
