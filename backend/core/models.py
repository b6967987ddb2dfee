from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Extended user model with additional fields"""
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'


class MerchantParent(models.Model):
    """Parent merchant account owning one or more stores"""
    MERCHANT_TYPE_CHOICES = [
        ('LOCAL', 'Local'),
        ('BRAND', 'Brand'),
        ('CHAIN', 'Chain'),
    ]
    REGISTRATION_STATUS_CHOICES = [
        ('PENDING', 'Pending'),
        ('VERIFIED', 'Verified'),
        ('SUSPENDED', 'Suspended'),
    ]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='merchant_parent')
    parent_merchant_id = models.CharField(max_length=20, unique=True)
    parent_name = models.CharField(max_length=200)
    merchant_type = models.CharField(max_length=20, choices=MERCHANT_TYPE_CHOICES, default='LOCAL')
    owner_name = models.CharField(max_length=200)
    owner_email = models.EmailField(blank=True, null=True, unique=True)
    registered_phone = models.CharField(max_length=20, unique=True)
    alternate_phone = models.CharField(max_length=20, blank=True)
    brand_name = models.CharField(max_length=200, blank=True)
    business_category = models.CharField(max_length=100, blank=True)
    registration_status = models.CharField(max_length=20, choices=REGISTRATION_STATUS_CHOICES, default='VERIFIED')
    is_active = models.BooleanField(default=True)
    address_line1 = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    pincode = models.CharField(max_length=10, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.parent_merchant_id} - {self.parent_name}"

    class Meta:
        db_table = 'merchant_parents'


class AuditLog(models.Model):
    """Audit log for onboarding and merchant operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('progress_save', 'Onboarding Progress Saved'),
        ('store_submit', 'Store Submitted'),
        ('document_upload', 'Document Uploaded'),
        ('menu_upload', 'Menu Uploaded'),
        ('menu_delete', 'Menu File Deleted'),
        ('payment_order', 'Payment Order Created'),
        ('payment_verify', 'Payment Verified'),
        ('payment_webhook', 'Payment Webhook'),
        ('agreement_accept', 'Agreement Accepted'),
        ('settings_update', 'Store Settings Updated'),
        ('ticket_create', 'Ticket Created'),
        ('ticket_reply', 'Ticket Reply'),
        ('ticket_rate', 'Ticket Rated'),
        ('ticket_reopen', 'Ticket Reopened'),
        ('review_respond', 'Review Response'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., store name, ticket subject)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., store public id, ticket id, order id)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_created_idx'),
            models.Index(fields=['action'], name='audit_action_idx'),
            models.Index(fields=['model_name'], name='audit_model_idx'),
            models.Index(fields=['object_reference'], name='audit_reference_idx'),
        ]
