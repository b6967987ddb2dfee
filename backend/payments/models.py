from django.db import models
from backend.core.models import MerchantParent
from backend.stores.models import MerchantStore


class OnboardingPayment(models.Model):
    """Onboarding fee payment through Razorpay"""
    STATUS_CHOICES = [
        ('created', 'Created'),
        ('captured', 'Captured'),
        ('failed', 'Failed'),
    ]

    parent = models.ForeignKey(MerchantParent, on_delete=models.CASCADE, related_name='onboarding_payments')
    store = models.ForeignKey(MerchantStore, on_delete=models.SET_NULL, null=True, blank=True, related_name='onboarding_payments')
    razorpay_order_id = models.CharField(max_length=100, unique=True)
    razorpay_payment_id = models.CharField(max_length=100, blank=True, null=True)
    razorpay_signature = models.CharField(max_length=200, blank=True, null=True)
    razorpay_status = models.CharField(max_length=30, blank=True, null=True)
    amount_paise = models.PositiveIntegerField()
    standard_amount_paise = models.PositiveIntegerField(null=True, blank=True)
    promo_amount_paise = models.PositiveIntegerField(null=True, blank=True)
    currency = models.CharField(max_length=3, default='INR')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='created')
    plan_id = models.CharField(max_length=50, default='FREE')
    plan_name = models.CharField(max_length=100, blank=True)
    promo_label = models.CharField(max_length=50, blank=True)
    failure_reason = models.TextField(blank=True, null=True)
    captured_at = models.DateTimeField(null=True, blank=True)
    webhook_payload = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.razorpay_order_id} ({self.status})"

    class Meta:
        db_table = 'merchant_onboarding_payments'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['parent', 'status'], name='payment_parent_status_idx'),
        ]
