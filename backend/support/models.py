import random
import string
from django.conf import settings
from django.db import models
from django.utils import timezone
from backend.core.models import MerchantParent
from backend.stores.models import MerchantStore


def generate_ticket_id():
    """TKT-YYYYMMDD-XXXXXX"""
    suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"TKT-{timezone.now().strftime('%Y%m%d')}-{suffix}"


class SupportTicket(models.Model):
    """Help ticket raised by a merchant"""
    STATUS_CHOICES = [
        ('OPEN', 'Open'),
        ('IN_PROGRESS', 'In Progress'),
        ('WAITING_FOR_MERCHANT', 'Waiting for Merchant'),
        ('RESOLVED', 'Resolved'),
        ('CLOSED', 'Closed'),
        ('REOPENED', 'Reopened'),
    ]
    PRIORITY_CHOICES = [
        ('LOW', 'Low'),
        ('MEDIUM', 'Medium'),
        ('HIGH', 'High'),
        ('URGENT', 'Urgent'),
    ]

    ticket_id = models.CharField(max_length=30, unique=True, default=generate_ticket_id)
    parent = models.ForeignKey(MerchantParent, on_delete=models.CASCADE, related_name='support_tickets')
    store = models.ForeignKey(MerchantStore, on_delete=models.SET_NULL, null=True, blank=True, related_name='support_tickets')
    raised_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='support_tickets')
    raised_by_name = models.CharField(max_length=200, blank=True, null=True)
    raised_by_email = models.CharField(max_length=254, blank=True, null=True)
    raised_by_mobile = models.CharField(max_length=20, blank=True, null=True)

    ticket_type = models.CharField(max_length=30, default='NON_ORDER_RELATED')
    ticket_source = models.CharField(max_length=20, default='MERCHANT')
    page_context = models.CharField(max_length=30, default='auth')
    title = models.CharField(max_length=50)
    category = models.CharField(max_length=30, default='OTHER')
    subject = models.CharField(max_length=500)
    description = models.TextField(max_length=5000)
    attachments = models.JSONField(default=list, blank=True)

    status = models.CharField(max_length=25, choices=STATUS_CHOICES, default='OPEN')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='MEDIUM')
    resolution = models.TextField(blank=True, null=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)
    reopened_at = models.DateTimeField(null=True, blank=True)
    rating = models.PositiveSmallIntegerField(null=True, blank=True)
    rating_feedback = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.ticket_id} - {self.subject[:50]}"

    class Meta:
        db_table = 'merchant_support_tickets'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['parent', 'status'], name='ticket_parent_status_idx'),
            models.Index(fields=['category'], name='ticket_category_idx'),
        ]


class TicketMessage(models.Model):
    """One message in a ticket conversation"""
    SENDER_CHOICES = [
        ('MERCHANT', 'Merchant'),
        ('AGENT', 'Agent'),
        ('SYSTEM', 'System'),
    ]

    ticket = models.ForeignKey(SupportTicket, on_delete=models.CASCADE, related_name='messages')
    sender_type = models.CharField(max_length=10, choices=SENDER_CHOICES, default='MERCHANT')
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='ticket_messages')
    message = models.TextField()
    attachments = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.sender_type} on {self.ticket.ticket_id}"

    class Meta:
        db_table = 'merchant_ticket_messages'
        ordering = ['id']


class StoreReview(models.Model):
    """Customer review of a store; customer_order_count is captured when the review is written"""
    store = models.ForeignKey(MerchantStore, on_delete=models.CASCADE, related_name='reviews')
    customer_ref = models.CharField(max_length=50, blank=True, null=True)
    customer_name = models.CharField(max_length=200, blank=True, null=True)
    customer_email = models.CharField(max_length=254, blank=True, null=True)
    customer_mobile = models.CharField(max_length=20, blank=True, null=True)
    customer_order_count = models.PositiveIntegerField(default=0)
    order_ref = models.CharField(max_length=50, blank=True, null=True)

    overall_rating = models.PositiveSmallIntegerField()
    food_quality_rating = models.PositiveSmallIntegerField(null=True, blank=True)
    delivery_rating = models.PositiveSmallIntegerField(null=True, blank=True)
    packaging_rating = models.PositiveSmallIntegerField(null=True, blank=True)
    review_title = models.CharField(max_length=255, blank=True, null=True)
    review_text = models.TextField(blank=True, null=True)
    review_images = models.JSONField(default=list, blank=True)
    review_tags = models.JSONField(default=list, blank=True)

    merchant_response = models.TextField(blank=True, null=True)
    merchant_responded_at = models.DateTimeField(null=True, blank=True)
    is_verified = models.BooleanField(default=False)
    is_flagged = models.BooleanField(default=False)
    flag_reason = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.overall_rating}* for {self.store.store_id}"

    class Meta:
        db_table = 'merchant_store_reviews'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['store', '-created_at'], name='review_store_created_idx'),
        ]
