from django.contrib import admin
from .models import SupportTicket, TicketMessage, StoreReview


class TicketMessageInline(admin.TabularInline):
    model = TicketMessage
    extra = 0
    readonly_fields = ['created_at']


@admin.register(SupportTicket)
class SupportTicketAdmin(admin.ModelAdmin):
    list_display = ['ticket_id', 'parent', 'store', 'title', 'category', 'status', 'priority', 'created_at']
    list_filter = ['status', 'category', 'priority', 'page_context']
    search_fields = ['ticket_id', 'subject', 'parent__parent_merchant_id']
    inlines = [TicketMessageInline]
    readonly_fields = ['created_at', 'updated_at']


@admin.register(StoreReview)
class StoreReviewAdmin(admin.ModelAdmin):
    list_display = ['store', 'customer_name', 'overall_rating', 'is_flagged', 'merchant_responded_at', 'created_at']
    list_filter = ['overall_rating', 'is_flagged', 'is_verified']
    search_fields = ['store__store_id', 'customer_name', 'review_text']
