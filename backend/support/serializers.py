from rest_framework import serializers
from .constants import REPEAT_CUSTOMER_ORDERS, REVIEW_THRESHOLD
from .models import StoreReview, SupportTicket, TicketMessage


class TicketMessageSerializer(serializers.ModelSerializer):
    sender_name = serializers.SerializerMethodField()

    class Meta:
        model = TicketMessage
        fields = ['id', 'sender_type', 'sender_name', 'message', 'attachments', 'created_at']

    def get_sender_name(self, obj):
        return obj.sender.username if obj.sender else None


class SupportTicketSerializer(serializers.ModelSerializer):
    store_id = serializers.CharField(source='store.store_id', read_only=True, default=None)
    message_count = serializers.SerializerMethodField()

    class Meta:
        model = SupportTicket
        fields = ['id', 'ticket_id', 'store_id', 'ticket_type', 'page_context', 'title', 'category', 'subject',
                  'description', 'attachments', 'status', 'priority', 'resolution', 'resolved_at', 'closed_at',
                  'reopened_at', 'rating', 'rating_feedback', 'message_count', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_message_count(self, obj):
        count = getattr(obj, 'message_count', None)
        return count if count is not None else obj.messages.count()


class SupportTicketDetailSerializer(SupportTicketSerializer):
    messages = TicketMessageSerializer(many=True, read_only=True)

    class Meta(SupportTicketSerializer.Meta):
        fields = SupportTicketSerializer.Meta.fields + ['messages']
        read_only_fields = fields


class StoreReviewSerializer(serializers.ModelSerializer):
    type = serializers.SerializerMethodField()
    userType = serializers.SerializerMethodField()

    class Meta:
        model = StoreReview
        fields = ['id', 'type', 'userType', 'customer_ref', 'customer_name', 'customer_email', 'customer_mobile',
                  'customer_order_count', 'order_ref', 'overall_rating', 'food_quality_rating', 'delivery_rating',
                  'packaging_rating', 'review_title', 'review_text', 'review_images', 'review_tags',
                  'merchant_response', 'merchant_responded_at', 'is_verified', 'is_flagged', 'flag_reason',
                  'created_at']
        read_only_fields = fields

    def get_type(self, obj):
        return 'Review' if obj.overall_rating >= REVIEW_THRESHOLD else 'Complaint'

    def get_userType(self, obj):
        return 'repeated' if obj.customer_order_count >= REPEAT_CUSTOMER_ORDERS else 'new'
