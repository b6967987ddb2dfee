from django.contrib import admin
from .models import OnboardingPayment


@admin.register(OnboardingPayment)
class OnboardingPaymentAdmin(admin.ModelAdmin):
    list_display = ['razorpay_order_id', 'parent', 'store', 'amount_paise', 'status', 'plan_id', 'captured_at', 'created_at']
    list_filter = ['status', 'plan_id']
    search_fields = ['razorpay_order_id', 'razorpay_payment_id', 'parent__parent_merchant_id']
    readonly_fields = ['webhook_payload', 'created_at', 'updated_at']
