from django.urls import path
from .views import plan_list, create_order, verify_payment, payment_status, razorpay_webhook

urlpatterns = [
    path('payments/plans/', plan_list, name='payment-plans'),
    path('payments/create-order/', create_order, name='payment-create-order'),
    path('payments/verify/', verify_payment, name='payment-verify'),
    path('payments/status/', payment_status, name='payment-status'),
    path('payments/webhook/', razorpay_webhook, name='payment-webhook'),
]
