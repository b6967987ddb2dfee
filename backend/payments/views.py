import json
import logging
import time
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from backend.core.utils import create_audit_log, get_merchant_parent
from backend.stores.models import MerchantStore
from backend.stores.utils import get_store_for_parent
from . import razorpay
from .models import OnboardingPayment
from .plans import (
    DEFAULT_PLAN_ID, DEFAULT_PLAN_NAME, PROMO_LABEL, get_plans, promo_amount_paise, standard_amount_paise,
)

logger = logging.getLogger('backend.payments')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def plan_list(request):
    """Plans available at the plan step"""
    return Response({'success': True, 'plans': get_plans()})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_order(request):
    """Create a Razorpay order for the onboarding fee"""
    try:
        parent = get_merchant_parent(request.user)
        if parent is None:
            return Response({'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)
        if not razorpay.is_configured():
            return Response({'success': False, 'error': 'Payment not configured. Proceed without payment.'},
                            status=status.HTTP_503_SERVICE_UNAVAILABLE)

        data = request.data
        try:
            amount_paise = int(data.get('amountPaise') or 0)
        except (TypeError, ValueError):
            return Response({'error': 'amountPaise must be a whole number of paise'}, status=status.HTTP_400_BAD_REQUEST)
        if amount_paise <= 0:
            use_promo = data.get('usePromo', True) is not False
            amount_paise = promo_amount_paise() if use_promo else standard_amount_paise()

        store = None
        if data.get('storeId'):
            store = get_store_for_parent(parent, data['storeId'])
            if store is None:
                return Response({'error': 'Store not found or access denied.'}, status=status.HTTP_404_NOT_FOUND)

        receipt = f"onboard_{parent.parent_merchant_id}_{int(time.time() * 1000)}"
        try:
            order = razorpay.create_order(amount_paise, receipt)
        except razorpay.PaymentGatewayError as e:
            return Response({'success': False, 'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)

        payment = OnboardingPayment.objects.create(
            parent=parent,
            store=store,
            razorpay_order_id=order['id'],
            razorpay_status=order.get('status'),
            amount_paise=amount_paise,
            standard_amount_paise=standard_amount_paise(),
            promo_amount_paise=promo_amount_paise(),
            currency='INR',
            plan_id=data.get('planId') or DEFAULT_PLAN_ID,
            plan_name=data.get('planName') or DEFAULT_PLAN_NAME,
            promo_label=PROMO_LABEL,
        )
        create_audit_log(request=request, action='payment_order', model_name='OnboardingPayment',
                         object_id=str(payment.id), object_reference=payment.razorpay_order_id,
                         changes={'amount_paise': amount_paise, 'plan_id': payment.plan_id})
        logger.info(f"Created onboarding order {payment.razorpay_order_id} for {parent.parent_merchant_id}")
        return Response({
            'success': True,
            'orderId': payment.razorpay_order_id,
            'amount': amount_paise,
            'currency': 'INR',
            'keyId': razorpay.get_key_id(),
        }, status=status.HTTP_201_CREATED)
    except Exception as e:
        logger.error(f"Unexpected error in create_order: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def verify_payment(request):
    """Verify the checkout signature and mark the payment captured"""
    parent = get_merchant_parent(request.user)
    if parent is None:
        return Response({'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)

    order_id = request.data.get('razorpay_order_id')
    payment_id = request.data.get('razorpay_payment_id')
    signature = request.data.get('razorpay_signature')
    if not order_id or not payment_id or not signature:
        return Response({'error': 'razorpay_order_id, razorpay_payment_id and razorpay_signature are required'},
                        status=status.HTTP_400_BAD_REQUEST)

    payment = OnboardingPayment.objects.filter(parent=parent, razorpay_order_id=order_id).first()
    if payment is None:
        return Response({'error': 'Payment order not found'}, status=status.HTTP_404_NOT_FOUND)

    if not razorpay.verify_payment_signature(order_id, payment_id, signature):
        payment.status = 'failed'
        payment.failure_reason = 'Invalid signature'
        payment.razorpay_payment_id = payment_id
        payment.save(update_fields=['status', 'failure_reason', 'razorpay_payment_id', 'updated_at'])
        logger.warning(f"Invalid payment signature for order {order_id}")
        return Response({'success': False, 'error': 'Invalid signature'}, status=status.HTTP_400_BAD_REQUEST)

    payment.status = 'captured'
    payment.razorpay_payment_id = payment_id
    payment.razorpay_signature = signature
    payment.failure_reason = None
    payment.captured_at = timezone.now()
    if payment.store_id is None:
        payment.store = MerchantStore.objects.filter(parent=parent).order_by('-created_at').first()
    payment.save()

    create_audit_log(request=request, action='payment_verify', model_name='OnboardingPayment',
                     object_id=str(payment.id), object_reference=order_id,
                     changes={'status': 'captured', 'payment_id': payment_id})
    return Response({'success': True, 'status': payment.status, 'capturedAt': payment.captured_at})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_status(request):
    """Whether the onboarding fee is already paid, by ?orderId= or ?merchantStoreId="""
    parent = get_merchant_parent(request.user)
    if parent is None:
        return Response({'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)

    order_id = request.query_params.get('orderId')
    store_ref = request.query_params.get('merchantStoreId')
    payments = OnboardingPayment.objects.filter(parent=parent, status='captured')
    if order_id:
        order = OnboardingPayment.objects.filter(parent=parent, razorpay_order_id=order_id).first()
        payments = payments.filter(razorpay_order_id=order_id)
        checked_by = 'orderId'
    elif store_ref:
        store = get_store_for_parent(parent, store_ref)
        if store is None:
            return Response({'error': 'Store not found or access denied.'}, status=status.HTTP_404_NOT_FOUND)
        payments = payments.filter(store=store)
        checked_by = 'merchantStoreId'
    else:
        return Response({'error': 'orderId or merchantStoreId is required'}, status=status.HTTP_400_BAD_REQUEST)

    payment = payments.order_by('-captured_at').first()
    data = {
        'success': True,
        'alreadyPaid': payment is not None,
        'capturedAt': payment.captured_at if payment else None,
        'checkedBy': checked_by,
    }
    if order_id:
        data['status'] = order.status if order else None
    return Response(data)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def razorpay_webhook(request):
    """Razorpay payment events, authenticated by X-Razorpay-Signature"""
    raw_body = request.body
    if not razorpay.webhook_secret_configured():
        logger.warning("Razorpay webhook received but no webhook secret is configured")
        return Response({'received': True})

    signature = request.META.get('HTTP_X_RAZORPAY_SIGNATURE', '')
    if not razorpay.verify_webhook_signature(raw_body, signature):
        logger.warning("Razorpay webhook rejected: invalid signature")
        return Response({'error': 'Invalid signature'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        event = json.loads(raw_body.decode('utf-8') or '{}')
    except (UnicodeDecodeError, json.JSONDecodeError):
        return Response({'error': 'Invalid payload'}, status=status.HTTP_400_BAD_REQUEST)

    event_type = event.get('event')
    entity = ((event.get('payload') or {}).get('payment') or {}).get('entity') or {}
    order_id = entity.get('order_id')
    payment = OnboardingPayment.objects.filter(razorpay_order_id=order_id).first() if order_id else None
    if payment is None:
        logger.info(f"Razorpay webhook {event_type} for unknown order {order_id}")
        return Response({'received': True})

    if event_type == 'payment.captured':
        payment.status = 'captured'
        payment.captured_at = payment.captured_at or timezone.now()
        payment.failure_reason = None
        if payment.store_id is None:
            payment.store = MerchantStore.objects.filter(parent=payment.parent).order_by('-created_at').first()
    elif event_type == 'payment.failed':
        payment.status = 'failed'
        payment.failure_reason = entity.get('error_description') or entity.get('error_reason') or 'Payment failed'
    else:
        return Response({'received': True})

    payment.razorpay_payment_id = entity.get('id') or payment.razorpay_payment_id
    payment.razorpay_status = entity.get('status') or payment.razorpay_status
    payment.webhook_payload = event
    payment.save()
    create_audit_log(action='payment_webhook', model_name='OnboardingPayment', object_id=str(payment.id),
                     object_reference=order_id, user=payment.parent.user,
                     changes={'event': event_type, 'status': payment.status})
    logger.info(f"Razorpay webhook {event_type} applied to {order_id}")
    return Response({'received': True})
