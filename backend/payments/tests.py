"""
Tests for onboarding plans, Razorpay orders, signature checks and the webhook
"""
import hashlib
import hmac
import json
from unittest import mock
import requests
from django.core.cache import cache
from django.test import TestCase, override_settings
from rest_framework import status
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.payments import razorpay
from backend.payments.models import OnboardingPayment
from backend.payments.plans import get_plan, get_plans

KEY_ID = 'rzp_test_key'
KEY_SECRET = 'rzp_test_secret'
WEBHOOK_SECRET = 'whsec_test'


def _sign(secret, message):
    return hmac.new(secret.encode('utf-8'), message, hashlib.sha256).hexdigest()


def _gateway_response(ok=True, payload=None, status_code=200):
    response = mock.Mock()
    response.ok = ok
    response.status_code = status_code
    response.text = json.dumps(payload or {})
    response.json.return_value = payload or {}
    return response


class PlanTests(TestCase):
    """Test plan listing"""

    def setUp(self):
        cache.clear()

    @override_settings(ONBOARDING_PROMO_AMOUNT_PAISE=100, ONBOARDING_STANDARD_AMOUNT_PAISE=9900)
    def test_default_plan(self):
        plan = get_plan('FREE')
        self.assertEqual(plan['onboardingFee'], 99)
        self.assertEqual(plan['promoAmountPaise'], 100)
        self.assertTrue(plan['highlighted'])

    def test_unknown_plan(self):
        self.assertIsNone(get_plan('GOLD'))

    def test_plans_are_cached(self):
        plans = get_plans()
        with override_settings(ONBOARDING_STANDARD_AMOUNT_PAISE=19900):
            self.assertEqual(get_plans(), plans)


@override_settings(RAZORPAY_KEY_ID=KEY_ID, RAZORPAY_KEY_SECRET=KEY_SECRET, RAZORPAY_WEBHOOK_SECRET=WEBHOOK_SECRET)
class SignatureTests(TestCase):
    """Test checkout and webhook signature verification"""

    def test_payment_signature(self):
        signature = _sign(KEY_SECRET, b'order_1|pay_1')
        self.assertTrue(razorpay.verify_payment_signature('order_1', 'pay_1', signature))
        self.assertFalse(razorpay.verify_payment_signature('order_1', 'pay_2', signature))
        self.assertFalse(razorpay.verify_payment_signature('order_1', 'pay_1', ''))

    def test_webhook_signature(self):
        body = b'{"event": "payment.captured"}'
        self.assertTrue(razorpay.verify_webhook_signature(body, _sign(WEBHOOK_SECRET, body)))
        self.assertFalse(razorpay.verify_webhook_signature(body, _sign(KEY_SECRET, body)))

    @override_settings(RAZORPAY_KEY_SECRET='')
    def test_missing_secret_never_verifies(self):
        self.assertFalse(razorpay.verify_payment_signature('order_1', 'pay_1', 'anything'))
        self.assertFalse(razorpay.is_configured())


@override_settings(RAZORPAY_KEY_ID=KEY_ID, RAZORPAY_KEY_SECRET=KEY_SECRET)
class CreateOrderTests(TestCase):
    """Test Razorpay order creation"""

    def test_posts_order(self):
        with mock.patch('backend.payments.razorpay.requests.post',
                        return_value=_gateway_response(payload={'id': 'order_1'})) as mock_post:
            order = razorpay.create_order(100, 'onboard_GMMP1001_1')
        self.assertEqual(order['id'], 'order_1')
        kwargs = mock_post.call_args[1]
        self.assertEqual(kwargs['json'], {'amount': 100, 'currency': 'INR', 'receipt': 'onboard_GMMP1001_1'})
        self.assertEqual(kwargs['auth'], (KEY_ID, KEY_SECRET))

    def test_gateway_error(self):
        with mock.patch('backend.payments.razorpay.requests.post',
                        return_value=_gateway_response(ok=False, status_code=400)):
            with self.assertRaises(razorpay.PaymentGatewayError):
                razorpay.create_order(100, 'r')

    def test_network_error(self):
        with mock.patch('backend.payments.razorpay.requests.post', side_effect=requests.exceptions.Timeout()):
            with self.assertRaises(razorpay.PaymentGatewayError):
                razorpay.create_order(100, 'r')

    @override_settings(RAZORPAY_KEY_ID='')
    def test_not_configured(self):
        with self.assertRaises(razorpay.PaymentNotConfigured):
            razorpay.create_order(100, 'r')


@override_settings(RAZORPAY_KEY_ID=KEY_ID, RAZORPAY_KEY_SECRET=KEY_SECRET,
                   ONBOARDING_PROMO_AMOUNT_PAISE=100, ONBOARDING_STANDARD_AMOUNT_PAISE=9900)
class PaymentAPITests(TestCase):
    """Test order, verify and status endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.parent = TestDataFactory.create_merchant_parent()
        self.client.authenticate_user(self.parent.user)
        self.store = TestDataFactory.create_store(self.parent)

    @mock.patch('backend.payments.razorpay.requests.post')
    def test_create_order_with_promo_amount(self, mock_post):
        mock_post.return_value = _gateway_response(payload={'id': 'order_promo', 'status': 'created'})
        response = self.client.post('/api/v1/payments/create-order/', {'storeId': self.store.store_id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['orderId'], 'order_promo')
        self.assertEqual(response.data['amount'], 100)
        self.assertEqual(response.data['keyId'], KEY_ID)
        payment = OnboardingPayment.objects.get(razorpay_order_id='order_promo')
        self.assertEqual(payment.store, self.store)
        self.assertEqual(payment.standard_amount_paise, 9900)
        self.assertTrue(AuditLog.objects.filter(action='payment_order').exists())

    @mock.patch('backend.payments.razorpay.requests.post')
    def test_create_order_standard_amount(self, mock_post):
        mock_post.return_value = _gateway_response(payload={'id': 'order_std'})
        response = self.client.post('/api/v1/payments/create-order/', {'usePromo': False}, format='json')
        self.assertEqual(response.data['amount'], 9900)

    def test_create_order_invalid_amount(self):
        response = self.client.post('/api/v1/payments/create-order/', {'amountPaise': 'ten'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @mock.patch('backend.payments.razorpay.requests.post', return_value=_gateway_response(ok=False, status_code=500))
    def test_create_order_gateway_failure(self, mock_post):
        response = self.client.post('/api/v1/payments/create-order/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertFalse(OnboardingPayment.objects.exists())

    @override_settings(RAZORPAY_KEY_ID='', RAZORPAY_KEY_SECRET='')
    def test_create_order_not_configured(self):
        response = self.client.post('/api/v1/payments/create-order/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertFalse(response.data['success'])

    def test_verify_marks_captured(self):
        payment = TestDataFactory.create_payment(self.parent, order_id='order_1')
        response = self.client.post('/api/v1/payments/verify/', {
            'razorpay_order_id': 'order_1',
            'razorpay_payment_id': 'pay_1',
            'razorpay_signature': _sign(KEY_SECRET, b'order_1|pay_1'),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        payment.refresh_from_db()
        self.assertEqual(payment.status, 'captured')
        self.assertIsNotNone(payment.captured_at)
        self.assertEqual(payment.store, self.store)

    def test_verify_bad_signature_marks_failed(self):
        payment = TestDataFactory.create_payment(self.parent, order_id='order_2')
        response = self.client.post('/api/v1/payments/verify/', {
            'razorpay_order_id': 'order_2', 'razorpay_payment_id': 'pay_2', 'razorpay_signature': 'forged',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        payment.refresh_from_db()
        self.assertEqual(payment.status, 'failed')

    def test_verify_missing_fields(self):
        response = self.client.post('/api/v1/payments/verify/', {'razorpay_order_id': 'order_1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_verify_foreign_order(self):
        TestDataFactory.create_payment(TestDataFactory.create_merchant_parent(), order_id='order_3')
        response = self.client.post('/api/v1/payments/verify/', {
            'razorpay_order_id': 'order_3', 'razorpay_payment_id': 'pay_3',
            'razorpay_signature': _sign(KEY_SECRET, b'order_3|pay_3'),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_status_requires_reference(self):
        response = self.client.get('/api/v1/payments/status/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_status_by_store(self):
        response = self.client.get('/api/v1/payments/status/', {'merchantStoreId': self.store.store_id})
        self.assertFalse(response.data['alreadyPaid'])
        TestDataFactory.create_payment(self.parent, status='captured', store=self.store)
        response = self.client.get('/api/v1/payments/status/', {'merchantStoreId': self.store.store_id})
        self.assertTrue(response.data['alreadyPaid'])
        self.assertEqual(response.data['checkedBy'], 'merchantStoreId')

    def test_status_by_order(self):
        TestDataFactory.create_payment(self.parent, order_id='order_9', status='created')
        response = self.client.get('/api/v1/payments/status/', {'orderId': 'order_9'})
        self.assertFalse(response.data['alreadyPaid'])
        self.assertEqual(response.data['checkedBy'], 'orderId')
        self.assertEqual(response.data['status'], 'created')

        response = self.client.get('/api/v1/payments/status/', {'orderId': 'order_unknown'})
        self.assertIsNone(response.data['status'])


@override_settings(RAZORPAY_WEBHOOK_SECRET=WEBHOOK_SECRET)
class WebhookTests(TestCase):
    """Test the Razorpay webhook endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.parent = TestDataFactory.create_merchant_parent()
        self.payment = TestDataFactory.create_payment(self.parent, order_id='order_w1')

    def _post(self, event, signature=None):
        body = json.dumps(event).encode('utf-8')
        return self.client.post('/api/v1/payments/webhook/', data=body, content_type='application/json',
                                HTTP_X_RAZORPAY_SIGNATURE=signature or _sign(WEBHOOK_SECRET, body))

    def _event(self, name, **entity):
        entity.setdefault('order_id', 'order_w1')
        return {'event': name, 'payload': {'payment': {'entity': entity}}}

    def test_captured(self):
        response = self._post(self._event('payment.captured', id='pay_w1', status='captured'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'captured')
        self.assertEqual(self.payment.razorpay_payment_id, 'pay_w1')
        self.assertIsNotNone(self.payment.webhook_payload)
        self.assertTrue(AuditLog.objects.filter(action='payment_webhook').exists())

    def test_captured_links_latest_store(self):
        store = TestDataFactory.create_store(self.parent)
        self._post(self._event('payment.captured', id='pay_w2', status='captured'))
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.store, store)

        self.client.authenticate_user(self.parent.user)
        response = self.client.get('/api/v1/payments/status/', {'merchantStoreId': store.store_id})
        self.assertTrue(response.data['alreadyPaid'])

    def test_failed(self):
        self._post(self._event('payment.failed', error_description='Card declined'))
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'failed')
        self.assertEqual(self.payment.failure_reason, 'Card declined')

    def test_invalid_signature(self):
        response = self._post(self._event('payment.captured'), signature='forged')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'created')

    def test_unknown_order_acknowledged(self):
        response = self._post(self._event('payment.captured', order_id='order_missing'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['received'])

    def test_other_events_ignored(self):
        self._post(self._event('order.paid'))
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'created')

    @override_settings(RAZORPAY_WEBHOOK_SECRET='')
    def test_without_secret_acknowledges(self):
        response = self._post(self._event('payment.captured'), signature='anything')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, 'created')
