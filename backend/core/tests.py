"""
Tests for merchant registration, authentication and audit logging
"""
from django.test import TestCase, RequestFactory
from rest_framework import status
from backend.core.models import AuditLog, MerchantParent
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.utils import create_audit_log, generate_parent_merchant_id, get_client_ip, get_merchant_parent


class CoreUtilsTests(TestCase):
    """Test merchant resolution and id generation"""

    def test_parent_id_starts_at_1001(self):
        self.assertEqual(generate_parent_merchant_id(), 'GMMP1001')

    def test_parent_id_increments_past_highest(self):
        parent = TestDataFactory.create_merchant_parent()
        parent.parent_merchant_id = 'GMMP1042'
        parent.save()
        self.assertEqual(generate_parent_merchant_id(), 'GMMP1043')

    def test_get_merchant_parent_without_parent(self):
        user = TestDataFactory.create_user()
        self.assertIsNone(get_merchant_parent(user))

    def test_get_merchant_parent(self):
        parent = TestDataFactory.create_merchant_parent()
        self.assertEqual(get_merchant_parent(parent.user), parent)

    def test_client_ip_prefers_forwarded_for(self):
        request = RequestFactory().get('/', HTTP_X_FORWARDED_FOR='10.0.0.1, 10.0.0.2', REMOTE_ADDR='127.0.0.1')
        self.assertEqual(get_client_ip(request), '10.0.0.1')

    def test_audit_log_skipped_without_object_id(self):
        user = TestDataFactory.create_user()
        self.assertIsNone(create_audit_log(user=user, action='create', model_name='MerchantStore'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_audit_log_created(self):
        user = TestDataFactory.create_user()
        log = create_audit_log(user=user, action='store_submit', model_name='MerchantStore', object_id=7,
                               object_reference='GMMC1001', changes={'approval_status': 'SUBMITTED'})
        self.assertIsNotNone(log)
        self.assertEqual(log.object_id, '7')
        self.assertEqual(log.user, user)


class RegisterAPITests(TestCase):
    """Test parent merchant registration"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.payload = {
            'password': 'Str0ng-pass-123',
            'password_confirm': 'Str0ng-pass-123',
            'parent_name': 'Spice Foods',
            'owner_name': 'Asha Rao',
            'owner_email': 'asha@example.com',
            'registered_phone': '+91 98765 43210',
        }

    def test_register_creates_user_and_parent(self):
        response = self.client.post('/api/v1/auth/register/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['parent_merchant_id'], 'GMMP1001')
        self.assertIn('access', response.data)
        parent = MerchantParent.objects.get(parent_merchant_id='GMMP1001')
        self.assertEqual(parent.registered_phone, '9876543210')
        self.assertEqual(parent.user.username, '9876543210')
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='MerchantParent').exists())

    def test_register_duplicate_phone_conflicts(self):
        self.client.post('/api/v1/auth/register/', self.payload, format='json')
        payload = dict(self.payload, owner_email='other@example.com', username='someone-else')
        response = self.client.post('/api/v1/auth/register/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['parent_merchant_id'], 'GMMP1001')

    def test_register_password_mismatch(self):
        payload = dict(self.payload, password_confirm='different-pass-123')
        response = self.client.post('/api/v1/auth/register/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_register_invalid_phone(self):
        payload = dict(self.payload, registered_phone='12345')
        response = self.client.post('/api/v1/auth/register/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class AuthAPITests(TestCase):
    """Test login and the current-user endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(username='merchant1', password='testpass123')
        self.parent = TestDataFactory.create_merchant_parent(user=self.user)

    def test_login_returns_tokens(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'merchant1', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'merchant1', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_includes_parent(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['merchant_parent']['parent_merchant_id'], self.parent.parent_merchant_id)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class AuditLogAPITests(TestCase):
    """Test audit log listing"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.client.authenticate_user(self.user)
        create_audit_log(user=self.user, action='progress_save', model_name='RegistrationProgress', object_id=1)
        create_audit_log(user=self.user, action='store_submit', model_name='MerchantStore', object_id=2)
        create_audit_log(user=self.other, action='store_submit', model_name='MerchantStore', object_id=3)

    def test_list_only_own_logs(self):
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_filter_by_action(self):
        response = self.client.get('/api/v1/audit-logs/', {'action': 'store_submit'})
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['object_id'], '2')

    def test_detail_of_foreign_log_is_404(self):
        log = AuditLog.objects.get(object_id='3')
        response = self.client.get(f'/api/v1/audit-logs/{log.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
