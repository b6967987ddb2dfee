"""
Tests for R2 object key layout and the attachment endpoints
"""
from unittest import mock
from botocore.exceptions import ClientError
from django.test import TestCase, override_settings
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.storage import client as r2
from backend.storage.paths import (
    build_object_key, extract_key_from_url, onboarding_prefix, parent_prefix, safe_file_name, to_stored_document_url,
)


class ObjectKeyTests(TestCase):
    """Test onboarding key construction"""

    def test_store_prefix(self):
        self.assertEqual(
            onboarding_prefix('GMMP1001', 'GMMC1002', 'MENU_IMAGES'),
            'docs/merchants/GMMP1001/stores/GMMC1002/onboarding/menu/images',
        )

    def test_draft_prefix_without_store(self):
        self.assertEqual(
            onboarding_prefix('GMMP1001', None, 'DOCUMENTS'),
            'docs/merchants/GMMP1001/draft/onboarding/documents',
        )

    def test_unknown_segment(self):
        with self.assertRaises(ValueError):
            onboarding_prefix('GMMP1001', 'GMMC1002', 'SECRETS')

    def test_codes_are_sanitized(self):
        self.assertEqual(parent_prefix('../GMMP1001'), 'docs/merchants/GMMP1001/')
        self.assertEqual(parent_prefix(''), 'docs/merchants/unknown/')

    def test_safe_file_name(self):
        self.assertEqual(safe_file_name('../../my menu (1).pdf'), 'my_menu__1_.pdf')
        self.assertEqual(safe_file_name(''), 'file')

    def test_build_object_key(self):
        key = build_object_key('GMMP1001', 'GMMC1002', 'BANK', 'cheque.jpg', timestamp=1700000000000)
        self.assertEqual(key, 'docs/merchants/GMMP1001/stores/GMMC1002/onboarding/bank/1700000000000_cheque.jpg')


class ExtractKeyTests(TestCase):
    """Test recovering keys from stored values"""

    def test_bare_key(self):
        self.assertEqual(extract_key_from_url('/docs/merchants/GMMP1001/a.jpg'), 'docs/merchants/GMMP1001/a.jpg')

    def test_proxy_url(self):
        self.assertEqual(
            extract_key_from_url('/api/v1/attachments/proxy/?key=docs%2Fmerchants%2FGMMP1001%2Fa.jpg'),
            'docs/merchants/GMMP1001/a.jpg',
        )

    @override_settings(R2_BUCKET_NAME='onboarding')
    def test_presigned_url_strips_bucket(self):
        url = 'https://acct.r2.cloudflarestorage.com/onboarding/docs/merchants/GMMP1001/a.jpg?X-Amz-Signature=abc'
        self.assertEqual(extract_key_from_url(url), 'docs/merchants/GMMP1001/a.jpg')

    def test_empty(self):
        self.assertIsNone(extract_key_from_url(''))
        self.assertIsNone(extract_key_from_url(None))

    def test_stored_url_without_public_base(self):
        with override_settings(R2_PUBLIC_BASE_URL=''):
            self.assertEqual(to_stored_document_url('docs/a.jpg'), '/api/v1/attachments/proxy/?key=docs/a.jpg')

    def test_stored_url_with_public_base(self):
        with override_settings(R2_PUBLIC_BASE_URL='https://cdn.example.com/'):
            self.assertEqual(to_stored_document_url('docs/a.jpg'), 'https://cdn.example.com/docs/a.jpg')
            self.assertEqual(extract_key_from_url('https://cdn.example.com/docs/a.jpg'), 'docs/a.jpg')


@override_settings(R2_ACCESS_KEY='', R2_SECRET_KEY='', R2_BUCKET_NAME='', R2_ENDPOINT='')
class StorageClientTests(TestCase):
    """Test client behaviour without credentials"""

    def test_not_configured(self):
        self.assertFalse(r2.is_configured())
        with self.assertRaises(r2.StorageNotConfigured):
            r2.upload_file('docs/a.jpg', b'data')

    def test_delete_quietly_swallows_storage_errors(self):
        self.assertFalse(r2.delete_quietly('docs/a.jpg'))
        self.assertFalse(r2.delete_quietly(None))

    @mock.patch('backend.storage.client.get_client')
    def test_open_object_yields_chunks(self, mock_client):
        body = mock.Mock()
        body.iter_chunks.return_value = iter([b'%PDF-', b'1.4'])
        mock_client.return_value.get_object.return_value = {'Body': body, 'ContentType': 'application/pdf'}
        chunks, content_type = r2.open_object('docs/a.pdf')
        self.assertEqual(content_type, 'application/pdf')
        self.assertEqual(b''.join(chunks), b'%PDF-1.4')
        body.read.assert_not_called()

    @mock.patch('backend.storage.client.get_client')
    def test_open_missing_object(self, mock_client):
        mock_client.return_value.get_object.side_effect = ClientError(
            {'Error': {'Code': 'NoSuchKey', 'Message': 'missing'}}, 'GetObject')
        self.assertEqual(r2.open_object('docs/a.pdf'), (None, None))


class AttachmentAPITests(TestCase):
    """Test signed url and proxy endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.parent = TestDataFactory.create_merchant_parent()
        self.client.authenticate_user(self.parent.user)
        self.own_key = f'docs/merchants/{self.parent.parent_merchant_id}/stores/GMMC1001/onboarding/documents/1_pan.jpg'

    def test_key_required(self):
        response = self.client.get('/api/v1/attachments/signed-url/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_foreign_key_denied(self):
        response = self.client.get('/api/v1/attachments/signed-url/', {'key': 'docs/merchants/GMMP9999/x.jpg'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    @mock.patch('backend.storage.client.generate_signed_url', return_value='https://signed.example.com/x')
    def test_signed_url(self, mock_sign):
        response = self.client.get('/api/v1/attachments/signed-url/', {'key': self.own_key})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['url'], 'https://signed.example.com/x')
        self.assertEqual(response.data['expires_in'], 7 * 24 * 60 * 60)
        mock_sign.assert_called_once_with(self.own_key)

    @mock.patch('backend.storage.client.generate_signed_url', side_effect=r2.StorageNotConfigured('missing'))
    def test_signed_url_not_configured(self, mock_sign):
        response = self.client.get('/api/v1/attachments/signed-url/', {'key': self.own_key})
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)

    @mock.patch('backend.storage.client.open_object', return_value=(iter([b'%PDF-', b'1.4']), 'application/pdf'))
    def test_proxy_streams_object(self, mock_open):
        response = self.client.get('/api/v1/attachments/proxy/', {'key': self.own_key})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.streaming)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertEqual(b''.join(response.streaming_content), b'%PDF-1.4')

    @mock.patch('backend.storage.client.open_object', return_value=(None, None))
    def test_proxy_missing_object(self, mock_get):
        response = self.client.get('/api/v1/attachments/proxy/', {'key': self.own_key})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
