"""
Test suite for the store onboarding wizard
Tests: KYC validators, step gating, progress merging, draft persistence,
menu/document uploads, geocoding and final submission
"""
from datetime import date
from unittest import mock
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework import status
import requests
from backend.agreements.models import AgreementAcceptance
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.onboarding import geocoding
from backend.onboarding.models import RegistrationProgress, StoreBankAccount, StoreDocuments, StoreMediaFile
from backend.onboarding.progress import build_reconciled_flags, clamp_step, deep_merge_form_data
from backend.onboarding.services import (
    has_draft_inputs, parse_date, persist_step_data, save_bank_account, save_menu_media, upsert_store_draft,
)
from backend.storage import client as r2
from backend.onboarding.validators import (
    FSSAI_ERROR, GST_ERROR, NO_CUISINE_ERROR, NO_FEATURE_ERROR, NO_OPEN_DAY_ERROR, PAN_ERROR, SECTION_ERRORS,
    TOO_MANY_CUISINES_ERROR, UPLOAD_FILE_ERROR, validate_aadhaar, validate_account_number, validate_document_section,
    validate_documents, validate_email, validate_fssai, validate_gst, validate_ifsc, validate_pan, validate_phone,
    validate_postal_code, validate_signature, validate_step, validate_store_hours, validate_store_setup, validate_upi,
    validate_upload_file,
)
from backend.stores.models import MerchantStore


def _open_day(**overrides):
    day = {'closed': False, 'slot1_open': '09:00', 'slot1_close': '13:00', 'slot2_open': '', 'slot2_close': ''}
    day.update(overrides)
    return day


def _pdf(name='doc.pdf', size=1024):
    return SimpleUploadedFile(name, b'%' * size, content_type='application/pdf')


def _jpg(name='menu.jpg'):
    return SimpleUploadedFile(name, b'\xff\xd8\xff' + b'0' * 100, content_type='image/jpeg')


class FormatValidatorTests(TestCase):
    """Test KYC number formats"""

    def test_pan(self):
        self.assertEqual(validate_pan('abcde1234f'), '')
        self.assertEqual(validate_pan('ABCD1234F'), PAN_ERROR)

    def test_aadhaar_ignores_spaces(self):
        self.assertEqual(validate_aadhaar('1234 5678 9012'), '')
        self.assertNotEqual(validate_aadhaar('12345678901'), '')

    def test_fssai(self):
        self.assertEqual(validate_fssai('12345678901234'), '')
        self.assertEqual(validate_fssai('1234'), FSSAI_ERROR)

    def test_gst_optional(self):
        self.assertEqual(validate_gst(''), '')
        self.assertEqual(validate_gst('27abcde1234f1z5'), '')
        self.assertEqual(validate_gst('27ABCDE1234F1X5'), GST_ERROR)

    def test_ifsc(self):
        self.assertEqual(validate_ifsc('sbin0001234'), '')
        self.assertNotEqual(validate_ifsc('SBIN1001234'), '')

    def test_account_number(self):
        self.assertEqual(validate_account_number('123456789'), '')
        self.assertNotEqual(validate_account_number('12345678'), '')
        self.assertNotEqual(validate_account_number('1234567890123456789'), '')

    def test_grouped_numbers_ignore_spaces(self):
        self.assertEqual(validate_pan('ABCDE 1234F'), '')
        self.assertEqual(validate_fssai('1234 5678 9012 34'), '')
        self.assertEqual(validate_ifsc('SBIN 0001234'), '')
        self.assertEqual(validate_account_number('1234 5678 9012'), '')

    def test_phone_accepts_country_code(self):
        self.assertEqual(validate_phone('+91 98765 43210'), '')
        self.assertEqual(validate_phone('919876543210'), '')
        self.assertNotEqual(validate_phone('5876543210'), '')

    def test_postal_code_email_upi(self):
        self.assertEqual(validate_postal_code('560001'), '')
        self.assertNotEqual(validate_postal_code('56001'), '')
        self.assertEqual(validate_email('a@b.in'), '')
        self.assertNotEqual(validate_email('a@b'), '')
        self.assertEqual(validate_upi('asha.rao@okhdfc'), '')
        self.assertNotEqual(validate_upi('asha'), '')

    def test_upload_file(self):
        self.assertEqual(validate_upload_file(_pdf()), '')
        self.assertEqual(validate_upload_file(_pdf(size=6 * 1024 * 1024)), UPLOAD_FILE_ERROR)
        text = SimpleUploadedFile('a.txt', b'hello', content_type='text/plain')
        self.assertEqual(validate_upload_file(text), UPLOAD_FILE_ERROR)
        self.assertEqual(validate_upload_file(None), 'File is required')


class DocumentSectionTests(TestCase):
    """Test KYC section completeness"""

    def setUp(self):
        self.documents = TestDataFactory.wizard_form_data()['step4']

    def test_complete_food_documents(self):
        self.assertEqual(validate_documents(self.documents, 'RESTAURANT'), {})

    def test_pan_section_incomplete(self):
        del self.documents['pan_image_url']
        errors = validate_document_section('pan', self.documents)
        self.assertEqual(errors['section'], SECTION_ERRORS['pan'])

    def test_pan_format_reported_with_field(self):
        self.documents['pan_number'] = 'BAD'
        errors = validate_documents(self.documents, 'RESTAURANT')
        self.assertEqual(errors['pan.pan_number'], PAN_ERROR)

    def test_food_business_needs_fssai(self):
        del self.documents['fssai_expiry_date']
        errors = validate_documents(self.documents, 'CAFE')
        self.assertEqual(errors['optional'], SECTION_ERRORS['food'])

    def test_grocery_does_not_need_fssai(self):
        for field in ('fssai_number', 'fssai_image_url', 'fssai_expiry_date'):
            del self.documents[field]
        self.assertEqual(validate_documents(self.documents, 'GROCERY'), {})

    def test_pharma_needs_licences(self):
        errors = validate_document_section('optional', self.documents, 'PHARMA')
        self.assertEqual(errors['section'], SECTION_ERRORS['pharma'])

    def test_upi_payout(self):
        self.documents['bank'] = {'payout_method': 'upi', 'upi_id': 'asha@okhdfc'}
        errors = validate_document_section('bank', self.documents)
        self.assertEqual(errors['section'], SECTION_ERRORS['bank'])
        self.documents['bank']['upi_qr_screenshot_url'] = 'https://cdn.example.com/qr.png'
        self.assertEqual(validate_document_section('bank', self.documents), {})

    def test_other_document_needs_number_or_file(self):
        self.documents['other_document_type'] = 'Trade licence'
        errors = validate_document_section('other', self.documents)
        self.assertEqual(errors['section'], SECTION_ERRORS['other'])
        self.documents['other_document_number'] = 'TL-42'
        self.assertEqual(validate_document_section('other', self.documents), {})

    def test_unknown_section(self):
        with self.assertRaises(ValueError):
            validate_document_section('passport', self.documents)


class StoreSetupValidatorTests(TestCase):
    """Test cuisines, features and hours rules"""

    def test_no_open_day(self):
        hours = {'monday': {'closed': True}, 'tuesday': {'closed': True}}
        self.assertEqual(validate_store_hours(hours), NO_OPEN_DAY_ERROR)

    def test_slot1_required(self):
        self.assertEqual(validate_store_hours({'monday': _open_day(slot1_close='')}),
                         'Monday: Slot 1 is required for open day')

    def test_slot1_order(self):
        self.assertEqual(validate_store_hours({'monday': _open_day(slot1_open='14:00')}),
                         'Monday: Slot 1 end time must be after start time')

    def test_slot2_needs_both_ends(self):
        self.assertEqual(validate_store_hours({'friday': _open_day(slot2_open='17:00')}),
                         'Friday: Fill both start and end for Slot 2')

    def test_slot2_after_slot1(self):
        self.assertEqual(validate_store_hours({'friday': _open_day(slot2_open='12:00', slot2_close='15:00')}),
                         'Friday: Slot 2 must start after Slot 1 ends')

    def test_two_valid_slots(self):
        self.assertEqual(validate_store_hours({'friday': _open_day(slot2_open='17:00', slot2_close='22:00')}), '')

    def test_cuisine_limits(self):
        hours = {'monday': _open_day()}
        errors = validate_store_setup({'cuisine_types': [], 'accepts_cash': True, 'store_hours': hours})
        self.assertEqual(errors, {'cuisine_types': NO_CUISINE_ERROR})
        errors = validate_store_setup({'cuisine_types': [f'C{i}' for i in range(11)], 'accepts_cash': True,
                                       'store_hours': hours})
        self.assertEqual(errors, {'cuisine_types': TOO_MANY_CUISINES_ERROR})

    def test_feature_required(self):
        errors = validate_store_setup({'cuisine_types': ['Thai'], 'store_hours': {'monday': _open_day()}})
        self.assertEqual(errors, {'features': NO_FEATURE_ERROR})


class StepGateTests(TestCase):
    """Test per-step validation"""

    def setUp(self):
        self.form_data = TestDataFactory.wizard_form_data()

    def test_every_step_passes_with_complete_data(self):
        for step in range(1, 10):
            self.assertEqual(validate_step(step, self.form_data), {}, f'step {step}')

    def test_step1_required_fields(self):
        errors = validate_step(1, {'step1': {'store_type': 'OTHERS'}})
        self.assertIn('store_name', errors)
        self.assertIn('custom_store_type', errors)

    def test_step1_phone_format(self):
        self.form_data['step1']['store_phones'] = ['9876543210', '12345']
        self.assertIn('store_phones.1', validate_step(1, self.form_data))

    def test_step2_needs_coordinates(self):
        del self.form_data['step2']['latitude']
        self.assertIn('location', validate_step(2, self.form_data))

    def test_step3_menu_modes(self):
        self.assertIn('menu', validate_step(3, {'step3': {'menuUploadMode': 'IMAGE', 'menuImageUrls': []}}))
        self.assertIn('menu', validate_step(3, {'step3': {'menuImageUrls': [f'u{i}' for i in range(6)]}}))
        self.assertEqual(validate_step(3, {'step3': {'menuUploadMode': 'PDF', 'menuPdfUrl': 'u'}}), {})
        self.assertIn('menu', validate_step(3, {'step3': {'menuUploadMode': 'CSV'}}))

    def test_review_step_prefixes_earlier_errors(self):
        self.form_data['step2']['city'] = ''
        self.assertIn('step2.city', validate_step(6, self.form_data))

    def test_plan_step(self):
        self.assertIn('plan', validate_step(7, {}))
        self.assertEqual(validate_step(7, {'planId': 'FREE'}), {})

    def test_signature_requires_image_data_url(self):
        errors = validate_signature({'terms_accepted': True, 'contract_read_confirmed': True},
                                    {'signer_name': 'Asha', 'signature_data_url': 'https://x/y.png'})
        self.assertEqual(list(errors), ['signature_data_url'])

    def test_agreement_confirmations(self):
        errors = validate_step(8, {'agreement': {'terms_accepted': True}})
        self.assertEqual(list(errors), ['contract_read_confirmed'])


class ProgressHelperTests(TestCase):
    """Test form data merging and flag reconciliation"""

    def test_clamp_step(self):
        self.assertEqual(clamp_step('4'), 4)
        self.assertEqual(clamp_step(0), 1)
        self.assertEqual(clamp_step(42), 9)
        self.assertEqual(clamp_step('x', default=3), 3)

    def test_deep_merge(self):
        target = {'step1': {'store_name': 'A', 'store_phones': ['1']}, 'step2': {'city': 'Pune'}}
        patch = {'step1': {'store_phones': ['2', '3']}, 'step2': None, 'plan': {'planId': 'FREE'}}
        merged = deep_merge_form_data(target, patch)
        self.assertEqual(merged['step1'], {'store_name': 'A', 'store_phones': ['2', '3']})
        self.assertIsNone(merged['step2'])
        self.assertEqual(merged['plan'], {'planId': 'FREE'})
        self.assertEqual(target['step1']['store_phones'], ['1'])

    def test_flags_never_cleared(self):
        flags = build_reconciled_flags({'step_7_completed': True}, 2, 1, {})
        self.assertTrue(flags['step_7_completed'])
        self.assertTrue(flags['step_1_completed'])
        self.assertFalse(flags['step_2_completed'])

    def test_flags_from_form_sections(self):
        flags = build_reconciled_flags({}, 1, 1, {'step3': {'menuImageUrls': ['u']}, 'final': {'ok': True}})
        self.assertTrue(flags['step_3_completed'])
        self.assertTrue(flags['step_6_completed'])
        self.assertFalse(flags['step_1_completed'])


class DraftPersistenceTests(TestCase):
    """Test store draft and step data persistence"""

    def setUp(self):
        self.parent = TestDataFactory.create_merchant_parent()
        self.form_data = TestDataFactory.wizard_form_data()

    def test_has_draft_inputs(self):
        self.assertTrue(has_draft_inputs(self.form_data))
        self.form_data['step2']['postal_code'] = ''
        self.assertFalse(has_draft_inputs(self.form_data))

    def test_parse_date(self):
        self.assertEqual(parse_date('2030-12-31T00:00:00Z').isoformat(), '2030-12-31')
        self.assertIsNone(parse_date('31/12/2030'))
        self.assertIsNone(parse_date(''))

    def test_upsert_creates_then_reuses_draft(self):
        store = upsert_store_draft(self.parent, self.form_data, 3)
        self.assertEqual(store.store_id, 'GMMC1001')
        self.assertEqual(store.approval_status, 'DRAFT')
        self.assertEqual(store.status, 'INACTIVE')
        self.assertEqual(store.operational_status, 'CLOSED')
        self.assertEqual(store.current_onboarding_step, 3)

        self.form_data['step1']['store_name'] = 'Renamed'
        again = upsert_store_draft(self.parent, self.form_data, 4)
        self.assertEqual(again.pk, store.pk)
        self.assertEqual(MerchantStore.objects.filter(parent=self.parent).count(), 1)
        self.assertEqual(again.store_name, 'Renamed')

    def test_upsert_prefers_step_store_reference(self):
        first = TestDataFactory.create_store(self.parent)
        TestDataFactory.create_store(self.parent)
        self.form_data['step_store'] = {'storeDbId': first.pk}
        self.assertEqual(upsert_store_draft(self.parent, self.form_data, 2).pk, first.pk)

    def test_menu_media_deduplicated(self):
        store = TestDataFactory.create_store(self.parent)
        step3 = {'menuImageUrls': ['https://cdn.example.com/a.jpg', 'https://cdn.example.com/a.jpg'],
                 'menuPdfUrl': '/api/v1/attachments/proxy/?key=docs/menu.pdf'}
        self.assertEqual(save_menu_media(store, step3), 2)
        self.assertEqual(save_menu_media(store, step3), 0)
        pdf = StoreMediaFile.objects.get(store=store, source_entity='ONBOARDING_MENU_PDF')
        self.assertEqual(pdf.r2_key, 'docs/menu.pdf')
        self.assertEqual(pdf.mime_type, 'application/pdf')

    def test_bank_account_replaced(self):
        store = TestDataFactory.create_store(self.parent)
        save_bank_account(store, self.form_data['step4']['bank'])
        account = save_bank_account(store, {'payout_method': 'upi', 'upi_id': 'asha@okhdfc',
                                            'upi_qr_screenshot_url': 'https://cdn.example.com/qr.png'})
        self.assertEqual(StoreBankAccount.objects.filter(store=store).count(), 1)
        self.assertEqual(account.account_number, 'UPI')
        self.assertTrue(account.is_primary)

    def test_incomplete_bank_keeps_existing(self):
        store = TestDataFactory.create_store(self.parent)
        save_bank_account(store, self.form_data['step4']['bank'])
        self.assertIsNone(save_bank_account(store, {'payout_method': 'bank', 'account_number': '123'}))
        self.assertEqual(StoreBankAccount.objects.filter(store=store).count(), 1)

    def test_persist_step_data(self):
        store = TestDataFactory.create_store(self.parent)
        persist_step_data(store, self.form_data)
        store.refresh_from_db()
        documents = StoreDocuments.objects.get(store=store)
        self.assertEqual(documents.pan_document_number, 'ABCDE1234F')
        self.assertEqual(documents.fssai_expiry_date.isoformat(), '2030-12-31')
        self.assertEqual(store.cuisine_types, ['North Indian'])
        self.assertEqual(store.avg_preparation_time_minutes, 25)
        self.assertTrue(store.operating_hours.same_for_all_days)
        self.assertEqual(store.bank_accounts.get().ifsc_code, 'HDFC0001234')

    def test_spaced_numbers_stored_compact(self):
        store = TestDataFactory.create_store(self.parent)
        self.form_data['step4'].update({
            'pan_number': 'abcde 1234f', 'fssai_number': '1234 5678 9012 34',
        })
        self.form_data['step4']['bank'].update({'account_number': '1234 5678 9012', 'ifsc_code': 'hdfc 0001234'})
        persist_step_data(store, self.form_data)
        documents = StoreDocuments.objects.get(store=store)
        self.assertEqual(documents.pan_document_number, 'ABCDE1234F')
        self.assertEqual(documents.fssai_document_number, '12345678901234')
        account = store.bank_accounts.get()
        self.assertEqual(account.account_number, '123456789012')
        self.assertEqual(account.ifsc_code, 'HDFC0001234')


class ProgressAPITests(TestCase):
    """Test saving and loading wizard progress"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.parent = TestDataFactory.create_merchant_parent()
        self.client.authenticate_user(self.parent.user)
        self.form_data = TestDataFactory.wizard_form_data()
        self.url = '/api/v1/onboarding/progress/'

    def test_get_without_progress(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['progress'])

    def test_step1_save_does_not_create_store(self):
        response = self.client.put(self.url, {
            'currentStep': 1, 'nextStep': 2, 'formDataPatch': {'step1': self.form_data['step1']},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['progress']['store_id'])
        self.assertTrue(response.data['progress']['step_1_completed'])
        self.assertFalse(MerchantStore.objects.exists())

    def test_step2_save_creates_draft_store(self):
        self.client.put(self.url, {'currentStep': 1, 'formDataPatch': {'step1': self.form_data['step1']}}, format='json')
        response = self.client.put(self.url, {
            'currentStep': 2, 'nextStep': 3, 'formDataPatch': {'step2': self.form_data['step2']},
        }, format='json')
        progress = response.data['progress']
        store = MerchantStore.objects.get(parent=self.parent)
        self.assertEqual(progress['form_data']['step_store'], {'storeDbId': store.id, 'storePublicId': store.store_id})
        self.assertEqual(progress['completed_steps'], 2)
        self.assertEqual(RegistrationProgress.objects.count(), 1)
        self.assertTrue(AuditLog.objects.filter(action='progress_save').exists())

    def test_get_reconciles_flags(self):
        TestDataFactory.create_progress(self.parent, current_step=4, form_data={'step1': {'store_name': 'A'}})
        response = self.client.get(self.url)
        progress = response.data['progress']
        self.assertTrue(progress['step_3_completed'])
        self.assertFalse(progress['step_4_completed'])
        self.assertEqual(progress['completed_steps'], 3)

    def test_mark_step_complete(self):
        response = self.client.put(self.url, {'currentStep': 7, 'markStepComplete': True, 'formDataPatch': {}},
                                   format='json')
        self.assertTrue(response.data['progress']['step_7_completed'])

    def test_validate_step_endpoint(self):
        response = self.client.post('/api/v1/onboarding/validate-step/', {'step': 5, 'formData': {}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['valid'])
        self.assertIn('cuisine_types', response.data['errors'])

    def test_validate_step_bad_number(self):
        response = self.client.post('/api/v1/onboarding/validate-step/', {'step': 12}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_validate_step_rejects_non_object_payloads(self):
        response = self.client.post('/api/v1/onboarding/validate-step/', {'step': 1, 'formData': ['step1']},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/onboarding/validate-step/', [1, 2], format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class MenuUploadAPITests(TestCase):
    """Test menu file uploads against mocked storage"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.parent = TestDataFactory.create_merchant_parent()
        self.client.authenticate_user(self.parent.user)
        self.store = TestDataFactory.create_store(self.parent)
        self.url = '/api/v1/onboarding/menu-uploads/'
        patcher = mock.patch('backend.storage.client.upload_file', side_effect=lambda key, body, content_type=None: key)
        self.mock_upload = patcher.start()
        self.addCleanup(patcher.stop)
        delete_patcher = mock.patch('backend.storage.client.delete_quietly', return_value=True)
        self.mock_delete = delete_patcher.start()
        self.addCleanup(delete_patcher.stop)

    def _post(self, kind, files):
        return self.client.post(self.url, {'store_id': self.store.store_id, 'attachment_type': kind, 'files': files},
                                format='multipart')

    def test_upload_images(self):
        response = self._post('images', [_jpg('a.jpg'), _jpg('b.jpg')])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['files']), 2)
        key = self.mock_upload.call_args_list[0][0][0]
        self.assertIn(f'/stores/{self.store.store_id}/onboarding/menu/images/', key)

    def test_image_limit(self):
        self._post('images', [_jpg(f'{i}.jpg') for i in range(4)])
        response = self._post('images', [_jpg('5.jpg'), _jpg('6.jpg')])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_pdf_replaces_images(self):
        self._post('images', [_jpg()])
        response = self._post('pdf', [_pdf('menu.pdf')])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['attachment_type'], 'pdf')
        self.assertEqual(StoreMediaFile.objects.filter(store=self.store).count(), 1)
        key = self.mock_upload.call_args_list[-1][0][0]
        self.assertIn('/onboarding/menu/csv/', key)

    def test_wrong_file_type(self):
        response = self._post('pdf', [_jpg()])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_single_file_for_csv(self):
        csv_a = SimpleUploadedFile('a.csv', b'item,price', content_type='text/csv')
        csv_b = SimpleUploadedFile('b.csv', b'item,price', content_type='text/csv')
        response = self._post('csv', [csv_a, csv_b])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_switch_type_clears_files(self):
        self._post('images', [_jpg()])
        response = self.client.post(self.url, {'store_id': self.store.store_id, 'action': 'switch_type',
                                               'new_attachment_type': 'pdf'}, format='json')
        self.assertEqual(response.data['removed'], 1)
        self.assertFalse(StoreMediaFile.objects.filter(store=self.store).exists())

    def test_list_and_delete(self):
        self._post('images', [_jpg()])
        response = self.client.get(self.url, {'store_id': self.store.store_id})
        self.assertEqual(response.data['attachment_type'], 'images')
        media_id = response.data['files'][0]['id']
        response = self.client.delete(f'{self.url}{media_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(StoreMediaFile.objects.filter(pk=media_id).exists())

    def test_storage_not_configured(self):
        self.mock_upload.side_effect = r2.StorageNotConfigured('missing')
        response = self._post('images', [_jpg()])
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)

    def test_foreign_store(self):
        foreign = TestDataFactory.create_store(TestDataFactory.create_merchant_parent())
        response = self.client.get(self.url, {'store_id': foreign.store_id})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class DocumentUploadAPITests(TestCase):
    """Test KYC uploads and payout proof limits"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.parent = TestDataFactory.create_merchant_parent()
        self.client.authenticate_user(self.parent.user)
        self.store = TestDataFactory.create_store(self.parent)
        self.url = '/api/v1/onboarding/documents/upload/'
        patcher = mock.patch('backend.storage.client.upload_file', side_effect=lambda key, body, content_type=None: key)
        self.mock_upload = patcher.start()
        self.addCleanup(patcher.stop)

    def test_upload_pan(self):
        response = self.client.post(self.url, {'file': _pdf('pan.pdf'), 'document_type': 'pan',
                                               'store_id': self.store.store_id}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('/onboarding/documents/', response.data['key'])
        self.assertTrue(response.data['key'].endswith('_pan_pan.pdf'))
        self.assertTrue(AuditLog.objects.filter(action='document_upload', object_id='pan').exists())

    def test_draft_upload_without_store(self):
        response = self.client.post(self.url, {'file': _pdf(), 'document_type': 'aadhar_front'}, format='multipart')
        self.assertIn('/draft/onboarding/documents/', response.data['key'])

    def test_document_type_required(self):
        response = self.client.post(self.url, {'file': _pdf()}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_oversized_file(self):
        response = self.client.post(self.url, {'file': _pdf(size=6 * 1024 * 1024), 'document_type': 'pan'},
                                    format='multipart')
        self.assertEqual(response.data['error'], UPLOAD_FILE_ERROR)

    def test_bank_proof_cooldown(self):
        data = {'document_type': 'bank_proof', 'store_id': self.store.store_id}
        first = self.client.post(self.url, dict(data, file=_pdf()), format='multipart')
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertIn('/onboarding/bank/', first.data['key'])
        second = self.client.post(self.url, dict(data, file=_pdf()), format='multipart')
        self.assertEqual(second.status_code, status.HTTP_429_TOO_MANY_REQUESTS)

    def test_bank_proof_daily_limit(self):
        data = {'document_type': 'bank_proof', 'store_id': self.store.store_id}
        for _ in range(3):
            self.client.post(self.url, dict(data, file=_pdf()), format='multipart')
            cache.delete(f'payout_cooldown:{self.store.store_id}:bank')
        response = self.client.post(self.url, dict(data, file=_pdf()), format='multipart')
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertIn('Daily limit', response.data['error'])

    def test_failed_bank_proof_upload_not_counted(self):
        data = {'document_type': 'bank_proof', 'store_id': self.store.store_id}
        self.mock_upload.side_effect = r2.StorageError('bucket unavailable')
        response = self.client.post(self.url, dict(data, file=_pdf()), format='multipart')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertIsNone(cache.get(f'payout_attempts:{self.store.store_id}:bank:{date.today().isoformat()}'))

        self.mock_upload.side_effect = lambda key, body, content_type=None: key
        response = self.client.post(self.url, dict(data, file=_pdf()), format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(cache.get(f'payout_attempts:{self.store.store_id}:bank:{date.today().isoformat()}'), 1)
        self.assertEqual(cache.get(f'payout_total:{self.store.store_id}:bank'), 1)


@override_settings(MAPBOX_ACCESS_TOKEN='test-token')
class GeocodingTests(TestCase):
    """Test Mapbox and Nominatim lookups with mocked HTTP"""

    def setUp(self):
        cache.clear()

    def _response(self, payload):
        response = mock.Mock()
        response.json.return_value = payload
        response.raise_for_status.return_value = None
        return response

    def test_short_query_returns_nothing(self):
        with mock.patch('backend.onboarding.geocoding.requests.get') as mock_get:
            self.assertEqual(geocoding.search_places('ab'), [])
            mock_get.assert_not_called()

    @override_settings(MAPBOX_ACCESS_TOKEN='')
    def test_search_requires_token(self):
        with self.assertRaises(geocoding.GeocodingNotConfigured):
            geocoding.search_places('Koramangala')

    def test_search_deduplicates(self):
        feature = {'place_name': 'Koramangala, Bengaluru', 'center': [77.62, 12.93], 'text': 'Koramangala'}
        with mock.patch('backend.onboarding.geocoding.requests.get',
                        return_value=self._response({'features': [feature, dict(feature)]})) as mock_get:
            results = geocoding.search_places('Koramangala')
            geocoding.search_places('Koramangala')
        self.assertEqual(len(results), 1)
        self.assertEqual(mock_get.call_count, 1)
        self.assertEqual(mock_get.call_args[1]['params']['country'], 'IN')

    def test_search_failure(self):
        with mock.patch('backend.onboarding.geocoding.requests.get',
                        side_effect=requests.exceptions.ConnectionError('down')):
            with self.assertRaises(geocoding.GeocodingError):
                geocoding.search_places('Indiranagar')

    def test_parse_mapbox_feature(self):
        parsed = geocoding.parse_mapbox_feature({
            'place_name': '12 MG Road, Bengaluru, Karnataka 560001, India',
            'text': 'MG Road',
            'context': [{'id': 'locality.1', 'text': 'Ashok Nagar'}, {'id': 'place.2', 'text': 'Bengaluru'},
                        {'id': 'region.3', 'text': 'Karnataka'}],
        })
        self.assertEqual(parsed['city'], 'Ashok Nagar')
        self.assertEqual(parsed['state'], 'Karnataka')
        self.assertEqual(parsed['postal_code'], '560001')

    def test_reverse_falls_back_to_nominatim(self):
        nominatim = {'display_name': 'MG Road, Bengaluru', 'address': {'town': 'Bengaluru', 'state': 'Karnataka',
                                                                        'postcode': '560001'}}
        responses = [self._response({'features': []}), self._response(nominatim)]
        with mock.patch('backend.onboarding.geocoding.requests.get', side_effect=responses):
            result = geocoding.reverse_geocode(12.97, 77.59)
        self.assertEqual(result['source'], 'nominatim')
        self.assertEqual(result['city'], 'Bengaluru')
        self.assertEqual(result['latitude'], 12.97)

    def test_reverse_both_fail(self):
        with mock.patch('backend.onboarding.geocoding.requests.get',
                        side_effect=requests.exceptions.Timeout('slow')):
            with self.assertRaises(geocoding.GeocodingError):
                geocoding.reverse_geocode(1.0, 2.0)

    def test_reverse_endpoint_validates_coordinates(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user())
        response = client.get('/api/v1/onboarding/geocode/reverse/', {'lat': 95, 'lng': 10})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = client.get('/api/v1/onboarding/geocode/reverse/', {'lat': 'x'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class SubmitRegistrationAPITests(TestCase):
    """Test the final wizard submission"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.parent = TestDataFactory.create_merchant_parent()
        self.client.authenticate_user(self.parent.user)
        form_data = TestDataFactory.wizard_form_data()
        self.payload = {key: form_data[key] for key in ('step1', 'step2', 'step3', 'step4', 'step5', 'agreement',
                                                        'signature')}
        self.payload['planId'] = 'FREE'
        self.url = '/api/v1/onboarding/submit/'

    def test_submit_creates_submitted_store(self):
        response = self.client.post(self.url, self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        store = MerchantStore.objects.get(store_id=response.data['storeId'])
        self.assertEqual(store.approval_status, 'SUBMITTED')
        self.assertTrue(store.onboarding_completed)
        self.assertEqual(store.current_onboarding_step, 9)
        self.assertTrue(StoreDocuments.objects.filter(store=store).exists())

        acceptance = AgreementAcceptance.objects.get(store=store)
        self.assertEqual(acceptance.signer_name, 'Asha Rao')
        self.assertEqual(len(acceptance.signature_hash), 64)
        self.assertTrue(acceptance.terms_accepted)

        progress = RegistrationProgress.objects.get(parent=self.parent)
        self.assertEqual(progress.registration_status, 'COMPLETED')
        self.assertEqual(progress.completed_steps, 9)
        self.assertEqual(progress.form_data['plan'], {'planId': 'FREE'})

    def test_submit_without_plan_keeps_saved_plan(self):
        TestDataFactory.create_progress(self.parent, current_step=9, form_data={'plan': {'planId': 'PREMIUM'}})
        del self.payload['planId']
        response = self.client.post(self.url, self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        progress = RegistrationProgress.objects.get(parent=self.parent)
        self.assertEqual(progress.form_data['plan'], {'planId': 'PREMIUM'})
        self.assertEqual(progress.registration_status, 'COMPLETED')

    def test_submit_rejects_string_signature(self):
        self.payload['signature'] = 'signed'
        response = self.client.post(self.url, self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(MerchantStore.objects.exists())

    def test_submit_uses_existing_draft(self):
        self.client.put('/api/v1/onboarding/progress/', {
            'currentStep': 2, 'formDataPatch': {'step1': self.payload['step1'], 'step2': self.payload['step2']},
        }, format='json')
        draft = MerchantStore.objects.get(parent=self.parent)
        self.payload['storePublicId'] = draft.store_id
        response = self.client.post(self.url, self.payload, format='json')
        self.assertEqual(response.data['storeDbId'], draft.id)
        self.assertEqual(MerchantStore.objects.filter(parent=self.parent).count(), 1)

    def test_resubmit_conflicts(self):
        response = self.client.post(self.url, self.payload, format='json')
        self.payload['storePublicId'] = response.data['storeId']
        response = self.client.post(self.url, self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_missing_signature(self):
        self.payload['signature'] = {'signer_name': 'Asha Rao'}
        response = self.client.post(self.url, self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('signature_data_url', response.data['errors'])
        self.assertFalse(MerchantStore.objects.exists())

    def test_invalid_step_reported(self):
        self.payload['step4']['pan_number'] = 'BAD'
        response = self.client.post(self.url, self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['step'], 4)
        self.assertEqual(response.data['error'], PAN_ERROR)
