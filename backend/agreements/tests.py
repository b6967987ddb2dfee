"""
Tests for the enrolment form builder, PDF rendering and agreement endpoints
"""
import hashlib
import re
from datetime import timedelta
from io import BytesIO, StringIO
from unittest import mock
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient, SIGNATURE_DATA_URL
from backend.storage import client as r2
from backend.agreements.contract import (
    ANNEXURE_B_EMPTY, MISSING, BankDetails, ContractData, build_annexure_b, build_contract_text,
    build_structured_contract, contract_filename,
)
from backend.agreements.models import AgreementAcceptance, AgreementTemplate
from backend.agreements.pdf import (
    MARGIN, MAX_TERMS_LINES, ContractPdfWriter, PdfRenderError, SignatureBlock, decode_data_url_image,
    layout_terms_lines, render_contract_pdf, sanitize_pdf_text,
)
from backend.agreements.utils import DEFAULT_TEMPLATE_KEY, select_template, signature_hash


def _contract(**overrides):
    data = {
        'storeName': 'Spice Route',
        'parentName': 'Spice Foods',
        'ownerName': 'Asha Rao',
        'email': 'asha@example.com',
        'phone': '9876543210',
        'address': '12 MG Road, Bengaluru',
        'effectiveDate': '01 Jan 2026',
        'bank': {
            'account_holder_name': 'Asha Rao',
            'bank_name': 'HDFC Bank',
            'account_number': '123456789012',
            'ifsc_code': 'HDFC0001234',
            'account_type': 'savings',
            'payout_method': 'bank',
        },
    }
    data.update(overrides)
    return data


def _clauses(count):
    return '\n'.join(f'Clause {number}: the merchant keeps prices in line with the menu.' for number in range(1, count + 1))


def _page_count(body):
    return len(re.findall(rb'/Type\s*/Page\b', body))


class AnnexureBTests(TestCase):
    """Test payout table selection"""

    def test_no_bank(self):
        annexure = build_annexure_b(None)
        self.assertEqual(annexure['rows'], [])
        self.assertFalse(annexure['isUPI'])

    def test_bank_row(self):
        annexure = build_annexure_b(BankDetails.from_dict(_contract()['bank']))
        self.assertFalse(annexure['isUPI'])
        self.assertEqual(annexure['rows'][0], ['Asha Rao', 'HDFC Bank', '123456789012', 'HDFC0001234', 'SAVINGS'])

    def test_upi_preferred_when_filled(self):
        bank = BankDetails(account_holder_name='Asha Rao', bank_name='HDFC Bank', account_number='1234',
                           payout_method='upi', upi_id='asha@okhdfc')
        annexure = build_annexure_b(bank)
        self.assertTrue(annexure['isUPI'])
        self.assertEqual(annexure['rows'], [['Asha Rao', 'asha@okhdfc', 'UPI']])

    def test_upi_preference_without_upi_id_uses_bank(self):
        bank = BankDetails(bank_name='HDFC Bank', account_number='1234', payout_method='upi')
        annexure = build_annexure_b(bank)
        self.assertFalse(annexure['isUPI'])
        self.assertEqual(annexure['rows'][0][0], MISSING)

    def test_incomplete_bank_has_no_rows(self):
        self.assertEqual(build_annexure_b(BankDetails(bank_name='HDFC Bank'))['rows'], [])


class ContractBuilderTests(TestCase):
    """Test structured and plain-text contract output"""

    def test_intro_placeholders(self):
        contract = build_structured_contract(ContractData.from_dict({'ownerName': 'Asha Rao'}))
        self.assertEqual(contract.intro['storeName'], MISSING)
        self.assertEqual(contract.intro['contactPerson'], 'Asha Rao')

    def test_text_includes_intro_and_bank(self):
        text = build_contract_text(ContractData.from_dict(_contract()), 'Custom terms body')
        self.assertIn('Restaurant Name: Spice Route', text)
        self.assertIn('Annexure B - Bank Details', text)
        self.assertIn('HDFC0001234', text)
        self.assertTrue(text.endswith('Custom terms body'))
        self.assertNotIn(ANNEXURE_B_EMPTY, text)

    def test_text_without_bank(self):
        text = build_contract_text(ContractData.from_dict(_contract(bank=None)))
        self.assertIn(ANNEXURE_B_EMPTY, text)

    def test_filename_is_sanitized(self):
        self.assertEqual(contract_filename('Spice Route & Co.', 1700000000000),
                         'contract-approval-Spice_Route___Co_-1700000000000.pdf')
        self.assertEqual(contract_filename(None, 1), 'contract-approval-store-1.pdf')


class ContractPdfTests(TestCase):
    """Test PDF rendering"""

    def test_render_unsigned(self):
        body = render_contract_pdf(ContractData.from_dict(_contract()))
        self.assertTrue(body.startswith(b'%PDF'))

    def test_render_signed(self):
        signature = SignatureBlock(signer_name='Asha Rao', signature_data_url=SIGNATURE_DATA_URL)
        body = render_contract_pdf(ContractData.from_dict(_contract()), signature=signature)
        self.assertTrue(body.startswith(b'%PDF'))

    def test_decode_signature(self):
        image = decode_data_url_image(SIGNATURE_DATA_URL)
        self.assertEqual(image.size, (1, 1))

    def test_invalid_signature(self):
        with self.assertRaises(PdfRenderError):
            decode_data_url_image('not-a-data-url')
        with self.assertRaises(PdfRenderError):
            decode_data_url_image('data:image/png;base64,bm90IGFuIGltYWdl')
        with self.assertRaises(PdfRenderError):
            render_contract_pdf(ContractData.from_dict(_contract()),
                                signature=SignatureBlock(signer_name='Asha', signature_data_url='nope'))

    def test_new_page_when_line_does_not_fit(self):
        writer = ContractPdfWriter(BytesIO())
        writer.y = writer.page_h - MARGIN - 2
        writer.check_new_page(5)
        self.assertEqual(writer.y, MARGIN)
        self.assertEqual(writer.canvas.getPageNumber(), 2)

        writer.check_new_page(5)
        self.assertEqual(writer.canvas.getPageNumber(), 2)

    def test_long_terms_add_pages(self):
        data = ContractData.from_dict(_contract())
        short = render_contract_pdf(data, terms_body='Short terms.')
        long = render_contract_pdf(data, terms_body=_clauses(60))
        self.assertGreater(_page_count(long), _page_count(short))

    def test_terms_truncated_after_line_cap(self):
        writer = ContractPdfWriter(BytesIO())
        lines = layout_terms_lines(writer, _clauses(200))
        self.assertEqual(len(lines), MAX_TERMS_LINES)
        self.assertTrue(lines[-1].startswith(f'Clause {MAX_TERMS_LINES}:'))

        data = ContractData.from_dict(_contract())
        capped = render_contract_pdf(data, terms_body=_clauses(MAX_TERMS_LINES))
        overflowing = render_contract_pdf(data, terms_body=_clauses(200))
        self.assertEqual(_page_count(overflowing), _page_count(capped))

    def test_sanitize_text_for_standard_fonts(self):
        self.assertEqual(sanitize_pdf_text('Fee ₹499'), 'Fee Rs.499')
        self.assertEqual(sanitize_pdf_text('Café Noël'), 'Café Noël')
        self.assertEqual(sanitize_pdf_text('Ōsaka'), 'Osaka')
        self.assertEqual(sanitize_pdf_text('Sharma शर्मा 🍕').strip(), 'Sharma')
        self.assertEqual(sanitize_pdf_text('शर्मा स्टोर 🍕'), '?')
        self.assertEqual(sanitize_pdf_text(''), '')

    def test_render_non_latin_store_name(self):
        data = ContractData.from_dict(_contract(storeName='शर्मा स्टोर 🍕', ownerName='Ōsaka Rao'))
        with mock.patch('reportlab.pdfgen.canvas.Canvas.drawString', autospec=True) as mock_draw:
            body = render_contract_pdf(data, terms_body='Commission of ₹25 per order.\n• Weekly payouts')
        self.assertTrue(body.startswith(b'%PDF'))
        drawn = [call[0][3] for call in mock_draw.call_args_list]
        for value in drawn:
            value.encode('cp1252')
        self.assertIn('Commission of Rs.25 per order.', drawn)
        self.assertIn('Rao', ' '.join(drawn))


class TemplateSelectionTests(TestCase):
    """Test active template matching"""

    def test_fallback_without_templates(self):
        template = select_template('RESTAURANT', 'Bengaluru')
        self.assertIsNone(template['id'])
        self.assertEqual(template['template_key'], DEFAULT_TEMPLATE_KEY)

    def test_matching_template_preferred(self):
        general = AgreementTemplate.objects.create(template_key='GENERAL', title='General', version='v2')
        cafe = AgreementTemplate.objects.create(
            template_key='CAFE_BLR', title='Cafe Bengaluru', version='v1',
            applies_to={'store_types': ['cafe'], 'cities': ['Bengaluru']},
        )
        AgreementTemplate.objects.filter(pk=general.pk).update(updated_at=timezone.now() - timedelta(days=1))
        self.assertEqual(select_template('CAFE', 'bengaluru')['id'], cafe.id)
        self.assertEqual(select_template('RESTAURANT', 'Bengaluru')['id'], general.id)

    def test_newest_active_when_nothing_matches(self):
        old = AgreementTemplate.objects.create(template_key='OLD', title='Old', applies_to={'cities': ['Pune']})
        AgreementTemplate.objects.filter(pk=old.pk).update(updated_at=timezone.now() - timedelta(days=1))
        newest = AgreementTemplate.objects.create(template_key='NEW', title='New', applies_to={'cities': ['Delhi']})
        AgreementTemplate.objects.create(template_key='OFF', title='Off', is_active=False)
        template = select_template('RESTAURANT', 'Mumbai')
        self.assertEqual(template['id'], newest.id)

    def test_signature_hash(self):
        self.assertEqual(signature_hash('abc'), hashlib.sha256(b'abc').hexdigest())
        self.assertEqual(len(signature_hash(None)), 64)


class AgreementAPITests(TestCase):
    """Test template, contract and acceptance endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.parent = TestDataFactory.create_merchant_parent()
        self.client.authenticate_user(self.parent.user)
        self.store = TestDataFactory.create_store(self.parent)

    def test_template_endpoint(self):
        response = self.client.get('/api/v1/agreements/template/', {'storeType': 'RESTAURANT', 'city': 'Bengaluru'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['template']['template_key'], DEFAULT_TEMPLATE_KEY)

    def test_contract_text(self):
        response = self.client.post('/api/v1/agreements/contract-text/', {'contract': _contract()}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('Restaurant Name: Spice Route', response.data['text'])

    def test_contract_pdf_download(self):
        response = self.client.post('/api/v1/agreements/contract-pdf/', {
            'contract': _contract(),
            'signature': {'signer_name': 'Asha Rao', 'signature_data_url': SIGNATURE_DATA_URL},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertIn('contract-approval-Spice_Route-', response['Content-Disposition'])
        self.assertTrue(response.content.startswith(b'%PDF'))

    def test_contract_pdf_falls_back_to_text(self):
        response = self.client.post('/api/v1/agreements/contract-pdf/', {
            'contract': _contract(),
            'signature': {'signer_name': 'Asha Rao', 'signature_data_url': 'data:image/png;base64,bm90IGFuIGltYWdl'},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response['Content-Type'].startswith('text/plain'))
        self.assertIn(b'Restaurant Name: Spice Route', response.content)

    def test_contract_endpoints_reject_non_object_payloads(self):
        response = self.client.post('/api/v1/agreements/contract-pdf/', {
            'contract': _contract(), 'signature': 'Asha Rao',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/agreements/contract-text/', {'contract': ['Spice Route']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/agreements/contract-pdf/upload/', ['Spice Route'], format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/agreements/contract-text/', {
            'contract': _contract(bank='HDFC Bank'),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    @mock.patch('backend.storage.client.upload_file', side_effect=lambda key, body, content_type=None: key)
    def test_contract_upload(self, mock_upload):
        response = self.client.post('/api/v1/agreements/contract-pdf/upload/', {
            'storeId': self.store.store_id, 'contract': _contract(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn(f'/stores/{self.store.store_id}/onboarding/agreements/', response.data['key'])
        key, body, content_type = mock_upload.call_args[0]
        self.assertTrue(body.startswith(b'%PDF'))
        self.assertEqual(content_type, 'application/pdf')

    @mock.patch('backend.storage.client.upload_file', side_effect=r2.StorageNotConfigured('missing'))
    def test_contract_upload_without_storage(self, mock_upload):
        response = self.client.post('/api/v1/agreements/contract-pdf/upload/', {'contract': _contract()}, format='json')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)

    @mock.patch('backend.storage.client.upload_file', side_effect=r2.StorageError('boom'))
    def test_contract_upload_storage_error(self, mock_upload):
        response = self.client.post('/api/v1/agreements/contract-pdf/upload/', {'contract': _contract()}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)

    def test_contract_upload_foreign_store(self):
        foreign = TestDataFactory.create_store(TestDataFactory.create_merchant_parent())
        response = self.client.post('/api/v1/agreements/contract-pdf/upload/', {
            'storeId': foreign.store_id, 'contract': _contract(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_detail_without_acceptance(self):
        response = self.client.get(f'/api/v1/agreements/{self.store.store_id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    @mock.patch('backend.storage.client.generate_signed_url', return_value='https://signed.example.com/a.pdf')
    @mock.patch('backend.storage.client.is_configured', return_value=True)
    def test_detail_with_signed_link(self, mock_configured, mock_sign):
        key = f'docs/merchants/{self.parent.parent_merchant_id}/stores/{self.store.store_id}/onboarding/agreements/a.pdf'
        AgreementAcceptance.objects.create(
            parent=self.parent, store=self.store, template_key=DEFAULT_TEMPLATE_KEY, template_version='v1',
            signer_name='Asha Rao', signature_data_url=SIGNATURE_DATA_URL,
            signature_hash=signature_hash(SIGNATURE_DATA_URL), contract_pdf_url=key,
        )
        response = self.client.get(f'/api/v1/agreements/{self.store.store_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['agreement']['signer_name'], 'Asha Rao')
        self.assertEqual(response.data['agreement']['signed_pdf_url'], 'https://signed.example.com/a.pdf')
        mock_sign.assert_called_once_with(key)


class SeedTemplateCommandTests(TestCase):
    """Test the seed_agreement_templates command"""

    def test_seed_is_idempotent(self):
        call_command('seed_agreement_templates', stdout=StringIO())
        call_command('seed_agreement_templates', stdout=StringIO())
        template = AgreementTemplate.objects.get(template_key=DEFAULT_TEMPLATE_KEY)
        self.assertEqual(template.version, 'v1')
        self.assertEqual(select_template('RESTAURANT', 'Pune')['id'], template.id)

    def test_new_version_deactivates_others(self):
        call_command('seed_agreement_templates', stdout=StringIO())
        call_command('seed_agreement_templates', '--template-version', 'v2', '--deactivate-others', stdout=StringIO())
        active = AgreementTemplate.objects.filter(template_key=DEFAULT_TEMPLATE_KEY, is_active=True)
        self.assertEqual([t.version for t in active], ['v2'])
