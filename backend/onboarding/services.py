"""
Persistence of wizard form data into store, media, document and bank rows.
"""
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from backend.storage.paths import extract_key_from_url
from backend.stores.models import MerchantStore
from backend.stores.utils import generate_store_public_id, normalize_store_type, save_operating_hours
from .models import StoreBankAccount, StoreDocuments, StoreMediaFile
from .validators import compact

logger = logging.getLogger(__name__)

STEP1_FIELDS = ['store_name', 'store_display_name', 'store_description', 'store_email', 'custom_store_type']
STEP2_FIELDS = ['full_address', 'landmark', 'city', 'state', 'postal_code']


def _text(value) -> str:
    return str(value or '').strip()


def _decimal(value, default=None):
    if value in (None, ''):
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def parse_date(value):
    """ISO date or None; accepts dates, datetimes and 'YYYY-MM-DD...' strings"""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def has_draft_inputs(form_data) -> bool:
    """Enough of steps 1 and 2 to create the draft store"""
    step1 = (form_data or {}).get('step1') or {}
    step2 = (form_data or {}).get('step2') or {}
    return bool(_text(step1.get('store_name')) and all(
        _text(step2.get(field)) for field in ('full_address', 'city', 'state', 'postal_code')
    ))


def upsert_store_draft(parent, form_data, next_step, store=None) -> MerchantStore:
    """
    Create or update the parent's draft store from steps 1 and 2.

    Reuses `store`, then form_data.step_store.storeDbId, then the parent's
    latest DRAFT store; otherwise a new public id is generated.
    """
    form_data = form_data or {}
    step1 = form_data.get('step1') or {}
    step2 = form_data.get('step2') or {}

    if store is None:
        store_db_id = (form_data.get('step_store') or {}).get('storeDbId')
        if store_db_id:
            store = MerchantStore.objects.filter(parent=parent, pk=store_db_id).first()
    if store is None:
        store = MerchantStore.objects.filter(parent=parent, approval_status='DRAFT').order_by('-updated_at').first()
    if store is None:
        store = MerchantStore(parent=parent, store_id=generate_store_public_id())
        logger.info(f"Creating draft store {store.store_id} for {parent.parent_merchant_id}")

    for field in STEP1_FIELDS:
        setattr(store, field, _text(step1.get(field)))
    for field in STEP2_FIELDS:
        setattr(store, field, _text(step2.get(field)))
    store.store_phones = [p for p in (step1.get('store_phones') or []) if _text(p)]
    store.store_type = normalize_store_type(step1.get('store_type'))
    store.country = _text(step2.get('country')) or 'IN'
    store.latitude = _decimal(step2.get('latitude'))
    store.longitude = _decimal(step2.get('longitude'))

    store.current_onboarding_step = next_step
    store.onboarding_completed = False
    store.approval_status = 'DRAFT'
    store.status = 'INACTIVE'
    store.operational_status = 'CLOSED'
    store.save()
    return store


def save_menu_media(store, step3) -> int:
    """Record menu URLs from step 3 as media rows; existing URLs are skipped"""
    step3 = step3 or {}
    wanted = [(url, 'ONBOARDING_MENU_IMAGE', 'image/*') for url in (step3.get('menuImageUrls') or []) if url]
    if step3.get('menuPdfUrl'):
        wanted.append((step3['menuPdfUrl'], 'ONBOARDING_MENU_PDF', 'application/pdf'))
    if step3.get('menuSpreadsheetUrl'):
        wanted.append((step3['menuSpreadsheetUrl'], 'ONBOARDING_MENU_SHEET', 'application/octet-stream'))

    existing = set(
        StoreMediaFile.objects.filter(store=store, media_scope='MENU_REFERENCE', is_active=True)
        .values_list('public_url', flat=True)
    )
    created = 0
    for url, source_entity, mime_type in wanted:
        if url in existing:
            continue
        key = extract_key_from_url(url)
        StoreMediaFile.objects.create(
            store=store,
            media_scope='MENU_REFERENCE',
            source_entity=source_entity,
            r2_key=key,
            public_url=url,
            original_file_name=(key or url).rsplit('/', 1)[-1],
            mime_type=mime_type,
        )
        existing.add(url)
        created += 1
    return created


def _url(documents, field):
    return documents.get(f'{field}_url') or documents.get(field) or None


def save_documents(store, documents) -> StoreDocuments:
    """Upsert the store's KYC document row from step 4"""
    documents = documents or {}
    values = {
        'pan_document_number': compact(documents.get('pan_number')).upper() or None,
        'pan_document_url': _url(documents, 'pan_image'),
        'pan_holder_name': _text(documents.get('pan_holder_name')) or None,
        'aadhaar_document_number': compact(documents.get('aadhar_number')) or None,
        'aadhaar_document_url': _url(documents, 'aadhar_front'),
        'aadhaar_back_url': _url(documents, 'aadhar_back'),
        'aadhaar_holder_name': _text(documents.get('aadhar_holder_name')) or None,
        'gst_document_number': _text(documents.get('gst_number')).upper() or None,
        'gst_document_url': _url(documents, 'gst_image'),
        'fssai_document_number': compact(documents.get('fssai_number')) or None,
        'fssai_document_url': _url(documents, 'fssai_image'),
        'fssai_expiry_date': parse_date(documents.get('fssai_expiry_date')),
        'drug_license_document_number': _text(documents.get('drug_license_number')) or None,
        'drug_license_document_url': _url(documents, 'drug_license_image'),
        'drug_license_expiry_date': parse_date(documents.get('drug_license_expiry_date')),
        'pharmacist_certificate_document_number': _text(documents.get('pharmacist_registration_number')) or None,
        'pharmacist_certificate_document_url': _url(documents, 'pharmacist_certificate'),
        'pharmacist_certificate_expiry_date': parse_date(documents.get('pharmacist_expiry_date')),
        'pharmacy_council_registration_document_url': _url(documents, 'pharmacy_council_registration'),
        'other_document_type': _text(documents.get('other_document_type')) or None,
        'other_document_number': _text(documents.get('other_document_number')) or None,
        'other_document_url': _url(documents, 'other_document_file'),
        'other_expiry_date': parse_date(documents.get('other_document_expiry_date')),
    }
    row, _ = StoreDocuments.objects.update_or_create(store=store, defaults=values)
    return row


def save_bank_account(store, bank):
    """
    Replace the store's payout accounts with the one from step 4.

    Returns the new StoreBankAccount, or None when the details are incomplete
    (existing accounts are then left alone).
    """
    bank = bank or {}
    method = bank.get('payout_method') or 'bank'
    account_type = bank.get('account_type') or 'savings'

    if method == 'upi':
        upi_id = _text(bank.get('upi_id'))
        if not upi_id or not bank.get('upi_qr_screenshot_url'):
            return None
        values = {
            'payout_method': 'upi',
            'account_holder_name': _text(bank.get('account_holder_name')) or upi_id or 'UPI',
            'account_number': 'UPI',
            'ifsc_code': 'UPI',
            'bank_name': 'UPI',
            'upi_id': upi_id,
            'upi_qr_screenshot_url': bank.get('upi_qr_screenshot_url'),
            'account_type': account_type,
        }
    else:
        required = [_text(bank.get(f)) for f in ('account_holder_name', 'account_number', 'ifsc_code', 'bank_name')]
        if not all(required):
            return None
        values = {
            'payout_method': 'bank',
            'account_holder_name': required[0],
            'account_number': compact(required[1]),
            'ifsc_code': compact(required[2]).upper(),
            'bank_name': required[3],
            'branch_name': _text(bank.get('branch_name')) or None,
            'account_type': account_type,
            'bank_proof_type': bank.get('bank_proof_type') or None,
            'bank_proof_file_url': bank.get('bank_proof_file_url') or None,
        }

    StoreBankAccount.objects.filter(store=store).delete()
    return StoreBankAccount.objects.create(store=store, is_primary=True, is_active=True, **values)


def apply_store_setup(store, step5) -> MerchantStore:
    """Store configuration and operating hours from step 5"""
    step5 = step5 or {}
    store.cuisine_types = step5.get('cuisine_types') or []
    store.food_categories = step5.get('food_categories') or []
    store.avg_preparation_time_minutes = int(step5.get('avg_preparation_time_minutes') or 30)
    store.min_order_amount = _decimal(step5.get('min_order_amount'), Decimal('0'))
    store.delivery_radius_km = _decimal(step5.get('delivery_radius_km'))
    store.is_pure_veg = bool(step5.get('is_pure_veg'))
    store.accepts_online_payment = step5.get('accepts_online_payment') is not False
    store.accepts_cash = step5.get('accepts_cash') is not False
    store.logo_url = step5.get('logo_url') or ''
    store.banner_url = step5.get('banner_url') or ''
    store.gallery_images = step5.get('gallery_image_urls') or []
    store.save()

    if step5.get('store_hours'):
        save_operating_hours(store, step5['store_hours'])
    return store


def persist_step_data(store, form_data):
    """Write whichever of steps 3-5 are present in form_data"""
    form_data = form_data or {}
    if form_data.get('step3'):
        save_menu_media(store, form_data['step3'])
    step4 = form_data.get('step4')
    if step4:
        save_documents(store, step4)
        if step4.get('bank'):
            save_bank_account(store, step4['bank'])
    if form_data.get('step5'):
        apply_store_setup(store, form_data['step5'])
