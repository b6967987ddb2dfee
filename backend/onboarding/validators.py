"""
Onboarding form validation: KYC number formats, document sections,
store setup (cuisines, features, hours) and per-step gating.

Format validators return '' when the value is valid, otherwise the
message shown to the merchant.
"""
import re

from backend.stores.utils import DAYS, is_food_business, is_pharma_business, parse_minutes

PAN_PATTERN = re.compile(r'^[A-Z]{5}[0-9]{4}[A-Z]$')
AADHAAR_PATTERN = re.compile(r'^\d{12}$')
FSSAI_PATTERN = re.compile(r'^\d{14}$')
GST_PATTERN = re.compile(r'^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][0-9A-Z]Z[0-9A-Z]$')
IFSC_PATTERN = re.compile(r'^[A-Z]{4}0[A-Z0-9]{6}$')
ACCOUNT_NUMBER_PATTERN = re.compile(r'^\d{9,18}$')
PHONE_PATTERN = re.compile(r'^[6-9]\d{9}$')
POSTAL_CODE_PATTERN = re.compile(r'^\d{6}$')
UPI_PATTERN = re.compile(r'^[\w.\-]{2,256}@[a-zA-Z]{2,64}$')
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

PAN_ERROR = 'Invalid PAN. Format: 5 letters, 4 digits, 1 letter (e.g. ABCDE1234F)'
AADHAAR_ERROR = 'Invalid Aadhaar. Must be exactly 12 digits'
FSSAI_ERROR = 'Invalid FSSAI. Must be 14 digits'
GST_ERROR = 'Invalid GSTIN. Format: 2 digit state + 10 char PAN + 2 digit entity + Z + 1 char (15 chars total)'
IFSC_ERROR = 'Invalid IFSC. Format: 4 letters, 0, 6 alphanumeric (e.g. SBIN0001234)'
ACCOUNT_NUMBER_ERROR = 'Invalid account number. Must be 9–18 digits'
PHONE_ERROR = 'Invalid phone number. Must be a 10 digit mobile number'
POSTAL_CODE_ERROR = 'Invalid PIN code. Must be 6 digits'
UPI_ERROR = 'Invalid UPI ID (e.g. name@bank)'
EMAIL_ERROR = 'Invalid email address'

ALLOWED_UPLOAD_TYPES = ['image/jpeg', 'image/png', 'image/jpg', 'application/pdf']
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
UPLOAD_FILE_ERROR = 'File must be JPG, PNG, or PDF and less than 5MB'

MAX_CUISINES = 10
MAX_MENU_IMAGES = 5
NO_CUISINE_ERROR = 'Please select at least one cuisine. You can select up to 10 cuisines.'
TOO_MANY_CUISINES_ERROR = 'You can select a maximum of 10 cuisines. For more cuisines, please upgrade your plan.'
NO_FEATURE_ERROR = 'Please select at least one store feature (Pure Vegetarian, Online Payment, or Cash on Delivery).'
NO_OPEN_DAY_ERROR = 'At least one day must be marked as open'

SECTION_ERRORS = {
    'pan': 'Please fill all required fields in the PAN section before proceeding.',
    'aadhar': 'Please fill all required fields in the Aadhar section before proceeding.',
    'bank': ('Please complete payout details: for Bank upload passbook/cheque/statement and fill account '
             'details; for UPI enter UPI ID and upload QR screenshot.'),
    'pharma': 'Please fill all required pharma documents before proceeding.',
    'food': 'FSSAI certificate is required for food businesses.',
    'other': 'Please provide the document number or upload the file for the other document.',
}
DOCUMENT_SECTIONS = ['pan', 'aadhar', 'optional', 'bank', 'other']


def _clean(value) -> str:
    return str(value or '').strip()


def compact(value) -> str:
    """Drop all whitespace, so grouped numbers like 'ABCDE 1234F' validate"""
    return re.sub(r'\s', '', str(value or ''))


def validate_pan(value) -> str:
    return '' if PAN_PATTERN.match(compact(value).upper()) else PAN_ERROR


def validate_aadhaar(value) -> str:
    return '' if AADHAAR_PATTERN.match(compact(value)) else AADHAAR_ERROR


def validate_fssai(value) -> str:
    return '' if FSSAI_PATTERN.match(compact(value)) else FSSAI_ERROR


def validate_gst(value) -> str:
    value = _clean(value).upper()
    if not value:
        return ''
    return '' if GST_PATTERN.match(value) else GST_ERROR


def validate_ifsc(value) -> str:
    return '' if IFSC_PATTERN.match(compact(value).upper()) else IFSC_ERROR


def validate_account_number(value) -> str:
    return '' if ACCOUNT_NUMBER_PATTERN.match(compact(value)) else ACCOUNT_NUMBER_ERROR


def normalize_phone(value) -> str:
    digits = re.sub(r'[\s\-]', '', _clean(value))
    if digits.startswith('+91'):
        digits = digits[3:]
    elif digits.startswith('91') and len(digits) == 12:
        digits = digits[2:]
    return digits


def validate_phone(value) -> str:
    return '' if PHONE_PATTERN.match(normalize_phone(value)) else PHONE_ERROR


def validate_postal_code(value) -> str:
    return '' if POSTAL_CODE_PATTERN.match(_clean(value)) else POSTAL_CODE_ERROR


def validate_upi(value) -> str:
    return '' if UPI_PATTERN.match(_clean(value)) else UPI_ERROR


def validate_email(value) -> str:
    return '' if EMAIL_PATTERN.match(_clean(value)) else EMAIL_ERROR


def validate_upload_file(uploaded_file, allowed_types=None, max_bytes=MAX_UPLOAD_BYTES) -> str:
    """Check an UploadedFile's content type and size"""
    allowed_types = allowed_types or ALLOWED_UPLOAD_TYPES
    if uploaded_file is None:
        return 'File is required'
    content_type = (getattr(uploaded_file, 'content_type', '') or '').lower()
    if content_type not in allowed_types or uploaded_file.size > max_bytes:
        return UPLOAD_FILE_ERROR
    return ''


def _has_file(documents, field) -> bool:
    """A document counts as provided when either the file or its stored url is present"""
    documents = documents or {}
    return bool(documents.get(field) or documents.get(f'{field}_url'))


def validate_document_formats(documents) -> dict:
    """Format errors for every number the merchant typed, keyed by field"""
    documents = documents or {}
    errors = {}
    checks = [
        ('pan_number', validate_pan),
        ('aadhar_number', validate_aadhaar),
        ('fssai_number', validate_fssai),
        ('gst_number', validate_gst),
    ]
    for field, validator in checks:
        if documents.get(field):
            message = validator(documents[field])
            if message:
                errors[field] = message

    bank = documents.get('bank') or {}
    if bank.get('ifsc_code'):
        message = validate_ifsc(bank['ifsc_code'])
        if message:
            errors['ifsc_code'] = message
    if bank.get('account_number') and (bank.get('payout_method') or 'bank') == 'bank':
        message = validate_account_number(bank['account_number'])
        if message:
            errors['account_number'] = message
    if bank.get('upi_id') and bank.get('payout_method') == 'upi':
        message = validate_upi(bank['upi_id'])
        if message:
            errors['upi_id'] = message
    return errors


def validate_document_section(section, documents, store_type=None) -> dict:
    """
    Validate one KYC section ('pan', 'aadhar', 'optional', 'bank', 'other').

    Returns:
        dict of errors; empty when the section is complete. A missing
        required field is reported under 'section'.
    """
    documents = documents or {}
    errors = {}

    if section == 'pan':
        complete = _clean(documents.get('pan_holder_name')) and documents.get('pan_number') and _has_file(documents, 'pan_image')
        if documents.get('pan_number') and validate_pan(documents['pan_number']):
            errors['pan_number'] = PAN_ERROR
        if not complete:
            errors['section'] = SECTION_ERRORS['pan']

    elif section == 'aadhar':
        complete = (_clean(documents.get('aadhar_holder_name')) and documents.get('aadhar_number')
                    and _has_file(documents, 'aadhar_front') and _has_file(documents, 'aadhar_back'))
        if documents.get('aadhar_number') and validate_aadhaar(documents['aadhar_number']):
            errors['aadhar_number'] = AADHAAR_ERROR
        if not complete:
            errors['section'] = SECTION_ERRORS['aadhar']

    elif section == 'optional':
        if is_pharma_business(store_type):
            complete = (documents.get('drug_license_number') and _has_file(documents, 'drug_license_image')
                        and documents.get('drug_license_expiry_date')
                        and documents.get('pharmacist_registration_number')
                        and _has_file(documents, 'pharmacist_certificate')
                        and _has_file(documents, 'pharmacy_council_registration')
                        and documents.get('pharmacist_expiry_date'))
            if not complete:
                errors['section'] = SECTION_ERRORS['pharma']
        elif is_food_business(store_type):
            complete = documents.get('fssai_number') and _has_file(documents, 'fssai_image') and documents.get('fssai_expiry_date')
            if documents.get('fssai_number') and validate_fssai(documents['fssai_number']):
                errors['fssai_number'] = FSSAI_ERROR
            if not complete:
                errors['section'] = SECTION_ERRORS['food']
        if documents.get('gst_number') and validate_gst(documents['gst_number']):
            errors['gst_number'] = GST_ERROR

    elif section == 'bank':
        bank = documents.get('bank') or {}
        method = bank.get('payout_method') or 'bank'
        if method == 'bank':
            complete = (bank.get('account_holder_name') and bank.get('account_number') and bank.get('ifsc_code')
                        and bank.get('bank_name') and bank.get('bank_proof_type')
                        and (bank.get('bank_proof_file') or bank.get('bank_proof_file_url')))
            if bank.get('ifsc_code') and validate_ifsc(bank['ifsc_code']):
                errors['ifsc_code'] = IFSC_ERROR
            if bank.get('account_number') and validate_account_number(bank['account_number']):
                errors['account_number'] = ACCOUNT_NUMBER_ERROR
        else:
            complete = bank.get('upi_id') and (bank.get('upi_qr_file') or bank.get('upi_qr_screenshot_url'))
            if bank.get('upi_id') and validate_upi(bank['upi_id']):
                errors['upi_id'] = UPI_ERROR
        if not complete:
            errors['section'] = SECTION_ERRORS['bank']

    elif section == 'other':
        if documents.get('other_document_type'):
            if not (documents.get('other_document_number') or _has_file(documents, 'other_document_file')):
                errors['section'] = SECTION_ERRORS['other']

    else:
        raise ValueError(f"Unknown document section: {section}")

    return errors


def validate_documents(documents, store_type=None) -> dict:
    """All sections; errors keyed '<section>' or '<section>.<field>'"""
    errors = {}
    for section in DOCUMENT_SECTIONS:
        for field, message in validate_document_section(section, documents, store_type).items():
            errors[section if field == 'section' else f'{section}.{field}'] = message
    return errors


def validate_store_hours(store_hours) -> str:
    """First store-hours problem, or '' when the schedule is valid"""
    store_hours = store_hours or {}
    days = [day for day in DAYS if day in store_hours] or list(store_hours.keys())
    if not any(not (store_hours.get(day) or {}).get('closed') for day in days):
        return NO_OPEN_DAY_ERROR

    for day in days:
        hours = store_hours.get(day) or {}
        if hours.get('closed'):
            continue
        label = day[:1].upper() + day[1:]

        if not hours.get('slot1_open') or not hours.get('slot1_close'):
            return f"{label}: Slot 1 is required for open day"
        s1_start = parse_minutes(hours.get('slot1_open'))
        s1_end = parse_minutes(hours.get('slot1_close'))
        if s1_start is None or s1_end is None or s1_start >= s1_end:
            return f"{label}: Slot 1 end time must be after start time"

        if hours.get('slot2_open') or hours.get('slot2_close'):
            if not hours.get('slot2_open') or not hours.get('slot2_close'):
                return f"{label}: Fill both start and end for Slot 2"
            s2_start = parse_minutes(hours.get('slot2_open'))
            s2_end = parse_minutes(hours.get('slot2_close'))
            if s2_start is None or s2_end is None or s2_start >= s2_end:
                return f"{label}: Slot 2 end time must be after start time"
            if s2_start <= s1_end:
                return f"{label}: Slot 2 must start after Slot 1 ends"
    return ''


def validate_store_setup(data) -> dict:
    """Store configuration step: cuisines, features, hours"""
    data = data or {}
    errors = {}
    cuisines = data.get('cuisine_types') or []
    if len(cuisines) == 0:
        errors['cuisine_types'] = NO_CUISINE_ERROR
    elif len(cuisines) > MAX_CUISINES:
        errors['cuisine_types'] = TOO_MANY_CUISINES_ERROR

    if not data.get('is_pure_veg') and not data.get('accepts_online_payment') and not data.get('accepts_cash'):
        errors['features'] = NO_FEATURE_ERROR

    hours_error = validate_store_hours(data.get('store_hours'))
    if hours_error:
        errors['store_hours'] = hours_error
    return errors


def _validate_business_info(step1) -> dict:
    errors = {}
    for field, label in (('store_name', 'Store name'), ('owner_full_name', 'Owner name'),
                         ('store_type', 'Store type'), ('store_email', 'Store email')):
        if not _clean(step1.get(field)):
            errors[field] = f"{label} is required"
    if str(step1.get('store_type') or '').upper() == 'OTHERS' and not _clean(step1.get('custom_store_type')):
        errors['custom_store_type'] = 'Please specify your store type'
    if step1.get('store_email') and 'store_email' not in errors:
        message = validate_email(step1['store_email'])
        if message:
            errors['store_email'] = message
    for index, phone in enumerate(step1.get('store_phones') or []):
        if phone and validate_phone(phone):
            errors[f'store_phones.{index}'] = PHONE_ERROR
    return errors


def _validate_location(step2) -> dict:
    errors = {}
    for field, label in (('full_address', 'Address'), ('city', 'City'), ('state', 'State')):
        if not _clean(step2.get(field)):
            errors[field] = f"{label} is required"
    if step2.get('latitude') is None or step2.get('longitude') is None:
        errors['location'] = 'Please pick the store location on the map'
    if step2.get('postal_code') and validate_postal_code(step2['postal_code']):
        errors['postal_code'] = POSTAL_CODE_ERROR
    return errors


def _validate_menu(step3) -> dict:
    mode = str(step3.get('menuUploadMode') or 'IMAGE').upper()
    if mode == 'IMAGE':
        images = [url for url in (step3.get('menuImageUrls') or []) if url]
        if not images:
            return {'menu': 'Please upload at least one menu image'}
        if len(images) > MAX_MENU_IMAGES:
            return {'menu': f'You can upload a maximum of {MAX_MENU_IMAGES} menu images'}
        return {}
    if mode == 'PDF':
        return {} if step3.get('menuPdfUrl') else {'menu': 'Please upload your menu PDF'}
    return {} if step3.get('menuSpreadsheetUrl') else {'menu': 'Please upload your menu spreadsheet'}


def validate_step(step, form_data) -> dict:
    """
    Gate for moving past a wizard step.

    Returns:
        dict of errors; empty when the step may be left
    """
    form_data = form_data or {}
    step1 = form_data.get('step1') or {}
    store_type = step1.get('store_type')

    if step == 1:
        return _validate_business_info(step1)
    if step == 2:
        return _validate_location(form_data.get('step2') or {})
    if step == 3:
        return _validate_menu(form_data.get('step3') or {})
    if step == 4:
        return validate_documents(form_data.get('step4') or {}, store_type)
    if step == 5:
        return validate_store_setup(form_data.get('step5') or {})
    if step == 6:
        errors = {}
        for earlier in range(1, 6):
            for field, message in validate_step(earlier, form_data).items():
                errors[f'step{earlier}.{field}'] = message
        return errors
    if step == 7:
        plan = form_data.get('plan') or {}
        return {} if (plan.get('planId') or form_data.get('planId')) else {'plan': 'Please select a plan'}
    if step == 8:
        return _validate_agreement(form_data.get('agreement') or {})
    if step == 9:
        return validate_signature(form_data.get('agreement') or {}, form_data.get('signature') or {})
    return {}


def _validate_agreement(agreement) -> dict:
    errors = {}
    if not agreement.get('terms_accepted'):
        errors['terms_accepted'] = 'Please accept the terms and conditions'
    if not agreement.get('contract_read_confirmed'):
        errors['contract_read_confirmed'] = 'Please confirm you have read the contract'
    return errors


def validate_signature(agreement, signature) -> dict:
    """Final step: signer, drawn signature and both confirmations"""
    errors = _validate_agreement(agreement)
    if not _clean(signature.get('signer_name')):
        errors['signer_name'] = 'Signer name is required.'
    data_url = _clean(signature.get('signature_data_url'))
    if not data_url or not data_url.startswith('data:image/'):
        errors['signature_data_url'] = 'Please draw your signature.'
    return errors


def first_error(errors) -> str:
    return next(iter(errors.values()), '') if errors else ''
