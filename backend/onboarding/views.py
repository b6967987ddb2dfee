import logging
import os
from datetime import date
from django.core.cache import cache
from django.db import transaction
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from backend.agreements.utils import record_acceptance
from backend.core.utils import create_audit_log, get_merchant_parent
from backend.storage import client as r2
from backend.storage.paths import build_object_key, to_stored_document_url
from backend.stores.utils import get_store_for_parent
from .geocoding import GeocodingError, GeocodingNotConfigured, reverse_geocode, search_places
from .models import RegistrationProgress, StoreMediaFile
from .progress import (
    TOTAL_STEPS, build_reconciled_flags, clamp_step, count_completed_steps, deep_merge_form_data, progress_to_dict,
)
from .services import has_draft_inputs, persist_step_data, upsert_store_draft
from .validators import (
    ALLOWED_UPLOAD_TYPES, MAX_MENU_IMAGES, MAX_UPLOAD_BYTES, first_error, validate_signature, validate_step,
    validate_upload_file,
)

logger = logging.getLogger('backend.onboarding')

# Payout detail limits
MAX_BANK_ATTEMPTS_PER_DAY = 3
MAX_UPI_ATTEMPTS_PER_DAY = 5
MAX_BANK_ACCOUNTS_PER_STORE = 3
MAX_UPI_PER_STORE = 5
BANK_UPLOAD_COOLDOWN_SECONDS = 10

BANK_DOCUMENT_TYPES = {'bank_proof', 'upi_qr'}

MENU_SOURCE_BY_TYPE = {
    'images': 'ONBOARDING_MENU_IMAGE',
    'pdf': 'ONBOARDING_MENU_PDF',
    'csv': 'ONBOARDING_MENU_SHEET',
}
MENU_TYPE_BY_SOURCE = {source: kind for kind, source in MENU_SOURCE_BY_TYPE.items()}
MENU_IMAGE_TYPES = {'image/jpeg', 'image/jpg', 'image/png', 'image/webp'}
MENU_IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp'}
MENU_CSV_TYPES = {
    'text/csv', 'application/csv', 'text/plain', 'application/vnd.ms-excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
}
MENU_CSV_EXTENSIONS = {'.csv', '.xls', '.xlsx'}


def _parent_or_403(request):
    parent = get_merchant_parent(request.user)
    if parent is None:
        return None, Response({'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)
    return parent, None


def _step_store_public_id(progress):
    return ((progress.form_data or {}).get('step_store') or {}).get('storePublicId')


def _apply_flags(progress, flags):
    """Set step flags on the row; returns True when anything changed"""
    changed = False
    for key, value in flags.items():
        if getattr(progress, key) != value:
            setattr(progress, key, value)
            changed = True
    completed = count_completed_steps(flags)
    if progress.completed_steps != completed:
        progress.completed_steps = completed
        changed = True
    return changed


def _find_open_progress(parent, store_public_id=None):
    queryset = RegistrationProgress.objects.filter(parent=parent).exclude(registration_status='COMPLETED')
    if store_public_id:
        for progress in queryset:
            if _step_store_public_id(progress) == store_public_id or (
                    progress.store_id and progress.store.store_id == store_public_id):
                return progress
        return None
    return queryset.first()


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def onboarding_progress(request):
    """
    GET: latest unfinished wizard progress (optionally for ?storePublicId=)
    PUT: save wizard progress, upserting the draft store once steps 1-2 are filled
    """
    try:
        parent, error = _parent_or_403(request)
        if error:
            return error

        if request.method == 'GET':
            progress = _find_open_progress(parent, request.query_params.get('storePublicId'))
            if progress is None:
                return Response({'success': True, 'progress': None})

            flags = build_reconciled_flags(progress.get_flags(), progress.current_step,
                                           progress.current_step, progress.form_data)
            if _apply_flags(progress, flags):
                progress.save()
                logger.debug(f"Reconciled progress {progress.id} flags")
            return Response({'success': True, 'progress': progress_to_dict(progress)})

        data = request.data
        store_public_id = data.get('storePublicId')
        current_step = clamp_step(data.get('currentStep'))
        next_step = clamp_step(data.get('nextStep'), default=current_step)

        with transaction.atomic():
            progress = _find_open_progress(parent, store_public_id)
            if progress is None:
                progress = RegistrationProgress(parent=parent, form_data={})

            form_data = deep_merge_form_data(progress.form_data or {}, data.get('formDataPatch') or {})
            flags = build_reconciled_flags(progress.get_flags() if progress.pk else {},
                                           progress.current_step if progress.pk else 1,
                                           current_step, form_data)
            if data.get('markStepComplete'):
                flags[f'step_{current_step}_completed'] = True

            store = progress.store if progress.store_id else None
            if current_step >= 2 and has_draft_inputs(form_data):
                store = upsert_store_draft(parent, form_data, next_step, store=store)
                form_data['step_store'] = {'storeDbId': store.id, 'storePublicId': store.store_id}
            if store is not None:
                persist_step_data(store, form_data)

            progress.store = store
            progress.form_data = form_data
            progress.current_step = current_step
            progress.next_step = next_step
            registration_status = data.get('registrationStatus')
            if registration_status in dict(RegistrationProgress.STATUS_CHOICES):
                progress.registration_status = registration_status
            _apply_flags(progress, flags)
            progress.save()

        create_audit_log(
            request=request,
            action='progress_save',
            model_name='RegistrationProgress',
            object_id=str(progress.id),
            object_name=store.store_name if store else None,
            object_reference=store.store_id if store else None,
            changes={'current_step': current_step, 'next_step': next_step},
        )
        return Response({'success': True, 'progress': progress_to_dict(progress)})
    except Exception as e:
        logger.error(f"Unexpected error in onboarding_progress: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def validate_step_view(request):
    """Check whether a wizard step may be left"""
    if not isinstance(request.data, dict):
        return Response({'error': 'Request body must be an object'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        step = int(request.data.get('step'))
    except (TypeError, ValueError):
        return Response({'error': 'step must be a number between 1 and 9'}, status=status.HTTP_400_BAD_REQUEST)
    if step < 1 or step > TOTAL_STEPS:
        return Response({'error': 'step must be a number between 1 and 9'}, status=status.HTTP_400_BAD_REQUEST)

    form_data = request.data.get('formData') or {}
    if not isinstance(form_data, dict):
        return Response({'error': 'formData must be an object'}, status=status.HTTP_400_BAD_REQUEST)
    errors = validate_step(step, form_data)
    return Response({'valid': not errors, 'errors': errors})


def _menu_files(store):
    return StoreMediaFile.objects.filter(store=store, media_scope='MENU_REFERENCE', is_active=True)


def _menu_file_to_dict(media):
    return {
        'id': media.id,
        'file_url': media.public_url,
        'file_name': media.original_file_name,
        'file_size': media.file_size_bytes,
        'mime_type': media.mime_type,
    }


def _delete_menu_files(queryset):
    for media in queryset:
        r2.delete_quietly(media.r2_key)
    count = queryset.count()
    queryset.delete()
    return count


def _menu_file_error(kind, uploaded):
    """'' when an uploaded menu file matches the attachment type"""
    if uploaded.size > MAX_UPLOAD_BYTES:
        return f"{uploaded.name}: file must be less than 5MB"
    content_type = (uploaded.content_type or '').lower()
    extension = os.path.splitext(uploaded.name or '')[1].lower()
    if kind == 'images':
        ok = content_type in MENU_IMAGE_TYPES or extension in MENU_IMAGE_EXTENSIONS
        return '' if ok else f"{uploaded.name}: only JPG, PNG or WEBP images are allowed"
    if kind == 'pdf':
        return '' if content_type == 'application/pdf' or extension == '.pdf' else f"{uploaded.name}: only PDF is allowed"
    ok = content_type in MENU_CSV_TYPES or extension in MENU_CSV_EXTENSIONS
    return '' if ok else f"{uploaded.name}: only CSV or Excel files are allowed"


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def menu_uploads(request):
    """
    GET: menu reference files for ?store_id=
    POST: upload menu images/PDF/CSV, or switch the attachment type
    """
    parent, error = _parent_or_403(request)
    if error:
        return error

    store_ref = request.query_params.get('store_id') if request.method == 'GET' else request.data.get('store_id')
    if not store_ref:
        return Response({'error': 'Missing or invalid store_id'}, status=status.HTTP_400_BAD_REQUEST)
    store = get_store_for_parent(parent, store_ref)
    if store is None:
        return Response({'error': 'Store not found or access denied.'}, status=status.HTTP_404_NOT_FOUND)

    existing = _menu_files(store)
    current_source = existing.values_list('source_entity', flat=True).first()
    current_type = MENU_TYPE_BY_SOURCE.get(current_source)

    if request.method == 'GET':
        return Response({
            'success': True,
            'store_id': store.store_id,
            'attachment_type': current_type,
            'files': [_menu_file_to_dict(m) for m in existing],
        })

    try:
        if request.data.get('action') == 'switch_type':
            removed = _delete_menu_files(existing)
            logger.info(f"Menu type switched for {store.store_id} to {request.data.get('new_attachment_type')}, removed {removed}")
            create_audit_log(request=request, action='menu_delete', model_name='StoreMediaFile', object_id=str(store.id),
                             object_reference=store.store_id, object_name=store.store_name,
                             changes={'removed': removed, 'new_attachment_type': request.data.get('new_attachment_type')})
            return Response({'success': True, 'removed': removed, 'attachment_type': None})

        kind = request.data.get('attachment_type')
        if kind not in MENU_SOURCE_BY_TYPE:
            return Response({'error': 'Missing or invalid attachment_type (use images, pdf, csv)'}, status=status.HTTP_400_BAD_REQUEST)

        uploads = request.FILES.getlist('files') or request.FILES.getlist('file')
        if not uploads:
            return Response({'error': 'No file provided'}, status=status.HTTP_400_BAD_REQUEST)
        if kind != 'images' and len(uploads) > 1:
            return Response({'error': 'Only one file can be uploaded for this type'}, status=status.HTTP_400_BAD_REQUEST)

        for uploaded in uploads:
            message = _menu_file_error(kind, uploaded)
            if message:
                return Response({'error': message}, status=status.HTTP_400_BAD_REQUEST)

        if current_type and current_type != kind:
            _delete_menu_files(existing)
        elif kind == 'images':
            if existing.count() + len(uploads) > MAX_MENU_IMAGES:
                return Response({'error': f'You can upload a maximum of {MAX_MENU_IMAGES} menu images'},
                                status=status.HTTP_400_BAD_REQUEST)
        else:
            _delete_menu_files(existing)

        segment = 'MENU_IMAGES' if kind == 'images' else 'MENU_CSV'
        created = []
        for uploaded in uploads:
            key = build_object_key(parent.parent_merchant_id, store.store_id, segment, uploaded.name)
            r2.upload_file(key, uploaded, uploaded.content_type)
            try:
                media = StoreMediaFile.objects.create(
                    store=store,
                    media_scope='MENU_REFERENCE',
                    source_entity=MENU_SOURCE_BY_TYPE[kind],
                    r2_key=key,
                    public_url=to_stored_document_url(key),
                    original_file_name=uploaded.name,
                    file_size_bytes=uploaded.size,
                    mime_type=uploaded.content_type,
                )
            except Exception:
                r2.delete_quietly(key)
                raise
            created.append(media)

        create_audit_log(request=request, action='menu_upload', model_name='StoreMediaFile', object_id=str(store.id),
                         object_reference=store.store_id, object_name=store.store_name,
                         changes={'attachment_type': kind, 'count': len(created)})
        logger.info(f"Uploaded {len(created)} menu {kind} file(s) for {store.store_id}")
        return Response({
            'success': True,
            'store_id': store.store_id,
            'attachment_type': kind,
            'files': [_menu_file_to_dict(m) for m in _menu_files(store)],
        }, status=status.HTTP_201_CREATED)
    except r2.StorageNotConfigured:
        return Response({'error': 'Storage not configured'}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    except r2.StorageError as e:
        logger.error(f"Menu upload failed for {store.store_id}: {str(e)}")
        return Response({'error': 'Upload failed'}, status=status.HTTP_502_BAD_GATEWAY)
    except Exception as e:
        logger.error(f"Unexpected error in menu_uploads: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def menu_upload_delete(request, pk):
    """Remove one menu file"""
    parent, error = _parent_or_403(request)
    if error:
        return error
    media = StoreMediaFile.objects.filter(pk=pk, store__parent=parent, media_scope='MENU_REFERENCE').select_related('store').first()
    if media is None:
        return Response({'error': 'File not found'}, status=status.HTTP_404_NOT_FOUND)

    r2.delete_quietly(media.r2_key)
    store = media.store
    media.delete()
    create_audit_log(request=request, action='menu_delete', model_name='StoreMediaFile', object_id=str(pk),
                     object_reference=store.store_id, object_name=store.store_name)
    return Response({'success': True}, status=status.HTTP_200_OK)


def _payout_limit_keys(store_code, is_upi):
    kind = 'upi' if is_upi else 'bank'
    return (
        kind,
        f'payout_cooldown:{store_code}:{kind}',
        f'payout_attempts:{store_code}:{kind}:{date.today().isoformat()}',
        f'payout_total:{store_code}:{kind}',
    )


def _bank_limit_error(store_code, is_upi):
    """Checks the payout proof limits; returns an error message or ''"""
    kind, cooldown_key, day_key, total_key = _payout_limit_keys(store_code, is_upi)
    per_day = MAX_UPI_ATTEMPTS_PER_DAY if is_upi else MAX_BANK_ATTEMPTS_PER_DAY
    per_store = MAX_UPI_PER_STORE if is_upi else MAX_BANK_ACCOUNTS_PER_STORE

    if cache.get(cooldown_key):
        return f'Please wait {BANK_UPLOAD_COOLDOWN_SECONDS} seconds before trying again.'
    if cache.get(day_key, 0) >= per_day:
        return f'Daily limit reached: you can add up to {per_day} {kind.upper()} details per day.'
    if cache.get(total_key, 0) >= per_store:
        return f'Limit reached: a store can have at most {per_store} {kind.upper()} details.'
    return ''


def _count_bank_upload(store_code, is_upi):
    """Counts a stored payout proof and starts the cooldown"""
    _, cooldown_key, day_key, total_key = _payout_limit_keys(store_code, is_upi)
    cache.set(cooldown_key, True, BANK_UPLOAD_COOLDOWN_SECONDS)
    cache.add(day_key, 0, 24 * 60 * 60)
    cache.incr(day_key)
    cache.add(total_key, 0, None)
    cache.incr(total_key)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def document_upload(request):
    """Upload a KYC document or payout proof; returns the stored url and key"""
    parent, error = _parent_or_403(request)
    if error:
        return error

    uploaded = request.FILES.get('file')
    document_type = (request.data.get('document_type') or '').strip().lower()
    if not document_type:
        return Response({'error': 'document_type is required'}, status=status.HTTP_400_BAD_REQUEST)
    message = validate_upload_file(uploaded, ALLOWED_UPLOAD_TYPES)
    if message:
        return Response({'error': message}, status=status.HTTP_400_BAD_REQUEST)

    store_code = None
    store_ref = request.data.get('store_id')
    if store_ref:
        store = get_store_for_parent(parent, store_ref)
        if store is None:
            return Response({'error': 'Store not found or access denied.'}, status=status.HTTP_404_NOT_FOUND)
        store_code = store.store_id

    segment = 'BANK' if document_type in BANK_DOCUMENT_TYPES else 'DOCUMENTS'
    limit_owner = store_code or parent.parent_merchant_id
    is_upi = document_type == 'upi_qr'
    if segment == 'BANK':
        limit_error = _bank_limit_error(limit_owner, is_upi)
        if limit_error:
            return Response({'error': limit_error}, status=status.HTTP_429_TOO_MANY_REQUESTS)

    key = build_object_key(parent.parent_merchant_id, store_code, segment, f"{document_type}_{uploaded.name}")
    try:
        r2.upload_file(key, uploaded, uploaded.content_type)
    except r2.StorageNotConfigured:
        return Response({'error': 'Storage not configured'}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    except r2.StorageError as e:
        logger.error(f"Document upload failed for {key}: {str(e)}")
        return Response({'error': 'Upload failed'}, status=status.HTTP_502_BAD_GATEWAY)

    if segment == 'BANK':
        _count_bank_upload(limit_owner, is_upi)
    create_audit_log(request=request, action='document_upload', model_name='StoreDocuments', object_id=document_type,
                     object_reference=store_code or parent.parent_merchant_id, changes={'document_type': document_type, 'key': key})
    return Response({'success': True, 'url': to_stored_document_url(key), 'key': key}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def geocode_search(request):
    """Address suggestions for ?q="""
    query = request.query_params.get('q', '')
    try:
        return Response({'success': True, 'results': search_places(query)})
    except GeocodingNotConfigured:
        return Response({'error': 'Address search is not configured'}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    except GeocodingError as e:
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def geocode_reverse(request):
    """Address parts for ?lat=&lng="""
    try:
        lat = float(request.query_params.get('lat'))
        lng = float(request.query_params.get('lng'))
    except (TypeError, ValueError):
        return Response({'error': 'lat and lng are required numbers'}, status=status.HTTP_400_BAD_REQUEST)
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return Response({'error': 'lat and lng are out of range'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        return Response({'success': True, 'address': reverse_geocode(lat, lng)})
    except GeocodingError as e:
        return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def submit_registration(request):
    """Final submit: validate, persist everything and record the signed agreement"""
    try:
        parent, error = _parent_or_403(request)
        if error:
            return error

        data = request.data
        agreement = data.get('agreement') or {}
        signature = data.get('signature') or {}
        if not isinstance(agreement, dict) or not isinstance(signature, dict):
            return Response({'error': 'agreement and signature must be objects'}, status=status.HTTP_400_BAD_REQUEST)
        signature_errors = validate_signature(agreement, signature)
        if signature_errors:
            return Response({'error': first_error(signature_errors), 'errors': signature_errors},
                            status=status.HTTP_400_BAD_REQUEST)

        form_data = {key: data.get(key) or {} for key in ('step1', 'step2', 'step3', 'step4', 'step5')}
        for step in (1, 2, 4, 5):
            errors = validate_step(step, form_data)
            if errors:
                return Response({'error': first_error(errors), 'errors': errors, 'step': step},
                                status=status.HTTP_400_BAD_REQUEST)

        store_public_id = data.get('storePublicId')
        with transaction.atomic():
            store = get_store_for_parent(parent, store_public_id) if store_public_id else None
            if store_public_id and store is None:
                return Response({'error': 'Store not found or access denied.'}, status=status.HTTP_404_NOT_FOUND)
            if store is not None and store.approval_status != 'DRAFT':
                return Response({'error': 'This store has already been submitted.'}, status=status.HTTP_409_CONFLICT)

            store = upsert_store_draft(parent, form_data, TOTAL_STEPS, store=store)
            persist_step_data(store, form_data)

            store.approval_status = 'SUBMITTED'
            store.onboarding_completed = True
            store.onboarding_completed_at = timezone.now()
            store.current_onboarding_step = TOTAL_STEPS
            store.save(update_fields=['approval_status', 'onboarding_completed', 'onboarding_completed_at',
                                      'current_onboarding_step', 'updated_at'])

            record_acceptance(request, parent, store, agreement, signature, data.get('contractPdfUrl'))

            progress = _find_open_progress(parent, store.store_id) or _find_open_progress(parent)
            if progress is None:
                progress = RegistrationProgress(parent=parent, form_data={})
            progress.store = store
            patch = {'step_store': {'storeDbId': store.id, 'storePublicId': store.store_id}}
            if data.get('planId'):
                patch['plan'] = {'planId': data.get('planId')}
            progress.form_data = deep_merge_form_data(progress.form_data or {}, patch)
            for step in range(1, TOTAL_STEPS + 1):
                setattr(progress, f'step_{step}_completed', True)
            progress.completed_steps = TOTAL_STEPS
            progress.current_step = TOTAL_STEPS
            progress.next_step = TOTAL_STEPS
            progress.registration_status = 'COMPLETED'
            progress.save()

        create_audit_log(
            request=request,
            action='store_submit',
            model_name='MerchantStore',
            object_id=str(store.id),
            object_name=store.store_name,
            object_reference=store.store_id,
            changes={'approval_status': 'SUBMITTED', 'plan_id': data.get('planId')},
        )
        logger.info(f"Store {store.store_id} submitted by {parent.parent_merchant_id}")
        return Response({'success': True, 'storeId': store.store_id, 'storeDbId': store.id},
                        status=status.HTTP_201_CREATED)
    except Exception as e:
        logger.error(f"Unexpected error in submit_registration: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
