import logging
import os
import time
from django.conf import settings
from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from backend.core.utils import get_merchant_parent
from backend.storage import client as r2
from backend.storage.paths import build_object_key, extract_key_from_url, to_stored_document_url
from backend.stores.utils import get_store_for_parent
from .contract import MERCHANT_PARTNERSHIP_TERMS, ContractData, build_contract_text, contract_filename
from .models import AgreementAcceptance
from .pdf import ApprovalBlock, PdfRenderError, SignatureBlock, render_contract_pdf
from .serializers import AgreementAcceptanceSerializer
from .utils import FALLBACK_TEMPLATE, select_template

logger = logging.getLogger('backend.agreements')


def _payload_error(request):
    """Error response when the body, contract or signature is not an object"""
    if not isinstance(request.data, dict):
        return Response({'error': 'Request body must be an object'}, status=status.HTTP_400_BAD_REQUEST)
    for field in ('contract', 'signature'):
        value = request.data.get(field)
        if value and not isinstance(value, dict):
            return Response({'error': f'{field} must be an object'}, status=status.HTTP_400_BAD_REQUEST)
    return None


def _contract_inputs(request):
    """(ContractData, terms_body, signature, approval) from the request body"""
    contract = ContractData.from_dict(request.data.get('contract'))
    terms_body = request.data.get('termsBody') or MERCHANT_PARTNERSHIP_TERMS

    signature = None
    signature_data = request.data.get('signature') or {}
    if signature_data.get('signature_data_url'):
        signature = SignatureBlock(
            signer_name=signature_data.get('signer_name') or '',
            signature_data_url=signature_data['signature_data_url'],
        )
        approval = ApprovalBlock(reference=contract.storeName, signatory=signature.signer_name)
    else:
        approval = None
    return contract, terms_body, signature, approval


def _logo():
    path = getattr(settings, 'CONTRACT_LOGO_PATH', os.getenv('CONTRACT_LOGO_PATH', ''))
    return path if path and os.path.exists(path) else None


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def agreement_template(request):
    """Active agreement template for ?storeType=&city="""
    try:
        template = select_template(request.query_params.get('storeType'), request.query_params.get('city'))
        return Response({'success': True, 'template': template})
    except Exception as e:
        logger.error(f"Template lookup failed, using fallback: {str(e)}", exc_info=True)
        return Response({'success': True, 'template': dict(FALLBACK_TEMPLATE)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def contract_text(request):
    """Plain-text rendering of the enrolment form"""
    error = _payload_error(request)
    if error:
        return error
    contract, terms_body, _, _ = _contract_inputs(request)
    return Response({'success': True, 'text': build_contract_text(contract, terms_body)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def contract_pdf(request):
    """Download the enrolment form as PDF; falls back to a text attachment"""
    error = _payload_error(request)
    if error:
        return error
    contract, terms_body, signature, approval = _contract_inputs(request)
    filename = contract_filename(contract.storeName, int(time.time() * 1000))
    try:
        body = render_contract_pdf(contract, terms_body, signature=signature, approval=approval, logo=_logo())
    except PdfRenderError as e:
        logger.warning(f"PDF render failed for {request.user.username}, returning text: {str(e)}")
        response = HttpResponse(build_contract_text(contract, terms_body), content_type='text/plain; charset=utf-8')
        response['Content-Disposition'] = f'attachment; filename="{filename[:-4]}.txt"'
        return response

    response = HttpResponse(body, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def contract_pdf_upload(request):
    """Render the signed form and store it under the agreements folder"""
    parent = get_merchant_parent(request.user)
    if parent is None:
        return Response({'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)
    error = _payload_error(request)
    if error:
        return error

    store_code = None
    store_ref = request.data.get('storeId') or request.data.get('store_id')
    if store_ref:
        store = get_store_for_parent(parent, store_ref)
        if store is None:
            return Response({'error': 'Store not found or access denied.'}, status=status.HTTP_404_NOT_FOUND)
        store_code = store.store_id

    contract, terms_body, signature, approval = _contract_inputs(request)
    try:
        body = render_contract_pdf(contract, terms_body, signature=signature, approval=approval, logo=_logo())
    except PdfRenderError as e:
        return Response({'error': f'Could not generate PDF: {str(e)}'}, status=status.HTTP_400_BAD_REQUEST)

    filename = contract_filename(contract.storeName, int(time.time() * 1000))
    key = build_object_key(parent.parent_merchant_id, store_code, 'AGREEMENTS', filename)
    try:
        r2.upload_file(key, body, 'application/pdf')
    except r2.StorageNotConfigured:
        return Response({'error': 'Storage not configured'}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    except r2.StorageError as e:
        logger.error(f"Contract upload failed for {key}: {str(e)}")
        return Response({'error': 'Upload failed'}, status=status.HTTP_502_BAD_GATEWAY)

    logger.info(f"Contract PDF uploaded for {parent.parent_merchant_id}: {key}")
    return Response({'success': True, 'url': to_stored_document_url(key), 'key': key}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def agreement_detail(request, store_id):
    """Latest acceptance for a store, with a renewed signed link to its PDF"""
    parent = get_merchant_parent(request.user)
    if parent is None:
        return Response({'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)
    store = get_store_for_parent(parent, store_id)
    if store is None:
        return Response({'error': 'Store not found or access denied.'}, status=status.HTTP_404_NOT_FOUND)

    acceptance = AgreementAcceptance.objects.filter(store=store).first()
    if acceptance is None:
        return Response({'error': 'No agreement found for this store'}, status=status.HTTP_404_NOT_FOUND)

    data = AgreementAcceptanceSerializer(acceptance).data
    data['signed_pdf_url'] = None
    key = extract_key_from_url(acceptance.contract_pdf_url)
    if key and r2.is_configured():
        try:
            data['signed_pdf_url'] = r2.generate_signed_url(key)
        except r2.StorageError as e:
            logger.warning(f"Could not sign agreement url for {store.store_id}: {str(e)}")
    return Response({'success': True, 'agreement': data})
