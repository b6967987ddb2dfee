import logging
from django.http import StreamingHttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from backend.core.utils import get_merchant_parent
from . import client as r2
from .paths import extract_key_from_url, parent_prefix

logger = logging.getLogger('backend.storage')


def _resolve_owned_key(request):
    """Return (key, error_response) for ?key= or ?url=, limited to the caller's folder"""
    parent = get_merchant_parent(request.user)
    if parent is None:
        return None, Response({'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)

    raw = request.query_params.get('key') or request.query_params.get('url')
    key = extract_key_from_url(raw)
    if not key:
        return None, Response({'error': 'key or url is required'}, status=status.HTTP_400_BAD_REQUEST)
    if not key.startswith(parent_prefix(parent.parent_merchant_id)):
        logger.warning(f"User {request.user.username} requested foreign object {key}")
        return None, Response({'error': 'Access denied'}, status=status.HTTP_403_FORBIDDEN)
    return key, None


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def signed_url(request):
    """Renew a 7-day signed URL for one of the caller's objects"""
    key, error = _resolve_owned_key(request)
    if error:
        return error
    try:
        url = r2.generate_signed_url(key)
    except r2.StorageNotConfigured:
        return Response({'error': 'Storage not configured'}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    except r2.StorageError as e:
        logger.error(f"Signed url failed for {key}: {str(e)}")
        return Response({'error': 'Could not generate signed URL'}, status=status.HTTP_502_BAD_GATEWAY)
    return Response({'success': True, 'key': key, 'url': url, 'expires_in': r2.SIGNED_URL_EXPIRY_SECONDS})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def attachment_proxy(request):
    """Stream one of the caller's objects through the API"""
    key, error = _resolve_owned_key(request)
    if error:
        return error
    try:
        chunks, content_type = r2.open_object(key)
    except r2.StorageNotConfigured:
        return Response({'error': 'Storage not configured'}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
    except r2.StorageError as e:
        logger.error(f"Proxy read failed for {key}: {str(e)}")
        return Response({'error': 'Could not read file'}, status=status.HTTP_502_BAD_GATEWAY)
    if chunks is None:
        return Response({'error': 'File not found'}, status=status.HTTP_404_NOT_FOUND)
    response = StreamingHttpResponse(chunks, content_type=content_type)
    response['Cache-Control'] = 'private, max-age=300'
    return response
