import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.cache import cache
from backend.core.cache_utils import (
    STORE_SETTINGS_CACHE_TTL, get_store_settings_cache_key, invalidate_store_settings_cache
)
from backend.core.utils import create_audit_log, get_merchant_parent
from .models import MerchantStore, StoreOperatingHours, StoreSettings
from .serializers import MerchantStoreSerializer, StoreOperatingHoursSerializer
from .utils import generate_store_public_id, get_store_for_parent

logger = logging.getLogger('backend.stores')

SETTINGS_FIELDS = ['self_delivery', 'platform_delivery']


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def store_list(request):
    """List the caller's stores, optionally filtered by approval_status"""
    try:
        parent = get_merchant_parent(request.user)
        if parent is None:
            return Response({'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)

        stores = MerchantStore.objects.filter(parent=parent)
        approval_status = request.query_params.get('approval_status')
        if approval_status:
            stores = stores.filter(approval_status=approval_status.upper())

        logger.debug(f"User {request.user.username} listed {stores.count()} stores")
        return Response(MerchantStoreSerializer(stores, many=True).data)
    except Exception as e:
        logger.error(f"Unexpected error in store_list: {str(e)}", exc_info=True)
        return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def store_detail(request, store_ref):
    """Retrieve one store by public id or numeric id"""
    parent = get_merchant_parent(request.user)
    if parent is None:
        return Response({'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)

    store = get_store_for_parent(parent, store_ref)
    if store is None:
        logger.warning(f"Store {store_ref} not found for parent {parent.parent_merchant_id}")
        return Response({'error': 'Store not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(MerchantStoreSerializer(store).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def store_next_id(request):
    """Preview the next public store id"""
    return Response({'success': True, 'store_id': generate_store_public_id()})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def store_hours(request, store_ref):
    """Operating hours for one store"""
    parent = get_merchant_parent(request.user)
    if parent is None:
        return Response({'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)

    store = get_store_for_parent(parent, store_ref)
    if store is None:
        return Response({'error': 'Store not found'}, status=status.HTTP_404_NOT_FOUND)

    try:
        hours = store.operating_hours
    except StoreOperatingHours.DoesNotExist:
        return Response({'success': True, 'hours': None})
    return Response({'success': True, 'hours': StoreOperatingHoursSerializer(hours).data})


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def store_settings(request):
    """
    GET  ?storeId=GMMC1001  -> {self_delivery, platform_delivery}
    PATCH {storeId, self_delivery?, platform_delivery?} -> upserts booleans only
    """
    try:
        parent = get_merchant_parent(request.user)
        if parent is None:
            return Response({'success': False, 'error': 'Merchant account not found.'}, status=status.HTTP_403_FORBIDDEN)

        if request.method == 'GET':
            store_ref = request.query_params.get('storeId') or request.query_params.get('store_id')
        else:
            store_ref = request.data.get('storeId') or request.data.get('store_id')
        if not store_ref:
            return Response({'success': False, 'error': 'Store ID is required.'}, status=status.HTTP_400_BAD_REQUEST)

        store = get_store_for_parent(parent, store_ref)
        if store is None:
            return Response({'success': False, 'error': 'Store not found or access denied.'}, status=status.HTTP_404_NOT_FOUND)

        cache_key = get_store_settings_cache_key(store.id)

        if request.method == 'GET':
            cached_data = cache.get(cache_key)
            if cached_data:
                return Response(cached_data)

            settings_row = StoreSettings.objects.filter(store=store).first()
            response_data = {
                'success': True,
                'self_delivery': settings_row.self_delivery if settings_row else False,
                'platform_delivery': settings_row.platform_delivery if settings_row else True,
            }
            cache.set(cache_key, response_data, STORE_SETTINGS_CACHE_TTL)
            return Response(response_data)

        updates = {}
        for field in SETTINGS_FIELDS:
            value = request.data.get(field)
            if isinstance(value, bool):
                updates[field] = value

        if not updates:
            return Response({'success': True})

        settings_row, created = StoreSettings.objects.get_or_create(store=store)
        for field, value in updates.items():
            setattr(settings_row, field, value)
        settings_row.save()
        invalidate_store_settings_cache(store.id)

        logger.info(f"User {request.user.username} updated settings for store {store.store_id}: {updates}")
        create_audit_log(
            request=request,
            action='settings_update',
            model_name='StoreSettings',
            object_id=settings_row.id,
            object_name=store.store_name,
            object_reference=store.store_id,
            changes=updates,
        )
        return Response({'success': True})
    except Exception as e:
        logger.error(f"Unexpected error in store_settings: {str(e)}", exc_info=True)
        return Response({'success': False, 'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
