"""Utility functions for audit logging and merchant resolution"""
import logging
import re

from django.contrib.auth import get_user_model

from .models import AuditLog, MerchantParent

User = get_user_model()

logger = logging.getLogger(__name__)

PARENT_ID_PATTERN = re.compile(r'^GMMP(\d+)$')
PARENT_ID_BASE = 1000


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def get_merchant_parent(user):
    """Return the MerchantParent of a user, or None"""
    if not user or not user.is_authenticated:
        return None
    try:
        return user.merchant_parent
    except MerchantParent.DoesNotExist:
        return None


def generate_parent_merchant_id():
    """Next GMMP id, starting at GMMP1001"""
    highest = PARENT_ID_BASE
    for value in MerchantParent.objects.filter(parent_merchant_id__startswith='GMMP').values_list('parent_merchant_id', flat=True):
        match = PARENT_ID_PATTERN.match(value or '')
        if match:
            highest = max(highest, int(match.group(1)))
    return f"GMMP{highest + 1}"


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP) - optional if user is provided
        action: Action type (progress_save, store_submit, ticket_create, etc.)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_name: Human-readable name of the object
        object_reference: Reference identifier (e.g., store public id, ticket id)
    """
    try:
        audit_user = None
        if user:
            audit_user = user
        elif request and hasattr(request, 'user'):
            audit_user = request.user

        ip_address = get_client_ip(request) if request else None

        if not action or not model_name or not object_id:
            logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=ip_address
        )
    except Exception as e:
        # Don't fail the main operation if audit logging fails
        logger.error(f"Failed to create audit log: {str(e)}")
        return None
