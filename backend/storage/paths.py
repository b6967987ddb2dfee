"""
Object key layout for merchant onboarding files in R2.

    docs/merchants/{parent_code}/stores/{store_code}/onboarding/{segment}/...
    docs/merchants/{parent_code}/draft/onboarding/{segment}/...   (no store yet)
"""
import os
import re
import time
from typing import Optional
from urllib.parse import urlparse, unquote

from django.conf import settings


def public_base_url() -> str:
    """Public bucket domain without a trailing slash, or '' when objects are private"""
    value = getattr(settings, 'R2_PUBLIC_BASE_URL', os.getenv('R2_PUBLIC_BASE_URL', ''))
    return (value or '').rstrip('/')


ONBOARDING_SEGMENTS = {
    'DOCUMENTS': 'documents',
    'MENU_IMAGES': 'menu/images',
    'MENU_CSV': 'menu/csv',
    'STORE_MEDIA': 'store-media',
    'STORE_MEDIA_GALLERY': 'store-media/gallery',
    'BANK': 'bank',
    'AGREEMENTS': 'agreements',
}

MERCHANTS_PREFIX = 'docs/merchants'


def _clean_code(value: Optional[str]) -> str:
    value = str(value or '').strip()
    return re.sub(r'[^A-Za-z0-9_-]', '', value)


def parent_prefix(parent_code: Optional[str]) -> str:
    return f"{MERCHANTS_PREFIX}/{_clean_code(parent_code) or 'unknown'}/"


def onboarding_prefix(parent_code: Optional[str], store_code: Optional[str], segment: str) -> str:
    """Folder for one onboarding segment, without a trailing slash"""
    if segment not in ONBOARDING_SEGMENTS:
        raise ValueError(f"Unknown onboarding segment: {segment}")
    parent = _clean_code(parent_code) or 'unknown'
    store = _clean_code(store_code)
    folder = ONBOARDING_SEGMENTS[segment]
    if store:
        return f"{MERCHANTS_PREFIX}/{parent}/stores/{store}/onboarding/{folder}"
    return f"{MERCHANTS_PREFIX}/{parent}/draft/onboarding/{folder}"


def safe_file_name(name: Optional[str], default: str = 'file') -> str:
    name = os.path.basename(str(name or '')).strip()
    name = re.sub(r'[^A-Za-z0-9._-]', '_', name)
    return name or default


def build_object_key(parent_code, store_code, segment, file_name, timestamp=None) -> str:
    """Unique key: {prefix}/{timestamp_ms}_{safe_name}"""
    ts = timestamp if timestamp is not None else int(time.time() * 1000)
    return f"{onboarding_prefix(parent_code, store_code, segment)}/{ts}_{safe_file_name(file_name)}"


def extract_key_from_url(value: Optional[str]) -> Optional[str]:
    """
    Recover the object key from a stored value.

    Accepts full http(s) URLs (public or presigned), proxy URLs
    (/api/v1/attachments/proxy/?key=...) and bare keys.
    """
    if not value:
        return None
    value = str(value).strip()
    if not value:
        return None

    if 'attachments/proxy' in value and 'key=' in value:
        query = value.split('?', 1)[1] if '?' in value else ''
        for part in query.split('&'):
            if part.startswith('key='):
                return unquote(part[4:]) or None

    if value.startswith('http://') or value.startswith('https://'):
        base = public_base_url()
        if base and value.startswith(base + '/'):
            key = value[len(base) + 1:].split('?', 1)[0]
            return unquote(key) or None
        path = unquote(urlparse(value).path or '').lstrip('/')
        bucket = getattr(settings, 'R2_BUCKET_NAME', '')
        if bucket and path.startswith(bucket + '/'):
            path = path[len(bucket) + 1:]
        return path or None

    return value.lstrip('/')


def to_stored_document_url(key: Optional[str]) -> Optional[str]:
    """Value persisted in the DB for an uploaded object"""
    if not key:
        return None
    base = public_base_url()
    if base:
        return f"{base}/{key}"
    return f"/api/v1/attachments/proxy/?key={key}"
