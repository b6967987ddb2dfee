"""
R2 (S3-compatible) object storage client.
Uploads onboarding documents, menu files and signed agreements.
"""
import os
import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

logger = logging.getLogger(__name__)

SIGNED_URL_EXPIRY_SECONDS = 7 * 24 * 60 * 60  # 7 days
STREAM_CHUNK_SIZE = 64 * 1024


class StorageError(Exception):
    """Raised when an object storage call fails"""


class StorageNotConfigured(StorageError):
    """Raised when R2 credentials are missing"""


def _setting(name, default=''):
    return getattr(settings, name, os.getenv(name, default)) or default


def is_configured() -> bool:
    return all(_setting(name) for name in ('R2_ACCESS_KEY', 'R2_SECRET_KEY', 'R2_BUCKET_NAME', 'R2_ENDPOINT'))


def get_bucket_name() -> str:
    return _setting('R2_BUCKET_NAME')


def get_client():
    """boto3 S3 client pointed at the R2 endpoint"""
    if not is_configured():
        raise StorageNotConfigured('R2 storage is not configured')
    return boto3.client(
        's3',
        endpoint_url=_setting('R2_ENDPOINT'),
        aws_access_key_id=_setting('R2_ACCESS_KEY'),
        aws_secret_access_key=_setting('R2_SECRET_KEY'),
        region_name=_setting('R2_REGION', 'auto'),
        config=Config(signature_version='s3v4'),
    )


def upload_file(key: str, body, content_type: Optional[str] = None) -> str:
    """
    Upload bytes or a file-like object under key.

    Returns:
        The object key
    """
    extra = {'ContentType': content_type} if content_type else {}
    try:
        client = get_client()
        if hasattr(body, 'read'):
            client.upload_fileobj(body, get_bucket_name(), key, ExtraArgs=extra or None)
        else:
            client.put_object(Bucket=get_bucket_name(), Key=key, Body=body, **extra)
    except (BotoCoreError, ClientError) as e:
        logger.error(f"R2 upload failed for {key}: {str(e)}", exc_info=True)
        raise StorageError(f"Upload failed: {str(e)}") from e
    logger.info(f"Uploaded object {key}")
    return key


def delete_file(key: str) -> bool:
    """Delete an object; missing objects count as deleted"""
    try:
        get_client().delete_object(Bucket=get_bucket_name(), Key=key)
    except ClientError as e:
        code = e.response.get('Error', {}).get('Code')
        if code in ('NoSuchKey', '404'):
            return True
        logger.error(f"R2 delete failed for {key}: {str(e)}")
        raise StorageError(f"Delete failed: {str(e)}") from e
    except BotoCoreError as e:
        logger.error(f"R2 delete failed for {key}: {str(e)}")
        raise StorageError(f"Delete failed: {str(e)}") from e
    logger.info(f"Deleted object {key}")
    return True


def delete_quietly(key: Optional[str]) -> bool:
    """Best-effort delete used for cleanup after a failed DB write"""
    if not key:
        return False
    try:
        return delete_file(key)
    except StorageError as e:
        logger.warning(f"Cleanup of {key} failed: {str(e)}")
        return False


def generate_signed_url(key: str, expires: int = SIGNED_URL_EXPIRY_SECONDS) -> str:
    """Presigned GET url, valid for 7 days by default"""
    try:
        return get_client().generate_presigned_url(
            'get_object',
            Params={'Bucket': get_bucket_name(), 'Key': key},
            ExpiresIn=expires,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"Could not sign url for {key}: {str(e)}")
        raise StorageError(f"Signing failed: {str(e)}") from e


def open_object(key: str):
    """Return (chunk iterator, content_type) for an object, or (None, None) when missing"""
    try:
        result = get_client().get_object(Bucket=get_bucket_name(), Key=key)
    except ClientError as e:
        code = e.response.get('Error', {}).get('Code')
        if code in ('NoSuchKey', '404'):
            return None, None
        raise StorageError(f"Read failed: {str(e)}") from e
    except BotoCoreError as e:
        raise StorageError(f"Read failed: {str(e)}") from e
    return result['Body'].iter_chunks(STREAM_CHUNK_SIZE), result.get('ContentType') or 'application/octet-stream'
