"""
Razorpay orders API and signature checks.
"""
import hashlib
import hmac
import os
import logging
from typing import Dict, Any

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

RAZORPAY_ORDERS_URL = 'https://api.razorpay.com/v1/orders'
REQUEST_TIMEOUT = 15


class PaymentGatewayError(Exception):
    """Razorpay rejected or failed the request"""


class PaymentNotConfigured(PaymentGatewayError):
    """Razorpay keys are missing"""


def _setting(name) -> str:
    return getattr(settings, name, os.getenv(name, '')) or ''


def get_key_id() -> str:
    return _setting('RAZORPAY_KEY_ID')


def is_configured() -> bool:
    return bool(_setting('RAZORPAY_KEY_ID') and _setting('RAZORPAY_KEY_SECRET'))


def create_order(amount_paise: int, receipt: str, currency: str = 'INR') -> Dict[str, Any]:
    """
    Create a Razorpay order.

    Raises:
        PaymentNotConfigured: when keys are missing
        PaymentGatewayError: on a non-2xx response or network failure
    """
    if not is_configured():
        raise PaymentNotConfigured('Razorpay keys are not configured')
    try:
        response = requests.post(
            RAZORPAY_ORDERS_URL,
            json={'amount': amount_paise, 'currency': currency, 'receipt': receipt},
            auth=(_setting('RAZORPAY_KEY_ID'), _setting('RAZORPAY_KEY_SECRET')),
            timeout=REQUEST_TIMEOUT,
        )
    except requests.exceptions.RequestException as e:
        logger.error(f"Razorpay order request failed: {str(e)}")
        raise PaymentGatewayError('Could not reach payment gateway') from e

    if not response.ok:
        logger.error(f"Razorpay order error {response.status_code}: {response.text[:500]}")
        raise PaymentGatewayError('Could not create payment order')
    return response.json()


def _hmac_hex(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode('utf-8'), message, hashlib.sha256).hexdigest()


def verify_payment_signature(order_id: str, payment_id: str, signature: str) -> bool:
    """HMAC-SHA256(key_secret, "order_id|payment_id") compared in constant time"""
    secret = _setting('RAZORPAY_KEY_SECRET')
    if not secret or not signature:
        return False
    expected = _hmac_hex(secret, f"{order_id}|{payment_id}".encode('utf-8'))
    return hmac.compare_digest(expected, signature)


def verify_webhook_signature(raw_body: bytes, signature: str) -> bool:
    secret = _setting('RAZORPAY_WEBHOOK_SECRET')
    if not secret or not signature:
        return False
    return hmac.compare_digest(_hmac_hex(secret, raw_body), signature)


def webhook_secret_configured() -> bool:
    return bool(_setting('RAZORPAY_WEBHOOK_SECRET'))
