"""
Payment Signature Verification

Razorpay signs the checkout callback with HMAC-SHA256 over
"<order_id>|<payment_id>" keyed with the account's key secret, rendered as
lowercase hex. The signature is recomputed locally and compared in constant
time. Verification fails closed: any missing input yields False.
"""

import hashlib
import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)


def constant_time_compare(a: str, b: str) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Uses hmac.compare_digest which is designed for this purpose.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def razorpay_signed_message(order_id: str, payment_id: str) -> bytes:
    return f"{order_id}|{payment_id}".encode("utf-8")


def create_payment_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Create the signature Razorpay would send for an order/payment pair (testing and tooling)"""
    return compute_hmac_sha256(secret, razorpay_signed_message(order_id, payment_id))


def verify_payment_signature(
    order_id: Optional[str],
    payment_id: Optional[str],
    claimed_signature: Optional[str],
    secret: Optional[str],
) -> bool:
    """
    Verify a Razorpay checkout signature.

    Args:
        order_id: Gateway order id (razorpay_order_id)
        payment_id: Gateway payment id (razorpay_payment_id)
        claimed_signature: Signature sent by the client (razorpay_signature)
        secret: Razorpay key secret

    Returns:
        True only when the recomputed signature matches exactly
    """
    if not order_id or not payment_id or not claimed_signature or not secret:
        logger.warning("🚫 Payment signature verification skipped: missing input")
        return False

    try:
        expected_signature = create_payment_signature(order_id, payment_id, secret)
        matched = constant_time_compare(expected_signature, claimed_signature)
    except Exception as e:
        logger.error(f"❌ Payment signature verification error for order {order_id}: {e}")
        return False

    if matched:
        logger.info(f"✅ Payment signature verified: order={order_id}, payment={payment_id}")
    else:
        logger.warning(f"🚫 Payment signature mismatch: order={order_id}, payment={payment_id}")
    return matched
