import hashlib
import hmac
from typing import Optional

SIGNATURE_HEADER = "x-paystack-signature"


def compute_signature(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha512).hexdigest()


def verify_signature(body: bytes, signature: Optional[str], secret: Optional[str]) -> bool:
    """Check Paystack's HMAC-SHA512 of the raw request body in constant time."""
    if not signature or not secret:
        return False
    expected = compute_signature(body, secret)
    return hmac.compare_digest(expected.encode("utf-8"), signature.strip().encode("utf-8"))
