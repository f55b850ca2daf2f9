"""HMAC-SHA256 signatures for gateway payment callbacks.

The gateway signs ``"<intent_id>|<settlement_id>"`` with the merchant
secret and sends the hex digest along with the callback.
"""

import hashlib
import hmac


def compute_signature(secret: str, intent_id: str, settlement_id: str) -> str:
    payload = f"{intent_id}|{settlement_id}".encode()
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def signature_matches(secret: str, intent_id: str, settlement_id: str, signature: str | None) -> bool:
    """Constant-time comparison of the received signature with the expected one."""
    if not signature or not secret:
        return False
    expected = compute_signature(secret, intent_id, settlement_id)
    return hmac.compare_digest(expected, signature.lower())
