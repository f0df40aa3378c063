"""WeChat server signature verification."""

import hashlib
import hmac

from ..errors import InvalidSignature


def compute_signature(token: str, timestamp: str, nonce: str) -> str:
    """SHA-1 hex digest of token, timestamp and nonce sorted and concatenated."""
    joined = "".join(sorted([token, timestamp, nonce]))
    return hashlib.sha1(joined.encode("utf-8")).hexdigest()


def verify_signature(token: str, signature: str, timestamp: str, nonce: str) -> None:
    """Raise InvalidSignature unless the signature matches."""
    expected = compute_signature(token, timestamp, nonce)
    if not hmac.compare_digest(expected.encode(), signature.encode()):
        raise InvalidSignature("Invalid signature")
