"""WeChat wire format and signature helpers."""

from .codec import parse_inbound, render_reply
from .signature import compute_signature, verify_signature

__all__ = ["parse_inbound", "render_reply", "compute_signature", "verify_signature"]
