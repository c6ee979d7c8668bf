"""HMAC-SHA256 verification of GitHub webhook deliveries."""

import hashlib
import hmac

SIGNATURE_PREFIX = "sha256="


def compute_signature(raw_body: bytes, secret: bytes) -> str:
    """Return the ``X-Hub-Signature-256`` value GitHub would send for *raw_body*."""
    digest = hmac.new(secret, msg=raw_body, digestmod=hashlib.sha256).hexdigest()
    return SIGNATURE_PREFIX + digest


def validate_signature(raw_body: bytes, claimed_signature: str | None, secret: bytes) -> bool:
    """Check a claimed signature against the exact request bytes.

    The comparison is constant-time via :func:`hmac.compare_digest`. A length
    mismatch returns early since the expected length is public.
    """
    if not claimed_signature:
        return False

    expected = compute_signature(raw_body, secret)
    if len(claimed_signature) != len(expected):
        return False
    return hmac.compare_digest(expected.encode("ascii"), claimed_signature.encode("utf-8"))
