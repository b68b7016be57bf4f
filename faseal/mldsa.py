"""ML-DSA-65 signatures with a context string (FIPS 204, pure variant)."""

from __future__ import annotations

import secrets

from .errors import ContextTooLongError
from .mldsa_internal import SIG_LEN, SK_LEN, VK_LEN, sign_internal, verify_internal

MAX_CONTEXT_LEN = 255

__all__ = ["SIG_LEN", "SK_LEN", "VK_LEN", "MAX_CONTEXT_LEN", "sign", "verify"]


def _prefix(ctx: bytes) -> bytes:
    if len(ctx) > MAX_CONTEXT_LEN:
        raise ContextTooLongError()
    return bytes([0, len(ctx)])


def sign(signing_key, message, ctx=b"") -> bytes:
    """Sign ``message`` under ``ctx`` with fresh randomness."""
    ctx = bytes(ctx)
    pre = _prefix(ctx)
    rnd = secrets.token_bytes(32)
    return sign_internal(signing_key, message, rnd, pre, ctx)


def verify(verifying_key, message, signature, ctx=b"") -> None:
    """Check a signature; raise InvalidSignatureError if it does not verify."""
    ctx = bytes(ctx)
    verify_internal(verifying_key, message, signature, _prefix(ctx), ctx)