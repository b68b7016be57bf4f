"""Hybrid ML-DSA-65 + Ed25519 signatures with strong nesting.

The ML-DSA signature covers the message; the Ed25519 signature covers the
message followed by the ML-DSA signature. Both must verify.
"""

from __future__ import annotations

import secrets

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from . import mldsa
from .errors import InvalidPublicKeyError, InvalidSignatureError
from .mldsa_internal import keygen_internal

ED25519_SK_LEN = 32
ED25519_VK_LEN = 32
ED25519_SIG_LEN = 64

SIGNATURE_LEN = mldsa.SIG_LEN + ED25519_SIG_LEN
SIGNINGKEY_LEN = mldsa.SK_LEN + mldsa.VK_LEN + ED25519_SK_LEN + ED25519_VK_LEN
VERIFYINGKEY_LEN = mldsa.VK_LEN + ED25519_VK_LEN

_ED_OFFSET = mldsa.SK_LEN + mldsa.VK_LEN


def _checked(data, length: int, what: str) -> bytes:
    data = bytes(data)
    if len(data) != length:
        raise ValueError(f"{what} must be {length} bytes, got {len(data)}")
    return data


def _ed25519_public(seed: bytes) -> bytes:
    return (
        Ed25519PrivateKey.from_private_bytes(seed)
        .public_key()
        .public_bytes(Encoding.Raw, PublicFormat.Raw)
    )


def keygen_derand(m_seed, e_seed) -> tuple[bytes, bytes]:
    """Derive (signing key, verifying key) from the ML-DSA and Ed25519 seeds.

    The signing key holds each scheme's verifying key after its secret key.
    """
    m_seed = _checked(m_seed, 32, "ML-DSA seed")
    e_seed = _checked(e_seed, ED25519_SK_LEN, "Ed25519 seed")
    m_sk, m_vk = keygen_internal(m_seed)
    e_vk = _ed25519_public(e_seed)
    return m_sk + m_vk + e_seed + e_vk, m_vk + e_vk


def keygen() -> tuple[bytes, bytes]:
    """Generate a fresh (signing key, verifying key) pair."""
    return keygen_derand(secrets.token_bytes(32), secrets.token_bytes(32))


def to_verifying_key(signing_key) -> bytes:
    """Extract the verifying key embedded in a signing key."""
    signing_key = _checked(signing_key, SIGNINGKEY_LEN, "signing key")
    m_vk = signing_key[mldsa.SK_LEN:_ED_OFFSET]
    e_vk = signing_key[_ED_OFFSET + ED25519_SK_LEN:]
    return m_vk + e_vk


def sign(signing_key, message) -> bytes:
    """Produce the combined ML-DSA || Ed25519 signature."""
    signing_key = _checked(signing_key, SIGNINGKEY_LEN, "signing key")
    message = bytes(message)
    m_sk = signing_key[:mldsa.SK_LEN]
    e_sk = signing_key[_ED_OFFSET:_ED_OFFSET + ED25519_SK_LEN]

    m_sig = mldsa.sign(m_sk, message, b"")
    e_sig = Ed25519PrivateKey.from_private_bytes(e_sk).sign(message + m_sig)
    return m_sig + e_sig


def verify(verifying_key, message, signature) -> None:
    """Check both signatures; raise InvalidSignatureError if either fails."""
    verifying_key = _checked(verifying_key, VERIFYINGKEY_LEN, "verifying key")
    signature = _checked(signature, SIGNATURE_LEN, "signature")
    message = bytes(message)
    m_vk, e_vk = verifying_key[:mldsa.VK_LEN], verifying_key[mldsa.VK_LEN:]
    m_sig, e_sig = signature[:mldsa.SIG_LEN], signature[mldsa.SIG_LEN:]

    mldsa.verify(m_vk, message, m_sig, b"")

    try:
        public = Ed25519PublicKey.from_public_bytes(e_vk)
    except ValueError as exc:
        raise InvalidPublicKeyError() from exc
    try:
        public.verify(e_sig, message + m_sig)
    except InvalidSignature as exc:
        raise InvalidSignatureError() from exc