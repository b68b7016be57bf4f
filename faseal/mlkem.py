"""ML-KEM-768 key encapsulation with explicit randomness."""

from __future__ import annotations

import hashlib
import hmac

from .kem_pke import (
    PKE_CT_LEN,
    PKE_PK_LEN,
    PKE_SK_LEN,
    k_pke_decrypt,
    k_pke_encrypt,
    k_pke_keygen,
)

ENCAPSKEY_LEN = PKE_PK_LEN
DECAPSKEY_LEN = PKE_SK_LEN + ENCAPSKEY_LEN + 64
CIPHERTEXT_LEN = PKE_CT_LEN
SHARED_LEN = 32

OFFSET_EK = PKE_SK_LEN
OFFSET_HASH_EK = PKE_SK_LEN + PKE_PK_LEN
OFFSET_Z = OFFSET_HASH_EK + 32


def _checked(data, length: int, what: str) -> bytes:
    data = bytes(data)
    if len(data) != length:
        raise ValueError(f"{what} must be {length} bytes, got {len(data)}")
    return data


def keygen_derand(d, z) -> tuple[bytes, bytes]:
    """Derive (encapsulation key, decapsulation key) from two 32-byte seeds."""
    d = _checked(d, 32, "seed d")
    z = _checked(z, 32, "seed z")
    ek, dk_pke = k_pke_keygen(d)
    dk = dk_pke + ek + hashlib.sha3_256(ek).digest() + z
    return ek, dk


def encaps_derand(ek, m) -> tuple[bytes, bytes]:
    """Encapsulate with a 32-byte message seed; return (shared secret, ciphertext)."""
    ek = _checked(ek, ENCAPSKEY_LEN, "encapsulation key")
    m = _checked(m, 32, "message seed")
    h = hashlib.sha3_256(ek).digest()
    k_r = hashlib.sha3_512(m + h).digest()
    ct = k_pke_encrypt(ek, m, k_r[32:])
    return k_r[:32], ct


def decaps(dk, ct) -> bytes:
    """Recover the shared secret, with implicit rejection of bad ciphertexts."""
    dk = _checked(dk, DECAPSKEY_LEN, "decapsulation key")
    ct = _checked(ct, CIPHERTEXT_LEN, "ciphertext")
    dk_pke = dk[:OFFSET_EK]
    ek_pke = dk[OFFSET_EK:OFFSET_HASH_EK]
    h = dk[OFFSET_HASH_EK:OFFSET_Z]
    z = dk[OFFSET_Z:]

    m = k_pke_decrypt(ct, dk_pke)
    k_r = hashlib.sha3_512(m + h).digest()
    rejected = hashlib.shake_256(z + ct).digest(SHARED_LEN)
    ct_prime = k_pke_encrypt(ek_pke, m, k_r[32:])

    if hmac.compare_digest(ct_prime, ct):
        return k_r[:32]
    return rejected