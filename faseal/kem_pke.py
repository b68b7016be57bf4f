"""The K-PKE public-key encryption scheme underlying ML-KEM-768."""

from __future__ import annotations

import hashlib

from .kem_poly import K, Poly, PolyVec

PKE_CT_LEN = 1088
PKE_PK_LEN = 1184
PKE_SK_LEN = 1152


def _checked(data, length: int, what: str) -> bytes:
    data = bytes(data)
    if len(data) != length:
        raise ValueError(f"{what} must be {length} bytes, got {len(data)}")
    return data


def _matrix(rho: bytes, transpose: bool) -> list[PolyVec]:
    """Expand the public matrix A (or its transpose) in NTT form."""
    rows = []
    for i in range(K):
        if transpose:
            polys = [Poly.sample_ntt(rho, j, i) for j in range(K)]
        else:
            polys = [Poly.sample_ntt(rho, i, j) for j in range(K)]
        rows.append(PolyVec(polys))
    return rows


def _cbd_vector(seed: bytes, first_nonce: int, *, to_ntt: bool) -> PolyVec:
    polys = []
    for nonce in range(first_nonce, first_nonce + K):
        poly = Poly.sample_cbd(seed, nonce)
        if to_ntt:
            poly.ntt()
            poly.reduce()
        polys.append(poly)
    return PolyVec(polys)


def k_pke_keygen(d) -> tuple[bytes, bytes]:
    """Derive an (encryption key, decryption key) pair from a 32-byte seed."""
    d = _checked(d, 32, "seed")
    rho_theta = hashlib.sha3_512(d + bytes([K])).digest()
    rho, theta = rho_theta[:32], rho_theta[32:]

    a_hat = _matrix(rho, transpose=False)
    s = _cbd_vector(theta, 0, to_ntt=True)
    e = _cbd_vector(theta, K, to_ntt=True)

    t_polys = []
    for row in a_hat:
        poly = row.mul_mont(s)
        poly.to_mont()
        t_polys.append(poly)
    t = PolyVec(t_polys)
    t.radd(e)
    t.reduce()

    return t.to_bytes() + rho, s.to_bytes()


def k_pke_encrypt(ek_pke, msg, r) -> bytes:
    """Encrypt a 32-byte message with explicit 32-byte randomness."""
    ek_pke = _checked(ek_pke, PKE_PK_LEN, "encryption key")
    msg = _checked(msg, 32, "message")
    r = _checked(r, 32, "randomness")

    t = PolyVec.from_bytes(ek_pke[:PolyVec.BYTES])
    rho = ek_pke[PolyVec.BYTES:]
    a_t = _matrix(rho, transpose=True)

    y = _cbd_vector(r, 0, to_ntt=True)
    e1 = _cbd_vector(r, K, to_ntt=False)
    e2 = Poly.sample_cbd(r, 2 * K)

    u_polys = []
    for row in a_t:
        poly = row.mul_mont(y)
        poly.inv_ntt()
        u_polys.append(poly)
    u = PolyVec(u_polys)
    u.radd(e1)
    u.reduce()

    v = t.mul_mont(y)
    v.inv_ntt()
    v.radd(e2)
    v.radd(Poly.from_msg(msg))
    v.reduce()

    return u.compress() + v.compress()


def k_pke_decrypt(ct, dk_pke) -> bytes:
    """Recover the 32-byte message from a ciphertext."""
    ct = _checked(ct, PKE_CT_LEN, "ciphertext")
    dk_pke = _checked(dk_pke, PKE_SK_LEN, "decryption key")

    u = PolyVec.decompress(ct[:PolyVec.COMPRESSED_BYTES])
    v = Poly.decompress(ct[PolyVec.COMPRESSED_BYTES:])
    s = PolyVec.from_bytes(dk_pke)

    for poly in u.polys:
        poly.ntt()
        poly.reduce()

    w = s.mul_mont(u)
    w.inv_ntt()
    w.lsub(v)
    w.reduce()
    return w.to_msg()