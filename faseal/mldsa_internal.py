"""Internal ML-DSA-65 key generation, signing and verification (FIPS 204)."""

from __future__ import annotations

import hashlib
import hmac

from .dsa_poly import (
    ETA,
    GAMMA_1,
    GAMMA_2,
    K,
    L,
    LAMBDA4,
    TAU,
    Poly,
    PolyVec,
)
from .errors import InvalidSignatureError

SIG_LEN = 3309
SK_LEN = 4032
VK_LEN = 1952

OMEGA = 55
BETA = ETA * TAU

OFFSET_S1 = 128
OFFSET_S2 = OFFSET_S1 + Poly.ETA_BYTES * L
OFFSET_T0 = OFFSET_S2 + Poly.ETA_BYTES * K
OFFSET_Z = LAMBDA4
OFFSET_HINTS = OFFSET_Z + Poly.GAMMA_BYTES * L


def _checked(data, length: int, what: str) -> bytes:
    data = bytes(data)
    if len(data) != length:
        raise ValueError(f"{what} must be {length} bytes, got {len(data)}")
    return data


def _chunks(data: bytes, size: int):
    return (data[i:i + size] for i in range(0, len(data), size))


def _shake256(*parts: bytes, length: int) -> bytes:
    return hashlib.shake_256(b"".join(parts)).digest(length)


def _copy(vec: PolyVec) -> PolyVec:
    return PolyVec([Poly(p.coeffs) for p in vec])


def _times(matrix: list[PolyVec], vec: PolyVec) -> PolyVec:
    return PolyVec([row.dot_mont(vec) for row in matrix])


def _pack_w1(w1: PolyVec) -> bytes:
    return b"".join(p.pack_w1() for p in w1)


def gen_matrix(rho) -> list[PolyVec]:
    """Expand the public matrix A-hat (K rows of L polynomials) from a 32-byte seed."""
    rho = _checked(rho, 32, "rho")
    return [PolyVec([Poly.sample_ntt(rho, s, r) for s in range(L)]) for r in range(K)]


def keygen_internal(seed) -> tuple[bytes, bytes]:
    """Derive (signing key, verifying key) from a 32-byte seed."""
    seed = _checked(seed, 32, "seed")
    buf = _shake256(seed, bytes([K, L]), length=128)
    rho, rhoprime, key = buf[:32], buf[32:96], buf[96:]

    a_hat = gen_matrix(rho)
    s1 = PolyVec([Poly.sample_bounded(rhoprime, r) for r in range(L)])
    s2 = PolyVec([Poly.sample_bounded(rhoprime, L + r) for r in range(K)])

    s1_hat = _copy(s1)
    s1_hat.ntt()
    t1 = _times(a_hat, s1_hat)
    t1.reduce()
    t1.inv_ntt()
    t1.radd(s2)

    t0 = PolyVec([poly.power2round() for poly in t1])

    verifying_key = rho + b"".join(p.pack_t1() for p in t1)
    signing_key = b"".join((
        rho,
        key,
        _shake256(verifying_key, length=64),
        b"".join(p.pack_eta() for p in s1),
        b"".join(p.pack_eta() for p in s2),
        b"".join(p.pack_t0() for p in t0),
    ))
    return signing_key, verifying_key


def _unpack_ntt(data: bytes, size: int, unpack) -> PolyVec:
    polys = []
    for chunk in _chunks(data, size):
        poly = unpack(chunk)
        poly.ntt()
        polys.append(poly)
    return PolyVec(polys)


def _encode_hints(hint: PolyVec) -> bytes:
    out = bytearray(OMEGA + K)
    idx = 0
    for i, poly in enumerate(hint):
        for j, coef in enumerate(poly.coeffs):
            if coef:
                out[idx] = j
                idx += 1
        out[OMEGA + i] = idx
    return bytes(out)


def _decode_hints(sigh: bytes) -> PolyVec:
    hint = PolyVec.zero(K)
    idx = 0
    for i, poly in enumerate(hint):
        end = sigh[OMEGA + i]
        if end < idx or end > OMEGA:
            raise InvalidSignatureError()
        for j in range(idx, end):
            if j > idx and sigh[j] <= sigh[j - 1]:
                raise InvalidSignatureError()
            poly.coeffs[sigh[j]] = 1
        idx = end
    if any(sigh[idx:OMEGA]):
        raise InvalidSignatureError()
    return hint


def sign_internal(signing_key, message, rnd, pre, ctx) -> bytes:
    """Sign ``pre || ctx || message`` with 32 bytes of explicit randomness."""
    signing_key = _checked(signing_key, SK_LEN, "signing key")
    rnd = _checked(rnd, 32, "randomness")
    message, pre, ctx = bytes(message), bytes(pre), bytes(ctx)

    rho = signing_key[:32]
    key = signing_key[32:64]
    tr = signing_key[64:128]
    s1 = _unpack_ntt(signing_key[OFFSET_S1:OFFSET_S2], Poly.ETA_BYTES, Poly.unpack_eta)
    s2 = _unpack_ntt(signing_key[OFFSET_S2:OFFSET_T0], Poly.ETA_BYTES, Poly.unpack_eta)
    t0 = _unpack_ntt(signing_key[OFFSET_T0:], Poly.T0_BYTES, Poly.unpack_t0)

    a_hat = gen_matrix(rho)
    mu = _shake256(tr, pre, ctx, message, length=64)
    rho_second = _shake256(key, rnd, mu, length=64)

    kappa = 0
    while True:
        y = PolyVec([Poly.sample_gamma(rho_second, kappa + i) for i in range(L)])
        kappa += L

        y_hat = _copy(y)
        y_hat.ntt()
        w1 = _times(a_hat, y_hat)
        w1.reduce()
        w1.inv_ntt()
        w0 = PolyVec([poly.decompose() for poly in w1])

        ctilde = _shake256(mu, _pack_w1(w1), length=LAMBDA4)
        c = Poly.sample_in_ball(ctilde)
        c.ntt()

        z = PolyVec([c.mul_mont(poly) for poly in s1])
        z.inv_ntt()
        z.radd(y)
        z.reduce()
        if not z.check_norm(GAMMA_1 - BETA):
            continue

        cs2 = PolyVec([c.mul_mont(poly) for poly in s2])
        cs2.inv_ntt()
        w0.rsub(cs2)
        w0.reduce()
        if not w0.check_norm(GAMMA_2 - BETA):
            continue

        ct0 = PolyVec([c.mul_mont(poly) for poly in t0])
        ct0.inv_ntt()
        ct0.reduce()
        if not ct0.check_norm(GAMMA_2):
            continue

        w0.radd(ct0)
        hint, count = PolyVec.make_hint(w0, w1)
        if count <= OMEGA:
            break

    return ctilde + b"".join(p.pack_gamma() for p in z) + _encode_hints(hint)


def verify_internal(verifying_key, message, signature, pre, ctx) -> None:
    """Check a signature; raise InvalidSignatureError if it does not verify."""
    verifying_key = _checked(verifying_key, VK_LEN, "verifying key")
    signature = _checked(signature, SIG_LEN, "signature")
    message, pre, ctx = bytes(message), bytes(pre), bytes(ctx)

    rho = verifying_key[:32]
    t1 = PolyVec([Poly.unpack_t1(chunk) for chunk in _chunks(verifying_key[32:], Poly.T1_BYTES)])

    ctilde = signature[:LAMBDA4]
    z = PolyVec([
        Poly.unpack_gamma(chunk)
        for chunk in _chunks(signature[OFFSET_Z:OFFSET_HINTS], Poly.GAMMA_BYTES)
    ])
    if not z.check_norm(GAMMA_1 - BETA):
        raise InvalidSignatureError()
    hint = _decode_hints(signature[OFFSET_HINTS:])

    a_hat = gen_matrix(rho)
    tr = _shake256(verifying_key, length=64)
    mu = _shake256(tr, pre, ctx, message, length=64)

    c = Poly.sample_in_ball(ctilde)
    z.ntt()
    w1 = _times(a_hat, z)

    c.ntt()
    t1.shiftl()
    t1.ntt()
    ct1 = PolyVec([poly.mul_mont(c) for poly in t1])

    w1.rsub(ct1)
    w1.reduce()
    w1.inv_ntt()
    w1.use_hint(hint)

    ctilde_prime = _shake256(mu, _pack_w1(w1), length=LAMBDA4)
    if not hmac.compare_digest(ctilde, ctilde_prime):
        raise InvalidSignatureError()