import hashlib

import pytest

from faseal.dsa_poly import GAMMA_1, K, L, Q, Poly
from faseal.errors import InvalidSignatureError
from faseal.mldsa_internal import (
    BETA,
    OFFSET_HINTS,
    OFFSET_Z,
    OMEGA,
    SIG_LEN,
    SK_LEN,
    VK_LEN,
    gen_matrix,
    keygen_internal,
    sign_internal,
    verify_internal,
)

SEED = bytes(range(32))
RND = bytes(32)
MESSAGE = b"Testing ML-DSA"


@pytest.fixture(scope="module")
def keys():
    return keygen_internal(SEED)


@pytest.fixture(scope="module")
def signature(keys):
    sk, _ = keys
    return sign_internal(sk, MESSAGE, RND, b"", b"")


def _coeffs(matrix):
    return [[list(poly.coeffs) for poly in row] for row in matrix]


def test_key_lengths(keys):
    sk, vk = keys
    assert len(sk) == SK_LEN
    assert len(vk) == VK_LEN


def test_key_layout(keys):
    sk, vk = keys
    assert sk[:32] == vk[:32]
    assert sk[64:128] == hashlib.shake_256(vk).digest(64)


def test_keygen_is_deterministic(keys):
    assert keygen_internal(SEED) == keys


def test_keygen_depends_on_seed(keys):
    other_sk, other_vk = keygen_internal(bytes(31) + b"\x01")
    assert other_vk[:32] != keys[1][:32]
    assert other_sk != keys[0]


def test_keygen_rejects_bad_seed_length():
    with pytest.raises(ValueError):
        keygen_internal(bytes(31))


def test_gen_matrix_shape_and_range():
    matrix = gen_matrix(SEED)
    assert len(matrix) == K
    assert all(len(row) == L for row in matrix)
    assert all(0 <= c <= Q for row in matrix for poly in row for c in poly.coeffs)


def test_gen_matrix_is_deterministic():
    first = _coeffs(gen_matrix(SEED))
    assert all(len(poly) == 256 for row in first for poly in row)
    assert _coeffs(gen_matrix(SEED)) == first
    assert _coeffs(gen_matrix(bytes(32)))[0][0] != first[0][0]


def test_signature_length(signature):
    assert len(signature) == SIG_LEN


def test_sign_verify_round_trip(keys, signature):
    _, vk = keys
    assert verify_internal(vk, MESSAGE, signature, b"", b"") is None


def test_deterministic_signing(keys, signature):
    sk, _ = keys
    assert sign_internal(sk, MESSAGE, RND, b"", b"") == signature


def test_signature_response_within_bound(signature):
    chunks = [
        signature[OFFSET_Z + i * Poly.GAMMA_BYTES:OFFSET_Z + (i + 1) * Poly.GAMMA_BYTES]
        for i in range(L)
    ]
    for chunk in chunks:
        assert Poly.unpack_gamma(chunk).check_norm(GAMMA_1 - BETA)


def test_signature_hint_counts_are_monotone(signature):
    counts = list(signature[OFFSET_HINTS + OMEGA:])
    assert len(counts) == K
    assert counts == sorted(counts)
    assert counts[-1] <= OMEGA


def test_wrong_message_fails(keys, signature):
    _, vk = keys
    with pytest.raises(InvalidSignatureError):
        verify_internal(vk, b"Testing ML-DSB", signature, b"", b"")


def test_context_is_bound(keys):
    sk, vk = keys
    ctx = b"archive"
    sig = sign_internal(sk, MESSAGE, RND, bytes([0, len(ctx)]), ctx)
    assert verify_internal(vk, MESSAGE, sig, bytes([0, len(ctx)]), ctx) is None
    with pytest.raises(InvalidSignatureError):
        verify_internal(vk, MESSAGE, sig, b"", b"")


def test_tampered_commitment_fails(keys, signature):
    _, vk = keys
    bad = bytearray(signature)
    bad[0] ^= 0x01
    with pytest.raises(InvalidSignatureError):
        verify_internal(vk, MESSAGE, bytes(bad), b"", b"")


def test_out_of_range_response_fails(keys, signature):
    _, vk = keys
    bad = bytearray(signature)
    bad[OFFSET_Z:OFFSET_Z + 5] = bytes(5)
    with pytest.raises(InvalidSignatureError):
        verify_internal(vk, MESSAGE, bytes(bad), b"", b"")


def test_hint_count_too_large_fails(keys, signature):
    _, vk = keys
    bad = bytearray(signature)
    bad[OFFSET_HINTS + OMEGA] = OMEGA + 1
    with pytest.raises(InvalidSignatureError):
        verify_internal(vk, MESSAGE, bytes(bad), b"", b"")


def test_nonzero_hint_padding_fails(keys, signature):
    _, vk = keys
    bad = bytearray(signature)
    bad[OFFSET_HINTS:] = bytes(SIG_LEN - OFFSET_HINTS)
    bad[OFFSET_HINTS] = 1
    with pytest.raises(InvalidSignatureError):
        verify_internal(vk, MESSAGE, bytes(bad), b"", b"")


def test_wrong_key_fails(signature):
    _, other_vk = keygen_internal(bytes([7]) * 32)
    with pytest.raises(InvalidSignatureError):
        verify_internal(other_vk, MESSAGE, signature, b"", b"")


def test_wrong_lengths_raise_value_error(keys, signature):
    sk, vk = keys
    with pytest.raises(ValueError):
        sign_internal(sk[:-1], MESSAGE, RND, b"", b"")
    with pytest.raises(ValueError):
        sign_internal(sk, MESSAGE, bytes(31), b"", b"")
    with pytest.raises(ValueError):
        verify_internal(vk, MESSAGE, signature[:-1], b"", b"")
    with pytest.raises(ValueError):
        verify_internal(vk[:-1], MESSAGE, signature, b"", b"")