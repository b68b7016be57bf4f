import random

import pytest

from faseal.kem_poly import N, Q, Poly, PolyVec


def _rand_bytes(seed, n):
    return random.Random(seed).randbytes(n)


@pytest.mark.parametrize("seed", range(5))
def test_pack_msg_roundtrip(seed):
    msg = _rand_bytes(seed, 32)
    assert Poly.from_msg(msg).to_msg() == msg


@pytest.mark.parametrize("seed", range(5))
def test_poly_compress_roundtrip(seed):
    buf = _rand_bytes(seed, Poly.COMPRESSED_BYTES)
    assert Poly.decompress(buf).compress() == buf


@pytest.mark.parametrize("seed", range(5))
def test_poly_pack_roundtrip(seed):
    buf = _rand_bytes(seed, Poly.BYTES)
    assert Poly.from_bytes(buf).to_bytes() == buf


@pytest.mark.parametrize("seed", range(5))
def test_polyvec_compress_roundtrip(seed):
    buf = _rand_bytes(seed, PolyVec.COMPRESSED_BYTES)
    assert PolyVec.decompress(buf).compress() == buf


@pytest.mark.parametrize("seed", range(3))
def test_polyvec_pack_roundtrip(seed):
    buf = _rand_bytes(seed, PolyVec.BYTES)
    assert PolyVec.from_bytes(buf).to_bytes() == buf


def test_from_msg_uses_half_q():
    poly = Poly.from_msg(b"\x01" + bytes(31))
    assert poly.coeffs[0] == 1665
    assert poly.coeffs[1:] == [0] * (N - 1)


def test_sample_ntt_range_and_determinism():
    seed = bytes(range(32))
    a = Poly.sample_ntt(seed, 0, 1)
    b = Poly.sample_ntt(seed, 0, 1)
    c = Poly.sample_ntt(seed, 1, 0)
    assert a == b
    assert a != c
    assert all(0 <= x < Q for x in a.coeffs)


def test_sample_cbd_range_and_determinism():
    seed = bytes(32)
    a = Poly.sample_cbd(seed, 0)
    assert a == Poly.sample_cbd(seed, 0)
    assert a != Poly.sample_cbd(seed, 1)
    assert all(-2 <= x <= 2 for x in a.coeffs)


def test_ntt_inverse_gives_montgomery_form():
    poly = Poly.sample_cbd(bytes(range(32)), 7)
    expected = Poly(poly.coeffs)
    expected.to_mont()
    poly.ntt()
    poly.reduce()
    poly.inv_ntt()
    assert [x % Q for x in poly.coeffs] == [x % Q for x in expected.coeffs]


def _negacyclic_product(a, b):
    a_hat = Poly(a)
    b_hat = Poly(b)
    a_hat.ntt()
    a_hat.reduce()
    b_hat.ntt()
    b_hat.reduce()
    prod = a_hat.mul_mont(b_hat)
    prod.inv_ntt()
    return [x % Q for x in prod.coeffs]


def test_mul_by_one_is_identity():
    one = [1] + [0] * (N - 1)
    other = Poly.sample_cbd(bytes(32), 3).coeffs
    assert _negacyclic_product(one, other) == [x % Q for x in other]


def test_mul_wraps_negatively():
    x = [0, 1] + [0] * (N - 2)
    x255 = [0] * (N - 1) + [1]
    assert _negacyclic_product(x, x255) == [Q - 1] + [0] * (N - 1)


def test_radd_and_lsub():
    a = Poly([3] * N)
    b = Poly([5] * N)
    a.radd(b)
    assert a.coeffs == [8] * N
    a.lsub(b)
    assert a.coeffs == [-3] * N


def test_polyvec_mul_mont_of_zero_is_zero():
    vec = PolyVec([Poly.sample_ntt(bytes(32), i, 0) for i in range(3)])
    assert vec.mul_mont(PolyVec.zero()) == Poly.zero()


def test_polyvec_radd_and_reduce():
    a = PolyVec([Poly([Q] * N) for _ in range(3)])
    a.radd(PolyVec([Poly([1] * N) for _ in range(3)]))
    a.reduce()
    assert all(p.coeffs == [1] * N for p in a.polys)


def test_length_errors():
    with pytest.raises(ValueError):
        Poly.from_bytes(b"short")
    with pytest.raises(ValueError):
        Poly.decompress(bytes(10))
    with pytest.raises(ValueError):
        PolyVec.decompress(bytes(10))
    with pytest.raises(ValueError):
        Poly.sample_ntt(bytes(31), 0, 0)
    with pytest.raises(ValueError):
        Poly([0] * 10)