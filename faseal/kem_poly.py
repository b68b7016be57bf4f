"""Polynomial arithmetic for ML-KEM-768 over Z_q[X]/(X^256 + 1)."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import ClassVar, Iterator

N = 256
Q = 3329
K = 3

_QINV = -3327  # q^-1 mod 2^16
_MONT_SQ = 1353  # 2^32 mod q
_INV_NTT_F = 1441

ZETAS = (
    -1044, -758, -359, -1517, 1493, 1422, 287, 202,
    -171, 622, 1577, 182, 962, -1202, -1474, 1468,
    573, -1325, 264, 383, -829, 1458, -1602, -130,
    -681, 1017, 732, 608, -1542, 411, -205, -1571,
    1223, 652, -552, 1015, -1293, 1491, -282, -1544,
    516, -8, -320, -666, -1618, -1162, 126, 1469,
    -853, -90, -271, 830, 107, -1421, -247, -951,
    -398, 961, -1508, -725, 448, -1065, 677, -1275,
    -1103, 430, 555, 843, -1251, 871, 1550, 105,
    422, 587, 177, -235, -291, -460, 1574, 1653,
    -246, 778, 1159, -147, -777, 1483, -602, 1119,
    -1590, 644, -872, 349, 418, 329, -156, -75,
    817, 1097, 603, 610, 1322, -1285, -1465, 384,
    -1215, -136, 1218, -1335, -874, 220, -1187, -1659,
    -1185, -1530, -1278, 794, -1510, -854, -870, 478,
    -108, -308, 996, 991, 958, -1460, 1522, 1628,
)

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF
_FIVES = 0x5555555555555555


def _i16(x: int) -> int:
    return ((x + 0x8000) & 0xFFFF) - 0x8000


def _fqmul(a: int, b: int) -> int:
    d = a * b
    t = _i16(_i16(d) * _QINV)
    return _i16((d - t * Q) >> 16)


def _barrett_reduce(a: int) -> int:
    t = _i16((20159 * a + (1 << 25)) >> 26)
    t = _i16(t * Q)
    return _i16(a - t)


def _mont_reduce(a: int) -> int:
    t = _i16(_i16(a) * _QINV)
    return _i16((a - t * Q) >> 16)


def _canonical(coef: int) -> int:
    """Map a coefficient in (-q, q) into [0, q) as the 16-bit packers expect."""
    return (coef + ((coef >> 15) & Q)) & 0xFFFF


def _require_len(data, length: int, what: str) -> bytes:
    data = bytes(data)
    if len(data) != length:
        raise ValueError(f"{what} must be {length} bytes, got {len(data)}")
    return data


def _xof_stream(factory, data: bytes, block: int) -> Iterator[int]:
    """Yield an endless stream of bytes from an extendable-output function."""
    length = 3 * block
    offset = 0
    while True:
        out = factory(data).digest(length)
        yield from out[offset:]
        offset = length
        length *= 2


@dataclass(eq=True)
class Poly:
    """A polynomial with 256 signed 16-bit coefficients."""

    coeffs: list[int] = field(default_factory=lambda: [0] * N)

    BYTES: ClassVar[int] = 384
    COMPRESSED_BYTES: ClassVar[int] = 128

    def __post_init__(self):
        self.coeffs = list(self.coeffs)
        if len(self.coeffs) != N:
            raise ValueError(f"a polynomial has {N} coefficients, got {len(self.coeffs)}")

    @classmethod
    def zero(cls) -> Poly:
        return cls()

    @classmethod
    def sample_ntt(cls, seed, i: int, j: int) -> Poly:
        """Uniformly sample a polynomial in NTT form from SHAKE128(seed || j || i)."""
        seed = _require_len(seed, 32, "seed")
        stream = _xof_stream(hashlib.shake_128, seed + bytes([j, i]), 168)
        coeffs: list[int] = []
        for c0, c1, c2 in zip(stream, stream, stream):
            d1 = c0 | ((c1 & 0xF) << 8)
            d2 = (c1 >> 4) | (c2 << 4)
            if d1 < Q:
                coeffs.append(d1)
            if d2 < Q and len(coeffs) < N:
                coeffs.append(d2)
            if len(coeffs) == N:
                break
        return cls(coeffs)

    @classmethod
    def sample_cbd(cls, seed, nonce: int) -> Poly:
        """Sample from the centred binomial distribution with eta = 2."""
        seed = _require_len(seed, 32, "seed")
        buffer = hashlib.shake_256(seed + bytes([nonce])).digest(128)
        coeffs: list[int] = []
        for start in range(0, len(buffer), 8):
            t = int.from_bytes(buffer[start:start + 8], "little")
            d = ((t & _FIVES) + ((t >> 1) & _FIVES)) & _MASK64
            coeffs.extend(
                ((d >> (4 * i)) & 0x3) - ((d >> (4 * i + 2)) & 0x3) for i in range(16)
            )
        return cls(coeffs)

    def ntt(self) -> None:
        """Forward number-theoretic transform, in place; output is not reduced."""
        c = self.coeffs
        k = 1
        for length in (128, 64, 32, 16, 8, 4, 2):
            for start in range(0, N, 2 * length):
                zeta = ZETAS[k]
                k += 1
                for j in range(start, start + length):
                    t = _fqmul(zeta, c[j + length])
                    c[j + length] = _i16(c[j] - t)
                    c[j] = _i16(c[j] + t)

    def inv_ntt(self) -> None:
        """Inverse transform in place, multiplying by the Montgomery factor 2^16."""
        c = self.coeffs
        k = 127
        for length in (2, 4, 8, 16, 32, 64, 128):
            for start in range(0, N, 2 * length):
                zeta = ZETAS[k]
                k -= 1
                for j in range(start, start + length):
                    t = c[j]
                    c[j] = _barrett_reduce(_i16(t + c[j + length]))
                    c[j + length] = _fqmul(zeta, _i16(c[j + length] - t))
        self.coeffs = [_fqmul(coef, _INV_NTT_F) for coef in c]

    def radd(self, other: Poly) -> None:
        """Add ``other`` into this polynomial."""
        self.coeffs = [_i16(a + b) for a, b in zip(self.coeffs, other.coeffs)]

    def lsub(self, other: Poly) -> None:
        """Replace this polynomial with ``other - self``."""
        self.coeffs = [_i16(b - a) for a, b in zip(self.coeffs, other.coeffs)]

    def reduce(self) -> None:
        """Barrett-reduce every coefficient."""
        self.coeffs = [_barrett_reduce(c) for c in self.coeffs]

    def to_mont(self) -> None:
        """Convert every coefficient to Montgomery form."""
        self.coeffs = [_mont_reduce(c * _MONT_SQ) for c in self.coeffs]

    def mul_mont(self, other: Poly) -> Poly:
        """Pointwise product of two NTT-form polynomials, with a factor 2^-16."""
        a = self.coeffs
        b = other.coeffs
        r = [0] * N
        for base, zeta in zip(range(0, N, 4), ZETAS[64:]):
            for i, z in ((base, zeta), (base + 2, -zeta)):
                r[i] = _i16(_fqmul(_fqmul(a[i + 1], b[i + 1]), z) + _fqmul(a[i], b[i]))
                r[i + 1] = _i16(_fqmul(a[i], b[i + 1]) + _fqmul(a[i + 1], b[i]))
        return Poly(r)

    def to_bytes(self) -> bytes:
        """Serialise as 12-bit coefficients."""
        out = bytearray()
        for first, second in zip(self.coeffs[0::2], self.coeffs[1::2]):
            t0 = _canonical(first)
            t1 = _canonical(second)
            out += bytes((t0 & 0xFF, ((t0 >> 8) | (t1 << 4)) & 0xFF, (t1 >> 4) & 0xFF))
        return bytes(out)

    @classmethod
    def from_bytes(cls, data) -> Poly:
        data = _require_len(data, cls.BYTES, "encoded polynomial")
        coeffs: list[int] = []
        for start in range(0, len(data), 3):
            b0, b1, b2 = data[start:start + 3]
            coeffs.append(b0 | ((b1 & 0xF) << 8))
            coeffs.append((b1 >> 4) | (b2 << 4))
        return cls(coeffs)

    @classmethod
    def from_msg(cls, msg) -> Poly:
        """Map each bit of a 32-byte message to 0 or (q + 1) / 2."""
        msg = _require_len(msg, 32, "message")
        return cls([1665 if (byte >> j) & 1 else 0 for byte in msg for j in range(8)])

    def to_msg(self) -> bytes:
        """Round every coefficient to one bit and pack into 32 bytes."""
        out = bytearray()
        for start in range(0, N, 8):
            byte = 0
            for j, coef in enumerate(self.coeffs[start:start + 8]):
                t = ((coef & _MASK32) << 1) & _MASK32
                t = (t + 1665) & _MASK32
                t = (t * 80_635) & _MASK32
                byte |= ((t >> 28) & 1) << j
            out.append(byte)
        return bytes(out)

    def compress(self) -> bytes:
        """Compress to 4 bits per coefficient."""
        nibbles = []
        for coef in self.coeffs:
            d0 = ((_canonical(coef) << 4) + 1665) & _MASK32
            d0 = (d0 * 80_635) & _MASK32
            nibbles.append((d0 >> 28) & 0xF)
        return bytes(lo | (hi << 4) for lo, hi in zip(nibbles[0::2], nibbles[1::2]))

    @classmethod
    def decompress(cls, data) -> Poly:
        data = _require_len(data, cls.COMPRESSED_BYTES, "compressed polynomial")
        coeffs: list[int] = []
        for byte in data:
            coeffs.append(((byte & 0xF) * Q + 8) >> 4)
            coeffs.append(((byte >> 4) * Q + 8) >> 4)
        return cls(coeffs)


@dataclass(eq=True)
class PolyVec:
    """A vector of three polynomials."""

    polys: list[Poly] = field(default_factory=lambda: [Poly() for _ in range(K)])

    BYTES: ClassVar[int] = Poly.BYTES * K
    COMPRESSED_BYTES: ClassVar[int] = 960

    def __post_init__(self):
        self.polys = list(self.polys)
        if len(self.polys) != K:
            raise ValueError(f"a vector holds {K} polynomials, got {len(self.polys)}")

    @classmethod
    def zero(cls) -> PolyVec:
        return cls()

    def mul_mont(self, other: PolyVec) -> Poly:
        """Inner product of two NTT-form vectors, reduced."""
        first, *rest = (a.mul_mont(b) for a, b in zip(self.polys, other.polys))
        for term in rest:
            first.radd(term)
        first.reduce()
        return first

    def radd(self, other: PolyVec) -> None:
        for a, b in zip(self.polys, other.polys):
            a.radd(b)

    def reduce(self) -> None:
        for poly in self.polys:
            poly.reduce()

    def to_bytes(self) -> bytes:
        return b"".join(poly.to_bytes() for poly in self.polys)

    @classmethod
    def from_bytes(cls, data) -> PolyVec:
        data = _require_len(data, cls.BYTES, "encoded vector")
        size = Poly.BYTES
        return cls([Poly.from_bytes(data[i:i + size]) for i in range(0, len(data), size)])

    def compress(self) -> bytes:
        """Compress to 10 bits per coefficient."""
        out = bytearray()
        for poly in self.polys:
            for start in range(0, N, 4):
                t = []
                for coef in poly.coeffs[start:start + 4]:
                    d0 = ((_canonical(coef) << 10) + 1665) * 1_290_167
                    t.append((d0 >> 32) & 0x3FF)
                out += bytes((
                    t[0] & 0xFF,
                    ((t[0] >> 8) | (t[1] << 2)) & 0xFF,
                    ((t[1] >> 6) | (t[2] << 4)) & 0xFF,
                    ((t[2] >> 4) | (t[3] << 6)) & 0xFF,
                    (t[3] >> 2) & 0xFF,
                ))
        return bytes(out)

    @classmethod
    def decompress(cls, data) -> PolyVec:
        data = _require_len(data, cls.COMPRESSED_BYTES, "compressed vector")
        chunk = cls.COMPRESSED_BYTES // K
        polys = []
        for offset in range(0, len(data), chunk):
            part = data[offset:offset + chunk]
            coeffs: list[int] = []
            for start in range(0, chunk, 5):
                s0, s1, s2, s3, s4 = part[start:start + 5]
                words = (
                    s0 | (s1 << 8),
                    (s1 >> 2) | (s2 << 6),
                    (s2 >> 4) | (s3 << 4),
                    (s3 >> 6) | (s4 << 2),
                )
                coeffs.extend((((w & 0x3FF) * Q + 512) >> 10) for w in words)
            polys.append(Poly(coeffs))
        return cls(polys)