"""Polynomial arithmetic for ML-DSA-65 over Z_q[X]/(X^256 + 1)."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from itertools import islice
from typing import Callable, ClassVar, Iterator

N = 256
Q = 8_380_417
QINV = 58_728_449  # q^-1 mod 2^32
K = 6
L = 5
ETA = 4
TAU = 49
LAMBDA4 = 48
GAMMA_1 = 1 << 19
GAMMA_2 = (Q - 1) // 32
D = 13

_INV_NTT_F = 41_978
_MASK32 = 0xFFFFFFFF

ZETAS = (
    0, 25847, -2608894, -518909, 237124, -777960, -876248, 466468,
    1826347, 2353451, -359251, -2091905, 3119733, -2884855, 3111497, 2680103,
    2725464, 1024112, -1079900, 3585928, -549488, -1119584, 2619752, -2108549,
    -2118186, -3859737, -1399561, -3277672, 1757237, -19422, 4010497, 280005,
    2706023, 95776, 3077325, 3530437, -1661693, -3592148, -2537516, 3915439,
    -3861115, -3043716, 3574422, -2867647, 3539968, -300467, 2348700, -539299,
    -1699267, -1643818, 3505694, -3821735, 3507263, -2140649, -1600420, 3699596,
    811944, 531354, 954230, 3881043, 3900724, -2556880, 2071892, -2797779,
    -3930395, -1528703, -3677745, -3041255, -1452451, 3475950, 2176455, -1585221,
    -1257611, 1939314, -4083598, -1000202, -3190144, -3157330, -3632928, 126922,
    3412210, -983419, 2147896, 2715295, -2967645, -3693493, -411027, -2477047,
    -671102, -1228525, -22981, -1308169, -381987, 1349076, 1852771, -1430430,
    -3343383, 264944, 508951, 3097992, 44288, -1100098, 904516, 3958618,
    -3724342, -8578, 1653064, -3249728, 2389356, -210977, 759969, -1316856,
    189548, -3553272, 3159746, -1851402, -2409325, -177440, 1315589, 1341330,
    1285669, -1584928, -812732, -1439742, -3019102, -3881060, -3628969, 3839961,
    2091667, 3407706, 2316500, 3817976, -3342478, 2244091, -2446433, -3562462,
    266997, 2434439, -1235728, 3513181, -3520352, -3759364, -1197226, -3193378,
    900702, 1859098, 909542, 819034, 495491, -1613174, -43260, -522500,
    -655327, -3122442, 2031748, 3207046, -3556995, -525098, -768622, -3595838,
    342297, 286988, -2437823, 4108315, 3437287, -3342277, 1735879, 203044,
    2842341, 2691481, -2590150, 1265009, 4055324, 1247620, 2486353, 1595974,
    -3767016, 1250494, 2635921, -3548272, -2994039, 1869119, 1903435, -1050970,
    -1333058, 1237275, -3318210, -1430225, -451100, 1312455, 3306115, -1962642,
    -1279661, 1917081, -2546312, -1374803, 1500165, 777191, 2235880, 3406031,
    -542412, -2831860, -1671176, -1846953, -2584293, -3724270, 594136, -3776993,
    -2013608, 2432395, 2454455, -164721, 1957272, 3369112, 185531, -1207385,
    -3183426, 162844, 1616392, 3014001, 810149, 1652634, -3694233, -1799107,
    -3038916, 3523897, 3866901, 269760, 2213111, -975884, 1717735, 472078,
    -426683, 1723600, -1803090, 1910376, -1667432, -1104333, -260646, -3833893,
    -2939036, -2235985, -420899, -2286327, 183443, -976891, 1612842, -3545687,
    -554416, 3919660, -48306, -1362209, 3937738, 1400424, -846154, 1976782,
)


def _i32(x: int) -> int:
    return ((x + 0x80000000) & _MASK32) - 0x80000000


def _mont_reduce(a: int) -> int:
    t = _i32(_i32(a) * QINV)
    return _i32((a - t * Q) >> 32)


def _reduce32(a: int) -> int:
    t = (a + (1 << 22)) >> 23
    return a - t * Q


def _to_positive(c: int) -> int:
    """Map a coefficient in (-q, q) into [0, q)."""
    return c + ((c >> 31) & Q)


def _split(c: int) -> tuple[int, int]:
    """Return (high bits, low bits) of a coefficient for alpha = 2 * GAMMA_2."""
    c = _to_positive(c)
    a1 = (c + 127) >> 7
    a1 = ((a1 * 1025 + (1 << 21)) >> 22) & 0xF
    a0 = c - a1 * 2 * GAMMA_2
    a0 -= (((Q - 1) // 2 - a0) >> 31) & Q
    return a1, a0


def _require_len(data, length: int, what: str) -> bytes:
    data = bytes(data)
    if len(data) != length:
        raise ValueError(f"{what} must be {length} bytes, got {len(data)}")
    return data


def _xof_stream(factory: Callable, data: bytes, block: int) -> Iterator[int]:
    """Yield an endless stream of bytes from an extendable-output function."""
    length = 3 * block
    offset = 0
    while True:
        out = factory(data).digest(length)
        yield from out[offset:]
        offset = length
        length *= 2


def _chunks(data: bytes, size: int) -> Iterator[bytes]:
    return (data[i:i + size] for i in range(0, len(data), size))


@dataclass(eq=True)
class Poly:
    """A polynomial with 256 signed 32-bit coefficients."""

    coeffs: list[int] = field(default_factory=lambda: [0] * N)

    ETA_BYTES: ClassVar[int] = 32 * 4
    GAMMA_BYTES: ClassVar[int] = 32 * 20
    T0_BYTES: ClassVar[int] = 32 * 13
    T1_BYTES: ClassVar[int] = 32 * 10
    W1_BYTES: ClassVar[int] = 32 * 4

    def __post_init__(self):
        self.coeffs = list(self.coeffs)
        if len(self.coeffs) != N:
            raise ValueError(f"a polynomial has {N} coefficients, got {len(self.coeffs)}")

    @classmethod
    def zero(cls) -> Poly:
        return cls()

    # --- sampling ---

    @classmethod
    def sample_ntt(cls, seed, s: int, r: int) -> Poly:
        """Uniformly sample a polynomial in NTT form from SHAKE128(seed || s || r)."""
        seed = _require_len(seed, 32, "seed")
        stream = _xof_stream(hashlib.shake_128, seed + bytes([s, r]), 168)
        coeffs: list[int] = []
        for c0, c1, c2 in zip(stream, stream, stream):
            z = ((c2 & 0x7F) << 16) | (c1 << 8) | c0
            if z <= Q:
                coeffs.append(z)
                if len(coeffs) == N:
                    break
        return cls(coeffs)

    @classmethod
    def sample_bounded(cls, seed, nonce: int) -> Poly:
        """Sample coefficients in [-ETA, ETA] from SHAKE256(seed || nonce)."""
        seed = _require_len(seed, 64, "seed")
        data = seed + nonce.to_bytes(2, "little")
        coeffs: list[int] = []
        for byte in _xof_stream(hashlib.shake_256, data, 136):
            z0 = byte & 0xF
            z1 = byte >> 4
            if z0 < 9:
                coeffs.append(ETA - z0)
            if z1 < 9 and len(coeffs) < N:
                coeffs.append(ETA - z1)
            if len(coeffs) == N:
                break
        return cls(coeffs)

    @classmethod
    def sample_gamma(cls, seed, nonce: int) -> Poly:
        """Expand the mask polynomial with coefficients in (-GAMMA_1, GAMMA_1]."""
        seed = _require_len(seed, 64, "seed")
        data = hashlib.shake_256(seed + nonce.to_bytes(2, "little")).digest(cls.GAMMA_BYTES)
        return cls.unpack_gamma(data)

    @classmethod
    def sample_in_ball(cls, seed) -> Poly:
        """Sample the challenge: TAU coefficients of +/-1, the rest zero."""
        seed = _require_len(seed, LAMBDA4, "challenge seed")
        stream = _xof_stream(hashlib.shake_256, seed, 136)
        signs = int.from_bytes(bytes(islice(stream, 8)), "little")
        c = [0] * N
        for i in range(N - TAU, N):
            j = next(b for b in stream if b <= i)
            c[i] = c[j]
            c[j] = 1 - 2 * (signs & 1)
            signs >>= 1
        return cls(c)

    # --- arithmetic ---

    def ntt(self) -> None:
        """Forward number-theoretic transform, in place; output is not reduced."""
        c = self.coeffs
        k = 1
        for length in (128, 64, 32, 16, 8, 4, 2, 1):
            for start in range(0, N, 2 * length):
                zeta = ZETAS[k]
                k += 1
                for j in range(start, start + length):
                    t = _mont_reduce(zeta * c[j + length])
                    c[j + length] = c[j] - t
                    c[j] = c[j] + t

    def inv_ntt(self) -> None:
        """Inverse transform in place, multiplying by the Montgomery factor 2^32."""
        c = self.coeffs
        k = 255
        for length in (1, 2, 4, 8, 16, 32, 64, 128):
            for start in range(0, N, 2 * length):
                zeta = -ZETAS[k]
                k -= 1
                for j in range(start, start + length):
                    t = c[j]
                    c[j] = t + c[j + length]
                    c[j + length] = _mont_reduce(zeta * (t - c[j + length]))
        self.coeffs = [_mont_reduce(_INV_NTT_F * coef) for coef in c]

    def mul_mont(self, other: Poly) -> Poly:
        """Pointwise Montgomery product of two NTT-form polynomials."""
        return Poly([_mont_reduce(a * b) for a, b in zip(self.coeffs, other.coeffs)])

    def radd(self, other: Poly) -> None:
        """Add ``other`` into this polynomial."""
        self.coeffs = [a + b for a, b in zip(self.coeffs, other.coeffs)]

    def rsub(self, other: Poly) -> None:
        """Subtract ``other`` from this polynomial."""
        self.coeffs = [a - b for a, b in zip(self.coeffs, other.coeffs)]

    def reduce(self) -> None:
        """Reduce every coefficient to roughly (-q/2, q/2]."""
        self.coeffs = [_reduce32(c) for c in self.coeffs]

    def power2round(self) -> Poly:
        """Keep the high bits (t1) in place and return the low bits (t0)."""
        high: list[int] = []
        low: list[int] = []
        for c in self.coeffs:
            c = _to_positive(c)
            t = (c + (1 << (D - 1)) - 1) >> D
            low.append(c - (t << D))
            high.append(t)
        self.coeffs = high
        return Poly(low)

    def decompose(self) -> Poly:
        """Keep the high bits (w1) in place and return the low bits (w0)."""
        parts = [_split(c) for c in self.coeffs]
        self.coeffs = [a1 for a1, _ in parts]
        return Poly([a0 for _, a0 in parts])

    def check_norm(self, bound: int) -> bool:
        """True if every coefficient has absolute value below ``bound``."""
        return all(abs(c) < bound for c in self.coeffs)

    @classmethod
    def make_hint(cls, low: Poly, high: Poly) -> tuple[Poly, int]:
        """Compute the hint bits and return them with their count."""
        hint = [
            1 if not (-GAMMA_2 <= a <= GAMMA_2) or (a == -GAMMA_2 and b != 0) else 0
            for a, b in zip(low.coeffs, high.coeffs)
        ]
        return cls(hint), sum(hint)

    def use_hint(self, hint: Poly) -> None:
        """Replace each coefficient by its high bits corrected by the hint."""
        out = []
        for c, h in zip(self.coeffs, hint.coeffs):
            a1, a0 = _split(c)
            if h == 0:
                out.append(a1)
            elif a0 > 0:
                out.append((a1 + 1) & 15)
            else:
                out.append((a1 - 1) & 15)
        self.coeffs = out

    # --- encodings ---

    def pack_t1(self) -> bytes:
        """Encode 10-bit coefficients."""
        out = bytearray()
        for i in range(0, N, 4):
            s0, s1, s2, s3 = self.coeffs[i:i + 4]
            out += bytes((
                s0 & 0xFF,
                ((s0 >> 8) | (s1 << 2)) & 0xFF,
                ((s1 >> 6) | (s2 << 4)) & 0xFF,
                ((s2 >> 4) | (s3 << 6)) & 0xFF,
                (s3 >> 2) & 0xFF,
            ))
        return bytes(out)

    @classmethod
    def unpack_t1(cls, data) -> Poly:
        data = _require_len(data, cls.T1_BYTES, "packed t1")
        coeffs: list[int] = []
        for b0, b1, b2, b3, b4 in _chunks(data, 5):
            coeffs += [
                (b0 | (b1 << 8)) & 0x3FF,
                ((b1 >> 2) | (b2 << 6)) & 0x3FF,
                ((b2 >> 4) | (b3 << 4)) & 0x3FF,
                (b3 >> 6) | (b4 << 2),
            ]
        return cls(coeffs)

    def pack_t0(self) -> bytes:
        """Encode 13-bit coefficients in (-2^12, 2^12]."""
        out = bytearray()
        for i in range(0, N, 8):
            t = [((1 << 12) - c) & _MASK32 for c in self.coeffs[i:i + 8]]
            out += bytes(b & 0xFF for b in (
                t[0],
                (t[0] >> 8) | (t[1] << 5),
                t[1] >> 3,
                (t[1] >> 11) | (t[2] << 2),
                (t[2] >> 6) | (t[3] << 7),
                t[3] >> 1,
                (t[3] >> 9) | (t[4] << 4),
                t[4] >> 4,
                (t[4] >> 12) | (t[5] << 1),
                (t[5] >> 7) | (t[6] << 6),
                t[6] >> 2,
                (t[6] >> 10) | (t[7] << 3),
                t[7] >> 5,
            ))
        return bytes(out)

    @classmethod
    def unpack_t0(cls, data) -> Poly:
        data = _require_len(data, cls.T0_BYTES, "packed t0")
        coeffs: list[int] = []
        for s in _chunks(data, 13):
            raw = (
                s[0] | (s[1] << 8),
                (s[1] >> 5) | (s[2] << 3) | (s[3] << 11),
                (s[3] >> 2) | (s[4] << 6),
                (s[4] >> 7) | (s[5] << 1) | (s[6] << 9),
                (s[6] >> 4) | (s[7] << 4) | (s[8] << 12),
                (s[8] >> 1) | (s[9] << 7),
                (s[9] >> 6) | (s[10] << 2) | (s[11] << 10),
                (s[11] >> 3) | (s[12] << 5),
            )
            coeffs += [(1 << 12) - (r & 0x1FFF) for r in raw]
        return cls(coeffs)

    def pack_eta(self) -> bytes:
        """Encode coefficients in [-ETA, ETA] as 4-bit values."""
        evens = self.coeffs[0::2]
        odds = self.coeffs[1::2]
        return bytes(
            (((ETA - a) & 0xFF) | (((ETA - b) & 0xFF) << 4)) & 0xFF
            for a, b in zip(evens, odds)
        )

    @classmethod
    def unpack_eta(cls, data) -> Poly:
        data = _require_len(data, cls.ETA_BYTES, "packed eta")
        coeffs: list[int] = []
        for byte in data:
            coeffs += [ETA - (byte & 0xF), ETA - ((byte >> 4) & 0xF)]
        return cls(coeffs)

    def pack_gamma(self) -> bytes:
        """Encode 20-bit coefficients in (-GAMMA_1, GAMMA_1]."""
        out = bytearray()
        for a, b in zip(self.coeffs[0::2], self.coeffs[1::2]):
            t0 = (GAMMA_1 - a) & _MASK32
            t1 = (GAMMA_1 - b) & _MASK32
            out += bytes((
                t0 & 0xFF,
                (t0 >> 8) & 0xFF,
                ((t0 >> 16) & 0xFF) | ((t1 << 4) & 0xFF),
                (t1 >> 4) & 0xFF,
                (t1 >> 12) & 0xFF,
            ))
        return bytes(out)

    @classmethod
    def unpack_gamma(cls, data) -> Poly:
        data = _require_len(data, cls.GAMMA_BYTES, "packed gamma")
        coeffs: list[int] = []
        for b0, b1, b2, b3, b4 in _chunks(data, 5):
            coeffs.append(GAMMA_1 - ((b0 | (b1 << 8) | (b2 << 16)) & 0xFFFFF))
            coeffs.append(GAMMA_1 - ((b2 >> 4) | (b3 << 4) | (b4 << 12)))
        return cls(coeffs)

    def pack_w1(self) -> bytes:
        """Encode 4-bit high-bits coefficients."""
        return bytes(
            (a | (b << 4)) & 0xFF for a, b in zip(self.coeffs[0::2], self.coeffs[1::2])
        )


@dataclass(eq=True)
class PolyVec:
    """A vector of polynomials."""

    polys: list[Poly] = field(default_factory=list)

    def __post_init__(self):
        self.polys = list(self.polys)

    @classmethod
    def zero(cls, size: int) -> PolyVec:
        return cls([Poly() for _ in range(size)])

    def __len__(self) -> int:
        return len(self.polys)

    def __iter__(self) -> Iterator[Poly]:
        return iter(self.polys)

    def ntt(self) -> None:
        for poly in self.polys:
            poly.ntt()

    def inv_ntt(self) -> None:
        for poly in self.polys:
            poly.inv_ntt()

    def radd(self, other: PolyVec) -> None:
        for a, b in zip(self.polys, other.polys):
            a.radd(b)

    def rsub(self, other: PolyVec) -> None:
        for a, b in zip(self.polys, other.polys):
            a.rsub(b)

    def dot_mont(self, other: PolyVec) -> Poly:
        """Inner product of two NTT-form vectors, not reduced."""
        first, *rest = (a.mul_mont(b) for a, b in zip(self.polys, other.polys))
        for term in rest:
            first.radd(term)
        return first

    def reduce(self) -> None:
        for poly in self.polys:
            poly.reduce()

    def check_norm(self, bound: int) -> bool:
        return all(poly.check_norm(bound) for poly in self.polys)

    @classmethod
    def make_hint(cls, low: PolyVec, high: PolyVec) -> tuple[PolyVec, int]:
        """Compute hint polynomials for each pair, returning them with the total count."""
        polys = []
        total = 0
        for a, b in zip(low.polys, high.polys):
            hint, count = Poly.make_hint(a, b)
            polys.append(hint)
            total += count
        return cls(polys), total

    def shiftl(self) -> None:
        """Multiply every coefficient by 2^13."""
        for poly in self.polys:
            poly.coeffs = [c << D for c in poly.coeffs]

    def use_hint(self, hint: PolyVec) -> None:
        for poly, h in zip(self.polys, hint.polys):
            poly.use_hint(h)