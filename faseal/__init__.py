"""Pure-Python ML-KEM-768, ML-DSA-65 and hybrid ML-DSA-65 + Ed25519 signatures."""

__version__ = "0.1.0"
__all__ = [
    "dsa_poly",
    "errors",
    "hybrid",
    "kem_pke",
    "kem_poly",
    "mldsa",
    "mldsa_internal",
    "mlkem",
]