# faseal

Pure-Python post-quantum primitives:

- **ML-KEM-768** key encapsulation with explicit seeds (`faseal.mlkem`)
- **ML-DSA-65** signatures (`faseal.mldsa`, with deterministic-seed key
  generation and the internal sign/verify functions in `faseal.mldsa_internal`)
- a **hybrid ML-DSA-65 + Ed25519** signature (`faseal.hybrid`), where the
  Ed25519 signature covers both the message and the ML-DSA signature

The building blocks are available too: `faseal.kem_poly` and `faseal.kem_pke`
(polynomials and the K-PKE encryption scheme behind ML-KEM), and
`faseal.dsa_poly` (polynomials behind ML-DSA).

The code favours clarity over speed. Ed25519 comes from the `cryptography`
library; everything else is written in Python on top of `hashlib`.

## Installation

```
pip install .
```

## Key encapsulation (ML-KEM-768)

```python
import os
from faseal import mlkem

ek, dk = mlkem.keygen_derand(os.urandom(32), os.urandom(32))
shared, ciphertext = mlkem.encaps_derand(ek, os.urandom(32))
assert mlkem.decaps(dk, ciphertext) == shared
```

Key sizes are `mlkem.ENCAPSKEY_LEN` (1184), `mlkem.DECAPSKEY_LEN` (2400) and
`mlkem.CIPHERTEXT_LEN` (1088); the shared secret is 32 bytes.

Decapsulation uses implicit rejection: a tampered ciphertext yields a
pseudo-random shared secret rather than an error.

## Signatures (ML-DSA-65)

```python
import os
from faseal import mldsa, mldsa_internal

signing_key, verifying_key = mldsa_internal.keygen_internal(os.urandom(32))
signature = mldsa.sign(signing_key, b"message", b"")
mldsa.verify(verifying_key, b"message", signature, b"")
```

`mldsa.sign` draws fresh randomness for each signature and prefixes the
message with the context string, which may be at most 255 bytes.
`mldsa_internal.sign_internal` and `mldsa_internal.verify_internal` take the
randomness, prefix and context explicitly.

`verify` returns `None` on success and raises
`faseal.errors.InvalidSignatureError` when the signature does not check out.

## Hybrid signatures (ML-DSA-65 + Ed25519)

```python
from faseal import hybrid
from faseal.errors import InvalidSignatureError

signing_key, verifying_key = hybrid.keygen()
signature = hybrid.sign(signing_key, b"hello")
hybrid.verify(verifying_key, b"hello", signature)

try:
    hybrid.verify(verifying_key, b"bye", signature)
except InvalidSignatureError:
    print("rejected")

assert hybrid.to_verifying_key(signing_key) == verifying_key
```

`hybrid.keygen_derand(m_seed, e_seed)` derives the same kind of key pair from
two 32-byte seeds. The hybrid signing key embeds both verifying keys, so the
verifying key can always be recovered from it with `to_verifying_key`.

## Errors

- Inputs of the wrong length (keys, seeds, signatures, ciphertexts) raise
  `ValueError`.
- Signature failures derive from `faseal.errors.SignatureError`:
  `InvalidSignatureError` for a signature that does not verify or is
  malformed, `ContextTooLongError` for a context over 255 bytes, and
  `InvalidPublicKeyError` when the Ed25519 half of a hybrid verifying key is
  not a valid key.
- `faseal.errors` also defines `KemError`, `InvalidDecapsulationKeyError` and
  `InvalidEncapsulationKeyError`, but the ML-KEM functions do not currently
  raise them.

## What this package does not do

- It has no command-line tool and does not create or read archives; it only
  provides the cryptographic primitives.
- ML-KEM key generation and encapsulation take their seeds from the caller;
  there are no functions that draw the randomness themselves.
- ML-KEM keys are not validated beyond their length.
- The code is not constant-time and is slow compared with native
  implementations.

## Running the tests

```
pip install .[test]
pytest
```