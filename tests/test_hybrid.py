import hashlib

import pytest

from faseal import hybrid
from faseal.errors import InvalidSignatureError

RFC8032_SEED = bytes.fromhex(
    "9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60"
)
RFC8032_PUBLIC = bytes.fromhex(
    "d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a"
)


@pytest.fixture(scope="module")
def keypair():
    return hybrid.keygen()


@pytest.fixture(scope="module")
def signed(keypair):
    sk, _ = keypair
    msg = hashlib.sha3_256(b"hello").digest()
    return msg, hybrid.sign(sk, msg)


def test_sig(keypair, signed):
    _, vk = keypair
    msg, signature = signed
    badmsg = hashlib.sha3_256(b"bye").digest()
    assert hybrid.verify(vk, msg, signature) is None
    with pytest.raises(InvalidSignatureError):
        hybrid.verify(vk, badmsg, signature)


def test_lengths(keypair, signed):
    sk, vk = keypair
    _, signature = signed
    assert len(sk) == 6048
    assert len(vk) == 1984
    assert len(signature) == 3373


def test_to_verifying_key(keypair):
    sk, vk = keypair
    assert hybrid.to_verifying_key(sk) == vk


def test_keygen_derand_deterministic_and_ed25519_vector():
    m_seed = bytes(range(32))
    sk1, vk1 = hybrid.keygen_derand(m_seed, RFC8032_SEED)
    sk2, vk2 = hybrid.keygen_derand(m_seed, RFC8032_SEED)
    assert (sk1, vk1) == (sk2, vk2)
    assert vk1[-32:] == RFC8032_PUBLIC
    assert sk1[-64:] == RFC8032_SEED + RFC8032_PUBLIC


def test_tampered_ed25519_part_rejected(keypair, signed):
    _, vk = keypair
    msg, signature = signed
    tampered = bytearray(signature)
    tampered[-1] ^= 0x01
    with pytest.raises(InvalidSignatureError):
        hybrid.verify(vk, msg, bytes(tampered))


def test_tampered_mldsa_part_rejected(keypair, signed):
    _, vk = keypair
    msg, signature = signed
    tampered = bytearray(signature)
    tampered[5] ^= 0x80
    with pytest.raises(InvalidSignatureError):
        hybrid.verify(vk, msg, bytes(tampered))


def test_wrong_key_rejected(signed):
    other_sk, other_vk = hybrid.keygen_derand(bytes(32), RFC8032_SEED)
    msg, signature = signed
    with pytest.raises(InvalidSignatureError):
        hybrid.verify(other_vk, msg, signature)


def test_bad_lengths_raise_value_error(keypair):
    sk, vk = keypair
    with pytest.raises(ValueError):
        hybrid.verify(vk, b"msg", bytes(10))
    with pytest.raises(ValueError):
        hybrid.to_verifying_key(sk[:-1])
    with pytest.raises(ValueError):
        hybrid.keygen_derand(bytes(31), bytes(32))