import pytest
from Crypto.Hash import keccak

from price_avs.commit_reveal.commit import (
    SALT_LEN,
    build_commitment,
    commitment_preimage,
    generate_salt,
    verify_commitment,
)
from price_avs.utils.bytes import INT256_MAX, INT256_MIN

Q96 = 1 << 96


def _keccak(b: bytes) -> bytes:
    h = keccak.new(digest_bits=256)
    h.update(b)
    return h.digest()


def test_salts_are_fresh_and_sized():
    salts = {generate_salt() for _ in range(32)}
    assert len(salts) == 32
    assert all(len(s) == SALT_LEN for s in salts)


def test_preimage_is_packed_int256_then_salt():
    salt = bytes(range(32))
    pre = commitment_preimage(Q96, salt)
    assert len(pre) == 64
    assert pre[:32] == Q96.to_bytes(32, "big")
    assert pre[32:] == salt


def test_negative_prediction_keeps_its_sign():
    pre = commitment_preimage(-1, b"\x00" * 32)
    assert pre[:32] == b"\xff" * 32
    pre = commitment_preimage(INT256_MIN, b"\x00" * 32)
    assert pre[:32] == b"\x80" + b"\x00" * 31


def test_commitment_matches_keccak_of_packed_encoding():
    salt = b"\xab" * 32
    expected = _keccak((12345).to_bytes(32, "big", signed=True) + salt)
    assert build_commitment(12345, salt) == expected


def test_commitment_is_deterministic():
    salt = generate_salt()
    assert build_commitment(Q96, salt) == build_commitment(Q96, salt)


def test_single_bit_changes_the_commitment():
    salt = bytearray(b"\x00" * 32)
    base = build_commitment(Q96, bytes(salt))
    assert build_commitment(Q96 ^ 1, bytes(salt)) != base
    salt[31] ^= 0x01
    assert build_commitment(Q96, bytes(salt)) != base


def test_verify_commitment():
    salt = generate_salt()
    c = build_commitment(-42, salt)
    assert verify_commitment(c, -42, salt)
    assert not verify_commitment(c, 42, salt)


@pytest.mark.parametrize("prediction", [INT256_MAX + 1, INT256_MIN - 1])
def test_out_of_range_prediction_is_rejected(prediction: int):
    with pytest.raises(ValueError):
        build_commitment(prediction, b"\x00" * 32)


@pytest.mark.parametrize("salt", [b"", b"\x00" * 31, b"\x00" * 33])
def test_salt_must_be_32_bytes(salt: bytes):
    with pytest.raises(ValueError):
        build_commitment(1, salt)
