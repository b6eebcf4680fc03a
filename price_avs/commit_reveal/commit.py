# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Commitment construction for the prediction commit–reveal.

Definition
----------
C = keccak256( int256_be(prediction) || salt )

- The prediction is packed as 32 bytes of big-endian two's complement,
  exactly as Solidity's `abi.encodePacked(int256, bytes32)` does, so the
  on-chain verifier recomputes the same 64-byte preimage at reveal time.
- `salt` MUST be 32 uniformly random bytes drawn fresh for each round from a
  CSPRNG; a guessable salt lets anyone brute-force the prediction from C.
"""

from __future__ import annotations

import secrets

from price_avs.utils.bytes import BytesLike, consteq, ensure_len, int256_to_bytes
from price_avs.utils.hash import keccak256

SALT_LEN = 32


def generate_salt() -> bytes:
    """Fresh 32-byte salt from the OS CSPRNG."""
    return secrets.token_bytes(SALT_LEN)


def commitment_preimage(prediction: int, salt: BytesLike) -> bytes:
    """The 64-byte packed encoding that is hashed into the commitment."""
    return int256_to_bytes(prediction) + ensure_len(salt, SALT_LEN, name="salt")


def build_commitment(prediction: int, salt: BytesLike) -> bytes:
    """
    Compute the 32-byte commitment for (prediction, salt).

    Raises:
        ValueError: prediction outside int256 or salt not 32 bytes.
    """
    return keccak256(commitment_preimage(prediction, salt))


def verify_commitment(commitment: BytesLike, prediction: int, salt: BytesLike) -> bool:
    """Constant-time check that (prediction, salt) opens `commitment`."""
    return consteq(ensure_len(commitment, 32, name="commitment"), build_commitment(prediction, salt))


__all__ = [
    "SALT_LEN",
    "generate_salt",
    "commitment_preimage",
    "build_commitment",
    "verify_commitment",
]
