"""
price_avs.chain
===============

The chain-client collaborator, as seen by the rest of the operator:

- `ChainReader.call(address, data) -> bytes`        read-only, no side effects
- `ChainWriter.submit(address, data, auth) -> str`  signed transaction, returns tx hash
- `ChainWriter.signing_authority() -> SigningAuthority`
- `block_number()`                                  used by block-based reveal delays

Timeouts per RPC request belong to the concrete client
(`price_avs.chain.client.Web3ChainClient`); nothing here retries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol


class ChainError(Exception):
    """Transport or signing failure raised by a chain client."""


class TransactionReverted(ChainError):
    """The transaction was mined with status 0."""

    def __init__(self, tx_id: str, reason: Optional[str] = None) -> None:
        super().__init__(f"transaction {tx_id} reverted" + (f": {reason}" if reason else ""))
        self.tx_id = tx_id
        self.reason = reason


class TransactionUnconfirmed(ChainError):
    """The transaction was broadcast but no receipt was obtained; it may still be mined."""

    def __init__(self, tx_id: str, reason: str) -> None:
        super().__init__(f"transaction {tx_id} sent but unconfirmed: {reason}")
        self.tx_id = tx_id
        self.reason = reason


@dataclass(frozen=True)
class SigningAuthority:
    """
    Authorization to sign one transaction: an account bound to a chain id.

    `account` is an eth-account `LocalAccount` (anything exposing `.address`
    and `.sign_transaction`).
    """

    account: Any
    chain_id: int

    @property
    def address(self) -> str:
        return self.account.address


class ChainReader(Protocol):
    def call(self, address: str, data: bytes) -> bytes:
        ...


class ChainWriter(Protocol):
    def signing_authority(self) -> SigningAuthority:
        ...

    def submit(self, address: str, data: bytes, auth: SigningAuthority) -> str:
        ...

    def block_number(self) -> int:
        ...


__all__ = [
    "ChainError",
    "TransactionReverted",
    "TransactionUnconfirmed",
    "SigningAuthority",
    "ChainReader",
    "ChainWriter",
]
