"""
web3.py implementation of the chain-client collaborator.

Reads use `eth_call`; writes build a legacy-priced transaction, sign it
locally with eth-account, broadcast the raw bytes and wait for the receipt.
A receipt with status != 1 raises `TransactionReverted`; a receipt wait that
fails after the broadcast raises `TransactionUnconfirmed` carrying the hash.

Example
-------
    client = Web3ChainClient("http://127.0.0.1:8545", private_key="0x...", chain_id=1)
    raw = client.call(pool_addr, POOL_SLOT0.encode())
    tx = client.submit(avs_addr, AVS_COMMIT.encode(1, commitment), client.signing_authority())
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from eth_account import Account
from web3 import Web3

from price_avs import logging as plog

from . import ChainError, SigningAuthority, TransactionReverted, TransactionUnconfirmed

log = plog.get_logger(__name__)


class Web3ChainClient:
    """
    Parameters
    ----------
    rpc_url : str
        HTTP(S) JSON-RPC endpoint.
    private_key : str | None
        Hex private key of the operator; required only for `submit`.
    chain_id : int | None
        Chain id that signatures are bound to. Required with `private_key`.
    timeout_s : float
        Per-request HTTP timeout.
    receipt_timeout_s : float
        How long to wait for a transaction receipt.
    gas_limit : int | None
        Fixed gas limit; estimated per transaction when None.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        private_key: Optional[str] = None,
        chain_id: Optional[int] = None,
        timeout_s: float = 10.0,
        receipt_timeout_s: float = 120.0,
        gas_limit: Optional[int] = None,
    ) -> None:
        self.w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout_s}))
        self._account = Account.from_key(private_key) if private_key else None
        self._chain_id = chain_id
        self.receipt_timeout_s = receipt_timeout_s
        self.gas_limit = gas_limit

    # --- Reads ---------------------------------------------------------------

    def call(self, address: str, data: bytes) -> bytes:
        tx = {"to": Web3.to_checksum_address(address), "data": Web3.to_hex(data)}
        return bytes(self.w3.eth.call(tx))

    def block_number(self) -> int:
        return int(self.w3.eth.block_number)

    def chain_id(self) -> int:
        return int(self.w3.eth.chain_id)

    # --- Writes --------------------------------------------------------------

    def signing_authority(self) -> SigningAuthority:
        if self._account is None or self._chain_id is None:
            raise ChainError("no operator key / chain id configured for signing")
        return SigningAuthority(account=self._account, chain_id=self._chain_id)

    def submit(self, address: str, data: bytes, auth: SigningAuthority) -> str:
        sender = auth.address
        tx: Dict[str, Any] = {
            "from": sender,
            "to": Web3.to_checksum_address(address),
            "data": Web3.to_hex(data),
            "value": 0,
            "chainId": auth.chain_id,
            "nonce": self.w3.eth.get_transaction_count(sender, "pending"),
            "gasPrice": self.w3.eth.gas_price,
        }
        tx["gas"] = self.gas_limit or self.w3.eth.estimate_gas(tx)

        signed = auth.account.sign_transaction(tx)
        tx_hash = Web3.to_hex(self.w3.eth.send_raw_transaction(signed.raw_transaction))
        log.info("transaction sent", extra={"tx": tx_hash, "to": tx["to"], "nonce": tx["nonce"]})

        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout_s)
        except Exception as e:
            raise TransactionUnconfirmed(tx_hash, str(e) or type(e).__name__) from e
        if receipt["status"] != 1:
            raise TransactionReverted(tx_hash)
        return tx_hash


__all__ = ["Web3ChainClient"]
