"""
Operator pipeline errors.

This module defines a small, typed hierarchy of exceptions raised by the
operator pipeline (read → predict → commit → reveal). Callers can catch the
base `OracleError` to handle every pipeline failure, or catch the concrete
subclasses for more granular control.

Severity
--------
- `InvalidBase`, `InvalidParameter`, `ReadFailure` abort a round before any
  chain mutation; the whole cycle may be retried.
- `SubmissionFailure` is local to one round and one transaction.
- `StateNotFound` / `StateCorrupt` are fatal for the round: a reveal is never
  fabricated from defaults.
- `PersistenceFailure` is the one unrecoverable case: the commit is on-chain
  but the opening could not be stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class OracleError(Exception):
    """Base class for all operator pipeline errors."""
    pass


@dataclass(eq=False)
class ConfigError(OracleError):
    """Raised when operator configuration is missing or malformed."""
    key: str
    reason: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"ConfigError: {self.key}: {self.reason}"


@dataclass(eq=False)
class InvalidBase(OracleError):
    """
    Raised when the base price handed to the predictor is absent or not
    strictly positive. No prediction is produced for such a base.
    """
    base_x96: Optional[int]

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"InvalidBase: base_x96={self.base_x96!r} must be > 0"


@dataclass(eq=False)
class InvalidParameter(OracleError):
    """Raised when a numeric parameter lies outside its accepted range."""
    name: str
    value: object
    reason: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"InvalidParameter: {self.name}={self.value!r} ({self.reason})"


@dataclass(eq=False)
class ReadFailure(OracleError):
    """
    Raised when a read-only price query fails (transport error or a response
    that cannot be decoded).

    Attributes:
        contract: Address of the queried contract.
        method: Contract method name.
        reason: Human-readable cause.
    """
    contract: str
    method: str
    reason: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"ReadFailure: {self.method}@{self.contract}: {self.reason}"


@dataclass(eq=False)
class SubmissionFailure(OracleError):
    """
    Raised when a commit or reveal transaction could not be signed, sent or
    mined successfully.

    Attributes:
        round_id: Round the transaction belongs to.
        action: "commit" or "reveal".
        reason: Human-readable cause.
        tx_id: Transaction hash when the transaction was sent but reverted or
               left unconfirmed.
    """
    round_id: int
    action: str
    reason: str
    tx_id: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        base = f"SubmissionFailure: {self.action} round={self.round_id}: {self.reason}"
        return f"{base} tx={self.tx_id}" if self.tx_id else base


@dataclass(eq=False)
class StateNotFound(OracleError):
    """Raised when no committed state exists for a round."""
    round_id: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"StateNotFound: no committed state for round={self.round_id}"


@dataclass(eq=False)
class StateCorrupt(OracleError):
    """Raised when a stored round record fails to decode or verify."""
    round_id: Optional[int]
    reason: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"StateCorrupt: round={self.round_id}: {self.reason}"


@dataclass(eq=False)
class PersistenceFailure(OracleError):
    """
    Raised when the round opening could not be written after the commit
    transaction succeeded. The round is committed on-chain but not revealable
    from local state; the attributes carry what a manual reveal needs.
    """
    round_id: int
    commit_tx: str
    prediction: int
    salt_hex: str
    reason: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return (
            f"PersistenceFailure: round={self.round_id} commit_tx={self.commit_tx} "
            f"prediction={self.prediction} salt={self.salt_hex}: {self.reason}"
        )


@dataclass(eq=False)
class RoundAlreadyCommitted(OracleError):
    """Raised when a commit is requested for a round that already has state."""
    round_id: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"RoundAlreadyCommitted: round={self.round_id}"


@dataclass(eq=False)
class RoundClosed(OracleError):
    """Raised when a reveal is requested for a round that was already revealed."""
    round_id: int
    reveal_tx: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"RoundClosed: round={self.round_id} revealed in tx={self.reveal_tx}"


@dataclass(eq=False)
class Cancelled(OracleError):
    """Raised when a transition is aborted through a cancel token."""
    round_id: int
    phase: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"Cancelled: round={self.round_id} during {self.phase}"


__all__ = [
    "OracleError",
    "ConfigError",
    "InvalidBase",
    "InvalidParameter",
    "ReadFailure",
    "SubmissionFailure",
    "StateNotFound",
    "StateCorrupt",
    "PersistenceFailure",
    "RoundAlreadyCommitted",
    "RoundClosed",
    "Cancelled",
]
