# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Round coordinator: read → predict → commit → wait → reveal.

Phases per round (see `price_avs.types.state`):

    IDLE → COMMITTING → COMMITTED → REVEALING → REVEALED
                 ↘ FAILED              ↘ FAILED

Ordering guarantees
-------------------
- Prices are read and the prediction computed before any transaction is sent;
  read and predictor errors leave the chain untouched.
- The opening (prediction, salt) is persisted only after the commit
  transaction succeeded. A failed commit persists nothing.
- A commit that succeeded but whose opening could not be stored raises
  `PersistenceFailure` after logging everything needed for a manual reveal.
  It is never "fixed" by committing again.
- A commit that was broadcast but never confirmed may still be mined: its
  opening is stored and logged, and the round refuses further commits.
- Reveal reads the opening back from the store; it never recomputes the
  prediction and never falls back to defaults.
- After a successful reveal a marker closes the round locally.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from price_avs import logging as plog
from price_avs.chain import ChainWriter, TransactionReverted, TransactionUnconfirmed
from price_avs.chain.abi import AVS_COMMIT, AVS_REVEAL
from price_avs.errors import (
    Cancelled,
    PersistenceFailure,
    ReadFailure,
    RoundAlreadyCommitted,
    RoundClosed,
    StateCorrupt,
    StateNotFound,
    SubmissionFailure,
)
from price_avs.metrics import METRICS, Metrics
from price_avs.oracle.sources import PriceSource
from price_avs.predictor import drift_bps, predict_next
from price_avs.store import RoundStore
from price_avs.types import PriceObservation, RevealMarker, RoundRecord
from price_avs.types.state import Phase, RoundStatus
from price_avs.utils.bytes import to_hex

from .commit import build_commitment, generate_salt
from .schedule import CancelToken, RevealSchedule

log = plog.get_logger(__name__)


@dataclass(frozen=True)
class PendingRound:
    """Everything a commit needs, computed before touching the chain."""

    round_id: int
    observation: PriceObservation
    drift_bps: int
    prediction: int
    salt: bytes
    commitment: bytes


@dataclass(frozen=True)
class CommitResult:
    round_id: int
    prediction: int
    salt: bytes
    commitment: bytes
    tx_id: str


@dataclass(frozen=True)
class RevealResult:
    round_id: int
    prediction: int
    salt: bytes
    tx_id: str


@dataclass(frozen=True)
class RoundOutcome:
    commit: CommitResult
    reveal: RevealResult


class Coordinator:
    """
    Drives one operator's participation in prediction rounds.

    Args:
        source:    price source selected at startup.
        chain:     chain writer used for commit/reveal transactions.
        store:     round store holding openings and reveal markers.
        avs_addr:  AVS manager contract address.
        alpha_bps: drift weight passed to the predictor.
        schedule:  waiting policy between commit and reveal (used by `run`).
        clock:     unix-seconds clock for record timestamps.
        metrics:   Prometheus instruments.
    """

    def __init__(
        self,
        *,
        source: PriceSource,
        chain: ChainWriter,
        store: RoundStore,
        avs_addr: str,
        alpha_bps: int,
        schedule: Optional[RevealSchedule] = None,
        clock: Callable[[], float] = time.time,
        metrics: Metrics = METRICS,
    ) -> None:
        self.source = source
        self.chain = chain
        self.store = store
        self.avs_addr = avs_addr
        self.alpha_bps = alpha_bps
        self.schedule = schedule or RevealSchedule()
        self.clock = clock
        self.metrics = metrics
        self._status: Dict[int, RoundStatus] = {}

    # ------------------------------------------------------------------ status

    def status(self, round_id: int) -> RoundStatus:
        """Current in-process phase of a round (IDLE if never touched)."""
        return self._status.get(round_id) or RoundStatus(round_id)

    def _begin(self, round_id: int, phase: Phase) -> RoundStatus:
        st = self._status.get(round_id)
        if st is None or st.phase is Phase.FAILED:
            # A sent commit survives the reset so it can never be sent again.
            st = RoundStatus(round_id, commit_tx=st.commit_tx if st else None)
            self._status[round_id] = st
        self._advance(st, phase)
        return st

    def _advance(self, st: RoundStatus, to: Phase, error: Optional[str] = None) -> None:
        prev = st.phase
        st.advance(to)
        st.error = error
        log.info("round transition", extra={"from": prev.value, "to": to.value})

    def _fail(self, st: RoundStatus, err: Exception) -> None:
        self._advance(st, Phase.FAILED, error=str(err))

    # ----------------------------------------------------------------- prepare

    def prepare(self, round_id: int) -> PendingRound:
        """
        Read prices and build the commitment for `round_id`.

        Raises ReadFailure / InvalidBase / InvalidParameter without any chain
        mutation.
        """
        obs = self.source.observe()
        drift = drift_bps(obs.short_tick, obs.long_tick)
        self.metrics.observe_drift(drift)
        prediction = predict_next(obs.base_price_x96, drift, self.alpha_bps)
        salt = generate_salt()
        commitment = build_commitment(prediction, salt)
        log.info(
            "prediction computed",
            extra={"prediction": prediction, "drift_bps": drift, "alpha_bps": self.alpha_bps},
        )
        return PendingRound(round_id, obs, drift, prediction, salt, commitment)

    # ------------------------------------------------------------------ commit

    def commit(self, round_id: int, token: Optional[CancelToken] = None) -> CommitResult:
        token = token or CancelToken()
        with plog.trace_scope(round_id=round_id, component="coordinator"):
            if self.store.has(round_id) or self.status(round_id).commit_tx is not None:
                self.metrics.record_commit("duplicate")
                raise RoundAlreadyCommitted(round_id)

            pending = self.prepare(round_id)
            if token.cancelled:
                raise Cancelled(round_id, "commit")

            st = self._begin(round_id, Phase.COMMITTING)
            try:
                tx_id = self._submit(round_id, "commit", AVS_COMMIT.encode(round_id, pending.commitment))
            except SubmissionFailure as e:
                if isinstance(e.__cause__, TransactionUnconfirmed):
                    self._keep_unconfirmed(st, pending, e)
                    raise
                self.metrics.record_commit("failed")
                self._fail(st, e)
                log.error("commit failed", extra={"error": str(e)})
                raise
            st.commit_tx = tx_id

            record = RoundRecord(
                round_id=round_id,
                prediction=pending.prediction,
                salt=pending.salt,
                commit_tx=tx_id,
                created_at=int(self.clock()),
            )
            try:
                self.store.put(record)
            except Exception as e:
                self.metrics.record_commit("unpersisted")
                self._fail(st, e)
                salt_hex = to_hex(pending.salt)
                log.critical(
                    "commit is on-chain but its opening was NOT persisted; reveal manually",
                    extra={
                        "commit_tx": tx_id,
                        "prediction": pending.prediction,
                        "salt": salt_hex,
                        "error": str(e),
                    },
                )
                raise PersistenceFailure(round_id, tx_id, pending.prediction, salt_hex, str(e)) from e

            self._advance(st, Phase.COMMITTED)
            self.metrics.record_commit("accepted")
            log.info("commit accepted", extra={"commit_tx": tx_id})
            return CommitResult(round_id, pending.prediction, pending.salt, pending.commitment, tx_id)

    def _keep_unconfirmed(self, st: RoundStatus, pending: PendingRound, err: SubmissionFailure) -> None:
        """
        The commit was broadcast but never confirmed and may still be mined.
        Store its opening so the round stays revealable, and log it loudly.
        """
        st.commit_tx = err.tx_id
        self._fail(st, err)
        salt_hex = to_hex(pending.salt)
        log.critical(
            "commit sent but unconfirmed; check the transaction before any retry",
            extra={
                "commit_tx": err.tx_id,
                "prediction": pending.prediction,
                "salt": salt_hex,
                "error": err.reason,
            },
        )
        record = RoundRecord(
            round_id=pending.round_id,
            prediction=pending.prediction,
            salt=pending.salt,
            commit_tx=err.tx_id or "",
            created_at=int(self.clock()),
        )
        try:
            self.store.put(record)
        except Exception as e:
            self.metrics.record_commit("unpersisted")
            raise PersistenceFailure(
                pending.round_id, err.tx_id or "", pending.prediction, salt_hex, str(e)
            ) from e
        self.metrics.record_commit("unconfirmed")

    # ------------------------------------------------------------------ reveal

    def reveal(self, round_id: int, token: Optional[CancelToken] = None) -> RevealResult:
        token = token or CancelToken()
        with plog.trace_scope(round_id=round_id, component="coordinator"):
            marker = self.store.reveal_marker(round_id)
            if marker is not None:
                self.metrics.record_reveal("closed")
                raise RoundClosed(round_id, marker.reveal_tx)
            if token.cancelled:
                raise Cancelled(round_id, "reveal")

            st = self._begin(round_id, Phase.REVEALING)
            try:
                record = self.store.get(round_id)
            except StateNotFound as e:
                self.metrics.record_reveal("missing_state")
                self._fail(st, e)
                log.error("no committed state for round")
                raise
            except StateCorrupt as e:
                self.metrics.record_reveal("corrupt_state")
                self._fail(st, e)
                log.error("committed state is corrupt", extra={"error": e.reason})
                raise

            try:
                tx_id = self._submit(
                    round_id, "reveal", AVS_REVEAL.encode(round_id, record.prediction, record.salt)
                )
            except SubmissionFailure as e:
                self.metrics.record_reveal("failed")
                self._fail(st, e)
                log.error("reveal failed; state kept for retry", extra={"error": str(e)})
                raise

            st.reveal_tx = tx_id
            self._advance(st, Phase.REVEALED)
            self.metrics.record_reveal("accepted")
            log.info("reveal accepted", extra={"reveal_tx": tx_id, "prediction": record.prediction})

            try:
                self.store.mark_revealed(RevealMarker(round_id, tx_id, int(self.clock())))
            except Exception:
                log.exception("reveal marker not persisted; round stays open locally")
            return RevealResult(round_id, record.prediction, record.salt, tx_id)

    # --------------------------------------------------------------------- run

    def run(self, round_id: int, token: Optional[CancelToken] = None) -> RoundOutcome:
        """Commit, wait per the reveal schedule, then reveal."""
        token = token or CancelToken()
        with plog.trace_scope(round_id=round_id, component="coordinator"):
            committed = self.commit(round_id, token)

            log.info(
                "waiting to reveal",
                extra={"delay_s": self.schedule.delay_s, "min_blocks": self.schedule.min_blocks},
            )
            try:
                commit_block = self._block_number() if self.schedule.min_blocks else None
                ready = self.schedule.wait(token, block_number=self._block_number, commit_block=commit_block)
            except ReadFailure as e:
                log.warning("block height unavailable; round remains committed, reveal later", extra={"error": str(e)})
                raise
            if not ready:
                log.warning("cancelled before reveal; round remains committed")
                raise Cancelled(round_id, "wait")

            revealed = self.reveal(round_id, token)
            return RoundOutcome(committed, revealed)

    def _block_number(self) -> int:
        try:
            return int(self.chain.block_number())
        except Exception as e:
            raise ReadFailure("chain", "eth_blockNumber", str(e) or type(e).__name__) from e

    # ------------------------------------------------------------------ submit

    def _submit(self, round_id: int, action: str, data: bytes) -> str:
        try:
            auth = self.chain.signing_authority()
            with self.metrics.submit_timer(action):
                return self.chain.submit(self.avs_addr, data, auth)
        except TransactionReverted as e:
            raise SubmissionFailure(round_id, action, e.reason or "reverted", tx_id=e.tx_id) from e
        except TransactionUnconfirmed as e:
            raise SubmissionFailure(round_id, action, e.reason, tx_id=e.tx_id) from e
        except Exception as e:
            raise SubmissionFailure(round_id, action, str(e) or type(e).__name__) from e


__all__ = [
    "PendingRound",
    "CommitResult",
    "RevealResult",
    "RoundOutcome",
    "Coordinator",
]
