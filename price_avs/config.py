"""
Operator configuration.

This file defines typed configuration objects and helpers for:
- RPC endpoint, operator key and chain id
- Contract addresses (AVS manager, optional aggregator, pool)
- TWAP windows and the predictor's drift weight
- Commit→reveal waiting policy
- Round state storage URI

It provides:
- Dataclass-based configs with validation
- Loading from environment variables (the operator's historical names)
- Loading from a JSON or YAML file
- A redacted `to_dict()` safe for logs and `inspect` output
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Optional

import yaml

from price_avs.commit_reveal.schedule import RevealSchedule
from price_avs.errors import ConfigError
from price_avs.predictor import MAX_ALPHA_BPS

# Uniswap v3 USDC/WETH 0.05% on Ethereum mainnet.
DEFAULT_POOL_ADDR = "0x88e6a0c2ddd26feeb64f039a2c41296fcb3f5640"

_ADDR_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")
_U32_MAX = (1 << 32) - 1
_U64_MAX = (1 << 64) - 1

REDACTED = "***"


def _check_addr(key: str, value: Optional[str], *, required: bool = False) -> None:
    if not value:
        if required:
            raise ConfigError(key, "is required")
        return
    if not _ADDR_RE.match(value):
        raise ConfigError(key, f"not a 20-byte hex address: {value!r}")


# -------------------------
# Sub-configs
# -------------------------


@dataclass
class WindowConfig:
    """
    TWAP windows in seconds.

    short_s: window for the short tick average (drift numerator)
    long_s:  window for the long tick average and the aggregator base price
    """

    short_s: int = 30
    long_s: int = 300

    def validate(self) -> None:
        for name in ("short_s", "long_s"):
            v = getattr(self, name)
            if not isinstance(v, int) or not 0 < v <= _U32_MAX:
                raise ConfigError(f"windows.{name}", "must be a positive uint32")


@dataclass
class ScheduleConfig:
    """
    Waiting policy between a commit and its reveal in `run`.

    delay_s:    wall-clock delay after the commit is mined
    min_blocks: blocks to wait on top of the commit block (0 disables)
    poll_s:     block polling interval
    """

    delay_s: float = 15.0
    min_blocks: int = 0
    poll_s: float = 2.0

    def validate(self) -> None:
        if self.delay_s < 0:
            raise ConfigError("schedule.delay_s", "must be >= 0")
        if self.min_blocks < 0:
            raise ConfigError("schedule.min_blocks", "must be >= 0")
        if self.poll_s <= 0:
            raise ConfigError("schedule.poll_s", "must be > 0")

    def to_schedule(self) -> RevealSchedule:
        return RevealSchedule(delay_s=self.delay_s, min_blocks=self.min_blocks, poll_s=self.poll_s)


@dataclass
class StorageConfig:
    """
    Where round openings are persisted.

    URIs:
      - memory://           in-process only (tests, dry runs)
      - file://<dir>        one file per key, atomic replace
      - sqlite://<path>     single-file SQLite database
    """

    state_uri: str = "file://./state"

    def validate(self) -> None:
        scheme, sep, path = self.state_uri.partition("://")
        if not sep:
            raise ConfigError("storage.state_uri", "must be a URI (e.g. file://./state)")
        if scheme not in {"memory", "file", "sqlite"}:
            raise ConfigError("storage.state_uri", f"unsupported scheme {scheme!r}")
        if scheme != "memory" and not path:
            raise ConfigError("storage.state_uri", f"{scheme}:// needs a path")


# -------------------------
# Top-level config
# -------------------------


@dataclass
class OperatorConfig:
    """
    Chain access:
      - rpc_url, chain_id, rpc_timeout_s, receipt_timeout_s, gas_limit
      - private_key: operator key; only needed by commands that submit

    Contracts:
      - avs_manager_addr: commit/reveal target (required to submit)
      - aggregator_addr:  optional; selects the aggregator price source
      - pool_addr:        Uniswap-v3-style pool for ticks and spot price

    Prediction:
      - alpha_bps: drift weight in [0, 10000]
      - round_id:  round to act on

    Windows / schedule / storage: nested sub-configs
    """

    rpc_url: str = "http://127.0.0.1:8545"
    private_key: Optional[str] = field(default=None, repr=False)
    chain_id: int = 1
    avs_manager_addr: Optional[str] = None
    aggregator_addr: Optional[str] = None
    pool_addr: str = DEFAULT_POOL_ADDR

    alpha_bps: int = 200
    round_id: int = 1

    rpc_timeout_s: float = 10.0
    receipt_timeout_s: float = 120.0
    gas_limit: Optional[int] = None

    windows: WindowConfig = field(default_factory=WindowConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    def validate(self) -> None:
        if not self.rpc_url or "://" not in self.rpc_url:
            raise ConfigError("rpc_url", "must be an http(s) URL")
        if self.rpc_url.split("://", 1)[0].lower() not in {"http", "https"}:
            raise ConfigError("rpc_url", "only http(s) endpoints are supported")
        if self.private_key is not None and not _KEY_RE.match(self.private_key):
            raise ConfigError("private_key", "must be 32 bytes of hex")
        if self.chain_id <= 0:
            raise ConfigError("chain_id", "must be > 0")

        _check_addr("avs_manager_addr", self.avs_manager_addr)
        _check_addr("aggregator_addr", self.aggregator_addr)
        _check_addr("pool_addr", self.pool_addr, required=True)

        if not 0 <= self.alpha_bps <= MAX_ALPHA_BPS:
            raise ConfigError("alpha_bps", f"must be in [0, {MAX_ALPHA_BPS}]")
        if not 0 <= self.round_id <= _U64_MAX:
            raise ConfigError("round_id", "must fit in u64")

        if self.rpc_timeout_s <= 0:
            raise ConfigError("rpc_timeout_s", "must be > 0")
        if self.receipt_timeout_s <= 0:
            raise ConfigError("receipt_timeout_s", "must be > 0")
        if self.gas_limit is not None and self.gas_limit <= 0:
            raise ConfigError("gas_limit", "must be > 0")

        # Sub-configs
        self.windows.validate()
        self.schedule.validate()
        self.storage.validate()

    def require_signer(self) -> None:
        """Raise unless everything needed to submit transactions is present."""
        if not self.private_key:
            raise ConfigError("OPERATOR_PRIVKEY", "is required to submit transactions")
        _check_addr("AVS_MANAGER_ADDR", self.avs_manager_addr, required=True)

    # -------------------------
    # Serialization helpers
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if data.get("private_key"):
            data["private_key"] = REDACTED
        return data

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    # -------------------------
    # Loaders
    # -------------------------

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> "OperatorConfig":
        """
        Load configuration from environment variables. Only the signing
        variables are needed for commands that submit transactions.

        Supported keys:
          - RPC_URL=https://...
          - OPERATOR_PRIVKEY=0x...
          - CHAIN_ID=1
          - AVS_MANAGER_ADDR=0x...
          - AGGREGATOR_ADDR=0x...          (optional; selects aggregator mode)
          - POOL_ADDR=0x88e6...5640
          - TWAP_LONG_SEC=300
          - TWAP_SHORT_SEC=30
          - ALPHA_BPS=200
          - ROUND_ID=1

          - STATE_URI=file://./state
          - REVEAL_DELAY_S=15
          - REVEAL_MIN_BLOCKS=0
          - REVEAL_POLL_S=2
          - RPC_TIMEOUT_S=10
          - RECEIPT_TIMEOUT_S=120
          - GAS_LIMIT=300000
        """
        src = os.environ if env is None else env

        def _get(name: str, cast: Any, default: Any) -> Any:
            raw = src.get(name)
            if raw is None or raw == "":
                return default
            try:
                return cast(raw)
            except (TypeError, ValueError) as e:
                raise ConfigError(name, f"invalid value {raw!r}") from e

        cfg = OperatorConfig(
            rpc_url=_get("RPC_URL", str, "http://127.0.0.1:8545"),
            private_key=_get("OPERATOR_PRIVKEY", str, None),
            chain_id=_get("CHAIN_ID", int, 1),
            avs_manager_addr=_get("AVS_MANAGER_ADDR", str, None),
            aggregator_addr=_get("AGGREGATOR_ADDR", str, None),
            pool_addr=_get("POOL_ADDR", str, DEFAULT_POOL_ADDR),
            alpha_bps=_get("ALPHA_BPS", int, 200),
            round_id=_get("ROUND_ID", int, 1),
            rpc_timeout_s=_get("RPC_TIMEOUT_S", float, 10.0),
            receipt_timeout_s=_get("RECEIPT_TIMEOUT_S", float, 120.0),
            gas_limit=_get("GAS_LIMIT", int, None),
            windows=WindowConfig(
                short_s=_get("TWAP_SHORT_SEC", int, 30),
                long_s=_get("TWAP_LONG_SEC", int, 300),
            ),
            schedule=ScheduleConfig(
                delay_s=_get("REVEAL_DELAY_S", float, 15.0),
                min_blocks=_get("REVEAL_MIN_BLOCKS", int, 0),
                poll_s=_get("REVEAL_POLL_S", float, 2.0),
            ),
            storage=StorageConfig(state_uri=_get("STATE_URI", str, "file://./state")),
        )
        cfg.validate()
        return cfg

    @staticmethod
    def from_file(path: str) -> "OperatorConfig":
        """
        Load configuration from a JSON or YAML file. Keys mirror the dataclass
        structure. Example (YAML):

            rpc_url: https://eth.example
            chain_id: 1
            avs_manager_addr: "0x..."
            alpha_bps: 200
            windows:
              short_s: 30
              long_s: 300
            schedule:
              delay_s: 15
            storage:
              state_uri: sqlite://./state/rounds.db

        The private key is intentionally not read from files; use
        OPERATOR_PRIVKEY.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = _parse_json_or_yaml(f.read(), path)
        if not isinstance(data, dict):
            raise ConfigError(path, "top level must be a mapping")

        windows_d = data.pop("windows", None) or {}
        schedule_d = data.pop("schedule", None) or {}
        storage_d = data.pop("storage", None) or {}
        data.pop("private_key", None)

        try:
            cfg = OperatorConfig(
                windows=WindowConfig(**windows_d),
                schedule=ScheduleConfig(**schedule_d),
                storage=StorageConfig(**storage_d),
                **data,
            )
        except TypeError as e:
            raise ConfigError(path, f"unknown or malformed key: {e}") from e
        cfg.validate()
        return cfg


# -------------------------
# Utilities
# -------------------------


def _parse_json_or_yaml(text: str, path_hint: str) -> Any:
    # First try JSON
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(path_hint, f"not valid JSON or YAML: {e}") from e


def load_config(path: Optional[str] = None) -> OperatorConfig:
    """File config when `path` is given, else environment. The key always comes from OPERATOR_PRIVKEY."""
    if path is None:
        return OperatorConfig.from_env()
    cfg = OperatorConfig.from_file(path)
    key = os.environ.get("OPERATOR_PRIVKEY")
    if key:
        cfg.private_key = key
        cfg.validate()
    return cfg


__all__ = [
    "DEFAULT_POOL_ADDR",
    "WindowConfig",
    "ScheduleConfig",
    "StorageConfig",
    "OperatorConfig",
    "load_config",
]
