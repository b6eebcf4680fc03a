"""
price_avs.cli
-------------

Operator CLI for the price-prediction AVS.

Commands:
  - predict : Read prices and print the prediction for a round (no transactions).
  - commit  : Compute a prediction, commit it on-chain and persist the opening.
  - reveal  : Reveal a previously committed round from the state store.
  - run     : commit, wait per the reveal schedule, then reveal.
  - inspect : Show stored rounds (offline; reads only the state store).

Configuration comes from the environment (a `.env` file is loaded first) or
from `--config <file.yaml|json>`; see `price_avs.config`.

Exit codes:
  0 ok, 1 operator error, 2 commit on-chain but opening NOT persisted,
  130 interrupted.

Example:
  price-avs predict
  price-avs --json run --round 42
  price-avs inspect --round 42
"""

from __future__ import annotations

import json
import signal
import sys
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Sequence

import typer
from dotenv import find_dotenv, load_dotenv
from prometheus_client import start_http_server

from price_avs import logging as plog
from price_avs.chain.client import Web3ChainClient
from price_avs.commit_reveal import CancelToken, Coordinator, build_commitment
from price_avs.config import OperatorConfig, load_config
from price_avs.errors import ConfigError, OracleError, PersistenceFailure, ReadFailure
from price_avs.oracle import select_source
from price_avs.predictor import drift_bps, predict_next
from price_avs.store import RoundStore, open_store
from price_avs.utils.bytes import to_hex
from price_avs.version import __version__

__all__ = ["app", "main"]

log = plog.get_logger("price_avs.cli")

EXIT_ERROR = 1
EXIT_UNPERSISTED = 2

app = typer.Typer(
    name="price-avs",
    help="Price-prediction AVS operator (read → predict → commit → reveal).",
    no_args_is_help=True,
    add_completion=False,
)


# -----------------------
# Shared state / helpers
# -----------------------


class _State:
    config_path: Optional[str] = None


_STATE = _State()


def _echo_json(obj: Dict[str, Any]) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


@contextmanager
def _errors() -> Iterator[None]:
    """Map operator errors to exit codes."""
    try:
        yield
    except PersistenceFailure as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=EXIT_UNPERSISTED)
    except OracleError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=EXIT_ERROR)


def _config(round_id: Optional[int]) -> OperatorConfig:
    cfg = load_config(_STATE.config_path)
    if round_id is not None:
        cfg.round_id = round_id
        cfg.validate()
    return cfg


def _client(cfg: OperatorConfig, *, signer: bool) -> Web3ChainClient:
    return Web3ChainClient(
        cfg.rpc_url,
        private_key=cfg.private_key if signer else None,
        chain_id=cfg.chain_id,
        timeout_s=cfg.rpc_timeout_s,
        receipt_timeout_s=cfg.receipt_timeout_s,
        gas_limit=cfg.gas_limit,
    )


def _check_chain_id(cfg: OperatorConfig, client: Web3ChainClient) -> None:
    """Refuse to sign for a chain other than the node's."""
    try:
        node_id = client.chain_id()
    except Exception as e:
        raise ReadFailure(cfg.rpc_url, "eth_chainId", str(e) or type(e).__name__) from e
    if node_id != cfg.chain_id:
        raise ConfigError("CHAIN_ID", f"node reports chain id {node_id}, configured {cfg.chain_id}")


def _coordinator(cfg: OperatorConfig, store: RoundStore) -> Coordinator:
    cfg.require_signer()
    client = _client(cfg, signer=True)
    _check_chain_id(cfg, client)
    return Coordinator(
        source=select_source(cfg, client),
        chain=client,
        store=store,
        avs_addr=cfg.avs_manager_addr,  # type: ignore[arg-type]
        alpha_bps=cfg.alpha_bps,
        schedule=cfg.schedule.to_schedule(),
    )


@contextmanager
def _cancel_on_signal(token: CancelToken) -> Iterator[None]:
    """SIGINT/SIGTERM cancel the token instead of killing the process mid-round."""

    def _handler(signum: int, _frame: Any) -> None:
        log.warning("signal received; cancelling", extra={"signal": signum})
        token.cancel()

    prev = {s: signal.signal(s, _handler) for s in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for s, h in prev.items():
            signal.signal(s, h)


def _round_opt() -> Optional[int]:
    return typer.Option(None, "--round", "-r", min=0, help="Round id (default: ROUND_ID).")  # type: ignore[return-value]


# -----------------------
# Global options
# -----------------------


@app.callback()
def _main(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="JSON/YAML config file."),
    env_file: Optional[str] = typer.Option(None, "--env-file", help="dotenv file (default: ./.env if present)."),
    log_level: str = typer.Option("INFO", "--log-level", help="DEBUG, INFO, WARNING, ERROR."),
    json_logs: Optional[bool] = typer.Option(None, "--json/--text", help="Log format (default: auto)."),
    metrics_port: Optional[int] = typer.Option(None, "--metrics-port", help="Expose Prometheus metrics on this port."),
) -> None:
    load_dotenv(env_file or find_dotenv(usecwd=True), override=False)
    plog.configure(json=json_logs, level=log_level)
    _STATE.config_path = config
    if metrics_port is not None:
        start_http_server(metrics_port)
        log.info("metrics exporter started", extra={"port": metrics_port})


# -----------------------
# Commands
# -----------------------


@app.command("version")
def cmd_version() -> None:
    """Print the package version."""
    typer.echo(__version__)


@app.command("predict")
def cmd_predict(round_id: Optional[int] = _round_opt()) -> None:
    """Read prices and print the prediction; nothing is sent or stored."""
    with _errors():
        cfg = _config(round_id)
        source = select_source(cfg, _client(cfg, signer=False))
        obs = source.observe()
        drift = drift_bps(obs.short_tick, obs.long_tick)
        prediction = predict_next(obs.base_price_x96, drift, cfg.alpha_bps)
        _echo_json(
            {
                "round_id": cfg.round_id,
                "source": obs.source,
                "base_price_x96": str(obs.base_price_x96),
                "short_tick": obs.short_tick,
                "long_tick": obs.long_tick,
                "drift_bps": drift,
                "alpha_bps": cfg.alpha_bps,
                "prediction_x96": str(prediction),
            }
        )


@app.command("commit")
def cmd_commit(round_id: Optional[int] = _round_opt()) -> None:
    """Commit a fresh prediction for a round and persist its opening."""
    with _errors():
        cfg = _config(round_id)
        with open_store(cfg.storage.state_uri) as store:
            res = _coordinator(cfg, store).commit(cfg.round_id)
        _echo_json(
            {
                "round_id": res.round_id,
                "commit_tx": res.tx_id,
                "commitment": to_hex(res.commitment),
                "prediction_x96": str(res.prediction),
            }
        )


@app.command("reveal")
def cmd_reveal(round_id: Optional[int] = _round_opt()) -> None:
    """Reveal a committed round using the persisted opening."""
    with _errors():
        cfg = _config(round_id)
        with open_store(cfg.storage.state_uri) as store:
            res = _coordinator(cfg, store).reveal(cfg.round_id)
        _echo_json(
            {
                "round_id": res.round_id,
                "reveal_tx": res.tx_id,
                "prediction_x96": str(res.prediction),
            }
        )


@app.command("run")
def cmd_run(round_id: Optional[int] = _round_opt()) -> None:
    """Commit, wait per the reveal schedule, then reveal."""
    token = CancelToken()
    with _errors(), _cancel_on_signal(token):
        cfg = _config(round_id)
        with open_store(cfg.storage.state_uri) as store:
            out = _coordinator(cfg, store).run(cfg.round_id, token)
        _echo_json(
            {
                "round_id": out.commit.round_id,
                "commit_tx": out.commit.tx_id,
                "reveal_tx": out.reveal.tx_id,
                "prediction_x96": str(out.commit.prediction),
            }
        )


@app.command("inspect")
def cmd_inspect(
    round_id: Optional[int] = typer.Option(None, "--round", "-r", min=0, help="Round id (omit to list all)."),
    show_config: bool = typer.Option(False, "--show-config", help="Also print the effective (redacted) config."),
) -> None:
    """Show persisted rounds; never touches the chain."""
    with _errors():
        cfg = load_config(_STATE.config_path)
        out: Dict[str, Any] = {}
        with open_store(cfg.storage.state_uri) as store:
            if round_id is None:
                out["rounds"] = [
                    {"round_id": r, "revealed": store.reveal_marker(r) is not None} for r in store.list_rounds()
                ]
            else:
                rec = store.get(round_id)
                marker = store.reveal_marker(round_id)
                out["round"] = {
                    "round_id": rec.round_id,
                    "prediction_x96": str(rec.prediction),
                    "salt": to_hex(rec.salt),
                    "commitment": to_hex(build_commitment(rec.prediction, rec.salt)),
                    "commit_tx": rec.commit_tx,
                    "created_at": rec.created_at,
                    "reveal_tx": marker.reveal_tx if marker else None,
                    "revealed_at": marker.revealed_at if marker else None,
                }
        if show_config:
            out["config"] = cfg.to_dict()
        _echo_json(out)


def main(argv: Optional[Sequence[str]] = None) -> None:  # pragma: no cover - thin wrapper
    """Entry-point for the `price-avs` script and `python -m price_avs.cli`."""
    try:
        app(args=list(argv) if argv is not None else None, prog_name="price-avs")
    except KeyboardInterrupt:
        typer.echo("", err=True)
        sys.exit(130)


if __name__ == "__main__":  # pragma: no cover
    main()
