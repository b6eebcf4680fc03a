import json
import logging

import pytest
from typer.testing import CliRunner

import price_avs.cli as cli
from price_avs import __version__
from price_avs.store import RoundStore

from .conftest import AGG, AVS, POOL, PRIVKEY, Q96, FakeChain, FlakyKeyValue

EXPECTED = Q96 * 100_002_000 // 100_000_000

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def chain(monkeypatch):
    fake = FakeChain(agg_price_x96=Q96, ticks={30: 50, 300: 40})
    monkeypatch.setattr(cli, "Web3ChainClient", lambda *a, **k: fake)
    return fake


@pytest.fixture
def env(tmp_path):
    return {
        "RPC_URL": "http://127.0.0.1:8545",
        "OPERATOR_PRIVKEY": PRIVKEY,
        "AVS_MANAGER_ADDR": AVS,
        "AGGREGATOR_ADDR": AGG,
        "POOL_ADDR": POOL,
        "ROUND_ID": "5",
        "STATE_URI": f"file://{tmp_path / 'state'}",
        "REVEAL_DELAY_S": "0",
    }


def invoke(args, env):
    return runner.invoke(cli.app, ["--text", *args], env=env)


def test_version():
    res = runner.invoke(cli.app, ["version"])
    assert res.exit_code == 0
    assert __version__ in res.stdout


def test_predict_is_read_only(chain, env):
    res = invoke(["predict"], env)
    assert res.exit_code == 0, res.output
    out = json.loads(res.stdout)
    assert out["source"] == "aggregator"
    assert out["drift_bps"] == 10
    assert out["prediction_x96"] == str(EXPECTED)
    assert chain.submissions == []


def test_commit_inspect_reveal_in_separate_invocations(chain, env):
    res = invoke(["commit"], env)
    assert res.exit_code == 0, res.output
    committed = json.loads(res.stdout)
    assert committed["round_id"] == 5
    assert committed["prediction_x96"] == str(EXPECTED)

    res = invoke(["inspect", "--round", "5"], env)
    assert res.exit_code == 0, res.output
    rnd = json.loads(res.stdout)["round"]
    assert rnd["commit_tx"] == committed["commit_tx"]
    assert rnd["commitment"] == committed["commitment"]
    assert rnd["reveal_tx"] is None

    res = invoke(["reveal"], env)
    assert res.exit_code == 0, res.output
    revealed = json.loads(res.stdout)
    assert revealed["prediction_x96"] == str(EXPECTED)

    res = invoke(["inspect"], env)
    assert json.loads(res.stdout)["rounds"] == [{"round_id": 5, "revealed": True}]

    # round is closed locally
    res = invoke(["reveal"], env)
    assert res.exit_code == 1
    assert len(chain.submissions) == 2


def test_run_with_round_override(chain, env):
    res = invoke(["run", "--round", "9"], env)
    assert res.exit_code == 0, res.output
    out = json.loads(res.stdout)
    assert out["round_id"] == 9
    assert out["commit_tx"] != out["reveal_tx"]
    assert len(chain.submissions) == 2


def test_reveal_without_state_fails(chain, env):
    res = invoke(["reveal", "--round", "77"], env)
    assert res.exit_code == 1
    assert chain.submissions == []


def test_commit_requires_operator_key(chain, env):
    env = dict(env, OPERATOR_PRIVKEY="")
    res = invoke(["commit"], env)
    assert res.exit_code == 1
    assert chain.submissions == []


def test_chain_id_mismatch_refuses_to_sign(chain, env):
    chain.node_chain_id = 5
    res = invoke(["commit"], env)
    assert res.exit_code == 1
    assert "CHAIN_ID" in res.output
    assert chain.submissions == []


def test_unpersisted_commit_exits_2(chain, env, monkeypatch):
    kv = FlakyKeyValue()
    kv.fail_puts = True
    monkeypatch.setattr(cli, "open_store", lambda uri: RoundStore(kv))
    res = invoke(["commit"], env)
    assert res.exit_code == 2
    assert len(chain.submissions) == 1


def test_inspect_show_config_is_redacted(env):
    res = invoke(["inspect", "--show-config"], env)
    assert res.exit_code == 0, res.output
    out = json.loads(res.stdout)
    assert out["rounds"] == []
    assert out["config"]["private_key"] == "***"
    assert PRIVKEY not in res.output
