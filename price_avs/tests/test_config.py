import json

import pytest

from price_avs.config import DEFAULT_POOL_ADDR, OperatorConfig, load_config
from price_avs.errors import ConfigError

from .conftest import AGG, AVS, PRIVKEY


def test_defaults_match_operator_conventions():
    cfg = OperatorConfig.from_env({})
    assert cfg.pool_addr == DEFAULT_POOL_ADDR
    assert (cfg.windows.short_s, cfg.windows.long_s) == (30, 300)
    assert cfg.alpha_bps == 200
    assert cfg.round_id == 1
    assert cfg.chain_id == 1
    assert cfg.aggregator_addr is None
    assert cfg.schedule.delay_s == 15.0
    assert cfg.storage.state_uri == "file://./state"


def test_from_env_reads_all_keys():
    env = {
        "RPC_URL": "https://rpc.example",
        "OPERATOR_PRIVKEY": PRIVKEY,
        "CHAIN_ID": "17000",
        "AVS_MANAGER_ADDR": AVS,
        "AGGREGATOR_ADDR": AGG,
        "TWAP_LONG_SEC": "600",
        "TWAP_SHORT_SEC": "60",
        "ALPHA_BPS": "10000",
        "ROUND_ID": "42",
        "STATE_URI": "sqlite://./state/rounds.db",
        "REVEAL_DELAY_S": "0",
        "REVEAL_MIN_BLOCKS": "2",
        "GAS_LIMIT": "250000",
    }
    cfg = OperatorConfig.from_env(env)
    assert cfg.rpc_url == "https://rpc.example"
    assert cfg.chain_id == 17000
    assert cfg.aggregator_addr == AGG
    assert (cfg.windows.short_s, cfg.windows.long_s) == (60, 600)
    assert cfg.alpha_bps == 10_000
    assert cfg.round_id == 42
    assert cfg.gas_limit == 250_000
    sched = cfg.schedule.to_schedule()
    assert (sched.delay_s, sched.min_blocks) == (0.0, 2)
    cfg.require_signer()


def test_empty_aggregator_means_pool_mode():
    assert OperatorConfig.from_env({"AGGREGATOR_ADDR": ""}).aggregator_addr is None


@pytest.mark.parametrize(
    "env,key",
    [
        ({"ALPHA_BPS": "10001"}, "alpha_bps"),
        ({"ALPHA_BPS": "-1"}, "alpha_bps"),
        ({"ALPHA_BPS": "lots"}, "ALPHA_BPS"),
        ({"TWAP_SHORT_SEC": "0"}, "windows.short_s"),
        ({"POOL_ADDR": "0x1234"}, "pool_addr"),
        ({"AVS_MANAGER_ADDR": "not-an-address"}, "avs_manager_addr"),
        ({"OPERATOR_PRIVKEY": "0xabc"}, "private_key"),
        ({"RPC_URL": "ws://localhost:8546"}, "rpc_url"),
        ({"STATE_URI": "redis://x"}, "storage.state_uri"),
        ({"ROUND_ID": "-3"}, "round_id"),
    ],
)
def test_invalid_env_is_config_error(env, key):
    with pytest.raises(ConfigError) as ei:
        OperatorConfig.from_env(env)
    assert ei.value.key == key


def test_require_signer_needs_key_and_manager():
    with pytest.raises(ConfigError) as ei:
        OperatorConfig.from_env({"AVS_MANAGER_ADDR": AVS}).require_signer()
    assert ei.value.key == "OPERATOR_PRIVKEY"
    with pytest.raises(ConfigError) as ei:
        OperatorConfig.from_env({"OPERATOR_PRIVKEY": PRIVKEY}).require_signer()
    assert ei.value.key == "AVS_MANAGER_ADDR"


def test_to_dict_redacts_key():
    cfg = OperatorConfig.from_env({"OPERATOR_PRIVKEY": PRIVKEY})
    d = cfg.to_dict()
    assert d["private_key"] == "***"
    assert PRIVKEY not in cfg.to_json()
    assert PRIVKEY not in repr(cfg)
    assert d["windows"] == {"short_s": 30, "long_s": 300}


def test_from_yaml_file(tmp_path):
    p = tmp_path / "operator.yaml"
    p.write_text(
        "\n".join(
            [
                "rpc_url: https://rpc.example",
                f"avs_manager_addr: '{AVS}'",
                "alpha_bps: 150",
                "private_key: ignored",
                "windows:",
                "  short_s: 15",
                "  long_s: 900",
                "storage:",
                "  state_uri: memory://",
            ]
        )
    )
    cfg = OperatorConfig.from_file(str(p))
    assert cfg.alpha_bps == 150
    assert cfg.windows.long_s == 900
    assert cfg.private_key is None
    assert cfg.storage.state_uri == "memory://"


def test_from_json_file_rejects_unknown_keys(tmp_path):
    p = tmp_path / "operator.json"
    p.write_text(json.dumps({"alpha": 1}))
    with pytest.raises(ConfigError):
        OperatorConfig.from_file(str(p))


def test_load_config_takes_key_from_env(tmp_path, monkeypatch):
    p = tmp_path / "operator.json"
    p.write_text(json.dumps({"avs_manager_addr": AVS}))
    monkeypatch.setenv("OPERATOR_PRIVKEY", PRIVKEY)
    cfg = load_config(str(p))
    assert cfg.private_key == PRIVKEY
    cfg.require_signer()
