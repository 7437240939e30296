# nctl/tests/test_config.py
import pytest
from pydantic import ValidationError

from nctl.config import Settings, load_settings


def test_defaults():
    s = load_settings()
    assert s.nctl_home == "."
    assert s.base_port_rpc == 11000
    assert s.rpc_path == "/rpc"
    assert s.config_origin == "defaults"


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("NCTL", str(tmp_path))
    monkeypatch.setenv("NCTL_RPC_HOST", "10.0.0.5")
    monkeypatch.setenv("NCTL_RPC_PATH", "json-rpc")
    monkeypatch.setenv("NCTL_BASE_PORT_RPC", "21000")
    monkeypatch.setenv("NCTL_RPC_TIMEOUT", "2.5")
    monkeypatch.setenv("NCTL_LOG_LEVEL", "debug")
    monkeypatch.setenv("NCTL_LOG_JSON", "0")
    s = load_settings()
    assert s.nctl_home == str(tmp_path)
    assert s.rpc_host == "10.0.0.5"
    assert s.rpc_path == "/json-rpc"
    assert s.base_port_rpc == 21000
    assert s.rpc_timeout_s == 2.5
    assert s.log_level == "DEBUG"
    assert s.log_json is False


@pytest.mark.parametrize(
    "name, value",
    [
        ("NCTL_BASE_PORT_RPC", "0"),
        ("NCTL_BASE_PORT_RPC", "70000"),
        ("NCTL_BASE_PORT_RPC", "many"),
        ("NCTL_RPC_TIMEOUT", "-1"),
        ("NCTL_LOG_LEVEL", "LOUD"),
    ],
)
def test_out_of_bounds_env_is_ignored(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    s = load_settings()
    d = Settings()
    assert (s.base_port_rpc, s.rpc_timeout_s, s.log_level) == (
        d.base_port_rpc,
        d.rpc_timeout_s,
        d.log_level,
    )


def test_yaml_overlay(monkeypatch, tmp_path):
    cfg = tmp_path / "nctl.yaml"
    cfg.write_text("rpc_host: node.local\nbase_port_rpc: 12000\n", encoding="utf-8")
    monkeypatch.setenv("NCTL_CONFIG_PATH", str(cfg))
    s = load_settings()
    assert s.rpc_host == "node.local"
    assert s.base_port_rpc == 12000
    assert s.config_origin == "yaml"


def test_env_beats_yaml(monkeypatch, tmp_path):
    cfg = tmp_path / "nctl.yaml"
    cfg.write_text("rpc_host: node.local\n", encoding="utf-8")
    monkeypatch.setenv("NCTL_CONFIG_PATH", str(cfg))
    monkeypatch.setenv("NCTL_RPC_HOST", "other.local")
    assert load_settings().rpc_host == "other.local"


def test_yaml_unknown_key_rejected(monkeypatch, tmp_path):
    cfg = tmp_path / "nctl.yaml"
    cfg.write_text("no_such_setting: 1\n", encoding="utf-8")
    monkeypatch.setenv("NCTL_CONFIG_PATH", str(cfg))
    with pytest.raises(ValidationError):
        load_settings()


def test_missing_yaml_is_ignored(monkeypatch, tmp_path):
    monkeypatch.setenv("NCTL_CONFIG_PATH", str(tmp_path / "absent.yaml"))
    assert load_settings().config_origin == "defaults"


def test_config_hash_is_stable():
    a = Settings(rpc_host="h")
    b = Settings(rpc_host="h")
    assert a.config_hash() == b.config_hash()
    assert a.config_hash() != Settings(rpc_host="other").config_hash()


def test_settings_are_frozen():
    s = Settings()
    with pytest.raises(ValidationError):
        s.rpc_host = "x"
