"""
tests/test_config.py
"""

import pytest

from witnessledger.config import WitnessConfig, load_config
from witnessledger.core.exceptions import ValidationError


def test_defaults():
    config = WitnessConfig()
    assert config.settlement_interval_seconds == 10.0
    assert config.ledger_url is None
    assert config.logic_summary_length == 200
    assert config.log_level == "INFO"


def test_from_yaml(tmp_path):
    path = tmp_path / "witnessledger.yaml"
    path.write_text(
        "settlement_interval_seconds: 2.5\n"
        "ledger_url: http://ledger.local/msg\n"
        "logic_summary_length: 50\n"
    )
    config = WitnessConfig.from_yaml(path)
    assert config.settlement_interval_seconds == 2.5
    assert config.ledger_url == "http://ledger.local/msg"
    assert config.logic_summary_length == 50


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert WitnessConfig.from_yaml(path) == WitnessConfig()


def test_yaml_must_be_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ValidationError):
        WitnessConfig.from_yaml(path)


def test_unknown_keys_rejected():
    with pytest.raises(ValidationError) as exc:
        WitnessConfig.from_mapping({"ledger_ulr": "typo"})
    assert "ledger_ulr" in exc.value.details["keys"]


def test_env_overrides_yaml(tmp_path):
    path = tmp_path / "witnessledger.yaml"
    path.write_text("settlement_interval_seconds: 30\n")
    config = load_config(path, environ={
        "WITNESSLEDGER_SETTLEMENT_INTERVAL_SECONDS": "1.5",
        "WITNESSLEDGER_CREDENTIAL_PATH":             "/keys/owner.pem",
        "UNRELATED":                                 "x",
    })
    assert config.settlement_interval_seconds == 1.5
    assert config.credential_path == "/keys/owner.pem"


def test_empty_env_value_clears_optional():
    base = WitnessConfig(ledger_url="http://x")
    config = base.apply_env({"WITNESSLEDGER_LEDGER_URL": ""})
    assert config.ledger_url is None


def test_no_env_returns_same_config():
    config = WitnessConfig()
    assert config.apply_env({}) is config


@pytest.mark.parametrize("env", [
    {"WITNESSLEDGER_SETTLEMENT_INTERVAL_SECONDS": "soon"},
    {"WITNESSLEDGER_SETTLEMENT_INTERVAL_SECONDS": "0"},
    {"WITNESSLEDGER_LEDGER_TIMEOUT_SECONDS": "-1"},
    {"WITNESSLEDGER_LOGIC_SUMMARY_LENGTH": "-5"},
    {"WITNESSLEDGER_LOGIC_SUMMARY_LENGTH": "ten"},
])
def test_invalid_values_rejected(env):
    with pytest.raises(ValidationError):
        WitnessConfig.from_env(env)


@pytest.mark.parametrize("field", [
    "settlement_interval_seconds",
    "ledger_timeout_seconds",
    "logic_summary_length",
])
def test_null_numeric_yaml_value_rejected(tmp_path, field):
    path = tmp_path / "witnessledger.yaml"
    path.write_text(f"{field}: null\n")
    with pytest.raises(ValidationError):
        WitnessConfig.from_yaml(path)


def test_null_optional_yaml_value_allowed(tmp_path):
    path = tmp_path / "witnessledger.yaml"
    path.write_text("ledger_url: null\nlog_level: null\n")
    config = WitnessConfig.from_yaml(path)
    assert config.ledger_url is None
    assert config.log_level == "INFO"


def test_config_is_frozen():
    with pytest.raises(AttributeError):
        WitnessConfig().ledger_url = "http://x"
