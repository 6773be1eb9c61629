from text_intelligence import config
from text_intelligence.errors import ContractError
from text_intelligence.guardrails import guardrails_pre

import pytest


def test_merge_config_does_not_mutate_defaults():
    merged = config.merge_config({"guardrails": {"max_chars": 10}, "extra": {"a": 1}})
    assert merged["guardrails"]["max_chars"] == 10
    assert merged["guardrails"]["rate_limit"] == config.DEFAULT_CONFIG["guardrails"]["rate_limit"]
    assert merged["extra"] == {"a": 1}
    assert config.DEFAULT_CONFIG["guardrails"]["max_chars"] == 150_000


def test_load_config_from_file(tmp_path, cfg):
    path = tmp_path / "config.toml"
    path.write_text('[fetch]\ntimeout_seconds = 3.0\n')
    config._load_config(str(path))
    assert config.get_cfg()["fetch"]["timeout_seconds"] == 3.0
    assert config.get_cfg()["fetch"]["max_bytes"] == config.DEFAULT_CONFIG["fetch"]["max_bytes"]


def test_load_config_missing_file_uses_defaults(tmp_path, cfg):
    config._load_config(str(tmp_path / "absent.toml"))
    assert config.get_cfg() == config.DEFAULT_CONFIG


def test_load_config_bad_toml_keeps_previous(tmp_path, cfg):
    path = tmp_path / "config.toml"
    path.write_text("[fetch\n")
    config._load_config(str(path))
    assert config.get_cfg() is cfg


def test_reloader_disabled_by_zero_interval(cfg):
    cfg["server"]["reload_config_seconds"] = 0
    assert config.start_config_reloader() is None


def test_guardrails_pass_through(cfg):
    assert guardrails_pre(" ok ") == " ok "


def test_guardrails_too_long(cfg):
    cfg["guardrails"]["max_chars"] = 3
    with pytest.raises(ContractError) as exc:
        guardrails_pre("four")
    assert exc.value.code == "TEXT_TOO_LONG"
    assert exc.value.details == {"length": 4, "max_chars": 3}


def test_guardrails_zero_disables_length_check(cfg):
    cfg["guardrails"]["max_chars"] = 0
    assert guardrails_pre("x" * 10_000)
