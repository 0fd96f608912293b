"""Unit tests for configuration loading: YAML file + env overrides."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.exceptions import ConfigError
from utils.config import AppConfig, ReceiptAIConfig, load_config

ENV_KEYS = (
    "LOG_LEVEL",
    "MAX_WORKERS",
    "RECEIPT_FALLBACK_THRESHOLD",
    "RECEIPT_AI_ENABLED",
    "OPENAI_API_URL",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "RECEIPT_AI_MAX_TOKENS",
    "RECEIPT_AI_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults_without_file(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "absent.yaml")
    assert cfg == AppConfig()
    assert cfg.fallback_threshold == 0.9
    assert cfg.ai.api_url == "https://api.openai.com/v1/chat/completions"
    assert cfg.ai.model == "gpt-4o-mini"
    assert cfg.ai.max_tokens == 256
    assert cfg.ai.timeout_sec == 15
    assert cfg.ai.amount_min == 0
    assert cfg.ai.amount_max == 10_000_000
    assert cfg.ai.date_max_years_ago == 2
    assert not cfg.ai.enabled


def test_yaml_values(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "log_level: DEBUG\n"
        "max_workers: 4\n"
        "fallback_threshold: 0.8\n"
        "ai:\n"
        "  enabled: true\n"
        "  model: gpt-test\n"
        "  amount_max: 500000\n"
        "  date_max_years_ago: 3\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.log_level == "DEBUG"
    assert cfg.max_workers == 4
    assert cfg.fallback_threshold == 0.8
    assert cfg.ai.enabled
    assert cfg.ai.model == "gpt-test"
    assert cfg.ai.amount_max == 500000.0
    assert cfg.ai.date_max_years_ago == 3
    assert cfg.ai.max_tokens == 256


def test_default_path_is_config_yaml_in_cwd(tmp_path: Path) -> None:
    (tmp_path / "config.yaml").write_text("max_workers: 2\n", encoding="utf-8")
    assert load_config().max_workers == 2


def test_env_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("ai:\n  model: gpt-yaml\n", encoding="utf-8")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-env")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("RECEIPT_AI_ENABLED", "yes")
    monkeypatch.setenv("RECEIPT_AI_TIMEOUT", "30")
    monkeypatch.setenv("RECEIPT_FALLBACK_THRESHOLD", "0.75")
    monkeypatch.setenv("MAX_WORKERS", "8")
    cfg = load_config(path)
    assert cfg.ai.model == "gpt-env"
    assert cfg.ai.api_key == "sk-test"
    assert cfg.ai.enabled
    assert cfg.ai.timeout_sec == 30.0
    assert cfg.fallback_threshold == 0.75
    assert cfg.max_workers == 8


def test_bad_numeric_env_keeps_default(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("MAX_WORKERS", "many")
    monkeypatch.setenv("RECEIPT_AI_MAX_TOKENS", "lots")
    cfg = load_config(tmp_path / "absent.yaml")
    assert cfg.max_workers == 1
    assert cfg.ai.max_tokens == 256


def test_non_mapping_yaml_raises(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_non_mapping_ai_section_raises(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("ai: enabled\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_empty_yaml_means_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == AppConfig()


def test_with_overrides_ignores_none_and_unknown() -> None:
    cfg = AppConfig()
    new = cfg.with_overrides(max_workers=3, log_level=None, unknown="x", ai=ReceiptAIConfig(enabled=True))
    assert new.max_workers == 3
    assert new.log_level == "INFO"
    assert new.ai.enabled
    assert cfg.max_workers == 1
