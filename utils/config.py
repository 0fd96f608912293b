"""
Configuration loader: YAML + env overrides.
A .env file (python-dotenv) is loaded before env lookup; env wins over YAML.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from core.exceptions import ConfigError
from providers.openai_provider import DEFAULT_OPENAI_CHAT_URL

DEFAULT_SYSTEM_PROMPT_FILE = "system_prompt_receipt_extraction.txt"
DEFAULT_USER_PROMPT_FILE = "user_prompt_receipt_extraction.txt"


def _coerce_bool(s: Any, default: bool = False) -> bool:
    if isinstance(s, bool):
        return s
    if s is None or str(s).strip() == "":
        return default
    return str(s).strip().lower() in ("1", "true", "yes", "on")


def _coerce_float(s: Any, default: float = 0.0) -> float:
    if s is None or s == "" or isinstance(s, bool):
        return default
    try:
        return float(s)
    except (TypeError, ValueError):
        return default


def _coerce_int(s: Any, default: int = 0) -> int:
    if s is None or s == "" or isinstance(s, bool):
        return default
    try:
        return int(s)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class ReceiptAIConfig:
    """LLM fallback endpoint, request limits and sanity bounds for its output."""

    enabled: bool = False
    api_url: str = DEFAULT_OPENAI_CHAT_URL
    api_key: str = ""
    model: str = "gpt-4o-mini"
    max_tokens: int = 256
    timeout_sec: float = 15.0
    temperature: float = 0.1
    amount_min: float = 0.0
    amount_max: float = 10_000_000.0
    date_max_years_ago: int = 2
    system_prompt_file: str = DEFAULT_SYSTEM_PROMPT_FILE
    user_prompt_file: str = DEFAULT_USER_PROMPT_FILE


@dataclass(frozen=True)
class AppConfig:
    """Immutable application configuration. Built from YAML + env."""

    log_level: str = "INFO"
    max_workers: int = 1
    fallback_threshold: float = 0.9
    ai: ReceiptAIConfig = field(default_factory=ReceiptAIConfig)

    def with_overrides(self, **overrides: Any) -> AppConfig:
        """Return new config with replaced top-level keys; None values are ignored."""
        known = {"log_level", "max_workers", "fallback_threshold", "ai"}
        changes = {k: v for k, v in overrides.items() if k in known and v is not None}
        return replace(self, **changes) if changes else self


def _env_override(key: str, default: Any, coerce: type | Any = str) -> Any:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    if coerce is bool:
        return _coerce_bool(raw, default)
    if coerce is float:
        return _coerce_float(raw, default)
    if coerce is int:
        return _coerce_int(raw, default)
    return str(raw).strip()


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")
    return data


def _ai_config_from_dict(data: dict[str, Any]) -> ReceiptAIConfig:
    d = ReceiptAIConfig()
    return ReceiptAIConfig(
        enabled=_coerce_bool(data.get("enabled"), d.enabled),
        api_url=str(data.get("api_url") or d.api_url),
        api_key=str(data.get("api_key") or ""),
        model=str(data.get("model") or d.model),
        max_tokens=_coerce_int(data.get("max_tokens"), d.max_tokens),
        timeout_sec=_coerce_float(data.get("timeout_sec"), d.timeout_sec),
        temperature=_coerce_float(data.get("temperature"), d.temperature),
        amount_min=_coerce_float(data.get("amount_min"), d.amount_min),
        amount_max=_coerce_float(data.get("amount_max"), d.amount_max),
        date_max_years_ago=_coerce_int(data.get("date_max_years_ago"), d.date_max_years_ago),
        system_prompt_file=str(data.get("system_prompt_file") or d.system_prompt_file),
        user_prompt_file=str(data.get("user_prompt_file") or d.user_prompt_file),
    )


def _config_from_dict(data: dict[str, Any]) -> AppConfig:
    """Build AppConfig from nested dict. Env overrides applied in load_config."""
    ai_data = data.get("ai")
    if ai_data is not None and not isinstance(ai_data, dict):
        raise ConfigError("Config section 'ai' must be a mapping")
    return AppConfig(
        log_level=str(data.get("log_level") or "INFO"),
        max_workers=_coerce_int(data.get("max_workers"), 1),
        fallback_threshold=_coerce_float(data.get("fallback_threshold"), 0.9),
        ai=_ai_config_from_dict(ai_data or {}),
    )


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """
    Load config from YAML file, then apply env overrides.
    Env vars: LOG_LEVEL, MAX_WORKERS, RECEIPT_FALLBACK_THRESHOLD, RECEIPT_AI_ENABLED,
    OPENAI_API_URL, OPENAI_API_KEY, OPENAI_MODEL, RECEIPT_AI_MAX_TOKENS, RECEIPT_AI_TIMEOUT.
    """
    load_dotenv()
    path = Path(config_path) if config_path else Path("config.yaml")
    cfg = _config_from_dict(_load_yaml(path))
    ai = cfg.ai
    ai = replace(
        ai,
        enabled=_env_override("RECEIPT_AI_ENABLED", ai.enabled, bool),
        api_url=_env_override("OPENAI_API_URL", ai.api_url),
        api_key=_env_override("OPENAI_API_KEY", ai.api_key),
        model=_env_override("OPENAI_MODEL", ai.model),
        max_tokens=_env_override("RECEIPT_AI_MAX_TOKENS", ai.max_tokens, int),
        timeout_sec=_env_override("RECEIPT_AI_TIMEOUT", ai.timeout_sec, float),
    )
    return cfg.with_overrides(
        log_level=_env_override("LOG_LEVEL", cfg.log_level),
        max_workers=_env_override("MAX_WORKERS", cfg.max_workers, int),
        fallback_threshold=_env_override("RECEIPT_FALLBACK_THRESHOLD", cfg.fallback_threshold, float),
        ai=ai,
    )
