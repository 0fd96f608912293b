"""
AI fallback extractor: receipt text -> LLM (single call) -> validated amount/date.
Uses injected ILLMProvider; never raises to the caller. Any failure degrades to the empty result.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date
from typing import Any

import requests
from pydantic import ValidationError

from core.exceptions import StructuredOutputError
from core.interfaces import IAIExtractor, ILLMProvider
from core.models import AIExtractionResult
from core.schema import AIReceiptPayload, parse_calendar_date
from prompts import load_prompt
from providers.openai_provider import OpenAIProvider
from utils.config import ReceiptAIConfig
from utils.logger import log_structured, preview

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 6000
MIN_TEXT_LENGTH = 50
TEXT_PLACEHOLDER = "{{CHECK_TEXT}}"

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def _parse_payload(raw: str) -> dict[str, Any]:
    """Strip an optional code fence and decode; anything but a JSON object is an error."""
    s = _CODE_FENCE.sub("", (raw or "").strip()).strip()
    try:
        data = json.loads(s)
    except json.JSONDecodeError as e:
        raise StructuredOutputError(f"Response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise StructuredOutputError(f"Expected JSON object, got {type(data).__name__}")
    return data


def _years_before(today: date, years: int) -> date:
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return today.replace(year=today.year - years, day=28)


class AIReceiptExtractor(IAIExtractor):
    """Receipt LLM via injected provider. Low temperature, one request, no retry."""

    def __init__(
        self,
        provider: ILLMProvider,
        config: ReceiptAIConfig | None = None,
        system_prompt: str | None = None,
        user_prompt_template: str | None = None,
    ) -> None:
        self._provider = provider
        self._config = config or ReceiptAIConfig()
        self._system_prompt = system_prompt or load_prompt(self._config.system_prompt_file)
        self._user_template = user_prompt_template or load_prompt(self._config.user_prompt_file)

    @classmethod
    def from_config(cls, config: ReceiptAIConfig) -> AIReceiptExtractor:
        """Build the extractor with an OpenAI-compatible HTTP provider from config."""
        provider = OpenAIProvider(
            api_url=config.api_url,
            api_key=config.api_key,
            model=config.model,
            timeout_sec=config.timeout_sec,
        )
        return cls(provider, config)

    def is_configured(self) -> bool:
        return bool((self._config.api_url or "").strip() and self._config.api_key)

    def _build_messages(self, text: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": self._user_template.replace(TEXT_PLACEHOLDER, text)},
        ]

    def extract(self, raw_text: str, context: dict[str, Any] | None = None) -> AIExtractionResult:
        text = (raw_text or "").strip()[:MAX_TEXT_LENGTH]
        if len(text) < MIN_TEXT_LENGTH:
            logger.debug("AI extraction skipped: text too short (%d chars)", len(text))
            return AIExtractionResult.empty()
        hint_keys = sorted(k for k, v in (context or {}).items() if v is not None)
        content = ""
        try:
            content = self._provider.chat(
                self._build_messages(text),
                model=self._config.model,
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
            )
            payload = AIReceiptPayload.model_validate(_parse_payload(content))
        except requests.HTTPError as e:
            resp = e.response
            log_structured(
                logger,
                logging.WARNING,
                "AI extraction HTTP error",
                status=resp.status_code if resp is not None else None,
                body=preview(resp.text if resp is not None else ""),
                text_preview=preview(text),
            )
            return AIExtractionResult.empty()
        except requests.RequestException as e:
            log_structured(
                logger,
                logging.WARNING,
                "AI extraction request failed",
                error=str(e),
                text_preview=preview(text),
            )
            return AIExtractionResult.empty()
        except (StructuredOutputError, ValidationError) as e:
            log_structured(
                logger,
                logging.WARNING,
                "AI extraction returned unusable content",
                error=str(e),
                content=preview(content),
                text_preview=preview(text),
            )
            return AIExtractionResult.empty()
        except Exception as e:
            log_structured(
                logger,
                logging.ERROR,
                "AI extraction failed",
                error=repr(e),
                text_preview=preview(text),
            )
            return AIExtractionResult.empty()

        result = AIExtractionResult(
            amount=self._validated_amount(payload.amount),
            date=self._validated_date(payload.date),
            currency=payload.currency,
            confidence=payload.confidence,
        )
        log_structured(
            logger,
            logging.INFO,
            "AI extraction result",
            amount=result.amount,
            date=result.date,
            confidence=result.confidence,
            valid=result.is_valid(),
            text_length=len(text),
            hints=hint_keys,
        )
        return result

    def _validated_amount(self, amount: float | None) -> float | None:
        if amount is None:
            return None
        if amount <= self._config.amount_min or amount > self._config.amount_max:
            logger.info("AI amount rejected by bounds: %s", amount)
            return None
        return amount

    def _validated_date(self, value: str | None) -> str | None:
        if not value:
            return None
        parsed = parse_calendar_date(value)
        if parsed is None:
            logger.info("AI date rejected as unparseable: %r", preview(value, 40))
            return None
        today = date.today()
        if parsed > today:
            logger.info("AI date rejected as future: %s", parsed)
            return None
        if parsed < _years_before(today, self._config.date_max_years_ago):
            logger.info("AI date rejected as too old: %s", parsed)
            return None
        return parsed.isoformat()
