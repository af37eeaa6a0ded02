"""
LLM Reasoner — OpenAI-Compatible JSON Completion Client
=========================================================
Thin provider-agnostic layer used by the model-backed interpretation:
  - Groq and OpenAI through the same chat-completions wire format
  - JSON-object response mode, with a brace-extraction parse fallback
  - Rate-limit detection (HTTP 429 or ``rate_limit_exceeded`` error code)
  - Bounded retries with linear backoff for transient failures only

Design:
  - Rules-only mode never touches the network (``enabled`` is False)
  - Every failure surfaces as ModelUnavailableError or RateLimitedError;
    the caller decides how to degrade
"""

import asyncio
import json
import logging
import os
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    GROQ = "groq"
    OPENAI = "openai"
    RULES_ONLY = "rules_only"


DEFAULT_BASE_URLS = {
    LLMProvider.GROQ: "https://api.groq.com/openai/v1",
    LLMProvider.OPENAI: "https://api.openai.com/v1",
}
DEFAULT_MODEL = "llama-3.3-70b-versatile"


class ModelUnavailableError(Exception):
    """The completion endpoint failed or returned unusable content."""


class RateLimitedError(ModelUnavailableError):
    """The completion endpoint rejected the call with a rate limit."""


@dataclass
class LLMConfig:
    provider: LLMProvider = LLMProvider.RULES_ONLY
    model: str = DEFAULT_MODEL
    api_key: str = ""
    base_url: str = ""
    max_tokens: int = 800
    temperature: float = 0.3
    timeout_seconds: int = 20
    max_retries: int = 1

    @classmethod
    def from_env(cls) -> "LLMConfig":
        provider_str = os.getenv("ANALYSIS_LLM_PROVIDER", "rules_only").lower()
        try:
            provider = LLMProvider(provider_str)
        except ValueError:
            logger.warning(f"Unknown ANALYSIS_LLM_PROVIDER '{provider_str}', using rules_only")
            provider = LLMProvider.RULES_ONLY
        return cls(
            provider=provider,
            model=os.getenv("ANALYSIS_LLM_MODEL", DEFAULT_MODEL),
            api_key=os.getenv("ANALYSIS_LLM_API_KEY", ""),
            base_url=os.getenv("ANALYSIS_LLM_BASE_URL", ""),
            max_tokens=int(os.getenv("ANALYSIS_LLM_MAX_TOKENS", "800")),
            temperature=float(os.getenv("ANALYSIS_LLM_TEMPERATURE", "0.3")),
            timeout_seconds=int(os.getenv("ANALYSIS_LLM_TIMEOUT", "20")),
        )

    @property
    def endpoint(self) -> str:
        base = self.base_url or DEFAULT_BASE_URLS.get(self.provider, "")
        return f"{base.rstrip('/')}/chat/completions"


def parse_json_content(content: Optional[str]) -> Dict[str, Any]:
    """Parse a JSON object reply, tolerating prose around the braces."""
    if not content:
        raise ModelUnavailableError("Empty completion content")
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        m = re.search(r"\{[\s\S]*\}", content)
        if not m:
            raise ModelUnavailableError("Completion content is not JSON")
        try:
            parsed = json.loads(m.group(0))
        except json.JSONDecodeError as e:
            raise ModelUnavailableError(f"Completion content is not JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ModelUnavailableError("Completion JSON is not an object")
    return parsed


def _is_rate_limited(resp: httpx.Response) -> bool:
    if resp.status_code == 429:
        return True
    try:
        error = resp.json().get("error") or {}
    except (ValueError, AttributeError):
        return False
    return isinstance(error, dict) and error.get("code") == "rate_limit_exceeded"


class LLMReasoner:
    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        retry_delay_seconds: float = 1.5,
    ):
        self.config = config or LLMConfig.from_env()
        self.transport = transport
        self.retry_delay_seconds = retry_delay_seconds
        self._call_count = 0
        self._failures = 0
        self._rate_limited = 0

    @property
    def enabled(self) -> bool:
        return self.config.provider != LLMProvider.RULES_ONLY and bool(self.config.api_key)

    async def complete_json(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        if not self.enabled:
            raise ModelUnavailableError("LLM provider is disabled")

        self._call_count += 1
        t0 = time.time()
        last_err: Optional[Exception] = None
        for attempt in range(self.config.max_retries + 1):
            try:
                content = await self._post(messages)
                parsed = parse_json_content(content)
                logger.debug(f"LLM reply parsed in {int((time.time() - t0) * 1000)}ms")
                return parsed
            except RateLimitedError:
                self._rate_limited += 1
                raise
            except ModelUnavailableError as e:
                last_err = e
            if attempt < self.config.max_retries:
                await asyncio.sleep((attempt + 1) * self.retry_delay_seconds)

        self._failures += 1
        raise last_err or ModelUnavailableError("LLM call failed")

    async def _post(self, messages: List[Dict[str, str]]) -> Optional[str]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }
        body = {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "response_format": {"type": "json_object"},
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds, transport=self.transport,
            ) as client:
                resp = await client.post(self.config.endpoint, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise ModelUnavailableError(f"LLM request failed: {e}") from e

        if _is_rate_limited(resp):
            raise RateLimitedError(f"LLM rate limited ({resp.status_code})")
        if resp.status_code >= 400:
            raise ModelUnavailableError(f"LLM returned HTTP {resp.status_code}")

        try:
            data = resp.json()
            return data["choices"][0]["message"].get("content")
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ModelUnavailableError(f"Malformed completion payload: {e}") from e

    def get_stats(self) -> Dict[str, Any]:
        return {
            "provider": self.config.provider.value,
            "model": self.config.model,
            "enabled": self.enabled,
            "calls": self._call_count,
            "failures": self._failures,
            "rate_limited": self._rate_limited,
        }
