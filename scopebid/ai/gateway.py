"""
Renovation Scope Bidding Service
LLM Gateway.

Provider-agnostic LLM router with:
    - Multi-provider support (Cloudflare Workers AI, Anthropic Claude,
      OpenAI, Gemini, local stub)
    - Auto-retry with exponential backoff
    - Per-call timeout
    - Fallback to the local stub when a provider has no API key
    - Usage logging

Usage:
    from scopebid.ai.gateway import LLMGateway
    gw = LLMGateway()
    result = gw.infer("Analyze these construction constraints...", max_output_tokens=256)
    result["result"]   # narrative text
"""

import logging
import os
import threading
import time
from abc import ABC, abstractmethod

import requests

logger = logging.getLogger(__name__)


# ── Provider Abstract Base ────────────────────────────────────────────────────

class LLMProvider(ABC):
    """Abstract interface for LLM providers."""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    @abstractmethod
    def chat(self, messages: list, model: str, **kwargs) -> dict:
        """
        Send a chat completion request.

        Args:
            messages: List of {"role": "...", "content": "..."} dicts.
            model: Model identifier string.
            **kwargs: temperature, max_tokens, etc.

        Returns:
            dict with keys: content, prompt_tokens, completion_tokens, model
        """
        ...


# ── Cloudflare Workers AI Provider ────────────────────────────────────────────

class WorkersAIProvider(LLMProvider):
    """Cloudflare Workers AI REST provider (Llama 3 instruct models)."""

    API_URL = "https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/{model}"

    def __init__(self, timeout: float = 30.0):
        super().__init__(timeout)
        self.account_id = os.getenv("CLOUDFLARE_ACCOUNT_ID", "")
        self.api_token = os.getenv("CLOUDFLARE_API_TOKEN", "")

    def chat(self, messages: list, model: str = "@cf/meta/llama-3-8b-instruct", **kwargs) -> dict:
        response = requests.post(
            self.API_URL.format(account_id=self.account_id, model=model),
            headers={"Authorization": f"Bearer {self.api_token}"},
            json={"messages": messages, "max_tokens": kwargs.get("max_tokens", 256)},
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        if not payload.get("success", True):
            raise RuntimeError(f"Workers AI error: {payload.get('errors')}")

        result = payload.get("result") or {}
        content = result.get("response", "") if isinstance(result, dict) else str(result)
        usage = result.get("usage", {}) if isinstance(result, dict) else {}
        return {
            "content": content,
            "prompt_tokens": usage.get("prompt_tokens", 0),
            "completion_tokens": usage.get("completion_tokens", 0),
            "model": model,
        }


# ── Anthropic Provider ────────────────────────────────────────────────────────

class AnthropicProvider(LLMProvider):
    """Claude API (Anthropic) provider."""

    def __init__(self, timeout: float = 30.0):
        super().__init__(timeout)
        self.api_key = os.getenv("ANTHROPIC_API_KEY", "")
        self._client = None

    def _get_client(self):
        if self._client is None:
            import anthropic
            self._client = anthropic.Anthropic(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def chat(self, messages: list, model: str = "claude-3-5-haiku-20241022", **kwargs) -> dict:
        client = self._get_client()

        # Separate system message
        system_msg = ""
        chat_messages = []
        for m in messages:
            if m["role"] == "system":
                system_msg = m["content"]
            else:
                chat_messages.append(m)

        params = {
            "model": model,
            "messages": chat_messages,
            "max_tokens": kwargs.get("max_tokens", 1024),
            "temperature": kwargs.get("temperature", 0.3),
        }
        if system_msg:
            params["system"] = system_msg

        response = client.messages.create(**params)

        return {
            "content": response.content[0].text,
            "prompt_tokens": response.usage.input_tokens,
            "completion_tokens": response.usage.output_tokens,
            "model": model,
        }


# ── OpenAI Provider ───────────────────────────────────────────────────────────

class OpenAIProvider(LLMProvider):
    """OpenAI GPT provider."""

    def __init__(self, timeout: float = 30.0):
        super().__init__(timeout)
        self.api_key = os.getenv("OPENAI_API_KEY", "")
        self._client = None

    def _get_client(self):
        if self._client is None:
            import openai
            self._client = openai.OpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def chat(self, messages: list, model: str = "gpt-4o-mini", **kwargs) -> dict:
        client = self._get_client()
        response = client.chat.completions.create(
            model=model,
            messages=messages,
            max_tokens=kwargs.get("max_tokens", 1024),
            temperature=kwargs.get("temperature", 0.3),
        )
        choice = response.choices[0]
        return {
            "content": choice.message.content,
            "prompt_tokens": response.usage.prompt_tokens,
            "completion_tokens": response.usage.completion_tokens,
            "model": model,
        }


# ── Google Gemini Provider ───────────────────────────────────────────────────

class GeminiProvider(LLMProvider):
    """
    Google Gemini API provider (AI Studio).

    Environment:
        GEMINI_API_KEY — obtain at https://aistudio.google.com/apikey
    """

    def __init__(self, timeout: float = 30.0):
        super().__init__(timeout)
        self.api_key = os.getenv("GEMINI_API_KEY", "")
        self._client = None

    def _get_client(self):
        if self._client is None:
            from google import genai
            from google.genai import types
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout * 1000)),
            )
        return self._client

    def chat(self, messages: list, model: str = "gemini-2.5-flash", **kwargs) -> dict:
        client = self._get_client()
        from google.genai import types

        # Separate system instruction from conversation messages
        system_parts = []
        contents = []
        for m in messages:
            if m["role"] == "system":
                system_parts.append(m["content"])
            else:
                role = "model" if m["role"] == "assistant" else "user"
                contents.append(
                    types.Content(role=role, parts=[types.Part(text=m["content"])])
                )

        config = types.GenerateContentConfig(
            temperature=kwargs.get("temperature", 0.3),
            max_output_tokens=kwargs.get("max_tokens", 1024),
        )
        if system_parts:
            config.system_instruction = "\n\n".join(system_parts)

        response = client.models.generate_content(model=model, contents=contents, config=config)

        prompt_tokens = getattr(response.usage_metadata, "prompt_token_count", 0) or 0
        completion_tokens = getattr(response.usage_metadata, "candidates_token_count", 0) or 0

        return {
            "content": response.text or "",
            "prompt_tokens": prompt_tokens,
            "completion_tokens": completion_tokens,
            "model": model,
        }


# ── Local Stub Provider (for dev/test without API keys) ──────────────────────

class LocalStubProvider(LLMProvider):
    """
    Local stub that returns deterministic risk narratives for dev/testing.
    No API key required.
    """

    PERMIT_RISK = {
        "OTC": ("low", "Over-the-counter approval; expect 1-2 weeks of permit lead time."),
        "OTC with Plans": ("medium", "Plan review at the counter; budget 2-4 weeks for drawings."),
        "Full Plan Check": ("high", "Full plan check routinely adds 3-6 months before work can start."),
        "Site Permit": ("high", "Site permit review plus neighbourhood notice can exceed 6 months."),
    }

    def chat(self, messages: list, model: str = "local-stub", **kwargs) -> dict:
        user_msg = ""
        for m in reversed(messages):
            if m["role"] == "user":
                user_msg = m["content"]
                break

        content = self._generate_stub_response(user_msg)

        return {
            "content": content,
            "prompt_tokens": len(user_msg.split()) * 2,  # rough estimate
            "completion_tokens": len(content.split()) * 2,
            "model": "local-stub",
        }

    @classmethod
    def _generate_stub_response(cls, user_msg: str) -> str:
        fields = {}
        for line in user_msg.splitlines():
            key, sep, value = line.partition(":")
            if sep:
                fields[key.strip().lower()] = value.strip()

        item = fields.get("item", "This item")
        permit = fields.get("permit type", "")
        level, permit_note = cls.PERMIT_RISK.get(permit, ("medium", "Permit path unclear; confirm with DBI."))

        lower = user_msg.lower()
        flags = []
        if "311" in lower:
            flags.append("Section 311 neighbourhood notification (30-day notice, possible DR request)")
        if "variance" in lower:
            flags.append("Variance hearing before the Zoning Administrator")
        flag_text = f" Watch for: {'; '.join(flags)}." if flags else ""

        return f"{item}: {level} timeline risk. {permit_note}{flag_text}"


# ── LLM Gateway (Main Interface) ─────────────────────────────────────────────

class LLMGateway:
    """
    Central gateway for all LLM calls.

    Features:
        - Provider routing based on model name
        - Auto-retry with exponential backoff
        - Fallback to local stub when a provider is not configured

    Usage:
        gw = LLMGateway(timeout=30)
        result = gw.chat(
            messages=[{"role": "user", "content": "Analyze..."}],
            model="@cf/meta/llama-3-8b-instruct",
            purpose="risk_annotation",
        )
    """

    # Model → provider mapping
    PROVIDER_MAP = {
        # Cloudflare Workers AI
        "@cf/meta/llama-3-8b-instruct": "workers_ai",
        "@cf/meta/llama-3.1-8b-instruct": "workers_ai",
        # Anthropic
        "claude-3-5-haiku-20241022": "anthropic",
        "claude-3-5-sonnet-20241022": "anthropic",
        # OpenAI
        "gpt-4o-mini": "openai",
        "gpt-4o": "openai",
        # Google Gemini
        "gemini-2.5-flash": "gemini",
        "gemini-2.5-pro": "gemini",
        # Local stub (dev/test)
        "local-stub": "local",
    }

    DEFAULT_CHAT_MODEL = os.getenv("LLM_DEFAULT_CHAT_MODEL", "@cf/meta/llama-3-8b-instruct")

    def __init__(self, timeout: float = 30.0, max_retries: int = 2):
        self.timeout = timeout
        self.max_retries = max_retries
        self._providers = {}
        self._init_providers()

    @classmethod
    def from_app(cls, app):
        """Build a gateway from Flask config."""
        return cls(timeout=app.config.get("AI_TIMEOUT_SECONDS", 30.0))

    def _init_providers(self):
        """Initialize available providers based on environment."""
        self._providers["local"] = LocalStubProvider(self.timeout)

        if os.getenv("CLOUDFLARE_ACCOUNT_ID") and os.getenv("CLOUDFLARE_API_TOKEN"):
            self._providers["workers_ai"] = WorkersAIProvider(self.timeout)
        if os.getenv("GEMINI_API_KEY"):
            self._providers["gemini"] = GeminiProvider(self.timeout)
        if os.getenv("ANTHROPIC_API_KEY"):
            self._providers["anthropic"] = AnthropicProvider(self.timeout)
        if os.getenv("OPENAI_API_KEY"):
            self._providers["openai"] = OpenAIProvider(self.timeout)

    def _get_provider(self, model: str) -> tuple[LLMProvider, str]:
        """
        Resolve model to provider. Falls back to local stub if real provider unavailable.
        Returns (provider, provider_name).
        """
        provider_name = self.PROVIDER_MAP.get(model, "local")

        if provider_name in self._providers:
            return self._providers[provider_name], provider_name

        logger.warning(
            "Provider '%s' not available (no API key?). Falling back to local stub for model '%s'.",
            provider_name, model,
        )
        return self._providers["local"], "local"

    def chat(
        self,
        messages: list,
        model: str | None = None,
        *,
        purpose: str = "",
        max_retries: int | None = None,
        **kwargs,
    ) -> dict:
        """
        Send a chat completion request with retry.

        Args:
            messages: Chat messages.
            model: Model identifier (defaults to DEFAULT_CHAT_MODEL).
            purpose: What the call is for (e.g. "risk_annotation").
            max_retries: Attempts before giving up (defaults to the gateway setting).
            **kwargs: temperature, max_tokens passed to provider.

        Returns:
            dict: {content, prompt_tokens, completion_tokens, model, latency_ms, provider}

        Raises:
            RuntimeError: when every attempt failed.
        """
        model = model or self.DEFAULT_CHAT_MODEL
        attempts = max_retries if max_retries is not None else self.max_retries
        provider, provider_name = self._get_provider(model)

        last_error = None
        for attempt in range(1, attempts + 1):
            start_time = time.time()
            try:
                result = provider.chat(messages, model, **kwargs)
                latency_ms = int((time.time() - start_time) * 1000)
                result["latency_ms"] = latency_ms
                result["provider"] = provider_name
                logger.info(
                    "LLM call ok: purpose=%s provider=%s model=%s tokens=%d+%d latency=%dms",
                    purpose, provider_name, result.get("model", model),
                    result.get("prompt_tokens", 0), result.get("completion_tokens", 0),
                    latency_ms,
                )
                return result
            except Exception as e:
                last_error = e
                logger.warning("LLM call attempt %d/%d failed: %s", attempt, attempts, e)

                if attempt < attempts:
                    backoff = min(2 ** (attempt - 1), 4)
                    threading.Event().wait(backoff)

        raise RuntimeError(f"LLM call failed after {attempts} attempts: {last_error}")

    def infer(self, prompt: str, max_output_tokens: int = 256, *, purpose: str = "risk_annotation") -> dict:
        """
        Single-prompt inference.

        Returns the structured shape ``{"result": text, "model": ..., "provider": ...}``.
        """
        result = self.chat(
            [{"role": "user", "content": prompt}],
            purpose=purpose,
            max_tokens=max_output_tokens,
        )
        return {
            "result": result.get("content") or "",
            "model": result.get("model"),
            "provider": result.get("provider"),
        }

