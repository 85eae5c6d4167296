# -----------------------------------------------------------------------------
# Synchronous chat-completion client used by the component-edit agent.
#
# - Resolves model aliases through `models.py`.
# - Speaks two wire protocols:
#     * OpenAI-compatible POST {base}/chat/completions (openai, deepseek)
#     * Google Gemini POST {base}/models/{model}:generateContent
# - Returns one string: the first candidate's text.
#
# Only the standard library is used for HTTP. `_post()` is the single network
# seam; tests patch it and never open a socket.
# -----------------------------------------------------------------------------
from __future__ import annotations

import json
import os
import urllib.error
import urllib.request
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from typing import Any

from xmdedit.core.settings import get_logger

from .models import DEFAULT_ALIAS, ModelConfig, get_model

logger = get_logger(__name__)

_API_KEY_ENV: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "google": "GOOGLE_API_KEY",
}
_BASE_URL_ENV: dict[str, str] = {
    "openai": "OPENAI_BASE_URL",
    "deepseek": "DEEPSEEK_BASE_URL",
    "google": "GOOGLE_API_BASE_URL",
}


@dataclass(slots=True)
class LLMClient:
    """Minimal multi-provider client with a single :meth:`generate` call.

    Parameters
    ----------
    api_key:
        OpenAI key used when ``OPENAI_API_KEY`` is not set at call time.
        Other providers always read their key from the environment.
    base_url:
        OpenAI endpoint root used when neither ``OPENAI_BASE_URL`` nor the
        registry entry names one.
    default_model_alias:
        Alias used when :meth:`generate` is called without ``model``.
    timeout_seconds:
        Socket timeout for one request.
    """

    api_key: str
    base_url: str
    default_model_alias: str = DEFAULT_ALIAS
    timeout_seconds: float = 30.0

    @classmethod
    def from_env(cls, default_model_alias: str = DEFAULT_ALIAS) -> LLMClient:
        """Build a client from ``OPENAI_API_KEY`` / ``OPENAI_BASE_URL``."""
        return cls(
            api_key=os.getenv("OPENAI_API_KEY", ""),
            base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            default_model_alias=default_model_alias,
        )

    # --------------------------------------------------------------------- #
    # Public API
    # --------------------------------------------------------------------- #
    def generate(
        self,
        messages: Sequence[Mapping[str, str]],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_output: bool | None = None,
    ) -> str:
        """Return the text of the first completion for ``messages``.

        Parameters
        ----------
        messages:
            ``[{"role": "system" | "user" | "assistant", "content": "..."}]``.
        model:
            Alias or concrete model id; defaults to :attr:`default_model_alias`.
        temperature, max_tokens:
            Overrides of the registry defaults.
        json_output:
            Override of the registry's JSON-only reply flag.

        Raises
        ------
        RuntimeError
            Missing API key, HTTP/network failure, or a response without text.
        """
        config = get_model(model or self.default_model_alias)
        provider = config.provider.lower().strip()
        params = {
            "temperature": float(temperature if temperature is not None else config.temperature),
            "max_tokens": int(max_tokens if max_tokens is not None else config.max_tokens),
            "json_output": config.json_output if json_output is None else json_output,
        }
        logger.debug("LLM call provider=%s model=%s turns=%d", provider, config.name, len(messages))

        if provider == "google":
            return self._extract_content_gemini(
                self._generate_gemini(config=config, messages=messages, **params)
            )
        return self._extract_content_openai(
            self._generate_openai_compatible(config=config, messages=messages, **params)
        )

    # --------------------------------------------------------------------- #
    # Provider helpers
    # --------------------------------------------------------------------- #
    def _resolve(self, provider: str, config: ModelConfig) -> tuple[str, str]:
        key_env = _API_KEY_ENV.get(provider, "OPENAI_API_KEY")
        api_key = os.getenv(key_env, "")
        if not api_key and provider == "openai":
            api_key = self.api_key
        if not api_key:
            raise RuntimeError(
                f"Missing API key for provider '{provider}'. "
                f"Expected environment variable '{key_env}' to be set."
            )
        url_env = _BASE_URL_ENV.get(provider, "OPENAI_BASE_URL")
        base_url = os.getenv(url_env) or config.base_url or self.base_url
        return api_key, base_url.rstrip("/")

    def _generate_openai_compatible(
        self,
        *,
        config: ModelConfig,
        messages: Sequence[Mapping[str, str]],
        temperature: float,
        max_tokens: int,
        json_output: bool,
    ) -> dict[str, Any]:
        """POST to ``/chat/completions`` (OpenAI, DeepSeek)."""
        api_key, base_url = self._resolve(config.provider.lower().strip(), config)
        payload: MutableMapping[str, Any] = {
            "model": config.name,
            "messages": [{"role": m["role"], "content": m["content"]} for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_output:
            payload["response_format"] = {"type": "json_object"}
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        return self._post(url=f"{base_url}/chat/completions", headers=headers, payload=payload)

    def _generate_gemini(
        self,
        *,
        config: ModelConfig,
        messages: Sequence[Mapping[str, str]],
        temperature: float,
        max_tokens: int,
        json_output: bool,
    ) -> dict[str, Any]:
        """POST to ``/models/{model}:generateContent``.

        System turns become ``systemInstruction``; assistant turns use
        Gemini's ``model`` role.
        """
        api_key, base_url = self._resolve("google", config)
        system = [m["content"] for m in messages if m["role"] == "system"]
        contents = [
            {
                "role": "model" if m["role"] == "assistant" else "user",
                "parts": [{"text": m["content"]}],
            }
            for m in messages
            if m["role"] != "system"
        ]
        generation: dict[str, Any] = {"temperature": temperature, "maxOutputTokens": max_tokens}
        if json_output:
            generation["responseMimeType"] = "application/json"
        payload: MutableMapping[str, Any] = {"contents": contents, "generationConfig": generation}
        if system:
            payload["systemInstruction"] = {"parts": [{"text": "\n\n".join(system)}]}
        headers = {"Content-Type": "application/json", "x-goog-api-key": api_key}
        return self._post(
            url=f"{base_url}/models/{config.name}:generateContent",
            headers=headers,
            payload=payload,
        )

    # --------------------------------------------------------------------- #
    # Network seam
    # --------------------------------------------------------------------- #
    def _post(
        self,
        *,
        url: str,
        headers: Mapping[str, str],
        payload: Mapping[str, Any],
    ) -> dict[str, Any]:
        """POST ``payload`` as JSON and decode the JSON reply.

        Raises
        ------
        RuntimeError
            On HTTP errors, network errors or a body that is not JSON.
        """
        request = urllib.request.Request(
            url=url,
            data=json.dumps(payload).encode("utf-8"),
            headers=dict(headers),
            method="POST",
        )
        try:
            with urllib.request.urlopen(request, timeout=self.timeout_seconds) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore")
            raise RuntimeError(f"LLM HTTP error {exc.code}: {exc.reason}; body={detail!r}") from exc
        except urllib.error.URLError as exc:
            raise RuntimeError(f"LLM network error: {exc}") from exc

        try:
            decoded: dict[str, Any] = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise RuntimeError("Failed to decode LLM response as JSON") from exc
        return decoded

    # --------------------------------------------------------------------- #
    # Response extraction
    # --------------------------------------------------------------------- #
    @staticmethod
    def _extract_content_openai(response: Mapping[str, Any]) -> str:
        """Return ``choices[0].message.content``."""
        choices = response.get("choices")
        if not isinstance(choices, list) or not choices:
            raise RuntimeError("LLM response has no choices; cannot extract content.")
        message = choices[0].get("message")
        if not isinstance(message, Mapping):
            raise RuntimeError("LLM response choice[0].message is missing or invalid.")
        content = message.get("content")
        if not isinstance(content, str) or not content:
            raise RuntimeError("LLM response choice[0].message.content is empty.")
        return content

    @staticmethod
    def _extract_content_gemini(response: Mapping[str, Any]) -> str:
        """Concatenate the text parts of ``candidates[0].content``."""
        candidates = response.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            raise RuntimeError("Gemini response has no candidates; cannot extract content.")
        content = candidates[0].get("content")
        if not isinstance(content, Mapping):
            raise RuntimeError("Gemini response candidates[0].content is missing or invalid.")
        parts = content.get("parts")
        if not isinstance(parts, list) or not parts:
            raise RuntimeError("Gemini response candidates[0].content.parts is empty.")
        texts = [p["text"] for p in parts if isinstance(p, Mapping) and isinstance(p.get("text"), str)]
        if not texts:
            raise RuntimeError("Gemini response parts contain no text fields; cannot extract content.")
        return "".join(texts)


__all__ = ["LLMClient"]
