from __future__ import annotations

from typing import Any

import pytest

from xmdedit.llm.client import LLMClient
from xmdedit.llm.models import DEFAULT_ALIAS, get_model


@pytest.fixture(autouse=True)  # type: ignore[misc]
def clean_env(monkeypatch: Any) -> None:
    """Keep real provider keys from leaking into these tests."""
    for name in (
        "OPENAI_API_KEY",
        "OPENAI_BASE_URL",
        "GOOGLE_API_KEY",
        "GOOGLE_API_BASE_URL",
        "DEEPSEEK_API_KEY",
        "DEEPSEEK_BASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_from_env_reads_openai_api_key_and_base_url(monkeypatch: Any) -> None:
    """LLMClient.from_env() should honour OPENAI_API_KEY and OPENAI_BASE_URL."""
    monkeypatch.setenv("OPENAI_API_KEY", "test-openai-key")
    monkeypatch.setenv("OPENAI_BASE_URL", "https://example.com/v1")

    client = LLMClient.from_env()

    assert client.api_key == "test-openai-key"
    assert client.base_url == "https://example.com/v1"
    assert client.default_model_alias == DEFAULT_ALIAS


def test_generate_openai_compatible_requests_json_output(monkeypatch: Any) -> None:
    """The component-edit alias asks Chat Completions for a JSON object."""
    client = LLMClient(api_key="dummy-openai-key", base_url="https://api.example.com/v1")

    captured: dict[str, Any] = {}

    def fake_post(
        self: LLMClient,
        *,
        url: str,
        headers: dict[str, str],
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        captured["url"] = url
        captured["headers"] = headers
        captured["payload"] = payload
        return {"choices": [{"message": {"content": '{"type": "clarify", "question": "?"}'}}]}

    # Patch the network seam at the class level (slots-safe).
    monkeypatch.setattr(LLMClient, "_post", fake_post)

    messages = [
        {"role": "system", "content": "Edit one component."},
        {"role": "user", "content": "center it"},
    ]
    text = client.generate(messages)

    assert text == '{"type": "clarify", "question": "?"}'
    config = get_model(DEFAULT_ALIAS)
    # The registry's base URL wins over the client default when no env override exists.
    assert captured["url"] == f"{config.base_url}/chat/completions"
    assert captured["headers"]["Authorization"] == "Bearer dummy-openai-key"
    assert captured["payload"]["model"] == config.name
    assert captured["payload"]["response_format"] == {"type": "json_object"}
    assert captured["payload"]["temperature"] == config.temperature
    assert captured["payload"]["messages"][1] == {"role": "user", "content": "center it"}


def test_generate_plain_alias_has_no_response_format(monkeypatch: Any) -> None:
    client = LLMClient(api_key="k", base_url="https://api.example.com/v1")
    captured: dict[str, Any] = {}

    def fake_post(self: LLMClient, *, url: str, headers: Any, payload: Any) -> dict[str, Any]:
        captured["payload"] = payload
        return {"choices": [{"message": {"content": "ok"}}]}

    monkeypatch.setattr(LLMClient, "_post", fake_post)

    assert client.generate([{"role": "user", "content": "hi"}], model="fast", max_tokens=50) == "ok"
    assert "response_format" not in captured["payload"]
    assert captured["payload"]["max_tokens"] == 50


def test_generate_gemini_maps_roles_and_system_instruction(monkeypatch: Any) -> None:
    """For provider='google', system turns move to systemInstruction."""
    monkeypatch.setenv("GOOGLE_API_KEY", "test-google-key")
    monkeypatch.setenv("GOOGLE_API_BASE_URL", "https://gemini.example.com/v1beta")

    client = LLMClient(api_key="", base_url="https://api.openai.com/v1")
    captured: dict[str, Any] = {}

    def fake_post(
        self: LLMClient,
        *,
        url: str,
        headers: dict[str, str],
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        captured["url"] = url
        captured["headers"] = headers
        captured["payload"] = payload
        return {"candidates": [{"content": {"parts": [{"text": "Part A. "}, {"text": "Part B."}]}}]}

    monkeypatch.setattr(LLMClient, "_post", fake_post)

    messages = [
        {"role": "system", "content": "Edit one component."},
        {"role": "user", "content": "make it smaller"},
        {"role": "assistant", "content": "How much?"},
        {"role": "user", "content": "40%"},
    ]
    text = client.generate(messages, model="component_edit_gemini")

    assert text == "Part A. Part B."
    assert captured["url"] == (
        "https://gemini.example.com/v1beta/models/gemini-2.0-flash:generateContent"
    )
    assert captured["headers"]["x-goog-api-key"] == "test-google-key"
    payload = captured["payload"]
    assert payload["systemInstruction"] == {"parts": [{"text": "Edit one component."}]}
    assert [c["role"] for c in payload["contents"]] == ["user", "model", "user"]
    assert payload["generationConfig"]["responseMimeType"] == "application/json"


def test_missing_provider_key_raises() -> None:
    client = LLMClient(api_key="openai-only", base_url="https://api.openai.com/v1")
    with pytest.raises(RuntimeError, match="DEEPSEEK_API_KEY"):
        client.generate([{"role": "user", "content": "hi"}], model="component_edit_deepseek")


def test_empty_openai_response_raises(monkeypatch: Any) -> None:
    client = LLMClient(api_key="k", base_url="https://api.example.com/v1")

    def fake_post(self: LLMClient, *, url: str, headers: Any, payload: Any) -> dict[str, Any]:
        return {"choices": []}

    monkeypatch.setattr(LLMClient, "_post", fake_post)
    with pytest.raises(RuntimeError, match="no choices"):
        client.generate([{"role": "user", "content": "hi"}])
