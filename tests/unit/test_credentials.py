from __future__ import annotations

import pytest

from webpilot.credentials import EnvCredentialResolver, resolve_provider_context
from webpilot.errors import ConfigurationError


def test_google_key_alias_and_default_model() -> None:
    ctx = resolve_provider_context("google", resolver=EnvCredentialResolver({"GEMINI_API_KEY": "g-key"}))
    assert ctx.provider == "google"
    assert ctx.api_key == "g-key"
    assert ctx.model == "gemini-2.5-computer-use-preview-10-2025"
    assert ctx.base_url == "https://generativelanguage.googleapis.com"


def test_configured_models() -> None:
    env = {
        "GOOGLE_API_KEY": "g",
        "OPENAI_API_KEY": "o",
        "ANTHROPIC_API_KEY": "a",
        "WEBPILOT_COMPUTER_USE_MODEL": "gemini-custom",
        "WEBPILOT_SESSION_MODEL": "session-model",
    }
    resolver = EnvCredentialResolver(env)
    assert resolve_provider_context("google", resolver=resolver).model == "gemini-custom"
    assert resolve_provider_context("openai", resolver=resolver).model == "session-model"
    assert resolve_provider_context("anthropic", resolver=resolver).model == "session-model"
    assert resolve_provider_context("openai", model_override="override", resolver=resolver).model == "override"


def test_provider_defaults_without_session_model() -> None:
    resolver = EnvCredentialResolver({"OPENAI_API_KEY": "o", "ANTHROPIC_API_KEY": "a"})
    assert resolve_provider_context("openai", resolver=resolver).model == "computer-use-preview"
    assert resolve_provider_context("anthropic", resolver=resolver).model == "claude-sonnet-4-5"


def test_base_url_override() -> None:
    resolver = EnvCredentialResolver({"OPENAI_API_KEY": "o", "WEBPILOT_OPENAI_BASE_URL": "https://proxy.test"})
    assert resolve_provider_context("openai", resolver=resolver).base_url == "https://proxy.test"


def test_unsupported_provider_falls_back_to_google() -> None:
    ctx = resolve_provider_context("mistral", resolver=EnvCredentialResolver({"GOOGLE_API_KEY": "g"}))
    assert ctx.provider == "google"


def test_unsupported_provider_without_google_key_fails() -> None:
    with pytest.raises(ConfigurationError):
        resolve_provider_context("mistral", resolver=EnvCredentialResolver({}))


def test_missing_key_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        resolve_provider_context("openai", resolver=EnvCredentialResolver({"GOOGLE_API_KEY": "g"}))
    assert excinfo.value.provider == "openai"
    assert "OPENAI_API_KEY" in str(excinfo.value)


def test_reads_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "from-env")
    ctx = resolve_provider_context("anthropic")
    assert ctx.api_key == "from-env"
