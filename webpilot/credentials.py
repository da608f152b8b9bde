"""
Provider credential and model resolution.

The runner never reads the environment directly; it asks a `CredentialResolver`. The
bundled `EnvCredentialResolver` covers the common case of keys exported in the shell.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from .constants import (
    ANTHROPIC_API_URL,
    DEFAULT_ANTHROPIC_COMPUTER_USE_MODEL,
    DEFAULT_GOOGLE_COMPUTER_USE_MODEL,
    DEFAULT_OPENAI_COMPUTER_USE_MODEL,
    GOOGLE_API_URL,
    OPENAI_API_URL,
    PROVIDER_TIMEOUT_S,
)
from .errors import ConfigurationError
from .providers.base import ProviderContext

_KEY_ENV_VARS: dict[str, tuple[str, ...]] = {
    "google": ("GOOGLE_API_KEY", "GEMINI_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
}

_DEFAULT_BASE_URLS = {
    "google": GOOGLE_API_URL,
    "openai": OPENAI_API_URL,
    "anthropic": ANTHROPIC_API_URL,
}


@runtime_checkable
class CredentialResolver(Protocol):
    """Source of API keys, base URLs and configured model names."""

    def api_key(self, provider: str) -> str | None: ...

    def base_url(self, provider: str) -> str | None: ...

    def computer_use_model(self) -> str | None: ...

    def session_model(self) -> str | None: ...


class EnvCredentialResolver:
    """Reads credentials from environment variables (or an injected mapping)."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def _get(self, name: str) -> str | None:
        value = (self._environ.get(name) or "").strip()
        return value or None

    def api_key(self, provider: str) -> str | None:
        for name in _KEY_ENV_VARS.get(provider, ()):
            value = self._get(name)
            if value:
                return value
        return None

    def base_url(self, provider: str) -> str | None:
        return self._get(f"WEBPILOT_{provider.upper()}_BASE_URL")

    def computer_use_model(self) -> str | None:
        return self._get("WEBPILOT_COMPUTER_USE_MODEL")

    def session_model(self) -> str | None:
        return self._get("WEBPILOT_SESSION_MODEL")


def _default_model(provider: str, resolver: CredentialResolver) -> str:
    if provider == "google":
        return resolver.computer_use_model() or DEFAULT_GOOGLE_COMPUTER_USE_MODEL
    if provider == "openai":
        return resolver.session_model() or DEFAULT_OPENAI_COMPUTER_USE_MODEL
    return resolver.session_model() or DEFAULT_ANTHROPIC_COMPUTER_USE_MODEL


def resolve_provider_context(
    provider: str | None,
    *,
    model_override: str | None = None,
    resolver: CredentialResolver | None = None,
    timeout_s: float = PROVIDER_TIMEOUT_S,
) -> ProviderContext:
    """
    Pick the provider, key, model and base URL for one run.

    Providers without computer-use support fall back to Google when a Google key is
    configured.

    Raises:
        ConfigurationError: no API key is available for the chosen provider.
    """
    resolver = resolver or EnvCredentialResolver()
    selected = (provider or "google").strip().lower()

    if selected not in _KEY_ENV_VARS:
        if resolver.api_key("google"):
            selected = "google"
        else:
            raise ConfigurationError(
                f"Computer use is not supported for provider {selected!r} and no Google API key "
                "is configured. Set GOOGLE_API_KEY or GEMINI_API_KEY.",
                provider=selected,
            )

    api_key = resolver.api_key(selected)
    if not api_key:
        names = " or ".join(_KEY_ENV_VARS[selected])
        raise ConfigurationError(
            f"Computer use requires an API key for provider {selected!r}. Set {names}.",
            provider=selected,
        )

    model = (model_override or "").strip() or _default_model(selected, resolver)
    base_url = resolver.base_url(selected) or _DEFAULT_BASE_URLS[selected]
    return ProviderContext(
        provider=selected, api_key=api_key, model=model, base_url=base_url, timeout_s=timeout_s
    )
