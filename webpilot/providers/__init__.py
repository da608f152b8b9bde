"""
Reasoning-provider adapters.

`request_model_turn` sends the step prompt plus the current screenshot to the configured
provider and decodes the reply into a `ModelTurn`.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import httpx

from ..models import Screenshot
from .anthropic import request_anthropic_turn
from .base import ModelTurn, ProviderContext
from .gemini import request_gemini_turn
from .openai import request_openai_turn

TurnRequester = Callable[
    [ProviderContext, str, Screenshot, "httpx.AsyncClient | None"], Awaitable[ModelTurn]
]

_REQUESTERS: dict[str, TurnRequester] = {
    "google": request_gemini_turn,
    "openai": request_openai_turn,
    "anthropic": request_anthropic_turn,
}

SUPPORTED_PROVIDERS = tuple(_REQUESTERS)


async def request_model_turn(
    ctx: ProviderContext,
    prompt: str,
    screenshot: Screenshot,
    client: httpx.AsyncClient | None = None,
) -> ModelTurn:
    requester = _REQUESTERS.get(ctx.provider)
    if requester is None:
        raise ValueError(f"Computer use is not supported for provider {ctx.provider!r}")
    return await requester(ctx, prompt, screenshot, client)


__all__ = [
    "ModelTurn",
    "ProviderContext",
    "SUPPORTED_PROVIDERS",
    "TurnRequester",
    "request_model_turn",
]
