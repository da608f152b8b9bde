"""
Anthropic computer-use adapter (Messages API with the `computer_20250124` tool).
"""

from __future__ import annotations

from typing import Any

import httpx

from ..constants import VIEWPORT_HEIGHT, VIEWPORT_WIDTH
from ..models import Screenshot
from .base import ModelTurn, ProviderContext, post_json

PROVIDER = "anthropic"

ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_COMPUTER_USE_BETA = "computer-use-2025-01-24"
MAX_TOKENS = 1400


def build_anthropic_request(model: str, prompt: str, screenshot: Screenshot) -> dict[str, Any]:
    return {
        "model": model,
        "max_tokens": MAX_TOKENS,
        "tools": [
            {
                "type": "computer_20250124",
                "name": "computer",
                "display_width_px": VIEWPORT_WIDTH,
                "display_height_px": VIEWPORT_HEIGHT,
            }
        ],
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {
                        "type": "image",
                        "source": {
                            "type": "base64",
                            "media_type": screenshot.mime_type,
                            "data": screenshot.data,
                        },
                    },
                ],
            }
        ],
    }


def parse_anthropic_response(data: dict[str, Any]) -> ModelTurn:
    blocks = [b for b in data.get("content") or [] if isinstance(b, dict)]
    text = "\n".join(str(b.get("text") or "") for b in blocks if b.get("type") == "text").strip()

    stop_reason = str(data.get("stop_reason") or "")
    if "safety" in stop_reason.lower() or stop_reason == "refusal":
        return ModelTurn.refusal(PROVIDER, f"Model refused to continue ({stop_reason}).", text)

    calls = [b for b in blocks if b.get("type") == "tool_use" and isinstance(b.get("input"), dict)]
    return ModelTurn.actions(PROVIDER, calls, text)


async def request_anthropic_turn(
    ctx: ProviderContext,
    prompt: str,
    screenshot: Screenshot,
    client: httpx.AsyncClient | None = None,
) -> ModelTurn:
    data = await post_json(
        ctx,
        f"{ctx.base_url.rstrip('/')}/v1/messages",
        headers={
            "x-api-key": ctx.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "anthropic-beta": ANTHROPIC_COMPUTER_USE_BETA,
            "content-type": "application/json",
        },
        body=build_anthropic_request(ctx.model, prompt, screenshot),
        client=client,
    )
    return parse_anthropic_response(data)
