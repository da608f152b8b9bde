"""
OpenAI computer-use adapter (Responses API with the `computer_use_preview` tool).
"""

from __future__ import annotations

from typing import Any

import httpx

from ..constants import VIEWPORT_HEIGHT, VIEWPORT_WIDTH
from ..models import Screenshot
from .base import ModelTurn, ProviderContext, post_json

PROVIDER = "openai"


def build_openai_request(model: str, prompt: str, screenshot: Screenshot) -> dict[str, Any]:
    return {
        "model": model,
        "tools": [
            {
                "type": "computer_use_preview",
                "display_width": VIEWPORT_WIDTH,
                "display_height": VIEWPORT_HEIGHT,
                "environment": "browser",
            }
        ],
        "input": [
            {
                "role": "user",
                "content": [
                    {"type": "input_text", "text": prompt},
                    {
                        "type": "input_image",
                        "image_url": f"data:{screenshot.mime_type};base64,{screenshot.data}",
                    },
                ],
            }
        ],
        "truncation": "auto",
    }


def _output_text(data: dict[str, Any]) -> str:
    if isinstance(data.get("output_text"), str):
        return data["output_text"].strip()
    texts: list[str] = []
    for item in data.get("output") or []:
        if not isinstance(item, dict) or item.get("type") != "message":
            continue
        for content in item.get("content") or []:
            if isinstance(content, dict) and content.get("type") == "output_text":
                texts.append(str(content.get("text") or ""))
    return "\n".join(t for t in texts if t).strip()


def _refusal_text(data: dict[str, Any]) -> str | None:
    for item in data.get("output") or []:
        if not isinstance(item, dict) or item.get("type") != "message":
            continue
        for content in item.get("content") or []:
            if isinstance(content, dict) and content.get("type") == "refusal":
                return str(content.get("refusal") or "Model refused to continue.")
    return None


def parse_openai_response(data: dict[str, Any]) -> ModelTurn:
    text = _output_text(data)
    refusal = _refusal_text(data)
    if refusal is not None:
        return ModelTurn.refusal(PROVIDER, refusal, text)

    calls: list[dict[str, Any]] = []
    for item in data.get("output") or []:
        if not isinstance(item, dict) or item.get("type") != "computer_call":
            continue
        checks = item.get("pending_safety_checks") or []
        if checks:
            message = "; ".join(str(c.get("message") or c.get("code") or "") for c in checks if isinstance(c, dict))
            return ModelTurn.refusal(
                PROVIDER, f"Provider safety check requires confirmation: {message or 'unspecified'}", text
            )
        if isinstance(item.get("action"), dict):
            calls.append(item)
    return ModelTurn.actions(PROVIDER, calls, text)


async def request_openai_turn(
    ctx: ProviderContext,
    prompt: str,
    screenshot: Screenshot,
    client: httpx.AsyncClient | None = None,
) -> ModelTurn:
    base = ctx.base_url.rstrip("/")
    if not base.endswith("/v1"):
        base = f"{base}/v1"
    data = await post_json(
        ctx,
        f"{base}/responses",
        headers={"Authorization": f"Bearer {ctx.api_key}", "content-type": "application/json"},
        body=build_openai_request(ctx.model, prompt, screenshot),
        client=client,
    )
    return parse_openai_response(data)
