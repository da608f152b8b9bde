"""
Google Gemini computer-use adapter (`generateContent` with the computer_use tool).
"""

from __future__ import annotations

from typing import Any

import httpx

from ..models import Screenshot
from .base import ModelTurn, ProviderContext, post_json

PROVIDER = "google"


def build_gemini_request(prompt: str, screenshot: Screenshot) -> dict[str, Any]:
    return {
        "contents": [
            {
                "role": "user",
                "parts": [
                    {"text": prompt},
                    {"inline_data": {"mime_type": screenshot.mime_type, "data": screenshot.data}},
                ],
            }
        ],
        "tools": [{"computer_use": {"environment": "ENVIRONMENT_BROWSER"}}],
    }


def parse_gemini_response(data: dict[str, Any]) -> ModelTurn:
    candidates = data.get("candidates") or []
    candidate = candidates[0] if candidates else {}
    finish_reason = str(candidate.get("finishReason") or "")

    parts = (candidate.get("content") or {}).get("parts") or []
    texts: list[str] = []
    calls: list[dict[str, Any]] = []
    for part in parts:
        if not isinstance(part, dict):
            continue
        if part.get("text"):
            texts.append(str(part["text"]))
        call = part.get("functionCall") or part.get("function_call")
        if isinstance(call, dict) and call.get("name"):
            calls.append({"name": call["name"], "args": call.get("args") or {}})
    text = "\n".join(texts).strip()

    if "safety" in finish_reason.lower():
        return ModelTurn.refusal(PROVIDER, f"Model refused to continue ({finish_reason}).", text)
    prompt_block = (data.get("promptFeedback") or {}).get("blockReason")
    if prompt_block:
        return ModelTurn.refusal(PROVIDER, f"Model refused to continue ({prompt_block}).", text)
    return ModelTurn.actions(PROVIDER, calls, text)


async def request_gemini_turn(
    ctx: ProviderContext,
    prompt: str,
    screenshot: Screenshot,
    client: httpx.AsyncClient | None = None,
) -> ModelTurn:
    url = f"{ctx.base_url.rstrip('/')}/v1beta/models/{ctx.model}:generateContent"
    data = await post_json(
        ctx,
        url,
        headers={"x-goog-api-key": ctx.api_key, "content-type": "application/json"},
        body=build_gemini_request(prompt, screenshot),
        client=client,
    )
    return parse_gemini_response(data)
