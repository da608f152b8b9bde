"""
Shared provider plumbing: request context, the decoded model turn, and HTTP helpers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

import httpx

from ..constants import PROVIDER_TIMEOUT_S
from ..errors import ProviderResponseError

logger = logging.getLogger(__name__)

TurnKind = Literal["refusal", "final", "actions"]

_ERROR_BODY_LIMIT = 2000


@dataclass(frozen=True)
class ProviderContext:
    """Everything needed to address one reasoning provider."""

    provider: str
    api_key: str
    model: str
    base_url: str
    timeout_s: float = PROVIDER_TIMEOUT_S


@dataclass(frozen=True)
class ModelTurn:
    """
    One decoded reasoning-model response.

    - refusal: the provider declined on safety grounds (`reason` set)
    - final:   no action was proposed; `text` carries the closing analysis
    - actions: one or more raw provider payloads, executed in order
    """

    kind: TurnKind
    provider: str
    payloads: list[dict[str, Any]] = field(default_factory=list)
    text: str = ""
    reason: str | None = None

    @classmethod
    def refusal(cls, provider: str, reason: str, text: str = "") -> ModelTurn:
        return cls(kind="refusal", provider=provider, reason=reason, text=text)

    @classmethod
    def final(cls, provider: str, text: str) -> ModelTurn:
        return cls(kind="final", provider=provider, text=text)

    @classmethod
    def actions(cls, provider: str, payloads: list[dict[str, Any]], text: str = "") -> ModelTurn:
        if not payloads:
            return cls.final(provider, text)
        return cls(kind="actions", provider=provider, payloads=list(payloads), text=text)


async def post_json(
    ctx: ProviderContext,
    url: str,
    *,
    headers: dict[str, str],
    body: dict[str, Any],
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """
    POST a JSON body and decode the JSON reply.

    Raises:
        ProviderResponseError: non-2xx status, or a body that is not a JSON object.
    """
    logger.debug(f"{ctx.provider} computer_use request: model={ctx.model} url={url}")
    if client is not None:
        response = await client.post(url, headers=headers, json=body, timeout=ctx.timeout_s)
    else:
        async with httpx.AsyncClient(timeout=ctx.timeout_s) as owned:
            response = await owned.post(url, headers=headers, json=body)

    if not response.is_success:
        raise ProviderResponseError(ctx.provider, response.status_code, response.text[:_ERROR_BODY_LIMIT])

    try:
        data = response.json()
    except ValueError as e:
        raise ProviderResponseError(ctx.provider, response.status_code, f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ProviderResponseError(ctx.provider, response.status_code, "expected a JSON object")
    return data
