"""
`computer_use` tool boundary.

This is the only place where exceptions become `ToolResult(success=False)`. A blocked
run is not an error: it is `success=True` with `blocked=True` in the payload.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from .checkpoint import CheckpointStore
from .credentials import CredentialResolver, resolve_provider_context
from .driver import SessionDriverPool
from .errors import BrowserStartError, PermissionDeniedError, WebPilotError
from .events import EventSink
from .models import ComputerUseRequest, ToolResult
from .providers import TurnRequester, request_model_turn
from .runner import ComputerUseConfig, ComputerUseRunner

logger = logging.getLogger(__name__)

COMPUTER_USE_DESCRIPTION = (
    "Control a real browser to accomplish a goal. The model looks at screenshots, clicks, "
    "types, scrolls and navigates until the goal is met, a blocker is detected, or the step "
    "budget runs out. Runs are checkpointed and can be resumed with resumeFromCheckpoint."
)


@dataclass(frozen=True)
class PermissionRequest:
    type: str
    path: str
    reason: str | None = None


@dataclass(frozen=True)
class ToolContext:
    """Per-invocation context supplied by the hosting session."""

    session_id: str
    provider: str | None = None
    app_data_dir: str | os.PathLike[str] | None = None


class PermissionGate(Protocol):
    async def request(self, session_id: str, permission: PermissionRequest) -> bool: ...


class ComputerUseTool:
    name = "computer_use"
    description = COMPUTER_USE_DESCRIPTION
    input_model = ComputerUseRequest

    def __init__(
        self,
        *,
        drivers: SessionDriverPool | None = None,
        credentials: CredentialResolver | None = None,
        permission_gate: PermissionGate | None = None,
        event_sink: EventSink | None = None,
        config: ComputerUseConfig = ComputerUseConfig(),
        http_client: httpx.AsyncClient | None = None,
        request_turn: TurnRequester = request_model_turn,
    ) -> None:
        self.drivers = drivers or SessionDriverPool()
        self.credentials = credentials
        self.permission_gate = permission_gate
        self.event_sink = event_sink
        self.config = config
        self.http_client = http_client
        self._request_turn = request_turn

    def llm_spec(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.input_model.model_json_schema(by_alias=True),
        }

    def requires_permission(self, args: Mapping[str, Any] | None = None) -> PermissionRequest:
        goal = (args or {}).get("goal")
        return PermissionRequest(
            type="network_request",
            path="Computer Use",
            reason=f"Browser automation: {goal}" if goal else "Browser automation",
        )

    async def execute(self, args: Mapping[str, Any], context: ToolContext) -> ToolResult:
        try:
            request = ComputerUseRequest.model_validate(dict(args))
        except ValidationError as e:
            return ToolResult(success=False, error=f"Invalid computer_use arguments: {e}")

        try:
            await self._authorize(args, context)
            provider = resolve_provider_context(
                context.provider, model_override=request.model, resolver=self.credentials
            )
            try:
                driver = await self.drivers.for_session(context.session_id)
            except Exception as e:
                raise BrowserStartError(f"Failed to start browser for automation: {e}") from e

            runner = ComputerUseRunner(
                driver,
                provider,
                store=CheckpointStore(context.app_data_dir),
                event_sink=self.event_sink,
                config=self.config,
                http_client=self.http_client,
                request_turn=self._request_turn,
            )
            result = await runner.run(request, session_id=context.session_id)
        except WebPilotError as e:
            logger.warning(f"computer_use failed for session {context.session_id}: {e}")
            return ToolResult(success=False, error=str(e))
        except Exception as e:
            logger.exception(f"computer_use crashed for session {context.session_id}")
            return ToolResult(success=False, error=str(e) or type(e).__name__)

        return ToolResult(success=True, data=result.to_payload())

    async def _authorize(self, args: Mapping[str, Any], context: ToolContext) -> None:
        if self.permission_gate is None:
            return
        permission = self.requires_permission(args)
        if not await self.permission_gate.request(context.session_id, permission):
            raise PermissionDeniedError(
                f"Permission denied: {permission.type} on {permission.path!r}"
            )
