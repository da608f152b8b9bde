"""
Pydantic models for WebPilot.

Wire-facing models (checkpoint file, tool request/result) use camelCase aliases so the
persisted JSON matches what other clients of the checkpoint file expect, while Python
code keeps snake_case attribute names.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .constants import CHECKPOINT_VERSION, DEFAULT_MAX_STEPS

ActionName = Literal[
    "navigate",
    "click_at",
    "hover_at",
    "type_text_at",
    "scroll_at",
    "scroll_document",
    "drag_and_drop",
    "go_back",
    "go_forward",
    "key_combination",
    "wait",
]

ProviderId = Literal["google", "openai", "anthropic"]

RunProgressStatus = Literal["running", "blocked", "completed", "recovered"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BrowserAction(BaseModel):
    """Canonical browser action consumed by the action executor"""

    model_config = ConfigDict(frozen=True)

    name: ActionName
    args: dict[str, Any] = Field(default_factory=dict)

    def describe(self) -> str:
        """Human-readable log line, e.g. `click_at({"x": 10, "y": 20})`."""
        if not self.args:
            return f"{self.name}()"
        return f"{self.name}({json.dumps(self.args)})"


class ActionHistoryEntry(_CamelModel):
    """One successfully executed action, as recorded in the checkpoint"""

    model_config = ConfigDict(frozen=True)

    action: str
    args: dict[str, Any] = Field(default_factory=dict)
    url: str
    timestamp: int  # epoch milliseconds
    signature: str


class RunCheckpoint(_CamelModel):
    """Durable snapshot of a computer-use run"""

    version: Literal[1] = CHECKPOINT_VERSION
    session_id: str
    goal: str
    provider: str
    model: str
    created_at: int
    updated_at: int
    steps: int = 0
    max_steps: int
    completed: bool = False
    blocked: bool = False
    blocked_reason: str | None = None
    final_analysis: str | None = None
    last_url: str | None = None
    url_stability_count: int = 0
    actions: list[str] = Field(default_factory=list)
    pages_visited: list[str] = Field(default_factory=list)
    action_history: list[ActionHistoryEntry] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)

    @property
    def recoverable(self) -> bool:
        return not self.completed or self.blocked


class SafetyDecision(BaseModel):
    """Verdict of the action safety classifier (never persisted)"""

    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> SafetyDecision:
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> SafetyDecision:
        return cls(allowed=False, reason=reason)


class Screenshot(BaseModel):
    """Base64 screenshot captured from the browser driver"""

    data: str
    mime_type: str = "image/png"
    url: str | None = None


class ComputerUseRequest(_CamelModel):
    """Arguments accepted by the `computer_use` tool"""

    model_config = ConfigDict(extra="ignore")

    goal: str = Field(..., min_length=1, description="The task or goal to accomplish in the browser")
    start_url: str | None = Field(None, description="Optional starting URL")
    max_steps: float | None = Field(
        DEFAULT_MAX_STEPS,
        description=f"Maximum number of steps (default: {DEFAULT_MAX_STEPS}); rounded, at least 1",
    )
    model: str | None = Field(None, description="Optional model override")
    resume_from_checkpoint: bool = Field(
        False, description="Resume this browser run from the last saved checkpoint"
    )
    checkpoint_path: str | None = Field(
        None, description="Optional custom checkpoint path for run recovery"
    )


class ComputerUseResult(_CamelModel):
    """Outcome of one computer-use invocation"""

    completed: bool
    blocked: bool
    blocked_reason: str | None = None
    actions: list[str] = Field(default_factory=list)
    action_history: list[ActionHistoryEntry] = Field(default_factory=list)
    pages_visited: list[str] = Field(default_factory=list)
    final_url: str
    steps: int
    max_steps: int
    checkpoint_path: str
    resumed_from_checkpoint: bool = False
    session_id: str | None = None
    analysis: str | None = None
    status: Literal["initializing", "running", "completed", "blocked", "budget_exhausted"] | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ToolResult(BaseModel):
    """Tool-call boundary envelope: a deliberate stop is still `success=True`"""

    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
