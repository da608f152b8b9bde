"""
WebPilot: a checkpointed computer-use loop that lets a reasoning model drive a browser.
"""

from .blockers import BlockerLimits, action_signature, detect_browser_blocker
from .checkpoint import CheckpointStore, ResumePlan, plan_resume
from .credentials import CredentialResolver, EnvCredentialResolver, resolve_provider_context
from .driver import BrowserDriver, PlaywrightDriver, SessionDriverPool, Viewport
from .errors import (
    ActionExecutionError,
    BrowserStartError,
    ConfigurationError,
    FatalActionError,
    PermissionDeniedError,
    ProviderResponseError,
    TransientActionError,
    UnsupportedActionError,
    WebPilotError,
)
from .events import JsonlEventSink, RunEventEmitter
from .executor import RetryPolicy, perform_action_with_retry
from .models import (
    ActionHistoryEntry,
    BrowserAction,
    ComputerUseRequest,
    ComputerUseResult,
    RunCheckpoint,
    SafetyDecision,
    Screenshot,
    ToolResult,
)
from .normalizer import NormalizedAction, normalize_provider_action
from .providers import ModelTurn, ProviderContext, request_model_turn
from .runner import ComputerUseConfig, ComputerUseRunner, RunState, RunStatus
from .safety import classify_action_safety
from .tool import ComputerUseTool, PermissionGate, PermissionRequest, ToolContext

__version__ = "0.1.0"

__all__ = [
    "ActionExecutionError",
    "ActionHistoryEntry",
    "BlockerLimits",
    "BrowserAction",
    "BrowserDriver",
    "BrowserStartError",
    "CheckpointStore",
    "ComputerUseConfig",
    "ComputerUseRequest",
    "ComputerUseResult",
    "ComputerUseRunner",
    "ComputerUseTool",
    "ConfigurationError",
    "CredentialResolver",
    "EnvCredentialResolver",
    "FatalActionError",
    "JsonlEventSink",
    "ModelTurn",
    "NormalizedAction",
    "PermissionDeniedError",
    "PermissionGate",
    "PermissionRequest",
    "PlaywrightDriver",
    "ProviderContext",
    "ProviderResponseError",
    "ResumePlan",
    "RetryPolicy",
    "RunCheckpoint",
    "RunEventEmitter",
    "RunState",
    "RunStatus",
    "SafetyDecision",
    "Screenshot",
    "SessionDriverPool",
    "ToolContext",
    "ToolResult",
    "TransientActionError",
    "UnsupportedActionError",
    "Viewport",
    "WebPilotError",
    "action_signature",
    "classify_action_safety",
    "detect_browser_blocker",
    "normalize_provider_action",
    "perform_action_with_retry",
    "plan_resume",
    "request_model_turn",
    "resolve_provider_context",
]
