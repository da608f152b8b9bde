from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import BrowserAction


class WebPilotError(RuntimeError):
    """Base class for errors raised by WebPilot."""


class ConfigurationError(WebPilotError):
    """No credentials or model are available for the selected provider."""

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class ActionExecutionError(WebPilotError):
    def __init__(
        self,
        message: str,
        *,
        action: BrowserAction | None = None,
        attempts: int = 1,
    ) -> None:
        super().__init__(message)
        self.action = action
        self.attempts = attempts


class TransientActionError(ActionExecutionError):
    """Raised by drivers to mark a failure as safe to retry."""


class FatalActionError(ActionExecutionError):
    """A browser action failed and will not be retried again."""


class UnsupportedActionError(WebPilotError):
    """The provider proposed an action outside the canonical vocabulary."""

    def __init__(self, action_type: str, *, provider: str | None = None) -> None:
        super().__init__(f"Unsupported computer-use action: {action_type or 'unknown'}")
        self.action_type = action_type
        self.provider = provider


class ProviderResponseError(WebPilotError):
    """The reasoning API answered with a non-success HTTP status."""

    def __init__(self, provider: str, status_code: int, body: str) -> None:
        super().__init__(f"{provider} computer_use failed ({status_code}): {body}")
        self.provider = provider
        self.status_code = status_code
        self.body = body


class BrowserStartError(WebPilotError):
    """The browser could not be prepared before the first step."""


class PermissionDeniedError(WebPilotError):
    """The upstream permission gate refused the run."""
