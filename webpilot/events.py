"""
Run notifications.

Events are fire-and-forget: a failing sink is logged and ignored so observability never
breaks a browser run.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Literal, Protocol

from pydantic import BaseModel, Field

from .models import RunProgressStatus, Screenshot

logger = logging.getLogger(__name__)

EventType = Literal[
    "browser:progress",
    "browser:screenshot",
    "browser:blocked",
    "browser:checkpoint",
]


class RunEvent(BaseModel):
    type: EventType
    session_id: str
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))
    data: dict[str, Any] = Field(default_factory=dict)


class EventSink(Protocol):
    def emit(self, event: dict[str, Any]) -> None: ...

    def close(self) -> None: ...


class NoopEventSink:
    def emit(self, event: dict[str, Any]) -> None:
        return

    def close(self) -> None:
        return


class JsonlEventSink:
    """Appends one JSON object per line to a local file."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = self.path.open("a", encoding="utf-8")

    def emit(self, event: dict[str, Any]) -> None:
        self._fh.write(json.dumps(event, ensure_ascii=False) + "\n")
        self._fh.flush()

    def close(self) -> None:
        if not self._fh.closed:
            self._fh.close()


class RunEventEmitter:
    """Typed helpers for the four notification kinds of a computer-use run."""

    def __init__(self, session_id: str, sink: EventSink | None = None) -> None:
        self.session_id = session_id
        self.sink: EventSink = sink or NoopEventSink()

    def _emit(self, event_type: EventType, data: dict[str, Any]) -> None:
        event = RunEvent(type=event_type, session_id=self.session_id, data=data)
        try:
            self.sink.emit(event.model_dump(mode="json", exclude_none=True))
        except Exception as e:
            logger.warning(f"Dropping {event_type} event for session {self.session_id}: {e}")

    def progress(
        self,
        status: RunProgressStatus,
        *,
        step: int,
        max_steps: int,
        url: str | None = None,
        detail: str | None = None,
        last_action: str | None = None,
    ) -> None:
        data: dict[str, Any] = {"status": status, "step": step, "maxSteps": max_steps}
        if url:
            data["url"] = url
        if detail:
            data["detail"] = detail
        if last_action:
            data["lastAction"] = last_action
        self._emit("browser:progress", data)

    def screenshot(self, screenshot: Screenshot, url: str | None = None) -> None:
        self._emit(
            "browser:screenshot",
            {
                "data": screenshot.data,
                "mimeType": screenshot.mime_type,
                "url": url or screenshot.url,
                "timestamp": int(time.time() * 1000),
            },
        )

    def blocked(
        self,
        reason: str,
        *,
        step: int,
        max_steps: int,
        checkpoint_path: str,
        url: str | None = None,
    ) -> None:
        data: dict[str, Any] = {
            "reason": reason,
            "step": step,
            "maxSteps": max_steps,
            "checkpointPath": checkpoint_path,
        }
        if url:
            data["url"] = url
        self._emit("browser:blocked", data)

    def checkpoint(
        self,
        checkpoint_path: str,
        *,
        step: int,
        max_steps: int,
        recoverable: bool,
        url: str | None = None,
    ) -> None:
        data: dict[str, Any] = {
            "checkpointPath": checkpoint_path,
            "step": step,
            "maxSteps": max_steps,
            "recoverable": recoverable,
        }
        if url:
            data["url"] = url
        self._emit("browser:checkpoint", data)
