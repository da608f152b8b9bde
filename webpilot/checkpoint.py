"""
Checkpoint store for computer-use runs.

The checkpoint file is the "last known good" state of a run: it is rewritten after every
step and at every terminal transition, so an interrupted process can resume with its
action history intact.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from .constants import CHECKPOINT_FILE_NAME, DEFAULT_APP_DATA_DIR
from .models import RunCheckpoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResumePlan:
    """How a new invocation relates to a previously persisted checkpoint."""

    resumed: bool
    max_steps: int
    start_url: str | None
    checkpoint: RunCheckpoint | None = None


def plan_resume(
    candidate: RunCheckpoint | None,
    *,
    goal: str,
    requested_max_steps: int,
    start_url: str | None,
) -> ResumePlan:
    """
    Decide whether `candidate` may be resumed for `goal`.

    A checkpoint is only resumable for the exact same goal text and when it has not
    completed. On resume the larger of the two step budgets wins and navigation restarts
    at the checkpoint's last known URL.
    """
    if candidate is None or candidate.goal != goal or candidate.completed:
        return ResumePlan(resumed=False, max_steps=requested_max_steps, start_url=start_url)

    resume_url = candidate.last_url or (
        candidate.pages_visited[-1] if candidate.pages_visited else None
    )
    return ResumePlan(
        resumed=True,
        max_steps=max(requested_max_steps, candidate.max_steps or requested_max_steps),
        start_url=resume_url,
        checkpoint=candidate,
    )


class CheckpointStore:
    """
    Reads and writes `RunCheckpoint` JSON files.

    This is the only component that touches the on-disk representation.
    """

    def __init__(self, app_data_dir: str | os.PathLike[str] | None = None) -> None:
        base = app_data_dir or os.environ.get("WEBPILOT_APP_DATA_DIR") or DEFAULT_APP_DATA_DIR
        self.app_data_dir = Path(base).expanduser()

    def state_dir(self, session_id: str) -> Path:
        return self.app_data_dir / "sessions" / session_id / "browser"

    def default_path(self, session_id: str) -> Path:
        return self.state_dir(session_id) / CHECKPOINT_FILE_NAME

    def resolve_path(self, session_id: str, override: str | None = None) -> Path:
        if override and override.strip():
            return Path(override.strip()).expanduser()
        return self.default_path(session_id)

    def load(self, path: str | os.PathLike[str]) -> RunCheckpoint | None:
        """Load a checkpoint; missing, unreadable or foreign-version files yield None."""
        p = Path(path)
        try:
            raw = p.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read checkpoint {p}: {e}")
            return None

        try:
            return RunCheckpoint.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring unusable checkpoint {p}: {e.error_count()} validation error(s)")
            return None

    def save(self, path: str | os.PathLike[str], checkpoint: RunCheckpoint) -> Path:
        """Atomically write the full checkpoint (temp file + replace)."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = p.with_suffix(p.suffix + ".tmp")
        tmp_path.write_text(checkpoint.to_json(), encoding="utf-8")
        tmp_path.replace(p)
        return p
