"""
Loop / blocker detection.

Everything here is pure: the detector looks at the current URL and the recorded action
history and returns a human-readable reason when the run should stop, so a stalled run
is caught before another model call is spent on it.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .constants import (
    ACTION_REPEAT_LIMIT,
    LOOP_WARNING_WINDOW,
    SCROLL_REPEAT_LIMIT,
    SIGNATURE_MAX_ARGS,
    URL_STABILITY_LIMIT,
)
from .models import ActionHistoryEntry

_AUTH_URL_MARKERS = ("/login", "/signin", "/auth", "consent")
_SCROLL_ACTIONS = frozenset({"scroll_document", "scroll_at"})


@dataclass(frozen=True)
class BlockerLimits:
    repeat_limit: int = ACTION_REPEAT_LIMIT
    url_stability_limit: int = URL_STABILITY_LIMIT
    scroll_repeat_limit: int = SCROLL_REPEAT_LIMIT


def action_signature(action: str, args: Mapping[str, Any] | None) -> str:
    """
    Canonical signature for cheap repeated-action comparison.

    Argument keys are sorted and only the first SIGNATURE_MAX_ARGS entries are kept, so the
    same action with the same arguments always yields the same string.
    """
    entries = sorted((args or {}).items(), key=lambda kv: kv[0])[:SIGNATURE_MAX_ARGS]
    payload = json.dumps(dict(entries), separators=(",", ":"), ensure_ascii=False, default=str)
    return f"{action}:{payload}"


def is_auth_wall(url: str) -> bool:
    normalized = (url or "").lower()
    return any(marker in normalized for marker in _AUTH_URL_MARKERS)


def detect_browser_blocker(
    current_url: str,
    previous_url: str | None,
    history: Sequence[ActionHistoryEntry],
    url_stability_count: int,
    *,
    limits: BlockerLimits = BlockerLimits(),
) -> str | None:
    """
    Return a block reason for the current step, or None when the run may continue.

    Rules are checked in order; the first match wins:
    1. login / consent / auth wall in the URL
    2. no navigation progress for `url_stability_limit` consecutive steps
    3. the last `repeat_limit` actions share one signature
    4. the last `scroll_repeat_limit` actions are scrolls on the current URL

    `previous_url` is part of the contract for callers that track it; the rules only need
    `url_stability_count`, which already encodes URL changes.
    """
    _ = previous_url

    if is_auth_wall(current_url):
        return "Login/consent blocker detected. Cannot proceed without user authentication."

    if url_stability_count >= limits.url_stability_limit:
        return (
            f"No navigation progress detected after {url_stability_count} steps on the same page."
        )

    repeat_limit = limits.repeat_limit
    if repeat_limit > 0 and len(history) >= repeat_limit:
        recent = history[-repeat_limit:]
        first = recent[0].signature
        if first and all(entry.signature == first for entry in recent):
            return f"Loop detected: repeated action pattern {repeat_limit} times."

    scroll_limit = limits.scroll_repeat_limit
    if scroll_limit > 0 and len(history) >= scroll_limit:
        recent = history[-scroll_limit:]
        if all(entry.action in _SCROLL_ACTIONS and entry.url == current_url for entry in recent):
            return f"Scroll loop detected on {current_url}."

    return None


def repeated_action_warning(
    history: Sequence[ActionHistoryEntry], window: int = LOOP_WARNING_WINDOW
) -> str | None:
    """Prompt nudge when the last `window` actions all share one action type."""
    if window <= 0 or len(history) < window:
        return None
    names = [entry.action for entry in history[-window:]]
    if all(name == names[0] for name in names):
        return (
            f"WARNING: You are STUCK IN A LOOP repeating '{names[0]}'. "
            "STOP and provide your final analysis NOW with NO function calls."
        )
    return None
