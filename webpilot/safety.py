"""
Action safety classifier.

`classify_action_safety` is a total function: it never raises, and anything it does not
explicitly recognise as dangerous is allowed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .models import SafetyDecision

_NAVIGATION_ACTIONS = frozenset({"navigate", "open_web_browser", "open_browser", "open_url"})
_KEY_COMBINATION_ACTIONS = frozenset({"key_combination", "keypress", "key"})
_ALLOWED_SCHEMES = ("http://", "https://")

_KEY_ALIASES = {
    "control": "ctrl",
    "cmd": "meta",
    "command": "meta",
    "super": "meta",
    "win": "meta",
    "option": "alt",
}

# Combinations that quit the browser (or the whole host application).
BLOCKED_KEY_COMBINATIONS: tuple[frozenset[str], ...] = (
    frozenset({"alt", "f4"}),
    frozenset({"meta", "q"}),
    frozenset({"ctrl", "q"}),
)


def _normalize_action_name(action: str) -> str:
    return str(action or "").strip().lower().replace("-", "_")


def normalize_keys(raw: Any) -> list[str]:
    """
    Normalize a key combination to lower-case canonical key names.

    Accepts a list (`["Control", "Q"]`) or a `+`-joined string (`"ctrl+q"`).
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        parts: Iterable[Any] = raw.split("+")
    elif isinstance(raw, Iterable):
        parts = raw
    else:
        parts = [raw]

    keys: list[str] = []
    for part in parts:
        # A list entry may itself be a joined combo ("ctrl+q").
        for piece in str(part).split("+"):
            key = piece.strip().lower()
            if key:
                keys.append(_KEY_ALIASES.get(key, key))
    return keys


def _scheme_of(url: str) -> str:
    return url.split(":", 1)[0] if ":" in url else "unknown"


def classify_action_safety(action: str, args: Mapping[str, Any] | None) -> SafetyDecision:
    """
    Decide whether a proposed browser action may be executed.

    Rules:
    - navigation is only allowed to http(s) URLs
    - key combinations that quit the browser/application are denied
    - everything else is allowed
    """
    try:
        name = _normalize_action_name(action)
        params = args or {}

        if name in _NAVIGATION_ACTIONS:
            raw_url = str(params.get("url") or params.get("target_url") or "").strip().lower()
            if not raw_url:
                return SafetyDecision.deny("Navigate action missing URL.")
            if not raw_url.startswith(_ALLOWED_SCHEMES):
                return SafetyDecision.deny(
                    f"Unsafe navigation target blocked ({_scheme_of(raw_url) or 'unknown'} scheme)."
                )

        if name in _KEY_COMBINATION_ACTIONS:
            raw_keys = params.get("keys")
            if raw_keys is None:
                raw_keys = params.get("key") or params.get("text")
            keys = normalize_keys(raw_keys)
            pressed = set(keys)
            for combo in BLOCKED_KEY_COMBINATIONS:
                if combo <= pressed:
                    return SafetyDecision.deny(
                        f"Blocked unsafe key combination: {'+'.join(keys)}"
                    )
    except Exception as exc:
        return SafetyDecision.deny(f"Could not classify action {action!r}: {exc}")

    return SafetyDecision.allow()
