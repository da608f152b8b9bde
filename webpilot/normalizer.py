"""
Provider action normalizer.

Each provider encodes a proposed browser action differently:

- google:    a named function call, `{"name": "click_at", "args": {"x": 500, "y": 300}}`,
             with coordinates already on the 0-1000 grid
- openai:    a `computer_call` item whose `action` object carries `type` plus pixel coordinates
- anthropic: a `tool_use` content block whose `input` carries `action` plus a `coordinate` pair

All of them are funnelled into one canonical `BrowserAction`. Unknown action types raise
`UnsupportedActionError`; that is a schema mismatch, so the runner never retries it.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote_plus

from .constants import COORDINATE_GRID, VIEWPORT_HEIGHT, VIEWPORT_WIDTH
from .errors import UnsupportedActionError
from .models import BrowserAction

_MIN_SCROLL_MAGNITUDE = 50
_MAX_SCROLL_MAGNITUDE = 2000
_DEFAULT_SCROLL_MAGNITUDE = 500
_ANTHROPIC_SCROLL_CLICK_PX = 100

_NAVIGATE = {"navigate", "open_url", "open_web_browser", "search"}
_CLICK = {"click", "left_click", "single_click", "click_at"}
_HOVER = {"mouse_move", "hover", "hover_at"}
_DRAG = {"drag", "left_click_drag", "drag_and_drop"}
_TYPE = {"type", "type_text", "input_text", "type_text_at"}
_KEYS = {"keypress", "key", "key_combination"}
_SCROLL = {"scroll", "scroll_at", "scroll_document"}
_WAIT = {"wait", "wait_5_seconds"}

PointFn = Callable[[Any, Any], tuple[int, int]]


@dataclass(frozen=True)
class NormalizedAction:
    """A canonical action plus how the provider phrased it."""

    action: BrowserAction
    label: str
    source_type: str
    repeat: int = 1


def normalize_coordinate(raw: Any, axis: str) -> int:
    """
    Map a provider coordinate onto the 0-1000 grid.

    Values in [0, 1] are fractions of the viewport; anything larger is a pixel offset on
    the VIEWPORT_WIDTH x VIEWPORT_HEIGHT viewport. Non-numeric input maps to 0.
    """
    try:
        numeric = float(raw)
    except (TypeError, ValueError):
        return 0
    if numeric != numeric or numeric in (float("inf"), float("-inf")):
        return 0
    if 0 <= numeric <= 1:
        return round(numeric * COORDINATE_GRID)
    extent = VIEWPORT_WIDTH if axis == "x" else VIEWPORT_HEIGHT
    return _clamp_grid(round(numeric / extent * COORDINATE_GRID))


def _clamp_grid(value: Any) -> int:
    try:
        numeric = round(float(value))
    except (TypeError, ValueError):
        return 0
    return max(0, min(COORDINATE_GRID, numeric))


def _pixel_point(x: Any, y: Any) -> tuple[int, int]:
    return normalize_coordinate(x, "x"), normalize_coordinate(y, "y")


def _grid_point(x: Any, y: Any) -> tuple[int, int]:
    return _clamp_grid(x), _clamp_grid(y)


def parse_action_type(action_input: Mapping[str, Any]) -> str:
    action = action_input.get("action") or action_input.get("type") or action_input.get("name") or ""
    return str(action).lower().strip()


def _first_present(fields: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = fields.get(key)
        if value is not None and value != "":
            return value
    return None


def _coordinate_pair(value: Any) -> tuple[Any, Any] | None:
    if isinstance(value, (list, tuple)) and len(value) >= 2:
        return value[0], value[1]
    if isinstance(value, Mapping) and "x" in value and "y" in value:
        return value["x"], value["y"]
    return None


def _has_point(fields: Mapping[str, Any]) -> bool:
    return "coordinate" in fields or ("x" in fields and "y" in fields)


def _point(fields: Mapping[str, Any], point: PointFn) -> tuple[int, int]:
    pair = _coordinate_pair(fields.get("coordinate"))
    if pair is not None:
        return point(*pair)
    return point(fields.get("x"), fields.get("y"))


def _key_list(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return [str(k).strip() for k in raw if str(k).strip()]
    text = str(raw).strip()
    if not text:
        return []
    return [part.strip() for part in text.split("+") if part.strip()]


def _number(value: Any) -> float | None:
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    return numeric if numeric == numeric else None


def _clamp_magnitude(value: float) -> int:
    return max(_MIN_SCROLL_MAGNITUDE, min(_MAX_SCROLL_MAGNITUDE, abs(round(value))))


def _build(action_type: str, fields: Mapping[str, Any], point: PointFn) -> NormalizedAction:
    def make(name: str, args: dict[str, Any], label: str | None = None, repeat: int = 1):
        action = BrowserAction(name=name, args=args)  # type: ignore[arg-type]
        text = action.describe()
        if label is not None:
            text = f"{label}{text[len(name):]}"
        return NormalizedAction(action=action, label=text, source_type=action_type, repeat=repeat)

    if action_type in _NAVIGATE:
        url = str(_first_present(fields, "url", "target_url") or "")
        if action_type == "search" and not url:
            query = str(fields.get("query") or "")
            url = f"https://www.google.com/search?q={quote_plus(query)}" if query else ""
        return make("navigate", {"url": url})

    if action_type in _CLICK:
        x, y = _point(fields, point)
        button = str(fields.get("button") or "left").lower()
        if button in ("right", "middle"):
            return make("click_at", {"x": x, "y": y}, label=f"{button}_click_as_click")
        return make("click_at", {"x": x, "y": y})

    if action_type == "double_click":
        x, y = _point(fields, point)
        return make("click_at", {"x": x, "y": y}, label="double_click", repeat=2)

    if action_type in ("right_click", "middle_click"):
        x, y = _point(fields, point)
        return make("click_at", {"x": x, "y": y}, label=f"{action_type}_as_click")

    if action_type in _HOVER:
        x, y = _point(fields, point)
        return make("hover_at", {"x": x, "y": y})

    if action_type in _DRAG:
        path = fields.get("path")
        start = _coordinate_pair(fields.get("start_coordinate"))
        if isinstance(path, (list, tuple)) and len(path) >= 2:
            start = _coordinate_pair(path[0])
            end = _coordinate_pair(path[-1])
        elif start is not None:
            end = _coordinate_pair(fields.get("coordinate"))
        else:
            start = (fields.get("x"), fields.get("y"))
            end = (
                _first_present(fields, "destination_x", "to_x", "end_x"),
                _first_present(fields, "destination_y", "to_y", "end_y"),
            )
        x, y = point(*(start or (None, None)))
        dest_x, dest_y = point(*(end or (None, None)))
        return make(
            "drag_and_drop", {"x": x, "y": y, "destination_x": dest_x, "destination_y": dest_y}
        )

    if action_type in _TYPE:
        args: dict[str, Any] = {}
        if _has_point(fields):
            args["x"], args["y"] = _point(fields, point)
        args["text"] = str(_first_present(fields, "text", "value") or "")
        args["press_enter"] = bool(fields.get("press_enter") or fields.get("submit"))
        args["clear_before_typing"] = bool(
            fields.get("clear_before_typing") or fields.get("clear_text")
        )
        return make("type_text_at", args)

    if action_type in _KEYS:
        raw_keys = _first_present(fields, "keys", "key", "key_code", "text")
        return make("key_combination", {"keys": _key_list(raw_keys)})

    if action_type in _SCROLL:
        delta = _number(_first_present(fields, "scroll_y", "delta_y", "dy", "amount"))
        if delta:
            x, y = _point(fields, point)
            return make(
                "scroll_at",
                {
                    "x": x,
                    "y": y,
                    "direction": "down" if delta > 0 else "up",
                    "magnitude": _clamp_magnitude(delta),
                },
            )
        direction = str(_first_present(fields, "direction", "scroll_direction") or "down").lower()
        if _has_point(fields) and action_type != "scroll_document":
            magnitude = _number(fields.get("magnitude"))
            if magnitude is None:
                clicks = _number(fields.get("scroll_amount"))
                magnitude = (
                    clicks * _ANTHROPIC_SCROLL_CLICK_PX
                    if clicks is not None
                    else _DEFAULT_SCROLL_MAGNITUDE
                )
            x, y = _point(fields, point)
            return make(
                "scroll_at",
                {"x": x, "y": y, "direction": direction, "magnitude": _clamp_magnitude(magnitude)},
            )
        return make("scroll_document", {"direction": "up" if "up" in direction else "down"})

    if action_type in ("go_back", "go_forward"):
        return make(action_type, {})

    if action_type in _WAIT:
        return make("wait", {})

    raise UnsupportedActionError(action_type)


def normalize_gemini_call(name: str, args: Mapping[str, Any] | None) -> NormalizedAction:
    """Normalize a Gemini function call (coordinates already on the 0-1000 grid)."""
    action_type = str(name or "").lower().strip()
    try:
        return _build(action_type, args or {}, _grid_point)
    except UnsupportedActionError as e:
        e.provider = "google"
        raise


def normalize_computer_action(action_input: Mapping[str, Any]) -> NormalizedAction:
    """Normalize an OpenAI `computer_call.action` or Anthropic `tool_use.input` object."""
    return _build(parse_action_type(action_input), action_input, _pixel_point)


def _normalize_google(payload: Mapping[str, Any]) -> NormalizedAction:
    return normalize_gemini_call(str(payload.get("name") or ""), payload.get("args") or {})


def _normalize_openai(payload: Mapping[str, Any]) -> NormalizedAction:
    action = payload.get("action")
    return normalize_computer_action(action if isinstance(action, Mapping) else payload)


def _normalize_anthropic(payload: Mapping[str, Any]) -> NormalizedAction:
    tool_input = payload.get("input")
    return normalize_computer_action(tool_input if isinstance(tool_input, Mapping) else payload)


_NORMALIZERS: dict[str, Callable[[Mapping[str, Any]], NormalizedAction]] = {
    "google": _normalize_google,
    "openai": _normalize_openai,
    "anthropic": _normalize_anthropic,
}


def normalize_provider_action(provider: str, payload: Mapping[str, Any]) -> NormalizedAction:
    """Normalize one provider payload, dispatching on the provider id."""
    normalizer = _NORMALIZERS.get(provider)
    if normalizer is None:
        raise ValueError(f"Computer use is not supported for provider {provider!r}")
    try:
        return normalizer(payload)
    except UnsupportedActionError as e:
        e.provider = provider
        raise
