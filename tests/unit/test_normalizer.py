from __future__ import annotations

import pytest

from webpilot.errors import UnsupportedActionError
from webpilot.normalizer import (
    normalize_computer_action,
    normalize_coordinate,
    normalize_gemini_call,
    normalize_provider_action,
)


def test_normalize_coordinate_fraction_and_pixels() -> None:
    assert normalize_coordinate(0.5, "x") == 500
    assert normalize_coordinate(1, "y") == 1000
    assert normalize_coordinate(720, "x") == 500
    assert normalize_coordinate(450, "y") == 500
    assert normalize_coordinate(5000, "x") == 1000
    assert normalize_coordinate(-10, "x") == 0
    assert normalize_coordinate("abc", "x") == 0
    assert normalize_coordinate(None, "y") == 0


def test_gemini_calls_are_clamped_not_rescaled() -> None:
    result = normalize_gemini_call("click_at", {"x": 1200, "y": 300})
    assert result.action.name == "click_at"
    assert result.action.args == {"x": 1000, "y": 300}
    assert result.label == 'click_at({"x": 1000, "y": 300})'


def test_gemini_type_text_at() -> None:
    result = normalize_gemini_call(
        "type_text_at", {"x": 10, "y": 20, "text": "hello", "press_enter": True}
    )
    assert result.action.name == "type_text_at"
    assert result.action.args == {
        "x": 10,
        "y": 20,
        "text": "hello",
        "press_enter": True,
        "clear_before_typing": False,
    }


def test_gemini_search_and_open_browser() -> None:
    search = normalize_gemini_call("search", {"query": "python asyncio"})
    assert search.action.args == {"url": "https://www.google.com/search?q=python+asyncio"}

    opened = normalize_gemini_call("open_web_browser", {})
    assert opened.action.name == "navigate"
    assert opened.action.args == {"url": ""}


def test_gemini_scroll_at_keeps_direction_and_magnitude() -> None:
    result = normalize_gemini_call("scroll_at", {"x": 500, "y": 500, "direction": "up", "magnitude": 800})
    assert result.action.name == "scroll_at"
    assert result.action.args == {"x": 500, "y": 500, "direction": "up", "magnitude": 800}

    doc = normalize_gemini_call("scroll_document", {"direction": "down"})
    assert doc.action.name == "scroll_document"
    assert doc.action.args == {"direction": "down"}


def test_wait_aliases() -> None:
    assert normalize_gemini_call("wait_5_seconds", {}).action.name == "wait"
    assert normalize_computer_action({"type": "wait"}).action.name == "wait"


@pytest.mark.parametrize("name", ["click", "left_click", "single_click"])
def test_click_aliases(name: str) -> None:
    result = normalize_computer_action({"type": name, "x": 720, "y": 450})
    assert result.action.name == "click_at"
    assert result.action.args == {"x": 500, "y": 500}
    assert result.repeat == 1


def test_openai_right_click_is_labelled() -> None:
    result = normalize_computer_action({"type": "click", "button": "right", "x": 0, "y": 0})
    assert result.action.name == "click_at"
    assert result.label.startswith("right_click_as_click(")


def test_double_click_repeats() -> None:
    result = normalize_computer_action({"type": "double_click", "x": 0.25, "y": 0.75})
    assert result.action.name == "click_at"
    assert result.action.args == {"x": 250, "y": 750}
    assert result.repeat == 2
    assert result.label.startswith("double_click(")


def test_anthropic_coordinate_pair() -> None:
    result = normalize_provider_action(
        "anthropic", {"type": "tool_use", "input": {"action": "left_click", "coordinate": [144, 90]}}
    )
    assert result.action.args == {"x": 100, "y": 100}
    assert result.source_type == "left_click"


def test_anthropic_scroll_direction_and_amount() -> None:
    result = normalize_computer_action(
        {"action": "scroll", "coordinate": [720, 450], "scroll_direction": "down", "scroll_amount": 3}
    )
    assert result.action.name == "scroll_at"
    assert result.action.args == {"x": 500, "y": 500, "direction": "down", "magnitude": 300}


def test_openai_scroll_delta() -> None:
    result = normalize_computer_action({"type": "scroll", "x": 100, "y": 100, "scroll_x": 0, "scroll_y": -600})
    assert result.action.name == "scroll_at"
    assert result.action.args == {"x": 69, "y": 111, "direction": "up", "magnitude": 600}

    big = normalize_computer_action({"type": "scroll", "x": 0, "y": 0, "scroll_y": 5000})
    assert big.action.args["magnitude"] == 2000
    small = normalize_computer_action({"type": "scroll", "x": 0, "y": 0, "scroll_y": 3})
    assert small.action.args["magnitude"] == 50


def test_scroll_without_delta_or_point_scrolls_document() -> None:
    result = normalize_computer_action({"type": "scroll"})
    assert result.action.name == "scroll_document"
    assert result.action.args == {"direction": "down"}


def test_keys_from_list_or_joined_string() -> None:
    openai = normalize_computer_action({"type": "keypress", "keys": ["CTRL", "L"]})
    assert openai.action.name == "key_combination"
    assert openai.action.args == {"keys": ["CTRL", "L"]}

    anthropic = normalize_computer_action({"action": "key", "text": "ctrl+s"})
    assert anthropic.action.args == {"keys": ["ctrl", "s"]}


def test_type_without_coordinates_types_at_focus() -> None:
    result = normalize_computer_action({"type": "type", "text": "hello"})
    assert result.action.name == "type_text_at"
    assert "x" not in result.action.args
    assert result.action.args["text"] == "hello"


def test_drag_variants() -> None:
    anthropic = normalize_computer_action(
        {"action": "left_click_drag", "start_coordinate": [0, 0], "coordinate": [1440, 900]}
    )
    assert anthropic.action.name == "drag_and_drop"
    assert anthropic.action.args == {"x": 0, "y": 0, "destination_x": 1000, "destination_y": 1000}

    openai = normalize_computer_action({"type": "drag", "path": [{"x": 0, "y": 0}, {"x": 720, "y": 450}]})
    assert openai.action.args == {"x": 0, "y": 0, "destination_x": 500, "destination_y": 500}

    gemini = normalize_gemini_call(
        "drag_and_drop", {"x": 10, "y": 20, "destination_x": 30, "destination_y": 40}
    )
    assert gemini.action.args == {"x": 10, "y": 20, "destination_x": 30, "destination_y": 40}


def test_navigation_aliases() -> None:
    result = normalize_provider_action("openai", {"type": "computer_call", "action": {"type": "open_url", "url": "https://a.test"}})
    assert result.action.name == "navigate"
    assert result.action.args == {"url": "https://a.test"}

    back = normalize_gemini_call("go_back", {})
    assert back.action.name == "go_back"
    assert back.label == "go_back()"


def test_unsupported_action_raises_with_provider() -> None:
    with pytest.raises(UnsupportedActionError) as excinfo:
        normalize_provider_action("openai", {"action": {"type": "teleport"}})
    assert excinfo.value.provider == "openai"
    assert "teleport" in str(excinfo.value)

    with pytest.raises(UnsupportedActionError) as excinfo:
        normalize_gemini_call("teleport", {})
    assert excinfo.value.provider == "google"


def test_unknown_provider_is_rejected() -> None:
    with pytest.raises(ValueError):
        normalize_provider_action("mistral", {"name": "click_at"})
