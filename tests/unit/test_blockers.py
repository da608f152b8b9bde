from __future__ import annotations

from webpilot.blockers import (
    BlockerLimits,
    action_signature,
    detect_browser_blocker,
    is_auth_wall,
    repeated_action_warning,
)
from webpilot.models import ActionHistoryEntry

URL = "https://example.com/"


def entry(action: str, args: dict | None = None, url: str = URL) -> ActionHistoryEntry:
    args = args or {}
    return ActionHistoryEntry(
        action=action,
        args=args,
        url=url,
        timestamp=0,
        signature=action_signature(action, args),
    )


def test_signature_sorts_keys() -> None:
    assert action_signature("click_at", {"y": 2, "x": 1}) == 'click_at:{"x":1,"y":2}'
    assert action_signature("click_at", {"x": 1, "y": 2}) == action_signature("click_at", {"y": 2, "x": 1})
    assert action_signature("go_back", None) == "go_back:{}"


def test_signature_keeps_non_ascii_text() -> None:
    assert action_signature("type_text_at", {"text": "café"}) == 'type_text_at:{"text":"café"}'


def test_signature_keeps_only_first_eight_sorted_keys() -> None:
    base = {k: 1 for k in "abcdefghij"}
    changed_tail = dict(base, j=99)
    changed_head = dict(base, a=99)
    assert action_signature("x", base) == action_signature("x", changed_tail)
    assert action_signature("x", base) != action_signature("x", changed_head)
    assert '"i"' not in action_signature("x", base)


def test_auth_wall_detection() -> None:
    assert is_auth_wall("https://example.com/login?next=/")
    assert is_auth_wall("https://accounts.example.com/SignIn")
    assert is_auth_wall("https://example.com/oauth/authorize")
    assert is_auth_wall("https://consent.example.com/")
    assert not is_auth_wall("https://example.com/docs")


def test_auth_wall_blocks_first() -> None:
    history = [entry("click_at", {"x": 1, "y": 1})] * 4
    reason = detect_browser_blocker("https://example.com/login", None, history, 10)
    assert reason == "Login/consent blocker detected. Cannot proceed without user authentication."


def test_url_stability_threshold() -> None:
    assert detect_browser_blocker(URL, URL, [], 5) is None
    assert (
        detect_browser_blocker(URL, URL, [], 6)
        == "No navigation progress detected after 6 steps on the same page."
    )


def test_repeated_signature_loop() -> None:
    click = entry("click_at", {"x": 500, "y": 500})
    assert detect_browser_blocker(URL, None, [click] * 3, 0) is None
    assert detect_browser_blocker(URL, None, [click] * 4, 0) == "Loop detected: repeated action pattern 4 times."


def test_loop_requires_identical_signatures() -> None:
    history = [entry("click_at", {"x": 500, "y": i}) for i in range(4)]
    assert detect_browser_blocker(URL, None, history, 0) is None


def test_scroll_loop_on_same_url() -> None:
    history = [
        entry("scroll_document", {"direction": "down"}),
        entry("scroll_at", {"x": 1, "y": 1, "direction": "down", "magnitude": 300}),
        entry("scroll_document", {"direction": "up"}),
    ]
    assert detect_browser_blocker(URL, None, history, 0) == f"Scroll loop detected on {URL}."
    assert detect_browser_blocker("https://example.com/other", None, history, 0) is None


def test_custom_limits() -> None:
    click = entry("click_at", {"x": 1, "y": 1})
    limits = BlockerLimits(repeat_limit=2, url_stability_limit=100, scroll_repeat_limit=0)
    assert detect_browser_blocker(URL, None, [click] * 2, 50, limits=limits) == (
        "Loop detected: repeated action pattern 2 times."
    )


def test_repeated_action_warning() -> None:
    same = [entry("scroll_document", {"direction": d}) for d in ("down", "up", "down")]
    warning = repeated_action_warning(same)
    assert warning is not None
    assert "STUCK IN A LOOP repeating 'scroll_document'" in warning

    mixed = same[:2] + [entry("click_at", {"x": 1, "y": 1})]
    assert repeated_action_warning(mixed) is None
    assert repeated_action_warning(same[:2]) is None
