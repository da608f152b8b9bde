from __future__ import annotations

import json

from webpilot.blockers import action_signature
from webpilot.checkpoint import CheckpointStore, plan_resume
from webpilot.models import ActionHistoryEntry, RunCheckpoint


def make_checkpoint(**overrides) -> RunCheckpoint:
    args = {"x": 500, "y": 250}
    values = dict(
        session_id="sess-1",
        goal="Find the pricing page",
        provider="google",
        model="gemini-2.5-computer-use-preview-10-2025",
        created_at=1_700_000_000_000,
        updated_at=1_700_000_001_000,
        steps=2,
        max_steps=15,
        last_url="https://example.com/pricing",
        url_stability_count=1,
        actions=['click_at({"x": 500, "y": 250})'],
        pages_visited=["https://example.com/", "https://example.com/pricing"],
        action_history=[
            ActionHistoryEntry(
                action="click_at",
                args=args,
                url="https://example.com/",
                timestamp=1_700_000_000_500,
                signature=action_signature("click_at", args),
            )
        ],
    )
    values.update(overrides)
    return RunCheckpoint(**values)


def test_default_path_is_per_session(tmp_path) -> None:
    store = CheckpointStore(tmp_path)
    assert store.default_path("sess-1") == (
        tmp_path / "sessions" / "sess-1" / "browser" / "computer-use-checkpoint.json"
    )


def test_resolve_path_override(tmp_path) -> None:
    store = CheckpointStore(tmp_path)
    custom = tmp_path / "custom.json"
    assert store.resolve_path("s", str(custom)) == custom
    assert store.resolve_path("s", "   ") == store.default_path("s")
    assert store.resolve_path("s", None) == store.default_path("s")


def test_app_data_dir_from_environment(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("WEBPILOT_APP_DATA_DIR", str(tmp_path / "appdata"))
    store = CheckpointStore()
    assert store.app_data_dir == tmp_path / "appdata"


def test_save_load_save_is_byte_identical(tmp_path) -> None:
    store = CheckpointStore(tmp_path)
    path = store.default_path("sess-1")

    store.save(path, make_checkpoint())
    first = path.read_bytes()

    loaded = store.load(path)
    assert loaded is not None
    store.save(path, loaded)
    assert path.read_bytes() == first


def test_serialized_shape_is_camel_case_without_unset_fields(tmp_path) -> None:
    store = CheckpointStore(tmp_path)
    path = store.save(tmp_path / "nested" / "cp.json", make_checkpoint())

    text = path.read_text(encoding="utf-8")
    data = json.loads(text)
    assert data["version"] == 1
    assert data["sessionId"] == "sess-1"
    assert data["maxSteps"] == 15
    assert data["urlStabilityCount"] == 1
    assert data["pagesVisited"][-1] == "https://example.com/pricing"
    assert data["actionHistory"][0]["signature"] == 'click_at:{"x":500,"y":250}'
    assert "blockedReason" not in data
    assert "finalAnalysis" not in data
    assert text.startswith('{\n  "version": 1,')
    assert not (tmp_path / "nested" / "cp.json.tmp").exists()


def test_load_missing_returns_none(tmp_path) -> None:
    assert CheckpointStore(tmp_path).load(tmp_path / "nope.json") is None


def test_load_corrupt_or_foreign_version_returns_none(tmp_path) -> None:
    store = CheckpointStore(tmp_path)
    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{not json", encoding="utf-8")
    assert store.load(corrupt) is None

    foreign = tmp_path / "v2.json"
    data = json.loads(make_checkpoint().to_json())
    data["version"] = 2
    foreign.write_text(json.dumps(data), encoding="utf-8")
    assert store.load(foreign) is None


def test_plan_resume_requires_matching_goal() -> None:
    plan = plan_resume(make_checkpoint(), goal="Something else", requested_max_steps=5, start_url="https://a.test")
    assert plan.resumed is False
    assert plan.max_steps == 5
    assert plan.start_url == "https://a.test"
    assert plan.checkpoint is None


def test_plan_resume_skips_completed_runs() -> None:
    plan = plan_resume(
        make_checkpoint(completed=True), goal="Find the pricing page", requested_max_steps=5, start_url=None
    )
    assert plan.resumed is False


def test_plan_resume_takes_larger_budget_and_last_url() -> None:
    cp = make_checkpoint(max_steps=15)
    plan = plan_resume(cp, goal="Find the pricing page", requested_max_steps=3, start_url="https://ignored.test")
    assert plan.resumed is True
    assert plan.max_steps == 15
    assert plan.start_url == "https://example.com/pricing"
    assert plan.checkpoint is cp

    plan = plan_resume(cp, goal="Find the pricing page", requested_max_steps=30, start_url=None)
    assert plan.max_steps == 30


def test_plan_resume_falls_back_to_last_visited_page() -> None:
    cp = make_checkpoint(last_url=None)
    plan = plan_resume(cp, goal="Find the pricing page", requested_max_steps=3, start_url=None)
    assert plan.start_url == "https://example.com/pricing"


def test_recoverable_flag() -> None:
    assert make_checkpoint().recoverable is True
    assert make_checkpoint(completed=True).recoverable is False
    assert make_checkpoint(completed=True, blocked=True, blocked_reason="x").recoverable is True
