"""
Computer-use run loop.

One `ComputerUseRunner.run()` call drives a single invocation:

    Initializing -> Running -> {Completed, Blocked, BudgetExhausted}

Each step captures the page, checks for blockers, asks the reasoning provider for the
next action, normalizes it, classifies it for safety, executes it with retry, and
persists the checkpoint. All per-run state lives in a `RunState` threaded through the
loop; nothing is shared between invocations except the checkpoint file.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import httpx

from .blockers import BlockerLimits, action_signature, detect_browser_blocker
from .checkpoint import CheckpointStore, ResumePlan, plan_resume
from .constants import DEFAULT_MAX_STEPS, PROMPT_HISTORY_WINDOW, STEP_DELAY_S
from .driver import BrowserDriver
from .errors import BrowserStartError
from .events import EventSink, RunEventEmitter
from .executor import RetryPolicy, perform_action_with_retry
from .models import (
    ActionHistoryEntry,
    BrowserAction,
    ComputerUseRequest,
    ComputerUseResult,
    RunCheckpoint,
    RunProgressStatus,
)
from .normalizer import NormalizedAction, normalize_provider_action
from .prompts import build_step_prompt
from .providers import ProviderContext, TurnRequester, request_model_turn
from .safety import classify_action_safety

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class RunStatus(str, Enum):
    INITIALIZING = "initializing"
    RUNNING = "running"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    BUDGET_EXHAUSTED = "budget_exhausted"


@dataclass(frozen=True)
class ComputerUseConfig:
    """Behavioural knobs for the run loop."""

    step_delay_s: float = STEP_DELAY_S
    retry: RetryPolicy = RetryPolicy()
    blocker_limits: BlockerLimits = BlockerLimits()
    history_window: int = PROMPT_HISTORY_WINDOW


@dataclass
class RunState:
    """In-memory state of one invocation."""

    session_id: str
    goal: str
    provider: str
    model: str
    checkpoint_path: Path
    max_steps: int
    created_at: int
    resumed: bool = False
    status: RunStatus = RunStatus.INITIALIZING
    steps: int = 0
    completed: bool = False
    blocked: bool = False
    blocked_reason: str | None = None
    final_analysis: str | None = None
    last_observed_url: str | None = None
    url_stability_count: int = 0
    final_url: str = ""
    actions: list[str] = field(default_factory=list)
    pages_visited: list[str] = field(default_factory=list)
    action_history: list[ActionHistoryEntry] = field(default_factory=list)

    @classmethod
    def begin(
        cls,
        plan: ResumePlan,
        *,
        session_id: str,
        goal: str,
        provider: ProviderContext,
        checkpoint_path: Path,
    ) -> RunState:
        state = cls(
            session_id=session_id,
            goal=goal,
            provider=provider.provider,
            model=provider.model,
            checkpoint_path=checkpoint_path,
            max_steps=plan.max_steps,
            created_at=_now_ms(),
        )
        cp = plan.checkpoint
        if plan.resumed and cp is not None:
            state.resumed = True
            state.created_at = cp.created_at
            state.steps = cp.steps
            state.last_observed_url = cp.last_url
            state.url_stability_count = cp.url_stability_count
            state.actions = list(cp.actions)
            state.pages_visited = list(cp.pages_visited)
            state.action_history = list(cp.action_history)
        return state

    @property
    def finished(self) -> bool:
        return self.completed or self.blocked

    def visit(self, url: str) -> None:
        if url and url not in self.pages_visited:
            self.pages_visited.append(url)

    def observe(self, url: str) -> str | None:
        """Record the URL seen at the start of a step; returns the previous one."""
        previous = self.last_observed_url
        if previous and url == previous:
            self.url_stability_count += 1
        else:
            self.url_stability_count = 0
        self.last_observed_url = url
        self.visit(url)
        return previous

    def record_action(self, normalized: NormalizedAction, url: str) -> None:
        action = normalized.action
        self.actions.append(normalized.label)
        self.action_history.append(
            ActionHistoryEntry(
                action=action.name,
                args=dict(action.args),
                url=url,
                timestamp=_now_ms(),
                signature=action_signature(action.name, action.args),
            )
        )

    def to_checkpoint(self, url: str | None = None) -> RunCheckpoint:
        return RunCheckpoint(
            session_id=self.session_id,
            goal=self.goal,
            provider=self.provider,
            model=self.model,
            created_at=self.created_at,
            updated_at=_now_ms(),
            steps=self.steps,
            max_steps=self.max_steps,
            completed=self.completed,
            blocked=self.blocked,
            blocked_reason=self.blocked_reason,
            final_analysis=self.final_analysis,
            last_url=url or self.last_observed_url or None,
            url_stability_count=self.url_stability_count,
            actions=list(self.actions),
            pages_visited=list(self.pages_visited),
            action_history=list(self.action_history),
        )

    def to_result(self) -> ComputerUseResult:
        return ComputerUseResult(
            completed=self.completed,
            blocked=self.blocked,
            blocked_reason=self.blocked_reason,
            actions=list(self.actions),
            action_history=list(self.action_history),
            pages_visited=list(self.pages_visited),
            final_url=self.final_url,
            steps=self.steps,
            max_steps=self.max_steps,
            checkpoint_path=str(self.checkpoint_path),
            resumed_from_checkpoint=self.resumed,
            session_id=self.session_id,
            analysis=self.final_analysis or None,
            status=self.status.value,
        )


class ComputerUseRunner:
    """
    Drives one computer-use invocation against a session-scoped browser driver.

    The driver is owned by the hosting session and is never closed here.
    """

    def __init__(
        self,
        driver: BrowserDriver,
        provider: ProviderContext,
        *,
        store: CheckpointStore | None = None,
        event_sink: EventSink | None = None,
        config: ComputerUseConfig = ComputerUseConfig(),
        http_client: httpx.AsyncClient | None = None,
        request_turn: TurnRequester = request_model_turn,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.driver = driver
        self.provider = provider
        self.store = store or CheckpointStore()
        self.event_sink = event_sink
        self.config = config
        self.http_client = http_client
        self._request_turn = request_turn
        self._sleep = sleep

    async def run(self, request: ComputerUseRequest, *, session_id: str) -> ComputerUseResult:
        """
        Run until the goal completes, a blocker or safety stop fires, or the budget runs out.

        Raises:
            BrowserStartError: the start navigation failed.
            FatalActionError: a browser action failed after retries.
            UnsupportedActionError: the provider proposed an unknown action.
            ProviderResponseError: the reasoning API returned an HTTP error.
        """
        requested_max_steps = max(1, math.floor((request.max_steps or DEFAULT_MAX_STEPS) + 0.5))
        checkpoint_path = self.store.resolve_path(session_id, request.checkpoint_path)
        candidate = self.store.load(checkpoint_path) if request.resume_from_checkpoint else None
        plan = plan_resume(
            candidate,
            goal=request.goal,
            requested_max_steps=requested_max_steps,
            start_url=request.start_url,
        )
        if request.resume_from_checkpoint and not plan.resumed:
            logger.info(f"No resumable checkpoint at {checkpoint_path}; starting a fresh run")

        state = RunState.begin(
            plan,
            session_id=session_id,
            goal=request.goal,
            provider=self.provider,
            checkpoint_path=checkpoint_path,
        )
        emitter = RunEventEmitter(session_id, self.event_sink)
        logger.info(
            f"Computer use run {'resumed' if state.resumed else 'started'}: session={session_id} "
            f"provider={state.provider} model={state.model} steps={state.steps}/{state.max_steps}"
        )

        try:
            if plan.start_url:
                await self._navigate_start(state, emitter, plan.start_url)
            if state.resumed and not state.finished:
                self._persist(state, emitter, "recovered", plan.start_url)

            if not state.finished:
                state.status = RunStatus.RUNNING
            while not state.finished and state.steps < state.max_steps:
                await self._step(state, emitter)

            await self._finish(state, emitter)
        except Exception:
            self._save_after_failure(state)
            raise

        return state.to_result()

    async def _navigate_start(self, state: RunState, emitter: RunEventEmitter, url: str) -> None:
        action = BrowserAction(name="navigate", args={"url": url})
        decision = classify_action_safety(action.name, action.args)
        if not decision.allowed:
            self._block(state, emitter, decision.reason or "Unsafe start URL blocked.", None)
            return
        try:
            await perform_action_with_retry(
                self.driver, action, policy=self.config.retry, sleep=self._sleep
            )
        except Exception as e:
            raise BrowserStartError(f"Failed to start browser for automation: {e}") from e
        state.visit(url)

    async def _step(self, state: RunState, emitter: RunEventEmitter) -> None:
        screenshot = await self.driver.screenshot()
        url = screenshot.url or await self.driver.current_url()
        previous_url = state.observe(url)
        logger.debug(f"Step {state.steps + 1}/{state.max_steps} at {url}")

        reason = detect_browser_blocker(
            url,
            previous_url,
            state.action_history,
            state.url_stability_count,
            limits=self.config.blocker_limits,
        )
        if reason:
            self._block(state, emitter, reason, url)
            return

        emitter.screenshot(screenshot, url)
        emitter.progress(
            "running",
            step=state.steps,
            max_steps=state.max_steps,
            url=url,
            detail=f"Running browser step {state.steps + 1} of {state.max_steps}.",
        )

        prompt = build_step_prompt(
            state.goal, url, state.action_history, window=self.config.history_window
        )
        turn = await self._request_turn(self.provider, prompt, screenshot, self.http_client)

        if turn.kind == "refusal":
            self._block(state, emitter, turn.reason or "Model refused to continue.", url)
            return
        if turn.kind == "final":
            self._complete(state, emitter, turn.text, url)
            return

        for payload in turn.payloads:
            normalized = normalize_provider_action(self.provider.provider, payload)
            action = normalized.action
            logger.debug(f"Proposed action: {normalized.label}")

            decision = classify_action_safety(action.name, action.args)
            if not decision.allowed:
                self._block(
                    state, emitter, decision.reason or f"Blocked unsafe action: {action.name}", url
                )
                return

            for _ in range(normalized.repeat):
                await perform_action_with_retry(
                    self.driver, action, policy=self.config.retry, sleep=self._sleep
                )
            state.record_action(normalized, url)

        state.steps += 1
        self._persist(state, emitter, "running")
        emitter.progress(
            "running",
            step=state.steps,
            max_steps=state.max_steps,
            url=state.last_observed_url,
            detail="Browser step executed.",
            last_action=state.actions[-1] if state.actions else None,
        )
        if state.steps < state.max_steps and self.config.step_delay_s > 0:
            await self._sleep(self.config.step_delay_s)

    def _block(
        self, state: RunState, emitter: RunEventEmitter, reason: str, url: str | None
    ) -> None:
        logger.warning(f"Computer use run blocked: {reason}")
        state.blocked = True
        state.completed = True
        state.blocked_reason = reason
        state.status = RunStatus.BLOCKED
        self._persist(state, emitter, "blocked", url)
        emitter.blocked(
            reason,
            step=state.steps,
            max_steps=state.max_steps,
            checkpoint_path=str(state.checkpoint_path),
            url=url,
        )

    def _complete(self, state: RunState, emitter: RunEventEmitter, text: str, url: str) -> None:
        state.completed = True
        state.status = RunStatus.COMPLETED
        analysis = (text or "").strip()
        if analysis:
            state.final_analysis = analysis
            state.actions.append(f"[Analysis]: {analysis}")
        logger.info(f"Computer use run completed after {state.steps} step(s)")
        self._persist(state, emitter, "completed", url)
        emitter.progress(
            "completed",
            step=state.steps,
            max_steps=state.max_steps,
            url=url,
            detail="Model returned final browser analysis.",
        )

    async def _finish(self, state: RunState, emitter: RunEventEmitter) -> None:
        try:
            final_shot = await self.driver.screenshot()
            emitter.screenshot(final_shot)
        except Exception as e:
            logger.warning(f"Could not capture final screenshot: {e}")

        state.final_url = await self.driver.current_url()
        budget_exhausted = not state.finished and state.steps >= state.max_steps
        if budget_exhausted:
            state.status = RunStatus.BUDGET_EXHAUSTED

        status: RunProgressStatus = (
            "blocked" if state.blocked else "completed" if state.completed else "running"
        )
        self._persist(state, emitter, status, state.final_url)
        logger.info(
            f"Computer use run finished: status={state.status.value} "
            f"steps={state.steps}/{state.max_steps}"
        )

        if budget_exhausted:
            logger.info(
                f"Computer use run stopped at step budget ({state.steps}/{state.max_steps}); "
                f"resumable from {state.checkpoint_path}"
            )
            emitter.progress(
                "running",
                step=state.steps,
                max_steps=state.max_steps,
                url=state.final_url,
                detail="Stopped after reaching maximum step budget. Resume is available from checkpoint.",
            )

    def _persist(
        self,
        state: RunState,
        emitter: RunEventEmitter,
        status: RunProgressStatus,
        url: str | None = None,
    ) -> None:
        checkpoint = state.to_checkpoint(url)
        self.store.save(state.checkpoint_path, checkpoint)
        emitter.checkpoint(
            str(state.checkpoint_path),
            step=state.steps,
            max_steps=state.max_steps,
            recoverable=checkpoint.recoverable,
            url=checkpoint.last_url,
        )
        if status == "recovered":
            emitter.progress(
                "recovered",
                step=state.steps,
                max_steps=state.max_steps,
                url=checkpoint.last_url,
                detail="Recovered browser run from checkpoint.",
            )

    def _save_after_failure(self, state: RunState) -> None:
        try:
            self.store.save(state.checkpoint_path, state.to_checkpoint())
        except Exception as e:
            logger.warning(f"Could not save checkpoint after failure: {e}")
