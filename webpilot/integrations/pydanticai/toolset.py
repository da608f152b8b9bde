from __future__ import annotations

from typing import Any

from webpilot.checkpoint import CheckpointStore

from .deps import WebPilotPydanticDeps


def register_webpilot_tools(agent: Any) -> dict[str, Any]:
    """
    Register WebPilot tools on a PydanticAI agent.

    Expects `agent` to provide a `.tool` decorator compatible with PydanticAI's
    `Agent.tool`.

    Returns:
        Mapping of tool name -> underlying coroutine function (useful for tests).
    """

    @agent.tool
    async def computer_use(
        ctx: Any,
        goal: str,
        start_url: str | None = None,
        max_steps: int = 15,
        model: str | None = None,
        resume_from_checkpoint: bool = False,
        checkpoint_path: str | None = None,
    ) -> dict[str, Any]:
        """
        Control a real browser to accomplish `goal`, returning the run outcome.
        """
        deps: WebPilotPydanticDeps = ctx.deps
        args: dict[str, Any] = {
            "goal": goal,
            "startUrl": start_url,
            "maxSteps": max_steps,
            "model": model,
            "resumeFromCheckpoint": resume_from_checkpoint,
            "checkpointPath": checkpoint_path,
        }
        result = await deps.tool.execute(args, deps.context)
        return result.model_dump(exclude_none=True)

    @agent.tool
    async def read_checkpoint(
        ctx: Any,
        checkpoint_path: str | None = None,
    ) -> dict[str, Any]:
        """
        Read the saved browser-run checkpoint for this session, if any.
        """
        deps: WebPilotPydanticDeps = ctx.deps
        store = CheckpointStore(deps.context.app_data_dir)
        path = store.resolve_path(deps.context.session_id, checkpoint_path)
        checkpoint = store.load(path)
        if checkpoint is None:
            return {"found": False, "checkpointPath": str(path)}
        return {
            "found": True,
            "checkpointPath": str(path),
            "recoverable": checkpoint.recoverable,
            "checkpoint": checkpoint.model_dump(mode="json", by_alias=True, exclude_none=True),
        }

    return {
        "computer_use": computer_use,
        "read_checkpoint": read_checkpoint,
    }
