from __future__ import annotations

from dataclasses import dataclass

from webpilot.tool import ComputerUseTool, ToolContext


@dataclass
class WebPilotPydanticDeps:
    """
    Dependencies passed into PydanticAI tools via ctx.deps.

    Carries the `computer_use` tool and the hosting session's context.
    """

    tool: ComputerUseTool
    context: ToolContext
