"""
PydanticAI integration.

`register_webpilot_tools(agent)` exposes the computer-use loop as tools on a PydanticAI
agent; `pydantic_ai` itself is never imported here.
"""

from __future__ import annotations

from .deps import WebPilotPydanticDeps
from .toolset import register_webpilot_tools

__all__ = ["WebPilotPydanticDeps", "register_webpilot_tools"]
