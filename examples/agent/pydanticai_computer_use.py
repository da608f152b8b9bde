"""
Expose `computer_use` to a PydanticAI agent.

Requires `pip install webpilot[pydanticai]`.
"""

import asyncio

from pydantic_ai import Agent

from webpilot import ComputerUseTool, SessionDriverPool, ToolContext
from webpilot.integrations.pydanticai import WebPilotPydanticDeps, register_webpilot_tools


async def main() -> None:
    agent = Agent(
        "openai:gpt-4o",
        deps_type=WebPilotPydanticDeps,
        system_prompt="Use computer_use for anything that needs a real browser.",
    )
    register_webpilot_tools(agent)

    drivers = SessionDriverPool()
    deps = WebPilotPydanticDeps(
        tool=ComputerUseTool(drivers=drivers),
        context=ToolContext(session_id="pydanticai-demo", provider="google"),
    )
    try:
        result = await agent.run("What is the heading on https://example.com?", deps=deps)
        print(result.output)
    finally:
        await drivers.close_all()


if __name__ == "__main__":
    asyncio.run(main())
