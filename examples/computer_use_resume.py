"""
Stop a run at its step budget, then resume it from the saved checkpoint.
"""

import asyncio
import os

from webpilot import ComputerUseTool, SessionDriverPool, ToolContext

GOAL = "Find the 'More information' link on example.com and describe where it leads"


async def main() -> None:
    drivers = SessionDriverPool()
    tool = ComputerUseTool(drivers=drivers)
    context = ToolContext(session_id="resume-demo", provider=os.environ.get("WEBPILOT_PROVIDER"))

    try:
        first = await tool.execute({"goal": GOAL, "startUrl": "https://example.com", "maxSteps": 1}, context)
        data = first.data or {}
        print(f"first run: success={first.success} steps={data.get('steps')} checkpoint={data.get('checkpointPath')}")

        second = await tool.execute({"goal": GOAL, "maxSteps": 4, "resumeFromCheckpoint": True}, context)
        data = second.data or {}
        print(
            f"second run: resumed={data.get('resumedFromCheckpoint')} completed={data.get('completed')} "
            f"analysis={data.get('analysis')!r}"
        )
    finally:
        await drivers.close_all()


if __name__ == "__main__":
    asyncio.run(main())
