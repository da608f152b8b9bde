"""
Run one computer-use invocation against a local Chromium.

Requires GOOGLE_API_KEY (or OPENAI_API_KEY / ANTHROPIC_API_KEY with WEBPILOT_PROVIDER set)
and `playwright install chromium`.
"""

import asyncio
import json
import logging
import os

from webpilot import ComputerUseTool, JsonlEventSink, SessionDriverPool, ToolContext


async def main() -> None:
    logging.basicConfig(level=logging.INFO)

    drivers = SessionDriverPool(headless=False)
    sink = JsonlEventSink("computer-use-events.jsonl")
    tool = ComputerUseTool(drivers=drivers, event_sink=sink)
    context = ToolContext(session_id="demo", provider=os.environ.get("WEBPILOT_PROVIDER", "google"))

    try:
        result = await tool.execute(
            {
                "goal": "Open example.com and confirm the page heading",
                "startUrl": "https://example.com",
                "maxSteps": 5,
            },
            context,
        )
        print(json.dumps(result.model_dump(exclude_none=True), indent=2))
    finally:
        sink.close()
        await drivers.close_all()


if __name__ == "__main__":
    asyncio.run(main())
