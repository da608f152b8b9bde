"""
Browser capability used by the computer-use loop.

`BrowserDriver` is the only surface the runner touches. `PlaywrightDriver` is the bundled
implementation; `SessionDriverPool` scopes drivers to a hosting session so several runs in
the same session share one browser.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .constants import COORDINATE_GRID, VIEWPORT_HEIGHT, VIEWPORT_WIDTH
from .models import BrowserAction, Screenshot

if TYPE_CHECKING:
    from playwright.async_api import Browser, Page, Playwright

logger = logging.getLogger(__name__)

_DEFAULT_SCROLL_PX = 500
_WAIT_ACTION_S = 5.0
_SETTLE_TIMEOUT_MS = 5000

_PLAYWRIGHT_KEY_NAMES = {
    "ctrl": "Control",
    "control": "Control",
    "cmd": "Meta",
    "command": "Meta",
    "meta": "Meta",
    "super": "Meta",
    "alt": "Alt",
    "option": "Alt",
    "shift": "Shift",
    "enter": "Enter",
    "return": "Enter",
    "esc": "Escape",
    "escape": "Escape",
    "tab": "Tab",
    "space": "Space",
    "backspace": "Backspace",
    "delete": "Delete",
    "up": "ArrowUp",
    "down": "ArrowDown",
    "left": "ArrowLeft",
    "right": "ArrowRight",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    "home": "Home",
    "end": "End",
}


@runtime_checkable
class BrowserDriver(Protocol):
    async def screenshot(self) -> Screenshot: ...

    async def current_url(self) -> str: ...

    async def perform_action(self, action: BrowserAction) -> None: ...

    async def close(self) -> None: ...


@dataclass(frozen=True)
class Viewport:
    width: int = VIEWPORT_WIDTH
    height: int = VIEWPORT_HEIGHT

    def to_pixels(self, x: Any, y: Any) -> tuple[float, float]:
        """Convert 0-1000 grid coordinates to viewport pixels."""
        return (
            _grid_value(x) / COORDINATE_GRID * self.width,
            _grid_value(y) / COORDINATE_GRID * self.height,
        )


def _grid_value(raw: Any) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(float(COORDINATE_GRID), value))


def playwright_key(key: str) -> str:
    normalized = key.strip()
    mapped = _PLAYWRIGHT_KEY_NAMES.get(normalized.lower())
    if mapped:
        return mapped
    if len(normalized) == 1:
        return normalized.lower()
    return normalized[:1].upper() + normalized[1:]


class PlaywrightDriver:
    """Chromium page driven through Playwright's async API."""

    def __init__(
        self,
        page: Page,
        *,
        browser: Browser | None = None,
        playwright: Playwright | None = None,
        viewport: Viewport = Viewport(),
    ) -> None:
        self.page = page
        self._browser = browser
        self._playwright = playwright
        self.viewport = viewport

    @classmethod
    async def create(
        cls,
        start_url: str | None = None,
        *,
        headless: bool = False,
        viewport: Viewport = Viewport(),
    ) -> PlaywrightDriver:
        from playwright.async_api import async_playwright

        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=headless, args=["--disable-blink-features=AutomationControlled"]
            )
            page = await browser.new_page(
                viewport={"width": viewport.width, "height": viewport.height}
            )
            if start_url:
                await page.goto(start_url)
        except Exception:
            await playwright.stop()
            raise
        return cls(page, browser=browser, playwright=playwright, viewport=viewport)

    async def screenshot(self) -> Screenshot:
        png = await self.page.screenshot(type="png")
        return Screenshot(
            data=base64.b64encode(png).decode("ascii"), mime_type="image/png", url=self.page.url
        )

    async def current_url(self) -> str:
        return self.page.url

    async def perform_action(self, action: BrowserAction) -> None:
        args = action.args
        page = self.page
        x, y = self.viewport.to_pixels(args.get("x"), args.get("y"))

        if action.name == "navigate":
            url = str(args.get("url") or "")
            if url:
                await page.goto(url)
        elif action.name == "click_at":
            await page.mouse.click(x, y)
        elif action.name == "hover_at":
            await page.mouse.move(x, y)
        elif action.name == "type_text_at":
            if "x" in args and "y" in args:
                await page.mouse.click(x, y)
            if args.get("clear_before_typing"):
                await page.keyboard.press("ControlOrMeta+a")
                await page.keyboard.press("Delete")
            await page.keyboard.type(str(args.get("text") or ""))
            if args.get("press_enter"):
                await page.keyboard.press("Enter")
        elif action.name == "scroll_document":
            delta = -_DEFAULT_SCROLL_PX if args.get("direction") == "up" else _DEFAULT_SCROLL_PX
            await page.mouse.wheel(0, delta)
        elif action.name == "scroll_at":
            magnitude = float(args.get("magnitude") or _DEFAULT_SCROLL_PX)
            direction = str(args.get("direction") or "down")
            dx, dy = {
                "up": (0.0, -magnitude),
                "left": (-magnitude, 0.0),
                "right": (magnitude, 0.0),
            }.get(direction, (0.0, magnitude))
            await page.mouse.move(x, y)
            await page.mouse.wheel(dx, dy)
        elif action.name == "drag_and_drop":
            to_x, to_y = self.viewport.to_pixels(args.get("destination_x"), args.get("destination_y"))
            await page.mouse.move(x, y)
            await page.mouse.down()
            await page.mouse.move(to_x, to_y)
            await page.mouse.up()
        elif action.name == "go_back":
            await page.go_back()
        elif action.name == "go_forward":
            await page.go_forward()
        elif action.name == "key_combination":
            keys = [playwright_key(str(k)) for k in args.get("keys") or []]
            if keys:
                await page.keyboard.press("+".join(keys))
        elif action.name == "wait":
            await asyncio.sleep(_WAIT_ACTION_S)

        try:
            await page.wait_for_load_state("networkidle", timeout=_SETTLE_TIMEOUT_MS)
        except Exception as e:
            # Pages with long-polling never go idle.
            logger.debug(f"Page did not settle after {action.name}: {e}")

    async def close(self) -> None:
        try:
            if self._browser is not None:
                await self._browser.close()
        finally:
            if self._playwright is not None:
                await self._playwright.stop()


DriverFactory = Callable[[], Awaitable[BrowserDriver]]


class SessionDriverPool:
    """
    One browser driver per hosting session.

    Drivers are created lazily and reused across runs; only the session lifecycle
    (`close_session` / `close_all`) closes them.
    """

    def __init__(self, factory: DriverFactory | None = None, *, headless: bool = False) -> None:
        self._factory = factory or (lambda: PlaywrightDriver.create(headless=headless))
        self._drivers: dict[str, BrowserDriver] = {}
        self._lock = asyncio.Lock()

    async def for_session(self, session_id: str) -> BrowserDriver:
        async with self._lock:
            driver = self._drivers.get(session_id)
            if driver is None:
                logger.info(f"Starting browser for session {session_id}")
                driver = await self._factory()
                self._drivers[session_id] = driver
            return driver

    def has_session(self, session_id: str) -> bool:
        return session_id in self._drivers

    async def close_session(self, session_id: str) -> None:
        async with self._lock:
            driver = self._drivers.pop(session_id, None)
        if driver is not None:
            await driver.close()

    async def close_all(self) -> None:
        async with self._lock:
            drivers = list(self._drivers.values())
            self._drivers.clear()
        for driver in drivers:
            try:
                await driver.close()
            except Exception as e:
                logger.warning(f"Failed to close browser driver: {e}")
