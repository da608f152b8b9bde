from __future__ import annotations

import base64
from unittest.mock import AsyncMock

import pytest

from webpilot.driver import PlaywrightDriver, SessionDriverPool, Viewport, playwright_key
from webpilot.models import BrowserAction


def make_page(url: str = "https://example.com/") -> AsyncMock:
    page = AsyncMock()
    page.url = url
    page.screenshot.return_value = b"\x89PNG"
    return page


@pytest.mark.asyncio
async def test_click_denormalizes_grid_coordinates() -> None:
    page = make_page()
    driver = PlaywrightDriver(page)

    await driver.perform_action(BrowserAction(name="click_at", args={"x": 500, "y": 500}))

    page.mouse.click.assert_awaited_once_with(720.0, 450.0)
    page.wait_for_load_state.assert_awaited()


@pytest.mark.asyncio
async def test_key_combination_maps_key_names() -> None:
    page = make_page()
    await PlaywrightDriver(page).perform_action(BrowserAction(name="key_combination", args={"keys": ["ctrl", "L"]}))
    page.keyboard.press.assert_awaited_once_with("Control+l")


@pytest.mark.asyncio
async def test_type_text_at_clicks_then_types() -> None:
    page = make_page()
    await PlaywrightDriver(page, viewport=Viewport(1000, 1000)).perform_action(
        BrowserAction(name="type_text_at", args={"x": 100, "y": 200, "text": "hello", "press_enter": True})
    )
    page.mouse.click.assert_awaited_once_with(100.0, 200.0)
    page.keyboard.type.assert_awaited_once_with("hello")
    page.keyboard.press.assert_awaited_once_with("Enter")


@pytest.mark.asyncio
async def test_scroll_at_direction() -> None:
    page = make_page()
    await PlaywrightDriver(page).perform_action(
        BrowserAction(name="scroll_at", args={"x": 0, "y": 0, "direction": "up", "magnitude": 300})
    )
    page.mouse.wheel.assert_awaited_once_with(0.0, -300.0)


@pytest.mark.asyncio
async def test_settle_failure_is_ignored() -> None:
    page = make_page()
    page.wait_for_load_state.side_effect = TimeoutError("networkidle")
    await PlaywrightDriver(page).perform_action(BrowserAction(name="go_back"))
    page.go_back.assert_awaited_once()


@pytest.mark.asyncio
async def test_screenshot_is_base64_png() -> None:
    shot = await PlaywrightDriver(make_page("https://a.test/")).screenshot()
    assert shot.mime_type == "image/png"
    assert shot.url == "https://a.test/"
    assert base64.b64decode(shot.data) == b"\x89PNG"


def test_playwright_key_names() -> None:
    assert playwright_key("cmd") == "Meta"
    assert playwright_key("Enter") == "Enter"
    assert playwright_key("A") == "a"
    assert playwright_key("f5") == "F5"


class _Closable:
    def __init__(self) -> None:
        self.closed = False

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_session_pool_reuses_and_closes() -> None:
    made: list[_Closable] = []

    async def factory():
        driver = _Closable()
        made.append(driver)
        return driver

    pool = SessionDriverPool(factory)
    first = await pool.for_session("a")
    assert await pool.for_session("a") is first
    other = await pool.for_session("b")
    assert len(made) == 2

    await pool.close_session("a")
    assert first.closed is True
    assert pool.has_session("a") is False
    assert other.closed is False

    await pool.close_all()
    assert other.closed is True
    assert pool.has_session("b") is False


@pytest.mark.asyncio
async def test_type_text_at_clears_field_first() -> None:
    page = make_page()
    await PlaywrightDriver(page).perform_action(
        BrowserAction(name="type_text_at", args={"text": "new value", "clear_before_typing": True})
    )
    page.mouse.click.assert_not_awaited()
    assert [c.args for c in page.keyboard.press.await_args_list] == [("ControlOrMeta+a",), ("Delete",)]
    page.keyboard.type.assert_awaited_once_with("new value")
