"""
Tests for the renderer lease and the rotation-aware slot.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError

from src.common.errors import LaunchFailure, NavigationError
from src.harvester.renderer import RendererLease, RendererSlot, launch_renderer
from tests.test_helpers import FakeLeaseFactory


def mock_browser():
    page = MagicMock()
    page.close = AsyncMock()
    context = MagicMock()
    context.add_init_script = AsyncMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()
    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()
    return browser, context, page


class TestRendererLease:
    @pytest.mark.asyncio
    async def test_page_gets_own_context_and_is_closed(self):
        browser, context, page = mock_browser()
        lease = RendererLease(None, browser, user_agent="UA/1.0", navigation_timeout=45)

        async with lease.page() as borrowed:
            assert borrowed is page

        assert browser.new_context.await_args.kwargs["user_agent"] == "UA/1.0"
        page.set_default_navigation_timeout.assert_called_once_with(45000)
        page.close.assert_awaited_once()
        context.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_page_closed_when_body_raises(self):
        browser, context, page = mock_browser()
        lease = RendererLease(None, browser)

        with pytest.raises(ValueError):
            async with lease.page():
                raise ValueError("boom")

        page.close.assert_awaited_once()
        context.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_context_failure_is_navigation_error(self):
        browser, context, page = mock_browser()
        browser.new_context = AsyncMock(side_effect=PlaywrightError("Target closed"))
        lease = RendererLease(None, browser)

        with pytest.raises(NavigationError):
            async with lease.page():
                pass

    @pytest.mark.asyncio
    async def test_close_is_idempotent_and_tolerates_errors(self):
        browser, _, _ = mock_browser()
        browser.close = AsyncMock(side_effect=PlaywrightError("already closed"))
        playwright = MagicMock()
        playwright.stop = AsyncMock()
        lease = RendererLease(playwright, browser)

        await lease.close()
        await lease.close()

        assert lease.closed
        browser.close.assert_awaited_once()
        playwright.stop.assert_awaited_once()


class TestLaunchRenderer:
    @pytest.mark.asyncio
    async def test_launch_error_becomes_launch_failure(self):
        playwright = MagicMock()
        playwright.chromium.launch = AsyncMock(side_effect=PlaywrightError("Executable doesn't exist"))
        playwright.stop = AsyncMock()
        starter = MagicMock()
        starter.start = AsyncMock(return_value=playwright)

        with patch("src.harvester.renderer.async_playwright", return_value=starter):
            with pytest.raises(LaunchFailure, match="Executable"):
                await launch_renderer()

        playwright.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_launch_uses_headless_args(self):
        browser, _, _ = mock_browser()
        playwright = MagicMock()
        playwright.chromium.launch = AsyncMock(return_value=browser)
        starter = MagicMock()
        starter.start = AsyncMock(return_value=playwright)

        with patch("src.harvester.renderer.async_playwright", return_value=starter):
            lease = await launch_renderer(headless=True)

        kwargs = playwright.chromium.launch.await_args.kwargs
        assert kwargs["headless"] is True
        assert "--disable-dev-shm-usage" in kwargs["args"]
        assert isinstance(lease, RendererLease)


class TestRendererSlot:
    @pytest.mark.asyncio
    async def test_rotation_waits_for_borrowed_pages(self):
        factory = FakeLeaseFactory()
        slot = RendererSlot(factory)
        await slot.open()
        release = asyncio.Event()

        async def hold_page():
            async with slot.page():
                await release.wait()

        holder = asyncio.create_task(hold_page())
        await asyncio.sleep(0)
        rotation = asyncio.create_task(slot.rotate())
        await asyncio.sleep(0.01)

        # Still draining: the first browser must stay open
        assert not rotation.done()
        assert not factory.leases[0].closed

        release.set()
        await asyncio.gather(holder, rotation)

        assert factory.leases[0].closed
        assert slot.lease is factory.leases[1]
        assert slot.launches == 2

    @pytest.mark.asyncio
    async def test_borrow_during_rotation_gets_new_lease(self):
        factory = FakeLeaseFactory()
        slot = RendererSlot(factory)
        await slot.open()
        release = asyncio.Event()

        async def hold_page():
            async with slot.page():
                await release.wait()

        borrowed_from = []

        async def borrow_later():
            async with slot.page() as page:
                borrowed_from.append(page.lease)

        holder = asyncio.create_task(hold_page())
        await asyncio.sleep(0)
        rotation = asyncio.create_task(slot.rotate())
        await asyncio.sleep(0)
        borrower = asyncio.create_task(borrow_later())
        await asyncio.sleep(0.01)
        assert borrowed_from == []

        release.set()
        await asyncio.gather(holder, rotation, borrower)

        assert borrowed_from == [factory.leases[1]]

    @pytest.mark.asyncio
    async def test_concurrent_rotation_requests_each_rotate(self):
        factory = FakeLeaseFactory()
        slot = RendererSlot(factory)
        await slot.open()

        await asyncio.gather(slot.rotate(), slot.rotate())

        assert len(factory.leases) == 3
        assert factory.leases[0].closed and factory.leases[1].closed
        assert not factory.leases[2].closed

    @pytest.mark.asyncio
    async def test_failed_relaunch_propagates(self):
        factory = FakeLeaseFactory(fail_on=(2,))
        slot = RendererSlot(factory)
        await slot.open()

        with pytest.raises(LaunchFailure):
            await slot.rotate()

        assert factory.leases[0].closed
        with pytest.raises(LaunchFailure):
            async with slot.page():
                pass

    @pytest.mark.asyncio
    async def test_close(self):
        factory = FakeLeaseFactory()
        slot = RendererSlot(factory)
        await slot.open()

        await slot.close()
        await slot.close()

        assert factory.all_closed
        assert slot.lease is None
