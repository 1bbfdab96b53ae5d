"""Tests for the Textual apps, driven through the run_test pilot."""

from __future__ import annotations

import asyncio
import threading
from typing import TYPE_CHECKING, Any

import pytest
from conftest import FakeRuntimeClient, numbered_frames
from textual.widgets import DataTable, Input

from dockit.app import DashboardScreen, DockitApp, LogsApp
from dockit.controller import Mode
from dockit.models import AppConfig
from dockit.widgets.confirm_dialog import ConfirmDialog
from dockit.widgets.log_pane import LogPane
from dockit.widgets.log_screen import LogScreen
from dockit.widgets.search_dialog import SearchDialog
from dockit.widgets.status_bar import StatusBar

if TYPE_CHECKING:
    from collections.abc import Callable

    from textual.pilot import Pilot


async def settle(app: LogsApp | DockitApp, pilot: Pilot[Any]) -> None:
    await pilot.pause()
    await app.workers.wait_for_complete()
    await pilot.pause()


async def wait_until(predicate: Callable[[], bool]) -> None:
    for _ in range(200):
        if predicate():
            return
        await asyncio.sleep(0.01)
    raise AssertionError("condition not reached")


class TestLogScreen:
    @pytest.mark.asyncio
    async def test_static_session(self, fake_client: FakeRuntimeClient) -> None:
        app = LogsApp(fake_client, "web", config=AppConfig(tail_lines=25))
        async with app.run_test(size=(100, 30)) as pilot:
            await settle(app, pilot)
            screen = app.screen
            assert isinstance(screen, LogScreen)
            controller = screen.controller
            assert controller.done
            assert controller.title == "web"
            assert len(controller.buffer) == 10
            assert ("open_log_stream", ("web", False, 25)) in fake_client.calls
            pane = screen.query_one(LogPane)
            assert controller.viewport.height == pane.content_region.height
            assert "DONE" in screen.query_one(StatusBar).plain
            await pilot.press("q")
            await pilot.pause()
        assert app.return_value == 0
        assert fake_client.streams[0].closed

    @pytest.mark.asyncio
    async def test_search_through_dialog(self, fake_client: FakeRuntimeClient) -> None:
        app = LogsApp(fake_client, "web")
        async with app.run_test(size=(100, 30)) as pilot:
            await settle(app, pilot)
            log_screen = app.screen
            assert isinstance(log_screen, LogScreen)
            await pilot.press("slash")
            await pilot.pause()
            assert isinstance(app.screen, SearchDialog)
            assert log_screen.controller.mode is Mode.SEARCH_ENTRY
            app.screen.query_one("#search-input", Input).value = "line 3"
            await pilot.press("enter")
            await pilot.pause()
            assert app.screen is log_screen
            assert log_screen.controller.mode is Mode.FILTERED
            assert [line.text for line in log_screen.controller.visible_lines()] == ["line 3"]
            await pilot.press("escape")
            await pilot.pause()
            assert log_screen.controller.mode is Mode.NORMAL

    @pytest.mark.asyncio
    async def test_cancelled_search(self, fake_client: FakeRuntimeClient) -> None:
        app = LogsApp(fake_client, "web")
        async with app.run_test(size=(100, 30)) as pilot:
            await settle(app, pilot)
            log_screen = app.screen
            await pilot.press("slash")
            await pilot.pause()
            await pilot.press("escape")
            await pilot.pause()
            assert app.screen is log_screen
            assert isinstance(log_screen, LogScreen)
            assert log_screen.controller.mode is Mode.NORMAL

    @pytest.mark.asyncio
    async def test_missing_container_shows_error(self) -> None:
        client = FakeRuntimeClient(missing=frozenset({"nope"}))
        app = LogsApp(client, "nope")
        async with app.run_test(size=(100, 30)) as pilot:
            await settle(app, pilot)
            screen = app.screen
            assert isinstance(screen, LogScreen)
            assert screen.controller.fatal_error == "No such container: nope"
            assert screen.query_one("#log-error").display
            assert not screen.query_one(LogPane).display
            await pilot.press("escape")
            await pilot.pause()
        assert app.return_value == 1

    @pytest.mark.asyncio
    async def test_read_failure_keeps_lines(self) -> None:
        client = FakeRuntimeClient([numbered_frames(0, 50)], fail_after=True)
        app = LogsApp(client, "web", follow=True)
        async with app.run_test(size=(100, 30)) as pilot:
            await settle(app, pilot)
            screen = app.screen
            assert isinstance(screen, LogScreen)
            assert len(screen.controller.buffer) == 50
            assert screen.controller.read_error == "connection reset"
            assert "read error" in screen.query_one(StatusBar).plain
        assert client.streams[0].closed

    @pytest.mark.asyncio
    async def test_quit_during_blocked_read_closes_stream(self) -> None:
        client = FakeRuntimeClient([numbered_frames(0, 10)], hold_open=True)
        app = LogsApp(client, "web", follow=True)
        async with app.run_test(size=(100, 30)) as pilot:
            await wait_until(lambda: len(client.streams) == 1 and client.streams[0].closed is False)
            screen = app.screen
            assert isinstance(screen, LogScreen)
            await wait_until(lambda: len(screen.controller.buffer) == 10)
            assert not screen.controller.done
            await pilot.press("q")
            assert client.streams[0].closed
            assert screen.controller.closed
        assert app.return_value == 0

    @pytest.mark.asyncio
    async def test_quit_while_opening_closes_stream(self) -> None:
        gate = threading.Event()
        client = FakeRuntimeClient([numbered_frames(0, 10)], hold_open=True, open_gate=gate)
        app = LogsApp(client, "web", follow=True)
        try:
            async with app.run_test(size=(100, 30)) as pilot:
                await pilot.pause()
                assert client.streams == []
                await pilot.press("q")
                gate.set()
                await wait_until(lambda: len(client.streams) == 1 and client.streams[0].closed)
        finally:
            gate.set()
        assert app.return_value == 0
        assert client.streams[0].read() is None


class TestDashboard:
    @pytest.mark.asyncio
    async def test_lists_resources(self, fake_client: FakeRuntimeClient) -> None:
        app = DockitApp(fake_client)
        async with app.run_test(size=(140, 40)) as pilot:
            await settle(app, pilot)
            assert isinstance(app.screen, DashboardScreen)
            assert app.screen.query_one("#containers-table", DataTable).row_count == 2
            assert app.screen.query_one("#images-table", DataTable).row_count == 1
            assert app.screen.query_one("#volumes-table", DataTable).row_count == 1
            assert app.screen.query_one("#networks-table", DataTable).row_count == 1

    @pytest.mark.asyncio
    async def test_start_selected_container(self, fake_client: FakeRuntimeClient) -> None:
        app = DockitApp(fake_client)
        async with app.run_test(size=(140, 40)) as pilot:
            await settle(app, pilot)
            await pilot.press("s")
            await settle(app, pilot)
            assert ("start", "a" * 64) in fake_client.calls
            assert "Started web" in app.screen.query_one(StatusBar).plain

    @pytest.mark.asyncio
    async def test_remove_asks_first(self, fake_client: FakeRuntimeClient) -> None:
        app = DockitApp(fake_client)
        async with app.run_test(size=(140, 40)) as pilot:
            await settle(app, pilot)
            await pilot.press("d")
            await pilot.pause()
            assert isinstance(app.screen, ConfirmDialog)
            await pilot.press("n")
            await settle(app, pilot)
            assert not any(call[0] == "remove_container" for call in fake_client.calls)
            await pilot.press("d")
            await pilot.pause()
            await pilot.press("y")
            await settle(app, pilot)
            assert ("remove_container", ("a" * 64, True)) in fake_client.calls

    @pytest.mark.asyncio
    async def test_logs_open_and_return(self, fake_client: FakeRuntimeClient) -> None:
        app = DockitApp(fake_client)
        async with app.run_test(size=(140, 40)) as pilot:
            await settle(app, pilot)
            dashboard = app.screen
            await pilot.press("l")
            await settle(app, pilot)
            assert isinstance(app.screen, LogScreen)
            assert ("open_log_stream", ("a" * 64, True, 100)) in fake_client.calls
            await pilot.press("q")
            await pilot.pause()
            assert app.screen is dashboard
