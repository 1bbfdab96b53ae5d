"""Textual applications for dockit: the dashboard and the standalone log viewer."""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import TYPE_CHECKING, ClassVar

from rich.text import Text
from textual.app import App
from textual.screen import Screen
from textual.widgets import Footer, Static, TabbedContent, TabPane

from dockit.colors import PALETTE
from dockit.config import save_config
from dockit.errors import DockitError
from dockit.keys import DASHBOARD_BINDINGS
from dockit.models import AppConfig, ContainerState, ContainerSummary, ImageSummary
from dockit.widgets.confirm_dialog import ConfirmDialog
from dockit.widgets.help_screen import HelpScreen
from dockit.widgets.inspect_dialog import InspectDialog
from dockit.widgets.log_screen import LogScreen
from dockit.widgets.resource_table import ResourceKind, ResourceTable, resource_key, resource_label
from dockit.widgets.status_bar import StatusBar

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from textual.app import ComposeResult
    from textual.binding import BindingType
    from textual.timer import Timer

    from dockit.runtime import RuntimeClient
    from dockit.widgets.resource_table import Resource

logger = logging.getLogger(__name__)

TAB_ORDER: tuple[ResourceKind, ...] = tuple(ResourceKind)


def summary_text(containers: list[ContainerSummary], images: list[ImageSummary], volumes: int, networks: int) -> Text:
    """One-line overview: totals with running/stopped and dangling counts."""
    running = sum(1 for c in containers if c.state is ContainerState.RUNNING)
    dangling = sum(1 for i in images if not i.tags)
    text = Text("🐳 ", style=PALETTE.title)
    text.append(f"Containers: {len(containers)} ")
    text.append(f"● {running} running ", style=PALETTE.ok)
    text.append(f"○ {len(containers) - running} stopped", style=PALETTE.muted)
    text.append(f"  |  Images: {len(images)} ({dangling} dangling)")
    text.append(f"  |  Volumes: {volumes}  |  Networks: {networks}")
    return text


class DashboardScreen(Screen[None]):
    """Tabbed listings with per-row actions."""

    DEFAULT_CSS = """
    DashboardScreen > #summary {
        height: 1;
        padding: 0 1;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = list(DASHBOARD_BINDINGS)

    def __init__(self, client: RuntimeClient, config: AppConfig) -> None:
        super().__init__()
        self._client = client
        self._config = config
        self._status_timer: Timer | None = None

    def compose(self) -> ComposeResult:
        yield Static(id="summary")
        with TabbedContent(initial=ResourceKind.CONTAINERS.value, id="tabs"):
            for kind in TAB_ORDER:
                with TabPane(kind.value.capitalize(), id=kind.value):
                    yield ResourceTable(kind, id=f"{kind.value}-table")
        yield StatusBar(id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        self.action_refresh()

    # --- Helpers ---

    @property
    def active_kind(self) -> ResourceKind:
        return ResourceKind(self.query_one("#tabs", TabbedContent).active)

    def table(self, kind: ResourceKind | None = None) -> ResourceTable:
        kind = kind or self.active_kind
        return self.query_one(f"#{kind.value}-table", ResourceTable)

    def set_status(self, message: str, *, error: bool = False) -> None:
        """Show a transient message that clears itself after the configured timeout."""
        style = PALETTE.error if error else PALETTE.ok
        self.query_one("#status-bar", StatusBar).update_parts(Text(message, style=style))
        if self._status_timer is not None:
            self._status_timer.stop()
        self._status_timer = self.set_timer(self._config.status_timeout, self._clear_status)

    def _clear_status(self) -> None:
        self._status_timer = None
        self.query_one("#status-bar", StatusBar).update_parts(Text())

    def _selected_container(self) -> ContainerSummary | None:
        if self.active_kind is not ResourceKind.CONTAINERS:
            self.set_status("Select a container first (Containers tab)", error=True)
            return None
        item = self.table().selected
        if not isinstance(item, ContainerSummary):
            self.set_status("No container selected", error=True)
            return None
        return item

    # --- Refresh ---

    def action_refresh(self) -> None:
        self.run_worker(self._refresh_worker(), exclusive=True, group="refresh")

    async def _refresh_worker(self) -> None:
        try:
            containers, images, volumes, networks = await asyncio.gather(
                asyncio.to_thread(self._client.list_containers, all=True),
                asyncio.to_thread(self._client.list_images),
                asyncio.to_thread(self._client.list_volumes),
                asyncio.to_thread(self._client.list_networks),
            )
        except DockitError as e:
            logger.warning("Refresh failed: %s", e)
            self.set_status(f"Error: {e}", error=True)
            return
        self.table(ResourceKind.CONTAINERS).set_items(containers)
        self.table(ResourceKind.IMAGES).set_items(images)
        self.table(ResourceKind.VOLUMES).set_items(volumes)
        self.table(ResourceKind.NETWORKS).set_items(networks)
        self.query_one("#summary", Static).update(summary_text(containers, images, len(volumes), len(networks)))

    # --- Actions ---

    def _run_action(self, call: Callable[[], object], done: str) -> None:
        self.run_worker(self._action_worker(call, done), group="actions")

    async def _action_worker(self, call: Callable[[], object], done: str) -> None:
        try:
            await asyncio.to_thread(call)
        except DockitError as e:
            logger.warning("Action failed: %s", e)
            self.set_status(f"Error: {e}", error=True)
            return
        self.set_status(done)
        await self._refresh_worker()

    def action_start(self) -> None:
        if container := self._selected_container():
            self._run_action(partial(self._client.start_container, container.id), f"Started {container.name}")

    def action_stop(self) -> None:
        if container := self._selected_container():
            self._run_action(partial(self._client.stop_container, container.id), f"Stopped {container.name}")

    def action_restart(self) -> None:
        if container := self._selected_container():
            self._run_action(partial(self._client.restart_container, container.id), f"Restarted {container.name}")

    def action_remove(self) -> None:
        kind = self.active_kind
        item = self.table(kind).selected
        if item is None:
            self.set_status("Nothing selected", error=True)
            return
        label = resource_label(item)
        self.app.push_screen(
            ConfirmDialog(f"Remove {kind.value[:-1]} '{label}'?"),
            callback=partial(self._on_remove_confirmed, kind, item),
        )

    def _on_remove_confirmed(self, kind: ResourceKind, item: Resource, confirmed: bool | None) -> None:  # noqa: FBT001
        if not confirmed:
            return
        key = resource_key(item)
        call: Callable[[], object]
        match kind:
            case ResourceKind.CONTAINERS:
                call = partial(self._client.remove_container, key, force=True)
            case ResourceKind.IMAGES:
                call = partial(self._client.remove_image, key)
            case ResourceKind.VOLUMES:
                call = partial(self._client.remove_volume, key)
            case ResourceKind.NETWORKS:
                call = partial(self._client.remove_network, key)
        self._run_action(call, f"Removed {resource_label(item)}")

    def action_logs(self) -> None:
        if container := self._selected_container():
            self.app.push_screen(LogScreen(self._client, container.id, follow=True, config=self._config))

    def action_inspect(self) -> None:
        if container := self._selected_container():
            self.run_worker(self._inspect_worker(container), group="inspect")

    async def _inspect_worker(self, container: ContainerSummary) -> None:
        try:
            data = await asyncio.to_thread(self._client.inspect_container, container.id)
        except DockitError as e:
            self.set_status(f"Error: {e}", error=True)
            return
        stats = None
        if container.state is ContainerState.RUNNING:
            try:
                stats = await asyncio.to_thread(self._client.container_stats, container.id)
            except DockitError as e:
                logger.debug("No stats for %s: %s", container.name, e)
        self.app.push_screen(InspectDialog(container.name, data, stats))

    def _switch_tab(self, step: int) -> None:
        index = TAB_ORDER.index(self.active_kind)
        kind = TAB_ORDER[(index + step) % len(TAB_ORDER)]
        self.query_one("#tabs", TabbedContent).active = kind.value
        self.table(kind).focus()

    def action_next_tab(self) -> None:
        self._switch_tab(1)

    def action_previous_tab(self) -> None:
        self._switch_tab(-1)

    def action_show_help(self) -> None:
        self.app.push_screen(HelpScreen())

    def action_cycle_theme(self) -> None:
        names = sorted(self.app.available_themes)
        current = names.index(self.app.theme) if self.app.theme in names else -1
        self.app.theme = names[(current + 1) % len(names)]
        self._config = self._config.model_copy(update={"theme": self.app.theme})
        try:
            save_config(self._config)
        except OSError as e:
            logger.warning("Could not save config: %s", e)
        self.set_status(f"Theme: {self.app.theme}")


class DockitApp(App[None]):
    """Container runtime dashboard."""

    ENABLE_COMMAND_PALETTE = False
    TITLE = "dockit"

    def __init__(self, client: RuntimeClient, config: AppConfig | None = None) -> None:
        super().__init__()
        self._client = client
        self._config = config or AppConfig()

    def on_mount(self) -> None:
        if self._config.theme in self.available_themes:
            self.theme = self._config.theme
        self.push_screen(DashboardScreen(self._client, self._config))


class LogsApp(App[int]):
    """Standalone log viewer; the return value is the exit code."""

    ENABLE_COMMAND_PALETTE = False
    TITLE = "dockit logs"

    def __init__(
        self,
        client: RuntimeClient,
        container_ref: str,
        *,
        follow: bool = False,
        tail_lines: int | None = None,
        since: datetime | None = None,
        config: AppConfig | None = None,
    ) -> None:
        super().__init__()
        self._config = config or AppConfig()
        self._screen_args = (client, container_ref)
        self._follow = follow
        self._tail_lines = tail_lines
        self._since = since

    def on_mount(self) -> None:
        if self._config.theme in self.available_themes:
            self.theme = self._config.theme
        client, ref = self._screen_args
        self.push_screen(
            LogScreen(
                client, ref, follow=self._follow, tail_lines=self._tail_lines, since=self._since, config=self._config
            ),
            callback=self._on_log_screen_closed,
        )

    def _on_log_screen_closed(self, code: int | None) -> None:
        self.exit(code or 0)
