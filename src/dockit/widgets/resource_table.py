"""Listing tables for containers, images, volumes and networks."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from rich.text import Text
from textual.widgets import DataTable

from dockit.colors import PALETTE, state_indicator
from dockit.models import ContainerSummary, ImageSummary, NetworkSummary, VolumeSummary
from dockit.utils import format_age, format_ports, format_size, short_id, truncate

if TYPE_CHECKING:
    from collections.abc import Sequence

Resource = ContainerSummary | ImageSummary | VolumeSummary | NetworkSummary

_NAME_WIDTH = 30
_IMAGE_WIDTH = 40


class ResourceKind(StrEnum):
    """The resource a table lists; doubles as the tab id."""

    CONTAINERS = "containers"
    IMAGES = "images"
    VOLUMES = "volumes"
    NETWORKS = "networks"


COLUMNS: dict[ResourceKind, tuple[str, ...]] = {
    ResourceKind.CONTAINERS: ("", "ID", "Name", "State", "Image", "Ports", "Status"),
    ResourceKind.IMAGES: ("Repository:Tag", "ID", "Size", "Created"),
    ResourceKind.VOLUMES: ("Name", "Driver", "Mountpoint"),
    ResourceKind.NETWORKS: ("Name", "ID", "Driver", "Scope"),
}


def resource_key(item: Resource) -> str:
    """Stable identifier used as the row key and as the action target."""
    if isinstance(item, VolumeSummary):
        return item.name
    return item.id


def resource_label(item: Resource) -> str:
    """Human-readable name for status messages and dialogs."""
    match item:
        case ContainerSummary() | VolumeSummary() | NetworkSummary():
            return item.name or short_id(resource_key(item))
        case ImageSummary():
            return item.tags[0] if item.tags else short_id(item.id)


def resource_row(item: Resource) -> tuple[str | Text, ...]:
    """Cells for one row, in COLUMNS order."""
    match item:
        case ContainerSummary():
            glyph, style = state_indicator(item.state)
            return (
                Text(glyph, style=style),
                short_id(item.id),
                Text(truncate(item.name, _NAME_WIDTH), style=PALETTE.name),
                Text(item.state.value, style=style),
                truncate(item.image, _IMAGE_WIDTH),
                format_ports(item.ports),
                Text(item.status, style=PALETTE.muted),
            )
        case ImageSummary():
            tag = item.tags[0] if item.tags else "<none>:<none>"
            return (
                Text(truncate(tag, _IMAGE_WIDTH), style=PALETTE.name),
                short_id(item.id),
                Text(format_size(item.size), style=PALETTE.ok),
                Text(format_age(item.created), style=PALETTE.muted),
            )
        case VolumeSummary():
            return (Text(item.name, style=PALETTE.name), item.driver, Text(item.mountpoint, style=PALETTE.muted))
        case NetworkSummary():
            return (Text(item.name, style=PALETTE.name), short_id(item.id), item.driver, item.scope)


class ResourceTable(DataTable[str | Text]):
    """Row-cursor table over one kind of resource."""

    DEFAULT_CSS = """
    ResourceTable {
        height: 1fr;
    }
    """

    def __init__(self, kind: ResourceKind, id: str | None = None) -> None:  # noqa: A002
        super().__init__(id=id, cursor_type="row", zebra_stripes=True)
        self.kind = kind
        self._items: dict[str, Resource] = {}

    def on_mount(self) -> None:
        self.add_columns(*COLUMNS[self.kind])

    def set_items(self, items: Sequence[Resource]) -> None:
        """Replace all rows, keeping the cursor on the same resource when it still exists."""
        previous = self.selected_key
        self.clear()
        self._items = {}
        for item in items:
            key = resource_key(item)
            self._items[key] = item
            self.add_row(*resource_row(item), key=key)
        if previous in self._items:
            self.move_cursor(row=self.get_row_index(previous))

    @property
    def items(self) -> list[Resource]:
        return list(self._items.values())

    @property
    def selected_key(self) -> str | None:
        if self.row_count == 0:
            return None
        row_key, _ = self.coordinate_to_cell_key(self.cursor_coordinate)
        return row_key.value

    @property
    def selected(self) -> Resource | None:
        key = self.selected_key
        return self._items.get(key) if key is not None else None
