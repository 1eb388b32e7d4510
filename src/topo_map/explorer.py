"""Paginated, filterable read-only lists over nodes and links."""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Generic, Sequence, TypeVar

from src.topo_map.models import Link, TopologyGraph

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ListPage(Generic[T]):
    """One page of a filtered list plus the state that produced it."""

    items: list[T]
    page_index: int
    page_size: int
    filter_text: str
    filtered_count: int
    total_count: int

    @property
    def page_count(self) -> int:
        return math.ceil(self.filtered_count / self.page_size) if self.filtered_count else 0

    @property
    def has_previous(self) -> bool:
        return self.page_index > 0

    @property
    def has_next(self) -> bool:
        return self.page_index < self.page_count - 1

    @property
    def count_label(self) -> str:
        """'12 of 340' while filtering, '340' otherwise."""
        if self.filter_text:
            return f"{self.filtered_count:,} of {self.total_count:,}"
        return f"{self.total_count:,}"


@dataclass
class ListExplorer(Generic[T]):
    """
    Filter + pagination state over a fixed collection.

    search_fields extracts the strings a filter is matched against;
    matching is a case-insensitive substring test on any of them.
    """

    search_fields: Callable[[T], Sequence[str]]
    page_size: int = 50
    items: list[T] = field(default_factory=list)
    page_index: int = 0
    filter_text: str = ""
    _filtered: list[T] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self._refilter()

    def set_source(self, items: Sequence[T]) -> ListPage[T]:
        """Replace the collection; resets to page 0 and an empty filter."""
        self.items = list(items)
        self.filter_text = ""
        self.page_index = 0
        self._refilter()
        return self.page()

    def set_filter(self, text: str) -> ListPage[T]:
        """Apply a filter; always jumps back to the first page."""
        self.filter_text = text or ""
        self.page_index = 0
        self._refilter()
        logger.debug(f"Filter {self.filter_text!r}: {len(self._filtered)} of {len(self.items)} match")
        return self.page()

    def go_to_page(self, page_index: int) -> ListPage[T]:
        """Jump to a page, clamped to the available range."""
        last = max(0, math.ceil(len(self._filtered) / self.page_size) - 1)
        self.page_index = min(max(page_index, 0), last)
        return self.page()

    def next_page(self) -> ListPage[T]:
        return self.go_to_page(self.page_index + 1)

    def previous_page(self) -> ListPage[T]:
        return self.go_to_page(self.page_index - 1)

    def page(self) -> ListPage[T]:
        start = self.page_index * self.page_size
        return ListPage(
            items=self._filtered[start:start + self.page_size],
            page_index=self.page_index,
            page_size=self.page_size,
            filter_text=self.filter_text,
            filtered_count=len(self._filtered),
            total_count=len(self.items),
        )

    def _refilter(self) -> None:
        needle = self.filter_text.strip().lower()
        if not needle:
            self._filtered = list(self.items)
            return
        self._filtered = [
            item
            for item in self.items
            if any(needle in (value or "").lower() for value in self.search_fields(item))
        ]


@dataclass(frozen=True)
class NodeListItem:
    id: str
    name: str
    location: str
    on_map: bool


@dataclass(frozen=True)
class LinkListItem:
    """A link row with fallback labels for endpoints that don't resolve."""

    id: str
    a_side_id: str
    z_side_id: str
    a_side_name: str
    z_side_name: str
    label: str
    direction_symbol: str
    status_text: str
    status_class: str
    on_map: bool


def node_items(graph: TopologyGraph) -> list[NodeListItem]:
    return [
        NodeListItem(
            id=node.id,
            name=node.display_name,
            location=node.location_label,
            on_map=node.is_renderable,
        )
        for node in graph.nodes.values()
    ]


def link_items(graph: TopologyGraph) -> list[LinkListItem]:
    rendered = {link.id for link in graph.renderable_links()}
    return [_link_item(graph, link, link.id in rendered) for link in graph.links.values()]


def _link_item(graph: TopologyGraph, link: Link, on_map: bool) -> LinkListItem:
    return LinkListItem(
        id=link.id,
        a_side_id=link.a_side_node_id,
        z_side_id=link.z_side_node_id,
        a_side_name=graph.endpoint_name(link.a_side_node_id),
        z_side_name=graph.endpoint_name(link.z_side_node_id),
        label=graph.link_label(link),
        direction_symbol=link.direction.symbol,
        status_text=link.status.text,
        status_class=link.status.css_class,
        on_map=on_map,
    )


def _node_fields(item: NodeListItem) -> tuple[str, ...]:
    return (item.id, item.name, item.location)


def _link_fields(item: LinkListItem) -> tuple[str, ...]:
    return (item.id, item.a_side_id, item.z_side_id, item.a_side_name, item.z_side_name)


def node_explorer(page_size: int = 50) -> ListExplorer[NodeListItem]:
    return ListExplorer(search_fields=_node_fields, page_size=page_size)


def link_explorer(page_size: int = 50) -> ListExplorer[LinkListItem]:
    return ListExplorer(search_fields=_link_fields, page_size=page_size)
