"""
Virtual tour tree.

A tour is a tree of panoramic images.  Each node carries hotspots placed at
3D positions on the viewing sphere: an info hotspot only shows a label, a
link hotspot navigates to another node of the same tour.
"""

import uuid
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Union


def new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Position:
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class InfoHotspot:
    id: str
    label: str
    position: Position


@dataclass(frozen=True)
class LinkHotspot:
    id: str
    label: str
    position: Position
    target_id: str


Hotspot = Union[InfoHotspot, LinkHotspot]


@dataclass
class TourNode:
    id: str
    label: str
    image_url: str
    children: List["TourNode"] = field(default_factory=list)
    hotspots: List[Hotspot] = field(default_factory=list)


def new_node(label: str, image_url: str) -> TourNode:
    """Create a childless node; blank labels become ``"Untitled"``."""
    return TourNode(new_id(), label.strip() or "Untitled", image_url)


def iter_nodes(root: TourNode) -> Iterator[TourNode]:
    """Depth-first, pre-order walk of the tree."""
    yield root
    for child in root.children:
        yield from iter_nodes(child)


def find_node(root: TourNode, node_id: str) -> TourNode:
    for node in iter_nodes(root):
        if node.id == node_id:
            return node
    raise KeyError(node_id)


def add_child(root: TourNode, parent_id: str, child: TourNode) -> TourNode:
    find_node(root, parent_id).children.append(child)
    return child


def add_hotspot(root: TourNode, node_id: str, label: str, position: Position,
                target_id: Optional[str] = None) -> Hotspot:
    """Attach a hotspot to a node.

    A *target_id* makes it a link hotspot; the target must be in the tree.
    """
    node = find_node(root, node_id)
    if target_id is None:
        hotspot = InfoHotspot(new_id(), label, position)
    else:
        find_node(root, target_id)
        hotspot = LinkHotspot(new_id(), label, position, target_id)
    node.hotspots.append(hotspot)
    return hotspot


def resolve_link(root: TourNode, hotspot: Hotspot) -> Optional[TourNode]:
    """Node a hotspot navigates to, or None for info hotspots."""
    if isinstance(hotspot, LinkHotspot):
        return find_node(root, hotspot.target_id)
    return None
