"""
Capture Graph - Topology of a Layer's Capture-Point Graph

Turns the directed link list of a capture-point graph into the ordering data
objective exporters need:
    - the unique start (no incoming link) and end (no outgoing link) nodes
    - every simple path from start to end, sorted canonically
    - a single flattened "points order" across all parallel routes
    - the main bases, in push-line order
    - a one-based breadth-first stage index per node

Two graph shapes are supported:
    extract_topology(links)           - one graph, possibly branching
    extract_lane_topology(lane_graph) - RAAS lanes, each a simple chain

Architecture:
    - GraphAdjacency: adjacency map plus detected start/end
    - CaptureTopology: result for a single graph
    - LaneTopology / LaneGraphTopology: per-lane results for RAAS layers
    - CaptureGraphError hierarchy: fatal structural errors for one document

Usage:
    topology = extract_topology(links)
    topology.points_order        # ["Team1 Main", "A1", ...] display names
    topology.stage_of("A1")      # 2

Author: Layer Export Project
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Set

from main_names import (
    ATTACK_MAIN_LABEL,
    DEFENSE_MAIN_LABEL,
    MAIN_SUFFIX,
    MAIN_TOKEN,
    canonicalize_mains,
    main_overrides,
    normalize_main_name,
)

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "->"


# =============================================================================
# Custom Exceptions
# =============================================================================

class CaptureGraphError(Exception):
    """Base exception for structural capture-graph errors."""

    def __init__(self, message: str, lane: Optional[str] = None):
        if lane:
            message = f"[lane {lane}] {message}"
        super().__init__(message)
        self.lane = lane


class AmbiguousStartError(CaptureGraphError):
    """Raised when the graph does not have exactly one node without incoming links."""
    def __init__(self, candidates: Sequence[str], lane: Optional[str] = None):
        if candidates:
            reason = f"multiple nodes without incoming links: {list(candidates)}"
        else:
            reason = "no node without incoming links"
        super().__init__(f"Ambiguous start: expected exactly one start node, found {reason}", lane)
        self.candidates = list(candidates)


class AmbiguousEndError(CaptureGraphError):
    """Raised when the graph does not have exactly one node without outgoing links."""
    def __init__(self, candidates: Sequence[str], lane: Optional[str] = None):
        if candidates:
            reason = f"multiple nodes without outgoing links: {list(candidates)}"
        else:
            reason = "no node without outgoing links"
        super().__init__(f"Ambiguous end: expected exactly one end node, found {reason}", lane)
        self.candidates = list(candidates)


class NoPathError(CaptureGraphError):
    """Raised when no route connects the start node to the end node."""
    def __init__(self, start: str, end: str, lane: Optional[str] = None):
        super().__init__(f"No path: no capture point route from '{start}' to '{end}'", lane)
        self.start = start
        self.end = end


# =============================================================================
# Core Data Structures
# =============================================================================

@dataclass(frozen=True)
class RawLink:
    """Directed link node_a -> node_b with bare node identifiers."""
    name: str
    node_a: str
    node_b: str


@dataclass(frozen=True)
class CaptureLink:
    """Link as reported downstream, endpoints relabelled with display names."""
    name: str
    node_a: str
    node_b: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "nodeA": self.node_a, "nodeB": self.node_b}


@dataclass
class RaasLane:
    """One RAAS lane and the links it owns."""
    name: str
    links: List[RawLink] = field(default_factory=list)


@dataclass
class LaneGraph:
    """Ordered lanes of a RAAS layer."""
    lanes: List[RaasLane] = field(default_factory=list)


class GraphAdjacency(NamedTuple):
    adjacency: Dict[str, List[str]]
    start: str
    end: str


# =============================================================================
# Graph Construction & Search
# =============================================================================

def build_adjacency(links: Iterable[RawLink], lane: Optional[str] = None) -> GraphAdjacency:
    """
    Build the adjacency map and locate the unique start and end nodes.

    Args:
        links: Directed links of one graph (or one lane)
        lane: Lane name, only used to label errors

    Returns:
        GraphAdjacency(adjacency, start, end); every node has an entry,
        sinks map to an empty list

    Raises:
        AmbiguousStartError: Zero or several nodes lack incoming links
        AmbiguousEndError: Zero or several nodes lack outgoing links
    """
    adjacency: Dict[str, List[str]] = {}
    has_incoming: Set[str] = set()
    has_outgoing: Set[str] = set()

    for link in links:
        adjacency.setdefault(link.node_a, []).append(link.node_b)
        adjacency.setdefault(link.node_b, [])
        has_outgoing.add(link.node_a)
        has_incoming.add(link.node_b)

    starts = [node for node in adjacency if node not in has_incoming]
    if len(starts) != 1:
        raise AmbiguousStartError(starts, lane)
    ends = [node for node in adjacency if node not in has_outgoing]
    if len(ends) != 1:
        raise AmbiguousEndError(ends, lane)

    return GraphAdjacency(adjacency, starts[0], ends[0])


def enumerate_paths(start: str, end: str, adjacency: Dict[str, List[str]],
                    lane: Optional[str] = None) -> List[List[str]]:
    """
    Collect every simple path from `start` to `end` by depth-first search.

    A node may appear on many paths but never twice on the same path; the
    visited set only covers the branch currently being explored. The walk
    keeps an explicit stack of successor iterators, so long chains are not
    bounded by the interpreter recursion limit.

    Raises:
        NoPathError: If `end` is unreachable from `start`
    """
    if start == end:
        return [[start]]

    paths: List[List[str]] = []
    current_path: List[str] = [start]
    on_path: Set[str] = {start}
    stack: List[Iterator[str]] = [iter(adjacency.get(start, ()))]

    while stack:
        next_node = next(stack[-1], None)
        if next_node is None:
            stack.pop()
            on_path.discard(current_path.pop())
            continue
        if next_node in on_path:
            continue
        if next_node == end:
            paths.append(current_path + [next_node])
            continue
        current_path.append(next_node)
        on_path.add(next_node)
        stack.append(iter(adjacency.get(next_node, ())))

    if not paths:
        raise NoPathError(start, end, lane)
    return paths


def display_name(raw_name: str) -> str:
    """Display form of a raw node name; only main-like names are rewritten."""
    if MAIN_TOKEN in raw_name:
        return normalize_main_name(raw_name)
    return raw_name


def path_sort_key(path: Sequence[str]) -> str:
    return PATH_SEPARATOR.join(display_name(node) for node in path)


def sort_paths(paths: Iterable[List[str]]) -> List[List[str]]:
    """Order paths by their joined display names."""
    return sorted(paths, key=path_sort_key)


def build_points_order(paths: Sequence[Sequence[str]]) -> List[str]:
    """
    Flatten paths that converge on a shared end node into one sequence.

    Every path except the last drops its final (shared) node.
    """
    order: List[str] = []
    for index, path in enumerate(paths):
        limit = len(path) if index == len(paths) - 1 else len(path) - 1
        order.extend(path[:limit])
    return order


def compute_stage_index(start: Optional[str], adjacency: Dict[str, List[str]]) -> Dict[str, int]:
    """
    One-based breadth-first hop count from `start`.

    Nodes that cannot be reached from `start` get no entry.
    """
    if start is None:
        return {}
    distance = {start: 0}
    queue = [start]
    while queue:
        current = queue.pop(0)
        for next_node in adjacency.get(current, ()):
            if next_node not in distance:
                distance[next_node] = distance[current] + 1
                queue.append(next_node)
    return {node: hops + 1 for node, hops in distance.items()}


def collect_mains(raw_points_order: Iterable[str]) -> List[str]:
    """Raw names whose display form ends with " Main", first-seen order."""
    mains: List[str] = []
    for raw in raw_points_order:
        if raw not in mains and display_name(raw).endswith(MAIN_SUFFIX):
            mains.append(raw)
    return mains


def _unique_displays(raw_names: Iterable[str]) -> List[str]:
    result: List[str] = []
    for raw in raw_names:
        name = display_name(raw)
        if name not in result:
            result.append(name)
    return result


def _display_stage_index(stage_index: Dict[str, int]) -> Dict[str, int]:
    """Stage per display name; raw names sharing a display keep the earliest stage."""
    by_display: Dict[str, int] = {}
    for raw, stage in stage_index.items():
        name = display_name(raw)
        if name not in by_display or stage < by_display[name]:
            by_display[name] = stage
    return by_display


# =============================================================================
# Results
# =============================================================================

@dataclass
class CaptureTopology:
    """
    Ordering data for one capture-point graph.

    Attributes:
        links: Input links relabelled with display names ("Link0", "Link1", ...)
        start: Raw start node
        end: Raw end node
        paths: Every simple start -> end path (raw names), canonical order
        raw_points_order: Flattened traversal order (raw names)
        points_order: Flattened traversal order (display names)
        mains: Main display names in push-line order
        main_names: Raw main name -> display name
        main_overrides: Raw main name -> team label for the two ends
        stage_index: Raw node name -> one-based BFS stage
    """
    links: List[CaptureLink]
    start: str
    end: str
    paths: List[List[str]]
    raw_points_order: List[str]
    points_order: List[str]
    mains: List[str]
    main_names: Dict[str, str]
    main_overrides: Dict[str, str]
    stage_index: Dict[str, int]
    _display_stages: Dict[str, int] = field(default_factory=dict, repr=False)

    @property
    def number_of_points(self) -> int:
        return len(self.points_order)

    def stage_of(self, name: str) -> int:
        """Stage of a raw or display node name; 0 when unreachable or unknown."""
        if name in self.stage_index:
            return self.stage_index[name]
        return self._display_stages.get(name, 0)

    def to_dict(self) -> Dict[str, object]:
        return {
            "links": [link.to_dict() for link in self.links],
            "pointsOrder": list(self.points_order),
            "numberOfPoints": self.number_of_points,
            "listOfMains": list(self.mains),
            "stageIndex": dict(self.stage_index),
        }


@dataclass
class LaneTopology:
    """Ordering data for one RAAS lane."""
    name: str
    start: str
    end: str
    path: List[str]
    points_order: List[str]
    mains: List[str]
    stage_index: Dict[str, int]

    def stage_of(self, name: str) -> int:
        if name in self.stage_index:
            return self.stage_index[name]
        return _display_stage_index(self.stage_index).get(name, 0)

    def to_dict(self) -> Dict[str, object]:
        return {
            "pointsOrder": list(self.points_order),
            "numberOfPoints": len(self.points_order),
            "listOfMains": list(self.mains),
            "stageIndex": dict(self.stage_index),
        }


@dataclass
class LaneGraphTopology:
    """Per-lane topologies of a RAAS layer plus the graph-wide main name map."""
    lanes: Dict[str, LaneTopology]
    main_names: Dict[str, str]
    main_overrides: Dict[str, str]

    def to_dict(self) -> Dict[str, object]:
        return {name: lane.to_dict() for name, lane in self.lanes.items()}


# =============================================================================
# Entry Points
# =============================================================================

def extract_topology(links: Sequence[RawLink],
                     attack_label: str = ATTACK_MAIN_LABEL,
                     defense_label: str = DEFENSE_MAIN_LABEL) -> CaptureTopology:
    """
    Derive canonical ordering data from a (possibly branching) capture graph.

    Args:
        links: Directed links with bare node identifiers
        attack_label: Team label for the first main
        defense_label: Team label for the last main

    Returns:
        CaptureTopology for the graph

    Raises:
        CaptureGraphError: If the graph lacks a unique start/end or a connecting path
    """
    adjacency, start, end = build_adjacency(links)
    paths = sort_paths(enumerate_paths(start, end, adjacency))
    raw_points_order = build_points_order(paths)
    raw_mains = collect_mains(raw_points_order)
    stage_index = compute_stage_index(start, adjacency)

    capture_links = [
        CaptureLink(f"Link{index}", display_name(link.node_a), display_name(link.node_b))
        for index, link in enumerate(links)
    ]

    logger.info(f"  [CaptureGraph] {len(adjacency)} nodes, {len(paths)} paths, "
                f"start={start!r}, end={end!r}, mains={len(raw_mains)}")

    return CaptureTopology(
        links=capture_links,
        start=start,
        end=end,
        paths=paths,
        raw_points_order=raw_points_order,
        points_order=[display_name(raw) for raw in raw_points_order],
        mains=_unique_displays(raw_mains),
        main_names=canonicalize_mains(raw_mains),
        main_overrides=main_overrides(raw_mains, attack_label, defense_label),
        stage_index=stage_index,
        _display_stages=_display_stage_index(stage_index),
    )


def extract_lane_topology(lane_graph: LaneGraph,
                          attack_label: str = ATTACK_MAIN_LABEL,
                          defense_label: str = DEFENSE_MAIN_LABEL) -> LaneGraphTopology:
    """
    Derive ordering data for each RAAS lane independently.

    Lanes are expected to be simple chains, so only the first path found by
    the search is kept; no lexicographic tie-breaking is applied.

    Raises:
        CaptureGraphError: For the first lane that violates the start/end/path
            invariants (the error carries the lane name)
    """
    lanes: Dict[str, LaneTopology] = {}
    all_mains: List[str] = []

    for lane in lane_graph.lanes:
        adjacency, start, end = build_adjacency(lane.links, lane=lane.name)
        path = enumerate_paths(start, end, adjacency, lane=lane.name)[0]
        raw_mains = collect_mains(path)
        for raw in raw_mains:
            if raw not in all_mains:
                all_mains.append(raw)

        lanes[lane.name] = LaneTopology(
            name=lane.name,
            start=start,
            end=end,
            path=list(path),
            points_order=[display_name(raw) for raw in path],
            mains=_unique_displays(raw_mains),
            stage_index=compute_stage_index(path[0], adjacency),
        )
        logger.debug(f"  [CaptureGraph] Lane {lane.name!r}: {len(path)} points")

    logger.info(f"  [CaptureGraph] Resolved {len(lanes)} lanes, {len(all_mains)} mains")
    return LaneGraphTopology(
        lanes=lanes,
        main_names=canonicalize_mains(all_mains),
        main_overrides=main_overrides(all_mains, attack_label, defense_label),
    )
