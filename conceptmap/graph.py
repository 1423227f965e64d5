"""Graph snapshots, analytics, and visualization payloads."""

import sys
from collections import deque
from dataclasses import dataclass, field

from .canonical import edge_key, normalize, split_edge_key
from .config import (
    MAX_EDGE_WIDTH,
    MAX_WIDTH_WEIGHT,
    MIN_EDGE_WIDTH,
    NODE_BASE_SIZE,
    NODE_SIZE_CAP,
    NODE_SIZE_RANGE,
)

# Level assigned to nodes outside the hub's connected component
UNREACHABLE = sys.maxsize


@dataclass(frozen=True)
class Concept:
    id: str
    label: str

    def to_dict(self):
        return {"id": self.id, "label": self.label}


@dataclass(frozen=True)
class Edge:
    key: str
    source: str
    target: str
    weight: int

    def to_dict(self):
        return {"source": self.source, "target": self.target, "weight": self.weight}


@dataclass(frozen=True)
class Snapshot:
    """Immutable (nodes, edges) view of one scope's graph."""

    nodes: tuple = ()
    edges: tuple = ()

    def to_dict(self):
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    @classmethod
    def from_dict(cls, data):
        """Rebuild a snapshot from to_dict() output.

        Ids are canonicalized again, so self-loops raise InvalidConceptPair.
        """
        labels = {
            normalize(n["id"]): n.get("label", n["id"]) for n in data.get("nodes", [])
        }
        edges = []
        for e in data.get("edges", []):
            key = edge_key(e["source"], e["target"])
            source, target = split_edge_key(key)
            edges.append(Edge(
                key=key,
                source=source,
                target=target,
                weight=int(e.get("weight", 1)),
            ))
        return build_snapshot(edges, labels)


@dataclass(frozen=True)
class Analysis:
    degree: dict = field(default_factory=dict)
    adjacency: dict = field(default_factory=dict)
    hub: str = None
    level: dict = field(default_factory=dict)

    def is_reachable(self, node):
        return self.level.get(node, UNREACHABLE) != UNREACHABLE


def build_snapshot(edges, labels=None):
    """Build a Snapshot from edges, listed heaviest first.

    Nodes are derived from the edges in first-appearance order; labels maps
    concept id -> display label and defaults to the id itself.
    """
    labels = labels or {}
    ordered = sorted(edges, key=lambda e: (-e.weight, e.key))
    nodes = {}
    for e in ordered:
        for concept in (e.source, e.target):
            if concept not in nodes:
                nodes[concept] = Concept(id=concept, label=labels.get(concept, concept))
    return Snapshot(nodes=tuple(nodes.values()), edges=tuple(ordered))


def analyze(snapshot):
    """Compute degree, adjacency, hub and BFS levels for a snapshot.

    The hub is the node with the most distinct neighbours; ties go to the
    lexicographically smallest id. Nodes not connected to the hub get the
    UNREACHABLE level.
    """
    if not snapshot.nodes:
        return Analysis()

    neighbours = {n.id: set() for n in snapshot.nodes}
    for e in snapshot.edges:
        neighbours.setdefault(e.source, set()).add(e.target)
        neighbours.setdefault(e.target, set()).add(e.source)

    adjacency = {node: frozenset(adj) for node, adj in neighbours.items()}
    degree = {node: len(adj) for node, adj in adjacency.items()}
    hub = min(degree, key=lambda node: (-degree[node], node))

    level = {hub: 0}
    queue = deque([hub])
    while queue:
        current = queue.popleft()
        for nxt in sorted(adjacency[current]):
            if nxt not in level:
                level[nxt] = level[current] + 1
                queue.append(nxt)
    for node in adjacency:
        level.setdefault(node, UNREACHABLE)

    return Analysis(degree=degree, adjacency=adjacency, hub=hub, level=level)


def edge_width(weight):
    """Scale an edge weight to a stroke width, saturating at MAX_WIDTH_WEIGHT."""
    capped = min(max(weight, 1), MAX_WIDTH_WEIGHT)
    return MIN_EDGE_WIDTH + (capped - 1) / (MAX_WIDTH_WEIGHT - 1) * (MAX_EDGE_WIDTH - MIN_EDGE_WIDTH)


def format_label(text):
    """Capitalize the first letter of every word for display."""
    return " ".join(word[:1].upper() + word[1:] for word in text.split(" "))


def prepare_viz_data(snapshot, analysis=None, positions=None):
    """Prepare graph data for the browser renderer.

    Returns dict with "nodes" and "links". When positions is given (focused
    or hierarchy view), nodes carry fixed x/y coordinates; otherwise they are
    left free for the physics simulation.
    """
    if analysis is None:
        analysis = analyze(snapshot)
    max_degree = max(analysis.degree.values(), default=1) or 1

    nodes = []
    for n in snapshot.nodes:
        degree = analysis.degree.get(n.id, 0)
        label = format_label(n.label)
        node = {
            "id": n.id,
            "label": label,
            "degree": degree,
            "level": analysis.level[n.id] if analysis.is_reachable(n.id) else None,
            "hub": n.id == analysis.hub,
            "title": f"{label} · {degree} link{'' if degree == 1 else 's'}",
            "size": NODE_BASE_SIZE + min(NODE_SIZE_CAP, degree / max_degree * NODE_SIZE_RANGE),
        }
        if positions is not None:
            x, y = positions.get(n.id, (0.0, 0.0))
            node.update({"x": x, "y": y, "fixed": True})
        else:
            node["fixed"] = False
        nodes.append(node)

    links = []
    for e in snapshot.edges:
        links.append({
            "id": e.key,
            "source": e.source,
            "target": e.target,
            "weight": e.weight,
            "width": edge_width(e.weight),
            "label": str(e.weight),
        })

    return {"nodes": nodes, "links": links}
