"""Deterministic 2-D layouts derived from graph analytics.

Coordinates follow screen convention: x grows to the right, y grows
downwards, so increasing angles run clockwise on screen.
"""

import enum
import math
import random
from dataclasses import dataclass

from .config import (
    BASE_RADIUS_FRACTION,
    LAYER_HEIGHT,
    NODE_SPACING,
    RING_STEP_FRACTION,
)
from .graph import UNREACHABLE


class ViewMode(str, enum.Enum):
    FOCUSED = "focused"
    HIERARCHY = "hierarchy"
    FREE = "free"


@dataclass(frozen=True)
class LayoutConfig:
    """Canvas-derived layout parameters.

    jitter is the maximum per-axis random offset applied to ring nodes in the
    focused view; seed makes that jitter reproducible.
    """

    base_radius: float
    ring_step: float
    layer_height: float = LAYER_HEIGHT
    node_spacing: float = NODE_SPACING
    jitter: float = 0.0
    seed: int = None

    def __post_init__(self):
        for name in ("base_radius", "ring_step", "layer_height", "node_spacing"):
            value = getattr(self, name)
            if not (math.isfinite(value) and value > 0):
                raise ValueError(f"{name} must be positive and finite, got {value!r}")
        if not (math.isfinite(self.jitter) and self.jitter >= 0):
            raise ValueError(f"jitter must be finite and not negative, got {self.jitter!r}")

    @classmethod
    def for_viewport(cls, width, height, **kwargs):
        side = min(width, height)
        return cls(
            base_radius=side * BASE_RADIUS_FRACTION,
            ring_step=side * RING_STEP_FRACTION,
            **kwargs,
        )


def _group_by_level(snapshot, analysis):
    groups = {}
    for n in snapshot.nodes:
        groups.setdefault(analysis.level.get(n.id, UNREACHABLE), []).append(n.id)
    for ids in groups.values():
        ids.sort()
    return groups


def focused_layout(snapshot, analysis, config):
    """Radial layout: hub at the origin, one ring per BFS level.

    Ring k (1-based among the finite levels >= 1) has radius
    base_radius + ring_step * (k - 1). Nodes unreachable from the hub share
    the outermost ring.
    """
    positions = {}
    if not snapshot.nodes:
        return positions

    groups = _group_by_level(snapshot, analysis)
    rings = sorted(level for level in groups if 0 < level < UNREACHABLE)
    if UNREACHABLE in groups:
        rings.append(UNREACHABLE)

    rng = random.Random(config.seed) if config.jitter else None

    for ring_index, level in enumerate(rings, start=1):
        ids = groups[level]
        radius = config.base_radius + config.ring_step * (ring_index - 1)
        angle_step = 2 * math.pi / len(ids)
        for i, node in enumerate(ids):
            angle = angle_step * i - math.pi / 2
            x = math.cos(angle) * radius
            y = math.sin(angle) * radius
            if rng is not None:
                x += rng.uniform(-config.jitter, config.jitter)
                y += rng.uniform(-config.jitter, config.jitter)
            positions[node] = (x, y)

    if analysis.hub is not None:
        positions[analysis.hub] = (0.0, 0.0)

    return positions


def _center_out_slots(count, spacing):
    half = (count - 1) / 2
    slots = [(i - half) * spacing for i in range(count)]
    return sorted(slots, key=lambda x: (abs(x), x))


def hierarchical_layout(snapshot, analysis, config):
    """Layered layout: one row per BFS level, hub row on top.

    Each unreachable node gets its own row below the reachable ones. Within a
    row, higher-degree nodes sit nearer x = 0.
    """
    positions = {}
    if not snapshot.nodes:
        return positions

    groups = _group_by_level(snapshot, analysis)
    layers = [groups[level] for level in sorted(groups) if level != UNREACHABLE]
    for node in groups.get(UNREACHABLE, []):
        layers.append([node])

    center_offset = (len(layers) - 1) / 2
    for index, ids in enumerate(layers):
        ranked = sorted(ids, key=lambda node: (-analysis.degree.get(node, 0), node))
        y = (index - center_offset) * config.layer_height
        for node, x in zip(ranked, _center_out_slots(len(ranked), config.node_spacing)):
            positions[node] = (x, y)

    if analysis.hub is not None and analysis.hub in positions:
        positions[analysis.hub] = (0.0, positions[analysis.hub][1])

    return positions


def compute_layout(snapshot, analysis, mode, config):
    """Dispatch on view mode.

    Returns a node -> (x, y) mapping, or None in free mode where positions
    come from the renderer's physics simulation.
    """
    mode = ViewMode(mode)
    if mode is ViewMode.FOCUSED:
        return focused_layout(snapshot, analysis, config)
    if mode is ViewMode.HIERARCHY:
        return hierarchical_layout(snapshot, analysis, config)
    return None
