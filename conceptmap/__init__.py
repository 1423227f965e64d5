"""conceptmap — aggregate participant concept pairs into a weighted graph and lay it out."""

from .aggregate import DUPLICATE, INVALID, RECORDED, Aggregator, Outcome, seed_demo
from .canonical import (
    InvalidConcept,
    InvalidConceptPair,
    InvalidInput,
    edge_key,
    normalize,
    split_edge_key,
)
from .graph import (
    UNREACHABLE,
    Analysis,
    Concept,
    Edge,
    Snapshot,
    analyze,
    build_snapshot,
    prepare_viz_data,
)
from .layout import (
    LayoutConfig,
    ViewMode,
    compute_layout,
    focused_layout,
    hierarchical_layout,
)
from .sessions import generate_session_code, validate_session_code
from .store import EdgeStore, MemoryStore, Session, SqliteStore

__all__ = [
    "DUPLICATE",
    "INVALID",
    "RECORDED",
    "Aggregator",
    "Outcome",
    "seed_demo",
    "InvalidConcept",
    "InvalidConceptPair",
    "InvalidInput",
    "edge_key",
    "normalize",
    "split_edge_key",
    "UNREACHABLE",
    "Analysis",
    "Concept",
    "Edge",
    "Snapshot",
    "analyze",
    "build_snapshot",
    "prepare_viz_data",
    "LayoutConfig",
    "ViewMode",
    "compute_layout",
    "focused_layout",
    "hierarchical_layout",
    "generate_session_code",
    "validate_session_code",
    "EdgeStore",
    "MemoryStore",
    "Session",
    "SqliteStore",
]
