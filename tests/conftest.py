"""Shared test fixtures for the concept network test suite."""

import pytest


def make_snapshot(pairs):
    """Snapshot of weight-1 edges from (a, b) pairs of canonical names."""
    from conceptmap.canonical import edge_key, split_edge_key
    from conceptmap.graph import Edge, build_snapshot

    edges = []
    for a, b in pairs:
        key = edge_key(a, b)
        source, target = split_edge_key(key)
        edges.append(Edge(key=key, source=source, target=target, weight=1))
    return build_snapshot(edges)


@pytest.fixture
def memory_store():
    from conceptmap.store import MemoryStore

    return MemoryStore()


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each store implementation in turn."""
    from conceptmap.store import MemoryStore, SqliteStore

    if request.param == "memory":
        s = MemoryStore()
    else:
        s = SqliteStore(tmp_path / "concepts.db")
    yield s
    s.close()


@pytest.fixture
def aggregator(store):
    from conceptmap.aggregate import Aggregator

    return Aggregator(store)


@pytest.fixture
def star_snapshot():
    """Hub with 4 direct neighbours and no further edges."""
    return make_snapshot([
        ("trust", "cooperation"),
        ("trust", "empathy"),
        ("trust", "respect"),
        ("trust", "safety"),
    ])


@pytest.fixture
def chain_snapshot():
    """a - b - c - d path plus a detached x - y pair."""
    return make_snapshot([
        ("a", "b"),
        ("b", "c"),
        ("c", "d"),
        ("b", "e"),
        ("x", "y"),
    ])


@pytest.fixture
def demo_snapshot():
    """The eight sample pairs the app seeds into the demo session."""
    from conceptmap.config import DEMO_SAMPLES

    return make_snapshot(DEMO_SAMPLES)


@pytest.fixture
def layout_config():
    from conceptmap.layout import LayoutConfig

    return LayoutConfig(base_radius=100.0, ring_step=80.0, layer_height=160.0, node_spacing=120.0)


@pytest.fixture
def snapshot_factory():
    return make_snapshot
