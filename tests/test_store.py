"""Tests for conceptmap.store — in-memory and SQLite edge stores."""

import pytest


class TestEdgeStore:
    def test_increment_creates_then_adds(self, store):
        from conceptmap.canonical import edge_key

        key = edge_key("trust", "cooperation")
        with store.atomic("room", key):
            assert store.increment("room", key) == 1
        with store.atomic("room", key):
            assert store.increment("room", key) == 2

        edge = store.get_edge("room", key)
        assert (edge.source, edge.target, edge.weight) == ("cooperation", "trust", 2)

    def test_get_missing_edge(self, store):
        assert store.get_edge("room", "a\x1fb") is None

    def test_submissions_scoped(self, store):
        key = "a\x1fb"
        with store.atomic("room", key):
            store.record_submission("room", "p1", key)

        assert store.has_submission("room", "p1", key)
        assert not store.has_submission("room", "p2", key)
        assert not store.has_submission("other-room", "p1", key)

    def test_list_edges_ordering(self, store):
        for key, times in (("a\x1fb", 1), ("c\x1fd", 3), ("b\x1fc", 3)):
            for _ in range(times):
                with store.atomic("room", key):
                    store.increment("room", key)

        assert [e.key for e in store.list_edges("room")] == ["b\x1fc", "c\x1fd", "a\x1fb"]
        assert store.list_edges("elsewhere") == []

    def test_labels_keep_first(self, store):
        key = "ai\x1fethics"
        with store.atomic("room", key):
            store.increment("room", key, {"ai": "AI", "ethics": "Ethics"})
        with store.atomic("room", key):
            store.increment("room", key, {"ai": "ai"})

        assert store.labels("room") == {"ai": "AI", "ethics": "Ethics"}

    def test_rollback_on_error(self, store):
        key = "a\x1fb"
        with pytest.raises(RuntimeError):
            with store.atomic("room", key):
                store.record_submission("room", "p1", key)
                store.increment("room", key, {"a": "A"})
                raise RuntimeError("boom")

        assert store.get_edge("room", key) is None
        assert not store.has_submission("room", "p1", key)
        assert store.labels("room") == {}
        assert store.edge_count() == 0

    def test_edge_count_across_scopes(self, store):
        for scope in ("one", "two"):
            with store.atomic(scope, "a\x1fb"):
                store.increment(scope, "a\x1fb")
        assert store.edge_count() == 2

    def test_sessions(self, store):
        assert store.get_session("bright-river-123") is None

        session = store.create_session("bright-river-123", "Ethics 101")
        assert session.code == "bright-river-123"
        assert session.name == "Ethics 101"
        assert session.created_at

        again = store.create_session("bright-river-123", "Renamed")
        assert again.name == "Ethics 101"
        assert store.get_session("bright-river-123").to_dict()["name"] == "Ethics 101"


class TestMemoryStore:
    def test_key_locks_released_after_use(self, memory_store):
        import gc

        for i in range(50):
            key = f"a{i}\x1fb{i}"
            with memory_store.atomic("room", key):
                memory_store.increment("room", key)
        gc.collect()

        assert len(memory_store._key_locks) == 0
        assert memory_store.edge_count() == 50

    def test_key_lock_shared_while_held(self, memory_store):
        key = "a\x1fb"
        with memory_store.atomic("room", key):
            assert memory_store._lock_for("room", key).locked()
        assert not memory_store._lock_for("room", key).locked()


class TestSqliteStore:
    def test_persists_across_connections(self, tmp_path):
        from conceptmap.store import SqliteStore

        db_path = tmp_path / "concepts.db"
        store = SqliteStore(db_path)
        with store.atomic("room", "a\x1fb"):
            store.record_submission("room", "p1", "a\x1fb")
            store.increment("room", "a\x1fb")
        store.create_session("room")
        store.close()

        reopened = SqliteStore(db_path)
        assert reopened.get_edge("room", "a\x1fb").weight == 1
        assert reopened.has_submission("room", "p1", "a\x1fb")
        assert reopened.get_session("room") is not None
        reopened.close()

    def test_in_memory_database(self):
        from conceptmap.store import SqliteStore

        store = SqliteStore(":memory:")
        with store.atomic("room", "a\x1fb"):
            store.increment("room", "a\x1fb")
        assert store.edge_count() == 1
        store.close()


class TestSessionCodes:
    def test_validate_normalizes(self):
        from conceptmap.sessions import validate_session_code

        assert validate_session_code("  Bright-River-123 ") == "bright-river-123"

    @pytest.mark.parametrize("code", [None, "", "   ", "x" * 65])
    def test_validate_rejects(self, code):
        from conceptmap.sessions import validate_session_code

        assert validate_session_code(code) is None

    def test_validate_max_length(self):
        from conceptmap.sessions import validate_session_code

        assert validate_session_code("x" * 64) == "x" * 64

    def test_generate_shape(self):
        import re

        from conceptmap.sessions import generate_session_code

        code = generate_session_code(lambda c: False)
        assert re.fullmatch(r"[a-z]+-[a-z]+-\d{3}", code)

    def test_generate_skips_taken(self):
        from conceptmap.sessions import generate_session_code

        taken = set()
        for _ in range(20):
            taken.add(generate_session_code(lambda c: c in taken))
        assert len(taken) == 20
