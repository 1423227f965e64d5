#!/usr/bin/env python3
"""
concept_graph.py — Replay concept-pair submissions and lay out the graph.

Reads a JSON list of submissions:

    [{"session": "p1", "source": "Trust", "target": "Cooperation"}, ...]

records each one through the aggregator (so per-participant deduplication
applies), then prints the hub, BFS levels and the computed layout.

Usage:
    python3 concept_graph.py --input <file.json>
    python3 concept_graph.py --input <file.json> --mode hierarchy --out layout.json
    python3 concept_graph.py --input <file.json> --db concepts.db --scope my-room

Options:
    --mode focused|hierarchy|free   view mode (default: focused)
    --width W --height H            viewport size (default: 640x480)
    --db PATH                       persist into a SQLite database
    --scope CODE                    session code (default: demo-room)
    --out PATH                      write {graph, analysis, layout} JSON here
"""

import json
import sys
from pathlib import Path

from conceptmap.aggregate import Aggregator
from conceptmap.config import DEFAULT_SESSION_CODE, DEFAULT_VIEWPORT
from conceptmap.graph import UNREACHABLE, analyze
from conceptmap.layout import LayoutConfig, ViewMode, compute_layout
from conceptmap.sessions import validate_session_code
from conceptmap.store import MemoryStore, SqliteStore


def replay(aggregator, scope, submissions):
    """Record every submission; returns counts per outcome status."""
    counts = {"recorded": 0, "duplicate": 0, "invalid": 0}
    for item in submissions:
        outcome = aggregator.record_submission(
            scope, str(item.get("session", "anonymous")),
            item.get("source"), item.get("target"),
        )
        counts[outcome.status] += 1
        if outcome.error:
            print(f"  Skipped {item!r}: {outcome.error}")
    return counts


def main():
    args = sys.argv[1:]

    # Parse arguments
    input_path = None
    out_path = None
    db_path = None
    scope = DEFAULT_SESSION_CODE
    mode = ViewMode.FOCUSED
    width, height = DEFAULT_VIEWPORT

    i = 0
    while i < len(args):
        if args[i] == '--input' and i + 1 < len(args):
            input_path = Path(args[i + 1])
            i += 2
        elif args[i] == '--out' and i + 1 < len(args):
            out_path = Path(args[i + 1])
            i += 2
        elif args[i] == '--db' and i + 1 < len(args):
            db_path = args[i + 1]
            i += 2
        elif args[i] == '--scope' and i + 1 < len(args):
            scope = args[i + 1]
            i += 2
        elif args[i] == '--mode' and i + 1 < len(args):
            mode = args[i + 1]
            i += 2
        elif args[i] == '--width' and i + 1 < len(args):
            width = float(args[i + 1])
            i += 2
        elif args[i] == '--height' and i + 1 < len(args):
            height = float(args[i + 1])
            i += 2
        else:
            i += 1

    if input_path is None:
        print("Error: --input <file.json> is required")
        print(__doc__)
        sys.exit(1)
    if not input_path.exists():
        print(f"Error: {input_path} not found")
        sys.exit(1)

    scope = validate_session_code(scope)
    if scope is None:
        print("Error: invalid --scope")
        sys.exit(1)

    try:
        mode = ViewMode(mode)
        config = LayoutConfig.for_viewport(width, height)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    with open(input_path) as f:
        submissions = json.load(f)

    store = SqliteStore(db_path) if db_path else MemoryStore()
    try:
        aggregator = Aggregator(store)
        store.create_session(scope)

        print(f"Replaying {len(submissions)} submissions into '{scope}'...")
        counts = replay(aggregator, scope, submissions)
        print(f"  {counts['recorded']} recorded, {counts['duplicate']} duplicate, "
              f"{counts['invalid']} invalid")

        snapshot = aggregator.snapshot(scope)
        analysis = analyze(snapshot)
        positions = compute_layout(snapshot, analysis, mode, config)
    finally:
        store.close()

    print(f"\nGraph: {len(snapshot.nodes)} concepts, {len(snapshot.edges)} edges")
    print(f"Hub: {analysis.hub}")

    print(f"\n{'='*60}")
    print(f"LEVELS ({mode.value} view)")
    print(f"{'='*60}")
    for node in sorted(analysis.level, key=lambda n: (analysis.level[n], n)):
        level = analysis.level[node]
        shown = "-" if level == UNREACHABLE else str(level)
        xy = ""
        if positions is not None:
            x, y = positions[node]
            xy = f"({x:8.1f}, {y:8.1f})"
        print(f"  {node:40s} {shown:>3s}  deg {analysis.degree[node]:<3d} {xy}")

    print(f"\n{'='*60}")
    print("HEAVIEST EDGES")
    print(f"{'='*60}")
    for e in snapshot.edges[:10]:
        print(f"  {e.source} -- {e.target}  ({e.weight})")

    if out_path is not None:
        result = {
            "graph": snapshot.to_dict(),
            "analysis": {
                "hub": analysis.hub,
                "degree": analysis.degree,
                "level": {
                    n: (None if lvl == UNREACHABLE else lvl)
                    for n, lvl in analysis.level.items()
                },
            },
            "mode": mode.value,
            "layout": (
                {n: list(xy) for n, xy in positions.items()}
                if positions is not None else None
            ),
        }
        with open(out_path, 'w') as f:
            json.dump(result, f, indent=2)
        print(f"\nLayout saved to {out_path}")


if __name__ == "__main__":
    main()
