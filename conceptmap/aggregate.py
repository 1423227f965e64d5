"""Aggregate concept-pair submissions into a weighted, deduplicated edge set."""

import logging
from dataclasses import dataclass

from .canonical import InvalidInput, display_label, edge_key, normalize
from .graph import build_snapshot

logger = logging.getLogger(__name__)

RECORDED = "recorded"
DUPLICATE = "duplicate"
INVALID = "invalid"


@dataclass(frozen=True)
class Outcome:
    """Result of one submission.

    status is RECORDED (weight holds the new edge weight), DUPLICATE (this
    participant already counted the edge) or INVALID (error holds the
    reason; graph is None and nothing was written).
    """

    status: str
    graph: object = None
    weight: int = None
    key: str = None
    error: str = None

    def to_dict(self):
        data = {"status": self.status}
        if self.weight is not None:
            data["weight"] = self.weight
        if self.error is not None:
            data["detail"] = self.error
        if self.graph is not None:
            data["graph"] = self.graph.to_dict()
        return data


class Aggregator:
    """The only writer of a store's edge and submission sets."""

    def __init__(self, store):
        self.store = store

    def snapshot(self, scope):
        """Current graph for a scope."""
        return build_snapshot(self.store.list_edges(scope), self.store.labels(scope))

    def record_submission(self, scope, session_id, concept_a, concept_b):
        """Count (concept_a, concept_b) once for this participant.

        Storage errors propagate; the store transaction is rolled back first.
        """
        try:
            key = edge_key(concept_a, concept_b)
        except InvalidInput as e:
            logger.warning("Rejected submission in %s: %s", scope, e)
            return Outcome(status=INVALID, error=str(e))

        labels = {
            normalize(concept_a): display_label(concept_a),
            normalize(concept_b): display_label(concept_b),
        }

        with self.store.atomic(scope, key):
            if self.store.has_submission(scope, session_id, key):
                weight = None
            else:
                self.store.record_submission(scope, session_id, key)
                weight = self.store.increment(scope, key, labels)

        graph = self.snapshot(scope)
        if weight is None:
            logger.debug("Duplicate submission of %r by %s in %s", key, session_id, scope)
            return Outcome(status=DUPLICATE, graph=graph, key=key)

        logger.info("Recorded %r in %s (weight %d)", key, scope, weight)
        return Outcome(status=RECORDED, graph=graph, weight=weight, key=key)


def seed_demo(aggregator, scope, participant, samples, name=None):
    """Populate a scope with sample pairs, creating its session first."""
    aggregator.store.create_session(scope, name)
    for source, target in samples:
        aggregator.record_submission(scope, participant, source, target)
    logger.info("Seeded %d demo edges into %s", len(samples), scope)
