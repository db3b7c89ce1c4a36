"""Weighted-random node selection."""

from __future__ import annotations

import random
from collections.abc import Sequence

from tonaccess.node import NodeRecord


class WeightedSelector:
    """Pick nodes with probability proportional to their weight.

    Selection is random on purpose; pass a seeded ``random.Random`` to make it
    reproducible.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def pick_one(self, candidates: Sequence[NodeRecord]) -> NodeRecord:
        """Pick a single node.

        With all weights zero the choice is uniform. Otherwise a value is drawn
        in ``[0, total)`` and the first node whose running weight sum exceeds
        it wins, so zero-weight nodes are never picked.
        """
        if not candidates:
            msg = "no candidates to pick from"
            raise ValueError(msg)
        total = sum(node.weight for node in candidates)
        if total <= 0:
            return self._rng.choice(candidates)

        draw = self._rng.random() * total
        running = 0.0
        for node in candidates:
            running += node.weight
            if running > draw:
                return node
        # Float rounding can leave draw == running at the end.
        return next(node for node in reversed(candidates) if node.weight > 0)

    def pick(
        self,
        candidates: Sequence[NodeRecord],
        count: int = 1,
        *,
        distinct: bool = False,
    ) -> list[NodeRecord]:
        """Pick ``count`` nodes.

        Draws are independent unless ``distinct`` is set; then nodes are drawn
        without replacement until the candidate set is exhausted, and any
        further picks repeat over the full set. Zero-weight nodes take part
        only when every candidate has weight zero.
        """
        if count < 1:
            msg = f"count must be at least 1, got {count}"
            raise ValueError(msg)
        if not candidates:
            msg = "no candidates to pick from"
            raise ValueError(msg)

        weighted = [node for node in candidates if node.weight > 0]
        if weighted:
            candidates = weighted

        if not distinct:
            return [self.pick_one(candidates) for _ in range(count)]

        remaining = list(candidates)
        picked: list[NodeRecord] = []
        while remaining and len(picked) < count:
            node = self.pick_one(remaining)
            picked.append(node)
            remaining = [n for n in remaining if n is not node]
        while len(picked) < count:
            picked.append(self.pick_one(candidates))
        return picked


__all__ = [
    "WeightedSelector",
]
