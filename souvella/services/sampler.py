"""Weighted sampling without replacement for the daily selection."""

import random
from typing import List, Optional, Sequence

from souvella.schemas.memory import Memory


def reaction_weight(memory: Memory) -> int:
    """Selection weight of a memory. The +1 keeps unloved memories in play."""
    return 1 + memory.reaction_count


class WeightedSampler:
    """Draws distinct memories, biased toward the ones with more thumbs up.

    Each round sums the weights of the remaining candidates, draws ``r`` from
    ``[0, total)`` and walks the pool subtracting weights until ``r`` drops to
    zero or below. The winner leaves the pool before the next round.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    @staticmethod
    def stable_order(candidates: Sequence[Memory]) -> List[Memory]:
        """Fixed walk order, independent of how the store returned the documents."""
        return sorted(candidates, key=lambda m: (m.created_at, m.id))

    def sample(self, candidates: Sequence[Memory], count: int) -> List[Memory]:
        """Pick up to ``count`` distinct memories, in the order they were drawn.

        Args:
            candidates: Memories to draw from
            count: How many to draw; zero or less draws nothing

        Returns:
            ``min(count, len(candidates))`` distinct memories
        """
        if count <= 0:
            return []

        pool = self.stable_order(candidates)
        selected: List[Memory] = []

        while pool and len(selected) < count:
            total = sum(reaction_weight(memory) for memory in pool)
            r = self.rng.random() * total

            # Rounding can leave r above zero after the last candidate
            index = len(pool) - 1
            for i, memory in enumerate(pool):
                r -= reaction_weight(memory)
                if r <= 0:
                    index = i
                    break

            selected.append(pool.pop(index))

        return selected
