"""
Data models for the bin packing GA.

Core data structures representing items, bins, candidate solutions,
problem instances and per-generation history records.
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Any, Iterable


class PackingConfigurationError(ValueError):
    """Raised when an instance cannot be packed (item larger than capacity)."""
    pass


class CapacityError(ValueError):
    """Raised when a placement would push a bin over its capacity."""
    pass


class InvariantViolationError(RuntimeError):
    """Raised when an operator produces a solution that breaks an invariant."""
    pass


@dataclass(frozen=True)
class Item:
    """
    A single unit of weight.

    Attributes:
        uid: Unique handle within a problem instance. Items sharing a size
            are still distinct; all multiset bookkeeping uses this handle.
        size: Positive integer size
    """
    uid: int
    size: int


@dataclass
class Bin:
    """
    Capacity-bounded container of items.

    Attributes:
        capacity: Maximum total size the bin may hold
        items: Items currently in the bin
    """
    capacity: int
    items: list[Item] = field(default_factory=list)

    @property
    def load(self) -> int:
        return sum(item.size for item in self.items)

    @property
    def remaining(self) -> int:
        return self.capacity - self.load

    def can_fit(self, item: Item) -> bool:
        return self.load + item.size <= self.capacity

    def add(self, item: Item) -> None:
        """
        Place an item in the bin.

        Raises:
            CapacityError: If the item does not fit; the bin is left unchanged
        """
        if not self.can_fit(item):
            raise CapacityError(
                f"Item {item.uid} (size {item.size}) does not fit: "
                f"load {self.load}/{self.capacity}"
            )
        self.items.append(item)

    def is_empty(self) -> bool:
        return not self.items

    def uids(self) -> set[int]:
        return {item.uid for item in self.items}

    def sizes(self) -> list[int]:
        return [item.size for item in self.items]

    def copy(self) -> "Bin":
        """Independent bin holding the same (immutable) items."""
        return Bin(capacity=self.capacity, items=list(self.items))


@dataclass
class Solution:
    """
    A candidate packing of every item of an instance (GA individual).

    Attributes:
        bins: Bins of this packing, each non-empty and within capacity
        capacity: Bin capacity shared by all bins
        id: Identifier used in logs and lineage metadata
        metadata: Operation logs (crossover_mask, mutation_ops, repair_notes, ...)
        fitness: Cached fitness, None when invalidated
    """
    bins: list[Bin]
    capacity: int
    id: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    fitness: Optional[float] = None

    def copy(self) -> "Solution":
        """
        Create a deep copy of this solution.

        Bins are copied so the copy never shares a mutable Bin with the
        original.
        """
        return Solution(
            bins=[b.copy() for b in self.bins],
            capacity=self.capacity,
            id=self.id,
            metadata=self.metadata.copy(),
            fitness=self.fitness,
        )

    @property
    def bin_count(self) -> int:
        return len(self.bins)

    def all_items(self) -> list[Item]:
        """Every item of the packing, bin by bin."""
        return [item for b in self.bins for item in b.items]

    def item_count(self) -> int:
        return sum(len(b.items) for b in self.bins)

    def total_weight(self) -> int:
        return sum(b.load for b in self.bins)

    def loads(self) -> list[int]:
        return [b.load for b in self.bins]

    def invalidate_fitness(self) -> None:
        self.fitness = None

    def prune_empty_bins(self) -> int:
        """
        Remove empty bins in place.

        Returns:
            Number of bins removed
        """
        before = len(self.bins)
        self.bins = [b for b in self.bins if not b.is_empty()]
        removed = before - len(self.bins)
        if removed:
            self.invalidate_fitness()
        return removed

    def to_size_lists(self) -> list[list[int]]:
        """Packing as a list of bins, each a list of item sizes."""
        return [b.sizes() for b in self.bins]


@dataclass
class ProblemInstance:
    """
    A parsed bin packing instance.

    Attributes:
        name: Instance name
        capacity: Bin capacity
        items: Every item to pack, each with a unique uid
    """
    name: str
    capacity: int
    items: list[Item]

    @classmethod
    def from_sizes(cls, name: str, capacity: int, sizes: Iterable[int]) -> "ProblemInstance":
        """Build an instance, allocating uids in input order."""
        items = [Item(uid=i, size=int(size)) for i, size in enumerate(sizes)]
        return cls(name=name, capacity=int(capacity), items=items)

    @property
    def total_weight(self) -> int:
        return sum(item.size for item in self.items)

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def lower_bound(self) -> int:
        """Trivial lower bound ceil(total weight / capacity)."""
        if self.capacity <= 0:
            return 0
        return math.ceil(self.total_weight / self.capacity)

    def oversized_items(self) -> list[Item]:
        return [item for item in self.items if item.size > self.capacity]

    def validate(self) -> None:
        """
        Check that the instance is packable.

        Raises:
            PackingConfigurationError: If capacity is not positive, an item
                size is not positive, or an item exceeds capacity
        """
        if self.capacity <= 0:
            raise PackingConfigurationError(
                f"Instance {self.name}: capacity must be positive, got {self.capacity}"
            )
        bad_sizes = [item.size for item in self.items if item.size <= 0]
        if bad_sizes:
            raise PackingConfigurationError(
                f"Instance {self.name}: item sizes must be positive, got {bad_sizes[:5]}"
            )
        oversized = self.oversized_items()
        if oversized:
            sizes = sorted({item.size for item in oversized}, reverse=True)
            raise PackingConfigurationError(
                f"Instance {self.name}: {len(oversized)} item(s) exceed capacity "
                f"{self.capacity} (sizes: {sizes[:5]})"
            )

    def summary(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "capacity": self.capacity,
            "item_count": self.item_count,
            "total_weight": self.total_weight,
            "lower_bound": self.lower_bound,
        }


@dataclass
class GenerationRecord:
    """
    One row of the evolution history.

    Attributes:
        generation: Generation index (0 is the initial population)
        best_fitness: Best fitness in the population after replacement
        best_bins: Bin count of the best solution
        mean_fitness: Mean population fitness
        offspring: Offspring produced this generation
        discarded: Malformed offspring discarded this generation
    """
    generation: int
    best_fitness: float
    best_bins: int
    mean_fitness: float
    offspring: int = 0
    discarded: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "generation": self.generation,
            "best_fitness": self.best_fitness,
            "best_bins": self.best_bins,
            "mean_fitness": self.mean_fitness,
            "offspring": self.offspring,
            "discarded": self.discarded,
        }
