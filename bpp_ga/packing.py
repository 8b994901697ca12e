"""
Packing heuristics for the bin packing GA.

Deterministic construction/repair procedures that map a sequence of items
into bins under a capacity constraint. They are used to build the initial
population and to repair children after crossover and mutation, so every
heuristic can also pack into an existing list of bins.

Bin choice scans a local list of loads; the placement itself goes through
Bin.add, so a disagreement between the two raises CapacityError.
"""

from typing import Callable, Dict, List, Optional, Sequence

from .data_models import Bin, Item, PackingConfigurationError


def _check_item(item: Item, capacity: int) -> None:
    if item.size > capacity:
        raise PackingConfigurationError(
            f"Item {item.uid} of size {item.size} exceeds bin capacity {capacity}"
        )


def sort_decreasing(items: Sequence[Item]) -> List[Item]:
    """Items ordered by size, largest first (stable for equal sizes)."""
    return sorted(items, key=lambda item: item.size, reverse=True)


def first_fit(
    items: Sequence[Item],
    capacity: int,
    bins: Optional[List[Bin]] = None
) -> List[Bin]:
    """
    Pack items in the given order with First-Fit.

    Each item goes into the first bin with enough remaining capacity; a new
    bin is opened only when none fits.

    Args:
        items: Items to place, in presentation order
        capacity: Bin capacity
        bins: Optional existing bins to pack into (modified in place)

    Returns:
        The list of bins (existing bins first, new bins appended)

    Raises:
        PackingConfigurationError: If an item is larger than capacity

    Example:
        >>> instance = ProblemInstance.from_sizes("demo", 10, [6, 5, 4, 3, 2, 2])
        >>> [b.sizes() for b in first_fit(instance.items, 10)]
        [[6, 4], [5, 3, 2], [2]]
    """
    bins = [] if bins is None else bins
    loads = [b.load for b in bins]

    for item in items:
        _check_item(item, capacity)
        for k, load in enumerate(loads):
            if load + item.size <= capacity:
                bins[k].add(item)
                loads[k] += item.size
                break
        else:
            bins.append(Bin(capacity=capacity))
            bins[-1].add(item)
            loads.append(item.size)

    return bins


def best_fit(
    items: Sequence[Item],
    capacity: int,
    bins: Optional[List[Bin]] = None
) -> List[Bin]:
    """
    Pack items in the given order with Best-Fit.

    Each item goes into the bin that is left with the least remaining
    capacity after placement. Ties go to the earliest-created bin. A new
    bin is opened only when none fits.

    Args:
        items: Items to place, in presentation order
        capacity: Bin capacity
        bins: Optional existing bins to pack into (modified in place)

    Returns:
        The list of bins (existing bins first, new bins appended)

    Raises:
        PackingConfigurationError: If an item is larger than capacity
    """
    bins = [] if bins is None else bins
    loads = [b.load for b in bins]

    for item in items:
        _check_item(item, capacity)
        best_index = -1
        best_slack = capacity + 1

        for k, load in enumerate(loads):
            slack = capacity - load - item.size
            # strict < keeps the earliest bin on ties
            if 0 <= slack < best_slack:
                best_slack = slack
                best_index = k
                if slack == 0:
                    break

        if best_index >= 0:
            bins[best_index].add(item)
            loads[best_index] += item.size
        else:
            bins.append(Bin(capacity=capacity))
            bins[-1].add(item)
            loads.append(item.size)

    return bins


def modified_best_fit_slack(
    items: Sequence[Item],
    capacity: int,
    bins: Optional[List[Bin]] = None
) -> List[Bin]:
    """
    Modified-Best-Fit-Slack (MBFS).

    Same placement rule and tie-break as Best-Fit. Callers are expected to
    present items size-descending; the heuristic does not reorder them.
    """
    return best_fit(items, capacity, bins)


def first_fit_decreasing(
    items: Sequence[Item],
    capacity: int,
    bins: Optional[List[Bin]] = None
) -> List[Bin]:
    """First-Fit over items sorted size-descending."""
    return first_fit(sort_decreasing(items), capacity, bins)


def best_fit_decreasing(
    items: Sequence[Item],
    capacity: int,
    bins: Optional[List[Bin]] = None
) -> List[Bin]:
    """Best-Fit over items sorted size-descending."""
    return best_fit(sort_decreasing(items), capacity, bins)


PACKING_HEURISTICS: Dict[str, Callable[..., List[Bin]]] = {
    'first_fit': first_fit,
    'best_fit': best_fit,
    'mbfs': modified_best_fit_slack,
    'first_fit_decreasing': first_fit_decreasing,
    'best_fit_decreasing': best_fit_decreasing,
}


def apply_packing(
    items: Sequence[Item],
    capacity: int,
    heuristic: str = 'first_fit',
    bins: Optional[List[Bin]] = None
) -> List[Bin]:
    """
    Pack items using the named heuristic.

    This is the main entry point used by the initializer and repair steps.

    Args:
        items: Items to place
        capacity: Bin capacity
        heuristic: One of PACKING_HEURISTICS
        bins: Optional existing bins to pack into (modified in place)

    Returns:
        List of bins

    Raises:
        ValueError: If the heuristic name is unknown
        PackingConfigurationError: If an item is larger than capacity
    """
    if heuristic not in PACKING_HEURISTICS:
        raise ValueError(
            f"Unknown packing heuristic: {heuristic}. "
            f"Expected one of {sorted(PACKING_HEURISTICS)}"
        )
    return PACKING_HEURISTICS[heuristic](items, capacity, bins)
