"""
Repair and validation for the bin packing GA.

Provides the remainder repair used after crossover, the empty-bin sweep
every operator runs before returning, and the post-operator invariant
check that guards the population against malformed children.
"""

import logging
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

from .data_models import Bin, Item, Solution, ProblemInstance, InvariantViolationError
from .packing import apply_packing

logger = logging.getLogger(__name__)


def sweep_empty_bins(solution: Solution) -> List[str]:
    """
    Remove empty bins left behind by an operator.

    Returns:
        Notes describing what was removed (empty list if nothing)
    """
    removed = solution.prune_empty_bins()
    if removed:
        return [f"sweep_empty_bins: removed {removed} empty bin(s)"]
    return []


def repair_remainder(
    bins: List[Bin],
    remainder: Sequence[Item],
    capacity: int,
    heuristic: str = 'first_fit_decreasing',
    into_existing: bool = False
) -> Tuple[List[Bin], List[str]]:
    """
    Re-pack items that no inherited bin accounts for.

    Algorithm:
    1. Pack the remainder with the configured heuristic
    2. Either append the resulting bins to the existing ones, or (with
       into_existing) let the heuristic fill the existing bins first

    Args:
        bins: Bins already placed in the child (modified in place)
        remainder: Items still to place
        capacity: Bin capacity
        heuristic: Packing heuristic name (see packing.PACKING_HEURISTICS)
        into_existing: Pack into the existing bins before opening new ones

    Returns:
        Tuple of (bins, repair_notes)
    """
    notes = []

    if not remainder:
        notes.append("repair_remainder: nothing to repair")
        return bins, notes

    before = len(bins)

    if into_existing:
        bins = apply_packing(remainder, capacity, heuristic, bins)
    else:
        bins.extend(apply_packing(remainder, capacity, heuristic))

    notes.append(
        f"repair_remainder: placed {len(remainder)} item(s) with {heuristic}, "
        f"opened {len(bins) - before} bin(s)"
    )
    logger.debug(notes[-1])
    return bins, notes


def validate_solution(
    solution: Solution,
    instance: ProblemInstance
) -> List[str]:
    """
    Check completeness, capacity and no-empty-bin invariants.

    Args:
        solution: Solution to check
        instance: Instance the solution must cover

    Returns:
        List of problems found (empty if the solution is valid)
    """
    problems = []

    expected = Counter(item.uid for item in instance.items)
    actual = Counter(item.uid for item in solution.all_items())

    missing = expected - actual
    extra = actual - expected
    duplicated = [uid for uid, count in actual.items() if count > 1]

    if missing:
        problems.append(f"missing {sum(missing.values())} item(s): {sorted(missing)[:10]}")
    if duplicated:
        problems.append(f"duplicated item(s): {sorted(duplicated)[:10]}")
    foreign = [uid for uid in extra if uid not in expected]
    if foreign:
        problems.append(f"foreign item(s): {sorted(foreign)[:10]}")

    if solution.total_weight() != instance.total_weight:
        problems.append(
            f"total weight {solution.total_weight()} != instance weight {instance.total_weight}"
        )

    for index, b in enumerate(solution.bins):
        if b.is_empty():
            problems.append(f"bin {index} is empty")
        elif b.load > solution.capacity:
            problems.append(f"bin {index} load {b.load} exceeds capacity {solution.capacity}")

    return problems


def check_invariants(
    solution: Solution,
    instance: ProblemInstance,
    context: Optional[str] = None
) -> None:
    """
    Raise if the solution breaks an invariant.

    Raises:
        InvariantViolationError: With all problems found
    """
    problems = validate_solution(solution, instance)
    if problems:
        where = f" after {context}" if context else ""
        raise InvariantViolationError(
            f"Solution {solution.id!r} invalid{where}: " + "; ".join(problems)
        )


def check_conservation(
    before: Dict[str, int],
    solution: Solution,
    context: str
) -> None:
    """
    Compare item count and total weight against a snapshot.

    Args:
        before: Output of conservation_snapshot() taken before the operator
        solution: Solution after the operator
        context: Operator name for the error message

    Raises:
        InvariantViolationError: If count or weight changed
    """
    after = conservation_snapshot(solution)
    if after != before:
        raise InvariantViolationError(
            f"{context} changed item conservation: before {before}, after {after}"
        )


def conservation_snapshot(solution: Solution) -> Dict[str, int]:
    return {
        'item_count': solution.item_count(),
        'total_weight': solution.total_weight(),
    }
