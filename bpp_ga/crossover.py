"""
Crossover operators for the bin packing GA.

Implements bin-inheritance (grouping) crossover: the child inherits whole
bins from both parents and the items no inherited bin accounts for are
re-packed by a packing heuristic.
"""

from typing import Dict, List, Optional, Tuple
import numpy as np

from .data_models import Bin, Item, Solution, ProblemInstance
from .fitness import ranking_key
from .repair import repair_remainder, sweep_empty_bins, check_invariants


def bin_inheritance_crossover(
    parent_a: Solution,
    parent_b: Solution,
    instance: ProblemInstance,
    config: Dict,
    rng: np.random.Generator,
    child_id: Optional[str] = None
) -> Tuple[Solution, Dict]:
    """
    Combine two parents by inheriting disjoint bins.

    Algorithm:
        1. Copy a uniformly random subset of parent A's bins
           (inheritance_ratio of them, at least one)
        2. Copy each of parent B's bins whose items do not collide with
           items already claimed, in parent B's order
        3. Remainder = all items of both parents minus claimed items. Items
           of skipped parent B bins land here.
        4. Pack the remainder with the repair heuristic

    Args:
        parent_a: First parent (never modified)
        parent_b: Second parent (never modified)
        instance: Problem instance
        config: GA configuration; reads config['crossover'] keys
            inheritance_ratio, repair_heuristic, repair_into_inherited
        rng: Random number generator
        child_id: Id for the child, default "<a>_x_<b>". Repeated matings
            must pass their own ids (see selection.offspring_id).

    Returns:
        Tuple of (child, crossover_mask) where crossover_mask records which
        bins came from each parent and how many items were repaired

    Raises:
        InvariantViolationError: If the child does not cover the instance
    """
    crossover_config = config.get('crossover', {})
    ratio = crossover_config.get('inheritance_ratio', 0.5)
    heuristic = crossover_config.get('repair_heuristic', 'first_fit_decreasing')
    into_existing = crossover_config.get('repair_into_inherited', False)

    child_bins: List[Bin] = []
    claimed: set[int] = set()

    # Step 1: random subset of parent A's bins
    num_a = parent_a.bin_count
    num_inherit = min(max(1, int(round(num_a * ratio))), num_a)
    chosen = []
    if num_a:
        chosen = sorted(int(i) for i in rng.choice(num_a, size=num_inherit, replace=False))

    for index in chosen:
        inherited = parent_a.bins[index].copy()
        child_bins.append(inherited)
        claimed |= inherited.uids()

    # Step 2: parent B bins that do not collide
    taken_b = []
    skipped_b = []
    for index, b in enumerate(parent_b.bins):
        uids = b.uids()
        if uids.isdisjoint(claimed):
            child_bins.append(b.copy())
            claimed |= uids
            taken_b.append(index)
        else:
            skipped_b.append(index)

    # Step 3: everything not yet claimed, from both parents
    pool: Dict[int, Item] = {}
    for parent in (parent_a, parent_b):
        for item in parent.all_items():
            pool.setdefault(item.uid, item)
    remainder = [item for uid, item in pool.items() if uid not in claimed]

    # Step 4: repair
    child_bins, repair_notes = repair_remainder(
        child_bins, remainder, instance.capacity, heuristic, into_existing
    )

    crossover_mask = {
        'A': chosen,
        'B': taken_b,
        'B_skipped': skipped_b,
        'repaired_items': len(remainder),
    }

    child = Solution(
        bins=child_bins,
        capacity=instance.capacity,
        id=child_id or f"{parent_a.id}_x_{parent_b.id}",
        metadata={
            'parent_a_id': parent_a.id,
            'parent_b_id': parent_b.id,
            'crossover_strategy': 'bin_inheritance',
            'crossover_mask': crossover_mask,
            'repair_notes': repair_notes,
        }
    )
    child.metadata['repair_notes'].extend(sweep_empty_bins(child))
    check_invariants(child, instance, context="crossover")

    return child, crossover_mask


def apply_crossover(
    parent_a: Solution,
    parent_b: Solution,
    instance: ProblemInstance,
    config: Dict,
    rng: np.random.Generator,
    child_id: Optional[str] = None
) -> Tuple[Solution, Dict]:
    """
    Apply crossover with probability crossover_rate.

    When crossover is skipped the child is a copy of the better parent, so
    mutation still has something to work on.

    Args:
        parent_a: First parent
        parent_b: Second parent
        instance: Problem instance
        config: GA configuration
        rng: Random number generator
        child_id: Id for the child (see bin_inheritance_crossover)

    Returns:
        Tuple of (child, crossover_mask)
    """
    crossover_rate = config.get('crossover_rate', 1.0)

    if rng.random() >= crossover_rate:
        better = max((parent_a, parent_b), key=ranking_key)
        child = better.copy()
        child.id = child_id or f"{better.id}_clone"
        child.metadata = {
            'parent_a_id': parent_a.id,
            'parent_b_id': parent_b.id,
            'crossover_strategy': 'clone',
        }
        return child, {'skipped': True, 'cloned': better.id}

    return bin_inheritance_crossover(parent_a, parent_b, instance, config, rng, child_id)


def crossover_statistics(child: Solution, parent_a: Solution, parent_b: Solution) -> Dict:
    """
    Calculate statistics about the crossover operation.

    Args:
        child: Child solution
        parent_a: First parent
        parent_b: Second parent

    Returns:
        Dictionary with crossover statistics
    """
    mask = child.metadata.get('crossover_mask', {})
    inherited = len(mask.get('A', [])) + len(mask.get('B', []))

    return {
        'child_bins': child.bin_count,
        'parent_a_bins': parent_a.bin_count,
        'parent_b_bins': parent_b.bin_count,
        'inherited_bins': inherited,
        'repaired_bins': child.bin_count - inherited,
        'repaired_items': mask.get('repaired_items', 0),
        'bin_delta': child.bin_count - min(parent_a.bin_count, parent_b.bin_count),
    }
