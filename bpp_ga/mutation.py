"""
Mutation operators for the bin packing GA.

Implements extract-and-reinsert mutation: a few bins are emptied and their
items are re-packed into the remaining bins of the same solution.
"""

from typing import Dict, List, Tuple
import numpy as np

from .data_models import Solution
from .packing import apply_packing, sort_decreasing
from .repair import sweep_empty_bins, check_conservation, conservation_snapshot


REINSERT_HEURISTICS = ('best_fit', 'first_fit')


def extract_and_reinsert(
    solution: Solution,
    bins_to_disturb: int,
    config: Dict,
    rng: np.random.Generator
) -> Tuple[Solution, List[str]]:
    """
    Empty k random bins and re-pack their items into the rest.

    Algorithm:
        1. Choose k = min(bins_to_disturb, bin count) distinct bins at random
        2. Extract all their items and delete the bins
        3. Reinsert the items size-descending with Best-Fit (or First-Fit)
           against the remaining bins, opening new bins only as a last resort
        4. Verify item count and total weight are unchanged

    Args:
        solution: Solution to mutate (never modified; a copy is returned)
        bins_to_disturb: Number of bins to empty (typically 2-3)
        config: GA configuration; reads config['mutation']['reinsert_heuristic']
        rng: Random number generator

    Returns:
        Tuple of (mutated_solution, operation_log)

    Raises:
        InvariantViolationError: If items were lost or duplicated
    """
    mutation_config = config.get('mutation', {})
    heuristic = mutation_config.get('reinsert_heuristic', 'best_fit')
    if heuristic not in REINSERT_HEURISTICS:
        raise ValueError(
            f"Unknown reinsert heuristic: {heuristic}. Expected one of {REINSERT_HEURISTICS}"
        )

    mutated = solution.copy()
    before = conservation_snapshot(mutated)

    k = min(bins_to_disturb, mutated.bin_count)
    if k <= 0:
        return mutated, ["extract_and_reinsert: nothing to disturb"]

    chosen = {int(i) for i in rng.choice(mutated.bin_count, size=k, replace=False)}

    extracted = []
    kept = []
    for index, b in enumerate(mutated.bins):
        if index in chosen:
            extracted.extend(b.items)
        else:
            kept.append(b)

    bins_before = mutated.bin_count
    mutated.bins = apply_packing(
        sort_decreasing(extracted), mutated.capacity, heuristic, kept
    )
    mutated.invalidate_fitness()

    log = [
        f"extract_and_reinsert: emptied bins {sorted(chosen)}, "
        f"reinserted {len(extracted)} item(s) with {heuristic}, "
        f"bins {bins_before} -> {mutated.bin_count}"
    ]
    log.extend(sweep_empty_bins(mutated))
    check_conservation(before, mutated, "extract_and_reinsert")

    return mutated, log


def mutate(
    solution: Solution,
    config: Dict,
    rng: np.random.Generator
) -> Tuple[Solution, List[str]]:
    """
    Apply mutation to a solution.

    This is the main mutation orchestrator. It:
    1. Decides whether to mutate (based on mutation_rate)
    2. Picks k in [min_bins, max_bins] bins to disturb
    3. Applies extract-and-reinsert

    Args:
        solution: Solution to mutate
        config: GA configuration with mutation settings
        rng: Random number generator

    Returns:
        Tuple of (mutated_solution, operation_log)
    """
    mutation_rate = config.get('mutation_rate', 0.3)

    if rng.random() >= mutation_rate:
        return solution, ["no_mutation: skipped (probability)"]

    mutation_config = config.get('mutation', {})
    min_bins = mutation_config.get('min_bins_to_disturb', 2)
    max_bins = mutation_config.get('max_bins_to_disturb', 3)
    k = int(rng.integers(min_bins, max_bins + 1))

    mutated, log = extract_and_reinsert(solution, k, config, rng)
    mutated.metadata['mutation_ops'] = log
    return mutated, log


def mutation_statistics(original: Solution, mutated: Solution) -> Dict:
    """
    Calculate statistics about a mutation.

    Args:
        original: Solution before mutation
        mutated: Solution after mutation

    Returns:
        Dictionary with mutation statistics
    """
    original_bins = {frozenset(b.uids()) for b in original.bins}
    mutated_bins = {frozenset(b.uids()) for b in mutated.bins}
    unchanged = len(original_bins & mutated_bins)

    return {
        'bins_before': original.bin_count,
        'bins_after': mutated.bin_count,
        'bin_delta': mutated.bin_count - original.bin_count,
        'bins_changed': mutated.bin_count - unchanged,
        'item_count': mutated.item_count(),
        'total_weight': mutated.total_weight(),
    }
