"""
Fitness evaluation for the bin packing GA.

Higher fitness is better everywhere in this package: selection, elitism
and replacement all rank solutions best-first by (fitness, fill_quality).
"""

from typing import Dict, List, Optional, Sequence

from .data_models import Solution, ProblemInstance


DEFAULT_WEIGHTS = {'bins': 1.0, 'waste': 1.0, 'overflow': 1.0}


def wasted_space(solution: Solution) -> int:
    """Sum of capacity - load over under-full bins."""
    return sum(
        solution.capacity - load for load in solution.loads()
        if load < solution.capacity
    )


def overflow(solution: Solution) -> int:
    """Sum of load - capacity over bins that exceed capacity."""
    return sum(
        load - solution.capacity for load in solution.loads()
        if load > solution.capacity
    )


def bin_count_fitness(solution: Solution) -> float:
    return -float(solution.bin_count)


def composite_fitness(
    solution: Solution,
    optimal_bins: int,
    weights: Optional[Dict[str, float]] = None
) -> float:
    """
    Composite score penalising bin count, wasted space and overflow.

    fitness = 1 / (1 + l1*(bins/opt) + l2*(waste/(cap*bins)) + l3*(overflow/(cap*bins)))

    Args:
        solution: Solution to score
        optimal_bins: Trivial lower bound on the bin count
        weights: Mapping with keys 'bins', 'waste', 'overflow'

    Returns:
        Score in (0, 1]; higher is better
    """
    w = dict(DEFAULT_WEIGHTS)
    if weights:
        w.update(weights)

    bins = solution.bin_count
    if bins == 0:
        return 1.0

    scale = solution.capacity * bins
    penalty = (
        w['bins'] * (bins / max(optimal_bins, 1))
        + w['waste'] * (wasted_space(solution) / scale)
        + w['overflow'] * (overflow(solution) / scale)
    )
    return 1.0 / (1.0 + penalty)


def fill_quality(solution: Solution) -> float:
    """
    Mean squared fill ratio of the bins.

    Used to break ties between solutions of equal fitness: concentrating
    load into fewer, fuller bins leaves more room to empty a bin later.
    """
    if not solution.bins:
        return 0.0
    cap = float(solution.capacity)
    return sum((load / cap) ** 2 for load in solution.loads()) / len(solution.bins)


def evaluate(
    solution: Solution,
    instance: ProblemInstance,
    config: Dict
) -> float:
    """
    Compute and cache the fitness of a solution.

    Args:
        solution: Solution to score
        instance: Problem instance (for the lower bound)
        config: GA configuration; reads config['fitness']['method'] and
            config['fitness']['weights']

    Returns:
        Fitness value (also stored in solution.fitness)

    Raises:
        ValueError: If the fitness method is unknown
    """
    fitness_config = config.get('fitness', {})
    method = fitness_config.get('method', 'composite')

    if method == 'bin_count':
        value = bin_count_fitness(solution)
    elif method == 'composite':
        value = composite_fitness(
            solution,
            instance.lower_bound,
            fitness_config.get('weights')
        )
    else:
        raise ValueError(f"Unknown fitness method: {method}")

    solution.fitness = value
    return value


def ranking_key(solution: Solution) -> tuple:
    if solution.fitness is None:
        raise ValueError(f"Solution {solution.id!r} has not been evaluated")
    return (solution.fitness, fill_quality(solution))


def rank(solutions: Sequence[Solution]) -> List[Solution]:
    """Solutions sorted best-first."""
    return sorted(solutions, key=ranking_key, reverse=True)


def best_of(solutions: Sequence[Solution]) -> Solution:
    return max(solutions, key=ranking_key)


def population_statistics(population: Sequence[Solution]) -> Dict:
    """
    Summary statistics of an evaluated population.

    Returns:
        Dictionary with best/mean/worst fitness and best/worst bin counts
    """
    fitnesses = [s.fitness for s in population]
    bin_counts = [s.bin_count for s in population]
    best = best_of(population)

    return {
        'best_fitness': best.fitness,
        'best_bins': best.bin_count,
        'mean_fitness': sum(fitnesses) / len(fitnesses),
        'worst_fitness': min(fitnesses),
        'min_bins': min(bin_counts),
        'max_bins': max(bin_counts),
    }
