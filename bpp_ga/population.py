"""
Population initialization for the bin packing GA.

Seeds a diverse initial population by mixing randomly ordered First-Fit
packings with size-descending Best-Fit / MBFS packings.
"""

import logging
from typing import Dict, List

import numpy as np

from .data_models import Item, Solution, ProblemInstance
from .packing import first_fit, best_fit, modified_best_fit_slack, sort_decreasing
from .fitness import evaluate
from .repair import check_invariants

logger = logging.getLogger(__name__)


def shuffled_items(items: List[Item], rng: np.random.Generator) -> List[Item]:
    order = rng.permutation(len(items))
    return [items[int(i)] for i in order]


def decreasing_with_shuffled_ties(items: List[Item], rng: np.random.Generator) -> List[Item]:
    """Size-descending order; equal sizes appear in random order."""
    return sort_decreasing(shuffled_items(items, rng))


def initialize_population(
    instance: ProblemInstance,
    size: int,
    config: Dict,
    rng: np.random.Generator
) -> List[Solution]:
    """
    Build the initial population.

    Algorithm:
        1. round(size * random_first_fit_fraction) solutions: shuffle the
           items, pack with First-Fit
        2. Remaining solutions: size-descending order (ties shuffled, except
           for the very first which keeps input order), packed alternately
           with Best-Fit and MBFS
        3. Validate and evaluate every solution; none is discarded

    Args:
        instance: Problem instance
        size: Population size N
        config: GA configuration; reads
            config['initialization']['random_first_fit_fraction']
        rng: Random number generator

    Returns:
        List of N evaluated solutions

    Raises:
        ValueError: If size < 2
        PackingConfigurationError: If an item exceeds capacity
    """
    if size < 2:
        raise ValueError(f"Population size must be at least 2, got {size}")

    init_config = config.get('initialization', {})
    fraction = init_config.get('random_first_fit_fraction', 0.5)
    num_random = int(round(size * fraction))
    num_random = min(max(num_random, 0), size)

    items = list(instance.items)
    capacity = instance.capacity
    population = []

    for i in range(size):
        if i < num_random:
            bins = first_fit(shuffled_items(items, rng), capacity)
            origin = 'random_first_fit'
        else:
            j = i - num_random
            order = sort_decreasing(items) if j == 0 else decreasing_with_shuffled_ties(items, rng)
            if j % 2 == 0:
                bins = best_fit(order, capacity)
                origin = 'best_fit_decreasing'
            else:
                bins = modified_best_fit_slack(order, capacity)
                origin = 'mbfs'

        solution = Solution(
            bins=bins,
            capacity=capacity,
            id=f"init_{i:03d}",
            metadata={'origin': origin}
        )
        check_invariants(solution, instance, context="initialization")
        evaluate(solution, instance, config)
        population.append(solution)

    logger.debug(
        "Initialized %d solutions for %s (%d random First-Fit); bins %d..%d",
        size, instance.name, num_random,
        min(s.bin_count for s in population),
        max(s.bin_count for s in population),
    )
    return population
