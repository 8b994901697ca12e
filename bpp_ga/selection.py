"""
Selection and replacement for the bin packing GA.

Parent selection (uniform or tournament), offspring production with
discard-and-retry of malformed children, Minimal Generation Gap (MGG)
replacement, generational replacement and elitism.

Offspring of one generation are independent of each other: each gets its
own generator spawned from the run's generator, so they can be produced on
an executor without changing the result. Replacement is always applied by
the caller's thread after all offspring are back.
"""

import logging
from concurrent.futures import Executor
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .data_models import Solution, ProblemInstance, InvariantViolationError
from .crossover import apply_crossover
from .mutation import mutate
from .fitness import evaluate, rank, ranking_key
from .repair import check_invariants

logger = logging.getLogger(__name__)


def tournament_select(
    population: Sequence[Solution],
    tournament_size: int,
    rng: np.random.Generator,
    exclude: Optional[int] = None
) -> int:
    """
    Pick the best of tournament_size distinct random members.

    Args:
        population: Evaluated population
        tournament_size: Number of contestants
        rng: Random number generator
        exclude: Optional index that may not be picked

    Returns:
        Population index of the winner
    """
    candidates = [i for i in range(len(population)) if i != exclude]
    size = min(max(tournament_size, 1), len(candidates))
    picks = rng.choice(len(candidates), size=size, replace=False)
    contestants = [candidates[int(p)] for p in picks]
    return max(contestants, key=lambda i: ranking_key(population[i]))


def select_two_parents(
    population: Sequence[Solution],
    config: Dict,
    rng: np.random.Generator
) -> Tuple[int, int]:
    """
    Select two distinct parents for crossover.

    Uses tournament selection if configured, otherwise uniform random.

    Args:
        population: Evaluated population
        config: GA configuration; reads config['selection'] keys
            method ('uniform' | 'tournament') and tournament_size
        rng: Random number generator

    Returns:
        Tuple of (index_a, index_b)

    Raises:
        ValueError: If fewer than 2 solutions or the method is unknown
    """
    if len(population) < 2:
        raise ValueError(f"Need at least 2 solutions for crossover, got {len(population)}")

    selection_config = config.get('selection', {})
    method = selection_config.get('method', 'tournament')

    if method == 'uniform':
        idx_a, idx_b = rng.choice(len(population), size=2, replace=False)
        return int(idx_a), int(idx_b)

    if method == 'tournament':
        size = selection_config.get('tournament_size', 3)
        idx_a = tournament_select(population, size, rng)
        idx_b = tournament_select(population, size, rng, exclude=idx_a)
        return idx_a, idx_b

    raise ValueError(f"Unknown selection method: {method}")


def offspring_id(generation: int, index: int) -> str:
    """Short id for the index-th child of a generation."""
    return f"g{generation:05d}_c{index:03d}"


def produce_offspring(
    parent_a: Solution,
    parent_b: Solution,
    instance: ProblemInstance,
    config: Dict,
    rng: np.random.Generator,
    child_id: Optional[str] = None
) -> Tuple[Optional[Solution], int]:
    """
    Build one evaluated child from two parents.

    Crossover, then mutation with probability mutation_rate, then a full
    invariant check. A malformed child is discarded and another is
    generated, up to crossover.max_retries more attempts.

    Lineage is kept in metadata (parent_a_id, parent_b_id); the child id
    itself is child_id.

    Returns:
        Tuple of (child or None if every attempt failed, discarded_count)
    """
    max_retries = config.get('crossover', {}).get('max_retries', 5)
    discarded = 0

    for attempt in range(max_retries + 1):
        try:
            child, crossover_mask = apply_crossover(
                parent_a, parent_b, instance, config, rng, child_id
            )
            child, mutation_ops = mutate(child, config, rng)
            check_invariants(child, instance, context="offspring")
        except InvariantViolationError as e:
            discarded += 1
            logger.warning(
                "Discarding malformed offspring of %s x %s (attempt %d): %s",
                parent_a.id, parent_b.id, attempt + 1, e
            )
            continue

        child.metadata['crossover_mask'] = crossover_mask
        child.metadata['mutation_ops'] = mutation_ops
        evaluate(child, instance, config)
        return child, discarded

    return None, discarded


def _produce_all(
    tasks: List[Tuple[Solution, Solution, np.random.Generator, str]],
    instance: ProblemInstance,
    config: Dict,
    executor: Optional[Executor]
) -> Tuple[List[Solution], int]:
    def run(task):
        parent_a, parent_b, child_rng, child_id = task
        return produce_offspring(parent_a, parent_b, instance, config, child_rng, child_id)

    if executor is not None and len(tasks) > 1:
        results = list(executor.map(run, tasks))
    else:
        results = [run(task) for task in tasks]

    offspring = [child for child, _ in results if child is not None]
    discarded = sum(count for _, count in results)
    return offspring, discarded


def apply_elitism(population: List[Solution], elites: Sequence[Solution]) -> int:
    """
    Reinsert snapshot elites that did not survive replacement.

    Each missing elite replaces the worst member that is not itself an
    elite.

    Returns:
        Number of elites reinserted
    """
    present = {id(s) for s in population}
    missing = [e for e in elites if id(e) not in present]
    if not missing:
        return 0

    elite_ids = {id(e) for e in elites}
    worst_first = sorted(range(len(population)), key=lambda i: ranking_key(population[i]))
    slots = [i for i in worst_first if id(population[i]) not in elite_ids]

    for elite, slot in zip(missing, slots):
        population[slot] = elite

    return len(missing)


def snapshot_elites(population: Sequence[Solution], config: Dict) -> List[Solution]:
    elitism = config.get('elitism', 0)
    if elitism <= 0:
        return []
    return rank(population)[:elitism]


def mgg_step(
    population: List[Solution],
    instance: ProblemInstance,
    config: Dict,
    rng: np.random.Generator,
    executor: Optional[Executor] = None,
    generation: int = 0
) -> Dict:
    """
    One Minimal Generation Gap mating event (population modified in place).

    Algorithm:
        1. Select two parents
        2. Produce offspring_per_mating children (crossover + mutation)
        3. Rank {parent A, parent B, children}
        4. The two parents' slots receive the top two
        5. Reinsert elites if configured

    Args:
        population: Evaluated population
        instance: Problem instance
        config: GA configuration
        rng: Random number generator
        executor: Optional executor for producing children concurrently
        generation: Generation number, used in child ids

    Returns:
        Dictionary with step statistics
    """
    elites = snapshot_elites(population, config)

    idx_a, idx_b = select_two_parents(population, config, rng)
    parent_a, parent_b = population[idx_a], population[idx_b]

    num_children = config.get('offspring_per_mating', 5)
    tasks = [
        (parent_a, parent_b, child_rng, offspring_id(generation, k))
        for k, child_rng in enumerate(rng.spawn(num_children))
    ]
    offspring, discarded = _produce_all(tasks, instance, config, executor)

    family = rank([parent_a, parent_b] + offspring)
    population[idx_a], population[idx_b] = family[0], family[1]

    reinserted = apply_elitism(population, elites)

    return {
        'parents': (idx_a, idx_b),
        'offspring': len(offspring),
        'discarded': discarded,
        'parents_replaced': sum(1 for s in family[:2] if s is not parent_a and s is not parent_b),
        'elites_reinserted': reinserted,
    }


def generational_step(
    population: List[Solution],
    instance: ProblemInstance,
    config: Dict,
    rng: np.random.Generator,
    executor: Optional[Executor] = None,
    generation: int = 0
) -> Dict:
    """
    Full replacement of the population (modified in place).

    Algorithm:
        1. Snapshot the top `elitism` solutions
        2. Produce N children from N independent matings
        3. Candidates = children (plus the old population when
           replacement.combine_with_population is set); if too many children
           were discarded, pad with the best old solutions
        4. Keep the top N candidates, then reinsert missing elites

    Returns:
        Dictionary with step statistics
    """
    size = len(population)
    elites = snapshot_elites(population, config)
    combine = config.get('replacement', {}).get('combine_with_population', False)

    pairs = []
    for _ in range(size):
        idx_a, idx_b = select_two_parents(population, config, rng)
        pairs.append((population[idx_a], population[idx_b]))

    tasks = [
        (a, b, child_rng, offspring_id(generation, k))
        for k, ((a, b), child_rng) in enumerate(zip(pairs, rng.spawn(size)))
    ]
    offspring, discarded = _produce_all(tasks, instance, config, executor)

    candidates = list(offspring)
    if combine:
        candidates.extend(population)
    elif len(candidates) < size:
        candidates.extend(rank(population)[:size - len(candidates)])

    population[:] = rank(candidates)[:size]
    reinserted = apply_elitism(population, elites)

    return {
        'offspring': len(offspring),
        'discarded': discarded,
        'elites_reinserted': reinserted,
    }


def replacement_step(
    population: List[Solution],
    instance: ProblemInstance,
    config: Dict,
    rng: np.random.Generator,
    executor: Optional[Executor] = None,
    generation: int = 0
) -> Dict:
    """
    Run one generation with the configured replacement scheme.

    Raises:
        ValueError: If the scheme is unknown
    """
    scheme = config.get('replacement', {}).get('scheme', 'mgg')

    if scheme == 'mgg':
        return mgg_step(population, instance, config, rng, executor, generation)
    elif scheme == 'generational':
        return generational_step(population, instance, config, rng, executor, generation)
    else:
        raise ValueError(f"Unknown replacement scheme: {scheme}")
