"""
Orchestration module for the bin packing GA.

Implements the generational evolution loop for one instance and the batch
workflow that solves every instance of an input file.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

import numpy as np

from .data_models import Solution, ProblemInstance, GenerationRecord, PackingConfigurationError
from .population import initialize_population
from .selection import replacement_step
from .fitness import best_of, ranking_key, population_statistics
from .packing import first_fit
from .repair import check_invariants
from .io_utils import (
    load_instances,
    save_solution_to_csv,
    save_history_csv,
    save_metadata,
    instance_output_dir,
)

logger = logging.getLogger(__name__)


@dataclass
class EvolutionResult:
    """
    Outcome of one evolution run.

    Attributes:
        instance: Instance that was solved
        best: Best solution found (owned by the caller)
        generations: Generations run after initialization
        stop_reason: 'lower_bound', 'stalled' or 'max_generations'
        history: One record per generation, starting with the initial population
        discarded_offspring: Malformed offspring discarded over the run
        elapsed_seconds: Wall-clock time of the run
    """
    instance: ProblemInstance
    best: Solution
    generations: int
    stop_reason: str
    history: List[GenerationRecord]
    discarded_offspring: int = 0
    elapsed_seconds: float = 0.0

    @property
    def bin_count(self) -> int:
        return self.best.bin_count

    @property
    def lower_bound(self) -> int:
        return self.instance.lower_bound

    @property
    def reached_lower_bound(self) -> bool:
        return self.best.bin_count <= self.instance.lower_bound

    def summary(self) -> Dict:
        return {
            **self.instance.summary(),
            'best_bins': self.bin_count,
            'best_fitness': float(self.best.fitness),
            'gap_to_lower_bound': self.bin_count - self.lower_bound,
            'generations': self.generations,
            'stop_reason': self.stop_reason,
            'discarded_offspring': self.discarded_offspring,
            'elapsed_seconds': round(self.elapsed_seconds, 3),
        }


def _record(generation: int, population: List[Solution], offspring: int, discarded: int) -> GenerationRecord:
    stats = population_statistics(population)
    return GenerationRecord(
        generation=generation,
        best_fitness=float(stats['best_fitness']),
        best_bins=stats['best_bins'],
        mean_fitness=float(stats['mean_fitness']),
        offspring=offspring,
        discarded=discarded,
    )


def run_evolution(
    instance: ProblemInstance,
    config: Dict,
    rng: np.random.Generator
) -> EvolutionResult:
    """
    Evolve a population for one instance.

    Algorithm:
        1. Validate the instance (oversized items are a configuration error)
        2. Initialize and evaluate the population
        3. Loop: replacement_step (selection -> crossover -> mutation ->
           evaluation -> replacement) until a termination condition holds:
           - best bin count reaches the lower bound (stop_at_lower_bound)
           - no improvement for stall_generations generations
           - max_generations reached
        4. Return the best solution seen

    Args:
        instance: Problem instance
        config: GA configuration dict
        rng: Random number generator

    Returns:
        EvolutionResult

    Raises:
        PackingConfigurationError: If the instance cannot be packed
    """
    instance.validate()

    population_size = config.get('population_size', 50)
    max_generations = config.get('max_generations', 1000)
    stall_limit = config.get('stall_generations')
    stop_at_lower_bound = config.get('stop_at_lower_bound', True)
    workers = config.get('workers', 1)
    log_interval = config.get('log_interval', 100)

    start = time.perf_counter()

    population = initialize_population(instance, population_size, config, rng)
    history = [_record(0, population, 0, 0)]

    best = best_of(population)
    best_key = ranking_key(best)
    stall = 0
    generation = 0
    discarded_total = 0
    stop_reason = 'max_generations'

    logger.info(
        "%s: %d items, capacity %d, lower bound %d, initial best %d bins",
        instance.name, instance.item_count, instance.capacity,
        instance.lower_bound, best.bin_count
    )

    executor = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None
    try:
        if stop_at_lower_bound and best.bin_count <= instance.lower_bound:
            stop_reason = 'lower_bound'
        else:
            for generation in range(1, max_generations + 1):
                stats = replacement_step(population, instance, config, rng, executor, generation)
                discarded_total += stats['discarded']
                history.append(
                    _record(generation, population, stats['offspring'], stats['discarded'])
                )

                current = best_of(population)
                current_key = ranking_key(current)
                if current_key > best_key:
                    best, best_key = current, current_key
                    stall = 0
                else:
                    stall += 1

                if log_interval and generation % log_interval == 0:
                    logger.info(
                        "%s: generation %d, best fitness %.6f (%d bins)",
                        instance.name, generation, best.fitness, best.bin_count
                    )

                if stop_at_lower_bound and best.bin_count <= instance.lower_bound:
                    stop_reason = 'lower_bound'
                    break
                if stall_limit and stall >= stall_limit:
                    stop_reason = 'stalled'
                    break
    finally:
        if executor is not None:
            executor.shutdown(wait=True)

    best = best.copy()
    check_invariants(best, instance, context="evolution")

    elapsed = time.perf_counter() - start
    logger.info(
        "%s: finished after %d generations (%s), best %d bins",
        instance.name, generation, stop_reason, best.bin_count
    )

    return EvolutionResult(
        instance=instance,
        best=best,
        generations=generation,
        stop_reason=stop_reason,
        history=history,
        discarded_offspring=discarded_total,
        elapsed_seconds=elapsed,
    )


def run_instances(run_config: Dict, ga_config: Dict) -> List[Dict]:
    """
    Solve every instance of an input file.

    Algorithm:
        1. Load instances from run_config['input']['instances'] (optionally
           filtered by run_config['input']['names'])
        2. Setup RNG (run_config['random_seed'] or ga_config seed) and spawn
           one independent generator per instance
        3. Create output directory: run_config['output']['root']
        4. For each instance:
           a. First-Fit baseline
           b. run_evolution
           c. Save solution.csv, history.csv and (optionally) plots
           A configuration error is reported and the next instance runs.
        5. Save summary.yaml and print a summary report

    Args:
        run_config: Run configuration dict from YAML
        ga_config: GA configuration dict

    Returns:
        List of per-instance summary dicts
    """
    print("=" * 70)
    print("BIN PACKING GA")
    print("=" * 70)

    input_config = run_config['input']
    instances_path = input_config['instances']
    print(f"Loading instances from: {instances_path}")
    instances = load_instances(instances_path)

    names = input_config.get('names')
    if names:
        instances = [inst for inst in instances if inst.name in names]
    print(f"Loaded {len(instances)} instance(s)")

    # Setup RNG
    seed = run_config.get('random_seed', ga_config.get('random_seed'))
    if seed is None:
        seed = int(np.random.randint(0, 2**31))
    print(f"Random seed: {seed}")
    instance_rngs = np.random.default_rng(seed).spawn(len(instances))

    # Create output directory
    output_root = Path(run_config['output']['root'])
    overwrite = run_config['output'].get('overwrite', False)
    make_plots = run_config['output'].get('plots', False)

    if output_root.exists() and not overwrite:
        raise FileExistsError(
            f"Output directory already exists: {output_root}\n"
            f"Set 'output.overwrite: true' in config to overwrite"
        )

    output_root.mkdir(parents=True, exist_ok=overwrite)
    print(f"Output directory: {output_root}\n")

    summaries = []

    for instance, rng in zip(instances, instance_rngs):
        print(f"Solving {instance.name}: {instance.item_count} items, "
              f"capacity {instance.capacity}, lower bound {instance.lower_bound}")

        try:
            baseline = first_fit(instance.items, instance.capacity)
            result = run_evolution(instance, ga_config, rng)
        except PackingConfigurationError as e:
            logger.error("Skipping instance %s: %s", instance.name, e)
            print(f"  ✗ Configuration error: {e}\n")
            summaries.append({
                'name': instance.name,
                'status': 'configuration_error',
                'error': str(e),
            })
            continue

        instance_dir = instance_output_dir(output_root, instance.name)
        solution_path = save_solution_to_csv(result.best, instance_dir / 'solution.csv', overwrite=overwrite)
        history_path = save_history_csv(result.history, instance_dir / 'history.csv', overwrite=overwrite)

        if make_plots:
            import matplotlib
            matplotlib.use('Agg')
            from .visualization_utils import plot_solution_loads, plot_convergence

            plot_solution_loads(result.best, instance_dir / 'bins.png', title=instance.name)
            plot_convergence(result.history, instance_dir / 'convergence.png',
                             lower_bound=instance.lower_bound, title=instance.name)

        summary = result.summary()
        summary['status'] = 'solved'
        summary['first_fit_bins'] = len(baseline)
        summaries.append(summary)

        print(f"  First-Fit: {len(baseline)} bins | GA: {result.bin_count} bins "
              f"({result.stop_reason} after {result.generations} generations)")
        print(f"  Solution: {solution_path}")
        print(f"  History: {history_path}\n")

    summary_path = save_metadata(
        {'random_seed': seed, 'instances': summaries},
        output_root / 'summary.yaml',
        overwrite=overwrite
    )

    # Print summary
    solved = [s for s in summaries if s['status'] == 'solved']
    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    for s in summaries:
        if s['status'] == 'solved':
            print(f"  {s['name']}: {s['best_bins']} bins "
                  f"(lower bound {s['lower_bound']}, First-Fit {s['first_fit_bins']})")
        else:
            print(f"  {s['name']}: {s['status']}")
    print(f"Solved: {len(solved)}/{len(summaries)}")
    print(f"At lower bound: {sum(1 for s in solved if s['gap_to_lower_bound'] == 0)}")
    print(f"Summary: {summary_path}")

    return summaries
