"""
Grouping genetic algorithm for one-dimensional bin packing

This package searches for near-optimal packings of integer-sized items into
the fewest fixed-capacity bins with a population-based evolutionary search.
Packing heuristics build the initial population and repair children after
crossover and mutation.

Key Features:
- Item identity by unique handle (equal sizes never collapse)
- Bin-inheritance crossover with remainder repair
- Extract-and-reinsert mutation
- Minimal Generation Gap or generational replacement, optional elitism
- Seeded numpy generators passed explicitly to every operator

Modules:
- data_models: Item, Bin, Solution, ProblemInstance, GenerationRecord, errors
- packing: First-Fit, Best-Fit, MBFS and decreasing variants
- fitness: Bin-count and composite fitness, ranking
- population: Initial population construction
- repair: Remainder repair, empty-bin sweep, invariant checks
- crossover: Bin-inheritance crossover
- mutation: Extract-and-reinsert mutation
- selection: Parent selection and replacement schemes
- orchestration: Evolution loop and batch runs over instance files
- io_utils: Instance parsing, CSV/YAML export, config loading
- visualization_utils: Bin load and convergence plots
- cli: Run configuration loading and validation
"""

__version__ = "0.1.0"

from .data_models import (
    Item,
    Bin,
    Solution,
    ProblemInstance,
    GenerationRecord,
    PackingConfigurationError,
    CapacityError,
    InvariantViolationError,
)
from .orchestration import run_evolution, EvolutionResult

__all__ = [
    "Item",
    "Bin",
    "Solution",
    "ProblemInstance",
    "GenerationRecord",
    "PackingConfigurationError",
    "CapacityError",
    "InvariantViolationError",
    "run_evolution",
    "EvolutionResult",
]
