"""
Visualization utilities for the bin packing GA.

Plots the bin loads of a solution and the convergence of an evolution run.
"""

from pathlib import Path
from typing import List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .data_models import Solution, GenerationRecord


def plot_solution_loads(
    solution: Solution,
    output_path: Path,
    title: Optional[str] = None,
    figsize: Tuple[int, int] = (12, 5)
) -> Path:
    """
    Stacked bar chart of every bin, one segment per item.

    Args:
        solution: Solution to plot
        output_path: Path to save PNG file
        title: Optional plot title
        figsize: Figure size (width, height) in inches

    Returns:
        Path to saved PNG file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=figsize)
    cmap = plt.get_cmap('tab20')

    for index, b in enumerate(solution.bins):
        bottom = 0
        for k, item in enumerate(b.items):
            ax.bar(index + 1, item.size, bottom=bottom, color=cmap(k % 20),
                   edgecolor='white', linewidth=0.5)
            bottom += item.size

    ax.axhline(solution.capacity, color='red', linestyle='--', linewidth=1.5,
               label=f'capacity = {solution.capacity}')

    fill = np.array(solution.loads()) / solution.capacity if solution.bins else np.array([0.0])
    ax.set_xlabel('Bin')
    ax.set_ylabel('Load')
    ax.set_title(
        f"{title or solution.id}: {solution.bin_count} bins, "
        f"mean fill {fill.mean():.1%}"
    )
    ax.set_xlim(0.5, max(solution.bin_count, 1) + 0.5)
    ax.legend(loc='upper right')

    fig.tight_layout()
    fig.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    print(f"  Saved visualization: {output_path}")
    return output_path


def plot_convergence(
    history: List[GenerationRecord],
    output_path: Path,
    lower_bound: Optional[int] = None,
    title: Optional[str] = None,
    figsize: Tuple[int, int] = (12, 5)
) -> Path:
    """
    Best bin count and best/mean fitness per generation.

    Args:
        history: Evolution history records
        output_path: Path to save PNG file
        lower_bound: Optional lower bound drawn on the bin-count panel
        title: Optional plot title
        figsize: Figure size (width, height) in inches

    Returns:
        Path to saved PNG file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    generations = [r.generation for r in history]

    fig, (ax_bins, ax_fit) = plt.subplots(1, 2, figsize=figsize)

    ax_bins.step(generations, [r.best_bins for r in history], where='post', color='navy',
                 label='best bins')
    if lower_bound is not None:
        ax_bins.axhline(lower_bound, color='red', linestyle='--', label=f'lower bound = {lower_bound}')
    ax_bins.set_xlabel('Generation')
    ax_bins.set_ylabel('Bins')
    ax_bins.legend()

    ax_fit.plot(generations, [r.best_fitness for r in history], color='green', label='best')
    ax_fit.plot(generations, [r.mean_fitness for r in history], color='orange', alpha=0.7,
                label='mean')
    ax_fit.set_xlabel('Generation')
    ax_fit.set_ylabel('Fitness')
    ax_fit.legend()

    if title:
        fig.suptitle(title)

    fig.tight_layout()
    fig.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)

    print(f"  Saved visualization: {output_path}")
    return output_path
