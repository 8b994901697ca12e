"""
I/O utilities for the bin packing GA.

Handles instance file parsing, solution/history CSV serialization,
YAML configuration loading and summary export.
"""

import csv
import re
from pathlib import Path
from typing import Optional, Union

import yaml

from .data_models import Bin, Solution, ProblemInstance, GenerationRecord


HISTORY_FIELDS = ['generation', 'best_fitness', 'best_bins', 'mean_fitness',
                  'offspring', 'discarded']


def load_instances(path: Union[str, Path]) -> list[ProblemInstance]:
    """
    Load every problem instance from a text file.

    File format (blocks repeated, blank lines ignored):
        <instance name>
        <number of distinct item sizes m>
        <bin capacity>
        <size> <quantity>        (m lines)

    Args:
        path: Path to instance file

    Returns:
        Instances in file order; items are expanded by quantity and get
        uids in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file format is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Instance file not found: {path}")

    with open(path, 'r') as f:
        lines = [(n, line.strip()) for n, line in enumerate(f, start=1)]
    lines = [(n, line) for n, line in lines if line]

    instances = []
    pos = 0

    def next_line(what: str) -> tuple[int, str]:
        nonlocal pos
        if pos >= len(lines):
            raise ValueError(f"Unexpected end of {path} while reading {what}")
        entry = lines[pos]
        pos += 1
        return entry

    def parse_int(n: int, text: str, what: str) -> int:
        try:
            return int(text)
        except ValueError:
            raise ValueError(f"{path}:{n}: expected integer {what}, got {text!r}")

    while pos < len(lines):
        _, name = next_line("instance name")
        n, text = next_line(f"item type count of {name}")
        num_types = parse_int(n, text, "item type count")
        n, text = next_line(f"capacity of {name}")
        capacity = parse_int(n, text, "capacity")

        sizes = []
        for _ in range(num_types):
            n, text = next_line(f"items of {name}")
            fields = text.split()
            if len(fields) != 2:
                raise ValueError(f"{path}:{n}: expected '<size> <quantity>', got {text!r}")
            size = parse_int(n, fields[0], "item size")
            quantity = parse_int(n, fields[1], "item quantity")
            if quantity < 0:
                raise ValueError(f"{path}:{n}: negative quantity {quantity}")
            sizes.extend([size] * quantity)

        instances.append(ProblemInstance.from_sizes(name, capacity, sizes))

    return instances


def save_solution_to_csv(
    solution: Solution,
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save a solution to CSV file, one row per item.

    CSV format:
        bin,item_uid,size,bin_load,capacity
        1,17,46,98,100
        ...

    Args:
        solution: Solution to save
        output_path: Path for output CSV
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved CSV file

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['bin', 'item_uid', 'size', 'bin_load', 'capacity'])

        for index, b in enumerate(solution.bins, start=1):
            load = b.load
            for item in b.items:
                writer.writerow([index, item.uid, item.size, load, solution.capacity])

    return output_path


def load_solution_from_csv(
    csv_path: Union[str, Path],
    instance: ProblemInstance,
    solution_id: Optional[str] = None
) -> Solution:
    """
    Load a solution CSV written by save_solution_to_csv.

    Items are resolved by uid against the instance.

    Raises:
        FileNotFoundError: If CSV file doesn't exist
        ValueError: If the CSV format is invalid or a uid is unknown
    """
    csv_path = Path(csv_path)

    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    by_uid = {item.uid: item for item in instance.items}
    bins: dict[int, Bin] = {}

    with open(csv_path, 'r') as f:
        reader = csv.DictReader(f)

        if not reader.fieldnames or not all(col in reader.fieldnames for col in ['bin', 'item_uid']):
            raise ValueError(f"Invalid CSV format in {csv_path}. Expected columns: bin,item_uid")

        for row in reader:
            uid = int(row['item_uid'])
            if uid not in by_uid:
                raise ValueError(f"Unknown item uid {uid} in {csv_path}")
            bin_index = int(row['bin'])
            bins.setdefault(bin_index, Bin(capacity=instance.capacity)).items.append(by_uid[uid])

    return Solution(
        bins=[bins[k] for k in sorted(bins)],
        capacity=instance.capacity,
        id=solution_id or csv_path.stem,
        metadata={'source_file': str(csv_path)},
    )


def save_history_csv(
    history: list[GenerationRecord],
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save evolution history records to CSV file.

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"History file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=HISTORY_FIELDS)
        writer.writeheader()

        for record in history:
            writer.writerow(record.to_dict())

    return output_path


def instance_output_dir(root: Union[str, Path], name: str) -> Path:
    """Per-instance output folder with a filesystem-safe name."""
    safe = re.sub(r'[^A-Za-z0-9_.-]+', '_', name).strip('_') or 'instance'
    return Path(root) / safe


def default_ga_config_path() -> Path:
    return Path(__file__).parent / 'ga_config.yaml'


def load_config(config_path: Union[str, Path]) -> dict:
    """
    Load GA configuration from YAML file.

    Args:
        config_path: Path to config YAML file

    Returns:
        Configuration dictionary (empty if the file is empty)

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    return config or {}


def save_metadata(
    metadata: dict,
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save metadata to YAML file.

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Metadata file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        yaml.dump(metadata, f, default_flow_style=False, sort_keys=False)

    return output_path
