"""
Tests for I/O utilities.

Tests instance parsing, solution and history CSV serialization, and YAML
config/metadata handling.
"""

import unittest
import tempfile
import shutil
from pathlib import Path

import yaml

from bpp_ga.data_models import Bin, Solution, ProblemInstance, GenerationRecord
from bpp_ga.io_utils import (
    load_instances,
    save_solution_to_csv,
    load_solution_from_csv,
    save_history_csv,
    instance_output_dir,
    default_ga_config_path,
    load_config,
    save_metadata,
)
from bpp_ga.cli import validate_ga_config


EXAMPLES_DIR = Path(__file__).resolve().parents[2] / 'examples'


class TestLoadInstances(unittest.TestCase):
    """Test instance file parsing."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.temp_path = Path(self.temp_dir)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write(self, text):
        path = self.temp_path / "instances.txt"
        path.write_text(text)
        return path

    def test_example_file(self):
        instances = load_instances(EXAMPLES_DIR / 'BPP.txt')

        self.assertEqual(
            [inst.name for inst in instances],
            ['TEST0049', 'TEST0010', 'TEST0020', 'TEST_OVERSIZED']
        )

        first = instances[0]
        self.assertEqual(first.capacity, 100)
        self.assertEqual(first.item_count, 15)
        self.assertEqual(first.total_weight, 552)
        self.assertEqual(first.lower_bound, 6)

    def test_quantities_are_expanded_in_file_order(self):
        path = self.write("TINY\n2\n10\n6 2\n3 1\n")

        instance = load_instances(path)[0]

        self.assertEqual([item.size for item in instance.items], [6, 6, 3])
        self.assertEqual([item.uid for item in instance.items], [0, 1, 2])

    def test_blank_lines_are_ignored(self):
        path = self.write("\nA\n1\n10\n\n5 2\n\n\nB\n1\n20\n7 1\n")

        instances = load_instances(path)

        self.assertEqual([inst.name for inst in instances], ['A', 'B'])
        self.assertEqual(instances[1].capacity, 20)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_instances(self.temp_path / "nope.txt")

    def test_truncated_block(self):
        path = self.write("A\n3\n10\n5 1\n")

        with self.assertRaises(ValueError) as ctx:
            load_instances(path)
        self.assertIn("Unexpected end", str(ctx.exception))

    def test_bad_integer(self):
        with self.assertRaises(ValueError):
            load_instances(self.write("A\n1\nten\n5 1\n"))

    def test_bad_item_line(self):
        with self.assertRaises(ValueError):
            load_instances(self.write("A\n1\n10\n5\n"))

    def test_negative_quantity(self):
        with self.assertRaises(ValueError):
            load_instances(self.write("A\n1\n10\n5 -1\n"))


class TestSolutionIO(unittest.TestCase):
    """Test solution and history serialization."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.temp_path = Path(self.temp_dir)
        self.instance = ProblemInstance.from_sizes("example", 10, [6, 5, 4, 3, 2, 2])
        items = self.instance.items
        self.solution = Solution(
            bins=[
                Bin(capacity=10, items=[items[0], items[2]]),
                Bin(capacity=10, items=[items[1], items[3], items[4]]),
                Bin(capacity=10, items=[items[5]]),
            ],
            capacity=10,
            id="best",
        )

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_csv_round_trip(self):
        path = save_solution_to_csv(self.solution, self.temp_path / "out" / "solution.csv")

        loaded = load_solution_from_csv(path, self.instance)

        self.assertEqual(loaded.to_size_lists(), [[6, 4], [5, 3, 2], [2]])
        self.assertEqual(loaded.id, "solution")

        with open(path) as f:
            header = f.readline().strip()
        self.assertEqual(header, "bin,item_uid,size,bin_load,capacity")

    def test_csv_overwrite_protection(self):
        path = self.temp_path / "solution.csv"
        save_solution_to_csv(self.solution, path)

        with self.assertRaises(FileExistsError):
            save_solution_to_csv(self.solution, path)

        save_solution_to_csv(self.solution, path, overwrite=True)

    def test_csv_unknown_uid(self):
        path = self.temp_path / "bad.csv"
        path.write_text("bin,item_uid,size,bin_load,capacity\n1,42,5,5,10\n")

        with self.assertRaises(ValueError):
            load_solution_from_csv(path, self.instance)

    def test_csv_missing_columns(self):
        path = self.temp_path / "bad.csv"
        path.write_text("name,type,x,y\n")

        with self.assertRaises(ValueError):
            load_solution_from_csv(path, self.instance)

    def test_history_csv(self):
        history = [
            GenerationRecord(0, 0.40, 4, 0.35),
            GenerationRecord(1, 0.45, 3, 0.38, offspring=5, discarded=1),
        ]

        path = save_history_csv(history, self.temp_path / "history.csv")
        lines = path.read_text().strip().splitlines()

        self.assertEqual(lines[0], "generation,best_fitness,best_bins,mean_fitness,offspring,discarded")
        self.assertEqual(lines[2], "1,0.45,3,0.38,5,1")


class TestConfigIO(unittest.TestCase):
    """Test YAML config and metadata handling."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.temp_path = Path(self.temp_dir)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_default_ga_config_is_valid(self):
        config = load_config(default_ga_config_path())

        validate_ga_config(config)
        self.assertEqual(config['replacement']['scheme'], 'mgg')
        self.assertEqual(config['mutation']['min_bins_to_disturb'], 2)

    def test_empty_config_file(self):
        path = self.temp_path / "empty.yaml"
        path.write_text("")

        self.assertEqual(load_config(path), {})

    def test_missing_config_file(self):
        with self.assertRaises(FileNotFoundError):
            load_config(self.temp_path / "missing.yaml")

    def test_save_metadata(self):
        path = save_metadata({'random_seed': 7, 'instances': [{'name': 'A'}]},
                             self.temp_path / "summary.yaml")

        with open(path) as f:
            data = yaml.safe_load(f)
        self.assertEqual(data['random_seed'], 7)

        with self.assertRaises(FileExistsError):
            save_metadata({}, path)

    def test_instance_output_dir(self):
        self.assertEqual(instance_output_dir("root", "TEST0049").name, "TEST0049")
        self.assertEqual(instance_output_dir("root", "u120 / 00").name, "u120_00")
        self.assertEqual(instance_output_dir("root", "///").name, "instance")


if __name__ == '__main__':
    unittest.main()
