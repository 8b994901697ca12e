#!/usr/bin/env python3
"""
Test runner for the bin packing GA
"""

import unittest
import sys
from pathlib import Path

# Add current directory to path for imports
ROOT = Path(__file__).parent
sys.path.append(str(ROOT))

def run_all_tests():
    """Run all test modules"""
    loader = unittest.TestLoader()
    suite = loader.discover(str(ROOT / 'tests' / 'test_bpp_ga'), pattern='test_*.py')

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return result.wasSuccessful()


def run_integration_test():
    """Solve the sample instance file and check every packing"""
    print("\n" + "=" * 50)
    print("INTEGRATION TEST")
    print("=" * 50)

    try:
        import numpy as np
        from bpp_ga.io_utils import load_instances, load_config, default_ga_config_path
        from bpp_ga.orchestration import run_evolution
        from bpp_ga.repair import validate_solution

        instances = load_instances(ROOT / 'examples' / 'BPP.txt')
        config = load_config(default_ga_config_path())
        config['max_generations'] = 200

        success = True
        rngs = np.random.default_rng(0).spawn(len(instances))
        for instance, rng in zip(instances, rngs):
            if instance.oversized_items():
                print(f"{instance.name}: skipped (oversized items)")
                continue

            result = run_evolution(instance, config, rng)
            problems = validate_solution(result.best, instance)

            print(f"{instance.name}: {result.bin_count} bins "
                  f"(lower bound {result.lower_bound}, {result.stop_reason})")
            if problems:
                print(f"  Invalid solution: {problems}")
                success = False

        if success:
            print("✓ Integration test PASSED")
        else:
            print("✗ Integration test FAILED")

        return success

    except Exception as e:
        print(f"✗ Integration test FAILED: {e}")
        import traceback
        traceback.print_exc()
        return False


if __name__ == "__main__":
    print("Running Bin Packing GA Tests")
    print("=" * 60)

    # Run unit tests
    print("Running unit tests...")
    unit_success = run_all_tests()

    # Run integration test
    integration_success = run_integration_test()

    # Summary
    print("\n" + "=" * 60)
    print("TEST SUMMARY")
    print("=" * 60)
    print(f"Unit tests: {'PASSED' if unit_success else 'FAILED'}")
    print(f"Integration test: {'PASSED' if integration_success else 'FAILED'}")

    overall_success = unit_success and integration_success
    print(f"Overall: {'PASSED' if overall_success else 'FAILED'}")

    sys.exit(0 if overall_success else 1)
