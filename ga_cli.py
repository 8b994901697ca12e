#!/usr/bin/env python3
"""
Bin Packing GA CLI - Minimal entry point.

This is the command-line interface for the bin packing genetic algorithm.
All configuration is specified in YAML files.

Usage:
    python3 ga_cli.py run_config.yaml
    python3 ga_cli.py --verbose run_config.yaml
    python3 ga_cli.py --help

Examples:
    # Solve every instance of the sample file
    python3 ga_cli.py examples/run_config.yaml
"""

import argparse
import logging
import sys


def main(argv=None):
    """Main entry point for the GA CLI."""
    parser = argparse.ArgumentParser(
        description="Grouping genetic algorithm for one-dimensional bin packing",
        epilog="All GA parameters are read from the run configuration YAML."
    )
    parser.add_argument("config", help="Path to run configuration YAML file")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log per-generation progress and operator details")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    if not args.verbose:
        logging.getLogger("bpp_ga").setLevel(logging.WARNING)

    try:
        from bpp_ga.cli import run_from_config
        run_from_config(args.config)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        sys.exit(1)
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
