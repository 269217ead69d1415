#!/usr/bin/env python3
"""
Behodler Protocol Simulation - Main Entry Point

Runs the named stress scenarios against fresh in-process deployments and
optionally exports a summary table.
"""

import sys
import argparse
import logging
from typing import Dict

import pandas as pd

from behodler_sim.stress_testing.scenarios import BehodlerScenarioSuite


def main(argv=None) -> int:
    """Main entry point with command-line interface"""

    parser = argparse.ArgumentParser(
        description="Behodler Protocol Scenario Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m behodler_sim.main --list-scenarios
  python -m behodler_sim.main --scenario flash_loan_default
  python -m behodler_sim.main --all --output results.csv
        """
    )

    parser.add_argument('--list-scenarios', action='store_true',
                        help='List all available scenarios')

    parser.add_argument('--scenario', type=str,
                        help='Run a specific scenario')

    parser.add_argument('--all', action='store_true',
                        help='Run every scenario')

    parser.add_argument('--output', type=str,
                        help='Export a summary of the results to a CSV file')

    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Log every protocol operation')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not any([args.list_scenarios, args.scenario, args.all]):
        parser.print_help()
        return 1

    suite = BehodlerScenarioSuite()

    try:
        if args.list_scenarios:
            list_scenarios(suite)
            return 0

        if args.scenario:
            results = {args.scenario: suite.run_scenario(args.scenario)}
        else:
            results = suite.run_all_scenarios()

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 1
    except ValueError as e:
        print(f"Error: {str(e)}")
        return 1

    print_results(results)
    if args.output:
        summary_frame(results).to_csv(args.output, index=False)
        print(f"\nSummary written to {args.output}")

    return 1 if any("error" in result for result in results.values()) else 0


def list_scenarios(suite: BehodlerScenarioSuite):
    """List all available scenarios"""

    print("Available Scenarios:")
    print("-" * 40)

    for i, scenario in enumerate(suite.scenarios, 1):
        print(f"{i:2d}. {scenario.name}")
        print(f"    {scenario.description}")
        print()


def print_results(results: Dict[str, dict]):
    for name, result in results.items():
        print(f"\n{name}")
        print("=" * len(name))
        for key, value in result.items():
            if key == "invariants":
                continue
            print(f"  {key}: {value}")
        invariants = result.get("invariants")
        if invariants:
            print(f"  index supply conserved: {invariants['index_supply_conserved']}")


def summary_frame(results: Dict[str, dict]) -> pd.DataFrame:
    """One row per scenario and scalar result"""
    rows = []
    for name, result in results.items():
        for key, value in result.items():
            if isinstance(value, (dict, list)):
                continue
            rows.append({"scenario": name, "metric": key, "value": value})
    return pd.DataFrame(rows, columns=["scenario", "metric", "value"])


if __name__ == "__main__":
    sys.exit(main())
