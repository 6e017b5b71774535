#!/usr/bin/env python3
"""
AI Value Analytics - Main Entry Point

Loads the analytics configuration and an upstream dataset export,
runs every calculator (perceived value, Agentic FTEs, department
adoption, incremental ROI, expansion planning) and writes the results
as JSON.

Usage:
    python -m ai_value.run_analysis --dataset path/to/export.json
    python -m ai_value.run_analysis --config custom.yaml --output results.json --verbose
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml

from ai_value.shared.utils import (
    get_module_root,
    load_config,
    load_env_vars,
    setup_logging,
    write_json,
)
from ai_value.shared.dataset_loader import DatasetLoader
from ai_value.shared.metrics_calculator import calculate_all_metrics


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="AI Value Analytics - usage-to-value metrics for AI tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m ai_value.run_analysis --dataset data/export.json
  python -m ai_value.run_analysis --dataset data/export.json --output out/results.json -v
        """
    )
    parser.add_argument(
        "--config",
        help="Path to config.yaml (default: ai_value/config.yaml or AI_VALUE_CONFIG)"
    )
    parser.add_argument(
        "--dataset",
        help="Path to the dataset JSON export (default: AI_VALUE_DATASET)"
    )
    parser.add_argument(
        "--output",
        help="Path of the results JSON file (default: AI_VALUE_OUTPUT or output.output_filename)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log calculator progress"
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point for the analysis."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    print("=" * 60)
    print("AI Value Analytics")
    print("=" * 60)
    print()

    # Step 1: Load configuration
    print("[1/4] Loading configuration...")
    env_vars = load_env_vars()
    config_path = args.config or env_vars.get("AI_VALUE_CONFIG")

    try:
        config = load_config(config_path)
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    dataset_path = args.dataset or env_vars.get("AI_VALUE_DATASET")
    if not dataset_path:
        logging.error("No dataset given. Use --dataset or set AI_VALUE_DATASET in .env")
        sys.exit(1)

    output_filename = config.get("output", {}).get("output_filename", "analytics_results.json")
    output_path = args.output or env_vars.get("AI_VALUE_OUTPUT") or str(get_module_root() / output_filename)

    print(f"   - Config: {config_path or get_module_root() / 'config.yaml'}")
    print(f"   - Dataset: {dataset_path}")
    print()

    # Step 2: Load dataset
    print("[2/4] Loading dataset...")
    try:
        dataset = DatasetLoader(dataset_path).load()
    except (OSError, ValueError) as e:
        logging.error(f"Failed to load dataset {dataset_path}: {e}")
        sys.exit(1)

    print(f"   - Feedback messages: {len(dataset.feedback)}")
    print(f"   - Usage records: {len(dataset.usage)}")
    print(f"   - Departments: {len(dataset.department_usage)}")
    print(f"   - ROI scenarios: {len(dataset.roi_scenarios)}")
    print()

    # Step 3: Calculate metrics
    print("[3/4] Calculating metrics...")
    try:
        results = calculate_all_metrics(dataset, config)
    except ValueError as e:
        logging.error(f"Invalid configuration: {e}")
        sys.exit(1)
    print()

    # Step 4: Write results
    print("[4/4] Writing results...")
    written = write_json(results, output_path)
    print(f"   - Results saved to: {written}")
    print()

    summary = results["summary"]
    perceived = results["perceived_value"]["tools"]
    expansion = results["expansion"]

    print("=" * 60)
    print("SUMMARY")
    print("=" * 60)
    for tool, result in perceived.items():
        print(f"  {tool + ':':<26} {result.score}/100 ({result.total_feedback} feedback, {result.trend})")
    if summary["current_month"]:
        print(f"  Agentic FTEs ({summary['current_month']}): {summary['current_agentic_ftes']:.1f}")
    print(f"  Departments scored:        {summary['departments_scored']}")
    print(f"  Expansion phases:          {len(expansion.phases)}")
    print(f"  First-year expansion cost: {expansion.first_year_cost:,.0f}")
    print()
    print(f"  Results: {Path(written)}")
    print("=" * 60)

    return 0


if __name__ == "__main__":
    sys.exit(main())
