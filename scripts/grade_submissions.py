#!/usr/bin/env python3
"""
QGRADE Batch Grader

Grade a directory of learner submissions against the built-in exercises.

Usage:
    python scripts/grade_submissions.py submissions/
    python scripts/grade_submissions.py submissions/ --tag basics --output results/
"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from qgrade.config import GraderConfig
from qgrade.exercises import default_catalog
from qgrade.harness import GradingHarness, OperationRegistry, SuiteRunner
from qgrade.utils.logging import configure_logging


def main():
    parser = argparse.ArgumentParser(
        description="Grade learner submissions with QGRADE",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s submissions/
  %(prog)s submissions/ --tag controlled --workers 8
  %(prog)s submissions/ --config grader.yaml --output results/
        """
    )

    parser.add_argument(
        "directory",
        type=Path,
        help="Directory containing one .py submission per learner"
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="YAML configuration file"
    )

    parser.add_argument(
        "--tag",
        type=str,
        help="Only grade exercises with this tag"
    )

    parser.add_argument(
        "--workers",
        type=int,
        help="Parallel workers per submission"
    )

    parser.add_argument(
        "--output",
        type=Path,
        help="Directory for per-learner JSON results"
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print verbose output"
    )

    args = parser.parse_args()

    configure_logging("INFO" if args.verbose else "WARNING")
    config = GraderConfig.from_yaml(args.config) if args.config else GraderConfig()

    catalog = default_catalog()
    exercises = catalog.filter(args.tag) if args.tag else list(catalog)
    submissions = sorted(args.directory.glob("*.py"))
    if not submissions:
        print(f"No submissions found in {args.directory}")
        return 1

    print(f"Grading {len(submissions)} submission(s) on {len(exercises)} exercise(s)")
    print("=" * 60)

    summary = {}
    for path in submissions:
        try:
            registry = OperationRegistry.from_source(path)
        except Exception as e:
            print(f"{path.stem:24} failed to load: {e}")
            summary[path.stem] = {"error": str(e)}
            continue

        harness = GradingHarness(config=config, registry=registry)
        results = SuiteRunner(harness, max_workers=args.workers).run(exercises)
        summary[path.stem] = results.to_dict()
        print(f"{path.stem:24} {results.passed}/{results.total} ({results.pass_rate:.1%})")

        if args.output:
            results.save(args.output / f"{path.stem}.json")

    if args.output:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        summary_path = args.output / f"summary_{timestamp}.json"
        with open(summary_path, "w") as f:
            json.dump(
                {name: {k: v for k, v in data.items() if k != "results"}
                 for name, data in summary.items()},
                f,
                indent=2,
            )
        print(f"\nSummary saved to {summary_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
