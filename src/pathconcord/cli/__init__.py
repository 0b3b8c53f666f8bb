"""
PathConcord CLI - Command-line interface for pathway result reconciliation.

Commands:
    pathconcord reconcile  - Threshold, overlap and compare pathway results across methods
"""

import argparse
import sys
from typing import Optional, List


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI dispatcher for pathconcord."""
    parser = argparse.ArgumentParser(
        prog="pathconcord",
        description="Cross-method reconciliation of pathway analysis results",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  reconcile     Threshold, overlap and compare pathway results across methods

Examples:
  pathconcord reconcile --gsea fgsea.tsv --spia spia.tsv --ssnappy ssnappy.tsv -o results/
  pathconcord reconcile --config reconcile.yaml --fdr 0.01
        """
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version="%(prog)s 0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    from pathconcord.cli import reconcile
    reconcile.register_parser(subparsers)

    raw_args = list(sys.argv[1:] if args is None else args)
    parsed_args = parser.parse_args(raw_args)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    # Kept so config merging can tell explicit flags from defaults
    parsed_args._raw_args = raw_args

    return parsed_args.func(parsed_args)


if __name__ == "__main__":
    sys.exit(main())
