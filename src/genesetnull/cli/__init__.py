"""
genesetnull CLI - Permutation tests of gene set enrichment vs target gene expression.

Commands:
    genesetnull run      - Matched-size random set permutation test per cohort
    genesetnull overlap  - Hypergeometric overlap of two gene sets
"""

import argparse
import sys
from typing import Optional, List


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI dispatcher for genesetnull."""
    parser = argparse.ArgumentParser(
        prog="genesetnull",
        description="Is a gene set's enrichment correlated with a target gene beyond random sets of the same size?",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  run       Matched-size random set permutation test per cohort
  overlap   Hypergeometric overlap of two gene sets

Examples:
  genesetnull run --config tgfb.yaml
  genesetnull run -e expr.tsv --clinical clinical.tsv -s tgfbGenes.txt -g TGFB1 --n-random 99
  genesetnull overlap --query Teschendorff_TGFBeta.txt --reference PLASARI.txt
        """
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version="%(prog)s 0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    from genesetnull.cli import run, overlap
    run.register_parser(subparsers)
    overlap.register_parser(subparsers)

    raw_args = list(sys.argv[1:] if args is None else args)
    parsed_args = parser.parse_args(raw_args)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    # Arguments after the subcommand name, used to detect explicit overrides
    parsed_args.cli_args = raw_args[raw_args.index(parsed_args.command) + 1:]

    return parsed_args.func(parsed_args)


if __name__ == "__main__":
    sys.exit(main())
