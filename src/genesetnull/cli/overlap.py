"""
genesetnull overlap command - Hypergeometric overlap of two gene sets.

Usage:
    genesetnull overlap --query Teschendorff_TGFBeta.txt --reference PLASARI.txt
"""

import argparse
from pathlib import Path

from genesetnull.cli._validators import _positive_int
from genesetnull.io.loaders import load_gene_set
from genesetnull.stats.enrichment_tests import DEFAULT_UNIVERSE_SIZE, run_hypergeometric_overlap


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the overlap subcommand."""
    parser = subparsers.add_parser(
        "overlap",
        help="Hypergeometric test of the overlap between two gene sets",
        description="P(X >= overlap) for a query set drawn from a universe of N genes "
                    "containing the reference set",
    )
    parser.add_argument("--query", "-q", type=Path, required=True,
                        help="Query gene set file (the draw)")
    parser.add_argument("--reference", "-r", type=Path, required=True,
                        help="Reference gene set file")
    parser.add_argument("--n-universe", "-n", type=_positive_int, default=DEFAULT_UNIVERSE_SIZE,
                        help=f"Universe size N (default: {DEFAULT_UNIVERSE_SIZE})")
    parser.add_argument("--universe", "-u", type=Path, default=None,
                        help="Gene universe file; the query is restricted to it")
    parser.add_argument("--no-header", dest="has_header", action="store_false", default=True,
                        help="Gene set files have no header line")
    parser.set_defaults(func=run_overlap)


def run_overlap(args: argparse.Namespace) -> int:
    """Execute the overlap command."""
    try:
        query = load_gene_set(args.query, has_header=args.has_header)
        reference = load_gene_set(args.reference, has_header=args.has_header)
        universe = None
        if args.universe is not None:
            universe = load_gene_set(args.universe, has_header=args.has_header).genes
        result = run_hypergeometric_overlap(
            query.genes, reference.genes, n_universe=args.n_universe, universe=universe
        )
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    print("set_size\tn_genes\toverlap\tpvalue")
    print(f"{result.set_size}\t{result.n_genes}\t{result.overlap}\t{result.pvalue:.6e}")
    return 0
