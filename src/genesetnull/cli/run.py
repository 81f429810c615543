"""
genesetnull run command - Permutation test of gene set enrichment vs target genes.

Usage:
    genesetnull run --config tgfb.yaml
    genesetnull run -e expr.tsv --clinical clinical.tsv -s tgfbGenes.txt \\
        -g TGFB1 TGFB2 TGFB3 --n-random 99 -o results/pValsCors.tsv
"""

import argparse
import logging
from datetime import datetime
from pathlib import Path

from genesetnull.cli._validators import _nonnegative_float, _nonzero_int, _positive_int
from genesetnull.cli.config import (
    SAMPLE_NORM_METHODS,
    GeneSetSource,
    OverlapSpec,
    load_config,
    merge_config_with_args,
    missing_required,
    validate_config,
)
from genesetnull.core.biomatrix import DEFAULT_COHORT_COLUMN
from genesetnull.io.loaders import load_dataset, load_gene_set, load_gene_sets
from genesetnull.io.writers import failures_path, write_failures, write_result_table
from genesetnull.stats.correlation import EXPRESSION_THRESHOLD
from genesetnull.stats.enrichment_tests import apply_fdr_correction, run_hypergeometric_overlap
from genesetnull.stats.permutation_engine import DEFAULT_N_RANDOM, PermutationBatch
from genesetnull.stats.scoring import SsgseaScorer

logger = logging.getLogger(__name__)


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the run subcommand."""
    parser = subparsers.add_parser(
        "run",
        help="Permutation test of gene set enrichment vs target gene expression",
        description="Score each gene set with ssGSEA together with matched-size random sets "
                    "and correlate the scores with target gene expression in every cohort",
    )

    parser.add_argument("--config", "-c", type=Path, default=None,
                        help="Path to YAML/JSON config file (optional, CLI args override config values)")

    # Inputs
    parser.add_argument("--expression", "-e", type=Path, default=None,
                        help="Expression matrix (genes x samples, log2 scale)")
    parser.add_argument("--clinical", type=Path, default=None,
                        help="Clinical matrix (first column sample id)")
    parser.add_argument("--cohort-column", default=DEFAULT_COHORT_COLUMN,
                        help=f"Clinical column with cohort labels (default: {DEFAULT_COHORT_COLUMN})")
    parser.add_argument("--cohorts", nargs="+", default=None,
                        help="Cohorts to test (default: every cohort in the clinical data)")
    parser.add_argument("--target-genes", "-g", nargs="+", default=None,
                        help="Target genes to correlate with enrichment")
    parser.add_argument("--gene-sets", "-s", nargs="+", type=Path, default=None,
                        help="Gene set files (single column with header, or .gmt)")
    parser.add_argument("--titles", nargs="+", default=None,
                        help="Display titles for --gene-sets, in the same order (default: file stem)")
    parser.add_argument("--no-header", dest="has_header", action="store_false", default=True,
                        help="Gene set files have no header line")
    parser.add_argument("--drop-missing", action="store_true", default=False,
                        help="Drop genes with missing expression values instead of failing")

    # Permutation test
    parser.add_argument("--n-random", type=_positive_int, default=DEFAULT_N_RANDOM,
                        help=f"Random gene sets per run (default: {DEFAULT_N_RANDOM})")
    parser.add_argument("--seed", type=int, default=None,
                        help="Master random seed (default: fresh entropy)")
    parser.add_argument("--expression-threshold", type=float, default=EXPRESSION_THRESHOLD,
                        help="Target expression must exceed this for the observed correlation "
                             "(default: log2(10))")
    parser.add_argument("--n-jobs", type=_nonzero_int, default=1,
                        help="Parallel runs (joblib threads, -1 = all cores, default: 1)")

    # Scorer
    parser.add_argument("--sample-norm-method", choices=SAMPLE_NORM_METHODS, default="rank",
                        help="ssGSEA per-sample normalisation (default: rank)")
    parser.add_argument("--alpha", type=_nonnegative_float, default=0.25,
                        help="ssGSEA weight exponent (default: 0.25)")
    parser.add_argument("--threads", type=_positive_int, default=1,
                        help="Threads used inside ssGSEA (default: 1)")

    # Outputs
    parser.add_argument("--output", "-o", type=Path, default=Path("pValsCors.tsv"),
                        help="Aggregate result table (default: pValsCors.tsv)")
    parser.add_argument("--plot-dir", type=Path, default=None,
                        help="Directory for diagnostic PNGs (default: next to --output)")
    parser.add_argument("--no-plots", dest="plots", action="store_false", default=True,
                        help="Skip diagnostic figures")
    parser.add_argument("--fdr", action="store_true", default=False,
                        help="Add a Benjamini-Hochberg adjusted p-value column")
    parser.add_argument("--verbose", "-v", action="store_true", default=False,
                        help="Debug logging")

    parser.set_defaults(func=run_permutation, overlaps=[])


def resolve_gene_set_sources(args: argparse.Namespace) -> list[GeneSetSource]:
    """Gene set sources from the config, or from --gene-sets/--titles."""
    entries = args.gene_sets or []
    if all(isinstance(e, GeneSetSource) for e in entries):
        return list(entries)

    titles = args.titles or []
    if titles and len(titles) != len(entries):
        raise ValueError(f"Got {len(titles)} titles for {len(entries)} gene set files")
    return [
        GeneSetSource(path=Path(path), title=titles[i] if titles else None)
        for i, path in enumerate(entries)
    ]


def run_overlaps(specs: list[OverlapSpec], has_header: bool = True) -> list[dict]:
    """Hypergeometric overlap for each configured pair; rows are printed, not stored."""
    rows = []
    for spec in specs:
        query = load_gene_set(spec.query, has_header=has_header)
        reference = load_gene_set(spec.reference, has_header=has_header)
        universe = load_gene_set(spec.universe, has_header=has_header).genes if spec.universe else None
        result = run_hypergeometric_overlap(query.genes, reference.genes, spec.n_universe, universe=universe)
        rows.append({'query': query.name, 'reference': reference.name, **result.to_dict()})

    if len(rows) > 1:
        adjusted = apply_fdr_correction([r['pvalue'] for r in rows])
        for row, fdr in zip(rows, adjusted):
            row['fdr'] = float(fdr)

    for row in rows:
        logger.info(
            f"Overlap {row['query']} vs {row['reference']}: {row['overlap']}/{row['set_size']} "
            f"(reference {row['n_genes']}, N={row['universe_size']}), p={row['pvalue']:.2e}"
        )
    return rows


def run_permutation(args: argparse.Namespace) -> int:
    """Execute the run command."""
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    if args.config:
        print(f"Loading configuration from: {args.config}")
        try:
            config = load_config(args.config)
            validate_config(config)
            args = merge_config_with_args(config, args, getattr(args, 'cli_args', None))
            print("  Configuration loaded successfully")
        except (FileNotFoundError, ValueError) as e:
            print(f"ERROR: Config file error: {e}")
            return 1

    missing = missing_required(args)
    if missing:
        flags = ', '.join(f"--{m.replace('_', '-')}" for m in missing)
        print(f"ERROR: {flags} required (via CLI or config file)")
        return 1

    start_time = datetime.now()
    print(f"\n{'='*70}")
    print("  Gene set enrichment vs target gene: permutation test")
    print(f"{'='*70}")
    print(f"Started: {start_time.strftime('%Y-%m-%d %H:%M:%S')}\n")

    # Load data
    try:
        sources = resolve_gene_set_sources(args)
        gene_sets = []
        for source in sources:
            gene_sets.extend(load_gene_sets(source.path, name=source.title, has_header=args.has_header))
        matrix = load_dataset(
            args.expression,
            args.clinical,
            cohort_column=args.cohort_column,
            cohorts=args.cohorts,
            drop_missing=args.drop_missing,
        )
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    cohorts = list(args.cohorts) if args.cohorts else matrix.cohorts(args.cohort_column)
    print(f"Loaded: {matrix.n_features:,} genes x {matrix.n_samples:,} samples, "
          f"{len(cohorts)} cohorts, {len(gene_sets)} gene sets")

    scorer = SsgseaScorer(
        sample_norm_method=args.sample_norm_method,
        alpha=args.alpha,
        threads=args.threads,
    )

    on_complete = None
    if args.plots:
        from genesetnull.viz.diagnostics import DiagnosticsVisualizer, render_diagnostics

        plot_dir = args.plot_dir or Path(args.output).parent / "plots"
        visualizer = DiagnosticsVisualizer()

        def on_complete(outcome):
            render_diagnostics(outcome, plot_dir, visualizer=visualizer)

    batch = PermutationBatch(
        matrix,
        scorer=scorer,
        n_random=args.n_random,
        seed=args.seed,
        cohort_column=args.cohort_column,
        expression_threshold=args.expression_threshold,
        n_jobs=args.n_jobs,
        on_complete=on_complete,
    )
    collector = batch.run(gene_sets, list(args.target_genes), cohorts)

    write_result_table(collector.to_frame(fdr=args.fdr), args.output)
    if collector.failures:
        write_failures(collector.failures_frame(), failures_path(args.output))

    if args.overlaps:
        try:
            for row in run_overlaps(args.overlaps, has_header=args.has_header):
                print(f"Overlap {row['query']} vs {row['reference']}: "
                      f"{row['set_size']}\t{row['n_genes']}\t{row['overlap']}\t{row['pvalue']:.3e}")
        except (FileNotFoundError, ValueError) as e:
            print(f"ERROR: Overlap test failed: {e}")
            return 1

    elapsed = datetime.now() - start_time
    print(f"\nCompleted in {elapsed.total_seconds():.1f}s: "
          f"{len(collector)} runs written to {args.output}, {len(collector.failures)} failed")

    if len(collector) == 0 and collector.failures:
        return 1
    return 0
