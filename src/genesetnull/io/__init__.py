"""
I/O module for loading inputs and writing results.

Key Functions:
    - load_dataset: Expression + clinical matrix, aligned on sample ids
    - load_gene_sets: Gene list or .gmt collection
    - write_result_table: Aggregate TSV, one row per run

Examples:
    >>> from genesetnull.io import load_dataset, load_gene_sets, write_result_table
    >>> matrix = load_dataset(Path("expr.tsv"), Path("clinical.tsv"))
    >>> gene_sets = load_gene_sets(Path("tgfbGenes.txt"), name="TGFBeta Geneset")
"""

from genesetnull.io.loaders import (
    load_expression_matrix,
    load_clinical_matrix,
    load_gene_set,
    load_gmt,
    load_gene_sets,
    load_dataset,
)
from genesetnull.io.writers import write_result_table, write_failures, failures_path

__all__ = [
    'load_expression_matrix',
    'load_clinical_matrix',
    'load_gene_set',
    'load_gmt',
    'load_gene_sets',
    'load_dataset',
    'write_result_table',
    'write_failures',
    'failures_path',
]
