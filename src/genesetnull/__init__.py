"""
genesetnull - Null distributions for gene set enrichment vs target gene expression

Tests whether the single-sample enrichment of a gene set tracks the expression
of a target gene within each cancer cohort more closely than random gene sets
of the same size do.
"""

__version__ = "0.1.0"

from genesetnull.core.biomatrix import BioMatrix
from genesetnull.core.genesets import GeneSet, GeneSetBatch
from genesetnull.results import ResultCollector, RunDescriptor

__all__ = [
    "BioMatrix",
    "GeneSet",
    "GeneSetBatch",
    "ResultCollector",
    "RunDescriptor",
]
