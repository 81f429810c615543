"""
File format detection for expression, clinical and gene set inputs.

Auto-detect what's safe (file kind from the suffix, delimiter by sniffing),
fail with a clear message otherwise.

Supported:
    - Delimited text: .tsv, .txt, .csv, any of them gzipped (.gz)
    - Parquet: .parquet (genes × samples, gene ids as index)
    - Pickle: .pkl, .pickle (pandas DataFrame, genes × samples)
    - GMT: .gmt gene set collections

Examples:
    >>> from genesetnull.io.formats import FileKind, detect_kind, sniff_delimiter
    >>> detect_kind(Path("pancan12_GeneSymbol.tsv.gz"))
    <FileKind.DELIMITED: 'delimited'>
"""

from __future__ import annotations

import csv
import gzip
from enum import Enum
from pathlib import Path

__all__ = ['FileKind', 'detect_kind', 'strip_compression', 'sniff_delimiter', 'open_text']


class FileKind(Enum):
    """Physical layout of an input file."""
    DELIMITED = "delimited"
    PARQUET = "parquet"
    PICKLE = "pickle"
    GMT = "gmt"


_SUFFIX_KINDS = {
    ".parquet": FileKind.PARQUET,
    ".pq": FileKind.PARQUET,
    ".pkl": FileKind.PICKLE,
    ".pickle": FileKind.PICKLE,
    ".gmt": FileKind.GMT,
}


def strip_compression(path: Path) -> Path:
    """``x.tsv.gz`` → ``x.tsv``."""
    return path.with_suffix("") if path.suffix.lower() == ".gz" else path


def detect_kind(path: Path) -> FileKind:
    """File kind from the (decompressed) suffix; unknown suffixes are delimited text."""
    return _SUFFIX_KINDS.get(strip_compression(Path(path)).suffix.lower(), FileKind.DELIMITED)


def open_text(path: Path):
    """Open a possibly gzipped text file for reading."""
    path = Path(path)
    if path.suffix.lower() == ".gz":
        return gzip.open(path, "rt", encoding="utf-8", errors="ignore")
    return open(path, "r", encoding="utf-8", errors="ignore")


def sniff_delimiter(path: Path, sample_size: int = 8192) -> str:
    """
    Auto-detect delimiter from file content.

    Uses Python's csv.Sniffer with fallback heuristics. Single-column files
    (gene lists) have no delimiter in the first line; tab is returned for
    them.

    Args:
        path: Path to data file
        sample_size: Characters to sample for detection

    Returns:
        Detected delimiter character ('\\t', ',', ';' or '|')
    """
    with open_text(path) as f:
        sample = f.read(sample_size)

    first_line = sample.split('\n')[0]
    counts = {
        '\t': first_line.count('\t'),
        ',': first_line.count(','),
        ';': first_line.count(';'),
        '|': first_line.count('|'),
    }
    if max(counts.values()) == 0:
        return '\t'

    # Gene symbols never contain tabs; prefer tab when present
    if counts['\t'] > 0:
        return '\t'

    try:
        dialect = csv.Sniffer().sniff(sample, delimiters='\t,;|')
        return dialect.delimiter
    except csv.Error:
        return max(counts, key=counts.get)
