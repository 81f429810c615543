"""Tests for run descriptors, records and the result collector."""

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pandas as pd
import pytest

from genesetnull.core.errors import DataError, UndefinedCorrelationError
from genesetnull.results import (
    FAILURE_COLUMNS,
    RESULT_COLUMNS,
    CorrelationRecord,
    ResultCollector,
    RunDescriptor,
    RunFailure,
)


def _record(cohort="lung adenocarcinoma", gene_set="TGFBeta Geneset", gene="TGFB1", p=0.01, r=0.5):
    return CorrelationRecord(cohort=cohort, gene_set=gene_set, target_gene=gene, p_value=p, correlation=r)


class TestRunDescriptor:
    """Tests for RunDescriptor naming."""

    def test_key(self):
        d = RunDescriptor("lung adenocarcinoma", "TGFBeta Geneset", "TGFB1")
        assert d.key == "lung adenocarcinoma_TGFBeta Geneset_vs_TGFB1"
        assert d.file_name() == "lung adenocarcinoma_TGFBeta Geneset_vs_TGFB1.png"
        assert d.file_name(".pdf").endswith("_vs_TGFB1.pdf")

    def test_path_separators_replaced(self):
        d = RunDescriptor("kidney clear cell/papillary", "A\\B", "TGFB2")
        assert "/" not in d.file_name()
        assert "\\" not in d.file_name()

    def test_hashable_value(self):
        assert RunDescriptor("a", "b", "c") == RunDescriptor("a", "b", "c")
        assert len({RunDescriptor("a", "b", "c"), RunDescriptor("a", "b", "c")}) == 1


class TestRecords:
    """Tests for CorrelationRecord and RunFailure."""

    def test_record_row_and_descriptor(self):
        record = _record()
        assert list(record.as_row()) == RESULT_COLUMNS
        assert record.descriptor == RunDescriptor("lung adenocarcinoma", "TGFBeta Geneset", "TGFB1")

    def test_failure_from_error(self):
        d = RunDescriptor("a", "b", "c")
        failure = RunFailure.from_error(d, UndefinedCorrelationError("zero variance"))
        assert failure.category == "undefined_correlation"
        assert failure.message == "zero variance"
        assert list(failure.as_row()) == FAILURE_COLUMNS

    def test_error_descriptor_message(self):
        d = RunDescriptor("a", "b", "c")
        err = DataError("empty cohort").with_descriptor(d)
        assert str(err) == "[a_b_vs_c] empty cohort"
        # First descriptor wins
        err.with_descriptor(RunDescriptor("x", "y", "z"))
        assert err.descriptor == d


class TestResultCollector:
    """Tests for ResultCollector."""

    def test_to_frame_append_order(self):
        collector = ResultCollector()
        collector.add_record(_record(gene="TGFB1"))
        collector.add_record(_record(gene="TGFB2", p=0.2, r=-0.1))

        frame = collector.to_frame()
        assert list(frame.columns) == RESULT_COLUMNS
        assert list(frame["target_gene"]) == ["TGFB1", "TGFB2"]
        assert frame.loc[1, "correlation"] == pytest.approx(-0.1)

    def test_empty_frame_has_columns(self):
        frame = ResultCollector().to_frame()
        assert frame.empty
        assert list(frame.columns) == RESULT_COLUMNS

    def test_fdr_column(self):
        collector = ResultCollector()
        collector.add_record(_record(p=0.01))
        collector.add_record(_record(p=0.04))
        frame = collector.to_frame(fdr=True)
        np.testing.assert_allclose(frame["fdr"], [0.02, 0.04])

    def test_failures_frame(self):
        collector = ResultCollector()
        collector.add_failure(RunFailure(RunDescriptor("a", "b", "c"), "data", "empty cohort"))
        frame = collector.failures_frame()
        assert list(frame.columns) == FAILURE_COLUMNS
        assert frame.iloc[0]["message"] == "empty cohort"
        assert len(collector) == 0

    def test_concurrent_appends(self):
        collector = ResultCollector()
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda i: collector.add_record(_record(gene=f"G{i}")), range(500)))
        assert len(collector) == 500
        assert len(set(collector.to_frame()["target_gene"])) == 500
