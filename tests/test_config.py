"""Tests for config loading, validation and CLI merge precedence."""

import argparse
import json
from pathlib import Path

import pytest
import yaml

from genesetnull.cli import run
from genesetnull.cli.config import (
    GeneSetSource,
    OverlapSpec,
    explicit_arg_names,
    load_config,
    merge_config_with_args,
    missing_required,
    validate_config,
)

CONFIG = {
    'expression': 'data/pancan12_GeneSymbol.tsv',
    'clinical': 'data/PANCAN_clinicalMatrix',
    'cohort_column': '_primary_disease',
    'cohorts': ['lung adenocarcinoma'],
    'target_genes': ['TGFB1', 'TGFB2', 'TGFB3'],
    'gene_sets': [{'path': 'data/tgfbGenes.txt', 'title': 'TGFBeta Geneset'}, 'data/PLASARI.txt'],
    'n_random': 99,
    'seed': 42,
    'plots': False,
    'scorer': {'sample_norm_method': 'rank', 'alpha': 0.5},
    'overlaps': [{'query': 'a.txt', 'reference': 'b.txt', 'n_universe': 15000}],
}


def _parse(argv):
    parser = argparse.ArgumentParser()
    subparsers = parser.add_subparsers(dest="command")
    run.register_parser(subparsers)
    return parser.parse_args(["run"] + argv)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_yaml_and_json(self, tmp_path):
        y = tmp_path / "run.yaml"
        y.write_text(yaml.safe_dump(CONFIG))
        j = tmp_path / "run.json"
        j.write_text(json.dumps(CONFIG))
        assert load_config(y) == CONFIG
        assert load_config(j) == CONFIG

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == {}

    def test_errors(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

        bad_suffix = tmp_path / "run.toml"
        bad_suffix.write_text("x = 1")
        with pytest.raises(ValueError, match="Unsupported"):
            load_config(bad_suffix)

        bad_yaml = tmp_path / "bad.yaml"
        bad_yaml.write_text("a: [1, 2\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(bad_yaml)

        not_mapping = tmp_path / "list.yaml"
        not_mapping.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="dictionary"):
            load_config(not_mapping)


class TestValidateConfig:
    """Tests for validate_config()."""

    def test_valid(self):
        validate_config(CONFIG)

    @pytest.mark.parametrize("update, message", [
        ({'n_random': 0}, "n_random"),
        ({'n_random': "99"}, "n_random"),
        ({'cohorts': "lung adenocarcinoma"}, "must be a list"),
        ({'target_genes': "TGFB1"}, "must be a list"),
        ({'scorer': {'sample_norm_method': 'zscore'}}, "sample_norm_method"),
        ({'gene_sets': [{'title': 'no path'}]}, "path"),
        ({'overlaps': [{'query': 'a.txt'}]}, "reference"),
    ])
    def test_invalid(self, update, message):
        with pytest.raises(ValueError, match=message):
            validate_config({**CONFIG, **update})

    @pytest.mark.parametrize("n_jobs", [True, False, 0, "2"])
    def test_invalid_n_jobs(self, n_jobs):
        with pytest.raises(ValueError, match="n_jobs"):
            validate_config({**CONFIG, 'n_jobs': n_jobs})

    def test_negative_n_jobs_allowed(self):
        validate_config({**CONFIG, 'n_jobs': -1})


class TestMergeConfigWithArgs:
    """Tests for merge precedence: explicit CLI > config > CLI default."""

    def test_config_fills_defaults(self):
        merged = merge_config_with_args(CONFIG, _parse([]), [])
        assert merged.expression == Path(CONFIG['expression'])
        assert merged.cohort_column == '_primary_disease'
        assert merged.n_random == 99
        assert merged.seed == 42
        assert merged.plots is False
        assert merged.alpha == 0.5
        assert merged.gene_sets == [
            GeneSetSource(Path('data/tgfbGenes.txt'), 'TGFBeta Geneset'),
            GeneSetSource(Path('data/PLASARI.txt')),
        ]
        assert merged.overlaps == [OverlapSpec(Path('a.txt'), Path('b.txt'), 15000)]

    def test_explicit_cli_wins(self):
        argv = ["--n-random", "10", "-g", "SMAD7", "--alpha=0.1"]
        merged = merge_config_with_args(CONFIG, _parse(argv), argv)
        assert merged.n_random == 10
        assert merged.target_genes == ["SMAD7"]
        assert merged.alpha == 0.1
        assert merged.seed == 42

    def test_cli_default_kept_without_config_value(self):
        merged = merge_config_with_args({'n_random': 5}, _parse([]), [])
        assert merged.n_jobs == 1
        assert merged.cohort_column == "primary_disease"

    def test_explicit_arg_names(self):
        names = explicit_arg_names(["--no-plots", "-o", "x.tsv", "--seed=3", "TGFB1"])
        assert names == {"plots", "output", "seed"}

    def test_missing_required(self):
        assert set(missing_required(_parse([]))) == {'expression', 'clinical', 'target_genes', 'gene_sets'}
        merged = merge_config_with_args(CONFIG, _parse([]), [])
        assert missing_required(merged) == []
