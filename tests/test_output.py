"""Unit tests for output writers and provenance tracking."""

import json

import polars as pl
import pytest
import yaml

from pubgene_pipeline.config import load_config
from pubgene_pipeline.output import ProvenanceTracker, write_count_tables


@pytest.fixture
def symbol_counts() -> pl.DataFrame:
    return pl.DataFrame({
        "symbol": ["NAT1", "A1BG", "A2M", "TP53"],
        "count": [1, 3, 1, 3],
    })


@pytest.fixture
def record_counts() -> pl.DataFrame:
    return pl.DataFrame({
        "record_id": ["102", "100", "101"],
        "count": [1, 2, 1],
    })


def test_write_count_tables_creates_files(symbol_counts, record_counts, tmp_path):
    """Test that both TSV files and the YAML sidecar are written."""
    paths = write_count_tables(symbol_counts, record_counts, tmp_path / "out")

    assert set(paths) == {"gene_counts", "article_counts", "provenance"}
    for path in paths.values():
        assert path.exists()


def test_count_tables_sorted(symbol_counts, record_counts, tmp_path):
    """Test that tables are sorted by count descending, then key ascending."""
    paths = write_count_tables(symbol_counts, record_counts, tmp_path)

    genes = pl.read_csv(paths["gene_counts"], separator="\t")
    articles = pl.read_csv(
        paths["article_counts"], separator="\t", schema_overrides={"record_id": pl.Utf8}
    )

    assert genes["symbol"].to_list() == ["A1BG", "TP53", "A2M", "NAT1"]
    assert genes["count"].to_list() == [3, 3, 1, 1]
    assert articles["record_id"].to_list() == ["100", "101", "102"]


def test_empty_tables_keep_headers(tmp_path):
    """Test that an empty run still writes headers."""
    empty_symbols = pl.DataFrame(schema={"symbol": pl.Utf8, "count": pl.UInt32})
    empty_records = pl.DataFrame(schema={"record_id": pl.Utf8, "count": pl.UInt32})

    paths = write_count_tables(empty_symbols, empty_records, tmp_path, record_total=0)

    assert paths["gene_counts"].read_text().strip() == "symbol\tcount"
    assert paths["article_counts"].read_text().strip() == "record_id\tcount"


def test_enrichment_table_written(symbol_counts, record_counts, tmp_path):
    """Test that enrichment results are written when provided."""
    enrichment = pl.DataFrame({
        "term_id": ["GO:1"],
        "term_name": ["a process"],
        "category": ["GO:BP"],
        "p_value": [0.001],
        "gene_count": [2],
        "query_size": [4],
        "gene_ratio": [0.5],
    })

    paths = write_count_tables(symbol_counts, record_counts, tmp_path, enrichment=enrichment)

    assert paths["enrichment"].name == "enrichment.tsv"
    assert pl.read_csv(paths["enrichment"], separator="\t").height == 1


def test_provenance_yaml_content(symbol_counts, record_counts, tmp_path):
    """Test the YAML sidecar contents."""
    paths = write_count_tables(
        symbol_counts,
        record_counts,
        tmp_path,
        term="usher syndrome",
        record_total=42,
    )

    with open(paths["provenance"]) as f:
        provenance = yaml.safe_load(f)

    assert provenance["search_term"] == "usher syndrome"
    assert provenance["output_files"] == ["gene_counts.tsv", "article_counts.tsv"]
    assert provenance["statistics"] == {
        "search_records": 42,
        "genes": 4,
        "articles_with_genes": 3,
    }
    assert "generated_at" in provenance


def test_provenance_tracker_records_steps(config_file):
    """Test step recording and metadata."""
    config = load_config(config_file)
    tracker = ProvenanceTracker("0.1.0", config)

    tracker.record_step("search", {"record_count": 3})
    tracker.record_step("count")

    metadata = tracker.create_metadata()
    steps = metadata["processing_steps"]
    assert [step["step_name"] for step in steps] == ["search", "count"]
    assert steps[0]["details"] == {"record_count": 3}
    assert "details" not in steps[1]
    assert metadata["pipeline_version"] == "0.1.0"
    assert metadata["config_hash"] == config.config_hash()
    assert metadata["reference_files"]["organism_code"] == "9606"


def test_provenance_sidecar_written(config_file, tmp_path):
    """Test that the JSON sidecar is written next to the output file."""
    config = load_config(config_file)
    tracker = ProvenanceTracker.from_config(config)
    tracker.record_step("write_outputs")

    sidecar = tracker.save_sidecar(tmp_path / "run.json")

    assert sidecar.name == "run.provenance.json"
    with open(sidecar) as f:
        loaded = json.load(f)
    assert loaded["processing_steps"][0]["step_name"] == "write_outputs"
    assert loaded["reference_files"]["mapping"].endswith("gene2pubmed")
