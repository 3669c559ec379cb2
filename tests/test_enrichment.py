"""Tests for enrichment backends (offline GMT and mocked g:Profiler)."""

from unittest.mock import patch

import httpx
import pytest

from pubgene_pipeline.config.schema import APIConfig, EnrichmentConfig
from pubgene_pipeline.enrichment import (
    ENRICHMENT_SCHEMA,
    GmtBackend,
    GProfilerBackend,
    get_backend,
    read_gmt,
)
from pubgene_pipeline.errors import EnrichmentError


GPROFILER_RESPONSE = {
    "result": [
        {
            "native": "GO:0006955",
            "name": "immune response",
            "source": "GO:BP",
            "p_value": 0.004,
            "intersection_size": 2,
            "query_size": 4,
        },
        {
            "native": "GO:0008152",
            "name": "metabolic process",
            "source": "GO:BP",
            "p_value": 0.0001,
            "intersection_size": 3,
            "query_size": 4,
        },
    ],
    "meta": {"query_metadata": {}},
}


# read_gmt


def test_read_gmt(gmt_file):
    """Test parsing term, description and genes from a GMT file."""
    gene_sets = read_gmt(gmt_file)

    assert set(gene_sets) == {"GO:0000001", "GO:0000002"}
    description, genes = gene_sets["GO:0000001"]
    assert description == "glycoprotein signalling"
    assert genes == frozenset({"A1BG", "A2M", "NAT1"})
    assert len(gene_sets["GO:0000002"][1]) == 17


def test_read_gmt_missing(tmp_path):
    """Test that a missing library raises EnrichmentError."""
    with pytest.raises(EnrichmentError, match="not found"):
        read_gmt(tmp_path / "missing.gmt")


def test_read_gmt_without_sets(tmp_path):
    """Test that a library with no usable lines raises EnrichmentError."""
    path = tmp_path / "empty.gmt"
    path.write_text("only_a_name\n\n")

    with pytest.raises(EnrichmentError, match="No gene sets"):
        read_gmt(path)


# GmtBackend


def test_gmt_backend_finds_enriched_term(gmt_file):
    """Test that a fully covered gene set is reported as significant."""
    backend = GmtBackend(gmt_file)

    result = backend.enrich(["A1BG", "A2M", "NAT1"], annotation_db="hsapiens")

    assert dict(result.schema) == ENRICHMENT_SCHEMA
    assert result["term_id"].to_list() == ["GO:0000001"]
    row = result.row(0, named=True)
    assert row["term_name"] == "glycoprotein signalling"
    assert row["category"] == "library"
    assert row["gene_count"] == 3
    assert row["query_size"] == 3
    assert row["gene_ratio"] == pytest.approx(1.0)
    # 1 / C(20, 3)
    assert row["p_value"] == pytest.approx(1 / 1140)


def test_gmt_backend_applies_threshold(gmt_file):
    """Test that terms above the adjusted p-value cutoff are dropped."""
    strict = GmtBackend(gmt_file, significance_threshold=0.05)
    lenient = GmtBackend(gmt_file, significance_threshold=1.0)

    assert strict.enrich(["A1BG"], annotation_db="hsapiens").height == 0

    result = lenient.enrich(["A1BG"], annotation_db="hsapiens")
    assert result["term_id"].to_list() == ["GO:0000001"]
    assert result["p_value"][0] == pytest.approx(3 / 20)


def test_gmt_backend_ignores_unknown_genes(gmt_file):
    """Test that genes outside the library background are not counted."""
    backend = GmtBackend(gmt_file)

    result = backend.enrich(
        ["A1BG", "A2M", "NAT1", "NOT_A_GENE"], annotation_db="hsapiens"
    )

    assert result["query_size"].to_list() == [3]


def test_gmt_backend_no_overlap(gmt_file):
    """Test that a query sharing no genes with the library is empty."""
    result = GmtBackend(gmt_file).enrich(["XYZ"], annotation_db="hsapiens")

    assert result.height == 0
    assert result.columns == list(ENRICHMENT_SCHEMA)


def test_enrich_empty_input_skips_backend(gmt_file):
    """Test that an empty gene list never reaches the backend."""
    backend = GmtBackend(gmt_file)

    with patch.object(GmtBackend, "_run") as mock_run:
        result = backend.enrich([], annotation_db="hsapiens")

    mock_run.assert_not_called()
    assert result.height == 0


# GProfilerBackend


def test_gprofiler_payload():
    """Test the g:GOSt request body."""
    backend = GProfilerBackend(significance_threshold=0.01)

    payload = backend.build_payload(["TP53", "BRCA1"], "hsapiens", "BP", "SYMBOL")

    assert payload["organism"] == "hsapiens"
    assert payload["query"] == ["TP53", "BRCA1"]
    assert payload["sources"] == ["GO:BP"]
    assert payload["user_threshold"] == 0.01
    assert payload["significance_threshold_method"] == "fdr"
    assert "numeric_ns" not in payload


def test_gprofiler_payload_all_ontologies_and_entrez():
    """Test ontology 'ALL' and numeric identifier namespace."""
    payload = GProfilerBackend().build_payload(["7157"], "hsapiens", "ALL", "ENTREZID")

    assert payload["sources"] == ["GO:BP", "GO:MF", "GO:CC"]
    assert payload["numeric_ns"] == "ENTREZGENE_ACC"


def test_gprofiler_payload_unknown_ontology():
    """Test that an unknown ontology raises EnrichmentError."""
    with pytest.raises(EnrichmentError, match="Unknown ontology"):
        GProfilerBackend().build_payload(["TP53"], "hsapiens", "XX", "SYMBOL")


def test_gprofiler_parses_result():
    """Test conversion of the g:Profiler response into the enrichment schema."""
    backend = GProfilerBackend()

    with patch.object(backend, "_post", return_value=GPROFILER_RESPONSE) as mock_post:
        result = backend.enrich(
            ["TP53", "BRCA1", "TP53", "EGFR", "MYC"], annotation_db="hsapiens"
        )

    # Duplicates removed before submission
    assert mock_post.call_args[0][0]["query"] == ["TP53", "BRCA1", "EGFR", "MYC"]
    # Most significant first
    assert result["term_id"].to_list() == ["GO:0008152", "GO:0006955"]
    assert result["gene_ratio"].to_list() == pytest.approx([0.75, 0.5])
    assert result["category"].to_list() == ["GO:BP", "GO:BP"]


def test_gprofiler_empty_result():
    """Test that a response without terms gives an empty table."""
    backend = GProfilerBackend()

    with patch.object(backend, "_post", return_value={"result": []}):
        result = backend.enrich(["TP53"], annotation_db="hsapiens")

    assert result.height == 0
    assert result.columns == list(ENRICHMENT_SCHEMA)


def test_gprofiler_http_error():
    """Test that HTTP failures become EnrichmentError."""
    backend = GProfilerBackend()

    with patch.object(backend, "_post", side_effect=httpx.ConnectError("offline")):
        with pytest.raises(EnrichmentError, match="request failed"):
            backend.enrich(["TP53"], annotation_db="hsapiens")


def test_gprofiler_malformed_response():
    """Test that a body without a result list becomes EnrichmentError."""
    backend = GProfilerBackend()

    with patch.object(backend, "_post", return_value={"message": "bad organism"}):
        with pytest.raises(EnrichmentError, match="result"):
            backend.enrich(["TP53"], annotation_db="nonsense")


# get_backend


def test_get_backend_none():
    """Test that backend 'none' disables enrichment."""
    assert get_backend(EnrichmentConfig(backend="none")) is None


def test_get_backend_gmt(gmt_file):
    """Test building the offline backend."""
    backend = get_backend(
        EnrichmentConfig(backend="gmt", gmt_path=gmt_file, significance_threshold=0.1)
    )

    assert isinstance(backend, GmtBackend)
    assert backend.significance_threshold == 0.1


def test_get_backend_gprofiler_uses_api_settings():
    """Test that the g:Profiler backend takes timeout and retries from APIConfig."""
    backend = get_backend(
        EnrichmentConfig(),
        APIConfig(timeout_seconds=12, max_retries=2),
    )

    assert isinstance(backend, GProfilerBackend)
    assert backend.timeout == 12.0
    assert backend.max_retries == 2
