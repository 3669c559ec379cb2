"""Shared fixtures: reference files, esearch responses and a config file."""

from pathlib import Path
from unittest.mock import Mock
from urllib.parse import parse_qs, urlsplit

import pytest


def esearch_xml(count: int, ids: list[str]) -> bytes:
    """Build an esearch XML document like the one NCBI returns."""
    id_elements = "".join(f"<Id>{record_id}</Id>" for record_id in ids)
    return (
        '<?xml version="1.0" encoding="UTF-8" ?>\n'
        '<!DOCTYPE eSearchResult PUBLIC "-//NLM//DTD esearch 20060628//EN" '
        '"https://eutils.ncbi.nlm.nih.gov/eutils/dtd/20060628/esearch.dtd">\n'
        f"<eSearchResult><Count>{count}</Count><RetMax>{len(ids)}</RetMax>"
        f"<RetStart>0</RetStart><IdList>{id_elements}</IdList>"
        "<TranslationSet/><QueryTranslation>term</QueryTranslation>"
        "</eSearchResult>"
    ).encode()


class FakeESearchClient:
    """Stands in for CachedAPIClient, answering esearch URLs from a fixed ID list."""

    def __init__(self, ids: list[str], count: int | None = None):
        self.ids = list(ids)
        self.count = len(self.ids) if count is None else count
        self.urls: list[str] = []

    def get(self, url: str):
        self.urls.append(url)
        query = parse_qs(urlsplit(url).query)
        retmax = int(query["retmax"][0])
        retstart = int(query.get("retstart", ["0"])[0])
        response = Mock()
        response.status_code = 200
        response.content = esearch_xml(self.count, self.ids[retstart:retstart + retmax])
        return response


MAPPING_TSV = (
    "#tax_id\tGeneID\tPubMed_ID\n"
    "9606\t1\t100\n"
    "9606\t1\t101\n"
    "9606\t1\t100\n"
    "9606\t2\t100\n"
    "9606\t3\t102\n"
    "10090\t1\t100\n"
    "9606\t999\t103\n"
)

CROSSREF_CSV = (
    "GeneID,Symbol,description\n"
    "1,A1BG,alpha-1-B glycoprotein\n"
    "2,A2M,alpha-2-macroglobulin\n"
    "3,NAT1,N-acetyltransferase 1\n"
)

GMT_LIBRARY = (
    "GO:0000001\tglycoprotein signalling\tA1BG\tA2M\tNAT1\n"
    "GO:0000002\tunrelated process\t"
    + "\t".join(f"GENE{i}" for i in range(17))
    + "\n"
)


@pytest.fixture
def mapping_file(tmp_path) -> Path:
    path = tmp_path / "gene2pubmed"
    path.write_text(MAPPING_TSV)
    return path


@pytest.fixture
def crossref_file(tmp_path) -> Path:
    path = tmp_path / "gene_symbols.csv"
    path.write_text(CROSSREF_CSV)
    return path


@pytest.fixture
def gmt_file(tmp_path) -> Path:
    path = tmp_path / "library.gmt"
    path.write_text(GMT_LIBRARY)
    return path


@pytest.fixture
def config_file(tmp_path, mapping_file, crossref_file, gmt_file) -> Path:
    """Minimal config YAML pointing at the fixture reference files."""
    path = tmp_path / "test_config.yaml"
    path.write_text(f"""
output_dir: {tmp_path / "results"}
cache_dir: {tmp_path / "cache"}

api:
  rate_limit_per_second: 100
  max_retries: 1
  cache_ttl_seconds: 3600
  timeout_seconds: 5
  cache_enabled: false

mapping:
  path: {mapping_file}
  delimiter: "\\t"
  organism_code: 9606

crossref:
  path: {crossref_file}
  delimiter: ","

report:
  top_n: 9
  enrichment_top_n: 100
  dpi: 60

enrichment:
  backend: gmt
  gmt_path: {gmt_file}
""")
    return path
