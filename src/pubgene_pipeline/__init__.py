"""pubgene-pipeline: gene mention frequency and enrichment for PubMed search results."""

__version__ = "0.1.0"
