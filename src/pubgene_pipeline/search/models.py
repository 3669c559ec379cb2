"""Constants for the PubMed esearch query."""

ESEARCH_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/esearch.fcgi"

# Tool name reported to NCBI alongside the contact email
TOOL_NAME = "pubgene-pipeline"

# Characters left as-is in the encoded term (PubMed field tags, grouping, wildcards)
TERM_SAFE_CHARS = "()[]*:,"

# Characters the esearch term grammar requires to be percent-encoded.
# quote_plus never encodes "-", so it is substituted explicitly.
TERM_ESCAPES = {
    '"': "%22",
    "'": "%27",
    "-": "%2D",
    "/": "%2F",
}

# Element paths inside <eSearchResult>
COUNT_PATH = "./Count"
ID_LIST_PATH = "./IdList/Id"
ERROR_PATH = "./ERROR"

# PubMed rejects retstart > 9998, so only the first 9,999 records of a
# search can be paged out of esearch
PUBMED_MAX_RECORDS = 9999
