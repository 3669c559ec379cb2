"""Exception and warning types raised by pipeline stages."""


class PipelineError(Exception):
    """Base class for errors that abort a pipeline run."""


class TransportError(PipelineError):
    """Network, DNS, timeout or non-2xx failure talking to a remote service."""


class ResponseFormatError(PipelineError):
    """Remote service answered with an unparseable or unexpected document."""


class FileLoadError(PipelineError):
    """Reference table is missing, unreadable, or lacks an expected column."""


class JoinIntegrityError(PipelineError):
    """Too few mapping rows matched the cross-reference table.

    Usually means the two tables disagree on the entity identifier format.
    """


class EnrichmentError(PipelineError):
    """Enrichment backend failed or returned an unusable result."""


class EmptyResultWarning(UserWarning):
    """Search matched zero records. The run continues with empty outputs."""
