"""HTTP clients shared by the remote-facing pipeline stages."""

from pubgene_pipeline.api_clients.base import CachedAPIClient

__all__ = ["CachedAPIClient"]
