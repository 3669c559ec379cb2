"""Tests for API client with caching and retry logic."""

from unittest.mock import Mock, patch

import pytest
import requests
import requests_cache
from requests.adapters import BaseAdapter

from pubgene_pipeline.api_clients.base import CachedAPIClient
from pubgene_pipeline.config import load_config, load_config_with_overrides
from pubgene_pipeline.config.schema import PipelineConfig
from pubgene_pipeline.search import fetch_record_ids

from conftest import esearch_xml


def _ok_response(from_cache: bool = False) -> Mock:
    response = Mock()
    response.status_code = 200
    response.from_cache = from_cache
    response.raise_for_status = Mock()
    return response


def test_client_creates_cache_dir(tmp_path):
    """Test that an enabled cache creates its directory and a cached session."""
    cache_dir = tmp_path / "nonexistent_cache"

    assert not cache_dir.exists()

    client = CachedAPIClient(cache_dir=cache_dir, cache_enabled=True)

    assert isinstance(client.session, requests_cache.CachedSession)

    assert cache_dir.exists()
    assert cache_dir.is_dir()


def test_client_without_cache_leaves_disk_alone(tmp_path):
    """Test that the default client uses a plain session and writes nothing."""
    cache_dir = tmp_path / "unused_cache"

    client = CachedAPIClient(cache_dir=cache_dir)

    assert client.cache_enabled is False
    assert not cache_dir.exists()
    assert not isinstance(client.session, requests_cache.CachedSession)


def test_client_from_config(config_file, tmp_path):
    """Test creating client from PipelineConfig."""
    config = load_config(config_file)
    client = CachedAPIClient.from_config(config)

    assert client.rate_limit == 100
    assert client.max_retries == 1
    assert client.timeout == 5
    assert client.cache_enabled is False
    assert client.cache_dir == tmp_path / "cache"


def test_api_key_raises_rate_limit(config_file):
    """Test that an NCBI API key lifts the request rate to 10/s."""
    config = load_config_with_overrides(
        config_file,
        {"api.rate_limit_per_second": 3, "search.api_key": "secret"},
    )

    client = CachedAPIClient.from_config(config)

    assert client.rate_limit == 10


def test_request_uses_timeout(tmp_path):
    """Test that every request carries the configured timeout."""
    client = CachedAPIClient(cache_dir=tmp_path / "cache", rate_limit=100, timeout=7)

    with patch("time.sleep"), patch.object(client.session, "get") as mock_get:
        mock_get.return_value = _ok_response()
        client.get("https://api.example.com/test")

    assert mock_get.call_args.kwargs["timeout"] == 7


def test_rate_limit_respected(tmp_path):
    """Test that rate limiting sleeps between non-cached requests."""
    client = CachedAPIClient(cache_dir=tmp_path / "cache", rate_limit=10)

    with patch("time.sleep") as mock_sleep, patch.object(
        client.session, "get"
    ) as mock_get:
        mock_get.return_value = _ok_response(from_cache=False)

        client.get("https://api.example.com/test")

        mock_sleep.assert_called_once()
        # 10 req/sec = 0.1 seconds between requests
        assert mock_sleep.call_args[0][0] == pytest.approx(0.1)


def test_rate_limit_skipped_for_cached(tmp_path):
    """Test that cached requests don't trigger rate limiting sleep."""
    client = CachedAPIClient(cache_dir=tmp_path / "cache", rate_limit=10)

    with patch("time.sleep") as mock_sleep, patch.object(
        client.session, "get"
    ) as mock_get:
        mock_get.return_value = _ok_response(from_cache=True)

        client.get("https://api.example.com/test")

        mock_sleep.assert_not_called()


def test_http_error_raised_after_retries(tmp_path):
    """Test that a persistent HTTP error propagates once retries run out."""
    client = CachedAPIClient(
        cache_dir=tmp_path / "cache", rate_limit=100, max_retries=1
    )

    failing = Mock()
    failing.status_code = 503
    failing.raise_for_status = Mock(side_effect=requests.HTTPError("503 Server Error"))

    with patch.object(client.session, "get", return_value=failing) as mock_get:
        with pytest.raises(requests.HTTPError):
            client.get("https://api.example.com/test")

    assert mock_get.call_count == 1


def test_connection_error_raised(tmp_path):
    """Test that connection errors propagate unchanged."""
    client = CachedAPIClient(
        cache_dir=tmp_path / "cache", rate_limit=100, max_retries=1
    )

    with patch.object(
        client.session, "get", side_effect=requests.ConnectionError("refused")
    ):
        with pytest.raises(requests.ConnectionError):
            client.get("https://api.example.com/test")



class CountingAdapter(BaseAdapter):
    """Transport adapter that answers every request with one esearch hit."""

    def __init__(self):
        super().__init__()
        self.calls = 0

    def send(self, request, **kwargs):
        self.calls += 1
        response = requests.Response()
        response.status_code = 200
        response._content = esearch_xml(1, ["100"])
        response.url = request.url
        response.request = request
        return response

    def close(self):
        pass


def test_default_config_searches_are_never_served_from_cache(
    tmp_path, mapping_file, crossref_file
):
    """Test that repeated searches with default settings reach the network."""
    config = PipelineConfig(
        output_dir=tmp_path / "results",
        cache_dir=tmp_path / "cache",
        mapping={"path": mapping_file},
        crossref={"path": crossref_file},
    )
    assert config.api.cache_enabled is False

    client = CachedAPIClient.from_config(config)
    adapter = CountingAdapter()
    client.session.mount("https://", adapter)

    with patch("time.sleep"):
        first = fetch_record_ids("usher syndrome", client, config.search)
        second = fetch_record_ids("usher syndrome", client, config.search)

    assert first == second == frozenset({"100"})
    # Count request plus one page request per search
    assert adapter.calls == 4
    assert not (tmp_path / "cache" / "api_cache.sqlite").exists()
