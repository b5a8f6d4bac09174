"""
Unit tests for the MAST / Exoplanet Archive client.
Upstream calls are mocked; the cache is real.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from larun.core.cache import TTLCache
from larun.core.errors import UpstreamUnavailableError
from larun.tools.mast_client import (
    FALLBACK_EXOPLANETS, MASTClient,
    fallback_tic_data, normalize_tic_id, synthetic_light_curve,
)


@pytest.fixture
def client():
    return MASTClient(TTLCache(ttl=300), base_url="https://mast.test/api/v0", archive_url="https://archive.test/tap")


def mock_http(mock_client, payload=None, error=None):
    """Wire a patched httpx.AsyncClient to return ``payload`` or raise ``error``."""
    mock_response = MagicMock()
    mock_response.json.return_value = payload
    mock_response.raise_for_status = MagicMock()

    mock_instance = AsyncMock()
    if error is not None:
        mock_instance.post.side_effect = error
        mock_instance.get.side_effect = error
    else:
        mock_instance.post.return_value = mock_response
        mock_instance.get.return_value = mock_response
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    mock_client.return_value = mock_instance
    return mock_instance


class TestHelpers:

    def test_normalize_tic_id(self):
        assert normalize_tic_id("TIC 307210830") == "307210830"
        assert normalize_tic_id(42) == "42"
        assert normalize_tic_id("none") == "0"

    def test_fallback_tic_data_is_deterministic(self):
        assert fallback_tic_data("TIC 123") == fallback_tic_data(123)
        assert fallback_tic_data(123)["source"] == "synthetic"

    def test_synthetic_light_curve(self):
        curve = synthetic_light_curve(123457)
        assert len(curve["time"]) == len(curve["flux"]) == 2000
        assert curve["metadata"]["has_planet"] is True
        assert min(curve["flux"]) < 0.995

    def test_synthetic_light_curve_without_planet(self):
        curve = synthetic_light_curve(123450)
        assert curve["metadata"]["has_planet"] is False
        assert curve["metadata"]["period"] is None


class TestTicSearch:

    @pytest.mark.asyncio
    async def test_result_is_cached(self, client):
        with patch("httpx.AsyncClient") as mock_client:
            instance = mock_http(mock_client, {"data": [{"ID": 123, "Teff": 5700}]})

            first = await client.search_by_tic("TIC 123")
            second = await client.search_by_tic(123)

            assert first == {"ID": 123, "Teff": 5700}
            assert second == first
            assert instance.post.await_count == 1
            body = instance.post.await_args.kwargs["json"]
            assert body["service"] == "Mast.Catalogs.Filtered.Tic"

    @pytest.mark.asyncio
    async def test_upstream_failure_uses_fallback_without_caching(self, client):
        with patch("httpx.AsyncClient") as mock_client:
            instance = mock_http(mock_client, error=httpx.ConnectError("down"))

            result = await client.search_by_tic(123)
            assert result == fallback_tic_data(123)
            assert len(client.cache) == 0

            await client.search_by_tic(123)
            assert instance.post.await_count == 2

    @pytest.mark.asyncio
    async def test_unknown_target_falls_back(self, client):
        with patch("httpx.AsyncClient") as mock_client:
            mock_http(mock_client, {"data": []})
            result = await client.search_by_tic(999)
            assert result["source"] == "synthetic"


class TestOtherLookups:

    @pytest.mark.asyncio
    async def test_cone_search(self, client):
        with patch("httpx.AsyncClient") as mock_client:
            mock_http(mock_client, {"data": [{"ID": 1}, {"ID": 2}]})
            assert await client.search_by_coordinates(10.0, -5.0, 0.2) == [{"ID": 1}, {"ID": 2}]

    @pytest.mark.asyncio
    async def test_cone_search_fallback(self, client):
        with patch("httpx.AsyncClient") as mock_client:
            mock_http(mock_client, error=httpx.ConnectError("down"))
            results = await client.search_by_coordinates(10.0, -5.0)
            assert len(results) == 5
            assert all(r["source"] == "synthetic" for r in results)

    @pytest.mark.asyncio
    async def test_confirmed_exoplanets(self, client):
        planets = [{"pl_name": "TOI-700 d"}]
        with patch("httpx.AsyncClient") as mock_client:
            instance = mock_http(mock_client, planets)
            assert await client.get_confirmed_exoplanets(limit=1) == planets
            assert instance.get.await_args.kwargs["params"]["top"] == 1

    @pytest.mark.asyncio
    async def test_confirmed_exoplanets_fallback(self, client):
        with patch("httpx.AsyncClient") as mock_client:
            mock_http(mock_client, error=httpx.ConnectError("down"))
            result = await client.get_confirmed_exoplanets(limit=2)
            assert result == FALLBACK_EXOPLANETS[:2]

    @pytest.mark.asyncio
    async def test_light_curve_cached_per_sector(self, client):
        with patch("httpx.AsyncClient") as mock_client:
            instance = mock_http(mock_client, {"data": [{"obsid": "1"}]})

            curve = await client.get_light_curve(123457, sector=3)
            await client.get_light_curve(123457, sector=3)
            await client.get_light_curve(123457)

            assert curve["metadata"]["observations"] == 1
            assert curve["metadata"]["sector"] == 3
            assert curve["metadata"]["source"] == "synthetic_from_mast_metadata"
            assert instance.post.await_count == 2


class TestStatus:

    @pytest.mark.asyncio
    async def test_ping_success(self, client):
        with patch("httpx.AsyncClient") as mock_client:
            mock_http(mock_client, [{"count": 5000}])
            latency = await client.ping()

        assert latency >= 0
        status = client.status()
        assert status["connected"] is True
        assert status["latency"].endswith("ms")

    @pytest.mark.asyncio
    async def test_ping_failure(self, client):
        with patch("httpx.AsyncClient") as mock_client:
            mock_http(mock_client, error=httpx.ConnectError("down"))
            with pytest.raises(UpstreamUnavailableError):
                await client.ping()

        assert client.status()["connected"] is False
        assert client.status()["latency"] == "N/A"
