"""
MAST / NASA Exoplanet Archive client.

Every lookup goes through the shared TTL cache: cache hit -> return, miss ->
query upstream -> store -> return. When the upstream call fails the client
answers with deterministic synthetic data (``"source": "synthetic"``), which
is not cached so the next request retries upstream.
"""

import logging
import random
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from ..core.cache import TTLCache, make_key
from ..core.errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_MAST_URL = "https://mast.stsci.edu/api/v0"
DEFAULT_ARCHIVE_URL = "https://exoplanetarchive.ipac.caltech.edu/cgi-bin/nstedAPI/nph-nstedAPI"
LIGHT_CURVE_POINTS = 2000
CADENCE_DAYS = 0.02  # ~30 min

FALLBACK_EXOPLANETS: List[Dict[str, Any]] = [
    {"pl_name": "TRAPPIST-1 e", "hostname": "TRAPPIST-1", "pl_orbper": 6.1, "pl_rade": 0.92, "disc_year": 2017, "discoverymethod": "Transit"},
    {"pl_name": "Kepler-442 b", "hostname": "Kepler-442", "pl_orbper": 112.3, "pl_rade": 1.34, "disc_year": 2015, "discoverymethod": "Transit"},
    {"pl_name": "LHS 1140 b", "hostname": "LHS 1140", "pl_orbper": 24.7, "pl_rade": 1.43, "disc_year": 2017, "discoverymethod": "Transit"},
    {"pl_name": "TOI-700 d", "hostname": "TOI-700", "pl_orbper": 37.4, "pl_rade": 1.19, "disc_year": 2020, "discoverymethod": "Transit"},
    {"pl_name": "K2-18 b", "hostname": "K2-18", "pl_orbper": 33.0, "pl_rade": 2.61, "disc_year": 2015, "discoverymethod": "Transit"},
]


def normalize_tic_id(tic_id: Any) -> str:
    """'TIC 123', 'tic123' and 123 all become '123'."""
    digits = "".join(ch for ch in str(tic_id) if ch.isdigit())
    return digits or "0"


def fallback_tic_data(tic_id: Any) -> Dict[str, Any]:
    """Plausible stellar parameters derived from the TIC number."""
    tic_number = int(normalize_tic_id(tic_id))
    rng = random.Random(tic_number)
    return {
        "ID": tic_number,
        "ra": tic_number % 360,
        "dec": (tic_number % 180) - 90,
        "Tmag": round(8 + rng.random() * 6, 3),
        "Teff": round(4000 + rng.random() * 4000, 1),
        "rad": round(0.5 + rng.random() * 2, 3),
        "mass": round(0.5 + rng.random() * 1.5, 3),
        "distance": round(50 + rng.random() * 500, 2),
        "source": "synthetic",
    }


def fallback_search_results(ra: float, dec: float, count: int = 5) -> List[Dict[str, Any]]:
    base_id = int(ra * 1_000_000 + abs(dec) * 10_000)
    rng = random.Random(base_id)
    return [
        {
            "ID": base_id + i,
            "ra": round(ra + (rng.random() - 0.5) * 0.5, 6),
            "dec": round(dec + (rng.random() - 0.5) * 0.5, 6),
            "Tmag": round(9 + rng.random() * 4, 3),
            "distance": (i + 1) * 0.5,
            "source": "synthetic",
        }
        for i in range(count)
    ]


def synthetic_light_curve(tic_id: Any, num_points: int = LIGHT_CURVE_POINTS) -> Dict[str, Any]:
    """
    Box-shaped transit on white noise, seeded from the TIC number.
    Targets whose last digit is above 3 get a planet.
    """
    seed = int(normalize_tic_id(tic_id)) or 12345
    rng = random.Random(seed)
    has_planet = (seed % 10) > 3
    period = 2 + (seed % 100) / 10
    depth = 0.005 + (seed % 50) / 5000 if has_planet else 0.0

    time_values, flux, error = [], [], []
    for i in range(num_points):
        t = i * CADENCE_DAYS
        f = 1.0
        if has_planet:
            phase = (t % period) / period
            if 0.45 < phase < 0.55:
                f -= depth * (1 - abs(phase - 0.5) / 0.05)
        f += (rng.random() - 0.5) * 0.002
        time_values.append(round(t, 4))
        flux.append(round(f, 6))
        error.append(0.0007)

    return {
        "time": time_values,
        "flux": flux,
        "error": error,
        "metadata": {
            "tic_id": normalize_tic_id(tic_id),
            "has_planet": has_planet,
            "period": period if has_planet else None,
            "depth": depth if has_planet else None,
            "num_points": num_points,
            "source": "synthetic",
        },
    }


class MASTClient:
    """
    Cached access to MAST catalogs and the NASA Exoplanet Archive.
    """

    def __init__(
        self,
        cache: TTLCache,
        base_url: str = DEFAULT_MAST_URL,
        archive_url: str = DEFAULT_ARCHIVE_URL,
        timeout: float = 20.0,
    ):
        """
        Args:
            cache: Shared response cache
            base_url: MAST API base URL
            archive_url: Exoplanet Archive TAP-style endpoint
            timeout: Request timeout in seconds
        """
        self.cache = cache
        self.base_url = base_url
        self.archive_url = archive_url
        self.timeout = timeout
        self.connected = False
        self.last_ping_ms: Optional[float] = None

    async def _mast_query(self, service: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """POST a service request to MAST's invoke endpoint."""
        body = {"service": service, "params": params, "format": "json", "pagesize": 50}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    f"{self.base_url}/invoke",
                    json=body,
                    headers={"Accept": "application/json"},
                )
                resp.raise_for_status()
                return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamUnavailableError("MAST", str(e)) from e

    async def _archive_query(self, params: Dict[str, Any]) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(self.archive_url, params=params)
                resp.raise_for_status()
                return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise UpstreamUnavailableError("Exoplanet Archive", str(e)) from e

    async def ping(self) -> float:
        """
        Check that the archive answers.

        Returns:
            Round-trip latency in milliseconds

        Raises:
            UpstreamUnavailableError: if the archive is unreachable
        """
        start = time.perf_counter()
        try:
            await self._archive_query({"table": "cumulative", "select": "count(*)", "format": "json"})
        except UpstreamUnavailableError:
            self.connected = False
            raise
        self.connected = True
        self.last_ping_ms = (time.perf_counter() - start) * 1000
        return self.last_ping_ms

    def status(self) -> Dict[str, Any]:
        return {
            "connected": self.connected,
            "latency": f"{round(self.last_ping_ms)}ms" if self.last_ping_ms is not None else "N/A",
            "last_check": datetime.now(timezone.utc).isoformat(),
            "cached_entries": len(self.cache),
        }

    async def search_by_tic(self, tic_id: Any) -> Dict[str, Any]:
        """Stellar parameters for a TIC target."""
        tic = normalize_tic_id(tic_id)

        async def fetch() -> Dict[str, Any]:
            response = await self._mast_query(
                "Mast.Catalogs.Filtered.Tic",
                {"columns": "*", "filters": [{"paramName": "ID", "values": [tic]}]},
            )
            rows = response.get("data") or []
            return rows[0] if rows else fallback_tic_data(tic)

        try:
            return await self.cache.get_or_fetch(make_key("tic", tic), fetch)
        except UpstreamUnavailableError as e:
            logger.warning(f"TIC search failed, using fallback: {e}")
            return fallback_tic_data(tic)

    async def search_by_coordinates(self, ra: float, dec: float, radius: float = 0.1) -> List[Dict[str, Any]]:
        """TIC sources in a cone around (ra, dec), radius in degrees."""
        async def fetch() -> List[Dict[str, Any]]:
            response = await self._mast_query(
                "Mast.Catalogs.Tic.Cone",
                {"ra": float(ra), "dec": float(dec), "radius": float(radius)},
            )
            return response.get("data") or []

        try:
            return await self.cache.get_or_fetch(make_key("coord", ra, dec, radius), fetch)
        except UpstreamUnavailableError as e:
            logger.warning(f"Coordinate search failed, using fallback: {e}")
            return fallback_search_results(ra, dec)

    async def get_confirmed_exoplanets(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Most recently discovered confirmed planets."""
        async def fetch() -> List[Dict[str, Any]]:
            return await self._archive_query({
                "table": "ps",
                "select": "pl_name,hostname,pl_orbper,pl_rade,pl_bmasse,disc_year,discoverymethod",
                "where": "default_flag=1",
                "order": "disc_year desc",
                "format": "json",
                "top": limit,
            })

        try:
            return await self.cache.get_or_fetch(make_key("confirmed", limit), fetch)
        except UpstreamUnavailableError as e:
            logger.warning(f"Exoplanet Archive query failed, using fallback: {e}")
            return [dict(planet) for planet in FALLBACK_EXOPLANETS[:limit]]

    async def get_light_curve(self, tic_id: Any, sector: Optional[int] = None) -> Dict[str, Any]:
        """
        Light curve for a TESS target. Flux values are synthetic; when MAST
        lists time-series observations their count is attached.
        """
        tic = normalize_tic_id(tic_id)

        async def fetch() -> Dict[str, Any]:
            filters = [
                {"paramName": "target_name", "values": [tic]},
                {"paramName": "project", "values": ["TESS"]},
                {"paramName": "dataproduct_type", "values": ["timeseries"]},
            ]
            if sector is not None:
                filters.append({"paramName": "sequence_number", "values": [sector]})
            response = await self._mast_query("Mast.Caom.Filtered", {"columns": "*", "filters": filters})

            curve = synthetic_light_curve(tic)
            observations = response.get("data") or []
            curve["metadata"]["observations"] = len(observations)
            curve["metadata"]["sector"] = sector
            if observations:
                curve["metadata"]["source"] = "synthetic_from_mast_metadata"
            return curve

        try:
            return await self.cache.get_or_fetch(make_key("lc", tic, sector if sector is not None else "all"), fetch)
        except UpstreamUnavailableError as e:
            logger.warning(f"Light curve fetch failed, using fallback: {e}")
            curve = synthetic_light_curve(tic)
            curve["metadata"]["sector"] = sector
            return curve
