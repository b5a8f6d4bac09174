"""
Data API endpoints - cached lookups against MAST and the Exoplanet Archive.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query

from ..core.errors import UpstreamUnavailableError
from ..tools.mast_client import MASTClient
from .deps import get_mast_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/data", tags=["data"])


@router.get("/tic/{tic_id}")
async def get_tic(tic_id: str, mast: MASTClient = Depends(get_mast_client)):
    """Stellar parameters for a TIC target."""
    return await mast.search_by_tic(tic_id)


@router.get("/cone")
async def cone_search(
    ra: float = Query(..., ge=0, lt=360),
    dec: float = Query(..., ge=-90, le=90),
    radius: float = Query(0.1, gt=0, le=1),
    mast: MASTClient = Depends(get_mast_client),
):
    """TIC sources around a sky position (degrees)."""
    return await mast.search_by_coordinates(ra, dec, radius)


@router.get("/exoplanets")
async def confirmed_exoplanets(
    limit: int = Query(100, ge=1, le=1000),
    mast: MASTClient = Depends(get_mast_client),
):
    return await mast.get_confirmed_exoplanets(limit)


@router.get("/lightcurve/{tic_id}")
async def light_curve(
    tic_id: str,
    sector: Optional[int] = Query(None, ge=1),
    mast: MASTClient = Depends(get_mast_client),
):
    return await mast.get_light_curve(tic_id, sector)


@router.get("/status")
async def data_status(mast: MASTClient = Depends(get_mast_client)):
    """Ping the archive and report connectivity."""
    try:
        await mast.ping()
    except UpstreamUnavailableError as e:
        logger.warning(f"Data provider ping failed: {e}")
    return mast.status()
