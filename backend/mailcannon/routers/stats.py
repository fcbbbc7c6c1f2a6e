"""
Usage counter endpoints.

  GET  /api/stats         → UsageStats
  POST /api/stats/reset   {code} → ResetStatsResponse (403 on wrong code)
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from mailcannon.dependencies import get_stats_store
from mailcannon.models.stats import ResetStatsRequest, ResetStatsResponse, UsageStats
from mailcannon.services.stats_store import StatsStore

router = APIRouter()


@router.get("", response_model=UsageStats)
async def get_stats(stats: StatsStore = Depends(get_stats_store)):
    return stats.stats


@router.post("/reset", response_model=ResetStatsResponse)
def reset_stats(
    body: ResetStatsRequest,
    stats: StatsStore = Depends(get_stats_store),
):
    """Zero both counters when the PIN matches; counters are untouched otherwise."""
    success = stats.reset_stats(body.code)
    response = ResetStatsResponse(success=success, stats=stats.stats)
    if not success:
        return JSONResponse(status_code=403, content=response.model_dump())
    return response
