"""FastAPI dependencies shared by the routers."""

from functools import lru_cache

from mailcannon.config import get_stats_path
from mailcannon.services.stats_store import StatsStore


@lru_cache(maxsize=1)
def get_stats_store() -> StatsStore:
    """One store per process, loaded on first use."""
    return StatsStore(get_stats_path())
