"""
Pydantic models for the usage counters.
"""

from pydantic import BaseModel, Field


class UsageStats(BaseModel):
    cvs_sent: int = Field(default=0, ge=0)
    emails_sent: int = Field(default=0, ge=0)


class ResetStatsRequest(BaseModel):
    code: str


class ResetStatsResponse(BaseModel):
    success: bool
    stats: UsageStats
