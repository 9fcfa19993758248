"""Pydantic schemas for rank API responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class RankTierResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    season: int
    level: int
    name: str
    min_stars: int
    max_stars: int
    required_check_ins: int


class RankListResponse(BaseModel):
    season: int
    ranks: list[RankTierResponse]


class UserRankStatusResponse(BaseModel):
    season: int
    rank_id: int
    rank_level: int
    rank_name: str
    stars: int
    max_stars: int
    check_in_count: int
    required_check_ins: int
    next_star_at: int | None = None
    next_rank_name: str | None = None


class RankLeaderboardEntry(BaseModel):
    position: int
    user_id: int
    username: str
    nickname: str | None = None
    rank_level: int
    rank_name: str
    stars: int
    check_in_count: int


class RankLeaderboardResponse(BaseModel):
    season: int
    entries: list[RankLeaderboardEntry]
