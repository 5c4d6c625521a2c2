from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class RecommendationRequest(BaseModel):
    games: List[str] = Field(
        ...,
        min_length=3,
        max_length=3,
        description="Exactly three liked game names, as stored in the catalog",
        json_schema_extra={"example": ["Portal 2", "Terraria", "Hades"]},
    )


class RecommendationOut(BaseModel):
    steam_appid: str
    name: str
    similarity_score: float = Field(..., ge=0.0, le=1.0)
    genres: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    platforms: List[str] = Field(default_factory=list)


class SeedGameOut(BaseModel):
    steam_appid: str
    name: str
    genres: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)


class RecommendationResponseOut(BaseModel):
    recommendations: List[RecommendationOut]
    user_games: List[SeedGameOut]
