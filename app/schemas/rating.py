"""
Rating Schemas - Pydantic models for rating request/response validation
"""

from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional


class RatingCreate(BaseModel):
    """Schema for creating/updating a rating (upsert on game + user)"""
    game_id: int = Field(..., alias="gameId", description="Game ID", gt=0)
    rating: int = Field(..., description="Rating value (1-5)", ge=1, le=5)

    model_config = ConfigDict(populate_by_name=True)


class RatingResponse(BaseModel):
    """Schema for rating response (matches database model)"""
    id: int
    game_id: int
    user_id: int
    rating: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RatingWithUserResponse(RatingResponse):
    """Rating plus the rater's display name, for a game's public rating list"""
    user_name: str
    user_email: str


class UserRatingForGame(BaseModel):
    """
    Current user's rating for one game
    rating is null when the user hasn't rated it yet
    """
    rating: Optional[RatingResponse] = None
