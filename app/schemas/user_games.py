from pydantic import BaseModel, Field, ConfigDict
from typing import List


class UserGameChange(BaseModel):
    """Schema for adding/removing a game on the current user's list"""
    game_id: int = Field(..., alias="gameId", gt=0)

    model_config = ConfigDict(populate_by_name=True)


class UserGameListResponse(BaseModel):
    """Game ids bookmarked by the current user"""
    games: List[int] = []
