from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional

from app.schemas.validation import CommentSchema


class CommentCreate(CommentSchema):
    """Schema for posting a comment on a game"""
    game_id: int = Field(..., alias="gameId", gt=0)

    model_config = ConfigDict(populate_by_name=True)


class CommentUpdate(CommentSchema):
    """Schema for editing a comment - only the content can change"""


class CommentResponse(BaseModel):
    """Comment document plus the author's display fields from the users table"""
    id: str
    game_id: int
    user_id: int
    content: str
    created_at: datetime
    updated_at: datetime
    user_name: Optional[str] = None
    user_email: Optional[str] = None
