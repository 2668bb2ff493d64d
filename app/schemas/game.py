"""
Game Schemas - request validation for admin writes and the catalogue payload
Wire names are camelCase (releaseDate, imageUrl, ...) to match the web client
"""
from pydantic import BaseModel, Field, field_validator, ConfigDict, TypeAdapter
from datetime import date, datetime
from typing import Optional, List, Any
from enum import Enum

from app.utils.media import (
    MAX_INLINE_IMAGE_LENGTH,
    is_http_url,
    is_inline_image,
    to_embed_url,
)


class GameMode(str, Enum):
    """Supported play modes"""
    SOLO = "solo"
    MULTIPLAYER = "multiplayer"
    BOTH = "both"


def blank_to_none(value: Any) -> Any:
    """Treat empty / whitespace-only strings from form inputs as 'not set'"""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class GameFields(BaseModel):
    """Optional fields shared by create and update"""
    description: Optional[str] = None
    genre: Optional[str] = Field(None, max_length=100)
    platform: Optional[str] = Field(None, max_length=100)
    release_date: Optional[date] = Field(None, alias="releaseDate", description="ISO-8601 date")
    image_url: Optional[str] = Field(None, alias="imageUrl", description="http(s) URL or data: URI")
    trailer_url: Optional[str] = Field(None, alias="trailerUrl", max_length=500)

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    @field_validator('description', 'genre', 'platform', 'release_date', 'image_url', 'trailer_url', mode='before')
    @classmethod
    def empty_as_null(cls, v):
        return blank_to_none(v)

    @field_validator('image_url')
    @classmethod
    def validate_image(cls, v):
        if v is None:
            return v
        if is_inline_image(v):
            if len(v) > MAX_INLINE_IMAGE_LENGTH:
                raise ValueError('Image too large (max 5MB)')
            return v
        if not is_http_url(v):
            raise ValueError('Invalid URL')
        return v

    @field_validator('trailer_url')
    @classmethod
    def normalize_trailer(cls, v):
        if v is None:
            return v
        v = to_embed_url(v)
        if not is_http_url(v):
            raise ValueError('Invalid URL')
        return v


class GameCreate(GameFields):
    """Schema for creating a game (admin only)"""
    title: str = Field(..., min_length=1, max_length=255)
    game_mode: GameMode = Field(GameMode.SOLO.value, alias="gameMode")

    @field_validator('title', mode='before')
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator('game_mode', mode='before')
    @classmethod
    def default_mode(cls, v):
        return v or GameMode.SOLO.value


class GameUpdate(GameFields):
    """
    Schema for partial updates - only fields present in the request body are applied
    """
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    game_mode: Optional[GameMode] = Field(None, alias="gameMode")

    @field_validator('title', mode='before')
    @classmethod
    def strip_title(cls, v):
        if v is None:
            raise ValueError('Title cannot be empty')
        return v.strip() if isinstance(v, str) else v

    def changes(self) -> dict:
        """Field name -> value for every field the client actually sent"""
        data = {name: getattr(self, name) for name in self.model_fields_set}
        if 'game_mode' in data and data['game_mode'] is None:
            data['game_mode'] = GameMode.SOLO.value
        return data


class GameResponse(BaseModel):
    """Catalogue payload - a game plus its computed rating aggregate"""
    id: int
    title: str
    description: Optional[str] = None
    genre: Optional[str] = None
    platform: Optional[str] = None
    release_date: Optional[date] = None
    image_url: Optional[str] = None
    trailer_url: Optional[str] = None
    game_mode: str
    created_by: Optional[int] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    average_rating: float = Field(0.0, description="Mean of current ratings, 0 when unrated")
    rating_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    message: str


GameListAdapter = TypeAdapter(List[GameResponse])
