"""
Rating Routes - API endpoints for the game rating system
One rating per user per game; submitting again overwrites the value
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.utils.dependencies import get_current_user, get_stores
from app.models.user import User
from app.schemas.game import MessageResponse
from app.schemas.rating import (
    RatingCreate,
    RatingResponse,
    RatingWithUserResponse,
    UserRatingForGame
)
from app.services.rating_service import RatingService
from app.stores.context import StoreContext

router = APIRouter(prefix="/api/ratings", tags=["Ratings"])


# ==================== RATING CRUD ENDPOINTS ====================

@router.post("", response_model=RatingResponse)
def add_or_update_rating(
    rating_data: RatingCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    stores: StoreContext = Depends(get_stores)
):
    """
    Add a new rating or update existing one for a game

    - **gameId**: Game ID (required)
    - **rating**: Rating value from 1 to 5 (required)

    If user has already rated this game, the rating will be updated.
    Otherwise, a new rating will be created.
    """
    return RatingService.add_or_update_rating(db, stores.projections, current_user.id, rating_data)


@router.get("/game/{game_id}", response_model=List[RatingWithUserResponse])
def get_game_ratings(
    game_id: int = Path(..., description="Game ID"),
    db: Session = Depends(get_db)
):
    """All ratings for a game, most recently updated first"""
    return RatingService.get_game_ratings(db, game_id)


@router.get("/game/{game_id}/user", response_model=UserRatingForGame)
def get_my_rating_for_game(
    game_id: int = Path(..., description="Game ID"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get current user's rating for a specific game

    Returns {"rating": null} if the user hasn't rated it yet.
    """
    rating = RatingService.get_user_rating_for_game(db, current_user.id, game_id)
    return {"rating": rating}


@router.delete("/{rating_id}", response_model=MessageResponse)
def delete_rating(
    rating_id: int = Path(..., description="Rating ID"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    stores: StoreContext = Depends(get_stores)
):
    """Delete one of your own ratings"""
    RatingService.delete_rating(db, stores.projections, current_user.id, rating_id)
    return {"message": "Rating deleted"}
