"""
Game Routes - public catalogue reads

Listing and single-game reads are served from the cache when possible; the
cached JSON body is returned as-is so a hit is byte-identical to the miss
that stored it.
"""

from fastapi import APIRouter, Depends, Path, Query, Response
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.schemas.game import GameResponse
from app.schemas.validation import SearchQuerySchema
from app.services.game_service import GameService
from app.services.recommendation_service import RecommendationService
from app.stores.context import StoreContext
from app.utils.dependencies import get_stores

router = APIRouter(prefix="/api/games", tags=["Games"])


def _json(payload: str) -> Response:
    return Response(content=payload, media_type="application/json")


@router.get("", response_model=List[GameResponse])
def list_games(
    skip_cache: Optional[str] = Query(None, alias="skipCache", description="'true' bypasses the cache"),
    db: Session = Depends(get_db),
    stores: StoreContext = Depends(get_stores)
):
    """All games with average rating and rating count, newest first"""
    payload = GameService.list_games_json(db, stores.cache, skip_cache == "true")
    return _json(payload)


@router.get("/search/{query}", response_model=List[GameResponse])
def search_games(query: str, db: Session = Depends(get_db)):
    """Search games by title, description or genre"""
    params = SearchQuerySchema(query=query)
    return GameService.search_games(db, params.query)


@router.get("/{game_id}", response_model=GameResponse)
def get_game(
    game_id: int = Path(..., description="Game ID"),
    db: Session = Depends(get_db),
    stores: StoreContext = Depends(get_stores)
):
    return _json(GameService.get_game_json(db, stores.cache, game_id))


@router.get("/{game_id}/recommendations", response_model=List[GameResponse])
def get_recommendations(
    game_id: int = Path(..., description="Game ID"),
    db: Session = Depends(get_db),
    stores: StoreContext = Depends(get_stores)
):
    """
    Up to 5 games related to this one through co-ratings

    Returns an empty list when nothing is related yet or the graph store
    is unavailable.
    """
    return RecommendationService.related_games(db, stores.graph, game_id)
