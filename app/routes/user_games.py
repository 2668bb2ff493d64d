from fastapi import APIRouter, Depends

from app.utils.dependencies import get_current_user, get_stores
from app.models.user import User
from app.schemas.user_games import UserGameChange, UserGameListResponse
from app.services.user_games_service import UserGamesService
from app.stores.context import StoreContext

router = APIRouter(prefix="/api/user-games", tags=["My Games"])


@router.get("/my-list", response_model=UserGameListResponse)
def get_my_list(
    current_user: User = Depends(get_current_user),
    stores: StoreContext = Depends(get_stores)
):
    return {"games": UserGamesService.get_list(stores.documents, current_user.id)}


@router.post("/add", response_model=UserGameListResponse)
def add_to_list(
    change: UserGameChange,
    current_user: User = Depends(get_current_user),
    stores: StoreContext = Depends(get_stores)
):
    """Add a game to your list; already-listed games are not duplicated"""
    return {"games": UserGamesService.add_game(stores.documents, current_user.id, change.game_id)}


@router.post("/remove", response_model=UserGameListResponse)
def remove_from_list(
    change: UserGameChange,
    current_user: User = Depends(get_current_user),
    stores: StoreContext = Depends(get_stores)
):
    return {"games": UserGamesService.remove_game(stores.documents, current_user.id, change.game_id)}
