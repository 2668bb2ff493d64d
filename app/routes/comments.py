"""
Comment Routes - discussion on game pages
Anyone can read; posting, editing and deleting require a logged-in user
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from app.utils.dependencies import get_current_user, get_stores
from app.models.user import User
from app.schemas.comment import CommentCreate, CommentUpdate, CommentResponse
from app.schemas.game import MessageResponse
from app.services.comment_service import CommentService
from app.stores.context import StoreContext

router = APIRouter(prefix="/api/comments", tags=["Comments"])


@router.get("/game/{game_id}", response_model=List[CommentResponse])
def get_game_comments(
    game_id: int = Path(..., description="Game ID"),
    db: Session = Depends(get_db),
    stores: StoreContext = Depends(get_stores)
):
    """Comments for a game, newest first"""
    return CommentService.get_game_comments(db, stores.documents, game_id)


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def create_comment(
    comment_data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    stores: StoreContext = Depends(get_stores)
):
    """
    Post a comment

    - **gameId**: Game ID (required)
    - **content**: 1-1000 characters after trimming
    """
    return CommentService.create_comment(db, stores.documents, current_user, comment_data)


@router.put("/{comment_id}", response_model=CommentResponse)
def update_comment(
    update_data: CommentUpdate,
    comment_id: str = Path(..., description="Comment ID"),
    current_user: User = Depends(get_current_user),
    stores: StoreContext = Depends(get_stores)
):
    """Edit one of your own comments"""
    return CommentService.update_comment(stores.documents, current_user, comment_id, update_data)


@router.delete("/{comment_id}", response_model=MessageResponse)
def delete_comment(
    comment_id: str = Path(..., description="Comment ID"),
    current_user: User = Depends(get_current_user),
    stores: StoreContext = Depends(get_stores)
):
    """Delete one of your own comments"""
    CommentService.delete_comment(stores.documents, current_user, comment_id)
    return {"message": "Comment deleted"}
