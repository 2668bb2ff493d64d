"""
Comment Service - game comments stored as documents

Comments live in the document store and carry only the author's user id.
Display fields (name, email) are joined in from the relational store when
listing, with one IN query per page of comments.
"""

from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from typing import Any, Dict, List, Optional
import logging

from app.models.user import User
from app.schemas.comment import CommentCreate, CommentUpdate, CommentResponse
from app.services.game_service import GameService
from app.stores.documents import DocumentStore, parse_object_id

logger = logging.getLogger(__name__)


def _comment_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")


def _to_response(doc: Dict[str, Any], author: Optional[Dict[str, str]] = None) -> CommentResponse:
    author = author or {}
    return CommentResponse(
        id=str(doc["_id"]),
        game_id=doc["game_id"],
        user_id=doc["user_id"],
        content=doc["content"],
        created_at=doc["created_at"],
        updated_at=doc["updated_at"],
        user_name=author.get("name"),
        user_email=author.get("email"),
    )


class CommentService:
    """Service for comment operations"""

    @staticmethod
    def _object_id(comment_id: str):
        oid = parse_object_id(comment_id)
        if oid is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid comment ID")
        return oid

    @staticmethod
    def get_game_comments(db: Session, documents: DocumentStore, game_id: int) -> List[CommentResponse]:
        """Comments for a game, newest first, with author name and email"""
        docs = documents.comments_for_game(game_id)

        user_ids = {doc["user_id"] for doc in docs}
        authors = {}
        if user_ids:
            rows = db.query(User.id, User.name, User.email).filter(User.id.in_(user_ids)).all()
            authors = {row.id: {"name": row.name, "email": row.email} for row in rows}

        return [_to_response(doc, authors.get(doc["user_id"])) for doc in docs]

    @staticmethod
    def create_comment(
        db: Session,
        documents: DocumentStore,
        user: User,
        comment_data: CommentCreate
    ) -> CommentResponse:
        """
        Post a comment on an existing game

        Raises:
            HTTPException: 404 if the game does not exist
        """
        GameService.ensure_exists(db, comment_data.game_id)

        doc = documents.insert_comment(comment_data.game_id, user.id, comment_data.content)
        logger.info(f"Comment {doc['_id']} posted on game {comment_data.game_id} by user {user.id}")
        return _to_response(doc, {"name": user.name, "email": user.email})

    @staticmethod
    def update_comment(
        documents: DocumentStore,
        user: User,
        comment_id: str,
        update_data: CommentUpdate
    ) -> CommentResponse:
        # Ownership is part of the filter, so someone else's comment is simply not found
        oid = CommentService._object_id(comment_id)
        doc = documents.update_comment(oid, user.id, update_data.content)
        if doc is None:
            raise _comment_not_found()
        return _to_response(doc, {"name": user.name, "email": user.email})

    @staticmethod
    def delete_comment(documents: DocumentStore, user: User, comment_id: str) -> None:
        oid = CommentService._object_id(comment_id)
        if not documents.delete_comment(oid, user.id):
            raise _comment_not_found()
