"""
Rating Service - Handle all rating-related business logic

Submitting a rating is a single INSERT ... ON CONFLICT (game_id, user_id)
DO UPDATE, so two concurrent submissions from the same user can never both
insert. Secondary stores are updated after the commit through the
projection dispatcher and never affect the response.
"""

from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from fastapi import HTTPException, status
from typing import List, Optional, Dict
import logging

from app.models.rating import Rating
from app.models.user import User
from app.schemas.rating import RatingCreate
from app.services.game_service import GameService
from app.services.projections import ProjectionDispatcher

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class RatingService:
    """Service for game rating operations"""

    @staticmethod
    def _upsert(db: Session, game_id: int, user_id: int, value: int) -> None:
        """Insert the rating, or overwrite the existing (game, user) row in place"""
        dialect = db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise RuntimeError(f"Rating upsert not supported on {dialect}")

        stmt = insert(Rating).values(game_id=game_id, user_id=user_id, rating=value)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Rating.game_id, Rating.user_id],
            set_={"rating": stmt.excluded.rating, "updated_at": func.now()},
        )
        db.execute(stmt)

    @staticmethod
    def add_or_update_rating(
        db: Session,
        projections: ProjectionDispatcher,
        user_id: int,
        rating_data: RatingCreate
    ) -> Rating:
        """
        Add a new rating or update the existing one for this user and game

        Raises:
            HTTPException: 404 if the game does not exist
        """
        GameService.ensure_exists(db, rating_data.game_id)

        RatingService._upsert(db, rating_data.game_id, user_id, rating_data.rating)
        db.commit()

        rating = db.query(Rating).filter(
            Rating.game_id == rating_data.game_id,
            Rating.user_id == user_id
        ).one()
        db.refresh(rating)

        projections.rating_upserted(user_id, rating_data.game_id, rating_data.rating)
        return rating

    @staticmethod
    def get_game_ratings(db: Session, game_id: int) -> List[Dict]:
        """All ratings for a game with the rater's name and email, newest first"""
        rows = db.query(Rating, User.name, User.email).join(
            User, User.id == Rating.user_id
        ).filter(
            Rating.game_id == game_id
        ).order_by(
            Rating.updated_at.desc(), Rating.id.desc()
        ).all()

        return [
            {
                "id": rating.id,
                "game_id": rating.game_id,
                "user_id": rating.user_id,
                "rating": rating.rating,
                "created_at": rating.created_at,
                "updated_at": rating.updated_at,
                "user_name": name,
                "user_email": email,
            }
            for rating, name, email in rows
        ]

    @staticmethod
    def get_user_rating_for_game(db: Session, user_id: int, game_id: int) -> Optional[Rating]:
        return db.query(Rating).filter(
            Rating.user_id == user_id,
            Rating.game_id == game_id
        ).first()

    @staticmethod
    def delete_rating(
        db: Session,
        projections: ProjectionDispatcher,
        user_id: int,
        rating_id: int
    ) -> None:
        """
        Delete a rating owned by user_id

        RELATED_TO weights built from this rating are left as they are.

        Raises:
            HTTPException: 404 if the rating is missing or owned by someone else
        """
        rating = db.query(Rating).filter(
            Rating.id == rating_id,
            Rating.user_id == user_id
        ).first()

        if not rating:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Rating not found"
            )

        game_id = rating.game_id
        db.delete(rating)
        db.commit()
        logger.info(f"Rating {rating_id} deleted by user {user_id}")

        projections.rating_deleted(user_id, game_id)
