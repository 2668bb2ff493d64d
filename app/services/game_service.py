"""
Game Service - catalogue reads (read-through cached) and admin writes

Average rating and rating count are computed by an aggregate outer join at
read time; nothing about ratings is stored on the game row.
"""

from sqlalchemy.orm import Session
from sqlalchemy import func, or_
from fastapi import HTTPException, status
from typing import List, Optional, Iterable, TYPE_CHECKING
import logging

from app.models.game import Game
from app.models.rating import Rating
from app.models.user import User
from app.schemas.game import GameCreate, GameUpdate, GameResponse, GameListAdapter
from app.utils.cache import GameCache, GAMES_ALL_KEY, game_key

if TYPE_CHECKING:
    from app.services.projections import ProjectionDispatcher

logger = logging.getLogger(__name__)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")


class GameService:
    """Service for catalogue operations"""

    @staticmethod
    def _aggregate_query(db: Session):
        """Games joined with their rating aggregate and creator name"""
        average = func.coalesce(func.avg(Rating.rating), 0).label("average_rating")
        count = func.count(Rating.id).label("rating_count")
        return (
            db.query(Game, average, count, User.name.label("created_by_name"))
            .outerjoin(Rating, Rating.game_id == Game.id)
            .outerjoin(User, User.id == Game.created_by)
            .group_by(Game.id, User.name)
        )

    @staticmethod
    def _to_response(row) -> GameResponse:
        game, average, count, creator_name = row
        payload = GameResponse.model_validate(game)
        payload.average_rating = float(average or 0)
        payload.rating_count = int(count or 0)
        payload.created_by_name = creator_name
        return payload

    # ==================== READS ====================

    @staticmethod
    def fetch_games(db: Session) -> List[GameResponse]:
        """Every game with its aggregate, newest first (uncached)"""
        rows = GameService._aggregate_query(db).order_by(Game.created_at.desc(), Game.id.desc()).all()
        return [GameService._to_response(row) for row in rows]

    @staticmethod
    def fetch_game(db: Session, game_id: int) -> Optional[GameResponse]:
        """One game with its aggregate, or None (uncached)"""
        row = GameService._aggregate_query(db).filter(Game.id == game_id).first()
        return GameService._to_response(row) if row else None

    @staticmethod
    def fetch_games_by_ids(db: Session, game_ids: Iterable[int]) -> List[GameResponse]:
        """Games for the given ids, in the order the ids were given; unknown ids are skipped"""
        ids = list(game_ids)
        if not ids:
            return []
        rows = GameService._aggregate_query(db).filter(Game.id.in_(ids)).all()
        by_id = {row[0].id: GameService._to_response(row) for row in rows}
        return [by_id[game_id] for game_id in ids if game_id in by_id]

    @staticmethod
    def list_games_json(db: Session, cache: GameCache, skip_cache: bool = False) -> str:
        """
        Serialized listing, read through games:all

        A cache hit is returned verbatim. With skip_cache the cache is neither
        read nor written.
        """
        if not skip_cache:
            cached = cache.get(GAMES_ALL_KEY)
            if cached is not None:
                return cached

        payload = GameListAdapter.dump_json(GameService.fetch_games(db)).decode()

        if not skip_cache:
            cache.set(GAMES_ALL_KEY, payload)
        return payload

    @staticmethod
    def get_game_json(db: Session, cache: GameCache, game_id: int) -> str:
        """Serialized single game, read through games:<id>; 404 when unknown"""
        key = game_key(game_id)
        cached = cache.get(key)
        if cached is not None:
            return cached

        game = GameService.fetch_game(db, game_id)
        if game is None:
            raise _not_found()

        payload = game.model_dump_json()
        cache.set(key, payload)
        return payload

    @staticmethod
    def search_games(db: Session, query: str) -> List[GameResponse]:
        """Case-insensitive substring match on title, description or genre"""
        term = f"%{query}%"
        rows = (
            GameService._aggregate_query(db)
            .filter(or_(
                Game.title.ilike(term),
                Game.description.ilike(term),
                Game.genre.ilike(term),
            ))
            .order_by(Game.title)
            .all()
        )
        return [GameService._to_response(row) for row in rows]

    @staticmethod
    def ensure_exists(db: Session, game_id: int) -> None:
        """Raise 404 unless the game exists"""
        exists = db.query(Game.id).filter(Game.id == game_id).first()
        if not exists:
            raise _not_found()

    # ==================== ADMIN WRITES ====================

    @staticmethod
    def create_game(
        db: Session,
        projections: "ProjectionDispatcher",
        game_data: GameCreate,
        created_by: int
    ) -> GameResponse:
        """Insert a game, then mirror it to the graph and drop the listing cache"""
        game = Game(
            title=game_data.title,
            description=game_data.description,
            genre=game_data.genre,
            platform=game_data.platform,
            release_date=game_data.release_date,
            image_url=game_data.image_url,
            trailer_url=game_data.trailer_url,
            game_mode=game_data.game_mode,
            created_by=created_by
        )
        db.add(game)
        db.commit()
        db.refresh(game)
        logger.info(f"Game created: id={game.id} title={game.title!r}")

        projections.game_created(game)
        return GameService.fetch_game(db, game.id)

    @staticmethod
    def update_game(
        db: Session,
        projections: "ProjectionDispatcher",
        game_id: int,
        update_data: GameUpdate
    ) -> GameResponse:
        """Apply only the fields present in the request"""
        changes = update_data.changes()
        if not changes:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

        game = db.query(Game).filter(Game.id == game_id).first()
        if not game:
            raise _not_found()

        for field, value in changes.items():
            setattr(game, field, value)

        db.commit()
        db.refresh(game)
        logger.info(f"Game updated: id={game.id} fields={sorted(changes)}")

        projections.game_updated(game)
        return GameService.fetch_game(db, game.id)

    @staticmethod
    def delete_game(db: Session, projections: "ProjectionDispatcher", game_id: int) -> None:
        """Delete a game (ratings cascade), detach its graph node and drop its cache entries"""
        game = db.query(Game).filter(Game.id == game_id).first()
        if not game:
            raise _not_found()

        db.delete(game)
        db.commit()
        logger.info(f"Game deleted: id={game_id}")

        projections.game_deleted(game_id)
