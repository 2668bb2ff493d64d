"""
Projection Updaters
===================
Post-commit hooks that keep the secondary stores in step with the
relational store.

The relational store is the system of record. After a write commits, the
service hands the event to the ProjectionDispatcher, which calls every
registered updater in order. A failing updater is logged and skipped: the
caller's response depends only on the relational outcome, and nothing is
retried.

Updaters:
- CacheInvalidator: deletes games:all / games:<id>
- GraphProjector:   mirrors game nodes, RATED edges and RELATED_TO weights
"""

import logging
from typing import Iterable, List

from app.models.game import Game
from app.services.recommendation_service import similar_games
from app.stores.graph import GraphStore
from app.utils.cache import GameCache, GAMES_ALL_KEY, game_key

logger = logging.getLogger(__name__)


class ProjectionUpdater:
    """Capability interface; every hook is a no-op unless overridden."""

    def apply_game_created(self, game: Game) -> None:
        pass

    def apply_game_updated(self, game: Game) -> None:
        pass

    def apply_game_deleted(self, game_id: int) -> None:
        pass

    def apply_rating_upserted(self, user_id: int, game_id: int, rating: int) -> None:
        pass

    def apply_rating_deleted(self, user_id: int, game_id: int) -> None:
        pass


class CacheInvalidator(ProjectionUpdater):
    def __init__(self, cache: GameCache):
        self.cache = cache

    def apply_game_created(self, game: Game) -> None:
        self.cache.invalidate(GAMES_ALL_KEY)

    def apply_game_updated(self, game: Game) -> None:
        self.cache.invalidate(GAMES_ALL_KEY, game_key(game.id))

    def apply_game_deleted(self, game_id: int) -> None:
        self.cache.invalidate(GAMES_ALL_KEY, game_key(game_id))

    def apply_rating_upserted(self, user_id: int, game_id: int, rating: int) -> None:
        self.cache.invalidate(game_key(game_id), GAMES_ALL_KEY)

    def apply_rating_deleted(self, user_id: int, game_id: int) -> None:
        self.cache.invalidate(game_key(game_id), GAMES_ALL_KEY)


class GraphProjector(ProjectionUpdater):
    def __init__(self, graph: GraphStore):
        self.graph = graph

    def apply_game_created(self, game: Game) -> None:
        self.graph.upsert_game(game.id, game.title, game.genre)

    def apply_game_updated(self, game: Game) -> None:
        self.graph.upsert_game(game.id, game.title, game.genre)

    def apply_game_deleted(self, game_id: int) -> None:
        self.graph.delete_game(game_id)

    def apply_rating_upserted(self, user_id: int, game_id: int, rating: int) -> None:
        self.graph.record_rating(user_id, game_id, rating)
        # Weights accumulate across calls; they are never recomputed here
        user_ratings = self.graph.ratings_by_user(user_id)
        related = similar_games(user_ratings, game_id, rating)
        self.graph.bump_relations(game_id, related)

    def apply_rating_deleted(self, user_id: int, game_id: int) -> None:
        self.graph.remove_rating(user_id, game_id)


class ProjectionDispatcher:
    """
    Fan an event out to every updater, isolating failures.

    Usage:
        dispatcher = ProjectionDispatcher([CacheInvalidator(cache), GraphProjector(graph)])
        dispatcher.game_created(game)
    """

    def __init__(self, updaters: Iterable[ProjectionUpdater]):
        self.updaters: List[ProjectionUpdater] = list(updaters)

    def _dispatch(self, hook: str, *args) -> None:
        for updater in self.updaters:
            try:
                getattr(updater, hook)(*args)
            except Exception:
                logger.warning(
                    f"{type(updater).__name__}.{hook} failed; continuing",
                    exc_info=True
                )

    def game_created(self, game: Game) -> None:
        self._dispatch("apply_game_created", game)

    def game_updated(self, game: Game) -> None:
        self._dispatch("apply_game_updated", game)

    def game_deleted(self, game_id: int) -> None:
        self._dispatch("apply_game_deleted", game_id)

    def rating_upserted(self, user_id: int, game_id: int, rating: int) -> None:
        self._dispatch("apply_rating_upserted", user_id, game_id, rating)

    def rating_deleted(self, user_id: int, game_id: int) -> None:
        self._dispatch("apply_rating_deleted", user_id, game_id)
