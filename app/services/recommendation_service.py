"""
Recommendation Service - co-rating "related games"

Two games become related when one user rates both within RELATION_THRESHOLD
stars of each other. Each such co-rating adds one to the pair's RELATED_TO
weight in the graph store; recommendations are the heaviest neighbours.
"""
from collections import defaultdict
from itertools import combinations
from typing import Dict, Iterable, List, Mapping, Tuple
import logging

from sqlalchemy.orm import Session

from app.schemas.game import GameResponse
from app.services.game_service import GameService
from app.stores.graph import GraphStore

logger = logging.getLogger(__name__)

RELATION_THRESHOLD = 1
DEFAULT_LIMIT = 5


def similar_games(
    user_ratings: Mapping[int, int],
    game_id: int,
    rating: int,
    threshold: int = RELATION_THRESHOLD
) -> List[int]:
    """Other games this user rated within `threshold` of `rating`, in ascending id order"""
    return sorted(
        other for other, value in user_ratings.items()
        if other != game_id and abs(value - rating) <= threshold
    )


def co_rating_weights(
    rows: Iterable[Tuple[int, int, int]],
    threshold: int = RELATION_THRESHOLD
) -> Dict[Tuple[int, int], int]:
    """
    Pair weights recomputed from scratch out of (user_id, game_id, rating) rows.

    Every user contributes one to each unordered pair of their games whose
    ratings are within the threshold. Keys are (smaller id, larger id).
    """
    by_user: Dict[int, Dict[int, int]] = defaultdict(dict)
    for user_id, game_id, rating in rows:
        by_user[user_id][game_id] = rating

    weights: Dict[Tuple[int, int], int] = defaultdict(int)
    for ratings in by_user.values():
        for (a, ra), (b, rb) in combinations(sorted(ratings.items()), 2):
            if abs(ra - rb) <= threshold:
                weights[(a, b)] += 1
    return dict(weights)


class RecommendationService:
    """Reads related games out of the graph store"""

    @staticmethod
    def related_games(
        db: Session,
        graph: GraphStore,
        game_id: int,
        limit: int = DEFAULT_LIMIT
    ) -> List[GameResponse]:
        """
        Up to `limit` related games, heaviest relation first.

        The graph store is best-effort: when it fails the list is empty
        rather than an error.
        """
        try:
            related_ids = graph.related_game_ids(game_id, limit)
        except Exception as e:
            logger.error(f"Error fetching related games for {game_id}: {str(e)}")
            return []

        if not related_ids:
            return []
        return GameService.fetch_games_by_ids(db, related_ids)
