"""
User Games Service - the current user's personal list of game ids

The list is one document per user in the document store. Game ids are not
checked against the catalogue; the client resolves them when rendering.
"""

from typing import List
import logging

from app.stores.documents import DocumentStore

logger = logging.getLogger(__name__)


class UserGamesService:
    """Service for personal game list operations"""

    @staticmethod
    def get_list(documents: DocumentStore, user_id: int) -> List[int]:
        return documents.game_list(user_id)

    @staticmethod
    def add_game(documents: DocumentStore, user_id: int, game_id: int) -> List[int]:
        """Add a game; adding one already on the list changes nothing"""
        games = documents.add_to_list(user_id, game_id)
        logger.debug(f"User {user_id} list now has {len(games)} games")
        return games

    @staticmethod
    def remove_game(documents: DocumentStore, user_id: int, game_id: int) -> List[int]:
        """Remove a game; removing one that is not on the list succeeds"""
        return documents.remove_from_list(user_id, game_id)
