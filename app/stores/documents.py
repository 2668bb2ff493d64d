"""MongoDB store for comments and per-user game lists.

Collections:
- comments:   {_id, game_id, user_id, content, created_at, updated_at}
- user_games: {user_id, games: [game_id, ...], created_at, updated_at}

No foreign keys: comments on deleted games or by deleted users stay until the
orphan cleanup job removes them.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument

logger = logging.getLogger(__name__)

COMMENTS = "comments"
USER_GAMES = "user_games"


def parse_object_id(value: str) -> Optional[ObjectId]:
    """Parse a comment id, returning None when it is not a valid ObjectId."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DocumentStore:
    """Comment and game-list access over a single Mongo database."""

    def __init__(self, client: MongoClient, database: str):
        self._client = client
        self.db = client[database]
        self.comments = self.db[COMMENTS]
        self.user_games = self.db[USER_GAMES]

    @classmethod
    def from_uri(cls, uri: str, database: str) -> "DocumentStore":
        return cls(MongoClient(uri, serverSelectionTimeoutMS=5000), database)

    def ping(self) -> None:
        self._client.admin.command("ping")

    def ensure_indexes(self) -> None:
        self.comments.create_index([("game_id", ASCENDING), ("created_at", DESCENDING)])
        self.comments.create_index([("user_id", ASCENDING)])
        self.user_games.create_index([("user_id", ASCENDING)], unique=True)

    def close(self) -> None:
        self._client.close()

    # ============================================================
    # Comments
    # ============================================================

    def comments_for_game(self, game_id: int) -> List[Dict[str, Any]]:
        """Comments for a game, newest first."""
        cursor = self.comments.find({"game_id": game_id}).sort(
            [("created_at", DESCENDING), ("_id", DESCENDING)]
        )
        return list(cursor)

    def insert_comment(self, game_id: int, user_id: int, content: str) -> Dict[str, Any]:
        now = _now()
        doc = {
            "game_id": game_id,
            "user_id": user_id,
            "content": content,
            "created_at": now,
            "updated_at": now,
        }
        result = self.comments.insert_one(doc)
        return self.comments.find_one({"_id": result.inserted_id})

    def update_comment(self, comment_id: ObjectId, user_id: int, content: str) -> Optional[Dict[str, Any]]:
        """Update a comment owned by user_id. Returns None when nothing matched."""
        return self.comments.find_one_and_update(
            {"_id": comment_id, "user_id": user_id},
            {"$set": {"content": content, "updated_at": _now()}},
            return_document=ReturnDocument.AFTER,
        )

    def delete_comment(self, comment_id: ObjectId, user_id: int) -> bool:
        """Delete a comment owned by user_id. Returns False when nothing matched."""
        result = self.comments.delete_one({"_id": comment_id, "user_id": user_id})
        return result.deleted_count > 0

    def delete_orphaned_comments(self, game_ids: Iterable[int], user_ids: Iterable[int]) -> int:
        """Remove comments whose game or author is not among the given ids."""
        result = self.comments.delete_many(
            {
                "$or": [
                    {"game_id": {"$nin": list(game_ids)}},
                    {"user_id": {"$nin": list(user_ids)}},
                ]
            }
        )
        return result.deleted_count

    # ============================================================
    # Personal game lists
    # ============================================================

    def game_list(self, user_id: int) -> List[int]:
        doc = self.user_games.find_one({"user_id": user_id})
        if not doc:
            return []
        return doc.get("games", [])

    def add_to_list(self, user_id: int, game_id: int) -> List[int]:
        """Add a game id to the user's list; creates the document when absent."""
        now = _now()
        doc = self.user_games.find_one_and_update(
            {"user_id": user_id},
            {
                "$addToSet": {"games": game_id},
                "$set": {"updated_at": now},
                "$setOnInsert": {"created_at": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return doc.get("games", [])

    def remove_from_list(self, user_id: int, game_id: int) -> List[int]:
        doc = self.user_games.find_one_and_update(
            {"user_id": user_id},
            {"$pull": {"games": game_id}, "$set": {"updated_at": _now()}},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            return []
        return doc.get("games", [])
