"""Neo4j store for the co-rating graph.

Nodes:
- (:Game {id, title, genre})
- (:User {id})

Edges:
- (:User)-[:RATED {rating, timestamp}]->(:Game)   one per pair, overwritten on re-rate
- (:Game)-[:RELATED_TO {weight}]-(:Game)           one per unordered pair

RELATED_TO is merged without a direction so a pair never ends up with two
edges depending on which game was rated first.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from neo4j import Driver, GraphDatabase, RoutingControl

logger = logging.getLogger(__name__)


class GraphStore:
    """Cypher access for game/user nodes and their edges."""

    def __init__(self, driver: Driver, database: Optional[str] = None):
        self._driver = driver
        self._database = database

    @classmethod
    def from_uri(cls, uri: str, user: str, password: str, database: Optional[str] = None) -> "GraphStore":
        driver = GraphDatabase.driver(uri, auth=(user, password))
        return cls(driver, database)

    def _write(self, query: str, **params):
        return self._driver.execute_query(query, params, database_=self._database)

    def _read(self, query: str, **params):
        return self._driver.execute_query(
            query, params, database_=self._database, routing_=RoutingControl.READ
        )

    def ping(self) -> None:
        self._driver.verify_connectivity()

    def close(self) -> None:
        self._driver.close()

    def ensure_constraints(self) -> None:
        self._write("CREATE CONSTRAINT game_id IF NOT EXISTS FOR (g:Game) REQUIRE g.id IS UNIQUE")
        self._write("CREATE CONSTRAINT user_id IF NOT EXISTS FOR (u:User) REQUIRE u.id IS UNIQUE")

    # ============================================================
    # Game nodes
    # ============================================================

    def upsert_game(self, game_id: int, title: str, genre: Optional[str]) -> None:
        self._write(
            """
            MERGE (g:Game {id: $id})
            SET g.title = $title, g.genre = $genre
            """,
            id=game_id, title=title, genre=genre or "",
        )

    def delete_game(self, game_id: int) -> None:
        self._write("MATCH (g:Game {id: $id}) DETACH DELETE g", id=game_id)

    # ============================================================
    # Ratings
    # ============================================================

    def record_rating(self, user_id: int, game_id: int, rating: int) -> None:
        self._write(
            """
            MERGE (g:Game {id: $game_id})
            MERGE (u:User {id: $user_id})
            MERGE (u)-[r:RATED]->(g)
            SET r.rating = $rating, r.timestamp = timestamp()
            """,
            user_id=user_id, game_id=game_id, rating=rating,
        )

    def remove_rating(self, user_id: int, game_id: int) -> None:
        self._write(
            "MATCH (:User {id: $user_id})-[r:RATED]->(:Game {id: $game_id}) DELETE r",
            user_id=user_id, game_id=game_id,
        )

    def ratings_by_user(self, user_id: int) -> Dict[int, int]:
        """Every game the user has a RATED edge to, mapped to the rating value."""
        records, _, _ = self._read(
            """
            MATCH (:User {id: $user_id})-[r:RATED]->(g:Game)
            RETURN g.id AS game_id, r.rating AS rating
            """,
            user_id=user_id,
        )
        return {record["game_id"]: record["rating"] for record in records}

    # ============================================================
    # Relations
    # ============================================================

    def bump_relations(self, game_id: int, related_ids: Iterable[int]) -> None:
        """Increment RELATED_TO between game_id and each related id, creating at weight 1."""
        related = [other for other in related_ids if other != game_id]
        if not related:
            return
        self._write(
            """
            MATCH (g1:Game {id: $game_id})
            UNWIND $related AS other_id
            MATCH (g2:Game {id: other_id})
            MERGE (g1)-[rel:RELATED_TO]-(g2)
            ON CREATE SET rel.weight = 1
            ON MATCH SET rel.weight = rel.weight + 1
            """,
            game_id=game_id, related=related,
        )

    def related_game_ids(self, game_id: int, limit: int = 5) -> List[int]:
        """Ids of games connected by RELATED_TO, heaviest first."""
        records, _, _ = self._read(
            """
            MATCH (:Game {id: $game_id})-[r:RELATED_TO]-(other:Game)
            RETURN other.id AS id, r.weight AS weight
            ORDER BY weight DESC, id ASC
            LIMIT $limit
            """,
            game_id=game_id, limit=limit,
        )
        return [record["id"] for record in records]

    @staticmethod
    def _replace_relations_tx(tx, pairs: List[Dict]) -> None:
        tx.run("MATCH (:Game)-[r:RELATED_TO]->(:Game) DELETE r")
        if not pairs:
            return
        tx.run(
            """
            UNWIND $pairs AS pair
            MATCH (g1:Game {id: pair.a}), (g2:Game {id: pair.b})
            MERGE (g1)-[rel:RELATED_TO]-(g2)
            SET rel.weight = pair.weight
            """,
            pairs=pairs,
        )

    def replace_relations(self, weights: Mapping[Tuple[int, int], int]) -> None:
        """Drop every RELATED_TO edge and write the given pair weights instead.

        Both statements share one write transaction, so a failed rebuild
        leaves the previous weights in place.
        """
        pairs = [{"a": a, "b": b, "weight": weight} for (a, b), weight in weights.items()]
        with self._driver.session(database=self._database) as session:
            session.execute_write(self._replace_relations_tx, pairs)
