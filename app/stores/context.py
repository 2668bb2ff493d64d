"""Store context: every backing store the API talks to, built once at startup.

Startup order:
1. Relational and document stores must answer, with retries; otherwise
   startup fails.
2. Cache and graph are pinged once; a failure is logged and startup
   continues, since both stores are best-effort.
3. Schema, graph constraints and Mongo indexes are created.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from dotenv import load_dotenv
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.database import Base, DATABASE_URL, check_connection, create_db_engine, create_session_factory
from app.services.projections import CacheInvalidator, GraphProjector, ProjectionDispatcher
from app.stores.documents import DocumentStore
from app.stores.graph import GraphStore
from app.utils.cache import GameCache

import app.models  # noqa: F401  (registers tables on Base.metadata)

load_dotenv()
logger = logging.getLogger(__name__)

T = TypeVar("T")

STORE_CONNECT_RETRIES = int(os.getenv("STORE_CONNECT_RETRIES", "10"))
STORE_CONNECT_DELAY = float(os.getenv("STORE_CONNECT_DELAY", "2"))


def retry_connection(
    fn: Callable[[], T],
    name: str,
    retries: int = STORE_CONNECT_RETRIES,
    delay: float = STORE_CONNECT_DELAY,
) -> T:
    """Call fn until it succeeds or the retries are used up; re-raises the last error."""
    for attempt in range(1, retries + 1):
        try:
            return fn()
        except Exception as e:
            if attempt == retries:
                logger.error(f"{name}: giving up after {retries} attempts: {e}")
                raise
            logger.info(f"{name}: retry {attempt}/{retries} ({e})")
            time.sleep(delay)
    raise RuntimeError(f"{name}: no connection attempts made")


@dataclass
class StoreContext:
    engine: Engine
    sessions: sessionmaker
    cache: GameCache
    documents: DocumentStore
    graph: GraphStore
    projections: ProjectionDispatcher = field(init=False)

    def __post_init__(self):
        self.projections = ProjectionDispatcher([
            CacheInvalidator(self.cache),
            GraphProjector(self.graph),
        ])

    @classmethod
    def from_env(cls) -> "StoreContext":
        engine = create_db_engine(DATABASE_URL)
        return cls(
            engine=engine,
            sessions=create_session_factory(engine),
            cache=GameCache.from_url(os.getenv("REDIS_URL", "redis://localhost:6379/0")),
            documents=DocumentStore.from_uri(
                os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
                os.getenv("MONGODB_DB", "gameplatform"),
            ),
            graph=GraphStore.from_uri(
                os.getenv("NEO4J_URI", "bolt://localhost:7687"),
                os.getenv("NEO4J_USER", "neo4j"),
                os.getenv("NEO4J_PASSWORD", "neo4jpass123"),
                os.getenv("NEO4J_DATABASE") or None,
            ),
        )

    def connect(self) -> None:
        """Wait for the required stores and probe the optional ones."""
        retry_connection(lambda: check_connection(self.engine), "PostgreSQL")
        logger.info("PostgreSQL connected")
        retry_connection(self.documents.ping, "MongoDB")
        logger.info("MongoDB connected")

        for name, ping in (("Redis", self.cache.ping), ("Neo4j", self.graph.ping)):
            try:
                ping()
                logger.info(f"{name} connected")
            except Exception as e:
                logger.warning(f"{name} unavailable at startup, continuing without it: {e}")

    def init_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)
        self.documents.ensure_indexes()
        try:
            self.graph.ensure_constraints()
        except Exception as e:
            logger.warning(f"Could not create graph constraints: {e}")

    def close(self) -> None:
        for name, closer in (
            ("Redis", self.cache.close),
            ("MongoDB", self.documents.close),
            ("Neo4j", self.graph.close),
        ):
            try:
                closer()
            except Exception as e:
                logger.error(f"Error closing {name}: {str(e)}")
        self.engine.dispose()
