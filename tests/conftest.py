import os

# Must be set before the app modules read them at import
os.environ.setdefault("ENABLE_BACKGROUND_JOBS", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import fakeredis
import mongomock
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.main import app
from app.middleware.security import rate_limiter
from app.models.game import Game
from app.models.user import User, ROLE_ADMIN, ROLE_USER
from app.stores.context import StoreContext
from app.stores.documents import DocumentStore
from app.utils.cache import GameCache
from app.utils.security import create_access_token, hash_password

SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class InMemoryGraphStore:
    """Dict-backed stand-in for GraphStore with the same method surface."""

    def __init__(self):
        self.games = {}      # id -> {"title", "genre"}
        self.rated = {}      # (user_id, game_id) -> rating
        self.relations = {}  # frozenset({a, b}) -> weight

    def ping(self):
        pass

    def close(self):
        pass

    def ensure_constraints(self):
        pass

    def upsert_game(self, game_id, title, genre):
        self.games[game_id] = {"title": title, "genre": genre or ""}

    def delete_game(self, game_id):
        self.games.pop(game_id, None)
        self.rated = {key: value for key, value in self.rated.items() if key[1] != game_id}
        self.relations = {pair: w for pair, w in self.relations.items() if game_id not in pair}

    def record_rating(self, user_id, game_id, rating):
        self.games.setdefault(game_id, {"title": None, "genre": ""})
        self.rated[(user_id, game_id)] = rating

    def remove_rating(self, user_id, game_id):
        self.rated.pop((user_id, game_id), None)

    def ratings_by_user(self, user_id):
        return {game_id: rating for (uid, game_id), rating in self.rated.items() if uid == user_id}

    def bump_relations(self, game_id, related_ids):
        if game_id not in self.games:
            return
        for other in related_ids:
            if other == game_id or other not in self.games:
                continue
            pair = frozenset((game_id, other))
            self.relations[pair] = self.relations.get(pair, 0) + 1

    def related_game_ids(self, game_id, limit=5):
        neighbours = [
            (next(iter(pair - {game_id})), weight)
            for pair, weight in self.relations.items()
            if game_id in pair
        ]
        neighbours.sort(key=lambda item: (-item[1], item[0]))
        return [other for other, _ in neighbours[:limit]]

    def replace_relations(self, weights):
        self.relations = {
            frozenset(pair): weight
            for pair, weight in weights.items()
            if pair[0] in self.games and pair[1] in self.games
        }

    def weight(self, a, b):
        return self.relations.get(frozenset((a, b)))


@pytest.fixture
def db_session():
    """Provide a clean database session for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def graph():
    return InMemoryGraphStore()


@pytest.fixture
def stores(db_session, graph):
    """Every backing store, in memory"""
    return StoreContext(
        engine=engine,
        sessions=TestingSessionLocal,
        cache=GameCache(fakeredis.FakeRedis(decode_responses=True)),
        documents=DocumentStore(mongomock.MongoClient(), "gameshelf_test"),
        graph=graph,
    )


@pytest.fixture
def client(stores, monkeypatch):
    """FastAPI test client running against the in-memory store context."""
    monkeypatch.setenv("ENABLE_BACKGROUND_JOBS", "false")
    rate_limiter.reset()
    app.state.stores = stores

    with TestClient(app) as test_client:
        yield test_client

    app.state.stores = None
    rate_limiter.reset()


def create_user(session, email="user@example.com", password="Password123!", name="Test User", role=ROLE_USER):
    user = User(email=email, password_hash=hash_password(password), name=name, role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def create_game(session, title="Test Game", genre="RPG", **fields):
    game = Game(title=title, genre=genre, **fields)
    session.add(game)
    session.commit()
    session.refresh(game)
    return game


def auth_header(user):
    token = create_access_token(user_id=user.id, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(db_session):
    return create_user(db_session)


@pytest.fixture
def admin(db_session):
    return create_user(db_session, email="admin@example.com", name="Admin", role=ROLE_ADMIN)


@pytest.fixture
def user_headers(user):
    return auth_header(user)


@pytest.fixture
def admin_headers(admin):
    return auth_header(admin)
