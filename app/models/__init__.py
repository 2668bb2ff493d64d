"""
Import all models to ensure they are registered with SQLAlchemy
"""
from app.models.user import User
from app.models.game import Game
from app.models.rating import Rating

__all__ = [
    "User",
    "Game",
    "Rating"
]
