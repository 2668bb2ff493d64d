from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base

GAME_MODES = ("solo", "multiplayer", "both")
DEFAULT_GAME_MODE = "solo"


class Game(Base):
    """
    Game catalogue entry - the system of record for games.
    The graph store mirrors id/title/genre; the cache mirrors the serialized payload.
    """
    __tablename__ = "games"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    genre = Column(String(100))
    platform = Column(String(100))
    release_date = Column(Date)
    image_url = Column(Text)  # URL or inline data: URI
    trailer_url = Column(String(500))
    game_mode = Column(String(20), nullable=False, default=DEFAULT_GAME_MODE, server_default=DEFAULT_GAME_MODE)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    creator = relationship("User", back_populates="games_created")
    ratings = relationship("Rating", back_populates="game", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(
            "game_mode IN ('solo', 'multiplayer', 'both')",
            name="check_game_mode"
        ),
    )

    def __repr__(self):
        return f"<Game(id={self.id}, title={self.title})>"
