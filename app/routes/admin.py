"""
Admin Routes - catalogue management and maintenance jobs

Features:
- Create, partially update and delete games
- Job status monitoring and manual job triggers
- Cache statistics

All endpoints require an authenticated user with the admin role.
"""

from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.orm import Session
from datetime import datetime, timezone

from app.database import get_db
from app.models.user import User
from app.schemas.game import GameCreate, GameUpdate, GameResponse, MessageResponse
from app.services.background_jobs import MaintenanceJobs
from app.services.game_service import GameService
from app.stores.context import StoreContext
from app.utils.dependencies import get_stores, require_admin

router = APIRouter(prefix="/api/admin", tags=["Admin"])


def get_jobs(request: Request) -> MaintenanceJobs:
    return request.app.state.jobs


# ==================== GAMES ====================

@router.post("/games", response_model=GameResponse, status_code=status.HTTP_201_CREATED)
def create_game(
    game_data: GameCreate,
    db: Session = Depends(get_db),
    stores: StoreContext = Depends(get_stores),
    current_user: User = Depends(require_admin)
):
    """
    Add a game to the catalogue

    - **title**: required, 1-255 characters
    - **imageUrl**: http(s) URL or data: URI (max 5MB)
    - **trailerUrl**: YouTube links are stored as embed URLs
    - **gameMode**: solo, multiplayer or both (default solo)
    """
    return GameService.create_game(db, stores.projections, game_data, current_user.id)


@router.put("/games/{game_id}", response_model=GameResponse)
def update_game(
    update_data: GameUpdate,
    game_id: int = Path(..., description="Game ID"),
    db: Session = Depends(get_db),
    stores: StoreContext = Depends(get_stores),
    current_user: User = Depends(require_admin)
):
    """Update only the fields present in the request body"""
    return GameService.update_game(db, stores.projections, game_id, update_data)


@router.delete("/games/{game_id}", response_model=MessageResponse)
def delete_game(
    game_id: int = Path(..., description="Game ID"),
    db: Session = Depends(get_db),
    stores: StoreContext = Depends(get_stores),
    current_user: User = Depends(require_admin)
):
    """Delete a game along with its ratings"""
    GameService.delete_game(db, stores.projections, game_id)
    return {"message": "Game deleted"}


# ==================== MAINTENANCE ====================

@router.get("/jobs/status", status_code=status.HTTP_200_OK)
def get_jobs_status(
    jobs: MaintenanceJobs = Depends(get_jobs),
    current_user: User = Depends(require_admin)
):
    """
    Get status of all maintenance jobs

    Returns:
    - Whether each job is scheduled, and its next run time
    - Last execution time, status and error
    """
    stats = jobs.get_job_stats()
    return {**stats, "checked_at": datetime.now(timezone.utc).isoformat()}


@router.post("/jobs/trigger/{job_id}", status_code=status.HTTP_200_OK)
def trigger_job(
    job_id: str,
    jobs: MaintenanceJobs = Depends(get_jobs),
    current_user: User = Depends(require_admin)
):
    """
    Run a maintenance job now, whether or not it is scheduled

    Valid job_ids:
    - sync_game_nodes
    - cleanup_orphaned_comments
    - rebuild_relation_weights
    """
    result = jobs.run_job(job_id)
    return {
        "message": f"Job '{job_id}' finished with status {result['status']}",
        "job": result,
        "triggered_at": datetime.now(timezone.utc).isoformat(),
        "triggered_by": current_user.email
    }


@router.get("/cache/stats", status_code=status.HTTP_200_OK)
def get_cache_statistics(
    stores: StoreContext = Depends(get_stores),
    current_user: User = Depends(require_admin)
):
    """Hit/miss counters for the game cache since startup"""
    return {**stores.cache.get_stats(), "checked_at": datetime.now(timezone.utc).isoformat()}
