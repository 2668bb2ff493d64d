"""
Background maintenance jobs for the secondary stores

Keeps the graph and document stores from drifting away from the relational
store. Game nodes are re-synced nightly; the two cleanup jobs only run when
switched on, since by default orphaned comments and stale relation weights
are left alone.

Jobs:
- sync_game_nodes:           upsert every game into the graph (nightly 3 AM)
- cleanup_orphaned_comments: drop comments on deleted games or by deleted users
                             (weekly, CLEANUP_ORPHANED_COMMENTS=true)
- rebuild_relation_weights:  recompute RELATED_TO from current ratings
                             (nightly 4 AM, REBUILD_RELATION_WEIGHTS=true)

Every job can also be run on demand through run_job().
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import HTTPException, status
from sqlalchemy.orm import Session
from datetime import datetime
import logging
import os
from typing import Callable, Dict
from pytz import timezone

from app.models.game import Game
from app.models.rating import Rating
from app.models.user import User
from app.services.recommendation_service import co_rating_weights
from app.stores.context import StoreContext

logger = logging.getLogger(__name__)


def _enabled(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


class MaintenanceJobs:
    """
    Scheduled maintenance over a StoreContext

    Usage:
        jobs = MaintenanceJobs(stores)
        jobs.start()     # schedule jobs (if ENABLE_BACKGROUND_JOBS=true)
        jobs.run_job("sync_game_nodes")
        jobs.shutdown()
    """

    def __init__(self, stores: StoreContext):
        self.stores = stores
        self.timezone = timezone(os.getenv("TIMEZONE", "UTC"))
        self.scheduler = BackgroundScheduler(timezone=self.timezone)

        self.jobs: Dict[str, Callable[[Session], int]] = {
            'sync_game_nodes': self.sync_game_nodes,
            'cleanup_orphaned_comments': self.cleanup_orphaned_comments,
            'rebuild_relation_weights': self.rebuild_relation_weights,
        }
        self.job_stats = {
            job_id: {'last_run': None, 'status': 'idle', 'error': None, 'result': None}
            for job_id in self.jobs
        }

    def start(self):
        """Schedule the enabled jobs; does nothing unless ENABLE_BACKGROUND_JOBS=true"""
        if not _enabled("ENABLE_BACKGROUND_JOBS", "true"):
            logger.info("Background jobs disabled via ENABLE_BACKGROUND_JOBS environment variable")
            return

        self._schedule(
            'sync_game_nodes',
            'Sync game nodes into the graph',
            CronTrigger(hour=3, minute=0, timezone=self.timezone)
        )
        if _enabled("CLEANUP_ORPHANED_COMMENTS"):
            self._schedule(
                'cleanup_orphaned_comments',
                'Delete comments on missing games or users',
                CronTrigger(day_of_week='sun', hour=4, minute=0, timezone=self.timezone)
            )
        if _enabled("REBUILD_RELATION_WEIGHTS"):
            self._schedule(
                'rebuild_relation_weights',
                'Rebuild RELATED_TO weights from ratings',
                CronTrigger(hour=4, minute=0, timezone=self.timezone)
            )

        self.scheduler.start()
        logger.info(f"Background jobs started ({len(self.scheduler.get_jobs())} active, timezone {self.timezone})")

    def _schedule(self, job_id: str, name: str, trigger):
        self.scheduler.add_job(
            func=self.run_job,
            args=[job_id],
            trigger=trigger,
            id=job_id,
            name=name,
            replace_existing=True,
            max_instances=1  # Prevent concurrent runs
        )
        logger.info(f"Scheduled: {name}")

    def shutdown(self):
        """Shutdown scheduler gracefully"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Background jobs stopped gracefully")

    def get_job_stats(self) -> Dict:
        """Every known job with its last outcome and, when scheduled, its next run time"""
        scheduled = {job.id: job for job in self.scheduler.get_jobs()}
        jobs_info = []
        for job_id, stats in self.job_stats.items():
            job = scheduled.get(job_id)
            jobs_info.append({
                'id': job_id,
                'scheduled': job is not None,
                'next_run': job.next_run_time.isoformat() if job and job.next_run_time else None,
                **stats
            })

        return {
            'scheduler_running': self.scheduler.running,
            'timezone': str(self.timezone),
            'jobs': jobs_info
        }

    def run_job(self, job_id: str) -> Dict:
        """
        Run one job now in the calling thread and record its outcome

        A failing job is logged and recorded as failed; it does not raise.

        Raises:
            HTTPException: 404 for an unknown job id
        """
        job = self.jobs.get(job_id)
        if job is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown job: {job_id}")

        stats = self.job_stats[job_id]
        stats['status'] = 'running'
        stats['error'] = None

        db: Session = self.stores.sessions()
        start_time = datetime.now()
        try:
            logger.info(f"[{job_id}] Starting...")
            stats['result'] = job(db)
            stats['status'] = 'success'
            elapsed = (datetime.now() - start_time).total_seconds()
            logger.info(f"[{job_id}] Completed in {elapsed:.2f}s - {stats['result']} items")
        except Exception as e:
            db.rollback()
            elapsed = (datetime.now() - start_time).total_seconds()
            logger.error(f"[{job_id}] Failed after {elapsed:.2f}s: {str(e)}", exc_info=True)
            stats['status'] = 'failed'
            stats['error'] = str(e)
        finally:
            stats['last_run'] = datetime.now().isoformat()
            db.close()

        return {'id': job_id, **stats}

    # ============================================
    # Jobs
    # ============================================

    def sync_game_nodes(self, db: Session) -> int:
        """Upsert a Game node for every relational game; returns the number synced"""
        games = db.query(Game.id, Game.title, Game.genre).all()
        for game in games:
            self.stores.graph.upsert_game(game.id, game.title, game.genre)
        return len(games)

    def cleanup_orphaned_comments(self, db: Session) -> int:
        """Delete comments whose game or author no longer exists; returns the number deleted"""
        game_ids = [game_id for (game_id,) in db.query(Game.id).all()]
        user_ids = [user_id for (user_id,) in db.query(User.id).all()]
        return self.stores.documents.delete_orphaned_comments(game_ids, user_ids)

    def rebuild_relation_weights(self, db: Session) -> int:
        """Replace all RELATED_TO edges with weights from current ratings; returns the pair count"""
        # Nodes must exist for the edges to attach to
        self.sync_game_nodes(db)
        rows = db.query(Rating.user_id, Rating.game_id, Rating.rating).all()
        weights = co_rating_weights(rows)
        self.stores.graph.replace_relations(weights)
        return len(weights)
