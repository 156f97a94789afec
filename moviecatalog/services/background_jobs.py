"""
Background Jobs Service
Periodically reaps expired sessions so abandoned tokens don't pile up
between reads

Features:
- Scheduled jobs using APScheduler
- Configurable timezone and interval
- Job monitoring and statistics
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from datetime import datetime
import logging
import os
from typing import Dict
from pytz import timezone

from moviecatalog.services.session_store import SessionStore

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "sweep_sessions"


class BackgroundJobService:
    """
    Manages scheduled maintenance jobs for one application instance

    Jobs:
    - Sweep expired sessions (every SESSION_SWEEP_MINUTES, default hourly)

    Usage:
        jobs = BackgroundJobService(session_store)
        jobs.start()  # Start all scheduled jobs
        jobs.shutdown()  # Stop all jobs gracefully
    """

    def __init__(self, session_store: SessionStore):
        """Initialize scheduler with timezone configuration"""
        tz_name = os.getenv("TIMEZONE", "UTC")
        self.timezone = timezone(tz_name)
        self.scheduler = BackgroundScheduler(timezone=self.timezone)
        self.session_store = session_store
        self.sweep_minutes = int(os.getenv("SESSION_SWEEP_MINUTES", "60"))

        # Track job execution statistics
        self.job_stats = {
            SWEEP_JOB_ID: {'last_run': None, 'status': 'idle', 'error': None, 'evicted': 0}
        }

    def start(self):
        """
        Start all scheduled background jobs

        Jobs are only started if ENABLE_BACKGROUND_JOBS=true in environment
        """
        if os.getenv("ENABLE_BACKGROUND_JOBS", "true").lower() != "true":
            logger.info("Background jobs disabled via ENABLE_BACKGROUND_JOBS environment variable")
            return

        self.scheduler.add_job(
            func=self.sweep_sessions,
            trigger=IntervalTrigger(minutes=self.sweep_minutes, timezone=self.timezone),
            id=SWEEP_JOB_ID,
            name='Sweep expired sessions',
            replace_existing=True,
            max_instances=1  # Prevent concurrent runs
        )
        logger.info(f"Scheduled: Sweep expired sessions (every {self.sweep_minutes} min)")

        self.scheduler.start()
        logger.info(f"Background jobs started (timezone {self.timezone}, {len(self.scheduler.get_jobs())} job(s))")

    def shutdown(self):
        """Shutdown scheduler gracefully"""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Background jobs stopped gracefully")

    def get_job_stats(self) -> Dict:
        """
        Get statistics for all jobs including next run times

        Jobs that were never scheduled (background jobs disabled) are still
        reported with their manual-run history.
        """
        scheduled = {job.id: job for job in self.scheduler.get_jobs()}
        jobs_info = []
        for job_id, stats in self.job_stats.items():
            job = scheduled.get(job_id)
            jobs_info.append({
                'id': job_id,
                'name': job.name if job else None,
                'scheduled': job is not None,
                'next_run': job.next_run_time.isoformat() if job and job.next_run_time else None,
                'last_run': stats.get('last_run'),
                'status': stats.get('status', 'idle'),
                'error': stats.get('error'),
                'evicted': stats.get('evicted', 0)
            })

        return {
            'scheduler_running': self.scheduler.running,
            'timezone': str(self.timezone),
            'jobs': jobs_info
        }

    # ============================================
    # Job Methods
    # ============================================

    def sweep_sessions(self) -> int:
        """Evict every expired session from the store"""
        job_id = SWEEP_JOB_ID
        self.job_stats[job_id]['status'] = 'running'
        self.job_stats[job_id]['error'] = None
        start_time = datetime.now()

        try:
            evicted = self.session_store.sweep()
            elapsed = (datetime.now() - start_time).total_seconds()
            logger.info(f"[{job_id}] Completed in {elapsed:.3f}s - Evicted {evicted} expired session(s)")

            self.job_stats[job_id]['status'] = 'success'
            self.job_stats[job_id]['evicted'] = evicted
            return evicted

        except Exception as e:
            logger.error(f"[{job_id}] Failed: {str(e)}")
            self.job_stats[job_id]['status'] = 'failed'
            self.job_stats[job_id]['error'] = str(e)
            raise

        finally:
            self.job_stats[job_id]['last_run'] = datetime.now().isoformat()

    def pause_job(self, job_id: str):
        """Pause a scheduled job"""
        self.scheduler.pause_job(job_id)
        logger.info(f"Paused job: {job_id}")

    def resume_job(self, job_id: str):
        """Resume a paused job"""
        self.scheduler.resume_job(job_id)
        logger.info(f"Resumed job: {job_id}")
