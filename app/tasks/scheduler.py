"""
Background task scheduler using APScheduler
"""
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from datetime import datetime

from app.core.config import settings

# Global scheduler instance
scheduler: BackgroundScheduler = None


def start_scheduler():
    """Initialize and start the scheduler"""
    global scheduler

    if scheduler is not None:
        return

    scheduler = BackgroundScheduler(timezone=settings.SCHEDULER_TIMEZONE)

    # ============================================
    # Daily Jobs (run at specific times)
    # ============================================

    # Meta insights for yesterday - daily at META_COLLECT_HOUR (local time)
    scheduler.add_job(
        func=collect_meta_job,
        trigger=CronTrigger(
            hour=settings.META_COLLECT_HOUR,
            minute=settings.META_COLLECT_MINUTE,
            timezone=settings.SCHEDULER_TIMEZONE,
        ),
        id="collect_meta",
        name="Collect Meta ad insights for yesterday",
        replace_existing=True,
    )

    # Start the scheduler
    scheduler.start()
    print(f"[{datetime.now()}] Scheduler started with {len(scheduler.get_jobs())} jobs")


def stop_scheduler():
    """Stop the scheduler"""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown()
        scheduler = None
        print(f"[{datetime.now()}] Scheduler stopped")


# ============================================
# Job Functions
# ============================================

def collect_meta_job():
    """Collect yesterday's Meta insights for all active clients"""
    print(f"[{datetime.now()}] Running Meta collection job...")
    try:
        # Import here to avoid circular imports
        from app.tasks.collect_tasks import collect_meta_all
        stats = collect_meta_all()
        print(f"[{datetime.now()}] Meta collection completed: {stats}")
    except Exception as e:
        print(f"[{datetime.now()}] Meta collection failed: {e}")
