"""
Scheduler wiring and the collection task entry points.
"""
from datetime import date

import pytest

from app.core.config import settings
from app.tasks import collect_tasks, scheduler


def test_scheduler_registers_daily_meta_job():
    scheduler.start_scheduler()
    try:
        jobs = scheduler.scheduler.get_jobs()
        assert [job.id for job in jobs] == ["collect_meta"]
        trigger = str(jobs[0].trigger)
        assert f"hour='{settings.META_COLLECT_HOUR}'" in trigger
        assert f"minute='{settings.META_COLLECT_MINUTE}'" in trigger
    finally:
        scheduler.stop_scheduler()
    assert scheduler.scheduler is None


def test_collect_meta_job_reports_failures(monkeypatch, capsys):
    def failing_collect():
        raise RuntimeError("db down")

    monkeypatch.setattr(collect_tasks, "collect_meta_all", failing_collect)
    scheduler.collect_meta_job()
    assert "Meta collection failed: db down" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_collect_all_without_token_counts_failure(memory_store, monkeypatch):
    monkeypatch.setattr(settings, "META_ACCESS_TOKEN", None)
    monkeypatch.setattr(settings, "META_CLIENT_DELAY_SECONDS", 0.0)
    stats = await collect_tasks.collect_meta_all_async(date(2024, 3, 4), date(2024, 3, 4), store=memory_store)
    assert stats == {"success": 0, "failed": 1, "rows": 0}
