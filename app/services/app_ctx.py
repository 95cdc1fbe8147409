from __future__ import annotations

from functools import lru_cache

from app.services.job_tracker import JobTracker


@lru_cache(maxsize=1)
def job_tracker() -> JobTracker:
    return JobTracker()
