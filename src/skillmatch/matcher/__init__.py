"""Job-to-seeker matching."""

from skillmatch.matcher.scorer import recommend_jobs, score_job

__all__ = ["recommend_jobs", "score_job"]
