"""Job listing, search, posting, bookmarks and view history."""

from __future__ import annotations

import logging

from skillmatch.dal.applications import ApplicationRepository
from skillmatch.dal.base import Repository, utcnow_iso
from skillmatch.dal.result import Result, dal_operation
from skillmatch.models import Job, JobDraft, RecentlyViewed, SavedJob
from skillmatch.rest.errors import ApiError, ErrorKind
from skillmatch.rest.query import Query, sanitize_term

logger = logging.getLogger(__name__)

JOBS = "jobs"
SAVED_JOBS = "saved_jobs"
RECENTLY_VIEWED = "recently_viewed"
SEARCH_COLUMNS = ("title", "company_name", "description")


class JobRepository(Repository):

    def __init__(self, client, applications: ApplicationRepository):
        super().__init__(client)
        self.applications = applications

    @dal_operation()
    async def get_job(self, job_id: str) -> Result[Job]:
        rows = await self.select(Query(JOBS).eq("id", job_id))
        if not rows:
            return Result.failure(f"Job {job_id} not found", ErrorKind.NOT_FOUND)
        return Result.success(Job.model_validate(rows[0]))

    @dal_operation(default=list)
    async def fetch_jobs_excluding_applied(self, user_id: str, location: str | None = None) -> Result[list[Job]]:
        """Jobs matching an optional location substring, minus those the user applied to.

        If the applied-ids lookup fails nothing is returned, so an applied job
        can never slip through.
        """
        query = Query(JOBS).order("created_at", desc=True)
        term = sanitize_term(location or "")
        if term:
            query.ilike("location", term)
        rows = await self.select(query)
        if not rows:
            return Result.success([])

        applied = await self.applications.applied_job_ids(user_id)
        jobs = [Job.model_validate(row) for row in rows]
        return Result.success([job for job in jobs if job.id not in applied])

    @dal_operation(default=list)
    async def search_jobs(self, term: str) -> Result[list[Job]]:
        query = Query(JOBS).order("created_at", desc=True)
        term = sanitize_term(term)
        if term:
            query.or_ilike(SEARCH_COLUMNS, term)
        rows = await self.select(query)
        return Result.success([Job.model_validate(row) for row in rows])

    @dal_operation(default=list)
    async def fetch_employer_jobs(self, employer_id: str) -> Result[list[Job]]:
        query = Query(JOBS).eq("employer_id", employer_id).order("created_at", desc=True)
        rows = await self.select(query)
        return Result.success([Job.model_validate(row) for row in rows])

    @dal_operation()
    async def create_job(self, employer_id: str, draft: JobDraft) -> Result[Job]:
        row = draft.to_row(employer_id)
        rows = await self.insert(JOBS, row)
        return Result.success(Job.model_validate(rows[0] if rows else row))

    @dal_operation()
    async def record_job_view(self, user_id: str, job_id: str) -> Result[bool]:
        """Upsert on (user, job); a later view only refreshes ``viewed_at``."""
        row = {"user_id": user_id, "job_id": job_id, "viewed_at": utcnow_iso()}
        await self.insert(RECENTLY_VIEWED, row, on_conflict=("user_id", "job_id"))
        return Result.success(True)

    @dal_operation(default=list)
    async def fetch_recently_viewed(self, user_id: str) -> Result[list[RecentlyViewed]]:
        query = (
            Query(RECENTLY_VIEWED)
            .select("viewed_at")
            .embed("job", "jobs")
            .eq("user_id", user_id)
            .order("viewed_at", desc=True)
        )
        rows = await self.select(query)
        views = [
            RecentlyViewed(job=Job.model_validate(row["job"]), viewed_at=row.get("viewed_at"))
            for row in rows
            if row.get("job")
        ]
        return Result.success(views)

    @dal_operation()
    async def save_job(self, job_id: str, user_id: str) -> Result[bool]:
        """Bookmark a job. Saving an already-saved job is a successful no-op."""
        row = {"job_id": job_id, "user_id": user_id, "created_at": utcnow_iso()}
        try:
            await self.insert(SAVED_JOBS, row)
        except ApiError as exc:
            if not exc.is_unique_violation:
                raise
            logger.debug("Job %s already saved by %s", job_id, user_id)
        return Result.success(True)

    @dal_operation()
    async def unsave_job(self, job_id: str, user_id: str) -> Result[bool]:
        await self.delete(Query(SAVED_JOBS).eq("job_id", job_id).eq("user_id", user_id))
        return Result.success(True)

    @dal_operation(default=lambda: False)
    async def is_job_saved(self, job_id: str, user_id: str) -> Result[bool]:
        total = await self.count(Query(SAVED_JOBS).select("count").eq("job_id", job_id).eq("user_id", user_id))
        return Result.success(total > 0)

    @dal_operation(default=list)
    async def fetch_saved_jobs(self, user_id: str) -> Result[list[SavedJob]]:
        query = (
            Query(SAVED_JOBS)
            .embed("job", "jobs")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
        )
        try:
            rows = await self.select(query)
        except ApiError as exc:
            logger.warning("Saved jobs fetch rejected, treating as none: %s", exc)
            return Result.success([])
        return Result.success([SavedJob.model_validate(row) for row in rows])
