"""Employer-side composite reads: applicants, conversations and dashboard.

The backend cannot join applications to applicant profiles in one request,
so these fan out phase by phase and merge in memory. A phase yielding no rows
ends the fan-out with an empty result; ``in.()`` is never sent with an empty
id list.
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timedelta, timezone

from skillmatch.config import SkillMatchConfig
from skillmatch.dal.base import Repository
from skillmatch.dal.messages import MessageRepository
from skillmatch.dal.profiles import ProfileRepository
from skillmatch.dal.result import Result, dal_operation
from skillmatch.matcher.scorer import score_job
from skillmatch.models import (
    ANONYMOUS_APPLICANT,
    UNKNOWN_JOB,
    Application,
    ApplicantView,
    ConversationSummary,
    DashboardStats,
    Job,
    JobStats,
    JobStatus,
    Profile,
)
from skillmatch.rest.errors import RestError
from skillmatch.rest.query import Query

logger = logging.getLogger(__name__)

MATCH_COLUMNS = ("title", "employer_id", "skills", "description", "requirements")


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EmployerRepository(Repository):

    def __init__(
        self,
        client,
        profiles: ProfileRepository,
        messages: MessageRepository,
        config: SkillMatchConfig | None = None,
    ):
        super().__init__(client)
        self.profiles = profiles
        self.messages = messages
        self.config = config or SkillMatchConfig()

    async def _applicant_profiles(self, applications: list[Application]) -> tuple[dict[str, Profile], RestError | None]:
        """Profiles keyed by id; a failed batch yields no profiles plus the error."""
        try:
            return await self.profiles.profiles_by_id([a.applicant_id for a in applications]), None
        except RestError as exc:
            logger.warning("Applicant profiles unavailable, rendering anonymously: %s", exc)
            return {}, exc

    @dal_operation(default=list)
    async def fetch_applicants_for_employer(
        self, employer_id: str, job_id: str | None = None
    ) -> Result[list[ApplicantView]]:
        """Applications to the employer's jobs, denormalized with applicant details."""
        query = (
            Query("applications")
            .embed("job", "jobs", *MATCH_COLUMNS, inner=True)
            .eq("job.employer_id", employer_id)
            .order("created_at", desc=True)
        )
        if job_id:
            query.eq("job_id", job_id)
        rows = await self.select(query)
        logger.debug("Employer %s has %d applications", employer_id, len(rows))
        if not rows:
            return Result.success([])

        applications = [Application.model_validate(row) for row in rows]
        profiles, error = await self._applicant_profiles(applications)

        views = []
        for app in applications:
            profile = profiles.get(app.applicant_id)
            job = app.job or Job()
            score = 0
            if profile:
                score, _ = score_job(job, profile.skills, profile.headline, self.config.matching)
            views.append(ApplicantView(
                application_id=app.id,
                job_id=app.job_id,
                seeker_id=app.applicant_id,
                name=(profile.full_name if profile else None) or ANONYMOUS_APPLICANT,
                headline=(profile.headline if profile else None) or "Job Seeker",
                applied_for=job.title or UNKNOWN_JOB,
                status=app.status,
                applied_at=app.submitted_at,
                avatar_url=profile.avatar_url if profile else None,
                match_score=score,
            ))

        if error:
            return Result.failure(error.message, error.kind, views)
        return Result.success(views)

    @dal_operation(default=list)
    async def fetch_employer_chats(self, employer_id: str) -> Result[list[ConversationSummary]]:
        """Jobs, then applications to them, then applicant profiles; one summary per application."""
        job_rows = await self.select(Query("jobs").select("id", "title").eq("employer_id", employer_id))
        if not job_rows:
            return Result.success([])

        app_rows = await self.select(
            Query("applications")
            .embed("job", "jobs", "title")
            .in_("job_id", [row["id"] for row in job_rows])
        )
        if not app_rows:
            return Result.success([])

        applications = [Application.model_validate(row) for row in app_rows]
        profiles, error = await self._applicant_profiles(applications)
        previews = await asyncio.gather(
            *(self.messages.fetch_last_message(app.id) for app in applications)
        )

        chats = []
        for app, last in zip(applications, previews):
            profile = profiles.get(app.applicant_id)
            name = (profile.full_name if profile else None) or ANONYMOUS_APPLICANT
            message = last.data
            title = (app.job.title if app.job else "") or "Job"
            chats.append(ConversationSummary(
                application_id=app.id,
                counterpart=name,
                preview=message.content if message else f"Applied for: {title}",
                last_activity_at=message.created_at if message else app.submitted_at,
            ))

        if error:
            return Result.failure(error.message, error.kind, chats)
        return Result.success(chats)

    @dal_operation()
    async def fetch_dashboard(self, employer_id: str, now: datetime | None = None) -> Result[DashboardStats]:
        now = now or datetime.now(timezone.utc)
        day_ago = now - timedelta(days=1)
        listing = timedelta(days=self.config.jobs.listing_days)

        job_rows = await self.select(
            Query("jobs").eq("employer_id", employer_id).order("created_at", desc=True)
        )
        if not job_rows:
            return Result.success(DashboardStats())
        jobs = [Job.model_validate(row) for row in job_rows]

        app_rows = await self.select(Query("applications").in_("job_id", [job.id for job in jobs]))
        applications = [Application.model_validate(row) for row in app_rows]

        def is_new(app: Application) -> bool:
            created = _aware(app.created_at or app.applied_at)
            return created is not None and created > day_ago

        job_stats = []
        for job in jobs:
            job_apps = [a for a in applications if a.job_id == job.id]
            created = _aware(job.created_at) or now
            remaining = (created + listing - now).total_seconds() / 86400
            job_stats.append(JobStats(
                id=job.id,
                title=job.title,
                status=job.status,
                applicants=len(job_apps),
                new_applicants=sum(1 for a in job_apps if is_new(a)),
                days_left=max(math.ceil(remaining), 0),
            ))

        return Result.success(DashboardStats(
            active_jobs=sum(1 for job in jobs if job.status == JobStatus.ACTIVE),
            total_applicants=len(applications),
            new_today=sum(1 for a in applications if is_new(a)),
            jobs=job_stats,
        ))
