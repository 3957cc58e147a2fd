"""AI recommendations: the matching engine fed by the DAL."""

from __future__ import annotations

import logging

from skillmatch.config import MatchingConfig
from skillmatch.dal.applications import ApplicationRepository
from skillmatch.dal.base import Repository
from skillmatch.dal.profiles import ProfileRepository
from skillmatch.dal.result import Result, dal_operation
from skillmatch.matcher.scorer import recommend_jobs
from skillmatch.models import Job, Recommendation
from skillmatch.rest.query import Query

logger = logging.getLogger(__name__)


class RecommendationService(Repository):

    def __init__(
        self,
        client,
        profiles: ProfileRepository,
        applications: ApplicationRepository,
        config: MatchingConfig | None = None,
    ):
        super().__init__(client)
        self.profiles = profiles
        self.applications = applications
        self.config = config or MatchingConfig()

    @dal_operation(default=list)
    async def fetch_recommendations(self, user_id: str) -> Result[list[Recommendation]]:
        """Newest jobs the user has not applied to, ranked by match score."""
        profile = await self.profiles.get_profile(user_id)
        if not profile.ok:
            logger.info("No profile for %s, recommending without skills: %s", user_id, profile.error)
        skills = profile.data.skills if profile.data else []
        headline = profile.data.headline if profile.data else None

        applied = await self.applications.applied_job_ids(user_id)
        rows = await self.select(
            Query("jobs").order("created_at", desc=True).limit(self.config.candidate_limit)
        )
        jobs = [Job.model_validate(row) for row in rows]
        ranked = recommend_jobs(jobs, skills, headline, self.config, exclude_ids=applied)
        logger.debug("%d of %d candidate jobs recommended for %s", len(ranked), len(jobs), user_id)
        return Result.success(ranked)
