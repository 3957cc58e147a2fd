"""Profile reads and owner updates."""

from __future__ import annotations

import logging

from skillmatch.dal.base import Repository
from skillmatch.dal.result import Result, dal_operation
from skillmatch.models import Profile
from skillmatch.rest.errors import ErrorKind
from skillmatch.rest.query import Query

logger = logging.getLogger(__name__)

PROFILES = "profiles"


class ProfileRepository(Repository):

    @dal_operation()
    async def get_profile(self, user_id: str) -> Result[Profile]:
        rows = await self.select(Query(PROFILES).eq("id", user_id))
        if not rows:
            return Result.failure(f"Profile {user_id} not found", ErrorKind.NOT_FOUND)
        return Result.success(Profile.model_validate(rows[0]))

    @dal_operation()
    async def update_profile(self, user_id: str, updates: dict) -> Result[Profile]:
        # The owner id is the row key, never part of the patch
        values = {k: v for k, v in updates.items() if k != "id"}
        rows = await self.update(Query(PROFILES).eq("id", user_id), values)
        if not rows:
            return Result.failure(f"Profile {user_id} not found", ErrorKind.NOT_FOUND)
        return Result.success(Profile.model_validate(rows[0]))

    async def profiles_by_id(self, user_ids: list[str]) -> dict[str, Profile]:
        """Batch-fetch profiles in one ``in.(...)`` call. Raises on backend failure."""
        ids = list(dict.fromkeys(i for i in user_ids if i))
        if not ids:
            return {}
        rows = await self.select(Query(PROFILES).in_("id", ids))
        profiles = {}
        for row in rows:
            profile = Profile.model_validate(row)
            profiles[profile.id] = profile
        logger.debug("Fetched %d of %d requested profiles", len(profiles), len(ids))
        return profiles
