"""Applications: apply, track status, and seeker-side conversations."""

from __future__ import annotations

import asyncio
import logging

from skillmatch.dal.base import Repository, utcnow_iso
from skillmatch.dal.messages import MessageRepository
from skillmatch.dal.result import Result, dal_operation
from skillmatch.models import (
    UNKNOWN_COMPANY,
    Application,
    ApplicationStatus,
    ConversationSummary,
)
from skillmatch.rest.errors import ApiError, ErrorKind, RestError
from skillmatch.rest.query import Query

logger = logging.getLogger(__name__)

APPLICATIONS = "applications"
ALREADY_APPLIED = "You have already applied for this job"


class ApplicationRepository(Repository):

    def __init__(self, client, messages: MessageRepository):
        super().__init__(client)
        self.messages = messages

    async def applied_job_ids(self, user_id: str) -> set[str]:
        """Job ids the user applied to. Raises on backend failure."""
        rows = await self.select(Query(APPLICATIONS).select("job_id").eq("applicant_id", user_id))
        return {row["job_id"] for row in rows}

    async def fetch_applications_with_job(self, user_id: str) -> Result[list[Application]]:
        """The user's applications, each with its joined job.

        A rejected join degrades to no applications; transport and decoding
        failures are reported as errors.
        """
        query = Query(APPLICATIONS).eq("applicant_id", user_id).embed("job", "jobs")
        try:
            rows = await self.select(query)
        except ApiError as exc:
            logger.warning("Applied jobs fetch rejected, treating as none: %s", exc)
            return Result.success([])
        except RestError as exc:
            logger.warning("Applied jobs fetch failed: %s", exc)
            return Result.failure(exc.message, exc.kind, [])

        try:
            applications = [Application.model_validate(row) for row in rows]
        except ValueError as exc:
            logger.warning("Applied jobs response had an unexpected shape: %s", exc)
            return Result.failure(f"Unexpected response: {exc}", ErrorKind.MALFORMED, [])
        return Result.success(applications)

    @dal_operation()
    async def apply_to_job(self, job_id: str, user_id: str) -> Result[Application]:
        row = {
            "job_id": job_id,
            "applicant_id": user_id,
            "status": ApplicationStatus.PENDING.value,
            "applied_at": utcnow_iso(),
        }
        try:
            rows = await self.insert(APPLICATIONS, row)
        except ApiError as exc:
            if exc.is_unique_violation:
                logger.info("Duplicate application for job=%s user=%s", job_id, user_id)
                return Result.failure(ALREADY_APPLIED, ErrorKind.DUPLICATE)
            raise
        if not rows:
            # Backend did not return the representation; the insert still happened
            return Result.success(Application.model_validate({"id": "", **row}))
        return Result.success(Application.model_validate(rows[0]))

    @dal_operation(default=lambda: False)
    async def has_applied(self, job_id: str, user_id: str) -> Result[bool]:
        query = Query(APPLICATIONS).select("id").eq("job_id", job_id).eq("applicant_id", user_id)
        rows = await self.select(query)
        return Result.success(bool(rows))

    @dal_operation()
    async def update_application_status(
        self, application_id: str, status: ApplicationStatus | str
    ) -> Result[Application]:
        try:
            status = ApplicationStatus(status)
        except ValueError:
            return Result.failure(f"Unknown application status: {status}", ErrorKind.CONSTRAINT)
        rows = await self.update(Query(APPLICATIONS).eq("id", application_id), {"status": status.value})
        if not rows:
            return Result.failure(f"Application {application_id} not found", ErrorKind.NOT_FOUND)
        return Result.success(Application.model_validate(rows[0]))

    async def schedule_interview(
        self, application_id: str, sender_id: str, note: str | None = None
    ) -> Result[Application]:
        """Move the application to ``interview`` and post the invite note, if any."""
        result = await self.update_application_status(application_id, ApplicationStatus.INTERVIEW)
        if result.ok and note:
            sent = await self.messages.send_message(application_id, sender_id, note)
            if not sent.ok:
                return Result.failure(sent.error, sent.kind, result.data)
        return result

    async def fetch_seeker_chats(self, user_id: str) -> Result[list[ConversationSummary]]:
        """One conversation per application; company name is the counterpart."""
        applications = await self.fetch_applications_with_job(user_id)
        if not applications.data:
            return Result(data=[], error=applications.error, kind=applications.kind)

        previews = await asyncio.gather(
            *(self.messages.fetch_last_message(app.id) for app in applications.data)
        )
        chats = []
        for app, last in zip(applications.data, previews):
            company = (app.job.company_name if app.job else "") or UNKNOWN_COMPANY
            message = last.data
            chats.append(ConversationSummary(
                application_id=app.id,
                counterpart=company,
                preview=message.content if message else f"Status: {app.status.value}",
                last_activity_at=message.created_at if message else app.submitted_at,
                unread=1 if app.status == ApplicationStatus.PENDING else 0,
            ))
        return Result.success(chats)
