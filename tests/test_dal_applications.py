"""Tests for applying, status changes and seeker conversations."""

import pytest

from skillmatch.models import ApplicationStatus, UNKNOWN_COMPANY
from skillmatch.rest.errors import ApiError, ErrorKind, MalformedResponseError, TransportError


@pytest.mark.asyncio
class TestApplyToJob:
    async def test_apply(self, service, marketplace):
        result = await service.applications.apply_to_job("job-3", "seeker-1")
        assert result.ok
        assert result.data.status == ApplicationStatus.PENDING
        assert result.data.applied_at is not None

    async def test_duplicate(self, service, marketplace):
        result = await service.applications.apply_to_job("job-1", "seeker-1")
        assert not result.ok
        assert result.is_duplicate
        assert result.error == "You have already applied for this job"

    async def test_applied_job_disappears_from_listing(self, service, marketplace):
        await service.applications.apply_to_job("job-3", "seeker-1")
        listing = await service.jobs.fetch_jobs_excluding_applied("seeker-1")
        assert "job-3" not in [job.id for job in listing.data]

    async def test_other_backend_error(self, service, marketplace):
        marketplace.fail("insert", "applications", ApiError("permission denied", status_code=403, code="42501"))
        result = await service.applications.apply_to_job("job-3", "seeker-1")
        assert result.kind == ErrorKind.CONSTRAINT
        assert not result.is_duplicate

    async def test_has_applied(self, service, marketplace):
        assert (await service.applications.has_applied("job-1", "seeker-1")).data is True
        assert (await service.applications.has_applied("job-4", "seeker-1")).data is False


@pytest.mark.asyncio
class TestFetchApplicationsWithJob:
    async def test_joined_job(self, service, marketplace):
        result = await service.applications.fetch_applications_with_job("seeker-2")
        titles = sorted(app.job.title for app in result.data)
        assert titles == ["Backend Developer", "Data Analyst"]

    async def test_rejected_join_is_empty_success(self, service, marketplace):
        marketplace.fail("select", "applications", ApiError("bad embed", status_code=400))
        result = await service.applications.fetch_applications_with_job("seeker-2")
        assert result.ok
        assert result.data == []

    async def test_out_of_enum_status_keeps_batch(self, service, marketplace):
        marketplace.seed(
            "applications",
            {"id": "app-7", "job_id": "job-4", "applicant_id": "seeker-1", "status": "accepted"},
            {"id": "app-8", "job_id": "job-3", "applicant_id": "seeker-1", "status": "withdrawn"},
        )
        result = await service.applications.fetch_applications_with_job("seeker-1")

        assert result.ok
        statuses = {app.id: app.status for app in result.data}
        assert statuses == {
            "app-1": ApplicationStatus.PENDING,
            "app-7": ApplicationStatus.ACCEPTED,
            "app-8": ApplicationStatus.PENDING,
        }

    async def test_transport_failure_reported(self, service, marketplace):
        marketplace.fail("select", "applications", TransportError("offline"))
        result = await service.applications.fetch_applications_with_job("seeker-2")
        assert result.data == []
        assert result.kind == ErrorKind.NETWORK

    async def test_malformed_response(self, service, marketplace):
        marketplace.fail("select", "applications", MalformedResponseError("garbage"))
        result = await service.applications.fetch_applications_with_job("seeker-2")
        assert result.data == []
        assert result.kind == ErrorKind.MALFORMED


@pytest.mark.asyncio
class TestStatusChanges:
    async def test_update_status(self, service, marketplace):
        result = await service.applications.update_application_status("app-1", "shortlisted")
        assert result.data.status == ApplicationStatus.SHORTLISTED
        assert marketplace.tables["applications"][0]["status"] == "shortlisted"

    async def test_unknown_status(self, service, marketplace):
        result = await service.applications.update_application_status("app-1", "hired")
        assert result.kind == ErrorKind.CONSTRAINT
        assert marketplace.calls_to("update", "applications") == []

    async def test_missing_application(self, service, marketplace):
        result = await service.applications.update_application_status("nope", "rejected")
        assert result.kind == ErrorKind.NOT_FOUND

    async def test_schedule_interview_posts_note(self, service, marketplace):
        result = await service.applications.schedule_interview("app-1", "emp-1", "Tuesday 10:00?")
        assert result.data.status == ApplicationStatus.INTERVIEW
        messages = marketplace.tables["messages"]
        assert [m["content"] for m in messages] == ["Tuesday 10:00?"]

    async def test_schedule_interview_without_note(self, service, marketplace):
        result = await service.applications.schedule_interview("app-1", "emp-1")
        assert result.ok
        assert marketplace.tables["messages"] == []


@pytest.mark.asyncio
class TestSeekerChats:
    async def test_one_per_application(self, service, marketplace):
        marketplace.seed(
            "messages",
            {"application_id": "app-2", "sender_id": "emp-1", "content": "Hi Grace",
             "created_at": "2025-01-07T09:00:00+00:00"},
            {"application_id": "app-2", "sender_id": "seeker-2", "content": "Hello!",
             "created_at": "2025-01-07T09:05:00+00:00"},
        )
        result = await service.applications.fetch_seeker_chats("seeker-2")

        chats = {chat.application_id: chat for chat in result.data}
        assert set(chats) == {"app-2", "app-3"}
        assert chats["app-2"].preview == "Hello!"
        assert chats["app-2"].counterpart == "Acme Corp"
        assert chats["app-3"].preview == "Status: interview"
        assert chats["app-3"].counterpart == "Globex"

    async def test_pending_marked_unread(self, service, marketplace):
        result = await service.applications.fetch_seeker_chats("seeker-1")
        assert [chat.unread for chat in result.data] == [1]

    async def test_missing_company(self, service, fake_client):
        fake_client.seed("jobs", {"id": "j", "title": "Cook"})
        fake_client.seed("applications", {"id": "a", "job_id": "j", "applicant_id": "u"})
        result = await service.applications.fetch_seeker_chats("u")
        assert result.data[0].counterpart == UNKNOWN_COMPANY

    async def test_no_applications(self, service, marketplace):
        result = await service.applications.fetch_seeker_chats("nobody")
        assert result.ok
        assert result.data == []
        assert marketplace.calls_to("select", "messages") == []
