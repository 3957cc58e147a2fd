"""Pydantic data models for SkillMatch."""

import logging
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


def _as_list(value) -> list[str]:
    """Rows may carry null, a single string or a list for array columns."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    return [str(v) for v in value if v is not None]


# --- Enums ---

class Role(str, Enum):
    SEEKER = "seeker"
    EMPLOYER = "employer"

    @classmethod
    def parse(cls, value: str | None) -> "Role | None":
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class JobStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    SHORTLISTED = "shortlisted"
    REJECTED = "rejected"
    INTERVIEW = "interview"
    ACCEPTED = "accepted"


# --- Profile Models ---

class Preferences(BaseModel):
    """Seeker job preferences, stored as flat columns on the profile row."""
    min_salary: int | None = None
    max_salary: int | None = None
    preferred_distance: int | None = None
    preferred_job_type: str | None = None
    preferred_shift: str | None = None
    experience_level: str | None = None

    def to_updates(self) -> dict:
        return self.model_dump(exclude_none=True)


class Profile(BaseModel):
    """A user's persisted identity record (seeker or employer)."""
    model_config = ConfigDict(extra="ignore")

    id: str
    role: Role | None = None
    full_name: str | None = None
    company_name: str | None = None
    headline: str | None = None
    tagline: str | None = None
    skills: list[str] = Field(default_factory=list)
    bio: str | None = None
    location: str | None = None
    avatar_url: str | None = None
    resume_url: str | None = None
    min_salary: int | None = None
    max_salary: int | None = None
    preferred_distance: int | None = None
    preferred_job_type: str | None = None
    preferred_shift: str | None = None
    experience_level: str | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value):
        if isinstance(value, Role) or value is None:
            return value
        return Role.parse(value)

    @field_validator("skills", mode="before")
    @classmethod
    def _parse_skills(cls, value):
        return _as_list(value)

    @property
    def display_name(self) -> str:
        if self.role == Role.EMPLOYER and self.company_name:
            return self.company_name
        return self.full_name or self.company_name or ""

    @property
    def preferences(self) -> Preferences:
        return Preferences(
            min_salary=self.min_salary,
            max_salary=self.max_salary,
            preferred_distance=self.preferred_distance,
            preferred_job_type=self.preferred_job_type,
            preferred_shift=self.preferred_shift,
            experience_level=self.experience_level,
        )


# --- Job Models ---

class Job(BaseModel):
    """An employer-owned posting.

    Embedded projections (e.g. ``job:jobs(title)``) only carry the selected
    columns, so every field has a default.
    """
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    employer_id: str | None = None
    title: str = ""
    company_name: str = ""
    location: str = ""
    salary_range: str | None = None
    job_type: str | None = None
    description: str = ""
    requirements: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    status: JobStatus = JobStatus.ACTIVE
    created_at: datetime | None = None

    @field_validator("title", "company_name", "location", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("requirements", "skills", "benefits", mode="before")
    @classmethod
    def _parse_lists(cls, value):
        return _as_list(value)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        if value is None:
            return JobStatus.ACTIVE
        return value.lower() if isinstance(value, str) else value


class JobDraft(BaseModel):
    """Input of the job posting flow."""
    title: str
    company_name: str
    location: str = ""
    salary_range: str | None = None
    job_type: str | None = None
    description: str = ""
    requirements: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    hours_per_week: int | None = None
    shift_preference: str | None = None
    start_date: str | None = None
    is_flexible: bool = False

    def to_row(self, employer_id: str) -> dict:
        row = self.model_dump()
        row["employer_id"] = employer_id
        row["status"] = JobStatus.ACTIVE.value
        return row


# --- Application Models ---

class Application(BaseModel):
    """Link between one seeker and one job."""
    model_config = ConfigDict(extra="ignore")

    id: str
    job_id: str
    applicant_id: str
    status: ApplicationStatus = ApplicationStatus.PENDING
    applied_at: datetime | None = None
    created_at: datetime | None = None
    job: Job | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        if value is None:
            return ApplicationStatus.PENDING
        if isinstance(value, ApplicationStatus):
            return value
        try:
            return ApplicationStatus(str(value).strip().lower())
        except ValueError:
            logger.warning("Unknown application status %r, treating as pending", value)
            return ApplicationStatus.PENDING

    @property
    def submitted_at(self) -> datetime | None:
        return self.applied_at or self.created_at


class SavedJob(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: str
    job_id: str
    created_at: datetime | None = None
    job: Job | None = None


class RecentlyViewed(BaseModel):
    """A job the user opened, flattened from the recently_viewed join."""
    job: Job
    viewed_at: datetime | None = None


class Message(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    application_id: str
    sender_id: str
    content: str = ""
    created_at: datetime | None = None

    @field_validator("content", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


# --- Denormalized Views ---

ANONYMOUS_APPLICANT = "Anonymous Applicant"
UNKNOWN_JOB = "Unknown Job"
UNKNOWN_COMPANY = "Unknown Company"


class ApplicantView(BaseModel):
    """An application as shown to the employer who owns the job."""
    application_id: str
    job_id: str
    seeker_id: str
    name: str = ANONYMOUS_APPLICANT
    headline: str = "Job Seeker"
    applied_for: str = UNKNOWN_JOB
    status: ApplicationStatus = ApplicationStatus.PENDING
    applied_at: datetime | None = None
    avatar_url: str | None = None
    match_score: int = 0


class ConversationSummary(BaseModel):
    """One conversation per application, with its last-message preview."""
    application_id: str
    counterpart: str
    preview: str
    last_activity_at: datetime | None = None
    unread: int = 0

    @property
    def initials(self) -> str:
        return self.counterpart[:2].upper()


class JobStats(BaseModel):
    id: str
    title: str
    status: JobStatus
    applicants: int = 0
    new_applicants: int = 0
    days_left: int = 0

    @property
    def days_left_label(self) -> str:
        return f"{self.days_left} days left" if self.days_left > 0 else "Expired"


class DashboardStats(BaseModel):
    active_jobs: int = 0
    total_applicants: int = 0
    new_today: int = 0
    jobs: list[JobStats] = Field(default_factory=list)


# --- Matching Models ---

class Recommendation(BaseModel):
    """A job with its displayed match score."""
    job: Job
    match_score: int

    @property
    def match_label(self) -> str:
        return f"{self.match_score}%"
