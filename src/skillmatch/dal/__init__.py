"""Data access layer: async repositories over the REST client."""

from skillmatch.config import SkillMatchConfig
from skillmatch.dal.applications import ApplicationRepository
from skillmatch.dal.employer import EmployerRepository
from skillmatch.dal.jobs import JobRepository
from skillmatch.dal.messages import MessageRepository
from skillmatch.dal.profiles import ProfileRepository
from skillmatch.dal.recommendations import RecommendationService
from skillmatch.dal.result import Result
from skillmatch.rest.client import RestClient


class DataService:
    """All repositories wired to one client."""

    def __init__(self, client: RestClient, config: SkillMatchConfig | None = None):
        config = config or SkillMatchConfig()
        self.client = client
        self.profiles = ProfileRepository(client)
        self.messages = MessageRepository(client)
        self.applications = ApplicationRepository(client, self.messages)
        self.jobs = JobRepository(client, self.applications)
        self.employer = EmployerRepository(client, self.profiles, self.messages, config)
        self.recommendations = RecommendationService(
            client, self.profiles, self.applications, config.matching
        )


__all__ = [
    "ApplicationRepository",
    "DataService",
    "EmployerRepository",
    "JobRepository",
    "MessageRepository",
    "ProfileRepository",
    "RecommendationService",
    "Result",
]
