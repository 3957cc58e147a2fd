"""Configuration loading via Pydantic settings."""

import os
from pathlib import Path

import yaml
from pydantic import BaseModel


class BackendConfig(BaseModel):
    url: str = "http://localhost:54321"
    anon_key: str = ""
    timeout_sec: float = 15.0

    @property
    def effective_url(self) -> str:
        return (os.getenv("SKILLMATCH_URL", "") or self.url).rstrip("/")

    @property
    def effective_anon_key(self) -> str:
        return os.getenv("SKILLMATCH_ANON_KEY", "") or self.anon_key


class MatchingConfig(BaseModel):
    raw_floor: int = 30
    final_floor: int = 40
    headline_boost: int = 15
    weak_score_threshold: int = 40
    weak_score_clamp: int = 60
    display_cap: int = 98
    candidate_limit: int = 50
    # False applies raw_floor after the headline boost instead of before it
    prefilter_on_raw: bool = True


class ChatConfig(BaseModel):
    poll_interval_sec: float = 5.0


class SearchConfig(BaseModel):
    recent_limit: int = 5


class JobsConfig(BaseModel):
    listing_days: int = 30


class SkillMatchConfig(BaseModel):
    backend: BackendConfig = BackendConfig()
    matching: MatchingConfig = MatchingConfig()
    chat: ChatConfig = ChatConfig()
    search: SearchConfig = SearchConfig()
    jobs: JobsConfig = JobsConfig()
    state_path: str = ".skillmatch/state.json"
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> SkillMatchConfig:
    """Load configuration from YAML file."""
    if config_path is None:
        config_path = Path("config.yaml")

    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        return SkillMatchConfig(**data)

    return SkillMatchConfig()
