"""Skill and job text normalization for matching."""

import re

from skillmatch.models import Job


def normalize_text(text: str) -> str:
    """Normalize text for comparison: lowercase, strip, collapse whitespace."""
    text = text.lower().strip()
    text = re.sub(r"\s+", " ", text)
    return text


def normalize_skills(skills: list[str] | None) -> list[str]:
    """Lower-cased, de-duplicated skills in first-seen order; blanks dropped."""
    if not skills:
        return []
    normalized = (normalize_text(s) for s in skills if s)
    return list(dict.fromkeys(s for s in normalized if s))


def job_text(job: Job) -> str:
    """Free text searched when a job declares no skills."""
    parts = [job.title, job.description, " ".join(job.requirements)]
    return normalize_text(" ".join(parts))
