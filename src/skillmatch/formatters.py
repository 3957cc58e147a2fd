"""Format SkillMatch records for terminal display."""

from datetime import datetime

from skillmatch.models import ApplicationStatus


def score_style(score: int | None) -> str:
    """Rich style for a match percentage."""
    if score is None:
        return "dim"
    if score >= 75:
        return "bold green"
    if score >= 50:
        return "yellow"
    return "dim"


def status_style(status: ApplicationStatus) -> str:
    return {
        ApplicationStatus.PENDING: "cyan",
        ApplicationStatus.SHORTLISTED: "green",
        ApplicationStatus.INTERVIEW: "bold magenta",
        ApplicationStatus.ACCEPTED: "bold green",
        ApplicationStatus.REJECTED: "red",
    }.get(status, "")


def format_time(value: datetime | None, with_date: bool = False) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M" if with_date else "%H:%M")


def format_date(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d") if value else "-"


def truncate(text: str, width: int = 60) -> str:
    text = " ".join(text.split())
    if len(text) <= width:
        return text
    return text[: width - 1] + "…"
