"""Job-profile match scoring and recommendation ranking.

Scores are integer percentages. The raw score comes from skills overlap (or a
free-text fallback), the headline boost rewards title relevance, and the
displayed score never exceeds ``display_cap``.
"""

import math

from skillmatch.config import MatchingConfig
from skillmatch.matcher.skills import job_text, normalize_skills, normalize_text
from skillmatch.models import Job, Recommendation


def _percent(matched: int, total: int) -> int:
    """Round half up, so 12.5% becomes 13 rather than Python's banker's 12."""
    return int(math.floor(100 * matched / total + 0.5))


def raw_skill_score(job: Job, seeker_skills: list[str]) -> tuple[int, dict]:
    """Score before any boost. Returns (score, details)."""
    job_skills = normalize_skills(job.skills)
    user_skills = normalize_skills(seeker_skills)

    if job_skills:
        # Denominator is always the job's skill count
        owned = set(user_skills)
        matched = [s for s in job_skills if s in owned]
        return _percent(len(matched), len(job_skills)), {"method": "skills", "matched": matched}

    if user_skills:
        text = job_text(job)
        matched = [s for s in user_skills if s in text]
        return _percent(len(matched), len(user_skills)), {"method": "text", "matched": matched}

    return 0, {"method": "none", "matched": []}


def headline_matches(headline: str | None, title: str) -> bool:
    """True when the seeker headline contains the job title or vice versa."""
    if not headline:
        return False
    headline = normalize_text(headline)
    title = normalize_text(title)
    return title in headline or headline in title


def apply_headline_boost(score: int, headline: str | None, title: str, config: MatchingConfig) -> int:
    """Add the headline boost when the headline and title match, lifting weak scores to the clamp."""
    if not headline_matches(headline, title):
        return score
    score = min(score + config.headline_boost, 100)
    if score < config.weak_score_threshold:
        score = config.weak_score_clamp
    return score


def score_job(
    job: Job,
    seeker_skills: list[str],
    headline: str | None = None,
    config: MatchingConfig | None = None,
) -> tuple[int, dict]:
    """Display score for one job, without any inclusion filtering. Returns (score, details)."""
    config = config or MatchingConfig()
    raw, details = raw_skill_score(job, seeker_skills)
    boosted = apply_headline_boost(raw, headline, job.title, config)
    total = min(boosted, config.display_cap)

    details.update({
        "raw": raw,
        "headline_match": headline_matches(headline, job.title),
        "boosted": boosted,
        "total": total,
    })
    return total, details


def recommend_jobs(
    jobs: list[Job],
    seeker_skills: list[str],
    headline: str | None = None,
    config: MatchingConfig | None = None,
    exclude_ids: set[str] | frozenset[str] = frozenset(),
) -> list[Recommendation]:
    """Score, filter and rank candidate jobs, best first.

    A job must clear ``raw_floor`` on its raw score before the boost is
    considered, and ``final_floor`` on its displayed score to be kept.
    """
    config = config or MatchingConfig()
    picked: list[Recommendation] = []

    for job in jobs:
        if job.id in exclude_ids:
            continue

        raw, _ = raw_skill_score(job, seeker_skills)
        if config.prefilter_on_raw and raw < config.raw_floor:
            continue

        boosted = apply_headline_boost(raw, headline, job.title, config)
        if not config.prefilter_on_raw and boosted < config.raw_floor:
            continue

        score = min(boosted, config.display_cap)
        if score < config.final_floor:
            continue

        picked.append(Recommendation(job=job, match_score=score))

    # sorted() is stable, ties keep input order
    return sorted(picked, key=lambda r: r.match_score, reverse=True)
