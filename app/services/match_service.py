"""
Simulated AI match scoring for applications.

Placeholder for a real model: scores keyword overlap between what the
candidate wrote about themselves and what the job asks for. Deterministic,
so the same candidate and job always get the same score.
"""
import re
from dataclasses import dataclass, field
from typing import List, Set

from app.schemas.job import JobResponse
from app.schemas.user import UserResponse

STOPWORDS = {
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "in", "is",
    "it", "of", "on", "or", "our", "the", "to", "we", "with", "you", "your",
    "will", "have", "has", "this", "that", "years", "experience", "team",
}

# Score given when there is nothing to compare
BASELINE_SCORE = 50


@dataclass
class MatchResult:
    score: int
    insights: List[str] = field(default_factory=list)


def extract_keywords(text: str) -> Set[str]:
    """Lowercased words of 2+ characters, minus stopwords; keeps tokens like c++ and node.js."""
    tokens = re.findall(r"[a-z0-9][a-z0-9+#.]*[a-z0-9+#]", (text or "").lower())
    return {t for t in tokens if len(t) >= 2 and t not in STOPWORDS}


def score_application(job: JobResponse, candidate: UserResponse) -> MatchResult:
    """
    Score how well a candidate's profile covers a job's requirements.

    Args:
        job: Job being applied to
        candidate: Applicant's profile

    Returns:
        MatchResult with a 0-100 score and short human-readable insights
    """
    wanted = extract_keywords(job.requirements) | extract_keywords(job.title)
    offered = extract_keywords(" ".join(filter(None, [candidate.bio, candidate.job_title, candidate.company])))

    if not wanted:
        return MatchResult(BASELINE_SCORE, ["Job requirements are too short to compare"])
    if not offered:
        return MatchResult(0, ["Add a bio to your profile to improve your match score"])

    matched = sorted(wanted & offered)
    missing = sorted(wanted - offered)
    score = max(0, min(100, round(100 * len(matched) / len(wanted))))

    insights = []
    if matched:
        insights.append("Matches: " + ", ".join(matched[:5]))
    if missing:
        insights.append("Not mentioned in profile: " + ", ".join(missing[:5]))
    if score >= 70:
        insights.append("Strong keyword overlap with the requirements")
    elif score < 30:
        insights.append("Low keyword overlap with the requirements")
    return MatchResult(score, insights)
