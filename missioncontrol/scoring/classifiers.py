"""Staleness, urgency and sentiment classifiers.

Every function here is pure: callers capture one `now` per render pass and
pass it down, so a pull request sitting on a bucket boundary lands in the
same bucket for every panel in that pass.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from missioncontrol.models.email import EmailRecord
from missioncontrol.models.github import GithubActivityRecord

StalenessBucket = Literal["low", "medium", "critical"]
UrgencyBand = Literal["normal", "high", "critical"]
TrendDirection = Literal["up", "down", "flat"]
Tone = Literal["red", "amber", "blue", "green", "muted"]

STALE_AFTER_DAYS = 3
CRITICAL_AFTER_DAYS = 7

HIGH_URGENCY = 7.0
CRITICAL_URGENCY = 9.0

NEGATIVE_SENTIMENT_BELOW = 0.4
POSITIVE_SENTIMENT_FROM = 0.7

TREND_DELTA = 0.1
TREND_RECENT_WINDOW = 3

# Fallback urgency when an email carries only a priority label.
PRIORITY_URGENCY = {"urgent": 9.0, "high": 7.0, "normal": 4.0, "low": 2.0}

SEVERITY_RANK = {"critical": 0, "high": 1, "medium": 2, "low": 3}
PRIORITY_RANK = {"critical": 0, "high": 1, "medium": 2, "low": 3}
SEVERITY_TONE: dict[str, Tone] = {"critical": "red", "high": "amber", "medium": "blue", "low": "green"}


# ─── Pull requests ──────────────────────────────────────────────


def pr_age_days(pr: GithubActivityRecord, now: datetime) -> float | None:
    """Days a pull request has been open; None when no date is known.

    A stored `days_open` is used as given. Ages computed from timestamps
    are whole (floored) days.
    """
    if pr.days_open is not None:
        return max(0.0, pr.days_open)

    opened = pr.created_at or pr.updated_at
    if opened is None:
        return None
    return max(0, int((now - opened).total_seconds() // 86400))


def staleness_bucket(days: float | None) -> StalenessBucket:
    """low: d <= 3, medium: 3 < d <= 7, critical: d > 7. Unknown age is low."""
    if days is None or days <= STALE_AFTER_DAYS:
        return "low"
    if days <= CRITICAL_AFTER_DAYS:
        return "medium"
    return "critical"


def is_stale(days: float | None) -> bool:
    return days is not None and days > STALE_AFTER_DAYS


# ─── Emails ─────────────────────────────────────────────────────


def email_urgency(email: EmailRecord) -> float:
    """Numeric urgency 0-10, falling back to the priority label, then 0."""
    if email.urgency_score is not None:
        return max(0.0, min(10.0, email.urgency_score))
    return PRIORITY_URGENCY.get(email.priority, 0.0)


def urgency_band(score: float | None) -> UrgencyBand:
    """normal: < 7, high: 7 <= s < 9, critical: >= 9."""
    if score is None:
        return "normal"
    if score >= CRITICAL_URGENCY:
        return "critical"
    if score >= HIGH_URGENCY:
        return "high"
    return "normal"


def is_negative(sentiment: str | None, sentiment_score: float | None) -> bool:
    """Negative by label, or by a numeric score under 0.4; either suffices."""
    if (sentiment or "").lower() == "negative":
        return True
    return sentiment_score is not None and sentiment_score < NEGATIVE_SENTIMENT_BELOW


def is_positive(sentiment: str | None, sentiment_score: float | None) -> bool:
    if (sentiment or "").lower() == "positive":
        return True
    return sentiment_score is not None and sentiment_score >= POSITIVE_SENTIMENT_FROM


# ─── Sentiment ──────────────────────────────────────────────────


def sentiment_trend(history: list[float] | None) -> TrendDirection | None:
    """Direction of the recent samples against everything before them.

    The recent window is the last three samples, shrunk so at least one
    sample remains on the prior side. Fewer than two samples has no trend.
    """
    samples = list(history or [])
    if len(samples) < 2:
        return None

    window = min(TREND_RECENT_WINDOW, len(samples) - 1)
    recent = samples[-window:]
    prior = samples[:-window]
    delta = sum(recent) / len(recent) - sum(prior) / len(prior)

    if delta > TREND_DELTA:
        return "up"
    if delta < -TREND_DELTA:
        return "down"
    return "flat"


def sentiment_tone(score: float | None) -> Tone:
    if score is None:
        return "muted"
    if score >= POSITIVE_SENTIMENT_FROM:
        return "green"
    if score >= NEGATIVE_SENTIMENT_BELOW:
        return "amber"
    return "red"


def sentiment_label(score: float | None) -> str:
    if score is None:
        return "N/A"
    if score >= POSITIVE_SENTIMENT_FROM:
        return "Positive"
    if score >= NEGATIVE_SENTIMENT_BELOW:
        return "Neutral"
    return "Concern"
