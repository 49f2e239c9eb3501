"""Demo data seeder: realistic rows for an empty local database."""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from missioncontrol.models.email import Email
from missioncontrol.models.github import GithubActivity
from missioncontrol.models.risk import RiskAssessment
from missioncontrol.models.team import SlackMessage, TeamMember
from missioncontrol.utils.time import utc_now

logger = logging.getLogger("missioncontrol.store.demo")

# ─── Content templates ──────────────────────────────────────────

_TEAM = [
    {"name": "Maya Chen", "role": "Tech Lead", "slack": "maya", "github": "mchen", "trend": [0.8, 0.7, 0.6, 0.45, 0.35], "after_hours": 14, "at_risk": True},
    {"name": "Jonas Weber", "role": "Backend Engineer", "slack": "jonas", "github": "jweber", "trend": [0.5, 0.55, 0.6, 0.7, 0.75], "after_hours": 2, "at_risk": False},
    {"name": "Priya Nair", "role": "Frontend Engineer", "slack": "priya", "github": "pnair", "trend": [0.7, 0.7, 0.72, 0.68, 0.7], "after_hours": 4, "at_risk": False},
    {"name": "Sam Okafor", "role": "Consultant", "slack": "sam", "github": "sokafor", "trend": [0.6, 0.5, 0.4, 0.3, 0.3], "after_hours": 9, "at_risk": True},
]

_RISKS = [
    {"risk_type": "delivery", "severity": "critical", "title": "Acme launch at risk: payment integration blocked", "description": "Payment provider sandbox credentials expired; no progress on checkout for 4 days.", "suggested_action": "Escalate credential renewal with the client's ops contact today."},
    {"risk_type": "burnout", "severity": "high", "title": "Tech lead sustained after-hours activity", "description": "14 after-hours messages this week with declining sentiment.", "suggested_action": "Rebalance review load and schedule a 1:1."},
    {"risk_type": "client", "severity": "high", "title": "Northwind escalation on missed milestone", "description": "Two negative emails in 48h referencing the reporting milestone.", "suggested_action": "Send a revised timeline with a concrete recovery plan."},
    {"risk_type": "delivery", "severity": "medium", "title": "Review backlog growing on api-gateway", "description": "Five PRs waiting on a single reviewer.", "suggested_action": "Add a second code owner for api-gateway."},
    {"risk_type": "quality", "severity": "low", "title": "Flaky end-to-end suite", "description": "Intermittent failures in the checkout e2e tests.", "suggested_action": None},
]

_PULL_REQUESTS = [
    {"title": "Add retry to payment webhook handler", "repo": "acme-shop", "author": "mchen", "age_days": 9},
    {"title": "Refactor report export pipeline", "repo": "northwind-reports", "author": "jweber", "age_days": 5},
    {"title": "Fix timezone bug in invoice dates", "repo": "acme-shop", "author": "sokafor", "age_days": 4},
    {"title": "Dark mode for admin console", "repo": "admin-console", "author": "pnair", "age_days": 1},
    {"title": "Bump dependencies", "repo": "api-gateway", "author": "jweber", "age_days": 0},
]

_EMAILS = [
    {"subject": "Milestone slipped again?", "client": "Northwind", "from": "cto@northwind.example", "priority": "urgent", "urgency": 9.0, "sentiment": "negative", "score": 0.15, "reply": True},
    {"subject": "Need the revised SOW by Friday", "client": "Acme", "from": "pm@acme.example", "priority": "high", "urgency": 8.0, "sentiment": "neutral", "score": 0.5, "reply": True},
    {"subject": "Great demo yesterday", "client": "Globex", "from": "lead@globex.example", "priority": "normal", "urgency": 3.0, "sentiment": "positive", "score": 0.9, "reply": False},
    {"subject": "Question about invoice #2231", "client": "Acme", "from": "finance@acme.example", "priority": "normal", "urgency": 5.0, "sentiment": "neutral", "score": 0.45, "reply": True},
    {"subject": "Newsletter: Q3 product updates", "client": None, "from": "news@vendor.example", "priority": "low", "urgency": 1.0, "sentiment": "neutral", "score": 0.6, "reply": False},
]

_SLACK_LINES = [
    ("still stuck on the payment sandbox, this is blocking everything", "negative", 0.2),
    ("pushed the export refactor, ready for review", "positive", 0.8),
    ("can someone look at my PR? it's been sitting for days", "negative", 0.35),
    ("nice work on the demo everyone", "positive", 0.9),
    ("deploy went fine", "neutral", 0.6),
]


def build_demo_rows(now: datetime | None = None, rng: random.Random | None = None) -> list:
    """Build unsaved ORM rows for every collection."""
    now = now or utc_now()
    rng = rng or random.Random()
    rows: list = []

    for index, member in enumerate(_TEAM):
        rows.append(
            TeamMember(
                name=member["name"],
                email=f"{member['slack']}@team.example",
                slack_display_name=member["slack"],
                github_username=member["github"],
                role=member["role"],
                after_hours_message_count=member["after_hours"],
                sentiment_score=member["trend"][-1],
                sentiment_trend=member["trend"],
                is_at_risk=member["at_risk"],
                last_active=now - timedelta(hours=index * 3 + 1),
                created_at=now - timedelta(days=90 - index),
            )
        )

    for index, risk in enumerate(_RISKS):
        detected = now - timedelta(hours=6 * index + rng.randint(0, 5))
        rows.append(
            RiskAssessment(
                risk_type=risk["risk_type"],
                severity=risk["severity"],
                title=risk["title"],
                description=risk["description"],
                suggested_action=risk["suggested_action"],
                is_active=True,
                detected_at=detected,
                created_at=detected,
            )
        )

    for pr in _PULL_REQUESTS:
        opened = now - timedelta(days=pr["age_days"], hours=rng.randint(1, 6))
        rows.append(
            GithubActivity(
                type="pull_request",
                title=pr["title"],
                author=pr["author"],
                repo=pr["repo"],
                status="open",
                review_count=rng.randint(0, 2),
                created_at=opened,
                updated_at=opened + timedelta(hours=1),
            )
        )

    for index, email in enumerate(_EMAILS):
        received = now - timedelta(hours=index * 5 + rng.randint(0, 3))
        rows.append(
            Email(
                subject=email["subject"],
                from_address=email["from"],
                client_name=email["client"],
                priority=email["priority"],
                urgency_score=email["urgency"],
                sentiment=email["sentiment"],
                sentiment_score=email["score"],
                requires_reply=email["reply"],
                is_read=index > 2,
                received_at=received,
                created_at=received,
            )
        )

    for index in range(20):
        member = _TEAM[index % len(_TEAM)]
        text, sentiment, score = rng.choice(_SLACK_LINES)
        sent = now - timedelta(hours=index * 2 + rng.randint(0, 1))
        rows.append(
            SlackMessage(
                message_id=f"demo-{index}",
                user_name=member["name"],
                user_id=member["slack"],
                channel=rng.choice(["#delivery", "#general", "#acme"]),
                message_text=text,
                sentiment=sentiment,
                sentiment_score=score,
                is_after_hours=sent.hour >= 20 or sent.hour < 7,
                has_urgent_keyword="blocking" in text,
                timestamp=sent,
                created_at=sent,
            )
        )

    return rows


async def seed_demo_data(session_factory: async_sessionmaker[AsyncSession]) -> int:
    """Insert demo rows; returns the number of rows written."""
    rows = build_demo_rows()
    async with session_factory() as session:
        session.add_all(rows)
        await session.commit()
    logger.info(f"Seeded {len(rows)} demo rows")
    return len(rows)
