"""Suggested next actions derived from risks, emails and pull requests.

Each rule is an independent predicate/sort/transform over one collection.
`derive_next_actions` evaluates them in order and concatenates the results,
so the combined list is risks first, then emails, then pull requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Sequence

from missioncontrol.models.action import NextAction
from missioncontrol.models.email import EmailRecord
from missioncontrol.models.github import GithubActivityRecord
from missioncontrol.models.risk import RiskAssessmentRecord
from missioncontrol.scoring.classifiers import (
    CRITICAL_AFTER_DAYS,
    CRITICAL_URGENCY,
    SEVERITY_RANK,
    email_urgency,
    is_stale,
    pr_age_days,
)

ACTIONS_PER_SOURCE = 3
EMAIL_ACTION_URGENCY = 8.0


@dataclass(frozen=True)
class ActionContext:
    """The fetched collections a rule may read, plus the pass's reference time."""

    risks: Sequence[RiskAssessmentRecord]
    emails: Sequence[EmailRecord]
    prs: Sequence[GithubActivityRecord]
    now: datetime


@dataclass(frozen=True)
class ActionRule:
    name: str
    select: Callable[[ActionContext], Sequence[Any]]
    predicate: Callable[[Any, ActionContext], bool]
    sort_key: Callable[[Any, ActionContext], Any]
    transform: Callable[[Any, ActionContext], NextAction]
    limit: int = ACTIONS_PER_SOURCE

    def apply(self, ctx: ActionContext) -> list[NextAction]:
        matches = [item for item in self.select(ctx) if self.predicate(item, ctx)]
        matches.sort(key=lambda item: self.sort_key(item, ctx))
        return [self.transform(item, ctx) for item in matches[: self.limit]]


def _epoch(value: datetime | None) -> float:
    return value.timestamp() if value else float("-inf")


# ─── Risks ──────────────────────────────────────────────────────


def _risk_needs_action(risk: RiskAssessmentRecord, ctx: ActionContext) -> bool:
    return risk.is_active and risk.severity in {"critical", "high"}


def _risk_order(risk: RiskAssessmentRecord, ctx: ActionContext) -> tuple:
    return (SEVERITY_RANK[risk.severity], -_epoch(risk.seen_at))


def _risk_action(risk: RiskAssessmentRecord, ctx: ActionContext) -> NextAction:
    lead = "Critical risk requires immediate attention." if risk.severity == "critical" else "High risk needs an owner."
    detail = risk.suggested_action or risk.description or ""
    return NextAction(
        id=f"action-risk-{risk.id}",
        title=f"Address: {risk.title}",
        description=f"{lead} {detail}".strip(),
        priority=risk.severity,
        source="risk_assessment",
        created_at=risk.seen_at,
    )


# ─── Emails ─────────────────────────────────────────────────────


def _email_needs_action(email: EmailRecord, ctx: ActionContext) -> bool:
    return email_urgency(email) >= EMAIL_ACTION_URGENCY or email.requires_reply


def _email_order(email: EmailRecord, ctx: ActionContext) -> tuple:
    return (-email_urgency(email), -_epoch(email.arrived_at))


def _email_action(email: EmailRecord, ctx: ActionContext) -> NextAction:
    urgency = email_urgency(email)
    return NextAction(
        id=f"action-email-{email.id}",
        title=f"Reply to {email.sender}",
        description=f'Urgency {urgency:g}/10: "{email.subject}"',
        priority="critical" if urgency >= CRITICAL_URGENCY else "high",
        source="email",
        created_at=email.arrived_at,
    )


# ─── Pull requests ──────────────────────────────────────────────


def _pr_needs_action(pr: GithubActivityRecord, ctx: ActionContext) -> bool:
    return pr.is_open_pull_request and is_stale(pr_age_days(pr, ctx.now))


def _pr_order(pr: GithubActivityRecord, ctx: ActionContext) -> tuple:
    return (-(pr_age_days(pr, ctx.now) or 0), pr.id)


def _pr_action(pr: GithubActivityRecord, ctx: ActionContext) -> NextAction:
    days = pr_age_days(pr, ctx.now) or 0
    where = f" in {pr.repo}" if pr.repo else ""
    return NextAction(
        id=f"action-pr-{pr.id}",
        title=f"Review stale PR: {pr.title}",
        description=f"Open {days:g} days{where} without merging. Consider reviewing or reassigning.",
        priority="critical" if days > CRITICAL_AFTER_DAYS else "medium",
        source="github",
        created_at=pr.updated_at or pr.created_at,
    )


ACTION_RULES: tuple[ActionRule, ...] = (
    ActionRule(
        name="risks",
        select=lambda ctx: ctx.risks,
        predicate=_risk_needs_action,
        sort_key=_risk_order,
        transform=_risk_action,
    ),
    ActionRule(
        name="emails",
        select=lambda ctx: ctx.emails,
        predicate=_email_needs_action,
        sort_key=_email_order,
        transform=_email_action,
    ),
    ActionRule(
        name="stale_prs",
        select=lambda ctx: ctx.prs,
        predicate=_pr_needs_action,
        sort_key=_pr_order,
        transform=_pr_action,
    ),
)


def derive_next_actions(
    risks: Sequence[RiskAssessmentRecord],
    emails: Sequence[EmailRecord],
    prs: Sequence[GithubActivityRecord],
    now: datetime,
    rules: Sequence[ActionRule] = ACTION_RULES,
) -> list[NextAction]:
    """Evaluate every rule in order and concatenate their actions."""
    ctx = ActionContext(risks=risks, emails=emails, prs=prs, now=now)
    actions: list[NextAction] = []
    for rule in rules:
        actions.extend(rule.apply(ctx))
    return actions
