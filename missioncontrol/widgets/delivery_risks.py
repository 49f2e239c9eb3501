"""Delivery risks: open pull requests bucketed by staleness."""

from __future__ import annotations

from typing import Any

from missioncontrol.models.github import GithubActivityRecord
from missioncontrol.scoring.classifiers import is_stale, pr_age_days, staleness_bucket
from missioncontrol.widgets.base import Panel, PanelRow, RenderContext, epoch, iso

BUCKET_TONE = {"low": "green", "medium": "amber", "critical": "red"}


class DeliveryRisksPanel(Panel):
    name = "delivery_risks"
    title = "Delivery Risks"
    empty_message = "No open PRs"
    record_model = GithubActivityRecord

    def include(self, pr: GithubActivityRecord, ctx: RenderContext) -> bool:
        return pr.is_open_pull_request

    def is_flagged(self, pr: GithubActivityRecord, ctx: RenderContext) -> bool:
        return is_stale(pr_age_days(pr, ctx.now))

    def recency(self, pr: GithubActivityRecord):
        return pr.created_at or pr.updated_at

    def sort_key(self, pr: GithubActivityRecord, ctx: RenderContext) -> tuple:
        # Stale PRs oldest first; fresh ones newest first.
        if self.is_flagged(pr, ctx):
            return (0, -(pr_age_days(pr, ctx.now) or 0))
        return (1, -epoch(self.recency(pr)))

    def counts(self, visible: list, ctx: RenderContext) -> dict[str, int]:
        buckets = [staleness_bucket(pr_age_days(pr, ctx.now)) for pr in visible]
        return {
            "open": len(visible),
            "stale": sum(1 for bucket in buckets if bucket != "low"),
            "critical": buckets.count("critical"),
        }

    def build_row(self, pr: GithubActivityRecord, ctx: RenderContext) -> PanelRow:
        days = pr_age_days(pr, ctx.now)
        bucket = staleness_bucket(days)
        return PanelRow(
            id=pr.id,
            title=pr.title or "Untitled pull request",
            subtitle=" • ".join(part for part in (pr.author, pr.repo) if part),
            badge=f"{days:g}d" if days is not None else "?",
            tone=BUCKET_TONE[bucket],
            meta={"days_open": days, "bucket": bucket, "reviews": pr.review_count},
        )

    def details(self, pr: GithubActivityRecord, ctx: RenderContext) -> dict[str, Any]:
        return {
            "url": pr.url,
            "review_count": pr.review_count,
            "created_at": iso(pr.created_at),
            "updated_at": iso(pr.updated_at),
        }
