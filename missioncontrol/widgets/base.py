"""Panel base: shared ordering, truncation and row expansion for every widget."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Iterable

from pydantic import BaseModel, ValidationError

DISPLAY_LIMIT = 8


class RowExpansion:
    """Expanded row ids for one widget instance; everything else is collapsed."""

    def __init__(self, expanded: Iterable[str] = ()) -> None:
        self._ids: set[str] = set(expanded)

    def toggle(self, row_id: str) -> bool:
        """Flip a row and return whether it is now expanded."""
        if row_id in self._ids:
            self._ids.discard(row_id)
            return False
        self._ids.add(row_id)
        return True

    def expand(self, row_id: str) -> None:
        self._ids.add(row_id)

    def collapse(self, row_id: str) -> None:
        self._ids.discard(row_id)

    def is_expanded(self, row_id: str) -> bool:
        return row_id in self._ids

    def __contains__(self, row_id: object) -> bool:
        return row_id in self._ids

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._ids)


class PanelRow(BaseModel):
    id: str
    title: str
    subtitle: str = ""
    badge: str | None = None
    tone: str = "muted"
    flagged: bool = False
    pending: bool = False
    meta: dict[str, Any] = {}
    expanded: bool = False
    details: dict[str, Any] | None = None


class PanelView(BaseModel):
    name: str
    title: str
    total: int
    counts: dict[str, int]
    rows: list[PanelRow]
    hidden_count: int = 0
    empty_message: str | None = None


@dataclass
class RenderContext:
    """Per-pass inputs shared by every hook: one `now` and any panel extras."""

    now: datetime
    extras: dict[str, Any] = field(default_factory=dict)


def epoch(value: datetime | None) -> float:
    return value.timestamp() if value else float("-inf")


class Panel(ABC):
    """Turns a fetched sequence into a counts header plus an ordered row list.

    Subclasses choose which items are shown, which are flagged, how rows
    look and what an expanded row reveals. Flagged items sort first, the
    rest by recency, and only `display_limit` rows are emitted.
    """

    name: ClassVar[str]
    title: ClassVar[str]
    empty_message: ClassVar[str] = "No items"
    record_model: ClassVar[type[BaseModel] | None] = None
    display_limit: ClassVar[int] = DISPLAY_LIMIT
    view_class: ClassVar[type[PanelView]] = PanelView

    def __init__(self, expansion: RowExpansion | None = None) -> None:
        self.expansion = expansion or RowExpansion()

    def render(self, items: Any, now: datetime, **extras: Any) -> PanelView:
        records = self.coerce(items)
        ctx = self.prepare(records, RenderContext(now=now, extras=extras))
        visible = [item for item in records if self.include(item, ctx)]
        ordered = sorted(visible, key=lambda item: self.sort_key(item, ctx))
        shown = ordered[: self.display_limit]

        rows = []
        for item in shown:
            row = self.build_row(item, ctx)
            row.flagged = self.is_flagged(item, ctx)
            if self.expansion.is_expanded(row.id):
                row.expanded = True
                row.details = self.details(item, ctx)
            rows.append(row)

        return self.view_class(
            name=self.name,
            title=self.title,
            total=len(visible),
            counts=self.counts(visible, ctx),
            rows=rows,
            hidden_count=len(ordered) - len(shown),
            empty_message=None if visible else self.empty_message,
            **self.extra_fields(visible, ctx),
        )

    def coerce(self, items: Any) -> list:
        """Non-sequences become empty; raw mappings are validated when possible."""
        if not isinstance(items, (list, tuple)):
            return []
        records = []
        for item in items:
            if isinstance(item, dict) and self.record_model is not None:
                try:
                    item = self.record_model.model_validate(item)
                except ValidationError:
                    continue
            if isinstance(item, BaseModel):
                records.append(item)
        return records

    def prepare(self, records: list, ctx: RenderContext) -> RenderContext:
        return ctx

    def include(self, item: Any, ctx: RenderContext) -> bool:
        return True

    def is_flagged(self, item: Any, ctx: RenderContext) -> bool:
        return False

    def recency(self, item: Any) -> datetime | None:
        return None

    def sort_key(self, item: Any, ctx: RenderContext) -> tuple:
        return (0 if self.is_flagged(item, ctx) else 1, -epoch(self.recency(item)))

    def extra_fields(self, visible: list, ctx: RenderContext) -> dict[str, Any]:
        return {}

    @abstractmethod
    def counts(self, visible: list, ctx: RenderContext) -> dict[str, int]:
        ...

    @abstractmethod
    def build_row(self, item: Any, ctx: RenderContext) -> PanelRow:
        ...

    @abstractmethod
    def details(self, item: Any, ctx: RenderContext) -> dict[str, Any]:
        ...


def iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
