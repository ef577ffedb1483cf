from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

NoticeLevel = Literal["info", "warning", "error"]


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    title: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class NotificationCenter:
    """Toast-style messages for the cashier; the UI drains and renders them."""

    messages: list[Notice] = field(default_factory=list)

    def push(self, *, level: NoticeLevel, title: str, message: str, details: dict[str, Any] | None = None) -> Notice:
        notice = Notice(level=level, title=title, message=message, details=details or {})
        self.messages.append(notice)
        return notice

    def drain(self) -> list[Notice]:
        drained = list(self.messages)
        self.messages.clear()
        return drained

    def clear(self) -> None:
        self.messages.clear()

    def render(self) -> dict[str, Any]:
        return {
            "count": len(self.messages),
            "messages": [
                {"level": n.level, "title": n.title, "message": n.message, "details": n.details}
                for n in self.messages
            ],
        }
