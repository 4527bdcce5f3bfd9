from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import List, Optional, Protocol

from loguru import logger

from app.db.models import Assignment, Event, EventParticipant


class NotificationError(RuntimeError):
    pass


@dataclass(frozen=True)
class AssignmentNotice:
    to: str
    santa_name: str
    recipient_name: str
    recipient_email: str
    recipient_note: Optional[str]
    event_title: str
    gift_budget: Optional[str]
    delivery_date: Optional[str]
    link: str


class Notifier(Protocol):
    def send(self, notice: AssignmentNotice) -> None:
        ...


def format_delivery_date(value: Optional[datetime.date]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def assignment_link(app_url: str, event_id: int) -> str:
    return f"{app_url.rstrip('/')}/event/{event_id}/assignment"


def build_notice(
    event: Event,
    santa: EventParticipant,
    assignment: Assignment,
    app_url: str,
) -> AssignmentNotice:
    return AssignmentNotice(
        to=santa.email,
        santa_name=santa.display_name,
        recipient_name=assignment.recipient_name,
        recipient_email=assignment.recipient_email,
        recipient_note=assignment.recipient_note,
        event_title=event.title,
        gift_budget=event.gift_budget,
        delivery_date=format_delivery_date(event.delivery_date),
        link=assignment_link(app_url, event.id),
    )


def render_text(notice: AssignmentNotice) -> str:
    lines: List[str] = [
        f"Hi {notice.santa_name},",
        "",
        f"You've been assigned a Secret Santa recipient for {notice.event_title}!",
        "",
        f"Recipient: {notice.recipient_name}",
        f"Email: {notice.recipient_email}",
    ]
    if notice.recipient_note:
        lines.append(f"Gift preferences: {notice.recipient_note}")
    if notice.gift_budget:
        lines.append(f"Gift budget: {notice.gift_budget}")
    if notice.delivery_date:
        lines.append(f"Delivery date: {notice.delivery_date}")
    lines.extend(
        [
            "",
            f"View your assignment online: {notice.link}",
            "",
            "Remember: keep this assignment secret!",
        ]
    )
    return "\n".join(lines)


class LoggingNotifier:
    """Writes notices to the log instead of delivering them."""

    def __init__(self) -> None:
        self.sent: List[AssignmentNotice] = []

    def send(self, notice: AssignmentNotice) -> None:
        self.sent.append(notice)
        logger.bind(to=notice.to, event=notice.event_title).info(
            "Assignment notice:\n{body}", body=render_text(notice)
        )
