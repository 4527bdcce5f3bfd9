from __future__ import annotations

import datetime
import re
from dataclasses import dataclass
from typing import List, Optional

from app.db import Event, EventParticipant, EventStatus, repo
from app.db.models import Assignment
from app.services.derangement import Participant

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class EventError(RuntimeError):
    pass


@dataclass(frozen=True)
class JoinResult:
    added: bool
    message: str
    event: Event
    participant: Optional[EventParticipant]


def is_valid_email(email: Optional[str]) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None


def email_domain(email: Optional[str]) -> Optional[str]:
    if not email or "@" not in email:
        return None
    return email.rsplit("@", 1)[1].lower() or None


def is_company_email(email: Optional[str], allowed_domain: Optional[str]) -> bool:
    if not is_valid_email(email):
        return False
    if not allowed_domain:
        return True
    return email_domain(email) == allowed_domain.lower()


def create_event(
    session,
    title: str,
    organizer_uid: str,
    organizer_email: str,
    min_participants: int = 2,
    gift_budget: Optional[str] = None,
    delivery_date: Optional[datetime.date] = None,
    allowed_domain: Optional[str] = None,
) -> Event:
    title = title.strip()
    if not title:
        raise EventError("Event title is required.")
    if min_participants < 2:
        raise EventError("An event needs at least 2 participants.")
    if not is_company_email(organizer_email, allowed_domain):
        raise EventError("Organizer email is not a valid company email.")
    company_domain = allowed_domain.lower() if allowed_domain else None

    return repo.create_event(
        session,
        title=title,
        organizer_uid=organizer_uid,
        organizer_email=organizer_email,
        company_domain=company_domain,
        min_participants=min_participants,
        gift_budget=gift_budget,
        delivery_date=delivery_date,
    )


def join_event(
    session,
    event: Event,
    uid: str,
    display_name: str,
    email: str,
    note: Optional[str] = None,
    allowed_domain: Optional[str] = None,
) -> JoinResult:
    if event.status == EventStatus.DRAWN:
        return JoinResult(False, "The draw for this event has already happened.", event, None)
    if event.status == EventStatus.CLOSED:
        return JoinResult(False, "This event is closed to new participants.", event, None)
    if not is_company_email(email, allowed_domain or event.company_domain):
        return JoinResult(False, "Please join with your company email address.", event, None)

    existing = repo.get_participant(session, event.id, uid)
    if existing:
        return JoinResult(False, "You have already joined this event.", event, existing)

    participant = repo.add_participant(session, event.id, uid, display_name.strip() or email, email, note)
    if participant is None:
        return JoinResult(False, "You have already joined this event.", event, None)
    return JoinResult(True, "You have joined the Secret Santa event!", event, participant)


def set_opt_out(session, event: Event, uid: str, opt_out: bool) -> EventParticipant:
    if event.status == EventStatus.DRAWN:
        raise EventError("Participation cannot change after the draw.")
    participant = repo.get_participant(session, event.id, uid)
    if not participant:
        raise EventError("You are not a participant of this event.")
    repo.update_participant_opt_out(session, participant, opt_out)
    return participant


def update_note(session, event: Event, uid: str, note: Optional[str]) -> EventParticipant:
    if event.status == EventStatus.DRAWN:
        raise EventError("Notes cannot change after the draw.")
    participant = repo.get_participant(session, event.id, uid)
    if not participant:
        raise EventError("You are not a participant of this event.")
    repo.update_participant_note(session, participant, (note or "").strip() or None)
    return participant


def list_events(session, organizer_uid: str) -> List[Event]:
    return repo.list_events_for_organizer(session, organizer_uid)


def close_event(session, event: Event) -> bool:
    if event.status != EventStatus.OPEN:
        return False
    repo.update_event_status(session, event, EventStatus.CLOSED)
    return True


def reopen_event(session, event: Event) -> bool:
    if event.status != EventStatus.CLOSED:
        return False
    repo.update_event_status(session, event, EventStatus.OPEN)
    return True


def active_roster(session, event: Event) -> List[Participant]:
    return [
        Participant(id=row.uid, name=row.display_name, email=row.email, note=row.note)
        for row in repo.list_participants(session, event.id, include_opted_out=False)
    ]


def get_my_assignment(session, event: Event, uid: str) -> Optional[Assignment]:
    if event.status != EventStatus.DRAWN:
        return None
    return repo.get_assignment_for_santa(session, event.id, uid)
