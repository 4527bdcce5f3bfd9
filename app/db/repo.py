from __future__ import annotations

import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import and_, select

from app.db.models import Assignment, AuditLog, Event, EventParticipant, EventStatus


def get_event_by_id(session, event_id: int) -> Optional[Event]:
    return session.scalar(select(Event).where(Event.id == event_id))


def create_event(
    session,
    title: str,
    organizer_uid: str,
    organizer_email: str,
    company_domain: Optional[str],
    min_participants: int,
    gift_budget: Optional[str],
    delivery_date: Optional[datetime.date],
) -> Event:
    event = Event(
        title=title,
        organizer_uid=organizer_uid,
        organizer_email=organizer_email,
        company_domain=company_domain,
        status=EventStatus.OPEN,
        min_participants=min_participants,
        gift_budget=gift_budget,
        delivery_date=delivery_date,
    )
    session.add(event)
    session.flush()
    return event


def list_events_for_organizer(session, organizer_uid: str) -> List[Event]:
    return list(
        session.scalars(
            select(Event).where(Event.organizer_uid == organizer_uid).order_by(Event.created_at.desc())
        ).all()
    )


def update_event_status(
    session,
    event: Event,
    status: EventStatus,
    drawn_at: Optional[datetime.datetime] = None,
) -> None:
    event.status = status
    event.drawn_at = drawn_at


def update_event_draw_seed(session, event: Event, seed: Optional[int]) -> None:
    event.draw_seed = seed


def get_participant(session, event_id: int, uid: str) -> Optional[EventParticipant]:
    return session.scalar(
        select(EventParticipant).where(
            and_(EventParticipant.event_id == event_id, EventParticipant.uid == uid)
        )
    )


def add_participant(
    session,
    event_id: int,
    uid: str,
    display_name: str,
    email: str,
    note: Optional[str],
) -> Optional[EventParticipant]:
    if get_participant(session, event_id, uid):
        return None
    participant = EventParticipant(
        event_id=event_id,
        uid=uid,
        display_name=display_name,
        email=email,
        note=note,
    )
    session.add(participant)
    session.flush()
    return participant


def list_participants(session, event_id: int, include_opted_out: bool = True) -> List[EventParticipant]:
    query = select(EventParticipant).where(EventParticipant.event_id == event_id)
    if not include_opted_out:
        query = query.where(EventParticipant.opt_out.is_(False))
    return list(session.scalars(query.order_by(EventParticipant.id)).all())


def update_participant_opt_out(session, participant: EventParticipant, opt_out: bool) -> None:
    participant.opt_out = opt_out


def update_participant_note(session, participant: EventParticipant, note: Optional[str]) -> None:
    participant.note = note


def create_assignments(session, event_id: int, assignments: Iterable) -> List[Assignment]:
    rows = [
        Assignment(
            event_id=event_id,
            santa_uid=item.giver_id,
            recipient_uid=item.recipient_id,
            recipient_name=item.recipient_name,
            recipient_email=item.recipient_email,
            recipient_note=item.recipient_note,
            notified=False,
        )
        for item in assignments
    ]
    session.add_all(rows)
    session.flush()
    return rows


def list_assignments(session, event_id: int) -> List[Assignment]:
    return list(
        session.scalars(
            select(Assignment).where(Assignment.event_id == event_id).order_by(Assignment.id)
        ).all()
    )


def get_assignment_for_santa(session, event_id: int, santa_uid: str) -> Optional[Assignment]:
    return session.scalar(
        select(Assignment).where(
            and_(Assignment.event_id == event_id, Assignment.santa_uid == santa_uid)
        )
    )


def mark_assignment_notified(session, assignment: Assignment, notified_at: datetime.datetime) -> None:
    assignment.notified = True
    assignment.notified_at = notified_at


def add_audit_log(
    session,
    event_id: int,
    action: str,
    performed_by: Optional[str],
    details: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    entry = AuditLog(event_id=event_id, action=action, performed_by=performed_by, details=details)
    session.add(entry)
    session.flush()
    return entry


def list_audit_logs(session, event_id: int) -> List[AuditLog]:
    return list(
        session.scalars(select(AuditLog).where(AuditLog.event_id == event_id).order_by(AuditLog.id)).all()
    )
