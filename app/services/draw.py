from __future__ import annotations

import datetime
import random
from dataclasses import dataclass, field
from typing import List, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError

from app.db import Event, EventStatus, repo
from app.services.derangement import (
    AssignmentSet,
    DerangementError,
    DerangementOptions,
    generate_assignments,
    validate_assignments,
)
from app.services.events import active_roster
from app.services.notifications import Notifier, build_notice


MAX_SEED = 2**31 - 1


class DrawError(RuntimeError):
    pass


@dataclass(frozen=True)
class DrawResult:
    event_id: int
    assignment_set: AssignmentSet
    seed: int

    @property
    def assignment_count(self) -> int:
        return len(self.assignment_set)


@dataclass(frozen=True)
class NotifyResult:
    event_id: int
    emails_sent: int
    failed_santas: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.failed_santas:
            return (
                f"{self.emails_sent} emails sent, "
                f"{len(self.failed_santas)} failed and will be retried."
            )
        return f"Draw completed successfully! {self.emails_sent} emails sent."


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(tz=datetime.timezone.utc)


def _load_event(session, event_id: int, requested_by: str) -> Event:
    event = repo.get_event_by_id(session, event_id)
    if not event:
        raise DrawError("Event not found.")
    if event.organizer_uid != requested_by:
        raise DrawError("Only the event organizer can perform the draw.")
    if event.status == EventStatus.DRAWN:
        raise DrawError("Draw has already been performed for this event.")
    return event


def perform_draw(
    session,
    event_id: int,
    requested_by: str,
    options: Optional[DerangementOptions] = None,
    seed: Optional[int] = None,
) -> DrawResult:
    event = _load_event(session, event_id, requested_by)

    participants = active_roster(session, event)
    if len(participants) < event.min_participants:
        raise DrawError(
            f"Need at least {event.min_participants} participants. "
            f"Currently have {len(participants)}."
        )

    if seed is None:
        seed = random.randint(1, MAX_SEED)
    elif not 0 <= seed <= MAX_SEED:
        raise DrawError(f"Seed must be between 0 and {MAX_SEED}.")

    try:
        assignment_set = generate_assignments(participants, options=options, seed=seed)
    except DerangementError as exc:
        raise DrawError(str(exc)) from exc

    violations = validate_assignments(assignment_set, participants)
    if violations:
        logger.bind(event_id=event.id, violations=violations).error("Generated assignments are invalid")
        raise DrawError("Generated assignments failed validation.")

    try:
        repo.create_assignments(session, event.id, assignment_set)
    except IntegrityError as exc:
        raise DrawError("Secret Santa assignments already exist for this event.") from exc

    repo.update_event_status(session, event, EventStatus.DRAWN, drawn_at=_utcnow())
    repo.update_event_draw_seed(session, event, seed)
    repo.add_audit_log(
        session,
        event.id,
        "draw_performed",
        requested_by,
        {
            "participant_count": len(participants),
            "assignment_count": len(assignment_set),
            "reciprocal_pairs": assignment_set.reciprocal_count,
        },
    )
    logger.bind(event_id=event.id, seed=seed, attempts=assignment_set.attempts).info("Assignments generated")

    return DrawResult(event_id=event.id, assignment_set=assignment_set, seed=seed)


def notify_assignments(session, event_id: int, notifier: Notifier, app_url: str) -> NotifyResult:
    """Send a notice for every stored assignment not yet marked as notified.

    A failed send leaves its assignment pending so a later call retries it.
    """
    event = repo.get_event_by_id(session, event_id)
    if not event:
        raise DrawError("Event not found.")
    if event.status != EventStatus.DRAWN:
        raise DrawError("The draw has not been performed for this event yet.")

    santas = {row.uid: row for row in repo.list_participants(session, event.id)}
    emails_sent = 0
    failed: List[str] = []

    for assignment in repo.list_assignments(session, event.id):
        if assignment.notified:
            continue
        santa = santas.get(assignment.santa_uid)
        if santa is None:
            logger.bind(event_id=event.id, santa_uid=assignment.santa_uid).warning(
                "Assignment has no matching participant"
            )
            failed.append(assignment.santa_uid)
            continue
        try:
            notifier.send(build_notice(event, santa, assignment, app_url))
        except Exception as exc:
            logger.bind(event_id=event.id, santa_uid=assignment.santa_uid).warning(
                "Failed to send assignment notice: {error}", error=str(exc)
            )
            failed.append(assignment.santa_uid)
            continue
        repo.mark_assignment_notified(session, assignment, _utcnow())
        emails_sent += 1

    repo.add_audit_log(
        session,
        event.id,
        "notifications_sent",
        None,
        {"emails_sent": emails_sent, "email_errors": failed or None},
    )
    return NotifyResult(event_id=event.id, emails_sent=emails_sent, failed_santas=failed)


def record_draw_failure(session, event_id: int, requested_by: str, error: Exception) -> bool:
    if not repo.get_event_by_id(session, event_id):
        return False
    repo.add_audit_log(session, event_id, "draw_failed", requested_by, {"error": str(error)})
    return True
