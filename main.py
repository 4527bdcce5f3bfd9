from __future__ import annotations

import argparse
import datetime
import sys
from typing import Optional, Sequence

from loguru import logger

from app.core.config import Settings, load_settings
from app.core.logging import setup_logging
from app.db import get_session, init_engine
from app.services import events
from app.services.derangement import DerangementOptions
from app.services.draw import MAX_SEED, DrawError, notify_assignments, perform_draw, record_draw_failure
from app.services.notifications import LoggingNotifier, Notifier


def seed_value(value: str) -> int:
    seed = int(value)
    if not 0 <= seed <= MAX_SEED:
        raise argparse.ArgumentTypeError(f"seed must be between 0 and {MAX_SEED}")
    return seed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="secret-santa", description="Secret Santa draw runner")
    commands = parser.add_subparsers(dest="command", required=True)

    draw = commands.add_parser("draw", help="perform the draw for an event and notify participants")
    draw.add_argument("event_id", type=int)
    draw.add_argument("--as", dest="requested_by", required=True, help="organizer uid")
    draw.add_argument("--seed", type=seed_value, default=None)

    notify = commands.add_parser("notify", help="retry pending assignment notices for an event")
    notify.add_argument("event_id", type=int)

    create = commands.add_parser("create-event", help="create a Secret Santa event")
    create.add_argument("title")
    create.add_argument("--as", dest="organizer_uid", required=True, help="organizer uid")
    create.add_argument("--email", dest="organizer_email", required=True, help="organizer email")
    create.add_argument("--min-participants", type=int, default=2)
    create.add_argument("--budget", default=None)
    create.add_argument("--delivery-date", type=datetime.date.fromisoformat, default=None)

    return parser


def run_draw(
    settings: Settings,
    event_id: int,
    requested_by: str,
    notifier: Notifier,
    seed: Optional[int] = None,
) -> int:
    options = DerangementOptions(
        max_attempts=settings.draw_max_attempts,
        minimize_reciprocals=settings.draw_minimize_reciprocals,
    )
    try:
        with get_session() as session:
            result = perform_draw(session, event_id, requested_by, options=options, seed=seed)
    except DrawError as exc:
        logger.bind(event_id=event_id, requested_by=requested_by).error("Draw failed: {error}", error=str(exc))
        with get_session() as session:
            record_draw_failure(session, event_id, requested_by, exc)
        return 1

    logger.info("Stored {count} assignments", count=result.assignment_count)
    return run_notify(settings, event_id, notifier)


def run_create_event(settings: Settings, args: argparse.Namespace) -> int:
    try:
        with get_session() as session:
            event = events.create_event(
                session,
                args.title,
                args.organizer_uid,
                args.organizer_email,
                min_participants=args.min_participants,
                gift_budget=args.budget,
                delivery_date=args.delivery_date,
                allowed_domain=settings.allowed_email_domain,
            )
            event_id = event.id
    except events.EventError as exc:
        logger.bind(organizer_uid=args.organizer_uid).error("Event not created: {error}", error=str(exc))
        return 1

    logger.info("Created event {event_id}", event_id=event_id)
    return 0


def run_notify(settings: Settings, event_id: int, notifier: Notifier) -> int:
    try:
        with get_session() as session:
            result = notify_assignments(session, event_id, notifier, settings.app_url)
    except DrawError as exc:
        logger.bind(event_id=event_id).error("Notification failed: {error}", error=str(exc))
        return 1

    logger.info(result.message)
    return 0 if not result.failed_santas else 2


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = load_settings()
    setup_logging(settings.log_level, settings.log_path)
    init_engine(settings.database_url)

    if args.command == "create-event":
        return run_create_event(settings, args)

    notifier = LoggingNotifier()
    if args.command == "draw":
        return run_draw(settings, args.event_id, args.requested_by, notifier, seed=args.seed)
    return run_notify(settings, args.event_id, notifier)


if __name__ == "__main__":
    sys.exit(main())
