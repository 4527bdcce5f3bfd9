from app.db.models import Assignment, AuditLog, Base, Event, EventParticipant, EventStatus
from app.db.session import SessionLocal, get_session, init_engine

__all__ = [
    "Assignment",
    "AuditLog",
    "Base",
    "Event",
    "EventParticipant",
    "EventStatus",
    "SessionLocal",
    "get_session",
    "init_engine",
]
