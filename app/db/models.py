from __future__ import annotations

import enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class EventStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"
    DRAWN = "drawn"


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    organizer_uid = Column(String, nullable=False, index=True)
    organizer_email = Column(String, nullable=False)
    company_domain = Column(String, nullable=True)
    status = Column(
        Enum(EventStatus, name="event_status", values_callable=lambda statuses: [s.value for s in statuses]),
        nullable=False,
        default=EventStatus.OPEN,
        server_default=EventStatus.OPEN.value,
    )
    min_participants = Column(Integer, nullable=False, default=2, server_default="2")
    gift_budget = Column(String, nullable=True)
    delivery_date = Column(Date, nullable=True)
    draw_seed = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    drawn_at = Column(DateTime(timezone=True), nullable=True)

    participants = relationship(
        "EventParticipant",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventParticipant.id",
    )
    assignments = relationship("Assignment", back_populates="event", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title!r}, status={self.status})>"


class EventParticipant(Base):
    __tablename__ = "event_participants"

    id = Column(Integer, primary_key=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    uid = Column(String, nullable=False)
    display_name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    note = Column(String, nullable=True)
    opt_out = Column(Boolean, default=False, nullable=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    event = relationship("Event", back_populates="participants")

    __table_args__ = (
        UniqueConstraint("event_id", "uid", name="uq_event_participants_event_uid"),
    )

    def __repr__(self) -> str:
        return (
            "<EventParticipant(event_id={0}, uid={1}, email={2}, opt_out={3})>"
        ).format(self.event_id, self.uid, self.email, self.opt_out)


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    santa_uid = Column(String, nullable=False)
    recipient_uid = Column(String, nullable=False)
    recipient_name = Column(String, nullable=False)
    recipient_email = Column(String, nullable=False)
    recipient_note = Column(String, nullable=True)
    notified = Column(Boolean, default=False, nullable=False)
    notified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    event = relationship("Event", back_populates="assignments")

    __table_args__ = (
        UniqueConstraint("event_id", "santa_uid", name="uq_assignments_event_santa"),
    )


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    action = Column(String, nullable=False)
    performed_by = Column(String, nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
