from __future__ import annotations

import enum
import random
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, MutableSequence, Optional, Sequence, Tuple

from loguru import logger


class DerangementError(RuntimeError):
    pass


class InsufficientParticipants(DerangementError):
    pass


class DuplicateParticipant(DerangementError):
    pass


class GenerationFailed(DerangementError):
    pass


class RecipientNotFound(DerangementError):
    pass


@dataclass(frozen=True)
class Participant:
    id: str
    name: str
    email: str
    note: Optional[str] = None


@dataclass(frozen=True)
class Assignment:
    giver_id: str
    recipient_id: str
    recipient_name: str
    recipient_email: str
    recipient_note: Optional[str] = None


@dataclass(frozen=True)
class AssignmentSet:
    assignments: Tuple[Assignment, ...]
    reciprocal_count: int
    attempts: int

    def __iter__(self) -> Iterator[Assignment]:
        return iter(self.assignments)

    def __len__(self) -> int:
        return len(self.assignments)

    def as_mapping(self) -> Dict[str, str]:
        return {item.giver_id: item.recipient_id for item in self.assignments}


@dataclass(frozen=True)
class DerangementOptions:
    max_attempts: int = 100
    minimize_reciprocals: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")


class ViolationKind(str, enum.Enum):
    MISSING_GIVER = "missing_giver"
    DUPLICATE_GIVER = "duplicate_giver"
    MISSING_RECIPIENT = "missing_recipient"
    DUPLICATE_RECIPIENT = "duplicate_recipient"
    SELF_ASSIGNMENT = "self_assignment"
    UNKNOWN_PARTICIPANT = "unknown_participant"


@dataclass(frozen=True)
class Violation:
    kind: ViolationKind
    participant_id: str


def shuffle(items: MutableSequence, rng: random.Random) -> None:
    """Fisher-Yates shuffle in place; every ordering is equally likely."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randrange(i + 1)
        items[i], items[j] = items[j], items[i]


def count_reciprocals(mapping: Mapping[str, str]) -> int:
    pairs = 0
    for giver, recipient in mapping.items():
        if giver < recipient and mapping.get(recipient) == giver:
            pairs += 1
    return pairs


def _circular_mapping(order: Sequence[Participant]) -> Optional[Dict[str, str]]:
    mapping: Dict[str, str] = {}
    for index, giver in enumerate(order):
        recipient = order[(index + 1) % len(order)]
        if giver.id == recipient.id:
            return None
        mapping[giver.id] = recipient.id
    return mapping


def _materialize(
    mapping: Mapping[str, str],
    by_id: Mapping[str, Participant],
) -> Tuple[Assignment, ...]:
    results: List[Assignment] = []
    for giver_id, recipient_id in mapping.items():
        recipient = by_id.get(recipient_id)
        if recipient is None:
            raise RecipientNotFound(f"Recipient {recipient_id!r} is not in the participant list.")
        results.append(
            Assignment(
                giver_id=giver_id,
                recipient_id=recipient.id,
                recipient_name=recipient.name,
                recipient_email=recipient.email,
                recipient_note=recipient.note,
            )
        )
    return tuple(results)


def generate_assignments(
    participants: Iterable[Participant],
    options: Optional[DerangementOptions] = None,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
) -> AssignmentSet:
    """Draw a random derangement of ``participants``.

    Each attempt shuffles the roster and links it into a single cycle, which
    never maps anyone to themselves for two or more people. Extra attempts are
    only spent looking for a cycle without reciprocal pairs; for exactly two
    participants the reciprocal pair is unavoidable and is returned as is.

    Randomness comes from ``rng`` when given, otherwise from
    ``random.Random(seed)``; passing both is an error.
    """
    roster = tuple(participants)
    if len(roster) < 2:
        raise InsufficientParticipants("At least 2 participants are required.")

    by_id = {participant.id: participant for participant in roster}
    if len(by_id) != len(roster):
        raise DuplicateParticipant("Participant identifiers must be unique.")

    if rng is not None and seed is not None:
        raise ValueError("Pass either rng or seed, not both.")

    options = options or DerangementOptions()
    rng = rng or random.Random(seed)

    best: Optional[Dict[str, str]] = None
    best_reciprocals = 0
    attempts = 0
    working = list(roster)

    for attempt in range(1, options.max_attempts + 1):
        attempts = attempt
        shuffle(working, rng)
        mapping = _circular_mapping(working)
        if mapping is None:
            continue

        reciprocals = count_reciprocals(mapping)
        if best is None or reciprocals < best_reciprocals:
            best, best_reciprocals = mapping, reciprocals
        if reciprocals == 0 or not options.minimize_reciprocals:
            break

    if best is None:
        raise GenerationFailed(
            f"Failed to generate assignments after {options.max_attempts} attempts."
        )

    if best_reciprocals:
        logger.bind(participants=len(roster), attempts=attempts).debug(
            "Returning assignments with {count} reciprocal pair(s)", count=best_reciprocals
        )

    return AssignmentSet(
        assignments=_materialize(best, by_id),
        reciprocal_count=best_reciprocals,
        attempts=attempts,
    )


def validate_assignments(
    assignments: Iterable[Assignment],
    participants: Iterable[Participant],
) -> List[Violation]:
    expected = [participant.id for participant in participants]
    known = set(expected)
    violations: List[Violation] = []

    givers: Dict[str, int] = {}
    recipients: Dict[str, int] = {}
    for assignment in assignments:
        givers[assignment.giver_id] = givers.get(assignment.giver_id, 0) + 1
        recipients[assignment.recipient_id] = recipients.get(assignment.recipient_id, 0) + 1
        if assignment.giver_id == assignment.recipient_id:
            violations.append(Violation(ViolationKind.SELF_ASSIGNMENT, assignment.giver_id))

    for participant_id in expected:
        if participant_id not in givers:
            violations.append(Violation(ViolationKind.MISSING_GIVER, participant_id))
        elif givers[participant_id] > 1:
            violations.append(Violation(ViolationKind.DUPLICATE_GIVER, participant_id))
        if participant_id not in recipients:
            violations.append(Violation(ViolationKind.MISSING_RECIPIENT, participant_id))
        elif recipients[participant_id] > 1:
            violations.append(Violation(ViolationKind.DUPLICATE_RECIPIENT, participant_id))

    for participant_id in sorted((set(givers) | set(recipients)) - known):
        violations.append(Violation(ViolationKind.UNKNOWN_PARTICIPANT, participant_id))

    return violations
