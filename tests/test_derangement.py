import itertools
import random
from collections import Counter
from dataclasses import replace

import pytest

from app.services import derangement
from app.services.derangement import (
    DerangementOptions,
    DuplicateParticipant,
    GenerationFailed,
    InsufficientParticipants,
    Participant,
    RecipientNotFound,
    ViolationKind,
    count_reciprocals,
    generate_assignments,
    validate_assignments,
)


def make_participants(*ids):
    return [Participant(id=pid, name=f"Name {pid}", email=f"{pid.lower()}@example.com") for pid in ids]


@pytest.mark.parametrize("size", range(2, 13))
def test_every_participant_gives_and_receives_once(size):
    participants = make_participants(*[f"P{i}" for i in range(size)])
    for seed in range(25):
        result = generate_assignments(participants, seed=seed)
        ids = [p.id for p in participants]
        assert sorted(a.giver_id for a in result) == sorted(ids)
        assert sorted(a.recipient_id for a in result) == sorted(ids)
        assert all(a.giver_id != a.recipient_id for a in result)
        assert validate_assignments(result, participants) == []


@pytest.mark.parametrize("size", [3, 4, 7, 20])
def test_three_or_more_participants_have_no_reciprocal_pairs(size):
    participants = make_participants(*[f"P{i}" for i in range(size)])
    result = generate_assignments(participants, seed=size)
    assert result.reciprocal_count == 0
    assert count_reciprocals(result.as_mapping()) == 0
    assert result.attempts == 1


def test_two_participants_swap_gifts():
    participants = make_participants("A", "B")
    result = generate_assignments(participants, seed=1)
    assert result.as_mapping() == {"A": "B", "B": "A"}
    assert result.reciprocal_count == 1
    assert validate_assignments(result, participants) == []


def test_two_participants_use_whole_budget_when_minimizing():
    participants = make_participants("A", "B")
    result = generate_assignments(participants, DerangementOptions(max_attempts=7), seed=3)
    assert result.attempts == 7

    relaxed = generate_assignments(
        participants, DerangementOptions(max_attempts=7, minimize_reciprocals=False), seed=3
    )
    assert relaxed.attempts == 1
    assert relaxed.reciprocal_count == 1


@pytest.mark.parametrize("participants", [[], make_participants("A")])
def test_too_few_participants(participants):
    with pytest.raises(InsufficientParticipants):
        generate_assignments(participants)


def test_duplicate_identifiers_are_rejected():
    participants = make_participants("A", "B", "A")
    with pytest.raises(DuplicateParticipant):
        generate_assignments(participants)


def test_options_require_at_least_one_attempt():
    with pytest.raises(ValueError):
        DerangementOptions(max_attempts=0)


def test_same_seed_gives_same_assignments():
    participants = make_participants("A", "B", "C", "D", "E")
    first = generate_assignments(participants, seed=123)
    second = generate_assignments(participants, seed=123)
    assert first == second


def test_injected_rng_matches_seed():
    participants = make_participants("A", "B", "C", "D", "E", "F")
    seeded = generate_assignments(participants, seed=99)
    injected = generate_assignments(participants, rng=random.Random(99))
    assert seeded.as_mapping() == injected.as_mapping()


def test_recipient_details_are_copied():
    participants = [
        Participant(id="A", name="Alice", email="alice@example.com", note="Books"),
        Participant(id="B", name="Bob", email="bob@example.com"),
    ]
    result = generate_assignments(participants, seed=4)
    by_giver = {a.giver_id: a for a in result}
    assert by_giver["B"].recipient_name == "Alice"
    assert by_giver["B"].recipient_email == "alice@example.com"
    assert by_giver["B"].recipient_note == "Books"
    assert by_giver["A"].recipient_note is None


def test_input_is_not_mutated():
    participants = make_participants("A", "B", "C", "D")
    snapshot = list(participants)
    generate_assignments(participants, seed=8)
    assert participants == snapshot


def test_shuffle_is_uniform():
    rng = random.Random(2024)
    counts = Counter()
    for _ in range(6000):
        items = ["a", "b", "c"]
        derangement.shuffle(items, rng)
        counts[tuple(items)] += 1
    assert set(counts) == set(itertools.permutations(["a", "b", "c"]))
    assert all(800 < count < 1200 for count in counts.values())


def test_count_reciprocals():
    assert count_reciprocals({"A": "B", "B": "A"}) == 1
    assert count_reciprocals({"A": "B", "B": "C", "C": "A"}) == 0
    assert count_reciprocals({"A": "B", "B": "A", "C": "D", "D": "C"}) == 2


def test_keeps_fewest_reciprocals_and_stops_at_zero(monkeypatch):
    participants = make_participants("A", "B", "C", "D", "E")
    with_pair = {"A": "B", "B": "A", "C": "D", "D": "E", "E": "C"}
    cycle = {"A": "B", "B": "C", "C": "D", "D": "E", "E": "A"}

    candidates = iter([with_pair, cycle, with_pair])
    monkeypatch.setattr(derangement, "_circular_mapping", lambda order: next(candidates))
    result = generate_assignments(participants, DerangementOptions(max_attempts=3), seed=1)
    assert result.as_mapping() == cycle
    assert result.reciprocal_count == 0
    assert result.attempts == 2

    candidates = iter([with_pair])
    monkeypatch.setattr(derangement, "_circular_mapping", lambda order: next(candidates))
    fallback = generate_assignments(participants, DerangementOptions(max_attempts=1), seed=1)
    assert fallback.as_mapping() == with_pair
    assert fallback.reciprocal_count == 1


def test_generation_fails_when_no_attempt_is_valid(monkeypatch):
    monkeypatch.setattr(derangement, "_circular_mapping", lambda order: None)
    with pytest.raises(GenerationFailed):
        generate_assignments(make_participants("A", "B", "C"), DerangementOptions(max_attempts=5))


def test_unknown_recipient_is_reported(monkeypatch):
    monkeypatch.setattr(derangement, "_circular_mapping", lambda order: {"A": "B", "B": "Z"})
    with pytest.raises(RecipientNotFound):
        generate_assignments(make_participants("A", "B"))


def test_validator_accepts_known_cycle():
    participants = make_participants("A", "B", "C", "D")
    cycle = [
        derangement.Assignment("A", "B", "Name B", "b@example.com"),
        derangement.Assignment("B", "C", "Name C", "c@example.com"),
        derangement.Assignment("C", "D", "Name D", "d@example.com"),
        derangement.Assignment("D", "A", "Name A", "a@example.com"),
    ]
    assert validate_assignments(cycle, participants) == []


def test_validator_reports_self_assignment_only():
    participants = make_participants("A", "B", "C")
    result = generate_assignments(participants, seed=11)
    assert validate_assignments(result, participants) == []

    by_id = {p.id: p for p in participants}
    mutated = []
    for assignment in result:
        target = {"A": "A", "B": "C", "C": "B"}[assignment.giver_id]
        mutated.append(replace(assignment, recipient_id=target, recipient_name=by_id[target].name))

    violations = validate_assignments(mutated, participants)
    assert violations == [derangement.Violation(ViolationKind.SELF_ASSIGNMENT, "A")]


def test_validator_reports_missing_and_duplicate_entries():
    participants = make_participants("A", "B", "C")
    broken = [
        derangement.Assignment("A", "B", "Name B", "b@example.com"),
        derangement.Assignment("B", "B", "Name B", "b@example.com"),
        derangement.Assignment("X", "A", "Name A", "a@example.com"),
    ]
    kinds = {(v.kind, v.participant_id) for v in validate_assignments(broken, participants)}
    assert (ViolationKind.SELF_ASSIGNMENT, "B") in kinds
    assert (ViolationKind.MISSING_GIVER, "C") in kinds
    assert (ViolationKind.DUPLICATE_RECIPIENT, "B") in kinds
    assert (ViolationKind.MISSING_RECIPIENT, "C") in kinds
    assert (ViolationKind.UNKNOWN_PARTICIPANT, "X") in kinds


def test_reciprocal_pair_is_not_a_violation():
    participants = make_participants("A", "B")
    swap = [
        derangement.Assignment("A", "B", "Name B", "b@example.com"),
        derangement.Assignment("B", "A", "Name A", "a@example.com"),
    ]
    assert validate_assignments(swap, participants) == []


def test_rng_and_seed_together_are_rejected():
    with pytest.raises(ValueError):
        generate_assignments(make_participants("A", "B", "C"), rng=random.Random(1), seed=1)
