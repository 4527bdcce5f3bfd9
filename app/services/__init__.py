from app.services.derangement import (
    AssignmentSet,
    DerangementError,
    DerangementOptions,
    Participant,
    generate_assignments,
    validate_assignments,
)

__all__ = [
    "AssignmentSet",
    "DerangementError",
    "DerangementOptions",
    "Participant",
    "generate_assignments",
    "validate_assignments",
]
