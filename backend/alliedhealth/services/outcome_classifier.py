"""Outcome state machine for a single task intervention.

    ASSIGNED ──> IN_PROGRESS ──> {SEEN, ATTEMPTED, DECLINED, UNSEEN, HANDOVER}
        └──────────────────────────────────^

Movement is forward only. Terminal outcomes are immutable and carry the
date they were recorded; working states never carry an outcome date.
"""

from dataclasses import dataclass
from datetime import date

from alliedhealth.errors import InvalidTransitionError, ValidationError
from alliedhealth.models.task import InterventionOutcome

TERMINAL_OUTCOMES: frozenset[InterventionOutcome] = frozenset(
    {
        InterventionOutcome.SEEN,
        InterventionOutcome.ATTEMPTED,
        InterventionOutcome.DECLINED,
        InterventionOutcome.UNSEEN,
        InterventionOutcome.HANDOVER,
    }
)

VALID_TRANSITIONS: dict[InterventionOutcome, frozenset[InterventionOutcome]] = {
    InterventionOutcome.ASSIGNED: frozenset({InterventionOutcome.IN_PROGRESS}) | TERMINAL_OUTCOMES,
    InterventionOutcome.IN_PROGRESS: TERMINAL_OUTCOMES,
    # Terminal outcomes cannot move
    **{outcome: frozenset() for outcome in TERMINAL_OUTCOMES},
}


@dataclass(frozen=True)
class OutcomeResult:
    """State an intervention should move to."""

    status: InterventionOutcome
    outcome_date: date | None
    note: str | None


def is_terminal(status: InterventionOutcome) -> bool:
    return status in TERMINAL_OUTCOMES


def _fold(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch not in "_- ")


def parse_outcome(value: InterventionOutcome | str) -> InterventionOutcome:
    """Parse an outcome from its value or name.

    Case, underscores, hyphens and spaces are ignored, so ``InProgress``,
    ``in_progress`` and ``IN-PROGRESS`` all name the same outcome.

    Raises:
        ValidationError: If the value is not a recognized outcome.
    """
    if isinstance(value, InterventionOutcome):
        return value
    folded = _fold(str(value))
    for outcome in InterventionOutcome:
        if folded in (_fold(outcome.value), _fold(outcome.name)):
            return outcome
    raise ValidationError(f"Unrecognized outcome status: {value!r}")


def validate_transition(current: InterventionOutcome, requested: InterventionOutcome) -> bool:
    return requested in VALID_TRANSITIONS.get(current, frozenset())


def apply_outcome(
    current: InterventionOutcome,
    requested: InterventionOutcome | str,
    note: str | None,
    today: date,
    require_handover_note: bool = False,
) -> OutcomeResult:
    """Compute the result of moving ``current`` to ``requested``.

    Args:
        current: The stored outcome status.
        requested: The outcome the caller asked for.
        note: Free-text outcome note.
        today: Date stamped on terminal outcomes.
        require_handover_note: Reject a handover that has no note.

    Returns:
        The new status with its outcome date and note.

    Raises:
        ValidationError: If ``requested`` is unrecognized, or a handover
            has no note while one is required.
        InvalidTransitionError: If ``current`` is terminal or the move is
            not forward.
    """
    target = parse_outcome(requested)

    if is_terminal(current):
        raise InvalidTransitionError(
            f"Outcome is already {current.value} and cannot be changed"
        )
    if not validate_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot move outcome from {current.value} to {target.value}"
        )

    note = note.strip() if note else None
    if require_handover_note and target == InterventionOutcome.HANDOVER and not note:
        raise ValidationError("A handover outcome requires a note")

    return OutcomeResult(
        status=target,
        outcome_date=today if is_terminal(target) else None,
        note=note,
    )
