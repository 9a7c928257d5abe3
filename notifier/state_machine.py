"""
Submission Handler State Machine

Defines the stages a single submission-created invocation moves through,
the valid transitions between them, and the HTTP outcome of each terminal state.
"""

from enum import Enum
from typing import Final

import structlog

from notifier.exceptions import InvalidStateTransitionError

log = structlog.get_logger()


class HandlerState(str, Enum):
    """
    Handler state enum.

    States are mutually exclusive and represent the current stage
    of a submission in the notification pipeline.
    """

    VALIDATING_CONFIG = "VALIDATING_CONFIG"
    """Checking provider credential, sender and recipients."""

    PARSING_PAYLOAD = "PARSING_PAYLOAD"
    """Decoding the webhook body into a submission and file references."""

    FORMATTING = "FORMATTING"
    """Building subject, HTML body and text body."""

    FETCHING_ATTACHMENTS = "FETCHING_ATTACHMENTS"
    """Downloading uploaded files under count and size caps."""

    DISPATCHING = "DISPATCHING"
    """Sending the notification through the email provider."""

    BACKING_UP = "BACKING_UP"
    """Mirroring the submission to the backup webhook."""

    DONE = "DONE"
    """Email sent; response 200."""

    CONFIG_ERROR = "CONFIG_ERROR"
    """Required settings missing; response 500."""

    BAD_PAYLOAD = "BAD_PAYLOAD"
    """Webhook body rejected; response 400."""

    PROVIDER_ERROR = "PROVIDER_ERROR"
    """Email provider failed; response 502."""

    @property
    def is_terminal(self) -> bool:
        """Check if this is a terminal state (no outgoing transitions)."""
        return self in TERMINAL_STATES


class DeliveryOutcome(str, Enum):
    """Result of one invocation, mapped onto the HTTP response."""

    SENT = "SENT"
    CONFIG_ERROR = "CONFIG_ERROR"
    BAD_PAYLOAD = "BAD_PAYLOAD"
    PROVIDER_ERROR = "PROVIDER_ERROR"

    @property
    def status_code(self) -> int:
        return OUTCOME_STATUS_CODES[self]

    @property
    def response_body(self) -> str:
        return OUTCOME_RESPONSE_BODIES[self]

    @classmethod
    def from_state(cls, state: HandlerState) -> "DeliveryOutcome":
        """Convert a terminal handler state to its outcome."""
        try:
            return STATE_OUTCOMES[state]
        except KeyError as e:
            raise ValueError(f"State '{state.value}' is not terminal") from e


TERMINAL_STATES: Final[frozenset[HandlerState]] = frozenset({
    HandlerState.DONE,
    HandlerState.CONFIG_ERROR,
    HandlerState.BAD_PAYLOAD,
    HandlerState.PROVIDER_ERROR,
})

# Key: current state, Value: set of allowed next states
VALID_TRANSITIONS: Final[dict[HandlerState, frozenset[HandlerState]]] = {
    HandlerState.VALIDATING_CONFIG: frozenset({
        HandlerState.PARSING_PAYLOAD,
        HandlerState.CONFIG_ERROR,
    }),
    HandlerState.PARSING_PAYLOAD: frozenset({
        HandlerState.FORMATTING,
        HandlerState.BAD_PAYLOAD,
    }),
    HandlerState.FORMATTING: frozenset({
        HandlerState.FETCHING_ATTACHMENTS,
    }),
    # Attachment failures degrade to zero attachments, never a terminal error
    HandlerState.FETCHING_ATTACHMENTS: frozenset({
        HandlerState.DISPATCHING,
    }),
    HandlerState.DISPATCHING: frozenset({
        HandlerState.BACKING_UP,
        HandlerState.PROVIDER_ERROR,
    }),
    HandlerState.BACKING_UP: frozenset({
        HandlerState.DONE,
    }),
    HandlerState.DONE: frozenset(),
    HandlerState.CONFIG_ERROR: frozenset(),
    HandlerState.BAD_PAYLOAD: frozenset(),
    HandlerState.PROVIDER_ERROR: frozenset(),
}

STATE_OUTCOMES: Final[dict[HandlerState, DeliveryOutcome]] = {
    HandlerState.DONE: DeliveryOutcome.SENT,
    HandlerState.CONFIG_ERROR: DeliveryOutcome.CONFIG_ERROR,
    HandlerState.BAD_PAYLOAD: DeliveryOutcome.BAD_PAYLOAD,
    HandlerState.PROVIDER_ERROR: DeliveryOutcome.PROVIDER_ERROR,
}

OUTCOME_STATUS_CODES: Final[dict[DeliveryOutcome, int]] = {
    DeliveryOutcome.SENT: 200,
    DeliveryOutcome.CONFIG_ERROR: 500,
    DeliveryOutcome.BAD_PAYLOAD: 400,
    DeliveryOutcome.PROVIDER_ERROR: 502,
}

OUTCOME_RESPONSE_BODIES: Final[dict[DeliveryOutcome, str]] = {
    DeliveryOutcome.SENT: "ok",
    DeliveryOutcome.CONFIG_ERROR: (
        "Server configuration error: Missing API keys or email configuration."
    ),
    DeliveryOutcome.BAD_PAYLOAD: "Invalid webhook payload",
    DeliveryOutcome.PROVIDER_ERROR: "Failed to send email via provider.",
}


def validate_transition(
    current_state: HandlerState,
    new_state: HandlerState,
    *,
    raise_on_invalid: bool = True,
) -> bool:
    """
    Validate that a state transition is allowed.

    Args:
        current_state: Current handler state
        new_state: Desired next state
        raise_on_invalid: If True, raise exception on invalid transition

    Returns:
        True if transition is valid

    Raises:
        InvalidStateTransitionError: If transition is invalid and raise_on_invalid=True
    """
    allowed = VALID_TRANSITIONS.get(current_state, frozenset())
    is_valid = new_state in allowed

    if not is_valid:
        log.warning(
            "invalid_state_transition",
            current_state=current_state.value,
            new_state=new_state.value,
            allowed=[s.value for s in allowed],
        )
        if raise_on_invalid:
            raise InvalidStateTransitionError(
                current_state=current_state.value,
                new_state=new_state.value,
                allowed_transitions=sorted(s.value for s in allowed),
            )

    return is_valid
