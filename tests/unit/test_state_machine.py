"""
Test State Machine

Unit tests for the submission handler state machine and outcome mapping.
"""

import pytest

from notifier.exceptions import InvalidStateTransitionError
from notifier.state_machine import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    DeliveryOutcome,
    HandlerState,
    validate_transition,
)

HAPPY_PATH = [
    HandlerState.VALIDATING_CONFIG,
    HandlerState.PARSING_PAYLOAD,
    HandlerState.FORMATTING,
    HandlerState.FETCHING_ATTACHMENTS,
    HandlerState.DISPATCHING,
    HandlerState.BACKING_UP,
    HandlerState.DONE,
]


class TestHandlerState:
    """Tests for HandlerState enum."""

    def test_every_state_has_transition_entry(self):
        assert set(VALID_TRANSITIONS) == set(HandlerState)

    def test_is_terminal_property(self):
        assert HandlerState.DONE.is_terminal is True
        assert HandlerState.CONFIG_ERROR.is_terminal is True
        assert HandlerState.BAD_PAYLOAD.is_terminal is True
        assert HandlerState.PROVIDER_ERROR.is_terminal is True

        assert HandlerState.FETCHING_ATTACHMENTS.is_terminal is False
        assert HandlerState.BACKING_UP.is_terminal is False

    def test_terminal_states_have_no_transitions(self):
        for state in TERMINAL_STATES:
            assert VALID_TRANSITIONS[state] == frozenset()


class TestTransitions:
    """Tests for validate_transition."""

    def test_happy_path_is_valid(self):
        for current, nxt in zip(HAPPY_PATH, HAPPY_PATH[1:]):
            assert validate_transition(current, nxt) is True

    @pytest.mark.parametrize(
        "current, terminal",
        [
            (HandlerState.VALIDATING_CONFIG, HandlerState.CONFIG_ERROR),
            (HandlerState.PARSING_PAYLOAD, HandlerState.BAD_PAYLOAD),
            (HandlerState.DISPATCHING, HandlerState.PROVIDER_ERROR),
        ],
    )
    def test_early_exits(self, current, terminal):
        assert validate_transition(current, terminal) is True

    def test_attachment_failure_has_no_error_exit(self):
        assert VALID_TRANSITIONS[HandlerState.FETCHING_ATTACHMENTS] == frozenset(
            {HandlerState.DISPATCHING}
        )

    def test_backup_has_no_error_exit(self):
        assert VALID_TRANSITIONS[HandlerState.BACKING_UP] == frozenset({HandlerState.DONE})

    def test_skipping_dispatch_is_invalid(self):
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            validate_transition(HandlerState.FETCHING_ATTACHMENTS, HandlerState.BACKING_UP)

        assert exc_info.value.allowed_transitions == ["DISPATCHING"]

    def test_invalid_without_raise(self):
        assert validate_transition(
            HandlerState.DONE, HandlerState.DISPATCHING, raise_on_invalid=False
        ) is False


class TestDeliveryOutcome:
    """Tests for DeliveryOutcome mapping."""

    @pytest.mark.parametrize(
        "outcome, status",
        [
            (DeliveryOutcome.SENT, 200),
            (DeliveryOutcome.CONFIG_ERROR, 500),
            (DeliveryOutcome.BAD_PAYLOAD, 400),
            (DeliveryOutcome.PROVIDER_ERROR, 502),
        ],
    )
    def test_status_codes(self, outcome, status):
        assert outcome.status_code == status

    def test_response_bodies_are_short_plaintext(self):
        assert DeliveryOutcome.SENT.response_body == "ok"
        assert DeliveryOutcome.BAD_PAYLOAD.response_body == "Invalid webhook payload"
        for outcome in DeliveryOutcome:
            assert "\n" not in outcome.response_body

    def test_from_terminal_state(self):
        assert DeliveryOutcome.from_state(HandlerState.DONE) == DeliveryOutcome.SENT
        assert DeliveryOutcome.from_state(HandlerState.PROVIDER_ERROR) == DeliveryOutcome.PROVIDER_ERROR

    def test_from_non_terminal_state_raises(self):
        with pytest.raises(ValueError, match="not terminal"):
            DeliveryOutcome.from_state(HandlerState.FORMATTING)
