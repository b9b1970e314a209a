"""States of checksum verification for a workflow include."""

from __future__ import annotations

from enum import Enum


class InvalidChecksumVerificationStateError(ValueError):
    """Raised when a name is not a valid checksum verification state."""


class ChecksumVerificationState(Enum):
    NOT_VERIFIED = 0
    PENDING = 1
    VERIFIED = 2
    MISMATCH = 3
    ERROR = 4

    def __str__(self) -> str:
        return _STATE_NAMES[self]

    def is_valid(self) -> bool:
        return self in _STATE_NAMES

    def is_verified(self) -> bool:
        return self is ChecksumVerificationState.VERIFIED

    def is_pending(self) -> bool:
        return self is ChecksumVerificationState.PENDING

    def is_mismatch(self) -> bool:
        return self is ChecksumVerificationState.MISMATCH

    def is_error(self) -> bool:
        return self is ChecksumVerificationState.ERROR

    def is_final(self) -> bool:
        return self in FINAL_STATES

    def next_state(self, matched: bool) -> ChecksumVerificationState:
        """Return the state that follows this one.

        A state with a single successor moves to it; a state whose successors
        include ERROR moves to ERROR; final states stay where they are.
        """
        possible = _TRANSITIONS[self]
        if not possible:
            return self
        if len(possible) == 1:
            return possible[0]
        if ChecksumVerificationState.ERROR in possible:
            return ChecksumVerificationState.ERROR
        if any(state in FINAL_STATES for state in possible):
            return self.with_verified(matched)
        return self

    def with_verified(self, value: bool) -> ChecksumVerificationState:
        """VERIFIED when `value` holds and this is not an error state, else MISMATCH."""
        if value and not self.is_error():
            return ChecksumVerificationState.VERIFIED
        return ChecksumVerificationState.MISMATCH


_STATE_NAMES = {
    ChecksumVerificationState.NOT_VERIFIED: "not verified",
    ChecksumVerificationState.PENDING: "pending",
    ChecksumVerificationState.VERIFIED: "verified",
    ChecksumVerificationState.MISMATCH: "mismatch",
    ChecksumVerificationState.ERROR: "error",
}

_STATE_VALUES = {name: state for state, name in _STATE_NAMES.items()}

FINAL_STATES = (
    ChecksumVerificationState.VERIFIED,
    ChecksumVerificationState.MISMATCH,
    ChecksumVerificationState.ERROR,
)

NON_ERROR_FINAL_STATES = (
    ChecksumVerificationState.VERIFIED,
    ChecksumVerificationState.MISMATCH,
)

_TRANSITIONS = {
    ChecksumVerificationState.NOT_VERIFIED: (ChecksumVerificationState.PENDING,),
    ChecksumVerificationState.PENDING: FINAL_STATES,
    ChecksumVerificationState.VERIFIED: (),
    ChecksumVerificationState.MISMATCH: (),
    ChecksumVerificationState.ERROR: (),
}


def parse_checksum_verification_state(name: str) -> ChecksumVerificationState:
    try:
        return _STATE_VALUES[name]
    except KeyError:
        raise InvalidChecksumVerificationStateError(
            f"{name} is not a valid ChecksumVerificationState"
        ) from None