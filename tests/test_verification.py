import pytest

from stackup.verification import (
    FINAL_STATES,
    ChecksumVerificationState,
    InvalidChecksumVerificationStateError,
    parse_checksum_verification_state,
)

S = ChecksumVerificationState


@pytest.mark.parametrize(
    "state, name",
    [
        (S.NOT_VERIFIED, "not verified"),
        (S.PENDING, "pending"),
        (S.VERIFIED, "verified"),
        (S.MISMATCH, "mismatch"),
        (S.ERROR, "error"),
    ],
)
def test_names(state, name):
    assert str(state) == name
    assert parse_checksum_verification_state(name) is state


def test_parse_round_trip_for_all_states():
    for state in S:
        assert parse_checksum_verification_state(str(state)) is state
        assert state.is_valid()


def test_parse_invalid_name_raises():
    with pytest.raises(InvalidChecksumVerificationStateError, match="bogus is not a valid"):
        parse_checksum_verification_state("bogus")


def test_predicates():
    assert S.VERIFIED.is_verified()
    assert not S.PENDING.is_verified()
    assert S.PENDING.is_pending()
    assert S.MISMATCH.is_mismatch()
    assert S.ERROR.is_error()
    assert not S.VERIFIED.is_error()


def test_final_states():
    finals = [state for state in S if state.is_final()]
    assert finals == list(FINAL_STATES)
    assert not S.NOT_VERIFIED.is_final()
    assert not S.PENDING.is_final()


def test_not_verified_moves_to_pending():
    assert S.NOT_VERIFIED.next_state(True) is S.PENDING
    assert S.NOT_VERIFIED.next_state(False) is S.PENDING


def test_pending_moves_to_error():
    assert S.PENDING.next_state(True) is S.ERROR
    assert S.PENDING.next_state(False) is S.ERROR


@pytest.mark.parametrize("name", ["verified", "mismatch", "error"])
def test_final_states_do_not_move(name):
    state = parse_checksum_verification_state(name)
    assert state.next_state(True) is state
    assert state.next_state(False) is state
    assert str(state.next_state(True)) == name


def test_with_verified():
    assert S.PENDING.with_verified(True) is S.VERIFIED
    assert S.PENDING.with_verified(False) is S.MISMATCH
    assert S.NOT_VERIFIED.with_verified(True) is S.VERIFIED


def test_with_verified_from_error_is_mismatch():
    assert S.ERROR.with_verified(True) is S.MISMATCH
    assert S.ERROR.with_verified(False) is S.MISMATCH