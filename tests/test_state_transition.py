"""Transaction processing specs (atomicity, dispatch, dry runs)."""

from __future__ import annotations

import pytest

from hashlock_escrow.config import LAMPORTS_PER_SOL
from hashlock_escrow.crypto.commitment import commitment_hash
from hashlock_escrow.encoding import encode_instruction_data
from hashlock_escrow.errors import ErrorCategory, ErrorCode, EscrowError, err
from hashlock_escrow.escrow import find_deposit_address, get_deposit
from hashlock_escrow.state_transition import (
    instruction_from_data,
    process_instruction,
    process_transaction,
    verify_instruction,
)
from hashlock_escrow.test_accounts import ALICE, BOB
from hashlock_escrow.types import (
    Account,
    ClaimDepositArgs,
    CreateDepositArgs,
    Instruction,
    InstructionKind,
    LedgerState,
    RentSchedule,
)

TEST_RENT = RentSchedule(lamports_per_byte_year=1000, exemption_threshold=2)

_PATH = "escrow/transactions.json"


def _base_state() -> LedgerState:
    state = LedgerState(rent=TEST_RENT)
    state.accounts[ALICE] = Account(address=ALICE, lamports=10 * LAMPORTS_PER_SOL)
    state.accounts[BOB] = Account(address=BOB, lamports=LAMPORTS_PER_SOL)
    return state


def _create(deposit_id: int = 1, amount: int = 1_000_000) -> Instruction:
    return Instruction(
        kind=InstructionKind.CREATE_PRIVATE_DEPOSIT,
        signer=ALICE,
        args=CreateDepositArgs(deposit_id=deposit_id, amount=amount, commitment=commitment_hash("swordfish")),
    )


def _claim(secret: str, deposit_id: int = 1) -> Instruction:
    return Instruction(
        kind=InstructionKind.CLAIM_DEPOSIT,
        signer=BOB,
        args=ClaimDepositArgs(deposit_id=deposit_id, secret=secret),
        deposit_address=find_deposit_address(ALICE, deposit_id)[0],
    )


def test_create_and_claim_in_one_transaction(state_test_group) -> None:
    state = _base_state()
    post, result = state_test_group(
        _PATH, "create_and_claim", state, [_create(), _claim("swordfish")]
    )
    assert result.ok
    assert post.slot == state.slot + 1
    assert post.accounts[BOB].lamports == LAMPORTS_PER_SOL + 1_000_000


def test_transaction_is_all_or_nothing(state_test_group) -> None:
    state = _base_state()
    post, result = state_test_group(
        _PATH, "create_then_bad_claim", state, [_create(), _claim("Swordfish")]
    )
    assert result.error.code == ErrorCode.INVALID_SECRET
    assert post is state
    assert post.slot == 0
    assert find_deposit_address(ALICE, 1)[0] not in post.accounts
    assert post.accounts[ALICE].lamports == 10 * LAMPORTS_PER_SOL


def test_double_claim_in_one_transaction(state_test_group) -> None:
    state = _base_state()
    post, result = state_test_group(
        _PATH, "double_claim_same_transaction",
        state,
        [_create(), _claim("swordfish"), _claim("swordfish")],
    )
    assert result.error.code == ErrorCode.ALREADY_CLAIMED
    assert post is state


def test_process_instruction_returns_deposit_id() -> None:
    _, result = process_instruction(_base_state(), _create(deposit_id=77))
    assert result.ok
    assert result.return_value == 77


def test_claim_returns_no_value() -> None:
    state, _ = process_instruction(_base_state(), _create())
    _, result = process_instruction(state, _claim("swordfish"))
    assert result.ok
    assert result.return_value is None


def test_verify_instruction_does_not_commit() -> None:
    state = _base_state()
    result = verify_instruction(state, _create())
    assert result.ok
    assert find_deposit_address(ALICE, 1)[0] not in state.accounts
    assert state.accounts[ALICE].lamports == 10 * LAMPORTS_PER_SOL


def test_instruction_from_data() -> None:
    state = _base_state()
    create = instruction_from_data(ALICE, encode_instruction_data(_create(deposit_id=3)))
    state, result = process_instruction(state, create)
    assert result.ok

    address = find_deposit_address(ALICE, 3)[0]
    claim = instruction_from_data(
        BOB, encode_instruction_data(_claim("swordfish", deposit_id=3)), deposit_address=address
    )
    state, result = process_instruction(state, claim)
    assert result.ok
    assert get_deposit(state, address).claimed


def test_missing_signer() -> None:
    ix = _create()
    ix.signer = b""
    state = _base_state()
    post, result = process_instruction(state, ix)
    assert result.error.code == ErrorCode.MISSING_SIGNER
    assert post is state


def test_claim_without_deposit_account() -> None:
    ix = _claim("swordfish")
    ix.deposit_address = None
    _, result = process_instruction(_base_state(), ix)
    assert result.error.code == ErrorCode.ACCOUNT_NOT_FOUND


def test_mismatched_args_type() -> None:
    ix = _claim("swordfish")
    ix.kind = InstructionKind.CREATE_PRIVATE_DEPOSIT
    _, result = process_instruction(_base_state(), ix)
    assert result.error.code == ErrorCode.INVALID_INSTRUCTION


def test_empty_transaction_advances_slot() -> None:
    post, result = process_transaction(_base_state(), [])
    assert result.ok
    assert post.slot == 1


def test_empty_transaction_does_not_share_state() -> None:
    state = _base_state()
    post, _ = process_transaction(state, [])
    post.accounts[ALICE].lamports = 0
    assert post.accounts is not state.accounts
    assert state.accounts[ALICE].lamports == 10 * LAMPORTS_PER_SOL
    assert state.slot == 0


# --- malformed inputs fail closed ---


@pytest.mark.parametrize("field", ["signer", "commitment"])
def test_create_rejects_mutable_buffers(field: str) -> None:
    ix = _create()
    if field == "signer":
        ix.signer = bytearray(ALICE)
    else:
        ix.args.commitment = bytearray(commitment_hash("swordfish"))
    state = _base_state()
    post, result = process_instruction(state, ix)
    assert not result.ok
    assert result.error.code == (
        ErrorCode.MISSING_SIGNER if field == "signer" else ErrorCode.INVALID_FORMAT
    )
    assert post is state


def test_claim_rejects_mutable_deposit_address() -> None:
    state, _ = process_instruction(_base_state(), _create())
    ix = _claim("swordfish")
    ix.deposit_address = bytearray(ix.deposit_address)
    post, result = process_instruction(state, ix)
    assert result.error.code == ErrorCode.ACCOUNT_NOT_FOUND
    assert post is state


def test_claim_with_unencodable_secret() -> None:
    state, _ = process_instruction(_base_state(), _create())
    post, result = process_instruction(state, _claim("\ud800"))
    assert result.error.code == ErrorCode.INVALID_FORMAT
    assert post is state
    assert not get_deposit(post, find_deposit_address(ALICE, 1)[0]).claimed


def test_unknown_instruction_kind() -> None:
    ix = _claim("swordfish")
    ix.kind = "refund_expired"
    state = _base_state()
    post, result = process_instruction(state, ix)
    assert result.error.code == ErrorCode.INVALID_INSTRUCTION
    assert post is state
    _, tx_result = process_transaction(state, [_create(), ix])
    assert tx_result.error.code == ErrorCode.INVALID_INSTRUCTION


# --- errors ---


def test_error_taxonomy_is_closed() -> None:
    names = {code.name for code in ErrorCode}
    assert "UNKNOWN" not in names
    assert {c for c in ErrorCode if c.category == ErrorCategory.ESCROW} == {
        ErrorCode.ALREADY_CLAIMED,
        ErrorCode.INVALID_SECRET,
        ErrorCode.INVALID_AMOUNT,
    }


def test_error_numbering_and_messages() -> None:
    assert int(ErrorCode.ALREADY_CLAIMED) == 6000
    assert int(ErrorCode.INVALID_SECRET) == 0x1771
    assert int(ErrorCode.INVALID_AMOUNT) == 6002
    assert err(ErrorCode.ALREADY_CLAIMED).message == "Deposit already claimed"
    assert err(ErrorCode.INVALID_SECRET).message == "Invalid secret code"
    assert ErrorCode.ACCOUNT_NOT_FOUND.category == ErrorCategory.LEDGER
    assert ErrorCode.INVALID_FORMAT.category == ErrorCategory.FORMAT


def test_error_str_and_raise() -> None:
    e = EscrowError(ErrorCode.INVALID_AMOUNT, "debit underflow")
    assert str(e) == "INVALID_AMOUNT(0x1772): debit underflow"
    try:
        raise e
    except EscrowError as caught:
        assert caught.category == ErrorCategory.ESCROW


def test_rent_schedule_from_env(monkeypatch) -> None:
    monkeypatch.setenv("ESCROW_LAMPORTS_PER_BYTE_YEAR", "10")
    monkeypatch.setenv("ESCROW_EXEMPTION_THRESHOLD", "1")
    rent = RentSchedule.from_env()
    assert rent.minimum_balance(82) == (128 + 82) * 10


def test_rent_schedule_from_env_defaults(monkeypatch) -> None:
    monkeypatch.delenv("ESCROW_LAMPORTS_PER_BYTE_YEAR", raising=False)
    monkeypatch.delenv("ESCROW_EXEMPTION_THRESHOLD", raising=False)
    assert RentSchedule.from_env() == RentSchedule()
