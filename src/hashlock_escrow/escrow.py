"""Hash-locked escrow program.

Two instructions: `create_private_deposit` locks lamports in a record keyed by
("deposit", depositor, deposit_id); `claim_deposit` releases the whole amount
to whoever presents the secret whose SHA-256 equals the stored commitment.
A record moves Created -> Claimed exactly once and never back.
"""

from __future__ import annotations

import logging
from typing import Optional

from .config import (
    DEPOSIT_SEED,
    DEPOSITOR_OFFSET,
    DISCRIMINATOR_SIZE,
    HASH_SIZE,
    PROGRAM_ID,
    PUBKEY_SIZE,
    RECORD_SPACE,
    U64_MAX,
)
from .crypto.commitment import secret_bytes, verify_secret
from .crypto.derivation import deposit_seeds, find_program_address
from .encoding import RECORD_DISCRIMINATOR, decode_record
from .errors import ErrorCode, EscrowError
from .ledger import Ledger
from .types import (
    ClaimDepositArgs,
    CreateDepositArgs,
    EscrowRecord,
    Instruction,
    InstructionKind,
    LedgerState,
)

logger = logging.getLogger(__name__)


def find_deposit_address(
    depositor: bytes, deposit_id: int, program_id: bytes = PROGRAM_ID
) -> tuple[bytes, int]:
    """Address and bump of the record for (depositor, deposit_id)."""
    return find_program_address([DEPOSIT_SEED, *deposit_seeds(depositor, deposit_id)], program_id)


def _check_u64(name: str, value: int) -> None:
    if not isinstance(value, int) or value < 0 or value > U64_MAX:
        raise EscrowError(ErrorCode.INVALID_FORMAT, f"{name} must fit u64")


def verify(ix: Instruction) -> None:
    """Stateless argument checks (what the instruction decoder would reject).

    Keys and hashes must be immutable ``bytes``: they become account-store keys.
    """
    if not isinstance(ix.signer, bytes) or len(ix.signer) != PUBKEY_SIZE:
        raise EscrowError(ErrorCode.MISSING_SIGNER, "signer must be a 32-byte public key")

    args = ix.args
    if ix.kind == InstructionKind.CREATE_PRIVATE_DEPOSIT:
        if not isinstance(args, CreateDepositArgs):
            raise EscrowError(ErrorCode.INVALID_INSTRUCTION, "create expects CreateDepositArgs")
        _check_u64("deposit_id", args.deposit_id)
        _check_u64("amount", args.amount)
        if not isinstance(args.commitment, bytes) or len(args.commitment) != HASH_SIZE:
            raise EscrowError(ErrorCode.INVALID_FORMAT, "commitment must be 32 bytes")
    elif ix.kind == InstructionKind.CLAIM_DEPOSIT:
        if not isinstance(args, ClaimDepositArgs):
            raise EscrowError(ErrorCode.INVALID_INSTRUCTION, "claim expects ClaimDepositArgs")
        _check_u64("deposit_id", args.deposit_id)
        if not isinstance(args.secret, str):
            raise EscrowError(ErrorCode.INVALID_FORMAT, "secret must be a string")
        secret_bytes(args.secret)
        if not isinstance(ix.deposit_address, bytes) or len(ix.deposit_address) != PUBKEY_SIZE:
            raise EscrowError(ErrorCode.ACCOUNT_NOT_FOUND, "claim must name the deposit account")
    else:
        raise EscrowError(ErrorCode.INVALID_INSTRUCTION, f"unsupported instruction: {ix.kind}")


def apply(ledger: Ledger, ix: Instruction) -> Optional[int]:
    args = ix.args
    if ix.kind == InstructionKind.CREATE_PRIVATE_DEPOSIT:
        return create_private_deposit(
            ledger, ix.signer, args.deposit_id, args.amount, args.commitment
        )
    if ix.kind == InstructionKind.CLAIM_DEPOSIT:
        claim_deposit(ledger, ix.signer, ix.deposit_address, args.deposit_id, args.secret)
        return None
    raise EscrowError(ErrorCode.INVALID_INSTRUCTION, f"unsupported instruction: {ix.kind}")


# --- create_private_deposit ---


def create_private_deposit(
    ledger: Ledger, depositor: bytes, deposit_id: int, amount: int, commitment: bytes
) -> int:
    """Lock `amount` lamports under `commitment`; returns `deposit_id`.

    The depositor pays the record's rent-exempt reservation on top of
    `amount`, and `amount` itself must exceed that reservation.
    """
    if len(commitment) != HASH_SIZE:
        raise EscrowError(ErrorCode.INVALID_FORMAT, "commitment must be 32 bytes")

    address, bump = ledger.derive_address(DEPOSIT_SEED, deposit_seeds(depositor, deposit_id))
    ledger.reserve_account(address, RECORD_SPACE, payer=depositor)

    rent_required = ledger.rent.minimum_balance(RECORD_SPACE)
    if amount <= rent_required:
        raise EscrowError(
            ErrorCode.INVALID_AMOUNT,
            f"amount {amount} must exceed rent-exempt minimum {rent_required}",
        )

    ledger.transfer(depositor, address, amount)
    ledger.store_record(
        address,
        EscrowRecord(
            depositor=bytes(depositor),
            commitment=bytes(commitment),
            amount=amount,
            claimed=False,
            bump=bump,
        ),
    )
    logger.debug("deposit %d created at %s (%d lamports)", deposit_id, address.hex(), amount)
    return deposit_id


# --- claim_deposit ---


def claim_deposit(
    ledger: Ledger, claimer: bytes, deposit_address: bytes, deposit_id: int, secret: str
) -> None:
    # Address resolution: the record must exist and sit at the address its own
    # depositor and the supplied deposit_id derive to.
    record = ledger.load_record(deposit_address)
    try:
        expected = ledger.address_for_bump(
            DEPOSIT_SEED, deposit_seeds(record.depositor, deposit_id), record.bump
        )
    except EscrowError as exc:
        raise EscrowError(ErrorCode.ADDRESS_MISMATCH, "seeds do not derive a valid address") from exc
    if expected != deposit_address:
        raise EscrowError(ErrorCode.ADDRESS_MISMATCH, "deposit_id does not match deposit account")

    if record.claimed:
        raise EscrowError(ErrorCode.ALREADY_CLAIMED, "Deposit already claimed")

    if not verify_secret(secret, record.commitment):
        raise EscrowError(ErrorCode.INVALID_SECRET, "Invalid secret code")

    amount = record.amount
    ledger.debit(deposit_address, amount)
    ledger.credit(claimer, amount)

    record.claimed = True
    record.amount = 0
    ledger.store_record(deposit_address, record)
    logger.debug("deposit %d at %s claimed (%d lamports)", deposit_id, deposit_address.hex(), amount)


# --- queries ---


def get_deposit(state: LedgerState, address: bytes, program_id: bytes = PROGRAM_ID) -> EscrowRecord:
    return Ledger(state, program_id).load_record(address)


def find_deposits(
    state: LedgerState, depositor: bytes, program_id: bytes = PROGRAM_ID
) -> list[tuple[bytes, EscrowRecord]]:
    """All records created by `depositor`, matched on the raw layout bytes."""
    found = []
    for account in Ledger(state, program_id).program_accounts():
        data = account.data
        if data[:DISCRIMINATOR_SIZE] != RECORD_DISCRIMINATOR:
            continue
        if data[DEPOSITOR_OFFSET:DEPOSITOR_OFFSET + PUBKEY_SIZE] != depositor:
            continue
        found.append((account.address, decode_record(data)))
    return found
