"""State transition entrypoints for the hash-locked escrow."""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import replace
from typing import Optional

from . import escrow
from .config import PROGRAM_ID
from .encoding import decode_instruction_data
from .errors import EscrowError
from .ledger import Ledger
from .types import Instruction, LedgerState

logger = logging.getLogger(__name__)


class TransitionResult:
    """Thin wrapper for verify/apply results."""

    def __init__(self, ok: bool, error: Optional[EscrowError] = None, return_value: Optional[int] = None):
        self.ok = ok
        self.error = error
        self.return_value = return_value

    @classmethod
    def success(cls, return_value: Optional[int] = None) -> "TransitionResult":
        return cls(True, None, return_value)

    @classmethod
    def failure(cls, error: EscrowError) -> "TransitionResult":
        return cls(False, error)

    def __repr__(self) -> str:
        if self.ok:
            return f"TransitionResult(ok=True, return_value={self.return_value!r})"
        return f"TransitionResult(ok=False, error={self.error})"


def instruction_from_data(
    signer: bytes, data: bytes, deposit_address: Optional[bytes] = None
) -> Instruction:
    """Build an `Instruction` from raw instruction data bytes."""
    kind, args = decode_instruction_data(data)
    return Instruction(kind=kind, signer=signer, args=args, deposit_address=deposit_address)


def verify_instruction(
    state: LedgerState, ix: Instruction, program_id: bytes = PROGRAM_ID
) -> TransitionResult:
    """Dry run: execute against a scratch copy and report the outcome."""
    _, result = process_instruction(state, ix, program_id)
    return result


def process_instruction(
    state: LedgerState, ix: Instruction, program_id: bytes = PROGRAM_ID
) -> tuple[LedgerState, TransitionResult]:
    """Apply a single instruction.

    Failed-instruction semantics: the returned state is the input state,
    untouched. Successful instructions return a new state object.
    """
    try:
        escrow.verify(ix)
    except EscrowError as exc:
        logger.debug("%s rejected before execution: %s", ix.kind, exc)
        return state, TransitionResult.failure(exc)

    working = deepcopy(state)
    try:
        return_value = escrow.apply(Ledger(working, program_id), ix)
    except EscrowError as exc:
        logger.debug("%s failed: %s", ix.kind, exc)
        return state, TransitionResult.failure(exc)

    return working, TransitionResult.success(return_value)


def process_transaction(
    state: LedgerState, instructions: list[Instruction], program_id: bytes = PROGRAM_ID
) -> tuple[LedgerState, TransitionResult]:
    """Apply instructions in order with all-or-nothing semantics.

    If any instruction fails, the whole transaction is rejected and the state
    is unchanged. On success the slot advances by one.
    """
    working = state
    result = TransitionResult.success()
    for ix in instructions:
        working, result = process_instruction(working, ix, program_id)
        if not result.ok:
            return state, result

    if working is state:
        working = deepcopy(state)
    working = replace(working, slot=working.slot + 1)
    return working, TransitionResult.success(result.return_value)
