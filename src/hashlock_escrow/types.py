"""Core types for the hash-locked escrow.

The host ledger is modeled as a flat account store: every account holds a
lamport balance, an owning program and an opaque data blob. Escrow records are
accounts owned by the escrow program whose data is an encoded `EscrowRecord`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from .config import (
    ACCOUNT_STORAGE_OVERHEAD,
    EXEMPTION_THRESHOLD_YEARS,
    LAMPORTS_PER_BYTE_YEAR,
    SYSTEM_PROGRAM_ID,
)


class InstructionKind(Enum):
    CREATE_PRIVATE_DEPOSIT = "create_private_deposit"
    CLAIM_DEPOSIT = "claim_deposit"


@dataclass
class EscrowRecord:
    depositor: bytes
    commitment: bytes
    amount: int
    claimed: bool = False
    bump: int = 0


@dataclass
class Account:
    address: bytes
    lamports: int = 0
    owner: bytes = SYSTEM_PROGRAM_ID
    data: bytes = b""


@dataclass(frozen=True)
class RentSchedule:
    lamports_per_byte_year: int = LAMPORTS_PER_BYTE_YEAR
    exemption_threshold: int = EXEMPTION_THRESHOLD_YEARS

    def minimum_balance(self, data_len: int) -> int:
        """Lamports an account of `data_len` bytes must hold to stay alive."""
        return (
            (ACCOUNT_STORAGE_OVERHEAD + data_len)
            * self.lamports_per_byte_year
            * self.exemption_threshold
        )

    @classmethod
    def from_env(cls) -> "RentSchedule":
        """Load rent parameters from environment variables."""
        return cls(
            lamports_per_byte_year=int(
                os.environ.get("ESCROW_LAMPORTS_PER_BYTE_YEAR", LAMPORTS_PER_BYTE_YEAR)
            ),
            exemption_threshold=int(
                os.environ.get("ESCROW_EXEMPTION_THRESHOLD", EXEMPTION_THRESHOLD_YEARS)
            ),
        )


@dataclass
class LedgerState:
    accounts: dict[bytes, Account] = field(default_factory=dict)
    rent: RentSchedule = field(default_factory=RentSchedule)
    slot: int = 0


# --- Instructions ---


@dataclass
class CreateDepositArgs:
    deposit_id: int
    amount: int
    commitment: bytes


@dataclass
class ClaimDepositArgs:
    deposit_id: int
    secret: str


@dataclass
class Instruction:
    kind: InstructionKind
    signer: bytes
    args: Union[CreateDepositArgs, ClaimDepositArgs]
    # Record account named by the caller. Derived from the signer for creates.
    deposit_address: Optional[bytes] = None
