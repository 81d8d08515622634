"""Hash-locked escrow error codes and exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class ErrorCategory(IntEnum):
    FORMAT = 0x01
    LEDGER = 0x02
    ESCROW = 0x03


class ErrorCode(IntEnum):
    # Format
    INVALID_FORMAT = 0x0100
    INVALID_INSTRUCTION = 0x0101

    # Ledger platform
    MISSING_SIGNER = 0x0200
    INSUFFICIENT_BALANCE = 0x0300
    ACCOUNT_NOT_FOUND = 0x0400
    ACCOUNT_EXISTS = 0x0401
    ACCOUNT_OWNER_MISMATCH = 0x0402
    ACCOUNT_DISCRIMINATOR_MISMATCH = 0x0403
    ADDRESS_MISMATCH = 0x0404

    # Escrow program (custom error numbering of the deployed program)
    ALREADY_CLAIMED = 6000
    INVALID_SECRET = 6001
    INVALID_AMOUNT = 6002

    @property
    def category(self) -> ErrorCategory:
        if self >= 6000:
            return ErrorCategory.ESCROW
        if self < 0x0200:
            return ErrorCategory.FORMAT
        return ErrorCategory.LEDGER

    @property
    def default_message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    ErrorCode.INVALID_FORMAT: "Malformed data",
    ErrorCode.INVALID_INSTRUCTION: "Unknown instruction",
    ErrorCode.MISSING_SIGNER: "Required signer missing",
    ErrorCode.INSUFFICIENT_BALANCE: "Insufficient balance",
    ErrorCode.ACCOUNT_NOT_FOUND: "Account not found",
    ErrorCode.ACCOUNT_EXISTS: "Account already in use",
    ErrorCode.ACCOUNT_OWNER_MISMATCH: "Account not owned by program",
    ErrorCode.ACCOUNT_DISCRIMINATOR_MISMATCH: "Account discriminator mismatch",
    ErrorCode.ADDRESS_MISMATCH: "Seeds constraint violated",
    ErrorCode.ALREADY_CLAIMED: "Deposit already claimed",
    ErrorCode.INVALID_SECRET: "Invalid secret code",
    ErrorCode.INVALID_AMOUNT: "Invalid amount",
}


@dataclass(frozen=True)
class EscrowError(Exception):
    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.name}({self.code:#06x}): {self.message}"

    @property
    def category(self) -> ErrorCategory:
        return self.code.category


# Allow Python's Exception machinery to set __traceback__/__context__/__cause__
# while keeping dataclass fields frozen.
_EXCEPTION_ATTRS = frozenset(("__traceback__", "__context__", "__cause__"))
_frozen_setattr = EscrowError.__setattr__


def _escrow_error_setattr(self: EscrowError, name: str, value: object) -> None:
    if name in _EXCEPTION_ATTRS:
        object.__setattr__(self, name, value)
    else:
        _frozen_setattr(self, name, value)


EscrowError.__setattr__ = _escrow_error_setattr  # type: ignore[method-assign]


def err(code: ErrorCode, message: Optional[str] = None) -> EscrowError:
    return EscrowError(code=code, message=message or code.default_message)
