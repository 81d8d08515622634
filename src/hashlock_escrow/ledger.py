"""In-memory ledger platform the escrow program runs against.

`Ledger` wraps a mutable `LedgerState` and exposes the handful of host
capabilities the program needs: address derivation, rent-exempt account
reservation, the system transfer primitive, and direct lamport debit/credit
on accounts the program owns. Callers are expected to hand it a working copy;
atomicity is provided by `state_transition`, not here.
"""

from __future__ import annotations

import logging
from typing import Iterator, Sequence

from .config import PROGRAM_ID, SYSTEM_PROGRAM_ID, U64_MAX
from .crypto.derivation import create_program_address, find_program_address
from .encoding import decode_record, encode_record
from .errors import ErrorCode, EscrowError
from .types import Account, EscrowRecord, LedgerState, RentSchedule

logger = logging.getLogger(__name__)


class Ledger:
    def __init__(self, state: LedgerState, program_id: bytes = PROGRAM_ID):
        self.state = state
        self.program_id = program_id

    @property
    def rent(self) -> RentSchedule:
        return self.state.rent

    # --- Accounts ---

    def get_account(self, address: bytes) -> Account:
        account = self.state.accounts.get(address)
        if account is None:
            raise EscrowError(ErrorCode.ACCOUNT_NOT_FOUND, f"account {address.hex()} not found")
        return account

    def program_accounts(self) -> Iterator[Account]:
        for account in self.state.accounts.values():
            if account.owner == self.program_id:
                yield account

    def derive_address(self, tag: bytes, seeds: Sequence[bytes]) -> tuple[bytes, int]:
        """Canonical derived address and bump for `tag` + `seeds`."""
        return find_program_address([tag, *seeds], self.program_id)

    def address_for_bump(self, tag: bytes, seeds: Sequence[bytes], bump: int) -> bytes:
        return create_program_address([tag, *seeds, bytes([bump])], self.program_id)

    def reserve_account(self, address: bytes, space: int, payer: bytes) -> Account:
        """Create a program-owned account funded at the rent-exempt minimum."""
        if address in self.state.accounts:
            raise EscrowError(ErrorCode.ACCOUNT_EXISTS, f"account {address.hex()} already in use")
        lamports = self.rent.minimum_balance(space)
        self._charge(payer, lamports)
        account = Account(address=address, lamports=lamports, owner=self.program_id, data=bytes(space))
        self.state.accounts[address] = account
        logger.debug("reserved %s (%d bytes, %d lamports)", address.hex(), space, lamports)
        return account

    def _charge(self, payer: bytes, lamports: int) -> None:
        source = self._system_account(payer)
        if source.lamports < lamports:
            raise EscrowError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient lamports for rent")
        source.lamports -= lamports

    # --- Value movement ---

    def transfer(self, source: bytes, destination: bytes, amount: int) -> None:
        """System transfer: only valid from a data-less, system-owned account."""
        src = self._system_account(source)
        dst = self.get_account(destination)
        if src.lamports < amount:
            raise EscrowError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient lamports for transfer")
        if dst.lamports + amount > U64_MAX:
            raise EscrowError(ErrorCode.INVALID_AMOUNT, "transfer overflows destination")
        src.lamports -= amount
        dst.lamports += amount
        logger.debug("transfer %d lamports %s -> %s", amount, source.hex(), destination.hex())

    def debit(self, address: bytes, amount: int) -> None:
        """Checked lamport subtraction on an account owned by the program."""
        account = self.get_account(address)
        if account.owner != self.program_id:
            raise EscrowError(ErrorCode.ACCOUNT_OWNER_MISMATCH, "program may only debit accounts it owns")
        if amount > account.lamports:
            raise EscrowError(ErrorCode.INVALID_AMOUNT, "debit underflow")
        account.lamports -= amount

    def credit(self, address: bytes, amount: int) -> None:
        """Checked lamport addition. Unknown addresses become system accounts."""
        account = self.state.accounts.get(address)
        if account is None:
            account = Account(address=address)
            self.state.accounts[address] = account
        if account.lamports + amount > U64_MAX:
            raise EscrowError(ErrorCode.INVALID_AMOUNT, "credit overflow")
        account.lamports += amount

    # --- Escrow records ---

    def load_record(self, address: bytes) -> EscrowRecord:
        account = self.get_account(address)
        if account.owner != self.program_id:
            raise EscrowError(ErrorCode.ACCOUNT_OWNER_MISMATCH, "account not owned by escrow program")
        return decode_record(account.data)

    def store_record(self, address: bytes, record: EscrowRecord) -> None:
        account = self.get_account(address)
        if account.owner != self.program_id:
            raise EscrowError(ErrorCode.ACCOUNT_OWNER_MISMATCH, "account not owned by escrow program")
        data = encode_record(record)
        if len(data) != len(account.data):
            raise EscrowError(ErrorCode.INVALID_FORMAT, "record does not fit allocated space")
        account.data = data

    def _system_account(self, address: bytes) -> Account:
        account = self.get_account(address)
        if account.owner != SYSTEM_PROGRAM_ID or account.data:
            raise EscrowError(ErrorCode.ACCOUNT_OWNER_MISMATCH, "system transfer source must carry no data")
        return account
