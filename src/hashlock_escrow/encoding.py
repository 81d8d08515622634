"""Account and instruction data encoding.

All integers are little-endian. Account data and instruction data each start
with an 8-byte discriminator taken from ``sha256("<namespace>:<name>")``.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

from .config import (
    DISCRIMINATOR_SIZE,
    HASH_SIZE,
    IX_CLAIM_DEPOSIT,
    IX_CREATE_PRIVATE_DEPOSIT,
    PUBKEY_SIZE,
    RECORD_ACCOUNT_NAME,
    RECORD_SPACE,
    U8_MAX,
    U32_MAX,
    U64_MAX,
)
from .errors import ErrorCode, EscrowError
from .types import (
    ClaimDepositArgs,
    CreateDepositArgs,
    EscrowRecord,
    Instruction,
    InstructionKind,
)


def discriminator(namespace: str, name: str) -> bytes:
    return hashlib.sha256(f"{namespace}:{name}".encode()).digest()[:DISCRIMINATOR_SIZE]


RECORD_DISCRIMINATOR = discriminator("account", RECORD_ACCOUNT_NAME)

INSTRUCTION_DISCRIMINATORS = {
    InstructionKind.CREATE_PRIVATE_DEPOSIT: discriminator("global", IX_CREATE_PRIVATE_DEPOSIT),
    InstructionKind.CLAIM_DEPOSIT: discriminator("global", IX_CLAIM_DEPOSIT),
}

_KIND_BY_DISCRIMINATOR = {v: k for k, v in INSTRUCTION_DISCRIMINATORS.items()}


@dataclass
class Writer:
    buf: bytearray

    def _write_uint(self, v: int, size: int, limit: int) -> None:
        if not 0 <= int(v) <= limit:
            raise EscrowError(ErrorCode.INVALID_FORMAT, f"value {v} out of range for u{size * 8}")
        self.buf.extend(int(v).to_bytes(size, "little", signed=False))

    def write_u8(self, v: int) -> None:
        self._write_uint(v, 1, U8_MAX)

    def write_u32(self, v: int) -> None:
        self._write_uint(v, 4, U32_MAX)

    def write_u64(self, v: int) -> None:
        self._write_uint(v, 8, U64_MAX)

    def write_bytes(self, b: bytes) -> None:
        self.buf.extend(b)

    def write_bool(self, v: bool) -> None:
        self.write_u8(1 if v else 0)


@dataclass
class Reader:
    data: bytes
    pos: int = 0

    def read_bytes(self, n: int) -> bytes:
        end = self.pos + n
        if end > len(self.data):
            raise EscrowError(ErrorCode.INVALID_FORMAT, "unexpected end of data")
        out = bytes(self.data[self.pos:end])
        self.pos = end
        return out

    def read_u8(self) -> int:
        return self.read_bytes(1)[0]

    def read_u32(self) -> int:
        return int.from_bytes(self.read_bytes(4), "little")

    def read_u64(self) -> int:
        return int.from_bytes(self.read_bytes(8), "little")

    def read_bool(self) -> bool:
        v = self.read_u8()
        if v > 1:
            raise EscrowError(ErrorCode.INVALID_FORMAT, "invalid bool byte")
        return v == 1

    def expect_end(self) -> None:
        if self.pos != len(self.data):
            raise EscrowError(ErrorCode.INVALID_FORMAT, "trailing bytes")


def _expect_len(name: str, value: bytes, size: int) -> None:
    if not isinstance(value, (bytes, bytearray)) or len(value) != size:
        raise EscrowError(ErrorCode.INVALID_FORMAT, f"{name} must be {size} bytes")


def _write_string_u32(w: Writer, value: str) -> None:
    try:
        data = value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EscrowError(ErrorCode.INVALID_FORMAT, "string is not encodable as utf-8") from exc
    w.write_u32(len(data))
    w.write_bytes(data)


def _read_string_u32(r: Reader) -> str:
    size = r.read_u32()
    raw = r.read_bytes(size)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise EscrowError(ErrorCode.INVALID_FORMAT, "string is not valid utf-8") from exc


# --- Escrow record ---


def encode_record(record: EscrowRecord) -> bytes:
    _expect_len("depositor", record.depositor, PUBKEY_SIZE)
    _expect_len("commitment", record.commitment, HASH_SIZE)
    w = Writer(bytearray())
    w.write_bytes(RECORD_DISCRIMINATOR)
    w.write_bytes(record.depositor)
    w.write_bytes(record.commitment)
    w.write_u64(record.amount)
    w.write_bool(record.claimed)
    w.write_u8(record.bump)
    return bytes(w.buf)


def decode_record(data: bytes) -> EscrowRecord:
    if len(data) < DISCRIMINATOR_SIZE:
        raise EscrowError(ErrorCode.ACCOUNT_DISCRIMINATOR_MISMATCH, "account data too short")
    if bytes(data[:DISCRIMINATOR_SIZE]) != RECORD_DISCRIMINATOR:
        raise EscrowError(ErrorCode.ACCOUNT_DISCRIMINATOR_MISMATCH, "not an escrow record")
    if len(data) != RECORD_SPACE:
        raise EscrowError(ErrorCode.INVALID_FORMAT, f"escrow record must be {RECORD_SPACE} bytes")
    r = Reader(data, DISCRIMINATOR_SIZE)
    record = EscrowRecord(
        depositor=r.read_bytes(PUBKEY_SIZE),
        commitment=r.read_bytes(HASH_SIZE),
        amount=r.read_u64(),
        claimed=r.read_bool(),
        bump=r.read_u8(),
    )
    r.expect_end()
    return record


# --- Instruction data ---


def encode_instruction_data(ix: Instruction) -> bytes:
    tag = INSTRUCTION_DISCRIMINATORS.get(ix.kind)
    if tag is None:
        raise EscrowError(ErrorCode.INVALID_INSTRUCTION, f"unsupported instruction: {ix.kind}")
    w = Writer(bytearray())
    w.write_bytes(tag)
    args = ix.args
    if ix.kind == InstructionKind.CREATE_PRIVATE_DEPOSIT:
        if not isinstance(args, CreateDepositArgs):
            raise EscrowError(ErrorCode.INVALID_INSTRUCTION, "create expects CreateDepositArgs")
        _expect_len("commitment", args.commitment, HASH_SIZE)
        w.write_u64(args.deposit_id)
        w.write_u64(args.amount)
        w.write_bytes(args.commitment)
    else:
        if not isinstance(args, ClaimDepositArgs):
            raise EscrowError(ErrorCode.INVALID_INSTRUCTION, "claim expects ClaimDepositArgs")
        w.write_u64(args.deposit_id)
        _write_string_u32(w, args.secret)
    return bytes(w.buf)


def decode_instruction_data(data: bytes) -> tuple[InstructionKind, CreateDepositArgs | ClaimDepositArgs]:
    r = Reader(data)
    kind = _KIND_BY_DISCRIMINATOR.get(r.read_bytes(DISCRIMINATOR_SIZE))
    if kind is None:
        raise EscrowError(ErrorCode.INVALID_INSTRUCTION, "unknown instruction discriminator")

    args: CreateDepositArgs | ClaimDepositArgs
    if kind == InstructionKind.CREATE_PRIVATE_DEPOSIT:
        args = CreateDepositArgs(
            deposit_id=r.read_u64(),
            amount=r.read_u64(),
            commitment=r.read_bytes(HASH_SIZE),
        )
    else:
        args = ClaimDepositArgs(deposit_id=r.read_u64(), secret=_read_string_u32(r))
    r.expect_end()
    return kind, args
