"""Helpers to serialize/deserialize escrow fixtures as JSON."""

from __future__ import annotations

from typing import Any

from hashlock_escrow.types import (
    Account,
    ClaimDepositArgs,
    CreateDepositArgs,
    Instruction,
    InstructionKind,
    LedgerState,
    RentSchedule,
)


def _hex_to_bytes(v: str) -> bytes:
    return bytes.fromhex(v)


def _bytes_to_hex(v: bytes) -> str:
    return v.hex()


def state_to_json(state: LedgerState) -> dict[str, Any]:
    return {
        "slot": state.slot,
        "rent": {
            "lamports_per_byte_year": state.rent.lamports_per_byte_year,
            "exemption_threshold": state.rent.exemption_threshold,
        },
        "accounts": [
            {
                "address": _bytes_to_hex(a.address),
                "lamports": a.lamports,
                "owner": _bytes_to_hex(a.owner),
                "data": _bytes_to_hex(a.data),
            }
            for a in sorted(state.accounts.values(), key=lambda a: a.address)
        ],
    }


def state_from_json(data: dict[str, Any]) -> LedgerState:
    rent = data.get("rent") or {}
    state = LedgerState(
        rent=RentSchedule(
            lamports_per_byte_year=int(rent.get("lamports_per_byte_year", RentSchedule.lamports_per_byte_year)),
            exemption_threshold=int(rent.get("exemption_threshold", RentSchedule.exemption_threshold)),
        ),
        slot=int(data.get("slot", 0)),
    )
    for a in data.get("accounts", []):
        addr = _hex_to_bytes(a["address"])
        state.accounts[addr] = Account(
            address=addr,
            lamports=int(a.get("lamports", 0)),
            owner=_hex_to_bytes(a.get("owner", "00" * 32)),
            data=_hex_to_bytes(a.get("data", "")),
        )
    return state


def instruction_to_json(ix: Instruction) -> dict[str, Any]:
    out: dict[str, Any] = {
        "kind": ix.kind.value,
        "signer": _bytes_to_hex(ix.signer),
    }
    if ix.deposit_address is not None:
        out["deposit_address"] = _bytes_to_hex(ix.deposit_address)
    args = ix.args
    if isinstance(args, CreateDepositArgs):
        out["args"] = {
            "deposit_id": args.deposit_id,
            "amount": args.amount,
            "commitment": _bytes_to_hex(bytes(args.commitment)),
        }
    else:
        out["args"] = {"deposit_id": args.deposit_id, "secret": args.secret}
    return out


def instruction_from_json(data: dict[str, Any]) -> Instruction:
    kind = InstructionKind(data["kind"])
    a = data.get("args", {})
    if kind == InstructionKind.CREATE_PRIVATE_DEPOSIT:
        args: CreateDepositArgs | ClaimDepositArgs = CreateDepositArgs(
            deposit_id=int(a["deposit_id"]),
            amount=int(a["amount"]),
            commitment=_hex_to_bytes(a["commitment"]),
        )
    else:
        args = ClaimDepositArgs(deposit_id=int(a["deposit_id"]), secret=a["secret"])
    deposit_address = data.get("deposit_address")
    return Instruction(
        kind=kind,
        signer=_hex_to_bytes(data["signer"]),
        args=args,
        deposit_address=_hex_to_bytes(deposit_address) if deposit_address else None,
    )
